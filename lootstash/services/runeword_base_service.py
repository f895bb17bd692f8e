"""Runeword -> valid base pairs, rebuilt from the item type hierarchy."""

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from lootstash.core.catalog.item_types import base_matches, build_type_hierarchy
from lootstash.core.logging import get_logger
from lootstash.db.models import (
    ItemBaseModel,
    ItemTypeModel,
    RunewordBaseModel,
    RunewordModel,
)

logger = get_logger(__name__)


class RunewordBaseService:
    """Clears runeword_bases and refills it from the current catalog."""

    def __init__(self, db: Session):
        self._db = db

    def hierarchy(self) -> dict[str, list[str]]:
        parents = {t.code: (t.equiv1, t.equiv2) for t in self._db.query(ItemTypeModel).all()}
        return build_type_hierarchy(parents)

    def compute(self) -> list[RunewordBaseModel]:
        """One row per (complete runeword, base with enough sockets and a matching type)."""
        hierarchy = self.hierarchy()
        bases = (
            self._db.query(ItemBaseModel)
            .filter(ItemBaseModel.max_sockets > 0)
            .order_by(ItemBaseModel.id)
            .all()
        )
        runewords = (
            self._db.query(RunewordModel)
            .filter(RunewordModel.complete.is_(True))
            .order_by(RunewordModel.id)
            .all()
        )
        pairs = []
        for runeword in runewords:
            if not runeword.valid_item_types:
                continue
            required = len(runeword.runes or [])
            for base in bases:
                if base.max_sockets < required:
                    continue
                if not base_matches(
                    (base.item_type, base.item_type2),
                    runeword.valid_item_types,
                    runeword.excluded_item_types or [],
                    hierarchy,
                ):
                    continue
                pairs.append(
                    RunewordBaseModel(
                        runeword_id=runeword.id,
                        item_base_id=base.id,
                        item_base_code=base.code,
                        item_base_name=base.name,
                        category=base.category,
                        max_sockets=base.max_sockets,
                        required_sockets=required,
                    )
                )
        return pairs

    def rebuild(self, dry_run: bool = False) -> int:
        """Replace every stored pair. Dry run only counts.

        Raises:
            SQLAlchemyError: If the rewrite fails; the session is rolled back.
        """
        pairs = self.compute()
        if dry_run:
            logger.info("Dry run: %d runeword bases would be stored", len(pairs))
            return len(pairs)
        try:
            self._db.query(RunewordBaseModel).delete()
            self._db.add_all(pairs)
            self._db.commit()
        except SQLAlchemyError:
            self._db.rollback()
            raise
        logger.info("Stored %d runeword bases", len(pairs))
        return len(pairs)
