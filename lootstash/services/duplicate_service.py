"""Duplicate cleanup over the catalog tables.

Detection lives in core/catalog/duplicates.py; this service loads rows,
deletes losers and reports what it did.
"""

from dataclasses import dataclass, field
from typing import Any

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from lootstash.core.catalog.duplicates import (
    DuplicateGroup,
    find_cross_domain,
    find_name_duplicates,
)
from lootstash.core.logging import get_logger
from lootstash.db.models import (
    GemModel,
    ItemBaseModel,
    RuneModel,
    SetItemModel,
    UniqueItemModel,
)

logger = get_logger(__name__)

# table name -> (model, column the keeper is chosen by). Ties fall back to id;
# group ids are always primary keys.
DEDUP_TABLES = {
    "unique_items": (UniqueItemModel, "index_id"),
    "set_items": (SetItemModel, "index_id"),
    "item_bases": (ItemBaseModel, "id"),
}


@dataclass
class CleanupResult:
    dry_run: bool
    cross_domain: list[dict[str, Any]] = field(default_factory=list)
    groups: list[DuplicateGroup] = field(default_factory=list)
    deleted: int = 0
    failed: int = 0

    @property
    def found(self) -> int:
        return len(self.cross_domain) + sum(len(g.loser_ids) for g in self.groups)

    def to_dict(self) -> dict[str, Any]:
        return {
            "dry_run": self.dry_run,
            "found": self.found,
            "deleted": self.deleted,
            "failed": self.failed,
            "cross_domain": list(self.cross_domain),
            "groups": [g.to_dict() for g in self.groups],
        }


class DuplicateService:
    """Removes stray rune/gem bases, then same-name rows per table."""

    def __init__(self, db: Session):
        self._db = db

    def report(self) -> list[DuplicateGroup]:
        """Same-name groups for every deduplicated table, without changes."""
        groups: list[DuplicateGroup] = []
        for table in DEDUP_TABLES:
            groups.extend(self._find_groups(table))
        return groups

    def _find_groups(self, table: str) -> list[DuplicateGroup]:
        model, column = DEDUP_TABLES[table]
        rows = self._db.query(model).all()
        ordered = sorted(rows, key=lambda row: (getattr(row, column), row.id))
        rank = {row.id: i for i, row in enumerate(ordered)}
        groups = find_name_duplicates(ordered, table, key=lambda row: rank[row.id])
        for group in groups:
            group.keeper_id = ordered[group.keeper_id].id
            group.loser_ids = [ordered[i].id for i in group.loser_ids]
        return groups

    def _find_cross_domain(self) -> list[ItemBaseModel]:
        bases = self._db.query(ItemBaseModel).all()
        dedicated = [*self._db.query(RuneModel).all(), *self._db.query(GemModel).all()]
        return find_cross_domain(bases, dedicated)

    def _delete(self, model, column: str, value: Any, label: str) -> bool:
        try:
            self._db.query(model).filter(getattr(model, column) == value).delete(
                synchronize_session=False
            )
            self._db.commit()
        except SQLAlchemyError as e:
            self._db.rollback()
            logger.warning("Failed to delete %s %s=%s: %s", label, column, value, e)
            return False
        return True

    def resolve(self, dry_run: bool = False) -> CleanupResult:
        """Delete duplicates. Cross-domain cleanup finishes before same-table dedup.

        Each deletion is independent: a failure is logged and counted and the
        rest of the batch continues.
        """
        result = CleanupResult(dry_run=dry_run)

        stray = self._find_cross_domain()
        result.cross_domain = [{"code": row.code, "name": row.name} for row in stray]
        logger.info("Found %d rune/gem rows in item_bases", len(stray))
        if not dry_run:
            for entry in result.cross_domain:
                if self._delete(ItemBaseModel, "code", entry["code"], "item_bases"):
                    result.deleted += 1
                else:
                    result.failed += 1

        for table, (model, _) in DEDUP_TABLES.items():
            groups = self._find_groups(table)
            if dry_run and table == "item_bases" and stray:
                # what remains once the stray rows are gone
                stray_ids = {row.id for row in stray}
                groups = self._without(groups, stray_ids)
            result.groups.extend(groups)
            if dry_run:
                continue
            for group in groups:
                for loser in group.loser_ids:
                    if self._delete(model, "id", loser, table):
                        result.deleted += 1
                    else:
                        result.failed += 1

        logger.info(
            "Duplicate cleanup%s: found=%d deleted=%d failed=%d",
            " (dry run)" if dry_run else "",
            result.found,
            result.deleted,
            result.failed,
        )
        return result

    @staticmethod
    def _without(groups: list[DuplicateGroup], ids: set[Any]) -> list[DuplicateGroup]:
        kept = []
        for group in groups:
            members = [m for m in [group.keeper_id, *group.loser_ids] if m not in ids]
            if len(members) > 1:
                kept.append(
                    DuplicateGroup(group.table, group.name, members[0], members[1:])
                )
        return kept
