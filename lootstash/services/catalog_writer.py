"""Upserts of catalog rows with per-item outcome recording."""

from typing import Any, Optional

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from lootstash.core.catalog.models import ImportRunStats, ItemOutcome, OutcomeStatus
from lootstash.core.deadline import Deadline
from lootstash.core.logging import get_logger

logger = get_logger(__name__)


class CatalogWriter:
    """Writes one row at a time so a failing item never takes its batch down."""

    def __init__(
        self,
        db: Session,
        stats: ImportRunStats,
        dry_run: bool = False,
        deadline: Optional[Deadline] = None,
    ):
        self._db = db
        self.stats = stats
        self.dry_run = dry_run
        self.deadline = deadline or Deadline()

    def check_deadline(self, where: str) -> None:
        self.deadline.check(where)

    def record(self, outcome: ItemOutcome) -> ItemOutcome:
        if outcome.status == OutcomeStatus.ERROR:
            logger.warning("%s %s: %s", outcome.kind, outcome.name, outcome.reason)
        return self.stats.record(outcome)

    def upsert(
        self,
        model,
        key: dict[str, Any],
        values: dict[str, Any],
        kind: str,
        name: str,
    ) -> ItemOutcome:
        """Insert or update the row matching key. Dry run only looks."""
        self.check_deadline(kind)
        try:
            existing = self._db.query(model).filter_by(**key).first()
            if self.dry_run:
                action = "updated" if existing is not None else "inserted"
                return self.record(ItemOutcome.success(kind, name, action))
            if existing is None:
                self._db.add(model(**key, **values))
                action = "inserted"
            else:
                for field, value in values.items():
                    setattr(existing, field, value)
                action = "updated"
            self._db.commit()
        except SQLAlchemyError as e:
            self._db.rollback()
            return self.record(ItemOutcome.error(kind, name, str(e)))
        logger.debug("%s %s %s", action, kind, name)
        return self.record(ItemOutcome.success(kind, name, action))

    def update(self, row, values: dict[str, Any], kind: str, name: str) -> ItemOutcome:
        """Update an already matched row in place."""
        self.check_deadline(kind)
        if self.dry_run:
            return self.record(ItemOutcome.success(kind, name, "updated"))
        try:
            for field, value in values.items():
                setattr(row, field, value)
            self._db.commit()
        except SQLAlchemyError as e:
            self._db.rollback()
            return self.record(ItemOutcome.error(kind, name, str(e)))
        return self.record(ItemOutcome.success(kind, name, "updated"))

    def insert(self, row, kind: str, name: str) -> ItemOutcome:
        self.check_deadline(kind)
        if self.dry_run:
            return self.record(ItemOutcome.success(kind, name, "inserted"))
        try:
            self._db.add(row)
            self._db.commit()
        except SQLAlchemyError as e:
            self._db.rollback()
            return self.record(ItemOutcome.error(kind, name, str(e)))
        return self.record(ItemOutcome.success(kind, name, "inserted"))

    def skip(self, kind: str, name: str, reason: str) -> ItemOutcome:
        logger.debug("Skipped %s %s: %s", kind, name, reason)
        return self.record(ItemOutcome.skipped(kind, name, reason))

    def error(self, kind: str, name: str, reason: str) -> ItemOutcome:
        return self.record(ItemOutcome.error(kind, name, reason))
