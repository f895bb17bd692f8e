"""Rename catalog rows to the display names used on the scraped pages."""

from collections.abc import Iterable
from pathlib import Path
from typing import Any

from sqlalchemy.orm import Session

from lootstash.core.catalog.names import NameMatcher
from lootstash.core.logging import get_logger
from lootstash.core.sources.pages import parse_image_mappings, read_page
from lootstash.db.models import RuneModel, SetItemModel, UniqueItemModel

logger = get_logger(__name__)

SYNC_PAGES = ("uniques.html", "sets.html", "base.html", "misc.html")

SYNC_KINDS = (
    ("unique", UniqueItemModel),
    ("set", SetItemModel),
    ("rune", RuneModel),
)


def read_page_names(pages_path: str | Path) -> list[str]:
    """Every article name on the scraped pages that exist."""
    names: list[str] = []
    for page in SYNC_PAGES:
        path = Path(pages_path) / page
        if not path.is_file():
            continue
        items = parse_image_mappings(read_page(path))
        names.extend(item.name for item in items)
        logger.info("Parsed %d names from %s", len(items), page)
    return names


class NameSyncService:
    """Applies community display names to unique, set and rune rows."""

    def __init__(self, db: Session):
        self._db = db

    def sync(self, page_names: Iterable[str], dry_run: bool = False) -> dict[str, Any]:
        matcher = NameMatcher(page_names)
        updated = 0
        not_found = 0
        changes: list[dict[str, str]] = []

        for kind, model in SYNC_KINDS:
            for row in self._db.query(model).order_by(model.id).all():
                if kind == "rune":
                    new_name = matcher.find_rune_match(row.name)
                else:
                    new_name = matcher.find_best_match(row.name)
                if new_name is None:
                    not_found += 1
                    continue
                if new_name == row.name:
                    continue
                changes.append({"kind": kind, "old": row.name, "new": new_name})
                if not dry_run:
                    row.name = new_name
                updated += 1

        if not dry_run:
            self._db.commit()
        logger.info(
            "Name sync%s: %d updated, %d not found",
            " (dry run)" if dry_run else "",
            updated,
            not_found,
        )
        return {"updated": updated, "not_found": not_found, "changes": changes}
