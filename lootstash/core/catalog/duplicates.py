"""Duplicate detection. Pure functions; deletion happens in DuplicateService."""

from __future__ import annotations

from collections.abc import Callable, Iterable
from dataclasses import dataclass, field
from typing import Any, Protocol


class NamedRow(Protocol):
    id: int
    name: str


@dataclass
class DuplicateGroup:
    """Rows sharing one lower-cased name. keeper stays, losers are deleted."""

    table: str
    name: str
    keeper_id: Any
    loser_ids: list[Any] = field(default_factory=list)

    def to_dict(self) -> dict[str, Any]:
        return {
            "table": self.table,
            "name": self.name,
            "keeper_id": self.keeper_id,
            "loser_ids": list(self.loser_ids),
        }


def _row_id(row: NamedRow) -> Any:
    return row.id


def find_name_duplicates(
    rows: Iterable[NamedRow],
    table: str,
    key: Callable[[NamedRow], Any] = _row_id,
) -> list[DuplicateGroup]:
    """Group rows by lower-cased name; the lowest key survives each group.

    Groups come back sorted by name so reports are stable.
    """
    by_name: dict[str, list[NamedRow]] = {}
    for row in rows:
        by_name.setdefault(row.name.lower(), []).append(row)

    groups: list[DuplicateGroup] = []
    for name in sorted(by_name):
        members = by_name[name]
        if len(members) < 2:
            continue
        members = sorted(members, key=key)
        groups.append(
            DuplicateGroup(
                table=table,
                name=members[0].name,
                keeper_id=key(members[0]),
                loser_ids=[key(m) for m in members[1:]],
            )
        )
    return groups


def find_cross_domain(
    bases: Iterable[NamedRow],
    dedicated: Iterable[NamedRow],
) -> list[NamedRow]:
    """Base rows whose lower-cased name also exists as a rune or gem.

    Runes and gems have their own tables, so such base rows are stray copies.
    """
    names = {row.name.lower() for row in dedicated}
    return [row for row in bases if row.name.lower() in names]
