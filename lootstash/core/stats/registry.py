"""Stat registry: canonical stat codes and their aliases, in memory."""

from __future__ import annotations

import logging
import threading
from collections.abc import Iterable
from typing import Optional

from ..catalog.models import StatCode
from ..errors import NotFound

logger = logging.getLogger(__name__)


class StatRegistry:
    """
    Code/alias -> StatCode index.
    Populated from the stats table by StatService; no module-level instance.
    """

    def __init__(self) -> None:
        self._stats: dict[str, StatCode] = {}
        self._aliases: dict[str, str] = {}
        self._lock = threading.Lock()

    def load(self, stats: Iterable[StatCode]) -> int:
        """Replace the contents with the given stats. Returns the number loaded."""
        with self._lock:
            self._stats.clear()
            self._aliases.clear()
            for stat in stats:
                self._add(stat)
            count = len(self._stats)
        logger.info("Loaded %d stat codes", count)
        return count

    def register(self, stat: StatCode) -> None:
        """Add or replace a stat and its aliases."""
        with self._lock:
            if stat.code in self._stats:
                logger.debug("Replacing stat code: %s", stat.code)
            self._add(stat)

    def _add(self, stat: StatCode) -> None:
        self._stats[stat.code] = stat
        for alias in stat.aliases:
            owner = self._aliases.get(alias)
            if owner is not None and owner != stat.code:
                logger.warning(
                    "Alias %s moved from %s to %s", alias, owner, stat.code
                )
            self._aliases[alias] = stat.code

    def resolve(self, code_or_alias: str) -> StatCode:
        """Exact, case-sensitive lookup by code, then by alias."""
        with self._lock:
            stat = self._stats.get(code_or_alias)
            if stat is None:
                code = self._aliases.get(code_or_alias)
                if code is not None:
                    stat = self._stats.get(code)
        if stat is None:
            raise NotFound(f"unknown stat code: {code_or_alias}")
        return stat

    def get(self, code_or_alias: str) -> Optional[StatCode]:
        try:
            return self.resolve(code_or_alias)
        except NotFound:
            return None

    def is_known(self, code_or_alias: str) -> bool:
        with self._lock:
            return code_or_alias in self._stats or code_or_alias in self._aliases

    def get_all(self) -> list[StatCode]:
        """All stats ordered by sort_order, then code."""
        with self._lock:
            stats = list(self._stats.values())
        return sorted(stats, key=lambda s: (s.sort_order, s.code))

    def count(self) -> int:
        with self._lock:
            return len(self._stats)
