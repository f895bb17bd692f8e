"""Name normalization and best-match lookup over a closed item vocabulary."""

from __future__ import annotations

import bisect
import threading
from collections.abc import Callable, Iterable
from typing import Optional

from .models import ItemIdentity, ItemKind

# Substring matches require both keys to be longer than this, so short names
# such as "El" or "Ber" never match everywhere.
MIN_SUBSTRING_LEN = 3

RUNE_SUFFIX = " Rune"

_LOOKUP_STRIP = str.maketrans("", "", "'’ -_")
_MATCH_STRIP = str.maketrans("", "", "'’` -_.,():")
_CURLY_QUOTES = str.maketrans(
    {"‘": "'", "’": "'", "“": '"', "”": '"'}
)


def normalize_name(name: str) -> str:
    """Lookup key: lower-case without apostrophes, spaces, hyphens or underscores."""
    return name.lower().translate(_LOOKUP_STRIP)


def normalize_for_match(name: str) -> str:
    """Looser key for image mappings; also drops backticks, dots, commas, parens and colons."""
    return name.lower().translate(_MATCH_STRIP)


def normalize_display_name(name: str) -> str:
    return name.strip().lower().translate(_CURLY_QUOTES)


def identity(kind: ItemKind, canonical_id: object, display_name: str) -> ItemIdentity:
    """ItemIdentity keyed by normalize_name(display_name)."""
    return ItemIdentity(
        kind=ItemKind(kind),
        canonical_id=str(canonical_id),
        display_name=display_name,
        normalized_key=normalize_name(display_name),
    )


class NameMatcher:
    """
    Normalized-key index over known display names.

    Keys are kept sorted so substring fallback is reproducible.
    """

    def __init__(
        self,
        names: Iterable[str] = (),
        normalizer: Callable[[str], str] = normalize_name,
    ) -> None:
        self._normalize = normalizer
        self._index: dict[str, str] = {}
        self._keys: list[str] = []
        self._lock = threading.Lock()
        for name in names:
            self.add(name)

    def add(self, name: str) -> None:
        """Register a display name. A later name with the same key replaces the earlier one."""
        key = self._normalize(name)
        if not key:
            return
        with self._lock:
            if key not in self._index:
                bisect.insort(self._keys, key)
            self._index[key] = name

    def remove(self, name: str) -> None:
        key = self._normalize(name)
        with self._lock:
            if self._index.pop(key, None) is not None:
                self._keys.remove(key)

    def __len__(self) -> int:
        return len(self._index)

    def __contains__(self, name: str) -> bool:
        return self._normalize(name) in self._index

    def find_exact(self, name: str) -> Optional[str]:
        return self._index.get(self._normalize(name))

    def find_best_match(self, name: str) -> Optional[str]:
        """Exact normalized match, else the best substring candidate, else None.

        Among substring candidates the one sharing the longest common
        normalized run wins (i.e. the shorter of the two keys is longest),
        then the one closest in length, then the first in sorted order.
        """
        key = self._normalize(name)
        if not key:
            return None
        with self._lock:
            exact = self._index.get(key)
            if exact is not None:
                return exact
            if len(key) <= MIN_SUBSTRING_LEN:
                return None

            best_key: Optional[str] = None
            best_score: tuple[int, int] = (0, 0)
            for candidate in self._keys:
                if len(candidate) <= MIN_SUBSTRING_LEN:
                    continue
                if candidate not in key and key not in candidate:
                    continue
                score = (min(len(candidate), len(key)), -abs(len(candidate) - len(key)))
                if best_key is None or score > best_score:
                    best_key, best_score = candidate, score
            return self._index[best_key] if best_key is not None else None

    def find_rune_match(self, name: str) -> Optional[str]:
        """find_best_match, then retry without the " Rune" suffix and put it back."""
        found = self.find_best_match(name)
        if found is not None:
            return found
        short = name[: -len(RUNE_SUFFIX)] if name.endswith(RUNE_SUFFIX) else name
        short_match = self.find_exact(short)
        if short_match is not None:
            return short_match + RUNE_SUFFIX
        return None
