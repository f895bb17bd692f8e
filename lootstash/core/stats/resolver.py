"""Reverse property resolution: free display text -> canonical stat code + range."""

from __future__ import annotations

import logging
import re
import threading
from collections.abc import Iterable
from dataclasses import dataclass
from typing import Optional

from ..catalog.models import RAW_CODE, PropertyAssignment
from .formats import (
    FIXED_VALUE_CODES,
    PER_LEVEL_CODES,
    PROPERTY_FORMATS,
    PropertyTranslator,
    reverse_skill_tabs,
)
from .registry import StatRegistry

logger = logging.getLogger(__name__)

VALUE_PATTERN = r"(-\(\d+-\d+\)|[+-]?\d+(?:-\d+)?(?:\(\d+-\d+\))?)"
NUMBER_PATTERN = r"(\d+)"
TEXT_PATTERN = r"(.+?)"

_PLACEHOLDER = re.compile(r"(\{value\}|\{min\}|\{max\}|\{param\}|\{skilltab\})")
_GROUP_PATTERNS = {
    "value": VALUE_PATTERN,
    "min": NUMBER_PATTERN,
    "max": NUMBER_PATTERN,
    "param": TEXT_PATTERN,
    "skilltab": TEXT_PATTERN,
}

CLASS_SUFFIX = re.compile(
    r"\s*\((Amazon|Sorceress|Necromancer|Paladin|Barbarian|Druid|Assassin|Warlock)"
    r"(\s+[Oo]nly)?\)\s*$"
)
PER_LEVEL_PAREN = re.compile(
    r"^\(([0-9.]+) Per Character Level\)\s+(\d+)-(\d+)%?\s+(.+?)"
    r"\s+\(Based [Oo]n Character Level\)$",
    re.IGNORECASE,
)
PER_LEVEL_SIMPLE = re.compile(
    r"^[+]?(-?\d+(?:-\d+)?)%?\s+(.+?)\s+\(Based [Oo]n Character Level\)$",
    re.IGNORECASE,
)
_TEMPLATE_STAT = re.compile(r"\{value\}%?\s+(.+?)\s+\(Based")
_LEADING_INT = re.compile(r"^-?\d+")

# Pattern sources, in tie-break order.
SOURCE_FORMATS = 0
SOURCE_REGISTRY = 1


@dataclass(frozen=True)
class ReversePattern:
    code: str
    regex: re.Pattern
    groups: tuple[str, ...]
    is_fixed: bool
    source: int

    @property
    def sort_key(self) -> tuple[int, int, int, str]:
        return (0 if self.is_fixed else 1, -len(self.regex.pattern), self.source, self.code)


def build_pattern(code: str, template: str, source: int = SOURCE_FORMATS) -> ReversePattern:
    """Compile a display template into an anchored, case-insensitive regex.

    A literal "+" right before {value} becomes optional so values that already
    carry a sign still match.
    """
    if "{" not in template:
        return ReversePattern(
            code=code,
            regex=re.compile("^" + re.escape(template) + "$", re.IGNORECASE),
            groups=(),
            is_fixed=True,
            source=source,
        )

    parts: list[str] = []
    groups: list[str] = []
    for piece in _PLACEHOLDER.split(template):
        if not piece:
            continue
        if _PLACEHOLDER.fullmatch(piece):
            name = piece[1:-1]
            if name in groups:
                parts.append(re.escape(piece))
                continue
            if name == "value" and parts and parts[-1].endswith(r"\+"):
                parts[-1] = parts[-1][: -len(r"\+")] + "[+]?"
            parts.append(_GROUP_PATTERNS[name])
            groups.append(name)
        else:
            parts.append(re.escape(piece))

    return ReversePattern(
        code=code,
        regex=re.compile("^" + "".join(parts) + "$", re.IGNORECASE),
        groups=tuple(groups),
        is_fixed=False,
        source=source,
    )


def parse_value_str(text: str) -> tuple[int, int]:
    """Parse "25", "+25", "25-35", "-25" or "-(5-10)" into (min, max)."""
    s = text.strip()

    if s.startswith("-(") and s.endswith(")"):
        low, sep, high = s[2:-1].partition("-")
        if sep:
            return -int(high), -int(low)

    s = s.removeprefix("+")
    if "-" in s and not s.startswith("-"):
        low, _, high = s.partition("-")
        return _leading_int(low), _leading_int(high)

    value = _leading_int(s)
    return value, value


def _leading_int(text: str) -> int:
    match = _LEADING_INT.match(text.strip())
    return int(match.group(0)) if match else 0


def _per_level_stats() -> list[tuple[str, str]]:
    """(code, stat text) for each per-level format, e.g. ("hp/lvl", "To Life")."""
    stats = []
    for code in PER_LEVEL_CODES:
        match = _TEMPLATE_STAT.search(PROPERTY_FORMATS[code])
        if match:
            stats.append((code, match.group(1)))
    return stats


class PropertyResolver:
    """
    Resolves property lines against the format table and registry templates.

    Build it after the registry is loaded and seeded; call rebuild() if the
    registry changes afterwards.
    """

    def __init__(
        self,
        registry: Optional[StatRegistry] = None,
        formats: Optional[dict[str, str]] = None,
    ) -> None:
        self._registry = registry
        self._formats = dict(PROPERTY_FORMATS if formats is None else formats)
        self._skill_tabs = reverse_skill_tabs()
        self._per_level = _per_level_stats()
        self._lock = threading.Lock()
        self._unresolved: list[str] = []
        self._unresolved_seen: set[str] = set()
        self._patterns: list[ReversePattern] = []
        self.rebuild()

    def rebuild(self) -> int:
        """Recompile the pattern list. Returns the number of patterns."""
        patterns = [
            build_pattern(code, template, SOURCE_FORMATS)
            for code, template in self._formats.items()
        ]
        if self._registry is not None:
            covered = set(self._formats.values())
            for stat in self._registry.get_all():
                if not stat.description or stat.description in covered:
                    continue
                covered.add(stat.description)
                patterns.append(build_pattern(stat.code, stat.description, SOURCE_REGISTRY))
        patterns.sort(key=lambda p: p.sort_key)
        self._patterns = patterns
        logger.debug("Built %d reverse patterns", len(patterns))
        return len(patterns)

    @property
    def unresolved(self) -> list[str]:
        """Distinct property texts that fell back to raw, in first-seen order."""
        with self._lock:
            return list(self._unresolved)

    def resolve(self, text: str) -> PropertyAssignment:
        trimmed = text.strip()
        if not trimmed:
            return PropertyAssignment(code=RAW_CODE, display_text=text)

        prop = self._match_per_level(trimmed)
        if prop is None:
            prop = self._match_patterns(trimmed)
        if prop is None:
            self._record_unresolved(trimmed)
            return PropertyAssignment(code=RAW_CODE, display_text=text)

        prop.has_range = prop.code not in FIXED_VALUE_CODES and prop.min != prop.max
        return prop

    def resolve_lines(self, lines: Iterable[str]) -> list[PropertyAssignment]:
        return [self.resolve(line) for line in lines if line.strip()]

    def _record_unresolved(self, text: str) -> None:
        with self._lock:
            if text not in self._unresolved_seen:
                self._unresolved_seen.add(text)
                self._unresolved.append(text)

    def _match_patterns(self, text: str) -> Optional[PropertyAssignment]:
        for pattern in self._patterns:
            match = pattern.regex.match(text)
            if match is None:
                continue
            prop = PropertyAssignment(code=pattern.code, display_text=text)
            if pattern.is_fixed:
                return prop

            unresolved_tab = False
            for name, value in zip(pattern.groups, match.groups()):
                if name == "value":
                    prop.min, prop.max = parse_value_str(value)
                elif name == "min":
                    prop.min = int(value)
                elif name == "max":
                    prop.max = int(value)
                elif name == "param":
                    prop.param = CLASS_SUFFIX.sub("", value)
                elif name == "skilltab":
                    tab = self._skill_tabs.get(CLASS_SUFFIX.sub("", value).lower())
                    if tab is None:
                        unresolved_tab = True
                    else:
                        prop.param = str(tab)
            if unresolved_tab:
                # not a skill tab line; let "skill"/"oskill" try
                continue
            return prop
        return None

    def _match_per_level(self, text: str) -> Optional[PropertyAssignment]:
        if "based on character level" not in text.lower():
            return None

        match = PER_LEVEL_PAREN.match(text)
        if match:
            stat_text = match.group(4).lower()
            for code, expected in self._per_level:
                if expected.lower() == stat_text:
                    raw = int(float(match.group(1)) * 8)
                    return PropertyAssignment(code=code, min=raw, max=raw, display_text=text)

        match = PER_LEVEL_SIMPLE.match(text)
        if match:
            stat_text = match.group(2).lower()
            for code, expected in self._per_level:
                if expected.lower() == stat_text:
                    low, high = parse_value_str(match.group(1))
                    return PropertyAssignment(code=code, min=low, max=high, display_text=text)
        return None


ATTRIBUTE_CODES = ("str", "dex", "vit", "enr")


def combine_all_attributes(
    props: list[PropertyAssignment],
    translator: Optional[PropertyTranslator] = None,
) -> list[PropertyAssignment]:
    """Merge str/dex/vit/enr with identical ranges into one all-stats entry.

    The merged entry takes the position of the first attribute removed.
    Returns the input list unchanged when the four do not line up.
    """
    positions: dict[str, int] = {}
    for i, prop in enumerate(props):
        if prop.code in ATTRIBUTE_CODES:
            positions[prop.code] = i
    if len(positions) != len(ATTRIBUTE_CODES):
        return props

    ref = props[positions["str"]]
    for code in ATTRIBUTE_CODES[1:]:
        other = props[positions[code]]
        if other.min != ref.min or other.max != ref.max:
            return props

    merged = PropertyAssignment(code="all-stats", min=ref.min, max=ref.max)
    (translator or PropertyTranslator()).enrich(merged)

    removed = set(positions.values())
    first = min(removed)
    result: list[PropertyAssignment] = []
    for i, prop in enumerate(props):
        if i == first:
            result.append(merged)
        if i not in removed:
            result.append(prop)
    return result
