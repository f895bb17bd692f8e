"""Catalog domain models (no DB dependency)."""

from __future__ import annotations

from dataclasses import asdict, dataclass, field
from enum import Enum
from typing import Any, Optional

# Example lists in run reports are capped at this many entries.
MAX_EXAMPLES = 50

RAW_CODE = "raw"


class ItemKind(str, Enum):
    UNIQUE = "unique"
    SET = "set"
    RUNEWORD = "runeword"
    RUNE = "rune"
    GEM = "gem"
    BASE = "base"
    QUEST = "quest"


@dataclass(frozen=True)
class ItemIdentity:
    """One logical item in the canonical catalog."""

    kind: ItemKind
    canonical_id: str  # unique/set: index_id, base/rune/gem: code
    display_name: str
    normalized_key: str


@dataclass(frozen=True)
class StatCode:
    """Canonical stat with its alias strings.

    description is a display template, e.g. "+{value} To Strength".
    """

    code: str
    name: str
    description: str
    category: str
    aliases: tuple[str, ...] = ()
    is_variable: bool = True
    sort_order: int = 0


@dataclass
class PropertyAssignment:
    """A stat code (or "raw") with a numeric range.

    For raw assignments display_text holds the source text verbatim.
    """

    code: str
    min: int = 0
    max: int = 0
    param: str = ""
    display_text: str = ""
    has_range: bool = False

    @property
    def is_raw(self) -> bool:
        return self.code == RAW_CODE

    def to_dict(self) -> dict[str, Any]:
        return asdict(self)


@dataclass(frozen=True)
class ImageAsset:
    """Stored image. Equal content_hash always means equal key and URL."""

    content: bytes = field(repr=False)
    content_hash: str
    storage_key: str
    public_url: str
    content_type: str = "image/png"


@dataclass(frozen=True)
class RunewordComposite:
    """Derived icon for a runeword. Regeneration replaces it, never mutates it."""

    runeword: str
    rune_codes: tuple[str, ...]
    layout: str
    asset: Optional[ImageAsset] = None


class OutcomeStatus(str, Enum):
    SUCCESS = "success"
    SKIPPED = "skipped"
    ERROR = "error"


@dataclass(frozen=True)
class ItemOutcome:
    """Result of processing one item. Collected into ImportRunStats."""

    kind: str
    name: str
    status: OutcomeStatus
    action: str = ""  # "inserted", "updated", ...
    reason: str = ""

    @classmethod
    def success(cls, kind: str, name: str, action: str = "inserted") -> "ItemOutcome":
        return cls(kind=kind, name=name, status=OutcomeStatus.SUCCESS, action=action)

    @classmethod
    def skipped(cls, kind: str, name: str, reason: str) -> "ItemOutcome":
        return cls(kind=kind, name=name, status=OutcomeStatus.SKIPPED, reason=reason)

    @classmethod
    def error(cls, kind: str, name: str, reason: str) -> "ItemOutcome":
        return cls(kind=kind, name=name, status=OutcomeStatus.ERROR, reason=reason)


@dataclass
class KindCounts:
    imported: int = 0
    updated: int = 0
    skipped: int = 0
    errors: int = 0


@dataclass
class UploadStats:
    """Image attach counters for one pass over the catalog."""

    total_items: int = 0
    uploaded: int = 0
    would_upload: int = 0  # dry run only
    reused_cache: int = 0
    matched: dict[str, int] = field(default_factory=dict)
    not_in_html: int = 0
    missing_files: int = 0
    errors: int = 0
    missing_images: list[str] = field(default_factory=list)
    not_in_html_items: list[str] = field(default_factory=list)

    def add_match(self, kind: str) -> None:
        self.matched[kind] = self.matched.get(kind, 0) + 1

    def add_missing_image(self, text: str) -> None:
        self.missing_files += 1
        if len(self.missing_images) < MAX_EXAMPLES:
            self.missing_images.append(text)

    def add_not_in_html(self, text: str) -> None:
        self.not_in_html += 1
        if len(self.not_in_html_items) < MAX_EXAMPLES:
            self.not_in_html_items.append(text)


@dataclass
class GenerateStats:
    """Runeword composite counters."""

    total_runewords: int = 0
    generated: int = 0
    skipped: int = 0
    missing_runes: int = 0
    failed: int = 0
    errors: list[str] = field(default_factory=list)


@dataclass
class ImportRunStats:
    """Aggregate result of one import run. Never persisted."""

    kinds: dict[str, KindCounts] = field(default_factory=dict)
    outcomes: list[ItemOutcome] = field(default_factory=list)
    unresolved_properties: list[str] = field(default_factory=list)
    missing_images: list[str] = field(default_factory=list)
    duplicate_groups: list[dict[str, Any]] = field(default_factory=list)
    images: UploadStats = field(default_factory=UploadStats)
    composites: GenerateStats = field(default_factory=GenerateStats)
    stats_seeded: int = 0
    runeword_bases: int = 0
    timed_out: bool = False
    error: Optional[str] = None

    def counts(self, kind: str) -> KindCounts:
        if kind not in self.kinds:
            self.kinds[kind] = KindCounts()
        return self.kinds[kind]

    def record(self, outcome: ItemOutcome) -> ItemOutcome:
        counts = self.counts(outcome.kind)
        if outcome.status == OutcomeStatus.SUCCESS:
            if outcome.action == "updated":
                counts.updated += 1
            else:
                counts.imported += 1
        elif outcome.status == OutcomeStatus.SKIPPED:
            counts.skipped += 1
        else:
            counts.errors += 1
        self.outcomes.append(outcome)
        return outcome

    def add_missing_image(self, text: str) -> None:
        if len(self.missing_images) < MAX_EXAMPLES:
            self.missing_images.append(text)

    @property
    def errors(self) -> list[ItemOutcome]:
        return [o for o in self.outcomes if o.status == OutcomeStatus.ERROR]

    def to_dict(self) -> dict[str, Any]:
        return {
            "kinds": {k: asdict(v) for k, v in sorted(self.kinds.items())},
            "unresolved_properties": list(self.unresolved_properties),
            "missing_images": list(self.missing_images),
            "duplicate_groups": list(self.duplicate_groups),
            "images": asdict(self.images),
            "composites": asdict(self.composites),
            "stats_seeded": self.stats_seeded,
            "runeword_bases": self.runeword_bases,
            "errors": [
                {"kind": o.kind, "name": o.name, "reason": o.reason}
                for o in self.errors
            ],
            "timed_out": self.timed_out,
            "error": self.error,
        }
