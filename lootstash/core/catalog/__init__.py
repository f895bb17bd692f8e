"""Catalog core: item identities, name matching, duplicate detection, type hierarchy."""

from .duplicates import DuplicateGroup, find_cross_domain, find_name_duplicates
from .item_types import base_matches, build_type_hierarchy, lineage
from .models import (
    GenerateStats,
    ImageAsset,
    ImportRunStats,
    ItemIdentity,
    ItemKind,
    ItemOutcome,
    KindCounts,
    OutcomeStatus,
    PropertyAssignment,
    RunewordComposite,
    StatCode,
    UploadStats,
)
from .names import (
    NameMatcher,
    identity,
    normalize_display_name,
    normalize_for_match,
    normalize_name,
)

__all__ = [
    "DuplicateGroup",
    "find_cross_domain",
    "find_name_duplicates",
    "base_matches",
    "build_type_hierarchy",
    "lineage",
    "GenerateStats",
    "ImageAsset",
    "ImportRunStats",
    "ItemIdentity",
    "ItemKind",
    "ItemOutcome",
    "KindCounts",
    "OutcomeStatus",
    "PropertyAssignment",
    "RunewordComposite",
    "StatCode",
    "UploadStats",
    "NameMatcher",
    "identity",
    "normalize_display_name",
    "normalize_for_match",
    "normalize_name",
]
