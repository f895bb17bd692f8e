"""API request/response schemas."""

from typing import Any, Optional

from pydantic import BaseModel, Field


# === Request Schemas ===


class ImportRequest(BaseModel):
    """Import run options"""

    catalog_path: Optional[str] = Field(None, description="Defaults to CATALOG_PATH")
    dry_run: bool = False
    force_images: bool = False
    timeout_seconds: Optional[float] = Field(None, gt=0, description="Defaults to RUN_TIMEOUT_SECONDS")
    sources: list[str] = Field(default_factory=lambda: ["tsv", "html"])
    with_images: bool = True
    with_composites: bool = True
    cleanup_duplicates: bool = True
    with_runeword_bases: bool = True
    workers: int = Field(1, ge=1, le=16)


class RunewordIconRequest(BaseModel):
    """Runeword composite generation options"""

    force: bool = False
    dry_run: bool = False


class SyncNamesRequest(BaseModel):
    """Name sync options"""

    pages_path: Optional[str] = Field(None, description="Defaults to CATALOG_PATH/pages")
    dry_run: bool = False


# === Response Schemas ===


class CatalogStatsResponse(BaseModel):
    """Row counts per catalog table"""

    stats: int
    item_bases: int
    unique_items: int
    set_items: int
    set_bonuses: int
    runes: int
    gems: int
    runewords: int
    item_types: int = 0
    affixes: int = 0
    runeword_bases: int = 0
    missing_images: dict[str, int] = {}


class StatCodeResponse(BaseModel):
    """Canonical stat resolved from a code or alias"""

    code: str
    name: str
    description: str
    category: str
    aliases: list[str] = []
    sort_order: int


class ImportResponse(BaseModel):
    """Import run summary"""

    kinds: dict[str, dict[str, int]]
    unresolved_properties: list[str] = []
    missing_images: list[str] = []
    duplicate_groups: list[dict[str, Any]] = []
    images: dict[str, Any] = {}
    composites: dict[str, Any] = {}
    stats_seeded: int = 0
    runeword_bases: int = 0
    errors: list[dict[str, Any]] = []
    timed_out: bool = False
    error: Optional[str] = None
