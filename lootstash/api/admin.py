"""Admin API: catalog counts, duplicate cleanup and import runs."""

from dataclasses import asdict
from pathlib import Path
from typing import Any, Optional

from fastapi import APIRouter, Depends, Header, HTTPException, Request
from sqlalchemy.orm import Session

from lootstash.api.schemas import (
    CatalogStatsResponse,
    ImportRequest,
    ImportResponse,
    RunewordIconRequest,
    StatCodeResponse,
    SyncNamesRequest,
)
from lootstash.config import settings
from lootstash.core.errors import ConnectionFailure, NotFound
from lootstash.core.logging import get_logger
from lootstash.db.database import get_db
from lootstash.db.models import (
    AffixModel,
    GemModel,
    ItemBaseModel,
    ItemTypeModel,
    RuneModel,
    RunewordBaseModel,
    RunewordModel,
    SetBonusModel,
    SetItemModel,
    StatModel,
    UniqueItemModel,
)
from lootstash.services.duplicate_service import DuplicateService
from lootstash.services.image_fetcher import ImageFetcher
from lootstash.services.image_service import ImagePipeline, lacks_image
from lootstash.services.import_service import ImportOrchestrator, RunOptions
from lootstash.services.name_sync_service import NameSyncService, read_page_names
from lootstash.services.runeword_icon_service import RunewordIconService
from lootstash.services.stat_service import StatService
from lootstash.services.storage.base import BlobStore

logger = get_logger(__name__)


def require_api_key(x_api_key: Optional[str] = Header(None)) -> None:
    """Reject the request when ADMIN_API_KEY is set and the header differs."""
    if settings.ADMIN_API_KEY and x_api_key != settings.ADMIN_API_KEY:
        raise HTTPException(status_code=401, detail="Invalid API key")


router = APIRouter(prefix="/admin", tags=["admin"], dependencies=[Depends(require_api_key)])


def get_store(request: Request) -> BlobStore:
    """Blob store created at startup."""
    store: BlobStore = request.app.state.store
    return store


def get_fetcher(request: Request) -> Optional[ImageFetcher]:
    return getattr(request.app.state, "fetcher", None)


IMAGE_TABLES = {
    "item_bases": ItemBaseModel,
    "unique_items": UniqueItemModel,
    "set_items": SetItemModel,
    "runes": RuneModel,
    "gems": GemModel,
    "runewords": RunewordModel,
}


@router.get("/stats", response_model=CatalogStatsResponse)
def catalog_stats(db: Session = Depends(get_db)) -> CatalogStatsResponse:
    """Row counts per table plus rows still lacking an image."""
    return CatalogStatsResponse(
        stats=db.query(StatModel).count(),
        item_bases=db.query(ItemBaseModel).count(),
        unique_items=db.query(UniqueItemModel).count(),
        set_items=db.query(SetItemModel).count(),
        set_bonuses=db.query(SetBonusModel).count(),
        runes=db.query(RuneModel).count(),
        gems=db.query(GemModel).count(),
        runewords=db.query(RunewordModel).count(),
        item_types=db.query(ItemTypeModel).count(),
        affixes=db.query(AffixModel).count(),
        runeword_bases=db.query(RunewordBaseModel).count(),
        missing_images={
            table: db.query(model).filter(lacks_image(model)).count()
            for table, model in IMAGE_TABLES.items()
        },
    )


@router.get("/stat-codes/{code_or_alias}", response_model=StatCodeResponse)
def resolve_stat_code(code_or_alias: str, db: Session = Depends(get_db)) -> StatCodeResponse:
    """Resolve a stat code or alias to its canonical stat."""
    service = StatService(db)
    service.load()
    try:
        stat = service.registry.resolve(code_or_alias)
    except NotFound as e:
        raise HTTPException(status_code=404, detail=str(e))
    return StatCodeResponse(
        code=stat.code,
        name=stat.name,
        description=stat.description,
        category=stat.category,
        aliases=list(stat.aliases),
        sort_order=stat.sort_order,
    )


@router.get("/duplicates")
def list_duplicates(db: Session = Depends(get_db)) -> dict[str, Any]:
    """Same-name groups per table, without changes."""
    groups = DuplicateService(db).report()
    return {"count": len(groups), "groups": [g.to_dict() for g in groups]}


@router.post("/duplicates/cleanup")
def cleanup_duplicates(dry_run: bool = True, db: Session = Depends(get_db)) -> dict[str, Any]:
    """Delete stray rune/gem bases and same-name rows. Dry run by default."""
    return DuplicateService(db).resolve(dry_run=dry_run).to_dict()


@router.post("/import", response_model=ImportResponse)
def run_import(
    request: ImportRequest,
    db: Session = Depends(get_db),
    store: BlobStore = Depends(get_store),
    fetcher: Optional[ImageFetcher] = Depends(get_fetcher),
) -> dict[str, Any]:
    """Run the full import against a catalog directory."""
    catalog_path = request.catalog_path or settings.CATALOG_PATH
    options = RunOptions(
        dry_run=request.dry_run,
        force_images=request.force_images,
        timeout_seconds=request.timeout_seconds or settings.RUN_TIMEOUT_SECONDS,
        sources=tuple(request.sources),
        with_images=request.with_images,
        with_composites=request.with_composites,
        cleanup_duplicates=request.cleanup_duplicates,
        with_runeword_bases=request.with_runeword_bases,
        workers=request.workers,
    )
    try:
        stats = ImportOrchestrator(db, store, fetcher).run(catalog_path, options)
    except ConnectionFailure as e:
        logger.error("Import aborted: %s", e)
        raise HTTPException(status_code=503, detail=str(e))
    return stats.to_dict()


@router.post("/runeword-icons")
def generate_runeword_icons(
    request: RunewordIconRequest,
    db: Session = Depends(get_db),
    store: BlobStore = Depends(get_store),
    fetcher: Optional[ImageFetcher] = Depends(get_fetcher),
) -> dict[str, Any]:
    """Build composite icons for runewords."""
    if not request.dry_run and not store.is_available():
        raise HTTPException(status_code=503, detail=f"blob store {store.name} unavailable")
    pipeline = ImagePipeline(
        store,
        fetcher=fetcher,
        icons_path=Path(settings.CATALOG_PATH) / "icons",
        dry_run=request.dry_run,
        force=request.force,
    )
    stats = RunewordIconService(db, pipeline).generate(force=request.force, dry_run=request.dry_run)
    return asdict(stats)


@router.post("/sync-names")
def sync_names(request: SyncNamesRequest, db: Session = Depends(get_db)) -> dict[str, Any]:
    """Rename unique, set and rune rows to the names used on the scraped pages."""
    pages_path = Path(request.pages_path or Path(settings.CATALOG_PATH) / "pages")
    names = read_page_names(pages_path)
    if not names:
        raise HTTPException(status_code=404, detail=f"no page names found in {pages_path}")
    return NameSyncService(db).sync(names, dry_run=request.dry_run)
