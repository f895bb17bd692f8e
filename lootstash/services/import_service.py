"""Import run orchestration: setup, phases, deadline and the run summary."""

from dataclasses import dataclass
from pathlib import Path
from typing import Optional

from sqlalchemy import text
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from lootstash.config import settings
from lootstash.core.catalog.models import ImportRunStats
from lootstash.core.deadline import Deadline
from lootstash.core.errors import ConnectionFailure, RunTimeout
from lootstash.core.logging import get_logger
from lootstash.core.stats.formats import PropertyTranslator
from lootstash.core.stats.resolver import PropertyResolver
from lootstash.services.duplicate_service import DuplicateService
from lootstash.services.html_import_service import HtmlImportService
from lootstash.services.image_fetcher import ImageFetcher
from lootstash.services.image_service import ImagePipeline, ImageService, load_mappings
from lootstash.services.runeword_base_service import RunewordBaseService
from lootstash.services.runeword_icon_service import RunewordIconService
from lootstash.services.stat_service import StatService
from lootstash.services.storage.base import BlobStore
from lootstash.services.tsv_import_service import TsvImportService

logger = get_logger(__name__)

SOURCES = ("tsv", "html")


@dataclass
class RunOptions:
    dry_run: bool = False
    force_images: bool = False
    timeout_seconds: Optional[float] = None
    sources: tuple[str, ...] = SOURCES
    with_images: bool = True
    with_composites: bool = True
    cleanup_duplicates: bool = True
    with_runeword_bases: bool = True
    workers: int = 1


def default_fetcher() -> ImageFetcher:
    return ImageFetcher(
        settings.ICON_BASE_URL,
        requests_per_second=settings.ICON_REQUESTS_PER_SECOND,
        timeout=settings.ICON_TIMEOUT_SECONDS,
        cookies=settings.ICON_COOKIES,
    )


class ImportOrchestrator:
    """Runs every import phase against one catalog directory.

    Layout of catalog_path: game data *.txt files, pages/ with the scraped
    HTML, icons/ with local image files.
    """

    def __init__(
        self,
        db: Session,
        store: BlobStore,
        fetcher: Optional[ImageFetcher] = None,
    ):
        self._db = db
        self.store = store
        self.fetcher = fetcher

    def check_connections(self) -> None:
        """Raises ConnectionFailure if the DB or blob store is unreachable."""
        try:
            self._db.execute(text("SELECT 1"))
        except SQLAlchemyError as e:
            raise ConnectionFailure(f"database unreachable: {e}") from e
        if not self.store.is_available():
            raise ConnectionFailure(f"blob store {self.store.name} unavailable")

    def run(self, catalog_path: str | Path, options: Optional[RunOptions] = None) -> ImportRunStats:
        """Run the import. Only ConnectionFailure escapes; a timeout returns partial stats."""
        options = options or RunOptions()
        catalog_path = Path(catalog_path)
        self.check_connections()

        stats = ImportRunStats()
        deadline = Deadline(options.timeout_seconds)
        logger.info(
            "Import run on %s (dry_run=%s, sources=%s)",
            catalog_path,
            options.dry_run,
            ",".join(options.sources),
        )

        stat_service = StatService(self._db)
        translator = PropertyTranslator()
        pipeline = ImagePipeline(
            self.store,
            fetcher=self.fetcher,
            icons_path=catalog_path / "icons",
            dry_run=options.dry_run,
            force=options.force_images,
        )
        resolver: Optional[PropertyResolver] = None
        try:
            stat_service.load()
            if not options.dry_run:
                stats.stats_seeded = stat_service.seed_from_builtins()
                stats.stats_seeded += stat_service.seed_from_classes()
            resolver = PropertyResolver(stat_service.registry)

            if "tsv" in options.sources:
                tsv_import = TsvImportService(
                    self._db, stats, translator, dry_run=options.dry_run, deadline=deadline
                )
                if tsv_import.has_sources(catalog_path):
                    tsv_import.import_all(catalog_path)
                else:
                    logger.info("No game data files in %s", catalog_path)

            pages = catalog_path / "pages"
            if "html" in options.sources:
                deadline.check("page import")
                html_import = HtmlImportService(
                    self._db,
                    stats,
                    resolver,
                    stat_service,
                    pipeline=pipeline,
                    translator=translator,
                    dry_run=options.dry_run,
                    deadline=deadline,
                )
                if html_import.has_sources(pages):
                    html_import.import_all(pages)
                else:
                    logger.info("No pages directory in %s", catalog_path)

            if options.with_images:
                deadline.check("image attach")
                images = ImageService(self._db, pipeline)
                images.attach_all(
                    load_mappings(pages),
                    workers=options.workers,
                    deadline=deadline,
                    stats=stats.images,
                )
                deadline.check("icon variants")
                images.upload_icon_variants(stats.images, deadline=deadline)

            if options.with_composites:
                deadline.check("runeword composites")
                RunewordIconService(self._db, pipeline).generate(
                    force=options.force_images,
                    dry_run=options.dry_run,
                    deadline=deadline,
                    stats=stats.composites,
                )

            if options.cleanup_duplicates:
                deadline.check("duplicate cleanup")
                result = DuplicateService(self._db).resolve(dry_run=options.dry_run)
                stats.duplicate_groups = [g.to_dict() for g in result.groups]

            if options.with_runeword_bases:
                deadline.check("runeword bases")
                try:
                    stats.runeword_bases = RunewordBaseService(self._db).rebuild(
                        dry_run=options.dry_run
                    )
                except SQLAlchemyError as e:
                    logger.error("Runeword base rebuild failed: %s", e)
                    stats.error = f"runeword bases: {e}"
            deadline.check("finish")
        except RunTimeout as e:
            logger.warning("Import run stopped: %s", e)
            stats.timed_out = True
            stats.error = str(e)

        if resolver is not None:
            stats.unresolved_properties = resolver.unresolved
        for missing in stats.images.missing_images:
            stats.add_missing_image(missing)
        logger.info("Import run finished: %s", {k: vars(v) for k, v in stats.kinds.items()})
        return stats
