"""Image acquisition, content-addressed upload and attachment to catalog rows.

ImagePipeline turns bytes into an ImageAsset with at most one upload per
distinct content. ImageService walks the catalog and attaches URLs.
"""

import threading
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass
from pathlib import Path
from typing import Optional

from sqlalchemy import or_
from sqlalchemy.orm import Session

from lootstash.core.catalog.models import ImageAsset, UploadStats
from lootstash.core.catalog.names import normalize_for_match
from lootstash.core.deadline import Deadline
from lootstash.core.errors import UploadFailure
from lootstash.core.images.lookup import (
    ICON_VARIANT_FILES,
    content_hash,
    content_type_for,
    extension_for,
    fallback_icon,
    find_image_file,
    find_in_mapping,
    storage_key,
)
from lootstash.core.logging import get_logger
from lootstash.core.sources.pages import parse_image_mappings, read_page
from lootstash.db.models import (
    GemModel,
    ItemBaseModel,
    RuneModel,
    SetItemModel,
    UniqueItemModel,
)
from lootstash.services.image_fetcher import ImageFetcher
from lootstash.services.storage.base import BlobStore

logger = get_logger(__name__)

# kind -> (model, storage category, mapping the kind is looked up in)
ATTACH_KINDS = {
    "unique": (UniqueItemModel, "d2/unique", "unique"),
    "set": (SetItemModel, "d2/set", "set"),
    "base": (ItemBaseModel, "d2/base", "base"),
    "rune": (RuneModel, "d2/rune", "misc"),
    "gem": (GemModel, "d2/gem", "misc"),
}

MAPPING_PAGES = {
    "unique": "uniques.html",
    "set": "sets.html",
    "base": "base.html",
    "misc": "misc.html",
}


def lacks_image(model):
    """Filter for rows whose image_url is NULL or empty."""
    return or_(model.image_url.is_(None), model.image_url == "")


@dataclass(frozen=True)
class PipelineResult:
    asset: ImageAsset
    uploaded: bool  # False when the content was already stored or cached
    would_upload: bool = False  # dry run: a real run would have written it


class ImagePipeline:
    """
    Local-first image resolution with a lock-protected dedup cache.

    Uploads are single-flight per content hash: concurrent callers with the
    same bytes wait for the first upload and reuse its URL.
    """

    def __init__(
        self,
        store: BlobStore,
        fetcher: Optional[ImageFetcher] = None,
        icons_path: str | Path | None = None,
        dry_run: bool = False,
        force: bool = False,
    ) -> None:
        self.store = store
        self.fetcher = fetcher
        self.icons_path = Path(icons_path) if icons_path else None
        self.dry_run = dry_run
        self.force = force
        self._lock = threading.Lock()
        self._cache: dict[str, ImageAsset] = {}
        self._inflight: dict[str, threading.Lock] = {}

    def load_bytes(self, image_path: str, local_only: bool = False) -> Optional[bytes]:
        """Bytes for an HTML image path: icons directory first, then the remote site."""
        filename = Path(image_path).name
        if self.icons_path is not None and filename:
            found = find_image_file(self.icons_path, filename)
            if found is not None:
                return found.read_bytes()
        if local_only or self.fetcher is None:
            return None
        return self.fetcher.fetch(image_path)

    def cached(self, digest: str) -> Optional[ImageAsset]:
        with self._lock:
            return self._cache.get(digest)

    def _flight_lock(self, digest: str) -> threading.Lock:
        with self._lock:
            lock = self._inflight.get(digest)
            if lock is None:
                lock = self._inflight[digest] = threading.Lock()
            return lock

    def process(self, data: bytes, category: str, filename: str = "image.png") -> PipelineResult:
        """Store data under "{category}/{sha1}{ext}" unless already known.

        Raises:
            UploadFailure: If the blob store write fails.
        """
        digest = content_hash(data)
        hit = self.cached(digest)
        if hit is not None:
            return PipelineResult(hit, uploaded=False)

        with self._flight_lock(digest):
            hit = self.cached(digest)
            if hit is not None:
                return PipelineResult(hit, uploaded=False)

            key = storage_key(category, digest, extension_for(filename))
            content_type = content_type_for(filename)
            uploaded = False
            would_upload = False
            if self.dry_run:
                url = self.store.public_url(key)
                would_upload = self.force or not self.store.exists(key)
            elif not self.force and self.store.exists(key):
                url = self.store.public_url(key)
            else:
                url = self.store.put(key, data, content_type)
                uploaded = True
                logger.debug("Uploaded %s", key)

            asset = ImageAsset(
                content=data,
                content_hash=digest,
                storage_key=key,
                public_url=url,
                content_type=content_type,
            )
            with self._lock:
                self._cache[digest] = asset
            return PipelineResult(asset, uploaded=uploaded, would_upload=would_upload)

    def acquire(self, image_path: str, category: str) -> Optional[PipelineResult]:
        """load_bytes + process. None when no bytes can be found."""
        data = self.load_bytes(image_path)
        if data is None:
            return None
        return self.process(data, category, Path(image_path).name or "image.png")


def load_mappings(pages_path: str | Path) -> dict[str, dict[str, str]]:
    """normalize_for_match(name) -> image path, per scraped page."""
    pages = Path(pages_path)
    mappings: dict[str, dict[str, str]] = {}
    for kind, page in MAPPING_PAGES.items():
        path = pages / page
        mapping: dict[str, str] = {}
        if path.is_file():
            for item in parse_image_mappings(read_page(path)):
                mapping[normalize_for_match(item.name)] = item.image_path
            logger.info("Parsed %d image mappings from %s", len(mapping), page)
        else:
            logger.warning("Could not read %s", path)
        mappings[kind] = mapping
    return mappings


@dataclass
class _AttachJob:
    kind: str
    row_id: int
    name: str
    image_path: str
    category: str


class ImageService:
    """Attaches images to unique, set, base, rune and gem rows."""

    def __init__(self, db: Session, pipeline: ImagePipeline):
        self._db = db
        self.pipeline = pipeline

    def _rows(self, model, force: bool):
        query = self._db.query(model)
        if not force:
            query = query.filter(lacks_image(model))
        return query.order_by(model.id).all()

    def attach_all(
        self,
        mappings: dict[str, dict[str, str]],
        workers: int = 1,
        deadline: Optional[Deadline] = None,
        stats: Optional[UploadStats] = None,
    ) -> UploadStats:
        """Find, upload and attach an image for every row that lacks one.

        With workers > 1 downloads and uploads fan out over a thread pool;
        DB writes stay on the calling thread.
        """
        stats = stats or UploadStats()
        force = self.pipeline.force
        jobs: list[_AttachJob] = []
        for kind, (model, category, mapping_kind) in ATTACH_KINDS.items():
            rows = self._rows(model, force)
            stats.total_items += len(rows)
            mapping = mappings.get(mapping_kind, {})
            for row in rows:
                image_path = find_in_mapping(row.name, mapping)
                if image_path is None:
                    image_path = fallback_icon(getattr(row, "code", ""), row.name)
                if image_path is None:
                    stats.add_not_in_html(f"{row.name} ({kind})")
                    continue
                jobs.append(_AttachJob(kind, row.id, row.name, image_path, category))

        def run(job: _AttachJob):
            if deadline is not None and deadline.expired():
                return None, "deadline"
            try:
                return self.pipeline.acquire(job.image_path, job.category), None
            except UploadFailure as e:
                return None, str(e)

        if workers > 1:
            with ThreadPoolExecutor(max_workers=workers) as pool:
                results = list(pool.map(run, jobs))
        else:
            results = [run(job) for job in jobs]

        for job, (result, error) in zip(jobs, results):
            if error == "deadline":
                logger.warning("Deadline passed; image attach stopped at %s", job.name)
                break
            if error is not None:
                logger.warning("Image for %s (%s) failed: %s", job.name, job.kind, error)
                stats.errors += 1
                continue
            if result is None:
                stats.add_missing_image(f"{Path(job.image_path).name} (for {job.name})")
                continue
            if not self.pipeline.dry_run:
                model = ATTACH_KINDS[job.kind][0]
                row = self._db.get(model, job.row_id)
                row.image_url = result.asset.public_url
            if result.uploaded:
                stats.uploaded += 1
            elif result.would_upload:
                stats.would_upload += 1
            else:
                stats.reused_cache += 1
            stats.add_match(job.kind)

        if not self.pipeline.dry_run:
            self._db.commit()
        logger.info(
            "Images: %d uploaded, %d reused, %d not in pages, %d files missing, %d errors",
            stats.uploaded,
            stats.reused_cache,
            stats.not_in_html,
            stats.missing_files,
            stats.errors,
        )
        return stats

    def upload_icon_variants(
        self,
        stats: Optional[UploadStats] = None,
        deadline: Optional[Deadline] = None,
    ) -> dict[str, list[str]]:
        """Upload charm and jewel variants; the first becomes the base's image_url.

        Stops before the next upload once the deadline has passed.
        """
        stats = stats or UploadStats()
        uploaded: dict[str, list[str]] = {}
        expired = False
        for code, files in ICON_VARIANT_FILES.items():
            urls = []
            for filename in files:
                if deadline is not None and deadline.expired():
                    expired = True
                    break
                data = self.pipeline.load_bytes(filename, local_only=True)
                if data is None:
                    logger.warning("Variant file %s not found for %s", filename, code)
                    continue
                try:
                    result = self.pipeline.process(data, f"d2/base-variants/{code}", filename)
                except UploadFailure as e:
                    logger.warning("Variant %s failed: %s", filename, e)
                    stats.errors += 1
                    continue
                urls.append(result.asset.public_url)
            if expired:
                logger.warning("Deadline passed; icon variants stopped at %s", code)
                break
            if not urls:
                continue
            uploaded[code] = urls
            if self.pipeline.dry_run:
                continue
            base = self._db.query(ItemBaseModel).filter(ItemBaseModel.code == code).first()
            if base is None:
                continue
            base.icon_variants = urls
            base.image_url = urls[0]
        if not self.pipeline.dry_run:
            self._db.commit()
        logger.info("Icon variants uploaded for %d codes", len(uploaded))
        return uploaded
