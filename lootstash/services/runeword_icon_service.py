"""Composite runeword icons built from rune icons in socket order."""

from typing import Optional

from PIL import Image, UnidentifiedImageError
from sqlalchemy.orm import Session

from lootstash.core.catalog.models import GenerateStats, RunewordComposite
from lootstash.core.deadline import Deadline
from lootstash.core.errors import MissingRuneIcon, UploadFailure
from lootstash.core.images.composite import (
    choose_layout,
    encode_png,
    load_image,
    render_composite,
)
from lootstash.core.images.lookup import rune_icon_filename
from lootstash.core.logging import get_logger
from lootstash.db.models import RuneModel, RunewordModel
from lootstash.services.image_service import ImagePipeline, lacks_image

logger = get_logger(__name__)

RUNEWORD_CATEGORY = "d2/runeword"


class RunewordIconService:
    """Renders and uploads one composite per runeword."""

    def __init__(self, db: Session, pipeline: ImagePipeline):
        self._db = db
        self.pipeline = pipeline
        self._runes: dict[str, RuneModel] = {}

    def _load_runes(self) -> None:
        self._runes = {rune.code: rune for rune in self._db.query(RuneModel).all()}

    def _rune_image(self, rune: RuneModel) -> Optional[Image.Image]:
        data = self.pipeline.load_bytes(rune_icon_filename(rune.name), local_only=True)
        if data is None and rune.image_url and self.pipeline.fetcher is not None:
            data = self.pipeline.fetcher.fetch(rune.image_url)
        if data is None:
            return None
        try:
            return load_image(data)
        except (UnidentifiedImageError, OSError) as e:
            logger.warning("Unreadable icon for %s: %s", rune.name, e)
            return None

    def load_rune_images(self, runeword: RunewordModel) -> list[Image.Image]:
        """Rune icons in socket order.

        Raises:
            MissingRuneIcon: If any rune is unknown or has no icon.
        """
        images: list[Image.Image] = []
        missing: list[str] = []
        for code in runeword.runes or []:
            rune = self._runes.get(code)
            if rune is None:
                missing.append(code)
                continue
            image = self._rune_image(rune)
            if image is None:
                missing.append(f"{rune.name} ({rune_icon_filename(rune.name)})")
                continue
            images.append(image)
        if missing or not images:
            raise MissingRuneIcon(runeword.display_name, missing)
        return images

    def build(self, runeword: RunewordModel) -> RunewordComposite:
        """Render and store the composite for one runeword."""
        images = self.load_rune_images(runeword)
        data = encode_png(render_composite(images))
        result = self.pipeline.process(data, RUNEWORD_CATEGORY, "composite.png")
        return RunewordComposite(
            runeword=runeword.display_name,
            rune_codes=tuple(runeword.runes),
            layout=choose_layout(len(images)),
            asset=result.asset,
        )

    def generate(
        self,
        force: bool = False,
        dry_run: bool = False,
        deadline: Optional[Deadline] = None,
        stats: Optional[GenerateStats] = None,
    ) -> GenerateStats:
        """Generate composites for runewords without an image (all with force).

        Dry run only checks that every rune icon is present.
        """
        stats = stats or GenerateStats()
        self._load_runes()
        query = self._db.query(RunewordModel)
        if not force:
            query = query.filter(lacks_image(RunewordModel))
        runewords = query.order_by(RunewordModel.display_name).all()
        stats.total_runewords = len(runewords)
        logger.info("Generating composites for %d runewords", len(runewords))

        for runeword in runewords:
            if deadline is not None and deadline.expired():
                break
            if not runeword.runes:
                stats.skipped += 1
                continue
            try:
                if dry_run:
                    self.load_rune_images(runeword)
                    stats.generated += 1
                    continue
                composite = self.build(runeword)
            except MissingRuneIcon as e:
                stats.missing_runes += 1
                stats.errors.append(str(e))
                logger.warning("Skipping %s", e)
                continue
            except UploadFailure as e:
                stats.failed += 1
                stats.errors.append(f"{runeword.display_name}: {e}")
                logger.warning("Composite for %s failed: %s", runeword.display_name, e)
                continue
            runeword.image_url = composite.asset.public_url
            self._db.commit()
            stats.generated += 1
            logger.debug("Composite %s (%s)", runeword.display_name, composite.layout)

        logger.info(
            "Composites: %d generated, %d missing runes, %d failed",
            stats.generated,
            stats.missing_runes,
            stats.failed,
        )
        return stats
