"""ImagePipeline dedup and ImageService attachment."""

from pathlib import Path

import pytest
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker

from lootstash.core.catalog.models import UploadStats
from lootstash.core.deadline import Deadline
from lootstash.core.errors import UploadFailure
from lootstash.core.images.lookup import content_hash
from lootstash.db.models import Base, ItemBaseModel, RuneModel, UniqueItemModel
from lootstash.services.image_service import ImagePipeline, ImageService, load_mappings
from lootstash.services.storage.memory import MemoryBlobStore

PAGES_PATH = Path(__file__).parent.parent / "fixtures" / "catalog" / "pages"

PNG_A = b"\x89PNG-a"
PNG_B = b"\x89PNG-b"


class FailingStore(MemoryBlobStore):
    def put(self, key: str, data: bytes, content_type: str = "image/png") -> str:
        raise UploadFailure(key, "refused")


@pytest.fixture()
def setup(tmp_path: Path):
    """In-memory DB + MemoryBlobStore + icons directory"""
    engine = create_engine("sqlite:///:memory:")
    Base.metadata.create_all(engine)
    db = sessionmaker(bind=engine)()
    icons = tmp_path / "icons"
    icons.mkdir()
    store = MemoryBlobStore()
    return db, store, icons


class TestImagePipeline:
    def test_same_bytes_uploaded_once(self, setup) -> None:
        _, store, icons = setup
        pipeline = ImagePipeline(store, icons_path=icons)

        first = pipeline.process(PNG_A, "d2/unique", "a.png")
        second = pipeline.process(PNG_A, "d2/set", "b.png")

        assert store.writes == 1
        assert first.uploaded is True
        assert second.uploaded is False
        assert second.asset.public_url == first.asset.public_url
        assert first.asset.storage_key == f"d2/unique/{content_hash(PNG_A)}.png"

    def test_existing_key_reused_across_pipelines(self, setup) -> None:
        _, store, icons = setup
        ImagePipeline(store).process(PNG_A, "d2/unique", "a.png")
        result = ImagePipeline(store).process(PNG_A, "d2/unique", "a.png")
        assert result.uploaded is False
        assert store.writes == 1

    def test_force_rewrites(self, setup) -> None:
        _, store, _ = setup
        ImagePipeline(store).process(PNG_A, "d2/unique")
        ImagePipeline(store, force=True).process(PNG_A, "d2/unique")
        assert store.writes == 2

    def test_dry_run_writes_nothing(self, setup) -> None:
        _, store, _ = setup
        result = ImagePipeline(store, dry_run=True).process(PNG_A, "d2/unique")
        assert store.writes == 0
        assert result.asset.public_url.endswith(f"{content_hash(PNG_A)}.png")

    def test_jpeg_keeps_extension(self, setup) -> None:
        _, store, _ = setup
        result = ImagePipeline(store).process(PNG_B, "d2/base", "cap.JPG")
        assert result.asset.storage_key.endswith(".jpg")
        assert result.asset.content_type == "image/jpeg"

    def test_load_bytes_local_first(self, setup) -> None:
        _, store, icons = setup
        (icons / "cap (1).png").write_bytes(PNG_B)
        pipeline = ImagePipeline(store, icons_path=icons)
        assert pipeline.load_bytes("/images/cap.png") == PNG_B
        assert pipeline.load_bytes("/images/none.png") is None
        assert pipeline.acquire("/images/none.png", "d2/base") is None

    def test_upload_failure_propagates(self, setup) -> None:
        _, _, icons = setup
        with pytest.raises(UploadFailure):
            ImagePipeline(FailingStore()).process(PNG_A, "d2/unique")


class TestLoadMappings:
    def test_pages_keyed_by_match_name(self) -> None:
        mappings = load_mappings(PAGES_PATH)
        assert mappings["unique"]["stonecrusher"].endswith("stonecrusher.png")
        assert set(mappings) == {"unique", "set", "base", "misc"}

    def test_missing_directory_gives_empty_maps(self, tmp_path: Path) -> None:
        assert load_mappings(tmp_path / "absent") == {
            "unique": {},
            "set": {},
            "base": {},
            "misc": {},
        }


class TestAttachAll:
    def _seed(self, db) -> None:
        db.add_all(
            [
                UniqueItemModel(index_id=1, name="Stone Crusher"),
                UniqueItemModel(index_id=2, name="Crushed Stone"),
                UniqueItemModel(index_id=3, name="Windforce"),
                RuneModel(code="r01", name="El Rune"),
            ]
        )
        db.commit()

    def test_shared_bytes_share_one_url(self, setup) -> None:
        db, store, icons = setup
        self._seed(db)
        (icons / "stone.png").write_bytes(PNG_A)
        (icons / "crushed.png").write_bytes(PNG_A)
        (icons / "el.png").write_bytes(PNG_B)
        mappings = {
            "unique": {"stonecrusher": "/u/stone.png", "crushedstone": "/u/crushed.png"},
            "misc": {"el": "/m/el.png"},
        }

        stats = ImageService(db, ImagePipeline(store, icons_path=icons)).attach_all(mappings)

        urls = {u.name: u.image_url for u in db.query(UniqueItemModel).all()}
        assert urls["Stone Crusher"] == urls["Crushed Stone"]
        assert urls["Windforce"] is None
        assert db.query(RuneModel).one().image_url.startswith("memory://blobs/d2/rune/")
        assert store.writes == 2
        assert stats.uploaded == 2
        assert stats.reused_cache == 1
        assert stats.not_in_html == 1
        assert stats.matched == {"unique": 2, "rune": 1}

    def test_missing_file_recorded(self, setup) -> None:
        db, store, icons = setup
        self._seed(db)
        stats = ImageService(db, ImagePipeline(store, icons_path=icons)).attach_all(
            {"unique": {"stonecrusher": "/u/stone.png"}}
        )
        assert stats.missing_files == 1
        assert stats.missing_images == ["stone.png (for Stone Crusher)"]

    def test_threaded_run_matches_serial(self, setup) -> None:
        db, store, icons = setup
        self._seed(db)
        (icons / "stone.png").write_bytes(PNG_A)
        (icons / "crushed.png").write_bytes(PNG_A)
        mappings = {"unique": {"stonecrusher": "/u/stone.png", "crushedstone": "/u/crushed.png"}}

        stats = ImageService(db, ImagePipeline(store, icons_path=icons)).attach_all(
            mappings, workers=4
        )
        assert store.writes == 1
        assert stats.uploaded + stats.reused_cache == 2

    def test_dry_run_leaves_rows(self, setup) -> None:
        db, store, icons = setup
        self._seed(db)
        (icons / "stone.png").write_bytes(PNG_A)
        ImageService(db, ImagePipeline(store, icons_path=icons, dry_run=True)).attach_all(
            {"unique": {"stonecrusher": "/u/stone.png"}}
        )
        assert store.writes == 0
        assert all(u.image_url is None for u in db.query(UniqueItemModel).all())

    def test_empty_image_url_counts_as_missing(self, setup) -> None:
        db, store, icons = setup
        db.add(UniqueItemModel(index_id=1, name="Stone Crusher", image_url=""))
        db.commit()
        (icons / "stone.png").write_bytes(PNG_A)

        stats = ImageService(db, ImagePipeline(store, icons_path=icons)).attach_all(
            {"unique": {"stonecrusher": "/u/stone.png"}}
        )

        assert stats.total_items == 1
        assert store.writes == 1
        assert db.query(UniqueItemModel).one().image_url.startswith("memory://blobs/d2/unique/")

    def test_dry_run_counts_would_upload(self, setup) -> None:
        db, store, icons = setup
        self._seed(db)
        (icons / "stone.png").write_bytes(PNG_A)
        (icons / "crushed.png").write_bytes(PNG_A)
        store.put(f"d2/rune/{content_hash(PNG_B)}.png", PNG_B)
        (icons / "el.png").write_bytes(PNG_B)
        mappings = {
            "unique": {"stonecrusher": "/u/stone.png", "crushedstone": "/u/crushed.png"},
            "misc": {"el": "/m/el.png"},
        }

        stats = ImageService(
            db, ImagePipeline(store, icons_path=icons, dry_run=True)
        ).attach_all(mappings)

        assert store.writes == 1
        assert stats.uploaded == 0
        assert stats.would_upload == 1
        assert stats.reused_cache == 2

    def test_upload_errors_counted(self, setup) -> None:
        db, _, icons = setup
        self._seed(db)
        (icons / "stone.png").write_bytes(PNG_A)
        stats = UploadStats()
        ImageService(db, ImagePipeline(FailingStore(), icons_path=icons)).attach_all(
            {"unique": {"stonecrusher": "/u/stone.png"}}, stats=stats
        )
        assert stats.errors == 1


class TestIconVariants:
    def test_first_variant_becomes_image(self, setup) -> None:
        db, store, icons = setup
        db.add(ItemBaseModel(code="cm1", name="Small Charm", category="misc"))
        db.commit()
        for i, name in enumerate(("charm_small.png", "charm_small2.png", "charm_small3.png")):
            (icons / name).write_bytes(PNG_A + bytes([i]))

        uploaded = ImageService(db, ImagePipeline(store, icons_path=icons)).upload_icon_variants()

        base = db.query(ItemBaseModel).one()
        assert len(uploaded["cm1"]) == 3
        assert base.icon_variants == uploaded["cm1"]
        assert base.image_url == uploaded["cm1"][0]
        assert "d2/base-variants/cm1/" in base.image_url

    def test_expired_deadline_stops_uploads(self, setup) -> None:
        db, store, icons = setup
        for i, name in enumerate(("charm_small.png", "charm_small2.png", "jewel02_graphic.png")):
            (icons / name).write_bytes(PNG_A + bytes([i]))

        uploaded = ImageService(db, ImagePipeline(store, icons_path=icons)).upload_icon_variants(
            deadline=Deadline(1e-9)
        )

        assert uploaded == {}
        assert store.writes == 0
