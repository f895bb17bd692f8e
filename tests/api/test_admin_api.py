"""Admin API integration tests.

TestClient + in-memory SQLite + MemoryBlobStore.
"""

from pathlib import Path

from fastapi.testclient import TestClient

from lootstash.config import settings
from lootstash.db.models import RuneModel, RunewordModel, UniqueItemModel
from lootstash.main import app
from lootstash.services.stat_service import StatService
from lootstash.services.storage.memory import MemoryBlobStore

CATALOG_PATH = Path(__file__).parent.parent / "fixtures" / "catalog"


class OfflineStore(MemoryBlobStore):
    def is_available(self) -> bool:
        return False


# ── Auth ──────────────────────────────────────────────────────


class TestApiKey:
    def test_open_without_configured_key(self, client: TestClient) -> None:
        assert client.get("/admin/stats").status_code == 200

    def test_wrong_key_rejected(self, client: TestClient, monkeypatch) -> None:
        monkeypatch.setattr(settings, "ADMIN_API_KEY", "secret")
        assert client.get("/admin/stats").status_code == 401
        assert client.get("/admin/stats", headers={"X-API-Key": "nope"}).status_code == 401
        assert client.get("/admin/stats", headers={"X-API-Key": "secret"}).status_code == 200


# ── Read endpoints ────────────────────────────────────────────


class TestStats:
    def test_counts_and_missing_images(self, client: TestClient, db_session) -> None:
        db_session.add(UniqueItemModel(index_id=1, name="Stone Crusher"))
        db_session.add(UniqueItemModel(index_id=2, name="Shako", image_url="memory://x.png"))
        db_session.add(UniqueItemModel(index_id=3, name="Windforce", image_url=""))
        db_session.commit()

        data = client.get("/admin/stats").json()

        assert data["unique_items"] == 3
        assert data["missing_images"]["unique_items"] == 2
        assert data["runewords"] == 0
        assert (data["item_types"], data["affixes"], data["runeword_bases"]) == (0, 0, 0)


class TestStatCodes:
    def test_alias_resolves(self, client: TestClient, db_session) -> None:
        StatService(db_session).seed_from_builtins()

        response = client.get("/admin/stat-codes/mag%25")

        assert response.status_code == 200
        data = response.json()
        assert data["code"] == "mf"
        assert "mag%" in data["aliases"]

    def test_unknown_code_404(self, client: TestClient) -> None:
        assert client.get("/admin/stat-codes/nope").status_code == 404


class TestDuplicates:
    def test_list_and_cleanup(self, client: TestClient, db_session) -> None:
        db_session.add(UniqueItemModel(index_id=9, name="foo"))
        db_session.add(UniqueItemModel(index_id=5, name="Foo"))
        db_session.commit()

        listed = client.get("/admin/duplicates").json()
        assert listed["count"] == 1

        preview = client.post("/admin/duplicates/cleanup").json()
        assert preview["dry_run"] is True
        assert preview["deleted"] == 0

        result = client.post("/admin/duplicates/cleanup", params={"dry_run": False}).json()
        assert result["deleted"] == 1
        assert [u.index_id for u in db_session.query(UniqueItemModel).all()] == [5]


# ── Jobs ──────────────────────────────────────────────────────


class TestImport:
    def test_import_fixture_catalog(self, client: TestClient, db_session) -> None:
        response = client.post(
            "/admin/import",
            json={"catalog_path": str(CATALOG_PATH), "with_composites": False},
        )

        assert response.status_code == 200
        data = response.json()
        assert data["timed_out"] is False
        assert data["kinds"]["unique"]["imported"] == 2
        assert data["runeword_bases"] == 2
        assert db_session.query(UniqueItemModel).count() == 2

    def test_dry_run_import(self, client: TestClient, db_session) -> None:
        response = client.post(
            "/admin/import",
            json={"catalog_path": str(CATALOG_PATH), "dry_run": True},
        )
        assert response.status_code == 200
        assert db_session.query(UniqueItemModel).count() == 0

    def test_invalid_workers_rejected(self, client: TestClient) -> None:
        response = client.post("/admin/import", json={"workers": 0})
        assert response.status_code == 422

    def test_store_unavailable_503(self, client: TestClient) -> None:
        app.state.store = OfflineStore()
        response = client.post("/admin/import", json={"catalog_path": str(CATALOG_PATH)})
        assert response.status_code == 503


class TestRunewordIcons:
    def test_missing_icons_reported(self, client: TestClient, db_session) -> None:
        db_session.add(RuneModel(code="r07", name="Tal Rune"))
        db_session.add(RunewordModel(name="Runeword1", display_name="Steel", runes=["r07"]))
        db_session.commit()

        data = client.post("/admin/runeword-icons", json={}).json()

        assert data["total_runewords"] == 1
        assert data["missing_runes"] == 1

    def test_store_unavailable_503(self, client: TestClient) -> None:
        app.state.store = OfflineStore()
        assert client.post("/admin/runeword-icons", json={}).status_code == 503


class TestSyncNames:
    def test_renames_from_pages(self, client: TestClient, db_session) -> None:
        db_session.add(UniqueItemModel(index_id=5, name="Stone Crusher"))
        db_session.commit()

        response = client.post(
            "/admin/sync-names",
            json={"pages_path": str(CATALOG_PATH / "pages")},
        )

        assert response.status_code == 200
        assert response.json()["updated"] == 1
        db_session.expire_all()
        assert db_session.query(UniqueItemModel).one().name == "Stone crusher"

    def test_no_pages_404(self, client: TestClient, tmp_path: Path) -> None:
        response = client.post("/admin/sync-names", json={"pages_path": str(tmp_path)})
        assert response.status_code == 404
