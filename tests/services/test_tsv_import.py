"""TsvImportService: game data files into the catalog tables."""

import shutil
from pathlib import Path

import pytest
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker

from lootstash.core.catalog.models import ImportRunStats
from lootstash.db.models import (
    AffixModel,
    Base,
    GemModel,
    ItemBaseModel,
    ItemPropertyModel,
    ItemTypeModel,
    RuneModel,
    RunewordModel,
    SetBonusModel,
    SetItemModel,
    UniqueItemModel,
)
from lootstash.services.tsv_import_service import TsvImportService

CATALOG_PATH = Path(__file__).parent.parent / "fixtures" / "catalog"


@pytest.fixture()
def setup():
    engine = create_engine("sqlite:///:memory:")
    Base.metadata.create_all(engine)
    db = sessionmaker(bind=engine)()
    return db


@pytest.fixture()
def catalog(tmp_path: Path) -> Path:
    """Writable copy of the fixture catalog"""
    target = tmp_path / "catalog"
    shutil.copytree(CATALOG_PATH, target)
    return target


class TestImportAll:
    def test_row_counts(self, setup) -> None:
        db = setup
        stats = TsvImportService(db, ImportRunStats()).import_all(CATALOG_PATH)

        assert db.query(ItemBaseModel).count() == 14
        assert db.query(UniqueItemModel).count() == 2
        assert db.query(SetBonusModel).count() == 1
        assert db.query(SetItemModel).count() == 1
        assert db.query(RuneModel).count() == 7
        assert db.query(RunewordModel).count() == 1
        assert db.query(GemModel).count() == 1
        assert stats.errors == []

    def test_unique_fields(self, setup) -> None:
        db = setup
        TsvImportService(db, ImportRunStats()).import_all(CATALOG_PATH)

        crusher = db.query(UniqueItemModel).filter_by(index_id=5).one()
        assert crusher.name == "Stone Crusher"
        assert crusher.base_code == "7wh"
        assert crusher.enabled is True
        assert crusher.level_req == 68
        codes = [(p["code"], p["min"], p["max"]) for p in crusher.properties]
        assert codes == [("dmg%", 280, 320), ("str", 10, 10)]
        assert crusher.properties[0]["display_text"] == "+280-320% Enhanced Damage"

    def test_sets_and_set_items(self, setup) -> None:
        db = setup
        TsvImportService(db, ImportRunStats()).import_all(CATALOG_PATH)

        bonus = db.query(SetBonusModel).one()
        assert [p["code"] for p in bonus.partial_bonuses] == ["ac"]
        assert [p["code"] for p in bonus.full_bonuses] == ["allskills"]
        helm = db.query(SetItemModel).one()
        assert helm.index_id == 72
        assert helm.base_code == "xsk"
        assert [p["code"] for p in helm.bonus_properties] == ["str"]

    def test_runes_get_socket_mods_from_gems(self, setup) -> None:
        db = setup
        TsvImportService(db, ImportRunStats()).import_all(CATALOG_PATH)

        tal = db.query(RuneModel).filter_by(code="r07").one()
        assert tal.name == "Tal Rune"
        assert tal.level == 17
        assert [(p["code"], p["min"]) for p in tal.helm_mods] == [("res-pois", 30)]
        assert [(p["code"], p["min"]) for p in tal.shield_mods] == [("res-pois", 35)]

    def test_runewords_and_gems(self, setup) -> None:
        db = setup
        TsvImportService(db, ImportRunStats()).import_all(CATALOG_PATH)

        spirit = db.query(RunewordModel).one()
        assert (spirit.name, spirit.display_name) == ("Runeword1", "Spirit")
        assert spirit.runes == ["r07", "r10", "r09", "r11"]
        assert spirit.valid_item_types == ["swor", "shld"]
        topaz = db.query(GemModel).one()
        assert (topaz.code, topaz.gem_type, topaz.quality, topaz.transform) == ("gly", "topaz", "flawless", 1)

    def test_item_types(self, setup) -> None:
        db = setup
        TsvImportService(db, ImportRunStats()).import_all(CATALOG_PATH)

        assert db.query(ItemTypeModel).count() == 10
        assert db.query(ItemTypeModel).filter_by(code="none").first() is None
        shield = db.query(ItemTypeModel).filter_by(code="shie").one()
        assert (shield.name, shield.equiv1, shield.equiv2) == ("Shield", "shld", "")
        assert shield.can_be_rare is True
        assert (shield.max_sockets_normal, shield.max_sockets_hell) == (3, 4)

    def test_property_definitions(self, setup) -> None:
        db = setup
        TsvImportService(db, ImportRunStats()).import_all(CATALOG_PATH)

        damage = db.query(ItemPropertyModel).filter_by(code="dmg-norm").one()
        assert damage.enabled is True
        assert damage.stats == [
            {"func": 7, "stat": "mindamage"},
            {"func": 8, "stat": "maxdamage"},
        ]
        assert damage.tooltip == "Adds #-# Damage"

    def test_affixes(self, setup) -> None:
        db = setup
        stats = TsvImportService(db, ImportRunStats()).import_all(CATALOG_PATH)

        assert stats.counts("affix").imported == 3
        jeweler = db.query(AffixModel).filter_by(name="Jeweler's", affix_type="prefix").one()
        assert jeweler.valid_item_types == ["armo", "weap"]
        assert jeweler.excluded_item_types == ["shld"]
        assert jeweler.max_level is None
        assert [(p["code"], p["min"]) for p in jeweler.properties] == [("sock", 4)]
        strength = db.query(AffixModel).filter_by(affix_type="suffix").one()
        assert (strength.name, strength.max_level, strength.affix_group) == ("of Strength", 10, 200)

    def test_second_run_updates(self, setup) -> None:
        db = setup
        TsvImportService(db, ImportRunStats()).import_all(CATALOG_PATH)
        stats = TsvImportService(db, ImportRunStats()).import_all(CATALOG_PATH)

        assert db.query(ItemBaseModel).count() == 14
        assert stats.counts("base").imported == 0
        assert stats.counts("base").updated == 14
        assert stats.counts("unique").updated == 2

    def test_dry_run(self, setup) -> None:
        db = setup
        stats = TsvImportService(db, ImportRunStats(), dry_run=True).import_all(CATALOG_PATH)
        assert db.query(ItemBaseModel).count() == 0
        assert stats.counts("base").imported == 14


class TestBadInput:
    def test_malformed_row_does_not_stop_file(self, setup, catalog: Path) -> None:
        db = setup
        with (catalog / "armor.txt").open("a") as f:
            f.write("Broken\tbrk\thelm\t1\t0\t0\t1\t1\t1\t0\t1\tbrk\tbrk\tbrk\tinv\textra\n")

        stats = TsvImportService(db, ImportRunStats()).import_all(catalog)

        assert db.query(ItemBaseModel).count() == 14
        assert len(stats.errors) == 1
        assert stats.errors[0].name == "armor.txt:8"

    def test_missing_files_skipped(self, setup, catalog: Path) -> None:
        db = setup
        (catalog / "uniqueitems.txt").unlink()
        (catalog / "gems.txt").unlink()

        TsvImportService(db, ImportRunStats()).import_all(catalog)

        assert db.query(UniqueItemModel).count() == 0
        assert db.query(GemModel).count() == 0
        assert db.query(RuneModel).count() == 7

    def test_unique_on_unspawnable_base_disabled(self, setup, catalog: Path) -> None:
        db = setup
        with (catalog / "armor.txt").open("a") as f:
            f.write("Quest Helm\tqhm\thelm\t1\t0\t0\t1\t1\t1\t0\t0\tqhm\tqhm\tqhm\tinv\n")
        with (catalog / "uniqueitems.txt").open("a") as f:
            f.write("Quest Crown\t99\tqhm\tQuest Helm\t1\t1\t1\t\t\t\t\t\t\t\n")

        TsvImportService(db, ImportRunStats()).import_all(catalog)

        assert db.query(UniqueItemModel).filter_by(index_id=99).one().enabled is False

    def test_has_sources(self, setup, tmp_path: Path) -> None:
        service = TsvImportService(setup, ImportRunStats())
        assert service.has_sources(CATALOG_PATH)
        assert not service.has_sources(tmp_path)
