"""StatService integration tests (in-memory SQLite)."""

import pytest
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker

from lootstash.core.catalog.models import PropertyAssignment
from lootstash.core.stats.builtins import BUILTIN_STATS
from lootstash.db.models import Base, ClassModel, StatModel
from lootstash.services.stat_service import AUTO_STAT_CATEGORY, StatService


@pytest.fixture()
def setup():
    """In-memory DB + StatService"""
    engine = create_engine("sqlite:///:memory:")
    Base.metadata.create_all(engine)
    db = sessionmaker(bind=engine)()
    return StatService(db), db


class TestSeedFromBuiltins:
    def test_inserts_every_builtin_once(self, setup) -> None:
        service, db = setup
        assert service.seed_from_builtins() == len(BUILTIN_STATS)
        assert service.seed_from_builtins() == 0
        assert db.query(StatModel).count() == len(BUILTIN_STATS)

    def test_never_overwrites_existing_row(self, setup) -> None:
        service, db = setup
        db.add(StatModel(code="str", name="Custom Strength", category="Attributes"))
        db.commit()
        service.seed_from_builtins()
        assert db.get(StatModel, "str").name == "Custom Strength"

    def test_registry_follows_table(self, setup) -> None:
        service, _ = setup
        service.seed_from_builtins()
        assert service.registry.resolve("mag%").code == "mf"

        fresh = StatService(service._db)
        assert fresh.load() == len(BUILTIN_STATS)
        assert fresh.registry.resolve("mf").category == "Magic Find"


class TestSeedFromClasses:
    def test_class_and_tree_codes(self, setup) -> None:
        service, db = setup
        db.add(
            ClassModel(
                id="war",
                name="Warlock",
                skill_trees=[{"name": "Chaos"}, {"name": "Eldritch"}],
            )
        )
        db.commit()

        assert service.seed_from_classes() == 3
        assert db.get(StatModel, "war").name == "Warlock Skills"
        tree = db.get(StatModel, "war-Chaos")
        assert tree.category == "Skill Trees"
        assert "(Warlock Only)" in tree.description
        assert service.seed_from_classes() == 0


class TestEnsureStat:
    def test_unknown_code_inserted_as_other(self, setup) -> None:
        service, db = setup
        service.seed_from_builtins()
        prop = PropertyAssignment(code="crushblow", min=40, max=40, display_text="40% Crushing Blow")

        assert service.ensure_stat(prop) is True
        row = db.get(StatModel, "crushblow")
        assert row.category == AUTO_STAT_CATEGORY
        assert row.description == "40% Crushing Blow"
        assert service.ensure_stat(prop) is False

    def test_known_raw_and_parametric_skipped(self, setup) -> None:
        service, db = setup
        service.seed_from_builtins()
        before = db.query(StatModel).count()

        assert service.ensure_stat(PropertyAssignment(code="mag%")) is False
        assert service.ensure_stat(PropertyAssignment(code="raw", display_text="Odd text")) is False
        assert service.ensure_stat(PropertyAssignment(code="skill", param="Teleport")) is False
        assert db.query(StatModel).count() == before
