"""DuplicateService: cross-domain cleanup and same-name dedup."""

import pytest
from sqlalchemy import create_engine
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import sessionmaker

from lootstash.db.models import Base, ItemBaseModel, RuneModel, UniqueItemModel
from lootstash.services.duplicate_service import DuplicateService


@pytest.fixture()
def setup():
    engine = create_engine("sqlite:///:memory:")
    Base.metadata.create_all(engine)
    db = sessionmaker(bind=engine)()
    return DuplicateService(db), db


def _unique(index_id: int, name: str) -> UniqueItemModel:
    return UniqueItemModel(index_id=index_id, name=name, base_code="cap")


class TestNameDuplicates:
    def test_lowest_index_id_survives(self, setup) -> None:
        service, db = setup
        db.add_all([_unique(9, "foo"), _unique(5, "Foo"), _unique(7, "Bar")])
        db.commit()

        result = service.resolve()

        assert result.deleted == 1
        remaining = db.query(UniqueItemModel).order_by(UniqueItemModel.index_id).all()
        assert [(u.index_id, u.name) for u in remaining] == [(5, "Foo"), (7, "Bar")]

    def test_dry_run_reports_without_deleting(self, setup) -> None:
        service, db = setup
        db.add_all([_unique(9, "foo"), _unique(5, "Foo")])
        db.commit()

        result = service.resolve(dry_run=True)

        assert result.found == 1
        assert result.deleted == 0
        assert result.groups[0].table == "unique_items"
        assert db.query(UniqueItemModel).count() == 2

    def test_report_matches_resolve_groups(self, setup) -> None:
        service, db = setup
        db.add_all([_unique(1, "A"), _unique(2, "a"), _unique(3, "a")])
        db.commit()
        groups = service.report()
        assert len(groups) == 1
        assert len(groups[0].loser_ids) == 2


class TestCrossDomain:
    def test_rune_named_base_removed_first(self, setup) -> None:
        service, db = setup
        db.add_all(
            [
                RuneModel(code="r07", name="Tal Rune", rune_number=7),
                ItemBaseModel(code="r07", name="Tal Rune", category="misc"),
                ItemBaseModel(code="cap", name="Cap", category="armor"),
            ]
        )
        db.commit()

        result = service.resolve()

        assert result.cross_domain == [{"code": "r07", "name": "Tal Rune"}]
        assert [b.code for b in db.query(ItemBaseModel).all()] == ["cap"]
        assert db.query(RuneModel).count() == 1

    def test_dry_run_leaves_bases(self, setup) -> None:
        service, db = setup
        db.add_all(
            [
                RuneModel(code="r07", name="Tal Rune"),
                ItemBaseModel(code="r07", name="Tal Rune", category="misc"),
            ]
        )
        db.commit()
        result = service.resolve(dry_run=True)
        assert result.found == 1
        assert db.query(ItemBaseModel).count() == 1
        assert result.to_dict()["dry_run"] is True


class TestDeleteFailures:
    def test_failed_delete_does_not_stop_batch(self, setup, monkeypatch) -> None:
        service, db = setup
        db.add_all([_unique(1, "a"), _unique(2, "A"), _unique(3, "a")])
        db.commit()
        real_commit = db.commit
        calls = []

        def flaky_commit() -> None:
            calls.append(1)
            if len(calls) == 1:
                raise SQLAlchemyError("commit failed")
            real_commit()

        monkeypatch.setattr(db, "commit", flaky_commit)

        result = service.resolve()

        assert result.failed == 1
        assert result.deleted == 1
        remaining = db.query(UniqueItemModel).order_by(UniqueItemModel.index_id).all()
        assert [u.index_id for u in remaining] == [1, 2]
