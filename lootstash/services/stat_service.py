"""Stat registry persistence: load, seed from built-ins and classes, auto-insert.

The registry itself is pure (core/stats); this service owns the stats table.
"""

from sqlalchemy.orm import Session

from lootstash.core.catalog.models import PropertyAssignment, StatCode
from lootstash.core.logging import get_logger
from lootstash.core.stats.builtins import BUILTIN_STATS, builtin_sort_orders
from lootstash.core.stats.formats import PARAMETRIC_CODES
from lootstash.core.stats.registry import StatRegistry
from lootstash.db.models import ClassModel, StatModel

logger = get_logger(__name__)

AUTO_STAT_CATEGORY = "Other"
AUTO_STAT_SORT_ORDER = 9999


def _to_stat(row: StatModel) -> StatCode:
    return StatCode(
        code=row.code,
        name=row.name,
        description=row.description or "",
        category=row.category,
        aliases=tuple(row.aliases or ()),
        is_variable=row.is_variable,
        sort_order=row.sort_order,
    )


def _to_orm(stat: StatCode) -> StatModel:
    return StatModel(
        code=stat.code,
        name=stat.name,
        description=stat.description,
        category=stat.category,
        aliases=list(stat.aliases),
        is_variable=stat.is_variable,
        sort_order=stat.sort_order,
    )


class StatService:
    """Keeps the stats table and a StatRegistry in step."""

    def __init__(self, db: Session, registry: StatRegistry | None = None):
        self._db = db
        self.registry = registry or StatRegistry()

    def _existing_codes(self) -> set[str]:
        return {code for (code,) in self._db.query(StatModel.code).all()}

    def load(self) -> int:
        """Replace the registry contents with the stats table."""
        rows = self._db.query(StatModel).order_by(StatModel.sort_order, StatModel.code).all()
        return self.registry.load(_to_stat(row) for row in rows)

    def _insert(self, stats: list[StatCode]) -> int:
        for stat in stats:
            self._db.add(_to_orm(stat))
            self.registry.register(stat)
        if stats:
            self._db.commit()
        return len(stats)

    def seed_from_builtins(self) -> int:
        """Insert built-in stats that are not in the table yet. Never overwrites."""
        existing = self._existing_codes()
        orders = builtin_sort_orders()
        missing = [
            StatCode(
                code=stat.code,
                name=stat.name,
                description=stat.description,
                category=stat.category,
                aliases=stat.aliases,
                is_variable=stat.is_variable,
                sort_order=orders[stat.code],
            )
            for stat in BUILTIN_STATS
            if stat.code not in existing
        ]
        count = self._insert(missing)
        logger.info("Seeded %d built-in stats", count)
        return count

    def seed_from_classes(self) -> int:
        """Insert a class-skills stat per class and a stat per skill tree.

        Codes are the class id ("ama") and "{class id}-{tree name}". Sort
        orders continue from 100, after the Skills category.
        """
        existing = self._existing_codes()
        missing: list[StatCode] = []
        order = 100
        for cls in self._db.query(ClassModel).order_by(ClassModel.id).all():
            if cls.id not in existing:
                missing.append(
                    StatCode(
                        code=cls.id,
                        name=f"{cls.name} Skills",
                        description=f"+{{value}} To {cls.name} Skill Levels",
                        category="Skills",
                        sort_order=order,
                    )
                )
                existing.add(cls.id)
                order += 1
            for tree in cls.skill_trees or []:
                tree_name = tree.get("name", "")
                code = f"{cls.id}-{tree_name}"
                if not tree_name or code in existing:
                    continue
                missing.append(
                    StatCode(
                        code=code,
                        name=tree_name,
                        description=f"+{{value}} To {tree_name} Skills ({cls.name} Only)",
                        category="Skill Trees",
                        sort_order=order,
                    )
                )
                existing.add(code)
                order += 1
        count = self._insert(missing)
        logger.info("Seeded %d class stats", count)
        return count

    def ensure_stat(self, prop: PropertyAssignment) -> bool:
        """Insert an unknown code with category Other. Returns True if inserted.

        raw and parametric codes (skill, aura, ...) are never inserted.
        """
        code = prop.code
        if not code or prop.is_raw or code in PARAMETRIC_CODES:
            return False
        if self.registry.is_known(code):
            return False
        if self._db.query(StatModel).filter(StatModel.code == code).first() is not None:
            return False
        stat = StatCode(
            code=code,
            name=code,
            description=prop.display_text or code,
            category=AUTO_STAT_CATEGORY,
            sort_order=AUTO_STAT_SORT_ORDER,
        )
        self._insert([stat])
        logger.debug("Auto-inserted stat %s", code)
        return True
