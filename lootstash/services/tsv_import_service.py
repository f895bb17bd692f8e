"""Game data import: tab-separated data files into the catalog tables."""

from dataclasses import asdict
from pathlib import Path
from typing import Optional

from sqlalchemy.orm import Session

from lootstash.core.catalog.models import ImportRunStats, PropertyAssignment
from lootstash.core.deadline import Deadline
from lootstash.core.errors import ParseError
from lootstash.core.logging import get_logger
from lootstash.core.sources import tsv
from lootstash.core.stats.formats import PropertyTranslator
from lootstash.db.models import (
    AffixModel,
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
from lootstash.services.catalog_writer import CatalogWriter

logger = get_logger(__name__)

BASE_FILES = (("armor.txt", "armor"), ("weapons.txt", "weapon"), ("misc.txt", "misc"))
AFFIX_FILES = (("magicprefix.txt", "prefix"), ("magicsuffix.txt", "suffix"))


def _props(props: list[PropertyAssignment]) -> list[dict]:
    return [p.to_dict() for p in props]


def _values(record, *keys: str) -> dict:
    values = asdict(record)
    for key in keys:
        values.pop(key)
    return values


class TsvImportService:
    """Imports item types, bases, uniques, sets, runes, runewords, gems and affixes."""

    def __init__(
        self,
        db: Session,
        stats: ImportRunStats,
        translator: Optional[PropertyTranslator] = None,
        dry_run: bool = False,
        deadline: Optional[Deadline] = None,
    ):
        self._db = db
        self.stats = stats
        self.translator = translator or PropertyTranslator()
        self.writer = CatalogWriter(db, stats, dry_run=dry_run, deadline=deadline)
        self._base_spawnable: dict[str, bool] = {}

    def has_sources(self, catalog_path: str | Path) -> bool:
        return any(Path(catalog_path).glob("*.txt"))

    def _read(self, catalog_path: Path, filename: str, kind: str) -> Optional[tsv.TsvTable]:
        path = catalog_path / filename
        if not path.is_file():
            logger.warning("%s not found, skipping", path)
            return None
        try:
            table = tsv.read_tsv(path)
        except ParseError as e:
            self.writer.error(kind, filename, str(e))
            return None
        for error in table.errors:
            self.writer.error(kind, f"{filename}:{error.line}", str(error))
        return table

    def import_all(self, catalog_path: str | Path) -> ImportRunStats:
        """Import every data file present; missing files are skipped."""
        catalog_path = Path(catalog_path)
        self.import_item_types(catalog_path)
        self.import_properties(catalog_path)
        misc = self.import_bases(catalog_path)
        self.import_uniques(catalog_path)
        self.import_sets(catalog_path)
        self.import_set_items(catalog_path)
        gems = self._read(catalog_path, "gems.txt", "gem")
        if misc is not None:
            self.import_runes(misc, gems)
        self.import_runewords(catalog_path)
        if gems is not None:
            self.import_gems(gems)
        self.import_affixes(catalog_path)
        logger.info("Game data import finished for %s", catalog_path)
        return self.stats

    def import_bases(self, catalog_path: Path) -> Optional[tsv.TsvTable]:
        """armor.txt, weapons.txt and misc.txt. Returns the misc table for runes."""
        misc = None
        for filename, category in BASE_FILES:
            table = self._read(catalog_path, filename, "base")
            if table is None:
                continue
            if category == "misc":
                misc = table
            for record in tsv.parse_bases(table, category):
                self._base_spawnable[record.code] = record.spawnable
                self.writer.upsert(
                    ItemBaseModel,
                    {"code": record.code},
                    _values(record, "code"),
                    "base",
                    record.name,
                )
        return misc

    def _spawnable_base(self, code: str) -> bool:
        if code in self._base_spawnable:
            return self._base_spawnable[code]
        base = self._db.query(ItemBaseModel).filter(ItemBaseModel.code == code).first()
        return base is not None and base.spawnable

    def import_uniques(self, catalog_path: Path) -> None:
        table = self._read(catalog_path, "uniqueitems.txt", "unique")
        if table is None:
            return
        for record in tsv.parse_uniques(table, self.translator):
            enabled = record.enabled
            # quest uniques sit on non-spawnable bases
            if enabled and record.base_code and not self._spawnable_base(record.base_code):
                enabled = False
            self.writer.upsert(
                UniqueItemModel,
                {"index_id": record.index_id},
                {
                    "name": record.name,
                    "base_code": record.base_code,
                    "base_name": record.base_name,
                    "level": record.level,
                    "level_req": record.level_req,
                    "enabled": enabled,
                    "ladder_only": record.ladder_only,
                    "inv_file": record.inv_file,
                    "properties": _props(record.properties),
                },
                "unique",
                record.name,
            )

    def import_sets(self, catalog_path: Path) -> None:
        table = self._read(catalog_path, "sets.txt", "set_bonus")
        if table is None:
            return
        for record in tsv.parse_sets(table, self.translator):
            self.writer.upsert(
                SetBonusModel,
                {"name": record.name},
                {
                    "index_id": record.index_id,
                    "partial_bonuses": _props(record.partial_bonuses),
                    "full_bonuses": _props(record.full_bonuses),
                },
                "set_bonus",
                record.name,
            )

    def import_set_items(self, catalog_path: Path) -> None:
        table = self._read(catalog_path, "setitems.txt", "set")
        if table is None:
            return
        for record in tsv.parse_set_items(table, self.translator):
            self.writer.upsert(
                SetItemModel,
                {"index_id": record.index_id},
                {
                    "name": record.name,
                    "set_name": record.set_name,
                    "base_code": record.base_code,
                    "base_name": record.base_name,
                    "level": record.level,
                    "level_req": record.level_req,
                    "inv_file": record.inv_file,
                    "properties": _props(record.properties),
                    "bonus_properties": _props(record.bonus_properties),
                },
                "set",
                record.name,
            )

    def import_runes(self, misc: tsv.TsvTable, gems: Optional[tsv.TsvTable]) -> None:
        for record in tsv.parse_runes(misc, gems, self.translator):
            self.writer.upsert(
                RuneModel,
                {"code": record.code},
                {
                    "name": record.name,
                    "rune_number": record.rune_number,
                    "level": record.level,
                    "level_req": record.level_req,
                    "inv_file": record.inv_file,
                    "weapon_mods": _props(record.mods.weapon),
                    "helm_mods": _props(record.mods.helm),
                    "shield_mods": _props(record.mods.shield),
                },
                "rune",
                record.name,
            )

    def import_runewords(self, catalog_path: Path) -> None:
        table = self._read(catalog_path, "runes.txt", "runeword")
        if table is None:
            return
        for record in tsv.parse_runewords(table, self.translator):
            self.writer.upsert(
                RunewordModel,
                {"name": record.name},
                {
                    "display_name": record.display_name,
                    "complete": True,
                    "ladder_only": record.ladder_only,
                    "runes": list(record.runes),
                    "valid_item_types": list(record.valid_item_types),
                    "excluded_item_types": list(record.excluded_item_types),
                    "properties": _props(record.properties),
                },
                "runeword",
                record.display_name,
            )

    def import_gems(self, gems: tsv.TsvTable) -> None:
        for record in tsv.parse_gems(gems, self.translator):
            self.writer.upsert(
                GemModel,
                {"code": record.code},
                {
                    "name": record.name,
                    "gem_type": record.gem_type,
                    "quality": record.quality,
                    "transform": record.transform,
                    "weapon_mods": _props(record.mods.weapon),
                    "helm_mods": _props(record.mods.helm),
                    "shield_mods": _props(record.mods.shield),
                },
                "gem",
                record.name,
            )

    def import_item_types(self, catalog_path: Path) -> None:
        """itemtypes.txt: the type hierarchy runeword bases are matched against."""
        table = self._read(catalog_path, "itemtypes.txt", "item_type")
        if table is None:
            return
        for record in tsv.parse_item_types(table):
            self.writer.upsert(
                ItemTypeModel, {"code": record.code}, _values(record, "code"), "item_type", record.name
            )

    def import_properties(self, catalog_path: Path) -> None:
        table = self._read(catalog_path, "properties.txt", "property")
        if table is None:
            return
        for record in tsv.parse_properties(table):
            self.writer.upsert(
                ItemPropertyModel,
                {"code": record.code},
                _values(record, "code"),
                "property",
                record.code,
            )

    def import_affixes(self, catalog_path: Path) -> None:
        """magicprefix.txt and magicsuffix.txt, keyed by (name, affix_type)."""
        for filename, affix_type in AFFIX_FILES:
            table = self._read(catalog_path, filename, "affix")
            if table is None:
                continue
            for record in tsv.parse_affixes(table, affix_type, self.translator):
                values = _values(record, "name", "affix_type")
                values["properties"] = _props(record.properties)
                self.writer.upsert(
                    AffixModel,
                    {"name": record.name, "affix_type": affix_type},
                    values,
                    "affix",
                    f"{record.name} ({affix_type})",
                )
