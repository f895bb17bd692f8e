"""Scraped page import: reconciles community pages against the catalog.

Each page item is matched to an existing row of its kind by name. A match is
updated in place (and its name synced to the page's spelling); anything else
is inserted with a fresh code or index_id.
"""

from pathlib import Path
from typing import Optional

from sqlalchemy import func
from sqlalchemy.orm import Session

from lootstash.core.catalog.models import ImportRunStats, PropertyAssignment
from lootstash.core.catalog.names import NameMatcher
from lootstash.core.deadline import Deadline
from lootstash.core.errors import UploadFailure
from lootstash.core.logging import get_logger
from lootstash.core.sources.pages import (
    TYPE_NAME_TO_CODE,
    PageBase,
    PageMods,
    generate_base_code,
    parse_bases_page,
    parse_misc_page,
    parse_runewords_page,
    parse_sets_page,
    parse_uniques_page,
    read_page,
    split_or_bonuses,
    unique_code,
)
from lootstash.core.sources.tsv import parse_gem_name_parts
from lootstash.core.stats.formats import PropertyTranslator
from lootstash.core.stats.resolver import PropertyResolver, combine_all_attributes
from lootstash.db.models import (
    GemModel,
    ItemBaseModel,
    RuneModel,
    RunewordModel,
    SetBonusModel,
    SetItemModel,
    UniqueItemModel,
)
from lootstash.services.catalog_writer import CatalogWriter
from lootstash.services.image_service import ImagePipeline
from lootstash.services.stat_service import StatService

logger = get_logger(__name__)

RUNEWORD_PREFIX = "HTMLRuneword_"

# On the runeword page "Shields" means any shield, not just the plain shield type.
RUNEWORD_TYPE_CODES = {**TYPE_NAME_TO_CODE, "Shields": "shld"}

VARIANT_FIELDS = {
    "Normal": "normal_code",
    "Exceptional": "exceptional_code",
    "Elite": "elite_code",
}


def runeword_type_codes(type_names) -> list[str]:
    """Page type names as item type codes. Unknown names are kept as written."""
    return [RUNEWORD_TYPE_CODES.get(name, name) for name in type_names]


class _RowIndex:
    """NameMatcher plus the rows behind each display name.

    A row is handed out at most once per run so two page items never
    collapse onto the same catalog row. Names passed to reserve() take their
    exact matches first; fuzzy claims only see rows nobody reserved.
    """

    def __init__(self, rows, fuzzy: bool = True, names=()):
        self.fuzzy = fuzzy
        self.matcher = NameMatcher()
        self._rows: dict[str, object] = {}
        self._reserved: dict[str, object] = {}
        for row in rows:
            self.add(row)
        self.reserve(names)

    def add(self, row) -> None:
        if row.name not in self._rows:
            self._rows[row.name] = row
            self.matcher.add(row.name)

    def _take(self, found: str):
        self.matcher.remove(found)
        return self._rows.pop(found, None)

    def reserve(self, names) -> None:
        for name in names:
            if name in self._reserved:
                continue
            found = self.matcher.find_exact(name)
            if found is not None:
                row = self._take(found)
                if row is not None:
                    self._reserved[name] = row

    def claim(self, name: str):
        if name in self._reserved:
            return self._reserved.pop(name)
        found = self.matcher.find_best_match(name) if self.fuzzy else self.matcher.find_exact(name)
        if found is None:
            return None
        return self._take(found)


class HtmlImportService:
    """Imports bases, misc items, uniques, sets and runewords from pages/."""

    def __init__(
        self,
        db: Session,
        stats: ImportRunStats,
        resolver: PropertyResolver,
        stat_service: StatService,
        pipeline: Optional[ImagePipeline] = None,
        translator: Optional[PropertyTranslator] = None,
        dry_run: bool = False,
        deadline: Optional[Deadline] = None,
    ):
        self._db = db
        self.stats = stats
        self.resolver = resolver
        self.stat_service = stat_service
        self.pipeline = pipeline
        self.translator = translator or PropertyTranslator()
        self.dry_run = dry_run
        self.writer = CatalogWriter(db, stats, dry_run=dry_run, deadline=deadline)
        self._base_codes: dict[str, str] = {}
        self._rune_codes: dict[str, str] = {}

    def has_sources(self, pages_path: str | Path) -> bool:
        return Path(pages_path).is_dir()

    def import_all(self, pages_path: str | Path) -> ImportRunStats:
        pages = Path(pages_path)
        bases = self.import_bases(pages)
        self.reload_base_codes()
        self.import_misc(pages)
        self.reload_base_codes()
        self.link_variants(bases)
        self.reload_rune_codes()
        self.import_uniques(pages)
        self.import_sets(pages)
        self.import_runewords(pages)
        logger.info("Page import finished for %s", pages)
        return self.stats

    # ── Caches ──────────────────────────────────────────

    def reload_base_codes(self) -> None:
        self._base_codes = {
            name: code for code, name in self._db.query(ItemBaseModel.code, ItemBaseModel.name)
        }

    def reload_rune_codes(self) -> None:
        self._rune_codes = {
            name: code for code, name in self._db.query(RuneModel.code, RuneModel.name)
        }

    def _rune_code(self, name: str) -> Optional[str]:
        code = self._rune_codes.get(name)
        if code is None and not name.endswith(" Rune"):
            code = self._rune_codes.get(f"{name} Rune")
        return code

    def _next_index_id(self, model) -> int:
        current = self._db.query(func.max(model.index_id)).scalar()
        return (current or 0) + 1

    # ── Shared steps ────────────────────────────────────

    def _page(self, pages: Path, filename: str):
        path = pages / filename
        if not path.is_file():
            logger.warning("No %s found, skipping", filename)
            return None
        return read_page(path)

    def _ensure(self, props: list[PropertyAssignment]) -> list[PropertyAssignment]:
        for prop in props:
            if not prop.is_raw:
                self.translator.enrich(prop)
            if not self.dry_run:
                self.stat_service.ensure_stat(prop)
        return props

    def resolve_properties(self, lines: list[str]) -> list[dict]:
        props = self.resolver.resolve_lines(lines)
        props = combine_all_attributes(props, self.translator)
        return [p.to_dict() for p in self._ensure(props)]

    def _resolve_mods(self, mods: PageMods) -> dict[str, list[dict]]:
        return {
            "weapon_mods": [p.to_dict() for p in self._ensure(self.resolver.resolve_lines(mods.weapon))],
            "helm_mods": [p.to_dict() for p in self._ensure(self.resolver.resolve_lines(mods.helm))],
            "shield_mods": [p.to_dict() for p in self._ensure(self.resolver.resolve_lines(mods.shield))],
        }

    def _image_url(self, row, image_path: str, category: str, name: str) -> Optional[str]:
        """URL for a row without an image. None when it has one or none is found."""
        if self.pipeline is None or not image_path:
            return None
        if row is not None and row.image_url:
            return None
        try:
            result = self.pipeline.acquire(image_path, category)
        except UploadFailure as e:
            logger.warning("Image upload for %s failed: %s", name, e)
            self.stats.images.errors += 1
            return None
        if result is None:
            self.stats.images.add_missing_image(f"{Path(image_path).name} (for {name})")
            return None
        if result.uploaded:
            self.stats.images.uploaded += 1
        elif result.would_upload:
            self.stats.images.would_upload += 1
        else:
            self.stats.images.reused_cache += 1
        return result.asset.public_url

    def _save(self, index: _RowIndex, row, model, values: dict, kind: str, name: str) -> None:
        """Update a matched row (syncing its name) or insert a new one."""
        if row is None:
            new_row = model(**values)
            outcome = self.writer.insert(new_row, kind, name)
            if outcome.action == "inserted" and not self.dry_run:
                index.add(new_row)
            return
        if row.name != name:
            logger.info("Name sync %s: %r -> %r", kind, row.name, name)
        self.writer.update(row, values, kind, name)

    # ── Bases ───────────────────────────────────────────

    def import_bases(self, pages: Path) -> list[PageBase]:
        soup = self._page(pages, "base.html")
        if soup is None:
            return []
        items = parse_bases_page(soup)
        logger.info("Found %d base items", len(items))
        rows = self._db.query(ItemBaseModel).order_by(ItemBaseModel.id).all()
        index = _RowIndex(rows, fuzzy=False, names=[item.name for item in items])
        used = {row.code for row in rows}

        for item in items:
            self.writer.check_deadline("base")
            row = index.claim(item.name)
            if row is not None:
                code = row.code
            else:
                code = unique_code(generate_base_code(item.name), used)
            used.add(code)
            values = {
                "code": code,
                "name": item.name,
                "item_type": TYPE_NAME_TO_CODE.get(item.type_name, ""),
                "item_type2": TYPE_NAME_TO_CODE.get(item.type_name2, ""),
                "category": item.category,
                "tier": item.tier,
                "level": item.quality_level,
                "level_req": item.req_level,
                "str_req": item.req_str,
                "dex_req": item.req_dex,
                "durability": item.durability,
                "min_ac": item.defense_min,
                "max_ac": item.defense_max,
                "min_dam": item.one_hand_min,
                "max_dam": item.one_hand_max,
                "two_hand_min_dam": item.two_hand_min,
                "two_hand_max_dam": item.two_hand_max,
                "speed": item.speed,
                "max_sockets": item.max_sockets,
                "spawnable": True,
            }
            url = self._image_url(row, item.image_path, "d2/base", item.name)
            if url:
                values["image_url"] = url
            self._save(index, row, ItemBaseModel, values, "base", item.name)
        return items

    def link_variants(self, items: list[PageBase]) -> None:
        """Set normal/exceptional/elite codes from each base's variant links.

        Uses the base code cache, so call reload_base_codes() first. Links to
        names not in the catalog are ignored.
        """
        for item in items:
            if not item.variants or item.name not in self._base_codes:
                continue
            values = {}
            for variant in item.variants:
                code = self._base_codes.get(variant.name)
                if code is not None:
                    values[VARIANT_FIELDS[variant.tier]] = code
            if not values:
                continue
            row = (
                self._db.query(ItemBaseModel)
                .filter(ItemBaseModel.code == self._base_codes[item.name])
                .first()
            )
            if row is not None:
                self.writer.update(row, values, "base_variant", item.name)

    # ── Misc: runes, gems, charms ───────────────────────

    def import_misc(self, pages: Path) -> None:
        soup = self._page(pages, "misc.html")
        if soup is None:
            return
        page = parse_misc_page(soup)
        logger.info(
            "Found %d runes, %d gems, %d misc items",
            len(page.runes),
            len(page.gems),
            len(page.misc_items),
        )

        runes = self._db.query(RuneModel).order_by(RuneModel.id).all()
        rune_index = _RowIndex(runes, names=[rune.name for rune in page.runes])
        rune_codes = {row.code for row in runes}
        for rune in page.runes:
            self.writer.check_deadline("rune")
            row = rune_index.claim(rune.name)
            if row is not None:
                code = row.code
            else:
                code = unique_code(f"r{rune.rune_index:02d}", rune_codes)
            rune_codes.add(code)
            values = {
                "code": code,
                "name": rune.name,
                "rune_number": rune.rune_index,
                "level": rune.level,
                "level_req": rune.level,
                **self._resolve_mods(rune.mods),
            }
            url = self._image_url(row, rune.image_path, "d2/rune", rune.name)
            if url:
                values["image_url"] = url
            self._save(rune_index, row, RuneModel, values, "rune", rune.name)

        gems = self._db.query(GemModel).order_by(GemModel.id).all()
        gem_index = _RowIndex(gems, fuzzy=False, names=[gem.name for gem in page.gems])
        gem_codes = {row.code for row in gems}
        for gem in page.gems:
            self.writer.check_deadline("gem")
            row = gem_index.claim(gem.name)
            code = row.code if row is not None else unique_code(generate_base_code(gem.name), gem_codes)
            gem_codes.add(code)
            gem_type, quality = parse_gem_name_parts(gem.name)
            values = {
                "code": code,
                "name": gem.name,
                "gem_type": gem_type,
                "quality": quality,
                **self._resolve_mods(gem.mods),
            }
            url = self._image_url(row, gem.image_path, "d2/gem", gem.name)
            if url:
                values["image_url"] = url
            self._save(gem_index, row, GemModel, values, "gem", gem.name)

        bases = self._db.query(ItemBaseModel).order_by(ItemBaseModel.id).all()
        base_index = _RowIndex(bases, fuzzy=False, names=[item.name for item in page.misc_items])
        used = {row.code for row in bases}
        for item in page.misc_items:
            self.writer.check_deadline("base")
            row = base_index.claim(item.name)
            code = row.code if row is not None else unique_code(generate_base_code(item.name), used)
            used.add(code)
            values = {
                "code": code,
                "name": item.name,
                "category": "misc",
                "sub_category": item.sub_category,
                "tier": "Normal",
                "spawnable": True,
                "description": item.description,
            }
            url = self._image_url(row, item.image_path, "d2/misc", item.name)
            if url:
                values["image_url"] = url
            self._save(base_index, row, ItemBaseModel, values, "base", item.name)

    # ── Uniques ─────────────────────────────────────────

    def import_uniques(self, pages: Path) -> None:
        soup = self._page(pages, "uniques.html")
        if soup is None:
            return
        items = parse_uniques_page(soup)
        logger.info("Found %d unique items", len(items))
        index = _RowIndex(
            self._db.query(UniqueItemModel).order_by(UniqueItemModel.id).all(),
            names=[item.name for item in items],
        )
        next_id = self._next_index_id(UniqueItemModel)

        for item in items:
            self.writer.check_deadline("unique")
            base_code = self._base_codes.get(item.base_name, "")
            if item.base_name and not base_code:
                logger.warning("Unique %r has unresolved base %r", item.name, item.base_name)
            row = index.claim(item.name)
            values = {
                "name": item.name,
                "base_code": base_code,
                "base_name": item.base_name,
                "level": item.quality_level,
                "level_req": item.req_level,
                "properties": self.resolve_properties(item.properties),
            }
            if row is None:
                values["index_id"] = next_id
                values["enabled"] = True
                next_id += 1
            url = self._image_url(row, item.image_path, "d2/unique", item.name)
            if url:
                values["image_url"] = url
            self._save(index, row, UniqueItemModel, values, "unique", item.name)

    # ── Sets ────────────────────────────────────────────

    def _resolve_each(self, lines: list[str]) -> list[dict]:
        return [p.to_dict() for p in self._ensure(self.resolver.resolve_lines(lines))]

    def import_sets(self, pages: Path) -> None:
        soup = self._page(pages, "sets.html")
        if soup is None:
            return
        items, full_sets = parse_sets_page(soup)
        logger.info("Found %d set items, %d full sets", len(items), len(full_sets))
        by_set = {full.name: full for full in full_sets}

        bonus_index = _RowIndex(
            self._db.query(SetBonusModel).order_by(SetBonusModel.id).all(),
            fuzzy=False,
            names=[item.set_name for item in items if item.set_name],
        )
        next_set_id = self._next_index_id(SetBonusModel)
        seen: set[str] = set()
        for item in items:
            if not item.set_name or item.set_name in seen:
                continue
            seen.add(item.set_name)
            self.writer.check_deadline("set_bonus")
            full = by_set.get(item.set_name)
            values = {
                "name": item.set_name,
                "partial_bonuses": self._resolve_each(full.partial_bonuses) if full else [],
                "full_bonuses": self._resolve_each(full.full_bonuses) if full else [],
            }
            row = bonus_index.claim(item.set_name)
            if row is None:
                values["index_id"] = next_set_id
                next_set_id += 1
            self._save(bonus_index, row, SetBonusModel, values, "set_bonus", item.set_name)

        index = _RowIndex(
            self._db.query(SetItemModel).order_by(SetItemModel.id).all(),
            names=[item.name for item in items],
        )
        next_id = self._next_index_id(SetItemModel)
        for item in items:
            self.writer.check_deadline("set")
            base_code = self._base_codes.get(item.base_name, "")
            if item.base_name and not base_code:
                logger.warning("Set item %r has unresolved base %r", item.name, item.base_name)
            bonus_lines = [
                line for bonus in item.set_bonuses for line in split_or_bonuses(bonus.text)
            ]
            bonus_props = self._ensure(self.resolver.resolve_lines(bonus_lines))
            bonus_props = combine_all_attributes(bonus_props, self.translator)
            row = index.claim(item.name)
            values = {
                "name": item.name,
                "set_name": item.set_name,
                "base_code": base_code,
                "base_name": item.base_name,
                "level": item.quality_level,
                "level_req": item.req_level,
                "properties": self.resolve_properties(item.properties),
                "bonus_properties": [p.to_dict() for p in bonus_props],
            }
            if row is None:
                values["index_id"] = next_id
                next_id += 1
            url = self._image_url(row, item.image_path, "d2/set", item.name)
            if url:
                values["image_url"] = url
            self._save(index, row, SetItemModel, values, "set", item.name)

    # ── Runewords ───────────────────────────────────────

    def import_runewords(self, pages: Path) -> None:
        soup = self._page(pages, "runewords.html")
        if soup is None:
            return
        runewords = parse_runewords_page(soup)
        logger.info("Found %d runewords", len(runewords))
        rows = self._db.query(RunewordModel).order_by(RunewordModel.id).all()
        by_display = {}
        for row in rows:
            by_display.setdefault(row.display_name or row.name, row)
        index = _RowIndex(
            [_DisplayName(name, row) for name, row in by_display.items()],
            names=[rw.name for rw in runewords],
        )

        for rw in runewords:
            self.writer.check_deadline("runeword")
            codes = [self._rune_code(name) for name in rw.runes]
            missing = [name for name, code in zip(rw.runes, codes) if code is None]
            if missing:
                self.writer.skip("runeword", rw.name, f"unresolved runes: {', '.join(missing)}")
                continue
            values = {
                "display_name": rw.name,
                "complete": True,
                "runes": codes,
                "valid_item_types": runeword_type_codes(rw.valid_types),
                "req_level": rw.req_level,
                "properties": self.resolve_properties(rw.properties),
            }
            match = index.claim(rw.name)
            if match is not None:
                if match.name != rw.name:
                    logger.info("Name sync runeword: %r -> %r", match.name, rw.name)
                self.writer.update(match.row, values, "runeword", rw.name)
                continue
            values["name"] = RUNEWORD_PREFIX + rw.name.replace(" ", "")
            existing = self._db.query(RunewordModel).filter(RunewordModel.name == values["name"]).first()
            if existing is not None:
                self.writer.update(existing, values, "runeword", rw.name)
            else:
                self.writer.insert(RunewordModel(**values), "runeword", rw.name)


class _DisplayName:
    """Adapter so runewords are matched on display_name rather than name."""

    def __init__(self, name: str, row: RunewordModel):
        self.name = name
        self.row = row
