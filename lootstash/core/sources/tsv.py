"""Tab-separated game data files: parsing and row -> record conversion."""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import Optional

from ..catalog.models import PropertyAssignment
from ..errors import ParseError
from ..stats.formats import PropertyTranslator
from ..stats.resolver import combine_all_attributes

logger = logging.getLogger(__name__)

# Tradeable misc items the data files mark as non-spawnable.
FORCE_SPAWNABLE_CODES = frozenset({"tes", "ceh", "bet", "fed", "toa"})

# Known typos in the data files.
NAME_OVERRIDES = {"ceh": "Charged Essence of Hatred"}


class Row(dict):
    """One data row keyed by header name. Values are already trimmed."""

    line: int = 0

    def get_str(self, key: str, default: str = "") -> str:
        value = self.get(key, "")
        return value if value else default

    def get_int(self, key: str, default: int = 0) -> int:
        value = self.get(key, "")
        if not value:
            return default
        try:
            return int(value)
        except ValueError:
            return default

    def get_float(self, key: str, default: float = 0.0) -> float:
        value = self.get(key, "")
        if not value:
            return default
        try:
            return float(value)
        except ValueError:
            return default

    def get_bool(self, key: str) -> bool:
        value = self.get(key, "")
        return value == "1" or value.lower() == "true"

    def is_empty(self, key: str) -> bool:
        return not self.get(key, "")


@dataclass
class TsvTable:
    source: str
    headers: list[str]
    rows: list[Row]
    errors: list[ParseError] = field(default_factory=list)


def parse_tsv(text: str, source: str = "<string>") -> TsvTable:
    """Parse TSV text. The first non-empty line is the header.

    Rows whose first field is empty are comments or separators and are dropped.
    Rows with extra non-empty fields are collected in errors, not returned.
    """
    headers: list[str] = []
    rows: list[Row] = []
    errors: list[ParseError] = []
    for line_no, line in enumerate(text.splitlines(), start=1):
        if not line.strip():
            continue
        fields = line.split("\t")
        if not headers:
            headers = [h.strip() for h in fields]
            continue
        if any(f.strip() for f in fields[len(headers):]):
            errors.append(
                ParseError(
                    f"{len(fields)} fields for {len(headers)} columns", source, line_no
                )
            )
            continue
        if not fields[0].strip():
            continue
        row = Row((headers[i], value.strip()) for i, value in enumerate(fields[: len(headers)]))
        row.line = line_no
        rows.append(row)
    if not headers:
        raise ParseError("no header line", source)
    return TsvTable(source=source, headers=headers, rows=rows, errors=errors)


def read_tsv(path: str | Path) -> TsvTable:
    path = Path(path)
    text = path.read_text(encoding="utf-8", errors="replace")
    table = parse_tsv(text, source=path.name)
    logger.debug("Parsed %d rows from %s", len(table.rows), path)
    return table


# ── Records ─────────────────────────────────────────────


@dataclass
class BaseRecord:
    code: str
    name: str
    category: str
    item_type: str = ""
    item_type2: str = ""
    level: int = 0
    level_req: int = 0
    str_req: int = 0
    dex_req: int = 0
    durability: int = 0
    min_ac: int = 0
    max_ac: int = 0
    min_dam: int = 0
    max_dam: int = 0
    two_hand_min_dam: int = 0
    two_hand_max_dam: int = 0
    speed: int = 0
    max_sockets: int = 0
    normal_code: str = ""
    exceptional_code: str = ""
    elite_code: str = ""
    inv_file: str = ""
    spawnable: bool = False
    stackable: bool = False
    quest_item: bool = False


@dataclass
class UniqueRecord:
    index_id: int
    name: str
    base_code: str = ""
    base_name: str = ""
    level: int = 0
    level_req: int = 0
    enabled: bool = True
    ladder_only: bool = False
    inv_file: str = ""
    properties: list[PropertyAssignment] = field(default_factory=list)


@dataclass
class SetItemRecord:
    index_id: int
    name: str
    set_name: str = ""
    base_code: str = ""
    base_name: str = ""
    level: int = 0
    level_req: int = 0
    inv_file: str = ""
    properties: list[PropertyAssignment] = field(default_factory=list)
    bonus_properties: list[PropertyAssignment] = field(default_factory=list)


@dataclass
class SetRecord:
    index_id: int
    name: str
    partial_bonuses: list[PropertyAssignment] = field(default_factory=list)
    full_bonuses: list[PropertyAssignment] = field(default_factory=list)


@dataclass
class RunewordRecord:
    name: str
    display_name: str
    runes: list[str]
    valid_item_types: list[str] = field(default_factory=list)
    excluded_item_types: list[str] = field(default_factory=list)
    ladder_only: bool = False
    properties: list[PropertyAssignment] = field(default_factory=list)


@dataclass
class SocketMods:
    weapon: list[PropertyAssignment] = field(default_factory=list)
    helm: list[PropertyAssignment] = field(default_factory=list)
    shield: list[PropertyAssignment] = field(default_factory=list)


@dataclass
class RuneRecord:
    code: str
    name: str
    rune_number: int
    level: int = 0
    level_req: int = 0
    inv_file: str = ""
    mods: SocketMods = field(default_factory=SocketMods)


@dataclass
class GemRecord:
    code: str
    name: str
    gem_type: str
    quality: str
    transform: int = 0
    mods: SocketMods = field(default_factory=SocketMods)


@dataclass
class ItemTypeRecord:
    code: str
    name: str
    equiv1: str = ""
    equiv2: str = ""
    body_loc1: str = ""
    body_loc2: str = ""
    can_be_magic: bool = False
    can_be_rare: bool = False
    max_sockets_normal: int = 0
    max_sockets_nightmare: int = 0
    max_sockets_hell: int = 0
    staff_mods: str = ""
    class_restriction: str = ""
    store_page: str = ""


@dataclass
class PropertyDefRecord:
    """properties.txt row: a property code and the stats it sets."""

    code: str
    enabled: bool = False
    stats: list[dict] = field(default_factory=list)
    tooltip: str = ""


@dataclass
class AffixRecord:
    name: str
    affix_type: str
    version: int = 0
    spawnable: bool = False
    rare: bool = False
    level: int = 0
    max_level: Optional[int] = None
    level_req: int = 0
    class_specific: str = ""
    class_level_req: int = 0
    frequency: int = 0
    affix_group: int = 0
    properties: list[PropertyAssignment] = field(default_factory=list)
    valid_item_types: list[str] = field(default_factory=list)
    excluded_item_types: list[str] = field(default_factory=list)
    transform_color: str = ""
    multiply: int = 0
    add_cost: int = 0


# ── Row conversion ──────────────────────────────────────


def _prop(
    row: Row,
    translator: PropertyTranslator,
    code_key: str,
    param_key: str,
    min_key: str,
    max_key: str,
) -> Optional[PropertyAssignment]:
    code = row.get_str(code_key)
    if not code:
        return None
    prop = PropertyAssignment(
        code=code,
        param=row.get_str(param_key),
        min=row.get_int(min_key),
        max=row.get_int(max_key),
    )
    return translator.enrich(prop)


def _props(row: Row, translator: PropertyTranslator, keys) -> list[PropertyAssignment]:
    props = []
    for code_key, param_key, min_key, max_key in keys:
        prop = _prop(row, translator, code_key, param_key, min_key, max_key)
        if prop is not None:
            props.append(prop)
    return combine_all_attributes(props, translator)


def _numbered_keys(count: int, start: int = 1):
    return [(f"prop{j}", f"par{j}", f"min{j}", f"max{j}") for j in range(start, count + 1)]


def _index_id(row: Row, position: int) -> int:
    index_id = row.get_int("*ID", -1)
    return index_id if index_id >= 0 else position


def parse_bases(table: TsvTable, category: str) -> list[BaseRecord]:
    """armor.txt / weapons.txt / misc.txt rows. Expansion placeholders are dropped."""
    bases = []
    for row in table.rows:
        code, name = row.get_str("code"), row.get_str("name")
        if not code or not name or name.startswith("Expansion") or name == "Not Used":
            continue
        name = NAME_OVERRIDES.get(code, name)
        bases.append(
            BaseRecord(
                code=code,
                name=name,
                category=category,
                item_type=row.get_str("type"),
                item_type2=row.get_str("type2"),
                level=row.get_int("level"),
                level_req=row.get_int("levelreq"),
                str_req=row.get_int("reqstr"),
                dex_req=row.get_int("reqdex"),
                durability=row.get_int("durability"),
                min_ac=row.get_int("minac"),
                max_ac=row.get_int("maxac"),
                min_dam=row.get_int("mindam"),
                max_dam=row.get_int("maxdam"),
                two_hand_min_dam=row.get_int("2handmindam"),
                two_hand_max_dam=row.get_int("2handmaxdam"),
                speed=row.get_int("speed"),
                max_sockets=row.get_int("gemsockets"),
                normal_code=row.get_str("normcode"),
                exceptional_code=row.get_str("ubercode"),
                elite_code=row.get_str("ultracode"),
                inv_file=row.get_str("invfile"),
                spawnable=row.get_bool("spawnable") or code in FORCE_SPAWNABLE_CODES,
                stackable=row.get_bool("stackable"),
                quest_item=row.get_int("quest") > 0,
            )
        )
    return bases


def parse_uniques(table: TsvTable, translator: PropertyTranslator) -> list[UniqueRecord]:
    uniques = []
    for position, row in enumerate(table.rows):
        name = row.get_str("index")
        if not name:
            continue
        uniques.append(
            UniqueRecord(
                index_id=_index_id(row, position),
                name=name,
                base_code=row.get_str("code"),
                base_name=row.get_str("*ItemName"),
                level=row.get_int("lvl"),
                level_req=row.get_int("lvl req"),
                enabled=row.get_bool("enabled"),
                ladder_only=row.get_int("firstLadderSeason") > 0,
                inv_file=row.get_str("invfile"),
                properties=_props(row, translator, _numbered_keys(12)),
            )
        )
    return uniques


def parse_set_items(table: TsvTable, translator: PropertyTranslator) -> list[SetItemRecord]:
    bonus_keys = [
        (f"aprop{j}{s}", f"apar{j}{s}", f"amin{j}{s}", f"amax{j}{s}")
        for j in range(1, 6)
        for s in ("a", "b")
    ]
    items = []
    for position, row in enumerate(table.rows):
        name = row.get_str("index")
        if not name:
            continue
        items.append(
            SetItemRecord(
                index_id=_index_id(row, position),
                name=name,
                set_name=row.get_str("set"),
                base_code=row.get_str("item"),
                base_name=row.get_str("*ItemName"),
                level=row.get_int("lvl"),
                level_req=row.get_int("lvl req"),
                inv_file=row.get_str("invfile"),
                properties=_props(row, translator, _numbered_keys(9)),
                bonus_properties=_props(row, translator, bonus_keys),
            )
        )
    return items


def parse_sets(table: TsvTable, translator: PropertyTranslator) -> list[SetRecord]:
    partial_keys = [
        (f"PCode{j}{s}", f"PParam{j}{s}", f"PMin{j}{s}", f"PMax{j}{s}")
        for j in range(2, 6)
        for s in ("a", "b")
    ]
    full_keys = [(f"FCode{j}", f"FParam{j}", f"FMin{j}", f"FMax{j}") for j in range(1, 9)]
    sets = []
    for position, row in enumerate(table.rows):
        name = row.get_str("name")
        if not name or name == "Expansion":
            continue
        sets.append(
            SetRecord(
                index_id=position,
                name=name,
                partial_bonuses=_props(row, translator, partial_keys),
                full_bonuses=_props(row, translator, full_keys),
            )
        )
    return sets


def parse_runewords(table: TsvTable, translator: PropertyTranslator) -> list[RunewordRecord]:
    """runes.txt rows. Incomplete runewords are dropped."""
    prop_keys = [(f"T1Code{j}", f"T1Param{j}", f"T1Min{j}", f"T1Max{j}") for j in range(1, 8)]
    runewords = []
    for row in table.rows:
        name = row.get_str("Name")
        if not name or not row.get_bool("complete"):
            continue
        runewords.append(
            RunewordRecord(
                name=name,
                display_name=row.get_str("*Rune Name", name),
                runes=[r for j in range(1, 7) if (r := row.get_str(f"Rune{j}"))],
                valid_item_types=[t for j in range(1, 7) if (t := row.get_str(f"itype{j}"))],
                excluded_item_types=[t for j in range(1, 4) if (t := row.get_str(f"etype{j}"))],
                ladder_only=row.get_int("firstLadderSeason") > 0,
                properties=_props(row, translator, prop_keys),
            )
        )
    return runewords


def parse_socket_mods(row: Row, translator: PropertyTranslator) -> SocketMods:
    """weaponMod1..3 / helmMod1..3 / shieldMod1..3 columns of gems.txt."""

    def slot(prefix: str) -> list[PropertyAssignment]:
        mods = []
        for j in range(1, 4):
            prop = _prop(
                row,
                translator,
                f"{prefix}Mod{j}Code",
                f"{prefix}Mod{j}Param",
                f"{prefix}Mod{j}Min",
                f"{prefix}Mod{j}Max",
            )
            if prop is not None:
                mods.append(prop)
        return mods

    return SocketMods(weapon=slot("weapon"), helm=slot("helm"), shield=slot("shield"))


def parse_runes(
    misc: TsvTable,
    gems: Optional[TsvTable],
    translator: PropertyTranslator,
) -> list[RuneRecord]:
    """Runes are misc.txt rows of type "rune"; socket mods come from gems.txt."""
    mods_by_code: dict[str, SocketMods] = {}
    if gems is not None:
        for row in gems.rows:
            code = row.get_str("code")
            if code and "Rune" in row.get_str("name"):
                mods_by_code[code] = parse_socket_mods(row, translator)

    runes = []
    for row in misc.rows:
        name, code = row.get_str("name"), row.get_str("code")
        if row.get_str("type") != "rune" or "Rune" not in name:
            continue
        runes.append(
            RuneRecord(
                code=code,
                name=name,
                rune_number=len(runes) + 1,
                level=row.get_int("level"),
                level_req=row.get_int("levelreq"),
                inv_file=row.get_str("invfile"),
                mods=mods_by_code.get(code, SocketMods()),
            )
        )
    return runes


def parse_gem_name_parts(name: str) -> tuple[str, str]:
    """(gem_type, quality) from a gem name such as "Flawless Ruby"."""
    lowered = name.lower()
    quality = "normal"
    for prefix in ("chipped", "flawed", "flawless", "perfect"):
        if lowered.startswith(prefix):
            quality = prefix
            break
    gem_type = "unknown"
    for kind in ("amethyst", "sapphire", "emerald", "ruby", "diamond", "topaz", "skull"):
        if kind in lowered:
            gem_type = kind
            break
    return gem_type, quality


def parse_gems(table: TsvTable, translator: PropertyTranslator) -> list[GemRecord]:
    gems = []
    for row in table.rows:
        name, code = row.get_str("name"), row.get_str("code")
        if not name or not code or "Rune" in name:
            continue
        gem_type, quality = parse_gem_name_parts(name)
        gems.append(
            GemRecord(
                code=code,
                name=name,
                gem_type=gem_type,
                quality=quality,
                transform=row.get_int("transform"),
                mods=parse_socket_mods(row, translator),
            )
        )
    return gems


def parse_item_types(table: TsvTable) -> list[ItemTypeRecord]:
    """itemtypes.txt rows. Rows without a code, or with code "none", are dropped."""
    types = []
    for row in table.rows:
        code = row.get_str("Code")
        if not code or code == "none":
            continue
        types.append(
            ItemTypeRecord(
                code=code,
                name=row.get_str("ItemType", code),
                equiv1=row.get_str("Equiv1"),
                equiv2=row.get_str("Equiv2"),
                body_loc1=row.get_str("BodyLoc1"),
                body_loc2=row.get_str("BodyLoc2"),
                can_be_magic=row.get_bool("Magic"),
                can_be_rare=row.get_bool("Rare"),
                max_sockets_normal=row.get_int("MaxSockets1"),
                max_sockets_nightmare=row.get_int("MaxSockets2"),
                max_sockets_hell=row.get_int("MaxSockets3"),
                staff_mods=row.get_str("StaffMods"),
                class_restriction=row.get_str("Class"),
                store_page=row.get_str("StorePage"),
            )
        )
    return types


def parse_properties(table: TsvTable) -> list[PropertyDefRecord]:
    """properties.txt rows; stat slots with neither func nor stat are left out."""
    props = []
    for row in table.rows:
        code = row.get_str("code")
        if not code:
            continue
        stats = []
        for j in range(1, 8):
            func, stat = row.get_int(f"func{j}"), row.get_str(f"stat{j}")
            if func or stat:
                stats.append({"func": func, "stat": stat})
        props.append(
            PropertyDefRecord(
                code=code,
                enabled=row.get_bool("*Enabled"),
                stats=stats,
                tooltip=row.get_str("*Tooltip"),
            )
        )
    return props


def parse_affixes(
    table: TsvTable, affix_type: str, translator: PropertyTranslator
) -> list[AffixRecord]:
    """magicprefix.txt / magicsuffix.txt rows."""
    mod_keys = [(f"mod{j}code", f"mod{j}param", f"mod{j}min", f"mod{j}max") for j in range(1, 4)]
    affixes = []
    for row in table.rows:
        name = row.get_str("Name")
        if not name:
            continue
        max_level = row.get_int("maxlevel")
        affixes.append(
            AffixRecord(
                name=name,
                affix_type=affix_type,
                version=row.get_int("version"),
                spawnable=row.get_bool("spawnable"),
                rare=row.get_bool("rare"),
                level=row.get_int("level"),
                max_level=max_level if max_level > 0 else None,
                level_req=row.get_int("levelreq"),
                class_specific=row.get_str("classspecific"),
                class_level_req=row.get_int("classlevelreq"),
                frequency=row.get_int("frequency"),
                affix_group=row.get_int("group"),
                properties=_props(row, translator, mod_keys),
                valid_item_types=[t for j in range(1, 8) if (t := row.get_str(f"itype{j}"))],
                excluded_item_types=[t for j in range(1, 6) if (t := row.get_str(f"etype{j}"))],
                transform_color=row.get_str("transformcolor"),
                multiply=row.get_int("multiply"),
                add_cost=row.get_int("add"),
            )
        )
    return affixes
