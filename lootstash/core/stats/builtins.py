"""Built-in filterable stat catalog used to seed the stats table."""

from __future__ import annotations

from ..catalog.models import StatCode

# UI ordering of stat categories. Categories not listed sort with "Other".
STAT_CATEGORIES: tuple[str, ...] = (
    "Skills",
    "Skill Trees",
    "Attributes",
    "Life & Mana",
    "Speed",
    "Resistances",
    "Absorb",
    "Damage",
    "Attack",
    "Leech",
    "Combat",
    "Magic Find",
    "Other",
)

CLASS_NAMES: dict[str, str] = {
    "ama": "Amazon",
    "sor": "Sorceress",
    "nec": "Necromancer",
    "pal": "Paladin",
    "bar": "Barbarian",
    "dru": "Druid",
    "ass": "Assassin",
}


def _stat(
    code: str,
    name: str,
    description: str,
    category: str,
    aliases: tuple[str, ...] = (),
    is_variable: bool = True,
) -> StatCode:
    return StatCode(
        code=code,
        name=name,
        description=description,
        category=category,
        aliases=aliases,
        is_variable=is_variable,
    )


def _tree(code: str, name: str, label: str, class_code: str) -> StatCode:
    return _stat(
        code,
        name,
        f"+{{value}} To {label} ({CLASS_NAMES[class_code]} Only)",
        "Skill Trees",
    )


def _numbered(prefix: str) -> tuple[str, ...]:
    return tuple(f"{prefix}{i}" for i in (1, 2, 3))


BUILTIN_STATS: tuple[StatCode, ...] = (
    # Skills
    _stat("allskills", "All Skills", "+{value} To All Skills", "Skills"),
    *(
        _stat(code, f"{name} Skills", f"+{{value}} To {name} Skill Levels", "Skills")
        for code, name in CLASS_NAMES.items()
    ),
    # Skill trees
    _tree("ama-bow", "Bow and Crossbow", "Bow and Crossbow Skills", "ama"),
    _tree("ama-passive", "Passive and Magic", "Passive and Magic Skills", "ama"),
    _tree("ama-javelin", "Javelin and Spear", "Javelin and Spear Skills", "ama"),
    _tree("sor-fire", "Fire Skills", "Fire Skills", "sor"),
    _tree("sor-lightning", "Lightning Skills", "Lightning Skills", "sor"),
    _tree("sor-cold", "Cold Skills", "Cold Skills", "sor"),
    _tree("nec-curses", "Curses", "Curses", "nec"),
    _tree("nec-poisonbone", "Poison and Bone", "Poison and Bone Skills", "nec"),
    _tree("nec-summon", "Summoning Skills", "Summoning Skills", "nec"),
    _tree("pal-combat", "Combat Skills", "Combat Skills", "pal"),
    _tree("pal-offensive", "Offensive Auras", "Offensive Auras", "pal"),
    _tree("pal-defensive", "Defensive Auras", "Defensive Auras", "pal"),
    _tree("bar-combat", "Combat Skills", "Combat Skills", "bar"),
    _tree("bar-masteries", "Masteries", "Masteries", "bar"),
    _tree("bar-warcries", "Warcries", "Warcries", "bar"),
    _tree("dru-summon", "Summoning Skills", "Summoning Skills", "dru"),
    _tree("dru-shapeshifting", "Shape Shifting", "Shape Shifting Skills", "dru"),
    _tree("dru-elemental", "Elemental Skills", "Elemental Skills", "dru"),
    _tree("ass-traps", "Traps", "Traps", "ass"),
    _tree("ass-shadow", "Shadow Disciplines", "Shadow Disciplines", "ass"),
    _tree("ass-martial", "Martial Arts", "Martial Arts", "ass"),
    # Attributes
    _stat("str", "Strength", "+{value} To Strength", "Attributes"),
    _stat("dex", "Dexterity", "+{value} To Dexterity", "Attributes"),
    _stat("vit", "Vitality", "+{value} To Vitality", "Attributes"),
    _stat("enr", "Energy", "+{value} To Energy", "Attributes"),
    _stat("all-stats", "All Attributes", "+{value} To All Attributes", "Attributes"),
    # Life & Mana
    _stat("hp", "Life", "+{value} To Life", "Life & Mana"),
    _stat("mana", "Mana", "+{value} To Mana", "Life & Mana"),
    _stat("hp%", "Life %", "+{value}% To Life", "Life & Mana"),
    _stat("mana%", "Mana %", "+{value}% To Mana", "Life & Mana"),
    _stat("regen-mana", "Mana Regen", "Regenerate Mana {value}%", "Life & Mana"),
    _stat("regen", "Replenish Life", "Replenish Life +{value}", "Life & Mana"),
    # Speed: game data uses numbered variants
    _stat("fcr", "Faster Cast Rate", "+{value}% Faster Cast Rate", "Speed", _numbered("cast")),
    _stat("ias", "Increased Attack Speed", "+{value}% Increased Attack Speed", "Speed", _numbered("swing")),
    _stat("frw", "Faster Run/Walk", "+{value}% Faster Run/Walk", "Speed", _numbered("move")),
    _stat("fhr", "Faster Hit Recovery", "+{value}% Faster Hit Recovery", "Speed", _numbered("balance")),
    _stat("block", "Faster Block Rate", "+{value}% Faster Block Rate", "Speed", _numbered("block")),
    # Resistances
    _stat("fire_res", "Fire Resist", "Fire Resist +{value}%", "Resistances", ("res-fire",)),
    _stat("cold_res", "Cold Resist", "Cold Resist +{value}%", "Resistances", ("res-cold",)),
    _stat("light_res", "Lightning Resist", "Lightning Resist +{value}%", "Resistances", ("res-ltng",)),
    _stat("poison_res", "Poison Resist", "Poison Resist +{value}%", "Resistances", ("res-pois",)),
    _stat("all_res", "All Resistances", "All Resistances +{value}", "Resistances", ("res-all",)),
    _stat("res-mag", "Magic Resist", "Magic Resist +{value}%", "Resistances"),
    # Absorb
    _stat("abs-fire", "Fire Absorb", "+{value} Fire Absorb", "Absorb"),
    _stat("abs-cold", "Cold Absorb", "+{value} Cold Absorb", "Absorb"),
    _stat("abs-ltng", "Lightning Absorb", "+{value} Lightning Absorb", "Absorb"),
    _stat("abs-fire%", "Fire Absorb %", "{value}% Fire Absorb", "Absorb"),
    _stat("abs-cold%", "Cold Absorb %", "{value}% Cold Absorb", "Absorb"),
    _stat("abs-ltng%", "Lightning Absorb %", "{value}% Lightning Absorb", "Absorb"),
    # Damage
    _stat("ed", "Enhanced Damage", "+{value}% Enhanced Damage", "Damage", ("dmg%",)),
    _stat("dmg-min", "Minimum Damage", "+{value} To Minimum Damage", "Damage"),
    _stat("dmg-max", "Maximum Damage", "+{value} To Maximum Damage", "Damage"),
    _stat("dmg-demon", "Damage to Demons", "+{value}% Damage To Demons", "Damage"),
    _stat("dmg-undead", "Damage to Undead", "+{value}% Damage To Undead", "Damage"),
    _stat("extra-fire", "Fire Skill Damage", "+{value}% To Fire Skill Damage", "Damage"),
    _stat("extra-cold", "Cold Skill Damage", "+{value}% To Cold Skill Damage", "Damage"),
    _stat("extra-ltng", "Lightning Skill Damage", "+{value}% To Lightning Skill Damage", "Damage"),
    _stat("extra-pois", "Poison Skill Damage", "+{value}% To Poison Skill Damage", "Damage"),
    # Attack
    _stat("ar", "Attack Rating", "+{value} To Attack Rating", "Attack", ("att", "att%")),
    _stat("att-demon", "AR vs Demons", "+{value} To Attack Rating Against Demons", "Attack"),
    _stat("att-undead", "AR vs Undead", "+{value} To Attack Rating Against Undead", "Attack"),
    _stat("ignore-ac", "Ignore Defense", "Ignore Target's Defense", "Attack", is_variable=False),
    # Defense
    _stat("ac", "Defense", "+{value} Defense", "Defense"),
    _stat("ac%", "Enhanced Defense", "+{value}% Enhanced Defense", "Defense"),
    _stat("red-dmg", "Damage Reduced", "Damage Reduced By {value}", "Defense"),
    _stat("red-dmg%", "Damage Reduced %", "Damage Reduced By {value}%", "Defense"),
    _stat("red-mag", "Magic Damage Reduced", "Magic Damage Reduced By {value}", "Defense"),
    # Leech
    _stat("life_steal", "Life Steal", "{value}% Life Stolen Per Hit", "Leech", ("lifesteal",)),
    _stat("mana_steal", "Mana Steal", "{value}% Mana Stolen Per Hit", "Leech", ("manasteal",)),
    _stat("hp/kill", "Life per Kill", "+{value} Life After Each Kill", "Leech"),
    _stat("mana/kill", "Mana per Kill", "+{value} Mana After Each Kill", "Leech"),
    # Combat
    _stat("crushing_blow", "Crushing Blow", "{value}% Chance Of Crushing Blow", "Combat", ("crush",)),
    _stat("deadly_strike", "Deadly Strike", "{value}% Deadly Strike", "Combat", ("deadly",)),
    _stat("open_wounds", "Open Wounds", "{value}% Chance Of Open Wounds", "Combat", ("openwounds",)),
    _stat("knock", "Knockback", "Knockback", "Combat", is_variable=False),
    _stat("slow", "Slow Target", "Slows Target By {value}%", "Combat"),
    _stat("noheal", "Prevent Monster Heal", "Prevent Monster Heal", "Combat", is_variable=False),
    # Magic find and gold
    _stat("mf", "Magic Find", "+{value}% Better Chance Of Getting Magic Items", "Magic Find", ("mag%",)),
    _stat("gf", "Gold Find", "+{value}% Extra Gold From Monsters", "Magic Find", ("gold%",)),
    # Pierce
    _stat("pierce-fire", "Fire Pierce", "-{value}% To Enemy Fire Resistance", "Pierce"),
    _stat("pierce-cold", "Cold Pierce", "-{value}% To Enemy Cold Resistance", "Pierce"),
    _stat("pierce-ltng", "Lightning Pierce", "-{value}% To Enemy Lightning Resistance", "Pierce"),
    _stat("pierce-pois", "Poison Pierce", "-{value}% To Enemy Poison Resistance", "Pierce"),
    # Other
    _stat("sock", "Sockets", "Socketed ({value})", "Other"),
    _stat("nofreeze", "Cannot Be Frozen", "Cannot Be Frozen", "Other", is_variable=False),
    _stat("half-freeze", "Half Freeze Duration", "Half Freeze Duration", "Other", is_variable=False),
    _stat("indestruct", "Indestructible", "Indestructible", "Other", is_variable=False),
    _stat("ethereal", "Ethereal", "Ethereal (Cannot Be Repaired)", "Other", is_variable=False),
    _stat("light", "Light Radius", "+{value} To Light Radius", "Other"),
    _stat("thorns", "Thorns", "Attacker Takes Damage Of {value}", "Other"),
    _stat("ease", "Requirements", "Requirements -{value}%", "Other"),
    _stat("exp", "Experience", "+{value}% To Experience Gained", "Other"),
)


def category_index(category: str) -> int:
    """Position of a category in STAT_CATEGORIES; unknown ones share the "Other" slot."""
    try:
        return STAT_CATEGORIES.index(category)
    except ValueError:
        return STAT_CATEGORIES.index("Other")


def builtin_sort_orders() -> dict[str, int]:
    """code -> category_index * 100 + position within that category."""
    positions: dict[str, int] = {}
    orders: dict[str, int] = {}
    for stat in BUILTIN_STATS:
        slot = category_index(stat.category)
        position = positions.get(stat.category, 0)
        positions[stat.category] = position + 1
        orders[stat.code] = slot * 100 + position
    return orders
