"""Game property format table and the forward translator (code + values -> text)."""

from __future__ import annotations

from ..catalog.models import PropertyAssignment

# Placeholders: {value}, {min}, {max}, {param}, {skilltab}
PROPERTY_FORMATS: dict[str, str] = {
    # Skills
    "allskills": "+{value} To All Skills",
    "skill": "+{value} To {param}",
    "skilltab": "+{value} To {skilltab}",
    "aura": "Level {value} {param} Aura When Equipped",
    "oskill": "+{value} To {param}",
    "charged": "Level {min} {param} ({max} Charges)",
    # Class skills
    "ama": "+{value} To Amazon Skill Levels",
    "sor": "+{value} To Sorceress Skill Levels",
    "nec": "+{value} To Necromancer Skill Levels",
    "pal": "+{value} To Paladin Skill Levels",
    "bar": "+{value} To Barbarian Skill Levels",
    "dru": "+{value} To Druid Skill Levels",
    "ass": "+{value} To Assassin Skill Levels",
    "randclassskill": "+{value} To Random Character Class Skills",
    # Attributes
    "str": "+{value} To Strength",
    "dex": "+{value} To Dexterity",
    "vit": "+{value} To Vitality",
    "enr": "+{value} To Energy",
    "all-stats": "+{value} To All Attributes",
    # Life / mana
    "hp": "+{value} To Life",
    "mana": "+{value} To Mana",
    "hp%": "+{value}% To Life",
    "mana%": "+{value}% To Mana",
    "regen-mana": "Regenerate Mana {value}%",
    "regen": "Replenish Life +{value}",
    # Defense
    "ac": "+{value} Defense",
    "ac%": "+{value}% Enhanced Defense",
    "ac-miss": "+{value} Defense vs. Missile",
    "red-dmg": "Damage Reduced By {value}",
    "red-dmg%": "Damage Reduced By {value}%",
    "red-mag": "Magic Damage Reduced By {value}",
    # Damage
    "dmg%": "+{value}% Enhanced Damage",
    "dmg": "+{value} Damage",
    "dmg-min": "+{value} To Minimum Damage",
    "dmg-max": "+{value} To Maximum Damage",
    "ltng-min": "+{value} To Minimum Lightning Damage",
    "ltng-max": "+{value} To Maximum Lightning Damage",
    "fire-min": "+{value} To Minimum Fire Damage",
    "fire-max": "+{value} To Maximum Fire Damage",
    "cold-min": "+{value} To Minimum Cold Damage",
    "cold-max": "+{value} To Maximum Cold Damage",
    "pois-min": "+{value} To Minimum Poison Damage",
    "pois-max": "+{value} To Maximum Poison Damage",
    "mag-min": "+{value} To Minimum Magic Damage",
    "mag-max": "+{value} To Maximum Magic Damage",
    "dmg-norm": "Adds {min}-{max} Damage",
    "dmg-fire": "Adds {min}-{max} Fire Damage",
    "dmg-cold": "Adds {min}-{max} Cold Damage",
    "dmg-ltng": "Adds {min}-{max} Lightning Damage",
    "dmg-pois": "+{value} Poison Damage Over {param} Seconds",
    "dmg-mag": "Adds {min}-{max} Magic Damage",
    "extra-fire": "+{value}% To Fire Skill Damage",
    "extra-cold": "+{value}% To Cold Skill Damage",
    "extra-ltng": "+{value}% To Lightning Skill Damage",
    "extra-pois": "+{value}% To Poison Skill Damage",
    # Attack rating
    "att": "+{value} To Attack Rating",
    "att%": "+{value}% To Attack Rating",
    "att-demon": "+{value} To Attack Rating Against Demons",
    "att-undead": "+{value} To Attack Rating Against Undead",
    # Speed
    "swing1": "+{value}% Increased Attack Speed",
    "swing2": "+{value}% Increased Attack Speed",
    "swing3": "+{value}% Increased Attack Speed",
    "cast1": "+{value}% Faster Cast Rate",
    "cast2": "+{value}% Faster Cast Rate",
    "cast3": "+{value}% Faster Cast Rate",
    "move1": "+{value}% Faster Run/Walk",
    "move2": "+{value}% Faster Run/Walk",
    "move3": "+{value}% Faster Run/Walk",
    "block": "+{value}% Faster Block Rate",
    "block1": "+{value}% Faster Block Rate",
    "block2": "+{value}% Faster Block Rate",
    "block3": "+{value}% Faster Block Rate",
    "balance1": "+{value}% Faster Hit Recovery",
    "balance2": "+{value}% Faster Hit Recovery",
    "balance3": "+{value}% Faster Hit Recovery",
    # Resistances
    "res-fire": "Fire Resist +{value}%",
    "res-cold": "Cold Resist +{value}%",
    "res-ltng": "Lightning Resist +{value}%",
    "res-pois": "Poison Resist +{value}%",
    "res-all": "All Resistances +{value}",
    "res-mag": "Magic Resist +{value}%",
    "abs-fire": "+{value} Fire Absorb",
    "abs-cold": "+{value} Cold Absorb",
    "abs-ltng": "+{value} Lightning Absorb",
    "abs-fire%": "{value}% Fire Absorb",
    "abs-cold%": "{value}% Cold Absorb",
    "abs-ltng%": "{value}% Lightning Absorb",
    # Pierce
    "pierce-fire": "-{value}% To Enemy Fire Resistance",
    "pierce-cold": "-{value}% To Enemy Cold Resistance",
    "pierce-ltng": "-{value}% To Enemy Lightning Resistance",
    "pierce-pois": "-{value}% To Enemy Poison Resistance",
    # Sunder charms
    "pierce-immunity-cold": "Monster Cold Immunity is Sundered",
    "pierce-immunity-fire": "Monster Fire Immunity is Sundered",
    "pierce-immunity-light": "Monster Lightning Immunity is Sundered",
    "pierce-immunity-poison": "Monster Poison Immunity is Sundered",
    "pierce-immunity-damage": "Monster Physical Immunity is Sundered",
    "pierce-immunity-magic": "Monster Magic Immunity is Sundered",
    # Leech
    "lifesteal": "{value}% Life Stolen Per Hit",
    "manasteal": "{value}% Mana Stolen Per Hit",
    # Kill bonuses
    "hp/kill": "+{value} Life After Each Kill",
    "mana/kill": "+{value} Mana After Each Kill",
    "heal-kill": "+{value} Life After Each Kill",
    "mana-kill": "+{value} Mana After Each Kill",
    "hp/lvl": "+{value} To Life (Based On Character Level)",
    "mana/lvl": "+{value} To Mana (Based On Character Level)",
    # Magic find
    "mag%": "+{value}% Better Chance Of Getting Magic Items",
    "gold%": "+{value}% Extra Gold From Monsters",
    # Other
    "light": "+{value} To Light Radius",
    "thorns": "Attacker Takes Damage Of {value}",
    "nofreeze": "Cannot Be Frozen",
    "half-freeze": "Half Freeze Duration",
    "ignore-ac": "Ignore Target's Defense",
    "knock": "Knockback",
    "slow": "Slows Target By {value}%",
    "howl": "Hit Causes Monster To Flee {value}%",
    "stupidity": "Hit Blinds Target +{value}",
    "crush": "{value}% Chance Of Crushing Blow",
    "deadly": "{value}% Deadly Strike",
    "openwounds": "{value}% Chance Of Open Wounds",
    "dmg-demon": "+{value}% Damage To Demons",
    "dmg-undead": "+{value}% Damage To Undead",
    "indestruct": "Indestructible",
    "ethereal": "Ethereal (Cannot Be Repaired)",
    "sock": "Socketed ({value})",
    "rep-dur": "Repairs 1 Durability In {value} Seconds",
    "rep-quant": "Replenishes Quantity",
    "stack": "+{value} To Maximum Quantity",
    "bloody": "Slain Monsters Rest In Peace",
    # Per level
    "str/lvl": "+{value} To Strength (Based On Character Level)",
    "dex/lvl": "+{value} To Dexterity (Based On Character Level)",
    "vit/lvl": "+{value} To Vitality (Based On Character Level)",
    "enr/lvl": "+{value} To Energy (Based On Character Level)",
    "ac/lvl": "+{value} Defense (Based On Character Level)",
    "ac%/lvl": "+{value}% Enhanced Defense (Based On Character Level)",
    "dmg%/lvl": "+{value}% Enhanced Damage (Based On Character Level)",
    "dmg/lvl": "+{value} To Maximum Damage (Based On Character Level)",
    "att/lvl": "+{value} To Attack Rating (Based On Character Level)",
    "att%/lvl": "+{value}% To Attack Rating (Based On Character Level)",
    "teleport": "+1 To Teleport",
    "exp": "+{value}% To Experience Gained",
    "ease": "Requirements -{value}%",
    "dmg-ac": "{value}% Damage Taken Goes To Mana",
    # Skill procs: min = chance %, max = skill level, param = skill name
    "hit-skill": "{min}% Chance To Cast Level {max} {param} On Striking",
    "gethit-skill": "{min}% Chance To Cast Level {max} {param} When Struck",
    "kill-skill": "{min}% Chance To Cast Level {max} {param} On Kill",
    "death-skill": "{min}% Chance To Cast Level {max} {param} On Death",
    "levelup-skill": "{min}% Chance To Cast Level {max} {param} On Level Up",
    "att-skill": "{min}% Chance To Cast Level {max} {param} On Attack",
    "noheal": "Prevent Monster Heal",
    "dur": "+{value} To Maximum Durability",
    "stamdrain": "+{value}% Slower Stamina Drain",
    "addxp": "+{value}% To Experience Gained",
}

SKILL_TABS: dict[int, str] = {
    0: "Bow and Crossbow Skills",
    1: "Passive and Magic Skills",
    2: "Javelin and Spear Skills",
    3: "Fire Skills",
    4: "Lightning Skills",
    5: "Cold Skills",
    6: "Curses",
    7: "Poison and Bone Skills",
    8: "Summoning Skills",
    9: "Combat Skills",
    10: "Offensive Auras",
    11: "Defensive Auras",
    12: "Combat Skills",
    13: "Masteries",
    14: "Warcries",
    15: "Summoning Skills",
    16: "Shape Shifting Skills",
    17: "Elemental Skills",
    18: "Traps",
    19: "Shadow Disciplines",
    20: "Martial Arts",
}

# min/max on these carry chance/level/charges or a per-hit damage range,
# not an item roll range.
FIXED_VALUE_CODES: frozenset[str] = frozenset(
    {
        "hit-skill",
        "gethit-skill",
        "kill-skill",
        "death-skill",
        "levelup-skill",
        "att-skill",
        "charged",
        "dmg-norm",
        "dmg-fire",
        "dmg-cold",
        "dmg-ltng",
        "dmg-mag",
        "dmg-pois",
        "pierce-immunity-cold",
        "pierce-immunity-fire",
        "pierce-immunity-light",
        "pierce-immunity-poison",
        "pierce-immunity-damage",
        "pierce-immunity-magic",
    }
)

# Codes whose identity depends on param (the skill or tab); never auto-registered.
PARAMETRIC_CODES: frozenset[str] = frozenset(
    {
        "skill",
        "oskill",
        "aura",
        "charged",
        "skilltab",
        "hit-skill",
        "gethit-skill",
        "kill-skill",
        "death-skill",
        "levelup-skill",
        "att-skill",
    }
)

PER_LEVEL_CODES: tuple[str, ...] = tuple(
    code for code in PROPERTY_FORMATS if code.endswith("/lvl")
)


def reverse_skill_tabs() -> dict[str, int]:
    """Lower-cased tab name -> tab number. Shared names resolve to the later tab."""
    tabs = {name.lower(): num for num, name in sorted(SKILL_TABS.items())}
    tabs["psychic skill tab"] = 21
    return tabs


def _format_range(low: int, high: int) -> str:
    if low > high:
        low, high = high, low
    if low < 0 and high < 0:
        return f"-({-high}-{-low})"
    return f"{low}-{high}"


class PropertyTranslator:
    """Renders PropertyAssignments as display text."""

    def __init__(
        self,
        formats: dict[str, str] | None = None,
        skill_tabs: dict[int, str] | None = None,
    ) -> None:
        self._formats = dict(PROPERTY_FORMATS if formats is None else formats)
        self._skill_tabs = dict(SKILL_TABS if skill_tabs is None else skill_tabs)

    @property
    def formats(self) -> dict[str, str]:
        return dict(self._formats)

    def translate(self, prop: PropertyAssignment) -> str:
        template = self._formats.get(prop.code)
        if template is None:
            if prop.min == prop.max:
                return f"{prop.code}: {prop.min}"
            return f"{prop.code}: {_format_range(prop.min, prop.max)}"

        if prop.min == prop.max:
            value = str(prop.min)
            negative = prop.min < 0
        else:
            value = _format_range(prop.min, prop.max)
            negative = min(prop.min, prop.max) < 0

        if negative and "+{value}" in template:
            text = template.replace("+{value}", value)
        else:
            text = template.replace("{value}", value)

        text = text.replace("{min}", str(prop.min)).replace("{max}", str(prop.max))

        if "{skilltab}" in text and prop.param:
            try:
                tab_name = self._skill_tabs.get(int(prop.param), prop.param)
            except ValueError:
                tab_name = prop.param
            text = text.replace("{skilltab}", tab_name)

        if prop.param:
            text = text.replace("{param}", prop.param)
        return text

    def enrich(self, prop: PropertyAssignment) -> PropertyAssignment:
        """Fill display_text and has_range in place and return the same object."""
        prop.display_text = self.translate(prop)
        prop.has_range = prop.code not in FIXED_VALUE_CODES and prop.min != prop.max
        return prop
