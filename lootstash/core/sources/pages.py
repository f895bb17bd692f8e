"""Scraped catalog pages (base/misc/uniques/sets/runewords .html) parsed with BeautifulSoup."""

from __future__ import annotations

import logging
import re
from dataclasses import dataclass, field
from pathlib import Path
from typing import Optional

from bs4 import BeautifulSoup, NavigableString, Tag

from ..catalog.names import normalize_display_name

logger = logging.getLogger(__name__)

PARSER = "html.parser"

ARTICLE_SELECTOR = "article.element-item"
NAME_SELECTOR = "h3.z-sort-name a"

# Base item stat spans; never part of an item's property list.
BASE_STAT_CLASSES = (
    "zso_defense",
    "zso_throwdamage",
    "zso_twohdamage",
    "zso_onehdamage",
    "zso_basespeed",
    "zso_durability",
    "zso_rqstr",
    "zso_rqdex",
    "zso_rqlevel",
    "zso_qualitylvl",
    "zso_trclass",
    "zso_maxsock",
    "zso_baseblock",
)
LABEL_CLASSES = ("z-white", "z-hidden", "z-grey")

BASE_STAT_LABELS = (
    "Defense:",
    "1H damage:",
    "2H damage:",
    "Throw damage:",
    "Base speed:",
    "Durability:",
    "Req Strength:",
    "Req Dexterity:",
    "Req level:",
    "Quality level:",
    "Treasure class:",
    "Max sockets:",
    "Base block:",
    "Class block:",
)
SKIP_PREFIXES = ("Part of set:", "Patch ", "Class block:", "Weight:")
CLASS_BLOCK_LINE = re.compile(r"^(Ama|Sor|Nec|Pal|Bar|Dru|Ass|War):\s*\d+%?$")
SET_ITEM_COUNT = re.compile(r"\((\d+) set items?\)")
RANGE_TO = re.compile(r"(\d+)\s+to\s+(\d+)")
SOCKET_TEXT = re.compile(r"can have \d+ sockets?", re.IGNORECASE)

MISC_SUBCATEGORIES = (
    "Small Charm",
    "Large Charm",
    "Grand Charm",
    "Jewel",
    "Key",
    "Essence",
    "Miscellaneous Item",
)

# Earliest match in the hidden type text is the most specific type.
KNOWN_TYPES = (
    "Melee Weapons", "Missile Weapons", "Body Armor", "Amazon Weapons",
    "Druid Pelts", "Barbarian Helms", "Necromancer Shields", "Shrunken Heads",
    "Paladin Shields", "Grimoires", "Swords", "Axes", "Maces", "Polearms",
    "Staves", "Scepters", "Wands", "Bows", "Crossbows", "Daggers", "Throwing",
    "Javelins", "Spears", "Claws", "Orbs", "Hammers", "Clubs", "Circlets",
    "Targes", "Shields", "Helms", "Gloves", "Boots", "Belts", "Weapons",
)

TYPE_NAME_TO_CODE = {
    "Body Armor": "tors",
    "Helms": "helm",
    "Shields": "shie",
    "Swords": "swor",
    "Axes": "axe",
    "Maces": "mace",
    "Polearms": "pole",
    "Staves": "staf",
    "Scepters": "scep",
    "Wands": "wand",
    "Bows": "bow",
    "Crossbows": "xbow",
    "Daggers": "knif",
    "Throwing": "tkni",
    "Javelins": "jave",
    "Spears": "spea",
    "Claws": "h2h",
    "Orbs": "orb",
    "Amazon Weapons": "amaz",
    "Hammers": "hamm",
    "Clubs": "club",
    "Weapons": "weap",
    "Missile Weapons": "miss",
    "Melee Weapons": "mele",
    "Gloves": "glov",
    "Boots": "boot",
    "Belts": "belt",
    "Circlets": "circ",
    "Druid Pelts": "pelt",
    "Barbarian Helms": "phlm",
    "Necromancer Shields": "head",
    "Shrunken Heads": "head",
    "Paladin Shields": "ashd",
    "Targes": "ashd",
    "Grimoires": "grim",
}


# ── Parsed page items ───────────────────────────────────


@dataclass
class PageItem:
    """Name and image path of any article; used for image mappings."""

    name: str
    image_path: str
    normalized_key: str


@dataclass
class PageUnique:
    name: str
    base_name: str = ""
    quality: str = ""
    req_level: int = 0
    quality_level: int = 0
    properties: list[str] = field(default_factory=list)
    image_path: str = ""


@dataclass
class SetBonusLine:
    text: str
    item_count: int = 0


@dataclass
class PageSetItem:
    name: str
    set_name: str = ""
    base_name: str = ""
    quality: str = ""
    req_level: int = 0
    quality_level: int = 0
    properties: list[str] = field(default_factory=list)
    set_bonuses: list[SetBonusLine] = field(default_factory=list)
    image_path: str = ""


@dataclass
class PageFullSet:
    name: str
    partial_bonuses: list[str] = field(default_factory=list)
    full_bonuses: list[str] = field(default_factory=list)


@dataclass(frozen=True)
class PageVariant:
    """Link from a base article to the same base in another tier."""

    name: str
    tier: str  # Normal, Exceptional, Elite


@dataclass
class PageBase:
    name: str
    tier: str = "Normal"
    type_name: str = ""
    type_name2: str = ""
    url_slug: str = ""
    image_path: str = ""
    defense_min: int = 0
    defense_max: int = 0
    one_hand_min: int = 0
    one_hand_max: int = 0
    two_hand_min: int = 0
    two_hand_max: int = 0
    speed: int = 0
    durability: int = 0
    req_str: int = 0
    req_dex: int = 0
    req_level: int = 0
    quality_level: int = 0
    max_sockets: int = 0
    variants: list[PageVariant] = field(default_factory=list)

    @property
    def category(self) -> str:
        if self.defense_max > 0:
            return "armor"
        if self.one_hand_max > 0 or self.two_hand_max > 0:
            return "weapon"
        return "misc"


@dataclass
class PageMods:
    weapon: list[str] = field(default_factory=list)
    helm: list[str] = field(default_factory=list)
    shield: list[str] = field(default_factory=list)


@dataclass
class PageRune:
    name: str
    image_path: str = ""
    level: int = 0
    rune_index: int = 0
    mods: PageMods = field(default_factory=PageMods)


@dataclass
class PageGem:
    name: str
    image_path: str = ""
    mods: PageMods = field(default_factory=PageMods)


@dataclass
class PageMiscItem:
    name: str
    sub_category: str
    image_path: str = ""
    description: str = ""


@dataclass
class PageRuneword:
    name: str
    runes: list[str] = field(default_factory=list)
    socket_count: int = 0
    req_level: int = 0
    valid_types: list[str] = field(default_factory=list)
    properties: list[str] = field(default_factory=list)


@dataclass
class MiscPage:
    runes: list[PageRune] = field(default_factory=list)
    gems: list[PageGem] = field(default_factory=list)
    misc_items: list[PageMiscItem] = field(default_factory=list)


# ── Helpers ─────────────────────────────────────────────


def read_page(path: str | Path) -> BeautifulSoup:
    path = Path(path)
    return BeautifulSoup(path.read_text(encoding="utf-8", errors="replace"), PARSER)


def _soup(html: str | BeautifulSoup) -> BeautifulSoup:
    if isinstance(html, BeautifulSoup):
        return html
    return BeautifulSoup(html, PARSER)


def normalize_image_path(path: str) -> str:
    path = path.replace("\\", "/")
    return path if path.startswith("/") else "/" + path


def extract_name(article: Tag) -> str:
    """Text of the last h3.z-sort-name link."""
    links = article.select(NAME_SELECTOR)
    return links[-1].get_text().strip() if links else ""


def extract_image_path(article: Tag, allow_thumbnail: bool = False) -> str:
    """First data-background-image that is not a thumbnail (_ticon)."""
    graphics = article.select("div[data-background-image]")
    for div in graphics:
        bg = div.get("data-background-image", "")
        if bg and "_ticon" not in bg:
            return normalize_image_path(bg)
    if allow_thumbnail:
        for div in graphics:
            bg = div.get("data-background-image", "")
            if bg:
                return normalize_image_path(bg)
    return ""


def _span_text(scope: Optional[Tag], css_class: str) -> str:
    if scope is None:
        return ""
    spans = scope.select(f"span.{css_class}")
    return spans[-1].get_text().strip() if spans else ""


def extract_span_int(scope: Optional[Tag], css_class: str) -> int:
    text = _span_text(scope, css_class)
    try:
        return int(text)
    except ValueError:
        return 0


def extract_span_range(scope: Optional[Tag], css_class: str) -> tuple[int, int]:
    """"103-148", "8 to 20 (14 Avg)" or a single value."""
    text = _span_text(scope, css_class)
    if not text or text == "0":
        return 0, 0
    text = text.replace("–", "-").replace("—", "-")
    if "-" in text:
        low, _, high = text.partition("-")
        return _to_int(low), _to_int(high)
    match = RANGE_TO.search(text)
    if match:
        return int(match.group(1)), int(match.group(2))
    value = _to_int(text)
    return value, value


def _to_int(text: str) -> int:
    try:
        return int(text.strip())
    except ValueError:
        return 0


def extract_quality_and_base(article: Tag) -> tuple[str, str]:
    """Quality from the first h4's first text node; base from its /base/ link."""
    h4 = article.find("h4")
    if h4 is None:
        return "", ""

    quality = ""
    for node in h4.contents:
        if isinstance(node, NavigableString) and node.strip():
            quality = node.strip()
            break

    base_name = ""
    for link in article.select('a[href*="/base/"]'):
        text = link.get_text().strip()
        if text:
            base_name = text
            break
    if not base_name:
        for span in h4.select("span.z-white"):
            text = span.get_text().strip()
            if text:
                base_name = text
                break
    return quality, base_name


def _is_base_stat_line(line: str) -> bool:
    if line.lstrip("+-").isdigit():
        return True
    if any(label in line for label in BASE_STAT_LABELS):
        return True
    if line.startswith(SKIP_PREFIXES):
        return True
    if CLASS_BLOCK_LINE.match(line):
        return True
    return "equip only" in line


def clean_property_html(fragment: str | Tag) -> list[str]:
    """Property lines of a stats block, with base-stat spans and labels removed."""
    soup = BeautifulSoup(str(fragment), PARSER)

    for code in soup.find_all("code"):
        code.replace_with(code.get_text())
    for span in soup.find_all("span"):
        classes = span.get("class") or []
        if any(c in BASE_STAT_CLASSES or c in LABEL_CLASSES for c in classes):
            span.decompose()
    for br in soup.find_all("br"):
        br.replace_with("\n")

    text = soup.get_text()
    text = text.replace("\xa0", " ").replace("–", "-")

    lines = []
    for line in text.split("\n"):
        line = line.strip()
        if line and not _is_base_stat_line(line):
            lines.append(line)
    return lines


def split_or_bonuses(text: str) -> list[str]:
    """Split "A or \\nB" alternatives into separate lines."""
    text = text.strip()
    parts = [p.strip() for p in text.split(" or \n")]
    if len(parts) > 1:
        return [p for p in parts if p]
    return [text]


def generate_base_code(name: str) -> str:
    """Short item code from a name: 4 chars for one word, else 3+2+2.. up to 8."""
    words = name.lower().replace("'", "").replace("-", "").split()
    if not words:
        return ""
    if len(words) == 1:
        return words[0][:4]
    code = ""
    for i, word in enumerate(words):
        code += word[: 3 if i == 0 else 2]
        if len(code) >= 8:
            break
    return code[:8]


def unique_code(code: str, used: set[str], max_len: int = 10) -> str:
    """code, or code + 2, 3, ... trimmed to max_len, whichever is unused."""
    if code not in used:
        return code
    i = 2
    while True:
        suffix = str(i)
        candidate = code + suffix
        if len(candidate) > max_len:
            candidate = code[: max_len - len(suffix)] + suffix
        if candidate not in used:
            return candidate
        i += 1


def _stats_blocks(article: Tag) -> list[Tag]:
    return article.select("p.z-smallstats")


# ── Page parsers ────────────────────────────────────────


def parse_image_mappings(html: str | BeautifulSoup) -> list[PageItem]:
    """Every article with both a name and an image (thumbnails as a last resort)."""
    items = []
    for article in _soup(html).select(ARTICLE_SELECTOR):
        name = extract_name(article)
        image = extract_image_path(article, allow_thumbnail=True)
        if name and image:
            items.append(PageItem(name, image, normalize_display_name(name)))
    return items


def parse_uniques_page(html: str | BeautifulSoup) -> list[PageUnique]:
    uniques = []
    for article in _soup(html).select(ARTICLE_SELECTOR):
        name = extract_name(article)
        if not name:
            continue
        quality, base_name = extract_quality_and_base(article)
        blocks = _stats_blocks(article)
        first = blocks[0] if blocks else None
        uniques.append(
            PageUnique(
                name=name,
                base_name=base_name,
                quality=quality,
                req_level=extract_span_int(first, "zso_rqlevel"),
                quality_level=extract_span_int(first, "zso_qualitylvl"),
                properties=clean_property_html(first) if first is not None else [],
                image_path=extract_image_path(article),
            )
        )
    return uniques


def _set_bonuses(block: Tag) -> list[SetBonusLine]:
    bonuses = []
    for span in block.select("span.z-sets-title"):
        text = span.get_text().strip()
        if not text:
            continue
        count = 0
        grey = span.find_next_sibling()
        if grey is not None and "z-grey" in (grey.get("class") or []):
            match = SET_ITEM_COUNT.search(grey.get_text())
            if match:
                count = int(match.group(1))
        bonuses.append(SetBonusLine(text, count))
    return bonuses


def _parse_full_set(article: Tag, name: str) -> PageFullSet:
    full_set = PageFullSet(name=name)
    in_full = False
    for block in _stats_blocks(article):
        if "Full Set" in block.get_text():
            in_full = True
        for line in clean_property_html(block):
            if line == "Full Set":
                in_full = True
                continue
            if in_full:
                full_set.full_bonuses.append(line)
            else:
                full_set.partial_bonuses.append(line)
    return full_set


def parse_sets_page(
    html: str | BeautifulSoup,
) -> tuple[list[PageSetItem], list[PageFullSet]]:
    """Set items and full-set definitions, sets in first-seen order."""
    items: list[PageSetItem] = []
    sets: dict[str, PageFullSet] = {}
    for article in _soup(html).select(ARTICLE_SELECTOR):
        name = extract_name(article)
        if not name:
            continue
        h4 = article.find("h4")
        if h4 is not None and "Full Set" in h4.get_text():
            sets[name] = _parse_full_set(article, name)
            continue

        quality, base_name = extract_quality_and_base(article)
        blocks = _stats_blocks(article)
        first = blocks[0] if blocks else None

        set_name = ""
        for header in article.find_all("h4"):
            if "Part of set:" in header.get_text():
                link = header.select_one("a.ajax_link")
                if link is not None:
                    set_name = link.get_text().strip()
                    break
        if not set_name:
            continue

        items.append(
            PageSetItem(
                name=name,
                set_name=set_name,
                base_name=base_name,
                quality=quality,
                req_level=extract_span_int(first, "zso_rqlevel"),
                quality_level=extract_span_int(first, "zso_qualitylvl"),
                properties=clean_property_html(first) if first is not None else [],
                set_bonuses=_set_bonuses(blocks[1]) if len(blocks) > 1 else [],
                image_path=extract_image_path(article),
            )
        )
        sets.setdefault(set_name, PageFullSet(name=set_name))
    return items, list(sets.values())


def _hidden_types(article: Tag) -> tuple[str, str]:
    hidden = article.find("span", class_="z-hidden", recursive=False)
    text = SOCKET_TEXT.sub("", hidden.get_text()).strip() if hidden is not None else ""
    if not text:
        return "", ""
    found = sorted(
        (text.find(name), name) for name in KNOWN_TYPES if text.find(name) >= 0
    )
    tags: list[str] = []
    for _, name in found:
        if name not in tags:
            tags.append(name)
    return (tags[0] if tags else ""), (tags[1] if len(tags) > 1 else "")


def _tier(text: str) -> str:
    if "Exceptional" in text:
        return "Exceptional"
    if "Elite" in text:
        return "Elite"
    return "Normal"


def _variant_links(article: Tag) -> list[PageVariant]:
    """Links inside h4 headings mentioning "Variant"; the heading names the tier."""
    variants = []
    for h4 in article.find_all("h4"):
        text = h4.get_text()
        if "Variant" not in text:
            continue
        tier = _tier(text)
        for link in h4.find_all("a"):
            name = " ".join(link.get_text().split())
            if name:
                variants.append(PageVariant(name, tier))
    return variants


def parse_bases_page(html: str | BeautifulSoup) -> list[PageBase]:
    bases = []
    for article in _soup(html).select(ARTICLE_SELECTOR):
        name = extract_name(article)
        if not name:
            continue
        base = PageBase(name=name, image_path=extract_image_path(article))

        link = article.select(NAME_SELECTOR)[-1]
        href = link.get("href", "")
        base.url_slug = re.sub(r"-t\d+\.html$", "", href.removeprefix("/base/"))

        headings = [h4.get_text() for h4 in article.find_all("h4")]
        headings = [text for text in headings if "Variant" not in text]
        if headings:
            base.tier = _tier(headings[0])
        base.type_name, base.type_name2 = _hidden_types(article)
        base.variants = _variant_links(article)

        blocks = _stats_blocks(article)
        first = blocks[0] if blocks else None
        base.req_str = extract_span_int(first, "zso_rqstr")
        base.req_dex = extract_span_int(first, "zso_rqdex")
        base.req_level = extract_span_int(first, "zso_rqlevel")
        base.quality_level = extract_span_int(first, "zso_qualitylvl")
        base.durability = extract_span_int(first, "zso_durability")
        base.max_sockets = extract_span_int(first, "zso_maxsock")
        base.defense_min, base.defense_max = extract_span_range(first, "zso_defense")
        base.one_hand_min, base.one_hand_max = extract_span_range(first, "zso_onehdamage")
        base.two_hand_min, base.two_hand_max = extract_span_range(first, "zso_twohdamage")
        base.speed = _to_int(_span_text(first, "zso_basespeed").strip("[]"))
        bases.append(base)
    return bases


def parse_runewords_page(html: str | BeautifulSoup) -> list[PageRuneword]:
    runewords = []
    for article in _soup(html).select(ARTICLE_SELECTOR):
        name = extract_name(article)
        if not name:
            continue
        runes = [s.get_text().strip() for s in article.select("span.z-recipes")]
        runes = [r for r in runes if r]
        if not runes:
            continue
        properties: list[str] = []
        for span in article.select("div.z-vf-hide span.z-smallstats"):
            properties.extend(clean_property_html(span))
        runewords.append(
            PageRuneword(
                name=name,
                runes=runes,
                socket_count=extract_span_int(article, "zso_rwsock"),
                req_level=extract_span_int(article, "zso_rwlvlrq"),
                valid_types=[
                    " ".join(a.get_text().split())
                    for a in article.select('a[href*="#filter="]')
                    if a.get_text().strip()
                ],
                properties=properties,
            )
        )
    return runewords


def _mod_sections(article: Tag) -> PageMods:
    """Weapon/armor/shield socket mods from the div.z-vf-hide holding a div.z-hr."""
    mods = PageMods()
    mods_div = None
    for div in article.select("div.z-vf-hide"):
        if div.select_one("div.z-hr") is not None:
            mods_div = div
            break
    if mods_div is None:
        return mods

    section: Optional[list[str]] = None
    for child in mods_div.find_all(recursive=False):
        if child.name != "span":
            continue
        classes = child.get("class") or []
        text = child.get_text().strip()
        if "z-white" in classes:
            if "Weapons" in text:
                section = mods.weapon
            elif "Armor" in text:
                section = mods.helm
            elif "Shields" in text:
                section = mods.shield
        elif "z-smallstats" in classes and text and section is not None:
            section.append(text)
    return mods


def parse_misc_page(html: str | BeautifulSoup) -> MiscPage:
    """Runes, gems and tradeable misc items (charms, jewels, keys, essences)."""
    page = MiscPage()
    for article in _soup(html).select(ARTICLE_SELECTOR):
        h4 = article.find("h4")
        if h4 is None:
            continue
        h4_text = h4.get_text().strip()
        name = extract_name(article)
        if not name:
            continue
        image = extract_image_path(article)

        if "Rune" in h4_text:
            page.runes.append(
                PageRune(
                    name=name,
                    image_path=image,
                    level=extract_span_int(h4, "zso_runelevel"),
                    rune_index=extract_span_int(h4, "zso_runeindex"),
                    mods=_mod_sections(article),
                )
            )
        elif h4_text == "Gem":
            page.gems.append(PageGem(name=name, image_path=image, mods=_mod_sections(article)))
        elif h4_text in MISC_SUBCATEGORIES:
            blocks = _stats_blocks(article)
            lines = clean_property_html(blocks[0]) if blocks else []
            sub = "Miscellaneous" if h4_text == "Miscellaneous Item" else h4_text
            page.misc_items.append(
                PageMiscItem(
                    name=name,
                    sub_category=sub,
                    image_path=image,
                    description="; ".join(lines),
                )
            )
    return page
