"""Locating icon files and HTML image paths for catalog rows."""

from __future__ import annotations

import hashlib
import logging
from pathlib import Path
from typing import Optional

from ..catalog.names import normalize_for_match

logger = logging.getLogger(__name__)

GEM_QUALITIES = ("chipped", "flawed", "flawless", "perfect")

# Rows the scraped pages never show; used when find_in_mapping has nothing.
FALLBACK_ICONS_BY_CODE = {
    "cm1": "charm_small.png",
    "cm2": "charm_medium.png",
    "cm3": "charm_large.png",
    "jew": "jewel02_graphic.png",
    "tes": "essencesuffering_graphic.png",
    "ceh": "essencehatred_graphic.png",
    "bet": "essenceterror_graphic.png",
    "fed": "essencedestruction_graphic.png",
    "toa": "tokenofabsolution_graphic.png",
    "2hs": "2hsword_graphic.png",
}

FALLBACK_ICONS_BY_NAME = {
    "swordbackhold": "swordbackhold_graphic.png",
}

ICON_VARIANT_FILES = {
    "cm1": ("charm_small.png", "charm_small2.png", "charm_small3.png"),
    "cm2": ("charm_medium.png", "charm_medium2.png", "charm_medium3.png"),
    "cm3": ("charm_large.png", "charm_large2.png", "charm_large3.png"),
    "jew": (
        "jewel02_graphic.png",
        "jewel04_graphic.png",
        "jewel05_graphic.png",
        "jewel06_graphic.png",
    ),
}

# Rune names whose icon file is spelled differently.
RUNE_FILE_NAMES = {"Jah": "Jo", "Shael": "Shae"}


def content_type_for(filename: str) -> str:
    lower = filename.lower()
    if lower.endswith(".jpg") or lower.endswith(".jpeg"):
        return "image/jpeg"
    return "image/png"


def extension_for(filename: str) -> str:
    ext = Path(filename).suffix.lower()
    return ext if ext else ".png"


def content_hash(data: bytes) -> str:
    return hashlib.sha1(data).hexdigest()


def storage_key(category: str, digest: str, ext: str = ".png") -> str:
    """Content-addressed key: "{category}/{sha1}{ext}"."""
    return f"{category.strip('/')}/{digest}{ext}"


def rune_icon_filename(rune_name: str) -> str:
    """"Ber Rune" or "Ber" -> "runeBer_graphic.png"."""
    name = rune_name.strip()
    if name.endswith(" Rune"):
        name = name[: -len(" Rune")]
    name = RUNE_FILE_NAMES.get(name, name)
    return f"rune{name}_graphic.png"


def find_in_mapping(item_name: str, mapping: dict[str, str]) -> Optional[str]:
    """Image path for item_name in a normalize_for_match-keyed mapping.

    Tries, in order: exact, without/with a "the" prefix, without a "rune"
    suffix, without a gem quality prefix (then with the quality moved to the
    end), and finally a containment match over keys longer than 2 in sorted
    order.
    """
    key = normalize_for_match(item_name)
    if not key:
        return None
    if key in mapping:
        return mapping[key]

    if key.startswith("the") and key[3:] in mapping:
        return mapping[key[3:]]
    if "the" + key in mapping:
        return mapping["the" + key]

    if key.endswith("rune") and key[: -len("rune")] in mapping:
        return mapping[key[: -len("rune")]]

    for quality in GEM_QUALITIES:
        if key.startswith(quality):
            stripped = key[len(quality):]
            if stripped in mapping:
                return mapping[stripped]
            if stripped + quality in mapping:
                return mapping[stripped + quality]

    if len(key) > 2:
        for html_key in sorted(mapping):
            if len(html_key) > 2 and (key in html_key or html_key in key):
                return mapping[html_key]
    return None


def fallback_icon(code: str, name: str) -> Optional[str]:
    if code and code in FALLBACK_ICONS_BY_CODE:
        return FALLBACK_ICONS_BY_CODE[code]
    return FALLBACK_ICONS_BY_NAME.get(normalize_for_match(name))


def _clean_variant_suffix(stem: str) -> str:
    idx = stem.rfind(" (")
    if idx != -1:
        stem = stem[:idx]
    idx = stem.rfind("(")
    if idx != -1:
        stem = stem[:idx]
    return stem


def find_image_file(icons_path: str | Path, filename: str) -> Optional[Path]:
    """Locate filename in icons_path, tolerating download-duplicate names.

    Tries foo.png, "foo (1).png" .. "(3)", "foo(1).png", "foo_1.png", the
    lower-cased name, then a case-insensitive directory scan that ignores a
    trailing "(n)".
    """
    icons = Path(icons_path)
    filename = Path(filename).name
    if not filename:
        return None
    ext = Path(filename).suffix
    stem = filename[: -len(ext)] if ext else filename

    candidates = [
        filename,
        f"{stem} (1){ext}",
        f"{stem} (2){ext}",
        f"{stem} (3){ext}",
        f"{stem}(1){ext}",
        f"{stem}_1{ext}",
        filename.lower(),
        f"{stem.lower()} (1){ext}",
    ]
    for candidate in candidates:
        path = icons / candidate
        if path.is_file():
            return path

    if not icons.is_dir():
        return None
    wanted = stem.lower()
    for entry in sorted(icons.iterdir()):
        if not entry.is_file():
            continue
        if _clean_variant_suffix(entry.stem).lower() == wanted:
            return entry
    return None
