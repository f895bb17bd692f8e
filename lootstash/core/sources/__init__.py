"""Source readers: tab-separated game data files and scraped HTML pages."""

from .pages import (
    TYPE_NAME_TO_CODE,
    MiscPage,
    PageBase,
    PageFullSet,
    PageItem,
    PageRuneword,
    PageSetItem,
    PageUnique,
    PageVariant,
    clean_property_html,
    generate_base_code,
    parse_bases_page,
    parse_image_mappings,
    parse_misc_page,
    parse_runewords_page,
    parse_sets_page,
    parse_uniques_page,
    read_page,
    split_or_bonuses,
    unique_code,
)
from .tsv import Row, TsvTable, parse_tsv, read_tsv

__all__ = [
    "TYPE_NAME_TO_CODE",
    "MiscPage",
    "PageBase",
    "PageFullSet",
    "PageItem",
    "PageRuneword",
    "PageSetItem",
    "PageUnique",
    "PageVariant",
    "clean_property_html",
    "generate_base_code",
    "parse_bases_page",
    "parse_image_mappings",
    "parse_misc_page",
    "parse_runewords_page",
    "parse_sets_page",
    "parse_uniques_page",
    "read_page",
    "split_or_bonuses",
    "unique_code",
    "Row",
    "TsvTable",
    "parse_tsv",
    "read_tsv",
]
