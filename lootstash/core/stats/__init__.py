"""Stat registry and property resolution. Pure Python, no DB."""

from .builtins import BUILTIN_STATS, CLASS_NAMES, STAT_CATEGORIES, builtin_sort_orders
from .formats import (
    FIXED_VALUE_CODES,
    PARAMETRIC_CODES,
    PROPERTY_FORMATS,
    SKILL_TABS,
    PropertyTranslator,
)
from .registry import StatRegistry
from .resolver import PropertyResolver, combine_all_attributes, parse_value_str

__all__ = [
    "BUILTIN_STATS",
    "CLASS_NAMES",
    "STAT_CATEGORIES",
    "builtin_sort_orders",
    "FIXED_VALUE_CODES",
    "PARAMETRIC_CODES",
    "PROPERTY_FORMATS",
    "SKILL_TABS",
    "PropertyTranslator",
    "StatRegistry",
    "PropertyResolver",
    "combine_all_attributes",
    "parse_value_str",
]
