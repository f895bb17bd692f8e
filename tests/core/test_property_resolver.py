"""PropertyResolver: display text back to stat codes."""

import pytest

from lootstash.core.catalog.models import PropertyAssignment, StatCode
from lootstash.core.stats.builtins import BUILTIN_STATS
from lootstash.core.stats.formats import PropertyTranslator
from lootstash.core.stats.registry import StatRegistry
from lootstash.core.stats.resolver import (
    PropertyResolver,
    build_pattern,
    combine_all_attributes,
    parse_value_str,
)


@pytest.fixture()
def resolver() -> PropertyResolver:
    registry = StatRegistry()
    registry.load(BUILTIN_STATS)
    return PropertyResolver(registry)


# ── Value parsing ─────────────────────────────────────────────


class TestParseValueStr:
    @pytest.mark.parametrize(
        "text,expected",
        [
            ("25", (25, 25)),
            ("+25", (25, 25)),
            ("25-35", (25, 35)),
            ("-25", (-25, -25)),
            ("-(5-10)", (-10, -5)),
        ],
    )
    def test_forms(self, text: str, expected: tuple[int, int]) -> None:
        assert parse_value_str(text) == expected


class TestBuildPattern:
    def test_plus_is_optional(self) -> None:
        pattern = build_pattern("str", "+{value} To Strength")
        assert pattern.regex.match("+15 To Strength")
        assert pattern.regex.match("15 to strength")
        assert pattern.regex.match("-(5-10) To Strength")

    def test_fixed_template(self) -> None:
        pattern = build_pattern("indestruct", "Indestructible")
        assert pattern.is_fixed
        assert pattern.regex.match("indestructible")


# ── Resolve ───────────────────────────────────────────────────


class TestResolve:
    def test_attack_rating(self, resolver: PropertyResolver) -> None:
        prop = resolver.resolve("+150 To Attack Rating")
        assert (prop.code, prop.min, prop.max) == ("att", 150, 150)
        assert prop.has_range is False

    def test_range(self, resolver: PropertyResolver) -> None:
        prop = resolver.resolve("+150-200% Enhanced Damage")
        assert (prop.code, prop.min, prop.max) == ("dmg%", 150, 200)
        assert prop.has_range is True

    def test_negative_range(self, resolver: PropertyResolver) -> None:
        prop = resolver.resolve("-(5-10) To Strength")
        assert (prop.code, prop.min, prop.max) == ("str", -10, -5)

    def test_magic_find(self, resolver: PropertyResolver) -> None:
        prop = resolver.resolve("+35% Better Chance Of Getting Magic Items")
        assert (prop.code, prop.min) == ("mag%", 35)

    def test_fixed_line(self, resolver: PropertyResolver) -> None:
        prop = resolver.resolve("Indestructible")
        assert prop.code == "indestruct"

    def test_skill_param(self, resolver: PropertyResolver) -> None:
        prop = resolver.resolve("+3 To Whirlwind (Barbarian Only)")
        assert prop.code in ("skill", "oskill")
        assert prop.param == "Whirlwind"
        assert prop.min == 3

    def test_per_level(self, resolver: PropertyResolver) -> None:
        prop = resolver.resolve("+1-99 To Life (Based On Character Level)")
        assert prop.code == "hp/lvl"
        assert (prop.min, prop.max) == (1, 99)

    def test_unknown_text_is_raw_and_verbatim(self, resolver: PropertyResolver) -> None:
        text = "  Grants the Wearer Mysterious Powers  "
        prop = resolver.resolve(text)
        assert prop.is_raw
        assert prop.display_text == text
        assert resolver.unresolved == ["Grants the Wearer Mysterious Powers"]

    def test_unresolved_recorded_once(self, resolver: PropertyResolver) -> None:
        resolver.resolve("Something Odd")
        resolver.resolve("Something Odd")
        assert resolver.unresolved == ["Something Odd"]

    def test_resolve_lines_skips_blank(self, resolver: PropertyResolver) -> None:
        props = resolver.resolve_lines(["+10 To Strength", "", "   "])
        assert [p.code for p in props] == ["str"]

    def test_registry_template_after_rebuild(self) -> None:
        registry = StatRegistry()
        resolver = PropertyResolver(registry, formats={})
        assert resolver.resolve("+5 To Shiny Things").is_raw
        registry.register(StatCode("shiny", "Shiny", "+{value} To Shiny Things", "Other"))
        resolver.rebuild()
        prop = resolver.resolve("+5 To Shiny Things")
        assert (prop.code, prop.min) == ("shiny", 5)


# ── combine_all_attributes ────────────────────────────────────


class TestCombineAllAttributes:
    def test_merges_equal_attributes(self) -> None:
        props = [
            PropertyAssignment("dmg%", 100, 100),
            PropertyAssignment("str", 10, 10),
            PropertyAssignment("dex", 10, 10),
            PropertyAssignment("vit", 10, 10),
            PropertyAssignment("enr", 10, 10),
        ]
        merged = combine_all_attributes(props, PropertyTranslator())
        assert [p.code for p in merged] == ["dmg%", "all-stats"]
        assert merged[1].display_text == "+10 To All Attributes"

    def test_keeps_unequal_attributes(self) -> None:
        props = [
            PropertyAssignment("str", 10, 10),
            PropertyAssignment("dex", 10, 10),
            PropertyAssignment("vit", 10, 10),
            PropertyAssignment("enr", 5, 5),
        ]
        assert combine_all_attributes(props) is props

    def test_needs_all_four(self) -> None:
        props = [PropertyAssignment("str", 10, 10), PropertyAssignment("dex", 10, 10)]
        assert combine_all_attributes(props) is props
