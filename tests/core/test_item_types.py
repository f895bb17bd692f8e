"""Item type hierarchy and runeword base matching."""

from lootstash.core.catalog.item_types import base_matches, build_type_hierarchy, lineage

PARENTS = {
    "swor": ("mele", ""),
    "mele": ("weap", ""),
    "weap": ("", ""),
    "shie": ("shld", ""),
    "ashd": ("shld", "pala"),
    "shld": ("armo", ""),
    "pala": ("", ""),
    "armo": ("", ""),
}


class TestHierarchy:
    def test_ancestors_include_self(self) -> None:
        hierarchy = build_type_hierarchy(PARENTS)
        assert hierarchy["swor"] == ["swor", "mele", "weap"]
        assert hierarchy["weap"] == ["weap"]

    def test_both_parents_followed(self) -> None:
        hierarchy = build_type_hierarchy(PARENTS)
        assert set(hierarchy["ashd"]) == {"ashd", "shld", "armo", "pala"}

    def test_cycle_terminates(self) -> None:
        hierarchy = build_type_hierarchy({"a": ("b", ""), "b": ("a", "")})
        assert hierarchy["a"] == ["a", "b"]

    def test_unknown_code_stands_for_itself(self) -> None:
        assert lineage(["xyz", ""], build_type_hierarchy(PARENTS)) == {"xyz"}


class TestBaseMatches:
    def test_ancestor_in_valid_types(self) -> None:
        hierarchy = build_type_hierarchy(PARENTS)
        assert base_matches(("swor", ""), ["weap"], [], hierarchy)
        assert base_matches(("shie", ""), ["shld"], [], hierarchy)
        assert not base_matches(("shie", ""), ["weap"], [], hierarchy)

    def test_secondary_type_counts(self) -> None:
        hierarchy = build_type_hierarchy(PARENTS)
        assert base_matches(("pala", "shie"), ["shld"], [], hierarchy)

    def test_excluded_ancestor_rejects(self) -> None:
        hierarchy = build_type_hierarchy(PARENTS)
        assert base_matches(("shie", ""), ["shld"], ["pala"], hierarchy)
        assert not base_matches(("ashd", ""), ["shld"], ["pala"], hierarchy)

    def test_without_hierarchy_only_direct_codes_match(self) -> None:
        assert base_matches(("swor", ""), ["swor"], [], {})
        assert not base_matches(("swor", ""), ["weap"], [], {})
