"""Item type hierarchy (itemtypes.txt Equiv1/Equiv2) and base matching against it."""

from __future__ import annotations

from collections.abc import Iterable, Mapping


def build_type_hierarchy(parents: Mapping[str, Iterable[str]]) -> dict[str, list[str]]:
    """type code -> the code itself followed by every ancestor, depth first.

    Cycles in the parent links are cut at the first revisit.
    """
    direct = {code: [p for p in links if p] for code, links in parents.items()}

    def ancestors(code: str, visited: set[str]) -> list[str]:
        if code in visited:
            return []
        visited.add(code)
        lineage = [code]
        for parent in direct.get(code, []):
            lineage.extend(ancestors(parent, visited))
        return lineage

    return {code: ancestors(code, set()) for code in direct}


def lineage(type_codes: Iterable[str], hierarchy: Mapping[str, list[str]]) -> set[str]:
    """All types the given codes belong to. Unknown codes stand for themselves."""
    found: set[str] = set()
    for code in type_codes:
        if code:
            found.update(hierarchy.get(code, [code]))
    return found


def base_matches(
    type_codes: Iterable[str],
    valid: Iterable[str],
    excluded: Iterable[str],
    hierarchy: Mapping[str, list[str]],
) -> bool:
    """True when a base's types reach a valid type and no excluded one."""
    types = lineage(type_codes, hierarchy)
    return bool(types & set(valid)) and not types & set(excluded)
