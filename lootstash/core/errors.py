"""Catalog error taxonomy.

Per-item errors (ParseError, NotFound, MissingRuneIcon, UploadFailure) are
caught at the item boundary and recorded as outcomes. ConnectionFailure is
raised at setup and aborts the whole run.
"""

from __future__ import annotations


class CatalogError(Exception):
    """Base class for all catalog errors."""


class ParseError(CatalogError):
    """Malformed source file or row."""

    def __init__(self, message: str, source: str = "", line: int | None = None):
        self.source = source
        self.line = line
        where = source
        if line is not None:
            where = f"{source}:{line}"
        super().__init__(f"{where}: {message}" if where else message)


class NotFound(CatalogError, KeyError):
    """Stat code, catalog row or match candidate is absent."""

    def __str__(self) -> str:
        return str(self.args[0]) if self.args else "not found"


class MissingRuneIcon(CatalogError):
    """A runeword composite cannot be built because rune icons are absent."""

    def __init__(self, runeword: str, missing: list[str]):
        self.runeword = runeword
        self.missing = list(missing)
        super().__init__(f"{runeword}: missing runes {', '.join(self.missing)}")


class UploadFailure(CatalogError):
    """Blob store write failed."""

    def __init__(self, key: str, reason: str):
        self.key = key
        self.reason = reason
        super().__init__(f"upload of {key} failed: {reason}")


class ConnectionFailure(CatalogError):
    """Store or blob backend unreachable at startup."""


class RunTimeout(CatalogError):
    """The run deadline expired before all work was issued."""
