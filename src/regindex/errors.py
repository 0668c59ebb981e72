"""Exception hierarchy for the regulation index.

Every message is meant to be shown to a user as-is; the command adapter
forwards ``str(exc)`` without further decoration.
"""
from __future__ import annotations

from typing import Any


class RegIndexError(RuntimeError):
    """Base class for all regulation index failures."""


class StoreUnavailableError(RegIndexError):
    """Raised when the DuckDB store cannot be opened or a query fails."""


class SchemaVersionError(RegIndexError):
    """Raised when a regulations DB schema version does not match expected."""


class RowDecodeError(RegIndexError):
    """Raised when a scanned row does not match the expected column shape."""

    def __init__(self, table: str, column: str, value: Any, expected: str) -> None:
        self.table = table
        self.column = column
        self.value = value
        self.expected = expected
        super().__init__(
            f"Malformed row in {table}: column {column!r} expected {expected}, "
            f"got {type(value).__name__} ({value!r})"
        )


class NotFoundError(RegIndexError):
    """Raised when a metadata lookup matches no row."""


class EngineBusyError(RegIndexError):
    """Raised when the index lock cannot be acquired or the index is closed."""
