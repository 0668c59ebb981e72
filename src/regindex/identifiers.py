"""Identifier composition for FAR content addressing.

Two kinds of keys address content in the section manifest:

    section key     ``{part}.{section}``               e.g. ``91.103``
    paragraph key   ``{part}.{section}({paragraph})``  e.g. ``91.103(a)``

Keys are opaque lookup strings downstream; nothing parses them back.
"""
from __future__ import annotations

from dataclasses import dataclass


def _require_int(name: str, value: object) -> int:
    # bool is an int subclass but never a valid hierarchy number
    if isinstance(value, bool) or not isinstance(value, int):
        raise TypeError(f"{name} must be an int, got {type(value).__name__}")
    return value


def section_key(part: int, section: int) -> str:
    """Return the manifest grouping key for a (part, section) pair."""
    return f"{_require_int('part', part)}.{_require_int('section', section)}"


def paragraph_key(part: int, section: int, paragraph: str) -> str:
    """Return the content key for paragraph-scoped content."""
    return f"{section_key(part, section)}({paragraph})"


@dataclass(frozen=True, slots=True)
class FarPosition:
    """Position of a FAR content row within its section."""

    part: int
    section: int
    paragraph: str | None = None

    @property
    def section_key(self) -> str:
        return section_key(self.part, self.section)

    @property
    def content_key(self) -> str:
        """Paragraph key when a paragraph is set, else the section key."""
        if self.paragraph is None:
            return self.section_key
        return paragraph_key(self.part, self.section, self.paragraph)
