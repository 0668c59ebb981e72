"""Typed records for the regulation store and strict row decoders.

Decoders take a column-name -> value dict (one DuckDB row zipped with
``cursor.description``) and fail fast with ``RowDecodeError`` on a missing
or mistyped column. A record is never partially populated.
"""
from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass, field
from types import MappingProxyType
from typing import Any, Generic, TypeVar

from regindex.errors import RowDecodeError
from regindex.identifiers import FarPosition

T = TypeVar("T")


@dataclass(frozen=True, slots=True)
class FarMetadata:
    """FAR table-of-contents row (title/chapter/subchapter/part titling)."""

    title: int
    title_title: str
    chapter: int
    chapter_title: str
    subchapter: str
    subchapter_title: str
    part: int
    part_title: str


@dataclass(frozen=True, slots=True)
class AimMetadata:
    """AIM table-of-contents row (chapter/section titling)."""

    chapter: int
    chapter_title: str
    section: int
    section_title: str


@dataclass(frozen=True, slots=True)
class FarEntry:
    """A FAR content row."""

    title: int
    chapter: int
    subchapter: str
    part: int
    section: int
    section_title: str
    paragraph: str | None
    subparagraph: int | None
    item: int | None
    content: str

    @property
    def position(self) -> FarPosition:
        return FarPosition(self.part, self.section, self.paragraph)


@dataclass(frozen=True, slots=True)
class AimEntry:
    """An AIM content row."""

    chapter: int
    section: int
    topic: int
    topic_title: str
    paragraph: str | None
    subparagraph: int | None
    item: int | None
    content: str
    image: str | None


@dataclass(frozen=True, slots=True)
class GlossaryEntry:
    """A Pilot/Controller Glossary term."""

    term: str
    definition: str


@dataclass(frozen=True, slots=True)
class AimMetadataResult:
    chapter_title: str
    section_title: str | None


@dataclass(frozen=True, slots=True)
class SectionManifest:
    """Paragraph order and content for one FAR section.

    ``paragraphs`` keeps markers in scan order (duplicates included).
    ``content`` maps section or paragraph keys to text and is read-only.
    """

    section_id: str
    paragraphs: tuple[str, ...]
    content: Mapping[str, str] = field(default_factory=dict)

    def __post_init__(self) -> None:
        object.__setattr__(self, "content", MappingProxyType(dict(self.content)))


@dataclass(frozen=True, slots=True)
class SearchResponse(Generic[T]):
    results: list[T]
    total: int

    @classmethod
    def of(cls, results: list[T]) -> SearchResponse[T]:
        return cls(results=results, total=len(results))


# ---------------------------------------------------------------------------
# Column accessors
# ---------------------------------------------------------------------------

_MISSING = object()


def _get(row: Mapping[str, Any], table: str, column: str, expected: str) -> Any:
    value = row.get(column, _MISSING)
    if value is _MISSING:
        raise RowDecodeError(table, column, None, f"{expected} (column missing)")
    return value


def int_column(row: Mapping[str, Any], table: str, column: str) -> int:
    value = _get(row, table, column, "int")
    if isinstance(value, bool) or not isinstance(value, int):
        raise RowDecodeError(table, column, value, "int")
    return value


def str_column(row: Mapping[str, Any], table: str, column: str) -> str:
    value = _get(row, table, column, "str")
    if not isinstance(value, str):
        raise RowDecodeError(table, column, value, "str")
    return value


def opt_int_column(row: Mapping[str, Any], table: str, column: str) -> int | None:
    value = _get(row, table, column, "int or NULL")
    if value is None:
        return None
    if isinstance(value, bool) or not isinstance(value, int):
        raise RowDecodeError(table, column, value, "int or NULL")
    return value


def opt_str_column(row: Mapping[str, Any], table: str, column: str) -> str | None:
    value = _get(row, table, column, "str or NULL")
    if value is None:
        return None
    if not isinstance(value, str):
        raise RowDecodeError(table, column, value, "str or NULL")
    return value


# ---------------------------------------------------------------------------
# Row decoders
# ---------------------------------------------------------------------------


def far_metadata_from_row(row: Mapping[str, Any]) -> FarMetadata:
    t = "far_metadata"
    return FarMetadata(
        title=int_column(row, t, "title"),
        title_title=str_column(row, t, "title_title"),
        chapter=int_column(row, t, "chapter"),
        chapter_title=str_column(row, t, "chapter_title"),
        subchapter=str_column(row, t, "subchapter"),
        subchapter_title=str_column(row, t, "subchapter_title"),
        part=int_column(row, t, "part"),
        part_title=str_column(row, t, "part_title"),
    )


def aim_metadata_from_row(row: Mapping[str, Any]) -> AimMetadata:
    t = "aim_metadata"
    return AimMetadata(
        chapter=int_column(row, t, "chapter"),
        chapter_title=str_column(row, t, "chapter_title"),
        section=int_column(row, t, "section"),
        section_title=str_column(row, t, "section_title"),
    )


def far_entry_from_row(row: Mapping[str, Any]) -> FarEntry:
    t = "far_entries"
    return FarEntry(
        title=int_column(row, t, "title"),
        chapter=int_column(row, t, "chapter"),
        subchapter=str_column(row, t, "subchapter"),
        part=int_column(row, t, "part"),
        section=int_column(row, t, "section"),
        section_title=str_column(row, t, "section_title"),
        paragraph=opt_str_column(row, t, "paragraph"),
        subparagraph=opt_int_column(row, t, "subparagraph"),
        item=opt_int_column(row, t, "item"),
        content=str_column(row, t, "content"),
    )


def aim_entry_from_row(row: Mapping[str, Any]) -> AimEntry:
    t = "aim_entries"
    return AimEntry(
        chapter=int_column(row, t, "chapter"),
        section=int_column(row, t, "section"),
        topic=int_column(row, t, "topic"),
        topic_title=str_column(row, t, "topic_title"),
        paragraph=opt_str_column(row, t, "paragraph"),
        subparagraph=opt_int_column(row, t, "subparagraph"),
        item=opt_int_column(row, t, "item"),
        content=str_column(row, t, "content"),
        image=opt_str_column(row, t, "image"),
    )


def glossary_entry_from_row(row: Mapping[str, Any]) -> GlossaryEntry:
    t = "pcg_entries"
    return GlossaryEntry(
        term=str_column(row, t, "term"),
        definition=str_column(row, t, "definition"),
    )
