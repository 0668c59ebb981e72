"""Section manifest construction from the FAR entry table.

One ascending scan of ``far_entries`` (title, part, section, paragraph)
groups content under ``{part}.{section}`` keys. Paragraph markers are kept
in scan order; content goes under the paragraph key when a marker is set,
otherwise under the bare section key.
"""
from __future__ import annotations

import logging
from typing import Any

from regindex.errors import RowDecodeError
from regindex.identifiers import FarPosition
from regindex.records import (
    SectionManifest,
    int_column,
    opt_str_column,
    str_column,
)

log = logging.getLogger(__name__)

_MANIFEST_SCAN_SQL = """
    SELECT title, part, section, paragraph, content
    FROM far_entries
    ORDER BY title, part, section, paragraph NULLS FIRST
"""


class _SectionAccumulator:
    __slots__ = ("section_id", "paragraphs", "content")

    def __init__(self, section_id: str) -> None:
        self.section_id = section_id
        self.paragraphs: list[str] = []
        self.content: dict[str, str] = {}

    def freeze(self) -> SectionManifest:
        return SectionManifest(
            section_id=self.section_id,
            paragraphs=tuple(self.paragraphs),
            content=self.content,
        )


_SCAN_COLUMNS = ("title", "part", "section", "paragraph", "content")


def _decode_scan_row(row: tuple[Any, ...]) -> tuple[FarPosition, str]:
    if len(row) != len(_SCAN_COLUMNS):
        raise RowDecodeError("far_entries", "*", row, f"{len(_SCAN_COLUMNS)} columns")
    named = dict(zip(_SCAN_COLUMNS, row))
    t = "far_entries"
    int_column(named, t, "title")
    position = FarPosition(
        part=int_column(named, t, "part"),
        section=int_column(named, t, "section"),
        paragraph=opt_str_column(named, t, "paragraph"),
    )
    return position, str_column(named, t, "content")


def build_section_manifests(conn: Any) -> dict[str, SectionManifest]:
    """Scan ``far_entries`` once and return manifests keyed by section key.

    Raises RowDecodeError on the first malformed row; no partial result is
    returned. Store errors propagate from the connection unchanged.
    """
    sections: dict[str, _SectionAccumulator] = {}
    row_count = 0
    for row in conn.execute(_MANIFEST_SCAN_SQL).fetchall():
        position, content = _decode_scan_row(row)
        row_count += 1
        sid = position.section_key
        acc = sections.get(sid)
        if acc is None:
            acc = sections[sid] = _SectionAccumulator(sid)

        if position.paragraph is not None:
            acc.paragraphs.append(position.paragraph)
        elif sid in acc.content:
            log.warning(
                "Section %s has more than one section-level content row; "
                "keeping the last one",
                sid,
            )
        acc.content[position.content_key] = content

    log.info(
        "Built section manifest: %d sections from %d rows",
        len(sections),
        row_count,
    )
    return {sid: acc.freeze() for sid, acc in sections.items()}
