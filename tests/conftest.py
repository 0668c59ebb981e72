"""Shared fixture database for regindex tests."""
from __future__ import annotations

from pathlib import Path
from typing import Any

import duckdb
import pytest

from regindex.schema import SCHEMA_VERSION, create_schema, insert_rows

FAR_TITLE = "Aeronautics and Space"
FAR_CHAPTER = "Federal Aviation Administration, Department of Transportation"

FAR_METADATA: list[dict[str, Any]] = [
    {
        "title": 14, "title_title": FAR_TITLE, "chapter": 1, "chapter_title": FAR_CHAPTER,
        "subchapter": "F", "subchapter_title": "Air Traffic and General Operating Rules",
        "part": 91, "part_title": "General Operating and Flight Rules",
    },
    {
        "title": 14, "title_title": FAR_TITLE, "chapter": 1, "chapter_title": FAR_CHAPTER,
        "subchapter": "A", "subchapter_title": "Definitions",
        "part": 1, "part_title": "Definitions and Abbreviations",
    },
    # duplicate titling row; TOC must collapse it
    {
        "title": 14, "title_title": FAR_TITLE, "chapter": 1, "chapter_title": FAR_CHAPTER,
        "subchapter": "F", "subchapter_title": "Air Traffic and General Operating Rules",
        "part": 91, "part_title": "General Operating and Flight Rules",
    },
]


def far_entry(
    part: int,
    section: int,
    paragraph: str | None,
    content: str,
    *,
    section_title: str = "Preflight action",
    subchapter: str = "F",
    title: int = 14,
) -> dict[str, Any]:
    return {
        "title": title, "chapter": 1, "subchapter": subchapter, "part": part,
        "section": section, "section_title": section_title, "paragraph": paragraph,
        "subparagraph": None, "item": None, "content": content,
    }


# Deliberately out of order: the manifest scan must sort.
FAR_ENTRIES: list[dict[str, Any]] = [
    far_entry(91, 103, "b", "For any flight, runway lengths at airports of intended use."),
    far_entry(
        91, 103, None,
        "Each pilot in command shall, before beginning a flight, become familiar "
        "with all available information concerning that flight.",
    ),
    far_entry(
        91, 103, "a",
        "For a flight under IFR or a flight not in the vicinity of an airport, "
        "weather reports and forecasts.",
    ),
    far_entry(
        91, 3, "a",
        "The pilot in command of an aircraft is directly responsible for the operation "
        "of that aircraft.",
        section_title="Responsibility and authority of the pilot in command",
    ),
    far_entry(
        1, 1, None, "Safety requirements apply",
        section_title="General definitions", subchapter="A",
    ),
]

AIM_METADATA: list[dict[str, Any]] = [
    {"chapter": 4, "chapter_title": "Air Traffic Control", "section": 3,
     "section_title": "Airport Operations"},
    {"chapter": 4, "chapter_title": "Air Traffic Control", "section": 1,
     "section_title": "Services Available to Pilots"},
    {"chapter": 5, "chapter_title": "Air Traffic Procedures", "section": 1,
     "section_title": "Preflight"},
]

AIM_ENTRIES: list[dict[str, Any]] = [
    {"chapter": 4, "section": 3, "topic": 2,
     "topic_title": "Airports with an Operating Control Tower", "paragraph": "a",
     "subparagraph": None, "item": None,
     "content": "When operating at an airport where traffic control is being exercised.",
     "image": None},
    {"chapter": 4, "section": 1, "topic": 1,
     "topic_title": "Air Route Traffic Control Centers", "paragraph": None,
     "subparagraph": None, "item": None,
     "content": "Centers are established primarily to provide air traffic service.",
     "image": "images/artcc.png"},
    {"chapter": 5, "section": 1, "topic": 1, "topic_title": "Preflight Preparation",
     "paragraph": "a", "subparagraph": 1, "item": None,
     "content": "Every pilot is urged to receive a preflight briefing.",
     "image": None},
]

PCG_ENTRIES: list[dict[str, Any]] = [
    {"term": "CEILING",
     "definition": "The heights above the earth's surface of the lowest layer of clouds."},
    {"term": "RUNWAY",
     "definition": "A defined rectangular area on a land airport prepared for landing."},
    {"term": "TAXI",
     "definition": "The movement of an airplane under its own power on the surface."},
]


def create_regulations_db(
    path: Path,
    *,
    far_entries: list[dict[str, Any]] | None = None,
    schema_version: str = SCHEMA_VERSION,
) -> Path:
    """Write a fixture regulations DB to *path* and close it."""
    con = duckdb.connect(str(path))
    try:
        create_schema(con, version=schema_version)
        insert_rows(con, "far_metadata", FAR_METADATA)
        insert_rows(con, "far_entries", FAR_ENTRIES if far_entries is None else far_entries)
        insert_rows(con, "aim_metadata", AIM_METADATA)
        insert_rows(con, "aim_entries", AIM_ENTRIES)
        insert_rows(con, "pcg_entries", PCG_ENTRIES)
    finally:
        con.close()
    return path


@pytest.fixture()
def regulations_db(tmp_path: Path) -> Path:
    return create_regulations_db(tmp_path / "regulations.db")
