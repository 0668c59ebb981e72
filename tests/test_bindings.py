"""Tests for regindex.bindings: the named-command adapter."""
from __future__ import annotations

from pathlib import Path

import orjson
import pytest

from regindex.bindings import COMMANDS, LOCK_FAILED_MESSAGE, invoke
from regindex.corpus import RegulationIndex


@pytest.fixture()
def index(regulations_db: Path) -> RegulationIndex:
    idx = RegulationIndex(regulations_db, lock_timeout=0.01)
    yield idx  # type: ignore[misc]
    idx.close()


def test_command_names_match_call_boundary() -> None:
    assert set(COMMANDS) == {
        "get_far_toc",
        "get_aim_toc",
        "search_far",
        "search_aim",
        "search_pcg",
        "fetch_aim_metadata",
        "get_section_manifest",
    }


def test_search_payload_has_results_and_total(index: RegulationIndex) -> None:
    result = invoke(index, "search_far", query="safety")
    assert result.ok
    assert result.payload["total"] == 1
    row = result.payload["results"][0]
    assert row["content"] == "Safety requirements apply"
    assert row["paragraph"] is None
    assert set(row) == {
        "title", "chapter", "subchapter", "part", "section", "section_title",
        "paragraph", "subparagraph", "item", "content",
    }


def test_glossary_command_takes_term(index: RegulationIndex) -> None:
    result = invoke(index, "search_pcg", term="taxi")
    assert result.ok
    assert result.payload == {
        "results": [
            {"term": "TAXI",
             "definition": "The movement of an airplane under its own power on the surface."}
        ],
        "total": 1,
    }


def test_toc_payloads(index: RegulationIndex) -> None:
    far = invoke(index, "get_far_toc")
    aim = invoke(index, "get_aim_toc")
    assert far.ok and aim.ok
    assert [m["part"] for m in far.payload] == [1, 91]
    assert aim.payload[0] == {
        "chapter": 4,
        "chapter_title": "Air Traffic Control",
        "section": 1,
        "section_title": "Services Available to Pilots",
    }


def test_metadata_payload_and_optional_section(index: RegulationIndex) -> None:
    with_section = invoke(index, "fetch_aim_metadata", chapter=4, section=3)
    assert with_section.payload == {
        "chapter_title": "Air Traffic Control",
        "section_title": "Airport Operations",
    }
    chapter_only = invoke(index, "fetch_aim_metadata", chapter=4)
    assert chapter_only.payload == {
        "chapter_title": "Air Traffic Control",
        "section_title": None,
    }


def test_metadata_not_found_is_error_string(index: RegulationIndex) -> None:
    result = invoke(index, "fetch_aim_metadata", chapter=4, section=99)
    assert not result.ok
    assert "chapter 4 section 99" in (result.error or "")


def test_manifest_payload(index: RegulationIndex) -> None:
    result = invoke(index, "get_section_manifest", section_id="91.103")
    assert result.ok
    assert result.payload["section_id"] == "91.103"
    assert result.payload["paragraphs"] == ["a", "b"]
    assert [key for key, _text in result.payload["content"]] == [
        "91.103",
        "91.103(a)",
        "91.103(b)",
    ]


def test_manifest_not_found(index: RegulationIndex) -> None:
    result = invoke(index, "get_section_manifest", section_id="99.999")
    assert not result.ok
    assert result.error == "Section 99.999 not found"


def test_busy_index_reports_lock_failure(index: RegulationIndex) -> None:
    index._lock.acquire()
    try:
        result = invoke(index, "search_aim", query="")
    finally:
        index._lock.release()
    assert not result.ok
    assert result.error == LOCK_FAILED_MESSAGE


def test_unknown_command(index: RegulationIndex) -> None:
    result = invoke(index, "drop_everything")
    assert not result.ok
    assert result.error == "Unknown command: drop_everything"


def test_invalid_arguments(index: RegulationIndex) -> None:
    missing = invoke(index, "search_far")
    extra = invoke(index, "get_far_toc", query="x")
    assert not missing.ok and missing.error.startswith("Invalid arguments for search_far")
    assert not extra.ok and extra.error.startswith("Invalid arguments for get_far_toc")


def test_to_json_round_trips_through_orjson(index: RegulationIndex) -> None:
    ok = orjson.loads(invoke(index, "search_aim", query="runway").to_json())
    assert ok == {"ok": True, "payload": {"results": [], "total": 0}}
    err = orjson.loads(invoke(index, "get_section_manifest", section_id="0.0").to_json())
    assert err == {"ok": False, "error": "Section 0.0 not found"}


@pytest.mark.parametrize(
    "command, kwargs, needle",
    [
        ("fetch_aim_metadata", {"chapter": "4", "section": 3}, "chapter must be int, got str"),
        ("fetch_aim_metadata", {"chapter": 4, "section": "3"}, "section must be int or None"),
        ("fetch_aim_metadata", {"chapter": True}, "chapter must be int, got bool"),
        ("get_section_manifest", {"section_id": ["91.103"]}, "section_id must be str, got list"),
        ("search_far", {"query": 7}, "query must be str, got int"),
        ("search_pcg", {"term": None}, "term must be str, got NoneType"),
    ],
)
def test_mistyped_arguments_are_error_strings(
    index: RegulationIndex, command: str, kwargs: dict, needle: str
) -> None:
    result = invoke(index, command, **kwargs)
    assert not result.ok
    assert result.error.startswith(f"Invalid arguments for {command}")
    assert needle in result.error
    assert "Malformed row" not in result.error


def test_explicit_none_section_is_chapter_lookup(index: RegulationIndex) -> None:
    result = invoke(index, "fetch_aim_metadata", chapter=5, section=None)
    assert result.ok
    assert result.payload["section_title"] is None
