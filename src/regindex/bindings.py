"""Named-command adapter over RegulationIndex.

Translates external calls (a command name plus keyword arguments) into
index calls and returns JSON-ready payloads. Failures come back as a
user-presentable error string, never as an exception or a store handle.

Commands:
    get_far_toc         : FAR table of contents
    get_aim_toc         : AIM table of contents
    search_far(query)   : FAR substring search
    search_aim(query)   : AIM substring search
    search_pcg(term)    : glossary substring search
    fetch_aim_metadata(chapter, section=None)
    get_section_manifest(section_id)
"""
from __future__ import annotations

import dataclasses
import inspect
import logging
from collections.abc import Callable
from dataclasses import dataclass
from typing import Any

import orjson

from regindex.corpus import RegulationIndex
from regindex.errors import EngineBusyError, RegIndexError
from regindex.records import SearchResponse, SectionManifest

log = logging.getLogger(__name__)

LOCK_FAILED_MESSAGE = "Failed to lock database"


@dataclass(frozen=True, slots=True)
class CommandResult:
    """Outcome of one command: a payload on success, an error string otherwise."""

    ok: bool
    payload: Any = None
    error: str | None = None

    def to_dict(self) -> dict[str, Any]:
        if self.ok:
            return {"ok": True, "payload": self.payload}
        return {"ok": False, "error": self.error}

    def to_json(self) -> bytes:
        return orjson.dumps(self.to_dict())


class _CommandFailed(Exception):
    """A handler outcome that maps to an error string without being a fault."""


def _search_payload(response: SearchResponse[Any]) -> dict[str, Any]:
    return {
        "results": [dataclasses.asdict(r) for r in response.results],
        "total": response.total,
    }


def manifest_payload(manifest: SectionManifest) -> dict[str, Any]:
    """Flatten a manifest to ``section_id``/``paragraphs``/``content`` pairs."""
    return {
        "section_id": manifest.section_id,
        "paragraphs": list(manifest.paragraphs),
        "content": [[key, text] for key, text in manifest.content.items()],
    }


def get_far_toc(index: RegulationIndex) -> list[dict[str, Any]]:
    return [dataclasses.asdict(m) for m in index.far_toc()]


def get_aim_toc(index: RegulationIndex) -> list[dict[str, Any]]:
    return [dataclasses.asdict(m) for m in index.aim_toc()]


def search_far(index: RegulationIndex, query: str) -> dict[str, Any]:
    return _search_payload(index.search_far(query))


def search_aim(index: RegulationIndex, query: str) -> dict[str, Any]:
    return _search_payload(index.search_aim(query))


def search_pcg(index: RegulationIndex, term: str) -> dict[str, Any]:
    return _search_payload(index.search_glossary(term))


def fetch_aim_metadata(
    index: RegulationIndex, chapter: int, section: int | None = None
) -> dict[str, Any]:
    result = index.aim_metadata(chapter, section)
    return {
        "chapter_title": result.chapter_title,
        "section_title": result.section_title,
    }


def get_section_manifest(index: RegulationIndex, section_id: str) -> dict[str, Any]:
    manifest = index.section_manifest(section_id)
    if manifest is None:
        raise _CommandFailed(f"Section {section_id} not found")
    return manifest_payload(manifest)


COMMANDS: dict[str, Callable[..., Any]] = {
    "get_far_toc": get_far_toc,
    "get_aim_toc": get_aim_toc,
    "search_far": search_far,
    "search_aim": search_aim,
    "search_pcg": search_pcg,
    "fetch_aim_metadata": fetch_aim_metadata,
    "get_section_manifest": get_section_manifest,
}

# bool is rejected wherever int is accepted
_ARG_TYPES: dict[str, tuple[type, ...]] = {
    "query": (str,),
    "term": (str,),
    "section_id": (str,),
    "chapter": (int,),
    "section": (int, type(None)),
}


def _check_arguments(
    command: str,
    handler: Callable[..., Any],
    index: RegulationIndex,
    kwargs: dict[str, Any],
) -> None:
    try:
        bound = inspect.signature(handler).bind(index, **kwargs)
    except TypeError as exc:
        raise _CommandFailed(f"Invalid arguments for {command}: {exc}") from exc
    for name, value in bound.arguments.items():
        expected = _ARG_TYPES.get(name)
        if expected is None:
            continue
        if isinstance(value, bool) or not isinstance(value, expected):
            allowed = " or ".join(
                "None" if t is type(None) else t.__name__ for t in expected
            )
            raise _CommandFailed(
                f"Invalid arguments for {command}: {name} must be {allowed}, "
                f"got {type(value).__name__}"
            )


def invoke(index: RegulationIndex, command: str, **kwargs: Any) -> CommandResult:
    """Run *command* against *index* and wrap the outcome.

    Unknown commands and bad arguments are reported the same way as index
    errors: ``CommandResult(ok=False, error=...)``.
    """
    handler = COMMANDS.get(command)
    if handler is None:
        return CommandResult(ok=False, error=f"Unknown command: {command}")
    try:
        _check_arguments(command, handler, index, kwargs)
    except _CommandFailed as exc:
        return CommandResult(ok=False, error=str(exc))

    log.debug("invoke %s %s", command, kwargs)
    try:
        payload = handler(index, **kwargs)
    except EngineBusyError as exc:
        log.warning("%s: %s", command, exc)
        return CommandResult(ok=False, error=LOCK_FAILED_MESSAGE)
    except (RegIndexError, _CommandFailed) as exc:
        log.info("%s failed: %s", command, exc)
        return CommandResult(ok=False, error=str(exc))
    return CommandResult(ok=True, payload=payload)
