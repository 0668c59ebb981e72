"""I/O utilities for JSON and JSONL files, backed by orjson."""
from __future__ import annotations

import sys
from pathlib import Path
from typing import Any

import orjson


def load_jsonl(path: Path) -> list[dict[str, Any]]:
    """Load a JSON Lines file (one JSON object per line). Blank lines skipped."""
    records: list[dict[str, Any]] = []
    for lineno, line in enumerate(path.read_bytes().split(b"\n"), start=1):
        line = line.strip()
        if not line:
            continue
        obj = orjson.loads(line)
        if not isinstance(obj, dict):
            raise ValueError(f"{path}:{lineno}: expected a JSON object per line")
        records.append(obj)
    return records


def save_jsonl(records: list[dict[str, Any]], path: Path) -> None:
    """Save a list of dicts as a JSON Lines file."""
    path.parent.mkdir(parents=True, exist_ok=True)
    lines = [orjson.dumps(r) for r in records]
    path.write_bytes(b"\n".join(lines) + b"\n")


def dump_json(obj: Any, *, pretty: bool = True) -> None:
    """Write *obj* as JSON to stdout."""
    option = orjson.OPT_INDENT_2 if pretty else 0
    sys.stdout.buffer.write(orjson.dumps(obj, option=option))
    sys.stdout.buffer.write(b"\n")
    sys.stdout.flush()
