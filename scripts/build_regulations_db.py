#!/usr/bin/env python3
"""Build the DuckDB regulations database from JSONL exports.

Each input is a JSON Lines file with one object per row, keyed by the
column names in regindex.schema.TABLE_COLUMNS. Optional columns
(paragraph, subparagraph, item, image) may be omitted. All tables are
written in a single transaction to a staging file that replaces the
output only on success; a failed load leaves any existing output untouched.

Usage:
    python3 scripts/build_regulations_db.py \
        --far-metadata data/far_metadata.jsonl \
        --far-entries data/far_entries.jsonl \
        --aim-metadata data/aim_metadata.jsonl \
        --aim-entries data/aim_entries.jsonl \
        --pcg data/pcg_entries.jsonl \
        --output regulations.db
"""
from __future__ import annotations

import argparse
import importlib
import logging
import sys
from pathlib import Path
from typing import Any

from regindex.io_utils import load_jsonl
from regindex.schema import create_schema, insert_rows

# DuckDB: dynamic import for pyright compatibility
_duckdb = importlib.import_module("duckdb")

log = logging.getLogger("build_regulations_db")

# (CLI flag dest, table name) in load order
_INPUTS: tuple[tuple[str, str], ...] = (
    ("far_metadata", "far_metadata"),
    ("far_entries", "far_entries"),
    ("aim_metadata", "aim_metadata"),
    ("aim_entries", "aim_entries"),
    ("pcg", "pcg_entries"),
)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        description="Build the regulations DuckDB database from JSONL exports."
    )
    parser.add_argument("--far-metadata", type=Path, default=None,
                        help="JSONL rows for far_metadata")
    parser.add_argument("--far-entries", type=Path, default=None,
                        help="JSONL rows for far_entries")
    parser.add_argument("--aim-metadata", type=Path, default=None,
                        help="JSONL rows for aim_metadata")
    parser.add_argument("--aim-entries", type=Path, default=None,
                        help="JSONL rows for aim_entries")
    parser.add_argument("--pcg", type=Path, default=None,
                        help="JSONL rows for pcg_entries (glossary)")
    parser.add_argument("--output", required=True, type=Path,
                        help="Output DuckDB path (e.g. regulations.db)")
    parser.add_argument("--force", action="store_true",
                        help="Overwrite an existing output file")
    parser.add_argument("--verbose", "-v", action="store_true",
                        help="Verbose logging")
    return parser


def load_tables(args: argparse.Namespace) -> dict[str, list[dict[str, Any]]]:
    """Read every supplied JSONL input, keyed by table name."""
    tables: dict[str, list[dict[str, Any]]] = {}
    for dest, table in _INPUTS:
        path: Path | None = getattr(args, dest)
        if path is None:
            continue
        if not path.exists():
            raise FileNotFoundError(f"input not found for {table}: {path}")
        tables[table] = load_jsonl(path)
        log.debug("Read %d rows for %s from %s", len(tables[table]), table, path)
    return tables


def write_database(output: Path, tables: dict[str, list[dict[str, Any]]]) -> dict[str, int]:
    """Create *output* with the fixed schema and insert *tables* atomically.

    Returns per-table inserted row counts. On failure the partial file is
    removed and the error re-raised.
    """
    output.parent.mkdir(parents=True, exist_ok=True)
    conn: Any = _duckdb.connect(str(output))
    counts: dict[str, int] = {}
    try:
        conn.execute("BEGIN TRANSACTION")
        create_schema(conn)
        for _dest, table in _INPUTS:
            counts[table] = insert_rows(conn, table, tables.get(table, []))
        conn.execute("COMMIT")
    except Exception:
        conn.execute("ROLLBACK")
        conn.close()
        output.unlink(missing_ok=True)
        Path(f"{output}.wal").unlink(missing_ok=True)
        raise
    conn.close()
    return counts


def main(argv: list[str] | None = None) -> int:
    args = build_parser().parse_args(argv)

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.INFO,
        format="%(asctime)s [%(levelname)s] %(message)s",
        datefmt="%H:%M:%S",
        stream=sys.stderr,
    )

    output: Path = args.output.resolve()
    if output.exists() and not args.force:
        print(f"Error: {output} exists (use --force to overwrite)", file=sys.stderr)
        return 1

    try:
        tables = load_tables(args)
    except (FileNotFoundError, ValueError) as exc:
        print(f"Error: {exc}", file=sys.stderr)
        return 1
    if not tables:
        print("Error: no input files given", file=sys.stderr)
        return 1

    # build beside the output and swap it in only after a successful commit
    staging = output.with_name(f"{output.name}.tmp")
    staging.unlink(missing_ok=True)
    Path(f"{staging}.wal").unlink(missing_ok=True)
    counts = write_database(staging, tables)
    Path(f"{output}.wal").unlink(missing_ok=True)
    staging.replace(output)
    for table, count in counts.items():
        print(f"  {table}: {count} rows", file=sys.stderr)
    print(f"Wrote {sum(counts.values())} rows to {output}", file=sys.stderr)
    return 0


if __name__ == "__main__":
    sys.exit(main())
