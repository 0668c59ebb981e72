#!/usr/bin/env python3
"""Query the regulations database from the command line.

Each subcommand maps onto one regindex.bindings command and writes its JSON
payload to stdout. Summary messages and errors go to stderr.

Usage:
    python3 scripts/regulation_search.py --db regulations.db far "safety"
    python3 scripts/regulation_search.py aim "runway" --count-only
    python3 scripts/regulation_search.py glossary "ceiling"
    python3 scripts/regulation_search.py toc far
    python3 scripts/regulation_search.py metadata 4 --section 3
    python3 scripts/regulation_search.py manifest 91.103

The database path defaults to $REGINDEX_DB, then ./regulations.db.
"""
from __future__ import annotations

import argparse
import logging
import os
import sys
from pathlib import Path
from typing import Any

from regindex.bindings import invoke
from regindex.corpus import DEFAULT_DB_PATH, DEFAULT_LOCK_TIMEOUT, RegulationIndex
from regindex.errors import RegIndexError
from regindex.io_utils import dump_json

log = logging.getLogger("regulation_search")

_SEARCH_COMMANDS = {
    "far": "search_far",
    "aim": "search_aim",
    "glossary": "search_pcg",
}


def _default_db() -> Path:
    env = os.environ.get("REGINDEX_DB", "").strip()
    return Path(env) if env else DEFAULT_DB_PATH


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        description="Search and browse the FAR/AIM regulations database."
    )
    parser.add_argument(
        "--db", type=Path, default=None,
        help="Path to regulations.db (default: $REGINDEX_DB or ./regulations.db)",
    )
    parser.add_argument(
        "--lock-timeout", type=float, default=DEFAULT_LOCK_TIMEOUT,
        help=f"Seconds to wait for the index lock (default: {DEFAULT_LOCK_TIMEOUT})",
    )
    parser.add_argument(
        "--no-schema-check", action="store_true",
        help="Skip the schema version check on open",
    )
    parser.add_argument("--verbose", "-v", action="store_true", help="Verbose logging")

    sub = parser.add_subparsers(dest="command", required=True)

    for name, help_text in (
        ("far", "Substring search over FAR content and section titles"),
        ("aim", "Substring search over AIM content and topic titles"),
        ("glossary", "Substring search over glossary terms and definitions"),
    ):
        p = sub.add_parser(name, help=help_text)
        p.add_argument("query", nargs="?", default="",
                       help="Text to search for (empty matches everything)")
        p.add_argument("--count-only", action="store_true",
                       help="Print only the match count")

    toc = sub.add_parser("toc", help="Table of contents")
    toc.add_argument("corpus", choices=("far", "aim"))

    meta = sub.add_parser("metadata", help="AIM chapter/section titles")
    meta.add_argument("chapter", type=int)
    meta.add_argument("--section", type=int, default=None)

    man = sub.add_parser("manifest", help="FAR section manifest, e.g. 91.103")
    man.add_argument("section_id")
    return parser


def _command_for(args: argparse.Namespace) -> tuple[str, dict[str, Any]]:
    if args.command in _SEARCH_COMMANDS:
        key = "term" if args.command == "glossary" else "query"
        return _SEARCH_COMMANDS[args.command], {key: args.query}
    if args.command == "toc":
        return f"get_{args.corpus}_toc", {}
    if args.command == "metadata":
        return "fetch_aim_metadata", {"chapter": args.chapter, "section": args.section}
    return "get_section_manifest", {"section_id": args.section_id}


def main(argv: list[str] | None = None) -> int:
    args = build_parser().parse_args(argv)

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.WARNING,
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
        datefmt="%H:%M:%S",
        stream=sys.stderr,
    )

    db_path: Path = args.db or _default_db()
    if not db_path.exists():
        print(f"Error: database not found: {db_path}", file=sys.stderr)
        return 2

    try:
        index = RegulationIndex(
            db_path,
            enforce_schema=not args.no_schema_check,
            lock_timeout=args.lock_timeout,
        )
    except (RegIndexError, ValueError) as exc:
        print(f"Error: cannot open {db_path}: {exc}", file=sys.stderr)
        return 2

    with index:
        command, kwargs = _command_for(args)
        result = invoke(index, command, **kwargs)

    if not result.ok:
        print(f"Error: {result.error}", file=sys.stderr)
        return 1

    payload = result.payload
    if args.command in _SEARCH_COMMANDS:
        print(f"Found {payload['total']} matches", file=sys.stderr)
        if args.count_only:
            dump_json({"total": payload["total"]})
            return 0
    dump_json(payload)
    return 0


if __name__ == "__main__":
    sys.exit(main())
