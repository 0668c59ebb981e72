"""Fixed DuckDB schema for the regulations store.

Tables:
    far_metadata   : FAR titling hierarchy (title/chapter/subchapter/part)
    far_entries    : FAR content rows (section/paragraph level)
    aim_metadata   : AIM titling hierarchy (chapter/section)
    aim_entries    : AIM content rows (topic/paragraph level)
    pcg_entries    : Pilot/Controller Glossary terms
    _schema_version: schema version tracking

The runtime index only reads these tables; ``create_schema`` is used by the
offline build script and by test fixtures.
"""
from __future__ import annotations

from typing import Any

SCHEMA_VERSION = "1.0.0"
SCHEMA_TABLE_NAME = "regulations"

TABLE_COLUMNS: dict[str, tuple[str, ...]] = {
    "far_metadata": (
        "title", "title_title", "chapter", "chapter_title",
        "subchapter", "subchapter_title", "part", "part_title",
    ),
    "far_entries": (
        "title", "chapter", "subchapter", "part", "section", "section_title",
        "paragraph", "subparagraph", "item", "content",
    ),
    "aim_metadata": ("chapter", "chapter_title", "section", "section_title"),
    "aim_entries": (
        "chapter", "section", "topic", "topic_title",
        "paragraph", "subparagraph", "item", "content", "image",
    ),
    "pcg_entries": ("term", "definition"),
}

SCHEMA_DDL = """\
CREATE TABLE _schema_version (
    table_name VARCHAR PRIMARY KEY,
    version VARCHAR NOT NULL,
    created_at TIMESTAMP DEFAULT current_timestamp
);

CREATE TABLE far_metadata (
    title INTEGER NOT NULL,
    title_title VARCHAR NOT NULL,
    chapter INTEGER NOT NULL,
    chapter_title VARCHAR NOT NULL,
    subchapter VARCHAR NOT NULL,
    subchapter_title VARCHAR NOT NULL,
    part INTEGER NOT NULL,
    part_title VARCHAR NOT NULL
);

CREATE SEQUENCE far_entries_id_seq;
CREATE TABLE far_entries (
    id INTEGER PRIMARY KEY DEFAULT nextval('far_entries_id_seq'),
    title INTEGER NOT NULL,
    chapter INTEGER NOT NULL,
    subchapter VARCHAR NOT NULL,
    part INTEGER NOT NULL,
    section INTEGER NOT NULL,
    section_title VARCHAR NOT NULL,
    paragraph VARCHAR,
    subparagraph INTEGER,
    item INTEGER,
    content VARCHAR NOT NULL
);

CREATE TABLE aim_metadata (
    chapter INTEGER NOT NULL,
    chapter_title VARCHAR NOT NULL,
    section INTEGER NOT NULL,
    section_title VARCHAR NOT NULL
);

CREATE SEQUENCE aim_entries_id_seq;
CREATE TABLE aim_entries (
    id INTEGER PRIMARY KEY DEFAULT nextval('aim_entries_id_seq'),
    chapter INTEGER NOT NULL,
    section INTEGER NOT NULL,
    topic INTEGER NOT NULL,
    topic_title VARCHAR NOT NULL,
    paragraph VARCHAR,
    subparagraph INTEGER,
    item INTEGER,
    content VARCHAR NOT NULL,
    image VARCHAR
);

CREATE SEQUENCE pcg_entries_id_seq;
CREATE TABLE pcg_entries (
    id INTEGER PRIMARY KEY DEFAULT nextval('pcg_entries_id_seq'),
    term VARCHAR NOT NULL,
    definition VARCHAR NOT NULL
);
"""


def create_schema(conn: Any, *, version: str = SCHEMA_VERSION) -> None:
    """Create all regulation tables on a writable DuckDB connection."""
    for stmt in SCHEMA_DDL.split(";"):
        stmt = stmt.strip()
        if stmt:
            conn.execute(stmt)
    conn.execute(
        "INSERT INTO _schema_version (table_name, version) VALUES (?, ?)",
        [SCHEMA_TABLE_NAME, version],
    )


def insert_rows(conn: Any, table: str, rows: list[dict[str, Any]]) -> int:
    """Insert dict rows into *table*, taking only its known columns.

    Absent optional columns are written as NULL. Returns the row count.
    """
    columns = TABLE_COLUMNS[table]
    if not rows:
        return 0
    placeholders = ", ".join(["?"] * len(columns))
    conn.executemany(
        f"INSERT INTO {table} ({', '.join(columns)}) VALUES ({placeholders})",
        [[row.get(col) for col in columns] for row in rows],
    )
    return len(rows)
