"""DuckDB-backed regulation index for FAR, AIM and glossary lookups.

Provides read-only access to the pre-built regulations database
(regulations.db). The database is built by scripts/build_regulations_db.py
and opened read-only here. On open, the FAR section manifest is built once
and held in memory for the lifetime of the index.

Concurrency: DuckDB connections are NOT thread-safe. One lock guards the
connection and the manifest, so concurrent callers are serialized.
"""
from __future__ import annotations

import contextlib
import importlib
import logging
import threading
from collections.abc import Callable, Iterator
from pathlib import Path
from typing import Any, TypeVar

from regindex.errors import (
    EngineBusyError,
    NotFoundError,
    RowDecodeError,
    SchemaVersionError,
    StoreUnavailableError,
)
from regindex.manifest import build_section_manifests
from regindex.records import (
    AimEntry,
    AimMetadata,
    AimMetadataResult,
    FarEntry,
    FarMetadata,
    GlossaryEntry,
    SearchResponse,
    SectionManifest,
    aim_entry_from_row,
    aim_metadata_from_row,
    far_entry_from_row,
    far_metadata_from_row,
    glossary_entry_from_row,
)
from regindex.schema import SCHEMA_TABLE_NAME, SCHEMA_VERSION

# Dynamic DuckDB import for pyright compatibility
_duckdb_mod = importlib.import_module("duckdb")

log = logging.getLogger(__name__)

R = TypeVar("R")

DEFAULT_DB_PATH = Path("regulations.db")
DEFAULT_LOCK_TIMEOUT = 5.0


def _read_schema_version(conn: Any) -> str:
    """Read regulations schema version from an open DuckDB connection."""
    try:
        result = conn.execute(
            "SELECT version FROM _schema_version WHERE table_name = ?",
            [SCHEMA_TABLE_NAME],
        ).fetchone()
    except _duckdb_mod.Error:
        return "unknown"
    return str(result[0]) if result else "unknown"


def ensure_schema_version(
    conn: Any,
    *,
    db_path: Path | None = None,
    expected: str = SCHEMA_VERSION,
) -> str:
    """Validate schema version for an open DuckDB connection.

    Returns actual schema version on success.
    Raises SchemaVersionError on mismatch.
    """
    actual = _read_schema_version(conn)
    if actual != expected:
        where = f" in {db_path}" if db_path is not None else ""
        raise SchemaVersionError(
            f"Schema version mismatch{where}: expected {expected}, got {actual}"
        )
    return actual


def _like_pattern(query: str) -> str:
    return f"%{query}%"


def _title_column(value: Any, column: str) -> str:
    if not isinstance(value, str):
        raise RowDecodeError("aim_metadata", column, value, "str")
    return value


class RegulationIndex:
    """Read-only query surface over the regulations database.

    All queries return typed records. Each public call takes the index lock
    for its whole duration and either returns a complete result or raises.
    """

    def __init__(
        self,
        db_path: Path,
        *,
        enforce_schema: bool = True,
        lock_timeout: float = DEFAULT_LOCK_TIMEOUT,
    ) -> None:
        # threading.Lock.acquire treats -1 as "wait forever"
        if lock_timeout < 0 and lock_timeout != -1:
            raise ValueError(
                f"lock_timeout must be >= 0 or -1, got {lock_timeout}"
            )
        self._db_path = db_path
        self._lock = threading.Lock()
        self._lock_timeout = lock_timeout
        self._manifest: dict[str, SectionManifest] = {}
        try:
            self._conn: Any = _duckdb_mod.connect(str(db_path), read_only=True)
        except _duckdb_mod.Error as exc:
            raise StoreUnavailableError(
                f"Failed to open regulations database {db_path}: {exc}"
            ) from exc

        try:
            if enforce_schema:
                ensure_schema_version(self._conn, db_path=db_path)
            with self._lock:
                self._manifest = self._store_call(
                    "build section manifest",
                    lambda: build_section_manifests(self._conn),
                )
        except Exception:
            self._conn.close()
            self._conn = None
            raise

    def close(self) -> None:
        """Close the database connection and drop the manifest."""
        with self._lock:
            if self._conn is not None:
                self._conn.close()
                self._conn = None
            self._manifest = {}

    def __enter__(self) -> RegulationIndex:
        return self

    def __exit__(self, *_args: object) -> None:
        self.close()

    @property
    def db_path(self) -> Path:
        return self._db_path

    @contextlib.contextmanager
    def _locked(self) -> Iterator[Any]:
        if not self._lock.acquire(timeout=self._lock_timeout):
            raise EngineBusyError(
                f"Regulation index busy: lock not acquired within {self._lock_timeout}s"
            )
        try:
            if self._conn is None:
                raise EngineBusyError("Regulation index is closed")
            yield self._conn
        finally:
            self._lock.release()

    def _store_call(self, what: str, fn: Callable[[], R]) -> R:
        try:
            return fn()
        except _duckdb_mod.Error as exc:
            raise StoreUnavailableError(f"Failed to {what}: {exc}") from exc

    def _fetch_dicts(
        self, conn: Any, what: str, sql: str, params: list[Any]
    ) -> list[dict[str, Any]]:
        def run() -> list[dict[str, Any]]:
            cursor = conn.execute(sql, params)
            cols = [str(desc[0]) for desc in cursor.description]
            return [dict(zip(cols, row, strict=True)) for row in cursor.fetchall()]

        rows = self._store_call(what, run)
        log.debug("%s: %d rows", what, len(rows))
        return rows

    # -- housekeeping -------------------------------------------------------

    @property
    def schema_version(self) -> str:
        """Get the schema version of this regulations database."""
        with self._locked() as conn:
            return _read_schema_version(conn)

    @property
    def manifest_size(self) -> int:
        """Number of FAR sections in the manifest."""
        with self._locked():
            return len(self._manifest)

    def section_ids(self) -> list[str]:
        """All manifest section keys, sorted."""
        with self._locked():
            return sorted(self._manifest)

    # -- table of contents --------------------------------------------------

    def far_toc(self) -> list[FarMetadata]:
        """Distinct FAR titling rows ordered by title, chapter, part."""
        with self._locked() as conn:
            rows = self._fetch_dicts(
                conn,
                "read FAR table of contents",
                """
                SELECT DISTINCT title, title_title, chapter, chapter_title,
                       subchapter, subchapter_title, part, part_title
                FROM far_metadata
                ORDER BY title, chapter, part
                """,
                [],
            )
            return [far_metadata_from_row(r) for r in rows]

    def aim_toc(self) -> list[AimMetadata]:
        """Distinct AIM titling rows ordered by chapter, section."""
        with self._locked() as conn:
            rows = self._fetch_dicts(
                conn,
                "read AIM table of contents",
                """
                SELECT DISTINCT chapter, chapter_title, section, section_title
                FROM aim_metadata
                ORDER BY chapter, section
                """,
                [],
            )
            return [aim_metadata_from_row(r) for r in rows]

    # -- search -------------------------------------------------------------

    def search_far(self, query: str) -> SearchResponse[FarEntry]:
        """Substring search over FAR content and section titles.

        Args:
            query: Free text, wrapped as ``%query%`` for ILIKE. Empty matches all.
        """
        with self._locked() as conn:
            rows = self._fetch_dicts(
                conn,
                "search FAR",
                """
                SELECT * FROM far_entries
                WHERE content ILIKE $1 OR section_title ILIKE $1
                ORDER BY title, chapter, part, section
                """,
                [_like_pattern(query)],
            )
            return SearchResponse.of([far_entry_from_row(r) for r in rows])

    def search_aim(self, query: str) -> SearchResponse[AimEntry]:
        """Substring search over AIM content and topic titles."""
        with self._locked() as conn:
            rows = self._fetch_dicts(
                conn,
                "search AIM",
                """
                SELECT * FROM aim_entries
                WHERE content ILIKE $1 OR topic_title ILIKE $1
                ORDER BY chapter, section, topic
                """,
                [_like_pattern(query)],
            )
            return SearchResponse.of([aim_entry_from_row(r) for r in rows])

    def search_glossary(self, term: str) -> SearchResponse[GlossaryEntry]:
        """Substring search over glossary terms and definitions."""
        with self._locked() as conn:
            rows = self._fetch_dicts(
                conn,
                "search glossary",
                """
                SELECT * FROM pcg_entries
                WHERE term ILIKE $1 OR definition ILIKE $1
                """,
                [_like_pattern(term)],
            )
            return SearchResponse.of([glossary_entry_from_row(r) for r in rows])

    # -- lookups ------------------------------------------------------------

    def aim_metadata(self, chapter: int, section: int | None = None) -> AimMetadataResult:
        """Chapter (and optionally section) titles for an AIM location.

        Without a section, the first row for the chapter supplies the
        chapter title and ``section_title`` is None.

        Raises:
            NotFoundError: No matching row in ``aim_metadata``.
        """
        with self._locked() as conn:
            if section is not None:
                row = self._store_call(
                    "fetch AIM metadata",
                    lambda: conn.execute(
                        "SELECT chapter_title, section_title FROM aim_metadata "
                        "WHERE chapter = ? AND section = ? LIMIT 1",
                        [chapter, section],
                    ).fetchone(),
                )
                if row is None:
                    raise NotFoundError(
                        f"No AIM metadata for chapter {chapter} section {section}"
                    )
                return AimMetadataResult(
                    _title_column(row[0], "chapter_title"),
                    _title_column(row[1], "section_title"),
                )

            row = self._store_call(
                "fetch AIM metadata",
                lambda: conn.execute(
                    "SELECT chapter_title FROM aim_metadata WHERE chapter = ? "
                    "ORDER BY section LIMIT 1",
                    [chapter],
                ).fetchone(),
            )
            if row is None:
                raise NotFoundError(f"No AIM metadata for chapter {chapter}")
            return AimMetadataResult(_title_column(row[0], "chapter_title"), None)

    def section_manifest(self, section_id: str) -> SectionManifest | None:
        """Manifest for a ``{part}.{section}`` key, or None when unknown."""
        with self._locked():
            return self._manifest.get(section_id)
