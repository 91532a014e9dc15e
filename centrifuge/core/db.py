"""SQLite storage layer for candidates and rank-run tracking."""

import json
import logging
import sqlite3
from collections.abc import Iterator, Sequence
from datetime import datetime
from pathlib import Path
from typing import Protocol

from centrifuge.core.errors import StorageError
from centrifuge.core.schemas import Candidate, RawProfileData

logger = logging.getLogger(__name__)

# Keyset pagination cursor: (created_at isoformat, id) of the last row seen.
PoolCursor = tuple[str, str]

_CANDIDATES_TABLE = """
CREATE TABLE IF NOT EXISTS candidates (
    id                        TEXT    PRIMARY KEY,
    profile_url               TEXT    NOT NULL UNIQUE,
    company_id                TEXT,
    raw_profile_data          TEXT    NOT NULL DEFAULT '{}',
    top_technologies          TEXT    NOT NULL DEFAULT '[]',
    top_features              TEXT    NOT NULL DEFAULT '[]',
    job_titles                TEXT    NOT NULL DEFAULT '[]',
    summary                   TEXT    NOT NULL DEFAULT '',
    lives_near_target_region  INTEGER,
    worked_in_big_tech        INTEGER NOT NULL DEFAULT 0,
    worked_in_position        INTEGER NOT NULL DEFAULT 0,
    worked_at_relevant        INTEGER NOT NULL DEFAULT 0,
    created_at                TEXT    NOT NULL
);
"""

_POOL_INDEX = """
CREATE INDEX IF NOT EXISTS idx_candidates_created_id ON candidates (created_at, id);
"""

_RANK_RUNS_TABLE = """
CREATE TABLE IF NOT EXISTS rank_runs (
    id              INTEGER PRIMARY KEY AUTOINCREMENT,
    kind            TEXT NOT NULL,
    request_json    TEXT NOT NULL,
    input_count     INTEGER NOT NULL,
    result_count    INTEGER NOT NULL,
    input_not_found INTEGER NOT NULL DEFAULT 0,
    started_at      TEXT NOT NULL,
    finished_at     TEXT NOT NULL
);
"""


class Storage(Protocol):
    """What the pipeline needs from the data layer."""

    def find_input_set(self, urls: Sequence[str]) -> list[Candidate]: ...

    def find_pool_page(self, cursor: PoolCursor | None, limit: int) -> list[Candidate]: ...

    def find_pool_by_ids(self, ids: Sequence[str]) -> list[Candidate]: ...


def init_db(path: str | Path) -> sqlite3.Connection:
    """Create the database and tables, returning a connection."""
    path = Path(path)
    path.parent.mkdir(parents=True, exist_ok=True)
    conn = sqlite3.connect(str(path))
    conn.row_factory = sqlite3.Row
    conn.execute("PRAGMA journal_mode=WAL")
    conn.execute(_CANDIDATES_TABLE)
    conn.execute(_POOL_INDEX)
    conn.execute(_RANK_RUNS_TABLE)
    conn.commit()
    return conn


def upsert_candidate(conn: sqlite3.Connection, candidate: Candidate) -> bool:
    """Insert a candidate, ignoring it if profile_url or id already exists.

    Returns True if a new row was inserted, False if it was a duplicate.
    """
    try:
        conn.execute(
            """
            INSERT INTO candidates
                (id, profile_url, company_id, raw_profile_data, top_technologies,
                 top_features, job_titles, summary, lives_near_target_region,
                 worked_in_big_tech, worked_in_position, worked_at_relevant,
                 created_at)
            VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?)
            """,
            (
                candidate.id,
                candidate.profile_url,
                candidate.company_id,
                candidate.raw_profile_data.model_dump_json(),
                json.dumps(sorted(candidate.top_technologies)),
                json.dumps(sorted(candidate.top_features)),
                json.dumps(sorted(candidate.job_titles)),
                candidate.summary,
                _tri_state_in(candidate.lives_near_target_region),
                int(candidate.worked_in_big_tech),
                int(candidate.worked_in_position),
                int(candidate.worked_at_relevant),
                candidate.created_at.isoformat(),
            ),
        )
        conn.commit()
        return True
    except sqlite3.IntegrityError:
        return False


def find_input_set(conn: sqlite3.Connection, urls: Sequence[str]) -> list[Candidate]:
    """Return the stored candidates whose profile_url is in ``urls``."""
    if not urls:
        return []
    placeholders = ", ".join("?" for _ in urls)
    rows = conn.execute(
        f"SELECT * FROM candidates WHERE profile_url IN ({placeholders}) "
        "ORDER BY created_at, id",
        tuple(urls),
    ).fetchall()
    return [_row_to_candidate(r) for r in rows]


def find_pool_page(
    conn: sqlite3.Connection,
    cursor: PoolCursor | None,
    limit: int,
) -> list[Candidate]:
    """Return the next page of candidates after ``cursor``, by (created_at, id)."""
    if cursor is None:
        rows = conn.execute(
            "SELECT * FROM candidates ORDER BY created_at, id LIMIT ?",
            (limit,),
        ).fetchall()
    else:
        created_at, last_id = cursor
        rows = conn.execute(
            """
            SELECT * FROM candidates
            WHERE created_at > ? OR (created_at = ? AND id > ?)
            ORDER BY created_at, id
            LIMIT ?
            """,
            (created_at, created_at, last_id, limit),
        ).fetchall()
    return [_row_to_candidate(r) for r in rows]


def find_pool_by_ids(conn: sqlite3.Connection, ids: Sequence[str]) -> list[Candidate]:
    """Return the candidates with the given ids, in (created_at, id) order."""
    if not ids:
        return []
    placeholders = ", ".join("?" for _ in ids)
    rows = conn.execute(
        f"SELECT * FROM candidates WHERE id IN ({placeholders}) ORDER BY created_at, id",
        tuple(ids),
    ).fetchall()
    return [_row_to_candidate(r) for r in rows]


def count_candidates(conn: sqlite3.Connection) -> int:
    """Return the total number of stored candidates."""
    row = conn.execute("SELECT COUNT(*) FROM candidates").fetchone()
    return int(row[0])


def insert_rank_run(
    conn: sqlite3.Connection,
    kind: str,
    request_json: str,
    input_count: int,
    result_count: int,
    input_not_found: bool,
    started_at: datetime,
    finished_at: datetime,
) -> int:
    """Record a completed rank run. Returns the row ID."""
    cursor = conn.execute(
        """
        INSERT INTO rank_runs
            (kind, request_json, input_count, result_count, input_not_found,
             started_at, finished_at)
        VALUES (?, ?, ?, ?, ?, ?, ?)
        """,
        (
            kind,
            request_json,
            input_count,
            result_count,
            int(input_not_found),
            started_at.isoformat(),
            finished_at.isoformat(),
        ),
    )
    conn.commit()
    return cursor.lastrowid or 0


def cursor_after(candidate: Candidate) -> PoolCursor:
    """The cursor that resumes paging right after ``candidate``."""
    return (candidate.created_at.isoformat(), candidate.id)


class SqliteStorage:
    """Storage collaborator backed by one SQLite connection.

    Every sqlite3 error, and every stored row that fails to decode, is
    re-raised as StorageError.
    """

    def __init__(self, conn: sqlite3.Connection) -> None:
        self._conn = conn

    def find_input_set(self, urls: Sequence[str]) -> list[Candidate]:
        try:
            return find_input_set(self._conn, urls)
        except (sqlite3.Error, ValueError) as e:
            msg = f"Failed to fetch input set: {e}"
            raise StorageError(msg) from e

    def find_pool_page(self, cursor: PoolCursor | None, limit: int) -> list[Candidate]:
        try:
            return find_pool_page(self._conn, cursor, limit)
        except (sqlite3.Error, ValueError) as e:
            msg = f"Failed to fetch pool page after {cursor}: {e}"
            raise StorageError(msg) from e

    def find_pool_by_ids(self, ids: Sequence[str]) -> list[Candidate]:
        try:
            return find_pool_by_ids(self._conn, ids)
        except (sqlite3.Error, ValueError) as e:
            msg = f"Failed to fetch candidates by id: {e}"
            raise StorageError(msg) from e

    def iter_pool(self, batch_size: int) -> Iterator[list[Candidate]]:
        """Yield pool pages until exhausted."""
        yield from iter_pool_pages(self, batch_size)


def iter_pool_pages(storage: Storage, batch_size: int) -> Iterator[list[Candidate]]:
    """Walk every page of a storage's pool with keyset pagination."""
    cursor: PoolCursor | None = None
    while True:
        page = storage.find_pool_page(cursor, batch_size)
        if not page:
            return
        yield page
        if len(page) < batch_size:
            return
        cursor = cursor_after(page[-1])


def _row_to_candidate(row: sqlite3.Row) -> Candidate:
    return Candidate(
        id=row["id"],
        profile_url=row["profile_url"],
        company_id=row["company_id"],
        raw_profile_data=RawProfileData.model_validate_json(row["raw_profile_data"]),
        top_technologies=frozenset(json.loads(row["top_technologies"])),
        top_features=frozenset(json.loads(row["top_features"])),
        job_titles=frozenset(json.loads(row["job_titles"])),
        summary=row["summary"],
        lives_near_target_region=_tri_state_out(row["lives_near_target_region"]),
        worked_in_big_tech=bool(row["worked_in_big_tech"]),
        worked_in_position=bool(row["worked_in_position"]),
        worked_at_relevant=bool(row["worked_at_relevant"]),
        created_at=datetime.fromisoformat(row["created_at"]),
    )


def _tri_state_in(value: bool | None) -> int | None:
    return None if value is None else int(value)


def _tri_state_out(value: int | None) -> bool | None:
    return None if value is None else bool(value)
