from __future__ import annotations

import json
import os
from collections.abc import Callable
from datetime import UTC, datetime
from pathlib import Path

import duckdb

from puzzlix.utils.logger import get_logger

logger = get_logger(__name__)

SCHEMA_VERSION_SCHEMA = """
CREATE TABLE IF NOT EXISTS schema_version (
    version INTEGER,
    updated_at TIMESTAMP
);
"""

PUZZLES_SCHEMA = """
CREATE TABLE IF NOT EXISTS puzzles (
    puzzle_id BIGINT PRIMARY KEY,
    variant TEXT,
    initial_fen TEXT,
    author BIGINT,
    solutions TEXT,
    rating_value DOUBLE,
    rating_deviation DOUBLE,
    rating_volatility DOUBLE,
    rating_updated_at TIMESTAMP,
    in_review BOOLEAN,
    approved BOOLEAN,
    reviewers TEXT,
    explanation TEXT,
    date_submitted_utc TIMESTAMP
);
"""

USERS_SCHEMA = """
CREATE TABLE IF NOT EXISTS users (
    user_id BIGINT PRIMARY KEY,
    username TEXT,
    roles TEXT,
    puzzles_correct INTEGER,
    puzzles_wrong INTEGER,
    created_at TIMESTAMP DEFAULT CURRENT_TIMESTAMP
);
"""

USER_RATINGS_SCHEMA = """
CREATE TABLE IF NOT EXISTS user_ratings (
    user_id BIGINT,
    variant TEXT,
    rating_value DOUBLE,
    rating_deviation DOUBLE,
    rating_volatility DOUBLE,
    rating_updated_at TIMESTAMP
);
"""

SOLVED_PUZZLES_SCHEMA = """
CREATE TABLE IF NOT EXISTS solved_puzzles (
    user_id BIGINT,
    puzzle_id BIGINT,
    solved_order INTEGER
);
"""

ATTEMPTS_SCHEMA = """
CREATE TABLE IF NOT EXISTS attempts (
    attempt_id BIGINT PRIMARY KEY,
    user_id BIGINT,
    puzzle_id BIGINT,
    started_utc TIMESTAMP,
    ended_utc TIMESTAMP,
    rating_gain DOUBLE,
    correct BOOLEAN
);
"""

RATING_HISTORY_SCHEMA = """
CREATE TABLE IF NOT EXISTS rating_history (
    record_id BIGINT PRIMARY KEY,
    user_id BIGINT,
    variant TEXT,
    rating_value DOUBLE,
    rating_deviation DOUBLE,
    rating_volatility DOUBLE,
    recorded_utc TIMESTAMP
);
"""

COMMENTS_SCHEMA = """
CREATE TABLE IF NOT EXISTS comments (
    comment_id BIGINT PRIMARY KEY,
    author BIGINT,
    body_unsanitized TEXT,
    puzzle_id BIGINT,
    parent_id BIGINT,
    deleted BOOLEAN DEFAULT FALSE,
    date_posted_utc TIMESTAMP
);
"""


def get_connection(db_path: Path) -> duckdb.DuckDBPyConnection:
    db_path = Path(db_path)
    db_path.parent.mkdir(parents=True, exist_ok=True)
    logger.debug("Opening DuckDB at %s", db_path)
    try:
        return duckdb.connect(str(db_path))
    except duckdb.InternalException as exc:
        if not _should_attempt_wal_recovery(exc):
            raise
        wal_path = db_path.with_name(f"{db_path.name}.wal")
        if not wal_path.exists():
            raise
        logger.warning("Removing DuckDB WAL after replay error: %s", wal_path)
        try:
            wal_path.unlink()
        except OSError:
            logger.exception("Failed to remove WAL file: %s", wal_path)
            raise
        return duckdb.connect(str(db_path))


def init_schema(conn: duckdb.DuckDBPyConnection) -> None:
    migrate_schema(conn)


def migrate_schema(conn: duckdb.DuckDBPyConnection) -> None:
    conn.execute(SCHEMA_VERSION_SCHEMA)
    current_version = get_schema_version(conn)
    version = current_version
    for target_version, migration in _SCHEMA_MIGRATIONS:
        if version >= target_version:
            continue
        logger.info("Applying DuckDB schema migration v%s", target_version)
        migration(conn)
        _set_schema_version(conn, target_version)
        version = target_version


def get_schema_version(conn: duckdb.DuckDBPyConnection) -> int:
    row = conn.execute("SELECT version FROM schema_version LIMIT 1").fetchone()
    if not row:
        return 0
    return int(row[0] or 0)


def _set_schema_version(conn: duckdb.DuckDBPyConnection, version: int) -> None:
    conn.execute("DELETE FROM schema_version")
    conn.execute("INSERT INTO schema_version VALUES (?, CURRENT_TIMESTAMP)", [version])


def _should_attempt_wal_recovery(exc: Exception) -> bool:
    message = str(exc).lower()
    if "wal" not in message:
        return False
    if os.getenv("PYTEST_CURRENT_TEST"):
        return True
    env = os.getenv("PUZZLIX_ENV", "").lower()
    if env in {"test", "dev"}:
        return True
    allow = os.getenv("PUZZLIX_ALLOW_WAL_RECOVERY", "").lower()
    return allow in {"1", "true", "yes"}


def _migration_base_tables(conn: duckdb.DuckDBPyConnection) -> None:
    conn.execute(PUZZLES_SCHEMA)
    conn.execute(USERS_SCHEMA)
    conn.execute(USER_RATINGS_SCHEMA)
    conn.execute(SOLVED_PUZZLES_SCHEMA)


def _migration_add_attempt_tables(conn: duckdb.DuckDBPyConnection) -> None:
    conn.execute(ATTEMPTS_SCHEMA)
    conn.execute(RATING_HISTORY_SCHEMA)


def _migration_add_comments_table(conn: duckdb.DuckDBPyConnection) -> None:
    conn.execute(COMMENTS_SCHEMA)


_SCHEMA_MIGRATIONS: list[tuple[int, Callable[[duckdb.DuckDBPyConnection], None]]] = [
    (1, _migration_base_tables),
    (2, _migration_add_attempt_tables),
    (3, _migration_add_comments_table),
]
SCHEMA_VERSION = _SCHEMA_MIGRATIONS[-1][0]


def next_id(conn: duckdb.DuckDBPyConnection, table: str, column: str) -> int:
    """Return ``MAX(column) + 1`` for the table."""
    row = conn.execute(f"SELECT MAX({column}) FROM {table}").fetchone()  # noqa: S608
    return int(row[0] or 0) + 1 if row else 1


def to_db_timestamp(value: datetime | None) -> datetime | None:
    """Store timestamps as naive UTC."""
    if value is None:
        return None
    if value.tzinfo is None:
        return value
    return value.astimezone(UTC).replace(tzinfo=None)


def from_db_timestamp(value: object) -> datetime | None:
    if not isinstance(value, datetime):
        return None
    if value.tzinfo is None:
        return value.replace(tzinfo=UTC)
    return value.astimezone(UTC)


def encode_list(values: list[object] | None) -> str:
    return json.dumps(list(values or []), separators=(",", ":"))


def decode_list(raw: object) -> list[object]:
    if not raw:
        return []
    try:
        loaded = json.loads(str(raw))
    except json.JSONDecodeError:
        return []
    return loaded if isinstance(loaded, list) else []


__all__ = [
    "SCHEMA_VERSION",
    "decode_list",
    "encode_list",
    "from_db_timestamp",
    "get_connection",
    "get_schema_version",
    "init_schema",
    "migrate_schema",
    "next_id",
    "to_db_timestamp",
]
