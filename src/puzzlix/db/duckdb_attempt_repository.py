"""Attempt and rating-history repository for DuckDB-backed storage."""

from __future__ import annotations

from datetime import datetime

import duckdb

from puzzlix.db._rows_to_dicts import _rows_to_dicts
from puzzlix.db.duckdb_store import from_db_timestamp, next_id, to_db_timestamp
from puzzlix.domain.rating import Rating
from puzzlix.domain.user import Attempt, RatingRecord


class DuckDbAttemptRepository:
    def __init__(self, conn: duckdb.DuckDBPyConnection) -> None:
        self._conn = conn

    def add_attempt(self, attempt: Attempt) -> int:
        attempt_id = next_id(self._conn, "attempts", "attempt_id")
        self._conn.execute(
            """
            INSERT INTO attempts (
                attempt_id,
                user_id,
                puzzle_id,
                started_utc,
                ended_utc,
                rating_gain,
                correct
            )
            VALUES (?, ?, ?, ?, ?, ?, ?)
            """,
            [
                attempt_id,
                attempt.user_id,
                attempt.puzzle_id,
                to_db_timestamp(attempt.started_utc),
                to_db_timestamp(attempt.ended_utc),
                attempt.rating_gain,
                attempt.correct,
            ],
        )
        return attempt_id

    def add_rating_record(self, record: RatingRecord) -> int:
        record_id = next_id(self._conn, "rating_history", "record_id")
        self._conn.execute(
            """
            INSERT INTO rating_history (
                record_id,
                user_id,
                variant,
                rating_value,
                rating_deviation,
                rating_volatility,
                recorded_utc
            )
            VALUES (?, ?, ?, ?, ?, ?, ?)
            """,
            [
                record_id,
                record.user_id,
                record.variant,
                record.rating.value,
                record.rating.deviation,
                record.rating.volatility,
                to_db_timestamp(record.recorded_utc),
            ],
        )
        return record_id

    def fetch_attempts(self, user_id: int) -> list[Attempt]:
        rows = _rows_to_dicts(
            self._conn.execute(
                """
                SELECT user_id, puzzle_id, started_utc, ended_utc, rating_gain, correct
                FROM attempts
                WHERE user_id = ?
                ORDER BY attempt_id
                """,
                [user_id],
            )
        )
        return [
            Attempt(
                user_id=int(row["user_id"]),
                puzzle_id=int(row["puzzle_id"]),
                started_utc=_require_timestamp(row["started_utc"]),
                ended_utc=_require_timestamp(row["ended_utc"]),
                rating_gain=float(row["rating_gain"]),
                correct=bool(row["correct"]),
            )
            for row in rows
        ]

    def fetch_rating_history(self, user_id: int, variant: str) -> list[RatingRecord]:
        rows = _rows_to_dicts(
            self._conn.execute(
                """
                SELECT
                    user_id,
                    variant,
                    rating_value,
                    rating_deviation,
                    rating_volatility,
                    recorded_utc
                FROM rating_history
                WHERE user_id = ? AND variant = ?
                ORDER BY record_id
                """,
                [user_id, variant],
            )
        )
        records = []
        for row in rows:
            recorded = _require_timestamp(row["recorded_utc"])
            records.append(
                RatingRecord(
                    user_id=int(row["user_id"]),
                    variant=str(row["variant"]),
                    rating=Rating(
                        value=float(row["rating_value"]),
                        deviation=float(row["rating_deviation"]),
                        volatility=float(row["rating_volatility"]),
                        updated_at=recorded,
                    ),
                    recorded_utc=recorded,
                )
            )
        return records


def _require_timestamp(value: object) -> datetime:
    timestamp = from_db_timestamp(value)
    if timestamp is None:
        raise ValueError("stored timestamp is missing")
    return timestamp


def attempt_repository(conn: duckdb.DuckDBPyConnection) -> DuckDbAttemptRepository:
    """Return a DuckDbAttemptRepository bound to the provided connection."""
    return DuckDbAttemptRepository(conn)


__all__ = ["DuckDbAttemptRepository", "attempt_repository"]
