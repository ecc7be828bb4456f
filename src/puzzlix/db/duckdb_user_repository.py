"""User repository for DuckDB-backed storage."""

from __future__ import annotations

from collections.abc import Sequence

import duckdb

from puzzlix.db._rows_to_dicts import _first_row_dict, _rows_to_dicts
from puzzlix.db.duckdb_store import (
    decode_list,
    encode_list,
    from_db_timestamp,
    next_id,
    to_db_timestamp,
)
from puzzlix.domain.rating import Rating
from puzzlix.domain.user import User
from puzzlix.errors import PersistenceConflictError
from puzzlix.utils.logger import get_logger

logger = get_logger(__name__)


class DuckDbUserRepository:
    """Users with per-variant ratings, solved puzzles and counters."""

    def __init__(self, conn: duckdb.DuckDBPyConnection) -> None:
        self._conn = conn

    def add(self, username: str, roles: Sequence[str] = ()) -> User:
        """Create a user; a taken username raises ``PersistenceConflictError``."""
        existing = self._conn.execute(
            "SELECT 1 FROM users WHERE lower(username) = lower(?)",
            [username],
        ).fetchone()
        if existing:
            raise PersistenceConflictError(f"Username '{username}' is already taken.")
        user = User(
            user_id=next_id(self._conn, "users", "user_id"),
            username=username,
            roles=list(roles),
        )
        self._conn.execute(
            """
            INSERT INTO users (user_id, username, roles, puzzles_correct, puzzles_wrong)
            VALUES (?, ?, ?, ?, ?)
            """,
            [user.user_id, user.username, encode_list(user.roles), 0, 0],
        )
        logger.info("Created user %s (%s)", user.user_id, user.username)
        return user

    def find_by_id(self, user_id: int) -> User | None:
        row = _first_row_dict(
            self._conn.execute(
                """
                SELECT user_id, username, roles, puzzles_correct, puzzles_wrong
                FROM users
                WHERE user_id = ?
                """,
                [user_id],
            )
        )
        if row is None:
            return None
        return User(
            user_id=int(row["user_id"]),
            username=str(row["username"]),
            roles=[str(role) for role in decode_list(row["roles"])],
            ratings=self._fetch_ratings(user_id),
            solved_puzzles=self._fetch_solved_puzzles(user_id),
            puzzles_correct=int(row["puzzles_correct"] or 0),
            puzzles_wrong=int(row["puzzles_wrong"] or 0),
        )

    def update(self, user: User) -> None:
        self._conn.execute(
            """
            UPDATE users
            SET roles = ?, puzzles_correct = ?, puzzles_wrong = ?
            WHERE user_id = ?
            """,
            [encode_list(user.roles), user.puzzles_correct, user.puzzles_wrong, user.user_id],
        )
        self._conn.execute("DELETE FROM user_ratings WHERE user_id = ?", [user.user_id])
        for variant, rating in user.ratings.items():
            self._conn.execute(
                """
                INSERT INTO user_ratings (
                    user_id,
                    variant,
                    rating_value,
                    rating_deviation,
                    rating_volatility,
                    rating_updated_at
                )
                VALUES (?, ?, ?, ?, ?, ?)
                """,
                [
                    user.user_id,
                    variant,
                    rating.value,
                    rating.deviation,
                    rating.volatility,
                    to_db_timestamp(rating.updated_at),
                ],
            )
        self._conn.execute("DELETE FROM solved_puzzles WHERE user_id = ?", [user.user_id])
        for solved_order, puzzle_id in enumerate(user.solved_puzzles):
            self._conn.execute(
                "INSERT INTO solved_puzzles (user_id, puzzle_id, solved_order) VALUES (?, ?, ?)",
                [user.user_id, puzzle_id, solved_order],
            )

    def _fetch_ratings(self, user_id: int) -> dict[str, Rating]:
        rows = _rows_to_dicts(
            self._conn.execute(
                """
                SELECT
                    variant,
                    rating_value,
                    rating_deviation,
                    rating_volatility,
                    rating_updated_at
                FROM user_ratings
                WHERE user_id = ?
                """,
                [user_id],
            )
        )
        return {
            str(row["variant"]): Rating(
                value=float(row["rating_value"]),
                deviation=float(row["rating_deviation"]),
                volatility=float(row["rating_volatility"]),
                updated_at=from_db_timestamp(row["rating_updated_at"]),
            )
            for row in rows
        }

    def _fetch_solved_puzzles(self, user_id: int) -> list[int]:
        rows = self._conn.execute(
            "SELECT puzzle_id FROM solved_puzzles WHERE user_id = ? ORDER BY solved_order",
            [user_id],
        ).fetchall()
        return [int(row[0]) for row in rows]


def user_repository(conn: duckdb.DuckDBPyConnection) -> DuckDbUserRepository:
    """Return a DuckDbUserRepository bound to the provided connection."""
    return DuckDbUserRepository(conn)


__all__ = ["DuckDbUserRepository", "user_repository"]
