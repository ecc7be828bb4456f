"""Puzzle repository for DuckDB-backed storage."""

from __future__ import annotations

from collections.abc import Mapping, Sequence

import duckdb

from puzzlix.db._rows_to_dicts import _first_row_dict, _rows_to_dicts
from puzzlix.db.duckdb_store import (
    decode_list,
    encode_list,
    from_db_timestamp,
    next_id,
    to_db_timestamp,
)
from puzzlix.domain.puzzle import Puzzle
from puzzlix.domain.rating import Rating
from puzzlix.errors import PersistenceConflictError
from puzzlix.utils.logger import get_logger

logger = get_logger(__name__)

PUZZLE_COLUMNS = """
    puzzle_id,
    variant,
    initial_fen,
    author,
    solutions,
    rating_value,
    rating_deviation,
    rating_volatility,
    rating_updated_at,
    in_review,
    approved,
    reviewers,
    explanation,
    date_submitted_utc
"""


class DuckDbPuzzleRepository:
    """Stores published puzzles and serves random training picks."""

    def __init__(self, conn: duckdb.DuckDBPyConnection) -> None:
        self._conn = conn

    def next_puzzle_id(self) -> int:
        return next_id(self._conn, "puzzles", "puzzle_id")

    def add(self, puzzle: Puzzle) -> None:
        """Insert a puzzle; an existing id raises ``PersistenceConflictError``."""
        existing = self._conn.execute(
            "SELECT 1 FROM puzzles WHERE puzzle_id = ?",
            [puzzle.puzzle_id],
        ).fetchone()
        if existing:
            raise PersistenceConflictError(f"Puzzle {puzzle.puzzle_id} already exists.")
        self._conn.execute(
            f"INSERT INTO puzzles ({PUZZLE_COLUMNS}) "  # noqa: S608
            "VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?)",
            [
                puzzle.puzzle_id,
                puzzle.variant,
                puzzle.initial_fen,
                puzzle.author,
                encode_list(puzzle.solutions),
                puzzle.rating.value,
                puzzle.rating.deviation,
                puzzle.rating.volatility,
                to_db_timestamp(puzzle.rating.updated_at),
                puzzle.in_review,
                puzzle.approved,
                encode_list(puzzle.reviewers),
                puzzle.explanation_unsafe,
                to_db_timestamp(puzzle.date_submitted_utc),
            ],
        )
        logger.info("Stored puzzle %s (%s)", puzzle.puzzle_id, puzzle.variant)

    def get(self, puzzle_id: int) -> Puzzle | None:
        result = self._conn.execute(
            f"SELECT {PUZZLE_COLUMNS} FROM puzzles WHERE puzzle_id = ?",  # noqa: S608
            [puzzle_id],
        )
        row = _first_row_dict(result)
        if row is None:
            return None
        return _row_to_puzzle(row)

    def get_one_randomly(
        self,
        excluded: Sequence[int],
        variant: str,
        user_id: int | None,
    ) -> Puzzle | None:
        """Pick an approved puzzle of ``variant`` the user did not author or exclude."""
        clauses = ["variant = ?", "approved = TRUE"]
        params: list[object] = [variant]
        if user_id is not None:
            clauses.append("author <> ?")
            params.append(user_id)
        excluded_ids = sorted({int(puzzle_id) for puzzle_id in excluded})
        if excluded_ids:
            placeholders = ", ".join("?" for _ in excluded_ids)
            clauses.append(f"puzzle_id NOT IN ({placeholders})")
            params.extend(excluded_ids)
        query = (
            f"SELECT {PUZZLE_COLUMNS} FROM puzzles "  # noqa: S608
            f"WHERE {' AND '.join(clauses)} "
            "ORDER BY random() LIMIT 1"
        )
        rows = _rows_to_dicts(self._conn.execute(query, params))
        if not rows:
            return None
        return _row_to_puzzle(rows[0])

    def update_rating(self, puzzle_id: int, rating: Rating) -> None:
        self._conn.execute(
            """
            UPDATE puzzles
            SET rating_value = ?,
                rating_deviation = ?,
                rating_volatility = ?,
                rating_updated_at = ?
            WHERE puzzle_id = ?
            """,
            [
                rating.value,
                rating.deviation,
                rating.volatility,
                to_db_timestamp(rating.updated_at),
                puzzle_id,
            ],
        )


def _row_to_puzzle(row: Mapping[str, object]) -> Puzzle:
    return Puzzle(
        puzzle_id=int(row["puzzle_id"]),
        variant=str(row["variant"]),
        initial_fen=str(row["initial_fen"]),
        author=int(row["author"]),
        solutions=[str(line) for line in decode_list(row["solutions"])],
        rating=Rating(
            value=float(row["rating_value"]),
            deviation=float(row["rating_deviation"]),
            volatility=float(row["rating_volatility"]),
            updated_at=from_db_timestamp(row["rating_updated_at"]),
        ),
        in_review=bool(row["in_review"]),
        approved=bool(row["approved"]),
        reviewers=[int(reviewer) for reviewer in decode_list(row["reviewers"])],
        explanation_unsafe=row["explanation"],  # type: ignore[arg-type]
        date_submitted_utc=from_db_timestamp(row["date_submitted_utc"]),
    )


def puzzle_repository(conn: duckdb.DuckDBPyConnection) -> DuckDbPuzzleRepository:
    """Return a DuckDbPuzzleRepository bound to the provided connection."""
    return DuckDbPuzzleRepository(conn)


__all__ = ["DuckDbPuzzleRepository", "puzzle_repository"]
