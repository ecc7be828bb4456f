"""Puzzle comment repository for DuckDB-backed storage."""

from __future__ import annotations

from dataclasses import replace
from typing import Any

import duckdb

from puzzlix.db._rows_to_dicts import _first_row_dict, _rows_to_dicts
from puzzlix.db.duckdb_store import from_db_timestamp, next_id, to_db_timestamp
from puzzlix.domain.comment import Comment

_COMMENT_COLUMNS = """
    comment_id,
    author,
    body_unsanitized,
    puzzle_id,
    parent_id,
    deleted,
    date_posted_utc
"""


class DuckDbCommentRepository:
    def __init__(self, conn: duckdb.DuckDBPyConnection) -> None:
        self._conn = conn

    def add(self, comment: Comment) -> Comment:
        """Insert ``comment`` under a fresh id and return the stored record."""
        comment_id = next_id(self._conn, "comments", "comment_id")
        self._conn.execute(
            f"INSERT INTO comments ({_COMMENT_COLUMNS}) VALUES (?, ?, ?, ?, ?, ?, ?)",  # noqa: S608
            [
                comment_id,
                comment.author,
                comment.body_unsanitized,
                comment.puzzle_id,
                comment.parent_id,
                comment.deleted,
                to_db_timestamp(comment.date_posted_utc),
            ],
        )
        return replace(comment, comment_id=comment_id)

    def get(self, comment_id: int) -> Comment | None:
        row = _first_row_dict(
            self._conn.execute(
                f"SELECT {_COMMENT_COLUMNS} FROM comments WHERE comment_id = ?",  # noqa: S608
                [comment_id],
            )
        )
        return _row_to_comment(row) if row is not None else None

    def fetch_for_puzzle(self, puzzle_id: int) -> list[Comment]:
        """Return every comment on the puzzle, deleted ones included, oldest first."""
        rows = _rows_to_dicts(
            self._conn.execute(
                f"""
                SELECT {_COMMENT_COLUMNS}
                FROM comments
                WHERE puzzle_id = ?
                ORDER BY comment_id
                """,  # noqa: S608
                [puzzle_id],
            )
        )
        return [_row_to_comment(row) for row in rows]

    def mark_deleted(self, comment_id: int) -> None:
        self._conn.execute(
            "UPDATE comments SET deleted = TRUE WHERE comment_id = ?",
            [comment_id],
        )


def _row_to_comment(row: dict[str, Any]) -> Comment:
    parent_id = row["parent_id"]
    return Comment(
        comment_id=int(row["comment_id"]),
        author=int(row["author"]),
        body_unsanitized=str(row["body_unsanitized"] or ""),
        puzzle_id=int(row["puzzle_id"]),
        parent_id=int(parent_id) if parent_id is not None else None,
        deleted=bool(row["deleted"]),
        date_posted_utc=from_db_timestamp(row["date_posted_utc"]),
    )


def comment_repository(conn: duckdb.DuckDBPyConnection) -> DuckDbCommentRepository:
    """Return a DuckDbCommentRepository bound to the provided connection."""
    return DuckDbCommentRepository(conn)


__all__ = ["DuckDbCommentRepository", "comment_repository"]
