"""Use cases for the discussion thread under each puzzle."""

from __future__ import annotations

from collections.abc import Callable
from dataclasses import dataclass
from datetime import datetime
from typing import Any, TypeVar

from puzzlix.app.use_cases.conflict_retry import retry_on_conflict
from puzzlix.app.use_cases.run_with_uow import run_with_uow
from puzzlix.app.use_cases.training import parse_puzzle_id
from puzzlix.config import Settings, get_settings
from puzzlix.db.duckdb_comment_repository import comment_repository
from puzzlix.db.duckdb_puzzle_repository import puzzle_repository
from puzzlix.db.duckdb_store import init_schema
from puzzlix.db.duckdb_unit_of_work import DuckDbUnitOfWork
from puzzlix.db.duckdb_user_repository import user_repository
from puzzlix.domain.comment import MAX_COMMENT_LENGTH, Comment
from puzzlix.errors import InvalidCommentError, InvalidIdError, NotFoundError, UnauthorizedError
from puzzlix.ports.unit_of_work import UnitOfWorkFactory
from puzzlix.utils.logger import get_logger
from puzzlix.utils.now import Now

logger = get_logger(__name__)

ResultT = TypeVar("ResultT")


def parse_comment_id(raw: str | int) -> int:
    if isinstance(raw, int):
        return raw
    try:
        return int(str(raw).strip())
    except ValueError as exc:
        raise InvalidIdError("Invalid comment ID.") from exc


@dataclass
class CommentUseCase:
    get_settings: Callable[..., Settings] = get_settings
    unit_of_work_factory: UnitOfWorkFactory = DuckDbUnitOfWork
    init_schema: Callable[[Any], None] = init_schema
    comment_repository_factory: Callable[[Any], Any] = comment_repository
    puzzle_repository_factory: Callable[[Any], Any] = puzzle_repository
    user_repository_factory: Callable[[Any], Any] = user_repository
    clock: Callable[[], datetime] = Now.as_datetime

    def post_comment(
        self,
        puzzle_id: str | int,
        author: int,
        body: str,
        parent_id: int | None = None,
    ) -> dict[str, object]:
        """Add a comment, or a reply when ``parent_id`` names a live comment on the same puzzle.

        The body is stored as written; every read escapes it.
        """
        parsed = parse_puzzle_id(puzzle_id)
        text = (body or "").strip()
        if not text:
            raise InvalidCommentError("The comment body cannot be empty.")
        if len(text) > MAX_COMMENT_LENGTH:
            raise InvalidCommentError(
                f"The comment body cannot be longer than {MAX_COMMENT_LENGTH} characters."
            )
        settings = self.get_settings()

        def add(conn: Any) -> Comment:
            self._require_puzzle(conn, parsed)
            if self.user_repository_factory(conn).find_by_id(author) is None:
                raise NotFoundError("User not found.")
            comments = self.comment_repository_factory(conn)
            if parent_id is not None:
                parent = comments.get(parent_id)
                if parent is None or parent.puzzle_id != parsed or parent.deleted:
                    raise InvalidCommentError("Cannot reply to that comment.")
            return comments.add(
                Comment(
                    comment_id=0,
                    author=author,
                    body_unsanitized=text,
                    puzzle_id=parsed,
                    parent_id=parent_id,
                    date_posted_utc=self.clock(),
                )
            )

        comment = retry_on_conflict(
            settings.id_max_attempts,
            lambda: self._run_with_uow(settings, add),
        )
        logger.info(
            "User %s commented on puzzle %s (comment %s)",
            author,
            parsed,
            comment.comment_id,
        )
        return {"success": True, "id": comment.comment_id}

    def list_comments(self, puzzle_id: str | int) -> dict[str, object]:
        parsed = parse_puzzle_id(puzzle_id)

        def fetch(conn: Any) -> list[dict[str, object]]:
            self._require_puzzle(conn, parsed)
            users = self.user_repository_factory(conn)
            usernames: dict[int, str | None] = {}
            payloads = []
            for comment in self.comment_repository_factory(conn).fetch_for_puzzle(parsed):
                if comment.author not in usernames:
                    user = users.find_by_id(comment.author)
                    usernames[comment.author] = user.username if user is not None else None
                payloads.append(_comment_payload(comment, usernames[comment.author]))
            return payloads

        comments = self._run_with_uow(self.get_settings(), fetch)
        return {"success": True, "comments": comments}

    def delete_comment(self, comment_id: str | int, actor: int) -> dict[str, object]:
        """Soft-delete: replies stay attached, the body is no longer shown."""
        parsed = parse_comment_id(comment_id)

        def delete(conn: Any) -> None:
            comments = self.comment_repository_factory(conn)
            comment = comments.get(parsed)
            if comment is None:
                raise NotFoundError("Comment not found.")
            if comment.author != actor:
                raise UnauthorizedError("Only the comment author can delete it.")
            comments.mark_deleted(parsed)

        self._run_with_uow(self.get_settings(), delete)
        logger.info("User %s deleted comment %s", actor, parsed)
        return {"success": True}

    def _require_puzzle(self, conn: Any, puzzle_id: int) -> None:
        if self.puzzle_repository_factory(conn).get(puzzle_id) is None:
            raise NotFoundError("Puzzle not found.")

    def _run_with_uow(
        self,
        settings: Settings,
        handler: Callable[[Any], ResultT],
    ) -> ResultT:
        return run_with_uow(
            self.unit_of_work_factory,
            self.init_schema,
            settings.duckdb_path,
            handler,
        )


def _comment_payload(comment: Comment, author: str | None) -> dict[str, object]:
    posted = comment.date_posted_utc
    return {
        "id": comment.comment_id,
        "author": None if comment.deleted else author,
        "body": None if comment.deleted else comment.body_safe,
        "parentId": comment.parent_id,
        "deleted": comment.deleted,
        "datePostedUtc": posted.isoformat() if posted is not None else None,
    }


def get_comment_use_case() -> CommentUseCase:
    return CommentUseCase()


__all__ = ["CommentUseCase", "get_comment_use_case", "parse_comment_id"]
