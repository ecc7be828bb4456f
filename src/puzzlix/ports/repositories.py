"""Repository port interfaces for storage boundaries."""

from __future__ import annotations

from collections.abc import Sequence
from typing import Protocol

from puzzlix.domain.comment import Comment
from puzzlix.domain.puzzle import Puzzle
from puzzlix.domain.puzzle_draft import PuzzleDraft
from puzzlix.domain.rating import Rating
from puzzlix.domain.training_session import TrainingSession
from puzzlix.domain.user import Attempt, RatingRecord, User


class PuzzleRepository(Protocol):
    """Repository interface for published puzzles."""

    def next_puzzle_id(self) -> int:
        """Return the next free puzzle id."""

    def add(self, puzzle: Puzzle) -> None:
        """Insert a puzzle, raising ``PersistenceConflictError`` on an id collision."""

    def get(self, puzzle_id: int) -> Puzzle | None:
        """Return the puzzle or ``None``."""

    def get_one_randomly(
        self,
        excluded: Sequence[int],
        variant: str,
        user_id: int | None,
    ) -> Puzzle | None:
        """Return a random approved puzzle of ``variant`` not in ``excluded``."""

    def update_rating(self, puzzle_id: int, rating: Rating) -> None:
        """Store a new puzzle rating."""


class UserRepository(Protocol):
    """Repository interface for users, their ratings and solved puzzles."""

    def add(self, username: str, roles: Sequence[str] = ()) -> User:
        """Create a user and return it."""

    def find_by_id(self, user_id: int) -> User | None:
        """Return the user or ``None``."""

    def update(self, user: User) -> None:
        """Persist roles, counters, ratings and solved puzzles."""


class AttemptRepository(Protocol):
    """Repository interface for attempts and rating history."""

    def add_attempt(self, attempt: Attempt) -> int:
        """Insert an attempt and return its id."""

    def add_rating_record(self, record: RatingRecord) -> int:
        """Insert a rating history row and return its id."""

    def fetch_attempts(self, user_id: int) -> list[Attempt]:
        """Return the user's attempts, oldest first."""

    def fetch_rating_history(self, user_id: int, variant: str) -> list[RatingRecord]:
        """Return the user's rating history for ``variant``, oldest first."""


class CommentRepository(Protocol):
    """Repository interface for puzzle comments."""

    def add(self, comment: Comment) -> Comment:
        """Insert a comment under a fresh id and return it."""

    def get(self, comment_id: int) -> Comment | None:
        """Return the comment or ``None``."""

    def fetch_for_puzzle(self, puzzle_id: int) -> list[Comment]:
        """Return the puzzle's comments, oldest first."""

    def mark_deleted(self, comment_id: int) -> None:
        """Hide a comment while keeping its place in the thread."""


class TrainingSessionRepository(Protocol):
    """Process-local store of live training sessions."""

    def add(self, session: TrainingSession) -> None:
        """Register a session, raising ``PersistenceConflictError`` on a token collision."""

    def get(self, session_id: str) -> TrainingSession | None:
        """Return the session or ``None``."""

    def contains(self, session_id: str) -> bool:
        """Return whether the token is taken."""


class PuzzlesBeingEditedRepository(Protocol):
    """Process-local store of editor drafts keyed by their random id."""

    def add(self, draft: PuzzleDraft) -> None:
        """Register a draft, raising ``PersistenceConflictError`` on an id collision."""

    def get(self, puzzle_id: int) -> PuzzleDraft | None:
        """Return the draft or ``None``."""

    def contains(self, puzzle_id: int) -> bool:
        """Return whether the id is taken."""

    def remove(self, puzzle_id: int) -> None:
        """Forget a draft once it is published."""


__all__ = [
    "AttemptRepository",
    "CommentRepository",
    "PuzzleRepository",
    "PuzzlesBeingEditedRepository",
    "TrainingSessionRepository",
    "UserRepository",
]
