"""Use cases for puzzle training endpoints."""

from __future__ import annotations

import random
from collections.abc import Callable
from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, TypeVar

from puzzlix.app.use_cases.conflict_retry import retry_on_conflict
from puzzlix.app.use_cases.run_with_uow import run_with_uow
from puzzlix.app.wiring import get_training_session_store
from puzzlix.config import GlickoSettings, Settings, get_settings
from puzzlix.db.duckdb_attempt_repository import attempt_repository
from puzzlix.db.duckdb_puzzle_repository import puzzle_repository
from puzzlix.db.duckdb_store import init_schema
from puzzlix.db.duckdb_unit_of_work import DuckDbUnitOfWork
from puzzlix.db.duckdb_user_repository import user_repository
from puzzlix.domain.move_dests import dests_for_moves
from puzzlix.domain.puzzle import Puzzle
from puzzlix.domain.rating_updater import RatingUpdate, RatingUpdater
from puzzlix.domain.training_session import TrainingSession
from puzzlix.domain.user import Attempt, RatingRecord
from puzzlix.domain.variants import (
    color_name,
    legal_moves,
    normalize_variant_name,
    resolve_mixed_variant,
)
from puzzlix.errors import InvalidIdError, NotFoundError
from puzzlix.ports.repositories import TrainingSessionRepository
from puzzlix.ports.unit_of_work import UnitOfWorkFactory
from puzzlix.utils.generate_id import generate_id
from puzzlix.utils.logger import get_logger

logger = get_logger(__name__)

ResultT = TypeVar("ResultT")

SESSION_NOT_FOUND = "Puzzle training session ID not found."


def parse_puzzle_id(raw: str | int) -> int:
    """Parse a puzzle id from a request, raising ``InvalidIdError``."""
    if isinstance(raw, int):
        return raw
    try:
        return int(str(raw).strip())
    except ValueError as exc:
        raise InvalidIdError("Invalid puzzle ID.") from exc


@dataclass
class TrainingUseCase:
    get_settings: Callable[..., Settings] = get_settings
    unit_of_work_factory: UnitOfWorkFactory = DuckDbUnitOfWork
    init_schema: Callable[[Any], None] = init_schema
    puzzle_repository_factory: Callable[[Any], Any] = puzzle_repository
    user_repository_factory: Callable[[Any], Any] = user_repository
    attempt_repository_factory: Callable[[Any], Any] = attempt_repository
    session_store: TrainingSessionRepository = field(default_factory=get_training_session_store)
    session_factory: Callable[[str], TrainingSession] = TrainingSession
    rating_updater_factory: Callable[[GlickoSettings], RatingUpdater] = RatingUpdater
    token_factory: Callable[[], str] = generate_id
    rng: random.Random | None = None

    def get_puzzle(self, puzzle_id: str | int) -> dict[str, object]:
        parsed = parse_puzzle_id(puzzle_id)
        settings = self.get_settings()
        return self._run_with_uow(settings, lambda conn: self._puzzle_payload(conn, parsed))

    def get_one_randomly(
        self,
        variant: str,
        user_id: int | None = None,
        session_id: str | None = None,
    ) -> dict[str, object]:
        """Pick a puzzle the caller has not seen yet, or report ``allDone``."""
        name = resolve_mixed_variant(normalize_variant_name(variant, allow_mixed=True), self.rng)
        settings = self.get_settings()

        def pick(conn: Any) -> Puzzle | None:
            excluded: list[int] = []
            if user_id is not None:
                user = self.user_repository_factory(conn).find_by_id(user_id)
                if user is None:
                    raise NotFoundError("User not found.")
                excluded = list(user.solved_puzzles)
            elif session_id is not None:
                session = self.session_store.get(session_id)
                if session is not None:
                    excluded = list(session.past_puzzle_ids)
            return self.puzzle_repository_factory(conn).get_one_randomly(excluded, name, user_id)

        puzzle = self._run_with_uow(settings, pick)
        if puzzle is None:
            return {"success": True, "allDone": True}
        return {"success": True, "id": puzzle.puzzle_id}

    def setup(self, puzzle_id: str | int, session_id: str | None = None) -> dict[str, object]:
        """Start a puzzle on a new or existing training session."""
        parsed = parse_puzzle_id(puzzle_id)
        settings = self.get_settings()
        puzzle, author = self._run_with_uow(settings, lambda conn: self._load_puzzle(conn, parsed))
        if session_id is None:
            session = self._new_session(settings)
        else:
            session = self.session_store.get(session_id)
            if session is None:
                raise NotFoundError(SESSION_NOT_FOUND)
        session.setup(puzzle)
        game = session.game
        return {
            "success": True,
            "trainingSessionId": session.session_id,
            "author": author,
            "fen": puzzle.initial_fen,
            "dests": dests_for_moves(legal_moves(game)),
            "whoseTurn": color_name(game.turn),
            "variant": puzzle.variant,
        }

    def submit_move(
        self,
        session_id: str,
        origin: str,
        destination: str,
        promotion: str | None = None,
        user_id: int | None = None,
    ) -> dict[str, object]:
        """Apply a solver move; terminal outcomes of a known user are rated.

        The user is checked before the move so an unknown id cannot resolve the
        session and then lose the outcome.
        """
        session = self.session_store.get(session_id)
        if session is None:
            raise NotFoundError(SESSION_NOT_FOUND)
        if user_id is not None:
            self._require_user(user_id)
        response = session.apply_move(origin, destination, promotion)
        payload = response.to_payload()
        attempt = response.attempt
        if attempt is None:
            return payload
        rating_value = attempt.puzzle.rating.value
        if user_id is not None:
            update = self.adjust_rating(
                user_id,
                attempt.puzzle.puzzle_id,
                attempt.correct,
                attempt.started_utc,
                attempt.ended_utc,
                attempt.puzzle.variant,
            )
            if update is not None:
                rating_value = update.puzzle.value
        payload["rating"] = int(rating_value)
        return payload

    def adjust_rating(
        self,
        user_id: int,
        puzzle_id: int,
        correct: bool,
        started_utc: datetime,
        ended_utc: datetime,
        variant: str,
    ) -> RatingUpdate | None:
        """Rate one finished attempt and persist every side effect.

        Returns ``None`` when the attempt does not count: the user already
        solved the puzzle, or the puzzle is still in review.
        """
        settings = self.get_settings()
        updater = self.rating_updater_factory(settings.glicko)

        def apply(conn: Any) -> RatingUpdate | None:
            users = self.user_repository_factory(conn)
            puzzles = self.puzzle_repository_factory(conn)
            user = users.find_by_id(user_id)
            if user is None:
                raise NotFoundError("User not found.")
            if puzzle_id in user.solved_puzzles:
                return None
            puzzle = puzzles.get(puzzle_id)
            if puzzle is None:
                raise NotFoundError("Puzzle not found.")
            if puzzle.in_review:
                return None
            previous = user.rating_for(variant)
            update = updater.update(previous, puzzle.rating, correct, started_utc, ended_utc)
            user.ratings[variant] = update.solver
            user.solved_puzzles.append(puzzle_id)
            if correct:
                user.puzzles_correct += 1
            else:
                user.puzzles_wrong += 1
            users.update(user)
            puzzles.update_rating(puzzle_id, update.puzzle)
            attempts = self.attempt_repository_factory(conn)
            attempts.add_rating_record(
                RatingRecord(
                    user_id=user_id,
                    variant=variant,
                    rating=update.solver,
                    recorded_utc=ended_utc,
                )
            )
            attempts.add_attempt(
                Attempt(
                    user_id=user_id,
                    puzzle_id=puzzle_id,
                    started_utc=started_utc,
                    ended_utc=ended_utc,
                    rating_gain=update.solver.value - previous.value,
                    correct=correct,
                )
            )
            return update

        update = retry_on_conflict(
            settings.id_max_attempts,
            lambda: self._run_with_uow(settings, apply),
        )
        if update is None:
            logger.info("Skipped rating update for user %s on puzzle %s", user_id, puzzle_id)
        else:
            logger.info(
                "Rated user %s on puzzle %s: %.1f (puzzle %.1f)",
                user_id,
                puzzle_id,
                update.solver.value,
                update.puzzle.value,
            )
        return update

    def _require_user(self, user_id: int) -> None:
        def find(conn: Any) -> None:
            if self.user_repository_factory(conn).find_by_id(user_id) is None:
                raise NotFoundError("User not found.")

        self._run_with_uow(self.get_settings(), find)

    def _new_session(self, settings: Settings) -> TrainingSession:
        def register() -> TrainingSession:
            session = self.session_factory(self.token_factory())
            self.session_store.add(session)
            return session

        return retry_on_conflict(settings.id_max_attempts, register)

    def _load_puzzle(self, conn: Any, puzzle_id: int) -> tuple[Puzzle, str | None]:
        puzzle = self.puzzle_repository_factory(conn).get(puzzle_id)
        if puzzle is None:
            raise NotFoundError("Puzzle not found.")
        author = self.user_repository_factory(conn).find_by_id(puzzle.author)
        return puzzle, author.username if author is not None else None

    def _puzzle_payload(self, conn: Any, puzzle_id: int) -> dict[str, object]:
        puzzle, author = self._load_puzzle(conn, puzzle_id)
        return {
            "success": True,
            "id": puzzle.puzzle_id,
            "variant": puzzle.variant,
            "fen": puzzle.initial_fen,
            "author": author,
            "rating": int(puzzle.rating.value),
            "inReview": puzzle.in_review,
            "approved": puzzle.approved,
        }

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


def get_training_use_case() -> TrainingUseCase:
    return TrainingUseCase()


__all__ = [
    "TrainingUseCase",
    "get_training_use_case",
    "parse_puzzle_id",
]
