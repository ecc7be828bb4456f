"""Use cases for the puzzle editor: author a position, record lines, publish."""

from __future__ import annotations

from collections.abc import Callable
from dataclasses import dataclass, field, replace
from datetime import datetime
from typing import Any, TypeVar

from puzzlix.app.use_cases.conflict_retry import retry_on_conflict
from puzzlix.app.use_cases.run_with_uow import run_with_uow
from puzzlix.app.wiring import get_puzzles_being_edited_store
from puzzlix.config import Settings, get_settings
from puzzlix.db.duckdb_puzzle_repository import puzzle_repository
from puzzlix.db.duckdb_store import init_schema
from puzzlix.db.duckdb_unit_of_work import DuckDbUnitOfWork
from puzzlix.db.duckdb_user_repository import user_repository
from puzzlix.domain.move_dests import dests_for_moves
from puzzlix.domain.puzzle import Puzzle, split_solution_text
from puzzlix.domain.puzzle_draft import PuzzleDraft
from puzzlix.domain.rating import Rating
from puzzlix.domain.solution_tree import SolutionTree, build_half_move
from puzzlix.domain.training_session import check_lines_playable, engine_move
from puzzlix.domain.variants import (
    apply_move,
    color_name,
    construct_game,
    legal_moves,
    normalize_variant_name,
)
from puzzlix.errors import (
    InvalidIdError,
    InvalidMoveError,
    NoAcceptedSolutionsError,
    NotFoundError,
    UnauthorizedError,
)
from puzzlix.ports.repositories import PuzzlesBeingEditedRepository
from puzzlix.ports.unit_of_work import UnitOfWorkFactory
from puzzlix.utils.generate_id import generate_int_id
from puzzlix.utils.logger import get_logger
from puzzlix.utils.now import Now

logger = get_logger(__name__)

ResultT = TypeVar("ResultT")


@dataclass
class PuzzleEditorUseCase:
    get_settings: Callable[..., Settings] = get_settings
    unit_of_work_factory: UnitOfWorkFactory = DuckDbUnitOfWork
    init_schema: Callable[[Any], None] = init_schema
    puzzle_repository_factory: Callable[[Any], Any] = puzzle_repository
    user_repository_factory: Callable[[Any], Any] = user_repository
    drafts: PuzzlesBeingEditedRepository = field(default_factory=get_puzzles_being_edited_store)
    id_factory: Callable[[], int] = generate_int_id
    clock: Callable[[], datetime] = Now.as_datetime

    def register_for_editing(self, fen: str, variant: str, author: int) -> dict[str, object]:
        """Open a draft for ``fen`` and return its random editor id."""
        name = normalize_variant_name(variant)
        game = construct_game(name, fen)
        initial_fen = game.fen()
        settings = self.get_settings()

        def register() -> PuzzleDraft:
            puzzle = Puzzle(
                puzzle_id=self.id_factory(),
                variant=name,
                initial_fen=initial_fen,
                author=author,
            )
            draft = PuzzleDraft(puzzle=puzzle, game=game.copy(stack=False))
            self.drafts.add(draft)
            return draft

        draft = retry_on_conflict(settings.id_max_attempts, register)
        logger.info("User %s opened draft %s (%s)", author, draft.puzzle.puzzle_id, name)
        return {"success": True, "id": draft.puzzle.puzzle_id}

    def get_valid_moves(self, puzzle_id: str | int, actor: int | None) -> dict[str, object]:
        draft = self._draft_for(puzzle_id, actor)
        with draft.lock:
            return {
                "success": True,
                "dests": dests_for_moves(legal_moves(draft.game)),
                "whoseturn": color_name(draft.game.turn),
            }

    def submit_move(
        self,
        puzzle_id: str | int,
        actor: int | None,
        origin: str,
        destination: str,
        promotion: str | None = None,
    ) -> dict[str, object]:
        draft = self._draft_for(puzzle_id, actor)
        half_move = build_half_move(origin, destination, promotion)
        with draft.lock:
            move = engine_move(draft.game, half_move)
            if not apply_move(draft.game, move):
                raise InvalidMoveError("Invalid move.")
            return {"success": True, "fen": draft.game.fen()}

    def new_variation(self, puzzle_id: str | int, actor: int | None) -> dict[str, object]:
        """Reset the draft board to the initial position for the next line."""
        draft = self._draft_for(puzzle_id, actor)
        with draft.lock:
            draft.reset_board()
            return {"success": True, "fen": draft.puzzle.initial_fen}

    def submit_puzzle(
        self,
        puzzle_id: str | int,
        actor: int | None,
        solution: str,
        explanation: str | None = None,
    ) -> dict[str, object]:
        """Publish a draft under the next puzzle id.

        Every line is played from the initial position first; an illegal move
        raises ``InvalidMoveError`` and nothing is stored. Reviewers publish
        straight to the approved pool; everyone else's puzzles wait in review.
        """
        draft = self._draft_for(puzzle_id, actor)
        lines = split_solution_text(solution)
        if not lines:
            raise NoAcceptedSolutionsError()
        check_lines_playable(
            draft.puzzle.variant,
            draft.puzzle.initial_fen,
            SolutionTree.from_lines(lines),
        )
        settings = self.get_settings()

        def publish() -> Puzzle:
            return self._run_with_uow(
                settings,
                lambda conn: self._publish(conn, draft, lines, explanation),
            )

        published = retry_on_conflict(settings.id_max_attempts, publish)
        self.drafts.remove(draft.puzzle.puzzle_id)
        logger.info(
            "Published puzzle %s from draft %s (in_review=%s)",
            published.puzzle_id,
            draft.puzzle.puzzle_id,
            published.in_review,
        )
        return {"success": True, "id": published.puzzle_id}

    def _publish(
        self,
        conn: Any,
        draft: PuzzleDraft,
        lines: list[str],
        explanation: str | None,
    ) -> Puzzle:
        author = self.user_repository_factory(conn).find_by_id(draft.puzzle.author)
        reviewer = author is not None and author.is_reviewer
        repo = self.puzzle_repository_factory(conn)
        puzzle = replace(
            draft.puzzle,
            puzzle_id=repo.next_puzzle_id(),
            solutions=list(lines),
            explanation_unsafe=explanation,
            rating=Rating(),
            in_review=not reviewer,
            approved=reviewer,
            reviewers=[draft.puzzle.author] if reviewer else [],
            date_submitted_utc=self.clock(),
        )
        repo.add(puzzle)
        return puzzle

    def _draft_for(self, puzzle_id: str | int, actor: int | None) -> PuzzleDraft:
        try:
            parsed = int(str(puzzle_id).strip())
        except ValueError as exc:
            raise InvalidIdError() from exc
        draft = self.drafts.get(parsed)
        if draft is None:
            raise NotFoundError()
        if actor is None or draft.puzzle.author != actor:
            raise UnauthorizedError()
        return draft

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


def get_editor_use_case() -> PuzzleEditorUseCase:
    return PuzzleEditorUseCase()


__all__ = ["PuzzleEditorUseCase", "get_editor_use_case"]
