import chess
import chess.variant
import pytest

from puzzlix.app.use_cases.conflict_retry import retry_on_conflict
from puzzlix.app.wiring import (
    get_puzzles_being_edited_store,
    get_training_session_store,
    reset_stores,
)
from puzzlix.db.memory_puzzles_being_edited_repository import MemoryPuzzlesBeingEditedRepository
from puzzlix.db.memory_training_session_repository import MemoryTrainingSessionRepository
from puzzlix.domain.puzzle import Puzzle
from puzzlix.domain.puzzle_draft import PuzzleDraft
from puzzlix.domain.training_session import TrainingSession
from puzzlix.errors import PersistenceConflictError


def _draft(puzzle_id: int) -> PuzzleDraft:
    puzzle = Puzzle(puzzle_id=puzzle_id, variant="Atomic", initial_fen=chess.STARTING_FEN, author=1)
    return PuzzleDraft(puzzle=puzzle, game=chess.variant.AtomicBoard())


def test_session_store_rejects_duplicate_tokens() -> None:
    store = MemoryTrainingSessionRepository()
    store.add(TrainingSession("abc"))
    with pytest.raises(PersistenceConflictError):
        store.add(TrainingSession("abc"))
    assert store.contains("abc")
    assert store.get("missing") is None
    assert not store.contains("missing")


def test_draft_store_add_get_remove() -> None:
    store = MemoryPuzzlesBeingEditedRepository()
    draft = _draft(9)
    store.add(draft)
    with pytest.raises(PersistenceConflictError):
        store.add(_draft(9))
    assert store.get(9) is draft
    store.remove(9)
    assert not store.contains(9)


def test_draft_reset_board_restores_initial_position() -> None:
    draft = _draft(1)
    draft.game.push_uci("e2e4")
    draft.reset_board()
    assert draft.game.fen() == chess.STARTING_FEN


def test_wiring_shares_stores_until_reset() -> None:
    reset_stores()
    sessions = get_training_session_store()
    assert get_training_session_store() is sessions
    assert get_puzzles_being_edited_store() is get_puzzles_being_edited_store()
    reset_stores()
    assert get_training_session_store() is not sessions


def test_retry_on_conflict_retries_then_succeeds() -> None:
    calls = []

    def action() -> str:
        calls.append(1)
        if len(calls) < 3:
            raise PersistenceConflictError()
        return "ok"

    assert retry_on_conflict(5, action) == "ok"
    assert len(calls) == 3


def test_retry_on_conflict_reraises_last_conflict() -> None:
    def action() -> None:
        raise PersistenceConflictError("taken")

    with pytest.raises(PersistenceConflictError, match="taken"):
        retry_on_conflict(2, action)


def test_retry_on_conflict_does_not_retry_other_errors() -> None:
    calls = []

    def action() -> None:
        calls.append(1)
        raise ValueError("bad")

    with pytest.raises(ValueError):
        retry_on_conflict(5, action)
    assert calls == [1]
