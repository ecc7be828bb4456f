"""Per-user puzzle training state machine.

A session owns one engine instance and a cursor into the puzzle's solution
tree. It moves ``IDLE -> ACTIVE -> RESOLVED`` and is reused for the next
puzzle by calling :meth:`TrainingSession.setup` again.
"""

from __future__ import annotations

import threading
from collections.abc import Callable, Iterator, Sequence
from dataclasses import replace
from datetime import datetime
from enum import Enum

import chess

from puzzlix.domain.puzzle import Puzzle
from puzzlix.domain.responses import FinishedAttempt, SubmittedMoveResponse
from puzzlix.domain.solution_tree import (
    DEFAULT_PROMOTION,
    HalfMove,
    SolutionTree,
    build_half_move,
)
from puzzlix.domain.variants import (
    apply_move,
    check_flag,
    construct_game,
    is_promotion_move,
    is_winner,
    legal_moves,
)
from puzzlix.errors import InvalidMoveError, InvalidStateError
from puzzlix.utils.logger import get_logger
from puzzlix.utils.now import Now

logger = get_logger(__name__)

GameFactory = Callable[[str, str], chess.Board]


class SessionState(str, Enum):
    IDLE = "idle"
    ACTIVE = "active"
    RESOLVED = "resolved"


class Outcome(str, Enum):
    CORRECT = "correct"
    INCORRECT = "incorrect"


class TrainingSession:
    """Drives one engine through solution-tree matching.

    ``setup`` and ``apply_move`` hold the session lock, so calls for the same
    session id never interleave.
    """

    def __init__(
        self,
        session_id: str,
        *,
        game_factory: GameFactory = construct_game,
        clock: Callable[[], datetime] = Now.as_datetime,
    ) -> None:
        self.session_id = session_id
        self.current: Puzzle | None = None
        self.current_puzzle_started_utc: datetime | None = None
        self.current_puzzle_ended_utc: datetime | None = None
        self.past_puzzle_ids: list[int] = []
        self.state = SessionState.IDLE
        self.outcome: Outcome | None = None
        self._game_factory = game_factory
        self._clock = clock
        self._game: chess.Board | None = None
        self._tree: SolutionTree | None = None
        self._cursor: tuple[HalfMove, ...] = ()
        self._lock = threading.Lock()

    @property
    def game(self) -> chess.Board:
        if self._game is None:
            raise InvalidStateError("No puzzle has been set up for this session.")
        return self._game

    @property
    def cursor(self) -> tuple[HalfMove, ...]:
        return self._cursor

    def setup(self, puzzle: Puzzle) -> None:
        """Start ``puzzle`` on a fresh engine built from its initial FEN."""
        with self._lock:
            tree = puzzle.solution_tree()
            game = self._game_factory(puzzle.variant, puzzle.initial_fen)
            if self.state is SessionState.ACTIVE and self.current is not None:
                self._remember(self.current.puzzle_id)
            self.current = puzzle
            self._tree = tree
            self._game = game
            self._cursor = ()
            self.outcome = None
            self.current_puzzle_started_utc = self._clock()
            self.current_puzzle_ended_utc = None
            self.state = SessionState.ACTIVE
            logger.info(
                "Session %s started puzzle %s (%s)",
                self.session_id,
                puzzle.puzzle_id,
                puzzle.variant,
            )

    def apply_move(
        self,
        origin: str,
        destination: str,
        promotion: str | None = None,
    ) -> SubmittedMoveResponse:
        """Check a solver move against the solution and auto-play the reply."""
        with self._lock:
            if self.state is not SessionState.ACTIVE:
                raise InvalidStateError()
            submitted = build_half_move(origin, destination, promotion)
            return self._apply(submitted)

    def _apply(self, submitted: HalfMove) -> SubmittedMoveResponse:
        game = self.game
        tree = self._require_tree()
        solver = game.turn
        promotion = _is_promotion(game, submitted)
        submitted = _normalize_promotion(submitted, promotion)
        move = submitted.to_chess_move()

        if game.is_legal(move) and self._wins_immediately(move, solver):
            game.push(move)
            self._cursor = (*self._cursor, submitted)
            return self._resolve_correct()

        authored = tree.match(self._cursor, submitted, is_promotion=promotion)
        if authored is None:
            return self._resolve_incorrect()
        if not apply_move(game, move):
            raise InvalidMoveError("The authored solution move is illegal in this position.")
        self._cursor = (*self._cursor, authored)

        reply = tree.forced_reply(self._cursor)
        if reply is None or tree.is_line_complete(self._cursor):
            return self._resolve_correct()

        fen = game.fen()
        check = check_flag(game)
        reply_move = engine_move(game, reply)
        if not apply_move(game, reply_move):
            raise InvalidMoveError("The authored opponent reply is illegal in this position.")
        self._cursor = (*self._cursor, reply)
        if tree.is_line_complete(self._cursor):
            # the authored line ends on the opponent's reply
            return self._resolve_correct(play=reply_move.uci())
        return SubmittedMoveResponse.active(
            fen=fen,
            check=check,
            play=reply_move.uci(),
            fen_after_play=game.fen(),
            check_after_auto_move=check_flag(game),
            moves=legal_moves(game),
        )

    def _wins_immediately(self, move: chess.Move, solver: chess.Color) -> bool:
        after = self.game.copy(stack=False)
        after.push(move)
        return is_winner(after, solver)

    def _resolve_correct(self, play: str | None = None) -> SubmittedMoveResponse:
        attempt = self._finish(Outcome.CORRECT)
        return SubmittedMoveResponse.solved(
            fen=self.game.fen(),
            check=check_flag(self.game),
            explanation=attempt.puzzle.explanation_safe,
            play=play,
            attempt=attempt,
        )

    def _resolve_incorrect(self) -> SubmittedMoveResponse:
        puzzle = self._require_puzzle()
        fens, checks, moves = self._build_replay(puzzle, self._require_tree())
        attempt = self._finish(Outcome.INCORRECT)
        return SubmittedMoveResponse.failed(
            explanation=puzzle.explanation_safe,
            replay_fens=fens,
            replay_checks=checks,
            replay_moves=moves,
            attempt=attempt,
        )

    def _build_replay(
        self,
        puzzle: Puzzle,
        tree: SolutionTree,
    ) -> tuple[list[str], list[str | None], list[str]]:
        board = self._game_factory(puzzle.variant, puzzle.initial_fen)
        fens = [puzzle.initial_fen]
        checks = [check_flag(board)]
        moves: list[str] = []
        for move in play_line(board, tree.reference_line()):
            fens.append(board.fen())
            checks.append(check_flag(board))
            moves.append(move.uci())
        return fens, checks, moves

    def _finish(self, outcome: Outcome) -> FinishedAttempt:
        puzzle = self._require_puzzle()
        ended = self._clock()
        self.state = SessionState.RESOLVED
        self.outcome = outcome
        self.current_puzzle_ended_utc = ended
        self._remember(puzzle.puzzle_id)
        logger.info(
            "Session %s resolved puzzle %s as %s",
            self.session_id,
            puzzle.puzzle_id,
            outcome.value,
        )
        return FinishedAttempt(
            puzzle=puzzle,
            correct=outcome is Outcome.CORRECT,
            started_utc=self.current_puzzle_started_utc or ended,
            ended_utc=ended,
        )

    def _remember(self, puzzle_id: int) -> None:
        if puzzle_id not in self.past_puzzle_ids:
            self.past_puzzle_ids.append(puzzle_id)

    def _require_puzzle(self) -> Puzzle:
        if self.current is None:
            raise InvalidStateError("No puzzle has been set up for this session.")
        return self.current

    def _require_tree(self) -> SolutionTree:
        if self._tree is None:
            raise InvalidStateError("No puzzle has been set up for this session.")
        return self._tree


def _is_promotion(board: chess.Board, half_move: HalfMove) -> bool:
    return is_promotion_move(
        board,
        chess.parse_square(half_move.origin),
        chess.parse_square(half_move.destination),
    )


def _normalize_promotion(half_move: HalfMove, promotion: bool) -> HalfMove:
    if promotion and half_move.promotion is None:
        return replace(half_move, promotion=DEFAULT_PROMOTION)
    if not promotion and half_move.promotion is not None:
        return replace(half_move, promotion=None)
    return half_move


def engine_move(board: chess.Board, half_move: HalfMove) -> chess.Move:
    """Engine move for ``half_move``; a promotion without a letter becomes a queen."""
    return _normalize_promotion(half_move, _is_promotion(board, half_move)).to_chess_move()


def play_line(board: chess.Board, line: Sequence[HalfMove]) -> Iterator[chess.Move]:
    """Push each half-move of ``line`` onto ``board``, yielding the move just played."""
    for half_move in line:
        move = engine_move(board, half_move)
        if not apply_move(board, move):
            raise InvalidMoveError(f"Illegal move '{half_move.uci()}' in solution.")
        yield move


def check_lines_playable(variant: str, initial_fen: str, tree: SolutionTree) -> None:
    """Play every authored line from the initial position; an illegal move raises."""
    for line in tree.lines:
        board = construct_game(variant, initial_fen)
        for _ in play_line(board, line):
            pass


__all__ = [
    "Outcome",
    "SessionState",
    "TrainingSession",
    "check_lines_playable",
    "engine_move",
    "play_line",
]
