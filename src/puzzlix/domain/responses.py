"""Result of a single training move submission."""

from __future__ import annotations

from collections.abc import Callable, Sequence
from dataclasses import dataclass, field
from datetime import datetime

import chess

from puzzlix.domain.move_dests import dests_for_moves
from puzzlix.domain.puzzle import Puzzle

CORRECT_SOLVED = 1
CORRECT_ACTIVE = 0
CORRECT_FAILED = -1

DestsFormatter = Callable[[Sequence[chess.Move]], dict[str, list[str]]]


@dataclass(frozen=True)
class FinishedAttempt:
    """The puzzle and timing a terminal response was resolved for."""

    puzzle: Puzzle
    correct: bool
    started_utc: datetime
    ended_utc: datetime


@dataclass(frozen=True)
class SubmittedMoveResponse:
    """Outcome fields for one ``apply_move`` call.

    Which optional fields are set depends on ``correct``: an active response
    carries the auto-played reply and next legal moves, a failed one carries the
    replay, a solved one only the final position. Terminal responses also carry
    the ``attempt`` they resolved, which is never serialized.
    """

    correct: int
    check: str | None = None
    fen: str | None = None
    explanation: str | None = None
    play: str | None = None
    fen_after_play: str | None = None
    check_after_auto_move: str | None = None
    moves: tuple[chess.Move, ...] | None = None
    replay_fens: tuple[str, ...] | None = None
    replay_checks: tuple[str | None, ...] | None = None
    replay_moves: tuple[str, ...] | None = None
    attempt: FinishedAttempt | None = field(default=None, compare=False)

    @classmethod
    def active(
        cls,
        *,
        fen: str,
        check: str | None,
        play: str,
        fen_after_play: str,
        check_after_auto_move: str | None,
        moves: Sequence[chess.Move],
    ) -> SubmittedMoveResponse:
        return cls(
            correct=CORRECT_ACTIVE,
            fen=fen,
            check=check,
            play=play,
            fen_after_play=fen_after_play,
            check_after_auto_move=check_after_auto_move,
            moves=tuple(moves),
        )

    @classmethod
    def solved(
        cls,
        *,
        fen: str,
        check: str | None,
        explanation: str | None,
        play: str | None = None,
        attempt: FinishedAttempt | None = None,
    ) -> SubmittedMoveResponse:
        """Solved; ``play`` is set when the line ended on an auto-played reply."""
        return cls(
            correct=CORRECT_SOLVED,
            attempt=attempt,
            fen=fen,
            check=check,
            explanation=explanation,
            play=play,
            fen_after_play=fen if play is not None else None,
            check_after_auto_move=check if play is not None else None,
        )

    @classmethod
    def failed(
        cls,
        *,
        explanation: str | None,
        replay_fens: Sequence[str],
        replay_checks: Sequence[str | None],
        replay_moves: Sequence[str],
        attempt: FinishedAttempt | None = None,
    ) -> SubmittedMoveResponse:
        return cls(
            correct=CORRECT_FAILED,
            attempt=attempt,
            explanation=explanation,
            replay_fens=tuple(replay_fens),
            replay_checks=tuple(replay_checks),
            replay_moves=tuple(replay_moves),
        )

    @property
    def is_terminal(self) -> bool:
        return self.correct in (CORRECT_SOLVED, CORRECT_FAILED)

    def to_payload(self, dests_formatter: DestsFormatter = dests_for_moves) -> dict[str, object]:
        """Serialize to the training API's JSON shape."""
        payload: dict[str, object] = {
            "success": True,
            "correct": self.correct,
            "check": self.check,
        }
        if self.fen is not None:
            payload["fen"] = self.fen
        if self.explanation is not None:
            payload["explanation"] = self.explanation
        if self.play is not None:
            payload["play"] = self.play
            payload["fenAfterPlay"] = self.fen_after_play
            payload["checkAfterAutoMove"] = self.check_after_auto_move
        if self.moves is not None:
            payload["dests"] = dests_formatter(self.moves)
        if self.replay_fens is not None:
            payload["replayFens"] = list(self.replay_fens)
            payload["replayChecks"] = list(self.replay_checks or ())
            payload["replayMoves"] = list(self.replay_moves or ())
        return payload


__all__ = [
    "CORRECT_ACTIVE",
    "CORRECT_FAILED",
    "CORRECT_SOLVED",
    "FinishedAttempt",
    "SubmittedMoveResponse",
]
