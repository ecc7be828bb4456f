"""A puzzle that is still being authored in the editor."""

from __future__ import annotations

import threading
from dataclasses import dataclass, field

import chess

from puzzlix.domain.puzzle import Puzzle
from puzzlix.domain.variants import construct_game


@dataclass
class PuzzleDraft:
    """Editor entry: the unpublished puzzle plus the author's scratch board.

    The board is only touched while ``lock`` is held.
    """

    puzzle: Puzzle
    game: chess.Board
    lock: threading.Lock = field(default_factory=threading.Lock, repr=False, compare=False)

    def reset_board(self) -> None:
        self.game = construct_game(self.puzzle.variant, self.puzzle.initial_fen)


__all__ = ["PuzzleDraft"]
