"""Format legal moves as a square-to-destinations mapping for the board UI."""

from __future__ import annotations

from collections.abc import Iterable

import chess


def dests_for_moves(moves: Iterable[chess.Move]) -> dict[str, list[str]]:
    """Group moves by origin square.

    Promotions to different pieces collapse into one destination.
    """
    dests: dict[str, list[str]] = {}
    for move in moves:
        targets = dests.setdefault(chess.square_name(move.from_square), [])
        target = chess.square_name(move.to_square)
        if target not in targets:
            targets.append(target)
    return dests


__all__ = ["dests_for_moves"]
