"""Chess-variant engine boundary backed by python-chess.

Boards returned by :func:`construct_game` are mutable and must be owned by a
single training session or editor entry.
"""

from __future__ import annotations

import random

import chess
import chess.variant

from puzzlix.errors import InvalidFenError, UnsupportedVariantError

MIXED_VARIANT = "Mixed"

VARIANT_BOARDS: dict[str, type[chess.Board]] = {
    "Atomic": chess.variant.AtomicBoard,
    "KingOfTheHill": chess.variant.KingOfTheHillBoard,
    "ThreeCheck": chess.variant.ThreeCheckBoard,
    "Antichess": chess.variant.AntichessBoard,
    "Horde": chess.variant.HordeBoard,
    "RacingKings": chess.variant.RacingKingsBoard,
}
SUPPORTED_VARIANTS: tuple[str, ...] = tuple(VARIANT_BOARDS)

_VARIANT_LOOKUP = {name.lower(): name for name in (*SUPPORTED_VARIANTS, MIXED_VARIANT)}


def normalize_variant_name(variant: str | None, *, allow_mixed: bool = False) -> str:
    """Return the canonical capitalization of a variant name.

    Separators are ignored so ``king-of-the-hill`` and ``kingofthehill`` both
    resolve to ``KingOfTheHill``.
    """
    key = (variant or "").strip().lower().replace("-", "").replace("_", "").replace(" ", "")
    name = _VARIANT_LOOKUP.get(key)
    if name is None or (name == MIXED_VARIANT and not allow_mixed):
        raise UnsupportedVariantError()
    return name


def resolve_mixed_variant(variant: str, rng: random.Random | None = None) -> str:
    """Pick a concrete variant when ``Mixed`` was requested."""
    if variant != MIXED_VARIANT:
        return variant
    return (rng or random).choice(SUPPORTED_VARIANTS)


def construct_game(variant: str, fen: str) -> chess.Board:
    """Build a fresh engine instance for the position."""
    board_cls = VARIANT_BOARDS.get(variant)
    if board_cls is None:
        raise UnsupportedVariantError()
    try:
        return board_cls(fen)
    except ValueError as exc:
        raise InvalidFenError() from exc


def legal_moves(board: chess.Board) -> list[chess.Move]:
    """Legal moves for the side to move, empty once the game is decided."""
    if board.is_game_over():
        return []
    return list(board.legal_moves)


def apply_move(board: chess.Board, move: chess.Move) -> bool:
    """Push ``move`` if it is legal; return whether it was applied."""
    if not board.is_legal(move):
        return False
    board.push(move)
    return True


def is_winner(board: chess.Board, color: chess.Color) -> bool:
    outcome = board.outcome()
    return outcome is not None and outcome.winner == color


def color_name(color: chess.Color) -> str:
    return chess.COLOR_NAMES[color]


def check_flag(board: chess.Board) -> str | None:
    """Name of the side in check, or None."""
    if board.is_check():
        return color_name(board.turn)
    return None


def is_promotion_move(board: chess.Board, origin: chess.Square, destination: chess.Square) -> bool:
    if board.piece_type_at(origin) != chess.PAWN:
        return False
    return chess.square_rank(destination) in (0, 7)


__all__ = [
    "MIXED_VARIANT",
    "SUPPORTED_VARIANTS",
    "VARIANT_BOARDS",
    "apply_move",
    "check_flag",
    "color_name",
    "construct_game",
    "is_promotion_move",
    "is_winner",
    "legal_moves",
    "normalize_variant_name",
    "resolve_mixed_variant",
]
