import random

import chess
import chess.variant
import pytest

from puzzlix.domain.move_dests import dests_for_moves
from puzzlix.domain.variants import (
    MIXED_VARIANT,
    SUPPORTED_VARIANTS,
    apply_move,
    check_flag,
    construct_game,
    is_winner,
    legal_moves,
    normalize_variant_name,
    resolve_mixed_variant,
)
from puzzlix.errors import InvalidFenError, UnsupportedVariantError


@pytest.mark.parametrize(
    ("raw", "expected"),
    [
        ("atomic", "Atomic"),
        ("KINGOFTHEHILL", "KingOfTheHill"),
        ("king-of-the-hill", "KingOfTheHill"),
        ("three_check", "ThreeCheck"),
        ("Racing Kings", "RacingKings"),
        ("antichess", "Antichess"),
        ("horde", "Horde"),
    ],
)
def test_normalize_variant_name(raw: str, expected: str) -> None:
    assert normalize_variant_name(raw) == expected


def test_mixed_is_only_accepted_when_allowed() -> None:
    with pytest.raises(UnsupportedVariantError):
        normalize_variant_name("mixed")
    assert normalize_variant_name("mixed", allow_mixed=True) == MIXED_VARIANT


@pytest.mark.parametrize("raw", ["", None, "chess960", "crazyhouse"])
def test_unknown_variants_are_rejected(raw) -> None:
    with pytest.raises(UnsupportedVariantError):
        normalize_variant_name(raw)


def test_resolve_mixed_variant_picks_a_supported_variant() -> None:
    rng = random.Random(3)
    picks = {resolve_mixed_variant(MIXED_VARIANT, rng) for _ in range(50)}
    assert picks <= set(SUPPORTED_VARIANTS)
    assert len(picks) > 1
    assert resolve_mixed_variant("Horde", rng) == "Horde"


def test_construct_game_builds_variant_boards() -> None:
    board = construct_game("Atomic", chess.STARTING_FEN)
    assert isinstance(board, chess.variant.AtomicBoard)
    other = construct_game("Atomic", chess.STARTING_FEN)
    assert board is not other


def test_construct_game_rejects_bad_input() -> None:
    with pytest.raises(InvalidFenError):
        construct_game("Atomic", "not a fen")
    with pytest.raises(UnsupportedVariantError):
        construct_game("Chess960", chess.STARTING_FEN)


def test_apply_move_only_pushes_legal_moves() -> None:
    board = construct_game("ThreeCheck", chess.STARTING_FEN)
    assert not apply_move(board, chess.Move.from_uci("e2e5"))
    assert board.fen() == chess.STARTING_FEN
    assert apply_move(board, chess.Move.from_uci("e2e4"))
    assert board.turn == chess.BLACK


def test_check_flag_names_side_in_check() -> None:
    board = construct_game("ThreeCheck", "4k3/8/8/8/8/8/8/4K2R w K - 0 1")
    assert check_flag(board) is None
    board.push_uci("h1h8")
    assert check_flag(board) == "black"


def test_legal_moves_empty_once_game_is_won() -> None:
    board = construct_game("KingOfTheHill", "7k/8/8/8/8/3K4/8/8 w - - 0 1")
    assert legal_moves(board)
    board.push_uci("d3d4")
    assert is_winner(board, chess.WHITE)
    assert not is_winner(board, chess.BLACK)
    assert legal_moves(board) == []


def test_dests_group_moves_by_origin() -> None:
    board = chess.Board()
    dests = dests_for_moves(legal_moves(board))
    assert dests["e2"] == ["e3", "e4"]
    assert sorted(dests["g1"]) == ["f3", "h3"]
    assert len(dests) == 10


def test_dests_collapse_promotion_pieces() -> None:
    board = chess.Board("7k/4P3/8/8/8/8/8/K7 w - - 0 1")
    dests = dests_for_moves(list(board.legal_moves))
    assert dests["e7"] == ["e8"]
