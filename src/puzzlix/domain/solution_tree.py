"""Branching solution lines for a puzzle, stored as a trie over half-moves.

Each authored line alternates solver and opponent half-moves, starting with the
solver. Lines that share a prefix share nodes, so a fork holds every reply the
author accepts at that ply.
"""

from __future__ import annotations

import re
from collections.abc import Iterable, Sequence
from dataclasses import dataclass, field

import chess

from puzzlix.errors import InvalidMoveError, NoAcceptedSolutionsError
from puzzlix.utils.logger import get_logger

logger = get_logger(__name__)

PROMOTION_PIECES = frozenset("qrbnk")
DEFAULT_PROMOTION = "q"
_SQUARE_RE = re.compile(r"^[a-h][1-8]$")
_HALF_MOVE_RE = re.compile(r"^([a-h][1-8])-?([a-h][1-8])(?:[-=]?([qrbnk]))?$")


@dataclass(frozen=True)
class HalfMove:
    """One side's move: origin, destination and optional promotion letter."""

    origin: str
    destination: str
    promotion: str | None = None

    def uci(self) -> str:
        return f"{self.origin}{self.destination}{self.promotion or ''}"

    def to_chess_move(self) -> chess.Move:
        promotion = chess.PIECE_SYMBOLS.index(self.promotion) if self.promotion else None
        return chess.Move(
            chess.parse_square(self.origin),
            chess.parse_square(self.destination),
            promotion=promotion,
        )

    def matches(self, other: HalfMove, *, is_promotion: bool) -> bool:
        """Same squares; for a promotion, same piece with a missing letter read as a queen."""
        if (self.origin, self.destination) != (other.origin, other.destination):
            return False
        if not is_promotion:
            return True
        return (self.promotion or DEFAULT_PROMOTION) == (other.promotion or DEFAULT_PROMOTION)


def build_half_move(origin: str, destination: str, promotion: str | None = None) -> HalfMove:
    """Validate user-supplied coordinates and return a normalized half-move."""
    origin_value = (origin or "").strip().lower()
    destination_value = (destination or "").strip().lower()
    if not _SQUARE_RE.match(origin_value) or not _SQUARE_RE.match(destination_value):
        raise InvalidMoveError("Invalid 'origin' or 'destination' parameter.")
    promotion_value = None
    if promotion is not None and promotion.strip():
        promotion_value = promotion.strip().lower()
        if len(promotion_value) != 1 or promotion_value not in PROMOTION_PIECES:
            raise InvalidMoveError("Invalid 'promotion' parameter.")
    return HalfMove(origin_value, destination_value, promotion_value)


def parse_half_move(text: str) -> HalfMove:
    """Parse ``e2e4``, ``e7e8q``, ``e2-e4`` or ``e7-e8=Q``."""
    match = _HALF_MOVE_RE.match(text.strip().lower())
    if match is None:
        raise InvalidMoveError(f"Invalid move '{text}' in solution.")
    origin, destination, promotion = match.groups()
    return HalfMove(origin, destination, promotion)


def parse_line(line: str) -> tuple[HalfMove, ...]:
    return tuple(parse_half_move(token) for token in line.split())


@dataclass
class SolutionNode:
    move: HalfMove | None = None
    children: dict[HalfMove, SolutionNode] = field(default_factory=dict)
    terminal: bool = False


class SolutionTree:
    """Answers, ply by ply, whether a submission follows an authored line.

    A ``prefix`` is the full sequence of half-moves played so far, solver and
    forced opponent plies alike.
    """

    def __init__(self, lines: Sequence[Sequence[HalfMove]]) -> None:
        self._lines = tuple(tuple(line) for line in lines if line)
        if not self._lines:
            raise NoAcceptedSolutionsError()
        self._root = SolutionNode()
        for line in self._lines:
            self._insert(line)

    @classmethod
    def from_lines(cls, raw_lines: Iterable[str]) -> SolutionTree:
        """Build a tree from raw solution strings, skipping blank ones."""
        return cls([parse_line(line) for line in raw_lines if line and line.strip()])

    @property
    def lines(self) -> tuple[tuple[HalfMove, ...], ...]:
        return self._lines

    def accepted_moves(self, prefix: Sequence[HalfMove]) -> tuple[HalfMove, ...]:
        """Half-moves valid at the next solver ply for lines consistent with ``prefix``."""
        node = self._find(prefix)
        if node is None:
            return ()
        return tuple(node.children)

    def match(
        self,
        prefix: Sequence[HalfMove],
        move: HalfMove,
        *,
        is_promotion: bool,
    ) -> HalfMove | None:
        """Return the authored half-move that ``move`` corresponds to, if any."""
        for candidate in self.accepted_moves(prefix):
            if candidate.matches(move, is_promotion=is_promotion):
                return candidate
        return None

    def forced_reply(self, prefix: Sequence[HalfMove]) -> HalfMove | None:
        """The opponent half-move that follows ``prefix``.

        Several authored replies at the same opponent ply resolve to the first
        authored one.
        """
        replies = self.accepted_moves(prefix)
        if not replies:
            return None
        if len(replies) > 1:
            logger.warning(
                "Ambiguous opponent reply after %s; using %s",
                " ".join(move.uci() for move in prefix),
                replies[0].uci(),
            )
        return replies[0]

    def is_line_complete(self, prefix: Sequence[HalfMove]) -> bool:
        node = self._find(prefix)
        return node is not None and node.terminal

    def reference_line(self) -> tuple[HalfMove, ...]:
        """First authored line, used for replays."""
        return self._lines[0]

    def _insert(self, line: Sequence[HalfMove]) -> None:
        node = self._root
        for move in line:
            child = node.children.get(move)
            if child is None:
                child = SolutionNode(move=move)
                node.children[move] = child
            node = child
        node.terminal = True

    def _find(self, prefix: Sequence[HalfMove]) -> SolutionNode | None:
        node = self._root
        for move in prefix:
            child = node.children.get(move)
            if child is None:
                return None
            node = child
        return node


__all__ = [
    "DEFAULT_PROMOTION",
    "PROMOTION_PIECES",
    "HalfMove",
    "SolutionNode",
    "SolutionTree",
    "build_half_move",
    "parse_half_move",
    "parse_line",
]
