"""Puzzle records and solution-text helpers."""

from __future__ import annotations

import html
from dataclasses import dataclass, field
from datetime import datetime

from puzzlix.domain.rating import Rating
from puzzlix.domain.solution_tree import SolutionTree


@dataclass
class Puzzle:
    """A published (or being-edited) puzzle.

    The live engine is never stored here; sessions build their own from
    ``initial_fen``.
    """

    puzzle_id: int
    variant: str
    initial_fen: str
    author: int
    solutions: list[str] = field(default_factory=list)
    rating: Rating = field(default_factory=Rating)
    in_review: bool = True
    approved: bool = False
    reviewers: list[int] = field(default_factory=list)
    explanation_unsafe: str | None = None
    date_submitted_utc: datetime | None = None

    @property
    def explanation_safe(self) -> str | None:
        if self.explanation_unsafe is None:
            return None
        return html.escape(self.explanation_unsafe)

    def solution_tree(self) -> SolutionTree:
        return SolutionTree.from_lines(self.solutions)


def split_solution_text(solution: str | None) -> list[str]:
    """Split ``;``-separated variations and drop blank ones."""
    if not solution:
        return []
    return [line.strip() for line in solution.split(";") if line.strip()]


__all__ = ["Puzzle", "split_solution_text"]
