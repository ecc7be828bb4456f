"""User, attempt and rating-history records."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime

from puzzlix.domain.rating import Rating

REVIEWER_ROLE = "reviewer"


@dataclass
class User:
    user_id: int
    username: str
    roles: list[str] = field(default_factory=list)
    ratings: dict[str, Rating] = field(default_factory=dict)
    solved_puzzles: list[int] = field(default_factory=list)
    puzzles_correct: int = 0
    puzzles_wrong: int = 0

    def rating_for(self, variant: str) -> Rating:
        return self.ratings.get(variant, Rating())

    @property
    def is_reviewer(self) -> bool:
        return REVIEWER_ROLE in self.roles


@dataclass(frozen=True)
class Attempt:
    user_id: int
    puzzle_id: int
    started_utc: datetime
    ended_utc: datetime
    rating_gain: float
    correct: bool


@dataclass(frozen=True)
class RatingRecord:
    """Snapshot of a user's rating after an update."""

    user_id: int
    variant: str
    rating: Rating
    recorded_utc: datetime


__all__ = ["REVIEWER_ROLE", "Attempt", "RatingRecord", "User"]
