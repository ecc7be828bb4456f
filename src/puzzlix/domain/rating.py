"""Glicko-2 rating state shared by solvers and puzzles."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime

from puzzlix.config import (
    DEFAULT_RATING_DEVIATION,
    DEFAULT_RATING_VALUE,
    DEFAULT_RATING_VOLATILITY,
)


@dataclass(frozen=True)
class Rating:
    """Skill estimate, its uncertainty and volatility."""

    value: float = DEFAULT_RATING_VALUE
    deviation: float = DEFAULT_RATING_DEVIATION
    volatility: float = DEFAULT_RATING_VOLATILITY
    updated_at: datetime | None = None


__all__ = ["Rating"]
