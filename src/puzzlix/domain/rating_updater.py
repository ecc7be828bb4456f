"""Two-sided Glicko-2 update between a solver and a puzzle.

The solver and the puzzle are modeled as two players meeting in a single game:
solving the puzzle is a win for the solver, failing it is a win for the puzzle.
Follows Glickman, "Example of the Glicko-2 system" (2013).
"""

from __future__ import annotations

import math
from dataclasses import dataclass
from datetime import datetime

from puzzlix.config import DEFAULT_RATING_VALUE, GlickoSettings
from puzzlix.domain.rating import Rating
from puzzlix.utils.logger import get_logger
from puzzlix.utils.now import Now

logger = get_logger(__name__)

GLICKO2_SCALE = 173.7178
_MAX_ITERATIONS = 100
_SECONDS_PER_DAY = 86400.0
# Keeps the outcome variance finite when the rating gap is extreme.
_EXPECTED_FLOOR = 1e-9
_MAX_EXPONENT = 700.0


@dataclass(frozen=True)
class RatingUpdate:
    solver: Rating
    puzzle: Rating


@dataclass(frozen=True)
class _ScaledRating:
    mu: float
    phi: float
    sigma: float


class RatingUpdater:
    """Pure, deterministic rating computation."""

    def __init__(self, settings: GlickoSettings | None = None) -> None:
        self.settings = settings or GlickoSettings()

    def update(
        self,
        solver: Rating,
        puzzle: Rating,
        correct: bool,
        started_utc: datetime,
        ended_utc: datetime,
    ) -> RatingUpdate:
        """Return both parties' ratings after one attempt."""
        started = Now.to_utc(started_utc)
        ended = Now.to_utc(ended_utc)
        if started is None or ended is None:
            raise ValueError("attempt timestamps are required")
        if ended < started:
            raise ValueError("attempt ended before it started")

        solver_scaled = self._scale(self.inflate_deviation(solver, started))
        puzzle_scaled = self._scale(self.inflate_deviation(puzzle, started))
        solver_score = 1.0 if correct else 0.0
        new_solver = self._rate(solver_scaled, puzzle_scaled, solver_score)
        new_puzzle = self._rate(puzzle_scaled, solver_scaled, 1.0 - solver_score)
        result = RatingUpdate(
            solver=self._unscale(new_solver, ended),
            puzzle=self._unscale(new_puzzle, ended),
        )
        logger.debug(
            "Rating update (correct=%s): solver %.1f -> %.1f, puzzle %.1f -> %.1f",
            correct,
            solver.value,
            result.solver.value,
            puzzle.value,
            result.puzzle.value,
        )
        return result

    def inflate_deviation(self, rating: Rating, as_of: datetime) -> Rating:
        """Grow the deviation for the rating periods elapsed since the last update."""
        last_update = Now.to_utc(rating.updated_at)
        if last_update is None:
            return rating
        elapsed_days = max(0.0, (as_of - last_update).total_seconds() / _SECONDS_PER_DAY)
        periods = elapsed_days / self.settings.rating_period_days
        phi = rating.deviation / GLICKO2_SCALE
        inflated = math.sqrt(phi**2 + rating.volatility**2 * periods) * GLICKO2_SCALE
        return Rating(
            value=rating.value,
            deviation=min(max(inflated, rating.deviation), self.settings.max_deviation),
            volatility=rating.volatility,
            updated_at=rating.updated_at,
        )

    def _rate(self, player: _ScaledRating, opponent: _ScaledRating, score: float) -> _ScaledRating:
        g = _g(opponent.phi)
        expected = _expected(player.mu, opponent.mu, g)
        variance = 1.0 / (g**2 * expected * (1.0 - expected))
        delta = variance * g * (score - expected)
        sigma = self._new_volatility(player, delta, variance)
        phi_star = math.sqrt(player.phi**2 + sigma**2)
        phi = 1.0 / math.sqrt(1.0 / phi_star**2 + 1.0 / variance)
        mu = player.mu + phi**2 * g * (score - expected)
        return _ScaledRating(mu=mu, phi=phi, sigma=sigma)

    def _new_volatility(self, player: _ScaledRating, delta: float, variance: float) -> float:
        tau = self.settings.tau
        a = math.log(player.sigma**2)
        phi_sq = player.phi**2

        def f(x: float) -> float:
            ex = math.exp(x)
            numerator = ex * (delta**2 - phi_sq - variance - ex)
            denominator = 2.0 * (phi_sq + variance + ex) ** 2
            return numerator / denominator - (x - a) / tau**2

        upper = a
        if delta**2 > phi_sq + variance:
            lower = math.log(delta**2 - phi_sq - variance)
        else:
            k = 1
            while f(a - k * tau) < 0 and k < _MAX_ITERATIONS:
                k += 1
            lower = a - k * tau

        # Illinois variant of regula falsi
        f_upper = f(upper)
        f_lower = f(lower)
        iterations = 0
        while abs(lower - upper) > self.settings.convergence_tolerance:
            iterations += 1
            if iterations > _MAX_ITERATIONS:
                logger.warning("Volatility iteration did not converge; using last estimate")
                break
            candidate = upper + (upper - lower) * f_upper / (f_lower - f_upper)
            f_candidate = f(candidate)
            if f_candidate * f_lower <= 0:
                upper, f_upper = lower, f_lower
            else:
                f_upper /= 2.0
            lower, f_lower = candidate, f_candidate
        return self._bound_volatility(player.sigma, math.exp(upper / 2.0))

    def _bound_volatility(self, previous: float, proposed: float) -> float:
        max_change = self.settings.max_volatility_change
        bounded = min(max(proposed, previous - max_change), previous + max_change)
        return min(bounded, self.settings.max_volatility)

    def _scale(self, rating: Rating) -> _ScaledRating:
        return _ScaledRating(
            mu=(rating.value - DEFAULT_RATING_VALUE) / GLICKO2_SCALE,
            phi=rating.deviation / GLICKO2_SCALE,
            sigma=rating.volatility,
        )

    def _unscale(self, scaled: _ScaledRating, ended: datetime) -> Rating:
        deviation = scaled.phi * GLICKO2_SCALE
        deviation = min(max(deviation, self.settings.min_deviation), self.settings.max_deviation)
        return Rating(
            value=scaled.mu * GLICKO2_SCALE + DEFAULT_RATING_VALUE,
            deviation=deviation,
            volatility=scaled.sigma,
            updated_at=ended,
        )


def _g(phi: float) -> float:
    return 1.0 / math.sqrt(1.0 + 3.0 * phi**2 / math.pi**2)


def _expected(mu: float, opponent_mu: float, g: float) -> float:
    exponent = max(-_MAX_EXPONENT, min(_MAX_EXPONENT, -g * (mu - opponent_mu)))
    expected = 1.0 / (1.0 + math.exp(exponent))
    return min(1.0 - _EXPECTED_FLOOR, max(_EXPECTED_FLOOR, expected))


__all__ = ["GLICKO2_SCALE", "RatingUpdate", "RatingUpdater"]
