"""PUZZLIX package entrypoints."""

from puzzlix.domain.rating_updater import RatingUpdate, RatingUpdater
from puzzlix.domain.solution_tree import SolutionTree
from puzzlix.domain.training_session import TrainingSession

__all__ = ["RatingUpdate", "RatingUpdater", "SolutionTree", "TrainingSession"]
