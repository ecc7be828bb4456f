"""Port interfaces for the puzzlix application."""

from puzzlix.ports.repositories import (  # noqa: F401
    AttemptRepository,
    PuzzleRepository,
    PuzzlesBeingEditedRepository,
    TrainingSessionRepository,
    UserRepository,
)
from puzzlix.ports.unit_of_work import UnitOfWork, UnitOfWorkFactory  # noqa: F401
