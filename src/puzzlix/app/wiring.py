"""Process-wide in-memory stores shared by the use cases."""

from __future__ import annotations

from functools import lru_cache

from puzzlix.db.memory_puzzles_being_edited_repository import (
    MemoryPuzzlesBeingEditedRepository,
)
from puzzlix.db.memory_training_session_repository import MemoryTrainingSessionRepository


@lru_cache(maxsize=1)
def get_training_session_store() -> MemoryTrainingSessionRepository:
    return MemoryTrainingSessionRepository()


@lru_cache(maxsize=1)
def get_puzzles_being_edited_store() -> MemoryPuzzlesBeingEditedRepository:
    return MemoryPuzzlesBeingEditedRepository()


def reset_stores() -> None:
    """Drop every live session and draft."""
    get_training_session_store.cache_clear()
    get_puzzles_being_edited_store.cache_clear()


__all__ = [
    "get_puzzles_being_edited_store",
    "get_training_session_store",
    "reset_stores",
]
