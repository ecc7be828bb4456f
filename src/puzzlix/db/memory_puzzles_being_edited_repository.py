"""Process-local store of puzzles being authored."""

from __future__ import annotations

from threading import Lock

from puzzlix.domain.puzzle_draft import PuzzleDraft
from puzzlix.errors import PersistenceConflictError


class MemoryPuzzlesBeingEditedRepository:
    def __init__(self) -> None:
        self._drafts: dict[int, PuzzleDraft] = {}
        self._lock = Lock()

    def add(self, draft: PuzzleDraft) -> None:
        puzzle_id = draft.puzzle.puzzle_id
        with self._lock:
            if puzzle_id in self._drafts:
                raise PersistenceConflictError(f"Puzzle {puzzle_id} is already being edited.")
            self._drafts[puzzle_id] = draft

    def get(self, puzzle_id: int) -> PuzzleDraft | None:
        with self._lock:
            return self._drafts.get(puzzle_id)

    def contains(self, puzzle_id: int) -> bool:
        with self._lock:
            return puzzle_id in self._drafts

    def remove(self, puzzle_id: int) -> None:
        with self._lock:
            self._drafts.pop(puzzle_id, None)


__all__ = ["MemoryPuzzlesBeingEditedRepository"]
