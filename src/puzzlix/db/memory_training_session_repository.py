"""Process-local training session store."""

from __future__ import annotations

from threading import Lock

from puzzlix.domain.training_session import TrainingSession
from puzzlix.errors import PersistenceConflictError


class MemoryTrainingSessionRepository:
    """Live sessions keyed by token.

    Sessions are never evicted; each one serializes its own moves.
    """

    def __init__(self) -> None:
        self._sessions: dict[str, TrainingSession] = {}
        self._lock = Lock()

    def add(self, session: TrainingSession) -> None:
        with self._lock:
            if session.session_id in self._sessions:
                raise PersistenceConflictError(
                    f"Training session {session.session_id} already exists."
                )
            self._sessions[session.session_id] = session

    def get(self, session_id: str) -> TrainingSession | None:
        with self._lock:
            return self._sessions.get(session_id)

    def contains(self, session_id: str) -> bool:
        with self._lock:
            return session_id in self._sessions


__all__ = ["MemoryTrainingSessionRepository"]
