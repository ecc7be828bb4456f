"""Transaction boundary used by the use cases."""

from __future__ import annotations

from collections.abc import Callable
from pathlib import Path
from types import TracebackType
from typing import Any, Protocol, TypeVar

ConnT_co = TypeVar("ConnT_co", covariant=True)


class UnitOfWork(Protocol[ConnT_co]):
    """One store session per use-case call.

    Entering begins the transaction and yields the connection. Leaving commits
    on success, rolls back on error and always closes; a write conflict leaves
    as ``PersistenceConflictError``.
    """

    def begin(self) -> ConnT_co: ...

    def commit(self) -> None: ...

    def rollback(self) -> None: ...

    def close(self) -> None: ...

    def __enter__(self) -> ConnT_co: ...

    def __exit__(
        self,
        exc_type: type[BaseException] | None,
        exc: BaseException | None,
        traceback: TracebackType | None,
    ) -> None: ...


UnitOfWorkFactory = Callable[[Path], UnitOfWork[Any]]
