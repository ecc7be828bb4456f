"""Per-call DuckDB transaction for the use cases."""

from __future__ import annotations

from collections.abc import Callable
from dataclasses import dataclass
from pathlib import Path
from types import TracebackType

import duckdb

from puzzlix.db.duckdb_store import get_connection
from puzzlix.errors import PersistenceConflictError
from puzzlix.utils.logger import get_logger

logger = get_logger(__name__)

WRITE_CONFLICT_MESSAGE = "Another request changed the same records; try again."


@dataclass
class DuckDbUnitOfWork:
    """Open one connection, run one transaction, close.

    DuckDB reports concurrent writes to the same rows (two attempts rating one
    puzzle, two publishes taking the same id) as ``TransactionException``.
    Those leave as ``PersistenceConflictError`` so ``retry_on_conflict`` can
    replay the whole unit.
    """

    db_path: Path | str
    connection_factory: Callable[[Path], duckdb.DuckDBPyConnection] = get_connection
    _conn: duckdb.DuckDBPyConnection | None = None
    _active: bool = False

    def begin(self) -> duckdb.DuckDBPyConnection:
        if self._conn is None:
            self._conn = self.connection_factory(Path(self.db_path))
        if not self._active:
            self._conn.execute("BEGIN TRANSACTION")
            self._active = True
        return self._conn

    def commit(self) -> None:
        if self._conn is None or not self._active:
            return
        self._active = False
        try:
            self._conn.execute("COMMIT")
        except duckdb.TransactionException as exc:
            logger.warning("DuckDB commit conflict on %s: %s", self.db_path, exc)
            raise PersistenceConflictError(WRITE_CONFLICT_MESSAGE) from exc

    def rollback(self) -> None:
        if self._conn is None or not self._active:
            return
        self._active = False
        self._conn.execute("ROLLBACK")

    def close(self) -> None:
        if self._conn is None:
            return
        try:
            self.rollback()
        finally:
            self._conn.close()
            self._conn = None

    def __enter__(self) -> duckdb.DuckDBPyConnection:
        return self.begin()

    def __exit__(
        self,
        exc_type: type[BaseException] | None,
        exc: BaseException | None,
        traceback: TracebackType | None,
    ) -> None:
        try:
            if exc is None:
                self.commit()
            else:
                self.rollback()
        finally:
            self.close()
        if isinstance(exc, duckdb.TransactionException):
            logger.warning("DuckDB write conflict on %s: %s", self.db_path, exc)
            raise PersistenceConflictError(WRITE_CONFLICT_MESSAGE) from exc


__all__ = ["DuckDbUnitOfWork"]
