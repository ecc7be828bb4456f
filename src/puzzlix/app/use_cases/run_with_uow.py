"""Shared transaction boundary for use cases."""

from __future__ import annotations

from collections.abc import Callable
from pathlib import Path
from typing import Any, TypeVar

from puzzlix.ports.unit_of_work import UnitOfWorkFactory

ResultT = TypeVar("ResultT")


def run_with_uow(
    unit_of_work_factory: UnitOfWorkFactory,
    init_schema: Callable[[Any], None],
    db_path: Path,
    handler: Callable[[Any], ResultT],
) -> ResultT:
    """Run ``handler`` on a migrated connection inside one unit of work."""
    with unit_of_work_factory(db_path) as conn:
        init_schema(conn)
        return handler(conn)


__all__ = ["run_with_uow"]
