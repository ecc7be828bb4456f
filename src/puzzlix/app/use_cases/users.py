"""Use case for registering users whose ratings are tracked."""

from __future__ import annotations

from collections.abc import Callable, Sequence
from dataclasses import dataclass
from typing import Any

from puzzlix.app.use_cases.run_with_uow import run_with_uow
from puzzlix.config import Settings, get_settings
from puzzlix.db.duckdb_store import init_schema
from puzzlix.db.duckdb_unit_of_work import DuckDbUnitOfWork
from puzzlix.db.duckdb_user_repository import user_repository
from puzzlix.domain.user import User
from puzzlix.ports.unit_of_work import UnitOfWorkFactory


@dataclass
class UserUseCase:
    get_settings: Callable[..., Settings] = get_settings
    unit_of_work_factory: UnitOfWorkFactory = DuckDbUnitOfWork
    init_schema: Callable[[Any], None] = init_schema
    repository_factory: Callable[[Any], Any] = user_repository

    def create_user(self, username: str, roles: Sequence[str] = ()) -> dict[str, object]:
        settings = self.get_settings()
        user: User = run_with_uow(
            self.unit_of_work_factory,
            self.init_schema,
            settings.duckdb_path,
            lambda conn: self.repository_factory(conn).add(username.strip(), roles),
        )
        return {
            "success": True,
            "id": user.user_id,
            "username": user.username,
            "roles": list(user.roles),
        }


def get_user_use_case() -> UserUseCase:
    return UserUseCase()


__all__ = ["UserUseCase", "get_user_use_case"]
