"""Retry helpers for random and counter-based id allocation."""

from __future__ import annotations

import logging
from collections.abc import Callable
from typing import TypeVar

from tenacity import (
    Retrying,
    before_sleep_log,
    retry_if_exception_type,
    stop_after_attempt,
)

from puzzlix.errors import PersistenceConflictError
from puzzlix.utils.logger import get_logger

logger = get_logger(__name__)

ResultT = TypeVar("ResultT")


def retry_on_conflict(max_attempts: int, action: Callable[[], ResultT]) -> ResultT:
    """Call ``action`` until it stops raising ``PersistenceConflictError``.

    The last conflict is re-raised once ``max_attempts`` calls have failed.
    """
    retrying = Retrying(
        retry=retry_if_exception_type(PersistenceConflictError),
        stop=stop_after_attempt(max(1, max_attempts)),
        reraise=True,
        before_sleep=before_sleep_log(logger, logging.WARNING),
    )
    return retrying(action)


__all__ = ["retry_on_conflict"]
