"""Logging for puzzlix modules and the uvicorn server that hosts the API."""

from __future__ import annotations

import logging
import os
import sys

_DEFAULT_LOGGER_NAME = "puzzlix"
_SERVER_LOGGER_NAMES = ("uvicorn", "uvicorn.error", "uvicorn.access")


def resolve_level(raw: str | int | None, default: int = logging.INFO) -> int:
    """Turn a level name or number into a logging level; unknown values fall back."""
    if isinstance(raw, int):
        return raw
    value = (raw or "").strip()
    if not value:
        return default
    if value.isdigit():
        return int(value)
    level = logging.getLevelName(value.upper())
    return level if isinstance(level, int) else default


_DEFAULT_LOG_LEVEL = resolve_level(os.getenv("PUZZLIX_LOG_LEVEL"))
_DEFAULT_FORMATTER = logging.Formatter("%(asctime)s [%(levelname)s] %(name)s: %(message)s")
_DEFAULT_HANDLER = logging.StreamHandler(sys.stdout)
_DEFAULT_HANDLER.setFormatter(_DEFAULT_FORMATTER)


def _configure_logger(logger: logging.Logger, level: int) -> None:
    if logger.level == logging.NOTSET:
        logger.setLevel(level)
    if not logger.handlers:
        logger.addHandler(_DEFAULT_HANDLER)
    logger.propagate = False


def get_logger(name: str | None = None, level: int = _DEFAULT_LOG_LEVEL) -> logging.Logger:
    """Return a logger writing to the shared stdout handler."""
    logger = logging.getLogger(name or _DEFAULT_LOGGER_NAME)
    _configure_logger(logger, level)
    return logger


def set_level(level: str | int, logger_names: list[str] | None = None) -> int:
    """Apply ``level`` to every puzzlix logger created so far and to uvicorn's.

    Returns the resolved numeric level.
    """
    resolved = resolve_level(level)
    if logger_names is None:
        names = [
            name
            for name in logging.root.manager.loggerDict
            if name == _DEFAULT_LOGGER_NAME or name.startswith(f"{_DEFAULT_LOGGER_NAME}.")
        ]
        names.extend(_SERVER_LOGGER_NAMES)
    else:
        names = logger_names
    for name in names:
        logging.getLogger(name).setLevel(resolved)
    return resolved
