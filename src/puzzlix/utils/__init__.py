"""Utility exports for the puzzlix package."""

from .generate_id import generate_id, generate_int_id
from .logger import get_logger, resolve_level, set_level
from .now import Now

__all__ = [
    "Now",
    "generate_id",
    "generate_int_id",
    "get_logger",
    "resolve_level",
    "set_level",
]
