import random
from uuid import uuid4

_PUZZLE_ID_MAX = 2**31 - 1


def generate_id() -> str:
    """Generate a unique identifier string.

    Returns:
        A unique identifier as a string.
    """
    return str(uuid4())


def generate_int_id() -> int:
    """Generate a random positive 32-bit identifier for puzzles being edited."""
    return random.randint(1, _PUZZLE_ID_MAX)
