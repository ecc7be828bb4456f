"""Custom error types used in puzzlix.

Every error here is recoverable at the API boundary, where it is reported as
``{"success": false, "error": message}``.
"""


class PuzzlixError(Exception):
    """Base class for expected, user-facing failures."""

    default_message = "Something went wrong."

    def __init__(self, message: str | None = None) -> None:
        super().__init__(message or self.default_message)

    @property
    def message(self) -> str:
        return str(self.args[0])


class InvalidIdError(PuzzlixError, ValueError):
    """Identifier could not be parsed."""

    default_message = "The given ID is invalid."


class NotFoundError(PuzzlixError, LookupError):
    """Puzzle, session or user does not exist."""

    default_message = "The given ID does not correspond to a puzzle."


class UnauthorizedError(PuzzlixError, PermissionError):
    """Actor is not allowed to touch the resource."""

    default_message = "Only the puzzle author can access this right now."


class InvalidMoveError(PuzzlixError, ValueError):
    """Malformed coordinates, promotion letter or an illegal move."""

    default_message = "The given move is invalid."


class InvalidStateError(PuzzlixError):
    """Operation attempted while the training session is not active."""

    default_message = "The training session is not waiting for a move."


class NoAcceptedSolutionsError(PuzzlixError, ValueError):
    """Publish attempted without a single non-blank solution line."""

    default_message = "There are no accepted variations."


class PersistenceConflictError(PuzzlixError):
    """Identifier collision on insert."""

    default_message = "A record with the same ID already exists."


class InvalidCommentError(PuzzlixError, ValueError):
    """Empty or oversized comment body, or a reply to a comment elsewhere."""

    default_message = "The comment is invalid."


class UnsupportedVariantError(PuzzlixError, ValueError):
    default_message = "Unsupported variant."


class InvalidFenError(PuzzlixError, ValueError):
    default_message = "The given FEN is invalid."


__all__ = [
    "InvalidCommentError",
    "InvalidFenError",
    "InvalidIdError",
    "InvalidMoveError",
    "InvalidStateError",
    "NoAcceptedSolutionsError",
    "NotFoundError",
    "PersistenceConflictError",
    "PuzzlixError",
    "UnauthorizedError",
    "UnsupportedVariantError",
]
