"""Threaded discussion under a published puzzle."""

from __future__ import annotations

import html
from dataclasses import dataclass
from datetime import datetime

MAX_COMMENT_LENGTH = 2000


@dataclass(frozen=True)
class Comment:
    comment_id: int
    author: int
    body_unsanitized: str
    puzzle_id: int
    parent_id: int | None = None
    deleted: bool = False
    date_posted_utc: datetime | None = None

    @property
    def body_safe(self) -> str:
        return html.escape(self.body_unsanitized)


__all__ = ["MAX_COMMENT_LENGTH", "Comment"]
