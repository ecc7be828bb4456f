from pydantic import BaseModel, Field

from puzzlix.domain.comment import MAX_COMMENT_LENGTH


class CommentCreateRequest(BaseModel):
    body: str = Field(min_length=1, max_length=MAX_COMMENT_LENGTH)
    parent_id: int | None = None
