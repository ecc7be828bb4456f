from pydantic import BaseModel, Field


class UserCreateRequest(BaseModel):
    username: str = Field(min_length=1, max_length=64)
    roles: list[str] = Field(default_factory=list)
