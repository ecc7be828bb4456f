from pydantic import BaseModel


class EditorRegisterRequest(BaseModel):
    fen: str
    variant: str


class EditorMoveRequest(BaseModel):
    puzzle_id: str
    origin: str
    destination: str
    promotion: str | None = None


class EditorVariationRequest(BaseModel):
    puzzle_id: str


class EditorSubmitRequest(BaseModel):
    """Publish request; ``solution`` holds ``;``-separated variations."""

    puzzle_id: str
    solution: str
    explanation: str | None = None
