from pydantic import BaseModel


class TrainingSetupRequest(BaseModel):
    puzzle_id: str
    training_session_id: str | None = None


class TrainingMoveRequest(BaseModel):
    training_session_id: str
    origin: str
    destination: str
    promotion: str | None = None
