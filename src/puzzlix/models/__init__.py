from puzzlix.models.comment_create_request import CommentCreateRequest
from puzzlix.models.editor_requests import (
    EditorMoveRequest,
    EditorRegisterRequest,
    EditorSubmitRequest,
    EditorVariationRequest,
)
from puzzlix.models.training_requests import TrainingMoveRequest, TrainingSetupRequest
from puzzlix.models.user_create_request import UserCreateRequest

__all__ = [
    "CommentCreateRequest",
    "EditorMoveRequest",
    "EditorRegisterRequest",
    "EditorSubmitRequest",
    "EditorVariationRequest",
    "TrainingMoveRequest",
    "TrainingSetupRequest",
    "UserCreateRequest",
]
