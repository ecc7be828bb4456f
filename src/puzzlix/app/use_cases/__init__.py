"""Application use-case entrypoints."""

from puzzlix.app.use_cases.editor import PuzzleEditorUseCase, get_editor_use_case
from puzzlix.app.use_cases.training import TrainingUseCase, get_training_use_case
from puzzlix.app.use_cases.users import UserUseCase, get_user_use_case

__all__ = [
    "PuzzleEditorUseCase",
    "TrainingUseCase",
    "UserUseCase",
    "get_editor_use_case",
    "get_training_use_case",
    "get_user_use_case",
]
