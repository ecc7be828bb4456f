from __future__ import annotations

from typing import Annotated, cast

from fastapi import Depends, FastAPI, Header, Query, Request
from fastapi.responses import JSONResponse
from starlette.middleware import Middleware
from starlette.middleware.cors import CORSMiddleware

from puzzlix.app.use_cases.comments import CommentUseCase, get_comment_use_case
from puzzlix.app.use_cases.editor import PuzzleEditorUseCase, get_editor_use_case
from puzzlix.app.use_cases.training import TrainingUseCase, get_training_use_case
from puzzlix.app.use_cases.users import UserUseCase, get_user_use_case
from puzzlix.errors import PuzzlixError, UnauthorizedError
from puzzlix.models import (
    CommentCreateRequest,
    EditorMoveRequest,
    EditorRegisterRequest,
    EditorSubmitRequest,
    EditorVariationRequest,
    TrainingMoveRequest,
    TrainingSetupRequest,
    UserCreateRequest,
)
from puzzlix.request_auth import require_api_token
from puzzlix.utils.logger import get_logger

logger = get_logger(__name__)

ActorId = Annotated[int | None, Header(alias="X-User-Id")]
Training = Annotated[TrainingUseCase, Depends(get_training_use_case)]
Editor = Annotated[PuzzleEditorUseCase, Depends(get_editor_use_case)]
Users = Annotated[UserUseCase, Depends(get_user_use_case)]
Comments = Annotated[CommentUseCase, Depends(get_comment_use_case)]

app = FastAPI(
    title="PUZZLIX",
    version="0.1.0",
    dependencies=[Depends(require_api_token)],
    middleware=[
        Middleware(
            cast("type[object]", CORSMiddleware),
            allow_origins=["*"],
            allow_methods=["*"],
            allow_headers=["*"],
        )
    ],
)


@app.exception_handler(PuzzlixError)
async def puzzlix_error_handler(request: Request, exc: PuzzlixError) -> JSONResponse:
    logger.info("%s %s failed: %s", request.method, request.url.path, exc.message)
    return JSONResponse({"success": False, "error": exc.message})


def _require_actor(actor_id: int | None) -> int:
    if actor_id is None:
        raise UnauthorizedError("You need to be logged in to do this.")
    return actor_id


@app.get("/api/health")
def health() -> dict[str, str]:
    return {"status": "ok"}


@app.get("/api/puzzles/train/random/{variant}")
def train_random(
    variant: str,
    use_case: Training,
    actor_id: ActorId = None,
    training_session_id: Annotated[str | None, Query()] = None,
) -> dict[str, object]:
    return use_case.get_one_randomly(variant, actor_id, training_session_id)


@app.post("/api/puzzles/train/setup")
def train_setup(payload: TrainingSetupRequest, use_case: Training) -> dict[str, object]:
    return use_case.setup(payload.puzzle_id, payload.training_session_id)


@app.post("/api/puzzles/train/submit_move")
def train_submit_move(
    payload: TrainingMoveRequest,
    use_case: Training,
    actor_id: ActorId = None,
) -> dict[str, object]:
    return use_case.submit_move(
        payload.training_session_id,
        payload.origin,
        payload.destination,
        payload.promotion,
        user_id=actor_id,
    )


@app.post("/api/puzzles/editor/register")
def editor_register(
    payload: EditorRegisterRequest,
    use_case: Editor,
    actor_id: ActorId = None,
) -> dict[str, object]:
    return use_case.register_for_editing(payload.fen, payload.variant, _require_actor(actor_id))


@app.get("/api/puzzles/editor/{puzzle_id}/valid_moves")
def editor_valid_moves(
    puzzle_id: str,
    use_case: Editor,
    actor_id: ActorId = None,
) -> dict[str, object]:
    return use_case.get_valid_moves(puzzle_id, actor_id)


@app.post("/api/puzzles/editor/submit_move")
def editor_submit_move(
    payload: EditorMoveRequest,
    use_case: Editor,
    actor_id: ActorId = None,
) -> dict[str, object]:
    return use_case.submit_move(
        payload.puzzle_id,
        actor_id,
        payload.origin,
        payload.destination,
        payload.promotion,
    )


@app.post("/api/puzzles/editor/new_variation")
def editor_new_variation(
    payload: EditorVariationRequest,
    use_case: Editor,
    actor_id: ActorId = None,
) -> dict[str, object]:
    return use_case.new_variation(payload.puzzle_id, actor_id)


@app.post("/api/puzzles/editor/submit")
def editor_submit(
    payload: EditorSubmitRequest,
    use_case: Editor,
    actor_id: ActorId = None,
) -> dict[str, object]:
    return use_case.submit_puzzle(
        payload.puzzle_id,
        actor_id,
        payload.solution,
        payload.explanation,
    )


@app.get("/api/puzzles/{puzzle_id}")
def puzzle_detail(puzzle_id: str, use_case: Training) -> dict[str, object]:
    return use_case.get_puzzle(puzzle_id)


@app.get("/api/puzzles/{puzzle_id}/comments")
def list_comments(puzzle_id: str, use_case: Comments) -> dict[str, object]:
    return use_case.list_comments(puzzle_id)


@app.post("/api/puzzles/{puzzle_id}/comments")
def post_comment(
    puzzle_id: str,
    payload: CommentCreateRequest,
    use_case: Comments,
    actor_id: ActorId = None,
) -> dict[str, object]:
    return use_case.post_comment(
        puzzle_id,
        _require_actor(actor_id),
        payload.body,
        payload.parent_id,
    )


@app.delete("/api/comments/{comment_id}")
def delete_comment(
    comment_id: str,
    use_case: Comments,
    actor_id: ActorId = None,
) -> dict[str, object]:
    return use_case.delete_comment(comment_id, _require_actor(actor_id))


@app.post("/api/users")
def create_user(payload: UserCreateRequest, use_case: Users) -> dict[str, object]:
    return use_case.create_user(payload.username, payload.roles)


__all__ = ["app"]
