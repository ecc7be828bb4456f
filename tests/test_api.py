import chess
import pytest
from fastapi.testclient import TestClient

from puzzlix.api import app
from puzzlix.app.use_cases.comments import CommentUseCase, get_comment_use_case
from puzzlix.app.use_cases.editor import PuzzleEditorUseCase, get_editor_use_case
from puzzlix.app.use_cases.training import TrainingUseCase, get_training_use_case
from puzzlix.app.use_cases.users import UserUseCase, get_user_use_case
from puzzlix.db.memory_puzzles_being_edited_repository import MemoryPuzzlesBeingEditedRepository
from puzzlix.db.memory_training_session_repository import MemoryTrainingSessionRepository

TOKEN = "test-token"


@pytest.fixture
def client(monkeypatch, tmp_path, settings_provider):
    monkeypatch.setenv("PUZZLIX_API_TOKEN", TOKEN)
    monkeypatch.setenv("PUZZLIX_DUCKDB_PATH", str(tmp_path / "auth.duckdb"))
    training = TrainingUseCase(
        get_settings=settings_provider,
        session_store=MemoryTrainingSessionRepository(),
    )
    editor = PuzzleEditorUseCase(
        get_settings=settings_provider,
        drafts=MemoryPuzzlesBeingEditedRepository(),
    )
    users = UserUseCase(get_settings=settings_provider)
    app.dependency_overrides[get_training_use_case] = lambda: training
    app.dependency_overrides[get_editor_use_case] = lambda: editor
    app.dependency_overrides[get_user_use_case] = lambda: users
    comments = CommentUseCase(get_settings=settings_provider)
    app.dependency_overrides[get_comment_use_case] = lambda: comments
    try:
        yield TestClient(app, headers={"Authorization": f"Bearer {TOKEN}"})
    finally:
        app.dependency_overrides.clear()


def test_health_is_unauthenticated(monkeypatch) -> None:
    monkeypatch.setenv("PUZZLIX_API_TOKEN", TOKEN)
    response = TestClient(app).get("/api/health")
    assert response.status_code == 200
    assert response.json() == {"status": "ok"}


def test_requires_token(client) -> None:
    bare = TestClient(app)
    assert bare.get("/api/puzzles/1").status_code == 401
    wrong = bare.get("/api/puzzles/1", headers={"Authorization": "Bearer nope"})
    assert wrong.status_code == 401
    keyed = bare.post("/api/users", json={"username": "kim"}, headers={"X-API-Key": TOKEN})
    assert keyed.status_code == 200


def test_domain_errors_are_reported_in_body(client) -> None:
    response = client.post("/api/puzzles/train/setup", json={"puzzle_id": "abc"})
    assert response.status_code == 200
    assert response.json() == {"success": False, "error": "Invalid puzzle ID."}

    response = client.post(
        "/api/puzzles/train/submit_move",
        json={"training_session_id": "missing", "origin": "e2", "destination": "e4"},
    )
    assert response.json() == {
        "success": False,
        "error": "Puzzle training session ID not found.",
    }

    response = client.get("/api/puzzles/train/random/Chess960")
    assert response.json()["success"] is False


def test_editor_register_requires_login(client) -> None:
    response = client.post(
        "/api/puzzles/editor/register",
        json={"fen": chess.STARTING_FEN, "variant": "Atomic"},
    )
    assert response.json() == {
        "success": False,
        "error": "You need to be logged in to do this.",
    }


def test_request_validation(client) -> None:
    assert client.post("/api/users", json={"username": ""}).status_code == 422
    assert client.post("/api/puzzles/train/setup", json={}).status_code == 422


def test_author_publishes_and_solver_trains(client) -> None:
    author = client.post("/api/users", json={"username": "rita", "roles": ["reviewer"]}).json()
    solver = client.post("/api/users", json={"username": "sam"}).json()
    assert author["roles"] == ["reviewer"]
    author_headers = {"X-User-Id": str(author["id"])}
    solver_headers = {"X-User-Id": str(solver["id"])}

    draft = client.post(
        "/api/puzzles/editor/register",
        json={"fen": chess.STARTING_FEN, "variant": "atomic"},
        headers=author_headers,
    ).json()
    draft_id = str(draft["id"])
    moves = client.get(f"/api/puzzles/editor/{draft_id}/valid_moves", headers=author_headers)
    assert moves.json()["whoseturn"] == "white"
    denied = client.get(f"/api/puzzles/editor/{draft_id}/valid_moves", headers=solver_headers)
    assert denied.json()["success"] is False

    moved = client.post(
        "/api/puzzles/editor/submit_move",
        json={"puzzle_id": draft_id, "origin": "e2", "destination": "e4"},
        headers=author_headers,
    ).json()
    assert moved["success"] is True
    reset = client.post(
        "/api/puzzles/editor/new_variation",
        json={"puzzle_id": draft_id},
        headers=author_headers,
    ).json()
    assert reset["fen"] == chess.STARTING_FEN

    published = client.post(
        "/api/puzzles/editor/submit",
        json={"puzzle_id": draft_id, "solution": "e2e4 e7e5 g1f3", "explanation": "Tempo"},
        headers=author_headers,
    ).json()
    puzzle_id = published["id"]
    detail = client.get(f"/api/puzzles/{puzzle_id}").json()
    assert detail["approved"] is True
    assert detail["author"] == "rita"
    assert detail["rating"] == 1500

    picked = client.get("/api/puzzles/train/random/Atomic", headers=solver_headers).json()
    assert picked == {"success": True, "id": puzzle_id}

    setup = client.post("/api/puzzles/train/setup", json={"puzzle_id": str(puzzle_id)}).json()
    token = setup["trainingSessionId"]
    first = client.post(
        "/api/puzzles/train/submit_move",
        json={"training_session_id": token, "origin": "e2", "destination": "e4"},
        headers=solver_headers,
    ).json()
    assert first["correct"] == 0
    assert first["play"] == "e7e5"
    assert "g1" in first["dests"]

    last = client.post(
        "/api/puzzles/train/submit_move",
        json={"training_session_id": token, "origin": "g1", "destination": "f3"},
        headers=solver_headers,
    ).json()
    assert last["correct"] == 1
    assert last["explanation"] == "Tempo"
    assert last["rating"] < 1500

    done = client.get(
        "/api/puzzles/train/random/Atomic",
        params={"training_session_id": token},
        headers=solver_headers,
    ).json()
    assert done == {"success": True, "allDone": True}


def test_comment_thread_on_published_puzzle(client) -> None:
    author = client.post("/api/users", json={"username": "rita", "roles": ["reviewer"]}).json()
    solver = client.post("/api/users", json={"username": "sam"}).json()
    author_headers = {"X-User-Id": str(author["id"])}
    solver_headers = {"X-User-Id": str(solver["id"])}
    draft = client.post(
        "/api/puzzles/editor/register",
        json={"fen": chess.STARTING_FEN, "variant": "Atomic"},
        headers=author_headers,
    ).json()
    puzzle_id = client.post(
        "/api/puzzles/editor/submit",
        json={"puzzle_id": str(draft["id"]), "solution": "e2e4 e7e5"},
        headers=author_headers,
    ).json()["id"]
    url = f"/api/puzzles/{puzzle_id}/comments"

    anonymous = client.post(url, json={"body": "hello"}).json()
    assert anonymous == {"success": False, "error": "You need to be logged in to do this."}
    assert client.post(url, json={"body": ""}, headers=solver_headers).status_code == 422

    posted = client.post(url, json={"body": "<em>nice</em>"}, headers=solver_headers).json()
    reply = client.post(
        url,
        json={"body": "thanks", "parent_id": posted["id"]},
        headers=author_headers,
    ).json()
    assert reply["success"] is True

    thread = client.get(url).json()["comments"]
    assert [(c["author"], c["body"], c["parentId"]) for c in thread] == [
        ("sam", "&lt;em&gt;nice&lt;/em&gt;", None),
        ("rita", "thanks", posted["id"]),
    ]

    denied = client.delete(f"/api/comments/{posted['id']}", headers=author_headers).json()
    assert denied["success"] is False
    deleted = client.delete(f"/api/comments/{posted['id']}", headers=solver_headers).json()
    assert deleted == {"success": True}
    assert client.get(url).json()["comments"][0]["body"] is None
