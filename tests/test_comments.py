from datetime import UTC, datetime

import pytest

from puzzlix.app.use_cases.comments import CommentUseCase
from puzzlix.app.use_cases.users import UserUseCase
from puzzlix.db.duckdb_puzzle_repository import DuckDbPuzzleRepository
from puzzlix.db.duckdb_store import get_connection, init_schema
from puzzlix.domain.comment import MAX_COMMENT_LENGTH, Comment
from puzzlix.domain.puzzle import Puzzle
from puzzlix.errors import InvalidCommentError, InvalidIdError, NotFoundError, UnauthorizedError

POSTED = datetime(2026, 6, 3, 18, 15, tzinfo=UTC)
FEN = "rnbqkbnr/pppppppp/8/8/8/8/PPPPPPPP/RNBQKBNR w KQkq - 0 1"


@pytest.fixture
def comments(settings_provider):
    return CommentUseCase(get_settings=settings_provider, clock=lambda: POSTED)


@pytest.fixture
def people(settings, settings_provider):
    users = UserUseCase(get_settings=settings_provider)
    author = users.create_user("rita")["id"]
    other = users.create_user("sam")["id"]
    conn = get_connection(settings.duckdb_path)
    try:
        init_schema(conn)
        repo = DuckDbPuzzleRepository(conn)
        repo.add(Puzzle(puzzle_id=1, variant="Atomic", initial_fen=FEN, author=author))
        repo.add(Puzzle(puzzle_id=2, variant="Horde", initial_fen=FEN, author=author))
    finally:
        conn.close()
    return author, other


def test_body_is_escaped_on_read() -> None:
    comment = Comment(1, 1, '<script>alert("x")</script>', 1)
    assert comment.body_safe == "&lt;script&gt;alert(&quot;x&quot;)&lt;/script&gt;"


def test_post_and_list_thread(comments, people) -> None:
    author, other = people
    first = comments.post_comment("1", author, "  <b>Qh5</b> first  ")
    reply = comments.post_comment(1, other, "why not Nf3?", parent_id=first["id"])
    assert first == {"success": True, "id": 1}
    assert reply == {"success": True, "id": 2}

    listed = comments.list_comments("1")
    assert listed == {
        "success": True,
        "comments": [
            {
                "id": 1,
                "author": "rita",
                "body": "&lt;b&gt;Qh5&lt;/b&gt; first",
                "parentId": None,
                "deleted": False,
                "datePostedUtc": POSTED.isoformat(),
            },
            {
                "id": 2,
                "author": "sam",
                "body": "why not Nf3?",
                "parentId": 1,
                "deleted": False,
                "datePostedUtc": POSTED.isoformat(),
            },
        ],
    }
    assert comments.list_comments(2) == {"success": True, "comments": []}


def test_post_rejects_bad_input(comments, people) -> None:
    author, _ = people
    with pytest.raises(InvalidCommentError):
        comments.post_comment(1, author, "   ")
    with pytest.raises(InvalidCommentError):
        comments.post_comment(1, author, "x" * (MAX_COMMENT_LENGTH + 1))
    with pytest.raises(InvalidIdError):
        comments.post_comment("one", author, "hi")
    with pytest.raises(NotFoundError, match="Puzzle not found."):
        comments.post_comment(9, author, "hi")
    with pytest.raises(NotFoundError, match="User not found."):
        comments.post_comment(1, 99, "hi")


def test_replies_must_target_a_live_comment_on_the_same_puzzle(comments, people) -> None:
    author, other = people
    on_first = comments.post_comment(1, author, "root")["id"]
    with pytest.raises(InvalidCommentError):
        comments.post_comment(2, other, "reply", parent_id=on_first)
    with pytest.raises(InvalidCommentError):
        comments.post_comment(1, other, "reply", parent_id=404)
    comments.delete_comment(on_first, author)
    with pytest.raises(InvalidCommentError):
        comments.post_comment(1, other, "reply", parent_id=on_first)


def test_delete_is_author_only_and_hides_body(comments, people) -> None:
    author, other = people
    root = comments.post_comment(1, author, "root")["id"]
    comments.post_comment(1, other, "reply", parent_id=root)
    with pytest.raises(UnauthorizedError):
        comments.delete_comment(root, other)
    with pytest.raises(NotFoundError):
        comments.delete_comment(77, author)
    with pytest.raises(InvalidIdError):
        comments.delete_comment("x", author)

    assert comments.delete_comment(str(root), author) == {"success": True}
    hidden, kept = comments.list_comments(1)["comments"]
    assert hidden["deleted"] is True
    assert hidden["body"] is None
    assert hidden["author"] is None
    assert kept["parentId"] == root
    assert kept["body"] == "reply"
