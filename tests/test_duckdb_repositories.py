from __future__ import annotations

import tempfile
import unittest
from datetime import UTC, datetime, timedelta
from pathlib import Path

import chess

from puzzlix.db.duckdb_attempt_repository import DuckDbAttemptRepository
from puzzlix.db.duckdb_comment_repository import DuckDbCommentRepository
from puzzlix.db.duckdb_puzzle_repository import DuckDbPuzzleRepository
from puzzlix.db.duckdb_store import get_connection, init_schema
from puzzlix.db.duckdb_user_repository import DuckDbUserRepository
from puzzlix.domain.comment import Comment
from puzzlix.domain.puzzle import Puzzle
from puzzlix.domain.rating import Rating
from puzzlix.domain.user import Attempt, RatingRecord
from puzzlix.errors import PersistenceConflictError

WHEN = datetime(2026, 4, 2, 9, 30, tzinfo=UTC)


def _puzzle(puzzle_id: int, *, variant="Atomic", author=1, approved=True) -> Puzzle:
    return Puzzle(
        puzzle_id=puzzle_id,
        variant=variant,
        initial_fen=chess.STARTING_FEN,
        author=author,
        solutions=["e2e4 e7e5", "d2d4 d7d5"],
        rating=Rating(1480.0, 210.0, 0.061, WHEN),
        in_review=not approved,
        approved=approved,
        reviewers=[author] if approved else [],
        explanation_unsafe="<b>center</b>",
        date_submitted_utc=WHEN,
    )


class DuckDbPuzzleRepositoryTests(unittest.TestCase):
    def setUp(self) -> None:
        tmp_dir = Path(tempfile.mkdtemp())
        self.conn = get_connection(tmp_dir / "puzzles.duckdb")
        init_schema(self.conn)
        self.repo = DuckDbPuzzleRepository(self.conn)

    def tearDown(self) -> None:
        self.conn.close()

    def test_add_and_get_round_trip(self) -> None:
        puzzle = _puzzle(1)
        self.repo.add(puzzle)
        self.assertEqual(self.repo.get(1), puzzle)
        self.assertIsNone(self.repo.get(2))

    def test_duplicate_id_is_a_conflict(self) -> None:
        self.repo.add(_puzzle(1))
        with self.assertRaises(PersistenceConflictError):
            self.repo.add(_puzzle(1, variant="Horde"))
        self.assertEqual(self.repo.get(1).variant, "Atomic")

    def test_next_puzzle_id_counts_up(self) -> None:
        self.assertEqual(self.repo.next_puzzle_id(), 1)
        self.repo.add(_puzzle(1))
        self.repo.add(_puzzle(5))
        self.assertEqual(self.repo.next_puzzle_id(), 6)

    def test_random_pick_filters(self) -> None:
        self.repo.add(_puzzle(1))
        self.repo.add(_puzzle(2, approved=False))
        self.repo.add(_puzzle(3, variant="Horde"))
        self.repo.add(_puzzle(4, author=9))

        picks = {self.repo.get_one_randomly([], "Atomic", None).puzzle_id for _ in range(20)}
        self.assertEqual(picks, {1, 4})

        only = self.repo.get_one_randomly([4], "Atomic", None)
        self.assertEqual(only.puzzle_id, 1)

        own_excluded = self.repo.get_one_randomly([], "Atomic", 9)
        self.assertEqual(own_excluded.puzzle_id, 1)

        self.assertIsNone(self.repo.get_one_randomly([1], "Atomic", 9))
        self.assertIsNone(self.repo.get_one_randomly([], "RacingKings", None))

    def test_update_rating(self) -> None:
        self.repo.add(_puzzle(1))
        new_rating = Rating(1400.5, 190.0, 0.0605, WHEN + timedelta(minutes=3))
        self.repo.update_rating(1, new_rating)
        self.assertEqual(self.repo.get(1).rating, new_rating)


class DuckDbUserRepositoryTests(unittest.TestCase):
    def setUp(self) -> None:
        tmp_dir = Path(tempfile.mkdtemp())
        self.conn = get_connection(tmp_dir / "users.duckdb")
        init_schema(self.conn)
        self.repo = DuckDbUserRepository(self.conn)

    def tearDown(self) -> None:
        self.conn.close()

    def test_add_assigns_sequential_ids(self) -> None:
        first = self.repo.add("alice", ["reviewer"])
        second = self.repo.add("bob")
        self.assertEqual((first.user_id, second.user_id), (1, 2))
        loaded = self.repo.find_by_id(1)
        self.assertEqual(loaded.username, "alice")
        self.assertTrue(loaded.is_reviewer)
        self.assertFalse(self.repo.find_by_id(2).is_reviewer)
        self.assertIsNone(self.repo.find_by_id(3))

    def test_username_is_unique_case_insensitively(self) -> None:
        self.repo.add("alice")
        with self.assertRaises(PersistenceConflictError):
            self.repo.add("Alice")

    def test_update_persists_ratings_solved_and_counters(self) -> None:
        user = self.repo.add("carol")
        user.ratings["Atomic"] = Rating(1550.0, 300.0, 0.06, WHEN)
        user.ratings["Horde"] = Rating(1450.0, 320.0, 0.059, WHEN)
        user.solved_puzzles.extend([4, 2, 9])
        user.puzzles_correct = 2
        user.puzzles_wrong = 1
        self.repo.update(user)

        user.solved_puzzles.append(11)
        self.repo.update(user)

        loaded = self.repo.find_by_id(user.user_id)
        self.assertEqual(loaded.ratings, user.ratings)
        self.assertEqual(loaded.solved_puzzles, [4, 2, 9, 11])
        self.assertEqual((loaded.puzzles_correct, loaded.puzzles_wrong), (2, 1))
        self.assertEqual(loaded.rating_for("ThreeCheck"), Rating())


class DuckDbAttemptRepositoryTests(unittest.TestCase):
    def setUp(self) -> None:
        tmp_dir = Path(tempfile.mkdtemp())
        self.conn = get_connection(tmp_dir / "attempts.duckdb")
        init_schema(self.conn)
        self.repo = DuckDbAttemptRepository(self.conn)

    def tearDown(self) -> None:
        self.conn.close()

    def test_attempts_round_trip_in_order(self) -> None:
        first = Attempt(1, 10, WHEN, WHEN + timedelta(seconds=20), 12.5, True)
        second = Attempt(1, 11, WHEN, WHEN + timedelta(seconds=40), -8.0, False)
        self.assertEqual(self.repo.add_attempt(first), 1)
        self.assertEqual(self.repo.add_attempt(second), 2)
        self.repo.add_attempt(Attempt(2, 10, WHEN, WHEN, 0.0, True))
        self.assertEqual(self.repo.fetch_attempts(1), [first, second])

    def test_rating_history_is_per_variant(self) -> None:
        atomic = RatingRecord(1, "Atomic", Rating(1510.0, 300.0, 0.06, WHEN), WHEN)
        horde = RatingRecord(1, "Horde", Rating(1490.0, 300.0, 0.06, WHEN), WHEN)
        self.repo.add_rating_record(atomic)
        self.repo.add_rating_record(horde)
        self.assertEqual(self.repo.fetch_rating_history(1, "Atomic"), [atomic])
        self.assertEqual(self.repo.fetch_rating_history(1, "Horde"), [horde])


class DuckDbCommentRepositoryTests(unittest.TestCase):
    def setUp(self) -> None:
        tmp_dir = Path(tempfile.mkdtemp())
        self.conn = get_connection(tmp_dir / "comments.duckdb")
        init_schema(self.conn)
        self.repo = DuckDbCommentRepository(self.conn)

    def tearDown(self) -> None:
        self.conn.close()

    def test_add_assigns_ids_and_keeps_thread(self) -> None:
        root = self.repo.add(Comment(0, 1, "<b>nice</b>", 10, date_posted_utc=WHEN))
        reply = self.repo.add(Comment(0, 2, "thanks", 10, parent_id=root.comment_id))
        self.repo.add(Comment(0, 1, "elsewhere", 11))
        self.assertEqual((root.comment_id, reply.comment_id), (1, 2))
        self.assertEqual(self.repo.fetch_for_puzzle(10), [root, reply])
        self.assertEqual(self.repo.get(2).parent_id, 1)
        self.assertEqual(self.repo.get(1).date_posted_utc, WHEN)
        self.assertIsNone(self.repo.get(99))

    def test_mark_deleted_keeps_the_row(self) -> None:
        comment = self.repo.add(Comment(0, 1, "oops", 10))
        self.repo.mark_deleted(comment.comment_id)
        stored = self.repo.get(comment.comment_id)
        self.assertTrue(stored.deleted)
        self.assertEqual(stored.body_unsanitized, "oops")
        self.assertEqual(len(self.repo.fetch_for_puzzle(10)), 1)


if __name__ == "__main__":
    unittest.main()
