"""Tests for the local store."""
import asyncio

import pytest

from daily_puzzle.const import COLLECTION_PUZZLES
from daily_puzzle.exceptions import StorageUnavailableError
from daily_puzzle.generator import generate
from daily_puzzle.models import GridFillPuzzle, StreakState, UserProfile
from daily_puzzle.storage import LocalStore

from .conftest import SECRET


class TestLifecycle:
    """Open/close behaviour."""

    async def test_closed_store_raises(self, tmp_path):
        local = LocalStore(f"sqlite+aiosqlite:///{tmp_path / 'closed.db'}")
        with pytest.raises(StorageUnavailableError):
            await local.get_score("2024-01-10")

    async def test_reopen_keeps_data(self, tmp_path):
        url = f"sqlite+aiosqlite:///{tmp_path / 'nested' / 'store.db'}"
        local = LocalStore(url)
        await local.async_open()
        await local.save_activity("2024-01-10", True, 150, "easy")
        await local.async_close()
        assert not local.is_open

        await local.async_open()
        assert (await local.get_activity("2024-01-10")).score == 150
        await local.async_close()


class TestProgress:
    """Puzzle progress records."""

    async def test_round_trip_keeps_puzzle_variant(self, store):
        puzzle = generate("2024-01-10", SECRET, "grid-fill")
        await store.save_puzzle_progress("2024-01-10", puzzle, puzzle.grid, completion_time=0, hints_used=0)

        record = await store.get_puzzle_progress("2024-01-10")
        assert isinstance(record.puzzle_data, GridFillPuzzle)
        assert record.puzzle_data.solution == puzzle.solution
        assert record.completed is False
        assert record.hints_used == 0

    async def test_missing_progress(self, store):
        assert await store.get_puzzle_progress("2024-01-10") is None
        assert await store.mark_puzzle_complete("2024-01-10", 100, 60, 0) is False

    async def test_completion_survives_later_progress_save(self, store):
        puzzle = generate("2024-01-10", SECRET, "pattern-fill")
        await store.save_puzzle_progress("2024-01-10", puzzle, puzzle.grid, completion_time=30, hints_used=1)
        assert await store.mark_puzzle_complete("2024-01-10", 250, 90, 1)

        await store.save_puzzle_progress("2024-01-10", puzzle, puzzle.grid)
        record = await store.get_puzzle_progress("2024-01-10")
        assert record.completed is True
        assert record.score == 250
        assert record.completion_time == 90
        assert record.hints_used == 1

    async def test_legacy_payload_is_migrated(self, store):
        solution = generate("2024-01-10", SECRET, "grid-fill").solution
        legacy_grid = [[{"value": 0, "revealed": False, "isClue": False} for _ in row] for row in solution]
        legacy_grid[0][0] = {"value": solution[0][0], "revealed": True, "isClue": True}
        legacy = {
            "date": "2024-01-10",
            "puzzleData": {
                "id": "sudoku-2024-01-10",
                "date": "2024-01-10",
                "type": "sudoku",
                "grid": legacy_grid,
                "solution": solution,
                "difficulty": "hard",
                "seed": "abc123",
            },
            "progress": legacy_grid,
            "completed": False,
            "hintsUsed": 2,
            "hasStarted": True,
            "updatedAt": 1704844800000,
        }
        await store._put(COLLECTION_PUZZLES, "2024-01-10", legacy)

        record = await store.get_puzzle_progress("2024-01-10")
        assert record.puzzle_data.type == "grid-fill"
        assert record.puzzle_data.box_rows == 2
        assert record.progress[0][0].is_clue is True
        assert record.hints_used == 2
        assert record.updated_at.year == 2024


class TestScores:
    """Score records."""

    async def test_one_score_per_date(self, store):
        await store.save_score("2024-01-10", 200, 300, 0, "grid-fill", "medium")
        await store.save_score("2024-01-10", 210, 290, 0, "grid-fill", "medium")
        scores = await store.get_all_scores()
        assert len(scores) == 1
        assert scores[0].score == 210

    async def test_unsynced_and_mark_synced(self, store):
        await store.save_score("2024-01-10", 200, 300, 0, "grid-fill", "medium")
        await store.save_score("2024-01-11", 150, 375, 0, "pattern-fill", "medium")
        assert {s.date for s in await store.get_unsynced_scores()} == {"2024-01-10", "2024-01-11"}

        assert await store.mark_score_synced("2024-01-10")
        assert [s.date for s in await store.get_unsynced_scores()] == ["2024-01-11"]
        assert await store.mark_score_synced("2024-05-05") is False


class TestActivityMerge:
    """Max-score-wins merge of remote activity."""

    async def test_lower_remote_score_does_not_replace_local(self, store):
        await store.save_activity("2024-02-01", True, 180, "medium")
        assert await store.upsert_activity_from_sync("2024-02-01", True, 150, "medium") is False
        activity = await store.get_activity("2024-02-01")
        assert activity.score == 180
        assert activity.synced is False

    async def test_higher_remote_score_replaces_local(self, store):
        await store.save_activity("2024-02-01", True, 180, "medium")
        assert await store.upsert_activity_from_sync("2024-02-01", True, 220, "medium") is True
        activity = await store.get_activity("2024-02-01")
        assert activity.score == 220
        assert activity.synced is True

    async def test_equal_score_replaces_and_marks_synced(self, store):
        await store.save_activity("2024-02-01", True, 180, "medium")
        assert await store.upsert_activity_from_sync("2024-02-01", True, 180, "hard")
        assert (await store.get_activity("2024-02-01")).difficulty == "hard"

    async def test_missing_local_entry_is_created(self, store):
        assert await store.upsert_activity_from_sync("2024-02-01", True, 90, "easy")
        assert len(await store.get_all_activity()) == 1

    async def test_activity_range(self, store):
        for day, score in [("2024-01-09", 10), ("2024-01-10", 20), ("2024-01-12", 30), ("2024-01-13", 40)]:
            await store.save_activity(day, True, score, "easy")
        in_range = await store.get_activity_range("2024-01-10", "2024-01-12")
        assert [a.date for a in in_range] == ["2024-01-10", "2024-01-12"]


class TestSingletonsAndAchievements:
    """Streak, user and achievements."""

    async def test_default_streak(self, store):
        streak = await store.get_streak()
        assert (streak.current_streak, streak.longest_streak, streak.last_played_date) == (0, 0, None)

    async def test_streak_round_trip(self, store):
        await store.update_streak(StreakState(current_streak=2, longest_streak=4, last_played_date="2024-01-10"))
        streak = await store.get_streak()
        assert (streak.current_streak, streak.longest_streak) == (2, 4)

    async def test_user_round_trip(self, store):
        assert await store.get_user() is None
        await store.save_user(UserProfile(id="u-1", is_guest=True, guest_id="guest_1"))
        assert (await store.get_user()).id == "u-1"

    async def test_achievement_unlock_is_write_once(self, store):
        assert await store.unlock_achievement("first-win", {"score": 100}) is True
        assert await store.unlock_achievement("first-win", {"score": 999}) is False
        achievements = await store.get_achievements()
        assert len(achievements) == 1
        assert achievements[0].metadata == {"score": 100}
        assert await store.has_achievement("first-win")
        assert not await store.has_achievement("streak-7")

    async def test_clear_all(self, store):
        await store.save_score("2024-01-10", 200, 300, 0, "grid-fill", "medium")
        await store.save_activity("2024-01-10", True, 200, "medium")
        await store.unlock_achievement("first-win")
        await store.update_streak(StreakState(current_streak=1, longest_streak=1, last_played_date="2024-01-10"))
        await store.save_user(UserProfile(id="u-1"))

        await store.clear_all()

        assert await store.get_all_scores() == []
        assert await store.get_all_activity() == []
        assert await store.get_achievements() == []
        assert (await store.get_streak()).current_streak == 0
        assert await store.get_user() is None


class TestConcurrentWrites:
    """Push, pull and completion writes racing on the same key."""

    async def test_merge_and_mark_synced_keep_higher_remote_score(self, store):
        for day in ("2024-02-01", "2024-02-02", "2024-02-03", "2024-02-04"):
            await store.save_activity(day, True, 180, "medium")
            await asyncio.gather(
                store.upsert_activity_from_sync(day, True, 220, "medium"),
                store.mark_activity_synced(day),
            )
            activity = await store.get_activity(day)
            assert (activity.score, activity.synced) == (220, True)

    async def test_lower_remote_score_never_beats_local_write(self, store):
        for day in ("2024-02-01", "2024-02-02", "2024-02-03", "2024-02-04"):
            await asyncio.gather(
                store.upsert_activity_from_sync(day, True, 150, "medium"),
                store.save_activity(day, True, 180, "medium"),
            )
            activity = await store.get_activity(day)
            assert (activity.score, activity.synced) == (180, False)

    async def test_mark_synced_keeps_other_fields(self, store):
        await store.save_score("2024-01-10", 320, 120, 1, "grid-fill", "medium")
        assert await store.mark_score_synced("2024-01-10")
        score = await store.get_score("2024-01-10")
        assert (score.score, score.hints_used, score.synced) == (320, 1, True)

    async def test_concurrent_unlock_is_write_once(self, store):
        results = await asyncio.gather(
            store.unlock_achievement("first-win", {"score": 100}),
            store.unlock_achievement("first-win", {"score": 999}),
        )
        assert sorted(results) == [False, True]

        achievements = await store.get_achievements()
        assert len(achievements) == 1
        winner = {"score": 100} if results[0] else {"score": 999}
        assert achievements[0].metadata == winner

    async def test_completion_survives_concurrent_progress_save(self, store):
        puzzle = generate("2024-01-10", SECRET, "pattern-fill")
        await store.save_puzzle_progress("2024-01-10", puzzle, puzzle.grid, completion_time=30, hints_used=0)

        await asyncio.gather(
            store.mark_puzzle_complete("2024-01-10", 250, 90, 0),
            store.save_puzzle_progress("2024-01-10", puzzle, puzzle.grid, completion_time=45),
        )
        record = await store.get_puzzle_progress("2024-01-10")
        assert record.completed is True
        assert record.score == 250
