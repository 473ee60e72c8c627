"""Tests for streak tracking."""
from datetime import date

import pytest

from daily_puzzle.exceptions import InputRejectedError
from daily_puzzle.models import StreakState
from daily_puzzle.streak import StreakEngine, next_streak


@pytest.fixture
def played():
    return StreakState(current_streak=3, longest_streak=5, last_played_date="2024-01-10")


class TestNextStreak:
    """Pure streak transitions."""

    def test_first_completion(self):
        state = next_streak(StreakState(), "2024-01-10")
        assert (state.current_streak, state.longest_streak, state.last_played_date) == (1, 1, "2024-01-10")

    def test_next_day_extends(self, played):
        state = next_streak(played, "2024-01-11")
        assert (state.current_streak, state.longest_streak) == (4, 5)
        assert state.last_played_date == "2024-01-11"

    def test_same_day_is_unchanged(self, played):
        assert next_streak(played, "2024-01-10") is played

    def test_earlier_day_is_ignored(self, played):
        assert next_streak(played, "2024-01-02") is played

    def test_gap_resets(self, played):
        state = next_streak(played, "2024-01-20")
        assert (state.current_streak, state.longest_streak) == (1, 5)

    def test_longest_grows_with_current(self):
        state = StreakState(current_streak=5, longest_streak=5, last_played_date="2024-01-10")
        state = next_streak(state, "2024-01-11")
        assert (state.current_streak, state.longest_streak) == (6, 6)

    def test_month_boundary(self):
        state = StreakState(current_streak=1, longest_streak=1, last_played_date="2024-02-29")
        assert next_streak(state, "2024-03-01").current_streak == 2

    def test_rejects_bad_date(self, played):
        with pytest.raises(InputRejectedError):
            next_streak(played, "2024-13-01")

    def test_longest_below_current_is_invalid(self):
        with pytest.raises(ValueError):
            StreakState(current_streak=4, longest_streak=2)


class TestStreakEngine:
    """Persisted streak state."""

    async def test_advance_persists(self, store, played):
        await store.update_streak(played)
        engine = StreakEngine(store)

        state = await engine.advance("2024-01-11")
        assert state.current_streak == 4
        assert (await store.get_streak()).current_streak == 4

    async def test_advance_same_day_is_idempotent(self, store, played):
        await store.update_streak(played)
        engine = StreakEngine(store)

        await engine.advance("2024-01-10")
        stored = await store.get_streak()
        assert (stored.current_streak, stored.longest_streak) == (3, 5)

    async def test_recompute_from_activity(self, store):
        await store.update_streak(StreakState(current_streak=1, longest_streak=5, last_played_date="2024-01-08"))
        for day in ("2024-01-08", "2024-01-09", "2024-01-10"):
            await store.save_activity(day, True, 200, "medium")

        state = await StreakEngine(store).recompute()
        assert (state.current_streak, state.longest_streak, state.last_played_date) == (3, 5, "2024-01-10")
        assert (await store.get_streak()).current_streak == 3

    async def test_recompute_skips_gaps(self, store):
        for day in ("2024-01-01", "2024-01-02", "2024-01-05"):
            await store.save_activity(day, True, 200, "medium")

        state = await StreakEngine(store).recompute()
        assert (state.current_streak, state.longest_streak) == (1, 2)

    async def test_display_streak(self, store, played):
        engine = StreakEngine(store)
        assert await engine.get_display_streak(date(2024, 1, 11)) == 0

        await store.update_streak(played)
        assert await engine.get_display_streak(date(2024, 1, 10)) == 3
        assert await engine.get_display_streak(date(2024, 1, 11)) == 3
        assert await engine.get_display_streak(date(2024, 1, 12)) == 0

    async def test_advance_replays_days_missing_from_streak(self, store):
        # 2024-01-10 was recorded but its streak update never landed
        await store.update_streak(StreakState(current_streak=1, longest_streak=1, last_played_date="2024-01-09"))
        await store.save_activity("2024-01-10", True, 200, "medium")
        await store.save_activity("2024-01-11", True, 200, "medium")

        state = await StreakEngine(store).advance("2024-01-11")
        assert (state.current_streak, state.longest_streak, state.last_played_date) == (3, 3, "2024-01-11")
        assert (await store.get_streak()).current_streak == 3

    async def test_advance_ignores_incomplete_activity(self, store):
        await store.update_streak(StreakState(current_streak=1, longest_streak=1, last_played_date="2024-01-09"))
        await store.save_activity("2024-01-10", False, 0, "medium")

        state = await StreakEngine(store).advance("2024-01-11")
        assert state.current_streak == 1
