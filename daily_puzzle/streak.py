"""Consecutive-day streak tracking."""
from __future__ import annotations

import logging
from datetime import date
from typing import Optional

from .dates import days_between, parse_date, utc_now, utc_today
from .models import StreakState
from .storage import LocalStore

_LOGGER = logging.getLogger(__name__)


def next_streak(state: StreakState, completed_date: str) -> StreakState:
    """Return the streak state after completing a puzzle on ``completed_date``.

    Same day leaves the state unchanged, the next day extends the streak, a
    larger gap restarts it at 1. Dates before the last played day are ignored.
    """
    parse_date(completed_date)
    last = state.last_played_date

    if last is None:
        current = state.current_streak + 1
    else:
        gap = days_between(last, completed_date)
        if gap <= 0:
            return state
        current = state.current_streak + 1 if gap == 1 else 1

    return StreakState(
        current_streak=current,
        longest_streak=max(state.longest_streak, current),
        last_played_date=completed_date,
        updated_at=utc_now(),
    )


class StreakEngine:
    """Sole writer of the stored streak state."""

    def __init__(self, storage: LocalStore) -> None:
        self.storage = storage

    async def advance(self, completed_date: str) -> StreakState:
        """Apply a completion to the stored streak.

        Completed days between the last played date and ``completed_date``
        mean earlier streak updates never landed; they are replayed first.
        """
        stored = await self.storage.get_streak()
        state = stored
        missed = await self._missed_days(stored, completed_date)
        if missed:
            _LOGGER.info("Replaying %d completed days missing from the streak", len(missed))
            for day in missed:
                state = next_streak(state, day)

        updated = next_streak(state, completed_date)
        if updated is stored:
            return stored

        await self.storage.update_streak(updated)
        _LOGGER.info(
            "Streak now %d (longest %d) after %s",
            updated.current_streak,
            updated.longest_streak,
            completed_date,
        )
        return updated

    async def _missed_days(self, state: StreakState, completed_date: str) -> list[str]:
        last = state.last_played_date
        return sorted(
            a.date
            for a in await self.storage.get_all_activity()
            if a.completed and (last is None or a.date > last) and a.date < completed_date
        )

    async def recompute(self) -> StreakState:
        """Rebuild the streak from completed activity.

        Brings the streak current after an interrupted completion, where the
        activity was written but the streak update never happened.
        """
        stored = await self.storage.get_streak()
        dates = sorted(a.date for a in await self.storage.get_all_activity() if a.completed)

        rebuilt = StreakState()
        for completed in dates:
            rebuilt = next_streak(rebuilt, completed)

        rebuilt.longest_streak = max(rebuilt.longest_streak, stored.longest_streak)
        if (
            rebuilt.current_streak == stored.current_streak
            and rebuilt.longest_streak == stored.longest_streak
            and rebuilt.last_played_date == stored.last_played_date
        ):
            return stored

        await self.storage.update_streak(rebuilt)
        _LOGGER.info("Recomputed streak: %d (longest %d)", rebuilt.current_streak, rebuilt.longest_streak)
        return rebuilt

    async def get_display_streak(self, today: Optional[date] = None) -> int:
        """Current streak as the player should see it on ``today``.

        A streak whose last day is before yesterday is already broken.
        """
        state = await self.storage.get_streak()
        if state.last_played_date is None:
            return 0
        today = today or utc_today()
        gap = (today - parse_date(state.last_played_date)).days
        return state.current_streak if gap <= 1 else 0
