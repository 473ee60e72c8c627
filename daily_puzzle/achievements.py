"""Achievement definitions and unlock checks."""
from __future__ import annotations

import logging
from dataclasses import dataclass

from .const import (
    ACHIEVEMENT_FIRST_WIN,
    ACHIEVEMENT_NO_HINTS,
    ACHIEVEMENT_PERFECT_SCORE,
    ACHIEVEMENT_SPEED_DEMON,
    ACHIEVEMENT_STREAK_3,
    ACHIEVEMENT_STREAK_7,
    PERFECT_SCORE_THRESHOLD,
    SPEED_DEMON_SECONDS,
)
from .models import StreakState
from .storage import LocalStore

_LOGGER = logging.getLogger(__name__)


@dataclass(frozen=True)
class Achievement:
    id: str
    title: str
    description: str


ACHIEVEMENTS = [
    Achievement(ACHIEVEMENT_FIRST_WIN, "First Victory", "Complete your first puzzle"),
    Achievement(ACHIEVEMENT_STREAK_3, "3-Day Streak", "Solve puzzles for 3 consecutive days"),
    Achievement(ACHIEVEMENT_STREAK_7, "Week Warrior", "Achieve a 7-day streak"),
    Achievement(ACHIEVEMENT_PERFECT_SCORE, "Perfect Score", f"Score {PERFECT_SCORE_THRESHOLD}+ points on a puzzle"),
    Achievement(ACHIEVEMENT_NO_HINTS, "No Help Needed", "Complete a puzzle without using hints"),
    Achievement(ACHIEVEMENT_SPEED_DEMON, "Speed Demon", "Complete a puzzle in under 3 minutes"),
]
ACHIEVEMENTS_BY_ID = {achievement.id: achievement for achievement in ACHIEVEMENTS}


async def check_achievements(
    storage: LocalStore,
    date: str,
    score: int,
    difficulty: str,
    hints_used: int,
    completion_time: int,
    streak: StreakState,
) -> list[str]:
    """Unlock whatever this completion earned and return the newly unlocked keys."""
    candidates = [(ACHIEVEMENT_FIRST_WIN, {"date": date, "score": score})]
    if score >= PERFECT_SCORE_THRESHOLD:
        candidates.append((ACHIEVEMENT_PERFECT_SCORE, {"date": date, "score": score, "difficulty": difficulty}))
    if hints_used == 0:
        candidates.append((ACHIEVEMENT_NO_HINTS, {"date": date, "score": score}))
    if streak.current_streak >= 3:
        candidates.append((ACHIEVEMENT_STREAK_3, {"streak": 3, "date": date}))
    if streak.current_streak >= 7:
        candidates.append((ACHIEVEMENT_STREAK_7, {"streak": 7, "date": date}))
    if completion_time <= SPEED_DEMON_SECONDS:
        candidates.append((ACHIEVEMENT_SPEED_DEMON, {"date": date, "time": completion_time}))

    unlocked = []
    for key, metadata in candidates:
        if await storage.unlock_achievement(key, metadata):
            unlocked.append(key)

    if unlocked:
        _LOGGER.info("Unlocked achievements for %s: %s", date, ", ".join(unlocked))
    return unlocked
