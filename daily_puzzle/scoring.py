"""Canonical scoring and the anti-tamper plausibility check.

Both the device and the score service use these functions, so a score computed
on one side is always reproducible on the other.
"""
from __future__ import annotations

import logging
import math

from .const import (
    BASE_SCORES,
    HINT_PENALTY,
    MAX_COMPLETION_TIME,
    MAX_SCORES,
    MAX_TIME_MULTIPLIER,
    MIN_COMPLETION_TIME,
    MIN_SCORE,
    MIN_TIME_MULTIPLIER,
    SCORE_TOLERANCE,
    TIME_DECAY_SECONDS,
)
from .exceptions import InputRejectedError

_LOGGER = logging.getLogger(__name__)


def _round_half_up(value: float) -> int:
    return math.floor(value + 0.5)


def _check_difficulty(difficulty: str) -> None:
    if difficulty not in BASE_SCORES:
        raise InputRejectedError(f"Unknown difficulty: {difficulty}")


def normalize_completion_time(completion_time: float) -> int:
    """Return a completion time in whole seconds, rounded half up.

    Raises:
        InputRejectedError: for a negative, non-finite or non-numeric time.
    """
    if (
        isinstance(completion_time, bool)
        or not isinstance(completion_time, (int, float))
        or not math.isfinite(completion_time)
        or completion_time < 0
    ):
        raise InputRejectedError(f"Invalid completion time: {completion_time!r}")
    return _round_half_up(completion_time)


def time_multiplier(completion_time: float) -> float:
    """Speed bonus, from 2.0 at zero seconds down to a floor of 0.5."""
    multiplier = MAX_TIME_MULTIPLIER - completion_time / TIME_DECAY_SECONDS
    return min(MAX_TIME_MULTIPLIER, max(MIN_TIME_MULTIPLIER, multiplier))


def compute_score(completion_time: float, hints_used: int, difficulty: str) -> int:
    """Return the canonical score for a completed puzzle."""
    _check_difficulty(difficulty)
    if completion_time < 0 or hints_used < 0:
        raise InputRejectedError("completion_time and hints_used must be non-negative")

    base = BASE_SCORES[difficulty]
    penalty = HINT_PENALTY ** hints_used
    return max(MIN_SCORE, _round_half_up(base * time_multiplier(completion_time) * penalty))


def is_plausible(score: int, completion_time: float, hints_used: int, difficulty: str) -> bool:
    """Accept a claimed score only if it matches what the inputs would earn."""
    if difficulty not in BASE_SCORES or hints_used < 0:
        _LOGGER.warning("Rejecting score with bad inputs: difficulty=%s hints=%s", difficulty, hints_used)
        return False
    if not MIN_COMPLETION_TIME <= completion_time <= MAX_COMPLETION_TIME:
        _LOGGER.warning("Rejecting score with unrealistic completion time %ss", completion_time)
        return False
    if score > MAX_SCORES[difficulty]:
        _LOGGER.warning("Rejecting score %s above %s maximum", score, difficulty)
        return False

    expected = compute_score(completion_time, hints_used, difficulty)
    if abs(score - expected) > expected * SCORE_TOLERANCE:
        _LOGGER.warning("Rejecting score %s, expected about %s", score, expected)
        return False
    return True
