"""Deterministic pseudo-random generator driven by a hex seed string."""
from __future__ import annotations

from typing import TypeVar

T = TypeVar("T")

_MULTIPLIER = 9301
_INCREMENT = 49297
_MODULUS = 233280


class SeededRandom:
    """Linear congruential generator seeded from the first 8 hex digits of a seed.

    The same seed string always yields the same sequence on every platform,
    which is what lets the client and server rebuild a day's puzzle independently.
    """

    def __init__(self, seed: str) -> None:
        self._state = int(seed[:8], 16)

    def next(self) -> float:
        """Return the next value in [0, 1)."""
        self._state = (self._state * _MULTIPLIER + _INCREMENT) % _MODULUS
        return self._state / _MODULUS

    def next_int(self, low: int, high: int) -> int:
        """Return an integer in [low, high], both inclusive."""
        return int(self.next() * (high - low + 1)) + low

    def next_bool(self) -> bool:
        return self.next() > 0.5

    def shuffle(self, items: list[T]) -> list[T]:
        """Return a shuffled copy of ``items`` (Fisher-Yates)."""
        result = list(items)
        for i in range(len(result) - 1, 0, -1):
            j = int(self.next() * (i + 1))
            result[i], result[j] = result[j], result[i]
        return result
