"""Deterministic daily puzzle generation.

Every puzzle is a pure function of ``(date, secret_key)``: the seed is a digest of
``"{date}-{secret_key}"`` and all randomness comes from a SeededRandom built on it,
so any device can rebuild the day's puzzle without asking a server.
"""
from __future__ import annotations

import hashlib
import logging
import math
from typing import Optional

from . import config
from .const import (
    CLUES_BY_DIFFICULTY,
    DIFFICULTY_EASY,
    DIFFICULTY_HARD,
    DIFFICULTY_MEDIUM,
    EASY_THRESHOLD,
    GRID_SIZE,
    MEDIUM_THRESHOLD,
    PATTERN_DIFFICULTY,
    PATTERNS,
    PUZZLE_TYPE_GRID_FILL,
    PUZZLE_TYPE_PATTERN_FILL,
    PUZZLE_TYPES,
    TYPE_SELECTOR_KEY,
)
from .dates import parse_date
from .exceptions import InputRejectedError
from .models import Cell, GridFillPuzzle, PatternFillPuzzle, Puzzle
from .seeded_random import SeededRandom

_LOGGER = logging.getLogger(__name__)


def _simple_hash(message: str) -> str:
    """32-bit string hash, hex encoded and zero padded to 64 characters."""
    value = 0
    for char in message:
        value = ((value << 5) - value + ord(char)) & 0xFFFFFFFF
    if value & 0x80000000:
        value -= 1 << 32
    return format(abs(value), "x").zfill(64)[:64]


def derive_seed(date: str, secret_key: str) -> str:
    """Return the hex seed for a date and secret."""
    message = f"{date}-{secret_key}"
    try:
        digest = hashlib.new("sha256")
    except ValueError:
        _LOGGER.warning("sha256 unavailable, falling back to simple hash for seed")
        return _simple_hash(message)
    digest.update(message.encode("utf-8"))
    return digest.hexdigest()


def box_dimensions(size: int) -> tuple[int, int]:
    """Return (box_rows, box_cols) that tile a size x size grid exactly.

    Picks the largest divisor not above the square root for the rows,
    so 6 -> (2, 3), 9 -> (3, 3), 4 -> (2, 2).
    """
    box_rows = 1
    for candidate in range(1, math.isqrt(size) + 1):
        if size % candidate == 0:
            box_rows = candidate
    return box_rows, size // box_rows


def line_clues(line: list[int]) -> list[int]:
    """Run lengths of filled cells in one row or column."""
    runs: list[int] = []
    count = 0
    for value in line:
        if value:
            count += 1
        elif count:
            runs.append(count)
            count = 0
    if count:
        runs.append(count)
    return runs or [0]


def _choose_difficulty(rng: SeededRandom) -> str:
    draw = rng.next()
    if draw < EASY_THRESHOLD:
        return DIFFICULTY_EASY
    if draw < MEDIUM_THRESHOLD:
        return DIFFICULTY_MEDIUM
    return DIFFICULTY_HARD


def generate_grid_fill(date: str, secret_key: str, size: int = GRID_SIZE) -> GridFillPuzzle:
    """Build the grid-fill puzzle for a date."""
    seed = derive_seed(date, secret_key)
    rng = SeededRandom(seed)
    box_rows, box_cols = box_dimensions(size)

    solution = [
        [((row * box_cols + row // box_rows + col) % size) + 1 for col in range(size)]
        for row in range(size)
    ]

    # Swapping rows inside a band keeps rows, columns and boxes valid
    for band in range(size // box_rows):
        start = band * box_rows
        for offset in range(box_rows - 1):
            if rng.next_bool():
                first, second = start + offset, start + offset + 1
                solution[first], solution[second] = solution[second], solution[first]

    difficulty = _choose_difficulty(rng)
    clue_count = min(CLUES_BY_DIFFICULTY[difficulty], size * size)

    grid = [[Cell() for _ in range(size)] for _ in range(size)]
    positions = [(row, col) for row in range(size) for col in range(size)]
    for row, col in rng.shuffle(positions)[:clue_count]:
        grid[row][col] = Cell(value=solution[row][col], revealed=True, is_clue=True)

    return GridFillPuzzle(
        id=f"{PUZZLE_TYPE_GRID_FILL}-{date}",
        date=date,
        grid=grid,
        solution=solution,
        difficulty=difficulty,
        seed=seed,
        box_rows=box_rows,
        box_cols=box_cols,
    )


def generate_pattern_fill(date: str, secret_key: str) -> PatternFillPuzzle:
    """Build the pattern-fill puzzle for a date. No cells are pre-revealed."""
    seed = derive_seed(date, secret_key)
    rng = SeededRandom(seed)

    pattern = PATTERNS[rng.next_int(0, len(PATTERNS) - 1)]
    solution = [list(row) for row in pattern]
    size = len(solution)

    return PatternFillPuzzle(
        id=f"{PUZZLE_TYPE_PATTERN_FILL}-{date}",
        date=date,
        grid=[[Cell() for _ in range(size)] for _ in range(size)],
        solution=solution,
        difficulty=PATTERN_DIFFICULTY,
        seed=seed,
        row_clues=[line_clues(row) for row in solution],
        col_clues=[line_clues([row[col] for row in solution]) for col in range(size)],
    )


def select_puzzle_type(date: str) -> str:
    """Pick the puzzle type for a date from a secondary, secret-independent seed."""
    rng = SeededRandom(derive_seed(date, TYPE_SELECTOR_KEY))
    return PUZZLE_TYPE_GRID_FILL if rng.next_bool() else PUZZLE_TYPE_PATTERN_FILL


def generate(date: str, secret_key: Optional[str] = None, puzzle_type: Optional[str] = None) -> Puzzle:
    """Generate the daily puzzle.

    Args:
        date: Calendar date as YYYY-MM-DD.
        secret_key: Seed secret; defaults to the configured PUZZLE_SECRET_KEY.
        puzzle_type: Force a type instead of the date-derived one.

    Raises:
        InputRejectedError: for a malformed date or unknown type.
    """
    parse_date(date)
    if secret_key is None:
        secret_key = config.PUZZLE_SECRET_KEY
    if puzzle_type is None:
        puzzle_type = select_puzzle_type(date)
    elif puzzle_type not in PUZZLE_TYPES:
        raise InputRejectedError(f"Unknown puzzle type: {puzzle_type}")

    if puzzle_type == PUZZLE_TYPE_GRID_FILL:
        puzzle = generate_grid_fill(date, secret_key)
    else:
        puzzle = generate_pattern_fill(date, secret_key)

    _LOGGER.debug("Generated %s puzzle for %s (%s)", puzzle.type, date, puzzle.difficulty)
    return puzzle
