"""Tests for seeded randomness and daily puzzle generation."""
import hashlib

import pytest

from daily_puzzle.const import CLUES_BY_DIFFICULTY, PATTERNS
from daily_puzzle.exceptions import InputRejectedError
from daily_puzzle.generator import (
    _simple_hash,
    box_dimensions,
    derive_seed,
    generate,
    line_clues,
    select_puzzle_type,
)
from daily_puzzle.models import GridFillPuzzle, PatternFillPuzzle
from daily_puzzle.seeded_random import SeededRandom

from .conftest import SECRET

DATES = ["2024-01-10", "2024-02-29", "2024-07-04", "2025-12-31", "2026-03-15"]


class TestSeededRandom:
    """Tests for the linear congruential generator."""

    def test_first_value_for_known_seed(self):
        rng = SeededRandom("00000001ffff")
        assert rng.next() == 58598 / 233280

    def test_same_seed_same_sequence(self):
        a = SeededRandom("deadbeef")
        b = SeededRandom("deadbeef")
        assert [a.next() for _ in range(50)] == [b.next() for _ in range(50)]

    def test_values_in_unit_interval(self):
        rng = SeededRandom("cafebabe")
        assert all(0 <= rng.next() < 1 for _ in range(500))

    def test_next_int_bounds(self):
        rng = SeededRandom("12345678")
        values = {rng.next_int(2, 5) for _ in range(500)}
        assert values <= {2, 3, 4, 5}

    def test_shuffle_is_permutation(self):
        rng = SeededRandom("abcdef01")
        items = list(range(36))
        shuffled = rng.shuffle(items)
        assert sorted(shuffled) == items
        assert items == list(range(36))


class TestSeedDerivation:
    """Tests for seed hashing."""

    def test_seed_is_sha256_of_date_and_secret(self):
        expected = hashlib.sha256(b"2024-01-10-test-secret").hexdigest()
        assert derive_seed("2024-01-10", SECRET) == expected

    def test_simple_hash_is_deterministic_and_padded(self):
        first = _simple_hash("2024-01-10-key")
        assert first == _simple_hash("2024-01-10-key")
        assert len(first) == 64
        assert first != _simple_hash("2024-01-11-key")

    def test_simple_hash_of_empty_string(self):
        assert _simple_hash("") == "0" * 64


class TestHelpers:
    """Tests for grid geometry helpers."""

    @pytest.mark.parametrize("size,expected", [(4, (2, 2)), (6, (2, 3)), (9, (3, 3))])
    def test_box_dimensions(self, size, expected):
        assert box_dimensions(size) == expected

    def test_line_clues(self):
        assert line_clues([1, 1, 0, 1]) == [2, 1]
        assert line_clues([0, 0, 0]) == [0]
        assert line_clues([1, 1, 1]) == [3]


class TestDeterminism:
    """The same date and secret always produce the same puzzle."""

    @pytest.mark.parametrize("date", DATES)
    def test_repeat_generation_is_identical(self, date):
        first = generate(date, SECRET)
        second = generate(date, SECRET)
        assert first.solution == second.solution
        assert first.difficulty == second.difficulty
        assert first.seed == second.seed
        assert first.grid == second.grid

    def test_type_selection_is_stable(self):
        assert select_puzzle_type("2024-01-10") == select_puzzle_type("2024-01-10")

    def test_different_secret_changes_seed(self):
        assert generate("2024-01-10", SECRET).seed != generate("2024-01-10", "other").seed

    def test_explicit_type_is_honored(self):
        assert isinstance(generate("2024-01-10", SECRET, "grid-fill"), GridFillPuzzle)
        assert isinstance(generate("2024-01-10", SECRET, "pattern-fill"), PatternFillPuzzle)


class TestGridFill:
    """Tests for grid-fill puzzles."""

    @pytest.mark.parametrize("date", DATES)
    def test_solution_is_a_valid_grid(self, date):
        puzzle = generate(date, SECRET, "grid-fill")
        size = puzzle.size
        expected = set(range(1, size + 1))
        for row in puzzle.solution:
            assert set(row) == expected
        for col in range(size):
            assert {row[col] for row in puzzle.solution} == expected
        for top in range(0, size, puzzle.box_rows):
            for left in range(0, size, puzzle.box_cols):
                box = {
                    puzzle.solution[r][c]
                    for r in range(top, top + puzzle.box_rows)
                    for c in range(left, left + puzzle.box_cols)
                }
                assert box == expected

    @pytest.mark.parametrize("date", DATES)
    def test_clue_integrity(self, date):
        puzzle = generate(date, SECRET, "grid-fill")
        clues = 0
        for r, row in enumerate(puzzle.grid):
            for c, cell in enumerate(row):
                if cell.is_clue:
                    clues += 1
                    assert cell.revealed
                    assert cell.value == puzzle.solution[r][c]
                else:
                    assert not cell.revealed
                    assert cell.value == 0
        assert clues == CLUES_BY_DIFFICULTY[puzzle.difficulty]

    def test_id_and_dimensions(self):
        puzzle = generate("2024-01-10", SECRET, "grid-fill")
        assert puzzle.id == "grid-fill-2024-01-10"
        assert (puzzle.box_rows, puzzle.box_cols) == (2, 3)
        assert puzzle.difficulty in ("easy", "medium", "hard")


class TestPatternFill:
    """Tests for pattern-fill puzzles."""

    @pytest.mark.parametrize("date", DATES)
    def test_solution_from_library_and_no_clues(self, date):
        puzzle = generate(date, SECRET, "pattern-fill")
        assert puzzle.solution in PATTERNS
        assert not any(cell.revealed or cell.is_clue for row in puzzle.grid for cell in row)
        assert puzzle.difficulty == "medium"

    def test_run_length_hints_match_solution(self):
        puzzle = generate("2024-01-10", SECRET, "pattern-fill")
        assert puzzle.row_clues == [line_clues(row) for row in puzzle.solution]
        assert len(puzzle.col_clues) == puzzle.size


class TestInputRejection:
    """Malformed dates never reach generation."""

    @pytest.mark.parametrize("date", ["2024-02-30", "not-a-date", "2024/01/10", "", "2024-1-10"])
    def test_bad_date(self, date):
        with pytest.raises(InputRejectedError):
            generate(date, SECRET)

    def test_unknown_type(self):
        with pytest.raises(InputRejectedError):
            generate("2024-01-10", SECRET, "crossword")
