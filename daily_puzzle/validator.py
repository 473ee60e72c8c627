"""Solution checking for submitted grids.

Validation is a pure function of the current grid and the solution; it never
touches the puzzle it is given.
"""
from __future__ import annotations

from typing import Optional

from .generator import box_dimensions
from .models import Cell, CellError, GridFillPuzzle, PatternFillPuzzle, Puzzle, ValidationResult


def _is_complete(grid: list[list[Cell]]) -> bool:
    return all(cell.revealed for row in grid for cell in row)


def _shape_errors(grid: list[list[Cell]], solution: list[list[int]]) -> list[CellError]:
    if len(grid) != len(solution) or any(len(g) != len(s) for g, s in zip(grid, solution)):
        return [CellError(0, 0, "Grid shape does not match puzzle")]
    return []


def _duplicates(values: list[tuple[int, int, int]], message: str) -> list[CellError]:
    """Report every repeat of a value after its first occurrence."""
    seen: set[int] = set()
    errors = []
    for row, col, value in values:
        if value in seen:
            errors.append(CellError(row, col, message))
        seen.add(value)
    return errors


def validate_grid_fill(grid: list[list[Cell]], solution: list[list[int]]) -> ValidationResult:
    """Check a grid-fill grid: solution match plus row, column and box uniqueness."""
    errors = _shape_errors(grid, solution)
    if errors:
        return ValidationResult(is_valid=False, is_complete=False, errors=errors)
    if not _is_complete(grid):
        return ValidationResult(is_valid=False, is_complete=False)

    size = len(grid)
    for row in range(size):
        for col in range(size):
            expected, actual = solution[row][col], grid[row][col].value
            if actual != expected:
                errors.append(CellError(row, col, f"Expected {expected}, got {actual}"))

    for row in range(size):
        for col in range(size):
            if not 1 <= grid[row][col].value <= size:
                errors.append(CellError(row, col, "Invalid number"))
        errors.extend(
            _duplicates([(row, col, grid[row][col].value) for col in range(size)], "Duplicate in row")
        )

    for col in range(size):
        errors.extend(
            _duplicates([(row, col, grid[row][col].value) for row in range(size)], "Duplicate in column")
        )

    box_rows, box_cols = box_dimensions(size)
    for top in range(0, size, box_rows):
        for left in range(0, size, box_cols):
            cells = [
                (row, col, grid[row][col].value)
                for row in range(top, top + box_rows)
                for col in range(left, left + box_cols)
            ]
            errors.extend(_duplicates(cells, "Duplicate in box"))

    return ValidationResult(is_valid=not errors, is_complete=True, errors=errors)


def validate_pattern_fill(grid: list[list[Cell]], solution: list[list[int]]) -> ValidationResult:
    """Check a pattern-fill grid cell by cell."""
    errors = _shape_errors(grid, solution)
    if errors:
        return ValidationResult(is_valid=False, is_complete=False, errors=errors)
    if not _is_complete(grid):
        return ValidationResult(is_valid=False, is_complete=False)

    for row, line in enumerate(solution):
        for col, expected in enumerate(line):
            if grid[row][col].value != expected:
                errors.append(CellError(row, col, "Incorrect cell"))

    return ValidationResult(is_valid=not errors, is_complete=True, errors=errors)


def validate(puzzle: Puzzle, grid: Optional[list[list[Cell]]] = None) -> ValidationResult:
    """Validate ``grid`` (or the puzzle's own grid) against the puzzle's solution."""
    current = puzzle.grid if grid is None else grid
    if isinstance(puzzle, GridFillPuzzle):
        return validate_grid_fill(current, puzzle.solution)
    if isinstance(puzzle, PatternFillPuzzle):
        return validate_pattern_fill(current, puzzle.solution)
    raise TypeError(f"Unsupported puzzle: {type(puzzle).__name__}")
