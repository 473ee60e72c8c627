"""Versioned data models for puzzles, progress and local history."""
from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from typing import Annotated, Any, Literal, Optional, Union

from pydantic import BaseModel, ConfigDict, Field, model_validator

from .const import PROGRESS_SCHEMA_VERSION, PUZZLE_SCHEMA_VERSION
from .dates import utc_now

Difficulty = Literal["easy", "medium", "hard"]
PuzzleType = Literal["grid-fill", "pattern-fill"]


class Cell(BaseModel):
    """A single square of the player's grid."""

    value: int = 0
    revealed: bool = False
    is_clue: bool = False


class _PuzzleBase(BaseModel):
    schema_version: int = PUZZLE_SCHEMA_VERSION
    id: str
    date: str
    grid: list[list[Cell]]
    solution: list[list[int]]
    difficulty: Difficulty
    seed: str

    @property
    def size(self) -> int:
        return len(self.solution)


class GridFillPuzzle(_PuzzleBase):
    """Latin-square puzzle with row, column and box constraints."""

    type: Literal["grid-fill"] = "grid-fill"
    box_rows: int
    box_cols: int


class PatternFillPuzzle(_PuzzleBase):
    """Picture puzzle; row/column run lengths are hints for the player."""

    type: Literal["pattern-fill"] = "pattern-fill"
    row_clues: list[list[int]]
    col_clues: list[list[int]]


Puzzle = Annotated[Union[GridFillPuzzle, PatternFillPuzzle], Field(discriminator="type")]


class ProgressRecord(BaseModel):
    """Per-date player progress, stored in the puzzles collection."""

    model_config = ConfigDict(validate_assignment=True)

    schema_version: int = PROGRESS_SCHEMA_VERSION
    date: str
    puzzle_data: Puzzle
    progress: list[list[Cell]]
    completed: bool = False
    score: Optional[int] = None
    completion_time: Optional[int] = None
    hints_used: Optional[int] = None
    has_started: Optional[bool] = None
    updated_at: datetime = Field(default_factory=utc_now)


class ScoreRecord(BaseModel):
    date: str
    score: int
    completion_time: int
    hints_used: int
    puzzle_type: PuzzleType
    difficulty: Difficulty
    synced: bool = False
    created_at: datetime = Field(default_factory=utc_now)


class ActivityRecord(BaseModel):
    date: str
    completed: bool
    score: int
    difficulty: Difficulty
    synced: bool = False


class StreakState(BaseModel):
    current_streak: int = 0
    longest_streak: int = 0
    last_played_date: Optional[str] = None
    updated_at: datetime = Field(default_factory=utc_now)

    @model_validator(mode="after")
    def _longest_covers_current(self) -> "StreakState":
        if self.longest_streak < self.current_streak:
            raise ValueError("longest_streak must be >= current_streak")
        return self


class AchievementUnlock(BaseModel):
    key: str
    unlocked_at: datetime = Field(default_factory=utc_now)
    metadata: dict[str, Any] = Field(default_factory=dict)


class UserProfile(BaseModel):
    id: Optional[str] = None
    email: Optional[str] = None
    name: Optional[str] = None
    is_guest: bool = True
    guest_id: Optional[str] = None
    updated_at: datetime = Field(default_factory=utc_now)


@dataclass(frozen=True)
class CellError:
    row: int
    col: int
    message: str


@dataclass
class ValidationResult:
    is_valid: bool
    is_complete: bool
    errors: list[CellError] = field(default_factory=list)


@dataclass
class PushResult:
    success: bool
    synced_count: int


@dataclass
class PullResult:
    success: bool
    merged_count: int


@dataclass
class CompletionResult:
    """Outcome of a puzzle-completion attempt.

    ``score`` and ``streak`` are only set when the grid validated; ``unlocked``
    holds the achievement keys newly unlocked by this completion.
    """

    validation: ValidationResult
    score: Optional[int] = None
    streak: Optional[StreakState] = None
    unlocked: list[str] = field(default_factory=list)
    already_completed: bool = False

    @property
    def solved(self) -> bool:
        return self.validation.is_valid and self.validation.is_complete


@dataclass(frozen=True)
class HeatmapDay:
    date: str
    count: int
    level: int
    score: Optional[int] = None
    difficulty: Optional[str] = None
