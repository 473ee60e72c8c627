"""Core game flow for Daily Puzzle: loading, editing and completing a day's puzzle."""
from __future__ import annotations

import asyncio
import logging
from typing import Optional

from . import config, generator, scoring
from .achievements import check_achievements
from .const import MAX_HINTS, PUZZLE_TYPE_GRID_FILL
from .dates import parse_date, utc_today
from .exceptions import InputRejectedError, StorageUnavailableError
from .models import Cell, CompletionResult, ProgressRecord, ValidationResult
from .storage import LocalStore
from .streak import StreakEngine
from .validator import validate

_LOGGER = logging.getLogger(__name__)


class Autosaver:
    """Coalesce progress writes so each date is written at most once per window."""

    def __init__(self, storage: LocalStore, delay: float) -> None:
        self.storage = storage
        self.delay = delay
        self._pending: dict[str, ProgressRecord] = {}
        self._tasks: dict[str, asyncio.Task] = {}

    def schedule(self, record: ProgressRecord) -> None:
        """Queue the latest state for a date; a write already scheduled picks it up."""
        self._pending[record.date] = record
        if record.date not in self._tasks:
            self._tasks[record.date] = asyncio.create_task(self._save_later(record.date))

    async def _save_later(self, date: str) -> None:
        await asyncio.sleep(self.delay)
        self._tasks.pop(date, None)
        record = self._pending.get(date)
        try:
            await self._write(date)
        except StorageUnavailableError:
            # Keep it queued; the next flush retries and surfaces the error
            if record is not None:
                self._pending.setdefault(date, record)
            _LOGGER.exception("Autosave for %s failed", date)

    async def _write(self, date: str) -> None:
        record = self._pending.pop(date, None)
        if record is None:
            return
        await self.storage.save_puzzle_progress(
            date,
            record.puzzle_data,
            record.progress,
            completion_time=record.completion_time,
            hints_used=record.hints_used,
            has_started=record.has_started,
        )

    async def flush(self, date: Optional[str] = None) -> None:
        """Write pending state now, for one date or for all of them."""
        dates = [date] if date is not None else list(self._pending)
        for pending_date in dates:
            task = self._tasks.pop(pending_date, None)
            if task is not None:
                task.cancel()
            await self._write(pending_date)

    def discard(self) -> None:
        """Cancel every scheduled write without saving."""
        for task in self._tasks.values():
            task.cancel()
        self._tasks.clear()
        self._pending.clear()

    @property
    def pending(self) -> int:
        return len(self._pending)


class GameManager:
    """Manages puzzle state and the completion flow."""

    def __init__(
        self,
        storage: LocalStore,
        streak_engine: Optional[StreakEngine] = None,
        secret_key: Optional[str] = None,
        autosave_delay: Optional[float] = None,
    ) -> None:
        """Initialize game manager."""
        self.storage = storage
        self.streak_engine = streak_engine or StreakEngine(storage)
        self.secret_key = secret_key or config.PUZZLE_SECRET_KEY
        self.autosaver = Autosaver(storage, config.AUTOSAVE_DELAY if autosave_delay is None else autosave_delay)
        self._games: dict[str, ProgressRecord] = {}

    async def load_puzzle(self, date: str) -> ProgressRecord:
        """Return the progress for a date, generating and saving the puzzle on first load."""
        if parse_date(date) > utc_today():
            raise InputRejectedError(f"Cannot play a future date: {date}")

        if date in self._games:
            return self._games[date]

        record = await self.storage.get_puzzle_progress(date)
        if record is None:
            puzzle = generator.generate(date, self.secret_key)
            record = await self.storage.save_puzzle_progress(
                date,
                puzzle,
                [[cell.model_copy() for cell in row] for row in puzzle.grid],
                completion_time=0,
                hints_used=0,
                has_started=False,
            )
            _LOGGER.info("Created %s puzzle for %s", puzzle.type, date)

        self._games[date] = record
        return record

    def discard_session(self) -> None:
        """Forget loaded puzzles and unsaved edits."""
        self.autosaver.discard()
        self._games.clear()

    def _editable_cell(self, record: ProgressRecord, row: int, col: int) -> Cell:
        if record.completed:
            raise InputRejectedError(f"Puzzle for {record.date} is already completed")
        size = record.puzzle_data.size
        if not (0 <= row < size and 0 <= col < size):
            raise InputRejectedError(f"Cell ({row}, {col}) is outside the grid")
        cell = record.progress[row][col]
        if cell.is_clue:
            raise InputRejectedError(f"Cell ({row}, {col}) is a clue")
        return cell

    async def update_cell(
        self, date: str, row: int, col: int, value: int, elapsed: Optional[float] = None
    ) -> ProgressRecord:
        """Apply a player edit and schedule an autosave.

        Grid-fill cells take 1..size, with 0 clearing the cell. Pattern-fill
        cells take 0 (empty) or 1 (filled); both count as answered.
        """
        if elapsed is not None:
            elapsed = scoring.normalize_completion_time(elapsed)
        record = await self.load_puzzle(date)
        cell = self._editable_cell(record, row, col)

        if record.puzzle_data.type == PUZZLE_TYPE_GRID_FILL:
            if not 0 <= value <= record.puzzle_data.size:
                raise InputRejectedError(f"Value {value} out of range")
            cell.value = value
            cell.revealed = value > 0
        else:
            if value not in (0, 1):
                raise InputRejectedError(f"Value {value} out of range")
            cell.value = value
            cell.revealed = True

        record.has_started = True
        if elapsed is not None:
            record.completion_time = elapsed
        self.autosaver.schedule(record)
        return record

    async def clear_cell(self, date: str, row: int, col: int) -> ProgressRecord:
        record = await self.load_puzzle(date)
        cell = self._editable_cell(record, row, col)
        cell.value = 0
        cell.revealed = False
        self.autosaver.schedule(record)
        return record

    async def use_hint(self, date: str) -> Optional[tuple[int, int]]:
        """Reveal the first unanswered cell. Returns its position, or None if no hint was given."""
        record = await self.load_puzzle(date)
        if record.completed or (record.hints_used or 0) >= MAX_HINTS:
            return None

        solution = record.puzzle_data.solution
        for row, line in enumerate(record.progress):
            for col, cell in enumerate(line):
                if not cell.revealed and not cell.is_clue:
                    cell.value = solution[row][col]
                    cell.revealed = True
                    record.hints_used = (record.hints_used or 0) + 1
                    record.has_started = True
                    self.autosaver.schedule(record)
                    return row, col
        return None

    async def reset_puzzle(self, date: str) -> ProgressRecord:
        """Restore the generated grid and clear hints and time."""
        record = await self.load_puzzle(date)
        if record.completed:
            raise InputRejectedError(f"Puzzle for {date} is already completed")

        await self.autosaver.flush(date)
        fresh = [[cell.model_copy() for cell in row] for row in record.puzzle_data.grid]
        record = await self.storage.save_puzzle_progress(
            date, record.puzzle_data, fresh, completion_time=0, hints_used=0, has_started=False
        )
        self._games[date] = record
        return record

    async def complete_puzzle(self, date: str, completion_time: float) -> CompletionResult:
        """Validate, score and record a finished puzzle.

        Steps run strictly in order: validation, scoring, local persistence,
        streak update, achievement check. Nothing is written unless the grid is
        complete and correct.
        """
        completion_time = scoring.normalize_completion_time(completion_time)
        record = await self.load_puzzle(date)
        if record.completed:
            return CompletionResult(
                validation=ValidationResult(is_valid=True, is_complete=True),
                score=record.score,
                streak=await self.storage.get_streak(),
                already_completed=True,
            )

        validation = validate(record.puzzle_data, record.progress)
        if not (validation.is_complete and validation.is_valid):
            return CompletionResult(validation=validation)

        puzzle = record.puzzle_data
        hints_used = record.hints_used or 0
        score = scoring.compute_score(completion_time, hints_used, puzzle.difficulty)
        if not scoring.is_plausible(score, completion_time, hints_used, puzzle.difficulty):
            _LOGGER.warning("Completion for %s recorded locally but will not pass the service check", date)

        await self.autosaver.flush(date)
        await self.storage.mark_puzzle_complete(date, score, completion_time, hints_used)
        await self.storage.save_score(date, score, completion_time, hints_used, puzzle.type, puzzle.difficulty)
        await self.storage.save_activity(date, True, score, puzzle.difficulty)

        record.completed = True
        record.score = score
        record.completion_time = completion_time

        streak = await self.streak_engine.advance(date)
        unlocked = await check_achievements(
            self.storage, date, score, puzzle.difficulty, hints_used, completion_time, streak
        )

        return CompletionResult(validation=validation, score=score, streak=streak, unlocked=unlocked)
