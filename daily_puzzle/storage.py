"""Local-first storage for Daily Puzzle data."""
from __future__ import annotations

import logging
import os
from contextlib import asynccontextmanager
from datetime import datetime
from typing import Any, AsyncIterator, Optional

from sqlalchemy import DateTime, JSON, String, delete, event, func, select, update
from sqlalchemy.dialects.sqlite import insert as sqlite_insert
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column

from . import config
from .const import (
    COLLECTION_ACHIEVEMENTS,
    COLLECTION_ACTIVITY,
    COLLECTION_PUZZLES,
    COLLECTION_SCORES,
    COLLECTION_STREAK,
    COLLECTION_USER,
    COLLECTIONS,
    STREAK_KEY,
    USER_KEY,
)
from .dates import utc_now
from .exceptions import StorageUnavailableError
from .migrations import migrate_progress_payload
from .models import (
    AchievementUnlock,
    ActivityRecord,
    Cell,
    ProgressRecord,
    Puzzle,
    ScoreRecord,
    StreakState,
    UserProfile,
)

_LOGGER = logging.getLogger(__name__)


class Base(DeclarativeBase):
    pass


class Entry(Base):
    """One value in one logical collection."""

    __tablename__ = "entries"

    collection: Mapped[str] = mapped_column(String(32), primary_key=True)
    key: Mapped[str] = mapped_column(String(100), primary_key=True)
    value: Mapped[dict] = mapped_column(JSON, nullable=False)
    updated_at: Mapped[datetime] = mapped_column(DateTime, default=utc_now)


def _use_immediate_transactions(engine: AsyncEngine) -> None:
    """Take the SQLite write lock when a transaction begins.

    pysqlite defers BEGIN until the first write, so a read-then-write would
    otherwise read outside the transaction and race other writers.
    """

    @event.listens_for(engine.sync_engine, "connect")
    def _disable_driver_begin(dbapi_connection, connection_record):
        dbapi_connection.isolation_level = None

    @event.listens_for(engine.sync_engine, "begin")
    def _begin_immediate(conn):
        conn.exec_driver_sql("BEGIN IMMEDIATE")


class LocalStore:
    """Key-value store over six collections, backed by SQLite.

    Every write is a single-key upsert committed on its own; there is no
    transaction spanning collections, so callers order dependent writes.
    """

    def __init__(self, database_url: Optional[str] = None) -> None:
        """Initialize storage. Nothing is opened until async_open()."""
        self.database_url = database_url or config.LOCAL_DATABASE_URL
        self._engine: Optional[AsyncEngine] = None
        self._sessionmaker: Optional[async_sessionmaker[AsyncSession]] = None

    @property
    def is_open(self) -> bool:
        return self._engine is not None

    async def async_open(self) -> None:
        """Create the engine and make sure the table exists."""
        if self._engine is not None:
            return

        engine = create_async_engine(self.database_url, echo=False, future=True)
        _use_immediate_transactions(engine)
        database = engine.url.database
        if engine.url.get_backend_name() == "sqlite" and database and database != ":memory:":
            os.makedirs(os.path.dirname(os.path.abspath(database)), exist_ok=True)

        try:
            async with engine.begin() as conn:
                await conn.run_sync(Base.metadata.create_all)
        except SQLAlchemyError as err:
            await engine.dispose()
            raise StorageUnavailableError(f"Cannot open local store: {err}") from err

        self._engine = engine
        self._sessionmaker = async_sessionmaker(engine, class_=AsyncSession, expire_on_commit=False)
        _LOGGER.debug("Opened local store at %s", self.database_url)

    async def async_close(self) -> None:
        """Dispose of the engine."""
        if self._engine is None:
            return
        await self._engine.dispose()
        self._engine = None
        self._sessionmaker = None

    @asynccontextmanager
    async def _transaction(self) -> AsyncIterator[AsyncSession]:
        if self._sessionmaker is None:
            raise StorageUnavailableError("Local store is not open")
        try:
            async with self._sessionmaker() as session:
                async with session.begin():
                    yield session
        except SQLAlchemyError as err:
            raise StorageUnavailableError(f"Local store failure: {err}") from err

    # Raw collection access
    @staticmethod
    async def _read(session: AsyncSession, collection: str, key: str) -> Optional[dict[str, Any]]:
        result = await session.execute(
            select(Entry.value).where(Entry.collection == collection, Entry.key == key)
        )
        return result.scalar_one_or_none()

    @staticmethod
    async def _write(session: AsyncSession, collection: str, key: str, value: dict[str, Any]) -> None:
        stmt = sqlite_insert(Entry).values(
            collection=collection, key=key, value=value, updated_at=utc_now()
        )
        stmt = stmt.on_conflict_do_update(
            index_elements=["collection", "key"],
            set_={"value": stmt.excluded["value"], "updated_at": stmt.excluded["updated_at"]},
        )
        await session.execute(stmt)

    async def _get(self, collection: str, key: str) -> Optional[dict[str, Any]]:
        async with self._transaction() as session:
            return await self._read(session, collection, key)

    async def _put(self, collection: str, key: str, value: dict[str, Any]) -> None:
        async with self._transaction() as session:
            await self._write(session, collection, key, value)

    async def _all(self, collection: str) -> list[dict[str, Any]]:
        async with self._transaction() as session:
            result = await session.execute(
                select(Entry.value).where(Entry.collection == collection).order_by(Entry.key)
            )
            return list(result.scalars().all())

    async def _mark_synced(self, collection: str, key: str) -> bool:
        """Set ``synced`` in place, leaving the rest of the value untouched."""
        stmt = (
            update(Entry)
            .where(Entry.collection == collection, Entry.key == key)
            .values(
                value=func.json_set(Entry.value, "$.synced", func.json("true"), type_=JSON),
                updated_at=utc_now(),
            )
            .execution_options(synchronize_session=False)
        )
        async with self._transaction() as session:
            result = await session.execute(stmt)
        return result.rowcount > 0

    # Puzzle progress
    async def save_puzzle_progress(
        self,
        date: str,
        puzzle: Puzzle,
        progress: list[list[Cell]],
        completion_time: Optional[int] = None,
        hints_used: Optional[int] = None,
        has_started: Optional[bool] = None,
    ) -> ProgressRecord:
        """Upsert progress for a date, keeping completion and any meta not passed in."""
        async with self._transaction() as session:
            raw = await self._read(session, COLLECTION_PUZZLES, date)
            record = ProgressRecord(date=date, puzzle_data=puzzle, progress=progress)
            if raw is not None:
                existing = ProgressRecord.model_validate(migrate_progress_payload(raw))
                record.completed = existing.completed
                record.score = existing.score
                record.completion_time = existing.completion_time
                record.hints_used = existing.hints_used
                record.has_started = existing.has_started
            if completion_time is not None:
                record.completion_time = completion_time
            if hints_used is not None:
                record.hints_used = hints_used
            if has_started is not None:
                record.has_started = has_started
            await self._write(session, COLLECTION_PUZZLES, date, record.model_dump(mode="json"))
        return record

    async def get_puzzle_progress(self, date: str) -> Optional[ProgressRecord]:
        raw = await self._get(COLLECTION_PUZZLES, date)
        if raw is None:
            return None
        return ProgressRecord.model_validate(migrate_progress_payload(raw))

    async def mark_puzzle_complete(self, date: str, score: int, completion_time: int, hints_used: int) -> bool:
        """Mark a date's progress as completed. Returns False if there is no progress."""
        async with self._transaction() as session:
            raw = await self._read(session, COLLECTION_PUZZLES, date)
            if raw is None:
                return False
            record = ProgressRecord.model_validate(migrate_progress_payload(raw))
            record.completed = True
            record.score = score
            record.completion_time = completion_time
            record.hints_used = hints_used
            record.updated_at = utc_now()
            await self._write(session, COLLECTION_PUZZLES, date, record.model_dump(mode="json"))
        return True

    # Scores
    async def save_score(
        self,
        date: str,
        score: int,
        completion_time: int,
        hints_used: int,
        puzzle_type: str,
        difficulty: str,
    ) -> ScoreRecord:
        record = ScoreRecord(
            date=date,
            score=score,
            completion_time=completion_time,
            hints_used=hints_used,
            puzzle_type=puzzle_type,
            difficulty=difficulty,
            synced=False,
        )
        await self._put(COLLECTION_SCORES, date, record.model_dump(mode="json"))
        return record

    async def get_score(self, date: str) -> Optional[ScoreRecord]:
        raw = await self._get(COLLECTION_SCORES, date)
        return ScoreRecord.model_validate(raw) if raw else None

    async def get_all_scores(self) -> list[ScoreRecord]:
        return [ScoreRecord.model_validate(raw) for raw in await self._all(COLLECTION_SCORES)]

    async def get_unsynced_scores(self) -> list[ScoreRecord]:
        return [score for score in await self.get_all_scores() if not score.synced]

    async def mark_score_synced(self, date: str) -> bool:
        return await self._mark_synced(COLLECTION_SCORES, date)

    async def upsert_score_from_remote(self, record: ScoreRecord) -> None:
        """Store a score fetched from the remote; it is synced by definition."""
        synced = record.model_copy(update={"synced": True})
        await self._put(COLLECTION_SCORES, record.date, synced.model_dump(mode="json"))

    # Activity
    async def save_activity(self, date: str, completed: bool, score: int, difficulty: str) -> ActivityRecord:
        record = ActivityRecord(date=date, completed=completed, score=score, difficulty=difficulty, synced=False)
        await self._put(COLLECTION_ACTIVITY, date, record.model_dump(mode="json"))
        return record

    async def upsert_activity_from_sync(self, date: str, completed: bool, score: int, difficulty: str) -> bool:
        """Apply a remote activity entry unless the local one has a higher score.

        The score comparison runs inside the upsert itself, so a concurrent
        local write can never be overwritten by a lower remote score.
        Returns True when the entry was written.
        """
        record = ActivityRecord(date=date, completed=completed, score=score, difficulty=difficulty, synced=True)
        stmt = sqlite_insert(Entry).values(
            collection=COLLECTION_ACTIVITY, key=date, value=record.model_dump(mode="json"), updated_at=utc_now()
        )
        stmt = stmt.on_conflict_do_update(
            index_elements=["collection", "key"],
            set_={"value": stmt.excluded["value"], "updated_at": stmt.excluded["updated_at"]},
            where=func.json_extract(Entry.value, "$.score") <= score,
        )
        async with self._transaction() as session:
            result = await session.execute(stmt)
        return result.rowcount > 0

    async def get_activity(self, date: str) -> Optional[ActivityRecord]:
        raw = await self._get(COLLECTION_ACTIVITY, date)
        return ActivityRecord.model_validate(raw) if raw else None

    async def get_all_activity(self) -> list[ActivityRecord]:
        return [ActivityRecord.model_validate(raw) for raw in await self._all(COLLECTION_ACTIVITY)]

    async def get_activity_range(self, start_date: str, end_date: str) -> list[ActivityRecord]:
        return [a for a in await self.get_all_activity() if start_date <= a.date <= end_date]

    async def get_unsynced_activity(self) -> list[ActivityRecord]:
        return [a for a in await self.get_all_activity() if not a.synced]

    async def mark_activity_synced(self, date: str) -> bool:
        return await self._mark_synced(COLLECTION_ACTIVITY, date)

    # Streak
    async def get_streak(self) -> StreakState:
        raw = await self._get(COLLECTION_STREAK, STREAK_KEY)
        return StreakState.model_validate(raw) if raw else StreakState()

    async def update_streak(self, state: StreakState) -> None:
        """Persist streak state. Only the streak engine calls this."""
        await self._put(COLLECTION_STREAK, STREAK_KEY, state.model_dump(mode="json"))

    # User
    async def save_user(self, profile: UserProfile) -> None:
        await self._put(COLLECTION_USER, USER_KEY, profile.model_dump(mode="json"))

    async def get_user(self) -> Optional[UserProfile]:
        raw = await self._get(COLLECTION_USER, USER_KEY)
        return UserProfile.model_validate(raw) if raw else None

    # Achievements
    async def unlock_achievement(self, key: str, metadata: Optional[dict[str, Any]] = None) -> bool:
        """Unlock an achievement once. Returns True only on the first unlock."""
        unlock = AchievementUnlock(key=key, metadata=metadata or {})
        stmt = (
            sqlite_insert(Entry)
            .values(
                collection=COLLECTION_ACHIEVEMENTS, key=key, value=unlock.model_dump(mode="json"), updated_at=utc_now()
            )
            .on_conflict_do_nothing(index_elements=["collection", "key"])
        )
        async with self._transaction() as session:
            result = await session.execute(stmt)
        return result.rowcount > 0

    async def has_achievement(self, key: str) -> bool:
        return await self._get(COLLECTION_ACHIEVEMENTS, key) is not None

    async def get_achievements(self) -> list[AchievementUnlock]:
        return [AchievementUnlock.model_validate(raw) for raw in await self._all(COLLECTION_ACHIEVEMENTS)]

    async def clear_all(self) -> None:
        """Wipe every collection. Used on logout."""
        async with self._transaction() as session:
            await session.execute(delete(Entry).where(Entry.collection.in_(COLLECTIONS)))
        _LOGGER.info("Cleared all local data")
