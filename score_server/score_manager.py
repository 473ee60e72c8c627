"""
Score submission rules and persistence for the score service
"""
import logging
import uuid
from typing import List, Optional, Tuple

from sqlalchemy import desc, select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from daily_puzzle.dates import parse_date, utc_today
from daily_puzzle.exceptions import InputRejectedError
from daily_puzzle.models import StreakState
from daily_puzzle.scoring import is_plausible
from daily_puzzle.streak import next_streak
from score_server import config
from score_server.models import DailyScore, StreakRecord, User

_LOGGER = logging.getLogger(__name__)


class UnknownUserError(LookupError):
    """Submission for a user the service has never seen"""


class ScoreManager:
    """Validates and stores score submissions"""

    def __init__(self, db: AsyncSession):
        self.db = db

    async def create_guest(self) -> User:
        """Register a new guest user"""
        user = User(id=str(uuid.uuid4()), guest_id=f"guest_{uuid.uuid4().hex[:12]}", is_guest=True)
        self.db.add(user)
        await self.db.commit()
        await self.db.refresh(user)
        _LOGGER.info("Created guest user %s", user.id)
        return user

    async def get_user(self, user_id: str) -> Optional[User]:
        result = await self.db.execute(select(User).where(User.id == user_id))
        return result.scalar_one_or_none()

    async def get_score(self, user_id: str, date: str) -> Optional[DailyScore]:
        result = await self.db.execute(
            select(DailyScore).where(DailyScore.user_id == user_id, DailyScore.date == date)
        )
        return result.scalar_one_or_none()

    def check_submission(self, date: str, score: int, completion_time: int, hints_used: int, difficulty: str) -> None:
        """
        Re-validate a submission independently of the client

        Raises:
            InputRejectedError: malformed or future date, or implausible score/time
        """
        if parse_date(date) > utc_today():
            raise InputRejectedError("Cannot submit scores for future dates")
        if not is_plausible(score, completion_time, hints_used, difficulty):
            _LOGGER.warning("Implausible score %s for %s rejected", score, date)
            raise InputRejectedError("Invalid score detected")

    async def submit_score(
        self,
        user_id: str,
        date: str,
        score: int,
        completion_time: int,
        hints_used: int,
        puzzle_type: str,
        difficulty: str,
    ) -> Tuple[DailyScore, bool]:
        """
        Store a score once per (user, date)

        Returns:
            (stored score, duplicate) - a resubmission returns the existing
            record with duplicate=True and changes nothing
        """
        self.check_submission(date, score, completion_time, hints_used, difficulty)

        if await self.get_user(user_id) is None:
            raise UnknownUserError(user_id)

        existing = await self.get_score(user_id, date)
        if existing is not None:
            return existing, True

        daily_score = DailyScore(
            user_id=user_id,
            date=date,
            puzzle_type=puzzle_type,
            difficulty=difficulty,
            score=score,
            completion_time=completion_time,
            hints_used=hints_used,
        )
        self.db.add(daily_score)
        try:
            await self.db.commit()
        except IntegrityError:
            # Lost a race with a concurrent submission for the same day
            await self.db.rollback()
            existing = await self.get_score(user_id, date)
            return existing, True

        await self.db.refresh(daily_score)
        await self._update_streak(user_id, date)
        return daily_score, False

    async def list_scores(self, user_id: str) -> List[DailyScore]:
        """Most recent scores first, capped at MAX_HISTORY"""
        result = await self.db.execute(
            select(DailyScore)
            .where(DailyScore.user_id == user_id)
            .order_by(desc(DailyScore.date))
            .limit(config.MAX_HISTORY)
        )
        return list(result.scalars().all())

    async def get_streak(self, user_id: str) -> Optional[StreakRecord]:
        result = await self.db.execute(select(StreakRecord).where(StreakRecord.user_id == user_id))
        return result.scalar_one_or_none()

    async def _update_streak(self, user_id: str, date: str) -> None:
        record = await self.get_streak(user_id)
        if record is None:
            record = StreakRecord(user_id=user_id, current_streak=0, longest_streak=0)
            self.db.add(record)

        state = StreakState(
            current_streak=record.current_streak or 0,
            longest_streak=record.longest_streak or 0,
            last_played_date=record.last_played_date,
        )
        updated = next_streak(state, date)
        record.current_streak = updated.current_streak
        record.longest_streak = updated.longest_streak
        record.last_played_date = updated.last_played_date
        await self.db.commit()
