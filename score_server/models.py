"""
Database models for the score service
"""
from datetime import datetime, timezone

from sqlalchemy import Boolean, Column, DateTime, Integer, String, UniqueConstraint
from sqlalchemy.orm import declarative_base

Base = declarative_base()


def _utcnow():
    return datetime.now(timezone.utc)


class User(Base):
    """A player known to the service"""
    __tablename__ = "users"

    id = Column(String(50), primary_key=True, index=True)  # UUID
    guest_id = Column(String(50), nullable=True, unique=True)
    is_guest = Column(Boolean, default=True)
    created_at = Column(DateTime, default=_utcnow)


class DailyScore(Base):
    """One accepted score per user per day"""
    __tablename__ = "daily_scores"

    id = Column(Integer, primary_key=True, index=True)
    user_id = Column(String(50), nullable=False, index=True)
    date = Column(String(10), nullable=False)  # YYYY-MM-DD format
    puzzle_type = Column(String(20), nullable=False)
    difficulty = Column(String(10), nullable=False)
    score = Column(Integer, nullable=False)
    completion_time = Column(Integer, nullable=False)  # seconds
    hints_used = Column(Integer, default=0)
    created_at = Column(DateTime, default=_utcnow)

    __table_args__ = (UniqueConstraint("user_id", "date", name="uq_user_date"),)


class StreakRecord(Base):
    """Server-side streak, advanced by every newly accepted score"""
    __tablename__ = "streak_records"

    user_id = Column(String(50), primary_key=True)
    current_streak = Column(Integer, default=0)
    longest_streak = Column(Integer, default=0)
    last_played_date = Column(String(10), nullable=True)
    updated_at = Column(DateTime, default=_utcnow, onupdate=_utcnow)
