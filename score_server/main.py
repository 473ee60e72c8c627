"""
Daily Puzzle score service (FastAPI)
"""
import logging
from contextlib import asynccontextmanager
from typing import List, Optional

from fastapi import Depends, FastAPI, HTTPException, Query
from fastapi.middleware.cors import CORSMiddleware
from pydantic import BaseModel, ConfigDict
from pydantic.alias_generators import to_camel
from sqlalchemy.ext.asyncio import AsyncSession

from daily_puzzle.exceptions import InputRejectedError
from daily_puzzle.models import Difficulty, PuzzleType
from score_server import config
from score_server.database import get_db, init_db
from score_server.score_manager import ScoreManager, UnknownUserError

_LOGGER = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    await init_db()
    _LOGGER.info("Database initialized")
    yield


app = FastAPI(title="Daily Puzzle Score API", version="1.0.0", lifespan=lifespan)

# CORS middleware for browser clients
app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


# Pydantic models for requests/responses (camelCase on the wire)
class CamelModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, from_attributes=True)


class ScoreSubmission(CamelModel):
    user_id: str
    date: str
    score: int
    completion_time: int
    hints_used: int = 0
    puzzle_type: PuzzleType
    difficulty: Difficulty = "medium"


class ScoreOut(CamelModel):
    user_id: str
    date: str
    score: int
    completion_time: int
    hints_used: int
    puzzle_type: str
    difficulty: str


class SubmitResponse(CamelModel):
    success: bool
    duplicate: bool
    data: ScoreOut


class ScoreListResponse(CamelModel):
    scores: List[ScoreOut]


class StreakResponse(CamelModel):
    current_streak: int
    longest_streak: int
    last_played_date: Optional[str] = None


class GuestUser(CamelModel):
    id: str
    guest_id: str
    is_guest: bool


class GuestResponse(CamelModel):
    success: bool
    user: GuestUser


@app.get("/health")
async def health():
    """Health check endpoint"""
    return {"status": "healthy"}


@app.post("/guest", response_model=GuestResponse)
async def create_guest(db: AsyncSession = Depends(get_db)):
    """Create a guest user that can submit scores"""
    user = await ScoreManager(db).create_guest()
    return GuestResponse(success=True, user=GuestUser.model_validate(user))


@app.post("/scores", response_model=SubmitResponse)
async def submit_score(submission: ScoreSubmission, db: AsyncSession = Depends(get_db)):
    """
    Store a daily score

    Rejects malformed or future dates, implausible scores and unknown users.
    Resubmitting a day returns the stored record with duplicate=true.
    """
    manager = ScoreManager(db)
    try:
        daily_score, duplicate = await manager.submit_score(
            user_id=submission.user_id,
            date=submission.date,
            score=submission.score,
            completion_time=submission.completion_time,
            hints_used=submission.hints_used,
            puzzle_type=submission.puzzle_type,
            difficulty=submission.difficulty,
        )
    except InputRejectedError as err:
        raise HTTPException(status_code=400, detail=str(err))
    except UnknownUserError:
        raise HTTPException(status_code=404, detail="Unknown user")

    return SubmitResponse(success=True, duplicate=duplicate, data=ScoreOut.model_validate(daily_score))


@app.get("/scores", response_model=ScoreListResponse)
async def list_scores(user_id: Optional[str] = Query(None, alias="userId"), db: AsyncSession = Depends(get_db)):
    """Up to the last 365 scores for a user, newest first"""
    if not user_id:
        raise HTTPException(status_code=400, detail="Missing userId")

    scores = await ScoreManager(db).list_scores(user_id)
    return ScoreListResponse(scores=[ScoreOut.model_validate(score) for score in scores])


@app.get("/streak", response_model=StreakResponse)
async def get_streak(user_id: Optional[str] = Query(None, alias="userId"), db: AsyncSession = Depends(get_db)):
    """Server-side streak for a user"""
    if not user_id:
        raise HTTPException(status_code=400, detail="Missing userId")

    record = await ScoreManager(db).get_streak(user_id)
    if record is None:
        return StreakResponse(current_streak=0, longest_streak=0)
    return StreakResponse(
        current_streak=record.current_streak,
        longest_streak=record.longest_streak,
        last_played_date=record.last_played_date,
    )


if __name__ == "__main__":
    import uvicorn
    uvicorn.run(app, host=config.HOST, port=config.PORT)
