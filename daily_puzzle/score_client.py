"""
Client for the remote score service
"""
from __future__ import annotations

import enum
import logging
from typing import Optional

import httpx

from . import config
from .exceptions import ScoreServiceError
from .models import ScoreRecord

_LOGGER = logging.getLogger(__name__)


class SubmitOutcome(enum.Enum):
    ACCEPTED = "accepted"
    DUPLICATE = "duplicate"
    REJECTED = "rejected"


class ScoreServiceClient:
    """Thin request/response wrapper around ``POST /scores`` and ``GET /scores``."""

    def __init__(
        self,
        base_url: Optional[str] = None,
        timeout: Optional[float] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ) -> None:
        self.base_url = (base_url or config.SCORE_SERVICE_URL).rstrip("/")
        self.timeout = timeout if timeout is not None else config.SYNC_TIMEOUT
        self._transport = transport

    def _client(self) -> httpx.AsyncClient:
        return httpx.AsyncClient(base_url=self.base_url, timeout=self.timeout, transport=self._transport)

    async def submit_score(self, user_id: str, record: ScoreRecord) -> SubmitOutcome:
        """Submit one score.

        Returns:
            ACCEPTED or DUPLICATE when the service holds the record, REJECTED
            when it refused it (bad input, implausible score, unknown user).

        Raises:
            ScoreServiceError: the service could not be reached or failed.
        """
        payload = {
            "userId": user_id,
            "date": record.date,
            "score": record.score,
            "completionTime": record.completion_time,
            "hintsUsed": record.hints_used,
            "puzzleType": record.puzzle_type,
            "difficulty": record.difficulty,
        }
        try:
            async with self._client() as client:
                response = await client.post("/scores", json=payload)
        except httpx.HTTPError as err:
            raise ScoreServiceError(f"Score submission failed: {err}") from err

        if response.status_code >= 500:
            raise ScoreServiceError(f"Score service error {response.status_code}")
        if response.status_code >= 400:
            _LOGGER.warning(
                "Score for %s rejected (%s): %s", record.date, response.status_code, response.text
            )
            return SubmitOutcome.REJECTED

        try:
            body = response.json()
        except ValueError as err:
            raise ScoreServiceError(f"Unreadable score service response: {err}") from err
        if not isinstance(body, dict):
            raise ScoreServiceError("Unexpected score service response")

        if body.get("duplicate"):
            return SubmitOutcome.DUPLICATE
        return SubmitOutcome.ACCEPTED

    async def fetch_scores(self, user_id: str) -> list[ScoreRecord]:
        """Fetch the user's remote history, newest first."""
        try:
            async with self._client() as client:
                response = await client.get("/scores", params={"userId": user_id})
                response.raise_for_status()
        except httpx.HTTPError as err:
            raise ScoreServiceError(f"Fetching scores failed: {err}") from err

        # ValidationError is a ValueError; covers bad JSON and bad field values
        try:
            return [
                ScoreRecord(
                    date=item["date"],
                    score=item["score"],
                    completion_time=item["completionTime"],
                    hints_used=item["hintsUsed"],
                    puzzle_type=item["puzzleType"],
                    difficulty=item["difficulty"],
                    synced=True,
                )
                for item in response.json().get("scores", [])
            ]
        except (ValueError, KeyError, TypeError, AttributeError) as err:
            raise ScoreServiceError(f"Malformed score history: {err!r}") from err
