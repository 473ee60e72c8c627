"""Two-way reconciliation between the local store and the score service."""
from __future__ import annotations

import logging

from .exceptions import ScoreServiceError
from .models import PullResult, PushResult
from .score_client import ScoreServiceClient, SubmitOutcome
from .storage import LocalStore

_LOGGER = logging.getLogger(__name__)


class SyncEngine:
    """Push unsynced local scores and merge remote history back in.

    Both directions are safe to run repeatedly and side by side: every local
    change is a per-date upsert and records only ever move from unsynced to synced.
    """

    def __init__(self, storage: LocalStore, client: ScoreServiceClient) -> None:
        self.storage = storage
        self.client = client

    async def push_unsynced(self, user_id: str) -> PushResult:
        """Submit every unsynced score, marking each synced once the service holds it."""
        unsynced = await self.storage.get_unsynced_scores()
        synced_count = 0

        for record in unsynced:
            try:
                outcome = await self.client.submit_score(user_id, record)
            except ScoreServiceError as err:
                _LOGGER.warning("Push stopped after %d of %d scores: %s", synced_count, len(unsynced), err)
                return PushResult(success=False, synced_count=synced_count)

            if outcome is SubmitOutcome.REJECTED:
                continue

            await self.storage.mark_score_synced(record.date)
            await self.storage.mark_activity_synced(record.date)
            synced_count += 1

        _LOGGER.debug("Pushed %d of %d unsynced scores", synced_count, len(unsynced))
        return PushResult(success=True, synced_count=synced_count)

    async def pull_and_merge(self, user_id: str) -> PullResult:
        """Merge the remote history into the local store.

        Remote scores overwrite local score records. Activity entries follow the
        max-score-wins rule, so an offline result that beats the remote survives.
        """
        try:
            remote_scores = await self.client.fetch_scores(user_id)
        except ScoreServiceError as err:
            _LOGGER.warning("Pull failed: %s", err)
            return PullResult(success=False, merged_count=0)

        merged_count = 0
        for record in remote_scores:
            await self.storage.upsert_score_from_remote(record)
            if await self.storage.upsert_activity_from_sync(
                record.date, True, record.score, record.difficulty
            ):
                merged_count += 1

        _LOGGER.debug("Merged %d of %d remote records", merged_count, len(remote_scores))
        return PullResult(success=True, merged_count=merged_count)
