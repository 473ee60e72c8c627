"""Coordinator for a Daily Puzzle device session."""
from __future__ import annotations

import logging
from typing import Optional

from .game_manager import GameManager
from .models import CompletionResult, PullResult, PushResult, UserProfile
from .score_client import ScoreServiceClient
from .storage import LocalStore
from .streak import StreakEngine
from .sync import SyncEngine

_LOGGER = logging.getLogger(__name__)


class PuzzleGameCoordinator:
    """Coordinate storage, game flow and sync for one session."""

    def __init__(
        self,
        storage: LocalStore,
        client: Optional[ScoreServiceClient] = None,
        secret_key: Optional[str] = None,
        autosave_delay: Optional[float] = None,
    ) -> None:
        """Initialize coordinator."""
        self.storage = storage
        self.streak_engine = StreakEngine(storage)
        self.game_manager = GameManager(storage, self.streak_engine, secret_key, autosave_delay)
        self.sync_engine = SyncEngine(storage, client or ScoreServiceClient())
        self._online = False

    @property
    def online(self) -> bool:
        return self._online

    async def async_setup(self, online: bool = True) -> None:
        """Open the store and reconcile with the service when online."""
        await self.storage.async_open()
        self._online = online
        if online:
            await self.async_sync()

    async def async_shutdown(self) -> None:
        """Write any pending progress and close the store."""
        try:
            await self.game_manager.autosaver.flush()
        finally:
            await self.storage.async_close()

    async def set_user(self, profile: UserProfile) -> None:
        await self.storage.save_user(profile)

    async def async_sync(self) -> Optional[tuple[PushResult, PullResult]]:
        """Push local scores, merge remote history, then rebuild the streak from it.

        Pushing first keeps an unsynced local score from being replaced by the
        remote copy before it is ever submitted. Returns None without a user.
        """
        user = await self.storage.get_user()
        if user is None or user.id is None:
            _LOGGER.debug("No user profile, skipping sync")
            return None

        pushed = await self.sync_engine.push_unsynced(user.id)
        pulled = await self.sync_engine.pull_and_merge(user.id)
        if pulled.success:
            # Pulled history can fill gaps the local streak never saw
            await self.streak_engine.recompute()
        _LOGGER.info("Sync pushed %d, merged %d", pushed.synced_count, pulled.merged_count)
        return pushed, pulled

    async def async_set_online(self, online: bool) -> None:
        """Track connectivity; coming back online triggers a full sync."""
        was_online = self._online
        self._online = online
        if online and not was_online:
            _LOGGER.info("Back online - syncing")
            await self.async_sync()

    async def complete_puzzle(self, date: str, completion_time: int) -> CompletionResult:
        """Run the completion flow and push the new score when online."""
        result = await self.game_manager.complete_puzzle(date, completion_time)
        if result.solved and not result.already_completed and self._online:
            user = await self.storage.get_user()
            if user is not None and user.id is not None:
                await self.sync_engine.push_unsynced(user.id)
        return result

    async def async_logout(self) -> None:
        """Drop pending edits and wipe every local collection."""
        self.game_manager.discard_session()
        await self.storage.clear_all()
