# objsync/app/services/token_reaper.py
"""
Background cleanup of expired bearer tokens.

Expired tokens are already invisible to lookups, so the reaper only keeps the
table small. It can be disabled without affecting authentication.
"""
import asyncio
import logging
from typing import Optional

from objsync.app.core.clock import Clock
from objsync.app.db.store import ObjectStore

logger = logging.getLogger(__name__)


class TokenReaper:
    """Periodically deletes stale auth tokens"""

    def __init__(
        self,
        store: ObjectStore,
        interval_seconds: float = 3600,
        clock: Optional[Clock] = None,
    ):
        self.store = store
        self.interval_seconds = interval_seconds
        self.clock = clock or store.clock
        self._task: Optional[asyncio.Task] = None

    @property
    def is_running(self) -> bool:
        return self._task is not None and not self._task.done()

    def start(self) -> None:
        """Start the reaper loop on the running event loop"""
        if self.is_running:
            return

        self._task = asyncio.create_task(self._run(), name="token-reaper")
        logger.info(f"Token reaper started (every {self.interval_seconds}s)")

    async def stop(self) -> None:
        """Cancel the loop and wait for it to finish"""
        if self._task is None:
            return

        task, self._task = self._task, None
        task.cancel()
        try:
            await task
        except asyncio.CancelledError:
            pass
        logger.info("Token reaper stopped")

    async def run_once(self) -> int:
        """Delete stale tokens now. Returns how many were deleted."""
        deleted = await self.store.delete_stale_auth_tokens()
        if deleted:
            logger.info(f"Deleted {deleted} stale auth tokens")
        return deleted

    async def _run(self) -> None:
        while True:
            await self.clock.sleep(self.interval_seconds)
            try:
                await self.run_once()
            except Exception:
                # Retried on the next tick
                logger.exception("Failed to delete stale auth tokens")
