"""
Click accounting.

Every redirect of a primary-store link bumps its click_count. The bump
runs as a detached asyncio task so the redirect never waits on a
database write:

- fire and forget: the caller gets no handle and no result
- failures are logged and dropped (no retry, no exactly-once)
- concurrent bumps for one token are safe because the store's UPDATE
  is atomic
"""

import asyncio
import logging
from typing import Set

from shortlinks_app.storage.strategies import LinkStoreStrategy

logger = logging.getLogger(__name__)


class AccountTracker:
    """
    Issues click increments against the link store in the background.

    In-flight tasks are referenced from a set so the event loop can't
    garbage-collect them mid-flight; each task removes itself when done.
    """

    def __init__(self, store: LinkStoreStrategy):
        """
        Initialize tracker.

        Args:
            store: Link store whose increment_click_count is called
        """
        self.store = store
        self._tasks: Set[asyncio.Task] = set()

    @property
    def pending(self) -> int:
        """Number of increments still in flight"""
        return len(self._tasks)

    def increment(self, token: str) -> None:
        """
        Schedule a click increment for token and return immediately.

        Must be called from inside a running event loop.
        """
        task = asyncio.create_task(self._increment(token), name=f"click-increment:{token}")
        self._tasks.add(task)
        task.add_done_callback(self._tasks.discard)

    async def _increment(self, token: str) -> None:
        try:
            await self.store.increment_click_count(token)
        except Exception as e:
            logger.warning(f"Failed to increment click count for {token}: {e}")

    async def drain(self, timeout: float = 5.0) -> None:
        """
        Wait up to timeout seconds for in-flight increments, then cancel the rest.

        Used on shutdown. Accounting stays best-effort: anything still
        running after the grace period is lost.
        """
        if not self._tasks:
            return

        tasks = list(self._tasks)
        done, not_done = await asyncio.wait(tasks, timeout=timeout)

        for task in not_done:
            task.cancel()

        if not_done:
            await asyncio.gather(*not_done, return_exceptions=True)
            logger.warning(f"Dropped {len(not_done)} click increments still pending at shutdown")
        else:
            logger.info(f"Flushed {len(done)} pending click increments")
