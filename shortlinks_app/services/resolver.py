import logging
from typing import Optional

from shortlinks_app.accounting.tracker import AccountTracker
from shortlinks_app.cache.strategies import CacheStrategy, NullCache
from shortlinks_app.exceptions import LinkNotFoundError
from shortlinks_app.fallback.loader import FallbackSet
from shortlinks_app.schemas.short_link import LinkRecord
from shortlinks_app.storage.strategies import LinkStoreStrategy

logger = logging.getLogger(__name__)


class LinkResolver:
    """
    Resolves short tokens to destination URLs.

    Dependencies are injected (not created internally):
    - store: primary link store (database)
    - fallback: static links loaded at startup
    - cache: snapshot cache in front of both
    - tracker: background click accounting

    Lookup order is fixed: cache -> primary store -> fallback set.
    A token present in both sources resolves to the primary store's URL.
    """

    def __init__(
        self,
        store: LinkStoreStrategy,
        fallback: FallbackSet,
        tracker: AccountTracker,
        cache: Optional[CacheStrategy] = None
    ):
        """
        Initialize resolver with dependencies.

        Args:
            store: Link store strategy
            fallback: Frozen fallback links
            tracker: Click accounting tracker
            cache: Cache strategy (optional, NullCache when omitted)
        """
        self.store = store
        self.fallback = fallback
        self.tracker = tracker
        self.cache = cache if cache is not None else NullCache()

    async def resolve(self, token: str) -> str:
        """
        Get the destination URL for token.

        Flow:
        1. Check cache first; on hit count the click (primary links only)
           and return immediately
        2. On cache miss query the primary store (active links only)
        3. On store miss check the fallback set (memory only, no I/O)
        4. Cache whatever was found; count the click if it came from the store

        Click counting is fire-and-forget, the redirect never waits for it.

        Args:
            token: Short token, used verbatim (case-sensitive)

        Returns:
            Destination URL

        Raises:
            LinkNotFoundError: Token is in neither source
            StoreError: The primary store failed during lookup
        """
        # Step 1: Cache-Aside
        cached = await self._cache_get(token)
        if cached is not None:
            self._count_click(cached)
            logger.info(f"Cache hit: Redirecting {token} to {cached.long_url}")
            return cached.long_url

        # Step 2: Primary store (StoreError propagates to the caller)
        record = await self.store.lookup_active(token)

        # Step 3: Fallback set
        if record is None:
            long_url = self.fallback.lookup(token)
            if long_url is None:
                logger.warning(f"Token not found: {token}")
                raise LinkNotFoundError(token)

            logger.info(f"Found token {token} in CSV links, redirecting to {long_url}")
            record = LinkRecord.from_fallback(token, long_url)

        # Step 4: Populate cache for next time, then count
        await self._cache_set(token, record)
        self._count_click(record)

        logger.info(f"Cache miss: Redirecting {token} to {record.long_url}")
        return record.long_url

    def _count_click(self, record: LinkRecord) -> None:
        """Fallback links have no counter, only primary links are tracked"""
        if record.is_countable:
            self.tracker.increment(record.token)

    async def _cache_get(self, token: str) -> Optional[LinkRecord]:
        try:
            return await self.cache.get(token)
        except Exception as e:
            logger.warning(f"Cache read failed for {token}, treating as miss: {e}")
            return None

    async def _cache_set(self, token: str, record: LinkRecord) -> None:
        try:
            await self.cache.set(token, record)
        except Exception as e:
            logger.warning(f"Cache write failed for {token}: {e}")
