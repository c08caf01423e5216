"""
Cache strategies using Strategy Pattern.
Allows switching between different cache backends (In-Memory, Redis, Null).

The cache is purely a performance layer in front of the link store:
every backend must be safe to lose, and resolution must behave the same
with NullCache, only slower.
"""

from abc import ABC, abstractmethod
from collections import OrderedDict
import logging
import time
from typing import Callable, Optional, Tuple

from pydantic import ValidationError

from shortlinks_app.schemas.short_link import LinkRecord

logger = logging.getLogger(__name__)


class CacheStrategy(ABC):
    """
    Abstract base class for cache strategies.

    This is the Strategy Pattern interface - allows multiple cache implementations
    without changing the resolver code.

    Entries are LinkRecord snapshots keyed by token, each with an absolute
    TTL counted from insertion (reads never extend it).
    All methods are async because cache operations may involve I/O (network for Redis).
    """

    @abstractmethod
    async def get(self, token: str) -> Optional[LinkRecord]:
        """
        Get a link snapshot from cache.

        Args:
            token: Short token

        Returns:
            Cached LinkRecord or None if missing/expired
        """
        pass

    @abstractmethod
    async def set(self, token: str, record: LinkRecord) -> bool:
        """
        Store a link snapshot with the cache's TTL.

        Args:
            token: Short token
            record: Snapshot to cache

        Returns:
            True if stored, False otherwise
        """
        pass

    @abstractmethod
    async def clear(self) -> bool:
        """
        Clear all cache entries.

        Returns:
            True if successful
        """
        pass

    async def close(self) -> None:
        """Release backend resources (connections). No-op by default."""
        return None


class InMemoryCache(CacheStrategy):
    """
    Bounded in-memory cache with absolute TTL.

    - Insertion-ordered dict: when full, expired entries are purged first,
      then the oldest insertions are evicted
    - Expired entries are dropped lazily on read
    - get/set never await, so each is a single atomic step on the event loop

    Pros:
    - Very fast (no network overhead)
    - No external dependencies

    Cons:
    - Not shared between processes
    - Lost on restart
    """

    def __init__(
        self,
        max_entries: int = 10_000,
        ttl_seconds: float = 300,
        clock: Callable[[], float] = time.monotonic
    ):
        """
        Initialize in-memory cache.

        Args:
            max_entries: Maximum number of cached tokens
            ttl_seconds: Time to live of each entry from insertion
            clock: Monotonic time source (injectable for tests)
        """
        if max_entries <= 0 or ttl_seconds <= 0:
            raise ValueError("InMemoryCache needs positive max_entries and ttl_seconds; use NullCache to disable caching")

        self.max_entries = max_entries
        self.ttl_seconds = ttl_seconds
        self._clock = clock
        self._entries: "OrderedDict[str, Tuple[float, LinkRecord]]" = OrderedDict()

    def __len__(self) -> int:
        return len(self._entries)

    async def get(self, token: str) -> Optional[LinkRecord]:
        entry = self._entries.get(token)
        if entry is None:
            return None

        expires_at, record = entry
        if self._clock() >= expires_at:
            self._entries.pop(token, None)
            return None

        return record

    async def set(self, token: str, record: LinkRecord) -> bool:
        # Re-inserting moves the token to the newest position with a fresh TTL
        self._entries.pop(token, None)

        if len(self._entries) >= self.max_entries:
            self._evict()

        self._entries[token] = (self._clock() + self.ttl_seconds, record)
        return True

    async def clear(self) -> bool:
        self._entries.clear()
        return True

    def _evict(self) -> None:
        """Make room for one entry: purge expired ones, then drop the oldest."""
        # Fixed TTL and re-insert on set keep expiry times ascending front to back
        now = self._clock()
        while self._entries and next(iter(self._entries.values()))[0] <= now:
            self._entries.popitem(last=False)

        while len(self._entries) >= self.max_entries:
            self._entries.popitem(last=False)


class RedisCache(CacheStrategy):
    """
    Redis cache implementation with async operations.

    - Shared between all service instances
    - TTL enforced by Redis (SETEX)
    - Capacity governed by the server's maxmemory policy

    Redis errors are logged and reported as a miss, never raised:
    a broken cache must not break redirects.
    """

    def __init__(self, redis_client, ttl_seconds: int = 300, key_prefix: str = "shortlink:"):
        """
        Initialize Redis cache.

        Args:
            redis_client: redis.asyncio.Redis instance
            ttl_seconds: Time to live of each entry
            key_prefix: Namespace for cache keys
        """
        self.redis = redis_client
        self.ttl_seconds = ttl_seconds
        self.key_prefix = key_prefix

    def _key(self, token: str) -> str:
        return f"{self.key_prefix}{token}"

    async def get(self, token: str) -> Optional[LinkRecord]:
        try:
            value = await self.redis.get(self._key(token))
        except Exception as e:
            logger.warning(f"Redis get error for {token}: {e}")
            return None

        if value is None:
            return None

        try:
            return LinkRecord.model_validate_json(value)
        except ValidationError as e:
            logger.warning(f"Discarding unreadable cache entry for {token}: {e}")
            return None

    async def set(self, token: str, record: LinkRecord) -> bool:
        try:
            return bool(await self.redis.setex(self._key(token), self.ttl_seconds, record.model_dump_json()))
        except Exception as e:
            logger.warning(f"Redis set error for {token}: {e}")
            return False

    async def clear(self) -> bool:
        """Delete this cache's keys only (the Redis DB may be shared)."""
        try:
            async for key in self.redis.scan_iter(match=f"{self.key_prefix}*"):
                await self.redis.delete(key)
            return True
        except Exception as e:
            logger.warning(f"Redis clear error: {e}")
            return False

    async def close(self) -> None:
        await self.redis.aclose()


class NullCache(CacheStrategy):
    """
    Null Object Pattern - cache that does nothing.

    Used when caching is disabled (backend "null", or TTL / capacity of 0).
    Every lookup goes to the link store.
    """

    async def get(self, token: str) -> Optional[LinkRecord]:
        """Always returns None (cache miss)"""
        return None

    async def set(self, token: str, record: LinkRecord) -> bool:
        """Pretends to set but does nothing"""
        return True

    async def clear(self) -> bool:
        """Pretends to clear but does nothing"""
        return True
