"""
Factory for creating cache instances.

The factory builds a fresh instance per call; the application lifespan
owns the result and passes it to the resolver.
"""

from enum import Enum
import logging

from .strategies import CacheStrategy, RedisCache, InMemoryCache, NullCache
from shortlinks_app.config import Settings

logger = logging.getLogger(__name__)


class CacheBackend(Enum):
    """Available cache backends"""
    MEMORY = "memory"
    REDIS = "redis"
    NULL = "null"


class CacheFactory:
    """
    Simple factory for creating cache instances from settings.

    A TTL or capacity of 0 means "no cache" whatever the backend,
    which yields a NullCache.
    """

    @classmethod
    def create(cls, backend: CacheBackend, settings: Settings) -> CacheStrategy:
        """
        Create a cache instance.

        Args:
            backend: Type of cache backend (from enum)
            settings: Application settings (TTL, capacity, Redis URL)

        Returns:
            Cache instance
        """
        if backend == CacheBackend.NULL or settings.cache_ttl <= 0 or settings.cache_max_entries <= 0:
            logger.info("✅ Null cache initialized (caching disabled)")
            return NullCache()

        if backend == CacheBackend.MEMORY:
            logger.info(
                f"✅ In-memory cache initialized "
                f"(max_entries={settings.cache_max_entries}, ttl={settings.cache_ttl}s)"
            )
            return InMemoryCache(
                max_entries=settings.cache_max_entries,
                ttl_seconds=settings.cache_ttl,
            )

        if backend == CacheBackend.REDIS:
            import redis.asyncio as redis

            redis_client = redis.from_url(
                settings.redis_url,
                decode_responses=True,
                socket_connect_timeout=2,
                socket_timeout=2,
            )
            logger.info(f"✅ Redis cache initialized (ttl={settings.cache_ttl}s)")
            return RedisCache(redis_client, ttl_seconds=settings.cache_ttl)

        raise ValueError(f"Unknown cache backend: {backend}")

    @classmethod
    def from_settings(cls, settings: Settings) -> CacheStrategy:
        """Create the cache configured by settings.cache_backend."""
        return cls.create(CacheBackend(settings.cache_backend), settings)
