"""Cache store backed by Redis, with an in-memory fallback."""

import json
import logging
from typing import Any

import redis.asyncio as redis
from redis.exceptions import RedisError

from backend.app.config import get_settings
from backend.app.db.inmemory import InMemoryCacheStore
from backend.app.db.repositories import CacheStore, Loader

logger = logging.getLogger(__name__)


class RedisCacheStore:
    """Redis-based cache store using GET + SET EX with JSON values."""

    def __init__(self, redis_client: redis.Redis, namespace: str = "cache") -> None:
        """Initialize cache store.

        Args:
            redis_client: Async Redis client
            namespace: Prefix applied to every key
        """
        self._redis = redis_client
        self._namespace = namespace

    def _key(self, key: str) -> str:
        return f"{self._namespace}:{key}"

    async def fetch(self, key: str, ttl: int | None, loader: Loader) -> Any:
        """Return cached value or compute it.

        Redis errors are treated as a miss so an outage degrades to
        uncached reads rather than failing the request.
        """
        redis_key = self._key(key)

        try:
            raw = await self._redis.get(redis_key)
        except RedisError as e:
            logger.warning(f"Cache read failed for {redis_key}: {type(e).__name__}")
            return await loader()

        if raw is not None:
            return json.loads(raw)

        value = await loader()
        if value is None:
            return None

        try:
            await self._redis.set(redis_key, json.dumps(value), ex=ttl)
        except RedisError as e:
            logger.warning(f"Cache write failed for {redis_key}: {type(e).__name__}")
        return value

    async def delete(self, key: str) -> None:
        """Drop a cached value."""
        await self._redis.delete(self._key(key))


_cache_store: CacheStore | None = None


def get_cache_store() -> CacheStore:
    """FastAPI dependency returning the process-wide cache store."""
    global _cache_store
    if _cache_store is None:
        settings = get_settings()
        if settings.redis_url:
            _cache_store = RedisCacheStore(
                redis.from_url(settings.redis_url, decode_responses=True)
            )
        else:
            logger.info("REDIS_URL not set, using in-memory cache store")
            _cache_store = InMemoryCacheStore()
    return _cache_store
