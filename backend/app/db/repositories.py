"""Protocol interfaces for shared stores."""

from collections.abc import Awaitable, Callable
from typing import Any, Protocol

Loader = Callable[[], Awaitable[Any]]


class CacheStore(Protocol):
    """String-keyed, TTL-based cache holding JSON-safe values."""

    async def fetch(self, key: str, ttl: int | None, loader: Loader) -> Any:
        """Return the cached value, or compute, store and return it.

        Args:
            key: Cache key
            ttl: Expiry in seconds, None for no expiry
            loader: Coroutine factory computing the value on a miss

        Returns:
            Cached or freshly computed value. A None result is not stored.
        """
        ...

    async def delete(self, key: str) -> None:
        """Drop a cached value.

        Args:
            key: Cache key
        """
        ...
