"""In-memory implementations of store interfaces."""

import time
from collections.abc import Callable
from typing import Any

from backend.app.db.repositories import Loader


class InMemoryCacheStore:
    """In-memory implementation of CacheStore."""

    def __init__(self, clock: Callable[[], float] = time.monotonic) -> None:
        """Initialize cache store.

        Args:
            clock: Monotonic time source in seconds (injectable for tests)
        """
        self._clock = clock
        self._entries: dict[str, tuple[float | None, Any]] = {}

    async def fetch(self, key: str, ttl: int | None, loader: Loader) -> Any:
        """Return cached value or compute it."""
        entry = self._entries.get(key)

        if entry is not None:
            expires_at, value = entry
            if expires_at is None or self._clock() < expires_at:
                return value
            del self._entries[key]

        value = await loader()
        if value is None:
            return None

        expires_at = None if ttl is None else self._clock() + ttl
        self._entries[key] = (expires_at, value)
        return value

    async def delete(self, key: str) -> None:
        """Drop a cached value."""
        self._entries.pop(key, None)

    def __contains__(self, key: str) -> bool:
        return key in self._entries
