"""Per-community reference data, read through the cache store.

Cache keys:
- "{host}/community"                   1 hour
- "{community_id}/pinned_links"        2 hours
- "{community_id}/hot_questions"       4 hours
- "{community_id}/header_categories"   no expiry
"""

import time
from collections.abc import Awaitable, Callable
from datetime import datetime, timedelta, timezone
from typing import Any

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from backend.app.config import Settings
from backend.app.db.models import Community
from backend.app.db.queries import (
    select_categories,
    select_hot_questions,
    select_pinned_links,
)
from backend.app.db.repositories import CacheStore
from backend.app.models.reference import (
    CategorySnapshot,
    CommunitySnapshot,
    HotQuestionSnapshot,
    PinnedLinkSnapshot,
    categories_adapter,
    hot_questions_adapter,
    pinned_links_adapter,
)
from backend.app.reference.site_settings import get_site_setting
from backend.app.utils.metrics import PrometheusRequestMetrics


def utcnow() -> datetime:
    """Naive UTC timestamp, matching how DateTime columns are stored."""
    return datetime.now(timezone.utc).replace(tzinfo=None)


def community_key(host: str) -> str:
    return f"{host}/community"


def pinned_links_key(community_id: int) -> str:
    return f"{community_id}/pinned_links"


def hot_questions_key(community_id: int) -> str:
    return f"{community_id}/hot_questions"


def header_categories_key(community_id: int) -> str:
    return f"{community_id}/header_categories"


class ReferenceData:
    """Cache-or-compute access to the reference data every page needs."""

    def __init__(
        self,
        session: AsyncSession,
        cache: CacheStore,
        settings: Settings,
        metrics: PrometheusRequestMetrics | None = None,
    ) -> None:
        self._session = session
        self._cache = cache
        self._settings = settings
        self._metrics = metrics or PrometheusRequestMetrics()

    def _timed(self, kind: str, loader: Callable[[], Awaitable[Any]]) -> Callable[[], Awaitable[Any]]:
        """Wrap a loader so cache misses are counted and timed."""

        async def timed_loader() -> Any:
            start = time.monotonic()
            try:
                return await loader()
            finally:
                latency_ms = (time.monotonic() - start) * 1000
                self._metrics.record_cache_fill(kind, latency_ms)

        return timed_loader

    async def community_for_host(self, host: str) -> CommunitySnapshot | None:
        """Resolve the community whose host matches exactly (port included)."""

        async def load() -> dict[str, Any] | None:
            result = await self._session.execute(select(Community).where(Community.host == host))
            community = result.scalar_one_or_none()
            if community is None:
                return None
            return CommunitySnapshot.model_validate(community).model_dump(mode="json")

        data = await self._cache.fetch(
            community_key(host), self._settings.community_cache_ttl, self._timed("community", load)
        )
        return CommunitySnapshot.model_validate(data) if data is not None else None

    async def pinned_links(self, community_id: int) -> list[PinnedLinkSnapshot]:
        """Active pinned links for the community, including global ones."""

        async def load() -> list[dict[str, Any]]:
            result = await self._session.execute(select_pinned_links(community_id, utcnow()))
            links = result.scalars().all()
            return pinned_links_adapter.dump_python(
                [PinnedLinkSnapshot.model_validate(link) for link in links], mode="json"
            )

        data = await self._cache.fetch(
            pinned_links_key(community_id),
            self._settings.pinned_links_cache_ttl,
            self._timed("pinned_links", load),
        )
        return pinned_links_adapter.validate_python(data)

    async def hot_questions(self, community_id: int) -> list[HotQuestionSnapshot]:
        """Top scoring recent questions and articles."""

        async def load() -> list[dict[str, Any]]:
            count = await get_site_setting(
                self._session,
                "HotQuestionsCount",
                community_id,
                self._settings.hot_questions_count_default,
            )
            threshold = await get_site_setting(
                self._session,
                "HotPostsScoreThreshold",
                community_id,
                self._settings.hot_posts_score_threshold_default,
            )
            now = utcnow()
            since = now - timedelta(days=self._settings.hot_questions_window_days)

            result = await self._session.execute(
                select_hot_questions(community_id, since, now, float(threshold), int(count))
            )
            posts = result.scalars().all()
            return hot_questions_adapter.dump_python(
                [HotQuestionSnapshot.model_validate(post) for post in posts], mode="json"
            )

        data = await self._cache.fetch(
            hot_questions_key(community_id),
            self._settings.hot_questions_cache_ttl,
            self._timed("hot_questions", load),
        )
        return hot_questions_adapter.validate_python(data)

    async def header_categories(self, community_id: int) -> list[CategorySnapshot]:
        """Categories in header order. Never expires; invalidate on category changes."""

        async def load() -> list[dict[str, Any]]:
            result = await self._session.execute(select_categories(community_id))
            categories = result.scalars().all()
            return categories_adapter.dump_python(
                [CategorySnapshot.model_validate(category) for category in categories],
                mode="json",
            )

        data = await self._cache.fetch(
            header_categories_key(community_id), None, self._timed("header_categories", load)
        )
        return categories_adapter.validate_python(data)
