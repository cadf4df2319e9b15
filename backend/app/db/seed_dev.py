"""Dev seeding helper - a localhost community with header categories."""

import asyncio

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from backend.app.db.engine import get_async_engine
from backend.app.db.models import Category, Community, SiteSetting

DEV_COMMUNITY_HOST = "localhost:8000"
DEV_CATEGORIES = ("Q&A", "Meta")
DEV_SITE_SETTINGS = {
    "HotQuestionsCount": ("20", "integer"),
    "HotPostsScoreThreshold": ("0.5", "float"),
}


async def seed_dev_community() -> None:
    """Seed the dev community served at DEV_COMMUNITY_HOST.

    This function is idempotent - safe to run multiple times.
    Creates:
    - Community for DEV_COMMUNITY_HOST if it doesn't exist
    - Its header categories
    - Global hot-question settings
    """
    async with AsyncSession(get_async_engine()) as session:
        result = await session.execute(
            select(Community).where(Community.host == DEV_COMMUNITY_HOST)
        )
        community = result.scalar_one_or_none()

        if community is not None:
            print(f"Dev community already exists: {community.name}")
            return

        print(f"Creating dev community for {DEV_COMMUNITY_HOST}...")
        community = Community(name="Dev Community", host=DEV_COMMUNITY_HOST)
        session.add(community)
        await session.flush()

        for sequence, name in enumerate(DEV_CATEGORIES):
            session.add(Category(community_id=community.id, name=name, sequence=sequence))

        for name, (value, value_type) in DEV_SITE_SETTINGS.items():
            session.add(SiteSetting(name=name, value=value, value_type=value_type))

        await session.commit()
        print("✅ Dev seeding complete")


if __name__ == "__main__":
    asyncio.run(seed_dev_community())
