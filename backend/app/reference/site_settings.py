"""Typed lookup of per-community site settings."""

import logging
from typing import Any

from sqlalchemy import or_, select
from sqlalchemy.ext.asyncio import AsyncSession

from backend.app.db.models import SiteSetting

logger = logging.getLogger(__name__)


def typed_value(setting: SiteSetting) -> Any:
    """Convert a stored setting value to its declared type.

    Raises:
        ValueError: If the value does not parse as its declared type
    """
    value = setting.value
    if value is None:
        return None

    if setting.value_type == "integer":
        return int(value)
    if setting.value_type == "float":
        return float(value)
    if setting.value_type == "boolean":
        return value.strip().lower() in ("true", "1", "yes")
    return value


async def get_site_setting(
    session: AsyncSession, name: str, community_id: int | None, default: Any = None
) -> Any:
    """Look up a setting, preferring the community row over the global one.

    Args:
        session: Database session
        name: Setting name (e.g. "HotQuestionsCount")
        community_id: Current community, or None for global only
        default: Returned when no row exists or the row has no value

    Returns:
        Typed setting value
    """
    query = select(SiteSetting).where(
        SiteSetting.name == name,
        or_(SiteSetting.community_id == community_id, SiteSetting.community_id.is_(None)),
    )
    result = await session.execute(query)
    rows = result.scalars().all()

    # Community-specific rows win over global ones
    rows = sorted(rows, key=lambda row: row.community_id is None)
    for row in rows:
        try:
            value = typed_value(row)
        except ValueError:
            logger.warning(
                f"Ignoring malformed site setting {name}={row.value!r} "
                f"(community #{row.community_id}, type {row.value_type})"
            )
            continue
        if value is not None:
            return value

    return default
