"""Tenancy-safe query helpers.

Every community-owned table is read through one of these so the resolved
community id is always part of the WHERE clause.
"""

from datetime import datetime

from sqlalchemy import Select, func, or_, select

from backend.app.db.models import (
    BlockedItem,
    Category,
    CommunityUser,
    Flag,
    ModWarning,
    PinnedLink,
    Post,
)

HOT_POST_TYPES = ("question", "article")


def select_categories(community_id: int) -> Select:
    """Categories of a community in header order."""
    return (
        select(Category)
        .where(Category.community_id == community_id)
        .order_by(Category.sequence.asc(), Category.id.asc())
    )


def select_pinned_links(community_id: int, now: datetime) -> Select:
    """Active, unexpired pinned links for a community plus global ones."""
    return select(PinnedLink).where(
        or_(PinnedLink.community_id == community_id, PinnedLink.community_id.is_(None)),
        PinnedLink.active.is_(True),
        or_(PinnedLink.shown_before.is_(None), PinnedLink.shown_before > now),
    )


def select_hot_questions(
    community_id: int,
    since: datetime,
    until: datetime,
    score_threshold: float,
    limit: int,
) -> Select:
    """Highest scoring recent questions and articles in hot-post categories."""
    return (
        select(Post)
        .join(Category, Post.category_id == Category.id)
        .where(
            Post.community_id == community_id,
            Post.deleted.is_(False),
            Post.last_activity >= since,
            Post.last_activity <= until,
            Post.post_type.in_(HOT_POST_TYPES),
            Category.use_for_hot_posts.is_(True),
            Post.score >= score_threshold,
        )
        .order_by(Post.score.desc())
        .limit(limit)
    )


def count_unhandled_flags(community_id: int) -> Select:
    """Number of flags in a community no moderator has handled yet."""
    return (
        select(func.count())
        .select_from(Flag)
        .where(Flag.community_id == community_id, Flag.status.is_(None))
    )


def select_community_user(community_id: int, user_id: int) -> Select:
    """Membership row of a user in a community."""
    return select(CommunityUser).where(
        CommunityUser.community_id == community_id, CommunityUser.user_id == user_id
    )


def select_pending_warnings(community_user_id: int, now: datetime) -> Select:
    """Active warnings, excluding suspensions that already ended."""
    return select(ModWarning).where(
        ModWarning.community_user_id == community_user_id,
        ModWarning.active.is_(True),
        or_(ModWarning.suspension_end.is_(None), ModWarning.suspension_end > now),
    )


def select_active_blocks(ip: str, email: str, email_domain: str, now: datetime) -> Select:
    """Unexpired block entries matching an IP, an email or an email domain."""
    return (
        select(BlockedItem)
        .where(
            or_(BlockedItem.expires.is_(None), BlockedItem.expires > now),
            or_(
                (BlockedItem.item_type == "ip") & (BlockedItem.value == ip),
                (BlockedItem.item_type == "email") & (BlockedItem.value == email),
                (BlockedItem.item_type == "email_host") & (BlockedItem.value == email_domain),
            ),
        )
        .order_by(BlockedItem.id.asc())
    )
