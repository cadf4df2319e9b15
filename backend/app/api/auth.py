"""Signed-in user resolution.

Sign-in itself is handled elsewhere; it leaves the user id in the signed
session cookie under "user_id".
"""

from fastapi import Request
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from backend.app.db.models import CommunityUser, User, UserPrivilege
from backend.app.db.queries import select_community_user
from backend.app.models.users import SignedInUser

SESSION_USER_KEY = "user_id"


async def get_signed_in_user_id(request: Request) -> int | None:
    """Extract the signed-in user id from the session.

    Args:
        request: Current request (SessionMiddleware must be installed)

    Returns:
        User id, or None when nobody is signed in or the value is malformed
    """
    raw = request.session.get(SESSION_USER_KEY)
    if raw is None:
        return None

    try:
        return int(raw)
    except (TypeError, ValueError):
        return None


async def ensure_community_user(
    session: AsyncSession, community_id: int, user_id: int
) -> CommunityUser:
    """Return the user's membership in the community, creating it on first visit."""
    result = await session.execute(select_community_user(community_id, user_id))
    community_user = result.scalar_one_or_none()

    if community_user is None:
        community_user = CommunityUser(community_id=community_id, user_id=user_id)
        session.add(community_user)
        await session.commit()

    return community_user


async def load_signed_in_user(
    session: AsyncSession, user_id: int, community_id: int
) -> SignedInUser | None:
    """Load a user with their roles in the given community.

    Args:
        session: Database session
        user_id: Id from the session cookie
        community_id: Resolved community

    Returns:
        SignedInUser, or None if the account no longer exists
    """
    result = await session.execute(select(User).where(User.id == user_id))
    user = result.scalar_one_or_none()
    if user is None:
        return None

    community_user = await ensure_community_user(session, community_id, user.id)

    return SignedInUser(
        id=user.id,
        username=user.username,
        email=user.email,
        is_global_admin=user.is_global_admin,
        is_global_moderator=user.is_global_moderator,
        community_user_id=community_user.id,
        is_community_admin=community_user.is_admin,
        is_community_moderator=community_user.is_moderator,
    )


async def has_privilege(session: AsyncSession, user: SignedInUser, privilege_id: int) -> bool:
    """Whether the user holds a privilege in the current community.

    Moderators and admins hold every privilege.
    """
    if user.is_moderator or user.is_admin:
        return True
    if user.community_user_id is None:
        return False

    result = await session.execute(
        select(UserPrivilege.id).where(
            UserPrivilege.community_user_id == user.community_user_id,
            UserPrivilege.privilege_id == privilege_id,
        )
    )
    return result.first() is not None
