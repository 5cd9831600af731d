"""User profile and directory business logic."""

from __future__ import annotations

import uuid
from typing import TYPE_CHECKING, Any

import structlog
from sqlalchemy import func, or_, select

from friendzi.config import get_settings
from friendzi.db.models import Follow, Post, User
from friendzi.errors import NotFound, ValidationFailed

if TYPE_CHECKING:
    from sqlalchemy.ext.asyncio import AsyncSession

logger = structlog.get_logger()


async def get_user(db: AsyncSession, user_id: uuid.UUID) -> User:
    """Fetch a user or raise NotFound."""
    result = await db.execute(select(User).where(User.id == user_id))
    user = result.scalar_one_or_none()
    if user is None:
        msg = "User not found"
        raise NotFound(msg)
    return user


async def update_profile(
    db: AsyncSession,
    user: User,
    full_name: str | None = None,
    bio: str | None = None,
    avatar_url: str | None = None,
) -> User:
    """Update whichever profile fields were provided."""
    if full_name is not None:
        user.full_name = full_name
    if bio is not None:
        user.bio = bio
    if avatar_url is not None:
        user.avatar_url = avatar_url

    await db.flush()
    await db.refresh(user)
    return user


async def get_public_profile(
    db: AsyncSession,
    user_id: uuid.UUID,
    viewer_id: uuid.UUID | None = None,
) -> dict[str, Any]:
    """
    Build a profile view of ``user_id`` as seen by ``viewer_id``.

    Follower/following tallies come from the denormalized counters; the post
    count is computed.
    """
    user = await get_user(db, user_id)

    posts_count = (
        await db.execute(select(func.count()).select_from(Post).where(Post.user_id == user_id))
    ).scalar_one()

    is_following = False
    if viewer_id is not None and viewer_id != user_id:
        is_following = await is_following_user(db, viewer_id, user_id)

    return {
        "id": user.id,
        "username": user.username,
        "full_name": user.full_name,
        "avatar_url": user.avatar_url,
        "bio": user.bio,
        "is_verified": user.is_verified,
        "is_online": user.is_online,
        "last_seen": user.last_seen,
        "created_at": user.created_at,
        "followers_count": user.followers_count,
        "following_count": user.following_count,
        "posts_count": posts_count,
        "is_following": is_following,
    }


async def is_following_user(db: AsyncSession, follower_id: uuid.UUID, following_id: uuid.UUID) -> bool:
    result = await db.execute(
        select(Follow.id)
        .where(Follow.follower_id == follower_id)
        .where(Follow.following_id == following_id)
    )
    return result.first() is not None


async def search_users(db: AsyncSession, query: str) -> list[User]:
    """Case-insensitive substring match on username or full name."""
    term = (query or "").strip()
    if not term:
        msg = "Search query is required"
        raise ValidationFailed(msg)

    pattern = f"%{term}%"
    result = await db.execute(
        select(User)
        .where(or_(User.username.ilike(pattern), User.full_name.ilike(pattern)))
        .order_by(User.username)
        .limit(get_settings().search_result_limit)
    )
    return list(result.scalars().all())


async def list_online_users(db: AsyncSession) -> list[User]:
    result = await db.execute(
        select(User)
        .where(User.is_online.is_(True))
        .order_by(User.last_seen.desc())
        .limit(get_settings().search_result_limit)
    )
    return list(result.scalars().all())
