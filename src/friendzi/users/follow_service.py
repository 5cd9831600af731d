"""Follow graph business logic.

Rules:
- A user cannot follow themself
- At most one edge per (follower, following) pair
- followers_count/following_count on User move with every edge created or removed
"""

from __future__ import annotations

import uuid

import structlog
from sqlalchemy import delete, select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from friendzi.db import counters
from friendzi.db.models import Follow, User
from friendzi.errors import Conflict, ValidationFailed
from friendzi.pagination import paginate
from friendzi.users.service import get_user

logger = structlog.get_logger()


async def follow_user(db: AsyncSession, follower_id: uuid.UUID, target_id: uuid.UUID) -> Follow:
    """Create the follower -> target edge and bump both tallies."""
    if follower_id == target_id:
        msg = "You cannot follow yourself"
        raise ValidationFailed(msg)

    await get_user(db, target_id)

    existing = await db.execute(
        select(Follow.id)
        .where(Follow.follower_id == follower_id)
        .where(Follow.following_id == target_id)
    )
    if existing.first() is not None:
        msg = "You already follow this user"
        raise Conflict(msg)

    follow = Follow(follower_id=follower_id, following_id=target_id)
    try:
        async with db.begin_nested():
            db.add(follow)
    except IntegrityError as e:
        msg = "You already follow this user"
        raise Conflict(msg) from e

    await counters.increment(db, User.followers_count, User.id == target_id)
    await counters.increment(db, User.following_count, User.id == follower_id)

    logger.info("user_followed", follower_id=str(follower_id), following_id=str(target_id))
    return follow


async def unfollow_user(db: AsyncSession, follower_id: uuid.UUID, target_id: uuid.UUID) -> None:
    """Remove the follower -> target edge and lower both tallies."""
    result = await db.execute(
        delete(Follow)
        .where(Follow.follower_id == follower_id)
        .where(Follow.following_id == target_id)
    )
    if result.rowcount == 0:
        msg = "You are not following this user"
        raise ValidationFailed(msg)

    await counters.decrement(db, User.followers_count, User.id == target_id)
    await counters.decrement(db, User.following_count, User.id == follower_id)

    logger.info("user_unfollowed", follower_id=str(follower_id), following_id=str(target_id))


async def list_followers(
    db: AsyncSession,
    user_id: uuid.UUID,
    page: int = 1,
    limit: int = 20,
) -> tuple[list[User], int]:
    """Users following ``user_id``, most recent first."""
    await get_user(db, user_id)
    query = (
        select(User)
        .join(Follow, Follow.follower_id == User.id)
        .where(Follow.following_id == user_id)
        .order_by(Follow.created_at.desc())
    )
    return await paginate(db, query, page, limit)


async def list_following(
    db: AsyncSession,
    user_id: uuid.UUID,
    page: int = 1,
    limit: int = 20,
) -> tuple[list[User], int]:
    """Users ``user_id`` follows, most recent first."""
    await get_user(db, user_id)
    query = (
        select(User)
        .join(Follow, Follow.following_id == User.id)
        .where(Follow.follower_id == user_id)
        .order_by(Follow.created_at.desc())
    )
    return await paginate(db, query, page, limit)


async def following_ids(db: AsyncSession, user_id: uuid.UUID) -> list[uuid.UUID]:
    """IDs of everyone ``user_id`` follows."""
    result = await db.execute(select(Follow.following_id).where(Follow.follower_id == user_id))
    return list(result.scalars().all())
