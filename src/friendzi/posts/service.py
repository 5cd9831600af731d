"""Post, like and comment business logic.

Rules:
- A post needs text or an image (or both)
- Only the author may edit or delete a post; only a comment's author may delete it
- One like per (user, post)
- likes_count / comments_count move in the same transaction as the Like/Comment row
"""

from __future__ import annotations

import uuid
from datetime import datetime, timedelta, timezone

import structlog
from sqlalchemy import delete, select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from friendzi.config import get_settings
from friendzi.db import counters
from friendzi.db.models import Comment, Like, Post
from friendzi.errors import Conflict, NotFound, ValidationFailed
from friendzi.pagination import paginate
from friendzi.posts.schemas import PostResponse
from friendzi.users.follow_service import following_ids
from friendzi.users.schemas import UserSummary
from friendzi.users.service import get_user

logger = structlog.get_logger()

FEED_TYPES = ("all", "following")


def _clean(value: str | None) -> str | None:
    if value is None:
        return None
    value = value.strip()
    return value or None


# ---------------------------------------------------------------------------
# Posts
# ---------------------------------------------------------------------------


async def get_post(db: AsyncSession, post_id: uuid.UUID) -> Post:
    """Fetch a post (with author) or raise NotFound."""
    result = await db.execute(select(Post).where(Post.id == post_id))
    post = result.scalar_one_or_none()
    if post is None:
        msg = "Post not found"
        raise NotFound(msg)
    return post


async def _get_owned_post(db: AsyncSession, post_id: uuid.UUID, user_id: uuid.UUID) -> Post:
    result = await db.execute(select(Post).where(Post.id == post_id).where(Post.user_id == user_id))
    post = result.scalar_one_or_none()
    if post is None:
        msg = "Post not found or not authorized"
        raise NotFound(msg)
    return post


async def create_post(
    db: AsyncSession,
    user_id: uuid.UUID,
    content: str | None = None,
    image_url: str | None = None,
) -> Post:
    """Create a post. At least one of content/image_url must be non-blank."""
    content = _clean(content)
    image_url = _clean(image_url)
    if content is None and image_url is None:
        msg = "A post must contain text or an image"
        raise ValidationFailed(msg)

    post = Post(user_id=user_id, content=content, image_url=image_url)
    db.add(post)
    await db.flush()
    await db.refresh(post, ["author"])

    logger.info("post_created", post_id=str(post.id), user_id=str(user_id))
    return post


async def update_post(
    db: AsyncSession,
    post_id: uuid.UUID,
    user_id: uuid.UUID,
    content: str | None = None,
    image_url: str | None = None,
) -> Post:
    """Replace the fields that were given with non-blank values; others stay."""
    post = await _get_owned_post(db, post_id, user_id)

    content = _clean(content)
    image_url = _clean(image_url)
    if content is not None:
        post.content = content
    if image_url is not None:
        post.image_url = image_url

    await db.flush()
    await db.refresh(post)
    return post


async def delete_post(db: AsyncSession, post_id: uuid.UUID, user_id: uuid.UUID) -> None:
    """Delete a post together with its likes and comments."""
    post = await _get_owned_post(db, post_id, user_id)

    await db.execute(delete(Like).where(Like.post_id == post.id))
    await db.execute(delete(Comment).where(Comment.post_id == post.id))
    await db.delete(post)
    await db.flush()

    logger.info("post_deleted", post_id=str(post_id), user_id=str(user_id))


async def list_feed(
    db: AsyncSession,
    user_id: uuid.UUID,
    feed_type: str = "all",
    page: int = 1,
    limit: int = 10,
) -> tuple[list[Post], int]:
    """
    Newest-first feed.

    ``all`` is every post; ``following`` is posts by the users the caller
    follows plus the caller's own.
    """
    if feed_type not in FEED_TYPES:
        msg = f"Unknown feed type '{feed_type}'"
        raise ValidationFailed(msg)

    query = select(Post).order_by(Post.created_at.desc())
    if feed_type == "following":
        authors = [*await following_ids(db, user_id), user_id]
        query = query.where(Post.user_id.in_(authors))

    return await paginate(db, query, page, limit)


async def list_trending(
    db: AsyncSession,
    page: int = 1,
    limit: int = 10,
) -> tuple[list[Post], int]:
    """Posts from the trending window, most liked, then most commented, then newest."""
    since = datetime.now(timezone.utc) - timedelta(days=get_settings().trending_window_days)
    query = (
        select(Post)
        .where(Post.created_at >= since)
        .order_by(Post.likes_count.desc(), Post.comments_count.desc(), Post.created_at.desc())
    )
    return await paginate(db, query, page, limit)


async def list_user_posts(
    db: AsyncSession,
    user_id: uuid.UUID,
    page: int = 1,
    limit: int = 10,
) -> tuple[list[Post], int]:
    await get_user(db, user_id)
    query = select(Post).where(Post.user_id == user_id).order_by(Post.created_at.desc())
    return await paginate(db, query, page, limit)


async def liked_post_ids(
    db: AsyncSession,
    user_id: uuid.UUID,
    post_ids: list[uuid.UUID],
) -> set[uuid.UUID]:
    """Subset of ``post_ids`` the user has liked."""
    if not post_ids:
        return set()
    result = await db.execute(
        select(Like.post_id).where(Like.user_id == user_id).where(Like.post_id.in_(post_ids))
    )
    return set(result.scalars().all())


def post_response(post: Post, user_liked: bool = False) -> PostResponse:
    return PostResponse(
        id=post.id,
        content=post.content,
        image_url=post.image_url,
        likes_count=post.likes_count,
        comments_count=post.comments_count,
        created_at=post.created_at,
        updated_at=post.updated_at,
        author=UserSummary.model_validate(post.author),
        user_liked=user_liked,
    )


async def build_post_responses(
    db: AsyncSession,
    posts: list[Post],
    viewer_id: uuid.UUID,
) -> list[PostResponse]:
    """Project posts for ``viewer_id``, flagging the ones they liked."""
    liked = await liked_post_ids(db, viewer_id, [p.id for p in posts])
    return [post_response(p, user_liked=p.id in liked) for p in posts]


# ---------------------------------------------------------------------------
# Likes
# ---------------------------------------------------------------------------


async def like_post(db: AsyncSession, post_id: uuid.UUID, user_id: uuid.UUID) -> Post:
    """Like a post. Raises Conflict if the user already liked it."""
    post = await get_post(db, post_id)

    existing = await db.execute(select(Like.id).where(Like.post_id == post_id).where(Like.user_id == user_id))
    if existing.first() is not None:
        msg = "You already liked this post"
        raise Conflict(msg)

    try:
        async with db.begin_nested():
            db.add(Like(post_id=post_id, user_id=user_id))
    except IntegrityError as e:
        msg = "You already liked this post"
        raise Conflict(msg) from e

    await counters.increment(db, Post.likes_count, Post.id == post_id)
    await db.refresh(post)

    logger.info("post_liked", post_id=str(post_id), user_id=str(user_id))
    return post


async def unlike_post(db: AsyncSession, post_id: uuid.UUID, user_id: uuid.UUID) -> Post:
    """Remove a like. Raises ValidationFailed if the user had not liked the post."""
    post = await get_post(db, post_id)

    result = await db.execute(delete(Like).where(Like.post_id == post_id).where(Like.user_id == user_id))
    if result.rowcount == 0:
        msg = "You have not liked this post"
        raise ValidationFailed(msg)

    await counters.decrement(db, Post.likes_count, Post.id == post_id)
    await db.refresh(post)

    logger.info("post_unliked", post_id=str(post_id), user_id=str(user_id))
    return post


# ---------------------------------------------------------------------------
# Comments
# ---------------------------------------------------------------------------


async def add_comment(
    db: AsyncSession,
    post_id: uuid.UUID,
    user_id: uuid.UUID,
    content: str,
) -> Comment:
    """Comment on a post and bump its comments_count."""
    content = _clean(content)
    if content is None:
        msg = "Comment content is required"
        raise ValidationFailed(msg)

    await get_post(db, post_id)

    comment = Comment(post_id=post_id, user_id=user_id, content=content)
    db.add(comment)
    await db.flush()
    await counters.increment(db, Post.comments_count, Post.id == post_id)
    await db.refresh(comment, ["author"])

    logger.info("comment_added", comment_id=str(comment.id), post_id=str(post_id), user_id=str(user_id))
    return comment


async def list_comments(
    db: AsyncSession,
    post_id: uuid.UUID,
    page: int = 1,
    limit: int = 20,
) -> tuple[list[Comment], int]:
    """Comments on a post, newest first."""
    await get_post(db, post_id)
    query = select(Comment).where(Comment.post_id == post_id).order_by(Comment.created_at.desc())
    return await paginate(db, query, page, limit)


async def delete_comment(
    db: AsyncSession,
    post_id: uuid.UUID,
    comment_id: uuid.UUID,
    user_id: uuid.UUID,
) -> None:
    """Delete the caller's own comment and lower the post's comments_count."""
    result = await db.execute(
        delete(Comment)
        .where(Comment.id == comment_id)
        .where(Comment.post_id == post_id)
        .where(Comment.user_id == user_id)
    )
    if result.rowcount == 0:
        msg = "Comment not found or not authorized"
        raise NotFound(msg)

    await counters.decrement(db, Post.comments_count, Post.id == post_id)
    logger.info("comment_deleted", comment_id=str(comment_id), post_id=str(post_id), user_id=str(user_id))
