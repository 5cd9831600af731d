"""Post API endpoints — posts, likes and comments under /api/posts."""

from __future__ import annotations

import uuid

from fastapi import APIRouter, Depends, HTTPException, Query
from sqlalchemy.ext.asyncio import AsyncSession

from friendzi.auth.dependencies import get_current_user
from friendzi.database import get_session
from friendzi.db.models import User
from friendzi.errors import ServiceError
from friendzi.pagination import total_pages
from friendzi.posts.schemas import (
    CommentEnvelope,
    CommentListResponse,
    CommentResponse,
    CreateCommentRequest,
    CreatePostRequest,
    LikeResponse,
    PostEnvelope,
    PostListResponse,
    UpdatePostRequest,
)
from friendzi.posts.service import (
    add_comment,
    build_post_responses,
    create_post,
    delete_comment,
    delete_post,
    get_post,
    like_post,
    liked_post_ids,
    list_comments,
    list_feed,
    list_trending,
    post_response,
    unlike_post,
    update_post,
)
from friendzi.schemas import SuccessResponse

router = APIRouter(prefix="/api/posts", tags=["Posts"])


# ── Posts ──


@router.post("", response_model=PostEnvelope, status_code=201)
async def create_post_endpoint(
    body: CreatePostRequest,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_session),
):
    """Publish a post (text, image, or both)."""
    try:
        post = await create_post(db, user.id, body.content, body.image_url)
    except ServiceError as e:
        raise HTTPException(status_code=e.status_code, detail=str(e)) from e
    await db.commit()
    return PostEnvelope(message="Post created", post=post_response(post))


@router.get("", response_model=PostListResponse)
async def feed_endpoint(
    type: str = Query("all"),  # noqa: A002
    page: int = Query(1, ge=1),
    limit: int = Query(10, ge=1, le=100),
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_session),
):
    """News feed: every post (``type=all``) or followed users plus self (``type=following``)."""
    try:
        posts, total = await list_feed(db, user.id, type, page, limit)
    except ServiceError as e:
        raise HTTPException(status_code=e.status_code, detail=str(e)) from e
    return PostListResponse(
        posts=await build_post_responses(db, posts, viewer_id=user.id),
        total_count=total,
        current_page=page,
        total_pages=total_pages(total, limit),
    )


@router.get("/trending", response_model=PostListResponse)
async def trending_endpoint(
    page: int = Query(1, ge=1),
    limit: int = Query(10, ge=1, le=100),
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_session),
):
    """Most-liked recent posts."""
    posts, total = await list_trending(db, page, limit)
    return PostListResponse(
        posts=await build_post_responses(db, posts, viewer_id=user.id),
        total_count=total,
        current_page=page,
        total_pages=total_pages(total, limit),
    )


@router.get("/{post_id}", response_model=PostEnvelope)
async def get_post_endpoint(
    post_id: uuid.UUID,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_session),
):
    try:
        post = await get_post(db, post_id)
    except ServiceError as e:
        raise HTTPException(status_code=e.status_code, detail=str(e)) from e
    liked = await liked_post_ids(db, user.id, [post.id])
    return PostEnvelope(post=post_response(post, user_liked=post.id in liked))


@router.put("/{post_id}", response_model=PostEnvelope)
async def update_post_endpoint(
    post_id: uuid.UUID,
    body: UpdatePostRequest,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_session),
):
    """Edit your own post."""
    try:
        post = await update_post(db, post_id, user.id, body.content, body.image_url)
    except ServiceError as e:
        raise HTTPException(status_code=e.status_code, detail=str(e)) from e
    await db.commit()
    liked = await liked_post_ids(db, user.id, [post.id])
    return PostEnvelope(message="Post updated", post=post_response(post, user_liked=post.id in liked))


@router.delete("/{post_id}", response_model=SuccessResponse)
async def delete_post_endpoint(
    post_id: uuid.UUID,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_session),
):
    """Delete your own post, with its likes and comments."""
    try:
        await delete_post(db, post_id, user.id)
    except ServiceError as e:
        raise HTTPException(status_code=e.status_code, detail=str(e)) from e
    await db.commit()
    return SuccessResponse(message="Post deleted")


# ── Likes ──


@router.post("/{post_id}/like", response_model=LikeResponse)
async def like_endpoint(
    post_id: uuid.UUID,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_session),
):
    try:
        post = await like_post(db, post_id, user.id)
    except ServiceError as e:
        raise HTTPException(status_code=e.status_code, detail=str(e)) from e
    await db.commit()
    return LikeResponse(message="Post liked", likes_count=post.likes_count)


@router.delete("/{post_id}/like", response_model=LikeResponse)
async def unlike_endpoint(
    post_id: uuid.UUID,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_session),
):
    try:
        post = await unlike_post(db, post_id, user.id)
    except ServiceError as e:
        raise HTTPException(status_code=e.status_code, detail=str(e)) from e
    await db.commit()
    return LikeResponse(message="Post unliked", likes_count=post.likes_count)


# ── Comments ──


@router.post("/{post_id}/comments", response_model=CommentEnvelope, status_code=201)
async def add_comment_endpoint(
    post_id: uuid.UUID,
    body: CreateCommentRequest,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_session),
):
    try:
        comment = await add_comment(db, post_id, user.id, body.content)
    except ServiceError as e:
        raise HTTPException(status_code=e.status_code, detail=str(e)) from e
    await db.commit()
    return CommentEnvelope(message="Comment added", comment=CommentResponse.model_validate(comment))


@router.get("/{post_id}/comments", response_model=CommentListResponse)
async def list_comments_endpoint(
    post_id: uuid.UUID,
    page: int = Query(1, ge=1),
    limit: int = Query(20, ge=1, le=100),
    _user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_session),
):
    try:
        comments, total = await list_comments(db, post_id, page, limit)
    except ServiceError as e:
        raise HTTPException(status_code=e.status_code, detail=str(e)) from e
    return CommentListResponse(
        comments=[CommentResponse.model_validate(c) for c in comments],
        total_count=total,
        current_page=page,
        total_pages=total_pages(total, limit),
    )


@router.delete("/{post_id}/comments/{comment_id}", response_model=SuccessResponse)
async def delete_comment_endpoint(
    post_id: uuid.UUID,
    comment_id: uuid.UUID,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_session),
):
    try:
        await delete_comment(db, post_id, comment_id, user.id)
    except ServiceError as e:
        raise HTTPException(status_code=e.status_code, detail=str(e)) from e
    await db.commit()
    return SuccessResponse(message="Comment deleted")
