"""User router — all /api/users/* endpoints."""

from __future__ import annotations

import uuid

from fastapi import APIRouter, Depends, HTTPException, Query
from sqlalchemy.ext.asyncio import AsyncSession

from friendzi.auth.dependencies import get_current_user
from friendzi.database import get_session
from friendzi.db.models import User
from friendzi.errors import ServiceError
from friendzi.pagination import total_pages
from friendzi.posts.schemas import PostListResponse
from friendzi.posts.service import build_post_responses, list_user_posts
from friendzi.schemas import SuccessResponse
from friendzi.users.follow_service import follow_user, list_followers, list_following, unfollow_user
from friendzi.users.schemas import (
    FollowersPage,
    FollowingPage,
    ProfileEnvelope,
    ProfileUpdateRequest,
    PublicProfile,
    UserEnvelope,
    UserListResponse,
    UserResponse,
    UserSummary,
)
from friendzi.users.service import get_public_profile, list_online_users, search_users, update_profile

router = APIRouter(prefix="/api/users", tags=["Users"])


# ---------------------------------------------------------------------------
# Own profile
# ---------------------------------------------------------------------------


@router.get("/profile", response_model=ProfileEnvelope)
async def get_own_profile(
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_session),
) -> ProfileEnvelope:
    """Get own profile with follower/following/post counts."""
    profile = await get_public_profile(db, user.id, viewer_id=user.id)
    return ProfileEnvelope(user=PublicProfile(**profile))


@router.put("/profile", response_model=UserEnvelope)
async def update_own_profile(
    body: ProfileUpdateRequest,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_session),
) -> UserEnvelope:
    """Update profile (full_name, bio, avatar_url)."""
    user = await update_profile(
        db,
        user,
        full_name=body.full_name,
        bio=body.bio,
        avatar_url=body.avatar_url,
    )
    await db.commit()
    return UserEnvelope(message="Profile updated", user=UserResponse.model_validate(user))


# ---------------------------------------------------------------------------
# Directory
# ---------------------------------------------------------------------------


@router.get("/search", response_model=UserListResponse)
async def search(
    q: str | None = Query(None, max_length=64),
    _user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_session),
) -> UserListResponse:
    """Search users by username or full name."""
    try:
        users = await search_users(db, q or "")
    except ServiceError as e:
        raise HTTPException(status_code=e.status_code, detail=str(e)) from e
    return UserListResponse(users=[UserSummary.model_validate(u) for u in users])


@router.get("/online", response_model=UserListResponse)
async def online(
    _user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_session),
) -> UserListResponse:
    """List users currently online."""
    users = await list_online_users(db)
    return UserListResponse(users=[UserSummary.model_validate(u) for u in users])


# ---------------------------------------------------------------------------
# Other users
# ---------------------------------------------------------------------------


@router.get("/{user_id}", response_model=ProfileEnvelope)
async def get_profile(
    user_id: uuid.UUID,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_session),
) -> ProfileEnvelope:
    """Get a user's profile, with whether the caller follows them."""
    try:
        profile = await get_public_profile(db, user_id, viewer_id=user.id)
    except ServiceError as e:
        raise HTTPException(status_code=e.status_code, detail=str(e)) from e
    return ProfileEnvelope(user=PublicProfile(**profile))


@router.post("/{user_id}/follow", response_model=SuccessResponse)
async def follow(
    user_id: uuid.UUID,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_session),
) -> SuccessResponse:
    """Follow a user."""
    try:
        await follow_user(db, user.id, user_id)
    except ServiceError as e:
        raise HTTPException(status_code=e.status_code, detail=str(e)) from e
    await db.commit()
    return SuccessResponse(message="You are now following this user")


@router.delete("/{user_id}/follow", response_model=SuccessResponse)
async def unfollow(
    user_id: uuid.UUID,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_session),
) -> SuccessResponse:
    """Stop following a user."""
    try:
        await unfollow_user(db, user.id, user_id)
    except ServiceError as e:
        raise HTTPException(status_code=e.status_code, detail=str(e)) from e
    await db.commit()
    return SuccessResponse(message="You are no longer following this user")


@router.get("/{user_id}/followers", response_model=FollowersPage)
async def followers(
    user_id: uuid.UUID,
    page: int = Query(1, ge=1),
    limit: int = Query(20, ge=1, le=100),
    _user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_session),
) -> FollowersPage:
    """List a user's followers (paginated)."""
    try:
        users, total = await list_followers(db, user_id, page, limit)
    except ServiceError as e:
        raise HTTPException(status_code=e.status_code, detail=str(e)) from e
    return FollowersPage(
        followers=[UserSummary.model_validate(u) for u in users],
        total_count=total,
        current_page=page,
        total_pages=total_pages(total, limit),
    )


@router.get("/{user_id}/following", response_model=FollowingPage)
async def following(
    user_id: uuid.UUID,
    page: int = Query(1, ge=1),
    limit: int = Query(20, ge=1, le=100),
    _user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_session),
) -> FollowingPage:
    """List the users someone follows (paginated)."""
    try:
        users, total = await list_following(db, user_id, page, limit)
    except ServiceError as e:
        raise HTTPException(status_code=e.status_code, detail=str(e)) from e
    return FollowingPage(
        following=[UserSummary.model_validate(u) for u in users],
        total_count=total,
        current_page=page,
        total_pages=total_pages(total, limit),
    )


@router.get("/{user_id}/posts", response_model=PostListResponse)
async def user_posts(
    user_id: uuid.UUID,
    page: int = Query(1, ge=1),
    limit: int = Query(10, ge=1, le=100),
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_session),
) -> PostListResponse:
    """List a user's posts, newest first."""
    try:
        posts, total = await list_user_posts(db, user_id, page, limit)
    except ServiceError as e:
        raise HTTPException(status_code=e.status_code, detail=str(e)) from e
    return PostListResponse(
        posts=await build_post_responses(db, posts, viewer_id=user.id),
        total_count=total,
        current_page=page,
        total_pages=total_pages(total, limit),
    )
