"""Request/response schemas for user endpoints."""

from __future__ import annotations

import uuid
from datetime import datetime

from pydantic import BaseModel, ConfigDict, Field

from friendzi.schemas import PaginatedResponse, SuccessResponse


# ---------------------------------------------------------------------------
# Projections
# ---------------------------------------------------------------------------


class UserSummary(BaseModel):
    """Public fields shown next to posts, comments and messages."""

    model_config = ConfigDict(from_attributes=True)

    id: uuid.UUID
    username: str
    full_name: str | None = None
    avatar_url: str | None = None
    is_verified: bool = False


class ParticipantSummary(UserSummary):
    """Public fields plus presence, shown in conversation listings."""

    is_online: bool = False
    last_seen: datetime | None = None


class UserResponse(BaseModel):
    """The caller's own profile, including private fields."""

    model_config = ConfigDict(from_attributes=True)

    id: uuid.UUID
    username: str
    email: str
    full_name: str | None = None
    avatar_url: str | None = None
    bio: str | None = None
    is_verified: bool = False
    is_online: bool = False
    last_seen: datetime | None = None
    followers_count: int = 0
    following_count: int = 0
    created_at: datetime


class PublicProfile(BaseModel):
    """Another user's profile as seen by the caller."""

    id: uuid.UUID
    username: str
    full_name: str | None = None
    avatar_url: str | None = None
    bio: str | None = None
    is_verified: bool = False
    is_online: bool = False
    last_seen: datetime | None = None
    created_at: datetime
    followers_count: int
    following_count: int
    posts_count: int
    is_following: bool


# ---------------------------------------------------------------------------
# Requests
# ---------------------------------------------------------------------------


class ProfileUpdateRequest(BaseModel):
    full_name: str | None = Field(None, max_length=128)
    bio: str | None = Field(None, max_length=280)
    avatar_url: str | None = Field(None, max_length=2048)


# ---------------------------------------------------------------------------
# Envelopes
# ---------------------------------------------------------------------------


class ProfileEnvelope(SuccessResponse):
    user: PublicProfile


class UserEnvelope(SuccessResponse):
    user: UserResponse


class UserListResponse(SuccessResponse):
    users: list[UserSummary]


class FollowersPage(PaginatedResponse):
    followers: list[UserSummary]


class FollowingPage(PaginatedResponse):
    following: list[UserSummary]
