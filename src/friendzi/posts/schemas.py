"""Pydantic schemas for post, like and comment endpoints."""

from __future__ import annotations

import uuid
from datetime import datetime

from pydantic import BaseModel, ConfigDict, Field

from friendzi.schemas import PaginatedResponse, SuccessResponse
from friendzi.users.schemas import UserSummary


# --- Requests ---


class CreatePostRequest(BaseModel):
    content: str | None = Field(None, max_length=5000)
    image_url: str | None = Field(None, max_length=2048)


class UpdatePostRequest(BaseModel):
    content: str | None = Field(None, max_length=5000)
    image_url: str | None = Field(None, max_length=2048)


class CreateCommentRequest(BaseModel):
    content: str = Field(..., max_length=2000)


# --- Responses ---


class PostResponse(BaseModel):
    id: uuid.UUID
    content: str | None = None
    image_url: str | None = None
    likes_count: int
    comments_count: int
    created_at: datetime
    updated_at: datetime
    author: UserSummary
    user_liked: bool = False


class CommentResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: uuid.UUID
    post_id: uuid.UUID
    content: str
    created_at: datetime
    author: UserSummary


class PostEnvelope(SuccessResponse):
    post: PostResponse


class PostListResponse(PaginatedResponse):
    posts: list[PostResponse]


class LikeResponse(SuccessResponse):
    likes_count: int


class CommentEnvelope(SuccessResponse):
    comment: CommentResponse


class CommentListResponse(PaginatedResponse):
    comments: list[CommentResponse]
