"""Pydantic schemas for direct-messaging endpoints."""

from __future__ import annotations

import uuid
from datetime import datetime

from pydantic import BaseModel, ConfigDict, Field

from friendzi.schemas import PaginatedResponse, SuccessResponse
from friendzi.users.schemas import ParticipantSummary, UserSummary


# --- Requests ---


class StartConversationRequest(BaseModel):
    user_id: uuid.UUID | None = None


class SendMessageRequest(BaseModel):
    content: str | None = Field(None, max_length=5000)


# --- Responses ---


class SenderRef(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: uuid.UUID
    username: str


class LastMessage(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: uuid.UUID
    content: str
    is_read: bool
    created_at: datetime
    sender: SenderRef


class MessageResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: uuid.UUID
    conversation_id: uuid.UUID
    content: str
    is_read: bool
    created_at: datetime
    sender: UserSummary


class ConversationResponse(BaseModel):
    id: uuid.UUID
    last_message_at: datetime
    created_at: datetime
    participants: list[ParticipantSummary]
    last_message: LastMessage | None = None
    unread_count: int = 0


class ConversationEnvelope(SuccessResponse):
    conversation: ConversationResponse


class ConversationListResponse(PaginatedResponse):
    conversations: list[ConversationResponse]


class MessageEnvelope(BaseModel):
    success: bool = True
    message: MessageResponse


class MessageListResponse(PaginatedResponse):
    messages: list[MessageResponse]


class MarkReadResponse(SuccessResponse):
    marked_count: int
