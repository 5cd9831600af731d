"""Direct-messaging endpoints under /api/messages."""

from __future__ import annotations

import uuid

from fastapi import APIRouter, Depends, HTTPException, Query
from sqlalchemy.ext.asyncio import AsyncSession

from friendzi.auth.dependencies import get_current_user
from friendzi.database import get_session
from friendzi.db.models import User
from friendzi.errors import ServiceError
from friendzi.messaging.schemas import (
    ConversationEnvelope,
    ConversationListResponse,
    ConversationResponse,
    LastMessage,
    MarkReadResponse,
    MessageEnvelope,
    MessageListResponse,
    MessageResponse,
    SendMessageRequest,
    StartConversationRequest,
)
from friendzi.messaging.service import (
    ConversationView,
    build_conversation_view,
    get_or_create_conversation,
    list_conversations,
    list_messages,
    mark_conversation_read,
    send_message,
)
from friendzi.pagination import total_pages
from friendzi.users.schemas import ParticipantSummary

router = APIRouter(prefix="/api/messages", tags=["Messages"])


def _conversation_response(view: ConversationView) -> ConversationResponse:
    return ConversationResponse(
        id=view.conversation.id,
        last_message_at=view.conversation.last_message_at,
        created_at=view.conversation.created_at,
        participants=[ParticipantSummary.model_validate(u) for u in view.participants],
        last_message=LastMessage.model_validate(view.last_message) if view.last_message else None,
        unread_count=view.unread_count,
    )


@router.post("/conversations", response_model=ConversationEnvelope)
async def start_conversation(
    body: StartConversationRequest,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_session),
) -> ConversationEnvelope:
    """Open (or reuse) the one conversation between the caller and ``user_id``."""
    try:
        conversation, created = await get_or_create_conversation(db, user.id, body.user_id)
        view = await build_conversation_view(db, conversation, user.id)
    except ServiceError as e:
        raise HTTPException(status_code=e.status_code, detail=str(e)) from e
    await db.commit()
    return ConversationEnvelope(
        message="Conversation created" if created else "Conversation found",
        conversation=_conversation_response(view),
    )


@router.get("/conversations", response_model=ConversationListResponse)
async def list_conversations_endpoint(
    page: int = Query(1, ge=1),
    limit: int = Query(20, ge=1, le=100),
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_session),
) -> ConversationListResponse:
    """The caller's conversations, most recent activity first."""
    views, total = await list_conversations(db, user.id, page, limit)
    return ConversationListResponse(
        conversations=[_conversation_response(v) for v in views],
        total_count=total,
        current_page=page,
        total_pages=total_pages(total, limit),
    )


@router.get("/conversations/{conversation_id}", response_model=MessageListResponse)
async def get_messages_endpoint(
    conversation_id: uuid.UUID,
    page: int = Query(1, ge=1),
    limit: int = Query(20, ge=1, le=100),
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_session),
) -> MessageListResponse:
    """
    A page of messages, newest first.

    Side effect: fetching marks the conversation read for the caller. Once
    the page has been read and that transaction closed, a second transaction
    flags every unread message from the other participant as read and resets
    the caller's unread_count to 0. The returned page shows the messages as
    they were before that marking.
    """
    try:
        messages, total = await list_messages(db, conversation_id, user.id, page, limit)
    except ServiceError as e:
        raise HTTPException(status_code=e.status_code, detail=str(e)) from e

    response = MessageListResponse(
        messages=[MessageResponse.model_validate(m) for m in messages],
        total_count=total,
        current_page=page,
        total_pages=total_pages(total, limit),
    )
    await db.commit()

    await mark_conversation_read(db, conversation_id, user.id)
    await db.commit()
    return response


@router.post("/conversations/{conversation_id}", response_model=MessageEnvelope, status_code=201)
async def send_message_endpoint(
    conversation_id: uuid.UUID,
    body: SendMessageRequest,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_session),
) -> MessageEnvelope:
    try:
        message = await send_message(db, conversation_id, user.id, body.content)
    except ServiceError as e:
        raise HTTPException(status_code=e.status_code, detail=str(e)) from e
    await db.commit()
    return MessageEnvelope(message=MessageResponse.model_validate(message))


@router.put("/conversations/{conversation_id}/read", response_model=MarkReadResponse)
async def mark_read_endpoint(
    conversation_id: uuid.UUID,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_session),
) -> MarkReadResponse:
    """Mark the conversation read without fetching its messages."""
    try:
        marked = await mark_conversation_read(db, conversation_id, user.id)
    except ServiceError as e:
        raise HTTPException(status_code=e.status_code, detail=str(e)) from e
    await db.commit()
    return MarkReadResponse(message="Conversation marked as read", marked_count=marked)
