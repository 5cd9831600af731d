"""Direct-messaging business logic.

Rules:
- One conversation per unordered pair of users. The pair is stored sorted in
  Conversation.user_low_id/user_high_id under a unique constraint, so a
  concurrent duplicate insert fails in the database and the loser re-reads
  the winner's row
- Conversation + both Participant rows are created together or not at all
- Only participants may read or write a conversation
- Sending inserts the message, bumps last_message_at and adds one to every
  other participant's unread_count, all in the caller's transaction
- unread_count is changed only by in-database arithmetic (never read-modify-write)
"""

from __future__ import annotations

import uuid
from dataclasses import dataclass, field
from datetime import datetime, timezone

import structlog
from sqlalchemy import and_, func, select, update
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from friendzi.db import counters
from friendzi.db.models import Conversation, Message, Participant, User
from friendzi.errors import Forbidden, ValidationFailed
from friendzi.pagination import page_offset, paginate
from friendzi.users.service import get_user

logger = structlog.get_logger()


@dataclass
class ConversationView:
    """A conversation as shown to one participant."""

    conversation: Conversation
    participants: list[User] = field(default_factory=list)
    last_message: Message | None = None
    unread_count: int = 0


def pair_key(user_a: uuid.UUID, user_b: uuid.UUID) -> tuple[uuid.UUID, uuid.UUID]:
    """The two ids in canonical (low, high) order."""
    low, high = sorted((user_a, user_b))
    return low, high


# ---------------------------------------------------------------------------
# Conversation lookup / creation
# ---------------------------------------------------------------------------


async def find_pair_conversation(
    db: AsyncSession,
    user_a: uuid.UUID,
    user_b: uuid.UUID,
) -> Conversation | None:
    """The two-party conversation between ``user_a`` and ``user_b``, if any.

    Intersects the conversations each user participates in.
    """
    conversations_of_a = select(Participant.conversation_id).where(Participant.user_id == user_a)
    result = await db.execute(
        select(Conversation)
        .join(Participant, Participant.conversation_id == Conversation.id)
        .where(Participant.user_id == user_b)
        .where(Conversation.id.in_(conversations_of_a))
        .where(Conversation.user_low_id.is_not(None))
        .order_by(Conversation.created_at)
        .limit(1)
    )
    return result.scalar_one_or_none()


async def create_pair_conversation(
    db: AsyncSession,
    user_a: uuid.UUID,
    user_b: uuid.UUID,
) -> tuple[Conversation, bool]:
    """
    Insert a conversation for the pair plus both participants, atomically.

    Runs inside a SAVEPOINT. If another transaction created the pair first,
    the unique pair key rejects this insert; the savepoint is rolled back and
    the existing conversation is returned instead.

    Returns:
        Tuple of (conversation, created).
    """
    low, high = pair_key(user_a, user_b)
    now = datetime.now(timezone.utc)
    conversation = Conversation(user_low_id=low, user_high_id=high, last_message_at=now, created_at=now)

    try:
        async with db.begin_nested():
            db.add(conversation)
            await db.flush()
            db.add_all([
                Participant(conversation_id=conversation.id, user_id=user_a, unread_count=0),
                Participant(conversation_id=conversation.id, user_id=user_b, unread_count=0),
            ])
    except IntegrityError:
        existing = await find_pair_conversation(db, user_a, user_b)
        if existing is None:
            raise
        logger.info("conversation_create_race_lost", conversation_id=str(existing.id))
        return existing, False

    logger.info("conversation_created", conversation_id=str(conversation.id), user_ids=[str(low), str(high)])
    return conversation, True


async def get_or_create_conversation(
    db: AsyncSession,
    user_id: uuid.UUID,
    other_user_id: uuid.UUID | None,
) -> tuple[Conversation, bool]:
    """
    Return the unique conversation between the caller and another user,
    creating it on first contact.

    Raises:
        ValidationFailed: No target given, or the target is the caller.
        NotFound: The target user does not exist.
    """
    if other_user_id is None:
        msg = "user_id is required"
        raise ValidationFailed(msg)
    if other_user_id == user_id:
        msg = "You cannot start a conversation with yourself"
        raise ValidationFailed(msg)

    await get_user(db, other_user_id)

    existing = await find_pair_conversation(db, user_id, other_user_id)
    if existing is not None:
        return existing, False
    return await create_pair_conversation(db, user_id, other_user_id)


async def require_participant(
    db: AsyncSession,
    conversation_id: uuid.UUID,
    user_id: uuid.UUID,
) -> Participant:
    """The caller's Participant row, or Forbidden.

    Unknown conversation ids are reported the same way so ids cannot be probed.
    """
    result = await db.execute(
        select(Participant)
        .where(Participant.conversation_id == conversation_id)
        .where(Participant.user_id == user_id)
    )
    participant = result.scalar_one_or_none()
    if participant is None:
        msg = "You are not a participant in this conversation"
        raise Forbidden(msg)
    return participant


# ---------------------------------------------------------------------------
# Messages
# ---------------------------------------------------------------------------


async def send_message(
    db: AsyncSession,
    conversation_id: uuid.UUID,
    sender_id: uuid.UUID,
    content: str | None,
) -> Message:
    """
    Post a message into a conversation the sender belongs to.

    The message row is written first; the conversation bump and the unread
    increments follow in the same transaction, so no reader can observe a
    bumped conversation without its message once the caller commits.
    """
    if content is None or not content.strip():
        msg = "Message content is required"
        raise ValidationFailed(msg)

    await require_participant(db, conversation_id, sender_id)

    now = datetime.now(timezone.utc)
    message = Message(
        conversation_id=conversation_id,
        sender_id=sender_id,
        content=content,
        is_read=False,
        created_at=now,
    )
    db.add(message)
    await db.flush()

    await db.execute(
        update(Conversation)
        .where(Conversation.id == conversation_id)
        .values(last_message_at=now)
        .execution_options(synchronize_session="fetch")
    )
    await counters.increment(
        db,
        Participant.unread_count,
        Participant.conversation_id == conversation_id,
        Participant.user_id != sender_id,
    )
    await db.refresh(message, ["sender"])

    logger.info("message_sent", message_id=str(message.id), conversation_id=str(conversation_id))
    return message


async def list_messages(
    db: AsyncSession,
    conversation_id: uuid.UUID,
    user_id: uuid.UUID,
    page: int = 1,
    limit: int = 20,
) -> tuple[list[Message], int]:
    """A page of messages, newest first. Pure read; see mark_conversation_read."""
    await require_participant(db, conversation_id, user_id)
    query = (
        select(Message)
        .where(Message.conversation_id == conversation_id)
        .order_by(Message.created_at.desc(), Message.id.desc())
    )
    return await paginate(db, query, page, limit)


async def mark_conversation_read(
    db: AsyncSession,
    conversation_id: uuid.UUID,
    user_id: uuid.UUID,
) -> int:
    """
    Mark every unread message from the other participants as read and reset
    the caller's unread_count to zero.

    Returns the number of messages newly marked read.
    """
    await require_participant(db, conversation_id, user_id)

    result = await db.execute(
        update(Message)
        .where(Message.conversation_id == conversation_id)
        .where(Message.sender_id != user_id)
        .where(Message.is_read.is_(False))
        .values(is_read=True)
        .execution_options(synchronize_session=False)
    )
    await db.execute(
        update(Participant)
        .where(Participant.conversation_id == conversation_id)
        .where(Participant.user_id == user_id)
        .values(unread_count=0)
        .execution_options(synchronize_session="fetch")
    )

    marked = result.rowcount or 0
    logger.info("conversation_read", conversation_id=str(conversation_id), user_id=str(user_id), marked=marked)
    return marked


# ---------------------------------------------------------------------------
# Listings / projections
# ---------------------------------------------------------------------------


async def _participants_by_conversation(
    db: AsyncSession,
    conversation_ids: list[uuid.UUID],
    exclude_user_id: uuid.UUID | None = None,
) -> dict[uuid.UUID, list[User]]:
    query = (
        select(Participant.conversation_id, User)
        .join(User, User.id == Participant.user_id)
        .where(Participant.conversation_id.in_(conversation_ids))
        .order_by(Participant.created_at, User.username)
    )
    if exclude_user_id is not None:
        query = query.where(Participant.user_id != exclude_user_id)

    grouped: dict[uuid.UUID, list[User]] = {cid: [] for cid in conversation_ids}
    for conversation_id, user in (await db.execute(query)).all():
        grouped[conversation_id].append(user)
    return grouped


async def _last_messages(
    db: AsyncSession,
    conversation_ids: list[uuid.UUID],
) -> dict[uuid.UUID, Message]:
    """Most recent message of each conversation (one query)."""
    ranked = (
        select(
            Message.id.label("message_id"),
            func.row_number()
            .over(
                partition_by=Message.conversation_id,
                order_by=(Message.created_at.desc(), Message.id.desc()),
            )
            .label("rank"),
        )
        .where(Message.conversation_id.in_(conversation_ids))
        .subquery()
    )
    result = await db.execute(
        select(Message).join(ranked, and_(ranked.c.message_id == Message.id, ranked.c.rank == 1))
    )
    return {m.conversation_id: m for m in result.scalars().all()}


async def build_conversation_view(
    db: AsyncSession,
    conversation: Conversation,
    viewer_id: uuid.UUID,
    include_viewer: bool = True,
) -> ConversationView:
    """Project a single conversation for ``viewer_id``."""
    participant = await require_participant(db, conversation.id, viewer_id)
    participants = await _participants_by_conversation(
        db, [conversation.id], exclude_user_id=None if include_viewer else viewer_id
    )
    last = await _last_messages(db, [conversation.id])
    return ConversationView(
        conversation=conversation,
        participants=participants[conversation.id],
        last_message=last.get(conversation.id),
        unread_count=participant.unread_count,
    )


async def list_conversations(
    db: AsyncSession,
    user_id: uuid.UUID,
    page: int = 1,
    limit: int = 20,
) -> tuple[list[ConversationView], int]:
    """
    The caller's conversations, most recent activity first.

    Each entry carries the other participants (caller excluded), the latest
    message, and the caller's unread_count as stored on their Participant row.
    """
    total = (
        await db.execute(select(func.count()).select_from(Participant).where(Participant.user_id == user_id))
    ).scalar_one()

    rows = (
        await db.execute(
            select(Conversation, Participant.unread_count)
            .join(
                Participant,
                and_(Participant.conversation_id == Conversation.id, Participant.user_id == user_id),
            )
            .order_by(Conversation.last_message_at.desc(), Conversation.id)
            .offset(page_offset(page, limit))
            .limit(limit)
        )
    ).all()

    ids = [conversation.id for conversation, _ in rows]
    if not ids:
        return [], total

    others = await _participants_by_conversation(db, ids, exclude_user_id=user_id)
    last = await _last_messages(db, ids)

    views = [
        ConversationView(
            conversation=conversation,
            participants=others[conversation.id],
            last_message=last.get(conversation.id),
            unread_count=unread,
        )
        for conversation, unread in rows
    ]
    return views, total
