"""Unit tests: one conversation per pair of users."""

from __future__ import annotations

import uuid

import pytest
from sqlalchemy import func, select

from friendzi.db.models import Conversation, Participant
from friendzi.errors import NotFound, ValidationFailed
from friendzi.messaging.service import (
    create_pair_conversation,
    find_pair_conversation,
    get_or_create_conversation,
    pair_key,
)
from tests.conftest import open_session


async def _conversation_count(db) -> int:
    return (await db.execute(select(func.count()).select_from(Conversation))).scalar_one()


class TestPairKey:
    def test_order_independent(self):
        a, b = uuid.uuid4(), uuid.uuid4()
        assert pair_key(a, b) == pair_key(b, a)

    def test_low_before_high(self):
        a, b = uuid.uuid4(), uuid.uuid4()
        low, high = pair_key(a, b)
        assert low < high


class TestGetOrCreate:
    @pytest.mark.asyncio
    async def test_creates_with_two_participants(self, db_session, make_user):
        a = await make_user("anna")
        b = await make_user("ben")

        conversation, created = await get_or_create_conversation(db_session, a.id, b.id)
        await db_session.commit()

        assert created is True
        participants = (
            await db_session.execute(select(Participant).where(Participant.conversation_id == conversation.id))
        ).scalars().all()
        assert {p.user_id for p in participants} == {a.id, b.id}
        assert all(p.unread_count == 0 for p in participants)

    @pytest.mark.asyncio
    async def test_repeated_calls_return_same_conversation(self, db_session, make_user):
        a = await make_user("anna")
        b = await make_user("ben")

        first, _ = await get_or_create_conversation(db_session, a.id, b.id)
        await db_session.commit()
        second, created = await get_or_create_conversation(db_session, b.id, a.id)
        await db_session.commit()

        assert created is False
        assert second.id == first.id
        assert await _conversation_count(db_session) == 1

    @pytest.mark.asyncio
    async def test_lost_race_returns_winner(self, db_session, make_user):
        """A second session that missed the lookup hits the pair key and adopts the existing row."""
        a = await make_user("anna")
        b = await make_user("ben")

        winner, _ = await get_or_create_conversation(db_session, a.id, b.id)
        await db_session.commit()

        async with open_session() as other:
            loser, created = await create_pair_conversation(other, b.id, a.id)
            await other.commit()

        assert created is False
        assert loser.id == winner.id

        async with open_session() as check:
            assert await _conversation_count(check) == 1
            participants = (await check.execute(select(func.count()).select_from(Participant))).scalar_one()
            assert participants == 2

    @pytest.mark.asyncio
    async def test_self_conversation_rejected(self, db_session, make_user):
        a = await make_user("anna")
        with pytest.raises(ValidationFailed):
            await get_or_create_conversation(db_session, a.id, a.id)

    @pytest.mark.asyncio
    async def test_missing_target_rejected(self, db_session, make_user):
        a = await make_user("anna")
        with pytest.raises(ValidationFailed):
            await get_or_create_conversation(db_session, a.id, None)

    @pytest.mark.asyncio
    async def test_unknown_target_not_found(self, db_session, make_user):
        a = await make_user("anna")
        with pytest.raises(NotFound):
            await get_or_create_conversation(db_session, a.id, uuid.uuid4())
        assert await _conversation_count(db_session) == 0

    @pytest.mark.asyncio
    async def test_distinct_pairs_get_distinct_conversations(self, db_session, make_user):
        a = await make_user("anna")
        b = await make_user("ben")
        c = await make_user("cleo")

        ab, _ = await get_or_create_conversation(db_session, a.id, b.id)
        ac, _ = await get_or_create_conversation(db_session, a.id, c.id)
        await db_session.commit()

        assert ab.id != ac.id
        assert (await find_pair_conversation(db_session, c.id, a.id)).id == ac.id
        assert await find_pair_conversation(db_session, b.id, c.id) is None
