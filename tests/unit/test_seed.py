"""Unit tests: demo data seeding."""

from __future__ import annotations

import pytest
from sqlalchemy import func, select

from friendzi.db.models import Conversation, Message, Participant, Post, User
from friendzi.db.seed import DEMO_LIKES, DEMO_MESSAGES, DEMO_USERS, seed_demo_data
from friendzi.maintenance.reconcile import reconcile_all
from tests.conftest import open_session


class TestSeed:
    @pytest.mark.asyncio
    async def test_seed_creates_consistent_data(self, db_session):
        assert await seed_demo_data(db_session) is True

        async with open_session() as db:
            users = (await db.execute(select(func.count()).select_from(User))).scalar_one()
            conversations = (await db.execute(select(func.count()).select_from(Conversation))).scalar_one()
            messages = (await db.execute(select(func.count()).select_from(Message))).scalar_one()
            total_likes = (await db.execute(select(func.sum(Post.likes_count)))).scalar_one()
            thomas = (await db.execute(select(User).where(User.username == "thomas"))).scalar_one()
            unread = (
                await db.execute(select(Participant.unread_count).where(Participant.user_id == thomas.id))
            ).scalars().all()

        assert users == len(DEMO_USERS)
        assert conversations == 2
        assert messages == len(DEMO_MESSAGES)
        assert total_likes == len(DEMO_LIKES)
        assert thomas.is_verified is True
        assert thomas.followers_count == 2
        assert sorted(unread) == [0, 1]

        async with open_session() as db:
            corrected = await reconcile_all(db)
        assert sum(corrected.values()) == 0

    @pytest.mark.asyncio
    async def test_seed_is_idempotent(self, db_session):
        assert await seed_demo_data(db_session) is True

        async with open_session() as db:
            assert await seed_demo_data(db) is False
            users = (await db.execute(select(func.count()).select_from(User))).scalar_one()
        assert users == len(DEMO_USERS)
