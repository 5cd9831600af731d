"""Unit tests: indexes declared on the models reach the database."""

from __future__ import annotations

import pytest
from sqlalchemy import text

from friendzi.database import get_engine


async def _index_sql(name: str) -> str | None:
    async with get_engine().connect() as conn:
        result = await conn.execute(
            text("SELECT sql FROM sqlite_master WHERE type = 'index' AND name = :name"), {"name": name}
        )
        return result.scalar_one_or_none()


class TestPartialIndexes:
    @pytest.mark.asyncio
    async def test_online_users_index_is_partial(self, database):
        sql = await _index_sql("idx_users_online")
        assert sql is not None
        assert "WHERE is_online = 1" in sql

    @pytest.mark.asyncio
    async def test_unread_messages_index_is_partial(self, database):
        sql = await _index_sql("idx_messages_unread")
        assert sql is not None
        assert "(conversation_id, sender_id)" in sql
        assert "WHERE is_read = 0" in sql
