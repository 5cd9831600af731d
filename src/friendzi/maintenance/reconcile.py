"""Rebuild denormalized counters from the rows they summarize.

Every counter is written with in-database arithmetic by the services, so
drift should not happen; this job exists to find and repair it if it does
(manual SQL, partial restores, bugs).

Usage:
    python -m friendzi.maintenance.reconcile
"""

from __future__ import annotations

import asyncio
from dataclasses import dataclass
from typing import Any

import structlog
from sqlalchemy import ColumnElement, and_, func, select, update
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import InstrumentedAttribute

from friendzi.config import get_settings
from friendzi.database import close_db, get_session, init_db
from friendzi.db.models import Comment, Follow, Like, Message, Participant, Post, User
from friendzi.middleware.logging import setup_logging

logger = structlog.get_logger()


@dataclass(frozen=True)
class CounterRule:
    """A stored counter and the expression that recomputes it per row."""

    name: str
    column: InstrumentedAttribute[int]
    actual: ColumnElement[Any]


def _count(model: type, *where: ColumnElement[bool]) -> ColumnElement[int]:
    return select(func.count()).select_from(model).where(*where).correlate_except(model).scalar_subquery()


COUNTER_RULES: tuple[CounterRule, ...] = (
    CounterRule("post.likes_count", Post.likes_count, _count(Like, Like.post_id == Post.id)),
    CounterRule("post.comments_count", Post.comments_count, _count(Comment, Comment.post_id == Post.id)),
    CounterRule("user.followers_count", User.followers_count, _count(Follow, Follow.following_id == User.id)),
    CounterRule("user.following_count", User.following_count, _count(Follow, Follow.follower_id == User.id)),
    CounterRule(
        "participant.unread_count",
        Participant.unread_count,
        _count(
            Message,
            and_(
                Message.conversation_id == Participant.conversation_id,
                Message.sender_id != Participant.user_id,
                Message.is_read.is_(False),
            ),
        ),
    ),
)


async def find_drift(db: AsyncSession, rule: CounterRule) -> list[tuple[Any, int, int]]:
    """Rows where ``rule.column`` disagrees with its source rows, as (id, stored, actual)."""
    model = rule.column.class_
    result = await db.execute(
        select(model.id, rule.column, rule.actual.label("actual")).where(rule.column != rule.actual)
    )
    return [tuple(row) for row in result.all()]


async def repair_drift(db: AsyncSession, rule: CounterRule, row_ids: list[Any]) -> int:
    """Set ``rule.column`` to its recomputed value on ``row_ids``.

    The new value is the correlated count evaluated inside the UPDATE itself,
    so a like, follow or message committed after the drift scan is counted
    rather than overwritten. Returns the number of rows changed.
    """
    if not row_ids:
        return 0
    model = rule.column.class_
    result = await db.execute(
        update(model)
        .where(model.id.in_(row_ids))
        .where(rule.column != rule.actual)
        .values({rule.column.key: rule.actual})
        .execution_options(synchronize_session=False)
    )
    return result.rowcount or 0


async def reconcile_counter(db: AsyncSession, rule: CounterRule) -> int:
    """Rewrite every row where ``rule.column`` disagrees with its source rows.

    Returns the number of rows corrected.
    """
    drifted = await find_drift(db, rule)
    for row_id, stored, actual in drifted:
        logger.info("counter_reconciled", counter=rule.name, row_id=str(row_id), stored=stored, actual=actual)
    return await repair_drift(db, rule, [row_id for row_id, _, _ in drifted])


async def reconcile_all(db: AsyncSession) -> dict[str, int]:
    """Reconcile every counter in one transaction. Returns corrections per counter."""
    corrected = {rule.name: await reconcile_counter(db, rule) for rule in COUNTER_RULES}
    await db.commit()
    logger.info("counters_reconciled", corrected=corrected, total=sum(corrected.values()))
    return corrected


async def main() -> None:
    settings = get_settings()
    setup_logging(settings)
    await init_db(settings.database_url)
    try:
        async for db in get_session():
            await reconcile_all(db)
            break
    finally:
        await close_db()


if __name__ == "__main__":
    asyncio.run(main())
