"""In-database arithmetic for denormalized counters.

Counters are never read-modified-written in Python: every change is a single
UPDATE evaluated by the database, so concurrent requests cannot lose
increments. Decrements floor at zero.
"""

from __future__ import annotations

from typing import Any

from sqlalchemy import ColumnElement, case, update
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import InstrumentedAttribute


def incremented(column: InstrumentedAttribute[int]) -> ColumnElement[int]:
    return column + 1


def decremented(column: InstrumentedAttribute[int]) -> ColumnElement[int]:
    """``max(0, column - 1)`` written portably."""
    return case((column > 0, column - 1), else_=0)


async def increment(
    db: AsyncSession,
    column: InstrumentedAttribute[int],
    *where: ColumnElement[bool],
) -> None:
    """Add one to ``column`` on every row matching ``where``."""
    await _apply(db, column, incremented(column), where)


async def decrement(
    db: AsyncSession,
    column: InstrumentedAttribute[int],
    *where: ColumnElement[bool],
) -> None:
    """Subtract one from ``column`` (never below zero) on every row matching ``where``."""
    await _apply(db, column, decremented(column), where)


async def _apply(
    db: AsyncSession,
    column: InstrumentedAttribute[int],
    value: ColumnElement[Any],
    where: tuple[ColumnElement[bool], ...],
) -> None:
    # "fetch" refreshes any instance of these rows already loaded in the session
    stmt = (
        update(column.class_)
        .where(*where)
        .values({column.key: value})
        .execution_options(synchronize_session="fetch")
    )
    await db.execute(stmt)
