"""Offset pagination helpers shared by list endpoints.

Pages are 1-based: ``offset = (page - 1) * limit``.
"""

from __future__ import annotations

import math
from typing import Any

from sqlalchemy import Select, func, select
from sqlalchemy.ext.asyncio import AsyncSession


def page_offset(page: int, limit: int) -> int:
    """Row offset of the first item on ``page``."""
    if page < 1:
        msg = "page must be >= 1"
        raise ValueError(msg)
    if limit < 1:
        msg = "limit must be >= 1"
        raise ValueError(msg)
    return (page - 1) * limit


def total_pages(total: int, limit: int) -> int:
    """Number of pages needed to show ``total`` items, ``limit`` per page."""
    if total <= 0:
        return 0
    return math.ceil(total / limit)


async def paginate(
    db: AsyncSession,
    query: Select[Any],
    page: int,
    limit: int,
) -> tuple[list[Any], int]:
    """Run ``query`` for one page and count the full result set.

    The query must already carry its ORDER BY. Returns (rows, total).
    """
    total_result = await db.execute(select(func.count()).select_from(query.order_by(None).subquery()))
    total = total_result.scalar_one()

    result = await db.execute(query.offset(page_offset(page, limit)).limit(limit))
    return list(result.scalars().all()), total
