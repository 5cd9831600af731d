"""Alembic migration tests.

File named test_zzz_alembic.py to sort LAST in pytest collection order.
Migrations are raw PostgreSQL, so these run only when
FRIENDZI_TEST_POSTGRES_URL points at a scratch database
(postgresql+asyncpg://...).
"""

from __future__ import annotations

import os
import subprocess
from pathlib import Path

import pytest
from sqlalchemy import inspect
from sqlalchemy.ext.asyncio import create_async_engine

from friendzi.db import models  # noqa: F401
from friendzi.db.base import Base

POSTGRES_URL = os.environ.get("FRIENDZI_TEST_POSTGRES_URL")
PROJECT_ROOT = Path(__file__).resolve().parents[1]

pytestmark = pytest.mark.skipif(not POSTGRES_URL, reason="FRIENDZI_TEST_POSTGRES_URL not set")


def _alembic(*args: str) -> subprocess.CompletedProcess[str]:
    return subprocess.run(
        ["alembic", *args],
        capture_output=True,
        text=True,
        cwd=PROJECT_ROOT,
        env={**os.environ, "FRIENDZI_DATABASE_URL": POSTGRES_URL or ""},
    )


def test_alembic_upgrade_head() -> None:
    """alembic upgrade head succeeds without errors."""
    result = _alembic("upgrade", "head")
    assert result.returncode == 0, f"alembic upgrade failed: {result.stderr}"


def test_alembic_current_shows_head() -> None:
    """alembic current shows the latest revision."""
    result = _alembic("current")
    assert result.returncode == 0
    assert "001_initial_schema" in result.stdout


@pytest.mark.asyncio
async def test_migrated_schema_matches_models() -> None:
    """Every table and index the models declare exists after upgrade, and no extra index does."""
    engine = create_async_engine(POSTGRES_URL)
    try:
        async with engine.connect() as conn:
            migrated = await conn.run_sync(
                lambda sync_conn: {
                    table: {
                        ix["name"]
                        for ix in inspect(sync_conn).get_indexes(table)
                        if "duplicates_constraint" not in ix
                    }
                    for table in inspect(sync_conn).get_table_names()
                }
            )
    finally:
        await engine.dispose()

    for table in Base.metadata.sorted_tables:
        assert table.name in migrated, f"missing table {table.name}"
        declared = {ix.name for ix in table.indexes}
        assert migrated[table.name] == declared, table.name
