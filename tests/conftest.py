"""Shared test fixtures.

Each test gets its own SQLite database file (aiosqlite) with the schema built
from the ORM metadata, and a throwaway RSA key pair for JWTs.
"""

from __future__ import annotations

import os
import tempfile
from collections.abc import AsyncGenerator, AsyncIterator
from contextlib import asynccontextmanager
from pathlib import Path

import pytest
import pytest_asyncio
from cryptography.hazmat.primitives import serialization
from cryptography.hazmat.primitives.asymmetric import rsa
from httpx import ASGITransport, AsyncClient
from sqlalchemy.ext.asyncio import AsyncSession

os.environ.setdefault("FRIENDZI_LOG_FORMAT", "console")
os.environ.setdefault("FRIENDZI_DATABASE_URL", "sqlite+aiosqlite:///:memory:")


def _ensure_test_keys() -> tuple[str, str]:
    """Generate an RSA key pair once per test run and point settings at it."""
    private_path = os.environ.get("FRIENDZI_JWT_PRIVATE_KEY_PATH")
    public_path = os.environ.get("FRIENDZI_JWT_PUBLIC_KEY_PATH")
    if private_path and public_path and os.path.exists(private_path) and os.path.exists(public_path):
        return private_path, public_path

    tmpdir = Path(tempfile.mkdtemp(prefix="friendzi_test_keys_"))
    key = rsa.generate_private_key(public_exponent=65537, key_size=2048)
    private_file = tmpdir / "jwt_private.pem"
    public_file = tmpdir / "jwt_public.pem"
    private_file.write_bytes(
        key.private_bytes(
            encoding=serialization.Encoding.PEM,
            format=serialization.PrivateFormat.PKCS8,
            encryption_algorithm=serialization.NoEncryption(),
        )
    )
    public_file.write_bytes(
        key.public_key().public_bytes(
            encoding=serialization.Encoding.PEM,
            format=serialization.PublicFormat.SubjectPublicKeyInfo,
        )
    )

    os.environ["FRIENDZI_JWT_PRIVATE_KEY_PATH"] = str(private_file)
    os.environ["FRIENDZI_JWT_PUBLIC_KEY_PATH"] = str(public_file)

    from friendzi.auth.jwt import reset_keys
    from friendzi.config import get_settings

    get_settings.cache_clear()
    reset_keys()
    return str(private_file), str(public_file)


_ensure_test_keys()

from friendzi.database import close_db, get_engine, get_session, init_db  # noqa: E402
from friendzi.db.base import Base  # noqa: E402
from friendzi.db import models  # noqa: E402,F401
from friendzi.main import create_app  # noqa: E402

TEST_PASSWORD = "Secret123"


@asynccontextmanager
async def open_session() -> AsyncIterator[AsyncSession]:
    """A fresh session outside any request, closed on exit."""
    sessions = get_session()
    session = await sessions.__anext__()
    try:
        yield session
    finally:
        await sessions.aclose()


@pytest_asyncio.fixture
async def database(tmp_path: Path) -> AsyncGenerator[str, None]:
    """Initialise an empty schema in a per-test SQLite file."""
    url = f"sqlite+aiosqlite:///{tmp_path / 'friendzi_test.db'}"
    await init_db(url)
    async with get_engine().begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield url
    await close_db()


@pytest_asyncio.fixture
async def db_session(database: str) -> AsyncGenerator[AsyncSession, None]:
    """A direct database session for service-level tests and assertions."""
    async with open_session() as session:
        yield session


@pytest_asyncio.fixture
async def client(database: str) -> AsyncGenerator[AsyncClient, None]:
    """Async HTTP client over the ASGI app (database initialised by ``database``)."""
    app = create_app()
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as ac:
        yield ac


async def register(client: AsyncClient, username: str, full_name: str | None = None) -> dict:
    """Register a user through the API. Returns id, token and auth headers."""
    response = await client.post(
        "/api/auth/register",
        json={
            "username": username,
            "email": f"{username}@example.com",
            "password": TEST_PASSWORD,
            "full_name": full_name or username.title(),
        },
    )
    assert response.status_code == 201, response.text
    data = response.json()
    return {
        "id": data["user"]["id"],
        "username": username,
        "token": data["token"],
        "headers": {"Authorization": f"Bearer {data['token']}"},
    }


@pytest_asyncio.fixture
async def alice(client: AsyncClient) -> dict:
    return await register(client, "alice")


@pytest_asyncio.fixture
async def bob(client: AsyncClient) -> dict:
    return await register(client, "bob")


@pytest_asyncio.fixture
async def carol(client: AsyncClient) -> dict:
    return await register(client, "carol")


@pytest.fixture
def make_user(db_session: AsyncSession):
    """Factory creating users directly through the auth service."""
    from friendzi.auth.service import register_user

    async def _make(username: str) -> models.User:
        user = await register_user(
            db_session,
            username=username,
            email=f"{username}@example.com",
            password=TEST_PASSWORD,
            full_name=username.title(),
        )
        await db_session.commit()
        return user

    return _make
