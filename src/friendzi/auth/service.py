"""
Authentication business logic.

Handles account creation, credential checks and the online/last-seen flag.
"""

from __future__ import annotations

import uuid
from datetime import datetime, timezone
from typing import TYPE_CHECKING

import structlog
from sqlalchemy import func, or_, select
from sqlalchemy.exc import IntegrityError

from friendzi.auth.password import (
    check_needs_rehash,
    hash_password,
    validate_password_strength,
    verify_password,
)
from friendzi.config import get_settings
from friendzi.db.models import User
from friendzi.errors import Conflict

if TYPE_CHECKING:
    from sqlalchemy.ext.asyncio import AsyncSession

logger = structlog.get_logger()


# ---------------------------------------------------------------------------
# User queries
# ---------------------------------------------------------------------------


async def get_user_by_id(db: AsyncSession, user_id: uuid.UUID) -> User | None:
    """Fetch a user by ID."""
    result = await db.execute(select(User).where(User.id == user_id))
    return result.scalar_one_or_none()


async def get_user_by_email(db: AsyncSession, email: str) -> User | None:
    """Fetch a user by email (case-insensitive)."""
    result = await db.execute(select(User).where(func.lower(User.email) == email.lower()))
    return result.scalar_one_or_none()


# ---------------------------------------------------------------------------
# Registration / login
# ---------------------------------------------------------------------------


async def register_user(
    db: AsyncSession,
    username: str,
    email: str,
    password: str,
    full_name: str | None = None,
) -> User:
    """
    Create a new account.

    Raises:
        PasswordStrengthError: If the password is too weak.
        Conflict: If the username or email is already taken.
    """
    validate_password_strength(password)
    email = email.lower().strip()

    result = await db.execute(
        select(User).where(
            or_(
                func.lower(User.username) == username.lower(),
                func.lower(User.email) == email,
            )
        )
    )
    if result.scalars().first() is not None:
        msg = "Email or username already registered"
        raise Conflict(msg)

    settings = get_settings()
    user = User(
        username=username,
        email=email,
        password_hash=hash_password(password),
        full_name=full_name or "",
        avatar_url=f"{settings.default_avatar_url}?u={username}",
    )
    try:
        async with db.begin_nested():
            db.add(user)
    except IntegrityError as e:
        msg = "Email or username already registered"
        raise Conflict(msg) from e

    logger.info("user_registered", user_id=str(user.id), username=username)
    return user


async def authenticate_user(db: AsyncSession, email: str, password: str) -> User | None:
    """
    Check email + password.

    Returns the user on success, None on bad credentials. Rehashes the stored
    password transparently when the hashing parameters have changed.
    """
    user = await get_user_by_email(db, email)
    if user is None or not verify_password(password, user.password_hash):
        return None

    if check_needs_rehash(user.password_hash):
        user.password_hash = hash_password(password)
    return user


async def set_presence(db: AsyncSession, user: User, online: bool) -> User:
    """Flip the online flag and stamp last_seen (login/logout)."""
    user.is_online = online
    user.last_seen = datetime.now(timezone.utc)
    await db.flush()
    return user
