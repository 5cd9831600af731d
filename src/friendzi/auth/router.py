"""Authentication router — all /api/auth/* endpoints."""

from __future__ import annotations

import structlog
from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy.ext.asyncio import AsyncSession

from friendzi.auth.dependencies import get_current_user
from friendzi.auth.jwt import create_access_token
from friendzi.auth.password import PasswordStrengthError
from friendzi.auth.schemas import AuthResponse, LoginRequest, RegisterRequest
from friendzi.auth.service import authenticate_user, register_user, set_presence
from friendzi.config import get_settings
from friendzi.database import get_session
from friendzi.db.models import User
from friendzi.errors import ServiceError
from friendzi.schemas import SuccessResponse
from friendzi.users.schemas import UserEnvelope, UserResponse

logger = structlog.get_logger()

router = APIRouter(prefix="/api/auth", tags=["Authentication"])


def _auth_response(user: User, message: str) -> AuthResponse:
    settings = get_settings()
    return AuthResponse(
        message=message,
        user=UserResponse.model_validate(user),
        token=create_access_token(user.id, user.username),
        expires_in=settings.jwt_access_token_expire_minutes * 60,
    )


@router.post("/register", response_model=AuthResponse, status_code=201)
async def register(
    body: RegisterRequest,
    db: AsyncSession = Depends(get_session),
) -> AuthResponse:
    """Register with username + email + password."""
    try:
        user = await register_user(
            db,
            username=body.username,
            email=body.email,
            password=body.password,
            full_name=body.full_name,
        )
    except PasswordStrengthError as e:
        raise HTTPException(status_code=400, detail=str(e)) from e
    except ServiceError as e:
        raise HTTPException(status_code=e.status_code, detail=str(e)) from e

    await db.commit()
    return _auth_response(user, "Registration successful")


@router.post("/login", response_model=AuthResponse)
async def login(
    body: LoginRequest,
    db: AsyncSession = Depends(get_session),
) -> AuthResponse:
    """Login with email + password; marks the account online."""
    user = await authenticate_user(db, body.email, body.password)
    if user is None:
        logger.info("login_failed", email=body.email)
        raise HTTPException(status_code=401, detail="Invalid email or password")

    await set_presence(db, user, online=True)
    await db.commit()
    logger.info("login_success", user_id=str(user.id))
    return _auth_response(user, "Login successful")


@router.post("/logout", response_model=SuccessResponse)
async def logout(
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_session),
) -> SuccessResponse:
    """Mark the account offline. The bearer token itself stays valid until it expires."""
    await set_presence(db, user, online=False)
    await db.commit()
    return SuccessResponse(message="Logout successful")


@router.get("/me", response_model=UserEnvelope)
async def me(
    user: User = Depends(get_current_user),
) -> UserEnvelope:
    """Get the caller's own profile."""
    return UserEnvelope(user=UserResponse.model_validate(user))
