"""FastAPI application factory."""

from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager

from fastapi import FastAPI

from friendzi.auth.router import router as auth_router
from friendzi.config import get_settings
from friendzi.database import close_db, init_db
from friendzi.health.router import router as health_router
from friendzi.messaging.router import router as messaging_router
from friendzi.middleware import setup_middleware
from friendzi.posts.router import router as posts_router
from friendzi.users.router import router as users_router


@asynccontextmanager
async def lifespan(_app: FastAPI) -> AsyncGenerator[None, None]:
    """Startup and shutdown lifecycle."""
    settings = get_settings()
    await init_db(settings.database_url)
    yield
    await close_db()


def create_app() -> FastAPI:
    """Create and configure the FastAPI application."""
    settings = get_settings()

    app = FastAPI(
        title="Friendzi API",
        description="Backend API for Friendzi: profiles, posts, follows and direct messages",
        version=settings.app_version,
        docs_url="/docs" if settings.debug else None,
        redoc_url="/redoc" if settings.debug else None,
        lifespan=lifespan,
    )

    setup_middleware(app, settings)
    app.include_router(health_router, tags=["Health"])
    app.include_router(auth_router)
    app.include_router(users_router)
    app.include_router(posts_router)
    app.include_router(messaging_router)

    return app


app = create_app()
