"""Middleware registration."""

from fastapi import FastAPI

from friendzi.config import Settings
from friendzi.middleware.cors import setup_cors
from friendzi.middleware.error_handler import setup_error_handlers
from friendzi.middleware.logging import setup_logging
from friendzi.middleware.request_id import RequestIdMiddleware


def setup_middleware(app: FastAPI, settings: Settings) -> None:
    """Register logging, error handlers and middleware.

    Starlette runs middleware in reverse-add order, so CORS (added last) is
    outermost and also decorates error responses.
    """
    setup_logging(settings)
    setup_error_handlers(app, debug=settings.debug)
    app.add_middleware(RequestIdMiddleware)
    setup_cors(app, settings)
