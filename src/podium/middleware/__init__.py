"""Middleware registration."""

from fastapi import FastAPI

from podium.config import Settings
from podium.middleware.cors import setup_cors
from podium.middleware.error_handler import setup_error_handlers
from podium.middleware.logging import setup_logging
from podium.middleware.request_id import RequestIdMiddleware


def setup_middleware(app: FastAPI, settings: Settings) -> None:
    """Register all middleware in the correct order.

    Starlette executes middleware in reverse-add order (last added = outermost),
    so CORS goes last to wrap every response.
    """
    setup_logging(settings)
    setup_error_handlers(app)
    app.add_middleware(RequestIdMiddleware)
    setup_cors(app, settings)
