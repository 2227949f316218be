"""CORS for the admin and participant dashboards."""

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from podium.config import Settings

# Identity headers are normally injected by the gateway, but local dashboards
# talk to the service directly and send them themselves.
_ALLOWED_HEADERS = ["Content-Type", "X-Request-Id", "X-Participant-Id", "X-Participant-Role"]


def setup_cors(app: FastAPI, settings: Settings) -> None:
    """Register CORS only when dashboard origins are configured."""
    if not settings.cors_origins:
        return
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_credentials=True,
        allow_methods=["GET", "POST", "OPTIONS"],
        allow_headers=_ALLOWED_HEADERS,
        expose_headers=["X-Request-Id"],
    )
