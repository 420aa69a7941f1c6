"""Core configuration and infrastructure helpers."""

from .config import (
    ALLOWED_CORS_ORIGINS,
    DB_RESET,
    FRONTEND_ORIGIN,
    FRONTEND_ORIGINS,
    STRAVA_CLIENT_ID,
    STRAVA_CLIENT_SECRET,
    STRAVA_HTTP_BACKOFF,
    STRAVA_HTTP_RETRIES,
    STRAVA_HTTP_TIMEOUT,
    STRAVA_REDIRECT_URI,
    STRAVA_WEBHOOK_VERIFY_TOKEN,
)
from .database import engine, get_session, init_db
from .logger import get_logger
from .time import utcnow

__all__ = [
    "ALLOWED_CORS_ORIGINS",
    "DB_RESET",
    "FRONTEND_ORIGIN",
    "FRONTEND_ORIGINS",
    "STRAVA_CLIENT_ID",
    "STRAVA_CLIENT_SECRET",
    "STRAVA_HTTP_BACKOFF",
    "STRAVA_HTTP_RETRIES",
    "STRAVA_HTTP_TIMEOUT",
    "STRAVA_REDIRECT_URI",
    "STRAVA_WEBHOOK_VERIFY_TOKEN",
    "engine",
    "get_logger",
    "get_session",
    "init_db",
    "utcnow",
]
