"""Shared FastAPI dependencies."""

from __future__ import annotations

from ..services import StravaClient


def get_strava_client() -> StravaClient:
    """Strava client configured from the environment."""

    return StravaClient.from_settings()


__all__ = ["get_strava_client"]
