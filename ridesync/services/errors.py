"""Failures raised by the Strava sync pipeline."""

from __future__ import annotations

from typing import Optional


class StravaSyncError(Exception):
    """Base class for token, fetch and storage failures."""


class NotConnected(StravaSyncError):
    """The member has no stored Strava credentials."""

    def __init__(self, user_id: int):
        super().__init__(f"User {user_id} has not connected Strava")
        self.user_id = user_id


class RefreshFailed(StravaSyncError):
    """Strava rejected the refresh token or the refresh call failed."""


class NotFound(StravaSyncError):
    """The requested Strava object no longer exists."""


class UpstreamError(StravaSyncError):
    """Strava answered with a non-2xx status or could not be reached."""

    def __init__(self, message: str, status_code: Optional[int] = None):
        super().__init__(message)
        self.status_code = status_code


class StorageError(StravaSyncError):
    """Local persistence failed."""


__all__ = [
    "NotConnected",
    "NotFound",
    "RefreshFailed",
    "StorageError",
    "StravaSyncError",
    "UpstreamError",
]
