"""Strava sync services."""

from .activity_store import ActivityStore
from .errors import (
    NotConnected,
    NotFound,
    RefreshFailed,
    StorageError,
    StravaSyncError,
    UpstreamError,
)
from .stats import strava_stats
from .strava_client import StravaClient
from .sync import SyncEngine, SyncResult
from .token_store import TokenStore
from .tokens import TokenRefresher, connect_account

__all__ = [
    "ActivityStore",
    "NotConnected",
    "NotFound",
    "RefreshFailed",
    "StorageError",
    "StravaClient",
    "StravaSyncError",
    "SyncEngine",
    "SyncResult",
    "TokenRefresher",
    "TokenStore",
    "UpstreamError",
    "connect_account",
    "strava_stats",
]
