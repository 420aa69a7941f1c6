"""Access-token lifecycle: initial connection and refresh."""

from __future__ import annotations

import time
from typing import Callable, Optional

from ..core.logger import get_logger
from ..core.time import utcnow
from ..models import StravaCredentials
from .errors import NotConnected, RefreshFailed, StravaSyncError, UpstreamError
from .strava_client import StravaClient
from .token_store import TokenStore

logger = get_logger(__name__)

# Refresh this long before expiry so the call that follows does not race it.
REFRESH_BUFFER_SECONDS = 5 * 60


class TokenRefresher:
    """Hands out access tokens that are valid for at least the buffer window."""

    def __init__(
        self,
        store: TokenStore,
        client: StravaClient,
        clock: Callable[[], float] = time.time,
    ):
        self.store = store
        self.client = client
        self._clock = clock

    async def get_valid_access_token(self, user_id: int) -> str:
        credentials = self.store.get(user_id)
        if credentials is None:
            raise NotConnected(user_id)

        now = int(self._clock())
        if credentials.expires_at - now >= REFRESH_BUFFER_SECONDS:
            return credentials.access_token

        logger.info("Refreshing Strava token for user %s", user_id)
        try:
            data = await self.client.refresh_access_token(credentials.refresh_token)
            refreshed = StravaCredentials(
                athlete_id=credentials.athlete_id,
                access_token=data["access_token"],
                refresh_token=data.get("refresh_token") or credentials.refresh_token,
                expires_at=int(data["expires_at"]),
                connected_at=credentials.connected_at,
                scope=credentials.scope,
            )
        except UpstreamError as exc:
            # Outages are not a rejected refresh token; the member keeps their connection.
            if exc.status_code is None or exc.status_code >= 500:
                raise
            raise RefreshFailed(f"Strava rejected the refresh token for user {user_id}") from exc
        except (StravaSyncError, KeyError, TypeError, ValueError) as exc:
            raise RefreshFailed(f"Could not refresh Strava token for user {user_id}") from exc

        self.store.save(user_id, refreshed)
        return refreshed.access_token


async def connect_account(
    store: TokenStore,
    client: StravaClient,
    user_id: int,
    code: str,
    scope: Optional[str] = None,
) -> StravaCredentials:
    """Exchange an authorization code and store the member's credentials."""

    data = await client.exchange_code_for_token(code)
    athlete = data.get("athlete") or {}
    athlete_id = str(athlete.get("id") or "")

    existing = store.get(user_id)
    connected_at = (
        existing.connected_at
        if existing is not None and existing.athlete_id == athlete_id
        else utcnow()
    )
    if isinstance(data.get("scope"), list):
        scope = ",".join(data["scope"])

    credentials = StravaCredentials(
        athlete_id=athlete_id,
        access_token=data["access_token"],
        refresh_token=data["refresh_token"],
        expires_at=int(data["expires_at"]),
        connected_at=connected_at,
        scope=scope,
    )
    store.save(user_id, credentials)
    logger.info("User %s connected Strava athlete %s", user_id, athlete_id)
    return credentials


__all__ = ["REFRESH_BUFFER_SECONDS", "TokenRefresher", "connect_account"]
