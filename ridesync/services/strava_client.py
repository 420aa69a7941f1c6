"""Strava OAuth and API client."""

from __future__ import annotations

import asyncio
from typing import Any, Dict, List, Optional
from urllib.parse import urlencode

import httpx

from ..core import config
from ..core.logger import get_logger
from .errors import NotFound, UpstreamError

logger = get_logger(__name__)

AUTH_BASE = "https://www.strava.com/oauth/authorize"
TOKEN_URL = "https://www.strava.com/oauth/token"
API_BASE = "https://www.strava.com/api/v3"
SCOPES = "read,activity:read_all"

_RETRY_STATUSES = {502, 503, 504}


class StravaClient:
    """Thin async wrapper around the Strava endpoints the sync pipeline needs.

    Token freshness is the caller's concern; every read takes an access token.
    """

    def __init__(
        self,
        client_id: int,
        client_secret: str,
        *,
        timeout: float = 20.0,
        retries: int = 2,
        backoff: float = 0.5,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        self.client_id = client_id
        self.client_secret = client_secret
        self.timeout = timeout
        self.retries = max(0, retries)
        self.backoff = backoff
        self._transport = transport

    @classmethod
    def from_settings(cls) -> "StravaClient":
        return cls(
            config.STRAVA_CLIENT_ID,
            config.STRAVA_CLIENT_SECRET,
            timeout=config.STRAVA_HTTP_TIMEOUT,
            retries=config.STRAVA_HTTP_RETRIES,
            backoff=config.STRAVA_HTTP_BACKOFF,
        )

    def auth_url(self, redirect_uri: str, state: str = "") -> str:
        """Generate Strava OAuth authorization URL."""

        params = {
            "client_id": self.client_id,
            "redirect_uri": redirect_uri,
            "response_type": "code",
            "approval_prompt": "auto",
            "scope": SCOPES,
            "state": state,
        }
        return f"{AUTH_BASE}?{urlencode(params)}"

    async def exchange_code_for_token(self, code: str) -> Dict[str, Any]:
        response = await self._request(
            "POST",
            TOKEN_URL,
            data={
                "client_id": self.client_id,
                "client_secret": self.client_secret,
                "code": code,
                "grant_type": "authorization_code",
            },
        )
        _raise_for_status(response, "code exchange")
        return response.json()

    async def refresh_access_token(self, refresh_token: str) -> Dict[str, Any]:
        response = await self._request(
            "POST",
            TOKEN_URL,
            data={
                "client_id": self.client_id,
                "client_secret": self.client_secret,
                "grant_type": "refresh_token",
                "refresh_token": refresh_token,
            },
        )
        _raise_for_status(response, "token refresh")
        return response.json()

    async def get_activity(self, access_token: str, activity_id: int | str) -> Dict[str, Any]:
        response = await self.api_get(access_token, f"/activities/{activity_id}")
        _raise_for_status(response, f"activity {activity_id}")
        return response.json()

    async def list_activities(
        self,
        access_token: str,
        after: Optional[int] = None,
        before: Optional[int] = None,
        page: int = 1,
        per_page: int = 30,
    ) -> List[Dict[str, Any]]:
        params: Dict[str, Any] = {"page": page, "per_page": per_page}
        if after:
            params["after"] = after
        if before:
            params["before"] = before
        response = await self.api_get(access_token, "/athlete/activities", params=params)
        _raise_for_status(response, "activity listing")
        return response.json() or []

    async def api_get(
        self, access_token: str, path: str, params: Optional[Dict[str, Any]] = None
    ) -> httpx.Response:
        return await self._request(
            "GET",
            f"{API_BASE}{path}",
            headers={"Authorization": f"Bearer {access_token}"},
            params=params or {},
        )

    async def _request(self, method: str, url: str, **kwargs: Any) -> httpx.Response:
        attempt = 0
        while True:
            try:
                async with httpx.AsyncClient(
                    timeout=self.timeout, transport=self._transport
                ) as client:
                    response = await client.request(method, url, **kwargs)
            except httpx.TransportError as exc:
                if attempt >= self.retries:
                    raise UpstreamError(f"Strava request failed: {exc!r}") from exc
                logger.warning(
                    "Strava %s %s failed (%s), retry %d/%d",
                    method,
                    url,
                    type(exc).__name__,
                    attempt + 1,
                    self.retries,
                )
            else:
                if response.status_code not in _RETRY_STATUSES or attempt >= self.retries:
                    return response
                logger.warning(
                    "Strava %s %s returned %d, retry %d/%d",
                    method,
                    url,
                    response.status_code,
                    attempt + 1,
                    self.retries,
                )
            await asyncio.sleep(self.backoff * (2**attempt))
            attempt += 1


def _raise_for_status(response: httpx.Response, what: str) -> None:
    if response.status_code == 404:
        raise NotFound(f"Strava {what} not found")
    if response.is_error:
        raise UpstreamError(
            f"Strava {what} failed with HTTP {response.status_code}",
            status_code=response.status_code,
        )


__all__ = ["StravaClient"]
