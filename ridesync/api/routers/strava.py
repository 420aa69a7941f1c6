"""Strava connection, sync and webhook routes."""

from __future__ import annotations

from typing import Dict, Optional

from fastapi import APIRouter, Depends, HTTPException, Query, Request
from fastapi.responses import JSONResponse, RedirectResponse
from pydantic import ValidationError
from sqlmodel import Session

from ...core import (
    FRONTEND_ORIGIN,
    STRAVA_REDIRECT_URI,
    STRAVA_WEBHOOK_VERIFY_TOKEN,
    get_logger,
    get_session,
)
from ...models import StravaWebhookEvent, User
from ...services import (
    StravaClient,
    StravaSyncError,
    SyncEngine,
    TokenStore,
    connect_account,
    strava_stats,
)
from ..deps import get_strava_client

logger = get_logger(__name__)

router = APIRouter(prefix="/api/strava", tags=["strava"])


def _require_user(session: Session, user_id: int) -> User:
    user = session.get(User, user_id)
    if not user:
        raise HTTPException(404, "User not found")
    return user


def _dashboard_redirect(query: str) -> RedirectResponse:
    return RedirectResponse(f"{FRONTEND_ORIGIN.rstrip('/')}/dashboard?{query}")


@router.get("/users/{user_id}/connect")
def strava_connect(
    user_id: int,
    session: Session = Depends(get_session),
    client: StravaClient = Depends(get_strava_client),
) -> Dict[str, str]:
    """Return the authorization URL; the user id travels as OAuth state."""

    _require_user(session, user_id)
    return {"url": client.auth_url(STRAVA_REDIRECT_URI, state=str(user_id))}


@router.get("/callback")
async def strava_callback(
    code: Optional[str] = None,
    state: Optional[str] = None,
    scope: Optional[str] = None,
    error: Optional[str] = None,
    session: Session = Depends(get_session),
    client: StravaClient = Depends(get_strava_client),
):
    if error:
        return _dashboard_redirect("strava_error=access_denied")
    if not code or not state or not state.isdigit():
        return _dashboard_redirect("strava_error=missing_params")

    user_id = int(state)
    if not session.get(User, user_id):
        return _dashboard_redirect("strava_error=missing_params")

    try:
        await connect_account(TokenStore(session), client, user_id, code, scope)
    except (StravaSyncError, KeyError, TypeError, ValueError):
        logger.exception("Strava callback failed for user %s", user_id)
        return _dashboard_redirect("strava_error=connection_failed")

    return _dashboard_redirect("strava_connected=true")


@router.post("/users/{user_id}/disconnect")
def strava_disconnect(user_id: int, session: Session = Depends(get_session)):
    """Forget the credentials; synced activities are kept."""

    _require_user(session, user_id)
    TokenStore(session).clear(user_id)
    return {"success": True}


@router.post("/users/{user_id}/sync")
async def strava_sync(
    user_id: int,
    session: Session = Depends(get_session),
    client: StravaClient = Depends(get_strava_client),
):
    _require_user(session, user_id)
    result = await SyncEngine(session, client).sync_user_activities(user_id)
    return {"success": True, **result.to_dict()}


@router.get("/users/{user_id}/stats")
def strava_user_stats(user_id: int, session: Session = Depends(get_session)):
    _require_user(session, user_id)
    return strava_stats(session, user_id)


@router.get("/webhook")
def strava_webhook_verify(
    mode: Optional[str] = Query(None, alias="hub.mode"),
    verify_token: Optional[str] = Query(None, alias="hub.verify_token"),
    challenge: Optional[str] = Query(None, alias="hub.challenge"),
):
    """Answer Strava's subscription validation handshake."""

    if mode == "subscribe" and verify_token == STRAVA_WEBHOOK_VERIFY_TOKEN:
        logger.info("Strava webhook subscription verified")
        return {"hub.challenge": challenge}
    return JSONResponse({"error": "Forbidden"}, status_code=403)


@router.post("/webhook")
async def strava_webhook_event(
    request: Request,
    session: Session = Depends(get_session),
    client: StravaClient = Depends(get_strava_client),
):
    """Apply a webhook event. Delivery is acknowledged whatever the outcome."""

    try:
        body = await request.json()
    except ValueError:
        logger.warning("Ignoring Strava webhook delivery with an invalid JSON body")
        return {"success": True}

    logger.info("Received Strava webhook event: %s", body)
    if not isinstance(body, dict):
        logger.warning("Ignoring Strava webhook payload that is not an object")
        return {"success": True}

    try:
        event = StravaWebhookEvent.model_validate(body)
    except ValidationError:
        logger.warning("Ignoring malformed Strava webhook payload")
        return {"success": True}

    await SyncEngine(session, client).handle_event(event)
    return {"success": True}


__all__ = ["router"]
