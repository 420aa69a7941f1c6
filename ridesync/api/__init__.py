"""API assembly: routers plus translation of sync failures to HTTP errors."""

from __future__ import annotations

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse

from ..core import get_logger
from ..services import (
    NotConnected,
    RefreshFailed,
    StorageError,
    StravaSyncError,
    UpstreamError,
)
from .routers import ALL_ROUTERS

logger = get_logger(__name__)

# Most specific first; NotConnected and friends all derive from StravaSyncError.
_ERROR_RESPONSES = (
    (NotConnected, 400, "Strava not connected"),
    (RefreshFailed, 401, "Strava authorization expired, please reconnect"),
    (UpstreamError, 502, "Strava is unavailable, try again"),
    (StorageError, 500, "Failed to store activities"),
)


def sync_error_response(exc: StravaSyncError) -> tuple[int, str]:
    """Status code and user-facing detail for a pipeline failure."""

    for error_type, status_code, detail in _ERROR_RESPONSES:
        if isinstance(exc, error_type):
            return status_code, detail
    return 500, "Failed to sync activities"


async def _sync_error_handler(request: Request, exc: StravaSyncError) -> JSONResponse:
    status_code, detail = sync_error_response(exc)
    logger.warning("%s %s failed: %s", request.method, request.url.path, exc)
    return JSONResponse({"detail": detail}, status_code=status_code)


def register_routes(app: FastAPI) -> None:
    """Attach the routers and the Strava failure handler to the given app."""

    for router in ALL_ROUTERS:
        app.include_router(router)
    app.add_exception_handler(StravaSyncError, _sync_error_handler)


__all__ = ["register_routes", "sync_error_response"]
