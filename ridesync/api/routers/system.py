"""Liveness and readiness checks."""

from __future__ import annotations

from typing import Dict

from fastapi import APIRouter, Depends
from fastapi.responses import JSONResponse
from sqlalchemy import text
from sqlalchemy.exc import SQLAlchemyError
from sqlmodel import Session

from ...core import get_logger, get_session

logger = get_logger(__name__)

router = APIRouter(tags=["system"])


@router.get("/health")
def health() -> Dict[str, bool]:
    """Process is up; no dependencies checked."""

    return {"ok": True}


@router.get("/healthz")
def healthz(session: Session = Depends(get_session)) -> JSONResponse:
    """Ready when the activity database answers."""

    try:
        session.execute(text("SELECT 1"))
    except SQLAlchemyError:
        logger.exception("Database readiness check failed")
        return JSONResponse({"ok": False, "database": "unavailable"}, status_code=503)
    return JSONResponse({"ok": True, "database": "ok"})


__all__ = ["router"]
