"""Aggregate API routers."""

from fastapi import APIRouter

from .strava import router as strava_router
from .system import router as system_router

ALL_ROUTERS: tuple[APIRouter, ...] = (
    system_router,
    strava_router,
)

__all__ = ["ALL_ROUTERS"]
