"""Database and payload models for the Strava connection."""

from __future__ import annotations

from datetime import datetime
from typing import Any, Dict, Optional

from sqlmodel import Field as ORMField, SQLModel

from ..core.time import utcnow


class StravaToken(SQLModel, table=True):
    """Persists a member's Strava OAuth credentials.

    A row whose token columns are null means the member disconnected.
    """

    __tablename__ = "strava_token"

    user_id: int = ORMField(foreign_key="user.id", primary_key=True)
    athlete_id: Optional[str] = ORMField(default=None, index=True)
    access_token: Optional[str] = None
    refresh_token: Optional[str] = None
    expires_at: Optional[int] = None  # Unix timestamp
    scope: Optional[str] = None
    connected_at: Optional[datetime] = None
    updated_at: datetime = ORMField(default_factory=utcnow)


class StravaCredentials(SQLModel):
    """Complete credential set for a connected member."""

    athlete_id: str
    access_token: str
    refresh_token: str
    expires_at: int
    connected_at: datetime
    scope: Optional[str] = None


class StravaWebhookEvent(SQLModel):
    """Push notification delivered by the Strava webhook subscription."""

    object_type: str
    object_id: int
    aspect_type: str
    owner_id: int
    subscription_id: Optional[int] = None
    event_time: Optional[int] = None
    updates: Optional[Dict[str, Any]] = None


__all__ = ["StravaCredentials", "StravaToken", "StravaWebhookEvent"]
