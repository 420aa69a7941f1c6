"""Database model for synced Strava activities."""

from __future__ import annotations

from datetime import datetime
from typing import Optional

from sqlmodel import Field as ORMField, SQLModel

from ..core.time import utcnow


class ActivityFields(SQLModel):
    """Mutable activity columns, written as a whole on every upsert."""

    activity_type: str
    name: str
    distance: float = 0.0  # meters
    moving_time: int = 0  # seconds
    elapsed_time: int = 0  # seconds
    total_elevation_gain: float = 0.0  # meters
    start_date: datetime
    average_speed: Optional[float] = None  # m/s
    max_speed: Optional[float] = None  # m/s
    is_wednesday_ride: bool = False


class Activity(ActivityFields, table=True):
    """Ride pulled from Strava, unique per Strava activity id."""

    id: Optional[int] = ORMField(default=None, primary_key=True)
    # No foreign key to strava_token: rides outlive a disconnect.
    user_id: int = ORMField(foreign_key="user.id", index=True)
    strava_activity_id: str = ORMField(index=True, unique=True)
    created_at: datetime = ORMField(default_factory=utcnow)
    updated_at: datetime = ORMField(default_factory=utcnow)


__all__ = ["Activity", "ActivityFields"]
