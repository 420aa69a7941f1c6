"""Classification and unit helpers for Strava activities."""

from __future__ import annotations

from datetime import datetime, timezone
from typing import Any, Dict, Optional

from ..models import ActivityFields

RIDE_TYPE = "Ride"
WEDNESDAY = 2  # datetime.weekday()

METERS_TO_MILES = 0.000621371
METERS_TO_FEET = 3.28084
MPS_TO_MPH = 2.23694


def is_relevant_type(raw: Dict[str, Any]) -> bool:
    """Only rides are kept; runs, swims and the rest are dropped."""

    return raw.get("type") == RIDE_TYPE


def is_qualifying_ride(start: datetime) -> bool:
    """True when ``start`` falls on a Wednesday in its own wall clock."""

    return start.weekday() == WEDNESDAY


def meters_to_miles(meters: float) -> float:
    return meters * METERS_TO_MILES


def meters_to_feet(meters: float) -> float:
    return meters * METERS_TO_FEET


def mps_to_mph(mps: float) -> float:
    return mps * MPS_TO_MPH


def format_duration(seconds: int) -> str:
    """Render a duration as ``"2h 5m"`` or ``"41m 7s"``."""

    seconds = int(seconds)
    hours = seconds // 3600
    minutes = (seconds % 3600) // 60
    secs = seconds % 60
    if hours > 0:
        return f"{hours}h {minutes}m"
    return f"{minutes}m {secs}s"


def parse_strava_datetime(value: Optional[str]) -> Optional[datetime]:
    """Parse Strava's ISO-8601 timestamps (``2024-05-01T17:30:00Z``)."""

    if not value:
        return None
    parsed = datetime.fromisoformat(value.replace("Z", "+00:00"))
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed


def normalize_activity(raw: Dict[str, Any]) -> ActivityFields:
    """Map a raw Strava activity payload onto the stored columns.

    ``start_date`` is kept in UTC. The Wednesday flag uses ``start_date_local``
    (the athlete's wall clock) when Strava provides it.
    """

    start_date = parse_strava_datetime(raw.get("start_date"))
    if start_date is None:
        raise ValueError(f"Strava activity {raw.get('id')} has no start_date")
    start_date = start_date.astimezone(timezone.utc)
    local_start = parse_strava_datetime(raw.get("start_date_local")) or start_date

    return ActivityFields(
        activity_type=raw.get("type") or "",
        name=raw.get("name") or f"Activity {raw.get('id')}",
        distance=float(raw.get("distance") or 0.0),
        moving_time=int(raw.get("moving_time") or 0),
        elapsed_time=int(raw.get("elapsed_time") or 0),
        total_elevation_gain=float(raw.get("total_elevation_gain") or 0.0),
        start_date=start_date,
        average_speed=raw.get("average_speed"),
        max_speed=raw.get("max_speed"),
        is_wednesday_ride=is_qualifying_ride(local_start),
    )


__all__ = [
    "METERS_TO_FEET",
    "METERS_TO_MILES",
    "MPS_TO_MPH",
    "RIDE_TYPE",
    "format_duration",
    "is_qualifying_ride",
    "is_relevant_type",
    "meters_to_feet",
    "meters_to_miles",
    "mps_to_mph",
    "normalize_activity",
    "parse_strava_datetime",
]
