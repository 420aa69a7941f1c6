"""Per-member ride statistics."""

from __future__ import annotations

from typing import Any, Dict, List

from sqlmodel import Session

from .activity_store import ActivityStore
from .classifier import format_duration, meters_to_feet, meters_to_miles, mps_to_mph
from .errors import NotConnected
from .token_store import TokenStore

RECENT_LIMIT = 10


def strava_stats(session: Session, user_id: int) -> Dict[str, Any]:
    """Aggregate a connected member's stored rides."""

    credentials = TokenStore(session).get(user_id)
    if credentials is None or not credentials.athlete_id:
        raise NotConnected(user_id)

    activities = ActivityStore(session).list_for_user(user_id)

    total_distance = sum(activity.distance for activity in activities)
    total_elevation = sum(activity.total_elevation_gain for activity in activities)
    total_moving = sum(activity.moving_time for activity in activities)
    longest = max(activities, key=lambda activity: activity.distance, default=None)

    recent: List[Dict[str, Any]] = []
    for activity in activities[:RECENT_LIMIT]:
        recent.append(
            {
                "id": activity.id,
                "name": activity.name,
                "distance": f"{meters_to_miles(activity.distance):.2f}",
                "elevation": f"{meters_to_feet(activity.total_elevation_gain):.0f}",
                "movingTime": activity.moving_time,
                "startDate": activity.start_date.isoformat(),
                "isWednesdayRide": activity.is_wednesday_ride,
                "averageSpeed": (
                    f"{mps_to_mph(activity.average_speed):.1f}"
                    if activity.average_speed
                    else None
                ),
            }
        )

    return {
        "totalRides": len(activities),
        "totalDistanceMiles": f"{meters_to_miles(total_distance):.1f}",
        "totalElevationFeet": f"{meters_to_feet(total_elevation):.0f}",
        "totalMovingTimeSeconds": total_moving,
        "totalMovingTimeFormatted": format_duration(total_moving),
        "wednesdayRides": sum(1 for activity in activities if activity.is_wednesday_ride),
        "longestRide": (
            {
                "name": longest.name,
                "distance": f"{meters_to_miles(longest.distance):.2f}",
                "date": longest.start_date.isoformat(),
            }
            if longest is not None
            else None
        ),
        "recentActivities": recent,
    }


__all__ = ["strava_stats"]
