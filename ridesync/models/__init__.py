"""Database model exports."""

from .activity import Activity, ActivityFields
from .strava import StravaCredentials, StravaToken, StravaWebhookEvent
from .user import User

__all__ = [
    "Activity",
    "ActivityFields",
    "StravaCredentials",
    "StravaToken",
    "StravaWebhookEvent",
    "User",
]
