"""Reconciles Strava activities into the local store.

Two entry points share one upsert path: ``sync_user_activities`` pulls a
recent window on demand and ``handle_event`` applies webhook pushes.
"""

from __future__ import annotations

import time
from dataclasses import dataclass
from typing import Any, Callable, Dict

from sqlmodel import Session

from ..core.logger import get_logger
from ..models import StravaWebhookEvent
from .activity_store import ActivityStore
from .classifier import is_relevant_type, normalize_activity
from .errors import NotFound
from .strava_client import StravaClient
from .token_store import TokenStore
from .tokens import TokenRefresher

logger = get_logger(__name__)

LOOKBACK_SECONDS = 90 * 24 * 60 * 60
PAGE_SIZE = 100


@dataclass
class SyncResult:
    created: int = 0
    updated: int = 0
    total_processed: int = 0

    def to_dict(self) -> Dict[str, int]:
        return {
            "created": self.created,
            "updated": self.updated,
            "totalProcessed": self.total_processed,
        }


class SyncEngine:
    """Pull sync and webhook handling for one database session."""

    def __init__(
        self,
        session: Session,
        client: StravaClient,
        clock: Callable[[], float] = time.time,
    ):
        self.tokens = TokenStore(session)
        self.activities = ActivityStore(session)
        self.refresher = TokenRefresher(self.tokens, client, clock=clock)
        self.client = client
        self._clock = clock

    def _upsert(self, user_id: int, raw: Dict[str, Any]) -> bool:
        return self.activities.upsert(user_id, str(raw["id"]), normalize_activity(raw))

    async def sync_user_activities(self, user_id: int) -> SyncResult:
        """Pull the last 90 days of activities for a member.

        Each activity commits on its own; a failure part way leaves the earlier
        ones stored and a rerun converges on the same rows.
        """

        access_token = await self.refresher.get_valid_access_token(user_id)
        after = int(self._clock()) - LOOKBACK_SECONDS
        raw_activities = await self.client.list_activities(
            access_token, after=after, page=1, per_page=PAGE_SIZE
        )

        result = SyncResult(total_processed=len(raw_activities))
        for raw in raw_activities:
            if not is_relevant_type(raw):
                continue
            if self._upsert(user_id, raw):
                result.created += 1
            else:
                result.updated += 1

        logger.info(
            "Synced Strava activities for user %s: %d created, %d updated, %d processed",
            user_id,
            result.created,
            result.updated,
            result.total_processed,
        )
        return result

    async def handle_event(self, event: StravaWebhookEvent) -> None:
        """Apply a webhook event. Never raises: the delivery is always acknowledged."""

        if event.object_type != "activity":
            return

        try:
            user_id = self.tokens.find_user_id(str(event.owner_id))
            if user_id is None:
                logger.info("No user found for Strava athlete %s", event.owner_id)
                return
            await self._apply_event(user_id, event)
        except NotFound:
            logger.info("Strava activity %s no longer exists, skipping", event.object_id)
        except Exception:
            logger.exception(
                "Failed to process Strava %s event for activity %s",
                event.aspect_type,
                event.object_id,
            )

    async def _apply_event(self, user_id: int, event: StravaWebhookEvent) -> None:
        activity_id = str(event.object_id)

        if event.aspect_type in ("create", "update"):
            access_token = await self.refresher.get_valid_access_token(user_id)
            raw = await self.client.get_activity(access_token, event.object_id)
            if not is_relevant_type(raw):
                return
            created = self._upsert(user_id, raw)
            logger.info(
                "%s activity %s for user %s",
                "Created" if created else "Updated",
                activity_id,
                user_id,
            )
        elif event.aspect_type == "delete":
            if self.activities.delete(user_id, activity_id):
                logger.info("Deleted activity %s for user %s", activity_id, user_id)
        else:
            logger.warning("Ignoring unknown Strava aspect type %r", event.aspect_type)


__all__ = ["LOOKBACK_SECONDS", "PAGE_SIZE", "SyncEngine", "SyncResult"]
