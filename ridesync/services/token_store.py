"""Per-member persistence of Strava credentials."""

from __future__ import annotations

from typing import Optional

from sqlalchemy.exc import SQLAlchemyError
from sqlmodel import Session, select

from ..core.logger import get_logger
from ..core.time import utcnow
from ..models import StravaCredentials, StravaToken
from .errors import StorageError

logger = get_logger(__name__)


class TokenStore:
    """Reads and writes the ``strava_token`` row of each member."""

    def __init__(self, session: Session):
        self.session = session

    def get(self, user_id: int) -> Optional[StravaCredentials]:
        try:
            row = self.session.get(StravaToken, user_id)
        except SQLAlchemyError as exc:
            self.session.rollback()
            raise StorageError(f"Failed to load credentials for user {user_id}") from exc
        if row is None or not row.access_token or not row.refresh_token:
            return None
        return StravaCredentials(
            athlete_id=row.athlete_id or "",
            access_token=row.access_token,
            refresh_token=row.refresh_token,
            expires_at=row.expires_at or 0,
            connected_at=row.connected_at or row.updated_at,
            scope=row.scope,
        )

    def save(self, user_id: int, credentials: StravaCredentials) -> None:
        """Replace the stored credentials; the last writer wins."""

        try:
            row = self.session.get(StravaToken, user_id) or StravaToken(user_id=user_id)
            row.athlete_id = credentials.athlete_id
            row.access_token = credentials.access_token
            row.refresh_token = credentials.refresh_token
            row.expires_at = credentials.expires_at
            row.connected_at = credentials.connected_at
            row.scope = credentials.scope
            row.updated_at = utcnow()
            self.session.add(row)
            self.session.commit()
        except SQLAlchemyError as exc:
            self.session.rollback()
            raise StorageError(f"Failed to save credentials for user {user_id}") from exc

    def clear(self, user_id: int) -> None:
        """Null out the credential columns, leaving activities untouched."""

        try:
            row = self.session.get(StravaToken, user_id)
            if row is None:
                return
            row.athlete_id = None
            row.access_token = None
            row.refresh_token = None
            row.expires_at = None
            row.connected_at = None
            row.scope = None
            row.updated_at = utcnow()
            self.session.add(row)
            self.session.commit()
        except SQLAlchemyError as exc:
            self.session.rollback()
            raise StorageError(f"Failed to clear credentials for user {user_id}") from exc

    def find_user_id(self, athlete_id: str) -> Optional[int]:
        """Resolve the member connected to a Strava athlete.

        Should two members ever share an athlete id, the lowest user id wins.
        """

        try:
            user_ids = self.session.exec(
                select(StravaToken.user_id)
                .where(StravaToken.athlete_id == athlete_id)
                .order_by(StravaToken.user_id)
            ).all()
        except SQLAlchemyError as exc:
            self.session.rollback()
            raise StorageError(f"Failed to resolve athlete {athlete_id}") from exc
        if not user_ids:
            return None
        if len(user_ids) > 1:
            logger.warning(
                "Athlete %s is linked to %d users; using user %s",
                athlete_id,
                len(user_ids),
                user_ids[0],
            )
        return user_ids[0]


__all__ = ["TokenStore"]
