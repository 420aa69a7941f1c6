"""Idempotent persistence of synced activities."""

from __future__ import annotations

from typing import List, Optional

from sqlalchemy import delete, update
from sqlalchemy.dialects.postgresql import insert as postgresql_insert
from sqlalchemy.dialects.sqlite import insert as sqlite_insert
from sqlalchemy.exc import SQLAlchemyError
from sqlmodel import Session, select

from ..core.time import utcnow
from ..models import Activity, ActivityFields
from .errors import StorageError


def _insert_for(session: Session):
    dialect = session.get_bind().dialect.name
    if dialect == "postgresql":
        return postgresql_insert(Activity)
    if dialect == "sqlite":
        return sqlite_insert(Activity)
    raise StorageError(f"Unsupported database dialect for upsert: {dialect}")


class ActivityStore:
    """Activity rows keyed by the unique ``strava_activity_id`` column."""

    def __init__(self, session: Session):
        self.session = session

    def upsert(self, user_id: int, strava_activity_id: str, fields: ActivityFields) -> bool:
        """Insert or update one activity; returns True when a row was created.

        Both statements are keyed on the unique index, so concurrent writers
        for the same Strava id cannot produce duplicates.
        """

        values = fields.model_dump()
        now = utcnow()
        insert_stmt = (
            _insert_for(self.session)
            .values(
                user_id=user_id,
                strava_activity_id=strava_activity_id,
                created_at=now,
                updated_at=now,
                **values,
            )
            .on_conflict_do_nothing(index_elements=["strava_activity_id"])
        )
        try:
            result = self.session.execute(insert_stmt)
            created = result.rowcount == 1
            if not created:
                self.session.execute(
                    update(Activity)
                    .where(Activity.strava_activity_id == strava_activity_id)
                    .values(updated_at=now, **values)
                )
            self.session.commit()
        except SQLAlchemyError as exc:
            self.session.rollback()
            raise StorageError(f"Failed to upsert activity {strava_activity_id}") from exc
        return created

    def get(self, strava_activity_id: str) -> Optional[Activity]:
        try:
            return self.session.exec(
                select(Activity).where(Activity.strava_activity_id == strava_activity_id)
            ).first()
        except SQLAlchemyError as exc:
            self.session.rollback()
            raise StorageError(f"Failed to load activity {strava_activity_id}") from exc

    def delete(self, user_id: int, strava_activity_id: str) -> bool:
        """Remove the member's activity; returns False when nothing matched."""

        try:
            result = self.session.execute(
                delete(Activity).where(
                    Activity.user_id == user_id,
                    Activity.strava_activity_id == strava_activity_id,
                )
            )
            self.session.commit()
        except SQLAlchemyError as exc:
            self.session.rollback()
            raise StorageError(f"Failed to delete activity {strava_activity_id}") from exc
        return result.rowcount > 0

    def list_for_user(self, user_id: int) -> List[Activity]:
        """All of a member's activities, newest first."""

        try:
            return list(
                self.session.exec(
                    select(Activity)
                    .where(Activity.user_id == user_id)
                    .order_by(Activity.start_date.desc())
                ).all()
            )
        except SQLAlchemyError as exc:
            self.session.rollback()
            raise StorageError(f"Failed to list activities for user {user_id}") from exc


__all__ = ["ActivityStore"]
