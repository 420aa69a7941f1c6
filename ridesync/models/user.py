"""Database model for program members."""

from __future__ import annotations

from datetime import datetime
from typing import Optional

from sqlmodel import Field as ORMField, SQLModel

from ..core.time import utcnow


class User(SQLModel, table=True):
    """Member account owned by the surrounding application."""

    id: Optional[int] = ORMField(default=None, primary_key=True)
    name: str
    email: Optional[str] = ORMField(default=None, index=True)
    created_at: datetime = ORMField(default_factory=utcnow)


__all__ = ["User"]
