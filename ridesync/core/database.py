"""Database configuration and session helpers."""

from __future__ import annotations

from pathlib import Path
from typing import Iterator, Optional

from sqlalchemy.engine import Engine
from sqlmodel import Session, SQLModel, create_engine

from .config import DATABASE_URL

_PROJECT_ROOT = Path(__file__).resolve().parents[2]
_DATA_DIR = _PROJECT_ROOT / "data"


def _default_url() -> str:
    _DATA_DIR.mkdir(parents=True, exist_ok=True)
    return f"sqlite:///{_DATA_DIR / 'app.db'}"


def make_engine(url: Optional[str] = None) -> Engine:
    """Create an engine; SQLite connections are shared across request threads."""

    url = url or _default_url()
    connect_args = {"check_same_thread": False} if url.startswith("sqlite") else {}
    return create_engine(url, connect_args=connect_args)


engine = make_engine(DATABASE_URL)


def init_db(bind: Engine, reset: bool = False) -> None:
    """Create all registered tables, dropping them first when ``reset`` is set."""

    if reset:
        SQLModel.metadata.drop_all(bind)
    SQLModel.metadata.create_all(bind)


def get_session() -> Iterator[Session]:
    """FastAPI dependency that yields a database session."""

    with Session(engine) as session:
        yield session


__all__ = ["engine", "get_session", "init_db", "make_engine"]
