import os
import time
from typing import Any, Dict, List, Optional
from urllib.parse import parse_qs

os.environ.setdefault("STRAVA_CLIENT_ID", "12345")
os.environ.setdefault("STRAVA_CLIENT_SECRET", "test-secret")
os.environ.setdefault("STRAVA_REDIRECT_URI", "http://testserver/api/strava/callback")
os.environ.setdefault("FRONTEND_ORIGIN", "http://frontend.test")
os.environ.setdefault("STRAVA_WEBHOOK_VERIFY_TOKEN", "verify-me")
os.environ.setdefault("DATABASE_URL", "sqlite://")

import httpx
import pytest
from sqlmodel import Session

from ridesync.core.database import init_db, make_engine
from ridesync.core.time import utcnow
from ridesync.models import StravaCredentials, User
from ridesync.services import StravaClient, TokenStore

ATHLETE_ID = 777


def ride(
    activity_id: int,
    *,
    start_date: str = "2024-05-01T17:30:00Z",
    activity_type: str = "Ride",
    distance: float = 1000.0,
    **extra: Any,
) -> Dict[str, Any]:
    """Raw activity payload shaped like Strava's API."""

    payload = {
        "id": activity_id,
        "name": f"Ride {activity_id}",
        "type": activity_type,
        "distance": distance,
        "moving_time": 1800,
        "elapsed_time": 2000,
        "total_elevation_gain": 50.0,
        "start_date": start_date,
        "average_speed": 5.5,
        "max_speed": 12.0,
    }
    payload.update(extra)
    return payload


class FakeStrava:
    """In-memory Strava served through ``httpx.MockTransport``."""

    def __init__(self) -> None:
        self.activities: Dict[int, Dict[str, Any]] = {}
        self.requests: List[httpx.Request] = []
        self.token_grants: List[str] = []
        self.token_status = 200
        self.api_status: Optional[int] = None
        self.failures: List[Exception] = []

    def add(self, *payloads: Dict[str, Any]) -> None:
        for payload in payloads:
            self.activities[payload["id"]] = payload

    def handle(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        if self.failures:
            raise self.failures.pop(0)

        path = request.url.path
        if path == "/oauth/token":
            return self._token(request)
        if self.api_status is not None:
            return httpx.Response(self.api_status, json={"message": "error"})
        if path == "/api/v3/athlete/activities":
            return httpx.Response(200, json=list(self.activities.values()))
        if path.startswith("/api/v3/activities/"):
            activity_id = int(path.rsplit("/", 1)[-1])
            if activity_id not in self.activities:
                return httpx.Response(404, json={"message": "Record Not Found"})
            return httpx.Response(200, json=self.activities[activity_id])
        return httpx.Response(404)

    def _token(self, request: httpx.Request) -> httpx.Response:
        form = {key: values[0] for key, values in parse_qs(request.content.decode()).items()}
        self.token_grants.append(form["grant_type"])
        if self.token_status != 200:
            return httpx.Response(self.token_status, json={"message": "Bad Request"})
        payload: Dict[str, Any] = {
            "access_token": "new-access",
            "refresh_token": "new-refresh",
            "expires_at": int(time.time()) + 6 * 3600,
        }
        if form["grant_type"] == "authorization_code":
            payload["athlete"] = {"id": ATHLETE_ID, "username": "rider"}
        return httpx.Response(200, json=payload)


def store_credentials(
    session: Session,
    user_id: int,
    *,
    expires_in: int = 6 * 3600,
    athlete_id: int = ATHLETE_ID,
    now: Optional[float] = None,
) -> StravaCredentials:
    credentials = StravaCredentials(
        athlete_id=str(athlete_id),
        access_token="old-access",
        refresh_token="old-refresh",
        expires_at=int(now if now is not None else time.time()) + expires_in,
        connected_at=utcnow(),
    )
    TokenStore(session).save(user_id, credentials)
    return credentials


@pytest.fixture
def anyio_backend():
    return "asyncio"


@pytest.fixture
def engine(tmp_path):
    engine = make_engine(f"sqlite:///{tmp_path / 'test.db'}")
    init_db(engine)
    try:
        yield engine
    finally:
        engine.dispose()


@pytest.fixture
def session(engine):
    with Session(engine) as session:
        yield session


@pytest.fixture
def user(session) -> User:
    user = User(name="Rider", email="rider@example.org")
    session.add(user)
    session.commit()
    session.refresh(user)
    return user


@pytest.fixture
def fake_strava() -> FakeStrava:
    return FakeStrava()


@pytest.fixture
def strava_client(fake_strava) -> StravaClient:
    return StravaClient(
        12345,
        "test-secret",
        retries=2,
        backoff=0,
        transport=httpx.MockTransport(fake_strava.handle),
    )
