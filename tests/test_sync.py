import time

import pytest
from sqlmodel import select

from conftest import ATHLETE_ID, ride, store_credentials

from ridesync.models import Activity, StravaWebhookEvent
from ridesync.services import (
    ActivityStore,
    NotConnected,
    SyncEngine,
    TokenStore,
    UpstreamError,
)
from ridesync.services.classifier import normalize_activity
from ridesync.services.sync import LOOKBACK_SECONDS

pytestmark = pytest.mark.anyio


def all_activities(session):
    session.expire_all()
    return session.exec(select(Activity)).all()


def event(aspect_type: str, object_id: int, **overrides) -> StravaWebhookEvent:
    payload = {
        "object_type": "activity",
        "object_id": object_id,
        "aspect_type": aspect_type,
        "owner_id": ATHLETE_ID,
        "subscription_id": 1,
        "event_time": 1_714_000_000,
    }
    payload.update(overrides)
    return StravaWebhookEvent.model_validate(payload)


async def test_pull_sync_stores_wednesday_ride_and_skips_run(
    session, user, strava_client, fake_strava
) -> None:
    store_credentials(session, user.id)
    fake_strava.add(
        ride(1, start_date="2024-05-01T17:30:00Z"),
        ride(2, activity_type="Run", start_date="2024-05-02T07:00:00Z"),
    )

    result = await SyncEngine(session, strava_client).sync_user_activities(user.id)

    assert (result.created, result.updated, result.total_processed) == (1, 0, 2)
    rows = all_activities(session)
    assert len(rows) == 1
    assert rows[0].strava_activity_id == "1"
    assert rows[0].is_wednesday_ride is True
    assert fake_strava.token_grants == []


async def test_pull_sync_requests_ninety_day_window(
    session, user, strava_client, fake_strava
) -> None:
    store_credentials(session, user.id)
    now = 1_714_000_000

    await SyncEngine(session, strava_client, clock=lambda: now).sync_user_activities(user.id)

    params = fake_strava.requests[-1].url.params
    assert params["after"] == str(now - LOOKBACK_SECONDS)
    assert params["page"] == "1"
    assert params["per_page"] == "100"


async def test_repeated_pull_sync_updates_instead_of_duplicating(
    session, user, strava_client, fake_strava
) -> None:
    store_credentials(session, user.id)
    fake_strava.add(ride(1, distance=1000.0))
    engine = SyncEngine(session, strava_client)

    await engine.sync_user_activities(user.id)
    fake_strava.add(ride(1, distance=1100.0))
    second = await engine.sync_user_activities(user.id)

    assert (second.created, second.updated, second.total_processed) == (0, 1, 1)
    rows = all_activities(session)
    assert len(rows) == 1
    assert rows[0].distance == 1100.0


async def test_pull_sync_refreshes_expiring_token(
    session, user, strava_client, fake_strava
) -> None:
    store_credentials(session, user.id, expires_in=60)
    fake_strava.add(ride(1))

    await SyncEngine(session, strava_client).sync_user_activities(user.id)

    assert fake_strava.token_grants == ["refresh_token"]
    assert fake_strava.requests[-1].headers["Authorization"] == "Bearer new-access"


async def test_pull_sync_without_connection_fails(session, user, strava_client) -> None:
    with pytest.raises(NotConnected):
        await SyncEngine(session, strava_client).sync_user_activities(user.id)


async def test_pull_sync_surfaces_upstream_failure(
    session, user, strava_client, fake_strava
) -> None:
    store_credentials(session, user.id)
    fake_strava.api_status = 500

    with pytest.raises(UpstreamError):
        await SyncEngine(session, strava_client).sync_user_activities(user.id)


async def test_webhook_create_stores_ride(session, user, strava_client, fake_strava) -> None:
    store_credentials(session, user.id)
    fake_strava.add(ride(55))
    engine = SyncEngine(session, strava_client)

    await engine.handle_event(event("create", 55))
    await engine.handle_event(event("create", 55))

    rows = all_activities(session)
    assert [row.strava_activity_id for row in rows] == ["55"]


async def test_webhook_update_overwrites_existing_record(
    session, user, strava_client, fake_strava
) -> None:
    store_credentials(session, user.id)
    ActivityStore(session).upsert(user.id, "9", normalize_activity(ride(9, distance=1000.0)))
    fake_strava.add(ride(9, distance=1200.0))

    await SyncEngine(session, strava_client).handle_event(event("update", 9))

    rows = all_activities(session)
    assert len(rows) == 1
    assert rows[0].distance == 1200.0


async def test_webhook_never_persists_runs(session, user, strava_client, fake_strava) -> None:
    store_credentials(session, user.id)
    fake_strava.add(ride(3, activity_type="Run"))

    await SyncEngine(session, strava_client).handle_event(event("create", 3))

    assert all_activities(session) == []


async def test_webhook_delete_removes_exactly_one_record(
    session, user, strava_client, fake_strava
) -> None:
    store_credentials(session, user.id)
    store = ActivityStore(session)
    store.upsert(user.id, "1", normalize_activity(ride(1)))
    store.upsert(user.id, "2", normalize_activity(ride(2)))
    engine = SyncEngine(session, strava_client)

    await engine.handle_event(event("delete", 1))
    await engine.handle_event(event("delete", 12345))

    assert [row.strava_activity_id for row in all_activities(session)] == ["2"]
    assert fake_strava.requests == []


async def test_webhook_for_unknown_athlete_is_ignored(
    session, user, strava_client, fake_strava
) -> None:
    store_credentials(session, user.id)
    fake_strava.add(ride(1))

    await SyncEngine(session, strava_client).handle_event(event("create", 1, owner_id=1))

    assert all_activities(session) == []
    assert fake_strava.requests == []


async def test_webhook_for_non_activity_object_is_ignored(
    session, user, strava_client, fake_strava
) -> None:
    store_credentials(session, user.id)

    await SyncEngine(session, strava_client).handle_event(
        event("update", ATHLETE_ID, object_type="athlete", updates={"authorized": "false"})
    )

    assert fake_strava.requests == []
    assert TokenStore(session).get(user.id) is not None


async def test_webhook_swallows_fetch_failures(
    session, user, strava_client, fake_strava
) -> None:
    store_credentials(session, user.id)
    fake_strava.api_status = 500

    await SyncEngine(session, strava_client).handle_event(event("create", 1))

    assert all_activities(session) == []


async def test_webhook_swallows_missing_activity(session, user, strava_client) -> None:
    store_credentials(session, user.id)

    await SyncEngine(session, strava_client).handle_event(event("update", 404))

    assert all_activities(session) == []


async def test_webhook_swallows_refresh_failure(
    session, user, strava_client, fake_strava
) -> None:
    original = store_credentials(session, user.id, expires_in=0)
    fake_strava.token_status = 401
    fake_strava.add(ride(1))

    await SyncEngine(session, strava_client).handle_event(event("create", 1))

    assert all_activities(session) == []
    assert TokenStore(session).get(user.id).access_token == original.access_token


async def test_disconnect_keeps_synced_history(
    session, user, strava_client, fake_strava
) -> None:
    store_credentials(session, user.id, expires_in=6 * 3600)
    fake_strava.add(ride(1))
    await SyncEngine(session, strava_client, clock=time.time).sync_user_activities(user.id)

    TokenStore(session).clear(user.id)

    assert TokenStore(session).get(user.id) is None
    assert len(all_activities(session)) == 1
