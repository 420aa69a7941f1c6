import pytest
from sqlalchemy.exc import OperationalError
from sqlmodel import select

from conftest import ride

from ridesync.models import Activity, User
from ridesync.services import ActivityStore, StorageError
from ridesync.services.classifier import normalize_activity


def all_activities(session):
    session.expire_all()
    return session.exec(select(Activity)).all()


def test_upsert_creates_then_updates_in_place(session, user) -> None:
    store = ActivityStore(session)

    assert store.upsert(user.id, "100", normalize_activity(ride(100, distance=1000.0))) is True
    assert store.upsert(user.id, "100", normalize_activity(ride(100, distance=1500.0))) is False

    rows = all_activities(session)
    assert len(rows) == 1
    assert rows[0].distance == 1500.0
    assert rows[0].user_id == user.id


def test_delete_removes_only_the_matching_activity(session, user) -> None:
    store = ActivityStore(session)
    store.upsert(user.id, "1", normalize_activity(ride(1)))
    store.upsert(user.id, "2", normalize_activity(ride(2)))

    assert store.delete(user.id, "1") is True

    assert [row.strava_activity_id for row in all_activities(session)] == ["2"]


def test_delete_unknown_activity_is_a_noop(session, user) -> None:
    store = ActivityStore(session)
    store.upsert(user.id, "1", normalize_activity(ride(1)))

    assert store.delete(user.id, "999") is False
    assert len(all_activities(session)) == 1


def test_delete_is_scoped_to_owner(session, user) -> None:
    other = User(name="Other")
    session.add(other)
    session.commit()
    session.refresh(other)
    store = ActivityStore(session)
    store.upsert(user.id, "1", normalize_activity(ride(1)))

    assert store.delete(other.id, "1") is False
    assert store.get("1") is not None


def test_list_for_user_is_newest_first(session, user) -> None:
    store = ActivityStore(session)
    store.upsert(user.id, "1", normalize_activity(ride(1, start_date="2024-04-01T10:00:00Z")))
    store.upsert(user.id, "2", normalize_activity(ride(2, start_date="2024-05-01T10:00:00Z")))

    assert [row.strava_activity_id for row in store.list_for_user(user.id)] == ["2", "1"]


def test_failed_reads_roll_back_the_session(session, user, monkeypatch) -> None:
    def broken_exec(*args, **kwargs):
        raise OperationalError("SELECT", {}, Exception("database is locked"))

    rollbacks = []
    monkeypatch.setattr(session, "rollback", lambda: rollbacks.append(True))
    monkeypatch.setattr(session, "exec", broken_exec)
    store = ActivityStore(session)

    with pytest.raises(StorageError):
        store.get("1")
    with pytest.raises(StorageError):
        store.list_for_user(user.id)

    assert rollbacks == [True, True]
