import logging
from datetime import timedelta

import pytest

from pattogym.errors import FetchError, PersistenceError
from pattogym.session import ChooseEnglish, ChooseJapanese, Phase
from pattogym.workouts import WorkoutService

from conftest import BrokenStore


def finish(service, session):
    finished = []
    for _ in range(session.total_sets):
        service.dispatch(session, ChooseJapanese(option_key="a"))
        finished.append(service.dispatch(session, ChooseEnglish(option_key="a")))
    return finished


def test_start_registers_session(store):
    service = WorkoutService(store)
    session = service.start("user-1")
    assert session.phase is Phase.READY
    assert service.get(session.id, "user-1") is session
    assert service.get(session.id, "someone-else") is None
    assert service.get(None, "user-1") is None


def test_fetch_failure_propagates():
    service = WorkoutService(BrokenStore())
    with pytest.raises(FetchError):
        service.start("user-1")
    assert service.sessions == {}


def test_dispatch_reports_completion_once(store):
    service = WorkoutService(store)
    session = service.start("user-1")
    assert finish(service, session) == [False, False, False, False, True]


def test_save_workout_updates_user(store, identity):
    store.ensure_user(identity)
    service = WorkoutService(store)
    session = service.start(identity.uid)
    finish(service, session)

    service.save_workout(identity.uid, session)
    user = store.get_user(identity.uid)
    assert user.total_workouts == 1
    assert user.total_bcal_burned == session.total_bcal
    assert user.brain_fat_percentage == pytest.approx(35.0 - session.total_bcal / 1000)


def test_save_failure_is_logged_not_raised(store, caplog):
    def fail(*args):
        raise PersistenceError("write rejected")

    store.record_workout = fail
    service = WorkoutService(store)
    session = service.start("user-1")
    finish(service, session)

    with caplog.at_level(logging.ERROR, logger="pattogym.workouts"):
        service.save_workout("user-1", session)
    assert "write rejected" in caplog.text


def test_quit_discards_session(store):
    service = WorkoutService(store)
    session = service.start("user-1")
    service.quit(session)
    assert session.phase is Phase.QUIT
    assert service.get(session.id, "user-1") is None


def test_expired_session_is_dropped(store):
    service = WorkoutService(store, timeout_minutes=1)
    session = service.start("user-1")
    session.created_at -= timedelta(minutes=5)
    assert service.get(session.id, "user-1") is None
    assert session.id not in service.sessions


def test_abandoned_sessions_are_pruned_on_start(store):
    service = WorkoutService(store, timeout_minutes=1)
    abandoned = service.start("user-1")
    finished = service.start("user-2")
    finish(service, finished)
    abandoned.created_at -= timedelta(minutes=5)
    finished.created_at -= timedelta(minutes=5)

    fresh = service.start("user-3")

    assert set(service.sessions) == {fresh.id}
    assert finished.id not in service._saved
