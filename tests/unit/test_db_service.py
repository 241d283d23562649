import sqlite3

import pytest

from almanac.core.calendar import CalendarDateTime
from almanac.services.db_service import DatabaseService
from almanac.services.repositories import CalendarRepository, CalendarStateRepository
from almanac.services.time_manager import CalendarTimeManager


def test_empty_database(db_service):
    """A fresh database holds no calendar, date or clock value."""
    assert db_service.load_shape() is None
    assert db_service.load_state() is None
    assert db_service.get_world_time() is None
    assert db_service.get_all_calendars() == []


def test_shape_round_trip(db_service, gregorian):
    db_service.save_shape(gregorian)

    assert db_service.load_shape() == gregorian


def test_state_round_trip(db_service):
    state = CalendarDateTime(
        year=2024, month=1, day=29, hour=12, sync_enabled=True, last_synced_external_time=5.5
    )

    db_service.save_state(state)
    assert db_service.load_state() == state

    # Upsert keeps a single row
    state.day = 28
    db_service.save_state(state)
    assert db_service.load_state().day == 28


def test_saving_switches_active_calendar(db_service, gregorian, two_month_shape):
    db_service.save_shape(gregorian)
    db_service.save_shape(two_month_shape)

    assert db_service.load_shape().id == "tiny"
    assert {s.id for s in db_service.get_all_calendars()} == {"gregorian", "tiny"}
    assert db_service.get_calendar("gregorian") == gregorian


def test_delete_calendar(db_service, gregorian):
    db_service.save_shape(gregorian)

    db_service.delete_calendar("gregorian")

    assert db_service.get_calendar("gregorian") is None
    assert db_service.load_shape() is None


def test_repository_set_active(db_service, gregorian, two_month_shape):
    with db_service.transaction() as conn:
        repo = CalendarRepository(conn)
    repo.upsert(gregorian)
    repo.upsert(two_month_shape, active=True)

    repo.set_active("gregorian")

    assert repo.get_active().id == "gregorian"
    with pytest.raises(ValueError):
        repo.set_active("missing")
    assert repo.get_active().id == "gregorian"


def test_repository_without_connection():
    repo = CalendarStateRepository()

    with pytest.raises(RuntimeError, match="not initialized"):
        repo.get()


def test_world_time(db_service):
    db_service.set_world_time(12.5)
    db_service.set_world_time(40.0)

    assert db_service.get_world_time() == 40.0


def test_restore_world_clock_persists_changes(db_service):
    db_service.set_world_time(100.0)

    clock = db_service.restore_world_clock()
    assert clock.get_time() == 100.0

    clock.advance(25)
    assert db_service.get_world_time() == 125.0


def test_reopen_file_database(tmp_path, gregorian):
    """Shape, date and clock survive closing and reopening the file."""
    path = str(tmp_path / "world.almanac")
    db = DatabaseService(path)
    db.connect()
    db.save_shape(gregorian)
    db.save_state(CalendarDateTime(year=2025, month=6, day=4))
    db.set_world_time(9.0)
    db.close()
    assert not db.is_connected

    reopened = DatabaseService(path)
    reopened.connect()
    try:
        assert reopened.load_shape() == gregorian
        assert reopened.load_state().civil() == (2025, 6, 4, 0, 0, 0)
        assert reopened.get_world_time() == 9.0
    finally:
        reopened.close()


def test_time_manager_persists_through_database(db_service, clock):
    manager = CalendarTimeManager(db_service, clock)
    manager.advance(3, "day")

    restored = CalendarTimeManager(db_service, clock)

    assert restored.shape.id == "gregorian"
    assert restored.state.civil() == (2024, 0, 4, 0, 0, 0)


def test_save_calendar_writes_shape_and_state(db_service, gregorian):
    db_service.save_calendar(gregorian, CalendarDateTime(year=2024, month=3, day=9))

    assert db_service.load_shape() == gregorian
    assert db_service.load_state().civil() == (2024, 3, 9, 0, 0, 0)


def test_save_calendar_is_all_or_nothing(db_service, gregorian, two_month_shape, monkeypatch):
    db_service.save_calendar(gregorian, CalendarDateTime(year=2024, month=5, day=2))

    def fail(conn, state):
        raise sqlite3.OperationalError("database is locked")

    monkeypatch.setattr(db_service._state_repo, "stage_save", fail)
    with pytest.raises(sqlite3.OperationalError):
        db_service.save_calendar(two_month_shape, CalendarDateTime(year=1))

    assert db_service.load_shape().id == "gregorian"
    assert db_service.get_calendar("tiny") is None
    assert db_service.load_state().civil() == (2024, 5, 2, 0, 0, 0)


@pytest.mark.parametrize("action", ["set_shape", "import_document"])
def test_failed_install_leaves_database_unchanged(
    db_service, clock, two_month_shape, monkeypatch, action
):
    from almanac.services.calendar_importer import export_calendar

    manager = CalendarTimeManager(db_service, clock)
    manager.advance(2, "day")

    def fail(conn, state):
        raise sqlite3.OperationalError("disk I/O error")

    monkeypatch.setattr(db_service._state_repo, "stage_save", fail)
    with pytest.raises(sqlite3.OperationalError):
        if action == "set_shape":
            manager.set_shape(two_month_shape)
        else:
            manager.import_document(export_calendar(two_month_shape, CalendarDateTime(year=3)))
    monkeypatch.undo()

    assert manager.shape.id == "gregorian"
    assert db_service.load_shape().id == "gregorian"
    assert db_service.load_state().civil() == (2024, 0, 3, 0, 0, 0)

    restored = CalendarTimeManager(db_service, clock)
    assert restored.shape.id == "gregorian"
    assert restored.state.civil() == (2024, 0, 3, 0, 0, 0)
