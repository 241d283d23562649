"""
Unit tests for calendar commands.
"""

from almanac.commands.calendar_commands import (
    AdvanceTimeCommand,
    ImportCalendarCommand,
    LoadPresetCommand,
    SetCalendarShapeCommand,
    SetDateCommand,
    SetSyncEnabledCommand,
    SetTimeCommand,
)
from almanac.core.calendar import CalendarDateTime, CalendarShape
from almanac.services.calendar_importer import export_calendar


def test_advance_and_undo(manager):
    cmd = AdvanceTimeCommand(1, "day")

    result = cmd.execute(manager)

    assert result.success
    assert result.command_name == "AdvanceTimeCommand"
    assert "Advanced 1 day(s)" in result.message
    assert result.data["state"]["day"] == 2
    assert cmd.is_executed

    cmd.undo(manager)
    assert manager.state.civil() == (2024, 0, 1, 0, 0, 0)
    assert not cmd.is_executed


def test_advance_unknown_unit_fails(manager):
    cmd = AdvanceTimeCommand(1, "fortnight")

    result = cmd.execute(manager)

    assert not result.success
    assert "Unknown time unit" in result.message
    assert not cmd.is_executed
    assert manager.state.civil() == (2024, 0, 1, 0, 0, 0)


def test_set_date_and_undo(manager):
    cmd = SetDateCommand(month=1, day=29)

    result = cmd.execute(manager)

    assert result.success
    assert result.message == "Date set to Year 2024, Month 2, Day 29 00:00:00"
    assert manager.state.civil() == (2024, 1, 29, 0, 0, 0)

    cmd.undo(manager)
    assert manager.state.civil() == (2024, 0, 1, 0, 0, 0)


def test_set_time(manager):
    result = SetTimeCommand(hour=13, minute=30).execute(manager)

    assert result.success
    assert manager.state.civil() == (2024, 0, 1, 13, 30, 0)


def test_undo_moves_external_clock_back(manager, clock):
    SetSyncEnabledCommand(True).execute(manager)
    cmd = AdvanceTimeCommand(1, "hour")

    cmd.execute(manager)
    assert clock.get_time() == 4600.0

    cmd.undo(manager)
    assert clock.get_time() == 1000.0
    assert manager.state.civil() == (2024, 0, 1, 0, 0, 0)


def test_set_date_without_sync_keeps_clock(manager, clock):
    SetSyncEnabledCommand(True).execute(manager)

    SetDateCommand(day=5, update_external=False).execute(manager)

    assert clock.get_time() == 1000.0
    assert manager.state.day == 5


def test_sync_toggle_and_undo(manager):
    cmd = SetSyncEnabledCommand(True)

    result = cmd.execute(manager)

    assert result.success
    assert result.message == "World time sync enabled"
    assert manager.state.sync_enabled
    assert manager.state.last_synced_external_time == 1000.0

    cmd.undo(manager)
    assert manager.state.sync_enabled is False


def test_set_shape_and_undo(manager, two_month_shape):
    manager.set_date(month=2, day=10)
    cmd = SetCalendarShapeCommand(two_month_shape)

    result = cmd.execute(manager)

    assert result.success
    assert result.message == "Installed calendar 'Tiny'"
    assert result.data["id"] == "tiny"
    assert manager.shape.id == "tiny"

    cmd.undo(manager)
    assert manager.shape.id == "gregorian"
    assert manager.state.civil() == (2024, 2, 10, 0, 0, 0)


def test_set_invalid_shape_fails(manager):
    bad = CalendarShape(id="bad", name="Bad", months=[], weekdays=[])

    result = SetCalendarShapeCommand(bad).execute(manager)

    assert not result.success
    assert len(result.errors) == 1
    assert "Month list is empty" in result.errors[0]
    assert manager.shape.id == "gregorian"


def test_load_unknown_preset(manager):
    result = LoadPresetCommand("atlantean").execute(manager)

    assert not result.success
    assert result.errors == ["Unknown preset: atlantean"]


def test_load_preset_resets_date(manager):
    manager.set_date(year=1999)

    result = LoadPresetCommand("gregorian").execute(manager)

    assert result.success
    assert manager.state.civil() == (2024, 0, 1, 0, 0, 0)


def test_import_and_undo(manager, two_month_shape):
    document = export_calendar(two_month_shape, CalendarDateTime(year=7, month=1, day=4))
    cmd = ImportCalendarCommand(document)

    result = cmd.execute(manager)

    assert result.success
    assert manager.shape.id == "tiny"
    assert manager.state.civil() == (7, 1, 4, 0, 0, 0)

    cmd.undo(manager)
    assert manager.shape.id == "gregorian"
    assert manager.state.civil() == (2024, 0, 1, 0, 0, 0)


def test_import_without_state(manager, two_month_shape):
    document = export_calendar(two_month_shape, CalendarDateTime(year=7, month=1, day=4))

    ImportCalendarCommand(document, import_state=False).execute(manager)

    assert manager.state.civil() == (1, 0, 1, 0, 0, 0)


def test_import_invalid_document(manager):
    result = ImportCalendarCommand({"nonsense": True}).execute(manager)

    assert not result.success
    assert "missing config" in result.message
    assert manager.shape.id == "gregorian"
