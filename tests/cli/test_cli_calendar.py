import json
from unittest.mock import patch

import pytest

from almanac.cli.calendar import main as calendar_main
from almanac.core.calendar import CalendarDateTime
from almanac.services.calendar_importer import export_calendar
from almanac.services.db_service import DatabaseService


@pytest.fixture(autouse=True)
def clean_env(monkeypatch):
    for var in ("ALMANAC_WEEKDAY_OFFSET", "ALMANAC_DEFAULT_PRESET", "ALMANAC_DB_PATH"):
        monkeypatch.delenv(var, raising=False)


@pytest.fixture
def db_path(tmp_path):
    return str(tmp_path / "world.almanac")


def run_cli(*argv):
    with patch("sys.argv", ["almanac", *argv]):
        with pytest.raises(SystemExit) as e:
            calendar_main()
    return e.value.code


@pytest.fixture
def initialized(db_path, capsys):
    assert run_cli("init", "-d", db_path) == 0
    capsys.readouterr()
    return db_path


def test_init_creates_database(db_path, capsys):
    assert run_cli("init", "-d", db_path) == 0

    out, _ = capsys.readouterr()
    assert "✓ Installed calendar 'Gregorian Calendar'" in out
    assert "Date: January 1, 2024" in out


def test_missing_database(db_path, capsys):
    assert run_cli("show", "-d", db_path) == 1

    out, _ = capsys.readouterr()
    assert "Database file not found" in out


def test_no_command(capsys):
    assert run_cli() == 1


def test_advance_and_show(initialized, capsys):
    assert run_cli("advance", "-d", initialized, "3", "day") == 0
    out, _ = capsys.readouterr()
    assert "Advanced 3 day(s) to Year 2024, Month 1, Day 4 00:00:00" in out

    assert run_cli("show", "-d", initialized) == 0
    out, _ = capsys.readouterr()
    assert "Calendar: Gregorian Calendar" in out
    assert "Date: Wednesday, January 4, 2024" in out
    assert "Time: 00:00:00" in out
    assert "World time sync: off" in out


def test_show_prints_month_grid(initialized, capsys):
    assert run_cli("advance", "-d", initialized, "3", "day") == 0
    capsys.readouterr()

    assert run_cli("show", "-d", initialized) == 0

    lines = capsys.readouterr().out.splitlines()
    assert "January 2024" in lines
    header = lines.index("January 2024") + 1
    assert lines[header] == "Sun Mon Tue Wed Thu Fri Sat"
    weeks = lines[header + 1 :]
    marked = [line for line in weeks if "*" in line]
    assert len(marked) == 1
    assert " 4*" in marked[0]
    assert weeks[-1].split()[-1] == "31"


def test_show_json(initialized, capsys):
    assert run_cli("show", "-d", initialized, "--json") == 0

    snapshot = json.loads(capsys.readouterr().out)
    assert snapshot["config"]["id"] == "gregorian"
    assert snapshot["state"]["year"] == 2024
    assert snapshot["linearTime"] == 0


def test_set_date_requires_a_field(initialized, capsys):
    assert run_cli("set-date", "-d", initialized) == 1

    out, _ = capsys.readouterr()
    assert "Nothing to set" in out


def test_set_date_and_time(initialized, capsys):
    assert run_cli("set-date", "-d", initialized, "--month", "1", "--day", "29") == 0
    assert run_cli("set-time", "-d", initialized, "--hour", "18", "--minute", "45") == 0

    out, _ = capsys.readouterr()
    assert "Date set to Year 2024, Month 2, Day 29" in out
    assert "Time set to Year 2024, Month 2, Day 29 18:45:00" in out


def test_sync_moves_stored_world_clock(initialized, capsys):
    assert run_cli("sync", "-d", initialized, "on") == 0
    assert "World time sync enabled" in capsys.readouterr().out

    assert run_cli("advance", "-d", initialized, "1", "hour") == 0
    assert run_cli("set-time", "-d", initialized, "--hour", "5", "--no-sync") == 0

    db = DatabaseService(initialized)
    db.connect()
    try:
        assert db.get_world_time() == 3600.0
        assert db.load_state().civil() == (2024, 0, 1, 5, 0, 0)
    finally:
        db.close()


def test_convert_both_directions(initialized, capsys):
    assert run_cli("convert", "-d", initialized, "--seconds", "86400") == 0
    assert capsys.readouterr().out.strip() == "Monday, January 2, 2024 00:00:00"

    assert run_cli("convert", "-d", initialized, "--year", "2024", "--day", "2") == 0
    assert float(capsys.readouterr().out.strip()) == 86400.0


def test_convert_needs_input(initialized, capsys):
    assert run_cli("convert", "-d", initialized) == 1
    assert "Provide --seconds" in capsys.readouterr().out


def test_export_to_stdout(initialized, capsys):
    assert run_cli("export", "-d", initialized, "-", "--include-state") == 0

    document = json.loads(capsys.readouterr().out)
    assert document["version"] == 1
    assert document["config"]["id"] == "gregorian"
    assert document["state"]["year"] == 2024


def test_import_file(initialized, tmp_path, two_month_shape, capsys):
    path = tmp_path / "tiny.json"
    document = export_calendar(two_month_shape, CalendarDateTime(year=3, month=1, day=2))
    path.write_text(json.dumps(document), encoding="utf-8")

    assert run_cli("import", "-d", initialized, str(path)) == 0
    assert "✓ Installed calendar 'Tiny'" in capsys.readouterr().out

    assert run_cli("show", "-d", initialized, "--json") == 0
    snapshot = json.loads(capsys.readouterr().out)
    assert snapshot["config"]["id"] == "tiny"
    assert snapshot["date"] == "Beta 2, 3"


def test_import_unreadable_file(initialized, tmp_path, capsys):
    path = tmp_path / "broken.json"
    path.write_text("{not json", encoding="utf-8")

    assert run_cli("import", "-d", initialized, str(path)) == 1
    assert "Could not read" in capsys.readouterr().out


def test_import_invalid_document(initialized, tmp_path, capsys):
    path = tmp_path / "empty.json"
    path.write_text(json.dumps({"version": 1}), encoding="utf-8")

    assert run_cli("import", "-d", initialized, str(path)) == 1
    assert "✗ Error: Invalid import data: missing config" in capsys.readouterr().out


def test_export_round_trip_through_file(initialized, tmp_path, capsys):
    out_file = tmp_path / "out.json"

    assert run_cli("export", "-d", initialized, str(out_file)) == 0
    assert "✓ Exported calendar to" in capsys.readouterr().out
    assert json.loads(out_file.read_text(encoding="utf-8"))["config"]["name"] == (
        "Gregorian Calendar"
    )
