"""
Integration tests for the calendar HTTP API.
"""

import pytest
from fastapi.testclient import TestClient

from almanac.core.engine_config import EngineSettings
from almanac.core.world_clock import WorldClock
from almanac.services.calendar_importer import export_calendar
from almanac.webserver.server import create_app


@pytest.fixture
def client(db_service):
    app = create_app(EngineSettings(), db_service=db_service, clock=WorldClock(500.0))
    with TestClient(app) as test_client:
        yield test_client


def test_health(client):
    assert client.get("/health").json() == {"status": "ok"}


def test_initial_state(client):
    body = client.get("/api/state").json()

    assert body["date"] == "January 1, 2024"
    assert body["weekday"] == {"index": 0, "name": "Sunday"}
    assert body["worldTime"] == 500.0
    assert body["state"]["syncEnabled"] is False


def test_config(client):
    config = client.get("/api/config").json()

    assert config["id"] == "gregorian"
    assert len(config["months"]) == 12


def test_advance(client):
    response = client.post("/api/advance", json={"amount": 2, "unit": "week"})

    assert response.status_code == 200
    body = response.json()
    assert body["date"] == "January 15, 2024"
    assert "Advanced 2 week(s)" in body["message"]


def test_advance_bad_unit(client):
    response = client.post("/api/advance", json={"amount": 1, "unit": "eon"})

    assert response.status_code == 400
    assert "Unknown time unit" in response.json()["detail"]


def test_set_date_and_time(client):
    client.post("/api/date", json={"month": 11, "day": 31})
    body = client.post("/api/time", json={"hour": 23, "minute": 59, "second": 30}).json()

    assert body["date"] == "December 31, 2024"
    assert body["time"] == "23:59:30"


def test_sync_round_trip(client):
    client.post("/api/sync", json={"enabled": True})

    body = client.post("/api/advance", json={"amount": 1, "unit": "day"}).json()
    assert body["date"] == "January 2, 2024"
    state = client.get("/api/state").json()
    assert state["worldTime"] == 500.0 + 86400

    body = client.post("/api/clock/advance", json={"delta": 3600}).json()
    assert body["time"] == "01:00:00"
    assert body["worldTime"] == 500.0 + 86400 + 3600
    assert body["state"]["lastSyncedExternalTime"] == body["worldTime"]


def test_clock_ignored_without_sync(client):
    body = client.post("/api/clock/advance", json={"delta": 3600}).json()

    assert body["time"] == "00:00:00"
    assert body["worldTime"] == 4100.0


def test_preset(client):
    assert client.post("/api/preset/gregorian").status_code == 200
    assert client.post("/api/preset/mayan").status_code == 404


def test_import_and_export(client, two_month_shape):
    response = client.post("/api/import", json=export_calendar(two_month_shape))

    assert response.status_code == 200
    assert response.json()["message"] == "Installed calendar 'Tiny'"

    exported = client.get("/api/export", params={"include_state": True}).json()
    assert exported["config"]["id"] == "tiny"
    assert exported["state"] == {
        "year": 1,
        "month": 0,
        "day": 1,
        "hour": 0,
        "minute": 0,
        "second": 0,
    }


def test_import_invalid(client):
    response = client.post("/api/import", json={"config": {"months": []}})

    assert response.status_code == 400
    assert client.get("/api/config").json()["id"] == "gregorian"
