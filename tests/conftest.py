import pathlib
import sys

import pytest

# Ensure project root is in sys.path
repo_root = pathlib.Path(__file__).parent.parent
sys.path.insert(0, str(repo_root))

from PySide6.QtCore import QCoreApplication  # noqa: E402


@pytest.fixture(autouse=True, scope="session")
def qapp():
    """
    Ensure a QCoreApplication exists once for the whole session.
    """
    app = QCoreApplication.instance()
    if app is None:
        app = QCoreApplication([])
    yield app


@pytest.fixture
def db_service():
    """
    Provides a fresh in-memory database service for each test.
    """
    from almanac.services.db_service import DatabaseService

    service = DatabaseService(":memory:")
    service.connect()
    yield service
    service.close()


class MemoryStore:
    """
    In-memory CalendarStore that records every save.
    """

    def __init__(self, shape=None, state=None):
        self.shape = shape
        self.state = state
        self.saved_states = []
        self.saved_shapes = []

    def load_shape(self):
        return self.shape

    def save_shape(self, shape):
        self.saved_shapes.append(shape)
        self.shape = shape

    def load_state(self):
        return self.state

    def save_state(self, state):
        self.saved_states.append(state)
        self.state = state

    def save_calendar(self, shape, state):
        self.saved_shapes.append(shape)
        self.saved_states.append(state)
        self.shape = shape
        self.state = state


@pytest.fixture
def memory_store():
    return MemoryStore()


@pytest.fixture
def gregorian():
    """The Gregorian preset (epoch anchor: January 1, 2024)."""
    from almanac.core.presets import get_preset

    return get_preset("gregorian")


@pytest.fixture
def two_month_shape():
    """Two months of 10 days, no leap years, starting in year 1."""
    from almanac.core.calendar import CalendarShape

    return CalendarShape.from_dict(
        {
            "id": "tiny",
            "name": "Tiny",
            "months": [
                {"id": "a", "name": "Alpha", "days": 10},
                {"id": "b", "name": "Beta", "days": 10},
            ],
            "weekdays": [
                {"id": "x", "name": "Xday"},
                {"id": "y", "name": "Yday"},
                {"id": "z", "name": "Zday"},
            ],
            "yearConfig": {"startingYear": 1},
            "time": {"hoursPerDay": 24, "minutesPerHour": 60, "secondsPerMinute": 60},
        }
    )


@pytest.fixture
def default_shape():
    """The 12x30 default calendar, starting in year 1."""
    from almanac.core.calendar import CalendarShape

    return CalendarShape.create_default()


@pytest.fixture
def clock():
    from almanac.core.world_clock import WorldClock

    return WorldClock(initial_time=1000.0)


@pytest.fixture
def manager(memory_store, gregorian, clock):
    """A time manager on the Gregorian preset, sync off."""
    from almanac.services.time_manager import CalendarTimeManager

    memory_store.shape = gregorian
    return CalendarTimeManager(memory_store, clock)
