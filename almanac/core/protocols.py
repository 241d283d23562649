"""
Protocol Interfaces for Loose Coupling.

This module defines Protocol interfaces (PEP 544) for the collaborators the
calendar engine depends on but does not own: the persistence store and the
external linear clock.

WorldClock and DatabaseService satisfy these structurally; tests substitute
in-memory stand-ins the same way.
"""

from typing import Callable, Optional, Protocol, runtime_checkable

from almanac.core.calendar import CalendarDateTime, CalendarShape


@runtime_checkable
class ExternalClock(Protocol):
    """
    Protocol for the shared linear clock the calendar keeps in step with.

    The clock is observed by other systems as well; the engine only ever
    moves it by deltas and never assumes its zero point.
    """

    def get_time(self) -> float:
        """Return the current clock value in seconds."""
        ...

    def advance(self, delta: float) -> None:
        """
        Move the clock by ``delta`` seconds and notify subscribers.

        Args:
            delta: Seconds to add (may be negative).
        """
        ...

    def subscribe(self, callback: Callable[[float], None]) -> None:
        """
        Register a callback invoked with the new value after every change.

        Args:
            callback: Receives the clock value after the change.
        """
        ...


@runtime_checkable
class CalendarStore(Protocol):
    """
    Protocol for durable storage of the active calendar and its current date.

    Implementations must be read-your-writes consistent.
    """

    def load_shape(self) -> Optional[CalendarShape]:
        """Return the active calendar shape, or None if none is stored."""
        ...

    def save_shape(self, shape: CalendarShape) -> None:
        """Persist ``shape`` as the active calendar shape."""
        ...

    def load_state(self) -> Optional[CalendarDateTime]:
        """Return the stored date/time, or None if none is stored."""
        ...

    def save_state(self, state: CalendarDateTime) -> None:
        """Persist the current date/time."""
        ...

    def save_calendar(self, shape: CalendarShape, state: CalendarDateTime) -> None:
        """Persist shape and state together; neither is written if either fails."""
        ...
