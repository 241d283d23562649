"""
World Clock Module.

An in-process linear clock shared between the calendar and any other
subsystem that needs a single numeric timeline.
"""

import logging
import threading
from typing import Callable, Optional

from PySide6.QtCore import QObject, Qt, Signal

logger = logging.getLogger(__name__)


class WorldClock(QObject):
    """
    Linear clock measured in seconds.

    Emits ``time_changed`` synchronously after every change, so subscribers
    connected with a direct connection observe the change before
    ``advance`` returns. Changes are atomic across threads; the signal is
    emitted outside the internal lock, so subscribers should read
    ``get_time`` rather than trust the order of notifications.
    """

    time_changed = Signal(float)

    def __init__(self, initial_time: float = 0.0, parent: Optional[QObject] = None):
        """
        Args:
            initial_time: Starting clock value in seconds.
            parent: Optional parent QObject.
        """
        super().__init__(parent)
        self._time = float(initial_time)
        self._lock = threading.Lock()

    def get_time(self) -> float:
        """Returns the current clock value."""
        with self._lock:
            return self._time

    def advance(self, delta: float) -> None:
        """
        Moves the clock by ``delta`` seconds.

        Args:
            delta: Seconds to add (may be negative).
        """
        with self._lock:
            self._time += delta
            now = self._time
        logger.debug(f"World clock advanced by {delta} to {now}")
        self.time_changed.emit(now)

    def set_time(self, value: float) -> None:
        """
        Jumps the clock to an absolute value.

        Args:
            value: New clock value in seconds.
        """
        with self._lock:
            delta = float(value) - self._time
            self._time = float(value)
        logger.debug(f"World clock set to {value} ({delta:+}s)")
        self.time_changed.emit(float(value))

    def subscribe(self, callback: Callable[[float], None]) -> None:
        """
        Registers a callback for clock changes.

        Args:
            callback: Receives the new clock value.
        """
        self.time_changed.connect(callback, Qt.ConnectionType.DirectConnection)
