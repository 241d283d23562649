"""
Calendar Time Manager Module.

Owns the active calendar shape and the current date/time, applies every
mutation (advance, explicit sets, preset loads, imports) and keeps the
calendar in step with an external linear clock.

Synchronization is delta based: the external clock's zero point has no
relation to the calendar's epoch anchor, so the manager only ever moves the
clock by the linear-time difference of its own changes (outbound) and only
ever moves the calendar by the clock's change since the last exchange
(inbound). A small state machine (``SyncPhase``) breaks the feedback loop:
a notification that arrives while an exchange is in progress is ignored.
"""

import logging
import threading
from contextlib import contextmanager
from dataclasses import replace
from enum import Enum
from typing import Any, Dict, Iterator, List, Optional

from PySide6.QtCore import QObject, Signal

from almanac.core import constants
from almanac.core.calendar import CalendarDateTime, CalendarShape, Season
from almanac.core.calendar_math import (
    MoonReading,
    calculate_weekday,
    from_linear_time,
    get_all_moon_phases,
    get_current_season,
    normalize_date,
    to_linear_time,
)
from almanac.core.engine_config import EngineSettings
from almanac.core.formatting import format_date, format_time
from almanac.core.presets import get_preset
from almanac.core.protocols import CalendarStore, ExternalClock
from almanac.services import calendar_importer

logger = logging.getLogger(__name__)


class SyncPhase(Enum):
    """Phase of the synchronization exchange with the external clock."""

    IDLE = "idle"
    APPLYING_OUTBOUND = "applying-outbound"
    APPLYING_INBOUND = "applying-inbound"


class CalendarTimeManager(QObject):
    """
    State synchronizer for one calendar.

    Every mutation runs under a single re-entrant lock and follows the same
    order: compute the normalized state, persist it, install it in memory,
    push the change to the external clock (when sync is on), then notify
    listeners. A failed persistence call leaves the in-memory state untouched,
    and a failed clock write rolls the date back to where it was.

    Signals:
        config_changed(object): New CalendarShape after a shape change.
        state_changed(object): New CalendarDateTime after any date change.
    """

    config_changed = Signal(object)
    state_changed = Signal(object)

    def __init__(
        self,
        store: CalendarStore,
        clock: ExternalClock,
        settings: Optional[EngineSettings] = None,
        parent: Optional[QObject] = None,
    ) -> None:
        """
        Loads shape and state from the store, installing defaults if empty.

        Args:
            store: Persistence for shape and state.
            clock: The external linear clock.
            settings: Engine settings (default preset, weekday offset).
            parent: Optional parent QObject.

        Raises:
            ValueError: If the stored or default shape is invalid.
        """
        super().__init__(parent)
        self._store = store
        self._clock = clock
        self._settings = settings or EngineSettings()
        self._lock = threading.RLock()
        self._phase = SyncPhase.IDLE

        shape = store.load_shape()
        new_shape = shape is None
        if new_shape:
            shape = (
                get_preset(self._settings.default_preset)
                or CalendarShape.create_default()
            )
        self._require_valid(shape)

        state = store.load_state()
        if state is None:
            state = self._initial_state(shape)
            if not new_shape:
                store.save_state(state)
        else:
            state = normalize_date(state, shape)

        if new_shape:
            store.save_calendar(shape, state)
            logger.info(f"Installed default calendar '{shape.name}'")
        self._shape = shape
        self._state = state

        clock.subscribe(self.on_external_time_changed)

    # -------------------------------------------------------------------------
    # Read access
    # -------------------------------------------------------------------------

    @property
    def shape(self) -> CalendarShape:
        """The active calendar shape. Shapes are replaced, never mutated."""
        return self._shape

    @property
    def state(self) -> CalendarDateTime:
        """A copy of the current date/time."""
        return replace(self._state)

    @property
    def sync_phase(self) -> SyncPhase:
        """The exchange with the external clock currently in progress, if any."""
        return self._phase

    @property
    def settings(self) -> EngineSettings:
        """Engine settings this manager was created with."""
        return self._settings

    def current_linear_time(self) -> float:
        """Linear time (seconds since the epoch anchor) of the current date."""
        return to_linear_time(self._state, self._shape)

    def current_weekday(self, offset: Optional[int] = None) -> int:
        """
        Weekday index of the current date.

        Args:
            offset: Display alignment shift; defaults to the configured
                weekday offset.

        Returns:
            int: Weekday index.
        """
        if offset is None:
            offset = self._settings.weekday_offset
        state = self._state
        return calculate_weekday(state.year, state.month, state.day, self._shape, offset)

    def current_season(self) -> Optional[Season]:
        return get_current_season(self._state, self._shape)

    def current_moon_phases(self) -> List[MoonReading]:
        return get_all_moon_phases(self._state, self._shape)

    def snapshot(self) -> Dict[str, Any]:
        """
        Summarizes the current date for display and for the HTTP API.

        Returns:
            Dict[str, Any]: State, formatted date and time, linear time,
            weekday, season and moon readings.
        """
        with self._lock:
            shape = self._shape
            state = self._state
            weekday = self.current_weekday()
            season = self.current_season()
            return {
                "state": state.to_dict(),
                "date": format_date(state, shape),
                "time": format_time(state.hour, state.minute, state.second),
                "linearTime": self.current_linear_time(),
                "weekday": {
                    "index": weekday,
                    "name": shape.weekdays[weekday].name,
                },
                "season": season.to_dict() if season else None,
                "moons": [
                    {
                        "name": reading.moon_name,
                        "color": reading.moon_color,
                        "phase": reading.phase_name,
                        "icon": reading.icon,
                        "percentIlluminated": reading.percent_illuminated,
                    }
                    for reading in self.current_moon_phases()
                ],
            }

    # -------------------------------------------------------------------------
    # Date/time mutations
    # -------------------------------------------------------------------------

    def advance(self, amount: int, unit: str) -> CalendarDateTime:
        """
        Advances the calendar by ``amount`` units.

        Sub-month units have a fixed size in seconds (a week is one full
        weekday cycle). Months and years do not: the unit field is bumped,
        the date normalized, and the delta measured from the result, so
        "one month" means "same day of month, next month".

        Args:
            amount: Number of units (may be negative).
            unit: One of second, minute, hour, day, week, month, year.

        Returns:
            CalendarDateTime: The new current date/time.

        Raises:
            ValueError: If ``unit`` is unknown.
        """
        if unit not in constants.ADVANCE_UNITS:
            raise ValueError(
                f"Unknown time unit {unit!r}; expected one of "
                f"{', '.join(constants.ADVANCE_UNITS)}"
            )

        with self._lock:
            shape = self._shape
            before = self._state
            units = shape.time

            if unit == "week":
                field, step = "day", amount * len(shape.weekdays)
            else:
                field, step = unit, amount
            moved = replace(before, **{field: getattr(before, field) + step})
            new_state = normalize_date(moved, shape)

            fixed_sizes = {
                "second": 1,
                "minute": units.seconds_per_minute,
                "hour": units.seconds_per_hour,
                "day": units.seconds_per_day,
                "week": units.seconds_per_day,
            }
            if field in ("month", "year"):
                delta = to_linear_time(new_state, shape) - to_linear_time(before, shape)
            else:
                delta = step * fixed_sizes[unit]

            logger.info(f"Advancing calendar by {amount} {unit}(s) ({delta}s)")
            return self._apply(new_state, delta, update_external=True)

    def set_date(
        self,
        year: Optional[int] = None,
        month: Optional[int] = None,
        day: Optional[int] = None,
        update_external: bool = True,
    ) -> CalendarDateTime:
        """
        Sets some or all of the date fields.

        Out-of-range values are normalized, not rejected (day 40 of a
        30-day month becomes day 10 of the next month).

        Args:
            year: New year, or None to keep the current one.
            month: New month index, or None to keep the current one.
            day: New day of month, or None to keep the current one.
            update_external: Whether to push the change to the external clock.

        Returns:
            CalendarDateTime: The new current date/time.
        """
        with self._lock:
            before = self._state
            moved = replace(
                before,
                year=before.year if year is None else year,
                month=before.month if month is None else month,
                day=before.day if day is None else day,
            )
            return self._apply_measured(moved, update_external)

    def set_time(
        self,
        hour: Optional[int] = None,
        minute: Optional[int] = None,
        second: Optional[float] = None,
        update_external: bool = True,
    ) -> CalendarDateTime:
        """
        Sets some or all of the time-of-day fields.

        Args:
            hour: New hour, or None to keep the current one.
            minute: New minute, or None to keep the current one.
            second: New second, or None to keep the current one.
            update_external: Whether to push the change to the external clock.

        Returns:
            CalendarDateTime: The new current date/time.
        """
        with self._lock:
            before = self._state
            moved = replace(
                before,
                hour=before.hour if hour is None else hour,
                minute=before.minute if minute is None else minute,
                second=before.second if second is None else second,
            )
            return self._apply_measured(moved, update_external)

    def set_date_time(
        self, date: CalendarDateTime, update_external: bool = True
    ) -> CalendarDateTime:
        """
        Sets all civil fields at once from ``date``.

        Sync bookkeeping in ``date`` is ignored; the manager's own is kept.

        Args:
            date: The date/time to move to.
            update_external: Whether to push the change to the external clock.

        Returns:
            CalendarDateTime: The new current date/time.
        """
        with self._lock:
            moved = replace(
                self._state,
                year=date.year,
                month=date.month,
                day=date.day,
                hour=date.hour,
                minute=date.minute,
                second=date.second,
            )
            return self._apply_measured(moved, update_external)

    def set_sync_enabled(self, enabled: bool) -> CalendarDateTime:
        """
        Turns synchronization with the external clock on or off.

        Neither clock moves. Enabling records the external clock's current
        value as the new baseline so no earlier drift is replayed.

        Args:
            enabled: Whether sync should be on.

        Returns:
            CalendarDateTime: The new current date/time.
        """
        with self._lock:
            state = self._state
            baseline = state.last_synced_external_time
            if enabled:
                baseline = self._clock.get_time()
            new_state = replace(
                state, sync_enabled=enabled, last_synced_external_time=baseline
            )
            self._commit(new_state)
            logger.info(
                f"World time sync {'enabled' if enabled else 'disabled'} "
                f"(baseline {baseline})"
            )
            self.state_changed.emit(self.state)
            return self.state

    # -------------------------------------------------------------------------
    # External clock (inbound)
    # -------------------------------------------------------------------------

    def on_external_time_changed(self, value: float) -> None:
        """
        Applies a change of the external clock to the calendar.

        Ignored while an exchange is in progress (the echo of the manager's
        own outbound write), while sync is off, and when the clock still
        reads the last synchronized value. Otherwise the calendar moves by
        the clock's change since the last exchange.

        The clock is re-read under the lock: a notification delivered after
        a concurrent change may carry a value that is already stale.

        Args:
            value: The external clock's value as notified.
        """
        with self._lock:
            if self._phase is not SyncPhase.IDLE:
                logger.debug(f"Ignoring clock notification {value} during {self._phase.value}")
                return

            state = self._state
            if not state.sync_enabled:
                return

            current = self._clock.get_time()
            if current != value:
                logger.debug(f"Clock notification {value} is stale; clock reads {current}")
            baseline = state.last_synced_external_time
            if baseline == current:
                return
            if baseline is None:
                baseline = current
            delta = current - baseline
            shape = self._shape

            with self._sync_phase(SyncPhase.APPLYING_INBOUND):
                new_state = from_linear_time(to_linear_time(state, shape) + delta, shape)
                new_state.sync_enabled = True
                new_state.last_synced_external_time = current
                self._commit(new_state)

            logger.debug(f"Applied external clock change of {delta}s")
            self.state_changed.emit(self.state)

    # -------------------------------------------------------------------------
    # Configuration
    # -------------------------------------------------------------------------

    def set_shape(self, shape: CalendarShape) -> CalendarShape:
        """
        Installs a new calendar shape.

        The current date is re-normalized under the new shape. The external
        clock does not move; if sync is on, its current value becomes the
        new baseline.

        Args:
            shape: The complete new shape.

        Returns:
            CalendarShape: The installed shape.

        Raises:
            ValueError: If the shape is invalid; the previous shape stays active.
        """
        self._require_valid(shape)

        with self._lock:
            state = normalize_date(self._state, shape)
            if state.sync_enabled:
                state.last_synced_external_time = self._clock.get_time()
            self._install(shape, state)
            return shape

    def load_preset(self, preset_id: str) -> CalendarShape:
        """
        Installs a preset and resets the date to its epoch anchor.

        Sync is turned off, as the new calendar's timeline starts fresh.

        Args:
            preset_id: The preset identifier.

        Returns:
            CalendarShape: The installed shape.

        Raises:
            ValueError: If the preset does not exist.
        """
        shape = get_preset(preset_id)
        if shape is None:
            raise ValueError(f"Unknown preset: {preset_id}")
        self._require_valid(shape)

        with self._lock:
            self._install(shape, self._initial_state(shape))
            logger.info(f"Loaded preset '{preset_id}'")
            return shape

    def import_document(
        self, data: Dict[str, Any], import_state: bool = True
    ) -> CalendarShape:
        """
        Imports a native or foreign interchange document.

        Import is all-or-nothing: the document is fully translated and
        validated before anything is written. Sync is turned off afterwards.

        Args:
            data: The parsed document.
            import_state: Whether to take the document's date, if it has one.

        Returns:
            CalendarShape: The installed shape.

        Raises:
            ValueError: If the document or the shape it describes is invalid.
        """
        result = calendar_importer.auto_import(data)
        shape = result.shape
        self._require_valid(shape)

        if import_state and result.state is not None:
            state = normalize_date(result.state, shape)
        else:
            state = self._initial_state(shape)
        state.sync_enabled = False
        state.last_synced_external_time = None

        with self._lock:
            self._install(shape, state)
            logger.info(f"Imported calendar '{shape.name}'")
            return shape

    def export_document(self, include_state: bool = False) -> Dict[str, Any]:
        """
        Exports the active shape (and optionally the date) as a native document.

        Args:
            include_state: Whether to include the current date/time.

        Returns:
            Dict[str, Any]: ``{version, config, state?}``.
        """
        with self._lock:
            return calendar_importer.export_calendar(
                self._shape, self._state if include_state else None
            )

    # -------------------------------------------------------------------------
    # Internals
    # -------------------------------------------------------------------------

    @contextmanager
    def _sync_phase(self, phase: SyncPhase) -> Iterator[None]:
        """Enters an exchange phase; always returns to IDLE on exit."""
        if self._phase is not SyncPhase.IDLE:
            raise RuntimeError(
                f"Cannot enter {phase.value} while {self._phase.value} is active"
            )
        self._phase = phase
        try:
            yield
        finally:
            self._phase = SyncPhase.IDLE

    def _apply_measured(
        self, moved: CalendarDateTime, update_external: bool
    ) -> CalendarDateTime:
        new_state = normalize_date(moved, self._shape)
        delta = to_linear_time(new_state, self._shape) - to_linear_time(
            self._state, self._shape
        )
        return self._apply(new_state, delta, update_external)

    def _apply(
        self, new_state: CalendarDateTime, delta: float, update_external: bool
    ) -> CalendarDateTime:
        previous = self._state
        self._commit(new_state)
        if update_external:
            try:
                self._push_outbound(delta)
            except Exception:
                self._rollback(previous)
                raise
        self.state_changed.emit(self.state)
        return self.state

    def _push_outbound(self, delta: float) -> None:
        """Moves the external clock by ``delta`` and records the new baseline."""
        if not self._state.sync_enabled or delta == 0:
            return
        if self._phase is not SyncPhase.IDLE:
            logger.debug(f"Outbound sync suppressed during {self._phase.value}")
            return

        with self._sync_phase(SyncPhase.APPLYING_OUTBOUND):
            baseline = self._state.last_synced_external_time
            self._clock.advance(delta)
            # Only this exchange's own delta is absorbed; a concurrent clock
            # change stays pending for the inbound path.
            if baseline is None:
                baseline = self._clock.get_time()
            else:
                baseline += delta
            try:
                self._commit(replace(self._state, last_synced_external_time=baseline))
            except Exception:
                self._clock.advance(-delta)
                raise
        logger.debug(f"Pushed {delta}s to the external clock")

    def _commit(self, state: CalendarDateTime) -> None:
        """Persists ``state``; only then does it become the current state."""
        self._store.save_state(state)
        self._state = state

    def _rollback(self, previous: CalendarDateTime) -> None:
        """Reinstates ``previous`` after the external clock refused a change."""
        self._state = previous
        try:
            self._store.save_state(previous)
        except Exception as e:
            logger.error(f"Could not restore the stored date after a failed clock update: {e}")
        logger.warning("External clock update failed; calendar change rolled back")

    def _install(self, shape: CalendarShape, state: CalendarDateTime) -> None:
        self._store.save_calendar(shape, state)
        self._shape = shape
        self._state = state
        self.config_changed.emit(shape)
        self.state_changed.emit(self.state)

    @staticmethod
    def _initial_state(shape: CalendarShape) -> CalendarDateTime:
        return normalize_date(CalendarDateTime(year=shape.starting_year), shape)

    @staticmethod
    def _require_valid(shape: CalendarShape) -> None:
        errors = shape.validate()
        if errors:
            raise ValueError("Invalid calendar configuration: " + "; ".join(errors))
