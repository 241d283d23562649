"""
Calendar Commands Module.

Implements the Command pattern for date/time and configuration changes.
All commands support undo.

Classes:
    AdvanceTimeCommand: Moves the calendar forward or backward.
    SetDateCommand: Sets the date fields.
    SetTimeCommand: Sets the time-of-day fields.
    SetSyncEnabledCommand: Turns external clock sync on or off.
    SetCalendarShapeCommand: Installs a new calendar shape.
    LoadPresetCommand: Installs a preset calendar.
    ImportCalendarCommand: Installs a calendar from an interchange document.
"""

import logging
from typing import Any, Dict, Optional

from almanac.commands.base_command import BaseCommand, CommandResult
from almanac.core.calendar import CalendarDateTime, CalendarShape
from almanac.services.time_manager import CalendarTimeManager

logger = logging.getLogger(__name__)


class _DateChangeCommand(BaseCommand):
    """
    Shared undo for commands that only move the date/time.

    Undo moves back to the recorded civil date/time and pushes the reverse
    delta to the external clock, like any other explicit set.
    """

    def __init__(self):
        super().__init__()
        self._previous: Optional[CalendarDateTime] = None

    def _run(self, manager: CalendarTimeManager, action, message: str) -> CommandResult:
        previous = manager.state
        try:
            new_state = action()
        except Exception as e:
            logger.error(f"{self.name} failed: {e}")
            return self._failure(str(e))

        self._previous = previous
        self._is_executed = True
        return CommandResult(
            success=True,
            message=message.format(state=new_state),
            data={"state": new_state.to_dict()},
            command_name=self.name,
        )

    def undo(self, manager: CalendarTimeManager) -> None:
        if self._is_executed and self._previous is not None:
            manager.set_date_time(self._previous)
            self._is_executed = False
            logger.info(f"Undid {self.name}")


class AdvanceTimeCommand(_DateChangeCommand):
    """
    Advances the calendar by an amount of a unit.
    """

    def __init__(self, amount: int, unit: str):
        """
        Args:
            amount: Number of units (negative moves backward).
            unit: second, minute, hour, day, week, month or year.
        """
        super().__init__()
        self.amount = amount
        self.unit = unit

    def execute(self, manager: CalendarTimeManager) -> CommandResult:
        return self._run(
            manager,
            lambda: manager.advance(self.amount, self.unit),
            f"Advanced {self.amount} {self.unit}(s) to {{state}}",
        )


class SetDateCommand(_DateChangeCommand):
    """
    Sets the date. Fields left as None keep their current value.
    """

    def __init__(
        self,
        year: Optional[int] = None,
        month: Optional[int] = None,
        day: Optional[int] = None,
        update_external: bool = True,
    ):
        super().__init__()
        self.year = year
        self.month = month
        self.day = day
        self.update_external = update_external

    def execute(self, manager: CalendarTimeManager) -> CommandResult:
        return self._run(
            manager,
            lambda: manager.set_date(
                self.year, self.month, self.day, update_external=self.update_external
            ),
            "Date set to {state}",
        )


class SetTimeCommand(_DateChangeCommand):
    """
    Sets the time of day. Fields left as None keep their current value.
    """

    def __init__(
        self,
        hour: Optional[int] = None,
        minute: Optional[int] = None,
        second: Optional[float] = None,
        update_external: bool = True,
    ):
        super().__init__()
        self.hour = hour
        self.minute = minute
        self.second = second
        self.update_external = update_external

    def execute(self, manager: CalendarTimeManager) -> CommandResult:
        return self._run(
            manager,
            lambda: manager.set_time(
                self.hour, self.minute, self.second, update_external=self.update_external
            ),
            "Time set to {state}",
        )


class SetSyncEnabledCommand(BaseCommand):
    """
    Turns synchronization with the external clock on or off.
    """

    def __init__(self, enabled: bool):
        super().__init__()
        self.enabled = enabled
        self._was_enabled: Optional[bool] = None

    def execute(self, manager: CalendarTimeManager) -> CommandResult:
        was_enabled = manager.state.sync_enabled
        try:
            state = manager.set_sync_enabled(self.enabled)
        except Exception as e:
            logger.error(f"Failed to change sync setting: {e}")
            return self._failure(str(e))

        self._was_enabled = was_enabled
        self._is_executed = True
        return CommandResult(
            success=True,
            message=f"World time sync {'enabled' if self.enabled else 'disabled'}",
            data={"state": state.to_dict()},
            command_name=self.name,
        )

    def undo(self, manager: CalendarTimeManager) -> None:
        if self._is_executed and self._was_enabled is not None:
            manager.set_sync_enabled(self._was_enabled)
            self._is_executed = False


class _ShapeChangeCommand(BaseCommand):
    """
    Shared undo for commands that replace the calendar shape.

    Undo reinstalls the previous shape, then its date/time (without moving
    the external clock, which the shape change never moved either), then
    the previous sync setting.
    """

    def __init__(self):
        super().__init__()
        self._previous_shape: Optional[CalendarShape] = None
        self._previous_state: Optional[CalendarDateTime] = None

    def _run(self, manager: CalendarTimeManager, action) -> CommandResult:
        previous_shape = manager.shape
        previous_state = manager.state
        try:
            shape = action()
        except ValueError as e:
            logger.warning(f"{self.name} rejected: {e}")
            return self._failure(str(e), [str(e)])
        except Exception as e:
            logger.error(f"{self.name} failed: {e}")
            return self._failure(str(e))

        self._previous_shape = previous_shape
        self._previous_state = previous_state
        self._is_executed = True
        return CommandResult(
            success=True,
            message=f"Installed calendar '{shape.name}'",
            data={"id": shape.id, "state": manager.state.to_dict()},
            command_name=self.name,
        )

    def undo(self, manager: CalendarTimeManager) -> None:
        if not self._is_executed or self._previous_shape is None:
            return
        manager.set_shape(self._previous_shape)
        manager.set_date_time(self._previous_state, update_external=False)
        if manager.state.sync_enabled != self._previous_state.sync_enabled:
            manager.set_sync_enabled(self._previous_state.sync_enabled)
        self._is_executed = False
        logger.info(f"Undid {self.name}; restored calendar {self._previous_shape.id}")


class SetCalendarShapeCommand(_ShapeChangeCommand):
    """
    Installs a complete new calendar shape.
    """

    def __init__(self, shape: CalendarShape):
        super().__init__()
        self._shape = shape

    def execute(self, manager: CalendarTimeManager) -> CommandResult:
        return self._run(manager, lambda: manager.set_shape(self._shape))


class LoadPresetCommand(_ShapeChangeCommand):
    """
    Installs a preset calendar and resets the date to its epoch anchor.
    """

    def __init__(self, preset_id: str):
        super().__init__()
        self.preset_id = preset_id

    def execute(self, manager: CalendarTimeManager) -> CommandResult:
        return self._run(manager, lambda: manager.load_preset(self.preset_id))


class ImportCalendarCommand(_ShapeChangeCommand):
    """
    Installs a calendar from a native or foreign interchange document.
    """

    def __init__(self, data: Dict[str, Any], import_state: bool = True):
        """
        Args:
            data: The parsed interchange document.
            import_state: Whether to take the document's date, if it has one.
        """
        super().__init__()
        self._data = data
        self.import_state = import_state

    def execute(self, manager: CalendarTimeManager) -> CommandResult:
        return self._run(
            manager,
            lambda: manager.import_document(self._data, import_state=self.import_state),
        )
