"""
Base Command Module.

Defines the abstract base class and result type for calendar commands.

Classes:
    CommandResult: Standardized result object for command execution.
    BaseCommand: Abstract base class implementing command pattern with undo.
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional

from almanac.services.time_manager import CalendarTimeManager


@dataclass
class CommandResult:
    """
    Standardized result object for command execution.

    Attributes:
        success (bool): True if the command executed successfully.
        message (str): A human-readable message describing the result.
        errors (List[str]): Validation errors, if any.
        data (Dict[str, Any]): Payload for callers (e.g. the new date).
        command_name (str): The name of the command that produced this result.
    """

    success: bool
    message: str = ""
    errors: List[str] = field(default_factory=list)
    data: Dict[str, Any] = field(default_factory=dict)
    command_name: str = ""


class BaseCommand(ABC):
    """
    Abstract base class for calendar actions.
    """

    def __init__(self):
        self._is_executed = False

    @property
    def name(self) -> str:
        return type(self).__name__

    @abstractmethod
    def execute(self, manager: CalendarTimeManager) -> CommandResult:
        """
        Performs the action.

        Args:
            manager (CalendarTimeManager): The time manager to operate on.

        Returns:
            CommandResult: Outcome of the action.
        """

    @abstractmethod
    def undo(self, manager: CalendarTimeManager) -> None:
        """
        Reverts the action.

        Args:
            manager (CalendarTimeManager): The time manager to operate on.
        """

    @property
    def is_executed(self) -> bool:
        """
        Checks if the command has been executed.

        Returns:
            bool: True if the command has been executed, False otherwise.
        """
        return self._is_executed

    def _failure(
        self, message: str, errors: Optional[List[str]] = None
    ) -> CommandResult:
        return CommandResult(
            success=False,
            message=message,
            errors=list(errors or []),
            command_name=self.name,
        )
