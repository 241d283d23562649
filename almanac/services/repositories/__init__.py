"""
Repository Module.

Repository classes for the calendar tables. Each one owns the SQL for a
single table and works on a connection managed by DatabaseService.
"""

from almanac.services.repositories.calendar_repository import CalendarRepository
from almanac.services.repositories.state_repository import CalendarStateRepository

__all__ = [
    "CalendarRepository",
    "CalendarStateRepository",
]
