"""
Calendar Formatting Module.

Display helpers for dates, times and the month grid. The weekday rotation
(``first_weekday``) and the weekday display offset are applied here and
only here; date arithmetic never sees them.
"""

from dataclasses import dataclass
from typing import List, Optional

from almanac.core.calendar import CalendarDateTime, CalendarShape, WeekdayDefinition
from almanac.core.calendar_math import calculate_weekday, days_in_month


@dataclass
class GridCell:
    """
    A cell of the month grid.

    Attributes:
        day: Day of month, None for padding cells.
        is_today: Whether the cell is the current date.
    """

    day: Optional[int] = None
    is_today: bool = False

    @property
    def empty(self) -> bool:
        return self.day is None


def format_time(hour: int, minute: int, second: float) -> str:
    """
    Formats a time of day as HH:MM:SS.

    Fractional seconds are truncated.
    """
    return f"{int(hour):02d}:{int(minute):02d}:{int(second):02d}"


def format_year(year: int, shape: CalendarShape) -> str:
    """Formats a year with the configured prefix and suffix."""
    config = shape.year_config
    return f"{config.year_prefix}{year}{config.year_suffix}"


def format_date(date: CalendarDateTime, shape: CalendarShape) -> str:
    """
    Formats a date as "<Month> <day>, <year>".

    Args:
        date: The date to format.
        shape: The calendar configuration.

    Returns:
        str: e.g. "February 29, 2024".
    """
    if 0 <= date.month < len(shape.months):
        month_name = shape.months[date.month].name
    else:
        month_name = "Unknown"
    return f"{month_name} {date.day}, {format_year(date.year, shape)}"


def format_seconds_to_time(seconds: int, shape: CalendarShape) -> str:
    """
    Formats seconds after midnight (e.g. a sunrise time) as HH:MM.

    Args:
        seconds: Seconds after midnight.
        shape: The calendar configuration.

    Returns:
        str: Hours and minutes under the calendar's time units.
    """
    units = shape.time
    hours = seconds // units.seconds_per_hour
    minutes = (seconds % units.seconds_per_hour) // units.seconds_per_minute
    return f"{int(hours):02d}:{int(minutes):02d}"


def get_ordered_weekdays(shape: CalendarShape) -> List[WeekdayDefinition]:
    """
    Gets the weekdays in display order, starting at ``first_weekday``.

    Args:
        shape: The calendar configuration.

    Returns:
        List[WeekdayDefinition]: Rotated weekday list.
    """
    count = len(shape.weekdays)
    return [shape.weekdays[(shape.first_weekday + i) % count] for i in range(count)]


def build_month_grid(
    year: int,
    month: int,
    shape: CalendarShape,
    today: Optional[CalendarDateTime] = None,
    weekday_offset: int = 0,
) -> List[List[GridCell]]:
    """
    Builds the week rows of a month for display.

    Args:
        year: The year shown.
        month: The month index shown (0-based).
        shape: The calendar configuration.
        today: The current date, highlighted when it falls in this month.
        weekday_offset: Display alignment shift in days.

    Returns:
        List[List[GridCell]]: Rows of ``len(shape.weekdays)`` cells each.
    """
    count = len(shape.weekdays)
    first = calculate_weekday(year, month, 1, shape, weekday_offset)
    lead = (first - shape.first_weekday + count) % count

    grid: List[List[GridCell]] = []
    week: List[GridCell] = [GridCell() for _ in range(lead)]

    for day in range(1, days_in_month(year, month, shape) + 1):
        is_today = (
            today is not None
            and (today.year, today.month, today.day) == (year, month, day)
        )
        week.append(GridCell(day=day, is_today=is_today))
        if len(week) == count:
            grid.append(week)
            week = []

    if week:
        week.extend(GridCell() for _ in range(count - len(week)))
        grid.append(week)

    return grid
