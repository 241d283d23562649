"""
Calendar Arithmetic Module.

Pure functions that operate on a CalendarShape: leap years, month and year
lengths, conversion between civil date/time and linear time (seconds since
the epoch anchor), weekdays, normalization, seasons and moon phases.

Month and year lengths are data-driven, so conversions walk year by year
and month by month instead of using a closed form. Nothing is cached; every
call reflects the shape it is given.

Functions:
    positive_mod: Modulo with a non-negative result.
    is_leap_year: Leap-year test.
    days_in_month / days_in_year: Lengths under the leap rule.
    day_count: Whole days from the epoch anchor to a date.
    days_between: Whole days between two dates.
    to_linear_time / from_linear_time: Civil date <-> seconds.
    calculate_weekday: Absolute weekday index of a date.
    normalize_date: Carry overflow/underflow through all units.
    get_current_season: Season active on a date.
    get_moon_phase / get_all_moon_phases: Moon phase readings.
"""

import logging
import math
from dataclasses import dataclass
from typing import List, Optional, Union

from almanac.core import constants
from almanac.core.calendar import (
    CalendarDateTime,
    CalendarShape,
    Moon,
    MoonPhase,
    Season,
)

logger = logging.getLogger(__name__)

Number = Union[int, float]


@dataclass
class MoonPhaseInfo:
    """
    Resolved phase of a moon on a given date.

    Attributes:
        phase: The phase definition the date falls in.
        phase_name: Name of that phase.
        icon: Icon key of that phase.
        phase_index: Index of the phase in the moon's phase list.
        day_in_cycle: Whole days since the last new moon.
        percent_illuminated: 0 at new moon, 100 at mid-cycle.
    """

    phase: MoonPhase
    phase_name: str
    icon: str
    phase_index: int
    day_in_cycle: int
    percent_illuminated: int


@dataclass
class MoonReading:
    """
    Phase reading of one configured moon, ready for display.

    Attributes:
        moon_name: Name of the moon.
        moon_color: Display colour of the moon.
        phase_name: Name of the current phase ("Unknown" without phases).
        icon: Icon key of the current phase.
        percent_illuminated: Illumination percentage.
        info: Full phase information, None for a moon without phases.
    """

    moon_name: str
    moon_color: str
    phase_name: str
    icon: str
    percent_illuminated: int
    info: Optional[MoonPhaseInfo] = None


def positive_mod(value: Number, modulus: Number) -> Number:
    """
    Mathematical modulo: the result has the sign of the modulus.

    Args:
        value: Dividend (any sign).
        modulus: Divisor (> 0).

    Returns:
        The remainder in [0, modulus).
    """
    return ((value % modulus) + modulus) % modulus


def is_leap_year(year: int, shape: CalendarShape) -> bool:
    """
    Checks whether a year is a leap year under the shape's rule.

    Args:
        year: The year to test (may be zero or negative).
        shape: The calendar configuration.

    Returns:
        bool: True for a leap year. Always False when the rule is disabled.
    """
    leap = shape.leap_year
    if not leap.enabled:
        return False

    if leap.rule == constants.LEAP_RULE_GREGORIAN:
        if positive_mod(year, 400) == 0:
            return True
        if positive_mod(year, 100) == 0:
            return False
        return positive_mod(year, 4) == 0

    if leap.rule == constants.LEAP_RULE_SIMPLE:
        interval = leap.interval or constants.DEFAULT_LEAP_INTERVAL
        return positive_mod(year, interval) == 0

    return False


def days_in_month(year: int, month_index: int, shape: CalendarShape) -> int:
    """
    Gets the number of days in a month of a given year.

    Args:
        year: The year.
        month_index: The month index (0-based).
        shape: The calendar configuration.

    Returns:
        int: Days in the month, including leap days. 0 for an unknown index.
    """
    if not 0 <= month_index < len(shape.months):
        return 0

    month = shape.months[month_index]
    days = month.days
    if is_leap_year(year, shape):
        days += shape.leap_year.extra_days_for(month.id)
    return days


def days_in_year(year: int, shape: CalendarShape) -> int:
    """
    Gets the total number of days in a year.

    Args:
        year: The year.
        shape: The calendar configuration.

    Returns:
        int: Sum of all month lengths for that year.
    """
    return sum(days_in_month(year, m, shape) for m in range(len(shape.months)))


def seconds_per_day(shape: CalendarShape) -> int:
    """Seconds in one day of the given calendar."""
    return shape.time.seconds_per_day


def day_count(year: int, month: int, day: int, shape: CalendarShape) -> int:
    """
    Counts whole days from the epoch anchor to a date.

    Full years between the starting year and ``year`` are added walking
    forward, or subtracted walking backward for pre-epoch years. Months
    before ``month`` and ``day - 1`` are always added, since they lie after
    the start of ``year``.

    Args:
        year: The year.
        month: The month index (0-based).
        day: Day of month (1-based).
        shape: The calendar configuration.

    Returns:
        int: Days since the epoch anchor (negative before it).
    """
    starting_year = shape.starting_year
    total = 0

    if year >= starting_year:
        for y in range(starting_year, year):
            total += days_in_year(y, shape)
    else:
        for y in range(year, starting_year):
            total -= days_in_year(y, shape)

    for m in range(month):
        total += days_in_month(year, m, shape)

    return total + (day - 1)


def days_between(
    date: CalendarDateTime, reference: CalendarDateTime, shape: CalendarShape
) -> int:
    """
    Counts whole days from ``reference`` to ``date``, ignoring time of day.

    Args:
        date: The later (or earlier) date.
        reference: The date to count from.
        shape: The calendar configuration.

    Returns:
        int: Positive when ``date`` is after ``reference``.
    """
    return day_count(date.year, date.month, date.day, shape) - day_count(
        reference.year, reference.month, reference.day, shape
    )


def to_linear_time(date: CalendarDateTime, shape: CalendarShape) -> Number:
    """
    Converts a civil date/time to linear time.

    Args:
        date: The date/time to convert (normalized).
        shape: The calendar configuration.

    Returns:
        Seconds since the epoch anchor; negative before it.
    """
    units = shape.time
    total_days = day_count(date.year, date.month, date.day, shape)

    return (
        total_days * units.seconds_per_day
        + date.hour * units.seconds_per_hour
        + date.minute * units.seconds_per_minute
        + date.second
    )


def from_linear_time(seconds: Number, shape: CalendarShape) -> CalendarDateTime:
    """
    Converts linear time to a civil date/time.

    Uses floor division so the time of day is never negative: one second
    before the epoch anchor is the last second of the previous day.

    Args:
        seconds: Seconds since the epoch anchor.
        shape: The calendar configuration.

    Returns:
        CalendarDateTime: Normalized date with its weekday filled in.

    Raises:
        ValueError: If a year of the calendar has no days.
    """
    units = shape.time
    days, day_seconds = divmod(seconds, units.seconds_per_day)
    days = int(days)

    hour, rest = divmod(day_seconds, units.seconds_per_hour)
    minute, second = divmod(rest, units.seconds_per_minute)
    if isinstance(second, float) and second.is_integer():
        second = int(second)

    year = shape.starting_year
    if days >= 0:
        while True:
            length = _checked_year_length(year, shape)
            if days < length:
                break
            days -= length
            year += 1
    else:
        while days < 0:
            year -= 1
            days += _checked_year_length(year, shape)

    # 0 <= days < days_in_year(year): walk the months of that year
    month = 0
    last_month = len(shape.months) - 1
    while month < last_month:
        length = days_in_month(year, month, shape)
        if days < length:
            break
        days -= length
        month += 1

    result = CalendarDateTime(
        year=year,
        month=month,
        day=days + 1,
        hour=int(hour),
        minute=int(minute),
        second=second,
    )
    result.weekday = calculate_weekday(year, month, result.day, shape)
    return result


def _checked_year_length(year: int, shape: CalendarShape) -> int:
    length = days_in_year(year, shape)
    if length <= 0:
        raise ValueError(f"Year {year} has no days; the calendar has no usable months")
    return length


def calculate_weekday(
    year: int, month: int, day: int, shape: CalendarShape, offset: int = 0
) -> int:
    """
    Calculates the weekday of a date.

    The epoch anchor is weekday 0. ``shape.first_weekday`` is not used here;
    it only rotates the displayed column order.

    Args:
        year: The year.
        month: The month index (0-based).
        day: Day of month (1-based).
        shape: The calendar configuration.
        offset: Display alignment shift in days.

    Returns:
        int: Weekday index in [0, len(shape.weekdays)).
    """
    total_days = day_count(year, month, day, shape)
    return positive_mod(total_days + offset, len(shape.weekdays))


def normalize_date(date: CalendarDateTime, shape: CalendarShape) -> CalendarDateTime:
    """
    Carries overflow and underflow from seconds up to years.

    Each time unit is carried with floor division. Days are then walked
    month by month because a month's length depends on the year it falls
    in; whole years are skipped when the walk is aligned on month 0.

    Args:
        date: The date to normalize; fields may be out of range or negative.
        shape: The calendar configuration.

    Returns:
        CalendarDateTime: A new, normalized date with its weekday recomputed.
            Sync bookkeeping is copied from the input.
    """
    units = shape.time
    month_count = len(shape.months)

    carry, second = divmod(date.second, units.seconds_per_minute)
    if isinstance(second, float) and second.is_integer():
        second = int(second)
    carry, minute = divmod(date.minute + int(carry), units.minutes_per_hour)
    carry, hour = divmod(date.hour + int(carry), units.hours_per_day)
    day = date.day + int(carry)

    carry, month = divmod(date.month, month_count)
    year = date.year + carry

    # Underflow: borrow from the previous month (or whole previous year)
    while day < 1:
        if month == 0:
            year -= 1
            day += _checked_year_length(year, shape)
        else:
            month -= 1
            day += days_in_month(year, month, shape)

    # Overflow: the length is re-read after every step, leap months included
    while True:
        length = days_in_month(year, month, shape)
        if day <= length:
            break
        if month == 0:
            year_length = _checked_year_length(year, shape)
            if day > year_length:
                day -= year_length
                year += 1
                continue
        day -= length
        month += 1
        if month >= month_count:
            month = 0
            year += 1

    return CalendarDateTime(
        year=year,
        month=month,
        day=day,
        hour=int(hour),
        minute=int(minute),
        second=second,
        weekday=calculate_weekday(year, month, day, shape),
        sync_enabled=date.sync_enabled,
        last_synced_external_time=date.last_synced_external_time,
    )


def get_current_season(
    date: CalendarDateTime, shape: CalendarShape
) -> Optional[Season]:
    """
    Finds the season active on a date.

    The active season is the last one (by start date) whose start has been
    reached this year. Before the first start of the year, the last season
    is still running from the previous year.

    Args:
        date: The date (only month and day are used).
        shape: The calendar configuration.

    Returns:
        Optional[Season]: The active season, or None without seasons.
    """
    if not shape.seasons:
        return None

    ordered = sorted(shape.seasons, key=lambda s: s.start_key)
    current = ordered[-1]
    for season in ordered:
        if (date.month, date.day) >= season.start_key:
            current = season
    return current


def get_moon_phase(
    date: CalendarDateTime, moon: Moon, shape: CalendarShape
) -> Optional[MoonPhaseInfo]:
    """
    Resolves the phase of a moon on a date.

    The named phase comes from walking the phase list; illumination is a
    separate triangular ramp over the cycle (0 -> 100 -> 0). The two can
    disagree slightly around phase boundaries.

    Args:
        date: The date (time of day is ignored).
        moon: The moon.
        shape: The calendar configuration.

    Returns:
        Optional[MoonPhaseInfo]: The reading, or None if the moon has no phases.
    """
    if moon is None or not moon.phases:
        return None

    reference = CalendarDateTime(
        year=moon.reference_new_moon.get("year", 2000),
        month=moon.reference_new_moon.get("month", 0),
        day=moon.reference_new_moon.get("day", 1),
    )
    days_since = days_between(date, reference, shape)

    cycle_length = moon.cycle_length or constants.DEFAULT_MOON_CYCLE
    position = positive_mod(days_since, cycle_length)

    phase_index = len(moon.phases) - 1
    accumulated = 0.0
    for index, phase in enumerate(moon.phases):
        if accumulated <= position < accumulated + phase.length:
            phase_index = index
            break
        accumulated += phase.length
    phase = moon.phases[phase_index]

    half_cycle = cycle_length / 2
    if position <= half_cycle:
        illumination = position / half_cycle * 100
    else:
        illumination = (cycle_length - position) / half_cycle * 100

    return MoonPhaseInfo(
        phase=phase,
        phase_name=phase.name,
        icon=phase.icon,
        phase_index=phase_index,
        day_in_cycle=math.floor(position),
        percent_illuminated=math.floor(illumination + 0.5),
    )


def get_all_moon_phases(
    date: CalendarDateTime, shape: CalendarShape
) -> List[MoonReading]:
    """
    Reads the phase of every configured moon.

    Moons without phases get a placeholder reading instead of failing.

    Args:
        date: The date.
        shape: The calendar configuration.

    Returns:
        List[MoonReading]: One reading per moon, in configuration order.
    """
    readings = []
    for moon in shape.moons:
        info = get_moon_phase(date, moon, shape)
        if info is None:
            logger.debug(f"Moon '{moon.name}' has no phases, using placeholder")
            readings.append(
                MoonReading(
                    moon_name=moon.name,
                    moon_color=moon.color,
                    phase_name=constants.UNKNOWN_PHASE_NAME,
                    icon=constants.UNKNOWN_PHASE_ICON,
                    percent_illuminated=constants.UNKNOWN_PHASE_ILLUMINATION,
                )
            )
        else:
            readings.append(
                MoonReading(
                    moon_name=moon.name,
                    moon_color=moon.color,
                    phase_name=info.phase_name,
                    icon=info.icon,
                    percent_illuminated=info.percent_illuminated,
                    info=info,
                )
            )
    return readings
