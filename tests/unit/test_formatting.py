"""
Unit tests for date/time formatting and the month grid.
"""

from almanac.core.calendar import CalendarDateTime
from almanac.core.formatting import (
    build_month_grid,
    format_date,
    format_seconds_to_time,
    format_time,
    format_year,
    get_ordered_weekdays,
)


def test_format_time_truncates_fractions():
    assert format_time(7, 5, 3.9) == "07:05:03"


def test_format_year_with_affixes(gregorian):
    gregorian.year_config.year_prefix = "Year "
    gregorian.year_config.year_suffix = " AD"

    assert format_year(2024, gregorian) == "Year 2024 AD"


def test_format_date(gregorian):
    date = CalendarDateTime(year=2024, month=1, day=29)

    assert format_date(date, gregorian) == "February 29, 2024"


def test_format_seconds_to_time(gregorian, two_month_shape):
    assert format_seconds_to_time(21600, gregorian) == "06:00"
    assert format_seconds_to_time(64800 + 90, two_month_shape) == "18:01"


def test_ordered_weekdays_rotation(gregorian):
    gregorian.first_weekday = 1

    names = [w.name for w in get_ordered_weekdays(gregorian)]

    assert names[0] == "Monday"
    assert names[-1] == "Sunday"
    assert len(names) == 7


def test_month_grid_starting_on_epoch_weekday(gregorian):
    today = CalendarDateTime(year=2024, month=0, day=10)

    grid = build_month_grid(2024, 0, gregorian, today=today)

    assert len(grid) == 5
    assert all(len(row) == 7 for row in grid)
    assert grid[0][0].day == 1
    assert [c.day for c in grid[4]] == [29, 30, 31, None, None, None, None]
    assert grid[1][2].day == 10
    assert grid[1][2].is_today
    assert sum(c.is_today for row in grid for c in row) == 1


def test_month_grid_leading_blanks(gregorian):
    grid = build_month_grid(2024, 1, gregorian)

    assert [c.empty for c in grid[0][:3]] == [True, True, True]
    assert grid[0][3].day == 1
    days = [c.day for row in grid for c in row if not c.empty]
    assert days == list(range(1, 30))


def test_month_grid_follows_first_weekday(gregorian):
    gregorian.first_weekday = 1

    grid = build_month_grid(2024, 0, gregorian)

    assert [c.day for c in grid[0]] == [None] * 6 + [1]


def test_month_grid_weekday_offset(gregorian):
    grid = build_month_grid(2024, 0, gregorian, weekday_offset=1)

    assert grid[0][0].empty
    assert grid[0][1].day == 1
