"""
Calendar Import/Export Service.

Translates interchange documents into CalendarShape (and optionally a
CalendarDateTime) and back. Two input formats are accepted:

- Native: ``{version, config, state?}`` as produced by ``export_calendar``.
- Foreign: a third-party export ``{calendars: [...]}``; the first calendar is
  translated field by field.

Nothing here touches the active calendar. Callers install the result.
"""

import logging
from dataclasses import dataclass
from typing import Any, Dict, List, Optional

from almanac.core import constants
from almanac.core.calendar import CalendarDateTime, CalendarShape, _random_id

logger = logging.getLogger(__name__)

NATIVE_REQUIRED_FIELDS = ("weekdays", "months", "yearConfig", "time")


@dataclass
class ImportResult:
    """
    Result of translating an interchange document.

    Attributes:
        shape: The translated calendar shape (already validated).
        state: The document's date/time, if it carried one.
    """

    shape: CalendarShape
    state: Optional[CalendarDateTime] = None


def _validated(shape: CalendarShape) -> CalendarShape:
    errors = shape.validate()
    if errors:
        raise ValueError("Imported calendar is invalid: " + "; ".join(errors))
    return shape


def import_native(data: Dict[str, Any]) -> ImportResult:
    """
    Translates a native ``{version, config, state?}`` document.

    Args:
        data: The parsed document.

    Returns:
        ImportResult: The shape and the optional state.

    Raises:
        ValueError: If ``config`` or a required field is missing, or the
            resulting shape is invalid.
    """
    config = data.get("config") if isinstance(data, dict) else None
    if not isinstance(config, dict):
        raise ValueError("Invalid import data: missing config")

    for name in NATIVE_REQUIRED_FIELDS:
        if not config.get(name):
            raise ValueError(f"Invalid import data: missing {name}")

    version = data.get("version", constants.EXPORT_FORMAT_VERSION)
    if version != constants.EXPORT_FORMAT_VERSION:
        logger.warning(f"Importing document with unexpected version {version!r}")

    try:
        shape = CalendarShape.from_dict(config)
        state = None
        if data.get("state"):
            state = CalendarDateTime.from_dict(data["state"])
    except (KeyError, TypeError, ValueError) as e:
        raise ValueError(f"Invalid import data: {e}") from e

    return ImportResult(shape=_validated(shape), state=state)


def _foreign_months(raw_months: List[Dict[str, Any]]) -> List[Dict[str, Any]]:
    months = []
    for m in raw_months:
        name = m["name"]
        months.append(
            {
                "id": m.get("id") or _random_id(),
                "name": name,
                "abbreviation": m.get("abbreviation") or name[:3],
                "days": m.get("numberOfDays") or m.get("days") or 30,
                "leapYearDays": m.get("numberOfLeapYearDays"),
            }
        )
    return months


def _foreign_leap_year(sc: Dict[str, Any], months: List[Dict[str, Any]]) -> Dict[str, Any]:
    leap = sc.get("leapYear") or {}
    rule = leap.get("rule")
    config = {
        "enabled": rule != "none",
        "rule": (
            constants.LEAP_RULE_GREGORIAN
            if rule == "gregorian"
            else constants.LEAP_RULE_SIMPLE
        ),
        "interval": leap.get("customMod") or constants.DEFAULT_LEAP_INTERVAL,
        "months": [],
    }

    # Two day-counts per month become a base length plus a leap delta
    for m in months:
        leap_days = m.pop("leapYearDays")
        if leap_days and leap_days != m["days"]:
            config["months"].append(
                {"monthId": m["id"], "extraDays": leap_days - m["days"]}
            )
    if config["months"]:
        config["enabled"] = True
    return config


def _foreign_moon(m: Dict[str, Any]) -> Dict[str, Any]:
    first = m.get("firstNewMoon") or {}
    reference = constants.DEFAULT_REFERENCE_NEW_MOON
    return {
        "id": m.get("id") or _random_id(),
        "name": m.get("name") or constants.DEFAULT_MOON_NAME,
        "cycleLength": m.get("cycleLength") or constants.DEFAULT_MOON_CYCLE,
        "color": m.get("color") or constants.DEFAULT_MOON_COLOR,
        "phases": [
            {
                "name": p["name"],
                "length": p.get("length", 0),
                "icon": p.get("icon") or "",
                "singleDay": p.get("singleDay") or False,
            }
            for p in m.get("phases") or []
        ],
        "referenceNewMoon": {
            "year": first.get("year") or reference["year"],
            "month": first.get("month") or reference["month"],
            "day": first.get("day") or reference["day"],
        },
    }


def _foreign_config(sc: Dict[str, Any]) -> Dict[str, Any]:
    year = sc.get("year") or {}
    time = sc.get("time") or {}
    months = _foreign_months(sc.get("months") or [])

    return {
        "id": sc.get("id") or _random_id(),
        "name": sc.get("name") or constants.DEFAULT_CALENDAR_NAME,
        "weekdays": [
            {
                "id": wd.get("id") or _random_id(),
                "name": wd["name"],
                "abbreviation": wd.get("abbreviation") or wd["name"][:3],
            }
            for wd in sc.get("weekdays") or []
        ],
        "firstWeekday": year.get("firstWeekday") or 0,
        "yearConfig": {
            "startingYear": year.get("numericRepresentation")
            or constants.DEFAULT_STARTING_YEAR,
            "yearZeroExists": "yearZero" in year,
            "yearPrefix": year.get("prefix") or "",
            "yearSuffix": year.get("postfix") or "",
        },
        "time": {
            "hoursPerDay": time.get("hoursInDay") or constants.DEFAULT_HOURS_PER_DAY,
            "minutesPerHour": time.get("minutesInHour")
            or constants.DEFAULT_MINUTES_PER_HOUR,
            "secondsPerMinute": time.get("secondsInMinute")
            or constants.DEFAULT_SECONDS_PER_MINUTE,
        },
        "leapYear": _foreign_leap_year(sc, months),
        "months": months,
        "seasons": [
            {
                "id": s.get("id") or _random_id(),
                "name": s.get("name"),
                "startingMonth": s.get("startingMonth", 0),
                "startingDay": s.get("startingDay", 1),
                "color": s.get("color") or constants.DEFAULT_SEASON_COLOR,
                "icon": s.get("icon") or constants.DEFAULT_SEASON_ICON,
                "sunriseTime": s.get("sunriseTime") or constants.DEFAULT_SUNRISE_TIME,
                "sunsetTime": s.get("sunsetTime") or constants.DEFAULT_SUNSET_TIME,
            }
            for s in sc.get("seasons") or []
        ],
        "moons": [_foreign_moon(m) for m in sc.get("moons") or []],
    }


def _foreign_state(current: Dict[str, Any], shape: CalendarShape) -> CalendarDateTime:
    """Splits the foreign seconds-since-midnight into hour/minute/second."""
    seconds_per_hour = shape.time.seconds_per_hour
    seconds_per_minute = shape.time.seconds_per_minute
    total = current.get("seconds") or 0
    return CalendarDateTime(
        year=int(current.get("year", shape.starting_year)),
        month=int(current.get("month", 0)),
        day=int(current.get("day", 1)),
        hour=int(total // seconds_per_hour),
        minute=int((total % seconds_per_hour) // seconds_per_minute),
        second=total % seconds_per_minute,
    )


def import_simple_calendar(data: Dict[str, Any]) -> ImportResult:
    """
    Translates a foreign ``{calendars: [...]}`` export.

    Only the first calendar is used.

    Args:
        data: The parsed document.

    Returns:
        ImportResult: The shape and the optional state.

    Raises:
        ValueError: If no calendar is present or the translated shape is invalid.
    """
    calendars = data.get("calendars") if isinstance(data, dict) else None
    if not calendars:
        raise ValueError("Invalid foreign calendar export: no calendars found")

    sc = calendars[0]
    try:
        shape = CalendarShape.from_dict(_foreign_config(sc))
        state = None
        if sc.get("currentDate"):
            state = _foreign_state(sc["currentDate"], shape)
    except (KeyError, TypeError, ValueError, ZeroDivisionError) as e:
        raise ValueError(f"Invalid foreign calendar export: {e}") from e

    if len(calendars) > 1:
        logger.info(f"Foreign export holds {len(calendars)} calendars; using the first")
    return ImportResult(shape=_validated(shape), state=state)


def auto_import(data: Dict[str, Any]) -> ImportResult:
    """
    Detects the document format and translates it.

    Args:
        data: The parsed document.

    Returns:
        ImportResult: The shape and the optional state.

    Raises:
        ValueError: If the document cannot be translated.
    """
    if isinstance(data, dict) and isinstance(data.get("calendars"), list):
        logger.debug("Detected foreign calendar export")
        return import_simple_calendar(data)
    return import_native(data)


def export_calendar(
    shape: CalendarShape, state: Optional[CalendarDateTime] = None
) -> Dict[str, Any]:
    """
    Builds a native interchange document.

    Args:
        shape: The calendar to export.
        state: The date/time to include, if any. Sync bookkeeping is left out.

    Returns:
        Dict[str, Any]: ``{version, config, state?}``.
    """
    document: Dict[str, Any] = {
        "version": constants.EXPORT_FORMAT_VERSION,
        "config": shape.to_dict(),
    }
    if state is not None:
        document["state"] = {
            "year": state.year,
            "month": state.month,
            "day": state.day,
            "hour": state.hour,
            "minute": state.minute,
            "second": state.second,
        }
    return document
