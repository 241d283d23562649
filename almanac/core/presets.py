"""
Calendar Presets Module.

Built-in calendar shapes that can be installed as a starting point.
Presets are stored as interchange dictionaries and materialized into a
fresh CalendarShape on every lookup, so callers can never mutate them.
"""

import copy
import logging
from typing import Any, Dict, List, Optional

from almanac.core import constants
from almanac.core.calendar import CalendarShape, Moon

logger = logging.getLogger(__name__)

_GREGORIAN: Dict[str, Any] = {
    "id": "gregorian",
    "name": "Gregorian Calendar",
    "weekdays": [
        {"id": "sun", "name": "Sunday", "abbreviation": "Sun"},
        {"id": "mon", "name": "Monday", "abbreviation": "Mon"},
        {"id": "tue", "name": "Tuesday", "abbreviation": "Tue"},
        {"id": "wed", "name": "Wednesday", "abbreviation": "Wed"},
        {"id": "thu", "name": "Thursday", "abbreviation": "Thu"},
        {"id": "fri", "name": "Friday", "abbreviation": "Fri"},
        {"id": "sat", "name": "Saturday", "abbreviation": "Sat"},
    ],
    "firstWeekday": 0,
    "months": [
        {"id": "jan", "name": "January", "abbreviation": "Jan", "days": 31},
        {"id": "feb", "name": "February", "abbreviation": "Feb", "days": 28},
        {"id": "mar", "name": "March", "abbreviation": "Mar", "days": 31},
        {"id": "apr", "name": "April", "abbreviation": "Apr", "days": 30},
        {"id": "may", "name": "May", "abbreviation": "May", "days": 31},
        {"id": "jun", "name": "June", "abbreviation": "Jun", "days": 30},
        {"id": "jul", "name": "July", "abbreviation": "Jul", "days": 31},
        {"id": "aug", "name": "August", "abbreviation": "Aug", "days": 31},
        {"id": "sep", "name": "September", "abbreviation": "Sep", "days": 30},
        {"id": "oct", "name": "October", "abbreviation": "Oct", "days": 31},
        {"id": "nov", "name": "November", "abbreviation": "Nov", "days": 30},
        {"id": "dec", "name": "December", "abbreviation": "Dec", "days": 31},
    ],
    "yearConfig": {
        "startingYear": 2024,
        "yearZeroExists": False,
        "yearPrefix": "",
        "yearSuffix": "",
    },
    "time": {
        "hoursPerDay": constants.DEFAULT_HOURS_PER_DAY,
        "minutesPerHour": constants.DEFAULT_MINUTES_PER_HOUR,
        "secondsPerMinute": constants.DEFAULT_SECONDS_PER_MINUTE,
    },
    "leapYear": {
        "enabled": True,
        "rule": constants.LEAP_RULE_GREGORIAN,
        "interval": 4,
        "months": [{"monthId": "feb", "extraDays": 1}],
    },
    "seasons": [
        {
            "id": "spring",
            "name": "Spring",
            "startingMonth": 2,
            "startingDay": 20,
            "color": "#46b946",
            "icon": "spring",
            "sunriseTime": 21600,
            "sunsetTime": 68400,
        },
        {
            "id": "summer",
            "name": "Summer",
            "startingMonth": 5,
            "startingDay": 21,
            "color": "#e0c40b",
            "icon": "summer",
            "sunriseTime": 18000,
            "sunsetTime": 75600,
        },
        {
            "id": "fall",
            "name": "Fall",
            "startingMonth": 8,
            "startingDay": 22,
            "color": "#ff8e47",
            "icon": "fall",
            "sunriseTime": 23400,
            "sunsetTime": 66600,
        },
        {
            "id": "winter",
            "name": "Winter",
            "startingMonth": 11,
            "startingDay": 21,
            "color": "#479dff",
            "icon": "winter",
            "sunriseTime": 27000,
            "sunsetTime": 61200,
        },
    ],
    "moons": [Moon.create_default().to_dict()],
}

PRESETS: Dict[str, Dict[str, Any]] = {
    "gregorian": _GREGORIAN,
}


def get_preset(preset_id: str) -> Optional[CalendarShape]:
    """
    Gets a preset calendar by id.

    Args:
        preset_id: The preset identifier (e.g., "gregorian").

    Returns:
        Optional[CalendarShape]: A new shape, or None for an unknown id.
    """
    data = PRESETS.get(preset_id)
    if data is None:
        logger.warning(f"Unknown calendar preset requested: {preset_id}")
        return None
    return CalendarShape.from_dict(copy.deepcopy(data))


def get_preset_ids() -> List[str]:
    """Returns all available preset identifiers."""
    return list(PRESETS.keys())


def get_preset_choices() -> Dict[str, str]:
    """
    Gets preset display names for selection.

    Returns:
        Dict[str, str]: Preset ids mapped to display names.
    """
    return {preset_id: data["name"] for preset_id, data in PRESETS.items()}
