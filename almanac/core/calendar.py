"""
Calendar System Module.

Provides the domain model for user-defined calendars.
Supports variable month lengths, arbitrary week lengths, configurable
day granularity, leap-year rules, seasons and moons.

Classes:
    MonthDefinition: Definition of a calendar month.
    WeekdayDefinition: Definition of a single weekday.
    TimeUnits: Hours/minutes/seconds granularity of a day.
    YearConfig: Year numbering and epoch anchor.
    LeapMonth: Extra days a month receives in leap years.
    LeapYearConfig: Leap-year rule.
    Season: A season with its starting point.
    MoonPhase: A named phase of a moon cycle.
    Moon: A moon with its cycle and phases.
    CalendarShape: Complete calendar configuration.
    CalendarDateTime: The current civil date/time plus sync bookkeeping.
"""

import json
import logging
import uuid
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, Tuple

from almanac.core import constants

logger = logging.getLogger(__name__)


def _random_id() -> str:
    return uuid.uuid4().hex[:8]


@dataclass
class MonthDefinition:
    """
    Definition of a calendar month.

    Attributes:
        id: Stable identifier, referenced by leap-year entries.
        name: Full month name (e.g., "January").
        abbreviation: Short form (e.g., "Jan").
        days: Number of days in a common year (must be > 0).
    """

    id: str
    name: str
    abbreviation: str
    days: int

    def to_dict(self) -> Dict[str, Any]:
        """
        Converts the MonthDefinition to a dictionary for serialization.

        Returns:
            Dict[str, Any]: Dictionary representation.
        """
        return {
            "id": self.id,
            "name": self.name,
            "abbreviation": self.abbreviation,
            "days": self.days,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "MonthDefinition":
        """
        Creates a MonthDefinition from a dictionary.

        Args:
            data: Dictionary containing month data.

        Returns:
            MonthDefinition: New instance.
        """
        name = data["name"]
        return cls(
            id=data.get("id") or _random_id(),
            name=name,
            abbreviation=data.get("abbreviation") or name[:3],
            days=int(data["days"]),
        )


@dataclass
class WeekdayDefinition:
    """
    Definition of a single weekday.

    Attributes:
        id: Stable identifier.
        name: Full day name (e.g., "Sunday").
        abbreviation: Short form (e.g., "Sun").
    """

    id: str
    name: str
    abbreviation: str

    def to_dict(self) -> Dict[str, Any]:
        """
        Converts the WeekdayDefinition to a dictionary for serialization.

        Returns:
            Dict[str, Any]: Dictionary representation.
        """
        return {"id": self.id, "name": self.name, "abbreviation": self.abbreviation}

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "WeekdayDefinition":
        """
        Creates a WeekdayDefinition from a dictionary.

        Args:
            data: Dictionary containing weekday data.

        Returns:
            WeekdayDefinition: New instance.
        """
        name = data["name"]
        return cls(
            id=data.get("id") or _random_id(),
            name=name,
            abbreviation=data.get("abbreviation") or name[:3],
        )


@dataclass
class TimeUnits:
    """
    Granularity of a day.

    Attributes:
        hours_per_day: Hours in one day.
        minutes_per_hour: Minutes in one hour.
        seconds_per_minute: Seconds in one minute.
    """

    hours_per_day: int = constants.DEFAULT_HOURS_PER_DAY
    minutes_per_hour: int = constants.DEFAULT_MINUTES_PER_HOUR
    seconds_per_minute: int = constants.DEFAULT_SECONDS_PER_MINUTE

    @property
    def seconds_per_hour(self) -> int:
        return self.minutes_per_hour * self.seconds_per_minute

    @property
    def seconds_per_day(self) -> int:
        return self.hours_per_day * self.seconds_per_hour

    def to_dict(self) -> Dict[str, Any]:
        return {
            "hoursPerDay": self.hours_per_day,
            "minutesPerHour": self.minutes_per_hour,
            "secondsPerMinute": self.seconds_per_minute,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "TimeUnits":
        return cls(
            hours_per_day=int(
                data.get("hoursPerDay", constants.DEFAULT_HOURS_PER_DAY)
            ),
            minutes_per_hour=int(
                data.get("minutesPerHour", constants.DEFAULT_MINUTES_PER_HOUR)
            ),
            seconds_per_minute=int(
                data.get("secondsPerMinute", constants.DEFAULT_SECONDS_PER_MINUTE)
            ),
        )


@dataclass
class YearConfig:
    """
    Year numbering.

    The civil date (starting_year, month 0, day 1, 00:00:00) is the epoch
    anchor and always maps to linear time 0.

    Attributes:
        starting_year: Year of the epoch anchor.
        year_zero_exists: Whether the numbering includes a year 0.
        year_prefix: Text shown before the year number.
        year_suffix: Text shown after the year number.
    """

    starting_year: int = constants.DEFAULT_STARTING_YEAR
    year_zero_exists: bool = False
    year_prefix: str = ""
    year_suffix: str = ""

    def to_dict(self) -> Dict[str, Any]:
        return {
            "startingYear": self.starting_year,
            "yearZeroExists": self.year_zero_exists,
            "yearPrefix": self.year_prefix,
            "yearSuffix": self.year_suffix,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "YearConfig":
        return cls(
            starting_year=int(
                data.get("startingYear", constants.DEFAULT_STARTING_YEAR)
            ),
            year_zero_exists=bool(data.get("yearZeroExists", False)),
            year_prefix=data.get("yearPrefix") or "",
            year_suffix=data.get("yearSuffix") or "",
        )


@dataclass
class LeapMonth:
    """
    Extra days added to a month in leap years.

    Attributes:
        month_id: Id of the affected month.
        extra_days: Days added on top of the month's base length.
    """

    month_id: str
    extra_days: int

    def to_dict(self) -> Dict[str, Any]:
        return {"monthId": self.month_id, "extraDays": self.extra_days}

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "LeapMonth":
        return cls(month_id=data["monthId"], extra_days=int(data["extraDays"]))


@dataclass
class LeapYearConfig:
    """
    Leap-year rule.

    Attributes:
        enabled: Whether leap years exist at all.
        rule: "gregorian" or "simple".
        interval: Every n-th year is a leap year (simple rule only).
        months: Months that grow in leap years.
    """

    enabled: bool = False
    rule: str = constants.LEAP_RULE_GREGORIAN
    interval: int = constants.DEFAULT_LEAP_INTERVAL
    months: List[LeapMonth] = field(default_factory=list)

    def extra_days_for(self, month_id: str) -> int:
        """
        Returns the leap-year extra days configured for a month.

        Args:
            month_id: Id of the month.

        Returns:
            int: Extra days, 0 when the month has no leap entry.
        """
        for entry in self.months:
            if entry.month_id == month_id:
                return entry.extra_days
        return 0

    def to_dict(self) -> Dict[str, Any]:
        return {
            "enabled": self.enabled,
            "rule": self.rule,
            "interval": self.interval,
            "months": [m.to_dict() for m in self.months],
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "LeapYearConfig":
        return cls(
            enabled=bool(data.get("enabled", False)),
            rule=data.get("rule", constants.LEAP_RULE_GREGORIAN),
            interval=int(data.get("interval") or constants.DEFAULT_LEAP_INTERVAL),
            months=[LeapMonth.from_dict(m) for m in data.get("months", [])],
        )


@dataclass
class Season:
    """
    A season and the date it starts on.

    Attributes:
        id: Stable identifier.
        name: Display name.
        starting_month: Month index (0-based) the season starts in.
        starting_day: Day of month (1-based) the season starts on.
        color: Display colour.
        icon: Icon key (see constants.SEASON_ICONS).
        sunrise_time: Sunrise, in seconds after midnight.
        sunset_time: Sunset, in seconds after midnight.
    """

    id: str
    name: str
    starting_month: int
    starting_day: int
    color: str = constants.DEFAULT_SEASON_COLOR
    icon: str = constants.DEFAULT_SEASON_ICON
    sunrise_time: int = constants.DEFAULT_SUNRISE_TIME
    sunset_time: int = constants.DEFAULT_SUNSET_TIME

    @property
    def start_key(self) -> Tuple[int, int]:
        return (self.starting_month, self.starting_day)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "name": self.name,
            "startingMonth": self.starting_month,
            "startingDay": self.starting_day,
            "color": self.color,
            "icon": self.icon,
            "sunriseTime": self.sunrise_time,
            "sunsetTime": self.sunset_time,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Season":
        return cls(
            id=data.get("id") or _random_id(),
            name=data.get("name") or constants.DEFAULT_SEASON_NAME,
            starting_month=int(data.get("startingMonth", 0)),
            starting_day=int(data.get("startingDay", 1)),
            color=data.get("color") or constants.DEFAULT_SEASON_COLOR,
            icon=data.get("icon") or constants.DEFAULT_SEASON_ICON,
            sunrise_time=int(data.get("sunriseTime", constants.DEFAULT_SUNRISE_TIME)),
            sunset_time=int(data.get("sunsetTime", constants.DEFAULT_SUNSET_TIME)),
        )


@dataclass
class MoonPhase:
    """
    A named phase of a moon cycle.

    Attributes:
        name: Display name (e.g., "Full Moon").
        length: Length of the phase in days (may be fractional).
        icon: Icon key (see constants.MOON_PHASE_ICONS).
        single_day: Display hint for phases that last one day.
    """

    name: str
    length: float
    icon: str
    single_day: bool = False

    def to_dict(self) -> Dict[str, Any]:
        return {
            "name": self.name,
            "length": self.length,
            "icon": self.icon,
            "singleDay": self.single_day,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "MoonPhase":
        return cls(
            name=data["name"],
            length=float(data.get("length", 0)),
            icon=data.get("icon") or "",
            single_day=bool(data.get("singleDay", False)),
        )


@dataclass
class Moon:
    """
    A moon with a repeating cycle of phases.

    The phase lengths are expected to add up to ``cycle_length``; this is not
    enforced and phase resolution degrades gracefully when they do not.

    Attributes:
        id: Stable identifier.
        name: Display name.
        cycle_length: Length of one full cycle in days (> 0, may be fractional).
        phases: Ordered phases, starting with the new moon.
        reference_new_moon: A date ({year, month, day}) on which a new moon occurred.
        color: Display colour.
    """

    id: str
    name: str
    cycle_length: float
    phases: List[MoonPhase]
    reference_new_moon: Dict[str, int] = field(
        default_factory=lambda: dict(constants.DEFAULT_REFERENCE_NEW_MOON)
    )
    color: str = constants.DEFAULT_MOON_COLOR

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "name": self.name,
            "cycleLength": self.cycle_length,
            "color": self.color,
            "phases": [p.to_dict() for p in self.phases],
            "referenceNewMoon": dict(self.reference_new_moon),
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Moon":
        reference = data.get("referenceNewMoon") or constants.DEFAULT_REFERENCE_NEW_MOON
        return cls(
            id=data.get("id") or _random_id(),
            name=data.get("name") or constants.DEFAULT_MOON_NAME,
            cycle_length=float(data.get("cycleLength") or constants.DEFAULT_MOON_CYCLE),
            phases=[MoonPhase.from_dict(p) for p in data.get("phases", [])],
            reference_new_moon={
                "year": int(reference.get("year", 2000)),
                "month": int(reference.get("month", 0)),
                "day": int(reference.get("day", 1)),
            },
            color=data.get("color") or constants.DEFAULT_MOON_COLOR,
        )

    @classmethod
    def create_default(cls) -> "Moon":
        """
        Creates a moon with the standard eight-phase lunar cycle.

        Returns:
            Moon: A 29.53059-day moon.
        """
        return cls(
            id="moon",
            name=constants.DEFAULT_MOON_NAME,
            cycle_length=constants.DEFAULT_MOON_CYCLE,
            phases=[
                MoonPhase(name=name, length=length, icon=icon, single_day=single)
                for name, length, icon, single in constants.DEFAULT_MOON_PHASES
            ],
        )


@dataclass
class CalendarShape:
    """
    Complete calendar configuration.

    A shape is replaced wholesale on every save; the engine never mutates
    one in place.

    Attributes:
        id: Unique identifier for this calendar.
        name: Display name (e.g., "Gregorian Calendar").
        months: Ordered months; the order defines month indices 0..N-1.
        weekdays: Ordered weekdays; the order defines the weekday cycle.
        first_weekday: Index of the weekday shown in the first grid column.
            Display only; never used by date arithmetic.
        time: Day granularity.
        year_config: Year numbering and epoch anchor.
        leap_year: Leap-year rule.
        seasons: Seasons, in any order.
        moons: Moons.
        name_prefix: Text shown before the calendar name.
        name_suffix: Text shown after the calendar name.
    """

    id: str
    name: str
    months: List[MonthDefinition]
    weekdays: List[WeekdayDefinition]
    first_weekday: int = 0
    time: TimeUnits = field(default_factory=TimeUnits)
    year_config: YearConfig = field(default_factory=YearConfig)
    leap_year: LeapYearConfig = field(default_factory=LeapYearConfig)
    seasons: List[Season] = field(default_factory=list)
    moons: List[Moon] = field(default_factory=list)
    name_prefix: str = ""
    name_suffix: str = ""

    @property
    def starting_year(self) -> int:
        return self.year_config.starting_year

    def validate(self) -> List[str]:
        """
        Validates the calendar configuration.

        Returns:
            List[str]: List of validation error messages.
                       Empty list if valid.
        """
        errors: List[str] = []

        if not self.months:
            errors.append("Month list is empty. At least one month is required.")
        if not self.weekdays:
            errors.append("Weekday list is empty. At least one weekday is required.")

        ids = [m.id for m in self.months]
        if len(ids) != len(set(ids)):
            duplicates = {i for i in ids if ids.count(i) > 1}
            errors.append(f"Duplicate month id(s) found: {duplicates}")

        for month in self.months:
            if month.days <= 0:
                errors.append(
                    f"Month '{month.name}' has invalid days count: {month.days}"
                )

        for label, value in (
            ("hoursPerDay", self.time.hours_per_day),
            ("minutesPerHour", self.time.minutes_per_hour),
            ("secondsPerMinute", self.time.seconds_per_minute),
        ):
            if value <= 0:
                errors.append(f"Time unit '{label}' must be positive, got {value}")

        leap = self.leap_year
        if leap.rule not in constants.LEAP_RULES:
            errors.append(f"Unknown leap year rule: {leap.rule!r}")
        if leap.rule == constants.LEAP_RULE_SIMPLE and leap.interval <= 0:
            errors.append(f"Leap year interval must be positive, got {leap.interval}")
        for entry in leap.months:
            if entry.month_id not in ids:
                errors.append(
                    f"Leap year entry references unknown month: {entry.month_id!r}"
                )
            if entry.extra_days < 0:
                errors.append(
                    f"Leap year entry for {entry.month_id!r} has negative "
                    f"extra days: {entry.extra_days}"
                )

        if self.weekdays and not 0 <= self.first_weekday < len(self.weekdays):
            errors.append(
                f"First weekday index {self.first_weekday} is out of range"
            )

        for season in self.seasons:
            if not 0 <= season.starting_month < len(self.months):
                errors.append(
                    f"Season '{season.name}' starts in unknown month "
                    f"{season.starting_month}"
                )

        for moon in self.moons:
            if moon.cycle_length <= 0:
                errors.append(
                    f"Moon '{moon.name}' has invalid cycle length: {moon.cycle_length}"
                )
            for phase in moon.phases:
                if phase.length < 0:
                    errors.append(
                        f"Moon '{moon.name}', phase '{phase.name}' "
                        f"has negative length: {phase.length}"
                    )

        return errors

    def month_index(self, month_id: str) -> Optional[int]:
        """
        Looks up a month's index by its id.

        Args:
            month_id: Id of the month.

        Returns:
            Optional[int]: The 0-based index, or None if no month has that id.
        """
        for index, month in enumerate(self.months):
            if month.id == month_id:
                return index
        return None

    def to_dict(self) -> Dict[str, Any]:
        """
        Converts the CalendarShape to its interchange dictionary.

        Returns:
            Dict[str, Any]: Dictionary representation.
        """
        return {
            "id": self.id,
            "name": self.name,
            "namePrefix": self.name_prefix,
            "nameSuffix": self.name_suffix,
            "weekdays": [w.to_dict() for w in self.weekdays],
            "firstWeekday": self.first_weekday,
            "months": [m.to_dict() for m in self.months],
            "yearConfig": self.year_config.to_dict(),
            "time": self.time.to_dict(),
            "leapYear": self.leap_year.to_dict(),
            "seasons": [s.to_dict() for s in self.seasons],
            "moons": [m.to_dict() for m in self.moons],
        }

    def to_json(self) -> str:
        """
        Converts the CalendarShape to a JSON string.

        Returns:
            str: JSON representation.
        """
        return json.dumps(self.to_dict())

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "CalendarShape":
        """
        Creates a CalendarShape from an interchange dictionary.

        Optional fields fall back to their defaults.

        Args:
            data: Dictionary containing calendar data.

        Returns:
            CalendarShape: New instance.
        """
        return cls(
            id=data.get("id") or str(uuid.uuid4()),
            name=data.get("name") or constants.DEFAULT_CALENDAR_NAME,
            months=[MonthDefinition.from_dict(m) for m in data.get("months", [])],
            weekdays=[WeekdayDefinition.from_dict(w) for w in data.get("weekdays", [])],
            first_weekday=int(data.get("firstWeekday") or 0),
            time=TimeUnits.from_dict(data.get("time") or {}),
            year_config=YearConfig.from_dict(data.get("yearConfig") or {}),
            leap_year=LeapYearConfig.from_dict(data.get("leapYear") or {}),
            seasons=[Season.from_dict(s) for s in data.get("seasons") or []],
            moons=[Moon.from_dict(m) for m in data.get("moons") or []],
            name_prefix=data.get("namePrefix") or "",
            name_suffix=data.get("nameSuffix") or "",
        )

    @classmethod
    def from_json(cls, json_str: str) -> "CalendarShape":
        """
        Creates a CalendarShape from a JSON string.

        Args:
            json_str: JSON string containing calendar data.

        Returns:
            CalendarShape: New instance.
        """
        return cls.from_dict(json.loads(json_str))

    @classmethod
    def create_default(cls) -> "CalendarShape":
        """
        Creates a default calendar configuration (simple 12x30 structure).

        Returns:
            CalendarShape: A basic calendar with 12 months of 30 days.
        """
        months = [
            MonthDefinition(
                id=f"m{i + 1}", name=f"Month {i + 1}", abbreviation=f"M{i + 1}", days=30
            )
            for i in range(12)
        ]
        weekdays = [
            WeekdayDefinition(id=f"d{i + 1}", name=f"Day {i + 1}", abbreviation=f"D{i + 1}")
            for i in range(7)
        ]
        return cls(
            id=str(uuid.uuid4()),
            name="Default Calendar",
            months=months,
            weekdays=weekdays,
        )


@dataclass
class CalendarDateTime:
    """
    The current civil date/time and its synchronization bookkeeping.

    Uses a 0-based month index and a 1-based day of month.

    Attributes:
        year: Year number (can be below the starting year for pre-epoch dates).
        month: Month index (0-based).
        day: Day of month (1-based).
        hour: Hour of day.
        minute: Minute of hour.
        second: Second of minute (may be fractional after inbound syncs).
        weekday: Cached weekday index; always recomputed from the date.
        sync_enabled: Whether the external clock is tracked.
        last_synced_external_time: External clock value at the last exchange.
    """

    year: int
    month: int = 0
    day: int = 1
    hour: int = 0
    minute: int = 0
    second: float = 0
    weekday: int = 0
    sync_enabled: bool = False
    last_synced_external_time: Optional[float] = None

    def civil(self) -> Tuple[int, int, int, int, int, float]:
        """
        Returns the civil fields as a tuple, ordered from year to second.

        Returns:
            Tuple: (year, month, day, hour, minute, second).
        """
        return (self.year, self.month, self.day, self.hour, self.minute, self.second)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "year": self.year,
            "month": self.month,
            "day": self.day,
            "hour": self.hour,
            "minute": self.minute,
            "second": self.second,
            "weekday": self.weekday,
            "syncEnabled": self.sync_enabled,
            "lastSyncedExternalTime": self.last_synced_external_time,
        }

    def to_json(self) -> str:
        return json.dumps(self.to_dict())

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "CalendarDateTime":
        """
        Creates a CalendarDateTime from a dictionary.

        Missing time-of-day fields default to zero.

        Args:
            data: Dictionary containing at least ``year``.

        Returns:
            CalendarDateTime: New instance (not normalized).
        """
        return cls(
            year=int(data["year"]),
            month=int(data.get("month", 0)),
            day=int(data.get("day", 1)),
            hour=int(data.get("hour", 0)),
            minute=int(data.get("minute", 0)),
            second=data.get("second", 0),
            weekday=int(data.get("weekday", 0)),
            sync_enabled=bool(data.get("syncEnabled", False)),
            last_synced_external_time=data.get("lastSyncedExternalTime"),
        )

    @classmethod
    def from_json(cls, json_str: str) -> "CalendarDateTime":
        return cls.from_dict(json.loads(json_str))

    def __str__(self) -> str:
        return (
            f"Year {self.year}, Month {self.month + 1}, Day {self.day} "
            f"{self.hour:02d}:{self.minute:02d}:{int(self.second):02d}"
        )
