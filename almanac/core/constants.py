"""
Calendar Constants.
Stores default values for calendar configuration and magic numbers.
"""

# Time granularity
DEFAULT_HOURS_PER_DAY = 24
DEFAULT_MINUTES_PER_HOUR = 60
DEFAULT_SECONDS_PER_MINUTE = 60

# Year numbering
DEFAULT_STARTING_YEAR = 1

# Leap years
LEAP_RULE_GREGORIAN = "gregorian"
LEAP_RULE_SIMPLE = "simple"
LEAP_RULES = (LEAP_RULE_GREGORIAN, LEAP_RULE_SIMPLE)
DEFAULT_LEAP_INTERVAL = 4

# Seasons
DEFAULT_SEASON_NAME = "New Season"
DEFAULT_SEASON_COLOR = "#46b946"
DEFAULT_SEASON_ICON = "spring"
DEFAULT_SUNRISE_TIME = 21600  # 06:00 in seconds
DEFAULT_SUNSET_TIME = 64800  # 18:00 in seconds
SEASON_ICONS = ["spring", "summer", "fall", "winter"]

# Moons
DEFAULT_MOON_NAME = "Moon"
DEFAULT_MOON_COLOR = "#ffffff"
DEFAULT_MOON_CYCLE = 29.53059
DEFAULT_REFERENCE_NEW_MOON = {"year": 2000, "month": 0, "day": 6}

# (name, length, icon, single_day)
DEFAULT_MOON_PHASES = [
    ("New Moon", 1.0, "new", True),
    ("Waxing Crescent", 6.38265, "waxing-crescent", False),
    ("First Quarter", 1.0, "first-quarter", True),
    ("Waxing Gibbous", 6.38265, "waxing-gibbous", False),
    ("Full Moon", 1.0, "full", True),
    ("Waning Gibbous", 6.38265, "waning-gibbous", False),
    ("Last Quarter", 1.0, "last-quarter", True),
    ("Waning Crescent", 6.38265, "waning-crescent", False),
]

MOON_PHASE_ICONS = {
    "new": "\U0001f311",
    "waxing-crescent": "\U0001f312",
    "first-quarter": "\U0001f313",
    "waxing-gibbous": "\U0001f314",
    "full": "\U0001f315",
    "waning-gibbous": "\U0001f316",
    "last-quarter": "\U0001f317",
    "waning-crescent": "\U0001f318",
}

# Placeholder reading for a moon without phases
UNKNOWN_PHASE_NAME = "Unknown"
UNKNOWN_PHASE_ICON = "full"
UNKNOWN_PHASE_ILLUMINATION = 50

# Advance units, largest first
ADVANCE_UNITS = ("year", "month", "week", "day", "hour", "minute", "second")

# Interchange format
EXPORT_FORMAT_VERSION = 1
DEFAULT_CALENDAR_NAME = "Imported Calendar"
DEFAULT_PRESET_ID = "gregorian"
