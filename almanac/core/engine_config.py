"""
Engine Configuration Module.
Defines configuration settings for the calendar engine and its surfaces.
"""

import logging
import os
from dataclasses import dataclass

from almanac.core import constants

logger = logging.getLogger(__name__)

DEFAULT_DB_NAME = "calendar.almanac"


@dataclass
class EngineSettings:
    """
    Configuration settings for the calendar engine.

    Attributes:
        db_path: Path to the SQLite database holding shape and state.
        weekday_offset: Shifts the displayed weekday; never alters a date.
        default_preset: Preset installed when the database holds no shape.
        host: Bind address of the HTTP API.
        port: Port of the HTTP API.
        debug_logging: Whether to log at DEBUG level.
        log_to_console: Whether to mirror log output to the console.
    """

    db_path: str = DEFAULT_DB_NAME
    weekday_offset: int = 0
    default_preset: str = constants.DEFAULT_PRESET_ID
    host: str = "127.0.0.1"
    port: int = 8000
    debug_logging: bool = False
    log_to_console: bool = True

    def to_dict(self) -> dict:
        """
        Converts the settings to a dictionary for JSON serialization.

        Returns:
            dict: Dictionary representation of the settings.
        """
        return {
            "db_path": self.db_path,
            "weekday_offset": self.weekday_offset,
            "default_preset": self.default_preset,
            "host": self.host,
            "port": self.port,
            "debug_logging": self.debug_logging,
            "log_to_console": self.log_to_console,
        }

    @classmethod
    def from_dict(cls, data: dict) -> "EngineSettings":
        """
        Creates EngineSettings from a dictionary.

        Args:
            data: Dictionary containing configuration values.

        Returns:
            EngineSettings: A new EngineSettings instance.
        """
        return cls(
            db_path=data.get("db_path", DEFAULT_DB_NAME),
            weekday_offset=int(data.get("weekday_offset", 0)),
            default_preset=data.get("default_preset", constants.DEFAULT_PRESET_ID),
            host=data.get("host", "127.0.0.1"),
            port=int(data.get("port", 8000)),
            debug_logging=data.get("debug_logging", False),
            log_to_console=data.get("log_to_console", True),
        )

    @classmethod
    def from_env(cls) -> "EngineSettings":
        """
        Creates EngineSettings from ALMANAC_* environment variables.

        Unset variables keep their defaults.

        Returns:
            EngineSettings: A new EngineSettings instance.
        """
        settings = cls()
        settings.db_path = os.getenv("ALMANAC_DB_PATH", settings.db_path)
        settings.default_preset = os.getenv(
            "ALMANAC_DEFAULT_PRESET", settings.default_preset
        )
        settings.host = os.getenv("ALMANAC_HOST", settings.host)

        for var, attr in (("ALMANAC_WEEKDAY_OFFSET", "weekday_offset"), ("ALMANAC_PORT", "port")):
            raw = os.getenv(var)
            if raw is None:
                continue
            try:
                setattr(settings, attr, int(raw))
            except ValueError:
                logger.warning(f"Ignoring non-integer {var}={raw!r}")

        return settings
