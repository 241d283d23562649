"""
CLI Utilities Module.

Common utility functions for CLI tools.
"""

import logging
from contextlib import contextmanager
from pathlib import Path
from typing import Iterator, Optional

from almanac.core.engine_config import EngineSettings
from almanac.services.db_service import DatabaseService
from almanac.services.time_manager import CalendarTimeManager

logger = logging.getLogger(__name__)


def validate_database_path(db_path: str, allow_create: bool = False) -> bool:
    """
    Validate that a database file exists.

    Args:
        db_path: Path to the database file.
        allow_create: If True, a missing file is accepted; DatabaseService
            creates it on connect.

    Returns:
        True if valid, False otherwise.
    """
    if Path(db_path).exists():
        return True
    if allow_create:
        logger.debug(f"Database will be created: {db_path}")
        return True
    logger.error(f"Database file not found: {db_path}")
    return False


@contextmanager
def open_manager(
    db_path: str, settings: Optional[EngineSettings] = None
) -> Iterator[CalendarTimeManager]:
    """
    Opens a database and yields a time manager bound to it.

    The world clock resumes from its stored value. The connection is closed
    when the block exits.

    Args:
        db_path: Path to the database file.
        settings: Engine settings; defaults are read from the environment.

    Yields:
        CalendarTimeManager: The manager for the database's active calendar.
    """
    settings = settings or EngineSettings.from_env()
    settings.db_path = db_path
    db_service = DatabaseService(db_path)
    try:
        db_service.connect()
        clock = db_service.restore_world_clock()
        yield CalendarTimeManager(db_service, clock, settings)
    finally:
        db_service.close()
