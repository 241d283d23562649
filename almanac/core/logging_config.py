"""
Logging Configuration Module.

Centralized logging setup for the CLI and the HTTP API: a size-rotated
log file plus optional console output.
"""

import logging
import os
import sys
from datetime import datetime
from logging.handlers import RotatingFileHandler
from typing import Optional

LOG_DIR = "logs"
LOG_FILENAME = "almanac.log"
MAX_BYTES = 5 * 1024 * 1024  # 5 MB
BACKUP_COUNT = 5
LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"
DATE_FORMAT = "%Y-%m-%d %H:%M:%S"

# Third-party loggers that are too chatty at DEBUG
QUIET_LOGGERS = ("uvicorn.access", "httpx", "asyncio")


class SafeRotatingFileHandler(RotatingFileHandler):
    """
    RotatingFileHandler that keeps writing to the current file when Windows
    refuses to rename a log file that another process still holds open.
    """

    def doRollover(self) -> None:
        try:
            super().doRollover()
        except PermissionError:
            if sys.platform != "win32":
                raise


def setup_logging(
    debug_mode: bool = False,
    log_to_console: bool = True,
    log_dir: Optional[str] = LOG_DIR,
) -> Optional[str]:
    """
    Configures the root logger.

    Safe to call more than once; previously installed handlers are removed.

    Args:
        debug_mode: If True, sets level to DEBUG. Defaults to INFO.
        log_to_console: If True, adds a StreamHandler on stderr.
        log_dir: Directory for the rotating log file. None disables file logging.

    Returns:
        Optional[str]: Path of the log file, or None if file logging is off.
    """
    root_logger = logging.getLogger()
    for handler in list(root_logger.handlers):
        root_logger.removeHandler(handler)
        handler.close()

    level = logging.DEBUG if debug_mode else logging.INFO
    root_logger.setLevel(level)
    formatter = logging.Formatter(LOG_FORMAT, datefmt=DATE_FORMAT)

    log_path = None
    if log_dir is not None:
        try:
            os.makedirs(log_dir, exist_ok=True)
            log_path = os.path.join(log_dir, LOG_FILENAME)
            file_handler = SafeRotatingFileHandler(
                log_path,
                maxBytes=MAX_BYTES,
                backupCount=BACKUP_COUNT,
                encoding="utf-8",
            )
            file_handler.setFormatter(formatter)
            file_handler.setLevel(level)
            root_logger.addHandler(file_handler)
        except OSError as e:
            print(f"Could not set up file logging in {log_dir!r}: {e}")
            log_path = None

    if log_to_console:
        console_handler = logging.StreamHandler()
        console_handler.setFormatter(formatter)
        console_handler.setLevel(level)
        root_logger.addHandler(console_handler)

    for name in QUIET_LOGGERS:
        logging.getLogger(name).setLevel(logging.WARNING)

    logging.debug(f"Almanac logging started at {datetime.now().isoformat()}")
    return log_path


def shutdown_logging() -> None:
    """
    Explicitly closes all logging handlers to release file locks.
    """
    logging.shutdown()
