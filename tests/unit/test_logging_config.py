"""
Unit tests for logging setup.
"""

import logging
import os

from almanac.core.logging_config import LOG_FILENAME, setup_logging


def test_file_logging(tmp_path):
    log_path = setup_logging(debug_mode=True, log_to_console=False, log_dir=str(tmp_path))

    try:
        assert log_path == os.path.join(str(tmp_path), LOG_FILENAME)
        assert logging.getLogger().level == logging.DEBUG
        logging.getLogger("almanac.test").info("hello calendar")
        for handler in logging.getLogger().handlers:
            handler.flush()
        with open(log_path, encoding="utf-8") as f:
            assert "hello calendar" in f.read()
    finally:
        setup_logging(log_to_console=False, log_dir=None)


def test_console_only():
    assert setup_logging(log_to_console=True, log_dir=None) is None

    handlers = logging.getLogger().handlers
    assert len(handlers) == 1
    assert isinstance(handlers[0], logging.StreamHandler)
    assert logging.getLogger("uvicorn.access").level == logging.WARNING

    setup_logging(log_to_console=False, log_dir=None)
