"""Tests for logging setup."""
import logging
from logging.handlers import TimedRotatingFileHandler

import pytest

from linguaquiz.config import settings
from linguaquiz.logging_config import setup_logging


@pytest.fixture
def root_handlers():
    """Restore the root logger after the test replaces its handlers."""
    root_logger = logging.getLogger()
    handlers, level = root_logger.handlers[:], root_logger.level
    yield root_logger
    for handler in root_logger.handlers[:]:
        root_logger.removeHandler(handler)
        handler.close()
    for handler in handlers:
        root_logger.addHandler(handler)
    root_logger.setLevel(level)


def test_setup_logging_console_only(root_handlers, monkeypatch):
    monkeypatch.setattr(settings.logging, "dir", None)
    setup_logging("Starting tests", "warning")

    assert root_handlers.level == logging.WARNING
    assert len(root_handlers.handlers) == 1
    assert logging.getLogger("google").level == logging.WARNING


def test_setup_logging_with_file(root_handlers, monkeypatch, tmp_path):
    log_dir = tmp_path / "logs"
    monkeypatch.setattr(settings.logging, "dir", str(log_dir))
    setup_logging("Starting tests", logging.DEBUG)

    file_handlers = [h for h in root_handlers.handlers if isinstance(h, TimedRotatingFileHandler)]
    assert len(file_handlers) == 1
    assert (log_dir / "linguaquiz.log").exists()
