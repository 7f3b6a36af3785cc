"""Tests for logging setup."""

import logging
from logging.handlers import RotatingFileHandler

import pytest

from visionvoice.core.logging import setup_logging


@pytest.fixture(autouse=True)
def restore_logger():
    app_logger = logging.getLogger("visionvoice")
    level, propagate = app_logger.level, app_logger.propagate
    yield
    for handler in list(app_logger.handlers):
        app_logger.removeHandler(handler)
        handler.close()
    app_logger.setLevel(level)
    app_logger.propagate = propagate


class TestSetupLogging:
    def test_writes_to_configured_directory(self, tmp_path):
        log_dir = tmp_path / "logs"
        app_logger = setup_logging(level="debug", log_file="run.log", log_dir=log_dir)
        logging.getLogger("visionvoice.narration.controller").debug("state changed")
        for handler in app_logger.handlers:
            handler.flush()
        assert app_logger.level == logging.DEBUG
        assert "state changed" in (log_dir / "run.log").read_text(encoding="utf-8")

    def test_repeated_setup_does_not_stack_handlers(self, tmp_path):
        setup_logging(log_dir=tmp_path)
        app_logger = setup_logging(log_dir=tmp_path)
        assert len(app_logger.handlers) == 2

    def test_file_only(self, tmp_path):
        app_logger = setup_logging(log_dir=tmp_path, console=False)
        assert [type(h) for h in app_logger.handlers] == [RotatingFileHandler]

    def test_unknown_level_falls_back_to_info(self, tmp_path):
        assert setup_logging(level="chatty", log_dir=tmp_path).level == logging.INFO
