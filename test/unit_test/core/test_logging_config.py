"""Unit tests for logging configuration module.

Tests verify that the logging configuration functions work correctly with different
scenarios including various log levels, formats, and file logging options.
"""

import logging
from unittest.mock import patch

import pytest

from ngurra_pathways.core import logging_config
from ngurra_pathways.core.logging_config import (
    DETAILED_FORMAT,
    JSON_FORMAT,
    MODULE_LOG_LEVELS,
    SIMPLE_FORMAT,
    get_logger,
    setup_logging,
)


def _console_handler():
    return next(
        (h for h in logging.getLogger().handlers if type(h) is logging.StreamHandler),
        None,
    )


class TestSetupLoggingLogLevels:
    """Test setup_logging with different log levels."""

    @pytest.mark.parametrize(
        "log_level,expected_level",
        [
            ("DEBUG", logging.DEBUG),
            ("INFO", logging.INFO),
            ("WARNING", logging.WARNING),
            ("ERROR", logging.ERROR),
            ("debug", logging.DEBUG),
        ],
    )
    def test_setup_logging_with_different_levels(self, log_level, expected_level):
        setup_logging(log_level=log_level, enable_file=False)

        handler = _console_handler()
        assert handler is not None
        assert handler.level == expected_level

    def test_root_logger_captures_everything(self):
        setup_logging(log_level="ERROR", enable_file=False)
        assert logging.getLogger().level == logging.DEBUG

    def test_setup_logging_replaces_existing_handlers(self):
        setup_logging(enable_file=False)
        setup_logging(enable_file=False)
        stream_handlers = [h for h in logging.getLogger().handlers if type(h) is logging.StreamHandler]
        assert len(stream_handlers) == 1


class TestSetupLoggingFormats:
    @pytest.mark.parametrize(
        "log_format,expected",
        [("simple", SIMPLE_FORMAT), ("detailed", DETAILED_FORMAT), ("json", JSON_FORMAT)],
    )
    def test_format_selection(self, log_format, expected):
        setup_logging(log_format=log_format, enable_file=False)
        assert _console_handler().formatter._fmt == expected

    def test_unknown_format_falls_back_to_detailed(self):
        setup_logging(log_format="fancy", enable_file=False)
        assert _console_handler().formatter._fmt == DETAILED_FORMAT


class TestFileLogging:
    def test_file_handler_written_to_configured_dir(self, tmp_path):
        with patch.object(logging_config, "LOG_FILE_DIR", str(tmp_path / "logs")):
            setup_logging(enable_file=True)
        try:
            file_handlers = [h for h in logging.getLogger().handlers if isinstance(h, logging.FileHandler)]
            assert len(file_handlers) == 1
            assert (tmp_path / "logs" / "ngurra_pathways.log").exists()
        finally:
            setup_logging(enable_file=False)

    def test_no_file_handler_when_disabled(self):
        setup_logging(enable_file=False)
        assert not any(isinstance(h, logging.FileHandler) for h in logging.getLogger().handlers)


def test_module_log_levels_applied():
    setup_logging(enable_file=False)
    for module_name, level in MODULE_LOG_LEVELS.items():
        assert logging.getLogger(module_name).level == logging.getLevelName(level)


def test_get_logger_returns_named_logger():
    logger = get_logger("ngurra_pathways.test")
    assert logger.name == "ngurra_pathways.test"
