"""
Unit tests for logging config.
"""

import logging

import pytest

from beliefmeta.main import parse_args
from beliefmeta.utils.logging_config import (
    DEFAULT_LOG_FILE,
    ColoredFormatter,
    LogLevel,
    get_logger,
    setup_logging,
)


@pytest.fixture(autouse=True)
def _detach_handlers():
    yield
    logger = logging.getLogger("beliefmeta")
    for handler in list(logger.handlers):
        handler.close()
        logger.removeHandler(handler)


class TestLogLevel:
    """Test LogLevel enum."""

    def test_members_match_cli_modes(self):
        """One member per CLI verbosity flag."""
        assert [level.value for level in LogLevel] == ["normal", "verbose", "debug"]


class TestSetupLogging:
    """Test setup_logging function."""

    def test_normal_logs_info(self):
        """Normal mode logs INFO and above."""
        logger = setup_logging()

        assert logger.name == "beliefmeta"
        assert logger.level == logging.INFO
        assert logger.handlers[0].level == logging.INFO

    @pytest.mark.parametrize("level", [LogLevel.VERBOSE, LogLevel.DEBUG, "debug"])
    def test_verbose_and_debug_log_debug(self, level):
        """Both detailed modes show DEBUG on the console."""
        logger = setup_logging(level=level)

        assert logger.level == logging.DEBUG
        assert logger.handlers[0].level == logging.DEBUG

    def test_debug_format_names_the_logger(self):
        """Debug console lines carry the module logger name."""
        logger = setup_logging(level=LogLevel.DEBUG)

        assert "%(name)s" in logger.handlers[0].formatter._fmt

    def test_log_file_captures_debug_in_normal_mode(self, tmp_path):
        """The file handler records DEBUG even when the console shows INFO."""
        log_file = tmp_path / "nested" / "run.log"

        logger = setup_logging(log_file=str(log_file))
        get_logger("beliefmeta.synthesis").debug("pooled 3 studies")
        for handler in logger.handlers:
            handler.flush()

        assert any(isinstance(h, logging.FileHandler) for h in logger.handlers)
        assert logger.handlers[0].level == logging.INFO
        assert "pooled 3 studies" in log_file.read_text(encoding="utf-8")

    def test_repeated_setup_does_not_duplicate_handlers(self):
        """Handlers are replaced, not stacked."""
        setup_logging()
        logger = setup_logging()

        assert len(logger.handlers) == 1


class TestCliFlags:
    """CLI flags feed setup_logging."""

    def test_bare_log_file_flag_uses_default_path(self):
        """--log-file without a value falls back to the default path."""
        assert parse_args(["-i", "sheet.csv", "--log-file"]).log_file == DEFAULT_LOG_FILE


class TestGetLogger:
    """Test get_logger."""

    def test_module_loggers_nest_under_package(self):
        """Module names already under the package are kept."""
        assert get_logger("beliefmeta.pipeline").name == "beliefmeta.pipeline"
        assert get_logger("scripts.tool").name == "beliefmeta.scripts.tool"


class TestColoredFormatter:
    """Test ColoredFormatter."""

    def test_does_not_mutate_the_record(self):
        """Other handlers still see the plain level name."""
        formatter = ColoredFormatter("%(levelname)s | %(message)s")
        record = logging.LogRecord("beliefmeta", logging.WARNING, __file__, 1, "careful", None, None)

        output = formatter.format(record)

        assert "careful" in output
        assert "WARNING" in output
        assert record.levelname == "WARNING"
