"""Tests for logging setup."""

import json
import logging

import pytest

from pydoris.core.config import LoggingConfig
from pydoris.utils.logging import (
    LOG_FILE_NAME,
    LOGGER_NAME,
    get_logger,
    setup_logging,
    setup_logging_from_config,
)


@pytest.fixture(autouse=True)
def restore_logging():
    """Leave the package logger without stream handlers after each test."""
    yield
    setup_logging(log_to_console=False)


class TestSetupLogging:
    """Tests for handler installation on the package logger."""

    def test_package_logger_only(self):
        """Handlers go on the pydoris logger, the root logger is left alone."""
        root_handlers = list(logging.getLogger().handlers)
        package_logger = setup_logging(level="info")

        assert package_logger.name == LOGGER_NAME
        assert package_logger.level == logging.INFO
        assert package_logger.propagate is False
        assert len(package_logger.handlers) == 1
        assert logging.getLogger().handlers == root_handlers

    def test_repeated_setup_replaces_handlers(self):
        setup_logging()
        package_logger = setup_logging()
        assert len(package_logger.handlers) == 1

    def test_no_output(self):
        package_logger = setup_logging(log_to_console=False)
        assert [type(h) for h in package_logger.handlers] == [logging.NullHandler]

    def test_json_file(self, tmp_path):
        """JSON records in the log file carry the namespaced logger name."""
        package_logger = setup_logging(
            level="WARNING",
            log_dir=tmp_path,
            log_to_file=True,
            log_to_console=False,
            json_format=True,
        )
        get_logger("doris.qc").warning("Beacon out of range", beacon="D07")
        get_logger("doris.qc").info("Not written")
        for handler in package_logger.handlers:
            handler.flush()

        lines = (tmp_path / LOG_FILE_NAME).read_text().splitlines()
        assert len(lines) == 1
        record = json.loads(lines[0])
        assert record["event"] == "Beacon out of range"
        assert record["beacon"] == "D07"
        assert record["logger"] == "pydoris.doris.qc"
        assert record["level"] == "warning"


class TestSetupFromConfig:
    """Tests for configuring logging from settings."""

    def test_config_level(self):
        package_logger = setup_logging_from_config(LoggingConfig(level="error"))
        assert package_logger.level == logging.ERROR

    def test_level_override(self):
        package_logger = setup_logging_from_config(LoggingConfig(), level="DEBUG")
        assert package_logger.level == logging.DEBUG

    def test_log_file(self, tmp_path):
        config = LoggingConfig(log_dir=tmp_path / "logs", log_to_file=True)
        package_logger = setup_logging_from_config(config)
        assert (tmp_path / "logs").is_dir()
        assert any(isinstance(h, logging.FileHandler) for h in package_logger.handlers)
