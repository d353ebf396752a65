"""
Logging utilities for PyDORIS.

Uses structlog for structured logging with optional JSON output.
Every PyDORIS logger lives under the ``pydoris`` namespace, and handlers
are attached to that logger only, so an application embedding the
reader keeps control of its root logger. The library itself never
configures logging; applications (and the ``pydoris`` CLI) call
:func:`setup_logging` or :func:`setup_logging_from_config` once.
"""

from __future__ import annotations

import logging
import sys
from pathlib import Path
from typing import Any

import structlog

from pydoris.core.config import LoggingConfig


LOGGER_NAME = "pydoris"
LOG_FILE_NAME = "pydoris.log"


def _reset_handlers(package_logger: logging.Logger) -> None:
    for handler in list(package_logger.handlers):
        package_logger.removeHandler(handler)
        handler.close()


def setup_logging(
    level: str = "WARNING",
    log_dir: Path | str | None = None,
    log_to_file: bool = False,
    log_to_console: bool = True,
    json_format: bool = False,
) -> logging.Logger:
    """Configure logging for PyDORIS.

    Calling it again replaces the handlers installed by the previous call.

    Args:
        level: Log level (DEBUG, INFO, WARNING, ERROR, CRITICAL)
        log_dir: Directory for the ``pydoris.log`` file
        log_to_file: Whether to log to file
        log_to_console: Whether to log to console
        json_format: Use JSON format for logs

    Returns:
        The ``pydoris`` package logger
    """
    log_level = getattr(logging, level.upper(), logging.WARNING)

    package_logger = logging.getLogger(LOGGER_NAME)
    _reset_handlers(package_logger)
    formatter = logging.Formatter("%(message)s")

    if log_to_console:
        # stdout carries command output; diagnostics go to stderr
        console_handler = logging.StreamHandler(sys.stderr)
        console_handler.setFormatter(formatter)
        package_logger.addHandler(console_handler)

    if log_to_file and log_dir:
        log_path = Path(log_dir)
        log_path.mkdir(parents=True, exist_ok=True)
        file_handler = logging.FileHandler(log_path / LOG_FILE_NAME)
        file_handler.setFormatter(formatter)
        package_logger.addHandler(file_handler)

    if not package_logger.handlers:
        package_logger.addHandler(logging.NullHandler())

    package_logger.setLevel(log_level)
    package_logger.propagate = False

    processors: list[Any] = [
        structlog.stdlib.filter_by_level,
        structlog.stdlib.add_logger_name,
        structlog.stdlib.add_log_level,
        structlog.stdlib.PositionalArgumentsFormatter(),
        structlog.processors.TimeStamper(fmt="iso"),
        structlog.processors.StackInfoRenderer(),
        structlog.processors.UnicodeDecoder(),
    ]

    if json_format:
        processors.append(structlog.processors.JSONRenderer())
    else:
        processors.append(structlog.dev.ConsoleRenderer())

    structlog.configure(
        processors=processors,
        wrapper_class=structlog.stdlib.BoundLogger,
        context_class=dict,
        logger_factory=structlog.stdlib.LoggerFactory(),
        cache_logger_on_first_use=True,
    )
    return package_logger


def setup_logging_from_config(
    config: LoggingConfig,
    level: str | None = None,
) -> logging.Logger:
    """Configure logging from the ``logging`` settings section.

    Args:
        config: Logging settings
        level: Overrides ``config.level`` (e.g. from ``--verbose``)
    """
    return setup_logging(
        level=level or config.level,
        log_dir=config.log_dir,
        log_to_file=config.log_to_file,
        log_to_console=config.log_to_console,
        json_format=config.json_format,
    )


def get_logger(name: str | None = None) -> structlog.stdlib.BoundLogger:
    """Get a logger in the ``pydoris`` namespace.

    Args:
        name: Logger name (typically __name__); names outside the
            namespace are nested under ``pydoris``

    Returns:
        Configured logger instance
    """
    if not name:
        name = LOGGER_NAME
    elif name != LOGGER_NAME and not name.startswith(f"{LOGGER_NAME}."):
        name = f"{LOGGER_NAME}.{name}"
    return structlog.get_logger(name)
