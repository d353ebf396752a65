"""Utility modules for epochs, fixed-column fields and logging."""

from pydoris.utils.dates import (
    NANOSECONDS_PER_SECOND,
    epoch_from_fields,
    parse_epoch,
    add_seconds,
    mjd_from_epoch,
    format_epoch,
)
from pydoris.utils.logging import get_logger, setup_logging, setup_logging_from_config

__all__ = [
    "NANOSECONDS_PER_SECOND",
    "epoch_from_fields",
    "parse_epoch",
    "add_seconds",
    "mjd_from_epoch",
    "format_epoch",
    "get_logger",
    "setup_logging",
    "setup_logging_from_config",
]
