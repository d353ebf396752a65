"""Configuration and error types."""

from pydoris.core.config import LoggingConfig, ReaderConfig, Settings, load_settings
from pydoris.core.exceptions import (
    DorisRinexError,
    ConfigurationError,
    OpenError,
    RinexRecordError,
    HeaderError,
    BadStationLine,
    BadBlockHeader,
    BadObservationLine,
    UnexpectedEof,
    RinexIOError,
    ObservationCodeError,
    InvalidObservationType,
    InvalidFrequency,
)

__all__ = [
    "Settings",
    "ReaderConfig",
    "LoggingConfig",
    "load_settings",
    "DorisRinexError",
    "ConfigurationError",
    "OpenError",
    "RinexRecordError",
    "HeaderError",
    "BadStationLine",
    "BadBlockHeader",
    "BadObservationLine",
    "UnexpectedEof",
    "RinexIOError",
    "ObservationCodeError",
    "InvalidObservationType",
    "InvalidFrequency",
]
