"""
Custom exceptions for PyDORIS.

Provides a hierarchy of exceptions for the error conditions met while
reading DORIS observation RINEX files.
"""

from __future__ import annotations


class DorisRinexError(Exception):
    """Base exception for all PyDORIS errors."""

    pass


class ConfigurationError(DorisRinexError):
    """Configuration-related errors."""

    pass


class OpenError(DorisRinexError):
    """RINEX file cannot be opened or is empty."""

    def __init__(self, filename: str, message: str):
        self.filename = filename
        super().__init__(f"Cannot open {filename}: {message}")


class RinexRecordError(DorisRinexError):
    """Error tied to a specific line of a RINEX file.

    Carries the file name, the 1-based line number, the offending line and
    the name of the operation that failed.
    """

    def __init__(
        self,
        message: str,
        filename: str | None = None,
        line_number: int | None = None,
        line: str | None = None,
        operation: str | None = None,
    ):
        self.reason = message
        self.filename = filename
        self.line_number = line_number
        self.line = line
        self.operation = operation
        super().__init__(self._render())

    def _render(self) -> str:
        where = ""
        if self.filename:
            where = f"{self.filename}"
            if self.line_number is not None:
                where += f":{self.line_number}"
            where += ": "
        text = f"{where}{self.reason}"
        if self.operation:
            text += f" (in {self.operation})"
        if self.line is not None:
            text += f"\n  offending line: '{self.line}'"
        return text


class HeaderError(RinexRecordError):
    """Malformed or incomplete RINEX header."""

    pass


class BadStationLine(HeaderError):
    """A 'STATION REFERENCE' line could not be resolved."""

    pass


class BadBlockHeader(RinexRecordError):
    """A data record header line ('>' line) could not be resolved."""

    pass


class BadObservationLine(RinexRecordError):
    """A beacon observation line could not be resolved."""

    pass


class UnexpectedEof(RinexRecordError):
    """End of file reached in the middle of a data block."""

    pass


class RinexIOError(DorisRinexError):
    """Low-level I/O failure of the underlying byte source."""

    def __init__(self, filename: str, operation: str, message: str):
        self.filename = filename
        self.operation = operation
        super().__init__(f"{operation} failed on {filename}: {message}")


class ObservationCodeError(DorisRinexError, ValueError):
    """Invalid DORIS observation type or code."""

    pass


class InvalidObservationType(ObservationCodeError):
    """Character does not name a DORIS observation type."""

    def __init__(self, char: str):
        self.char = char
        super().__init__(f"Cannot translate '{char}' to a DORIS observation type")


class InvalidFrequency(ObservationCodeError):
    """Frequency not valid for the given observation type."""

    def __init__(self, obs_type: str, freq: int | str):
        self.obs_type = obs_type
        self.freq = freq
        super().__init__(
            f"Invalid frequency {freq!r} for DORIS observation type '{obs_type}' "
            f"(expected 1 or 2)"
        )
