"""
Date and time utilities for DORIS RINEX processing.

Epochs are represented as ``numpy.datetime64`` values with nanosecond
resolution. RINEX seconds fields are converted to integer nanoseconds
from their decimal text, so no precision is lost through a float.
"""

from __future__ import annotations

import re

import numpy as np

from pydoris.utils.format import parse_int_field


NANOSECONDS_PER_SECOND = 1_000_000_000
EPOCH_UNIT = "ns"
MJD_EPOCH = np.datetime64("1858-11-17T00:00:00", EPOCH_UNIT)

# whole days representable as datetime64[ns]
FIRST_EPOCH_DAY = np.datetime64("1678-01-01", "D")
LAST_EPOCH_DAY = np.datetime64("2262-04-10", "D")

_SECONDS_RE = re.compile(r"^(\d+)(?:\.(\d*))?$")


def seconds_to_nanoseconds(text: str) -> int:
    """Convert a decimal seconds field (e.g. ``' 53.279947800'``) to nanoseconds.

    Digits beyond the ninth decimal place are truncated.

    Args:
        text: Seconds as written in the file

    Returns:
        Integer number of nanoseconds

    Raises:
        ValueError: If the text is not an unsigned decimal number
    """
    match = _SECONDS_RE.match(text.strip())
    if match is None:
        raise ValueError(f"Invalid seconds field: '{text}'")
    whole, fraction = match.group(1), match.group(2) or ""
    fraction = (fraction + "0" * 9)[:9]
    return int(whole) * NANOSECONDS_PER_SECOND + int(fraction)


def epoch_from_fields(
    year: int,
    month: int,
    day: int,
    hour: int = 0,
    minute: int = 0,
    seconds: str | int = 0,
) -> np.datetime64:
    """Build a nanosecond epoch from calendar fields.

    Args:
        year: Year (4 digits)
        month: Month (1-12)
        day: Day of month (1-31)
        hour: Hour (0-23)
        minute: Minute (0-59)
        seconds: Seconds, either as decimal text or integer

    Returns:
        numpy.datetime64 with nanosecond resolution

    Raises:
        ValueError: If any field is out of range
    """
    if not 0 <= hour <= 23:
        raise ValueError(f"Hour must be 0-23, got {hour}")
    if not 0 <= minute <= 59:
        raise ValueError(f"Minute must be 0-59, got {minute}")

    if isinstance(seconds, str):
        nanos = seconds_to_nanoseconds(seconds)
    else:
        nanos = int(seconds) * NANOSECONDS_PER_SECOND
    if not 0 <= nanos < 60 * NANOSECONDS_PER_SECOND:
        raise ValueError(f"Seconds must be in [0, 60), got {seconds}")

    # raises ValueError on impossible dates (e.g. Feb 30)
    day_start = np.datetime64(f"{year:04d}-{month:02d}-{day:02d}", "D")
    if not FIRST_EPOCH_DAY <= day_start <= LAST_EPOCH_DAY:
        raise ValueError(
            f"Date {day_start} outside the nanosecond epoch range "
            f"{FIRST_EPOCH_DAY} to {LAST_EPOCH_DAY}"
        )

    return (
        day_start.astype(f"datetime64[{EPOCH_UNIT}]")
        + np.timedelta64(hour * 3600 + minute * 60, "s")
        + np.timedelta64(nanos, EPOCH_UNIT)
    )


def parse_epoch(text: str) -> np.datetime64:
    """Parse a data record epoch ``YYYY MM DD HH MM SS.fffffffff``.

    The text is the 29-column field starting at column 2 of a ``>`` line;
    fields are taken at fixed columns.

    Args:
        text: Epoch field

    Returns:
        numpy.datetime64 with nanosecond resolution
    """
    text = text.ljust(29)
    return epoch_from_fields(
        parse_int_field(text[0:4]),
        parse_int_field(text[5:7]),
        parse_int_field(text[8:10]),
        parse_int_field(text[11:13]),
        parse_int_field(text[14:16]),
        text[16:29],
    )


def add_seconds(epoch: np.datetime64, seconds: float) -> np.datetime64:
    """Add a (possibly fractional) number of seconds to an epoch.

    The offset is rounded to the nearest nanosecond.
    """
    nanos = int(round(seconds * NANOSECONDS_PER_SECOND))
    return epoch + np.timedelta64(nanos, EPOCH_UNIT)


def mjd_from_epoch(epoch: np.datetime64) -> float:
    """Calculate Modified Julian Date from an epoch."""
    return float((epoch - MJD_EPOCH) / np.timedelta64(1, "D"))


def format_epoch(epoch: np.datetime64 | None) -> str | None:
    """Format an epoch as ISO 8601 text with nanoseconds."""
    if epoch is None:
        return None
    return str(np.datetime_as_string(epoch, unit=EPOCH_UNIT))
