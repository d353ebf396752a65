"""
Fixed-column field helpers for RINEX records.

RINEX is column exact: fields are cut at declared offsets and never
tokenised on whitespace. Lines shorter than a field are treated as if
padded with blanks.

Numeric fields follow Fortran I and F/E/D edit descriptors. Python
literal extras such as digit separators (``1_000``), ``nan`` or ``inf``
are rejected.
"""

from __future__ import annotations

import re


_INT_RE = re.compile(r"^[+-]?[0-9]+$")
_FLOAT_RE = re.compile(r"^[+-]?(?:[0-9]+\.?[0-9]*|\.[0-9]+)(?:[EeDd][+-]?[0-9]+)?$")


def column_field(line: str, start: int, end: int) -> str:
    """Return columns ``start..end`` of a line, blank-padded to full width."""
    return line[start:end].ljust(end - start)


def is_blank(text: str) -> bool:
    """Check if a field holds only whitespace."""
    return not text.strip()


def parse_int_field(text: str, default: int | None = None) -> int:
    """Parse an integer field.

    Args:
        text: Field text
        default: Value returned for a blank field; if None, a blank
            field is an error

    Raises:
        ValueError: If the field is blank (without default) or not an integer
    """
    if is_blank(text):
        if default is None:
            raise ValueError("Empty integer field")
        return default
    value = text.strip()
    if not _INT_RE.match(value):
        raise ValueError(f"Invalid integer field: '{value}'")
    return int(value)


def parse_float_field(text: str, default: float | None = None) -> float:
    """Parse a floating point field.

    Fortran-style ``D`` exponents are accepted.

    Raises:
        ValueError: If the field is blank (without default) or not a number
    """
    if is_blank(text):
        if default is None:
            raise ValueError("Empty float field")
        return default
    value = text.strip()
    if not _FLOAT_RE.match(value):
        raise ValueError(f"Invalid float field: '{value}'")
    return float(value.replace("D", "E").replace("d", "e"))
