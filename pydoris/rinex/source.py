"""
Line-oriented byte source for RINEX files.

Wraps a binary file object so that positions reported by ``tell()`` are
exact byte offsets, while lines are handed out as decoded text with the
line terminator removed. Gzip-compressed files (``.gz``) are read
transparently.
"""

from __future__ import annotations

import gzip
from pathlib import Path
from typing import BinaryIO

from pydoris.core.exceptions import OpenError, RinexIOError


class LineSource:
    """Forward-only line reader over a binary stream, with seek support."""

    def __init__(self, filename: str, stream: BinaryIO, encoding: str = "latin-1"):
        self._filename = filename
        self._stream = stream
        self._encoding = encoding
        self._line_number = 0

    @classmethod
    def open(cls, path: Path | str, encoding: str = "latin-1") -> "LineSource":
        """Open a (possibly gzipped) file for reading.

        Raises:
            OpenError: If the file cannot be opened
        """
        path = Path(path)
        try:
            if path.suffix.lower() == ".gz":
                stream = gzip.open(path, "rb")
            else:
                stream = open(path, "rb")
        except OSError as e:
            raise OpenError(str(path), e.strerror or str(e)) from e
        return cls(str(path), stream, encoding)

    @property
    def filename(self) -> str:
        return self._filename

    @property
    def line_number(self) -> int:
        """Number of the last line read (1-based; 0 before the first read)."""
        return self._line_number

    @property
    def closed(self) -> bool:
        return self._stream.closed

    def readline(self) -> str | None:
        """Read the next line.

        Returns:
            The decoded line without its terminator, or None at end of file

        Raises:
            RinexIOError: On read or decode failures, or if the source is closed
        """
        if self._stream.closed:
            raise RinexIOError(self._filename, "readline", "source is closed")
        try:
            raw = self._stream.readline()
        except OSError as e:
            raise RinexIOError(self._filename, "readline", str(e)) from e

        if not raw:
            return None

        self._line_number += 1
        try:
            return raw.decode(self._encoding).rstrip("\r\n")
        except UnicodeDecodeError as e:
            raise RinexIOError(
                self._filename, f"decode line {self._line_number}", str(e)
            ) from e

    def tell(self) -> int:
        """Current byte offset."""
        try:
            return self._stream.tell()
        except (OSError, ValueError) as e:
            raise RinexIOError(self._filename, "tell", str(e)) from e

    def seek(self, offset: int, line_number: int) -> None:
        """Move to a byte offset previously returned by :meth:`tell`.

        Args:
            offset: Byte offset
            line_number: Number of lines preceding the offset
        """
        try:
            self._stream.seek(offset)
        except (OSError, ValueError) as e:
            raise RinexIOError(self._filename, "seek", str(e)) from e
        self._line_number = line_number

    def close(self) -> None:
        self._stream.close()
