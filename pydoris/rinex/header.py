"""
DORIS observation RINEX header parser.

Reads a DORIS RINEX 3.0 file from its first line through the
'END OF HEADER' record. Every header line carries its label in columns
60-80 and its payload in columns 0-60; payload fields are cut at fixed
columns.

Usage:
    source = LineSource.open("/path/to/cs2rx20001.001")
    header = HeaderParser(source).parse()
    print(header.satellite_name, [str(c) for c in header.obs_codes])
"""

from __future__ import annotations

from collections import Counter
from dataclasses import dataclass, field
from typing import Callable, Optional

import numpy as np

from pydoris.core.exceptions import HeaderError, OpenError, RinexRecordError
from pydoris.rinex.obstypes import DorisObservationCode
from pydoris.rinex.records import MAX_OBS_PER_DATA_LINE, Beacon, TimeReferenceStation
from pydoris.rinex.source import LineSource
from pydoris.utils.dates import epoch_from_fields
from pydoris.utils.format import (
    column_field,
    is_blank,
    parse_float_field,
    parse_int_field,
)
from pydoris.utils.logging import get_logger


logger = get_logger(__name__)

LABEL_START = 60
LABEL_END = 80
END_OF_HEADER = "END OF HEADER"


@dataclass
class RinexHeader:
    """Metadata of a DORIS observation RINEX file."""

    # RINEX VERSION / TYPE
    version: Optional[float] = None
    file_type: str = ""
    system: str = ""

    # PGM / RUN BY / DATE, OBSERVER / AGENCY, COMMENT
    program: str = ""
    run_by: str = ""
    file_date: str = ""
    observer: str = ""
    agency: str = ""
    comments: list[str] = field(default_factory=list)

    # Satellite and on-board receiver/antenna identity
    satellite_name: str = ""
    cospar_number: str = ""
    rec_chain: str = ""       # DORIS chain used, e.g. 'CHAIN1'
    rec_type: str = ""        # DORIS instrument type, e.g. 'DGXX'
    rec_version: str = ""     # on-board software version
    antenna_number: str = ""
    antenna_type: str = ""

    # 2 GHz phase center and center of mass, platform frame (m)
    approx_position: tuple[float, float, float] = (0.0, 0.0, 0.0)
    center_of_mass: tuple[float, float, float] = (0.0, 0.0, 0.0)

    obs_codes: list[DorisObservationCode] = field(default_factory=list)
    obs_scale_factors: list[int] = field(default_factory=list)

    time_of_first_obs: Optional[np.datetime64] = None
    time_of_last_obs: Optional[np.datetime64] = None
    time_system: str = ""
    # day of the first measurement on the first time reference beacon, 00:00:00
    time_ref_stat: Optional[np.datetime64] = None

    # shift of the 400 MHz phase date vs the 2 GHz one, microseconds
    l2_l1_date_offset: float = 0.0
    rcv_clock_offs_applied: bool = False

    beacons: list[Beacon] = field(default_factory=list)
    time_ref_stations: list[TimeReferenceStation] = field(default_factory=list)
    declared_num_stations: Optional[int] = None
    declared_num_time_ref_stations: Optional[int] = None

    # byte offset and line count right after 'END OF HEADER'
    end_of_header: int = 0
    header_lines: int = 0

    @property
    def lines_per_beacon(self) -> int:
        """Number of data lines holding one beacon record (5 values per line)."""
        full, rest = divmod(len(self.obs_codes), MAX_OBS_PER_DATA_LINE)
        return 1 + (full - 1 if rest == 0 else full)

    def beacon_by_code(self, code: str) -> Beacon | None:
        """Get a declared beacon by its internal code (e.g. 'D31')."""
        for beacon in self.beacons:
            if beacon.code == code:
                return beacon
        return None

    def scale_factor_of(self, code: DorisObservationCode) -> int:
        """Get the scale factor declared for an observation code."""
        return self.obs_scale_factors[self.obs_codes.index(code)]


def parse_header_epoch(line: str) -> np.datetime64:
    """Resolve a header date record (5I6,F13.7), e.g. 'TIME OF FIRST OBS'.

    Blank time-of-day fields default to zero, as in 'TIME REF STAT DATE'.
    """
    seconds = column_field(line, 30, 43)
    return epoch_from_fields(
        parse_int_field(column_field(line, 0, 6)),
        parse_int_field(column_field(line, 6, 12)),
        parse_int_field(column_field(line, 12, 18)),
        parse_int_field(column_field(line, 18, 24), default=0),
        parse_int_field(column_field(line, 24, 30), default=0),
        seconds if not is_blank(seconds) else "0",
    )


class HeaderParser:
    """Parser of DORIS observation RINEX headers.

    Each recognised label has a handler; handlers raise ValueError on
    malformed payloads, which :meth:`parse` reports as HeaderError with
    the file name, line number and offending line. Unknown labels are
    skipped.
    """

    # '# / TYPES OF OBSERV': I6, 9(A6)
    OBS_TYPES_V2 = {"count": (0, 6), "first": 6, "width": 6, "per_line": 9}
    # 'SYS / # / OBS TYPES': A1, 2X, I3, 13(1X, A3)
    OBS_TYPES_V3 = {"count": (3, 6), "first": 6, "width": 4, "per_line": 13}
    # 'SYS / SCALE FACTOR': A1, 1X, I4, 2X, I2, 12(1X, A3)
    SCALE_FACTOR_CODES_PER_LINE = 12

    def __init__(self, source: LineSource):
        self._source = source
        self._header = RinexHeader()
        self._obs_types_remaining = 0
        self._scale_factors: dict[int, int] = {}
        self._scale_all: int | None = None
        self._pending_scale: tuple[int, int] | None = None

        self._handlers: dict[str, Callable[[str], None]] = {
            "RINEX VERSION / TYPE": self._parse_version_type,
            "PGM / RUN BY / DATE": self._parse_program,
            "OBSERVER / AGENCY": self._parse_observer,
            "COMMENT": self._parse_comment,
            "SATELLITE NAME": self._parse_satellite_name,
            "COSPAR NUMBER": self._parse_cospar_number,
            "REC # / TYPE / VERS": self._parse_receiver,
            "ANT # / TYPE": self._parse_antenna,
            "APPROX POSITION XYZ": self._parse_approx_position,
            "CENTER OF MASS: XYZ": self._parse_center_of_mass,
            "# / TYPES OF OBSERV": self._parse_obs_types_v2,
            "SYS / # / OBS TYPES": self._parse_obs_types_v3,
            "SYS / SCALE FACTOR": self._parse_scale_factor,
            "TIME OF FIRST OBS": self._parse_time_of_first_obs,
            "TIME OF LAST OBS": self._parse_time_of_last_obs,
            "TIME REF STAT DATE": self._parse_time_ref_stat_date,
            "L2 / L1 DATE OFFSET": self._parse_l2_l1_date_offset,
            "RCV CLOCK OFFS APPL": self._parse_rcv_clock_offs_appl,
            "# OF STATIONS": self._parse_num_stations,
            "# TIME REF STATIONS": self._parse_num_time_ref_stations,
            "TIME REF STATION": self._parse_time_ref_station,
            "STATION REFERENCE": self._parse_station_reference,
        }

    def parse(self) -> RinexHeader:
        """Read the header up to and including 'END OF HEADER'.

        Returns:
            RinexHeader with all metadata; ``end_of_header`` holds the byte
            offset of the first data record

        Raises:
            OpenError: If the file is empty
            HeaderError: On malformed records, missing required records or
                if 'END OF HEADER' is never found
        """
        while True:
            line = self._source.readline()
            if line is None:
                if self._source.line_number == 0:
                    raise OpenError(self._source.filename, "file is empty")
                raise self._error(f"'{END_OF_HEADER}' record not found")

            label = line[LABEL_START:LABEL_END].strip()
            if label == END_OF_HEADER:
                self._header.end_of_header = self._source.tell()
                self._header.header_lines = self._source.line_number
                break

            handler = self._handlers.get(label)
            if handler is None:
                logger.debug(
                    "Skipping unrecognised header record",
                    label=label,
                    line_number=self._source.line_number,
                )
                continue

            try:
                handler(line)
            except RinexRecordError as e:
                raise type(e)(
                    e.reason,
                    filename=self._source.filename,
                    line_number=self._source.line_number,
                    line=line,
                    operation=e.operation or "read_header",
                ) from e
            except ValueError as e:
                raise self._error(f"Invalid '{label}' record: {e}", line) from e

        self._finalize()
        return self._header

    def _error(self, message: str, line: str | None = None) -> HeaderError:
        return HeaderError(
            message,
            filename=self._source.filename,
            line_number=self._source.line_number if line is not None else None,
            line=line,
            operation="read_header",
        )

    def _finalize(self) -> None:
        """Validate the collected header and resolve scale factors."""
        hdr = self._header

        if hdr.version is None:
            raise self._error("Missing 'RINEX VERSION / TYPE' record")
        if self._obs_types_remaining:
            raise self._error(
                f"Observation types record ended with {self._obs_types_remaining} "
                f"types missing"
            )
        if self._pending_scale is not None:
            raise self._error(
                f"'SYS / SCALE FACTOR' record ended with {self._pending_scale[1]} "
                f"codes missing"
            )
        if not hdr.obs_codes:
            raise self._error("No observation types declared")
        if not hdr.beacons:
            raise self._error("No 'STATION REFERENCE' records found")

        duplicates = [c for c, n in Counter(b.code for b in hdr.beacons).items() if n > 1]
        if duplicates:
            raise self._error(f"Duplicate beacon codes: {', '.join(duplicates)}")

        codes = {b.code for b in hdr.beacons}
        for ref in hdr.time_ref_stations:
            if ref.code not in codes:
                raise self._error(
                    f"Time reference station '{ref.code}' is not a declared beacon"
                )

        default = self._scale_all if self._scale_all is not None else 1
        hdr.obs_scale_factors = [
            self._scale_factors.get(i, default) for i in range(len(hdr.obs_codes))
        ]

        if hdr.declared_num_stations is not None \
                and hdr.declared_num_stations != len(hdr.beacons):
            logger.warning(
                "Declared number of stations differs from station records",
                file=self._source.filename,
                declared=hdr.declared_num_stations,
                found=len(hdr.beacons),
            )
        if hdr.declared_num_time_ref_stations is not None \
                and hdr.declared_num_time_ref_stations != len(hdr.time_ref_stations):
            logger.warning(
                "Declared number of time reference stations differs from records",
                file=self._source.filename,
                declared=hdr.declared_num_time_ref_stations,
                found=len(hdr.time_ref_stations),
            )

    # ------------------------------------------------------------------
    # Record handlers
    # ------------------------------------------------------------------

    def _parse_version_type(self, line: str) -> None:
        version = parse_float_field(column_field(line, 0, 9))
        file_type = column_field(line, 20, 21)
        system = column_field(line, 40, 41)
        if file_type.upper() != "O":
            raise ValueError(f"file type '{file_type}' is not an observation file")
        if system.upper() != "D":
            raise ValueError(f"satellite system '{system}' is not DORIS")
        self._header.version = version
        self._header.file_type = file_type
        self._header.system = system

    def _parse_program(self, line: str) -> None:
        self._header.program = line[0:20].rstrip()
        self._header.run_by = line[20:40].rstrip()
        self._header.file_date = line[40:60].rstrip()

    def _parse_observer(self, line: str) -> None:
        self._header.observer = line[0:20].rstrip()
        self._header.agency = line[20:60].rstrip()

    def _parse_comment(self, line: str) -> None:
        self._header.comments.append(line[0:60].rstrip())

    def _parse_satellite_name(self, line: str) -> None:
        self._header.satellite_name = line[0:60].rstrip()

    def _parse_cospar_number(self, line: str) -> None:
        self._header.cospar_number = line[0:20].rstrip()

    def _parse_receiver(self, line: str) -> None:
        self._header.rec_chain = line[0:20].rstrip()
        self._header.rec_type = line[20:40].rstrip()
        self._header.rec_version = line[40:60].rstrip()

    def _parse_antenna(self, line: str) -> None:
        self._header.antenna_number = line[0:20].rstrip()
        self._header.antenna_type = line[20:40].rstrip()

    @staticmethod
    def _parse_xyz(line: str) -> tuple[float, float, float]:
        x, y, z = (parse_float_field(column_field(line, i * 14, (i + 1) * 14))
                   for i in range(3))
        return (x, y, z)

    def _parse_approx_position(self, line: str) -> None:
        self._header.approx_position = self._parse_xyz(line)

    def _parse_center_of_mass(self, line: str) -> None:
        self._header.center_of_mass = self._parse_xyz(line)

    def _parse_obs_types_v2(self, line: str) -> None:
        self._collect_obs_types(line, self.OBS_TYPES_V2)

    def _parse_obs_types_v3(self, line: str) -> None:
        system = column_field(line, 0, 1)
        if not is_blank(system) and system != "D":
            raise ValueError(f"satellite system '{system}' is not DORIS")
        self._collect_obs_types(line, self.OBS_TYPES_V3)

    def _collect_obs_types(self, line: str, layout: dict) -> None:
        """Collect observation codes; a blank count field marks a continuation."""
        count_start, count_end = layout["count"]
        count_field = column_field(line, count_start, count_end)

        if is_blank(column_field(line, 0, count_end)):
            if not self._obs_types_remaining:
                raise ValueError("continuation line without pending observation types")
        else:
            if self._header.obs_codes:
                raise ValueError("observation types declared more than once")
            count = parse_int_field(count_field)
            if count <= 0:
                raise ValueError(f"invalid number of observation types: {count}")
            self._obs_types_remaining = count

        first, width = layout["first"], layout["width"]
        for k in range(layout["per_line"]):
            if not self._obs_types_remaining:
                break
            token = column_field(line, first + k * width, first + (k + 1) * width).strip()
            if not token:
                break
            code = DorisObservationCode.from_str(token)
            if code in self._header.obs_codes:
                raise ValueError(f"observation code {code} declared twice")
            self._header.obs_codes.append(code)
            self._obs_types_remaining -= 1

    def _parse_scale_factor(self, line: str) -> None:
        if is_blank(column_field(line, 0, 10)):
            if self._pending_scale is None:
                raise ValueError("continuation line without pending scale factor")
            factor, remaining = self._pending_scale
        else:
            system = column_field(line, 0, 1)
            if not is_blank(system) and system != "D":
                raise ValueError(f"satellite system '{system}' is not DORIS")
            factor = parse_int_field(column_field(line, 2, 6))
            if factor <= 0:
                raise ValueError(f"invalid scale factor: {factor}")
            remaining = parse_int_field(column_field(line, 8, 10), default=0)
            if remaining == 0:
                # no code list: the factor applies to all observation types
                self._scale_all = factor
                self._pending_scale = None
                return

        for k in range(self.SCALE_FACTOR_CODES_PER_LINE):
            if not remaining:
                break
            token = column_field(line, 10 + k * 4, 14 + k * 4).strip()
            if not token:
                break
            code = DorisObservationCode.from_str(token)
            try:
                index = self._header.obs_codes.index(code)
            except ValueError:
                raise ValueError(
                    f"scale factor given for undeclared observation code {code}"
                ) from None
            self._scale_factors[index] = factor
            remaining -= 1

        self._pending_scale = (factor, remaining) if remaining else None

    def _parse_time_of_first_obs(self, line: str) -> None:
        self._header.time_of_first_obs = parse_header_epoch(line)
        self._header.time_system = line[48:51].strip()

    def _parse_time_of_last_obs(self, line: str) -> None:
        self._header.time_of_last_obs = parse_header_epoch(line)

    def _parse_time_ref_stat_date(self, line: str) -> None:
        self._header.time_ref_stat = parse_header_epoch(line)

    def _parse_l2_l1_date_offset(self, line: str) -> None:
        text = column_field(line, 0, 40)
        if text.startswith("D"):
            text = text[1:]
        self._header.l2_l1_date_offset = parse_float_field(text)

    def _parse_rcv_clock_offs_appl(self, line: str) -> None:
        flag = parse_int_field(column_field(line, 0, 6), default=0)
        if flag not in (0, 1):
            raise ValueError(f"flag must be 0 or 1, got {flag}")
        self._header.rcv_clock_offs_applied = bool(flag)

    def _parse_num_stations(self, line: str) -> None:
        self._header.declared_num_stations = parse_int_field(column_field(line, 0, 6))

    def _parse_num_time_ref_stations(self, line: str) -> None:
        self._header.declared_num_time_ref_stations = parse_int_field(
            column_field(line, 0, 6)
        )

    def _parse_time_ref_station(self, line: str) -> None:
        # A3, 1X, F16.3, 1X, F14.3
        code = line[0:3]
        if not code.startswith("D"):
            raise ValueError(f"invalid beacon code '{code}'")
        self._header.time_ref_stations.append(
            TimeReferenceStation(
                code=code,
                bias=parse_float_field(column_field(line, 4, 20)),
                shift=parse_float_field(column_field(line, 21, 35)),
            )
        )

    def _parse_station_reference(self, line: str) -> None:
        self._header.beacons.append(Beacon.from_rinex_line(line))


def read_header(source: LineSource) -> RinexHeader:
    """Parse the header of an open RINEX source (positioned at byte 0)."""
    return HeaderParser(source).parse()
