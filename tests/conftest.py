"""
Shared fixtures and builders for DORIS RINEX tests.

Test files are written column-exactly: header payloads occupy columns
0-60 with the label in 60-80, data records follow the 16-column
observation layout (F14.3 value plus two flag characters).
"""

from __future__ import annotations

import gzip
from pathlib import Path
from typing import Callable, Sequence

import pytest


DEFAULT_OBS_CODES = ("L1", "L2", "C1", "C2", "W1", "W2", "F", "P", "T", "H")

# (code, station id, name, DOMES, type, K)
DEFAULT_BEACONS = (
    ("D01", "DIOB", "DIONYSOS", "12602S012", 3, -2),
    ("D02", "GRFB", "GREENBELT", "40451S178", 3, 0),
    ("D03", "SJUB", "SAN JUAN", "41508S005", 2, 11),
)

DEFAULT_EPOCH = (2020, 1, 1, 1, 41, "53.279947800")


def header_line(content: str, label: str) -> str:
    """Pad a header payload to 60 columns and append the label."""
    return f"{content:<60}{label:<20}"


def version_line(version: str = "3.00", file_type: str = "O", system: str = "D") -> str:
    return header_line(f"{version:>9}{'':11}{file_type:<20}{system}", "RINEX VERSION / TYPE")


def obs_types_lines(codes: Sequence[str]) -> list[str]:
    """'SYS / # / OBS TYPES' lines, 13 codes per line."""
    lines = []
    for start in range(0, len(codes), 13):
        chunk = "".join(f" {c:<3}" for c in codes[start:start + 13])
        prefix = f"D  {len(codes):3d}" if start == 0 else " " * 6
        lines.append(header_line(prefix + chunk, "SYS / # / OBS TYPES"))
    return lines


def obs_types_v2_lines(codes: Sequence[str]) -> list[str]:
    """'# / TYPES OF OBSERV' lines, 9 codes per line."""
    lines = []
    for start in range(0, len(codes), 9):
        chunk = "".join(f"{c:>6}" for c in codes[start:start + 9])
        prefix = f"{len(codes):6d}" if start == 0 else " " * 6
        lines.append(header_line(prefix + chunk, "# / TYPES OF OBSERV"))
    return lines


def scale_factor_line(factor: int, codes: Sequence[str] = ()) -> str:
    count = f"{len(codes):2d}" if codes else "  "
    chunk = "".join(f" {c:<3}" for c in codes)
    return header_line(f"D {factor:4d}  {count}{chunk}", "SYS / SCALE FACTOR")


def station_line(
    code: str,
    station_id: str,
    name: str,
    domes: str,
    beacon_type: int | str,
    shift_factor: int | str = 0,
) -> str:
    """'STATION REFERENCE' line (A3,2X,A4,1X,A30,A9,1X,I1,I8 style columns)."""
    content = f"{code:<3}  {station_id:<4} {name:<30}{domes:<10} {beacon_type}{shift_factor:>8}"
    return header_line(content, "STATION REFERENCE")


def time_ref_station_line(code: str, bias: float, shift: float) -> str:
    return header_line(f"{code:<3} {bias:16.3f} {shift:14.3f}", "TIME REF STATION")


def date_record(
    label: str,
    year: int,
    month: int,
    day: int,
    hour: int = 0,
    minute: int = 0,
    seconds: float = 0.0,
    time_system: str = "",
) -> str:
    """Header date record (5I6,F13.7), optionally with time system in 48-51."""
    content = f"{year:6d}{month:6d}{day:6d}{hour:6d}{minute:6d}{seconds:13.7f}"
    if time_system:
        content = f"{content:<48}{time_system}"
    return header_line(content, label)


def build_header(
    obs_codes: Sequence[str] = DEFAULT_OBS_CODES,
    beacons: Sequence[tuple] = DEFAULT_BEACONS,
    scale_lines: Sequence[str] = (),
    time_ref: Sequence[tuple[str, float, float]] = (("D01", -1.234, 0.5),),
    extra: Sequence[str] = (),
) -> list[str]:
    """Build a complete, valid DORIS RINEX 3.0 header (without data)."""
    lines = [
        version_line(),
        header_line(f"{'CCL2RNX':<20}{'LEGOS-CNES':<20}{'20200102 000412 UTC':<20}",
                    "PGM / RUN BY / DATE"),
        header_line("Synthetic DORIS test file", "COMMENT"),
        header_line("CRYOSAT-2", "SATELLITE NAME"),
        header_line("2010-013A", "COSPAR NUMBER"),
        header_line(f"{'CHAIN1':<20}{'DGXX':<20}{'1.00':<20}", "REC # / TYPE / VERS"),
        header_line(f"{'STAREC':<20}{'DORIS':<20}", "ANT # / TYPE"),
        header_line(f"{1.2345:14.4f}{-0.5:14.4f}{0.75:14.4f}", "APPROX POSITION XYZ"),
        header_line(f"{1.0:14.4f}{0.0:14.4f}{-0.25:14.4f}", "CENTER OF MASS: XYZ"),
    ]
    lines.extend(obs_types_lines(obs_codes))
    lines.extend(scale_lines)
    lines.extend([
        date_record("TIME OF FIRST OBS", 2020, 1, 1, 1, 41, 53.2799478, "DOR"),
        date_record("TIME REF STAT DATE", 2020, 1, 1),
        header_line(f"D{0.0:14.3f}", "L2 / L1 DATE OFFSET"),
        header_line(f"{0:6d}", "RCV CLOCK OFFS APPL"),
        header_line(f"{len(beacons):6d}", "# OF STATIONS"),
        header_line(f"{len(time_ref):6d}", "# TIME REF STATIONS"),
    ])
    lines.extend(time_ref_station_line(*t) for t in time_ref)
    lines.extend(station_line(*b) for b in beacons)
    lines.extend(extra)
    lines.append(header_line("", "END OF HEADER"))
    return lines


def block_header_line(
    epoch: tuple = DEFAULT_EPOCH,
    flag: int = 0,
    num_stations: int = 1,
    clock_offset: float | None = None,
    clock_flag: int | None = None,
) -> str:
    """Data record header ('>') line with every field in its own columns."""
    year, month, day, hour, minute, seconds = epoch
    line = (
        f"> {year:4d} {month:02d} {day:02d} {hour:02d} {minute:02d}{seconds:>13}"
        f"{flag:3d}{num_stations:3d}"
    )
    if clock_offset is not None or clock_flag is not None:
        clock = f"{clock_offset:13.9f}" if clock_offset is not None else " " * 13
        line += " " * 6 + clock
        if clock_flag is not None:
            line += f"{clock_flag:3d}"
    return line


def obs_field(value: float | None, flag1: str = " ", flag2: str = " ") -> str:
    """One 16-column observation field; None leaves the value blank."""
    text = " " * 14 if value is None else f"{value:14.3f}"
    return f"{text}{flag1}{flag2}"


def beacon_lines(beacon_id: str, fields: Sequence[float | None | str]) -> list[str]:
    """Observation lines of one beacon, 5 fields per line.

    Items may be floats, None (blank field) or preformatted 16-column fields.
    """
    formatted = [f if isinstance(f, str) else obs_field(f) for f in fields]
    lines = []
    for start in range(0, len(formatted), 5):
        prefix = beacon_id if start == 0 else "   "
        lines.append(prefix + "".join(formatted[start:start + 5]))
    return lines


def block_lines(
    beacons: Sequence[tuple[str, Sequence[float | None | str]]],
    epoch: tuple = DEFAULT_EPOCH,
    flag: int = 0,
    clock_offset: float | None = None,
    clock_flag: int | None = None,
) -> list[str]:
    """A full data block: header line plus the lines of every beacon."""
    lines = [block_header_line(epoch, flag, len(beacons), clock_offset, clock_flag)]
    for beacon_id, fields in beacons:
        lines.extend(beacon_lines(beacon_id, fields))
    return lines


def write_rinex(path: Path, lines: Sequence[str], newline: str = "\n") -> Path:
    """Write lines to a (possibly gzipped) file, in latin-1."""
    data = "".join(line + newline for line in lines).encode("latin-1")
    if path.suffix == ".gz":
        with gzip.open(path, "wb") as f:
            f.write(data)
    else:
        path.write_bytes(data)
    return path


@pytest.fixture
def make_rinex(tmp_path: Path) -> Callable[..., Path]:
    """Factory writing a DORIS RINEX file from header and data lines."""

    def _make(
        data: Sequence[str] = (),
        header: Sequence[str] | None = None,
        name: str = "cs2rx20001.001",
        newline: str = "\n",
    ) -> Path:
        lines = list(build_header() if header is None else header) + list(data)
        return write_rinex(tmp_path / name, lines, newline)

    return _make


@pytest.fixture
def sample_values() -> list[float | None]:
    """Ten plausible observation values, in DEFAULT_OBS_CODES order."""
    return [
        -2224836.123, -436583.456, 1338447.789, 1338449.012,
        -114.500, -112.250, -1.730, 1013.200, 21.500, 64.000,
    ]
