"""
Record types of DORIS observation RINEX files.

Value types for beacons (ground stations), time reference beacons and
the data blocks delivered by the block stream, plus the sentinels used
for missing observation values and receiver clock offsets.
"""

from __future__ import annotations

import sys
from dataclasses import dataclass, field

import numpy as np

from pydoris.core.exceptions import BadStationLine
from pydoris.rinex.obstypes import DorisObservationCode
from pydoris.utils.dates import add_seconds
from pydoris.utils.format import column_field, parse_int_field


# Smallest positive normal double; the "missing" convention of DORIS tooling
RECEIVER_CLOCK_OFFSET_MISSING = sys.float_info.min
OBSERVATION_VALUE_MISSING = sys.float_info.min

# Data lines hold up to 5 observations of 16 columns (F14.3 + 2 flags)
MAX_OBS_PER_DATA_LINE = 5
OBS_FIELD_START = 3
OBS_FIELD_WIDTH = 16
OBS_VALUE_WIDTH = 14

EPOCH_FLAG_OK = 0
EPOCH_FLAG_POWER_FAILURE = 1

BEACON_TYPES = (1, 2, 3)


@dataclass
class Beacon:
    """A ground station (beacon) from a 'STATION REFERENCE' header line.

    Example line::

        D31  DIOB DIONYSOS                      12602S012  3   -2
        0123456789012345678901234567890123456789012345678901234567
                  10        20        30        40        50
    """

    code: str           # internal number used in data records, e.g. 'D31'
    station_id: str     # 4-character station code
    name: str
    domes: str
    type: int           # 1, 2 or 3 for beacon generation 1.0, 2.0, 3.0
    shift_factor: int = 0  # frequency shift factor K (signed)

    # Column positions of the STATION REFERENCE record
    COLUMNS = {
        "code": (0, 3),
        "station_id": (5, 9),
        "name": (10, 40),
        "domes": (40, 50),
        "type": (51, 52),
        "shift_factor": (52, 60),
    }
    MIN_COLUMNS = 52

    @classmethod
    def from_rinex_line(cls, line: str) -> "Beacon":
        """Resolve a beacon from a 'STATION REFERENCE' record line.

        Fields are copied as-is: whitespace inside identifiers and names is
        kept, only trailing padding is removed.

        Args:
            line: RINEX 'STATION REFERENCE' record line

        Returns:
            Beacon instance

        Raises:
            BadStationLine: If the line does not start with 'D', is shorter
                than 52 columns or carries an invalid type/shift factor
        """
        operation = "Beacon.from_rinex_line"

        if not line.startswith("D"):
            raise BadStationLine(
                "'STATION REFERENCE' fields should start with a 'D'",
                line=line, operation=operation,
            )
        if len(line) < cls.MIN_COLUMNS:
            raise BadStationLine(
                f"'STATION REFERENCE' line shorter than {cls.MIN_COLUMNS} columns",
                line=line, operation=operation,
            )

        def text(name: str) -> str:
            start, end = cls.COLUMNS[name]
            return line[start:end].rstrip()

        type_char = line[cls.COLUMNS["type"][0]]
        if not type_char.isdigit() or int(type_char) not in BEACON_TYPES:
            raise BadStationLine(
                f"Invalid beacon type '{type_char}'",
                line=line, operation=operation,
            )

        try:
            shift_factor = parse_int_field(
                column_field(line, *cls.COLUMNS["shift_factor"]), default=0
            )
        except ValueError:
            raise BadStationLine(
                "Invalid frequency shift factor",
                line=line, operation=operation,
            ) from None

        return cls(
            code=text("code"),
            station_id=text("station_id"),
            name=text("name"),
            domes=text("domes"),
            type=int(type_char),
            shift_factor=shift_factor,
        )


@dataclass
class TimeReferenceStation:
    """A time reference beacon from a 'TIME REF STATION' header line.

    The code must name a beacon declared in a 'STATION REFERENCE' line.
    """

    code: str
    bias: float   # bias of the beacon reference vs TAI, microseconds
    shift: float  # beacon reference shift, unit 1e-14 s/s


@dataclass
class DataRecordHeader:
    """Fields of a data record header ('>') line.

    The epoch refers to the 2 GHz (L1) sampling; for 400 MHz (L2) the
    header 'L2 / L1 DATE OFFSET' applies.
    """

    epoch: np.datetime64
    num_stations: int
    flag: int = EPOCH_FLAG_OK
    clock_offset: float = RECEIVER_CLOCK_OFFSET_MISSING  # seconds, optional
    clock_flag: int = 0  # 1 if the clock offset is extrapolated

    @property
    def has_clock_offset(self) -> bool:
        return self.clock_offset != RECEIVER_CLOCK_OFFSET_MISSING

    @property
    def is_special_event(self) -> bool:
        return self.flag > EPOCH_FLAG_POWER_FAILURE

    def apply_clock_offset(self) -> np.datetime64:
        """Return the epoch corrected by the receiver clock offset.

        The stored epoch is left as is; without a clock offset the epoch is
        returned unchanged.
        """
        if not self.has_clock_offset:
            return self.epoch
        return add_seconds(self.epoch, self.clock_offset)


@dataclass
class ObservationValue:
    """One observation field with its two (m1, m2) flags."""

    value: float
    flag1: str = " "
    flag2: str = " "

    @property
    def is_missing(self) -> bool:
        return self.value == OBSERVATION_VALUE_MISSING


@dataclass
class BeaconObservations:
    """Observations of one beacon at one epoch.

    ``values[i]`` corresponds to the i-th observation code declared in the
    header, with any scale factor already applied.
    """

    beacon_id: str
    values: list[ObservationValue] = field(default_factory=list)

    def __len__(self) -> int:
        return len(self.values)

    def by_code(
        self, obs_codes: list[DorisObservationCode]
    ) -> dict[DorisObservationCode, ObservationValue]:
        """Map observation codes to values (codes as declared in the header)."""
        return dict(zip(obs_codes, self.values))

    def value_of(
        self, code: DorisObservationCode, obs_codes: list[DorisObservationCode]
    ) -> ObservationValue | None:
        """Get the value of one observation code, if the code is declared."""
        try:
            return self.values[list(obs_codes).index(code)]
        except ValueError:
            return None


@dataclass
class DataBlock:
    """One observation epoch: record header plus per-beacon observations."""

    header: DataRecordHeader
    beacon_obs: list[BeaconObservations] = field(default_factory=list)

    @property
    def epoch(self) -> np.datetime64:
        return self.header.epoch

    @property
    def beacon_ids(self) -> list[str]:
        return [b.beacon_id for b in self.beacon_obs]

    def beacon(self, beacon_id: str) -> BeaconObservations | None:
        """Get the observations of a beacon by internal code, if observed."""
        for obs in self.beacon_obs:
            if obs.beacon_id == beacon_id:
                return obs
        return None
