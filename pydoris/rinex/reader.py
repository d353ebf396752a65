"""
DORIS observation RINEX reader.

Opens a DORIS RINEX 3.0 observation file, parses its header and streams
its data blocks (one per observation epoch) forward-only.

Usage:
    from pydoris import DorisObsRinex

    with DorisObsRinex("cs2rx20001.001") as rnx:
        print(rnx.satellite_name, len(rnx.beacons))
        for block in rnx:
            for beacon in block.beacon_obs:
                print(block.epoch, beacon.beacon_id, beacon.values[0].value)

Data record header line::

    > 2020 01 01 01 41 53.279947800  0  4       -4.432841287 0
    0         1         2         3         4         5
    012345678901234567890123456789012345678901234567890123456789

    record identifier '>'   col  0
    epoch                   cols 2-31   (1X,I4,4(1X,I2.2),F13.9)
    epoch flag              cols 31-34  0 OK, 1 power failure, >1 special event
    number of stations      cols 34-37
    (reserved)              cols 37-43
    receiver clock offset   cols 43-56  seconds, optional
    clock offset flag       cols 56-59  1 if extrapolated, 0 otherwise

Each observed beacon follows on ceil(n_obs / 5) lines; the first starts
with the beacon code (e.g. 'D31'), continuation lines with three blanks.
Every observation takes 16 columns: F14.3 value plus the m1 and m2 flags.
"""

from __future__ import annotations

from enum import Enum
from pathlib import Path

import numpy as np

from pydoris.core.config import ReaderConfig
from pydoris.core.exceptions import (
    BadBlockHeader,
    BadObservationLine,
    RinexIOError,
    RinexRecordError,
    UnexpectedEof,
)
from pydoris.rinex.header import RinexHeader, read_header
from pydoris.rinex.obstypes import DorisObservationCode
from pydoris.rinex.records import (
    MAX_OBS_PER_DATA_LINE,
    OBS_FIELD_START,
    OBS_FIELD_WIDTH,
    OBS_VALUE_WIDTH,
    OBSERVATION_VALUE_MISSING,
    RECEIVER_CLOCK_OFFSET_MISSING,
    Beacon,
    BeaconObservations,
    DataBlock,
    DataRecordHeader,
    ObservationValue,
    TimeReferenceStation,
)
from pydoris.rinex.source import LineSource
from pydoris.utils.dates import format_epoch, parse_epoch
from pydoris.utils.format import (
    column_field,
    is_blank,
    parse_float_field,
    parse_int_field,
)
from pydoris.utils.logging import get_logger


logger = get_logger(__name__)


class StreamState(str, Enum):
    """Lifecycle of a data block stream."""

    FRESH = "fresh"
    STREAMING = "streaming"
    ENDED = "ended"
    ERRORED = "errored"


class DataBlockStream:
    """Forward iterator over the data blocks of a DORIS RINEX file.

    Created by :meth:`DorisObsRinex.blocks`. On creation the file is
    positioned right after 'END OF HEADER'; each ``next()`` reads exactly
    one block. At end of file the stream is ENDED. If a block cannot be
    resolved the error propagates to the caller, the stream becomes
    ERRORED and any further ``next()`` stops the iteration.
    """

    def __init__(self, rinex: "DorisObsRinex"):
        self._rinex = rinex
        self._state = StreamState.FRESH
        self._current: DataBlock | None = None
        self._blocks_read = 0
        rinex._rewind_to_data()

    @property
    def state(self) -> StreamState:
        return self._state

    @property
    def current(self) -> DataBlock | None:
        """The last block delivered, if the stream is active."""
        return self._current

    @property
    def blocks_read(self) -> int:
        return self._blocks_read

    def __iter__(self) -> "DataBlockStream":
        return self

    def __next__(self) -> DataBlock:
        if self._state in (StreamState.ENDED, StreamState.ERRORED):
            raise StopIteration

        self._state = StreamState.STREAMING
        try:
            block = self._rinex.get_next_data_block()
        except (RinexRecordError, RinexIOError):
            self._state = StreamState.ERRORED
            self._current = None
            raise

        if block is None:
            self._state = StreamState.ENDED
            self._current = None
            logger.debug(
                "Reached end of DORIS RINEX data",
                file=self._rinex.filename,
                blocks=self._blocks_read,
            )
            raise StopIteration

        self._current = block
        self._blocks_read += 1
        return block

    def _retire(self) -> None:
        if self._state not in (StreamState.ENDED, StreamState.ERRORED):
            self._state = StreamState.ENDED
            self._current = None


class DorisObsRinex:
    """A DORIS observation RINEX 3.0 file opened for reading.

    The constructor opens the file and parses the header; any failure is
    raised right away (OpenError, HeaderError). The instance exclusively
    owns the file: it cannot be copied, and only one data block stream is
    active at a time (asking for a new one retires the previous).

    See RINEX DORIS 3.0 (Issue 1.7),
    ftp://ftp.ids-doris.org/pub/ids/data/RINEX_DORIS.pdf
    """

    def __init__(self, path: Path | str, config: ReaderConfig | None = None):
        self._config = config or ReaderConfig()
        self._source = LineSource.open(path, encoding=self._config.encoding)
        try:
            self._header: RinexHeader = read_header(self._source)
        except Exception:
            self._source.close()
            raise

        self._scale_factors = tuple(self._header.obs_scale_factors)
        self._known_beacons = frozenset(b.code for b in self._header.beacons)
        self._reported_unknown: set[str] = set()
        self._active_stream: DataBlockStream | None = None

        logger.info(
            "Parsed DORIS RINEX header",
            file=self.filename,
            version=self._header.version,
            satellite=self._header.satellite_name,
            obs_codes=[str(c) for c in self._header.obs_codes],
            beacons=len(self._header.beacons),
        )

    @classmethod
    def open(cls, path: Path | str, config: ReaderConfig | None = None) -> "DorisObsRinex":
        """Open a DORIS RINEX file and parse its header."""
        return cls(path, config)

    # ------------------------------------------------------------------
    # Resource handling
    # ------------------------------------------------------------------

    def close(self) -> None:
        """Close the underlying file; active streams stop."""
        if self._active_stream is not None:
            self._active_stream._retire()
            self._active_stream = None
        self._source.close()

    @property
    def closed(self) -> bool:
        return self._source.closed

    def __enter__(self) -> "DorisObsRinex":
        return self

    def __exit__(self, exc_type, exc_val, exc_tb) -> None:
        self.close()

    def __copy__(self):
        raise TypeError(f"{type(self).__name__} owns its file and cannot be copied")

    def __deepcopy__(self, memo):
        raise TypeError(f"{type(self).__name__} owns its file and cannot be copied")

    def __repr__(self) -> str:
        return (
            f"{type(self).__name__}(filename={self.filename!r}, "
            f"version={self.version}, beacons={len(self._header.beacons)})"
        )

    # ------------------------------------------------------------------
    # Header accessors
    # ------------------------------------------------------------------

    @property
    def filename(self) -> str:
        return self._source.filename

    @property
    def header(self) -> RinexHeader:
        return self._header

    @property
    def version(self) -> float:
        return self._header.version

    @property
    def satellite_name(self) -> str:
        return self._header.satellite_name

    @property
    def cospar_number(self) -> str:
        return self._header.cospar_number

    @property
    def rec_chain(self) -> str:
        return self._header.rec_chain

    @property
    def rec_type(self) -> str:
        return self._header.rec_type

    @property
    def rec_version(self) -> str:
        return self._header.rec_version

    @property
    def antenna_number(self) -> str:
        return self._header.antenna_number

    @property
    def antenna_type(self) -> str:
        return self._header.antenna_type

    @property
    def approx_position(self) -> tuple[float, float, float]:
        return self._header.approx_position

    @property
    def center_of_mass(self) -> tuple[float, float, float]:
        return self._header.center_of_mass

    @property
    def obs_codes(self) -> tuple[DorisObservationCode, ...]:
        return tuple(self._header.obs_codes)

    @property
    def obs_scale_factors(self) -> tuple[int, ...]:
        return self._scale_factors

    @property
    def time_of_first_obs(self) -> np.datetime64 | None:
        return self._header.time_of_first_obs

    @property
    def time_of_last_obs(self) -> np.datetime64 | None:
        return self._header.time_of_last_obs

    @property
    def time_system(self) -> str:
        return self._header.time_system

    @property
    def program(self) -> str:
        return self._header.program

    @property
    def comments(self) -> tuple[str, ...]:
        return tuple(self._header.comments)

    @property
    def time_ref_stat(self) -> np.datetime64 | None:
        return self._header.time_ref_stat

    @property
    def l2_l1_date_offset(self) -> float:
        """L2/L1 date offset in microseconds."""
        return self._header.l2_l1_date_offset

    @property
    def rcv_clock_offs_applied(self) -> bool:
        return self._header.rcv_clock_offs_applied

    @property
    def beacons(self) -> tuple[Beacon, ...]:
        return tuple(self._header.beacons)

    @property
    def time_ref_stations(self) -> tuple[TimeReferenceStation, ...]:
        return tuple(self._header.time_ref_stations)

    @property
    def end_of_header(self) -> int:
        """Byte offset of the first data record."""
        return self._header.end_of_header

    @property
    def lines_per_beacon(self) -> int:
        return self._header.lines_per_beacon

    # ------------------------------------------------------------------
    # Data blocks
    # ------------------------------------------------------------------

    def blocks(self) -> DataBlockStream:
        """Start a new data block stream from the first data record.

        A previously created stream of this instance is retired.
        """
        if self._active_stream is not None:
            self._active_stream._retire()
        self._active_stream = DataBlockStream(self)
        return self._active_stream

    def __iter__(self) -> DataBlockStream:
        return self.blocks()

    def _rewind_to_data(self) -> None:
        self._source.seek(self._header.end_of_header, self._header.header_lines)

    def get_next_data_block(self) -> DataBlock | None:
        """Read the data block starting at the current file position.

        Returns:
            The next DataBlock, or None at end of file

        Raises:
            BadBlockHeader: Malformed '>' record
            BadObservationLine: Malformed beacon observation line
            UnexpectedEof: File ends in the middle of the block
            RinexIOError: Read failure (or the file was closed)
        """
        line = self._source.readline()
        if self._config.skip_blank_lines:
            while line is not None and is_blank(line):
                line = self._source.readline()
        if line is None:
            return None

        header = self._resolve_block_header(line)
        block = DataBlock(header=header)
        for _ in range(header.num_stations):
            block.beacon_obs.append(self._read_beacon_observations(header))
        return block

    def _record_error(self, cls: type[RinexRecordError], message: str,
                      line: str | None) -> RinexRecordError:
        return cls(
            message,
            filename=self.filename,
            line_number=self._source.line_number,
            line=line,
            operation="get_next_data_block",
        )

    def _resolve_block_header(self, line: str) -> DataRecordHeader:
        if not line.startswith(">"):
            raise self._record_error(
                BadBlockHeader, "Data record header should start with '>'", line
            )

        try:
            epoch = parse_epoch(column_field(line, 2, 31))
        except ValueError as e:
            raise self._record_error(
                BadBlockHeader, f"Failed resolving epoch: {e}", line
            ) from e

        # flag and station count are cut from their own 3-column slices, so a
        # 3-digit count packed against the flag ('  0128') still resolves
        try:
            flag = parse_int_field(column_field(line, 31, 34))
            num_stations = parse_int_field(column_field(line, 34, 37))
        except ValueError as e:
            raise self._record_error(
                BadBlockHeader, f"Failed resolving epoch flag/#stations: {e}", line
            ) from e
        if flag < 0 or num_stations < 0:
            raise self._record_error(
                BadBlockHeader, "Negative epoch flag or number of stations", line
            )

        clock_field = column_field(line, 43, 56)
        clock_offset = RECEIVER_CLOCK_OFFSET_MISSING
        if not is_blank(clock_field):
            try:
                clock_offset = parse_float_field(clock_field)
            except ValueError as e:
                raise self._record_error(
                    BadBlockHeader, f"Failed resolving clock offset: {e}", line
                ) from e

        try:
            clock_flag = parse_int_field(column_field(line, 56, 59), default=0)
        except ValueError as e:
            raise self._record_error(
                BadBlockHeader, f"Failed resolving clock flag: {e}", line
            ) from e
        if clock_flag not in (0, 1):
            raise self._record_error(
                BadBlockHeader, f"Clock flag must be 0 or 1, got {clock_flag}", line
            )

        return DataRecordHeader(
            epoch=epoch,
            num_stations=num_stations,
            flag=flag,
            clock_offset=clock_offset,
            clock_flag=clock_flag,
        )

    def _read_beacon_observations(self, header: DataRecordHeader) -> BeaconObservations:
        obs_codes = self._header.obs_codes
        observations = BeaconObservations(beacon_id="")
        line = ""

        for index, code in enumerate(obs_codes):
            slot = index % MAX_OBS_PER_DATA_LINE

            if slot == 0:
                line = self._source.readline()
                if line is None:
                    raise self._record_error(
                        UnexpectedEof,
                        f"End of file inside data block of "
                        f"{format_epoch(header.epoch)}",
                        None,
                    )
                if index == 0:
                    if not line.startswith("D"):
                        raise self._record_error(
                            BadObservationLine,
                            "Expected line to start with a new beacon ('D')",
                            line,
                        )
                    observations.beacon_id = line[0:3]
                    self._check_beacon(observations.beacon_id)
                elif not is_blank(column_field(line, 0, OBS_FIELD_START)):
                    raise self._record_error(
                        BadObservationLine,
                        "Expected continuation line (blank columns 0-3)",
                        line,
                    )

            start = OBS_FIELD_START + slot * OBS_FIELD_WIDTH
            field = column_field(line, start, start + OBS_VALUE_WIDTH)
            flag1 = column_field(line, start + OBS_VALUE_WIDTH, start + OBS_VALUE_WIDTH + 1)
            flag2 = column_field(line, start + OBS_VALUE_WIDTH + 1, start + OBS_FIELD_WIDTH)

            if is_blank(field):
                value = OBSERVATION_VALUE_MISSING
            else:
                try:
                    value = parse_float_field(field) / self._scale_factors[index]
                except ValueError as e:
                    raise self._record_error(
                        BadObservationLine,
                        f"Failed resolving {code} value '{field.strip()}'",
                        line,
                    ) from e

            observations.values.append(ObservationValue(value, flag1, flag2))

        return observations

    def _check_beacon(self, beacon_id: str) -> None:
        if not self._config.warn_unknown_beacons:
            return
        if beacon_id in self._known_beacons or beacon_id in self._reported_unknown:
            return
        self._reported_unknown.add(beacon_id)
        logger.warning(
            "Data record for beacon not declared in header",
            file=self.filename,
            beacon=beacon_id,
            line_number=self._source.line_number,
        )
