"""DORIS observation RINEX 3.0 reading."""

from pydoris.rinex.obstypes import (
    DorisObservationType,
    DorisObservationCode,
    type_to_char,
    char_to_type,
    type_has_frequency,
)
from pydoris.rinex.records import (
    RECEIVER_CLOCK_OFFSET_MISSING,
    OBSERVATION_VALUE_MISSING,
    Beacon,
    TimeReferenceStation,
    DataRecordHeader,
    ObservationValue,
    BeaconObservations,
    DataBlock,
)
from pydoris.rinex.header import RinexHeader, read_header
from pydoris.rinex.reader import DorisObsRinex, DataBlockStream, StreamState
from pydoris.rinex.summary import RinexSummary, summarize

__all__ = [
    # Observation codes
    "DorisObservationType",
    "DorisObservationCode",
    "type_to_char",
    "char_to_type",
    "type_has_frequency",
    # Records
    "RECEIVER_CLOCK_OFFSET_MISSING",
    "OBSERVATION_VALUE_MISSING",
    "Beacon",
    "TimeReferenceStation",
    "DataRecordHeader",
    "ObservationValue",
    "BeaconObservations",
    "DataBlock",
    # Reading
    "RinexHeader",
    "read_header",
    "DorisObsRinex",
    "DataBlockStream",
    "StreamState",
    "RinexSummary",
    "summarize",
]
