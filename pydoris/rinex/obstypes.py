"""
DORIS observation types and codes.

Observation types and codes as defined in RINEX DORIS 3.0 (Issue 1.7).
A code pairs a type with a frequency number, where the frequency is only
meaningful for phase, pseudorange and power level:

* 1 denotes the S1 DORIS frequency (on 2 GHz)
* 2 denotes the U2 DORIS frequency (on 400 MHz)
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum

from pydoris.core.exceptions import InvalidFrequency, InvalidObservationType


class DorisObservationType(str, Enum):
    """DORIS observation types."""

    PHASE = "L"
    PSEUDORANGE = "C"
    POWER_LEVEL = "W"          # power level received at each frequency, dBm
    FREQUENCY_OFFSET = "F"     # receiver oscillator (f-f0)/f0, unit 1e-11
    GROUND_PRESSURE = "P"      # ground pressure at the station, 100 Pa (mBar)
    GROUND_TEMPERATURE = "T"   # ground temperature at the station, Celsius
    GROUND_HUMIDITY = "H"      # ground humidity at the station, percent

    @property
    def has_frequency(self) -> bool:
        """Check if observations of this type are tied to a frequency."""
        return type_has_frequency(self)


_FREQUENCY_TYPES = frozenset({
    DorisObservationType.PHASE,
    DorisObservationType.PSEUDORANGE,
    DorisObservationType.POWER_LEVEL,
})

VALID_FREQUENCIES = (1, 2)


def type_to_char(obs_type: DorisObservationType) -> str:
    """Translate an observation type to its RINEX character."""
    if not isinstance(obs_type, DorisObservationType):
        raise InvalidObservationType(str(obs_type))
    return obs_type.value


def char_to_type(char: str) -> DorisObservationType:
    """Translate a RINEX character to an observation type.

    Raises:
        InvalidObservationType: If the character names no DORIS type
    """
    try:
        return DorisObservationType(char)
    except ValueError:
        raise InvalidObservationType(char) from None


def type_has_frequency(obs_type: DorisObservationType) -> bool:
    """Check if an observation type carries a frequency (L, C or W)."""
    return obs_type in _FREQUENCY_TYPES


@dataclass(frozen=True)
class DorisObservationCode:
    """An observation type plus (where relevant) a frequency number.

    For types without frequency the given frequency is ignored and
    stored as 0.
    """

    obs_type: DorisObservationType
    freq: int = 0

    def __post_init__(self) -> None:
        obs_type = self.obs_type
        if not isinstance(obs_type, DorisObservationType):
            obs_type = char_to_type(obs_type)
            object.__setattr__(self, "obs_type", obs_type)

        if type_has_frequency(obs_type):
            if self.freq not in VALID_FREQUENCIES:
                raise InvalidFrequency(obs_type.value, self.freq)
        else:
            object.__setattr__(self, "freq", 0)

    @classmethod
    def from_str(cls, token: str) -> "DorisObservationCode":
        """Parse a RINEX observation token such as ``'L1'``, ``'C2'`` or ``'F'``.

        Raises:
            InvalidObservationType: Unknown type character
            InvalidFrequency: Missing or invalid frequency for L/C/W
        """
        token = token.strip()
        if not token or len(token) > 2:
            raise InvalidObservationType(token)

        obs_type = char_to_type(token[0])
        freq = 0
        if len(token) == 2:
            if not token[1].isdigit():
                raise InvalidFrequency(obs_type.value, token[1])
            freq = int(token[1])
        return cls(obs_type, freq)

    @property
    def has_frequency(self) -> bool:
        """Check if the code has a corresponding frequency."""
        return type_has_frequency(self.obs_type)

    def to_str(self) -> str:
        """Format as two characters: type followed by frequency digit."""
        return f"{self.obs_type.value}{self.freq}"

    def rinex_token(self) -> str:
        """Format as written in RINEX headers (``'L1'``, ``'F'``)."""
        if self.has_frequency:
            return self.to_str()
        return self.obs_type.value

    def __str__(self) -> str:
        return self.to_str()
