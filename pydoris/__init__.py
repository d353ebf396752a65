"""
PyDORIS: DORIS observation RINEX reader

Reads DORIS RINEX 3.0 observation files: header metadata (satellite,
receiver, beacons, observation types, scale factors) and a forward stream
of per-epoch data blocks with nanosecond epochs.
"""

__version__ = "1.0.0"
__author__ = "PyDORIS Team"

from pydoris.core.config import Settings
from pydoris.rinex.reader import DorisObsRinex

__all__ = ["DorisObsRinex", "Settings", "__version__"]
