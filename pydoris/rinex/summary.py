"""
DORIS RINEX file summary.

Streams the data blocks of an observation file once and collects an
inventory: epoch span, special events, clock offsets, observed beacons
and missing values per observation code.

Usage:
    from pydoris.rinex.summary import summarize

    result = summarize("cs2rx20001.001")
    print(result.summary())
"""

from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

import numpy as np

from pydoris.core.config import ReaderConfig
from pydoris.rinex.reader import DorisObsRinex
from pydoris.utils.dates import format_epoch
from pydoris.utils.logging import get_logger


logger = get_logger(__name__)


@dataclass
class RinexSummary:
    """Inventory of one DORIS RINEX observation file."""

    # File information
    filename: str
    version: float = 3.0
    satellite_name: str = ""
    cospar_number: str = ""
    receiver: str = ""
    obs_codes: list[str] = field(default_factory=list)
    declared_beacons: int = 0

    # Time span
    first_epoch: np.datetime64 | None = None
    last_epoch: np.datetime64 | None = None
    total_epochs: int = 0
    special_events: int = 0
    epochs_with_clock_offset: int = 0

    # Observations
    beacon_epochs: dict[str, int] = field(default_factory=dict)
    total_observations: int = 0
    missing_values: dict[str, int] = field(default_factory=dict)
    undeclared_beacons: list[str] = field(default_factory=list)  # seen in data only

    @property
    def beacons_observed(self) -> int:
        return len(self.beacon_epochs)

    @property
    def time_span_seconds(self) -> float:
        if self.first_epoch is None or self.last_epoch is None:
            return 0.0
        return float((self.last_epoch - self.first_epoch) / np.timedelta64(1, "s"))

    def summary(self) -> str:
        """Generate human-readable summary."""
        lines = [
            "=" * 70,
            f"DORIS RINEX Summary: {self.filename}",
            "=" * 70,
            "",
            "FILE INFORMATION:",
            f"  RINEX Version:     {self.version}",
            f"  Satellite:         {self.satellite_name}",
            f"  COSPAR:            {self.cospar_number}",
            f"  Receiver:          {self.receiver}",
            f"  Obs Types:         {' '.join(self.obs_codes)}",
            f"  Beacons Declared:  {self.declared_beacons}",
            "",
            "TIME SPAN:",
            f"  First Epoch:       {format_epoch(self.first_epoch)}",
            f"  Last Epoch:        {format_epoch(self.last_epoch)}",
            f"  Duration:          {self.time_span_seconds:.0f} s",
            f"  Total Epochs:      {self.total_epochs}",
            f"  Special Events:    {self.special_events}",
            f"  With Clock Offset: {self.epochs_with_clock_offset}",
            "",
            "OBSERVATIONS:",
            f"  Beacons Observed:  {self.beacons_observed}",
            f"  Total Obs:         {self.total_observations}",
        ]

        if self.missing_values:
            lines.extend(["", "MISSING VALUES:"])
            for code, count in self.missing_values.items():
                lines.append(f"  {code:4s}: {count:8d}")

        if self.beacon_epochs:
            lines.extend(["", "BEACONS:"])
            for beacon_id, count in sorted(self.beacon_epochs.items()):
                marker = " (not in header)" if beacon_id in self.undeclared_beacons else ""
                lines.append(f"  {beacon_id}: {count:6d} epochs{marker}")

        lines.append("=" * 70)
        return "\n".join(lines)

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary for JSON serialization."""
        return {
            "filename": self.filename,
            "version": self.version,
            "satellite_name": self.satellite_name,
            "cospar_number": self.cospar_number,
            "receiver": self.receiver,
            "obs_codes": self.obs_codes,
            "declared_beacons": self.declared_beacons,
            "first_epoch": format_epoch(self.first_epoch),
            "last_epoch": format_epoch(self.last_epoch),
            "total_epochs": self.total_epochs,
            "special_events": self.special_events,
            "epochs_with_clock_offset": self.epochs_with_clock_offset,
            "beacons_observed": self.beacons_observed,
            "beacon_epochs": dict(sorted(self.beacon_epochs.items())),
            "undeclared_beacons": self.undeclared_beacons,
            "total_observations": self.total_observations,
            "missing_values": self.missing_values,
        }


def summarize(path: Path | str, config: ReaderConfig | None = None) -> RinexSummary:
    """Read a DORIS RINEX file once and summarize its content.

    Args:
        path: Path to the RINEX file
        config: Reader settings

    Returns:
        RinexSummary

    Raises:
        DorisRinexError: If the file cannot be opened or parsed
    """
    with DorisObsRinex(path, config) as rnx:
        codes = [str(c) for c in rnx.obs_codes]
        declared = {b.code for b in rnx.beacons}

        result = RinexSummary(
            filename=Path(rnx.filename).name,
            version=rnx.version,
            satellite_name=rnx.satellite_name,
            cospar_number=rnx.cospar_number,
            receiver=" ".join(
                part for part in (rnx.rec_chain, rnx.rec_type, rnx.rec_version) if part
            ),
            obs_codes=codes,
            declared_beacons=len(declared),
            missing_values={code: 0 for code in codes},
        )

        for block in rnx.blocks():
            if result.first_epoch is None:
                result.first_epoch = block.epoch
            result.last_epoch = block.epoch
            result.total_epochs += 1

            if block.header.is_special_event:
                result.special_events += 1
            if block.header.has_clock_offset:
                result.epochs_with_clock_offset += 1

            for beacon in block.beacon_obs:
                result.beacon_epochs[beacon.beacon_id] = (
                    result.beacon_epochs.get(beacon.beacon_id, 0) + 1
                )
                if (
                    beacon.beacon_id not in declared
                    and beacon.beacon_id not in result.undeclared_beacons
                ):
                    result.undeclared_beacons.append(beacon.beacon_id)
                for code, value in zip(codes, beacon.values):
                    result.total_observations += 1
                    if value.is_missing:
                        result.missing_values[code] += 1

    logger.info(
        "Summarized DORIS RINEX file",
        file=result.filename,
        epochs=result.total_epochs,
        beacons=result.beacons_observed,
    )
    return result
