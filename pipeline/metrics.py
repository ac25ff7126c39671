"""
Remote-write data model and the assembler that fills it.

Pure dataclasses and one pure function -- no I/O, no validation.  Whatever
the measurement source reports (zero, negative) is published as-is.
"""
from __future__ import annotations

from dataclasses import dataclass
from typing import Optional, Tuple

from .constants import (
    BANDWIDTH_METRIC,
    HOSTNAME_LABEL,
    LATENCY_METRIC,
    METRIC_NAME_LABEL,
)


# ---------------------------------------------------------------------------
# Data model
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class Label:
    name: str
    value: str


@dataclass(frozen=True)
class Sample:
    """One point; *timestamp* is Unix epoch time in milliseconds."""

    value: float
    timestamp: int


@dataclass(frozen=True)
class TimeSeries:
    labels: Tuple[Label, ...]
    samples: Tuple[Sample, ...]

    def label(self, name: str) -> Optional[str]:
        """Value of label *name*, or ``None`` if absent."""
        for label in self.labels:
            if label.name == name:
                return label.value
        return None

    @property
    def name(self) -> Optional[str]:
        return self.label(METRIC_NAME_LABEL)


@dataclass(frozen=True)
class WriteRequest:
    timeseries: Tuple[TimeSeries, ...]


# ---------------------------------------------------------------------------
# Assembler
# ---------------------------------------------------------------------------

def _series(metric: str, hostname: str, value: float, now_millis: int) -> TimeSeries:
    # __name__ sorts before hostname, so labels are already in wire order.
    return TimeSeries(
        labels=(
            Label(METRIC_NAME_LABEL, metric),
            Label(HOSTNAME_LABEL, hostname),
        ),
        samples=(Sample(value=value, timestamp=now_millis),),
    )


def assemble(
    hostname: str,
    download_mbit: float,
    avg_latency_ms: float,
    now_millis: int,
) -> WriteRequest:
    """Build the bandwidth and latency series for one cycle."""
    return WriteRequest(
        timeseries=(
            _series(BANDWIDTH_METRIC, hostname, download_mbit, now_millis),
            _series(LATENCY_METRIC, hostname, avg_latency_ms, now_millis),
        )
    )
