"""
Window Statistics for Telemetry Channels

This module computes the avg/min/max summary a chart shows for its visible
window when no cursor is active.
"""

from dataclasses import asdict, dataclass
from typing import Dict, Iterable

import numpy as np

from .time_series import Sample, TimeSeries


@dataclass(frozen=True)
class Stats:
    avg: float = 0.0
    min: float = 0.0
    max: float = 0.0

    def as_dict(self) -> Dict:
        return asdict(self)


EMPTY_STATS = Stats()


def _finite(values: Iterable[float]) -> np.ndarray:
    array = np.asarray(list(values), dtype=float)
    return array[np.isfinite(array)]


def aggregate(samples: Iterable[Sample]) -> Stats:
    """
    Reduce samples to finite avg/min/max.

    Samples without a finite average are invalid and skipped entirely;
    remaining non-finite min/max values are removed before reduction.
    Minimum and maximum fall back to the extremes of the averages when no
    valid min/max values exist.

    Args:
        samples: Samples to summarize.

    Returns:
        Stats; {0, 0, 0} when no sample has a finite average.
    """
    samples = [sample for sample in samples if np.isfinite(sample.avg)]
    avgs = _finite(sample.avg for sample in samples)
    if avgs.size == 0:
        return EMPTY_STATS

    mins = _finite(sample.min for sample in samples)
    maxs = _finite(sample.max for sample in samples)

    avg = float(np.mean(avgs))
    low = float(np.min(mins)) if mins.size else float(np.min(avgs))
    high = float(np.max(maxs)) if maxs.size else float(np.max(avgs))

    return Stats(
        avg=avg if np.isfinite(avg) else 0.0,
        min=low if np.isfinite(low) else 0.0,
        max=high if np.isfinite(high) else 0.0,
    )


def compute(series: TimeSeries, time_range=None) -> Stats:
    """
    Compute avg/min/max over the visible window of a series.

    Only samples inside the unpadded range count. If the window holds no
    samples (e.g. it was panned off the data) the whole series is used
    instead, so a non-empty series never reports {0, 0, 0} just because
    of the window.

    Args:
        series: Channel series.
        time_range: (start, end) instants, or None for the full extent.

    Returns:
        Stats with all fields finite.
    """
    window = series.samples_within(time_range)
    if not window:
        window = list(series.samples)
    if not window:
        return EMPTY_STATS
    return aggregate(window)
