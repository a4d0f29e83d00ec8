"""
Display Domain Resolution for Telemetry Charts

This module decides which time span a chart's x-axis shows and where its
ticks fall. Ticks are aligned to absolute multiples of the step so that
every panel sharing a requested range draws them at the same instants.
"""

import math
from typing import List, Optional, Tuple, Union

from . import constants
from .time_series import TimeSeries, coerce_range

Domain = Union[Tuple[float, float], Tuple[str, str]]


def effective_domain(series: TimeSeries, requested_range=None) -> Domain:
    """
    Resolve the x-axis domain for a requested visible range.

    Args:
        series: Channel series being drawn.
        requested_range: (start, end) instants, or None for full extent.

    Returns:
        The requested range when at least one sample falls inside it; the
        series' first and last sample times when none does; the symbolic
        FULL_EXTENT marker when no range is requested or the series is
        empty.
    """
    bounds = coerce_range(requested_range)
    if bounds is None or not series:
        return constants.FULL_EXTENT
    if series.samples_within(bounds):
        return bounds
    # Window panned off the data: show the data instead of an empty axis
    return (series.first.time, series.last.time)


def ticks(requested_range=None, step_ms: int = constants.DEFAULT_TICK_STEP_MS) -> Optional[List[int]]:
    """
    Compute uniformly spaced tick instants for a requested range.

    Args:
        requested_range: (start, end) instants, or None.
        step_ms: Tick spacing. Default 10 minutes.

    Returns:
        Every multiple of step_ms from floor(start / step) * step up to end
        inclusive, or None when no range is requested, the step is not
        positive, or more than MAX_TICKS ticks would be needed (renderer
        default in every case).
    """
    bounds = coerce_range(requested_range)
    if bounds is None or step_ms <= 0:
        return None
    start, end = bounds
    step = int(step_ms)
    if step <= 0:
        return None
    aligned_start = math.floor(start / step) * step
    last = math.floor(end)
    if (last - aligned_start) // step + 1 > constants.MAX_TICKS:
        return None
    return list(range(aligned_start, last + 1, step))
