"""
Cursor Resolution for Telemetry Channels

This module resolves the value a channel shows at the shared time cursor.
Two lookup strategies are tried in order: the exact per-second reading
first, then the nearest plotted sample within a tolerance. The first
strategy that answers wins.
"""

from dataclasses import asdict, dataclass
from typing import Dict, Optional, Sequence

from . import utils
from .time_series import Sample, TimeSeries


@dataclass(frozen=True)
class DisplaySample:
    """A NaN-free reading ready for display."""
    time: float
    avg: float
    min: float
    max: float

    def as_dict(self) -> Dict:
        return asdict(self)


def sanitize(time: float, sample: Sample) -> DisplaySample:
    """
    Coerce a sample into finite display values.

    A non-finite average becomes 0; non-finite min/max fall back to the
    sanitized average.
    """
    avg = utils.finite_or(sample.avg, 0.0)
    return DisplaySample(
        time=time,
        avg=avg,
        min=utils.finite_or(sample.min, avg),
        max=utils.finite_or(sample.max, avg),
    )


class ExactSecondLookup:
    """Look the cursor's second up in the series' exact per-second index."""

    name = "exact"

    def lookup(self, series: TimeSeries, cursor: float) -> Optional[DisplaySample]:
        hit = series.exact_at(cursor)
        if hit is None:
            return None
        return sanitize(cursor, hit)


class NearestLookup:
    """Fall back to the closest plotted sample, bounded by the series tolerance."""

    name = "nearest"

    def lookup(self, series: TimeSeries, cursor: float) -> Optional[DisplaySample]:
        hit = series.nearest_at(cursor, series.tolerance_ms)
        if hit is None:
            return None
        return sanitize(hit.time, hit)


DEFAULT_STRATEGIES = (ExactSecondLookup(), NearestLookup())


def resolve(series: TimeSeries, cursor: Optional[float],
            strategies: Sequence = DEFAULT_STRATEGIES) -> Optional[DisplaySample]:
    """
    Resolve the representative reading of a series at the cursor.

    Args:
        series: Channel series to query.
        cursor: Selected instant in milliseconds, or None when no cursor is set.
        strategies: Lookups tried in order. Defaults to exact-second then
            nearest-within-tolerance.

    Returns:
        The first strategy's DisplaySample, or None when there is no cursor,
        the series is empty, or no reading exists near the cursor.
    """
    if cursor is None or not series or not utils.is_finite(cursor):
        return None
    for strategy in strategies:
        point = strategy.lookup(series, cursor)
        if point is not None:
            return point
    return None
