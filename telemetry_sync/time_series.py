"""
Time Series Construction for Telemetry Channels

This module normalizes raw per-second telemetry rows into an immutable,
time-ordered series of samples for one channel, together with an exact
per-second index that preserves the true reading at every recorded second.
"""

import logging
import math
from dataclasses import asdict, dataclass
from types import MappingProxyType
from typing import Dict, Iterable, List, Mapping, NamedTuple, Optional, Sequence, Tuple

import numpy as np
import pandas as pd

from . import constants
from . import timestamps
from . import utils

logger = logging.getLogger(__name__)

TimeRange = Tuple[float, float]


class AxisRange(NamedTuple):
    min: float = 0.0
    max: float = 100.0


@dataclass(frozen=True)
class Channel:
    """Display metadata for one analog telemetry channel."""
    id: str = ""
    name: str = ""
    unit: str = ""
    color: str = ""
    y_axis_range: AxisRange = AxisRange()

    def as_dict(self) -> Dict:
        return {
            "id": self.id,
            "name": self.name,
            "unit": self.unit,
            "color": self.color,
            "y_axis_range": {"min": self.y_axis_range.min, "max": self.y_axis_range.max},
        }


@dataclass(frozen=True)
class Sample:
    """One telemetry reading at a millisecond epoch instant."""
    time: float
    avg: float
    min: float
    max: float

    def as_dict(self) -> Dict:
        return asdict(self)


def coerce_range(time_range) -> Optional[TimeRange]:
    """
    Normalize a visible time range into a (start, end) float pair.

    Args:
        time_range: None, or any two-item sequence of instants.

    Returns:
        (start, end) with start <= end, or None when the range is absent or
        either bound is not a finite number.
    """
    if time_range is None:
        return None
    try:
        start, end = time_range
    except (TypeError, ValueError):
        return None
    start, end = utils.safe_float(start), utils.safe_float(end)
    if not (utils.is_finite(start) and utils.is_finite(end)):
        return None
    return (start, end) if start <= end else (end, start)


def iter_rows(raw_rows) -> Iterable[Mapping]:
    """
    Iterate over raw rows as mappings.

    Accepts a list of dicts, a pandas DataFrame, or objects exposing their
    fields as attributes. Missing DataFrame cells are dropped so that
    alternative spellings still apply. Anything that is not a collection
    of rows yields nothing.
    """
    if raw_rows is None or isinstance(raw_rows, (str, bytes, Mapping)):
        return
    if not hasattr(raw_rows, "__iter__"):
        return
    if isinstance(raw_rows, pd.DataFrame):
        for record in raw_rows.to_dict("records"):
            yield {
                key: value for key, value in record.items()
                if not (isinstance(value, float) and math.isnan(value))
            }
        return
    for row in raw_rows:
        if isinstance(row, Mapping):
            yield row
        elif hasattr(row, "__dict__"):
            yield vars(row)


def extract_time_ms(row: Mapping, tz: timestamps.TzLike = None) -> float:
    """
    Extract the row's instant in milliseconds.

    Args:
        row: Raw telemetry row.
        tz: Zone for naive datetimes and ISO strings.

    Returns:
        Millisecond epoch, or NaN if the row carries no usable time.
    """
    return timestamps.to_epoch_ms(utils.first_present(row, constants.TIME_KEYS), tz)


def extract_display_sample(row: Mapping, time_ms: float) -> Optional[Sample]:
    """
    Build the plotted sample for a row.

    The average comes from ``avg`` (or ``value``); ``min`` and ``max`` fall
    back to the average when absent or not finite.

    Returns:
        A Sample, or None if the average is not a finite number.
    """
    avg = utils.safe_float(utils.first_present(row, constants.AVG_KEYS))
    if not utils.is_finite(avg):
        return None
    return Sample(
        time=time_ms,
        avg=avg,
        min=utils.finite_or(utils.safe_float(row.get("min")), avg),
        max=utils.finite_or(utils.safe_float(row.get("max")), avg),
    )


def extract_exact_entry(row: Mapping, time_ms: float,
                        tz: timestamps.TzLike = None) -> Optional[Tuple[int, Sample]]:
    """
    Build the exact-second index entry for a row.

    Raw per-second fields (``rawAvg``/``rawMin``/``rawMax``) take priority
    over the display fields. A precomputed ``hms`` key is resolved against
    the local day of the row's own time, so multi-day series key each
    second unambiguously.

    Args:
        row: Raw telemetry row.
        time_ms: The row's resolved instant.
        tz: Zone used to resolve ``hms``.

    Returns:
        (epoch_second, Sample), or None if the raw average is not finite.
    """
    avg = utils.safe_float(utils.first_present(row, constants.RAW_AVG_KEYS))
    if not utils.is_finite(avg):
        return None

    instant = time_ms
    hms = row.get(constants.HMS_KEY)
    if timestamps.is_hms(hms):
        instant = timestamps.hms_to_epoch_ms(hms, timestamps.day_start_ms(time_ms, tz))

    sample = Sample(
        time=instant,
        avg=avg,
        min=utils.finite_or(utils.safe_float(utils.first_present(row, constants.RAW_MIN_KEYS)), avg),
        max=utils.finite_or(utils.safe_float(utils.first_present(row, constants.RAW_MAX_KEYS)), avg),
    )
    return timestamps.epoch_second(instant), sample


class TimeSeries:
    """
    Immutable, time-ordered samples for one telemetry channel.

    The display samples are kept exactly as supplied (no decimation or
    reordering). Alongside them the series keeps an exact index from epoch
    second to the reading recorded at that second, which point queries
    consult before falling back to a nearest-sample search.
    """

    def __init__(self, samples: Sequence[Sample] = (),
                 exact_index: Optional[Mapping[int, Sample]] = None,
                 channel: Optional[Channel] = None):
        self._samples = tuple(samples)
        self._times = np.array([sample.time for sample in self._samples], dtype=float)
        self._exact_index = MappingProxyType(dict(exact_index or {}))
        self.channel = channel or Channel()

    @classmethod
    def build(cls, raw_rows, channel: Optional[Channel] = None,
              tz: timestamps.TzLike = constants.DISPLAY_TZ) -> "TimeSeries":
        """
        Build a series from raw API rows.

        Args:
            raw_rows: Rows with a time plus any of value, avg, min, max,
                rawAvg, rawMin, rawMax and hms.
            channel: Display metadata for the channel.
            tz: Zone used to resolve ``hms`` keys and naive timestamps.

        Returns:
            A new TimeSeries. Malformed rows are dropped, never raised on.
        """
        samples: List[Sample] = []
        exact_index: Dict[int, Sample] = {}
        total = 0

        for row in iter_rows(raw_rows):
            total += 1
            time_ms = extract_time_ms(row, tz)
            if not utils.is_finite(time_ms):
                continue

            sample = extract_display_sample(row, time_ms)
            if sample is not None:
                samples.append(sample)

            entry = extract_exact_entry(row, time_ms, tz)
            if entry is not None:
                key, exact = entry
                exact_index[key] = exact

        series = cls(samples, exact_index, channel)
        logger.debug(
            "Built series %r: %d rows, %d samples kept, %d exact seconds",
            series.channel.id, total, len(samples), len(exact_index),
        )
        return series

    @property
    def samples(self) -> Tuple[Sample, ...]:
        return self._samples

    @property
    def exact_index(self) -> Mapping[int, Sample]:
        return self._exact_index

    def __len__(self) -> int:
        return len(self._samples)

    def __iter__(self):
        return iter(self._samples)

    def __bool__(self) -> bool:
        return bool(self._samples)

    @property
    def first(self) -> Optional[Sample]:
        return self._samples[0] if self._samples else None

    @property
    def last(self) -> Optional[Sample]:
        return self._samples[-1] if self._samples else None

    @property
    def step_ms(self) -> float:
        """Time delta between the first two samples (0 with fewer than two)."""
        if len(self._times) < 2:
            return 0
        return float(abs(self._times[1] - self._times[0]))

    @property
    def tolerance_ms(self) -> int:
        """Maximum distance accepted by a nearest-sample lookup."""
        step = self.step_ms
        half_step = math.floor(step / 2) if step > 0 else 0
        return max(constants.MIN_TOLERANCE_MS, half_step)

    def _select(self, lo: float, hi: float) -> List[Sample]:
        mask = (self._times >= lo) & (self._times <= hi)
        return [self._samples[i] for i in np.flatnonzero(mask)]

    def filter_to_range(self, time_range, pad_ms: float = constants.PAD_MS) -> List[Sample]:
        """
        Return the samples to plot for a visible window.

        A pad is added on both ends so edge points are not clipped by
        rounding. With no range, every sample is returned.

        Args:
            time_range: (start, end) instants, or None for the full extent.
            pad_ms: Padding applied to both ends. Default 5 minutes.

        Returns:
            Samples in their original order.
        """
        bounds = coerce_range(time_range)
        if bounds is None:
            return list(self._samples)
        start, end = bounds
        return self._select(start - pad_ms, end + pad_ms)

    def samples_within(self, time_range) -> List[Sample]:
        """Samples whose time lies inside the unpadded range (bounds included)."""
        bounds = coerce_range(time_range)
        if bounds is None:
            return list(self._samples)
        return self._select(*bounds)

    def exact_at(self, instant: float) -> Optional[Sample]:
        """Return the reading recorded at the instant's second, if any."""
        if not utils.is_finite(instant):
            return None
        return self._exact_index.get(timestamps.epoch_second(instant))

    def nearest_at(self, instant: float, tolerance_ms: Optional[float] = None) -> Optional[Sample]:
        """
        Return the sample closest in time to an instant.

        The first sample at the minimal distance wins.

        Args:
            instant: Millisecond epoch to look up.
            tolerance_ms: Maximum accepted distance. Defaults to the
                series' own tolerance.

        Returns:
            The nearest Sample, or None if the series is empty or the
            nearest sample is further away than the tolerance.
        """
        if not self._samples or not utils.is_finite(instant):
            return None
        if tolerance_ms is None:
            tolerance_ms = self.tolerance_ms

        distances = np.abs(self._times - instant)
        idx = int(np.argmin(distances))
        if distances[idx] > tolerance_ms:
            return None
        return self._samples[idx]

    def __repr__(self) -> str:
        return f"TimeSeries(channel={self.channel.id!r}, samples={len(self)}, exact={len(self._exact_index)})"
