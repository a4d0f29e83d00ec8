"""
GPS Track Construction and Lookup

This module normalizes raw GPS rows into a time-sorted track of position
fixes and finds the fix nearest a cursor instant with a binary search.
Positions persist between fixes, so the nearest fix is always returned
however far away in time it is.
"""

import logging
from datetime import datetime
from dataclasses import asdict, dataclass
from typing import Dict, Iterable, List, Optional, Sequence, Tuple

import numpy as np

from . import constants
from . import timestamps
from . import utils
from .time_series import iter_rows

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class GpsPoint:
    time: float
    lat: float
    lng: float

    def as_dict(self) -> Dict:
        return asdict(self)


def normalize_reference_times(times: Optional[Iterable], tz: timestamps.TzLike = None) -> List[float]:
    """
    Normalize a reference array of absolute timestamps to milliseconds.

    The seconds/milliseconds decision is made once for the whole array,
    from its largest value.

    Args:
        times: Epoch numbers or ISO strings, or None.
        tz: Zone for ISO strings without an offset.

    Returns:
        Finite millisecond instants in input order.
    """
    if times is None:
        return []
    values = [timestamps.to_epoch_ms(value, tz) for value in times]
    values = [value for value in values if utils.is_finite(value)]
    if not values:
        return []
    if max(values) < constants.SECONDS_SCALE_THRESHOLD:
        return [value * 1000 for value in values]
    return values


def extract_absolute_time(row, tz: timestamps.TzLike = None) -> float:
    """
    Extract a row's absolute instant, if it has one.

    The timestamp field (timestamp/timeStamp/ts) is tried first with
    seconds/milliseconds detection; a time field holding an epoch or ISO
    value also counts. HH:mm:ss values are not absolute.

    Returns:
        Millisecond epoch, or NaN.
    """
    stamp = timestamps.to_epoch_ms(utils.first_present(row, constants.GPS_TIMESTAMP_KEYS), tz, detect_scale=True)
    if utils.is_finite(stamp):
        return stamp
    return timestamps.to_epoch_ms(utils.first_present(row, constants.GPS_TIME_KEYS), tz, detect_scale=True)


def derive_day_start(rows: Sequence, reference_times: Sequence[float],
                     tz: timestamps.TzLike = None) -> int:
    """
    Derive the midnight baseline used to resolve HH:mm:ss fix times.

    Taken from the first reference timestamp, else the first row with an
    absolute timestamp, else the current day.
    """
    first = reference_times[0] if reference_times else None
    if first is None:
        first = next(
            (stamp for stamp in (extract_absolute_time(row, tz) for row in rows) if utils.is_finite(stamp)),
            None,
        )
    if first is None:
        first = timestamps.datetime_to_ms(datetime.now(), tz)
    return timestamps.day_start_ms(first, tz)


def extract_point(row, day_start: float, tz: timestamps.TzLike = None) -> Optional[GpsPoint]:
    """
    Build a GPS point from a raw row.

    Returns:
        A GpsPoint, or None if either coordinate is not finite or the time
        cannot be resolved.
    """
    lat = utils.safe_float(utils.first_present(row, constants.LAT_KEYS))
    lng = utils.safe_float(utils.first_present(row, constants.LNG_KEYS))
    if not (utils.is_finite(lat) and utils.is_finite(lng)):
        return None

    time_ms = extract_absolute_time(row, tz)
    if not utils.is_finite(time_ms):
        wall_clock = utils.first_present(row, constants.GPS_TIME_KEYS)
        time_ms = timestamps.hms_to_epoch_ms(wall_clock, day_start)
    if not utils.is_finite(time_ms):
        return None
    return GpsPoint(time=time_ms, lat=lat, lng=lng)


class GpsTrack:
    """
    Position fixes sorted ascending by time.

    The track owns its time array exclusively; nothing else mutates it
    after construction.
    """

    def __init__(self, points: Sequence[GpsPoint] = ()):
        ordered = sorted(points, key=lambda point: point.time)
        self._points = tuple(ordered)
        self._times = np.array([point.time for point in self._points], dtype=float)
        self._times.flags.writeable = False

    @classmethod
    def from_points(cls, points: Iterable) -> "GpsTrack":
        """
        Build a track from already-normalized points.

        Args:
            points: GpsPoint instances or (time_ms, lat, lng) tuples.
                No timestamp scale detection is applied.
        """
        normalized = [
            point if isinstance(point, GpsPoint) else GpsPoint(*(utils.safe_float(v) for v in point))
            for point in points
        ]
        return cls(point for point in normalized
                   if utils.is_finite(point.time) and utils.is_finite(point.lat) and utils.is_finite(point.lng))

    @classmethod
    def build(cls, raw_rows, times: Optional[Iterable] = None,
              tz: timestamps.TzLike = constants.DISPLAY_TZ) -> "GpsTrack":
        """
        Build a track from raw GPS rows.

        Args:
            raw_rows: Rows with a timestamp (epoch seconds or milliseconds,
                ISO string) or an HH:mm:ss time, and latitude/longitude under
                any common spelling.
            times: Optional reference array of absolute timestamps whose
                first entry sets the day for HH:mm:ss times.
            tz: Zone whose midnight is the HH:mm:ss baseline.

        Returns:
            A new GpsTrack. Rows without finite coordinates or a resolvable
            time are dropped.
        """
        rows = list(iter_rows(raw_rows))
        day_start = derive_day_start(rows, normalize_reference_times(times, tz), tz)

        points = []
        for row in rows:
            point = extract_point(row, day_start, tz)
            if point is not None:
                points.append(point)

        track = cls(points)
        logger.debug("Built GPS track: %d rows, %d fixes kept", len(rows), len(track))
        return track

    @property
    def points(self) -> Tuple[GpsPoint, ...]:
        return self._points

    def __len__(self) -> int:
        return len(self._points)

    def __bool__(self) -> bool:
        return bool(self._points)

    def __iter__(self):
        return iter(self._points)

    def nearest_at(self, instant: float) -> Optional[GpsPoint]:
        """
        Find the fix nearest an instant.

        A lower-bound search finds the first fix at or after the instant;
        the fix before it is preferred when it is at least as close.

        Args:
            instant: Millisecond epoch.

        Returns:
            The nearest GpsPoint, or None if the track is empty.
        """
        if not self._points or instant is None or not utils.is_finite(instant):
            return None
        lo = int(np.searchsorted(self._times, instant, side="left"))
        prev = self._points[max(0, lo - 1)]
        nxt = self._points[min(len(self._points) - 1, lo)]
        if abs(prev.time - instant) <= abs(nxt.time - instant):
            return prev
        return nxt

    def position_at(self, instant: Optional[float]) -> Optional[Tuple[float, float]]:
        """Return the (lat, lng) marker position for the cursor, if any."""
        point = self.nearest_at(instant)
        if point is None:
            return None
        return (point.lat, point.lng)

    def __repr__(self) -> str:
        return f"GpsTrack(fixes={len(self)})"
