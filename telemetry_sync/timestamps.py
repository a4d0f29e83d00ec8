"""
Instant Normalization for Telemetry Time Synchronization

This module converts the many timestamp shapes found in telemetry and GPS
payloads (epoch seconds or milliseconds, ISO strings, datetimes and bare
HH:mm:ss wall-clock strings) into millisecond epoch instants.
"""

import math
import re
from datetime import datetime, timezone, tzinfo
from typing import Optional, Union
from zoneinfo import ZoneInfo

import numpy as np
import pandas as pd

from . import constants
from . import utils

TzLike = Union[str, tzinfo, None]

_HMS_PATTERN = re.compile(r"^\s*(\d{1,2}):(\d{1,2}):(\d{1,2})\s*$")


def resolve_zone(tz: TzLike) -> Optional[tzinfo]:
    """
    Resolve a timezone name or tzinfo into a tzinfo.

    Args:
        tz: IANA name (e.g. "Australia/Brisbane"), a tzinfo, or None for
            the machine's local time.

    Returns:
        A tzinfo, or None meaning local time.
    """
    if tz is None or isinstance(tz, tzinfo):
        return tz
    if str(tz).upper() in ("UTC", "Z"):
        return timezone.utc
    return ZoneInfo(str(tz))


def normalize_epoch(value: float, threshold: float = constants.SECONDS_SCALE_THRESHOLD) -> float:
    """
    Scale an epoch number to milliseconds.

    Values below the threshold (1e12, i.e. before 2001 if read as
    milliseconds) are taken to be seconds and multiplied by 1000.

    Args:
        value: Epoch number in seconds or milliseconds.
        threshold: Scale detection boundary.

    Returns:
        Millisecond epoch, or NaN if value is not finite.
    """
    if not utils.is_finite(value):
        return np.nan
    return value * 1000 if value < threshold else float(value)


def parse_hms(text) -> Optional[int]:
    """
    Parse an HH:mm:ss string into milliseconds since midnight.

    Args:
        text: Candidate wall-clock string.

    Returns:
        Milliseconds since midnight, or None if text is not HH:mm:ss.
    """
    if not isinstance(text, str):
        return None
    match = _HMS_PATTERN.match(text)
    if not match:
        return None
    hh, mm, ss = (int(part) for part in match.groups())
    return hh * 3_600_000 + mm * 60_000 + ss * 1000


def is_hms(text) -> bool:
    return parse_hms(text) is not None


def datetime_to_ms(value: datetime, tz: TzLike = None) -> float:
    """
    Convert a datetime to a millisecond epoch.

    Naive datetimes are interpreted in ``tz`` (local time when None).
    """
    zone = resolve_zone(tz)
    if isinstance(value, pd.Timestamp):
        value = value.to_pydatetime()
    if value.tzinfo is None:
        value = value.replace(tzinfo=zone) if zone is not None else value.astimezone()
    return value.timestamp() * 1000


def to_epoch_ms(value, tz: TzLike = None, detect_scale: bool = False) -> float:
    """
    Convert an absolute timestamp of any supported shape to milliseconds.

    Supported shapes: numbers and numeric strings (epoch), datetimes and
    pandas Timestamps, numpy datetime64 values and ISO-8601 strings. Bare
    HH:mm:ss strings are relative to a day and are NOT absolute; they
    return NaN here and are resolved with hms_to_epoch_ms().

    Args:
        value: The raw timestamp.
        tz: Zone for naive datetimes and ISO strings without an offset.
        detect_scale: If True, epoch numbers below 1e12 are read as seconds.

    Returns:
        Millisecond epoch as float, or NaN if the value cannot be resolved.
    """
    if value is None or value is pd.NaT or isinstance(value, bool):
        return np.nan

    if isinstance(value, np.datetime64):
        if np.isnat(value):
            return np.nan
        return float(value.astype("datetime64[ms]").astype(np.int64))

    if isinstance(value, datetime):
        return datetime_to_ms(value, tz)

    if isinstance(value, str):
        text = value.strip()
        if not text or is_hms(text):
            return np.nan
        number = utils.safe_float(text)
        if not math.isnan(number):
            value = number
        else:
            try:
                parsed = pd.Timestamp(text)
            except (ValueError, TypeError, OverflowError):
                return np.nan
            if pd.isna(parsed):
                return np.nan
            return datetime_to_ms(parsed, tz)

    number = utils.safe_float(value)
    if not utils.is_finite(number):
        return np.nan
    return normalize_epoch(number) if detect_scale else number


def day_start_ms(instant_ms: float, tz: TzLike = None) -> int:
    """
    Truncate an instant to midnight of its day in the given zone.

    Args:
        instant_ms: Millisecond epoch.
        tz: Zone whose midnight is used (local time when None).

    Returns:
        Millisecond epoch of that day's midnight.
    """
    zone = resolve_zone(tz)
    moment = datetime.fromtimestamp(instant_ms / 1000, tz=zone)
    midnight = moment.replace(hour=0, minute=0, second=0, microsecond=0)
    return int(round(midnight.timestamp() * 1000))


def hms_to_epoch_ms(text: str, base_ms: float) -> float:
    """
    Resolve an HH:mm:ss string against a day-start baseline.

    Args:
        text: Wall-clock string.
        base_ms: Millisecond epoch of the day's midnight.

    Returns:
        Millisecond epoch, or NaN if text is not HH:mm:ss.
    """
    offset = parse_hms(text)
    if offset is None or not utils.is_finite(base_ms):
        return np.nan
    return float(base_ms + offset)


def epoch_second(instant_ms: float) -> int:
    """Key an instant by the whole epoch second it falls in."""
    return int(instant_ms // constants.MS_PER_SECOND)


def format_hms(instant_ms: float, tz: TzLike = None) -> str:
    """Format an instant as an HH:mm:ss wall-clock string."""
    zone = resolve_zone(tz)
    return datetime.fromtimestamp(instant_ms / 1000, tz=zone).strftime("%H:%M:%S")


def to_iso(instant_ms: float) -> str:
    """Format an instant as a UTC ISO-8601 string, as the exports expect."""
    return pd.to_datetime(int(instant_ms), unit="ms", utc=True).isoformat()
