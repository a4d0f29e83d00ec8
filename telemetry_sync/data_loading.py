"""
Payload Loading and Parsing for Telemetry Time Synchronization

This module unwraps chart-data payloads (as returned by the telemetry API
or saved as dataset files) into channel rows and GPS rows, and builds the
corresponding series and track from them.
"""

import json
import logging
from pathlib import Path
from typing import Dict, List, Mapping, Optional, Tuple

from . import constants
from . import timestamps
from . import utils
from .gps_track import GpsTrack
from .time_series import AxisRange, Channel, TimeSeries

logger = logging.getLogger(__name__)


def unwrap_payload(payload) -> Mapping:
    """
    Strip the optional ``{"data": ...}`` envelope from an API payload.

    Args:
        payload: Decoded JSON document.

    Returns:
        The inner mapping.

    Raises:
        ValueError: If the payload is not a JSON object.
    """
    if isinstance(payload, Mapping) and isinstance(payload.get("data"), Mapping):
        payload = payload["data"]
    if not isinstance(payload, Mapping):
        raise ValueError("Payload must be a JSON object.")
    return payload


def as_row_list(value) -> List:
    """Return value as a list if it is a JSON array, otherwise an empty list."""
    if isinstance(value, (list, tuple)):
        return list(value)
    return []


def parse_axis_range(entry: Mapping) -> AxisRange:
    """Read a channel's fixed y-axis range, defaulting missing bounds."""
    raw = entry.get("yAxisRange") or entry.get("y_axis_range")
    if not isinstance(raw, Mapping):
        raw = {}
    default = AxisRange()
    return AxisRange(
        min=utils.finite_or(utils.safe_float(raw.get("min")), default.min),
        max=utils.finite_or(utils.safe_float(raw.get("max")), default.max),
    )


def parse_channel(entry: Mapping, position: int = 0) -> Tuple[Channel, List]:
    """
    Split one channel entry into its metadata and raw rows.

    Args:
        entry: Channel object with id, name, unit, color, yAxisRange and
            data (or rows).
        position: Index of the entry, used to name channels without an id.

    Returns:
        Tuple of (Channel, raw rows).
    """
    channel_id = entry.get("id")
    if channel_id is None or str(channel_id) == "":
        channel_id = entry.get("name") or f"channel-{position + 1}"
    channel = Channel(
        id=str(channel_id),
        name=str(entry.get("name") or channel_id),
        unit=str(entry.get("unit") or ""),
        color=str(entry.get("color") or ""),
        y_axis_range=parse_axis_range(entry),
    )
    rows = as_row_list(utils.first_present(entry, ("data", "rows")))
    return channel, rows


def parse_channels(payload) -> List[Tuple[Channel, List]]:
    """
    Extract every telemetry channel from a payload.

    Returns:
        List of (Channel, raw rows) in payload order.
    """
    payload = unwrap_payload(payload)
    entries = as_row_list(payload.get("channels"))
    return [
        parse_channel(entry, position)
        for position, entry in enumerate(entries)
        if isinstance(entry, Mapping)
    ]


def build_channels(payload, tz: timestamps.TzLike = constants.DISPLAY_TZ) -> Dict[str, TimeSeries]:
    """
    Build a TimeSeries for every channel in a payload.

    Args:
        payload: Decoded JSON payload.
        tz: Zone used to resolve hms keys.

    Returns:
        Dictionary mapping channel id to its TimeSeries, in payload order.
        When two entries share an id the later one is kept.
    """
    channels = {}
    for channel, rows in parse_channels(payload):
        if channel.id in channels:
            logger.warning("Duplicate channel id %s; keeping the later entry", channel.id)
        channels[channel.id] = TimeSeries.build(rows, channel=channel, tz=tz)
    return channels


def parse_gps(payload) -> Tuple[List, Optional[List]]:
    """
    Extract the GPS rows and reference timestamps from a payload.

    Returns:
        Tuple of (rows from gpsPerSecond or gps, times or timestamps array
        or None).
    """
    payload = unwrap_payload(payload)
    rows = as_row_list(utils.first_present(payload, ("gpsPerSecond", "gps")))
    times = utils.first_present(payload, ("times", "timestamps"))
    if not isinstance(times, list):
        times = None
    return rows, times


def build_track(payload, tz: timestamps.TzLike = constants.DISPLAY_TZ) -> GpsTrack:
    rows, times = parse_gps(payload)
    return GpsTrack.build(rows, times=times, tz=tz)


# ============================================================================
# DATASET FILES
# ============================================================================

def get_available_datasets(data_dir: Path = constants.DATA_DIR) -> List[Dict]:
    """
    Discover dataset payload files in the data directory.

    Args:
        data_dir: Directory scanned for ``*.json`` files.

    Returns:
        List of dictionaries with 'filename' and 'display_name' keys,
        sorted by filename.
    """
    data_dir = Path(data_dir)
    if not data_dir.exists():
        return []

    datasets = [
        {
            "filename": file_path.name,
            "display_name": file_path.stem.replace("_", " ").title(),
        }
        for file_path in data_dir.glob("*.json")
    ]
    datasets.sort(key=lambda x: x["filename"])
    return datasets


def load_payload_file(file_path: Path) -> Mapping:
    """
    Load a dataset payload from a JSON file.

    Raises:
        ValueError: If the file does not exist or is not a JSON object.
    """
    file_path = Path(file_path)
    if not file_path.is_file():
        raise ValueError(f"Dataset file not found: {file_path.name}")

    with file_path.open("r", encoding="utf-8") as file:
        try:
            payload = json.load(file)
        except json.JSONDecodeError as exc:
            raise ValueError(f"Dataset file is not valid JSON: {file_path.name}") from exc

    logger.info("Loaded dataset %s", file_path.name)
    return unwrap_payload(payload)
