"""
Constants for Telemetry Time Synchronization

This module defines the tunables, field spellings and path settings used
throughout the telemetry alignment and lookup engine.
"""

import os
from pathlib import Path

# Dataset folder is one level up from telemetry_sync/
DATA_DIR = Path(os.environ.get("TELEMETRY_SYNC_DATA_DIR") or Path(__file__).parent.parent / "data")

# Timezone used to resolve HH:mm:ss keys and day-start baselines (None = local time)
DISPLAY_TZ = os.environ.get("TELEMETRY_SYNC_TZ") or None

LOG_LEVEL = os.environ.get("TELEMETRY_SYNC_LOG_LEVEL", "INFO")

# Padding added around a visible window so edge points are not clipped
PAD_MS = 5 * 60 * 1000

# Nearest-sample lookups never accept less than one minute of slack
MIN_TOLERANCE_MS = 60 * 1000

# Uniform ticks every 10 minutes, shared by every panel and the scrubber
DEFAULT_TICK_STEP_MS = 10 * 60 * 1000

# Above this many ticks the renderer picks its own
MAX_TICKS = 1000

# Epoch values below this are seconds, not milliseconds
SECONDS_SCALE_THRESHOLD = 1e12

MS_PER_SECOND = 1000

# Symbolic "show the data's own extent" domain, as understood by the renderer
FULL_EXTENT = ("dataMin", "dataMax")

# Telemetry row field spellings
TIME_KEYS = ("time", "timestamp")
AVG_KEYS = ("avg", "value")
RAW_AVG_KEYS = ("rawAvg", "avg", "value")
RAW_MIN_KEYS = ("rawMin", "min", "value")
RAW_MAX_KEYS = ("rawMax", "max", "value")
HMS_KEY = "hms"

# GPS row field spellings
GPS_TIMESTAMP_KEYS = ("timestamp", "timeStamp", "ts")
GPS_TIME_KEYS = ("time", "Time", "TIME")
LAT_KEYS = ("lat", "latitude", "Latitude", "Lat", "LAT")
LNG_KEYS = ("lng", "lon", "longitude", "Longitude", "Lon", "LON")
