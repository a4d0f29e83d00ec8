"""
Telemetry Timeline Module

This module is the public entry point of the telemetry alignment and lookup
engine. It re-exports the build and query functions from the modular
structure so callers (the web app, scripts, tests) import from one place.
"""

# Import constants
from .constants import (
    DATA_DIR,
    DEFAULT_TICK_STEP_MS,
    MAX_TICKS,
    FULL_EXTENT,
    MIN_TOLERANCE_MS,
    PAD_MS,
)

# Import time series types
from .time_series import (
    AxisRange,
    Channel,
    Sample,
    TimeSeries,
    coerce_range,
)

# Import cursor resolution
from .cursor import (
    DisplaySample,
    ExactSecondLookup,
    NearestLookup,
    resolve as resolve_cursor,
)

# Import window statistics
from .window_stats import (
    Stats,
    compute as compute_window_stats,
)

# Import domain resolution
from .domain import (
    effective_domain,
    ticks,
)

# Import GPS track
from .gps_track import (
    GpsPoint,
    GpsTrack,
)

# Import data loading functions
from .data_loading import (
    build_channels,
    build_track,
    get_available_datasets,
    load_payload_file,
    unwrap_payload,
)

# Import session functions
from .session import (
    LoadTicket,
    SessionStore,
    build_channel_view,
    build_display_snapshot,
)

# Import export functions
from .export import (
    export_window_csv,
)

__all__ = [
    # Constants
    "DATA_DIR",
    "DEFAULT_TICK_STEP_MS",
    "MAX_TICKS",
    "FULL_EXTENT",
    "MIN_TOLERANCE_MS",
    "PAD_MS",
    # Time series
    "AxisRange",
    "Channel",
    "Sample",
    "TimeSeries",
    "coerce_range",
    # Cursor
    "DisplaySample",
    "ExactSecondLookup",
    "NearestLookup",
    "resolve_cursor",
    # Window statistics
    "Stats",
    "compute_window_stats",
    # Domain
    "effective_domain",
    "ticks",
    # GPS
    "GpsPoint",
    "GpsTrack",
    # Data loading
    "build_channels",
    "build_track",
    "get_available_datasets",
    "load_payload_file",
    "unwrap_payload",
    # Session
    "LoadTicket",
    "SessionStore",
    "build_channel_view",
    "build_display_snapshot",
    # Export
    "export_window_csv",
]
