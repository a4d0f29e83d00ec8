"""
FastAPI Web Application for Synchronized Telemetry Views

This module provides a REST API over the telemetry alignment engine: it
loads channel and GPS payloads into the session, and answers the cursor,
window, domain and map-position queries the synchronized chart panels
and map make on every scrub or zoom.
"""

import logging
from pathlib import Path
from typing import Dict, Optional
from fastapi import Body, FastAPI, HTTPException, Query
from fastapi.responses import PlainTextResponse
from telemetry_sync import constants
from telemetry_sync import timeline


# ============================================================================
# APPLICATION SETUP
# ============================================================================

logging.basicConfig(
    level=constants.LOG_LEVEL,
    format="%(asctime)s %(levelname)s %(name)s: %(message)s",
)
logger = logging.getLogger(__name__)

app = FastAPI()

# Loaded channels and GPS track for the current vehicle/date selection
store = timeline.SessionStore()


# ============================================================================
# HELPERS
# ============================================================================

def get_range(start: Optional[float], end: Optional[float]) -> Optional[tuple]:
    """
    Build the visible time range from query parameters.

    Args:
        start: Window start in epoch milliseconds, or None.
        end: Window end in epoch milliseconds, or None.

    Returns:
        (start, end) tuple, or None when neither bound is given.

    Raises:
        HTTPException: If only one bound is given (status 400).
    """
    if start is None and end is None:
        return None
    if start is None or end is None:
        raise HTTPException(status_code=400, detail="Both start and end are required for a time range")
    return (start, end)


def get_series(channel_id: str) -> timeline.TimeSeries:
    try:
        return store.get_channel(channel_id)
    except ValueError as exc:
        raise HTTPException(status_code=404, detail=str(exc)) from exc


def load_telemetry(payload: Dict) -> Dict:
    """
    Rebuild every telemetry channel from a payload and publish it.

    Raises:
        HTTPException: If the payload is malformed (status 400).
    """
    ticket = store.begin_load("telemetry")
    try:
        channels = timeline.build_channels(payload)
    except ValueError as exc:
        raise HTTPException(status_code=400, detail=str(exc)) from exc
    published = store.publish_channels(ticket, channels)
    return {
        "published": published,
        "generation": ticket.generation,
        "channels": list(channels),
    }


def load_gps(payload: Dict) -> Dict:
    """
    Rebuild the GPS track from a payload and publish it.

    Raises:
        HTTPException: If the payload is malformed (status 400).
    """
    ticket = store.begin_load("gps")
    try:
        track = timeline.build_track(payload)
    except ValueError as exc:
        raise HTTPException(status_code=400, detail=str(exc)) from exc
    published = store.publish_track(ticket, track)
    return {
        "published": published,
        "generation": ticket.generation,
        "fixes": len(track),
    }


# ============================================================================
# API ROUTES - DATASET MANAGEMENT
# ============================================================================

@app.get("/api/datasets")
def get_datasets():
    """
    Get list of available datasets.

    Returns:
        List of dictionaries with 'filename' and 'display_name' keys.
    """
    return timeline.get_available_datasets(constants.DATA_DIR)


@app.post("/api/datasets/{filename}/load")
def load_dataset(filename: str):
    """
    Load a dataset file's telemetry channels and GPS track into the session.

    Args:
        filename: Name of a JSON payload file in the data directory.

    Returns:
        Dictionary with the telemetry and gps load results.

    Raises:
        HTTPException: If the dataset does not exist or is not a JSON
        object (status 404).
    """
    logger.info("Loading dataset %s", filename)
    try:
        payload = timeline.load_payload_file(constants.DATA_DIR / Path(filename).name)
    except ValueError as exc:
        raise HTTPException(status_code=404, detail=str(exc)) from exc

    return {
        "telemetry": load_telemetry(payload),
        "gps": load_gps(payload),
    }


# ============================================================================
# API ROUTES - DATA LOADING
# ============================================================================

@app.post("/api/telemetry")
def post_telemetry(payload: Dict = Body(...)):
    """
    Replace the session's telemetry channels.

    Args:
        payload: Chart-data payload with a ``channels`` list (optionally
            wrapped in ``{"data": ...}``).

    Returns:
        Dictionary with published flag, load generation and channel ids.
    """
    return load_telemetry(payload)


@app.post("/api/gps")
def post_gps(payload: Dict = Body(...)):
    """
    Replace the session's GPS track.

    Args:
        payload: Payload with ``gpsPerSecond`` rows and optional ``times``.

    Returns:
        Dictionary with published flag, load generation and fix count.
    """
    return load_gps(payload)


# ============================================================================
# API ROUTES - QUERIES
# ============================================================================

@app.get("/api/channels")
def get_channels():
    """
    Get metadata for every loaded channel.

    Returns:
        List of channel dictionaries with sample counts.
    """
    return [
        {**series.channel.as_dict(), "samples": len(series)}
        for series in store.channels.values()
    ]


@app.get("/api/channels/{channel_id}/cursor")
def get_cursor_point(channel_id: str, t: Optional[float] = Query(None, description="Cursor instant (epoch ms)")):
    """
    Resolve a channel's reading at the cursor.

    Returns:
        Dictionary with ``point`` (time/avg/min/max) or ``point: None`` when
        no reading exists near the cursor.
    """
    series = get_series(channel_id)
    point = timeline.resolve_cursor(series, t)
    return {"point": point.as_dict() if point is not None else None}


@app.get("/api/channels/{channel_id}/stats")
def get_window_stats(channel_id: str,
                     start: Optional[float] = Query(None, description="Window start (epoch ms)"),
                     end: Optional[float] = Query(None, description="Window end (epoch ms)")):
    """
    Compute avg/min/max over the visible window of a channel.
    """
    series = get_series(channel_id)
    return timeline.compute_window_stats(series, get_range(start, end)).as_dict()


@app.get("/api/channels/{channel_id}/domain")
def get_domain(channel_id: str,
               start: Optional[float] = Query(None, description="Window start (epoch ms)"),
               end: Optional[float] = Query(None, description="Window end (epoch ms)"),
               step: int = Query(constants.DEFAULT_TICK_STEP_MS, description="Tick spacing (ms)")):
    """
    Resolve the x-axis domain and tick instants for a requested window.
    """
    series = get_series(channel_id)
    time_range = get_range(start, end)
    return {
        "domain": list(timeline.effective_domain(series, time_range)),
        "ticks": timeline.ticks(time_range, step),
    }


@app.get("/api/gps/nearest")
def get_nearest_fix(t: Optional[float] = Query(None, description="Cursor instant (epoch ms)")):
    """
    Find the GPS fix nearest the cursor, for the map marker.

    Returns:
        Dictionary with ``point`` (time/lat/lng) or ``point: None``.
    """
    point = store.track.nearest_at(t)
    return {"point": point.as_dict() if point is not None else None}


@app.get("/api/snapshot")
def get_snapshot(t: Optional[float] = Query(None, description="Cursor instant (epoch ms)"),
                 start: Optional[float] = Query(None, description="Window start (epoch ms)"),
                 end: Optional[float] = Query(None, description="Window end (epoch ms)"),
                 samples: bool = Query(False, description="Include plotted samples")):
    """
    Get the synchronized view of every channel plus the map position.
    """
    return timeline.build_display_snapshot(store, t, get_range(start, end), include_samples=samples)


# ============================================================================
# API ROUTES - EXPORT
# ============================================================================

@app.get("/api/export/channel/{channel_id}")
def export_channel(channel_id: str,
                   start: Optional[float] = Query(None, description="Window start (epoch ms)"),
                   end: Optional[float] = Query(None, description="Window end (epoch ms)")):
    """
    Export a channel's samples inside the visible window as CSV.

    Returns:
        PlainTextResponse: CSV file with Content-Disposition header
        for download. Filename: {channel_id}.csv
    """
    series = get_series(channel_id)
    csv_body = timeline.export_window_csv(series, get_range(start, end))

    headers = {"Content-Disposition": f"attachment; filename={channel_id}.csv"}
    return PlainTextResponse(
        csv_body,
        media_type="text/csv",
        headers=headers
    )


# ============================================================================
# RUN INSTRUCTIONS
# ============================================================================
# Run with: uvicorn app:app --reload
