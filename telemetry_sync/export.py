"""
Export Functions for Telemetry Time Synchronization

This module exports a channel's samples for the visible window to CSV, for
the dashboard's table/print views and for external analysis.
"""

import csv
import io

from . import timestamps
from . import utils
from .time_series import TimeSeries


def export_window_csv(series: TimeSeries, time_range=None) -> str:
    """
    Export the samples of a channel inside a visible window to CSV format.

    Args:
        series: Channel series to export.
        time_range: (start, end) instants, or None for the whole series.

    Returns:
        CSV string with one row per sample: UTC timestamp, epoch
        milliseconds, avg, min, max, plus the channel id and unit.
    """
    channel = series.channel

    buffer = io.StringIO()
    writer = csv.writer(buffer)

    writer.writerow([
        "timestamp",
        "time_ms",
        "channel",
        "unit",
        "avg",
        "min",
        "max",
    ])

    for sample in series.samples_within(time_range):
        writer.writerow([
            timestamps.to_iso(sample.time),
            int(sample.time),
            channel.id,
            channel.unit,
            utils.round_float(sample.avg),
            utils.round_float(sample.min),
            utils.round_float(sample.max),
        ])

    return buffer.getvalue()
