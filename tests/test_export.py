"""Tests for visible-window CSV export."""

from __future__ import annotations

import csv
import io

from telemetry_sync.export import export_window_csv
from telemetry_sync.time_series import Sample, TimeSeries

from tests.helpers import MINUTE


def read_csv(text: str):
    return list(csv.reader(io.StringIO(text)))


def test_export_only_includes_samples_in_window(minute_series: TimeSeries) -> None:
    header, *rows = read_csv(export_window_csv(minute_series, (2 * MINUTE, 4 * MINUTE)))
    assert header == ["timestamp", "time_ms", "channel", "unit", "avg", "min", "max"]
    assert [row[1] for row in rows] == ["120000", "180000", "240000"]
    assert rows[0] == ["1970-01-01T00:02:00+00:00", "120000", "speed", "km/h", "2.0", "1.5", "2.5"]


def test_export_without_range_includes_everything(minute_series: TimeSeries) -> None:
    assert len(read_csv(export_window_csv(minute_series))) == 11


def test_non_finite_values_export_as_blank_cells() -> None:
    series = TimeSeries([Sample(0, 1.23456, float("nan"), 2.0)])
    [_, row] = read_csv(export_window_csv(series))
    assert row[4:] == ["1.235", "", "2.0"]
