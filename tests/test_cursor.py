"""Tests for resolving a channel's reading at the shared cursor."""

from __future__ import annotations

import math

import pytest

from telemetry_sync import cursor
from telemetry_sync.cursor import DisplaySample, ExactSecondLookup, NearestLookup
from telemetry_sync.time_series import Sample, TimeSeries

from tests.helpers import MINUTE, epoch_ms, value_rows


def test_exact_second_wins_over_nearest_sample() -> None:
    base = epoch_ms("2024-03-01T10:00:00Z")
    rows = [
        {"time": base, "avg": 10.0, "hms": "10:00:00", "rawAvg": 10.0},
        {"time": base, "avg": 10.0, "hms": "10:00:42", "rawAvg": 77.0, "rawMin": 70.0, "rawMax": 80.0},
        {"time": base + MINUTE, "avg": 20.0, "hms": "10:01:00", "rawAvg": 20.0},
    ]
    series = TimeSeries.build(rows, tz="UTC")

    point = cursor.resolve(series, base + 42_000)
    assert point == DisplaySample(time=base + 42_000, avg=77.0, min=70.0, max=80.0)


def test_falls_back_to_nearest_sample_without_exact_second(minute_series: TimeSeries) -> None:
    point = cursor.resolve(minute_series, 2 * MINUTE + 10_500)
    assert point == DisplaySample(time=2 * MINUTE, avg=2.0, min=1.5, max=2.5)


@pytest.mark.parametrize("step", [60_000, 300_000, 900_000])
def test_tolerance_boundary(step: int) -> None:
    series = TimeSeries.build(value_rows([0, step], [1.0, 2.0]), tz="UTC")
    tolerance = max(60_000, step // 2)
    assert series.tolerance_ms == tolerance

    accepted = cursor.resolve(series, step + tolerance)
    assert accepted is not None
    assert accepted.avg == 2.0
    assert cursor.resolve(series, step + tolerance + 1) is None


def test_no_cursor_or_empty_series_gives_none(minute_series: TimeSeries) -> None:
    assert cursor.resolve(minute_series, None) is None
    assert cursor.resolve(minute_series, float("nan")) is None
    assert cursor.resolve(TimeSeries(), 0) is None


def test_cursor_in_a_coverage_gap_gives_none() -> None:
    series = TimeSeries.build(value_rows([0, 60_000, 3_600_000], [1.0, 2.0, 3.0]), tz="UTC")
    assert cursor.resolve(series, 1_800_000) is None


def test_non_finite_values_are_never_surfaced() -> None:
    series = TimeSeries([Sample(time=0, avg=math.nan, min=math.nan, max=5.0)])
    point = cursor.resolve(series, 1500)
    assert point == DisplaySample(time=0, avg=0.0, min=0.0, max=5.0)


def test_sanitize_falls_back_to_the_average() -> None:
    point = cursor.sanitize(1000, Sample(time=0, avg=3.0, min=math.inf, max=math.nan))
    assert point == DisplaySample(time=1000, avg=3.0, min=3.0, max=3.0)


def test_strategies_are_tried_in_the_given_order() -> None:
    rows = [{"time": 0, "avg": 1.0, "rawAvg": 9.0}]
    series = TimeSeries.build(rows, tz="UTC")

    assert cursor.resolve(series, 0).avg == 9.0
    assert cursor.resolve(series, 0, strategies=(NearestLookup(), ExactSecondLookup())).avg == 1.0
    assert cursor.resolve(series, 0, strategies=(ExactSecondLookup(),)).avg == 9.0
    assert cursor.resolve(series, 5_000, strategies=(ExactSecondLookup(),)) is None
