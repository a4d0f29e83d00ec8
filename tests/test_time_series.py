"""Tests for telemetry row normalization and series lookups."""

from __future__ import annotations

import math
from datetime import datetime, timezone

import pandas as pd
import pytest

from telemetry_sync.time_series import Sample, TimeSeries, coerce_range

from tests.helpers import MINUTE, epoch_ms, value_rows


def test_single_value_rows_expand_to_avg_min_max() -> None:
    series = TimeSeries.build(value_rows([0, 1000], [5.0, 7.0]), tz="UTC")
    assert series.samples == (Sample(0, 5.0, 5.0, 5.0), Sample(1000, 7.0, 7.0, 7.0))


def test_rows_with_non_finite_avg_are_dropped() -> None:
    rows = [
        {"time": 0, "value": 1.0},
        {"time": 1000, "value": "abc"},
        {"time": 2000, "value": None},
        {"time": 3000, "avg": float("nan")},
        {"time": 4000, "avg": float("inf")},
        {"time": 5000, "value": 2.0},
    ]
    series = TimeSeries.build(rows, tz="UTC")
    assert [sample.time for sample in series] == [0, 5000]


def test_rows_without_usable_time_are_dropped() -> None:
    rows = [{"value": 1.0}, {"time": "not a time", "value": 2.0}, {"time": 3000, "value": 3.0}]
    series = TimeSeries.build(rows, tz="UTC")
    assert len(series) == 1
    assert series.first.time == 3000


def test_min_max_default_to_avg_when_missing_or_not_finite() -> None:
    rows = [
        {"time": 0, "avg": 10, "min": None, "max": "oops"},
        {"time": 1000, "avg": 20, "min": 18, "max": float("nan")},
    ]
    series = TimeSeries.build(rows, tz="UTC")
    assert series.samples[0] == Sample(0, 10.0, 10.0, 10.0)
    assert series.samples[1] == Sample(1000, 20.0, 18.0, 20.0)


def test_avg_takes_priority_over_value_and_numeric_strings_parse() -> None:
    series = TimeSeries.build([{"time": 0, "avg": "102", "value": 1}], tz="UTC")
    assert series.first.avg == 102.0


def test_input_order_is_preserved() -> None:
    series = TimeSeries.build(value_rows([3000, 1000, 2000], [3, 1, 2]), tz="UTC")
    assert [sample.time for sample in series] == [3000, 1000, 2000]


def test_time_accepts_datetimes_and_iso_strings() -> None:
    expected = epoch_ms("2024-03-01T10:00:00Z")
    rows = [
        {"time": datetime(2024, 3, 1, 10, 0, tzinfo=timezone.utc), "value": 1},
        {"time": "2024-03-01T10:00:00Z", "value": 2},
        {"timestamp": expected, "value": 3},
    ]
    series = TimeSeries.build(rows, tz="UTC")
    assert [sample.time for sample in series] == [expected] * 3


def test_build_accepts_dataframes() -> None:
    frame = pd.DataFrame({
        "time": [0, 1000],
        "avg": [1.0, None],
        "value": [9.0, 2.0],
    })
    series = TimeSeries.build(frame, tz="UTC")
    assert [sample.avg for sample in series] == [1.0, 2.0]


def test_filter_to_range_pads_five_minutes_each_side() -> None:
    times = [t * MINUTE for t in (0, 4, 6, 10, 16, 20)]
    series = TimeSeries.build(value_rows(times, range(len(times))), tz="UTC")
    kept = series.filter_to_range((10 * MINUTE, 10 * MINUTE))
    assert [sample.time for sample in kept] == [6 * MINUTE, 10 * MINUTE]


def test_filter_to_range_pad_boundary_is_inclusive() -> None:
    times = [0, 15 * MINUTE]
    series = TimeSeries.build(value_rows(times, [1, 2]), tz="UTC")
    kept = series.filter_to_range((5 * MINUTE, 10 * MINUTE))
    assert [sample.time for sample in kept] == times


def test_filter_to_range_without_range_returns_everything(minute_series: TimeSeries) -> None:
    assert minute_series.filter_to_range(None) == list(minute_series.samples)


def test_samples_within_uses_unpadded_inclusive_range(minute_series: TimeSeries) -> None:
    kept = minute_series.samples_within((2 * MINUTE, 4 * MINUTE))
    assert [sample.avg for sample in kept] == [2.0, 3.0, 4.0]


@pytest.mark.parametrize(
    "raw, expected",
    [
        (None, None),
        ((1, 2), (1.0, 2.0)),
        ([5, 3], (3.0, 5.0)),
        ((1, float("nan")), None),
        ("ab", None),
        (7, None),
    ],
)
def test_coerce_range(raw, expected) -> None:
    assert coerce_range(raw) == expected


def test_exact_at_matches_any_instant_within_the_second() -> None:
    base = epoch_ms("2024-03-01T10:00:00Z")
    series = TimeSeries.build([{"time": base + 500, "value": 4.0}], tz="UTC")
    assert series.exact_at(base).avg == 4.0
    assert series.exact_at(base + 999).avg == 4.0
    assert series.exact_at(base + 1000) is None
    assert series.exact_at(float("nan")) is None


def test_exact_index_prefers_raw_per_second_fields() -> None:
    base = epoch_ms("2024-03-01T10:00:00Z")
    rows = [{"time": base, "avg": 10, "min": 9, "max": 11, "rawAvg": 12, "rawMin": 3, "rawMax": 30}]
    series = TimeSeries.build(rows, tz="UTC")
    assert series.first == Sample(base, 10.0, 9.0, 11.0)
    hit = series.exact_at(base)
    assert (hit.avg, hit.min, hit.max) == (12.0, 3.0, 30.0)


def test_exact_index_keeps_rows_whose_display_avg_is_invalid() -> None:
    base = epoch_ms("2024-03-01T10:00:00Z")
    series = TimeSeries.build([{"time": base, "avg": "n/a", "rawAvg": 5}], tz="UTC")
    assert len(series) == 0
    assert series.exact_at(base).avg == 5.0


def test_hms_key_resolves_against_the_rows_own_day() -> None:
    minute = epoch_ms("2024-03-01T10:00:00Z")
    rows = [
        {"time": minute, "avg": 50.0, "hms": "10:00:00", "rawAvg": 48.0},
        {"time": minute, "avg": 50.0, "hms": "10:00:07", "rawAvg": 42.0, "rawMin": 40.0, "rawMax": 44.0},
    ]
    series = TimeSeries.build(rows, tz="UTC")
    hit = series.exact_at(minute + 7000)
    assert hit == Sample(minute + 7000, 42.0, 40.0, 44.0)
    assert series.exact_at(minute).avg == 48.0
    # The same wall-clock second on another day is a different key
    assert series.exact_at(minute + 86_400_000 + 7000) is None


def test_later_rows_replace_earlier_rows_for_the_same_second() -> None:
    rows = [{"time": 1000, "value": 1.0}, {"time": 1500, "value": 2.0}]
    series = TimeSeries.build(rows, tz="UTC")
    assert series.exact_at(1000).avg == 2.0
    assert len(series) == 2


def test_nearest_at_picks_closest_sample(minute_series: TimeSeries) -> None:
    assert minute_series.nearest_at(3 * MINUTE + 20_000).avg == 3.0
    assert minute_series.nearest_at(3 * MINUTE + 40_000).avg == 4.0


def test_nearest_at_tie_goes_to_first_sample(minute_series: TimeSeries) -> None:
    assert minute_series.nearest_at(3 * MINUTE + 30_000).avg == 3.0


def test_nearest_at_respects_tolerance(minute_series: TimeSeries) -> None:
    assert minute_series.nearest_at(-MINUTE).avg == 0.0
    assert minute_series.nearest_at(-MINUTE - 1) is None
    assert minute_series.nearest_at(-500, tolerance_ms=499) is None


def test_nearest_at_on_empty_series() -> None:
    assert TimeSeries().nearest_at(0) is None


@pytest.mark.parametrize(
    "times, step, tolerance",
    [
        ([], 0, 60_000),
        ([0], 0, 60_000),
        ([0, 60_000], 60_000, 60_000),
        ([0, 300_000], 300_000, 150_000),
        ([0, 300_001], 300_001, 150_000),
        ([300_000, 0], 300_000, 150_000),
    ],
)
def test_step_and_tolerance(times, step, tolerance) -> None:
    series = TimeSeries.build(value_rows(times, [1.0] * len(times)), tz="UTC")
    assert series.step_ms == step
    assert series.tolerance_ms == tolerance


def test_rebuild_is_idempotent() -> None:
    base = epoch_ms("2024-03-01T10:00:00Z")
    rows = [
        {"time": base + i * 1000, "avg": i, "min": i - 1, "max": i + 1, "rawAvg": i * 2, "hms": None}
        for i in range(30)
    ]
    first = TimeSeries.build(rows, tz="UTC")
    second = TimeSeries.build(rows, tz="UTC")
    assert first.samples == second.samples
    assert dict(first.exact_index) == dict(second.exact_index)


def test_series_is_read_only(minute_series: TimeSeries) -> None:
    with pytest.raises(TypeError):
        minute_series.exact_index[0] = minute_series.first
    with pytest.raises(AttributeError):
        minute_series.first.avg = 1.0
    assert not math.isnan(minute_series.first.avg)
