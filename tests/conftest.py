from __future__ import annotations

import pytest

from telemetry_sync.time_series import Channel, TimeSeries

from tests.helpers import MINUTE


@pytest.fixture
def speed_channel() -> Channel:
    return Channel(id="speed", name="Vehicle Speed", unit="km/h", color="#2563eb")


@pytest.fixture
def minute_series(speed_channel: Channel) -> TimeSeries:
    """Per-minute samples at 0, 1, ..., 9 minutes with avg equal to the minute."""
    rows = [
        {"time": i * MINUTE, "avg": float(i), "min": float(i) - 0.5, "max": float(i) + 0.5}
        for i in range(10)
    ]
    return TimeSeries.build(rows, channel=speed_channel, tz="UTC")
