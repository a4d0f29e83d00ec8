"""Shared builders for telemetry-sync tests."""

from __future__ import annotations

from typing import Dict, List, Sequence

import pandas as pd

MINUTE = 60_000


def epoch_ms(text: str) -> int:
    """Millisecond epoch of an ISO timestamp (UTC when no offset is given)."""
    stamp = pd.Timestamp(text)
    if stamp.tzinfo is None:
        stamp = stamp.tz_localize("UTC")
    return int(stamp.value // 1_000_000)


def value_rows(times: Sequence[float], values: Sequence[float]) -> List[Dict]:
    return [{"time": t, "value": v} for t, v in zip(times, values)]
