"""
Utility Functions for Telemetry Time Synchronization

This module provides helper functions for numeric coercion, finiteness
checks and field lookup used throughout the alignment engine.
"""

import math
import numpy as np
from typing import Iterable, Mapping, Optional


def safe_float(value) -> float:
    """
    Safely convert a value to float, returning NaN on failure.

    Numeric strings from the API (e.g. "102") convert normally. Booleans
    and None are not readings and become NaN.

    Args:
        value: Value to convert (string, number, etc.).

    Returns:
        Float value, or np.nan if conversion fails.
    """
    if value is None or isinstance(value, bool):
        return np.nan
    try:
        return float(value)
    except (TypeError, ValueError):
        return np.nan


def is_finite(value) -> bool:
    """Return True if value is a real, finite number."""
    return isinstance(value, (int, float, np.number)) and not isinstance(value, bool) and math.isfinite(value)


def finite_or(value: float, fallback: float) -> float:
    """
    Return value if it is finite, otherwise fallback.

    Args:
        value: Candidate value.
        fallback: Value used when candidate is NaN, Inf or not a number.

    Returns:
        A float.
    """
    return float(value) if is_finite(value) else fallback


def first_present(row: Mapping, keys: Iterable[str]):
    """
    Return the first field of row that is present and not None.

    Mirrors a chain of ``a ?? b ?? c`` lookups over alternative spellings.

    Args:
        row: Mapping-like record.
        keys: Field names in order of preference.

    Returns:
        The first non-None value, or None if no key is set.
    """
    for key in keys:
        value = row.get(key)
        if value is not None:
            return value
    return None


def round_float(value, digits: int = 3) -> Optional[float]:
    """
    Round a float value, handling None, NaN, and Inf.

    Args:
        value: Value to round.
        digits: Number of decimal places. Default 3.

    Returns:
        Rounded float, or None if value is None, NaN, or Inf.
    """
    if not is_finite(value):
        return None
    return round(float(value), digits)
