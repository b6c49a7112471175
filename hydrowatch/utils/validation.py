"""
Input Coercion Utilities
========================

Lenient parsing of loosely typed backend values.
"""

from __future__ import annotations

import math
from typing import Any


def parse_float(value: Any) -> float:
    """Parse a backend number (float, int or numeric string); NaN when unparseable."""
    if isinstance(value, bool) or value is None:
        return math.nan
    try:
        return float(value)
    except (TypeError, ValueError):
        return math.nan


def optional_float(value: Any) -> float | None:
    """Like parse_float, but None instead of NaN."""
    parsed = parse_float(value)
    return None if math.isnan(parsed) else parsed
