"""
Trend Value Object
==================
Direction, magnitude and elapsed-window summary of a sensor's reading history.
"""

from __future__ import annotations

from collections.abc import Sequence
from dataclasses import dataclass
from typing import Any

from hydrowatch.constants import TREND_LAST_HOUR_LABEL, TREND_STABLE_LABEL
from hydrowatch.enums.common import TrendDirection
from hydrowatch.schemas.resources import Reading


@dataclass(frozen=True)
class Trend:
    """
    Attributes:
        direction: up, down or stable
        magnitude: Signed difference formatted to one decimal ("+1.5", "-0.3"),
            or "Estable" when stable
        window: Elapsed time between oldest and newest sample ("últimas 3h",
            "última hora"); empty when fewer than two samples exist
    """

    direction: TrendDirection
    magnitude: str
    window: str

    def to_dict(self) -> dict[str, Any]:
        return {"direction": self.direction.value, "magnitude": self.magnitude, "window": self.window}


STABLE_TREND = Trend(direction=TrendDirection.STABLE, magnitude=TREND_STABLE_LABEL, window="")


def calculate_trend(readings: Sequence[Reading]) -> Trend:
    """
    Derive a trend from readings ordered newest first.

    The difference is taken between the newest and the oldest sample only;
    intermediate samples do not influence the direction.
    """
    if not readings or len(readings) < 2:
        return STABLE_TREND

    newest = readings[0]
    oldest = readings[-1]
    diff = newest.value - oldest.value

    if diff > 0:
        direction = TrendDirection.UP
    elif diff < 0:
        direction = TrendDirection.DOWN
    else:
        direction = TrendDirection.STABLE

    if direction is TrendDirection.STABLE:
        magnitude = TREND_STABLE_LABEL
    else:
        magnitude = f"{diff:+.1f}"

    return Trend(direction=direction, magnitude=magnitude, window=window_label(newest, oldest))


def window_label(newest: Reading, oldest: Reading) -> str:
    elapsed_hours = abs((newest.timestamp - oldest.timestamp).total_seconds()) / 3600
    # Half-up rounding, 0.5h counts as one hour
    hours = int(elapsed_hours + 0.5)
    if hours > 0:
        return f"últimas {hours}h"
    return TREND_LAST_HOUR_LABEL
