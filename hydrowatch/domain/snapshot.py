"""
Sensor Snapshot
===============
Per-sensor result of one polling cycle. Entirely derived and transient: a new
map of snapshots replaces the previous one on every successful cycle.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any

from hydrowatch.domain.trend import Trend, calculate_trend
from hydrowatch.schemas.resources import Reading


@dataclass(frozen=True)
class SensorSnapshot:
    """
    Attributes:
        sensor_id: Sensor the history belongs to
        current: Newest sample
        trend: Trend over the whole history
        history: Samples ordered newest first
        sensor_type: Type resolved from the sensor list, None when unknown
        unit: Unit resolved from the sensor list, empty when unknown
    """

    sensor_id: int
    current: Reading
    trend: Trend
    history: tuple[Reading, ...] = field(default_factory=tuple)
    sensor_type: str | None = None
    unit: str = ""

    @classmethod
    def from_history(
        cls,
        sensor_id: int,
        readings: list[Reading],
        *,
        sensor_type: str | None = None,
        unit: str = "",
    ) -> SensorSnapshot | None:
        """Sort newest first and build a snapshot; None for an empty history."""
        if not readings:
            return None
        ordered = sorted(readings, key=lambda reading: reading.timestamp, reverse=True)
        return cls(
            sensor_id=sensor_id,
            current=ordered[0],
            trend=calculate_trend(ordered),
            history=tuple(ordered),
            sensor_type=sensor_type,
            unit=unit,
        )

    def to_dict(self) -> dict[str, Any]:
        return {
            "sensor_id": self.sensor_id,
            "sensor_type": self.sensor_type,
            "unit": self.unit,
            "current": self.current.to_dict(),
            "trend": self.trend.to_dict(),
            "history": [reading.to_dict() for reading in self.history],
        }
