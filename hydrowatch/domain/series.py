"""
Multi-Series Merge
==================
Combines per-sensor histories into one time-ordered dataset with a column per
canonical sensor type, plus summary statistics over a reading list.

Samples are bucketed by minute. When two consecutive buckets are further apart
than the gap step, evenly spaced interpolated points are inserted so the merged
series has no long holes; a value is interpolated only when both neighbours
carry one.
"""

from __future__ import annotations

import math
import statistics
from collections.abc import Iterable, Mapping
from dataclasses import asdict, dataclass, replace
from datetime import datetime, timedelta
from typing import Any

from hydrowatch.constants import Intervals
from hydrowatch.domain.sensor_types import normalize_sensor_type
from hydrowatch.domain.snapshot import SensorSnapshot
from hydrowatch.enums.common import CanonicalSensorType
from hydrowatch.schemas.resources import Reading, Sensor

SERIES_FIELDS = tuple(member.value for member in CanonicalSensorType)


@dataclass(frozen=True)
class SeriesPoint:
    timestamp: datetime
    temperature: float | None = None
    humidity: float | None = None
    ec: float | None = None
    interpolated: bool = False

    def to_dict(self) -> dict[str, Any]:
        data = asdict(self)
        data["timestamp"] = self.timestamp.isoformat()
        return data


@dataclass(frozen=True)
class ReadingStats:
    count: int
    min: float
    max: float
    mean: float
    std_dev: float

    def to_dict(self) -> dict[str, Any]:
        return asdict(self)


def merge_series(
    snapshots: Mapping[int, SensorSnapshot],
    sensors: Iterable[Sensor] = (),
    readings: Iterable[Reading] = (),
    *,
    gap: timedelta = timedelta(minutes=Intervals.SERIES_GAP_MINUTES),
) -> list[SeriesPoint]:
    """
    Merge snapshot histories and an optional flat reading list.

    Args:
        snapshots: Polling coordinator output, keyed by sensor id
        sensors: Sensor list used to resolve the type of each sensor id
        readings: Extra readings (e.g. all readings of the crop); these are
            applied after the snapshots and win on bucket collisions
        gap: Maximum distance between points before interpolation kicks in

    Returns:
        Points sorted by timestamp
    """
    type_by_sensor = {sensor.id: normalize_sensor_type(sensor.sensor_type, sensor.unit) for sensor in sensors}
    buckets: dict[datetime, dict[str, float]] = {}

    def apply(reading: Reading, kind: CanonicalSensorType | None) -> None:
        if kind is None:
            return
        bucket = reading.timestamp.replace(second=0, microsecond=0)
        buckets.setdefault(bucket, {})[kind.value] = reading.value

    for sensor_id, snapshot in snapshots.items():
        kind = normalize_sensor_type(snapshot.sensor_type) or type_by_sensor.get(sensor_id)
        for reading in snapshot.history:
            apply(reading, kind)

    for reading in readings:
        kind = normalize_sensor_type(reading.sensor_type, reading.unit) or type_by_sensor.get(reading.sensor_id)
        apply(reading, kind)

    points = [SeriesPoint(timestamp=ts, **values) for ts, values in sorted(buckets.items())]
    return _interpolate(points, gap)


def _interpolate(points: list[SeriesPoint], gap: timedelta) -> list[SeriesPoint]:
    if gap.total_seconds() <= 0:
        return points

    result: list[SeriesPoint] = []
    for index, current in enumerate(points):
        result.append(current)
        if index == len(points) - 1:
            break
        following = points[index + 1]
        span = following.timestamp - current.timestamp
        if span <= gap:
            continue
        steps = math.floor(span / gap)
        for step in range(1, steps + 1):
            fraction = step / (steps + 1)
            values = {
                name: _lerp(getattr(current, name), getattr(following, name), fraction) for name in SERIES_FIELDS
            }
            result.append(
                replace(current, timestamp=current.timestamp + span * fraction, interpolated=True, **values)
            )
    return result


def _lerp(start: float | None, end: float | None, fraction: float) -> float | None:
    if start is None or end is None:
        return None
    return start + (end - start) * fraction


def summarize_readings(readings: Iterable[Reading]) -> ReadingStats:
    """Min, max, mean and population standard deviation; zeros when empty."""
    values = [reading.value for reading in readings]
    if not values:
        return ReadingStats(count=0, min=0.0, max=0.0, mean=0.0, std_dev=0.0)
    return ReadingStats(
        count=len(values),
        min=min(values),
        max=max(values),
        mean=statistics.fmean(values),
        std_dev=statistics.pstdev(values),
    )
