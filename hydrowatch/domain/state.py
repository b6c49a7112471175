"""
Monitoring State
================
The explicit, owned state shared by the facade, the polling coordinator and
the threshold manager. One instance lives as long as its MonitoringFacade.

Writers:
    - selected_crop, monitored_sensor_ids: MonitoringFacade only
    - real_time_data, time_range: PollingCoordinator only
    - thresholds: ThresholdManager only

Collections are replaced wholesale, never mutated in place, so readers always
see a consistent value.
"""

from __future__ import annotations

from collections.abc import Iterable
from dataclasses import dataclass, field

from hydrowatch.domain.snapshot import SensorSnapshot
from hydrowatch.domain.thresholds import ThresholdRange, default_thresholds
from hydrowatch.enums.common import CanonicalSensorType, TimeRange
from hydrowatch.schemas.resources import Crop, Sensor


@dataclass
class MonitoringState:
    selected_crop: Crop | None = None
    monitored_sensor_ids: tuple[int, ...] = ()
    real_time_data: dict[int, SensorSnapshot] = field(default_factory=dict)
    thresholds: dict[CanonicalSensorType, ThresholdRange] = field(default_factory=default_thresholds)
    time_range: TimeRange = TimeRange.SIX_HOURS

    @property
    def crop_id(self) -> int | None:
        return self.selected_crop.id if self.selected_crop else None


def derive_sensor_ids(selected_crop: Crop | None, sensors: Iterable[Sensor]) -> tuple[int, ...]:
    """Ids of the sensors owned by the selected crop, in sensor-list order."""
    if selected_crop is None:
        return ()
    return tuple(sensor.id for sensor in sensors if sensor.crop_id == selected_crop.id)
