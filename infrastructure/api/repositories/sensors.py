"""Sensor repository with the readings-based fallback for crops that lost their sensor rows."""

from __future__ import annotations

import logging
from collections.abc import Iterable
from typing import Any

from pydantic import ValidationError as PayloadValidationError

from hydrowatch.domain.exceptions import HydroWatchError
from hydrowatch.domain.sensor_types import display_unit, normalize_sensor_type
from hydrowatch.enums.events import MonitoringEvent
from hydrowatch.schemas.resources import Reading, Sensor, parse_many, parse_one
from infrastructure.api.ops.readings import ReadingOperations
from infrastructure.api.ops.sensors import SensorOperations
from infrastructure.api.repositories.base import ResourceRepository

logger = logging.getLogger(__name__)


def reconstruct_sensors_from_readings(readings: Iterable[Reading], crop_id: int) -> list[Sensor]:
    """
    Rebuild a minimal sensor list from a crop's readings.

    One sensor per distinct (sensor id, type, unit) tuple, in order of first
    appearance. The newest reading of each tuple fills the last-reading cache.
    Used when the backend lost the sensor-association rows but still serves
    historical readings.
    """
    grouped: dict[tuple[int, str, str], list[Reading]] = {}
    for reading in readings:
        key = (reading.sensor_id, reading.sensor_type or "", reading.unit or "")
        grouped.setdefault(key, []).append(reading)

    sensors = []
    for (sensor_id, sensor_type, unit), samples in grouped.items():
        canonical = normalize_sensor_type(sensor_type, unit)
        newest = max(samples, key=lambda reading: reading.timestamp)
        sensors.append(
            Sensor(
                id=sensor_id,
                sensor_type=canonical.value if canonical else sensor_type.lower(),
                unit=display_unit(canonical) if canonical else unit,
                crop_id=crop_id,
                last_reading=newest.value,
                last_reading_at=newest.timestamp,
            )
        )
    return sensors


class SensorRepository(ResourceRepository[Sensor]):
    """Repository facade for sensor operations and crop associations."""

    resource_name = "sensors"
    change_event = MonitoringEvent.SENSORS_CHANGED

    _backend: SensorOperations

    def __init__(self, backend: SensorOperations, readings: ReadingOperations | None = None, **kwargs: Any) -> None:
        super().__init__(backend, **kwargs)
        self._readings = readings

    # ------------------------------------------------------------------
    # Queries
    # ------------------------------------------------------------------

    def list(self) -> list[Sensor]:
        def load() -> list[Sensor]:
            sensors = parse_many(Sensor, self._backend.list().data)
            self._replace_items(sensors)
            return sensors

        return self._guarded("general", "load sensors", load, [], lambda: list(self.items))

    def list_mine(self) -> list[Sensor]:
        """Sensors owned by the current user; not stored in ``items``."""

        def load() -> list[Sensor]:
            return parse_many(Sensor, self._backend.list_mine().data)

        return self._guarded("user", "load user sensors", load, [], list)

    def get_by_id(self, sensor_id: int) -> Sensor | None:
        def load() -> Sensor | None:
            sensor = parse_one(Sensor, self._backend.get_by_id(sensor_id).data)
            self.selected = sensor
            return sensor

        return self._execute(f"load sensor {sensor_id}", load, None)

    def list_by_crop(self, crop_id: int, *, fallback: bool = True) -> list[Sensor]:
        """
        Sensors of one crop, with canonical types and the crop id back-filled.

        When the backend returns no sensors and ``fallback`` is set, the list is
        rebuilt from the crop's readings instead.
        """

        def load() -> list[Sensor]:
            sensors = parse_many(Sensor, self._backend.list_by_crop(crop_id).data)
            if not sensors and fallback:
                sensors = self.reconstruct_from_readings(crop_id)
            self._replace_items(sensors)
            return sensors

        return self._guarded("crop", f"load sensors of crop {crop_id}", load, [], lambda: list(self.items))

    def reconstruct_from_readings(self, crop_id: int) -> list[Sensor]:
        """Fallback branch of list_by_crop; a failed readings request yields []."""
        if self._readings is None:
            return []
        try:
            readings = parse_many(Reading, self._readings.list_by_crop(crop_id).data)
        except (HydroWatchError, PayloadValidationError) as exc:
            logger.warning("Sensor fallback for crop %s failed to load readings: %s", crop_id, exc)
            return []
        sensors = reconstruct_sensors_from_readings(readings, crop_id)
        if sensors:
            logger.info("Reconstructed %d sensors for crop %s from readings", len(sensors), crop_id)
        return sensors

    def for_crop(self, crop_id: int | None) -> list[Sensor]:
        """Loaded sensors whose owning crop is crop_id (no network call)."""
        if crop_id is None:
            return []
        return [sensor for sensor in self.items if sensor.crop_id == crop_id]

    # ------------------------------------------------------------------
    # Mutations
    # ------------------------------------------------------------------

    def create(self, data: Any) -> Sensor | None:
        def submit() -> Sensor | None:
            sensor = parse_one(Sensor, self._backend.create(data).data)
            if sensor is not None:
                self._append(sensor)
            return sensor

        return self._execute("create sensor", submit, None)

    def update(self, sensor_id: int, data: Any) -> Sensor | None:
        def submit() -> Sensor | None:
            sensor = parse_one(Sensor, self._backend.update(sensor_id, data).data)
            if sensor is not None:
                self._swap(sensor_id, sensor)
            return sensor

        return self._execute(f"update sensor {sensor_id}", submit, None)

    def delete(self, sensor_id: int) -> bool:
        def submit() -> bool:
            self._backend.delete(sensor_id)
            self._remove(sensor_id)
            return True

        return self._execute(f"delete sensor {sensor_id}", submit, False)

    def associate_to_crop(self, crop_id: int, sensor_id: int, thresholds: Any = None) -> bool:
        def submit() -> bool:
            self._backend.associate_to_crop(crop_id, sensor_id, thresholds)
            return True

        return self._execute(f"associate sensor {sensor_id} to crop {crop_id}", submit, False)

    def disassociate_from_crop(self, crop_id: int, sensor_id: int) -> bool:
        def submit() -> bool:
            self._backend.disassociate_from_crop(crop_id, sensor_id)
            return True

        return self._execute(f"detach sensor {sensor_id} from crop {crop_id}", submit, False)

    def disassociate_and_delete(self, crop_id: int, sensor_id: int) -> bool:
        def submit() -> bool:
            self._backend.disassociate_and_delete(crop_id, sensor_id)
            self._remove(sensor_id)
            return True

        return self._execute(f"remove and delete sensor {sensor_id}", submit, False)

    def create_and_associate(self, crop_id: int, data: Any) -> Sensor | None:
        def submit() -> Sensor | None:
            sensor = parse_one(Sensor, self._backend.create_and_associate(crop_id, data).data)
            if sensor is not None:
                if sensor.crop_id is None:
                    sensor = sensor.model_copy(update={"crop_id": crop_id})
                self._append(sensor)
            return sensor

        return self._execute(f"create sensor for crop {crop_id}", submit, None)
