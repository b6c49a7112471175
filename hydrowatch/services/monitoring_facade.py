"""
Monitoring Facade
=================
The single interface presentation code talks to. Composes the crop, sensor,
reading and alert repositories, the threshold manager and the polling
coordinator into one read model:

- ``loading`` is the OR of every sub-resource's loading flag
- ``error`` is the first non-null sub-error, checked in the order crops,
  sensors, readings, alerts, real-time, thresholds
- the monitored sensor ids are derived from the selected crop and the sensor
  list whenever either changes
- every new non-empty snapshot triggers an alert reload, since new readings
  may have produced new backend-side alerts
"""

from __future__ import annotations

import logging
from typing import Any

from pydantic import ValidationError as PayloadValidationError

from hydrowatch.domain.exceptions import HydroWatchError
from hydrowatch.domain.series import ReadingStats, SeriesPoint, merge_series, summarize_readings
from hydrowatch.domain.snapshot import SensorSnapshot
from hydrowatch.domain.state import MonitoringState, derive_sensor_ids
from hydrowatch.domain.thresholds import ThresholdRange
from hydrowatch.enums.common import CanonicalSensorType, TimeRange
from hydrowatch.enums.events import MonitoringEvent
from hydrowatch.schemas.resources import Alert, Crop, Reading, Sensor
from hydrowatch.services.polling_coordinator import PollingCoordinator
from hydrowatch.services.threshold_manager import BulkThresholdReport, ThresholdManager
from hydrowatch.utils.event_bus import EventBus
from infrastructure.api.ops.readings import HistoryQuery
from infrastructure.api.repositories.alerts import AlertRepository
from infrastructure.api.repositories.crops import CropRepository
from infrastructure.api.repositories.readings import ReadingRepository
from infrastructure.api.repositories.sensors import SensorRepository

logger = logging.getLogger(__name__)


class MonitoringFacade:
    """Aggregated monitoring read model and action surface."""

    def __init__(
        self,
        *,
        crops: CropRepository,
        sensors: SensorRepository,
        readings: ReadingRepository,
        alerts: AlertRepository,
        thresholds: ThresholdManager,
        coordinator: PollingCoordinator,
        state: MonitoringState,
        event_bus: EventBus,
    ) -> None:
        self._crops = crops
        self._sensors = sensors
        self._readings = readings
        self._alerts = alerts
        self._thresholds = thresholds
        self._coordinator = coordinator
        self._state = state
        self.event_bus = event_bus
        self._unsubscribers = [
            event_bus.subscribe(MonitoringEvent.SENSORS_CHANGED, self._on_sensors_changed),
            event_bus.subscribe(MonitoringEvent.SNAPSHOT_UPDATED, self._on_snapshot_updated),
        ]
        self._closed = False

    # ------------------------------------------------------------------
    # Read model
    # ------------------------------------------------------------------

    @property
    def crops(self) -> list[Crop]:
        return self._crops.items

    @property
    def selected_crop(self) -> Crop | None:
        return self._state.selected_crop

    @property
    def sensors(self) -> list[Sensor]:
        return self._sensors.items

    @property
    def selected_sensor(self) -> Sensor | None:
        return self._sensors.selected

    @property
    def readings(self) -> list[Reading]:
        return self._readings.items

    @property
    def alerts(self) -> list[Alert]:
        return self._alerts.items

    @property
    def real_time_data(self) -> dict[int, SensorSnapshot]:
        return self._state.real_time_data

    @property
    def thresholds(self) -> dict[CanonicalSensorType, ThresholdRange]:
        return self._state.thresholds

    @property
    def sensor_ids(self) -> tuple[int, ...]:
        return self._state.monitored_sensor_ids

    @property
    def is_monitoring(self) -> bool:
        return self._coordinator.is_monitoring

    @property
    def time_range(self) -> TimeRange:
        return self._state.time_range

    @property
    def loading(self) -> bool:
        return (
            self._crops.loading
            or self._sensors.loading
            or self._readings.loading
            or self._alerts.loading
            or self._coordinator.loading
            or self._thresholds.loading
        )

    @property
    def error(self) -> str | None:
        return (
            self._crops.error
            or self._sensors.error
            or self._readings.error
            or self._alerts.error
            or self._coordinator.error
            or self._thresholds.error
        )

    def view(self) -> dict[str, Any]:
        """The whole read model as plain data."""
        return {
            "crops": [crop.to_dict() for crop in self.crops],
            "selected_crop": self.selected_crop.to_dict() if self.selected_crop else None,
            "sensors": [sensor.to_dict() for sensor in self.sensors],
            "selected_sensor": self.selected_sensor.to_dict() if self.selected_sensor else None,
            "readings": [reading.to_dict() for reading in self.readings],
            "alerts": [alert.to_dict() for alert in self.alerts],
            "real_time_data": {sensor_id: snap.to_dict() for sensor_id, snap in self.real_time_data.items()},
            "thresholds": {str(kind): rng.to_dict() for kind, rng in self.thresholds.items()},
            "sensor_ids": list(self.sensor_ids),
            "loading": self.loading,
            "error": self.error,
            "is_monitoring": self.is_monitoring,
            "time_range": self.time_range.value,
        }

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------

    def load_initial_data(self) -> None:
        """Unscoped first load: crops, all sensors and the user's alerts."""
        self._crops.list()
        self._sensors.list()
        self._alerts.list_mine()

    def close(self) -> None:
        if self._closed:
            return
        self._closed = True
        self._coordinator.close()
        for unsubscribe in self._unsubscribers:
            unsubscribe()
        self._unsubscribers.clear()

    def __enter__(self) -> MonitoringFacade:
        return self

    def __exit__(self, *exc_info) -> None:
        self.close()

    # ------------------------------------------------------------------
    # Derived state
    # ------------------------------------------------------------------

    def _sync_sensor_ids(self) -> None:
        sensor_ids = derive_sensor_ids(self._state.selected_crop, self._sensors.items)
        if sensor_ids != self._state.monitored_sensor_ids:
            self._state.monitored_sensor_ids = sensor_ids
            logger.debug("Monitored sensors now %s", list(sensor_ids))

    def _on_sensors_changed(self, _payload: Any) -> None:
        self._sync_sensor_ids()

    def _on_snapshot_updated(self, payload: Any) -> None:
        if payload and payload.get("sensor_ids"):
            self._alerts.list_mine()

    # ------------------------------------------------------------------
    # Crops
    # ------------------------------------------------------------------

    def fetch_user_crops(self) -> list[Crop]:
        return self._crops.list()

    def fetch_crop_by_id(self, crop_id: int) -> Crop | None:
        return self._crops.get_by_id(crop_id)

    def create_crop(self, data: Any) -> Crop | None:
        return self._crops.create(data)

    def update_crop(self, crop_id: int, data: Any) -> Crop | None:
        crop = self._crops.update(crop_id, data)
        if crop is not None and self._state.crop_id == crop_id:
            self._state.selected_crop = crop
        return crop

    def delete_crop(self, crop_id: int) -> bool:
        deleted = self._crops.delete(crop_id)
        if deleted and self._state.crop_id == crop_id:
            self.select_crop(None)
        return deleted

    def select_crop(self, crop: Crop | int | None) -> Crop | None:
        """
        Change the selected crop. This is the only action that triggers the
        crop-scoped sensor, alert and threshold loads.
        """
        if isinstance(crop, int):
            crop = self._crops.find(crop) or self._crops.get_by_id(crop)
            if crop is None:
                return None

        previous_id = self._state.crop_id
        self._state.selected_crop = crop
        self.event_bus.publish(MonitoringEvent.CROP_SELECTED, {"crop_id": crop.id if crop else None})

        if crop is None:
            self._sync_sensor_ids()
            self._thresholds.reset_to_defaults()
            logger.info("Crop selection cleared")
            return None

        logger.info("Crop %s selected", crop.id)
        if crop.id != previous_id:
            # Thresholds are crop-scoped; types the new crop leaves out fall back to defaults
            self._thresholds.reset_to_defaults()
        self._sensors.list_by_crop(crop.id)
        self._alerts.list_by_crop(crop.id)
        self._thresholds.load_thresholds(crop.id)
        self._sync_sensor_ids()
        return crop

    # ------------------------------------------------------------------
    # Sensors
    # ------------------------------------------------------------------

    def fetch_all_sensors(self) -> list[Sensor]:
        return self._sensors.list()

    def fetch_user_sensors(self) -> list[Sensor]:
        return self._sensors.list_mine()

    def fetch_sensor_by_id(self, sensor_id: int) -> Sensor | None:
        return self._sensors.get_by_id(sensor_id)

    def fetch_sensors_by_crop_id(self, crop_id: int) -> list[Sensor]:
        return self._sensors.list_by_crop(crop_id)

    def select_sensor(self, sensor: Sensor | None) -> None:
        self._sensors.select(sensor)

    def create_sensor(self, data: Any) -> Sensor | None:
        return self._sensors.create(data)

    def update_sensor(self, sensor_id: int, data: Any) -> Sensor | None:
        return self._sensors.update(sensor_id, data)

    def delete_sensor(self, sensor_id: int) -> bool:
        return self._sensors.delete(sensor_id)

    def add_sensor_to_crop(self, crop_id: int, sensor_id: int, thresholds: Any = None) -> bool:
        added = self._sensors.associate_to_crop(crop_id, sensor_id, thresholds)
        if added:
            self._refresh_selected_crop_sensors(crop_id)
        return added

    def remove_sensor_from_crop(self, crop_id: int, sensor_id: int) -> bool:
        removed = self._sensors.disassociate_from_crop(crop_id, sensor_id)
        if removed:
            self._refresh_selected_crop_sensors(crop_id)
        return removed

    def remove_sensor_and_delete(self, crop_id: int, sensor_id: int) -> bool:
        return self._sensors.disassociate_and_delete(crop_id, sensor_id)

    def create_sensor_and_associate_to_crop(self, crop_id: int, data: Any) -> Sensor | None:
        return self._sensors.create_and_associate(crop_id, data)

    def _refresh_selected_crop_sensors(self, crop_id: int) -> None:
        # Associations changed server-side; the derived sensor ids follow the reload
        if self._state.crop_id == crop_id:
            self._sensors.list_by_crop(crop_id)

    # ------------------------------------------------------------------
    # Readings
    # ------------------------------------------------------------------

    def fetch_readings_by_crop_id(self, crop_id: int) -> list[Reading]:
        return self._readings.list_by_crop(crop_id)

    def fetch_reading_by_id(self, reading_id: int) -> Reading | None:
        return self._readings.get_by_id(reading_id)

    def fetch_reading_history(self, query: HistoryQuery) -> list[Reading]:
        return self._readings.history(query)

    def create_reading(self, data: Any) -> Reading | None:
        return self._readings.create(data)

    def process_batch_readings(self, data: Any) -> list[Reading]:
        return self._readings.create_batch(data)

    def get_readings_by_crop_id(self, crop_id: int | None) -> list[Reading]:
        """
        Best-effort, unwindowed readings of a crop. Never raises and never
        touches the shared error state; failures yield an empty list.
        """
        if crop_id is None:
            return []
        try:
            return self._readings.fetch_by_crop(crop_id)
        except (HydroWatchError, PayloadValidationError) as exc:
            logger.warning("Could not load readings of crop %s: %s", crop_id, exc)
            return []

    # ------------------------------------------------------------------
    # Alerts
    # ------------------------------------------------------------------

    def fetch_user_alerts(self) -> list[Alert]:
        return self._alerts.list_mine()

    def fetch_alerts_by_crop_id(self, crop_id: int) -> list[Alert]:
        return self._alerts.list_by_crop(crop_id)

    def fetch_alert_by_id(self, alert_id: int) -> Alert | None:
        return self._alerts.get_by_id(alert_id)

    def delete_alert(self, alert_id: int) -> bool:
        return self._alerts.delete(alert_id)

    # ------------------------------------------------------------------
    # Monitoring
    # ------------------------------------------------------------------

    def start_monitoring(self) -> bool:
        return self._coordinator.start_monitoring()

    def stop_monitoring(self) -> bool:
        return self._coordinator.stop_monitoring()

    def change_time_range(self, time_range: TimeRange | str) -> bool:
        return self._coordinator.change_time_range(time_range)

    def refresh_now(self) -> bool:
        """Manually trigger one fetch cycle (still subject to spacing and re-entrancy)."""
        return self._coordinator.fetch_latest_readings()

    def monitoring_status(self) -> dict[str, Any]:
        return self._coordinator.status()

    # ------------------------------------------------------------------
    # Thresholds
    # ------------------------------------------------------------------

    def load_thresholds(self, crop_id: int | None = None) -> bool:
        return self._thresholds.load_thresholds(crop_id if crop_id is not None else self._state.crop_id)

    def update_threshold(self, crop_id: int, sensor_id: int, sensor_type: str, thresholds: Any) -> bool:
        return self._thresholds.update_threshold(crop_id, sensor_id, sensor_type, thresholds)

    def update_all_thresholds(self, crop_id: int, new_thresholds: dict[Any, Any]) -> BulkThresholdReport:
        return self._thresholds.update_all_thresholds(crop_id, new_thresholds)

    # ------------------------------------------------------------------
    # Derived views
    # ------------------------------------------------------------------

    def chart_series(self, *, include_readings: bool = False) -> list[SeriesPoint]:
        """Merged multi-series view of the live snapshot (optionally plus loaded readings)."""
        readings = self._readings.items if include_readings else ()
        return merge_series(self._state.real_time_data, self._sensors.items, readings)

    def reading_statistics(self, sensor_id: int | None = None) -> ReadingStats:
        """Statistics over the loaded readings, optionally for one sensor."""
        readings = self._readings.items
        if sensor_id is not None:
            readings = [reading for reading in readings if reading.sensor_id == sensor_id]
        return summarize_readings(readings)
