"""
Threshold Manager
=================
Loads and updates the per-crop (min, max) alerting boundaries of each
canonical sensor type.

State lives in ``MonitoringState.thresholds``, seeded with the built-in
defaults and replaced wholesale on every change. Failures are absorbed into
``error``; nothing raises to the caller.
"""

from __future__ import annotations

import logging
import threading
from collections.abc import Mapping
from dataclasses import dataclass, field
from typing import Any

from pydantic import ValidationError as PayloadValidationError

from hydrowatch.domain.exceptions import HydroWatchError, ValidationError
from hydrowatch.domain.sensor_types import normalize_sensor_type
from hydrowatch.domain.state import MonitoringState
from hydrowatch.domain.thresholds import ThresholdRange, default_thresholds
from hydrowatch.enums.common import CanonicalSensorType
from hydrowatch.enums.events import MonitoringEvent
from hydrowatch.schemas.resources import Sensor, SensorThreshold, parse_many
from hydrowatch.utils.event_bus import EventBus
from infrastructure.api.ops.sensors import SensorOperations
from infrastructure.api.ops.thresholds import ThresholdOperations

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class BulkThresholdReport:
    """
    Outcome of update_all_thresholds. There is no rollback: sensors listed in
    ``updated`` keep their new values even when others failed.
    """

    updated: tuple[int, ...] = ()
    failed: dict[int, str] = field(default_factory=dict)
    error: str | None = None

    @property
    def ok(self) -> bool:
        return self.error is None and not self.failed


class ThresholdManager:
    """Per-crop threshold configuration, mirrored into the shared monitoring state."""

    def __init__(
        self,
        backend: ThresholdOperations,
        sensors: SensorOperations,
        state: MonitoringState,
        *,
        event_bus: EventBus | None = None,
    ) -> None:
        self._backend = backend
        self._sensors = sensors
        self._state = state
        self._event_bus = event_bus
        self._lock = threading.Lock()
        self._load_in_flight = False
        self._pending = 0
        self.error: str | None = None

    @property
    def thresholds(self) -> dict[CanonicalSensorType, ThresholdRange]:
        return self._state.thresholds

    @property
    def loading(self) -> bool:
        return self._pending > 0

    def _begin(self) -> None:
        with self._lock:
            self._pending += 1

    def _end(self) -> None:
        with self._lock:
            self._pending -= 1

    def _commit(self, thresholds: dict[CanonicalSensorType, ThresholdRange], crop_id: int) -> None:
        self._state.thresholds = thresholds
        if self._event_bus is not None:
            self._event_bus.publish(
                MonitoringEvent.THRESHOLDS_CHANGED,
                {"crop_id": crop_id, "thresholds": {str(kind): rng.to_dict() for kind, rng in thresholds.items()}},
            )

    # ------------------------------------------------------------------
    # Load
    # ------------------------------------------------------------------

    def load_thresholds(self, crop_id: int | None) -> bool:
        """
        Fetch the crop's sensor thresholds and merge them into state.

        State is replaced only when at least one value differs from the current
        one; a call made while another load is in flight is dropped.

        Returns:
            True if the state changed
        """
        if crop_id is None:
            return False
        with self._lock:
            if self._load_in_flight:
                logger.debug("Threshold load already in flight, skipping crop %s", crop_id)
                return False
            self._load_in_flight = True

        self.error = None
        self._begin()
        try:
            entries = parse_many(SensorThreshold, self._backend.get_by_crop(crop_id).data)
            merged = dict(self._state.thresholds)
            for entry in entries:
                kind = normalize_sensor_type(entry.sensor_type)
                if kind is None or entry.min_threshold is None or entry.max_threshold is None:
                    continue
                try:
                    merged[kind] = ThresholdRange(min=entry.min_threshold, max=entry.max_threshold)
                except ValidationError as exc:
                    logger.warning("Ignoring backend threshold for %s on crop %s: %s", kind, crop_id, exc.message)

            # Last entry per type wins; compare the final map against current state
            changed = merged != self._state.thresholds

            if changed:
                self._commit(merged, crop_id)
                logger.info("Thresholds updated from backend for crop %s", crop_id)
            else:
                logger.debug("Thresholds for crop %s unchanged", crop_id)
            return changed
        except (HydroWatchError, PayloadValidationError) as exc:
            self.error = getattr(exc, "message", None) or "Failed to load thresholds."
            logger.warning("Failed to load thresholds for crop %s: %s", crop_id, exc)
            return False
        finally:
            self._end()
            with self._lock:
                self._load_in_flight = False

    # ------------------------------------------------------------------
    # Update
    # ------------------------------------------------------------------

    def update_threshold(self, crop_id: int, sensor_id: int, sensor_type: str, thresholds: Any) -> bool:
        """
        Push one sensor's threshold and mirror it locally on success.

        The range is validated before any request is sent.
        """
        self.error = None
        try:
            threshold_range = ThresholdRange.from_value(thresholds)
        except ValidationError as exc:
            self.error = exc.message
            return False

        self._begin()
        try:
            self._backend.update(crop_id, sensor_id, threshold_range)
        except HydroWatchError as exc:
            self.error = exc.message or "Failed to update threshold."
            logger.warning("Threshold update failed for sensor %s on crop %s: %s", sensor_id, crop_id, self.error)
            return False
        finally:
            self._end()

        kind = normalize_sensor_type(sensor_type)
        if kind is not None:
            self._commit({**self._state.thresholds, kind: threshold_range}, crop_id)
        return True

    def update_all_thresholds(self, crop_id: int, new_thresholds: Mapping[Any, Any]) -> BulkThresholdReport:
        """
        Apply a threshold per canonical type to every matching sensor of a crop.

        Every entry is validated before the first request. Sensors are updated
        one at a time; a failure is recorded and the remaining sensors are still
        attempted. Thresholds are always reloaded from the backend afterwards,
        so the final state is the server's view, not the input.
        """
        self.error = None
        validated: dict[CanonicalSensorType, ThresholdRange] = {}
        try:
            for key, value in new_thresholds.items():
                kind = normalize_sensor_type(str(key))
                if kind is None:
                    logger.warning("Ignoring threshold for unknown sensor type %r", key)
                    continue
                validated[kind] = ThresholdRange.from_value(value)
        except ValidationError as exc:
            self.error = exc.message
            return BulkThresholdReport(error=exc.message)

        updated: list[int] = []
        failed: dict[int, str] = {}
        first_error: str | None = None

        self._begin()
        try:
            try:
                sensors = parse_many(Sensor, self._sensors.list_by_crop(crop_id).data)
            except (HydroWatchError, PayloadValidationError) as exc:
                sensors = []
                first_error = getattr(exc, "message", None) or "Failed to load crop sensors."
                logger.warning("Bulk threshold update could not list sensors of crop %s: %s", crop_id, exc)

            for sensor in sensors:
                kind = normalize_sensor_type(sensor.sensor_type, sensor.unit)
                if kind is None or kind not in validated:
                    continue
                try:
                    self._backend.update(crop_id, sensor.id, validated[kind])
                    updated.append(sensor.id)
                except HydroWatchError as exc:
                    message = exc.message or "Failed to update threshold."
                    failed[sensor.id] = message
                    first_error = first_error or message
                    logger.warning("Threshold update failed for sensor %s on crop %s: %s", sensor.id, crop_id, message)
        finally:
            self._end()

        self.load_thresholds(crop_id)
        # The reload clears error; the bulk failure takes precedence
        if first_error is not None:
            self.error = first_error

        logger.info(
            "Bulk threshold update for crop %s: %d updated, %d failed", crop_id, len(updated), len(failed)
        )
        return BulkThresholdReport(updated=tuple(updated), failed=failed, error=first_error)

    def reset_to_defaults(self) -> None:
        """Drop backend-supplied values (e.g. when the selection is cleared)."""
        self._state.thresholds = default_thresholds()
