"""Sensor endpoints, crop association and the detach-then-delete flow."""

from __future__ import annotations

import logging
import time
from collections.abc import Callable, Mapping
from typing import Any

from hydrowatch.constants import SENSOR_DELETED_MESSAGE, Timeouts
from hydrowatch.domain.exceptions import ApiError, ServiceError
from hydrowatch.domain.sensor_types import display_unit, normalize_sensor_type
from infrastructure.api.client import ApiClient, ApiResponse
from infrastructure.api.ops.base import ApiOperations, to_payload
from infrastructure.api.ops.thresholds import threshold_params

logger = logging.getLogger(__name__)

SENSORS_FOUND_MESSAGE = "Sensores recuperados correctamente"
NO_SENSORS_MESSAGE = "No se encontraron sensores"
SENSOR_NOT_DELETED_MESSAGE = "El sensor no se eliminó correctamente"
SENSOR_DELETE_UNVERIFIED_MESSAGE = "No se pudo verificar la eliminación del sensor"


def normalize_crop_sensor(raw: Mapping[str, Any], crop_id: int) -> dict[str, Any]:
    """
    Canonicalize one sensor payload returned for a crop.

    The type becomes its canonical name (unknown types are kept lower-cased),
    the unit becomes the fixed display unit of that type, the id falls back to
    ``sensorId`` and a missing crop reference is back-filled.
    """
    original_type = str(raw.get("sensorType") or raw.get("type") or "").lower()
    canonical = normalize_sensor_type(original_type)
    sensor = dict(raw)
    sensor["id"] = raw.get("id") or raw.get("sensorId")
    sensor["sensorType"] = canonical.value if canonical else original_type
    if canonical:
        sensor["unitOfMeasurement"] = display_unit(canonical)
    else:
        sensor["unitOfMeasurement"] = raw.get("unitOfMeasurement") or raw.get("unit") or ""
    sensor["unit"] = sensor["unitOfMeasurement"]
    if sensor.get("cropId") is None and sensor.get("crop_id") is None:
        sensor["cropId"] = crop_id
    return sensor


class SensorOperations(ApiOperations):
    """Backend operations for Sensor entity and its crop associations."""

    def __init__(
        self,
        client: ApiClient,
        *,
        settle_delay: float = Timeouts.SENSOR_DELETE_SETTLE,
        sleep: Callable[[float], None] = time.sleep,
    ) -> None:
        super().__init__(client)
        self.settle_delay = settle_delay
        self._sleep = sleep

    def list(self) -> ApiResponse:
        return self._client.get("/sensors")

    def list_mine(self) -> ApiResponse:
        """Sensors of the current user; any unexpected body shape yields an empty list."""
        response = self._client.get("/sensors/user")
        if isinstance(response.data, list):
            return ApiResponse(data=response.data, message=response.message or SENSORS_FOUND_MESSAGE)
        if response.data is not None:
            logger.warning("Unexpected /sensors/user payload shape: %s", type(response.data).__name__)
            return ApiResponse(data=[], message=SENSORS_FOUND_MESSAGE)
        return ApiResponse(data=[], message=response.message or NO_SENSORS_MESSAGE)

    def get_by_id(self, sensor_id: int) -> ApiResponse:
        return self._client.get(f"/sensors/{sensor_id}")

    def list_by_crop(self, crop_id: int) -> ApiResponse:
        response = self._client.get(f"/sensors/crop/{crop_id}")
        raw_sensors = response.data if isinstance(response.data, list) else []
        sensors = [normalize_crop_sensor(raw, crop_id) for raw in raw_sensors if isinstance(raw, Mapping)]
        logger.debug("Normalized %d sensors for crop %s", len(sensors), crop_id)
        return ApiResponse(data=sensors, message=response.message)

    def create(self, data: Any) -> ApiResponse:
        return self._client.post("/sensors", json=to_payload(data))

    def update(self, sensor_id: int, data: Any) -> ApiResponse:
        return self._client.put(f"/sensors/{sensor_id}", json=to_payload(data))

    def delete(self, sensor_id: int) -> ApiResponse:
        return self._client.delete(f"/sensors/{sensor_id}")

    def associate_to_crop(self, crop_id: int, sensor_id: int, thresholds: Any = None) -> ApiResponse:
        """Attach a sensor to a crop, optionally with an initial (min, max) threshold."""
        if thresholds is None:
            return self._client.post(f"/sensors/crop/{crop_id}/sensor/{sensor_id}")
        params = threshold_params(thresholds)
        return self._client.post(f"/sensors/crop/{crop_id}/sensor/{sensor_id}/thresholds", params=params)

    def disassociate_from_crop(self, crop_id: int, sensor_id: int) -> ApiResponse:
        return self._client.delete(f"/sensors/crop/{crop_id}/sensor/{sensor_id}")

    def disassociate_and_delete(self, crop_id: int, sensor_id: int) -> ApiResponse:
        """
        Detach a sensor from its crop, delete it, then verify it is gone.

        The verification GET must fail with 404; a sensor that can still be
        fetched, or a verification that fails any other way, is an error.

        Raises:
            ApiError: if the detach or delete request fails
            ServiceError: if the deletion cannot be confirmed
        """
        logger.info("Detaching sensor %s from crop %s before deletion", sensor_id, crop_id)
        self.disassociate_from_crop(crop_id, sensor_id)

        # Give the backend time to commit the detach before deleting
        if self.settle_delay > 0:
            self._sleep(self.settle_delay)

        deleted = self.delete(sensor_id)

        try:
            self.get_by_id(sensor_id)
        except ApiError as exc:
            if exc.is_not_found:
                logger.info("Sensor %s deleted and verified", sensor_id)
                return ApiResponse(data=deleted.data, message=SENSOR_DELETED_MESSAGE)
            raise ServiceError(
                SENSOR_DELETE_UNVERIFIED_MESSAGE,
                detail={"sensor_id": sensor_id, "status": exc.status_code},
            ) from exc
        raise ServiceError(SENSOR_NOT_DELETED_MESSAGE, detail={"sensor_id": sensor_id})

    def create_and_associate(self, crop_id: int, data: Any) -> ApiResponse:
        """Create a sensor and attach it to a crop (with thresholds) in one call."""
        return self._client.post(f"/sensors/crop/{crop_id}/create-with-thresholds", json=to_payload(data))
