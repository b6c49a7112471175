"""Per-crop sensor threshold endpoints."""

from __future__ import annotations

from collections.abc import Mapping
from typing import Any

from hydrowatch.domain.thresholds import ThresholdRange
from infrastructure.api.client import ApiResponse
from infrastructure.api.ops.base import ApiOperations


def threshold_params(thresholds: Any) -> dict[str, float]:
    """
    Render thresholds as the backend's query parameters.

    Accepts a ThresholdRange, a ``{"min", "max"}`` mapping, a
    ``{"minThreshold", "maxThreshold"}`` mapping or a pair. The range is
    validated here, so an invalid pair never reaches the network.

    Raises:
        ValidationError: if min >= max or a bound is not numeric
    """
    if isinstance(thresholds, Mapping) and "minThreshold" in thresholds:
        thresholds = (thresholds.get("minThreshold"), thresholds.get("maxThreshold"))
    threshold_range = ThresholdRange.from_value(thresholds)
    return {"minThreshold": threshold_range.min, "maxThreshold": threshold_range.max}


class ThresholdOperations(ApiOperations):
    """Backend operations for per-crop sensor thresholds."""

    def get_by_crop(self, crop_id: int) -> ApiResponse:
        return self._client.get(f"/sensors/crop/{crop_id}/thresholds")

    def get_by_crop_and_sensor(self, crop_id: int, sensor_id: int) -> ApiResponse:
        return self._client.get(f"/sensors/crop/{crop_id}/sensor/{sensor_id}/thresholds")

    def update(self, crop_id: int, sensor_id: int, thresholds: Any) -> ApiResponse:
        params = threshold_params(thresholds)
        return self._client.put(f"/sensors/crop/{crop_id}/sensor/{sensor_id}/thresholds", params=params)

    def list_mine(self) -> ApiResponse:
        """Thresholds of every crop owned by the current user."""
        return self._client.get("/sensors/user/thresholds")
