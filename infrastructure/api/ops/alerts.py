"""Alert endpoints: the user's alerts, per-crop alerts and deletion."""

from __future__ import annotations

from infrastructure.api.client import ApiResponse
from infrastructure.api.ops.base import ApiOperations


class AlertOperations(ApiOperations):
    """Backend operations for Alert entity. Alerts are created server-side only."""

    def list_mine(self) -> ApiResponse:
        return self._client.get("/alerts/user")

    def list_by_crop(self, crop_id: int) -> ApiResponse:
        return self._client.get(f"/alerts/crop/{crop_id}")

    def get_by_id(self, alert_id: int) -> ApiResponse:
        return self._client.get(f"/alerts/{alert_id}")

    def delete(self, alert_id: int) -> ApiResponse:
        return self._client.delete(f"/alerts/{alert_id}")
