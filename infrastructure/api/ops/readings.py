"""Reading endpoints, including the windowed history query."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from typing import Any

from hydrowatch.constants import Limits
from hydrowatch.utils.time import to_api_timestamp
from infrastructure.api.client import ApiResponse
from infrastructure.api.ops.base import ApiOperations, to_payload


@dataclass(frozen=True)
class HistoryQuery:
    """Bounded history request for one sensor of one crop."""

    crop_id: int
    sensor_id: int
    start_date: datetime | None = None
    end_date: datetime | None = None
    limit: int = Limits.HISTORY_SAMPLES

    def to_params(self) -> dict[str, Any]:
        return {
            "cropId": self.crop_id,
            "sensorId": self.sensor_id,
            "startDate": to_api_timestamp(self.start_date) if self.start_date else None,
            "endDate": to_api_timestamp(self.end_date) if self.end_date else None,
            "limit": self.limit,
        }


class ReadingOperations(ApiOperations):
    """Backend operations for Reading entity. Readings are immutable once created."""

    def create(self, data: Any) -> ApiResponse:
        return self._client.post("/readings", json=to_payload(data))

    def create_batch(self, data: Any) -> ApiResponse:
        """Submit a batch ingestion payload (a list of readings or a batch object)."""
        if isinstance(data, (list, tuple)):
            payload: Any = [to_payload(item) for item in data]
        else:
            payload = to_payload(data)
        return self._client.post("/readings/batch", json=payload)

    def get_by_id(self, reading_id: int) -> ApiResponse:
        return self._client.get(f"/readings/{reading_id}")

    def list_by_crop(self, crop_id: int) -> ApiResponse:
        return self._client.get(f"/readings/crop/{crop_id}")

    def history(self, query: HistoryQuery) -> ApiResponse:
        return self._client.get("/readings/history", params=query.to_params())
