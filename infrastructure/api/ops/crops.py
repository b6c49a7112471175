"""Crop CRUD endpoints."""

from __future__ import annotations

import logging
from typing import Any

from infrastructure.api.client import ApiResponse
from infrastructure.api.ops.base import ApiOperations, to_payload

logger = logging.getLogger(__name__)


class CropOperations(ApiOperations):
    """Backend operations for Crop entity."""

    def list(self) -> ApiResponse:
        return self._client.get("/crops")

    def get_by_id(self, crop_id: int) -> ApiResponse:
        return self._client.get(f"/crops/{crop_id}")

    def create(self, data: Any) -> ApiResponse:
        response = self._client.post("/crops", json=to_payload(data))
        logger.info("Crop created: %s", response.message or "ok")
        return response

    def update(self, crop_id: int, data: Any) -> ApiResponse:
        return self._client.put(f"/crops/{crop_id}", json=to_payload(data))

    def delete(self, crop_id: int) -> ApiResponse:
        response = self._client.delete(f"/crops/{crop_id}")
        logger.info("Crop %s deleted", crop_id)
        return response
