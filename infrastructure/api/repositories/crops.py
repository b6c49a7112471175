"""Crop repository."""

from __future__ import annotations

import logging
from typing import Any

from hydrowatch.enums.events import MonitoringEvent
from hydrowatch.schemas.resources import Crop, parse_many, parse_one
from infrastructure.api.ops.crops import CropOperations
from infrastructure.api.repositories.base import ResourceRepository

logger = logging.getLogger(__name__)


class CropRepository(ResourceRepository[Crop]):
    """Repository facade for crop operations."""

    resource_name = "crops"
    change_event = MonitoringEvent.CROPS_CHANGED

    _backend: CropOperations

    def list(self) -> list[Crop]:
        def load() -> list[Crop]:
            crops = parse_many(Crop, self._backend.list().data)
            self._replace_items(crops)
            return crops

        return self._guarded("list", "load crops", load, [], lambda: list(self.items))

    def get_by_id(self, crop_id: int) -> Crop | None:
        def load() -> Crop | None:
            crop = parse_one(Crop, self._backend.get_by_id(crop_id).data)
            self.selected = crop
            return crop

        return self._execute(f"load crop {crop_id}", load, None)

    def create(self, data: Any) -> Crop | None:
        def submit() -> Crop | None:
            crop = parse_one(Crop, self._backend.create(data).data)
            if crop is not None:
                self._append(crop)
            return crop

        return self._execute("create crop", submit, None)

    def update(self, crop_id: int, data: Any) -> Crop | None:
        def submit() -> Crop | None:
            crop = parse_one(Crop, self._backend.update(crop_id, data).data)
            if crop is not None:
                self._swap(crop_id, crop)
            return crop

        return self._execute(f"update crop {crop_id}", submit, None)

    def delete(self, crop_id: int) -> bool:
        def submit() -> bool:
            self._backend.delete(crop_id)
            self._remove(crop_id)
            return True

        return self._execute(f"delete crop {crop_id}", submit, False)
