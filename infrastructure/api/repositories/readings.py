"""Reading repository. Readings are immutable, so there is no update or delete."""

from __future__ import annotations

import logging
from typing import Any

from hydrowatch.enums.events import MonitoringEvent
from hydrowatch.schemas.resources import Reading, parse_many, parse_one
from infrastructure.api.ops.readings import HistoryQuery, ReadingOperations
from infrastructure.api.repositories.base import ResourceRepository

logger = logging.getLogger(__name__)


class ReadingRepository(ResourceRepository[Reading]):
    """Repository facade for reading operations. Readings are immutable: no update or delete."""

    resource_name = "readings"
    change_event = MonitoringEvent.READINGS_CHANGED

    _backend: ReadingOperations

    def list(self, crop_id: int) -> list[Reading]:
        return self.list_by_crop(crop_id)

    def list_by_crop(self, crop_id: int) -> list[Reading]:
        def load() -> list[Reading]:
            readings = parse_many(Reading, self._backend.list_by_crop(crop_id).data)
            self._replace_items(readings)
            return readings

        return self._guarded("crop", f"load readings of crop {crop_id}", load, [], lambda: list(self.items))

    def fetch_by_crop(self, crop_id: int) -> list[Reading]:
        """All readings of a crop without touching ``items``; failures propagate."""
        return parse_many(Reading, self._backend.list_by_crop(crop_id).data)

    def get_by_id(self, reading_id: int) -> Reading | None:
        def load() -> Reading | None:
            reading = parse_one(Reading, self._backend.get_by_id(reading_id).data)
            self.selected = reading
            return reading

        return self._execute(f"load reading {reading_id}", load, None)

    def history(self, query: HistoryQuery) -> list[Reading]:
        """Windowed history of one sensor, newest first. Does not touch ``items``."""
        return self._execute(f"load history of sensor {query.sensor_id}", lambda: self.fetch_history(query), [])

    def fetch_history(self, query: HistoryQuery) -> list[Reading]:
        """
        Like history(), but failures propagate to the caller.

        Raises:
            ApiError: if the request fails
            pydantic.ValidationError: if a reading payload is malformed
        """
        readings = parse_many(Reading, self._backend.history(query).data)
        return sorted(readings, key=lambda reading: reading.timestamp, reverse=True)

    def create(self, data: Any) -> Reading | None:
        def submit() -> Reading | None:
            reading = parse_one(Reading, self._backend.create(data).data)
            if reading is not None:
                self._append(reading)
            return reading

        return self._execute("create reading", submit, None)

    def create_batch(self, data: Any) -> list[Reading]:
        """Submit a batch; returns the readings the server echoed back (possibly none)."""

        def submit() -> list[Reading]:
            response = self._backend.create_batch(data)
            created = parse_many(Reading, response.data) if isinstance(response.data, list) else []
            if created:
                self._replace_items([*self.items, *created])
            logger.info("Batch ingestion accepted: %s", response.message or f"{len(created)} readings")
            return created

        return self._execute("submit reading batch", submit, [])
