"""Stateful resource repositories over the backend endpoint operations."""

from infrastructure.api.repositories.alerts import AlertRepository
from infrastructure.api.repositories.base import ResourceRepository
from infrastructure.api.repositories.crops import CropRepository
from infrastructure.api.repositories.readings import ReadingRepository
from infrastructure.api.repositories.sensors import SensorRepository, reconstruct_sensors_from_readings

__all__ = [
    "AlertRepository",
    "CropRepository",
    "ReadingRepository",
    "ResourceRepository",
    "SensorRepository",
    "reconstruct_sensors_from_readings",
]
