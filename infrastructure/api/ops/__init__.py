"""Endpoint operations: one class per backend resource, one method per route."""

from infrastructure.api.ops.alerts import AlertOperations
from infrastructure.api.ops.crops import CropOperations
from infrastructure.api.ops.readings import HistoryQuery, ReadingOperations
from infrastructure.api.ops.sensors import SensorOperations
from infrastructure.api.ops.thresholds import ThresholdOperations, threshold_params

__all__ = [
    "AlertOperations",
    "CropOperations",
    "HistoryQuery",
    "ReadingOperations",
    "SensorOperations",
    "ThresholdOperations",
    "threshold_params",
]
