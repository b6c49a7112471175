"""
Domain Layer
============
Value objects and pure functions of the monitoring layer.
"""

from hydrowatch.domain.exceptions import (
    ApiError,
    ConfigurationError,
    ExternalServiceError,
    HydroWatchError,
    NotFoundError,
    ServiceError,
    ValidationError,
)
from hydrowatch.domain.sensor_types import display_unit, normalize_sensor_type
from hydrowatch.domain.series import ReadingStats, SeriesPoint, merge_series, summarize_readings
from hydrowatch.domain.snapshot import SensorSnapshot
from hydrowatch.domain.state import MonitoringState, derive_sensor_ids
from hydrowatch.domain.thresholds import ThresholdRange, default_thresholds
from hydrowatch.domain.trend import Trend, calculate_trend

__all__ = [
    "ApiError",
    "ConfigurationError",
    "ExternalServiceError",
    "HydroWatchError",
    "MonitoringState",
    "NotFoundError",
    "ReadingStats",
    "SensorSnapshot",
    "SeriesPoint",
    "ServiceError",
    "ThresholdRange",
    "Trend",
    "ValidationError",
    "calculate_trend",
    "default_thresholds",
    "derive_sensor_ids",
    "display_unit",
    "merge_series",
    "normalize_sensor_type",
    "summarize_readings",
]
