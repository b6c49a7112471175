"""
Enums Module
============

Enumeration types for the monitoring layer.
"""

from hydrowatch.enums.common import (
    AlertSeverity,
    CanonicalSensorType,
    CropStatus,
    TimeRange,
    TrendDirection,
)
from hydrowatch.enums.events import MonitoringEvent

__all__ = [
    "AlertSeverity",
    "CanonicalSensorType",
    "CropStatus",
    "MonitoringEvent",
    "TimeRange",
    "TrendDirection",
]
