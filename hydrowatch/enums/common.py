"""
Common Enumerations
====================

Vocabulary shared by the domain, the repositories and the services.
"""

from enum import Enum


class CanonicalSensorType(str, Enum):
    """
    Normalized sensor vocabulary.
    Used by: sensor type normalizer, threshold manager, series merge
    """

    TEMPERATURE = "temperature"
    HUMIDITY = "humidity"
    EC = "ec"

    def __str__(self) -> str:
        return self.value


class TimeRange(str, Enum):
    """
    Lookback window of the polling coordinator.
    Used by: polling coordinator, CLI
    """

    ONE_HOUR = "1H"
    SIX_HOURS = "6H"
    ONE_DAY = "24H"

    def __str__(self) -> str:
        return self.value

    @classmethod
    def _missing_(cls, value: object) -> "TimeRange | None":
        if isinstance(value, str):
            upper = value.strip().upper()
            for member in cls:
                if member.value == upper:
                    return member
        return None


class TrendDirection(str, Enum):
    """Direction of a sensor trend."""

    UP = "up"
    DOWN = "down"
    STABLE = "stable"

    def __str__(self) -> str:
        return self.value


class CropStatus(str, Enum):
    """
    Crop lifecycle status.
    Used by: Crop schema
    """

    ACTIVE = "active"
    PAUSED = "paused"
    ALERT = "alert"
    COMPLETED = "completed"

    def __str__(self) -> str:
        return self.value


class AlertSeverity(str, Enum):
    """
    Alert severity levels produced by the backend.
    Used by: Alert schema
    """

    CRITICAL = "critical"
    WARNING = "warning"
    INFO = "info"

    def __str__(self) -> str:
        return self.value
