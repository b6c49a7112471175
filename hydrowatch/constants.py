"""
Monitoring Constants
====================

Centralized constants for the monitoring layer, organized by concern.

Usage:
    from hydrowatch.constants import Intervals, Limits
    from hydrowatch.constants import DEFAULT_THRESHOLDS
"""

from hydrowatch.enums.common import CanonicalSensorType, TimeRange

# =============================================================================
# Timing Constants (seconds unless otherwise noted)
# =============================================================================


class Timeouts:
    """Timeout values for network operations."""

    HTTP_REQUEST_TIMEOUT = 8  # seconds
    SENSOR_DELETE_SETTLE = 0.5  # seconds between detach and delete
    TIMER_JOIN_TIMEOUT = 5.0  # seconds


class Intervals:
    """Polling intervals."""

    POLL_DEFAULT = 15.0  # seconds, coordinator default
    POLL_PRODUCTION = 60.0  # seconds, used by the facade
    MIN_FETCH_SPACING = 5.0  # seconds between two fetch cycles
    SERIES_GAP_MINUTES = 15  # interpolation step for merged series


class Limits:
    """Query limits."""

    HISTORY_SAMPLES = 100


# =============================================================================
# Sensor vocabulary
# =============================================================================

DISPLAY_UNITS: dict[CanonicalSensorType, str] = {
    CanonicalSensorType.TEMPERATURE: "°C",
    CanonicalSensorType.HUMIDITY: "%",
    CanonicalSensorType.EC: "PPM",
}

# Default (min, max) per canonical type, used until the backend supplies values
DEFAULT_THRESHOLDS: dict[CanonicalSensorType, tuple[float, float]] = {
    CanonicalSensorType.TEMPERATURE: (18.0, 26.0),
    CanonicalSensorType.HUMIDITY: (60.0, 80.0),
    CanonicalSensorType.EC: (500.0, 1500.0),
}

TIME_RANGE_HOURS: dict[TimeRange, int] = {
    TimeRange.ONE_HOUR: 1,
    TimeRange.SIX_HOURS: 6,
    TimeRange.ONE_DAY: 24,
}

# =============================================================================
# User-facing labels
# =============================================================================

TREND_STABLE_LABEL = "Estable"
TREND_LAST_HOUR_LABEL = "última hora"
SENSOR_DELETED_MESSAGE = "Sensor eliminado correctamente."
