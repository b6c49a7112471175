"""Event topics published on the monitoring EventBus."""

from enum import Enum


class MonitoringEvent(str, Enum):
    """
    Topics published by repositories and services.

    Payloads are plain dicts; see the publishing call sites for keys.
    """

    CROPS_CHANGED = "crops_changed"
    SENSORS_CHANGED = "sensors_changed"
    READINGS_CHANGED = "readings_changed"
    ALERTS_CHANGED = "alerts_changed"
    CROP_SELECTED = "crop_selected"
    SNAPSHOT_UPDATED = "snapshot_updated"
    THRESHOLDS_CHANGED = "thresholds_changed"
    MONITORING_STARTED = "monitoring_started"
    MONITORING_STOPPED = "monitoring_stopped"

    def __str__(self) -> str:
        return self.value
