"""Stateful monitoring services: thresholds, polling and the aggregation facade."""

from hydrowatch.services.container import MonitoringContainer, build_monitoring_facade
from hydrowatch.services.monitoring_facade import MonitoringFacade
from hydrowatch.services.polling_coordinator import PollingCoordinator, PollingTimer
from hydrowatch.services.threshold_manager import BulkThresholdReport, ThresholdManager

__all__ = [
    "BulkThresholdReport",
    "MonitoringContainer",
    "MonitoringFacade",
    "PollingCoordinator",
    "PollingTimer",
    "ThresholdManager",
    "build_monitoring_facade",
]
