from __future__ import annotations

import logging
from dataclasses import dataclass

from hydrowatch.config import MonitorConfig
from hydrowatch.domain.state import MonitoringState
from hydrowatch.enums.common import TimeRange
from hydrowatch.services.monitoring_facade import MonitoringFacade
from hydrowatch.services.polling_coordinator import PollingCoordinator
from hydrowatch.services.threshold_manager import ThresholdManager
from hydrowatch.utils.event_bus import EventBus
from infrastructure.api.client import ApiClient
from infrastructure.api.ops.alerts import AlertOperations
from infrastructure.api.ops.crops import CropOperations
from infrastructure.api.ops.readings import ReadingOperations
from infrastructure.api.ops.sensors import SensorOperations
from infrastructure.api.ops.thresholds import ThresholdOperations
from infrastructure.api.repositories.alerts import AlertRepository
from infrastructure.api.repositories.crops import CropRepository
from infrastructure.api.repositories.readings import ReadingRepository
from infrastructure.api.repositories.sensors import SensorRepository

logger = logging.getLogger(__name__)


@dataclass
class MonitoringContainer:
    """Owns the object graph of one monitoring session."""

    config: MonitorConfig
    client: ApiClient
    event_bus: EventBus
    state: MonitoringState
    facade: MonitoringFacade

    @classmethod
    def build(cls, config: MonitorConfig, *, client: ApiClient | None = None) -> MonitoringContainer:
        """Construct the container with all dependencies.

        Args:
            config: Monitoring configuration
            client: Pre-built API client (tests inject a stub here)
        """
        client = client or ApiClient(config.api_url, timeout=config.api_timeout)
        event_bus = EventBus()
        state = MonitoringState(time_range=TimeRange(config.time_range))

        reading_ops = ReadingOperations(client)
        sensor_ops = SensorOperations(client, settle_delay=config.sensor_delete_settle)

        crops = CropRepository(CropOperations(client), event_bus=event_bus)
        sensors = SensorRepository(sensor_ops, reading_ops, event_bus=event_bus)
        readings = ReadingRepository(reading_ops, event_bus=event_bus)
        alerts = AlertRepository(AlertOperations(client), event_bus=event_bus)

        thresholds = ThresholdManager(ThresholdOperations(client), sensor_ops, state, event_bus=event_bus)
        coordinator = PollingCoordinator(
            readings,
            sensors,
            state,
            interval_s=config.poll_interval,
            min_spacing_s=config.min_fetch_spacing,
            history_limit=config.history_limit,
            event_bus=event_bus,
        )

        facade = MonitoringFacade(
            crops=crops,
            sensors=sensors,
            readings=readings,
            alerts=alerts,
            thresholds=thresholds,
            coordinator=coordinator,
            state=state,
            event_bus=event_bus,
        )
        logger.info("Monitoring container built for %s", config.api_url)
        return cls(config=config, client=client, event_bus=event_bus, state=state, facade=facade)

    def shutdown(self) -> None:
        """Release external resources before process exit."""
        self.facade.close()
        self.client.close()
        self.event_bus.clear()


def build_monitoring_facade(config: MonitorConfig, *, client: ApiClient | None = None) -> MonitoringFacade:
    """Wire a ready-to-use facade from configuration."""
    return MonitoringContainer.build(config, client=client).facade
