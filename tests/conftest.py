"""
Shared test fixtures for the hydrowatch test suite.

Provides:
- StubApiClient: routes (method, path) to canned bodies, records every call
- Repository, service and facade factories wired to the stub
- Helpers for building backend-shaped reading payloads

Usage:
    def test_example(stub_api, sensor_repo):
        stub_api.route("GET", "/sensors", [{"id": 1, "sensorType": "temp"}])
        assert sensor_repo.list()[0].id == 1
"""

from __future__ import annotations

import logging
from datetime import datetime, timedelta, timezone
from typing import Any, Callable

import pytest

from hydrowatch.domain.state import MonitoringState
from hydrowatch.services.monitoring_facade import MonitoringFacade
from hydrowatch.services.polling_coordinator import PollingCoordinator
from hydrowatch.services.threshold_manager import ThresholdManager
from hydrowatch.utils.event_bus import EventBus
from infrastructure.api.client import ApiResponse, unwrap_envelope
from infrastructure.api.ops import (
    AlertOperations,
    CropOperations,
    ReadingOperations,
    SensorOperations,
    ThresholdOperations,
)
from infrastructure.api.repositories import AlertRepository, CropRepository, ReadingRepository, SensorRepository

# ---------------------------------------------------------------------------
# Logging: keep test output clean
# ---------------------------------------------------------------------------
logging.getLogger("infrastructure").setLevel(logging.WARNING)
logging.getLogger("hydrowatch").setLevel(logging.WARNING)

NOW = datetime(2026, 1, 15, 12, 0, tzinfo=timezone.utc)


class StubApiClient:
    """
    In-memory stand-in for ApiClient.

    A route value may be a body (passed through the real envelope normalizer),
    an exception instance (raised), or a callable ``(params, json) -> body``.
    A list of values is consumed one per call, the last one repeating.
    """

    def __init__(self) -> None:
        self.routes: dict[tuple[str, str], list[Any]] = {}
        self.calls: list[dict[str, Any]] = []

    def route(self, method: str, path: str, *responses: Any) -> None:
        """Register one or more responses; several responses are served in order."""
        self.routes[(method.upper(), path)] = list(responses)

    def calls_to(self, method: str, path: str) -> list[dict[str, Any]]:
        return [call for call in self.calls if call["method"] == method.upper() and call["path"] == path]

    def request(self, method: str, path: str, *, params: dict | None = None, json: Any = None) -> ApiResponse:
        key = (method.upper(), path)
        self.calls.append({"method": key[0], "path": path, "params": params, "json": json})
        if key not in self.routes:
            raise AssertionError(f"Unexpected request {method} {path}")

        queue = self.routes[key]
        value = queue.pop(0) if len(queue) > 1 else queue[0]

        if isinstance(value, BaseException):
            raise value
        if callable(value):
            value = value(params, json)
        return unwrap_envelope(value)

    def get(self, path: str, *, params: dict | None = None) -> ApiResponse:
        return self.request("GET", path, params=params)

    def post(self, path: str, *, json: Any = None, params: dict | None = None) -> ApiResponse:
        return self.request("POST", path, params=params, json=json)

    def put(self, path: str, *, json: Any = None, params: dict | None = None) -> ApiResponse:
        return self.request("PUT", path, params=params, json=json)

    def delete(self, path: str, *, params: dict | None = None) -> ApiResponse:
        return self.request("DELETE", path, params=params)

    def close(self) -> None:
        return None


def reading_payload(
    sensor_id: int,
    value: float,
    minutes_ago: float,
    *,
    crop_id: int = 1,
    reading_id: int | None = None,
    sensor_type: str | None = None,
    unit: str | None = None,
    now: datetime = NOW,
) -> dict[str, Any]:
    """Backend-shaped reading (camelCase keys, ISO timestamp with Z suffix)."""
    timestamp = now - timedelta(minutes=minutes_ago)
    payload: dict[str, Any] = {
        "id": reading_id,
        "sensorId": sensor_id,
        "cropId": crop_id,
        "readingValue": value,
        "readingDate": timestamp.strftime("%Y-%m-%dT%H:%M:%S.000Z"),
    }
    if sensor_type is not None:
        payload["sensorType"] = sensor_type
    if unit is not None:
        payload["unitOfMeasurement"] = unit
    return payload


class FakeClock:
    """Monotonic clock advanced manually."""

    def __init__(self, start: float = 1000.0) -> None:
        self.value = start

    def __call__(self) -> float:
        return self.value

    def advance(self, seconds: float) -> None:
        self.value += seconds


class ManualTimer:
    """PollingTimer replacement that never starts a thread; ticks are fired by the test."""

    instances: list["ManualTimer"] = []

    def __init__(self, interval_s: float, tick: Callable[[], Any], **_kwargs: Any) -> None:
        self.interval_s = interval_s
        self.tick = tick
        self.started = False
        self.cancelled = False
        ManualTimer.instances.append(self)

    def start(self) -> None:
        self.started = True

    def cancel(self, *, join: bool = False, timeout: float = 0) -> None:
        self.cancelled = True

    def fire(self) -> None:
        if not self.cancelled:
            self.tick()


# ========================== Transport Fixtures =============================


@pytest.fixture()
def stub_api():
    return StubApiClient()


@pytest.fixture()
def event_bus():
    return EventBus()


@pytest.fixture()
def state():
    return MonitoringState()


@pytest.fixture()
def clock():
    return FakeClock()


@pytest.fixture()
def manual_timers():
    ManualTimer.instances = []
    yield ManualTimer.instances
    ManualTimer.instances = []


# ========================== Repository Fixtures ===========================


@pytest.fixture()
def sensor_ops(stub_api):
    return SensorOperations(stub_api, settle_delay=0, sleep=lambda _seconds: None)


@pytest.fixture()
def crop_repo(stub_api, event_bus):
    return CropRepository(CropOperations(stub_api), event_bus=event_bus)


@pytest.fixture()
def sensor_repo(stub_api, sensor_ops, event_bus):
    return SensorRepository(sensor_ops, ReadingOperations(stub_api), event_bus=event_bus)


@pytest.fixture()
def reading_repo(stub_api, event_bus):
    return ReadingRepository(ReadingOperations(stub_api), event_bus=event_bus)


@pytest.fixture()
def alert_repo(stub_api, event_bus):
    return AlertRepository(AlertOperations(stub_api), event_bus=event_bus)


# ========================== Service Fixtures ==============================


@pytest.fixture()
def threshold_manager(stub_api, sensor_ops, state, event_bus):
    return ThresholdManager(ThresholdOperations(stub_api), sensor_ops, state, event_bus=event_bus)


@pytest.fixture()
def coordinator(reading_repo, sensor_repo, state, event_bus, clock, manual_timers):
    return PollingCoordinator(
        reading_repo,
        sensor_repo,
        state,
        interval_s=60.0,
        event_bus=event_bus,
        clock=clock,
        now=lambda: NOW,
        timer_factory=ManualTimer,
    )


@pytest.fixture()
def facade(crop_repo, sensor_repo, reading_repo, alert_repo, threshold_manager, coordinator, state, event_bus):
    monitoring = MonitoringFacade(
        crops=crop_repo,
        sensors=sensor_repo,
        readings=reading_repo,
        alerts=alert_repo,
        thresholds=threshold_manager,
        coordinator=coordinator,
        state=state,
        event_bus=event_bus,
    )
    yield monitoring
    monitoring.close()
