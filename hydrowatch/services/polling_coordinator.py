"""
Polling Coordinator
===================
Periodically re-fetches the recent history of every monitored sensor and
republishes a per-sensor real-time snapshot.

Features:
- Minimum spacing between fetch attempts (skipped ticks are dropped, not queued)
- At most one fetch cycle in flight per coordinator
- Sequential per-sensor requests, applied as one atomic map replace
- A failed cycle keeps the previous snapshot map untouched
- Single recurring timer thread, alive only while monitoring

The crop id and sensor ids are read from the shared MonitoringState, where the
facade derives them; the coordinator never receives them independently.
"""

from __future__ import annotations

import logging
import threading
import time
from collections.abc import Callable
from datetime import datetime, timedelta
from typing import Any

from pydantic import ValidationError as PayloadValidationError

from hydrowatch.constants import TIME_RANGE_HOURS, Intervals, Limits, Timeouts
from hydrowatch.domain.exceptions import HydroWatchError, ValidationError
from hydrowatch.domain.sensor_types import display_unit, normalize_sensor_type
from hydrowatch.domain.snapshot import SensorSnapshot
from hydrowatch.domain.state import MonitoringState
from hydrowatch.enums.common import TimeRange
from hydrowatch.enums.events import MonitoringEvent
from hydrowatch.utils.event_bus import EventBus
from hydrowatch.utils.time import utc_now
from infrastructure.api.ops.readings import HistoryQuery
from infrastructure.api.repositories.readings import ReadingRepository
from infrastructure.api.repositories.sensors import SensorRepository

logger = logging.getLogger(__name__)


class PollingTimer:
    """Recurring daemon timer: calls ``tick`` every ``interval_s`` until cancelled."""

    def __init__(self, interval_s: float, tick: Callable[[], Any], *, name: str = "HydroWatchPoller") -> None:
        self.interval_s = interval_s
        self._tick = tick
        self._stop_event = threading.Event()
        self._thread = threading.Thread(target=self._run, name=name, daemon=True)

    def start(self) -> None:
        self._thread.start()

    def cancel(self, *, join: bool = False, timeout: float = Timeouts.TIMER_JOIN_TIMEOUT) -> None:
        """Prevent future ticks. A tick already running is allowed to finish."""
        self._stop_event.set()
        if join and self._thread.is_alive() and threading.current_thread() is not self._thread:
            self._thread.join(timeout=timeout)

    @property
    def is_alive(self) -> bool:
        return self._thread.is_alive() and not self._stop_event.is_set()

    def _run(self) -> None:
        while not self._stop_event.wait(self.interval_s):
            try:
                self._tick()
            except Exception as exc:
                logger.exception("Polling tick raised unexpectedly: %s", exc)


class PollingCoordinator:
    """
    Scheduler for real-time sensor snapshots.

    State machine: Idle -> Polling -> Idle. ``start_monitoring`` runs one cycle
    immediately, then arms the timer; ``stop_monitoring`` only disarms it.
    """

    def __init__(
        self,
        readings: ReadingRepository,
        sensors: SensorRepository,
        state: MonitoringState,
        *,
        interval_s: float = Intervals.POLL_DEFAULT,
        min_spacing_s: float = Intervals.MIN_FETCH_SPACING,
        history_limit: int = Limits.HISTORY_SAMPLES,
        event_bus: EventBus | None = None,
        clock: Callable[[], float] = time.monotonic,
        now: Callable[[], datetime] = utc_now,
        timer_factory: Callable[..., PollingTimer] = PollingTimer,
    ) -> None:
        if interval_s <= 0:
            raise ValidationError(f"Polling interval must be positive, got {interval_s}")
        self._readings = readings
        self._sensors = sensors
        self._state = state
        self.interval_s = interval_s
        self.min_spacing_s = min_spacing_s
        self.history_limit = history_limit
        self._event_bus = event_bus
        self._clock = clock
        self._now = now
        self._timer_factory = timer_factory

        self._lock = threading.Lock()
        self._timer: PollingTimer | None = None
        self._in_flight = False
        self._last_fetch_at: float | None = None
        self._is_monitoring = False

        self.error: str | None = None
        self.last_success_at: datetime | None = None
        self.cycles_completed = 0
        self.cycles_skipped = 0
        self.cycles_failed = 0

    # -------------------------------------------------------------------------
    # Read model
    # -------------------------------------------------------------------------

    @property
    def real_time_data(self) -> dict[int, SensorSnapshot]:
        return self._state.real_time_data

    @property
    def time_range(self) -> TimeRange:
        return self._state.time_range

    @property
    def is_monitoring(self) -> bool:
        return self._is_monitoring

    @property
    def loading(self) -> bool:
        return self._in_flight

    # -------------------------------------------------------------------------
    # Fetch cycle
    # -------------------------------------------------------------------------

    def window(self) -> tuple[datetime, datetime]:
        """Lookback window [start, end] for the current time range, ending now."""
        end = self._now()
        return end - timedelta(hours=TIME_RANGE_HOURS[self._state.time_range]), end

    def fetch_latest_readings(self) -> bool:
        """
        Run one fetch cycle.

        Returns:
            True if a new snapshot map was installed, False if the cycle was a
            no-op, was skipped (spacing or re-entrancy) or failed
        """
        crop_id = self._state.crop_id
        sensor_ids = self._state.monitored_sensor_ids
        if crop_id is None or not sensor_ids:
            return False

        with self._lock:
            now_mono = self._clock()
            if self._last_fetch_at is not None and now_mono - self._last_fetch_at < self.min_spacing_s:
                self.cycles_skipped += 1
                logger.debug("Fetch skipped: %.2fs since last attempt", now_mono - self._last_fetch_at)
                return False
            self._last_fetch_at = now_mono
            if self._in_flight:
                self.cycles_skipped += 1
                logger.debug("Fetch skipped: previous cycle still in flight")
                return False
            self._in_flight = True

        try:
            start, end = self.window()
            snapshots: dict[int, SensorSnapshot] = {}
            for sensor_id in sensor_ids:
                query = HistoryQuery(
                    crop_id=crop_id,
                    sensor_id=sensor_id,
                    start_date=start,
                    end_date=end,
                    limit=self.history_limit,
                )
                readings = self._readings.fetch_history(query)
                snapshot = self._build_snapshot(sensor_id, readings)
                if snapshot is not None:
                    snapshots[sensor_id] = snapshot

            # Single assignment: observers never see a half-updated map
            self._state.real_time_data = snapshots
            self.error = None
            self.last_success_at = end
            self.cycles_completed += 1
        except (HydroWatchError, PayloadValidationError) as exc:
            self.cycles_failed += 1
            self.error = getattr(exc, "message", None) or "Error al obtener lecturas en tiempo real."
            logger.warning("Fetch cycle for crop %s aborted, keeping previous snapshot: %s", crop_id, exc)
            return False
        finally:
            with self._lock:
                self._in_flight = False

        logger.debug("Snapshot updated for crop %s: %d sensors", crop_id, len(snapshots))
        if self._event_bus is not None:
            self._event_bus.publish(
                MonitoringEvent.SNAPSHOT_UPDATED,
                {"crop_id": crop_id, "sensor_ids": list(snapshots), "timestamp": end.isoformat()},
            )
        return True

    def _build_snapshot(self, sensor_id: int, readings: list) -> SensorSnapshot | None:
        sensor = self._sensors.find(sensor_id)
        if sensor is None:
            return SensorSnapshot.from_history(sensor_id, readings)
        canonical = normalize_sensor_type(sensor.sensor_type, sensor.unit)
        return SensorSnapshot.from_history(
            sensor_id,
            readings,
            sensor_type=canonical.value if canonical else sensor.sensor_type,
            unit=display_unit(canonical) if canonical else sensor.unit,
        )

    # -------------------------------------------------------------------------
    # Lifecycle
    # -------------------------------------------------------------------------

    def start_monitoring(self) -> bool:
        """
        Run one cycle immediately, then arm the recurring timer.

        Returns:
            False if monitoring was already active (no-op)
        """
        with self._lock:
            if self._is_monitoring:
                return False

        self.fetch_latest_readings()

        with self._lock:
            if self._is_monitoring:
                return False
            self._is_monitoring = True
            self._arm_timer()

        logger.info("Monitoring started (interval=%ss, range=%s)", self.interval_s, self._state.time_range)
        if self._event_bus is not None:
            self._event_bus.publish(
                MonitoringEvent.MONITORING_STARTED,
                {"crop_id": self._state.crop_id, "interval_s": self.interval_s},
            )
        return True

    def stop_monitoring(self) -> bool:
        """Disarm the timer. A cycle already in flight still completes and applies."""
        with self._lock:
            if not self._is_monitoring:
                return False
            self._is_monitoring = False
            timer, self._timer = self._timer, None
        if timer is not None:
            timer.cancel()

        logger.info("Monitoring stopped")
        if self._event_bus is not None:
            self._event_bus.publish(MonitoringEvent.MONITORING_STOPPED, {"crop_id": self._state.crop_id})
        return True

    def change_time_range(self, time_range: TimeRange | str) -> bool:
        """Switch the lookback window; picked up by the next cycle, no fetch is triggered."""
        try:
            self._state.time_range = TimeRange(time_range)
        except ValueError:
            self.error = f"Rango de tiempo no válido: {time_range}"
            logger.warning("Rejected time range %r", time_range)
            return False
        logger.info("Time range changed to %s", self._state.time_range)
        return True

    def set_interval(self, interval_s: float) -> None:
        """Change the polling interval, recreating the timer while monitoring."""
        if interval_s <= 0:
            raise ValidationError(f"Polling interval must be positive, got {interval_s}")
        with self._lock:
            self.interval_s = interval_s
            old_timer, self._timer = self._timer, None
            if self._is_monitoring:
                self._arm_timer()
        if old_timer is not None:
            old_timer.cancel()

    def close(self) -> None:
        """Stop monitoring and wait for the timer thread to exit."""
        with self._lock:
            timer, self._timer = self._timer, None
            was_monitoring = self._is_monitoring
            self._is_monitoring = False
        if timer is not None:
            timer.cancel(join=True)
        if was_monitoring:
            logger.info("Monitoring closed")

    def _arm_timer(self) -> None:
        # Caller holds self._lock
        self._timer = self._timer_factory(self.interval_s, self._on_tick)
        self._timer.start()

    def _on_tick(self) -> None:
        if not self._is_monitoring:
            return
        self.fetch_latest_readings()

    def status(self) -> dict[str, Any]:
        """Diagnostics for logs and the CLI."""
        return {
            "is_monitoring": self._is_monitoring,
            "interval_s": self.interval_s,
            "min_spacing_s": self.min_spacing_s,
            "time_range": self._state.time_range.value,
            "crop_id": self._state.crop_id,
            "sensor_ids": list(self._state.monitored_sensor_ids),
            "in_flight": self._in_flight,
            "snapshot_sensors": sorted(self._state.real_time_data),
            "cycles_completed": self.cycles_completed,
            "cycles_skipped": self.cycles_skipped,
            "cycles_failed": self.cycles_failed,
            "last_success_at": self.last_success_at.isoformat() if self.last_success_at else None,
            "error": self.error,
        }
