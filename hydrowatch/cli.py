from __future__ import annotations

import argparse
import dataclasses
import logging
import threading
from typing import Any

from hydrowatch.config import load_config, setup_logging
from hydrowatch.domain.exceptions import ConfigurationError
from hydrowatch.enums.common import TimeRange
from hydrowatch.enums.events import MonitoringEvent
from hydrowatch.services.container import MonitoringContainer

logger = logging.getLogger(__name__)


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="hydrowatch-monitor",
        description="Poll the monitoring backend and log live sensor snapshots for one crop.",
    )
    parser.add_argument("--crop-id", type=int, default=None, help="Crop to monitor (default: first crop)")
    parser.add_argument("--api-url", default=None, help="Backend base URL (overrides HYDROWATCH_API_URL)")
    parser.add_argument("--interval", type=float, default=None, help="Polling interval in seconds")
    parser.add_argument(
        "--time-range",
        choices=[member.value for member in TimeRange],
        default=None,
        help="Lookback window of each fetch cycle",
    )
    parser.add_argument(
        "--cycles",
        type=int,
        default=0,
        help="Stop after this many snapshots (default: run until interrupted)",
    )
    parser.add_argument("--debug", action="store_true", help="Enable debug logging")
    return parser


def _log_snapshot(facade: Any) -> None:
    for sensor_id, snapshot in sorted(facade.real_time_data.items()):
        logger.info(
            "sensor=%s type=%s value=%s%s trend=%s %s (%s) samples=%d",
            sensor_id,
            snapshot.sensor_type or "?",
            snapshot.current.value,
            snapshot.unit,
            snapshot.trend.direction.value,
            snapshot.trend.magnitude,
            snapshot.trend.window or "-",
            len(snapshot.history),
        )
    open_alerts = [alert for alert in facade.alerts if not alert.resolved]
    if open_alerts:
        logger.warning("%d open alerts, latest: %s", len(open_alerts), open_alerts[0].message)


def main(argv: list[str] | None = None) -> int:
    """Run the monitoring loop for one crop without any presentation layer."""
    args = _build_parser().parse_args(argv)

    try:
        config = load_config()
        overrides: dict[str, Any] = {}
        if args.api_url:
            overrides["api_url"] = args.api_url
        if args.interval is not None:
            overrides["poll_interval"] = args.interval
        if args.time_range:
            overrides["time_range"] = args.time_range
        if args.debug:
            overrides["DEBUG"] = True
        if overrides:
            config = dataclasses.replace(config, **overrides)
    except ConfigurationError as exc:
        logging.basicConfig(level=logging.ERROR)
        logger.error("Invalid configuration: %s", exc.message)
        return 2

    setup_logging(config.effective_log_level, config.log_file)

    container = MonitoringContainer.build(config)
    facade = container.facade
    done = threading.Event()
    seen = {"cycles": 0}

    def on_snapshot(_payload: Any) -> None:
        seen["cycles"] += 1
        _log_snapshot(facade)
        if args.cycles and seen["cycles"] >= args.cycles:
            done.set()

    container.event_bus.subscribe(MonitoringEvent.SNAPSHOT_UPDATED, on_snapshot)

    try:
        facade.load_initial_data()
        crop_id = args.crop_id
        if crop_id is None:
            if not facade.crops:
                logger.error("No crops available: %s", facade.error or "the backend returned none")
                return 1
            crop_id = facade.crops[0].id

        crop = facade.select_crop(crop_id)
        if crop is None:
            logger.error("Crop %s could not be loaded: %s", crop_id, facade.error or "not found")
            return 1
        if not facade.sensor_ids:
            logger.error("Crop %s has no sensors to monitor", crop_id)
            return 1

        logger.info("Monitoring crop %s (%s), sensors %s (press Ctrl+C to stop)", crop.id, crop.name, facade.sensor_ids)
        facade.start_monitoring()
        while not done.wait(0.5):
            pass
    except KeyboardInterrupt:
        logger.info("Stopping monitor...")
    finally:
        container.shutdown()

    if facade.error:
        logger.warning("Last error: %s", facade.error)
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
