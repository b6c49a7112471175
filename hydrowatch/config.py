"""
Configuration for the hydrowatch monitoring client
==================================================
Runtime settings for the HTTP backend, the polling coordinator and logging.
Every field defaults from a HYDROWATCH_* environment variable.
Sets up the logging configuration as well.
"""

from __future__ import annotations

import logging
import os
import sys
from contextlib import suppress
from dataclasses import dataclass, field
from logging.handlers import RotatingFileHandler

from hydrowatch.constants import Intervals, Limits, Timeouts
from hydrowatch.domain.exceptions import ConfigurationError
from hydrowatch.enums.common import TimeRange

logger = logging.getLogger(__name__)

_CONSOLE_HANDLER = "hydrowatch_console"
_FILE_HANDLER = "hydrowatch_file"


def _env_bool(name: str, default: bool = False) -> bool:
    value = os.getenv(name)
    if value is None:
        return default
    return value.lower() in {"1", "true", "t", "yes", "on"}


def _env_int(name: str, default: int) -> int:
    value = os.getenv(name)
    if value is None:
        return default
    try:
        return int(value)
    except ValueError:
        raise ConfigurationError(f"Environment variable {name} must be an integer.") from None


def _env_float(name: str, default: float) -> float:
    value = os.getenv(name)
    if value is None:
        return default
    try:
        return float(value)
    except ValueError:
        raise ConfigurationError(f"Environment variable {name} must be a number.") from None


@dataclass
class MonitorConfig:
    """Runtime configuration loaded from environment variables."""

    api_url: str = field(default_factory=lambda: os.getenv("HYDROWATCH_API_URL", "http://localhost:8080/api"))
    api_timeout: float = field(
        default_factory=lambda: _env_float("HYDROWATCH_API_TIMEOUT", float(Timeouts.HTTP_REQUEST_TIMEOUT))
    )

    # Polling
    poll_interval: float = field(
        default_factory=lambda: _env_float("HYDROWATCH_POLL_INTERVAL", Intervals.POLL_PRODUCTION)
    )
    min_fetch_spacing: float = field(
        default_factory=lambda: _env_float("HYDROWATCH_MIN_FETCH_SPACING", Intervals.MIN_FETCH_SPACING)
    )
    history_limit: int = field(default_factory=lambda: _env_int("HYDROWATCH_HISTORY_LIMIT", Limits.HISTORY_SAMPLES))
    time_range: str = field(default_factory=lambda: os.getenv("HYDROWATCH_TIME_RANGE", TimeRange.SIX_HOURS.value))

    # Seconds between detaching a sensor and deleting it
    sensor_delete_settle: float = field(
        default_factory=lambda: _env_float("HYDROWATCH_SENSOR_DELETE_SETTLE", Timeouts.SENSOR_DELETE_SETTLE)
    )

    # Logging
    log_level: str = field(default_factory=lambda: os.getenv("HYDROWATCH_LOG_LEVEL", "INFO"))
    log_file: str | None = field(default_factory=lambda: os.getenv("HYDROWATCH_LOG_FILE") or None)
    DEBUG: bool = field(default_factory=lambda: _env_bool("HYDROWATCH_DEBUG", False))

    def __post_init__(self) -> None:
        """Validate configuration after initialization."""
        if not self.api_url or not self.api_url.startswith(("http://", "https://")):
            raise ConfigurationError(
                f"HYDROWATCH_API_URL must be an http(s) URL, got {self.api_url!r}",
                detail={"api_url": self.api_url},
            )
        for name in ("api_timeout", "poll_interval"):
            if getattr(self, name) <= 0:
                raise ConfigurationError(f"{name} must be positive, got {getattr(self, name)}")
        if self.min_fetch_spacing < 0:
            raise ConfigurationError(f"min_fetch_spacing cannot be negative, got {self.min_fetch_spacing}")
        if self.sensor_delete_settle < 0:
            raise ConfigurationError(f"sensor_delete_settle cannot be negative, got {self.sensor_delete_settle}")
        if self.history_limit < 1:
            raise ConfigurationError(f"history_limit must be at least 1, got {self.history_limit}")
        try:
            self.time_range = TimeRange(self.time_range).value
        except ValueError:
            allowed = ", ".join(member.value for member in TimeRange)
            raise ConfigurationError(
                f"HYDROWATCH_TIME_RANGE must be one of {allowed}, got {self.time_range!r}"
            ) from None
        if logging.getLevelName(self.log_level.upper()) == f"Level {self.log_level.upper()}":
            raise ConfigurationError(f"Unknown log level {self.log_level!r}")
        self.log_level = self.log_level.upper()

    @property
    def effective_log_level(self) -> int:
        return logging.DEBUG if self.DEBUG else logging.getLevelName(self.log_level)


def validate_config(config: MonitorConfig) -> list[str]:
    """
    Validate monitoring configuration and return list of warnings.

    Args:
        config: MonitorConfig instance

    Returns:
        List of warning messages (empty if all valid)
    """
    warnings = []

    if config.poll_interval < config.min_fetch_spacing:
        warnings.append(
            f"Poll interval ({config.poll_interval}s) is shorter than the minimum fetch spacing "
            f"({config.min_fetch_spacing}s). Some ticks will be skipped."
        )

    if config.poll_interval < Intervals.POLL_DEFAULT:
        warnings.append(
            f"Poll interval ({config.poll_interval}s) is very short. Recommended: "
            f"{Intervals.POLL_DEFAULT:.0f}-{Intervals.POLL_PRODUCTION:.0f}s"
        )

    if config.history_limit > 1000:
        warnings.append(f"History limit ({config.history_limit}) is high and may slow every poll cycle.")

    if config.api_url.startswith("http://") and "localhost" not in config.api_url and "127.0.0.1" not in config.api_url:
        warnings.append(f"Backend URL {config.api_url} is not using HTTPS.")

    return warnings


def setup_logging(level: int | str = logging.INFO, log_file: str | None = None) -> None:
    """Setup logging configuration."""
    log_level = logging.getLevelName(level.upper()) if isinstance(level, str) else level

    root = logging.getLogger()
    root.setLevel(log_level)

    # Avoid adding duplicate handlers when called multiple times
    has_console = any(getattr(h, "name", "") == _CONSOLE_HANDLER for h in root.handlers)
    has_file = any(getattr(h, "name", "") == _FILE_HANDLER for h in root.handlers)
    added_handler = False

    # Force UTF-8 so unit symbols and Spanish labels never raise UnicodeEncodeError
    stream = sys.stdout
    with suppress(AttributeError, ValueError):
        stream.reconfigure(encoding="utf-8", errors="replace")
    formatter = logging.Formatter("%(asctime)s - %(name)s - %(levelname)s - %(message)s")

    if not has_console:
        console_handler = logging.StreamHandler(stream=stream)
        console_handler.name = _CONSOLE_HANDLER
        console_handler.setLevel(log_level)
        console_handler.setFormatter(formatter)
        root.addHandler(console_handler)
        added_handler = True

    if log_file and not has_file:
        directory = os.path.dirname(log_file)
        if directory:
            os.makedirs(directory, exist_ok=True)
        file_handler = RotatingFileHandler(
            log_file,
            maxBytes=10 * 1024 * 1024,
            backupCount=5,
            encoding="utf-8",
        )
        file_handler.name = _FILE_HANDLER
        file_handler.setLevel(log_level)
        file_handler.setFormatter(formatter)
        root.addHandler(file_handler)
        added_handler = True

    # Ensure handler levels follow the desired log level
    for handler in root.handlers:
        if getattr(handler, "name", "") in {_CONSOLE_HANDLER, _FILE_HANDLER}:
            handler.setLevel(log_level)

    if added_handler:
        root.info("Logging initialized at level: %s", logging.getLevelName(log_level))

    # One line per HTTP request is too chatty at poll frequency
    logging.getLogger("urllib3").setLevel(logging.WARNING)
    logging.getLogger("requests").setLevel(logging.WARNING)


def load_config() -> MonitorConfig:
    """Helper for callers to load and validate configuration."""
    config = MonitorConfig()
    for warning in validate_config(config):
        logger.warning("Configuration: %s", warning)
    return config
