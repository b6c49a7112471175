"""
Sensor Type Normalizer
======================
Maps the heterogeneous sensor-type and unit vocabulary sent by the backend
("temp", "Sensor Temperatura", "conductividad eléctrica", "tds", ...) onto
:class:`CanonicalSensorType`.

Matching is case-insensitive and substring based, tried in a fixed priority
order (temperature, humidity, ec); the first match wins. Normalizing an
already-canonical value returns it unchanged.
"""

from __future__ import annotations

from hydrowatch.constants import DISPLAY_UNITS
from hydrowatch.enums.common import CanonicalSensorType

# Priority order matters: "Sensor Temperatura" must never fall through to "ec".
TYPE_KEYWORDS: tuple[tuple[CanonicalSensorType, tuple[str, ...]], ...] = (
    (CanonicalSensorType.TEMPERATURE, ("temp",)),
    (CanonicalSensorType.HUMIDITY, ("hum",)),
    (CanonicalSensorType.EC, ("tds", "ec", "cond")),
)

# Unit fallback, only consulted when the type string matched nothing
UNIT_ALIASES: dict[str, CanonicalSensorType] = {
    "°c": CanonicalSensorType.TEMPERATURE,
    "ºc": CanonicalSensorType.TEMPERATURE,
    "c": CanonicalSensorType.TEMPERATURE,
    "celsius": CanonicalSensorType.TEMPERATURE,
    "%": CanonicalSensorType.HUMIDITY,
    "%rh": CanonicalSensorType.HUMIDITY,
    "ppm": CanonicalSensorType.EC,
    "ms/cm": CanonicalSensorType.EC,
    "us/cm": CanonicalSensorType.EC,
    "µs/cm": CanonicalSensorType.EC,
}


def normalize_sensor_type(sensor_type: str | None, unit: str | None = None) -> CanonicalSensorType | None:
    """
    Return the canonical type for a backend sensor-type string.

    Args:
        sensor_type: Raw type string, e.g. "Sensor Temperatura"
        unit: Optional raw unit string, used only when the type is unrecognized

    Returns:
        CanonicalSensorType, or None when neither value is recognized
    """
    if sensor_type:
        lowered = str(sensor_type).strip().lower()
        for canonical, keywords in TYPE_KEYWORDS:
            if any(keyword in lowered for keyword in keywords):
                return canonical

    if unit:
        return UNIT_ALIASES.get(str(unit).strip().lower().replace(" ", ""))

    return None


def display_unit(sensor_type: CanonicalSensorType | str | None) -> str:
    """Fixed display unit for a canonical type; empty string when unknown."""
    canonical = normalize_sensor_type(sensor_type) if sensor_type else None
    if canonical is None:
        return ""
    return DISPLAY_UNITS[canonical]
