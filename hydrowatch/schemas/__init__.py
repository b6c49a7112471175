"""
Schemas
=======

Pydantic models describing backend payloads.
"""

from hydrowatch.schemas.resources import (
    Alert,
    Crop,
    Reading,
    ResourceModel,
    Sensor,
    SensorThreshold,
    parse_many,
    parse_one,
)

__all__ = [
    "Alert",
    "Crop",
    "Reading",
    "ResourceModel",
    "Sensor",
    "SensorThreshold",
    "parse_many",
    "parse_one",
]
