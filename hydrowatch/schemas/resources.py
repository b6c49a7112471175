"""
Resource Schemas
================

Pydantic models for the payloads returned by the monitoring backend.

Every field accepts both the backend's camelCase spelling (and its historical
alternatives, e.g. ``sensorType`` / ``type``) and the snake_case attribute
name. Unknown fields are ignored; timestamps are coerced to aware UTC.
"""

from __future__ import annotations

from collections.abc import Iterable
from datetime import datetime
from typing import Annotated, Any, TypeVar

from pydantic import AliasChoices, BaseModel, BeforeValidator, ConfigDict, Field, field_validator

from hydrowatch.enums.common import AlertSeverity, CropStatus
from hydrowatch.utils.time import coerce_datetime
from hydrowatch.utils.validation import optional_float

UtcDatetime = Annotated[datetime, BeforeValidator(coerce_datetime)]

CROP_STATUS_ALIASES: dict[str, CropStatus] = {
    "active": CropStatus.ACTIVE,
    "activo": CropStatus.ACTIVE,
    "running": CropStatus.ACTIVE,
    "inactive": CropStatus.PAUSED,
    "inactivo": CropStatus.PAUSED,
    "paused": CropStatus.PAUSED,
    "pausado": CropStatus.PAUSED,
    "stopped": CropStatus.PAUSED,
    "disabled": CropStatus.PAUSED,
    "completed": CropStatus.COMPLETED,
    "completado": CropStatus.COMPLETED,
    "finished": CropStatus.COMPLETED,
    "terminado": CropStatus.COMPLETED,
    "alert": CropStatus.ALERT,
    "alerta": CropStatus.ALERT,
    "error": CropStatus.ALERT,
    "warning": CropStatus.ALERT,
}

ALERT_SEVERITY_ALIASES: dict[str, AlertSeverity] = {
    "critical": AlertSeverity.CRITICAL,
    "critico": AlertSeverity.CRITICAL,
    "crítico": AlertSeverity.CRITICAL,
    "error": AlertSeverity.CRITICAL,
    "high": AlertSeverity.CRITICAL,
    "warning": AlertSeverity.WARNING,
    "warn": AlertSeverity.WARNING,
    "advertencia": AlertSeverity.WARNING,
    "medium": AlertSeverity.WARNING,
}


def _choices(*names: str) -> AliasChoices:
    return AliasChoices(*names)


class ResourceModel(BaseModel):
    """Base for backend resources: immutable, lenient about extra fields."""

    model_config = ConfigDict(frozen=True, extra="ignore", populate_by_name=True)

    def to_dict(self) -> dict[str, Any]:
        return self.model_dump(mode="json")


class Crop(ResourceModel):
    id: int
    name: str = Field(default="", validation_alias=_choices("name", "cropName", "crop_name"))
    crop_type: str | None = Field(default=None, validation_alias=_choices("crop_type", "cropType", "type"))
    status: CropStatus = Field(default=CropStatus.ACTIVE, validation_alias=_choices("status", "cropStatus"))
    start_date: UtcDatetime | None = Field(default=None, validation_alias=_choices("start_date", "startDate"))
    end_date: UtcDatetime | None = Field(default=None, validation_alias=_choices("end_date", "endDate"))
    created_at: UtcDatetime | None = Field(default=None, validation_alias=_choices("created_at", "createdAt"))

    @field_validator("status", mode="before")
    @classmethod
    def _normalize_status(cls, value: Any) -> CropStatus:
        if isinstance(value, CropStatus):
            return value
        if not value:
            return CropStatus.ACTIVE
        return CROP_STATUS_ALIASES.get(str(value).strip().lower(), CropStatus.ACTIVE)


class Sensor(ResourceModel):
    id: int = Field(validation_alias=_choices("id", "sensorId", "sensor_id"))
    name: str | None = Field(default=None, validation_alias=_choices("name", "sensorName"))
    sensor_type: str = Field(default="", validation_alias=_choices("sensor_type", "sensorType", "type"))
    unit: str = Field(default="", validation_alias=_choices("unit", "unitOfMeasurement"))
    crop_id: int | None = Field(default=None, validation_alias=_choices("crop_id", "cropId"))
    is_active: bool = Field(default=True, validation_alias=_choices("is_active", "isActive", "active"))
    last_reading: float | None = Field(
        default=None, validation_alias=_choices("last_reading", "lastReading", "lastReadingValue")
    )
    last_reading_at: UtcDatetime | None = Field(
        default=None, validation_alias=_choices("last_reading_at", "lastReadingDate")
    )

    @field_validator("sensor_type", "unit", mode="before")
    @classmethod
    def _none_to_empty(cls, value: Any) -> Any:
        return "" if value is None else value

    @field_validator("last_reading", mode="before")
    @classmethod
    def _parse_last_reading(cls, value: Any) -> float | None:
        return optional_float(value)


class Reading(ResourceModel):
    id: int | None = Field(default=None, validation_alias=_choices("id", "readingId"))
    sensor_id: int = Field(validation_alias=_choices("sensor_id", "sensorId"))
    crop_id: int | None = Field(default=None, validation_alias=_choices("crop_id", "cropId"))
    value: float = Field(validation_alias=_choices("value", "readingValue"))
    timestamp: UtcDatetime = Field(validation_alias=_choices("timestamp", "readingDate"))
    notes: str | None = Field(default=None, validation_alias=_choices("notes", "note", "comment"))
    sensor_type: str | None = Field(default=None, validation_alias=_choices("sensor_type", "sensorType"))
    unit: str | None = Field(default=None, validation_alias=_choices("unit", "unitOfMeasurement"))


class Alert(ResourceModel):
    id: int
    crop_id: int | None = Field(default=None, validation_alias=_choices("crop_id", "cropId"))
    sensor_type: str | None = Field(default=None, validation_alias=_choices("sensor_type", "sensorType", "parameter"))
    level: AlertSeverity = Field(
        default=AlertSeverity.INFO,
        validation_alias=_choices("level", "alertLevel", "severity", "alertType"),
    )
    message: str = Field(default="", validation_alias=_choices("message", "alertMessage"))
    timestamp: UtcDatetime | None = Field(
        default=None, validation_alias=_choices("timestamp", "alertDate", "createdAt", "created_at")
    )
    resolved: bool = Field(default=False, validation_alias=_choices("resolved", "isResolved"))

    @field_validator("level", mode="before")
    @classmethod
    def _normalize_level(cls, value: Any) -> AlertSeverity:
        if isinstance(value, AlertSeverity):
            return value
        if not value:
            return AlertSeverity.INFO
        return ALERT_SEVERITY_ALIASES.get(str(value).strip().lower(), AlertSeverity.INFO)


class SensorThreshold(ResourceModel):
    sensor_id: int | None = Field(default=None, validation_alias=_choices("sensor_id", "sensorId", "id"))
    sensor_type: str | None = Field(default=None, validation_alias=_choices("sensor_type", "sensorType", "type"))
    min_threshold: float | None = Field(default=None, validation_alias=_choices("min_threshold", "minThreshold"))
    max_threshold: float | None = Field(default=None, validation_alias=_choices("max_threshold", "maxThreshold"))

    @field_validator("min_threshold", "max_threshold", mode="before")
    @classmethod
    def _parse_bound(cls, value: Any) -> float | None:
        return optional_float(value)


ModelT = TypeVar("ModelT", bound=ResourceModel)


def parse_one(model: type[ModelT], payload: Any) -> ModelT | None:
    """Validate a single payload; None/empty payloads yield None."""
    if not payload:
        return None
    if isinstance(payload, model):
        return payload
    return model.model_validate(payload)


def parse_many(model: type[ModelT], payload: Any) -> list[ModelT]:
    """Validate a list payload; a single object is treated as a one-element list."""
    if not payload:
        return []
    items: Iterable[Any] = payload if isinstance(payload, list) else [payload]
    return [item if isinstance(item, model) else model.model_validate(item) for item in items if item]
