"""
Threshold Value Objects
=======================
Immutable (min, max) alerting boundaries per canonical sensor type.

A ThresholdRange validates its own invariant (min < max) on construction, so an
invalid range can never reach the network layer.
"""

from __future__ import annotations

import math
from collections.abc import Mapping
from dataclasses import dataclass
from typing import Any

from hydrowatch.constants import DEFAULT_THRESHOLDS
from hydrowatch.domain.exceptions import ValidationError
from hydrowatch.enums.common import CanonicalSensorType
from hydrowatch.utils.validation import parse_float


@dataclass(frozen=True)
class ThresholdRange:
    """
    Alerting boundary for one sensor type.

    Attributes:
        min: Lower bound, strictly below max
        max: Upper bound
    """

    min: float
    max: float

    def __post_init__(self):
        for name in ("min", "max"):
            value = getattr(self, name)
            if isinstance(value, bool) or not isinstance(value, (int, float)) or math.isnan(value):
                raise ValidationError(f"Threshold {name} must be a number, got {value!r}")
        if self.min >= self.max:
            raise ValidationError(
                f"Threshold min must be lower than max, got min={self.min} max={self.max}",
                detail={"min": self.min, "max": self.max},
            )

    def to_dict(self) -> dict[str, float]:
        return {"min": self.min, "max": self.max}

    def contains(self, value: float) -> bool:
        return self.min <= value <= self.max

    @staticmethod
    def from_value(value: Any) -> ThresholdRange:
        """
        Build a range from a ThresholdRange, a {"min", "max"} mapping or a pair.

        Raises:
            ValidationError: if the value cannot be parsed or min >= max
        """
        if isinstance(value, ThresholdRange):
            return value
        if isinstance(value, Mapping):
            low, high = value.get("min"), value.get("max")
        elif isinstance(value, (tuple, list)) and len(value) == 2:
            low, high = value
        else:
            raise ValidationError(f"Unsupported threshold value: {value!r}")
        return ThresholdRange(min=parse_float(low), max=parse_float(high))


def default_thresholds() -> dict[CanonicalSensorType, ThresholdRange]:
    """Fresh copy of the built-in defaults."""
    return {kind: ThresholdRange(min=low, max=high) for kind, (low, high) in DEFAULT_THRESHOLDS.items()}
