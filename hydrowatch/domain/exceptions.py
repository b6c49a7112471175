"""Centralized exception hierarchy for hydrowatch.

All domain, service and transport exceptions inherit from :class:`HydroWatchError`
so that repositories can absorb a single base class into their ``error`` field,
yet callers can still match on specific subclasses where narrower handling is
appropriate.

Hierarchy
---------
::

    HydroWatchError (base)
    ├── ValidationError          (bad input, caught before any request)
    ├── NotFoundError            (entity does not exist locally)
    ├── ServiceError             (business-logic failure)
    │   └── ExternalServiceError (network dependency failure)
    │       └── ApiError         (HTTP failure, carries status_code)
    └── ConfigurationError       (missing / invalid config)
"""

from __future__ import annotations


class HydroWatchError(Exception):
    """Base exception for all hydrowatch errors.

    Parameters
    ----------
    message:
        Human-readable description, suitable for surfacing in an ``error`` field.
    detail:
        Optional machine-readable context dict attached to the error for
        structured logging.
    """

    def __init__(self, message: str = "", *, detail: dict | None = None) -> None:
        super().__init__(message)
        self.message = message
        self.detail = detail or {}


class ValidationError(HydroWatchError):
    """Caller supplied invalid or incomplete input."""


class NotFoundError(HydroWatchError):
    """Requested entity does not exist."""


class ServiceError(HydroWatchError):
    """Business-logic failure in a service method."""


class ExternalServiceError(ServiceError):
    """Network dependency failure."""


class ApiError(ExternalServiceError):
    """HTTP request to the monitoring backend failed.

    ``status_code`` is ``None`` when no response was received (connection
    refused, timeout, DNS failure).
    """

    def __init__(
        self,
        message: str = "",
        *,
        status_code: int | None = None,
        detail: dict | None = None,
    ) -> None:
        super().__init__(message, detail=detail)
        self.status_code = status_code

    @property
    def is_not_found(self) -> bool:
        return self.status_code == 404


class ConfigurationError(HydroWatchError):
    """Missing or invalid configuration."""
