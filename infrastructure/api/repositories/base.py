"""
Resource Repository Base
========================

Stateful wrapper around one backend resource. A repository owns:

- ``items``: the last successfully loaded list (replaced atomically, never patched
  from a failed call)
- ``selected``: the last entity fetched by id
- ``error``: human-readable message of the last failed call, cleared when a new
  call starts
- ``loading``: True while any call of this repository is outstanding

Duplicate list calls are deduplicated through named in-flight guards: while a
guarded call is outstanding, a second call with the same guard returns the
cached result without touching the network.

Nothing raises past a repository: backend, validation and payload errors are
absorbed into ``error`` and the call returns its empty value.
"""

from __future__ import annotations

import logging
import threading
from collections.abc import Callable, Iterator
from contextlib import contextmanager
from typing import Any, Generic, TypeVar

from pydantic import ValidationError as PayloadValidationError

from hydrowatch.domain.exceptions import HydroWatchError
from hydrowatch.enums.events import MonitoringEvent
from hydrowatch.schemas.resources import ResourceModel
from hydrowatch.utils.event_bus import EventBus

logger = logging.getLogger(__name__)

ModelT = TypeVar("ModelT", bound=ResourceModel)
ResultT = TypeVar("ResultT")


class ResourceRepository(Generic[ModelT]):
    """Shared state and error handling for backend resource repositories."""

    #: Resource label used in log lines and fallback error messages
    resource_name: str = "resource"
    #: Topic published whenever ``items`` is replaced
    change_event: MonitoringEvent | None = None

    def __init__(self, backend: Any, *, event_bus: EventBus | None = None) -> None:
        self._backend = backend
        self._event_bus = event_bus
        self._lock = threading.Lock()
        self._in_flight: set[str] = set()
        self._pending = 0
        self.items: list[ModelT] = []
        self.selected: ModelT | None = None
        self.error: str | None = None

    @property
    def loading(self) -> bool:
        return self._pending > 0

    def is_in_flight(self, guard: str) -> bool:
        with self._lock:
            return guard in self._in_flight

    # ------------------------------------------------------------------
    # Guards and error absorption
    # ------------------------------------------------------------------

    def _try_acquire(self, guard: str) -> bool:
        with self._lock:
            if guard in self._in_flight:
                return False
            self._in_flight.add(guard)
            return True

    def _release(self, guard: str) -> None:
        with self._lock:
            self._in_flight.discard(guard)

    @contextmanager
    def _tracking(self) -> Iterator[None]:
        with self._lock:
            self._pending += 1
        try:
            yield
        finally:
            with self._lock:
                self._pending -= 1

    def _execute(self, action: str, operation: Callable[[], ResultT], default: ResultT) -> ResultT:
        """
        Run one backend call, absorbing any failure into ``error``.

        Args:
            action: Short description used in logs and fallback messages
            operation: Zero-argument callable performing the call and parsing
            default: Value returned when the call fails
        """
        self.error = None
        with self._tracking():
            try:
                return operation()
            except PayloadValidationError as exc:
                self.error = f"Invalid {self.resource_name} data received while trying to {action}."
                logger.warning("%s: malformed payload on %s: %s", self.resource_name, action, exc)
            except HydroWatchError as exc:
                self.error = exc.message or f"Failed to {action}."
                logger.warning("%s: failed to %s: %s", self.resource_name, action, self.error)
        return default

    def _guarded(
        self,
        guard: str,
        action: str,
        operation: Callable[[], ResultT],
        default: ResultT,
        cached: Callable[[], ResultT],
    ) -> ResultT:
        """Run operation under a named in-flight guard; duplicates return ``cached()``."""
        if not self._try_acquire(guard):
            logger.debug("%s: %s already in flight, returning cached result", self.resource_name, action)
            return cached()
        try:
            return self._execute(action, operation, default)
        finally:
            self._release(guard)

    # ------------------------------------------------------------------
    # Local state mutation (server-returned entities only)
    # ------------------------------------------------------------------

    def _replace_items(self, items: list[ModelT]) -> None:
        self.items = list(items)
        self._notify()

    def _append(self, entity: ModelT) -> None:
        self._replace_items([*self.items, entity])

    def _swap(self, entity_id: Any, entity: ModelT) -> None:
        self._replace_items([entity if item.id == entity_id else item for item in self.items])
        if self.selected is not None and self.selected.id == entity_id:
            self.selected = entity

    def _remove(self, entity_id: Any) -> None:
        self._replace_items([item for item in self.items if item.id != entity_id])
        if self.selected is not None and self.selected.id == entity_id:
            self.selected = None

    def _notify(self) -> None:
        if self._event_bus is None or self.change_event is None:
            return
        self._event_bus.publish(self.change_event, {"resource": self.resource_name, "count": len(self.items)})

    def find(self, entity_id: Any) -> ModelT | None:
        """Look up a loaded entity without a network call."""
        return next((item for item in self.items if item.id == entity_id), None)

    def select(self, entity: ModelT | None) -> None:
        self.selected = entity
