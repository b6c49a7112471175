"""
Lightweight synchronous EventBus owned by one monitoring facade.

Key invariants (enforced by call sites + tests):
  - Event topics come from hydrowatch.enums.events (MonitoringEvent).
  - Subscribers always receive a plain dict payload (or a primitive).
  - Callbacks run on the publishing thread, in subscription order.
"""

from __future__ import annotations

import logging
import threading
from collections import defaultdict
from dataclasses import asdict, is_dataclass
from enum import Enum
from typing import Any, Callable, Hashable, Iterable

from pydantic import BaseModel

from hydrowatch.enums.events import MonitoringEvent

logger = logging.getLogger(__name__)


class EventBus:
    """
    Handles event-driven communication between repositories, services and the facade.

    Not a singleton: each facade builds its own bus so independent monitors
    (and tests) never share a routing table.
    """

    def __init__(self) -> None:
        self.subscribers: dict[Hashable, list[Callable[[Any], None]]] = defaultdict(list)
        self.lock = threading.Lock()
        self._published = 0
        self._failures = 0

    def subscribe(self, event_name: MonitoringEvent | str, callback: Callable[[Any], None]) -> Callable[[], None]:
        """
        Subscribes a callback function to an event.

        Args:
            event_name: The enum topic (preferred) or raw string.
            callback: Function to call when the event occurs.

        Returns:
            A callable that removes the subscription.
        """
        name = event_name.value if isinstance(event_name, Enum) else event_name
        with self.lock:
            self.subscribers[name].append(callback)

        def unsubscribe() -> None:
            with self.lock:
                callbacks = self.subscribers.get(name, [])
                try:
                    callbacks.remove(callback)
                except ValueError:
                    return

        return unsubscribe

    def publish(self, event_name: MonitoringEvent | str, data: Any | None = None) -> None:
        """
        Publishes an event, calling all subscribed callback functions.

        Args:
            event_name: The enum topic (preferred) or raw string.
            data: Payload object (Pydantic model, dataclass, or dict/primitive).
        """
        name = event_name.value if isinstance(event_name, Enum) else event_name

        # Subscribers always receive a dict or primitive.
        if isinstance(data, BaseModel):
            payload: Any = data.model_dump()
        elif is_dataclass(data) and not isinstance(data, type):
            payload = asdict(data)
        else:
            payload = data

        with self.lock:
            callbacks: Iterable[Callable[[Any], None]] = list(self.subscribers.get(name, []))
            self._published += 1

        for callback in callbacks:
            try:
                callback(payload)
            except Exception as exc:
                self._failures += 1
                logger.error("Error in callback for event %s: %s", name, exc, exc_info=True)

    def listener(self, event_name: MonitoringEvent | str) -> Callable[[Callable[[Any], None]], Callable[[Any], None]]:
        """Decorator for subscribing a function to an event at definition time."""

        def decorator(func: Callable[[Any], None]) -> Callable[[Any], None]:
            self.subscribe(event_name, func)
            return func

        return decorator

    def clear(self) -> None:
        with self.lock:
            self.subscribers.clear()

    def get_metrics(self) -> dict[str, Any]:
        """Return lightweight metrics for status output/logging."""
        with self.lock:
            subscribers = sum(len(values) for values in self.subscribers.values())
        return {
            "published": self._published,
            "callback_failures": self._failures,
            "subscribers": subscribers,
        }
