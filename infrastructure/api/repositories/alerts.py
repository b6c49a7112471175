"""Alert repository: list, fetch and resolve (delete) alerts."""

from __future__ import annotations

import logging

from hydrowatch.enums.events import MonitoringEvent
from hydrowatch.schemas.resources import Alert, parse_many, parse_one
from infrastructure.api.ops.alerts import AlertOperations
from infrastructure.api.repositories.base import ResourceRepository

logger = logging.getLogger(__name__)


class AlertRepository(ResourceRepository[Alert]):
    """Repository facade for alert operations. Alerts are never created client-side."""

    resource_name = "alerts"
    change_event = MonitoringEvent.ALERTS_CHANGED

    _backend: AlertOperations

    def list_mine(self) -> list[Alert]:
        def load() -> list[Alert]:
            alerts = parse_many(Alert, self._backend.list_mine().data)
            self._replace_items(alerts)
            return alerts

        return self._guarded("user", "load alerts", load, [], lambda: list(self.items))

    def list_by_crop(self, crop_id: int) -> list[Alert]:
        def load() -> list[Alert]:
            alerts = parse_many(Alert, self._backend.list_by_crop(crop_id).data)
            self._replace_items(alerts)
            return alerts

        return self._guarded("crop", f"load alerts of crop {crop_id}", load, [], lambda: list(self.items))

    def get_by_id(self, alert_id: int) -> Alert | None:
        def load() -> Alert | None:
            alert = parse_one(Alert, self._backend.get_by_id(alert_id).data)
            self.selected = alert
            return alert

        return self._execute(f"load alert {alert_id}", load, None)

    def delete(self, alert_id: int) -> bool:
        """Delete (resolve) an alert."""

        def submit() -> bool:
            self._backend.delete(alert_id)
            self._remove(alert_id)
            logger.info("Alert %s resolved", alert_id)
            return True

        return self._execute(f"delete alert {alert_id}", submit, False)

    def unresolved(self) -> list[Alert]:
        return [alert for alert in self.items if not alert.resolved]
