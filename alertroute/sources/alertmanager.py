"""Prometheus Alertmanager webhook parser."""

from typing import Any

from alertroute.models.alert import Alert
from alertroute.sources.base import WebhookSource, _string_map


class AlertmanagerSource(WebhookSource):
    """Parser for Alertmanager webhook_configs notifications."""

    @property
    def name(self) -> str:
        return "alertmanager"

    def _common_labels(self, payload: dict[str, Any], alerts: list[Alert]) -> dict[str, str]:
        labels = _string_map(payload.get("groupLabels"))
        labels.update(super()._common_labels(payload, alerts))
        return labels
