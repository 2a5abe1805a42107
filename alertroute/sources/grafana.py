"""Grafana alerting webhook parser."""

from typing import Any

from alertroute.models.alert import Alert
from alertroute.sources.base import WebhookSource


class GrafanaSource(WebhookSource):
    """Parser for Grafana Unified Alerting webhooks."""

    @property
    def name(self) -> str:
        return "grafana"

    def _common_labels(self, payload: dict[str, Any], alerts: list[Alert]) -> dict[str, str]:
        # Older Grafana versions omit commonLabels.
        common_labels = super()._common_labels(payload, alerts)
        if not common_labels and alerts:
            common_labels = alerts[0].labels.copy()
        return common_labels
