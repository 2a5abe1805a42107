"""Base classes for alert source parsers."""

from abc import ABC, abstractmethod
from datetime import datetime
from typing import Any

from alertroute.models.alert import Alert, AlertGroup


class BaseSource(ABC):
    """Abstract base class for alert source parsers."""

    @property
    @abstractmethod
    def name(self) -> str:
        """Source name identifier."""
        ...

    @abstractmethod
    def parse(self, payload: dict[str, Any]) -> AlertGroup:
        """Parse webhook payload into unified AlertGroup."""
        ...


class WebhookSource(BaseSource):
    """Parser for the Prometheus-style webhook body shared by Grafana and Alertmanager.

    Subclasses customize how the group's common labels are derived.
    """

    def parse(self, payload: dict[str, Any]) -> AlertGroup:
        raw_alerts = payload.get("alerts", [])
        if not isinstance(raw_alerts, list):
            raise ValueError("'alerts' must be a list")

        alerts = [self._parse_alert(alert_data) for alert_data in raw_alerts]

        return AlertGroup(
            source=self.name,
            status=payload.get("status", "firing"),
            alerts=alerts,
            labels=self._common_labels(payload, alerts),
            external_url=payload.get("externalURL", ""),
            receiver=payload.get("receiver", ""),
            raw=payload,
        )

    def _common_labels(self, payload: dict[str, Any], alerts: list[Alert]) -> dict[str, str]:
        return _string_map(payload.get("commonLabels"))

    def _parse_alert(self, alert_data: dict[str, Any]) -> Alert:
        if not isinstance(alert_data, dict):
            raise ValueError("each alert must be an object")

        labels = _string_map(alert_data.get("labels"))
        annotations = _string_map(alert_data.get("annotations"))

        ends_at_str = alert_data.get("endsAt", "")
        ends_at = self._parse_timestamp(ends_at_str) if ends_at_str else None

        return Alert(
            source=self.name,
            status=alert_data.get("status", "firing"),
            name=labels.get("alertname", "Unknown"),
            severity=labels.get("severity", "warning"),
            summary=annotations.get("summary", ""),
            description=annotations.get("description", ""),
            labels=labels,
            annotations=annotations,
            starts_at=self._parse_timestamp(alert_data.get("startsAt", "")),
            ends_at=ends_at,
            generator_url=alert_data.get("generatorURL", ""),
            fingerprint=alert_data.get("fingerprint", ""),
            raw=alert_data,
        )

    def _parse_timestamp(self, ts_str: Any) -> datetime:
        if not ts_str or not isinstance(ts_str, str):
            return datetime.now()
        ts_str = ts_str.replace("Z", "+00:00")
        try:
            return datetime.fromisoformat(ts_str)
        except ValueError:
            return datetime.now()


def _string_map(value: Any) -> dict[str, str]:
    if not value:
        return {}
    if not isinstance(value, dict):
        raise ValueError("labels must be an object")
    return {str(k): str(v) for k, v in value.items()}
