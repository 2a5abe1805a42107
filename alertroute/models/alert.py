"""Unified alert models shared by all sources."""

from datetime import datetime
from typing import Any

from pydantic import BaseModel, Field


class Alert(BaseModel):
    """A single alert instance."""

    source: str = ""
    status: str = "firing"
    name: str = ""
    severity: str = ""
    summary: str = ""
    description: str = ""
    labels: dict[str, str] = Field(default_factory=dict, description="Labels used for routing")
    annotations: dict[str, str] = Field(default_factory=dict)
    starts_at: datetime = Field(default_factory=datetime.now)
    ends_at: datetime | None = None
    generator_url: str = ""
    fingerprint: str = ""
    raw: dict[str, Any] = Field(default_factory=dict, description="Original payload")

    @property
    def is_firing(self) -> bool:
        return self.status == "firing"


class AlertGroup(BaseModel):
    """A batch of alerts delivered by one webhook call."""

    source: str = ""
    status: str = "firing"
    alerts: list[Alert] = Field(default_factory=list)
    labels: dict[str, str] = Field(default_factory=dict, description="Labels common to all alerts")
    external_url: str = ""
    receiver: str = ""
    raw: dict[str, Any] = Field(default_factory=dict)

    @property
    def firing_alerts(self) -> list[Alert]:
        return [a for a in self.alerts if a.is_firing]

    @property
    def resolved_alerts(self) -> list[Alert]:
        return [a for a in self.alerts if not a.is_firing]
