"""Routing configuration models."""

import re
from datetime import timedelta
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, field_validator

from alertroute.models.duration import parse_duration

LABEL_NAME_RE = re.compile(r"[a-zA-Z_][a-zA-Z0-9_]*")


def _check_label_name(name: str) -> str:
    if not LABEL_NAME_RE.fullmatch(name):
        raise ValueError(f"invalid label name: {name!r}")
    return name


class RouteConfig(BaseModel):
    """A single node of the routing tree as written in routes.yaml."""

    model_config = ConfigDict(extra="forbid", populate_by_name=True, frozen=True)

    send_to: str = Field(default="", description="Notification target; empty inherits")
    group_by: list[str] = Field(default_factory=list, description="Labels to group alerts by")
    group_wait: timedelta | None = Field(default=None, description="None inherits the parent value")
    group_interval: timedelta | None = None
    repeat_interval: timedelta | None = None
    send_resolved: bool | None = None

    match: dict[str, str] = Field(default_factory=dict, description="Exact label matchers")
    match_re: dict[str, str] = Field(default_factory=dict, description="Regex label matchers")
    continue_: bool = Field(default=False, alias="continue")

    routes: list["RouteConfig"] = Field(default_factory=list)

    @field_validator("group_wait", "group_interval", "repeat_interval", mode="before")
    @classmethod
    def _parse_duration(cls, value: Any) -> Any:
        if isinstance(value, str):
            return parse_duration(value)
        return value

    @field_validator("group_wait", "group_interval", "repeat_interval")
    @classmethod
    def _positive_duration(cls, value: timedelta | None) -> timedelta | None:
        if value is None:
            return value
        if value <= timedelta(0):
            raise ValueError("duration must be positive")
        if value % timedelta(milliseconds=1):
            raise ValueError("duration must be a whole number of milliseconds")
        return value

    @field_validator("group_by")
    @classmethod
    def _unique_group_by(cls, value: list[str]) -> list[str]:
        seen: set[str] = set()
        for name in value:
            _check_label_name(name)
            if name in seen:
                raise ValueError(f"duplicated label {name!r} in group_by")
            seen.add(name)
        return value

    @field_validator("match")
    @classmethod
    def _valid_match(cls, value: dict[str, str]) -> dict[str, str]:
        for name in value:
            _check_label_name(name)
        return value

    @field_validator("match_re")
    @classmethod
    def _valid_match_re(cls, value: dict[str, str]) -> dict[str, str]:
        for name, source in value.items():
            _check_label_name(name)
            try:
                re.compile(f"(?:{source})")
            except re.error as e:
                raise ValueError(f"invalid regex for label {name!r}: {e}") from e
        return value


RouteConfig.model_rebuild()


class RoutesConfig(BaseModel):
    """Complete routing configuration."""

    model_config = ConfigDict(extra="forbid")

    routes: list[RouteConfig] = Field(default_factory=list)
