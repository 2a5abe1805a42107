"""Routing tree: construction with option inheritance and depth-first matching."""

import logging
from collections.abc import Iterable, Iterator, Mapping
from dataclasses import dataclass
from datetime import timedelta
from typing import Any

from pydantic import BaseModel, ConfigDict

from alertroute.models.duration import format_duration
from alertroute.models.matchers import InvalidMatcherError, Matcher, Matchers
from alertroute.models.routes import RouteConfig

logger = logging.getLogger(__name__)


class RouteConstructionError(RuntimeError):
    """A route could not be built from configuration that should have been valid.

    Configuration is validated when it is loaded, so this signals a bug in the
    caller rather than a condition to recover from.
    """


class RouteOpts(BaseModel):
    """Fully resolved notification options of a route."""

    model_config = ConfigDict(frozen=True)

    # Identifier of the associated notification configuration.
    send_to: str = ""
    send_resolved: bool = True

    # Labels to group alerts by for notifications.
    group_by: frozenset[str] = frozenset()

    # How long to wait to group matching alerts before sending a notification.
    group_wait: timedelta = timedelta(seconds=20)
    group_interval: timedelta = timedelta(minutes=5)
    repeat_interval: timedelta = timedelta(hours=1)

    def to_dict(self) -> dict[str, Any]:
        return {
            "send_to": self.send_to,
            "send_resolved": self.send_resolved,
            "group_by": sorted(self.group_by),
            "group_wait": format_duration(self.group_wait),
            "group_interval": format_duration(self.group_interval),
            "repeat_interval": format_duration(self.repeat_interval),
        }

    def __str__(self) -> str:
        labels = ", ".join(f'"{ln}"' for ln in sorted(self.group_by))
        return (
            f'<RouteOpts send_to:"{self.send_to}" group_by:[{labels}] '
            f'timers:"{format_duration(self.group_wait)}"|"{format_duration(self.group_interval)}">'
        )


DEFAULT_ROUTE_OPTS = RouteOpts()


@dataclass(frozen=True)
class Route:
    """A node of the routing tree."""

    opts: RouteOpts
    matchers: Matchers
    # If true, an alert matches further routes on the same level.
    continue_: bool
    routes: "Routes"

    def match(self, labels: Mapping[str, str]) -> list[RouteOpts]:
        """Depth-first, left-to-right search returning the options of the reached nodes."""
        if not self.matchers.matches(labels):
            return []

        matched: list[RouteOpts] = []
        for child in self.routes:
            child_matches = child.match(labels)
            matched.extend(child_matches)

            if child_matches and not child.continue_:
                break

        if not matched:
            matched.append(self.opts)

        return matched

    def to_dict(self) -> dict[str, Any]:
        return {
            **self.opts.to_dict(),
            "matchers": [str(m) for m in self.matchers],
            "continue": self.continue_,
            "routes": self.routes.to_dict(),
        }


class Routes:
    """An ordered sequence of sibling routes."""

    __slots__ = ("_routes",)

    def __init__(self, routes: Iterable[Route] = ()):
        self._routes = tuple(routes)

    def match(self, labels: Mapping[str, str]) -> list[RouteOpts]:
        """Match against a synthetic root that always matches and carries the defaults.

        The result is never empty: if no route matches, the default options
        are returned.
        """
        root = Route(
            opts=DEFAULT_ROUTE_OPTS,
            matchers=Matchers(),
            continue_=False,
            routes=self,
        )
        matched = root.match(labels)
        logger.debug(f"Labels {dict(labels)} matched {len(matched)} route(s)")
        return matched

    def to_dict(self) -> list[dict[str, Any]]:
        return [route.to_dict() for route in self._routes]

    def __iter__(self) -> Iterator[Route]:
        return iter(self._routes)

    def __len__(self) -> int:
        return len(self._routes)

    def __getitem__(self, index: int) -> Route:
        return self._routes[index]


def build_route(config: RouteConfig, parent_opts: RouteOpts) -> Route:
    """Build a route from configuration, inheriting unset options from the parent."""
    # group_by is never inherited.
    updates: dict[str, Any] = {"group_by": frozenset(config.group_by)}

    if config.send_to:
        updates["send_to"] = config.send_to
    if config.group_wait is not None:
        updates["group_wait"] = config.group_wait
    if config.group_interval is not None:
        updates["group_interval"] = config.group_interval
    if config.repeat_interval is not None:
        updates["repeat_interval"] = config.repeat_interval
    if config.send_resolved is not None:
        updates["send_resolved"] = config.send_resolved

    opts = parent_opts.model_copy(update=updates)

    matchers: list[Matcher] = [Matcher.equal(ln, lv) for ln, lv in config.match.items()]
    for ln, source in config.match_re.items():
        try:
            matchers.append(Matcher.regex(ln, source))
        except InvalidMatcherError as e:
            # Must have been rejected during config validation.
            logger.critical(f"Unvalidated regex reached route construction: {e}")
            raise RouteConstructionError(str(e)) from e

    return Route(
        opts=opts,
        matchers=Matchers(matchers),
        continue_=config.continue_,
        routes=build_routes(config.routes, opts),
    )


def build_routes(configs: Iterable[RouteConfig], parent_opts: RouteOpts | None = None) -> Routes:
    """Build sibling routes in configuration order."""
    if parent_opts is None:
        parent_opts = DEFAULT_ROUTE_OPTS
    return Routes(build_route(config, parent_opts) for config in configs)
