"""Alert routing through the configured routing tree."""

import logging
import threading
from collections.abc import Mapping
from pathlib import Path

import yaml

from alertroute.models.alert import Alert, AlertGroup
from alertroute.models.routes import RoutesConfig
from alertroute.route import RouteOpts, Routes, build_routes

logger = logging.getLogger(__name__)


def load_routes_config(config_path: str | Path) -> RoutesConfig:
    """Load routing configuration from YAML file."""
    path = Path(config_path)
    if not path.exists():
        raise FileNotFoundError(f"Routes config not found: {path}")

    with open(path, "r", encoding="utf-8") as f:
        data = yaml.safe_load(f) or {}

    return RoutesConfig.model_validate(data)


class AlertRouter:
    """Owns the current routing tree and resolves alerts against it.

    Matching only reads the tree, so any number of callers may match
    concurrently. ``reload`` builds a new tree first and then replaces the
    reference in a single assignment; readers see either the old or the new
    tree, never a partial one.
    """

    def __init__(self, config: RoutesConfig):
        self._reload_lock = threading.Lock()
        self._config = config
        self._routes = build_routes(config.routes)
        logger.info(f"Router initialized with {len(self._routes)} route(s)")

    @property
    def config(self) -> RoutesConfig:
        return self._config

    @property
    def routes(self) -> Routes:
        return self._routes

    def reload(self, config: RoutesConfig) -> None:
        """Replace the routing tree with one built from ``config``.

        If building fails the current tree stays in place.
        """
        with self._reload_lock:
            routes = build_routes(config.routes)
            self._config, self._routes = config, routes
        logger.info(f"Router reloaded with {len(routes)} route(s)")

    def match(self, labels: Mapping[str, str]) -> list[RouteOpts]:
        """Return the options of every route the label set reaches."""
        matched = self._routes.match(labels)
        for opts in matched:
            logger.debug(f"Labels {dict(labels)} routed to {opts}")
        return matched

    def route_alert_group(self, alert_group: AlertGroup) -> list[tuple[Alert, list[RouteOpts]]]:
        """Resolve each alert of the group by its own labels, in order."""
        results: list[tuple[Alert, list[RouteOpts]]] = []
        for alert in alert_group.alerts:
            matched = self.match(alert.labels)
            logger.info(
                f"Alert '{alert.name}' from {alert_group.source} matched "
                f"{len(matched)} route(s): {[opts.send_to for opts in matched]}"
            )
            results.append((alert, matched))
        return results
