"""Shared fixtures for alertroute tests."""

from pathlib import Path

import pytest

ROUTES_YAML = """
routes:
  - match:
      service: api
    send_to: team-api
    group_by: [alertname]
    routes:
      - match:
          severity: critical
        send_to: oncall
        group_wait: 10s
  - match_re:
      service: "db|cache"
    send_to: team-storage
    continue: true
  - match:
      env: production
    send_to: audit-log
    send_resolved: false
"""


@pytest.fixture
def routes_file(tmp_path: Path) -> Path:
    path = tmp_path / "routes.yaml"
    path.write_text(ROUTES_YAML, encoding="utf-8")
    return path
