"""Tests for alertroute.main — HTTP surface."""

from pathlib import Path

import pytest
from fastapi.testclient import TestClient

from alertroute.config import get_settings
from alertroute.main import app


@pytest.fixture
def client(routes_file: Path, monkeypatch: pytest.MonkeyPatch):
    monkeypatch.setenv("ROUTES_CONFIG", str(routes_file))
    get_settings.cache_clear()
    with TestClient(app) as c:
        yield c
    get_settings.cache_clear()


@pytest.fixture
def unconfigured_client(tmp_path: Path, monkeypatch: pytest.MonkeyPatch):
    monkeypatch.setenv("ROUTES_CONFIG", str(tmp_path / "missing.yaml"))
    get_settings.cache_clear()
    with TestClient(app) as c:
        yield c
    get_settings.cache_clear()


class TestInfoEndpoints:
    def test_health(self, client: TestClient) -> None:
        assert client.get("/health").json() == {"status": "healthy"}

    def test_sources(self, client: TestClient) -> None:
        assert client.get("/sources").json() == {"sources": ["grafana", "alertmanager"]}

    def test_routes(self, client: TestClient) -> None:
        routes = client.get("/routes").json()["routes"]
        assert [r["send_to"] for r in routes] == ["team-api", "team-storage", "audit-log"]
        assert routes[0]["routes"][0]["send_to"] == "oncall"
        assert routes[0]["routes"][0]["group_wait"] == "10s"
        assert routes[1]["matchers"] == ['service=~"db|cache"']


class TestMatchEndpoint:
    def test_match(self, client: TestClient) -> None:
        response = client.post("/match", json={"labels": {"service": "api", "severity": "critical"}})
        assert response.status_code == 200
        routes = response.json()["routes"]
        assert len(routes) == 1
        assert routes[0]["send_to"] == "oncall"
        assert routes[0]["group_wait"] == "10s"
        assert routes[0]["group_by"] == []

    def test_match_default(self, client: TestClient) -> None:
        routes = client.post("/match", json={"labels": {}}).json()["routes"]
        assert routes == [
            {
                "send_to": "",
                "send_resolved": True,
                "group_by": [],
                "group_wait": "20s",
                "group_interval": "5m",
                "repeat_interval": "1h",
            }
        ]

    def test_unconfigured(self, unconfigured_client: TestClient) -> None:
        response = unconfigured_client.post("/match", json={"labels": {}})
        assert response.status_code == 503
        assert unconfigured_client.get("/routes").json() == {"routes": []}


class TestReloadEndpoint:
    def test_reload(self, client: TestClient, routes_file: Path) -> None:
        routes_file.write_text("routes:\n  - send_to: everything\n", encoding="utf-8")

        response = client.post("/-/reload")
        assert response.status_code == 200
        assert response.json() == {"status": "ok", "routes": 1}

        routes = client.post("/match", json={"labels": {"service": "api"}}).json()["routes"]
        assert [r["send_to"] for r in routes] == ["everything"]

    def test_invalid_reload_keeps_routes(self, client: TestClient, routes_file: Path) -> None:
        routes_file.write_text("routes:\n  - match_re:\n      a: '('\n", encoding="utf-8")

        assert client.post("/-/reload").status_code == 400

        routes = client.post("/match", json={"labels": {"service": "api"}}).json()["routes"]
        assert [r["send_to"] for r in routes] == ["team-api"]

    def test_reload_disabled(self, client: TestClient, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setenv("ENABLE_RELOAD", "false")
        get_settings.cache_clear()
        assert client.post("/-/reload").status_code == 403

    def test_reload_configures_unconfigured(
        self, unconfigured_client: TestClient, tmp_path: Path
    ) -> None:
        (tmp_path / "missing.yaml").write_text("routes: []\n", encoding="utf-8")
        assert unconfigured_client.post("/-/reload").status_code == 200
        assert unconfigured_client.post("/match", json={"labels": {}}).status_code == 200


class TestWebhookEndpoint:
    def test_grafana(self, client: TestClient) -> None:
        payload = {
            "status": "firing",
            "alerts": [
                {"labels": {"alertname": "HighLatency", "service": "api", "severity": "critical"}},
                {"labels": {"alertname": "Slow", "service": "db", "env": "production"}},
            ],
        }
        response = client.post("/webhook/grafana", json=payload)
        assert response.status_code == 200

        results = response.json()["results"]
        assert [r["alert"] for r in results] == ["HighLatency", "Slow"]
        assert [[o["send_to"] for o in r["routes"]] for r in results] == [
            ["oncall"],
            ["team-storage", "audit-log"],
        ]

    def test_alertmanager(self, client: TestClient) -> None:
        payload = {"alerts": [{"labels": {"alertname": "X", "service": "cache"}}]}
        results = client.post("/webhook/alertmanager", json=payload).json()["results"]
        assert [o["send_to"] for o in results[0]["routes"]] == ["team-storage"]

    def test_unknown_source(self, client: TestClient) -> None:
        assert client.post("/webhook/nagios", json={}).status_code == 400

    def test_invalid_payload(self, client: TestClient) -> None:
        assert client.post("/webhook/grafana", json={"alerts": "nope"}).status_code == 400
        assert client.post("/webhook/grafana", json=[1, 2]).status_code == 400

    def test_numeric_timestamp(self, client: TestClient) -> None:
        payload = {"alerts": [{"labels": {"service": "cache"}, "startsAt": 123}]}
        response = client.post("/webhook/grafana", json=payload)
        assert response.status_code == 200
        assert response.json()["results"][0]["routes"][0]["send_to"] == "team-storage"

    def test_malformed_json(self, client: TestClient) -> None:
        response = client.post(
            "/webhook/grafana",
            content=b"{not json",
            headers={"Content-Type": "application/json"},
        )
        assert response.status_code == 400

    def test_unconfigured(self, unconfigured_client: TestClient) -> None:
        assert unconfigured_client.post("/webhook/grafana", json={}).status_code == 503
