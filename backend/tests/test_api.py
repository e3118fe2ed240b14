"""Tests for the HTTP API."""

import pytest
from fastapi.testclient import TestClient

from incident_teller.api.routes import get_alert_source
from incident_teller.main import app
from incident_teller.services.ingestion import AlertSource, AlertSourceError


class StaticAlertSource(AlertSource):
    """Alert source returning a fixed batch."""

    def __init__(self, alerts=None, error=None):
        self.alerts = alerts or []
        self.error = error
        self.requested = []

    def fetch_latest(self, last_id=0):
        self.requested.append(last_id)
        if self.error:
            raise self.error
        return list(self.alerts)


@pytest.fixture
def client():
    with TestClient(app) as client:
        yield client
    app.dependency_overrides.clear()


def alert_body(alert_id, resource_type, minute, status="warning"):
    return {
        "id": alert_id,
        "host": "web-01",
        "chart": f"system.{resource_type}",
        "name": f"{resource_type}_usage",
        "resource_type": resource_type,
        "status": status,
        "previous_status": "clear",
        "value": 90.0,
        "occurred_at": f"2024-01-15T10:0{minute}:00Z",
    }


class TestHealth:
    """Tests for health and root endpoints."""

    def test_health(self, client):
        response = client.get("/api/health")

        assert response.status_code == 200
        assert response.json()["status"] == "healthy"

    def test_root(self, client):
        response = client.get("/")
        assert response.json()["health"] == "/api/health"


class TestAnalyze:
    """Tests for the analysis endpoints."""

    def test_analyze_batch(self, client):
        response = client.post("/api/analyze", json={"alerts": [
            alert_body("cpu-1", "cpu", 3),
            alert_body("mem-1", "memory", 0, status="critical"),
            alert_body("disk-1", "disk", 1),
        ]})

        assert response.status_code == 200
        data = response.json()
        assert data["root_cause"]["alert"]["id"] == "mem-1"
        assert [e["alert_id"] for e in data["timeline"]] == ["mem-1", "disk-1", "cpu-1"]
        assert data["blast_radius"]["cascade_depth"] == 2

    def test_analyze_empty(self, client):
        response = client.post("/api/analyze", json={"alerts": []})

        assert response.status_code == 200
        assert response.json()["root_cause"] is None
        assert response.json()["confidence_level"] == "N/A"

    def test_analyze_naive_timestamps(self, client):
        body = alert_body("cpu-1", "cpu", 0)
        body["occurred_at"] = "2024-01-15T10:00:00"

        response = client.post("/api/analyze", json={"alerts": [body]})
        assert response.status_code == 200

    def test_analyze_invalid_body(self, client):
        response = client.post("/api/analyze", json={"alerts": [{"id": "x"}]})
        assert response.status_code == 422

    def test_analyze_netdata_payload(self, client):
        response = client.post("/api/analyze/netdata", json={"alarms": [{
            "unique_id": 11,
            "when": 1705312800,
            "name": "10min_cpu_usage",
            "chart": "system.cpu",
            "family": "cpu",
            "status": "WARNING",
            "old_status": "CLEAR",
            "value": 88.0,
        }], "hostname": "web-02"})

        assert response.status_code == 200
        data = response.json()
        assert data["root_cause"]["alert"]["id"] == "web-02-11"
        assert data["root_cause"]["alert"]["resource_type"] == "cpu"


class TestLiveAnalysis:
    """Tests for analysis against the configured alert source."""

    def test_live(self, client, cascade_alerts):
        source = StaticAlertSource(alerts=cascade_alerts)
        app.dependency_overrides[get_alert_source] = lambda: source

        response = client.get("/api/analyze/live", params={"after": 42})

        assert response.status_code == 200
        assert response.json()["root_cause"]["alert"]["id"] == "mem-1"
        assert source.requested == [42]

    def test_live_source_failure(self, client):
        source = StaticAlertSource(error=AlertSourceError("connection refused"))
        app.dependency_overrides[get_alert_source] = lambda: source

        response = client.get("/api/analyze/live")

        assert response.status_code == 502
        assert "connection refused" in response.json()["detail"]
