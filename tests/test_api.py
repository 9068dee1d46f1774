from fastapi.testclient import TestClient

from app.main import create_app
from app.settings import Settings


def _settings() -> Settings:
    return Settings(SYNTHETIC_ONLY=True, REFRESH_INTERVAL_SECONDS=3600, LOG_LEVEL="WARNING")


def test_events_endpoint_serves_synthetic_snapshot() -> None:
    with TestClient(create_app(_settings())) as client:
        resp = client.get("/api/events")
        assert resp.status_code == 200
        body = resp.json()

    assert body["count"] == len(body["events"]) > 0
    assert body["refreshed_at"].endswith("Z")
    sources = {e["source"] for e in body["events"]}
    assert {"earthquakes", "weather", "volcanoes", "air_quality"} <= sources
    first = body["events"][0]
    assert {"id", "type", "location", "severity", "affectedPeople", "economicImpact"} <= set(first)


def test_events_endpoint_applies_filters() -> None:
    with TestClient(create_app(_settings())) as client:
        resp = client.get(
            "/api/events",
            params={"types": "earthquake", "severities": "high,critical", "active_only": "true"},
        )

    assert resp.status_code == 200
    events = resp.json()["events"]
    assert events
    assert all(e["type"] == "earthquake" for e in events)
    assert all(e["severity"] in ("high", "critical") for e in events)
    assert all(e["status"] == "active" for e in events)


def test_events_endpoint_rejects_unknown_types() -> None:
    with TestClient(create_app(_settings())) as client:
        resp = client.get("/api/events", params={"types": "meteor"})

    assert resp.status_code == 422
    assert "meteor" in resp.json()["error"]


def test_status_refresh_and_clear() -> None:
    with TestClient(create_app(_settings())) as client:
        status = client.get("/api/status").json()
        assert status["healthy"] is True
        assert len(status["sources"]) == 8
        assert all(s["state"] == "success" for s in status["sources"].values())

        assert client.post("/api/refresh").json() == {"started": True}
        assert client.post("/api/errors/clear").json() == {"cleared": True}
        assert client.get("/api/status").json()["errors"] == []

        health = client.get("/healthz").json()
        assert health["ok"] is True
        assert health["events"] > 0
