"""Infrastructure endpoints: root, health check and Prometheus metrics."""

from unittest.mock import MagicMock

from sqlalchemy.exc import OperationalError

from app.api.dependencies import get_db
from app.main import app


def test_root(client):
    response = client.get("/")

    assert response.status_code == 200
    assert response.json()["message"] == "Welcome to the Turfbook API"


def test_health_is_served_at_root_and_v1(client):
    for path in ("/health", "/api/v1/health"):
        response = client.get(path)

        assert response.status_code == 200
        body = response.json()
        assert body["status"] == "healthy"
        assert body["checks"] == {"database": True}
        assert response.headers["cache-control"] == "no-store"


def test_health_degrades_when_database_is_unreachable(client):
    broken = MagicMock()
    broken.execute.side_effect = OperationalError("SELECT 1", {}, Exception("connection refused"))
    app.dependency_overrides[get_db] = lambda: broken

    response = client.get("/health")

    assert response.status_code == 503
    assert response.json()["status"] == "degraded"
    assert response.json()["checks"] == {"database": False}


def test_metrics_exposition(client, auth_headers, sub_venue, slot):
    client.post(
        "/api/v1/bookings/direct",
        json={
            "sub_venue_id": sub_venue.id,
            "slot_day_id": slot.day_id,
            "slot_id": slot.id,
            "sport": "Cricket",
        },
        headers=auth_headers,
    )

    response = client.get("/metrics")

    assert response.status_code == 200
    assert response.headers["content-type"].startswith("text/plain")
    assert "turfbook_slot_claims_total" in response.text
    assert "turfbook_service_operations_total" in response.text


def test_unknown_route_uses_problem_format(client):
    response = client.get("/api/v1/nothing-here")

    assert response.status_code == 404
    body = response.json()
    assert body["title"] == "Not Found"
    assert body["instance"] == "/api/v1/nothing-here"
