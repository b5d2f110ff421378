"""Tests for health check and info endpoints."""


def test_health_check(client):
    """Health endpoint should return ok status."""
    response = client.get("/api/health")
    assert response.status_code == 200
    data = response.json()
    assert data["status"] == "ok"
    assert data["success"] is True
    assert "app_name" in data


def test_api_info_lists_endpoints(client):
    response = client.get("/api")
    assert response.status_code == 200
    assert response.json()["endpoints"]["transactions"] == "/api/transactions"


def test_unknown_route_uses_envelope(client):
    """Unknown routes should return the error envelope."""
    response = client.get("/api/nope")
    assert response.status_code == 404
    body = response.json()
    assert body["success"] is False
    assert "Route not found" in body["message"]
