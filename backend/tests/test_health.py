"""Tests for /health and / endpoints."""


class TestHealth:

    def test_health_returns_200(self, client):
        resp = client.get("/health")
        assert resp.status_code == 200
        data = resp.json()
        assert data["status"] == "healthy"
        assert data["db"] == "ok"
        assert data["cache"] == "ok"
        assert "uptime_seconds" in data
        assert "version" in data

    def test_health_degraded_when_cache_down(self, failing_client):
        resp = failing_client.get("/health")
        assert resp.status_code == 200
        assert resp.json()["status"] == "degraded"
        assert resp.json()["cache"] == "error"

    def test_root_returns_api_info(self, client):
        resp = client.get("/")
        assert resp.status_code == 200
        assert resp.json()["name"] == "Spacefy API"


class TestResponseHeaders:

    def test_response_includes_middleware_headers(self, client):
        resp = client.get("/health")
        assert "x-request-id" in resp.headers
        assert "x-response-time" in resp.headers

    def test_request_id_is_propagated(self, client):
        resp = client.get("/health", headers={"X-Request-ID": "abc123"})
        assert resp.headers["x-request-id"] == "abc123"


class TestErrorEnvelope:

    def test_unknown_route_is_404(self, client):
        assert client.get("/api/v1/nope").status_code == 404

    def test_validation_error_envelope(self, client):
        resp = client.post("/api/v1/auth/login", json={})
        assert resp.status_code == 400
        body = resp.json()
        assert body["success"] is False
        assert body["error"] == "VALIDATION_ERROR"
        assert {e["field"] for e in body["details"]["errors"]} == {"email", "password"}
