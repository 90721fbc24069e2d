"""
Tests for health probes and app-wide response handling.
"""


class TestHealth:

    def test_health(self, client):
        response = client.get("/api/health")

        assert response.status_code == 200
        body = response.json()
        assert body["success"] is True
        assert body["message"] == "API is running"
        assert body["environment"] == "testing"

    def test_ready(self, client):
        response = client.get("/api/health/ready")

        assert response.status_code == 200
        assert response.json()["database"] == "connected"

    def test_root(self, client):
        assert client.get("/").json()["service"]


class TestResponseHandling:

    def test_request_id_is_echoed(self, client):
        response = client.get("/api/recipes", headers={"X-Request-ID": "req-123"})

        assert response.headers["X-Request-ID"] == "req-123"
        assert "X-Process-Time" in response.headers

    def test_request_id_is_generated(self, client):
        assert client.get("/api/recipes").headers["X-Request-ID"]

    def test_unknown_route_uses_msg_envelope(self, client):
        response = client.get("/api/nowhere")

        assert response.status_code == 404
        assert response.json() == {"msg": "Not Found"}

    def test_malformed_body_is_a_validation_failure(self, client, alice):
        response = client.post(
            "/api/recipes",
            content="{not json",
            headers={**alice["headers"], "Content-Type": "application/json"},
        )

        assert response.status_code == 400
        assert response.json()["msg"] == "Validation failed"
