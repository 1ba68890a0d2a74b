"""Tests de la API HTTP del dashboard (envelopes y códigos de estado)."""

import pytest
from fastapi.testclient import TestClient

from hydro_api.coordinator import build_coordinator, get_coordinator
from hydro_api.infrastructure.persistence import ensure_schema
from hydro_api.main import app


@pytest.fixture
def client(coordinator):
    # Sin context manager: el lifespan (conexión MQTT real) no se ejecuta
    app.dependency_overrides[get_coordinator] = lambda: coordinator
    yield TestClient(app)
    app.dependency_overrides.clear()


def _set_manual(client):
    assert client.post("/api/status", json={"mode": "manual"}).status_code == 200


# =============================================================================
# HEALTH
# =============================================================================

class TestHealth:

    def test_health(self, client):
        response = client.get("/api/health")
        assert response.status_code == 200
        assert response.json() == {"success": True, "message": "API Server is running"}

    def test_ready(self, client):
        response = client.get("/api/ready")
        assert response.status_code == 200
        assert response.json()["mqtt_connected"] is True

    def test_receiver_metrics(self, client):
        body = client.get("/api/metrics").json()
        assert body["success"] is True
        assert "stats" in body["data"]

    def test_unknown_route_uses_error_envelope(self, client):
        response = client.get("/api/nope")
        assert response.status_code == 404
        assert response.json()["success"] is False


# =============================================================================
# STATUS
# =============================================================================

class TestStatusEndpoints:

    def test_get_status(self, client):
        body = client.get("/api/status").json()

        assert body["success"] is True
        assert body["data"]["mode"] == "auto"
        assert body["data"]["chiller_status"] == "OFF"
        assert body["data"]["fsm_state"] == "S0"
        assert body["data"]["record_date"] == "2025-06-01"
        assert body["data"]["record_time"] == "12:30:45"

    def test_get_status_without_row(self, settings, bare_engine, transport, clock):
        empty = build_coordinator(settings=settings, engine=bare_engine, transport=transport, clock=clock)
        ensure_schema(bare_engine)
        app.dependency_overrides[get_coordinator] = lambda: empty
        try:
            body = TestClient(app).get("/api/status").json()
        finally:
            app.dependency_overrides.clear()

        assert body["data"]["mode"] == "auto"
        assert body["data"]["id"] is None

    @pytest.mark.parametrize("mode", ["manual", "MANUAL", " Manual "])
    def test_set_mode(self, client, mode):
        response = client.post("/api/status", json={"mode": mode})

        assert response.status_code == 200
        body = response.json()
        assert body["message"] == "Mode updated to manual"
        assert body["data"]["mode"] == "manual"

    @pytest.mark.parametrize("payload", [{"mode": "turbo"}, {"mode": ""}, {}])
    def test_invalid_mode(self, client, payload):
        response = client.post("/api/status", json=payload)

        assert response.status_code == 400
        assert response.json() == {"success": False, "error": 'Invalid mode. Must be "auto" or "manual"'}

    def test_non_json_body(self, client):
        response = client.post("/api/status", content=b"not json", headers={"content-type": "application/json"})

        assert response.status_code == 400
        assert response.json()["success"] is False


# =============================================================================
# CHILLER
# =============================================================================

class TestChillerEndpoint:

    def test_rejected_in_auto_mode(self, client, transport):
        response = client.post("/api/chiller/control", json={"action": "ON"})

        assert response.status_code == 400
        assert response.json() == {
            "success": False,
            "error": "Chiller can only be controlled manually in MANUAL mode",
        }
        assert transport.payloads("hydro/control/chiller") == []

    def test_invalid_action(self, client):
        _set_manual(client)
        response = client.post("/api/chiller/control", json={"action": "BLINK"})

        assert response.status_code == 400
        assert response.json()["error"] == 'Invalid action. Must be "ON" or "OFF"'

    def test_manual_command(self, client, transport):
        _set_manual(client)

        response = client.post("/api/chiller/control", json={"action": "on"})

        assert response.status_code == 200
        body = response.json()
        assert body["message"] == "Chiller ON command sent"
        assert body["data"]["chiller_status"] == "ON"
        assert transport.payloads("hydro/control/chiller") == ["MODE=MANUAL", "CHILLER=ON"]

    def test_broker_down_returns_503_and_keeps_intent(self, client, transport, coordinator):
        _set_manual(client)
        transport.connected = False

        response = client.post("/api/chiller/control", json={"action": "ON"})

        assert response.status_code == 503
        assert response.json()["error"].startswith("MQTT broker not available")
        assert coordinator.status_store.get_current().chiller_status.value == "ON"


# =============================================================================
# LOGS
# =============================================================================

class TestLogsEndpoints:

    def test_latest_when_empty(self, client):
        body = client.get("/api/logs/latest").json()
        assert body["success"] is True
        assert body["data"] is None

    def test_pagination(self, client, coordinator):
        for hour in range(1, 6):
            coordinator.pipeline.process(f"Date:29-12-2025 Time={hour}:00:00 LDR={hour}")

        body = client.get("/api/logs", params={"page": 2, "limit": 2}).json()

        assert body["success"] is True
        assert body["pagination"] == {"page": 2, "limit": 2, "total": 5, "totalPages": 3}
        assert [row["ldr_value"] for row in body["data"]] == [3, 2]
        assert body["data"][0]["chiller"] == ""
        assert body["data"][0]["state"] == ""

    def test_latest(self, client, coordinator):
        coordinator.pipeline.process("Date:29-12-2025 Time=7:00:00 LDR=7 VB=54.20 CHILLER=ON")

        data = client.get("/api/logs/latest").json()["data"]

        assert data["ldr_value"] == 7
        assert data["battery_voltage"] == pytest.approx(54.2)
        assert data["chiller"] == "ON"
        assert data["record_time"] == "07:00:00"

    @pytest.mark.parametrize(
        "params",
        [{"page": 0}, {"page": -1}, {"page": "abc"}, {"limit": 0}, {"limit": 1001}],
    )
    def test_invalid_pagination_is_rejected(self, client, params):
        response = client.get("/api/logs", params=params)
        assert response.status_code == 400
        assert response.json()["success"] is False

    def test_store_down_returns_500(self, settings, bare_engine, transport, clock):
        broken = build_coordinator(settings=settings, engine=bare_engine, transport=transport, clock=clock)
        app.dependency_overrides[get_coordinator] = lambda: broken
        try:
            response = TestClient(app).get("/api/logs")
        finally:
            app.dependency_overrides.clear()

        assert response.status_code == 500
        assert response.json()["success"] is False
