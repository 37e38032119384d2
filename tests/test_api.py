"""Tests for the HTTP surface, driven through FastAPI's TestClient."""

import pytest
from fastapi.testclient import TestClient

from vitalis.src.core.errors import VectorStoreAdminError
from vitalis.src.main import create_app


@pytest.fixture
def client(orchestrator):
    with TestClient(create_app(orchestrator=orchestrator)) as test_client:
        yield test_client


class TestChat:
    def test_chat_returns_envelope(self, client):
        response = client.post("/chat", json={"message": "What are the benefits of regular exercise?"})
        assert response.status_code == 200
        body = response.json()
        assert body["sessionId"].startswith("session_")
        assert len(body["sources"]) == 3
        assert body["metadata"]["embeddingDimensions"] == 1024
        assert body["metadata"]["wasTranslated"] is False

    def test_chat_echoes_session(self, client):
        response = client.post("/chat", json={"message": "sleep tips", "sessionId": "session_42_abcdefghi"})
        assert response.json()["sessionId"] == "session_42_abcdefghi"

    @pytest.mark.parametrize("payload", [{}, {"message": ""}, {"message": "   "}, {"message": 7}])
    def test_invalid_message_is_400(self, client, payload):
        response = client.post("/chat", json=payload)
        assert response.status_code == 400
        body = response.json()
        assert body["error"] == "ClientInputError"
        assert body["status"] == 400
        assert "Message is required" in body["details"]
        assert body["path"] == "/chat"
        assert body["timestamp"].endswith("Z")

    def test_too_long_message_is_400(self, client):
        response = client.post("/chat", json={"message": "x" * 1001})
        assert response.status_code == 400
        assert "at most 1000" in response.json()["details"]


class TestOtherRoutes:
    def test_health_info(self, client):
        response = client.get("/chat/health/nutrition")
        assert response.status_code == 200
        body = response.json()
        assert body["topic"] == "nutrition"
        assert body["information"]
        assert "generatedAt" in body

    def test_history_placeholder(self, client):
        body = client.get("/chat/history/session_1_abc").json()
        assert body["sessionId"] == "session_1_abc"
        assert body["messages"] == []
        assert "not implemented" in body["message"]

    def test_chat_test(self, client):
        body = client.get("/chat/test").json()
        assert "working" in body["message"]
        assert body["endpoints"]["chat"] == "POST /chat"

    def test_service_health(self, client):
        body = client.get("/health").json()
        assert body["status"] == "healthy"
        assert isinstance(body["uptime"], float)
        assert body["providers"]["embedding"] == "fallback"
        assert body["providers"]["generation"] == "fallback"


class TestErrorMapping:
    def test_admin_error_maps_to_503(self, orchestrator):
        app = create_app(orchestrator=orchestrator)

        @app.get("/boom")
        async def boom():
            raise VectorStoreAdminError("index unavailable")

        with TestClient(app) as test_client:
            response = test_client.get("/boom")
        assert response.status_code == 503
        assert response.json()["error"] == "VectorStoreAdminError"
        assert response.json()["details"] == "index unavailable"

    @pytest.mark.parametrize("payload", [{"message": "hi", "sessionId": 123}, ["hi"]])
    def test_malformed_body_is_400(self, client, payload):
        response = client.post("/chat", json=payload)
        assert response.status_code == 400
        body = response.json()
        assert body["error"] == "ClientInputError"
        assert body["status"] == 400
        assert body["details"]
        assert body["path"] == "/chat"
        assert body["timestamp"].endswith("Z")

    def test_session_id_type_is_named(self, client):
        response = client.post("/chat", json={"message": "hi", "sessionId": 123})
        assert "sessionId" in response.json()["details"]

    def test_unexpected_error_maps_to_500(self, orchestrator):
        app = create_app(orchestrator=orchestrator)

        @app.get("/crash")
        async def crash():
            raise RuntimeError("disk on fire")

        with TestClient(app, raise_server_exceptions=False) as test_client:
            response = test_client.get("/crash")
        assert response.status_code == 500
        body = response.json()
        assert body["error"] == "InternalServerError"
        assert body["status"] == 500
        assert body["path"] == "/crash"
        assert body["timestamp"].endswith("Z")
