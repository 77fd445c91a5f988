"""
Tests for API endpoints
"""

import importlib
import json
import logging
from unittest.mock import patch

import pytest
from fastapi.testclient import TestClient

from conftest import JANE_DOE, CrmStub, SearchStub


@pytest.fixture
def crm():
    return CrmStub({("19092601366", "mobile_number"): JANE_DOE})


@pytest.fixture
def test_client(build_router, crm):
    from voice_router.api.webhooks import get_webhook_router
    from voice_router.main import app

    app.dependency_overrides[get_webhook_router] = lambda: build_router(crm, SearchStub())
    with TestClient(app) as client:
        yield client
    app.dependency_overrides.clear()


class TestHealthEndpoints:
    """Tests for health check endpoints"""

    def test_health_check(self, test_client):
        response = test_client.get("/health")
        assert response.status_code == 200
        assert response.json() == {"status": "ok"}


class TestServerWebhook:
    """Tests for the voice-platform server URL"""

    def test_assistant_request(self, test_client):
        response = test_client.post(
            "/vapi/server",
            json={"message": {"type": "assistant-request", "call": {"customer": {"number": "+19092601366"}}}},
        )
        assert response.status_code == 200
        assert "Jane" in response.json()["assistantOverrides"]["firstMessage"]

    def test_tool_calls(self, test_client):
        response = test_client.post(
            "/vapi/server",
            json={
                "message": {
                    "type": "tool-calls",
                    "toolCalls": [
                        {
                            "id": "tc1",
                            "function": {"name": "search_knowledge_base", "arguments": '{"query":"notarize at a bank"}'},
                        }
                    ],
                }
            },
        )
        assert response.status_code == 200
        (entry,) = response.json()["results"]
        assert entry["toolCallId"] == "tc1"
        assert "bank" in entry["result"]

    def test_unrecognized_event(self, test_client):
        response = test_client.post("/vapi/server", json={"type": "mystery", "data": {}})
        assert response.status_code == 200
        assert response.json()["success"] is True

    def test_invalid_json_acknowledged(self, test_client):
        response = test_client.post(
            "/vapi/server", content=b"{not json", headers={"Content-Type": "application/json"}
        )
        assert response.status_code == 200
        assert response.json() == {"success": True}

    @pytest.mark.parametrize(
        "path", ["/vapi/tools/freshsales-lookup", "/vapi/tools/customer-lookup", "/vapi/tools/kb-search"]
    )
    def test_tool_urls_share_the_router(self, test_client, path):
        response = test_client.post(
            path,
            json={
                "message": {
                    "type": "tool-calls",
                    "toolWithToolCallList": [
                        {
                            "name": "lookup_customer_for_greeting",
                            "toolCall": {"id": "g1", "parameters": {"phone_number": "+19092601366"}},
                        }
                    ],
                }
            },
        )
        assert response.status_code == 200
        result = json.loads(response.json()["results"][0]["result"])
        assert result["firstName"] == "Jane"

    def test_cors_preflight(self, test_client):
        response = test_client.options(
            "/vapi/server",
            headers={"Origin": "https://dashboard.example.com", "Access-Control-Request-Method": "POST"},
        )
        assert response.status_code == 200
        assert response.headers["access-control-allow-origin"] == "*"


class TestDebugEndpoint:
    """Tests for the tool connectivity probe"""

    def test_echoes_tool_call(self, test_client):
        response = test_client.post(
            "/vapi/tools/debug",
            json={"message": {"type": "tool-calls", "toolCallList": [{"id": "abc", "name": "ping"}]}},
        )
        assert response.status_code == 200
        (entry,) = response.json()["results"]
        assert entry["toolCallId"] == "abc"
        payload = json.loads(entry["result"])
        assert payload["success"] is True
        assert payload["receivedType"] == "tool-calls"
        assert payload["toolCallCount"] == 1

    def test_empty_body(self, test_client):
        response = test_client.post("/vapi/tools/debug", content=b"")
        assert response.status_code == 200
        assert response.json()["results"][0]["toolCallId"] == "unknown"

    def test_non_string_tool_name(self, test_client):
        response = test_client.post("/vapi/tools/debug", json={"toolCallList": [{"id": "b", "name": 123}]})
        assert response.status_code == 200
        assert response.json()["results"][0]["toolCallId"] == "b"

    def test_parse_failure_acknowledged(self, test_client):
        with patch("voice_router.event_router.parse_event", side_effect=RuntimeError("boom")):
            response = test_client.post("/vapi/tools/debug", json={"toolCallList": [{"id": "b"}]})
        assert response.status_code == 200
        assert response.json() == {"success": True}


class TestAppImport:
    """Importing the app must not reconfigure the host process"""

    def test_import_leaves_root_handlers_alone(self):
        import voice_router.main

        sentinel = logging.NullHandler()
        root = logging.getLogger()
        root.addHandler(sentinel)
        try:
            importlib.reload(voice_router.main)
            assert sentinel in root.handlers
        finally:
            root.removeHandler(sentinel)
