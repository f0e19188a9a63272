"""
API endpoint tests for the tool-call adapter.

Tests cover:
- POST /tools/{tool_name} - Tool invocation
- GET /tools - Tool listing
- GET /health - Liveness

The gateway is real; only process launches are mocked.
"""

import asyncio
from unittest.mock import AsyncMock, MagicMock

import pytest
from fastapi.testclient import TestClient

from kubeguard.main import cancel_on_disconnect, create_app

from conftest import FailingTelemetry, ProcessResponse


@pytest.fixture
def client_factory(make_gateway):
    """Build a TestClient around a gateway with the given settings."""

    def _client(**settings) -> TestClient:
        return TestClient(create_app(make_gateway(**settings)))

    return _client


@pytest.mark.process_mock
class TestToolCall:
    """Test POST /tools/{tool_name}."""

    def test_success(self, client_factory, process_mocker, telemetry):
        process_mocker.register("kubectl get pods", ProcessResponse(output="pod-list"))

        with client_factory() as client:
            response = client.post(
                "/tools/kubectl", json={"operation": "get", "arguments": {"resource": "pods"}}
            )

        assert response.status_code == 200
        assert response.json() == {
            "is_error": False,
            "text": "pod-list",
            "error_kind": None,
            "stage": "succeeded",
        }
        assert telemetry.invocations == [("kubectl", "get", True)]
        assert telemetry.startups == 1

    def test_tool_error_is_200(self, client_factory, process_mocker):
        with client_factory() as client:
            response = client.post(
                "/tools/kubectl",
                json={"operation": "delete", "arguments": {"resource": "pods", "name": "web"}},
            )

        assert response.status_code == 200
        body = response.json()
        assert body["is_error"] is True
        assert body["error_kind"] == "access_denied"
        assert body["text"].startswith("access_denied: ")
        assert body["stage"] == "received"
        assert process_mocker.call_count == 0

    def test_tool_not_enabled(self, client_factory, process_mocker):
        with client_factory() as client:
            response = client.post("/tools/helm", json={"operation": "list"})

        assert response.json()["error_kind"] == "tool_not_enabled"

    def test_namespace_default(self, client_factory, process_mocker):
        process_mocker.set_default_response(ProcessResponse(output="ok"))

        with client_factory(allow_namespaces="prod") as client:
            response = client.post(
                "/tools/kubectl", json={"operation": "get", "arguments": {"resource": "pods"}}
            )

        assert response.json()["is_error"] is False
        assert process_mocker.last_call.command == ["kubectl", "get", "pods", "--namespace=prod"]

    def test_execution_failure_text(self, client_factory, process_mocker):
        process_mocker.set_default_response(ProcessResponse(output="Error from server (Forbidden)", returncode=1))

        with client_factory() as client:
            response = client.post(
                "/tools/kubectl", json={"operation": "get", "arguments": {"resource": "secrets"}}
            )

        body = response.json()
        assert body["is_error"] is True
        assert body["error_kind"] == "execution_failed"
        assert "Forbidden" in body["text"]

    @pytest.mark.parametrize(
        "payload",
        [
            {},
            {"operation": ""},
            {"operation": "Get Pods"},
            {"operation": "get", "arguments": ["pods"]},
            {"operation": "get", "arguments": {"--namespace": "x"}},
        ],
    )
    def test_malformed_body(self, client_factory, process_mocker, payload):
        with client_factory() as client:
            response = client.post("/tools/kubectl", json=payload)

        assert response.status_code == 422
        assert process_mocker.call_count == 0

    def test_telemetry_failure_does_not_break_startup(self, make_gateway, process_mocker):
        process_mocker.set_default_response(ProcessResponse(output="ok"))
        app = create_app(make_gateway(telemetry=FailingTelemetry()))

        with TestClient(app) as client:
            response = client.post("/tools/kubectl", json={"operation": "version", "arguments": {"client": True}})

        assert response.status_code == 200
        assert response.json()["text"] == "ok"


class TestListing:
    """Test GET /tools and GET /health."""

    def test_list_tools(self, client_factory):
        with client_factory(access_level="readwrite", allow_namespaces="prod,dev", additional_tools="cilium") as client:
            response = client.get("/tools")

        assert response.status_code == 200
        body = response.json()
        assert body["access_level"] == "readwrite"
        assert body["allowed_namespaces"] == ["dev", "prod"]
        assert [tool["name"] for tool in body["tools"]] == ["cilium", "kubectl"]

        cilium = {op["name"]: op for op in body["tools"][0]["operations"]}
        assert cilium["status"]["permitted"] is True
        assert cilium["install"]["permitted"] is False

    def test_health(self, client_factory):
        with client_factory() as client:
            response = client.get("/health")

        assert response.status_code == 200
        assert response.json()["status"] == "ok"


class TestDisconnect:
    """Test cancellation on client disconnect."""

    @pytest.mark.asyncio
    async def test_cancels_running_call(self):
        request = MagicMock()
        request.is_disconnected = AsyncMock(return_value=True)
        task = asyncio.create_task(asyncio.sleep(30))

        assert await cancel_on_disconnect(request, task, 0.01) is True
        with pytest.raises(asyncio.CancelledError):
            await task

    @pytest.mark.asyncio
    async def test_leaves_finished_call_alone(self):
        request = MagicMock()
        request.is_disconnected = AsyncMock(return_value=False)
        task = asyncio.create_task(asyncio.sleep(0))
        await task

        assert await cancel_on_disconnect(request, task, 0.01) is False
        request.is_disconnected.assert_not_called()

    @pytest.mark.asyncio
    async def test_polls_until_done(self):
        request = MagicMock()
        request.is_disconnected = AsyncMock(return_value=False)
        task = asyncio.create_task(asyncio.sleep(0.05))

        assert await cancel_on_disconnect(request, task, 0.01) is False
        assert task.done() and not task.cancelled()
