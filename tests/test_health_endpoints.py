import httpx
from fastapi.testclient import TestClient
from starlette.requests import Request

from studio import main as main_module
from studio.core.limiter import workspace_key
from studio.main import app
from studio.services.execution_client import ExecutionClient


def idle_runtime() -> ExecutionClient:
    transport = httpx.MockTransport(lambda request: httpx.Response(200, json=[]))
    return ExecutionClient("http://runtime.test", "test-token", transport=transport)


def test_health_is_ok_while_runtime_client_is_open(monkeypatch):
    monkeypatch.setattr(main_module, "build_execution_client", idle_runtime)

    with TestClient(app) as client:
        result = client.get("/healthz").json()

    assert result["status"] == "ok"
    assert result["runtime_ready"] is True
    assert isinstance(result["workspaces"], int)


def test_health_is_degraded_before_startup():
    result = TestClient(app).get("/healthz").json()

    assert result["status"] == "degraded"
    assert result["runtime_ready"] is False


def build_request(headers: dict[str, str]) -> Request:
    return Request({
        "type": "http",
        "method": "GET",
        "path": "/graph",
        "headers": [(k.lower().encode(), v.encode()) for k, v in headers.items()],
        "client": ("10.0.0.7", 1234),
    })


def test_rate_limit_key_is_per_workspace():
    assert workspace_key(build_request({"X-User-ID": " alice "})) == "workspace:alice"
    assert workspace_key(build_request({})) == "addr:10.0.0.7"
