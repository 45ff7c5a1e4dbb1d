import httpx
from fastapi.testclient import TestClient

from chat_core.api import relay_app
from chat_core.domain.exceptions import ApiError, NetworkError


class SettingsStub:
    default_endpoint = "default-flow"


class FakeUpstream:
    name = "fake"

    def __init__(self, data=None, error=None):
        self.data = data if data is not None else {}
        self.error = error
        self.requests = []

    async def run_flow(self, req):
        self.requests.append(req)
        if self.error is not None:
            raise self.error
        return self.data


def _client(upstream, settings_stub=None, **kwargs):
    app = relay_app.create_app()
    app.dependency_overrides[relay_app.get_upstream] = lambda: upstream
    app.dependency_overrides[relay_app.get_settings] = lambda: settings_stub or SettingsStub()
    return TestClient(app, **kwargs)


def test_chat_returns_upstream_body_verbatim():
    envelope = {"outputs": [{"outputs": [{"results": {"message": {"text": "X"}}}]}], "session_id": "s"}
    upstream = FakeUpstream(data=envelope)
    resp = _client(upstream).post("/api/chat", json={"message": "hello", "endpoint": "flow-a", "tweaks": {"a": 1}})

    assert resp.status_code == 200
    assert resp.json() == envelope
    req = upstream.requests[0]
    assert req.endpoint == "flow-a"
    assert req.tweaks == {"a": 1}


def test_chat_applies_defaults():
    upstream = FakeUpstream()
    resp = _client(upstream).post("/api/chat", json={"message": "hello"})

    assert resp.status_code == 200
    req = upstream.requests[0]
    assert req.endpoint == "default-flow"
    assert req.output_type == "chat"
    assert req.input_type == "chat"
    assert req.tweaks is None


def test_chat_accepts_camel_case_types():
    upstream = FakeUpstream()
    _client(upstream).post("/api/chat", json={"message": "hello", "outputType": "text", "inputType": "text"})
    assert upstream.requests[0].output_type == "text"
    assert upstream.requests[0].input_type == "text"


def test_chat_rejects_unsafe_endpoint_without_calling_upstream():
    upstream = FakeUpstream()
    resp = _client(upstream).post("/api/chat", json={"message": "hello", "endpoint": "../admin"})

    assert resp.status_code == 400
    assert resp.json()["code"] == "INVALID_ENDPOINT"
    assert upstream.requests == []


def test_chat_rejects_blank_message():
    upstream = FakeUpstream()
    resp = _client(upstream).post("/api/chat", json={"message": "   "})
    assert resp.status_code == 400
    assert resp.json()["code"] == "INVALID_MESSAGE"


def test_chat_rejects_malformed_body():
    resp = _client(FakeUpstream()).post("/api/chat", json={"endpoint": "flow-a"})
    assert resp.status_code == 400
    assert resp.json() == {"error": "Invalid request body", "code": "VALIDATION_ERROR"}


def test_chat_reports_upstream_failures_as_500():
    upstream = FakeUpstream(error=ApiError(code="UPSTREAM_ERROR", message="Upstream responded with status 502",
                                           http_status=500, upstream_status=502))
    resp = _client(upstream).post("/api/chat", json={"message": "hello"})

    assert resp.status_code == 500
    assert resp.json() == {"error": "Upstream responded with status 502", "code": "UPSTREAM_ERROR"}


def test_chat_reports_network_failures_as_500():
    upstream = FakeUpstream(error=NetworkError(code="NETWORK_ERROR", message="connection refused", http_status=500))
    resp = _client(upstream).post("/api/chat", json={"message": "hello"})

    assert resp.status_code == 500
    assert resp.json()["code"] == "NETWORK_ERROR"
    assert "error" in resp.json()


def test_health():
    resp = _client(FakeUpstream()).get("/health")
    assert resp.json() == {"status": "ok"}


def test_chat_reports_unencodable_upstream_body_as_json_error():
    upstream = FakeUpstream(data={"score": float("nan")})
    resp = _client(upstream).post("/api/chat", json={"message": "hello"})

    assert resp.status_code == 500
    assert resp.json()["code"] == "INVALID_RESPONSE"
    assert resp.json()["error"]


def test_chat_wraps_unexpected_upstream_exceptions():
    upstream = FakeUpstream(error=httpx.InvalidURL("Invalid URL 'not a url'"))
    resp = _client(upstream).post("/api/chat", json={"message": "hello"})

    assert resp.status_code == 500
    assert resp.json() == {"error": "Invalid URL 'not a url'", "code": "INTERNAL_ERROR"}


def test_errors_outside_the_relay_still_return_json():
    class BrokenSettings:
        pass

    client = _client(FakeUpstream(), settings_stub=BrokenSettings(), raise_server_exceptions=False)
    resp = client.post("/api/chat", json={"message": "hello"})

    assert resp.status_code == 500
    assert resp.json() == {"error": "Internal server error", "code": "INTERNAL_ERROR"}
