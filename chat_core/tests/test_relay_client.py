import asyncio

import httpx
import pytest

from chat_core.client.relay_client import RelayClient
from chat_core.domain.exceptions import NetworkError, RelayClientError


class SettingsStub:
    relay_base_url = "http://relay.local/api"
    default_endpoint = "default-flow"
    http_timeout = 1.0


class Resp:
    def __init__(self, status_code=200, data=None):
        self.status_code = status_code
        self._data = data

    def json(self):
        if self._data is None:
            raise ValueError("no json")
        return self._data


def _fake_client(monkeypatch, response=None, error=None):
    calls = []

    class Client:
        def __init__(self, *a, **kw):
            pass

        async def __aenter__(self):
            return self

        async def __aexit__(self, *a):
            return False

        async def post(self, url, **kw):
            calls.append({"url": url, **kw})
            if error is not None:
                raise error
            return response

    monkeypatch.setattr("httpx.AsyncClient", Client)
    return calls


def test_run_flow_sends_defaults(monkeypatch):
    calls = _fake_client(monkeypatch, response=Resp(data={"outputs": []}))
    data = asyncio.run(RelayClient(SettingsStub()).run_flow("hello"))

    assert data == {"outputs": []}
    assert calls[0]["url"] == "http://relay.local/api/chat"
    assert calls[0]["json"] == {
        "message": "hello",
        "endpoint": "default-flow",
        "outputType": "chat",
        "inputType": "chat",
    }
    assert "Authorization" not in calls[0]["headers"]


def test_run_flow_raises_on_error_status(monkeypatch):
    _fake_client(monkeypatch, response=Resp(status_code=500, data={"error": "x"}))
    with pytest.raises(RelayClientError) as exc:
        asyncio.run(RelayClient(SettingsStub()).run_flow("hello"))
    assert exc.value.message == "HTTP error! status: 500"


def test_run_flow_raises_on_transport_failure(monkeypatch):
    _fake_client(monkeypatch, error=httpx.ConnectError("connection refused"))
    with pytest.raises(NetworkError):
        asyncio.run(RelayClient(SettingsStub()).run_flow("hello"))


def test_run_flow_non_json_success_yields_none(monkeypatch):
    _fake_client(monkeypatch, response=Resp(status_code=200, data=None))
    assert asyncio.run(RelayClient(SettingsStub()).run_flow("hello")) is None


def test_run_flow_includes_tweaks_only_when_given(monkeypatch):
    calls = _fake_client(monkeypatch, response=Resp(data={}))
    asyncio.run(RelayClient(SettingsStub()).run_flow("hello", endpoint="flow-a", tweaks={"node": {"k": 1}}))

    assert calls[0]["json"]["tweaks"] == {"node": {"k": 1}}
    assert calls[0]["json"]["endpoint"] == "flow-a"
