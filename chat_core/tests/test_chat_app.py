import tempfile
from pathlib import Path

from fastapi.testclient import TestClient

from chat_core.domain.exceptions import NetworkError
from chat_core.gui.chat_app import ChatViews, create_app
from chat_core.infrastructure.storage.preference_store import DisplayPreferences, JsonPreferenceStore
from chat_core.rendering.diagram import DiagramRenderer
from chat_core.rendering.markdown import MarkdownRenderer, default_registry


class FakeBackend:
    async def render_svg(self, document):
        return "<svg>diagram</svg>"


class FakeRelay:
    error = None

    async def run_flow(self, message, **kwargs):
        if self.error is not None:
            raise self.error
        text = f"echo **{message}**\n\n```mermaid\ngraph TD\nA-->B\n```"
        return {"outputs": [{"outputs": [{"results": {"message": {"text": text}}}]}]}


def _app(root, relay_cls=FakeRelay, **kwargs):
    prefs = DisplayPreferences(JsonPreferenceStore(root=root))
    renderer = MarkdownRenderer(default_registry(DiagramRenderer(FakeBackend())))
    return create_app(client_factory=relay_cls, preferences=prefs, renderer=renderer, **kwargs)


def test_welcome_page_lists_prompts_and_diagram_types():
    with tempfile.TemporaryDirectory() as d:
        with TestClient(_app(Path(d))) as client:
            html = client.get("/").text
    assert "Welcome to Social Yaan!" in html
    assert "What type has the highest likes ?" in html
    assert "Gantt charts" in html
    assert '<body class="light">' in html


def test_example_prompt_prefills_input():
    with tempfile.TemporaryDirectory() as d:
        with TestClient(_app(Path(d))) as client:
            html = client.get("/", params={"draft": "What type has the least likes ?"}).text
    assert 'value="What type has the least likes ?"' in html


def test_send_renders_exchange():
    with tempfile.TemporaryDirectory() as d:
        with TestClient(_app(Path(d))) as client:
            client.get("/")
            resp = client.post("/send", data={"message": "hello"}, follow_redirects=False)
            assert resp.status_code == 303
            assert resp.headers["location"] == "/#msg-1"
            html = client.get("/").text
    assert 'id="msg-0"' in html and 'id="msg-1"' in html
    assert html.index('class="message user"') < html.index('class="message assistant"')
    assert "<strong>hello</strong>" in html
    assert "<svg>diagram</svg>" in html


def test_blank_send_adds_nothing():
    with tempfile.TemporaryDirectory() as d:
        with TestClient(_app(Path(d))) as client:
            client.get("/")
            client.post("/send", data={"message": "   "}, follow_redirects=False)
            html = client.get("/").text
    assert "Welcome to Social Yaan!" in html


def test_relay_failure_shows_error_message():
    class FailingRelay(FakeRelay):
        error = NetworkError(code="NETWORK_ERROR", message="connection refused")

    with tempfile.TemporaryDirectory() as d:
        with TestClient(_app(Path(d), FailingRelay)) as client:
            client.get("/")
            client.post("/send", data={"message": "hello"}, follow_redirects=False)
            html = client.get("/").text
    assert 'class="message assistant error"' in html
    assert "Error: connection refused" in html


def test_theme_toggle_persists_across_restart():
    with tempfile.TemporaryDirectory() as d:
        with TestClient(_app(Path(d))) as client:
            client.post("/theme", follow_redirects=False)
            assert '<body class="dark">' in client.get("/").text
        with TestClient(_app(Path(d))) as client:
            assert '<body class="dark">' in client.get("/").text


def test_unexpected_relay_failure_still_renders_page():
    class BrokenRelay(FakeRelay):
        error = ValueError("unexpected payload")

    with tempfile.TemporaryDirectory() as d:
        with TestClient(_app(Path(d), BrokenRelay)) as client:
            client.get("/")
            resp = client.post("/send", data={"message": "hello"}, follow_redirects=False)
            assert resp.status_code == 303
            html = client.get("/").text
    assert 'class="message assistant error"' in html
    assert "Error: unexpected payload" in html


def test_chat_views_evict_least_recently_used():
    views = ChatViews(client_factory=FakeRelay, max_sessions=2)
    first, _ = views.get(None)
    second, _ = views.get(None)
    views.get(first)
    third, _ = views.get(None)

    assert len(views) == 2
    assert views.get(first)[0] == first
    assert views.get(third)[0] == third
    assert views.get(second)[0] != second


def test_cookieless_requests_do_not_grow_sessions_without_bound():
    with tempfile.TemporaryDirectory() as d:
        app = _app(Path(d), max_sessions=5)
        with TestClient(app) as client:
            for _ in range(50):
                client.cookies.clear()
                client.get("/")
            assert len(app.state.views) == 5
