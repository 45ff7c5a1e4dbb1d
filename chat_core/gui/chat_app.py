"""Browser chat page for the relay.

The page is rendered server-side: every view re-renders the conversation with
the current display mode, so diagrams and code blocks always follow the
active theme. Conversations live in memory, one per browser session cookie.

Run with:
    chat-ui
"""

from __future__ import annotations as _annotations

from collections import OrderedDict
from contextlib import asynccontextmanager
from dataclasses import dataclass
from html import escape
from typing import Optional
from urllib.parse import quote
from uuid import uuid4

import fastapi
from fastapi import Form, Request
from fastapi.responses import HTMLResponse, RedirectResponse, Response

from chat_core.client.relay_client import RelayClient
from chat_core.client.session import ChatSession
from chat_core.config.settings import settings
from chat_core.domain.models import ChatMessage
from chat_core.infrastructure.logging.logger import logger
from chat_core.infrastructure.storage.preference_store import DisplayPreferences, JsonPreferenceStore
from chat_core.rendering.markdown import MarkdownRenderer


SESSION_COOKIE = "chat_session"

APP_TITLE = "Social Yaan"

EXAMPLE_PROMPTS = [
    "What type has the highest likes ?",
    "What type has the least likes ?",
    "What type has a high engagement factor ?",
]

DIAGRAM_TYPES = [
    "Flowcharts",
    "Sequence diagrams",
    "State diagrams",
    "Entity Relationship diagrams",
    "Class diagrams",
    "Gantt charts",
]


@dataclass
class ChatView:
    """A browser session: its chat state plus the anchor of the newest message."""

    session: ChatSession
    scroll_anchor: str = "top"

    def __post_init__(self) -> None:
        self.session.conversation.subscribe(self._on_append)

    def _on_append(self, _message: ChatMessage) -> None:
        self.scroll_anchor = f"msg-{len(self.session.conversation) - 1}"


class ChatViews:
    """In-memory views keyed by session cookie, least recently used evicted first."""

    def __init__(self, client_factory=RelayClient, max_sessions: Optional[int] = None):
        self._views: OrderedDict[str, ChatView] = OrderedDict()
        self._client_factory = client_factory
        self._max_sessions = max_sessions or settings.max_sessions

    def __len__(self) -> int:
        return len(self._views)

    def get(self, session_id: Optional[str]) -> tuple[str, ChatView]:
        if session_id and session_id in self._views:
            self._views.move_to_end(session_id)
            return session_id, self._views[session_id]
        new_id = uuid4().hex
        view = ChatView(session=ChatSession(self._client_factory()))
        self._views[new_id] = view
        while len(self._views) > self._max_sessions:
            evicted, _ = self._views.popitem(last=False)
            logger.info("Evicted chat session", extra={"extra": {"session": evicted}})
        return new_id, view


def _with_cookie(response: Response, session_id: str) -> Response:
    response.set_cookie(SESSION_COOKIE, session_id, httponly=True, samesite="lax")
    return response


async def render_message(message: ChatMessage, index: int, renderer: MarkdownRenderer, theme: str) -> str:
    role_class = "user" if message.role == "user" else "assistant"
    label = "You" if message.role == "user" else "Assistant"
    error_class = " error" if message.is_error else ""
    body = await renderer.render(message.content, theme)
    return (
        f'<div class="message {role_class}{error_class}" id="msg-{index}">'
        f'<div class="message-header"><span class="avatar {role_class}"></span>'
        f'<span class="role">{label}</span></div>'
        f'<div class="message-body">{body}</div>'
        "</div>"
    )


def render_welcome() -> str:
    prompts = "".join(
        f'<a class="prompt" href="/?draft={quote(p)}">{escape(p)}</a>' for p in EXAMPLE_PROMPTS
    )
    diagrams = "".join(f'<div class="diagram-type">{escape(t)}</div>' for t in DIAGRAM_TYPES)
    return (
        '<div class="welcome">'
        f"<h2>Welcome to {APP_TITLE}!</h2>"
        "<p>Start a conversation by sending a message below.</p>"
        "<h3>Try these example prompts:</h3>"
        f'<div class="prompts">{prompts}</div>'
        '<div class="diagram-panel"><h3>Supported Diagram Types:</h3>'
        f'<div class="diagram-types">{diagrams}</div></div>'
        "</div>"
    )


async def render_page(view: ChatView, prefs: DisplayPreferences, renderer: MarkdownRenderer) -> str:
    theme = prefs.theme
    messages = view.session.conversation.messages
    if messages:
        parts = [await render_message(m, i, renderer, theme) for i, m in enumerate(messages)]
        if view.session.is_submitting:
            parts.append('<div class="loading"><span class="spinner"></span>Processing your message...</div>')
        content = "".join(parts)
    else:
        content = render_welcome()
    disabled = " disabled" if view.session.is_submitting else ""
    toggle_label = "Light mode" if prefs.dark_mode else "Dark mode"
    return PAGE_TEMPLATE.format(
        title=APP_TITLE,
        theme=theme,
        css=PAGE_CSS,
        toggle_label=toggle_label,
        content=content,
        draft=escape(view.session.draft, quote=True),
        disabled=disabled,
        anchor=escape(view.scroll_anchor, quote=True),
    )


def create_app(client_factory=RelayClient, preferences: Optional[DisplayPreferences] = None,
               renderer: Optional[MarkdownRenderer] = None, max_sessions: Optional[int] = None) -> fastapi.FastAPI:

    @asynccontextmanager
    async def lifespan(app: fastapi.FastAPI):
        app.state.preferences = preferences or DisplayPreferences(JsonPreferenceStore())
        yield

    app = fastapi.FastAPI(title=f"{APP_TITLE} Chat", lifespan=lifespan)
    app.state.views = ChatViews(client_factory, max_sessions)
    app.state.renderer = renderer or MarkdownRenderer()

    @app.get("/", response_class=HTMLResponse)
    async def index(request: Request, draft: str = "") -> Response:
        session_id, view = app.state.views.get(request.cookies.get(SESSION_COOKIE))
        if draft:
            view.session.draft = draft
        html = await render_page(view, app.state.preferences, app.state.renderer)
        return _with_cookie(HTMLResponse(html), session_id)

    @app.post("/send")
    async def send(request: Request, message: str = Form("")) -> Response:
        session_id, view = app.state.views.get(request.cookies.get(SESSION_COOKIE))
        accepted = await view.session.submit(message)
        if not accepted:
            logger.info("Ignored submit", extra={"extra": {"state": view.session.state}})
        return _with_cookie(RedirectResponse(url=f"/#{view.scroll_anchor}", status_code=303), session_id)

    @app.post("/theme")
    async def toggle_theme(request: Request) -> Response:
        session_id, view = app.state.views.get(request.cookies.get(SESSION_COOKIE))
        app.state.preferences.toggle()
        return _with_cookie(RedirectResponse(url=f"/#{view.scroll_anchor}", status_code=303), session_id)

    return app


PAGE_CSS = """
body { margin: 0; font-family: system-ui, sans-serif; }
body.light { background: #f9fafb; color: #111827; }
body.dark { background: #111827; color: #e5e7eb; }
header { position: sticky; top: 0; display: flex; justify-content: space-between; align-items: center;
  padding: 1rem 2rem; border-bottom: 1px solid #e5e7eb; backdrop-filter: blur(8px); }
body.dark header { border-color: #1f2937; }
main { max-width: 56rem; margin: 0 auto; padding: 1.5rem 1rem 7rem; }
.message { margin-bottom: 1.5rem; border-radius: 1rem; border: 1px solid #e5e7eb; overflow: hidden; }
body.dark .message { border-color: #374151; }
.message.user { background: #f5f3ff; }
body.dark .message.user { background: #3b0764; }
.message.assistant { background: #ffffff; }
body.dark .message.assistant { background: #1f2937; }
.message.error .message-body { color: #dc2626; }
.message-header { display: flex; gap: .75rem; align-items: center; padding: .75rem 1.5rem; }
.avatar { width: 1rem; height: 1rem; border-radius: .4rem; }
.avatar.user { background: #8b5cf6; }
.avatar.assistant { background: #d946ef; }
.message-body { padding: 0 1.5rem 1rem; }
.md-p { margin: 0 0 1rem; }
.md-h1 { font-size: 1.5rem; margin: 1.5rem 0 1rem; }
.md-h2 { font-size: 1.25rem; margin: 1.25rem 0 .75rem; }
.md-h3 { font-size: 1.125rem; margin: 1rem 0 .5rem; }
.md-ul { list-style: disc; margin: 0 0 1rem 1.5rem; }
.md-ol { list-style: decimal; margin: 0 0 1rem 1.5rem; }
.md-li { margin-bottom: .25rem; }
.md-quote { border-left: 4px solid #d1d5db; padding-left: 1rem; font-style: italic; margin: 1rem 0; }
body.dark .md-quote { border-color: #4b5563; }
.md-code-inline { background: #f3f4f6; padding: 0 .25rem; border-radius: .25rem; }
body.dark .md-code-inline { background: #374151; }
.md-pre, .md-highlight pre { padding: 1rem; border-radius: .5rem; overflow-x: auto; }
.mermaid-diagram { margin: 1rem 0; padding: 1rem; border-radius: .5rem; overflow: auto; }
.diagram-error { border: 1px solid #fecaca; background: #fef2f2; border-radius: .5rem; padding: 1rem; margin: 1rem 0; }
body.dark .diagram-error { border-color: #b91c1c; background: #450a0a; }
.diagram-error-title { color: #dc2626; font-weight: 600; }
.loading { padding: 1rem; border-radius: .75rem; }
.welcome { text-align: center; margin-top: 3rem; }
.prompts, .diagram-types { display: grid; gap: .75rem; margin: 1rem auto; max-width: 40rem; }
.diagram-types { grid-template-columns: 1fr 1fr; }
.prompt { display: block; padding: 1rem; border-radius: .75rem; background: #f5f3ff; color: #6d28d9; text-decoration: none; }
body.dark .prompt { background: #1f2937; color: #a78bfa; }
footer { position: fixed; bottom: 0; left: 0; right: 0; padding: 1rem; backdrop-filter: blur(8px); }
footer form { display: flex; gap: .75rem; max-width: 56rem; margin: 0 auto; }
footer input { flex: 1; padding: 1rem 1.5rem; border-radius: .75rem; border: 1px solid #e5e7eb; }
footer button, header button { padding: .75rem 1.5rem; border-radius: .75rem; border: 0; background: #7c3aed; color: #fff; }
"""

PAGE_TEMPLATE = """<!DOCTYPE html>
<html lang="en">
<head>
<meta charset="UTF-8">
<meta name="viewport" content="width=device-width, initial-scale=1.0">
<title>{title}</title>
<style>{css}</style>
</head>
<body class="{theme}">
<header>
  <h1>{title}</h1>
  <form method="post" action="/theme"><button type="submit">{toggle_label}</button></form>
</header>
<main>{content}<div id="end"></div></main>
<footer>
  <form method="post" action="/send">
    <input type="text" name="message" value="{draft}" placeholder="Type your message here..." autocomplete="off"{disabled}>
    <button type="submit"{disabled}>Send</button>
  </form>
</footer>
<script>document.getElementById("{anchor}")?.scrollIntoView({{behavior: "smooth"}});</script>
</body>
</html>
"""


app = create_app()


def main() -> None:
    import uvicorn

    uvicorn.run(app, host=settings.host, port=settings.ui_port)


if __name__ == "__main__":
    main()
