"""Markdown rendering for chat messages.

Fenced code blocks are dispatched through a ``FenceRegistry``: a handler is
looked up by the block's language tag, Mermaid blocks go to the diagram
renderer, any other tag falls through to syntax highlighting, and blocks that
no handler claims are emitted as plain ``<pre><code>``. Fence handlers are
async, so all fences of a message are rendered concurrently before the token
stream is turned into HTML.
"""

import asyncio
from html import escape
from typing import Dict, List, Optional, Protocol

from markdown_it import MarkdownIt
from markdown_it.token import Token

from chat_core.domain.models import Graphic
from chat_core.rendering.diagram import DIAGRAM_LANGUAGE, DiagramRenderer
from chat_core.rendering.highlight import DEFAULT_HIGHLIGHT_CONFIG, HighlightConfig, highlight_code


BLOCK_CLASSES: Dict[str, str] = {
    "paragraph_open": "md-p",
    "bullet_list_open": "md-ul",
    "ordered_list_open": "md-ol",
    "list_item_open": "md-li",
    "blockquote_open": "md-quote",
}

HEADING_CLASSES: Dict[str, str] = {
    "h1": "md-h1",
    "h2": "md-h2",
    "h3": "md-h3",
}


class FenceHandler(Protocol):
    async def render(self, code: str, language: str, theme: str) -> Optional[str]:
        """Return HTML for the block, or None to fall back to plain code."""
        ...


class DiagramFenceHandler:
    def __init__(self, renderer: DiagramRenderer):
        self._renderer = renderer

    async def render(self, code: str, language: str, theme: str) -> Optional[str]:
        result = await self._renderer.render(code, theme)
        if isinstance(result, Graphic):
            return f'<div class="mermaid-diagram" id="{escape(result.diagram_id)}">{result.svg}</div>'
        return (
            '<div class="diagram-error">'
            f'<p class="diagram-error-title">{escape(result.message)}</p>'
            f'<p class="diagram-error-details">{escape(result.details)}</p>'
            f'<pre class="md-pre"><code>{escape(result.source)}</code></pre>'
            "</div>"
        )


class HighlightFenceHandler:
    def __init__(self, config: HighlightConfig = DEFAULT_HIGHLIGHT_CONFIG):
        self._config = config

    async def render(self, code: str, language: str, theme: str) -> Optional[str]:
        return highlight_code(code, language, theme, self._config)


class FenceRegistry:
    """Language tag -> handler, with one default handler for tagged blocks."""

    def __init__(self, default: Optional[FenceHandler] = None):
        self._handlers: Dict[str, FenceHandler] = {}
        self._default = default

    def register(self, language: str, handler: FenceHandler) -> None:
        self._handlers[language.lower()] = handler

    def resolve(self, language: str) -> Optional[FenceHandler]:
        if not language:
            return None
        return self._handlers.get(language.lower(), self._default)


def default_registry(diagram_renderer: Optional[DiagramRenderer] = None) -> FenceRegistry:
    registry = FenceRegistry(default=HighlightFenceHandler())
    registry.register(DIAGRAM_LANGUAGE, DiagramFenceHandler(diagram_renderer or DiagramRenderer()))
    return registry


def plain_code_block(code: str) -> str:
    return f'<pre class="md-pre"><code>{escape(code)}</code></pre>\n'


def fence_language(token: Token) -> str:
    info = (token.info or "").strip()
    return info.split()[0] if info else ""


def _fence_rule(self, tokens: List[Token], idx: int, options, env) -> str:
    token = tokens[idx]
    html = token.meta.get("html") if token.meta else None
    if html is not None:
        return html + "\n"
    return plain_code_block(token.content.rstrip("\n"))


def _code_inline_rule(self, tokens: List[Token], idx: int, options, env) -> str:
    return f'<code class="md-code-inline">{escape(tokens[idx].content)}</code>'


class MarkdownRenderer:
    def __init__(self, registry: Optional[FenceRegistry] = None):
        self._registry = registry or default_registry()
        # raw HTML from the model is never passed through
        self._md = MarkdownIt("commonmark", {"html": False})
        self._md.add_render_rule("fence", _fence_rule)
        self._md.add_render_rule("code_inline", _code_inline_rule)

    async def render(self, text: str, theme: str = "light") -> str:
        env: dict = {}
        tokens = self._md.parse(text or "", env)
        fences = []
        for token in tokens:
            css_class = BLOCK_CLASSES.get(token.type)
            if token.type == "heading_open":
                css_class = HEADING_CLASSES.get(token.tag)
            if css_class:
                token.attrJoin("class", css_class)
            if token.type == "fence":
                fences.append(token)
        if fences:
            rendered = await asyncio.gather(*(self._render_fence(token, theme) for token in fences))
            for token, html in zip(fences, rendered):
                token.meta = {**(token.meta or {}), "html": html}
        return self._md.renderer.render(tokens, self._md.options, env)

    async def _render_fence(self, token: Token, theme: str) -> str:
        code = token.content[:-1] if token.content.endswith("\n") else token.content
        language = fence_language(token)
        handler = self._registry.resolve(language)
        if handler is not None:
            html = await handler.render(code, language, theme)
            if html is not None:
                return html
        return plain_code_block(code).rstrip("\n")
