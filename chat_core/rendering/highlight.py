"""Pygments based syntax highlighting for fenced code blocks."""

from dataclasses import dataclass
from typing import Optional

from pygments import highlight
from pygments.formatters import HtmlFormatter
from pygments.lexers import get_lexer_by_name
from pygments.util import ClassNotFound


@dataclass(frozen=True)
class HighlightConfig:
    dark_style: str = "github-dark"
    light_style: str = "default"
    css_class: str = "md-highlight"

    def style_for(self, theme: str) -> str:
        return self.dark_style if theme == "dark" else self.light_style


DEFAULT_HIGHLIGHT_CONFIG = HighlightConfig()


def highlight_code(
    code: str,
    language: str,
    theme: str,
    config: HighlightConfig = DEFAULT_HIGHLIGHT_CONFIG,
) -> Optional[str]:
    """Return highlighted HTML, or None when Pygments has no lexer for the tag."""
    if not language:
        return None
    try:
        lexer = get_lexer_by_name(language)
    except ClassNotFound:
        return None
    formatter = HtmlFormatter(style=config.style_for(theme), noclasses=True, cssclass=config.css_class)
    return highlight(code, lexer, formatter)
