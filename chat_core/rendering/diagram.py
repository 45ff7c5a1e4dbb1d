"""Mermaid 图表渲染。

流程：
1. 规范化源码（去首尾空白、逐行去缩进、丢弃空行）。
2. 根据不可变的 DiagramConfig 与当前主题生成 %%{init: ...}%% 指令。
3. 交给渲染后端（默认 Kroki）异步生成 SVG。

任何后端失败都转换为 RenderError，保留原始源码供页面回退展示。
"""

import json
from dataclasses import dataclass, field
from typing import Any, Dict, Optional, Protocol
from uuid import uuid4

import httpx

from chat_core.config.settings import settings
from chat_core.domain.exceptions import ApiError, BusinessError, NetworkError
from chat_core.domain.models import Graphic, RenderError, RenderResult
from chat_core.infrastructure.logging.logger import logger


RENDER_FAILED_MESSAGE = "Failed to render diagram"

DIAGRAM_LANGUAGE = "mermaid"


@dataclass(frozen=True)
class FlowchartConfig:
    html_labels: bool = True
    curve: str = "linear"


@dataclass(frozen=True)
class SequenceConfig:
    diagram_margin_x: int = 50
    diagram_margin_y: int = 10
    actor_margin: int = 50
    width: int = 150
    height: int = 65
    box_margin: int = 10
    box_text_margin: int = 5
    note_margin: int = 10
    message_margin: int = 35


@dataclass(frozen=True)
class DiagramConfig:
    """Mermaid 渲染配置，每次渲染时与主题组合，不修改任何全局状态。"""

    light_theme: str = "default"
    dark_theme: str = "dark"
    font_size: int = 16
    security_level: str = "loose"
    log_level: str = "error"
    flowchart: FlowchartConfig = field(default_factory=FlowchartConfig)
    sequence: SequenceConfig = field(default_factory=SequenceConfig)

    def init_options(self, theme: str) -> Dict[str, Any]:
        dark = theme == "dark"
        seq = self.sequence
        return {
            "theme": self.dark_theme if dark else self.light_theme,
            "darkMode": dark,
            "fontSize": self.font_size,
            "securityLevel": self.security_level,
            "logLevel": self.log_level,
            "flowchart": {
                "htmlLabels": self.flowchart.html_labels,
                "curve": self.flowchart.curve,
            },
            "sequence": {
                "diagramMarginX": seq.diagram_margin_x,
                "diagramMarginY": seq.diagram_margin_y,
                "actorMargin": seq.actor_margin,
                "width": seq.width,
                "height": seq.height,
                "boxMargin": seq.box_margin,
                "boxTextMargin": seq.box_text_margin,
                "noteMargin": seq.note_margin,
                "messageMargin": seq.message_margin,
            },
        }

    def init_directive(self, theme: str) -> str:
        return f"%%{{init: {json.dumps(self.init_options(theme))}}}%%"


DEFAULT_DIAGRAM_CONFIG = DiagramConfig()


def normalize_source(source: str) -> str:
    lines = (line.strip() for line in source.strip().splitlines())
    return "\n".join(line for line in lines if line)


class DiagramBackend(Protocol):
    """把 Mermaid 文本渲染为 SVG 字符串，失败时抛出 BusinessError。"""

    async def render_svg(self, document: str) -> str:
        ...


class KrokiBackend:
    """通过 Kroki HTTP 接口渲染：POST {kroki_url}/mermaid/svg。"""

    name = "kroki"

    def __init__(self, cfg=settings):
        self._settings = cfg

    async def render_svg(self, document: str) -> str:
        url = f"{self._settings.kroki_url}/{DIAGRAM_LANGUAGE}/svg"
        try:
            async with httpx.AsyncClient(timeout=self._settings.diagram_timeout, trust_env=False) as client:
                resp = await client.post(
                    url,
                    content=document.encode("utf-8"),
                    headers={"Content-Type": "text/plain"},
                )
        except httpx.RequestError as e:
            raise NetworkError(code="NETWORK_ERROR", message=str(e) or type(e).__name__)
        if resp.status_code >= 400:
            raise ApiError(code="DIAGRAM_ERROR", message=resp.text.strip() or f"status {resp.status_code}",
                           http_status=resp.status_code)
        return resp.text


class DiagramRenderer:
    def __init__(self, backend: Optional[DiagramBackend] = None, config: DiagramConfig = DEFAULT_DIAGRAM_CONFIG):
        self._backend = backend or KrokiBackend()
        self._config = config

    @staticmethod
    def new_id() -> str:
        return f"mermaid-{uuid4().hex}"

    async def render(self, source: str, theme: str = "light") -> RenderResult:
        """渲染一段 Mermaid 源码，返回 Graphic 或 RenderError，不向外抛异常。"""

        diagram_id = self.new_id()
        normalized = normalize_source(source)
        if not normalized:
            return RenderError(message=RENDER_FAILED_MESSAGE, details="Diagram source is empty", source=source)
        document = f"{self._config.init_directive(theme)}\n{normalized}"
        try:
            svg = await self._backend.render_svg(document)
        except BusinessError as e:
            logger.warning(f"Mermaid rendering error: {e.message}", extra={"extra": {
                "diagram_id": diagram_id,
                "code": e.code,
            }})
            return RenderError(message=RENDER_FAILED_MESSAGE, details=e.message, source=source)
        except Exception as e:  # noqa: BLE001
            logger.exception("Mermaid backend crashed", extra={"extra": {"diagram_id": diagram_id}})
            return RenderError(message=RENDER_FAILED_MESSAGE, details=str(e) or type(e).__name__, source=source)
        return Graphic(diagram_id=diagram_id, svg=svg)
