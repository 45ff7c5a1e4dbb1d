"""统一的对话与渲染数据模型。

本模块定义了 Relay 与聊天前端之间共享的标准数据结构：

- ChatMessage: 会话中的一条消息（user/assistant），追加后不可变。
- RelayRequest: 交给 Relay 转发给上游 Langflow 的完整请求。
- Graphic / RenderError: 图表渲染的成功与失败结果。

HTTP 层的 JSON 与这些模型之间的转换分别由 api.schemas 与各客户端负责。
"""

from dataclasses import dataclass
from typing import Any, Dict, Literal, Optional, Union


Role = Literal["user", "assistant"]

DEFAULT_OUTPUT_TYPE = "chat"
DEFAULT_INPUT_TYPE = "chat"


@dataclass(frozen=True)
class ChatMessage:
    """一条对话消息。

    - role: 消息角色，user 或 assistant。
    - content: 纯文本 / Markdown 内容。
    - is_error: assistant 消息是否为错误提示（请求失败时生成）。
    """

    role: Role
    content: str
    is_error: bool = False


@dataclass
class RelayRequest:
    """一次转发请求。

    endpoint 会被原样拼进上游 URL，因此在进入上游客户端前必须先通过校验。
    tweaks 为 None 时上游请求体中不出现该字段。
    """

    message: str
    endpoint: str
    output_type: str = DEFAULT_OUTPUT_TYPE
    input_type: str = DEFAULT_INPUT_TYPE
    tweaks: Optional[Dict[str, Any]] = None


@dataclass(frozen=True)
class Graphic:
    """渲染成功的图表。"""

    diagram_id: str
    svg: str


@dataclass(frozen=True)
class RenderError:
    """渲染失败的图表，携带原始源码用于回退展示。"""

    message: str
    details: str
    source: str


RenderResult = Union[Graphic, RenderError]
