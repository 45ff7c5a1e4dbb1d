"""Chat Core 顶层包。

该包提供 Social Yaan 聊天应用的 Relay 服务与聊天前端，
包括配置加载、领域模型、上游 Langflow 适配、响应文本抽取、
会话状态机、Markdown/代码高亮/图表渲染与偏好持久化等能力。
"""

from chat_core.api.service import relay_chat
from chat_core.client import ChatSession, extract_text

__all__ = ["ChatSession", "extract_text", "relay_chat"]
