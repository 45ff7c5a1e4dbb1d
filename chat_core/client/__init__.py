"""聊天前端的核心逻辑：调用 Relay、抽取回复文本、维护会话状态。"""

from chat_core.client.extraction import ERROR_FALLBACK, NO_TEXT_FALLBACK, ExtractionResult, extract_result, extract_text
from chat_core.client.relay_client import RelayClient
from chat_core.client.session import ChatSession

__all__ = [
    "ERROR_FALLBACK",
    "NO_TEXT_FALLBACK",
    "ExtractionResult",
    "extract_result",
    "extract_text",
    "RelayClient",
    "ChatSession",
]
