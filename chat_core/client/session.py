"""单个浏览器会话的对话状态机。

状态：idle -> submitting -> idle。submitting 期间的再次提交会被忽略，
因此同一会话任何时刻最多只有一个进行中的请求，消息顺序即提交顺序。
"""

from typing import Literal, Optional, Protocol, Any, Dict

from chat_core.client.extraction import extract_text
from chat_core.domain.conversation import ConversationState
from chat_core.domain.exceptions import BusinessError
from chat_core.domain.models import ChatMessage
from chat_core.infrastructure.logging.logger import logger


SessionState = Literal["idle", "submitting"]


class FlowRunner(Protocol):
    async def run_flow(
        self,
        message: str,
        endpoint: Optional[str] = None,
        output_type: str = "chat",
        input_type: str = "chat",
        tweaks: Optional[Dict[str, Any]] = None,
    ) -> Any:
        ...


class ChatSession:
    def __init__(self, client: FlowRunner, conversation: Optional[ConversationState] = None):
        self._client = client
        self._conversation = conversation or ConversationState()
        self._submitting = False
        self.draft = ""

    @property
    def conversation(self) -> ConversationState:
        return self._conversation

    @property
    def state(self) -> SessionState:
        return "submitting" if self._submitting else "idle"

    @property
    def is_submitting(self) -> bool:
        return self._submitting

    def can_submit(self, text: Optional[str] = None) -> bool:
        value = self.draft if text is None else text
        return bool(value and value.strip()) and not self._submitting

    async def submit(self, text: Optional[str] = None) -> bool:
        """提交一条消息，返回是否真正发起了请求。

        text 为空时使用当前草稿。空白输入或已有请求在途时直接返回 False。
        """

        value = self.draft if text is None else text
        if not self.can_submit(value):
            return False

        user_message = value.strip()
        self.draft = ""
        self._conversation.append(ChatMessage(role="user", content=user_message))
        self._submitting = True
        try:
            envelope = await self._client.run_flow(user_message)
            self._conversation.append(ChatMessage(role="assistant", content=extract_text(envelope)))
        except BusinessError as e:
            logger.error(f"Chat error: {e.message}", extra={"extra": {"code": e.code}})
            self._conversation.append(
                ChatMessage(role="assistant", content=f"Error: {e.message}", is_error=True)
            )
        except Exception as e:  # noqa: BLE001
            logger.exception("Unexpected chat error")
            self._conversation.append(
                ChatMessage(role="assistant", content=f"Error: {str(e) or type(e).__name__}", is_error=True)
            )
        finally:
            self._submitting = False
        return True
