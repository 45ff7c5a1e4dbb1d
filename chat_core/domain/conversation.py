from typing import Callable, List, Tuple

from .models import ChatMessage


ConversationListener = Callable[[ChatMessage], None]


class ConversationState:
    """会话内的消息列表，只允许追加，插入顺序即展示顺序。"""

    def __init__(self) -> None:
        self._messages: List[ChatMessage] = []
        self._listeners: List[ConversationListener] = []

    def append(self, message: ChatMessage) -> None:
        self._messages.append(message)
        for listener in list(self._listeners):
            listener(message)

    def subscribe(self, listener: ConversationListener) -> Callable[[], None]:
        """注册追加回调（用于滚动到最新消息），返回取消订阅函数。"""

        self._listeners.append(listener)

        def _unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return _unsubscribe

    @property
    def messages(self) -> Tuple[ChatMessage, ...]:
        return tuple(self._messages)

    @property
    def last(self) -> ChatMessage | None:
        return self._messages[-1] if self._messages else None

    def __len__(self) -> int:
        return len(self._messages)

    def __iter__(self):
        return iter(tuple(self._messages))
