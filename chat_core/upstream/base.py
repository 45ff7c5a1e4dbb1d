"""上游工作流 API 的抽象接口。

Relay 不直接依赖具体平台的 HTTP 细节，而是依赖此协议：

- 每个平台实现一个 UpstreamClient（如 LangflowClient）。
- 负责：将 RelayRequest 转成具体 API 请求，并原样返回响应 JSON。
"""

from typing import Any, Dict, Protocol

from chat_core.domain.models import RelayRequest


class UpstreamClient(Protocol):
    """上游客户端协议。

    - name: 平台名称，用于日志。
    - run_flow(req): 执行一次工作流调用，返回上游响应 JSON（不做任何加工）。
    """

    name: str

    async def run_flow(self, req: RelayRequest) -> Dict[str, Any]:
        ...
