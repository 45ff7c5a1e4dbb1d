"""上游工作流 API 集成层。

- base: UpstreamClient 协议。
- langflow_client: Langflow run 接口的实现。
"""

from chat_core.config.settings import settings
from chat_core.upstream.base import UpstreamClient
from chat_core.upstream.langflow_client import LangflowClient


def create_upstream_client() -> UpstreamClient:
    """按当前配置创建上游客户端。"""

    return LangflowClient(settings)


__all__ = ["UpstreamClient", "LangflowClient", "create_upstream_client"]
