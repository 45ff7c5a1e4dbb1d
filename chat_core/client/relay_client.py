"""前端侧的 Relay 客户端。

浏览器（或本项目的聊天页面）永远只和 Relay 通信，不接触上游令牌。
"""

from typing import Any, Dict, Optional

import httpx

from chat_core.config.settings import settings
from chat_core.domain.exceptions import NetworkError, RelayClientError, UpstreamTimeoutError
from chat_core.domain.models import DEFAULT_INPUT_TYPE, DEFAULT_OUTPUT_TYPE
from chat_core.infrastructure.logging.logger import logger


class RelayClient:
    """调用 Relay 的 POST {relay_base_url}/chat。"""

    def __init__(self, cfg=settings):
        self._settings = cfg

    @property
    def default_endpoint(self) -> str:
        return self._settings.default_endpoint

    async def run_flow(
        self,
        message: str,
        endpoint: Optional[str] = None,
        output_type: str = DEFAULT_OUTPUT_TYPE,
        input_type: str = DEFAULT_INPUT_TYPE,
        tweaks: Optional[Dict[str, Any]] = None,
    ) -> Any:
        """发送一条消息，返回 Relay 透传的上游响应信封。"""

        body: Dict[str, Any] = {
            "message": message,
            "endpoint": endpoint or self.default_endpoint,
            "outputType": output_type,
            "inputType": input_type,
        }
        if tweaks is not None:
            body["tweaks"] = tweaks
        try:
            async with httpx.AsyncClient(timeout=self._settings.http_timeout, trust_env=False) as client:
                resp = await client.post(
                    f"{self._settings.relay_base_url}/chat",
                    json=body,
                    headers={"Content-Type": "application/json"},
                )
        except httpx.TimeoutException as e:
            logger.error(f"API request timed out: {e}")
            raise UpstreamTimeoutError(code="RELAY_TIMEOUT", message="Request to relay timed out")
        except httpx.RequestError as e:
            logger.error(f"API request failed: {e}")
            raise NetworkError(code="NETWORK_ERROR", message=str(e) or type(e).__name__)
        if resp.status_code >= 400:
            logger.error("API request failed", extra={"extra": {"status": resp.status_code}})
            raise RelayClientError(
                code="RELAY_ERROR",
                message=f"HTTP error! status: {resp.status_code}",
                http_status=resp.status_code,
            )
        try:
            return resp.json()
        except ValueError:
            # 非 JSON 的 2xx 响应交给抽取逻辑兜底
            return None
