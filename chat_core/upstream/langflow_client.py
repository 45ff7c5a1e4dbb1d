"""Langflow 上游适配器。

接口约定：
- URL: {base_api_url}/lf/{langflow_id}/api/v1/run/{endpoint}
- 认证: Authorization: Bearer <application_token>
- 请求体: input_value / output_type / input_type，tweaks 仅在非 None 时出现。

响应 JSON 原样返回给 Relay，不在这里做文本抽取。
"""

from typing import Any, Dict

import httpx

from chat_core.config.settings import settings
from chat_core.domain.exceptions import ApiError, NetworkError, UpstreamTimeoutError, ValidationError
from chat_core.domain.models import RelayRequest


# Relay 失败统一以 500 返回给调用方，具体原因由 code 区分
RELAY_FAILURE_STATUS = 500


class LangflowClient:
    """Langflow run 接口客户端。"""

    name = "langflow"

    def __init__(self, cfg=settings):
        self._settings = cfg

    async def run_flow(self, req: RelayRequest) -> Dict[str, Any]:
        token = getattr(self._settings, "application_token", None)
        if not token:
            raise ValidationError(
                code="MISSING_TOKEN",
                message="APPLICATION_TOKEN not set",
                http_status=RELAY_FAILURE_STATUS,
            )
        if not getattr(self._settings, "langflow_id", None):
            raise ValidationError(
                code="MISSING_CONFIG",
                message="LANGFLOW_ID not set",
                http_status=RELAY_FAILURE_STATUS,
            )
        url = self.build_url(req.endpoint)
        payload = self.build_payload(req)
        try:
            async with httpx.AsyncClient(timeout=self._settings.http_timeout, trust_env=False) as client:
                resp = await client.post(
                    url,
                    json=payload,
                    headers={
                        "Authorization": f"Bearer {token}",
                        "Content-Type": "application/json",
                    },
                )
        except httpx.TimeoutException as e:
            raise UpstreamTimeoutError(
                code="UPSTREAM_TIMEOUT",
                message=f"Upstream timed out after {self._settings.http_timeout}s",
                http_status=RELAY_FAILURE_STATUS,
                detail=str(e),
            )
        except httpx.RequestError as e:
            raise NetworkError(code="NETWORK_ERROR", message=str(e) or type(e).__name__, http_status=RELAY_FAILURE_STATUS)
        if resp.status_code >= 400:
            raise ApiError(
                code="UPSTREAM_ERROR",
                message=f"Upstream responded with status {resp.status_code}",
                http_status=RELAY_FAILURE_STATUS,
                upstream_status=resp.status_code,
                detail=resp.text[:2000],
            )
        try:
            return resp.json()
        except ValueError as e:
            raise ApiError(
                code="INVALID_RESPONSE",
                message="Upstream returned a non-JSON body",
                http_status=RELAY_FAILURE_STATUS,
                upstream_status=resp.status_code,
                detail=str(e),
            )

    def build_url(self, endpoint: str) -> str:
        base = getattr(self._settings, "base_api_url", "").rstrip("/")
        return f"{base}/lf/{self._settings.langflow_id}/api/v1/run/{endpoint}"

    @staticmethod
    def build_payload(req: RelayRequest) -> Dict[str, Any]:
        payload: Dict[str, Any] = {
            "input_value": req.message,
            "output_type": req.output_type,
            "input_type": req.input_type,
        }
        if req.tweaks is not None:
            payload["tweaks"] = req.tweaks
        return payload
