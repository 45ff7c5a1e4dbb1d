"""Relay 服务模块。

对外只提供一个操作 relay_chat：校验请求、注入凭证转发到上游，
并原样返回上游 JSON。凭证只存在于 settings 与上游客户端中。
"""

import json
import re
from typing import Any, Dict, Optional

from chat_core.domain.exceptions import ApiError, BusinessError, ValidationError
from chat_core.domain.models import RelayRequest
from chat_core.infrastructure.logging.logger import logger
from chat_core.upstream import UpstreamClient, create_upstream_client
from chat_core.upstream.langflow_client import RELAY_FAILURE_STATUS


ENDPOINT_PATTERN = re.compile(r"^[A-Za-z0-9][A-Za-z0-9_-]*$")

_client: Optional[UpstreamClient] = None


def get_default_client() -> UpstreamClient:
    """获取默认的上游客户端实例（单例）。"""
    global _client
    if _client is None:
        _client = create_upstream_client()
    return _client


def validate_request(req: RelayRequest) -> None:
    """检查 message 非空、endpoint 只含安全字符。"""
    if not req.message or not req.message.strip():
        raise ValidationError(code="INVALID_MESSAGE", message="message must not be empty")
    if not ENDPOINT_PATTERN.fullmatch(req.endpoint or ""):
        raise ValidationError(
            code="INVALID_ENDPOINT",
            message="endpoint may only contain letters, digits, '-' and '_'",
        )


def ensure_serializable(data: Any) -> None:
    """确认上游响应能被原样编码为严格 JSON（不允许 NaN/Infinity）。"""
    try:
        json.dumps(data, allow_nan=False)
    except (TypeError, ValueError) as e:
        raise ApiError(
            code="INVALID_RESPONSE",
            message="Upstream response cannot be encoded as JSON",
            http_status=RELAY_FAILURE_STATUS,
            detail=str(e),
        ) from e


async def relay_chat(req: RelayRequest, client: Optional[UpstreamClient] = None) -> Dict[str, Any]:
    """转发一次聊天请求。

    Args:
        req: 已转换为领域模型的请求
        client: 上游客户端（可选，默认使用单例）

    Returns:
        上游响应 JSON，未做任何修改

    Raises:
        ValidationError: 请求不合法，未调用上游
        BusinessError: 上游调用失败（网络、超时、非 2xx、非 JSON），
            其他意外异常包装为 INTERNAL_ERROR
    """
    validate_request(req)
    upstream = client or get_default_client()
    log_extra = {"endpoint": req.endpoint, "upstream": getattr(upstream, "name", "unknown")}
    try:
        data = await upstream.run_flow(req)
        ensure_serializable(data)
    except BusinessError as e:
        logger.error(f"Relay failed: {e.message}", extra={"extra": {"code": e.code, **log_extra, **e.extra}})
        raise
    except Exception as e:  # noqa: BLE001
        logger.exception("Relay crashed", extra={"extra": {"code": "INTERNAL_ERROR", **log_extra}})
        raise ApiError(
            code="INTERNAL_ERROR",
            message=str(e) or type(e).__name__,
            http_status=RELAY_FAILURE_STATUS,
        ) from e
    logger.info("Relay succeeded", extra={"extra": log_extra})
    return data
