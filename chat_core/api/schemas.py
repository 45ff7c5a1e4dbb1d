"""Pydantic models for the relay HTTP payloads."""

from typing import Any, Dict, Optional

from pydantic import BaseModel, ConfigDict, Field

from chat_core.domain.models import DEFAULT_INPUT_TYPE, DEFAULT_OUTPUT_TYPE, RelayRequest


class ChatRequest(BaseModel):
    """Body of POST /api/chat, field names as the browser sends them."""

    model_config = ConfigDict(populate_by_name=True)

    message: str
    endpoint: Optional[str] = None
    output_type: str = Field(default=DEFAULT_OUTPUT_TYPE, alias="outputType")
    input_type: str = Field(default=DEFAULT_INPUT_TYPE, alias="inputType")
    tweaks: Optional[Dict[str, Any]] = None

    def to_domain(self, default_endpoint: str) -> RelayRequest:
        return RelayRequest(
            message=self.message,
            endpoint=self.endpoint or default_endpoint,
            output_type=self.output_type,
            input_type=self.input_type,
            tweaks=self.tweaks,
        )


class ErrorResponse(BaseModel):
    """Body returned on any relay failure."""

    error: str
    code: str
