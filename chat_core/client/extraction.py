"""从上游响应信封中抽取展示文本。

信封的预期结构：

    {"outputs": [{"outputs": [{"results": {"message": {"text": "..."}}}]}]}

任何偏离都退化为固定的兜底文本，抽取过程从不向外抛异常。
"""

from dataclasses import dataclass
from typing import Any, Mapping, Sequence

from chat_core.infrastructure.logging.logger import logger


NO_TEXT_FALLBACK = "No response text found"
ERROR_FALLBACK = "Error processing response"


@dataclass(frozen=True)
class ExtractionResult:
    text: str
    found: bool


def _first(value: Any) -> Any:
    """取列表首元素；不是非空列表时返回 None。"""
    if isinstance(value, Sequence) and not isinstance(value, (str, bytes)) and value:
        return value[0]
    return None


def _mapping(value: Any) -> Mapping[str, Any]:
    return value if isinstance(value, Mapping) else {}


def extract_result(envelope: Any) -> ExtractionResult:
    try:
        first_output = _first(_mapping(envelope).get("outputs"))
        if first_output is None:
            return ExtractionResult(NO_TEXT_FALLBACK, False)
        inner = _first(_mapping(first_output).get("outputs"))
        if inner is None:
            return ExtractionResult(NO_TEXT_FALLBACK, False)
        results = _mapping(_mapping(inner).get("results"))
        message = _mapping(results.get("message"))
        text = message.get("text")
        if isinstance(text, str) and text:
            return ExtractionResult(text, True)
        return ExtractionResult(NO_TEXT_FALLBACK, False)
    except Exception as e:  # noqa: BLE001
        logger.error(f"Error extracting text from response: {e}")
        return ExtractionResult(ERROR_FALLBACK, False)


def extract_text(envelope: Any) -> str:
    return extract_result(envelope).text
