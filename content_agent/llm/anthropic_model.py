"""Tool-calling language model backed by the Anthropic Messages API."""

from __future__ import annotations

import time
from typing import Any, Dict, List, Optional, Sequence

from content_agent.models import (
    STOP_END,
    Conversation,
    ModelResponse,
    TextBlock,
    ToolCallRequest,
    ToolSpec,
)
from content_agent.utils import get_logger, redact_secrets

logger = get_logger(__name__)

_STOP_REASONS = {"end_turn": STOP_END, "stop_sequence": STOP_END}


def normalize_stop_reason(raw: Optional[str]) -> str:
    if not raw:
        return STOP_END
    return _STOP_REASONS.get(raw, raw)


def to_model_response(message: Any) -> ModelResponse:
    """Convert an SDK message (or an equivalent dict) into a ModelResponse.

    Block types other than text and tool_use (thinking, server tools) are dropped.
    """
    if isinstance(message, dict):
        raw_blocks = message.get("content") or []
        stop_reason = message.get("stop_reason")
    else:
        raw_blocks = getattr(message, "content", None) or []
        stop_reason = getattr(message, "stop_reason", None)

    blocks: List[Any] = []
    for block in raw_blocks:
        data = block if isinstance(block, dict) else block.model_dump()
        kind = data.get("type")
        if kind == "text":
            blocks.append(TextBlock(text=data.get("text") or ""))
        elif kind == "tool_use":
            blocks.append(ToolCallRequest(id=data["id"], name=data["name"], input=data.get("input") or {}))
    return ModelResponse(stop_reason=normalize_stop_reason(stop_reason), content=blocks)


class AnthropicModel:
    def __init__(
        self,
        api_key: str,
        model: str,
        max_tokens: int = 8192,
        temperature: Optional[float] = None,
        timeout: float = 300.0,
        retries: int = 2,
        client: Any = None,
    ):
        if client is None:
            import anthropic
            client = anthropic.Anthropic(api_key=api_key, timeout=timeout, max_retries=0)
        self.client = client
        self.model = model
        self.max_tokens = max_tokens
        self.temperature = temperature
        self.timeout = timeout
        self.retries = retries

    def _request(self, system_prompt: str, tools: Sequence[ToolSpec], conversation: Conversation) -> Dict[str, Any]:
        request: Dict[str, Any] = {
            "model": self.model,
            "max_tokens": self.max_tokens,
            "system": system_prompt,
            "tools": [t.model_dump(include={"name", "description", "input_schema"}) for t in tools],
            "messages": conversation.to_messages(),
        }
        if self.temperature is not None:
            request["temperature"] = self.temperature
        return request

    def complete(self, system_prompt: str, tools: Sequence[ToolSpec], conversation: Conversation) -> ModelResponse:
        request = self._request(system_prompt, tools, conversation)
        for attempt in range(self.retries + 1):
            try:
                t0 = time.monotonic()
                message = self.client.messages.create(**request)
                response = to_model_response(message)
                logger.debug(
                    "model: stop=%s blocks=%d took_ms=%d",
                    response.stop_reason,
                    len(response.content),
                    int((time.monotonic() - t0) * 1000),
                )
                return response
            except Exception as e:
                if attempt == self.retries:
                    logger.error("model call failed after %d attempts: %s", attempt + 1, redact_secrets(str(e)))
                    raise
                logger.warning("model call failed attempt=%d err=%s", attempt + 1, redact_secrets(str(e)))
                time.sleep(0.5 * (2 ** attempt))
