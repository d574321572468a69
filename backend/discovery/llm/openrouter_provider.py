"""
OpenRouter LLM Provider.
OpenRouter exposes an OpenAI-compatible chat/completions endpoint, so the
same client also works against any OpenAI-style base URL.
"""

import httpx
import json
import logging
import time
from typing import Optional, List, Dict, Any, AsyncGenerator

from .base import LLMProvider, LLMMessage

logger = logging.getLogger(__name__)

OPENROUTER_BASE_URL = "https://openrouter.ai/api/v1"


class OpenRouterProvider(LLMProvider):
    """Provider for OpenRouter (and other OpenAI-compatible endpoints)."""

    def __init__(
        self,
        api_key: str,
        model: str = "anthropic/claude-3-haiku",
        base_url: str = OPENROUTER_BASE_URL,
        default_temperature: float = 0.7,
        default_max_tokens: int = 1000,
        timeout: float = 30.0,
        log_calls: bool = True,
    ):
        super().__init__(api_key, model, base_url, default_temperature, default_max_tokens)
        self.timeout = timeout
        self.log_calls = log_calls

    def _get_headers(self) -> Dict[str, str]:
        return {
            "Authorization": f"Bearer {self.api_key}",
            "Content-Type": "application/json",
        }

    def _build_payload(self, messages: List[LLMMessage], temperature: Optional[float],
                       max_tokens: Optional[int], **kwargs) -> Dict[str, Any]:
        return {
            "model": kwargs.get("model", self.model),
            "messages": self._format_messages(messages),
            "temperature": temperature if temperature is not None else self.default_temperature,
            "max_tokens": max_tokens or self.default_max_tokens,
            "stream": True,
        }

    def _log_completed(self, message: str, model: str, usage: Dict[str, Any], start_time: float, **fields) -> None:
        if not self.log_calls:
            return
        logger.info(
            message,
            extra={"extra_fields": {
                "provider": "openrouter",
                "model": model,
                "prompt_tokens": usage.get("prompt_tokens", 0),
                "completion_tokens": usage.get("completion_tokens", 0),
                "total_tokens": usage.get("total_tokens", 0),
                "duration_ms": round((time.time() - start_time) * 1000, 2),
                **fields,
            }}
        )

    def _log_failed(self, message: str, model: Optional[str], start_time: float, error: Exception) -> None:
        logger.error(
            f"{message}: {str(error)}",
            exc_info=True,
            extra={"extra_fields": {
                "provider": "openrouter",
                "model": model,
                "duration_ms": round((time.time() - start_time) * 1000, 2),
                "error": str(error),
            }}
        )

    async def chat_completion_stream(
        self,
        messages: List[LLMMessage],
        temperature: Optional[float] = None,
        max_tokens: Optional[int] = None,
        **kwargs
    ) -> AsyncGenerator[str, None]:
        """Stream text chunks from the Chat Completions endpoint (SSE)."""
        start_time = time.time()
        url = f"{self.base_url}/chat/completions"
        payload = self._build_payload(messages, temperature, max_tokens, **kwargs)

        if logger.isEnabledFor(logging.DEBUG):
            logger.debug(
                f"LLM API stream starting: model={payload['model']}, {len(messages)} messages"
            )

        content_length = 0
        usage_data: Dict[str, Any] = {}

        try:
            async with httpx.AsyncClient(timeout=self.timeout) as client:
                async with client.stream('POST', url, json=payload, headers=self._get_headers()) as response:
                    response.raise_for_status()

                    async for line in response.aiter_lines():
                        # SSE format: "data: {json}" or "data: [DONE]"; OpenRouter also sends ": keep-alive" comments
                        if not line.startswith("data: "):
                            continue

                        data_str = line[6:].strip()
                        if data_str == "[DONE]":
                            break

                        try:
                            chunk = json.loads(data_str)
                        except json.JSONDecodeError:
                            continue

                        if chunk.get("error"):
                            raise RuntimeError(f"Provider error: {chunk['error']}")

                        choices = chunk.get("choices") or []
                        if choices:
                            content = (choices[0].get("delta") or {}).get("content")
                            if content:
                                content_length += len(content)
                                yield content

                        if chunk.get("usage"):
                            usage_data = chunk["usage"]

            self._log_completed(
                "LLM API stream completed", payload["model"], usage_data, start_time,
                content_length=content_length,
            )

        except Exception as e:
            self._log_failed("LLM API stream failed", payload.get("model"), start_time, e)
            raise
