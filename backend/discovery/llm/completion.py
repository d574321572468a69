"""
Completion Service - Persona replies with a primary -> fallback model retry.

The retry only covers failures before the first chunk of text; once text has
reached the caller a mid-stream failure is propagated as-is.
"""

import asyncio
import logging
from typing import AsyncIterator, List, Optional, Sequence

from ..models import ChatMessage
from .base import LLMProvider, LLMMessage

logger = logging.getLogger(__name__)


class CompletionUnavailableError(Exception):
    """Every configured model failed before producing any text."""


class CompletionService:
    """Streams the persona's reply to a transcript."""

    def __init__(
        self,
        provider: LLMProvider,
        primary_model: Optional[str] = None,
        fallback_model: Optional[str] = None,
        max_tokens: int = 1000,
        thinking_delay_ms: int = 0,
    ):
        self.provider = provider
        self.primary_model = primary_model or provider.model
        self.fallback_model = fallback_model
        self.max_tokens = max_tokens
        self.thinking_delay_ms = thinking_delay_ms

    @property
    def models(self) -> List[str]:
        models = [self.primary_model]
        if self.fallback_model and self.fallback_model != self.primary_model:
            models.append(self.fallback_model)
        return models

    @staticmethod
    def build_messages(system_prompt: str, messages: Sequence[ChatMessage]) -> List[LLMMessage]:
        return [LLMMessage.text("system", system_prompt)] + [
            LLMMessage.text(message.role, message.content) for message in messages
        ]

    async def open_stream(self, system_prompt: str, messages: Sequence[ChatMessage]) -> AsyncIterator[str]:
        """
        Start the reply stream.

        Waits for the first chunk so that a failing model can be swapped for
        the fallback before anything is sent to the client.

        Raises:
            CompletionUnavailableError: if every model fails up front
        """
        if self.thinking_delay_ms > 0:
            await asyncio.sleep(self.thinking_delay_ms / 1000)

        llm_messages = self.build_messages(system_prompt, messages)
        last_error: Optional[Exception] = None

        for attempt, model in enumerate(self.models):
            stream = self.provider.chat_completion_stream(
                llm_messages, max_tokens=self.max_tokens, model=model
            )
            try:
                first_chunk = await stream.__anext__()
            except StopAsyncIteration:
                return self._chain(None, stream)
            except Exception as e:
                last_error = e
                logger.warning(
                    f"Model {model} failed before replying"
                    + (", trying fallback" if attempt + 1 < len(self.models) else ""),
                    extra={"extra_fields": {"model": model, "error": str(e)}}
                )
                continue
            return self._chain(first_chunk, stream)

        logger.error(f"All models failed: {last_error}")
        raise CompletionUnavailableError("AI service unavailable") from last_error

    @staticmethod
    async def _chain(first_chunk: Optional[str], stream: AsyncIterator[str]) -> AsyncIterator[str]:
        if first_chunk:
            yield first_chunk
        async for chunk in stream:
            yield chunk
