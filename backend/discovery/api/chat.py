"""
Chat API endpoint - Stateless persona replies.

The client sends the whole transcript each turn and receives the persona's
reply as a plain-text stream. End-marker detection is left to the client (or
POST /sessions/evaluate) once the stream has finished.
"""

import logging
from typing import AsyncIterator

from fastapi import APIRouter, Depends, HTTPException, status
from fastapi.responses import StreamingResponse

from ..config import settings
from ..core.errors import INVALID_SCENARIO, SERVICE_UNAVAILABLE
from ..llm import CompletionService, CompletionUnavailableError
from ..models import ChatRequest
from .deps import AppServices, enforce_rate_limit, get_services, require_completion
from .validation import validate_chat_request

logger = logging.getLogger(__name__)

router = APIRouter(tags=["chat"])


async def _text_stream(stream: AsyncIterator[str], scenario_id: str) -> AsyncIterator[str]:
    length = 0
    try:
        async for chunk in stream:
            length += len(chunk)
            yield chunk
    except Exception as e:
        # Headers are already sent; the truncated body is all the client gets
        logger.error(
            f"Reply stream failed mid-way: {e}",
            exc_info=True,
            extra={"extra_fields": {"scenario_id": scenario_id, "content_length": length}}
        )
        return
    logger.debug(f"Reply streamed for {scenario_id}: {length} chars")


@router.post("/chat", dependencies=[Depends(enforce_rate_limit)])
async def chat(
    body: ChatRequest,
    services: AppServices = Depends(get_services),
    completion: CompletionService = Depends(require_completion),
):
    """
    Stream the persona's next reply for a transcript.

    Args:
        body: ``{"messages": [{"role", "content"}], "scenarioId": str}``

    Returns:
        StreamingResponse with the reply text
    """
    scenario_id, messages = validate_chat_request(
        body,
        max_messages=settings.chat_max_messages,
        max_message_length=settings.chat_max_message_length,
    )

    scenario = await services.scenarios.get(scenario_id)
    if scenario is None:
        logger.warning(f"Chat requested for unknown scenario: {scenario_id}")
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=INVALID_SCENARIO)

    try:
        stream = await completion.open_stream(scenario.system_prompt, messages)
    except CompletionUnavailableError:
        raise HTTPException(status_code=status.HTTP_503_SERVICE_UNAVAILABLE, detail=SERVICE_UNAVAILABLE)

    return StreamingResponse(
        _text_stream(stream, scenario_id),
        media_type="text/plain; charset=utf-8",
        headers={
            "Cache-Control": "no-cache",
            "X-Accel-Buffering": "no",  # Disable nginx buffering
        }
    )
