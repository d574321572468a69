"""
Request validation at the chat boundary.
Each failure is a 400 carrying one short reason string.
"""

import re
from typing import List, Optional, Tuple

from fastapi import HTTPException, status

from ..core.errors import (
    INVALID_MESSAGE_FORMAT, INVALID_SCENARIO, MESSAGE_TOO_LONG, MESSAGES_REQUIRED, SCENARIO_ID_REQUIRED,
    TOO_MANY_MESSAGES,
)
from ..models import ChatMessage, ChatRequest

SCENARIO_ID_PATTERN = re.compile(r"^[a-z0-9_-]{1,64}$")
ALLOWED_ROLES = ("user", "assistant", "system")


def _bad_request(reason: str) -> HTTPException:
    return HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=reason)


def validate_scenario_id(scenario_id: Optional[str]) -> str:
    if not scenario_id:
        raise _bad_request(SCENARIO_ID_REQUIRED)
    if not isinstance(scenario_id, str) or not SCENARIO_ID_PATTERN.match(scenario_id):
        raise _bad_request(INVALID_SCENARIO)
    return scenario_id


def validate_user_content(content: object, max_length: int) -> str:
    """User-authored text: non-empty string within the length bound."""
    if not isinstance(content, str) or not content.strip():
        raise _bad_request(INVALID_MESSAGE_FORMAT)
    if len(content) > max_length:
        raise _bad_request(MESSAGE_TOO_LONG)
    return content


def validate_chat_request(
    body: ChatRequest,
    max_messages: int,
    max_message_length: int,
) -> Tuple[str, List[ChatMessage]]:
    """
    Check a chat submission and convert it to transcript messages.

    Only user-authored content is length-bounded; assistant turns (the
    persona's own replies echoed back) are exempt.

    Returns:
        (scenario_id, messages)
    """
    scenario_id = validate_scenario_id(body.scenario_id)

    if not isinstance(body.messages, list) or not body.messages:
        raise _bad_request(MESSAGES_REQUIRED)
    if len(body.messages) > max_messages:
        raise _bad_request(TOO_MANY_MESSAGES)

    messages = []
    for raw in body.messages:
        if not isinstance(raw, dict):
            raise _bad_request(INVALID_MESSAGE_FORMAT)
        role = raw.get("role")
        content = raw.get("content")
        if role not in ALLOWED_ROLES or not isinstance(content, str) or not content:
            raise _bad_request(INVALID_MESSAGE_FORMAT)
        if role == "user" and len(content) > max_message_length:
            raise _bad_request(MESSAGE_TOO_LONG)
        message_id = raw.get("id")
        if isinstance(message_id, str) and message_id:
            messages.append(ChatMessage(id=message_id, role=role, content=content))
        else:
            messages.append(ChatMessage(role=role, content=content))

    return scenario_id, messages
