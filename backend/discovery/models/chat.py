"""
Chat Models - Transcript messages and the chat submission payload.
"""

import uuid
from typing import Any, List, Literal
from pydantic import BaseModel, ConfigDict, Field

MessageRole = Literal["user", "assistant", "system"]


def new_message_id() -> str:
    return uuid.uuid4().hex


class ChatMessage(BaseModel):
    """One transcript entry. Order in the transcript is meaningful."""
    model_config = ConfigDict(frozen=True)

    id: str = Field(default_factory=new_message_id)
    role: MessageRole
    content: str


class ChatRequest(BaseModel):
    """
    Body of POST /chat.

    Fields are deliberately loose so the boundary validator can answer with
    specific reasons ("Messages required", "Message too long", ...) instead of
    a generic 422.
    """
    model_config = ConfigDict(populate_by_name=True)

    messages: Any = None
    scenario_id: Any = Field(default=None, alias="scenarioId")


class UserTurnRequest(BaseModel):
    """Body of POST /sessions/current/messages."""
    content: str


class StartSessionRequest(BaseModel):
    """Body of POST /sessions."""
    model_config = ConfigDict(populate_by_name=True)

    scenario_id: str = Field(alias="scenarioId")


class EvaluateRequest(BaseModel):
    """Body of POST /sessions/evaluate."""
    model_config = ConfigDict(populate_by_name=True)

    scenario_id: str = Field(alias="scenarioId")
    messages: List[ChatMessage]
