"""
Session Lifecycle / Turn-Limit Controller.

A session is ACTIVE until the user has asked ``max_turns`` questions or the
persona emits the end marker. Everything except the end-marker latch is
re-derived from the transcript on every read.
"""

import logging
from typing import List, Optional, Sequence

from ..models import ChatMessage, SessionState, SessionStatus
from .end_marker import get_display_content_if_end_meeting

logger = logging.getLogger(__name__)

DEFAULT_MAX_TURNS = 15


class SessionEndedError(Exception):
    """Raised when a user message is submitted to an ended session."""


def count_user_turns(messages: Sequence[ChatMessage]) -> int:
    return sum(1 for message in messages if message.role == "user")


def latest_assistant_ended_meeting(messages: Sequence[ChatMessage]) -> bool:
    """True when the last message is an assistant reply carrying the end marker."""
    if not messages:
        return False
    last = messages[-1]
    if last.role != "assistant":
        return False
    return get_display_content_if_end_meeting(last.content).meeting_ended


def derive_session_state(
    messages: Sequence[ChatMessage],
    max_turns: int = DEFAULT_MAX_TURNS,
    ended_by_control_signal: bool = False,
) -> SessionState:
    user_turn_count = count_user_turns(messages)
    is_ended = user_turn_count >= max_turns or ended_by_control_signal
    return SessionState(
        user_turn_count=user_turn_count,
        max_turns=max_turns,
        ended_by_control_signal=ended_by_control_signal,
        is_ended=is_ended,
        status=SessionStatus.ENDED if is_ended else SessionStatus.ACTIVE,
    )


class SessionController:
    """
    Owns one transcript and guards appends against the ACTIVE/ENDED state.

    Assistant messages must be appended only once their stream has settled.
    """

    def __init__(self, max_turns: int = DEFAULT_MAX_TURNS, messages: Optional[Sequence[ChatMessage]] = None):
        self.max_turns = max_turns or DEFAULT_MAX_TURNS
        self._messages: List[ChatMessage] = list(messages or [])
        self._ended_by_control_signal = latest_assistant_ended_meeting(self._messages)

    @property
    def messages(self) -> List[ChatMessage]:
        return list(self._messages)

    @property
    def ended_by_control_signal(self) -> bool:
        return self._ended_by_control_signal

    @property
    def state(self) -> SessionState:
        return derive_session_state(self._messages, self.max_turns, self._ended_by_control_signal)

    @property
    def is_ended(self) -> bool:
        return self.state.is_ended

    def append_user_message(self, message: ChatMessage) -> SessionState:
        if message.role != "user":
            raise ValueError(f"Expected a user message, got role={message.role}")
        if self.is_ended:
            raise SessionEndedError("Session ended")
        self._messages.append(message)
        return self.state

    def append_assistant_message(self, message: ChatMessage) -> SessionState:
        if message.role != "assistant":
            raise ValueError(f"Expected an assistant message, got role={message.role}")
        self._messages.append(message)
        if not self._ended_by_control_signal and latest_assistant_ended_meeting(self._messages):
            self._ended_by_control_signal = True
            logger.info(
                "Persona ended the meeting",
                extra={"extra_fields": {"user_turn_count": count_user_turns(self._messages)}}
            )
        return self.state
