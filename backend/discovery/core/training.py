"""
Training Session - One live conversation with a persona.

Wires the session controller, detail tracker and hint engine around a single
transcript and derives a consistent snapshot after each change.
"""

import logging
import time
from typing import Callable, List, Optional, Sequence

from ..models import (
    ChatMessage, CompletionStatus, RequiredDetail, Scenario, SessionSnapshot, SessionState,
)
from .details_tracker import get_completion_status, get_newly_obtained_details
from .end_marker import get_display_content_if_end_meeting
from .hint_engine import HintEngine, TimerScheduler
from .logging_config import LoggerAdapter
from .session_controller import DEFAULT_MAX_TURNS, SessionController

logger = logging.getLogger(__name__)

OPENING_MESSAGE_ID = "opening"


def opening_message(scenario: Scenario) -> ChatMessage:
    return ChatMessage(id=OPENING_MESSAGE_ID, role="assistant", content=scenario.opening_line)


def display_transcript(messages: Sequence[ChatMessage]) -> List[ChatMessage]:
    """Transcript as shown to the user: end markers stripped from assistant turns."""
    displayed = []
    for message in messages:
        if message.role == "assistant":
            result = get_display_content_if_end_meeting(message.content)
            if result.meeting_ended:
                message = message.model_copy(update={"content": result.display_content})
        displayed.append(message)
    return displayed


class TrainingSession:
    """
    Live session for one client and one scenario.

    Assistant replies must be added only after their stream has finished.
    """

    def __init__(
        self,
        scenario: Scenario,
        messages: Optional[Sequence[ChatMessage]] = None,
        scheduler: Optional[TimerScheduler] = None,
        clock: Callable[[], float] = time.time,
        default_max_turns: int = DEFAULT_MAX_TURNS,
    ):
        self.scenario = scenario
        self._clock = clock
        initial = list(messages) if messages else [opening_message(scenario)]
        self.controller = SessionController(
            max_turns=scenario.effective_max_turns(default_max_turns),
            messages=initial,
        )
        self.hints = HintEngine(scenario.hints, scheduler=scheduler, clock=clock)
        self.hints.evaluate_keywords(initial)
        self.last_user_message_at: Optional[float] = None
        self.reply_in_progress = False
        self._previous_completion: Optional[CompletionStatus] = None
        self._log = LoggerAdapter(logger, {"scenario_id": scenario.id})

        # Restored transcripts carry no timestamps; time hints count from now
        state = self.controller.state
        if state.user_turn_count > 0 and not state.is_ended:
            self.last_user_message_at = self._clock()
            self.hints.on_user_message(self.last_user_message_at)

    @property
    def messages(self) -> List[ChatMessage]:
        return self.controller.messages

    @property
    def state(self) -> SessionState:
        return self.controller.state

    @property
    def is_ended(self) -> bool:
        return self.controller.is_ended

    def add_user_message(self, content: str) -> ChatMessage:
        """
        Append a user turn and restart the time-hint clock.

        Raises:
            SessionEndedError: if the session has already ended
        """
        message = ChatMessage(role="user", content=content)
        state = self.controller.append_user_message(message)
        self.last_user_message_at = self._clock()
        if not state.is_ended:
            self.hints.on_user_message(self.last_user_message_at)
        self._log.info(f"User turn {state.user_turn_count}/{state.max_turns}")
        return message

    def add_assistant_message(self, content: str) -> ChatMessage:
        """Append a settled persona reply, latch the end marker and re-check keyword hints."""
        message = ChatMessage(role="assistant", content=content)
        state = self.controller.append_assistant_message(message)
        self.hints.evaluate_keywords(self.controller.messages)
        if state.is_ended:
            self.hints.close()
            self._log.info(
                "Session ended",
                extra={"extra_fields": {
                    "user_turn_count": state.user_turn_count,
                    "ended_by_control_signal": state.ended_by_control_signal,
                }}
            )
        return message

    def completion(self) -> CompletionStatus:
        return get_completion_status(self.scenario.required_details, self.controller.messages)

    def snapshot(self) -> SessionSnapshot:
        """
        Derive the full view of the session.

        ``newly_obtained`` is relative to the previous snapshot, so each newly
        uncovered detail is reported exactly once.
        """
        messages = self.controller.messages
        completion = self.completion()
        newly_obtained: List[RequiredDetail] = get_newly_obtained_details(self._previous_completion, completion)
        self._previous_completion = completion

        final_message = None
        if messages and messages[-1].role == "assistant":
            final_message = get_display_content_if_end_meeting(messages[-1].content).final_message

        return SessionSnapshot(
            scenario_id=self.scenario.id,
            messages=display_transcript(messages),
            state=self.controller.state,
            completion=completion,
            newly_obtained=newly_obtained,
            final_message=final_message,
            visible_hints=self.hints.visible_hints,
            remaining_manual_hints=self.hints.remaining_manual_hints,
        )

    def close(self) -> None:
        """Tear down timers; the transcript itself is kept."""
        self.hints.close()
