"""
Session Models - Derived conversation state and the resumable session record.
"""

from enum import Enum
from typing import List, Optional
from pydantic import BaseModel, Field, computed_field

from .chat import ChatMessage
from .scenario import RequiredDetail, ScenarioHint


class SessionStatus(str, Enum):
    ACTIVE = "active"
    ENDED = "ended"


class SessionState(BaseModel):
    """Turn-limit / end-marker state, always derived from the transcript."""
    user_turn_count: int
    max_turns: int
    ended_by_control_signal: bool = False
    is_ended: bool
    status: SessionStatus

    @computed_field
    @property
    def turns_remaining(self) -> int:
        return max(0, self.max_turns - self.user_turn_count)


class DetailStatus(BaseModel):
    detail: RequiredDetail
    obtained: bool
    message_index: Optional[int] = None  # position in the full transcript


class CompletionStatus(BaseModel):
    details: List[DetailStatus]
    obtained: List[str]
    missing: List[str]
    required_obtained: int
    required_total: int
    percentage: int
    all_required_complete: bool


class EndMeetingResult(BaseModel):
    display_content: str
    meeting_ended: bool
    final_message: Optional[str] = None


class ActiveHint(BaseModel):
    hint: ScenarioHint
    triggered_at: float
    dismissed: bool = False


class StoredSession(BaseModel):
    """Resumable session record. ``saved_at`` is epoch seconds."""
    scenario_id: str
    messages: List[ChatMessage]
    saved_at: float


class SessionSnapshot(BaseModel):
    """Everything a client needs to render one live session."""
    scenario_id: str
    messages: List[ChatMessage]
    state: SessionState
    completion: CompletionStatus
    newly_obtained: List[RequiredDetail] = Field(default_factory=list)
    final_message: Optional[str] = None
    visible_hints: List[ActiveHint] = Field(default_factory=list)
    remaining_manual_hints: int = 0


class SessionEvaluation(BaseModel):
    """Derived state for a client-held transcript (stateless evaluation)."""
    state: SessionState
    completion: CompletionStatus
    meeting_ended: bool
    final_message: Optional[str] = None


class HintPanel(BaseModel):
    visible_hints: List[ActiveHint]
    remaining_manual_hints: int
