"""Models module."""

from .chat import ChatMessage, ChatRequest, UserTurnRequest, StartSessionRequest, EvaluateRequest
from .scenario import RequiredDetail, ScenarioHint, Scenario, ScenarioSummary
from .session import (
    SessionStatus, SessionState, DetailStatus, CompletionStatus, EndMeetingResult,
    ActiveHint, StoredSession, SessionSnapshot, SessionEvaluation, HintPanel,
)

__all__ = [
    'ChatMessage', 'ChatRequest', 'UserTurnRequest', 'StartSessionRequest', 'EvaluateRequest',
    'RequiredDetail', 'ScenarioHint', 'Scenario', 'ScenarioSummary',
    'SessionStatus', 'SessionState', 'DetailStatus', 'CompletionStatus', 'EndMeetingResult',
    'ActiveHint', 'StoredSession', 'SessionSnapshot', 'SessionEvaluation', 'HintPanel',
]
