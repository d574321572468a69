"""Core module - session state machine, completion tracking, hints and admission control."""

from .details_tracker import DetailMatch, check_detail_obtained, get_completion_status, get_newly_obtained_details
from .end_marker import get_display_content_if_end_meeting
from .hint_engine import HintEngine, TimerScheduler, AsyncioTimerScheduler
from .session_controller import SessionController, SessionEndedError, derive_session_state
from .training import TrainingSession
from .registry import SessionRegistry
from .cleanup import StateCleaner

__all__ = [
    'DetailMatch', 'check_detail_obtained', 'get_completion_status', 'get_newly_obtained_details',
    'get_display_content_if_end_meeting',
    'HintEngine', 'TimerScheduler', 'AsyncioTimerScheduler',
    'SessionController', 'SessionEndedError', 'derive_session_state',
    'TrainingSession', 'SessionRegistry', 'StateCleaner',
]
