"""
Error taxonomy - the closed set of failure categories a user ever sees.

Boundary failures carry a short reason string (the HTTP ``detail``); the
client maps it to copy and to either a retry or a return-to-start action.
"""

from dataclasses import dataclass
from enum import Enum
from typing import Optional


class ErrorCategory(str, Enum):
    RATE_LIMITED = "rate_limited"
    MESSAGE_TOO_LONG = "message_too_long"
    CONVERSATION_TOO_LONG = "conversation_too_long"
    SERVICE_UNAVAILABLE = "service_unavailable"
    INVALID_SCENARIO = "invalid_scenario"
    INVALID_REQUEST = "invalid_request"
    UNKNOWN = "unknown"


# Reason strings used as HTTPException details
TOO_MANY_REQUESTS = "Too Many Requests"
MESSAGES_REQUIRED = "Messages required"
TOO_MANY_MESSAGES = "Too many messages"
INVALID_MESSAGE_FORMAT = "Invalid message format"
MESSAGE_TOO_LONG = "Message too long"
SCENARIO_ID_REQUIRED = "Scenario ID required"
INVALID_SCENARIO = "Invalid scenario"
SERVICE_UNAVAILABLE = "AI service unavailable"
SERVICE_NOT_CONFIGURED = "AI service not configured"
SESSION_ENDED = "Session ended"
NO_SESSION = "No session"
REPLY_IN_PROGRESS = "Reply in progress"
NO_PENDING_TURN = "No pending turn"
NO_HINTS_LEFT = "No hints remaining"
HINT_NOT_ACTIVE = "Hint not active"


@dataclass(frozen=True)
class ErrorGuidance:
    message: str
    can_retry: bool
    retry_label: str
    category: ErrorCategory


_GUIDANCE = {
    ErrorCategory.RATE_LIMITED: (
        "You're sending messages too quickly. Please wait about a minute, then try again.",
        True, "Try again",
    ),
    ErrorCategory.MESSAGE_TOO_LONG: (
        "Please shorten your message to 500 characters.",
        False, "Back to lobby",
    ),
    ErrorCategory.CONVERSATION_TOO_LONG: (
        "This conversation is too long. Start a new interview or try a shorter message.",
        False, "Start over",
    ),
    ErrorCategory.SERVICE_UNAVAILABLE: (
        "The client is temporarily unavailable. Please try again in a moment.",
        True, "Try again",
    ),
    ErrorCategory.INVALID_SCENARIO: (
        "Something went wrong with this session. Return to the lobby and pick a client again.",
        False, "Back to lobby",
    ),
    ErrorCategory.INVALID_REQUEST: (
        "Something went wrong with this session. Return to the lobby and start again.",
        False, "Back to lobby",
    ),
    ErrorCategory.UNKNOWN: (
        "Connection lost. Please try again.",
        True, "Try again",
    ),
}


def classify_error(reason: Optional[str]) -> ErrorCategory:
    """Map a reason string (or raw error text) to its category."""
    if not reason:
        return ErrorCategory.UNKNOWN
    if TOO_MANY_REQUESTS in reason or "429" in reason:
        return ErrorCategory.RATE_LIMITED
    if MESSAGE_TOO_LONG in reason or "500 characters" in reason:
        return ErrorCategory.MESSAGE_TOO_LONG
    if TOO_MANY_MESSAGES in reason:
        return ErrorCategory.CONVERSATION_TOO_LONG
    if any(marker in reason for marker in ("AI service", "not configured", "unavailable", "503")):
        return ErrorCategory.SERVICE_UNAVAILABLE
    if INVALID_SCENARIO in reason or SCENARIO_ID_REQUIRED in reason:
        return ErrorCategory.INVALID_SCENARIO
    if reason in (MESSAGES_REQUIRED, INVALID_MESSAGE_FORMAT, SESSION_ENDED, NO_SESSION):
        return ErrorCategory.INVALID_REQUEST
    return ErrorCategory.UNKNOWN


def describe_error(reason: Optional[str]) -> ErrorGuidance:
    """User-facing copy and recovery action for a failure reason."""
    category = classify_error(reason)
    message, can_retry, retry_label = _GUIDANCE[category]
    return ErrorGuidance(message=message, can_retry=can_retry, retry_label=retry_label, category=category)
