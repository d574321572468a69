"""
Tests for the user-facing error taxonomy.
"""

import pytest

from discovery.core.errors import (
    ErrorCategory, INVALID_SCENARIO, MESSAGE_TOO_LONG, SERVICE_NOT_CONFIGURED, SERVICE_UNAVAILABLE,
    TOO_MANY_MESSAGES, TOO_MANY_REQUESTS, classify_error, describe_error,
)


@pytest.mark.parametrize("reason, category", [
    (TOO_MANY_REQUESTS, ErrorCategory.RATE_LIMITED),
    ("HTTP 429", ErrorCategory.RATE_LIMITED),
    (MESSAGE_TOO_LONG, ErrorCategory.MESSAGE_TOO_LONG),
    (TOO_MANY_MESSAGES, ErrorCategory.CONVERSATION_TOO_LONG),
    (SERVICE_UNAVAILABLE, ErrorCategory.SERVICE_UNAVAILABLE),
    (SERVICE_NOT_CONFIGURED, ErrorCategory.SERVICE_UNAVAILABLE),
    (INVALID_SCENARIO, ErrorCategory.INVALID_SCENARIO),
    ("Messages required", ErrorCategory.INVALID_REQUEST),
    ("something odd", ErrorCategory.UNKNOWN),
    (None, ErrorCategory.UNKNOWN),
])
def test_classify_error(reason, category):
    assert classify_error(reason) == category


def test_rate_limited_is_retryable():
    guidance = describe_error(TOO_MANY_REQUESTS)
    assert guidance.can_retry is True
    assert "too quickly" in guidance.message


def test_message_too_long_is_not_retryable():
    guidance = describe_error(MESSAGE_TOO_LONG)
    assert guidance.can_retry is False
    assert "500 characters" in guidance.message


def test_unknown_is_retryable():
    guidance = describe_error("weird")
    assert guidance.category == ErrorCategory.UNKNOWN
    assert guidance.can_retry is True
