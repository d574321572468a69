"""
Detail-Completion Tracker - Scores which required details the user has uncovered.

Only the user's own messages are inspected: the exercise measures the user's
questioning, not what the persona volunteers.
"""

import math
from dataclasses import dataclass
from typing import List, Optional, Sequence

from ..models import ChatMessage, CompletionStatus, DetailStatus, RequiredDetail


@dataclass(frozen=True)
class DetailMatch:
    obtained: bool
    message_index: Optional[int] = None


def _round_half_up(value: float) -> int:
    return int(math.floor(value + 0.5))


def check_detail_obtained(detail: RequiredDetail, messages: Sequence[ChatMessage]) -> DetailMatch:
    """
    Check whether any user message asks about the detail.

    The earliest matching user message wins. ``message_index`` is its position
    in the full transcript, not among user messages only.
    """
    keywords = [keyword.lower() for keyword in detail.keywords if keyword]
    if not keywords:
        return DetailMatch(obtained=False)

    for index, message in enumerate(messages):
        if message.role != "user":
            continue
        content = message.content.lower()
        if any(keyword in content for keyword in keywords):
            return DetailMatch(obtained=True, message_index=index)

    return DetailMatch(obtained=False)


def get_completion_status(
    required_details: Sequence[RequiredDetail],
    messages: Sequence[ChatMessage],
) -> CompletionStatus:
    """
    Compute the completion status of a scenario's details over a transcript.

    With no required details the session counts as complete but reports 0%.
    """
    details: List[DetailStatus] = []
    for detail in required_details:
        match = check_detail_obtained(detail, messages)
        details.append(DetailStatus(
            detail=detail,
            obtained=match.obtained,
            message_index=match.message_index,
        ))

    required = [status for status in details if status.detail.priority == "required"]
    required_obtained = sum(1 for status in required if status.obtained)
    required_total = len(required)

    percentage = _round_half_up(100 * required_obtained / required_total) if required_total else 0

    return CompletionStatus(
        details=details,
        obtained=[status.detail.id for status in details if status.obtained],
        missing=[status.detail.id for status in details if not status.obtained],
        required_obtained=required_obtained,
        required_total=required_total,
        percentage=percentage,
        all_required_complete=required_obtained == required_total,
    )


def get_newly_obtained_details(
    previous_status: Optional[CompletionStatus],
    current_status: CompletionStatus,
) -> List[RequiredDetail]:
    """
    Details obtained in ``current_status`` but not in ``previous_status``.

    A missing previous snapshot means everything obtained so far is new.
    """
    if previous_status is None:
        return [status.detail for status in current_status.details if status.obtained]

    previously_obtained = set(previous_status.obtained)
    return [
        status.detail
        for status in current_status.details
        if status.obtained and status.detail.id not in previously_obtained
    ]
