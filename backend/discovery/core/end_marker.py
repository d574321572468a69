"""
End-Marker Protocol Parser.

The persona ends a meeting on its own (e.g. after abusive input) by wrapping
its closing line as ``[END_MEETING]<line>[/END_MEETING]``. Only call this on a
settled assistant message; partial stream text may hold half a delimiter.
"""

import re

from ..models import EndMeetingResult

END_MEETING_OPEN = "[END_MEETING]"
END_MEETING_CLOSE = "[/END_MEETING]"

_END_MEETING_PATTERN = re.compile(
    re.escape(END_MEETING_OPEN) + r"(.*?)" + re.escape(END_MEETING_CLOSE),
    re.DOTALL,
)


def get_display_content_if_end_meeting(content: str) -> EndMeetingResult:
    """
    Split the control signal from the displayable text.

    When the marker pair is present only the trimmed inner line is shown;
    anything before or after it is dropped.
    """
    match = _END_MEETING_PATTERN.search(content or "")
    if match is None:
        return EndMeetingResult(display_content=content, meeting_ended=False, final_message=None)

    final_message = match.group(1).strip()
    return EndMeetingResult(
        display_content=final_message,
        meeting_ended=True,
        final_message=final_message,
    )
