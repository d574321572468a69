"""
Unit tests for the end-marker parser.
"""

from discovery.core.end_marker import get_display_content_if_end_meeting


class TestEndMarker:

    def test_plain_content_unchanged(self):
        result = get_display_content_if_end_meeting("Let's keep talking.")
        assert result.meeting_ended is False
        assert result.display_content == "Let's keep talking."
        assert result.final_message is None

    def test_marker_extracts_trimmed_inner_text(self):
        result = get_display_content_if_end_meeting("[END_MEETING]  I have to go.  [/END_MEETING]")
        assert result.meeting_ended is True
        assert result.final_message == "I have to go."
        assert result.display_content == "I have to go."

    def test_surrounding_text_is_dropped(self):
        result = get_display_content_if_end_meeting(
            "Right. [END_MEETING]This meeting is over.[/END_MEETING] Goodbye."
        )
        assert result.display_content == "This meeting is over."

    def test_marker_spans_newlines(self):
        result = get_display_content_if_end_meeting("[END_MEETING]\nWe're done here.\n[/END_MEETING]")
        assert result.meeting_ended is True
        assert result.final_message == "We're done here."

    def test_first_pair_wins(self):
        result = get_display_content_if_end_meeting(
            "[END_MEETING]first[/END_MEETING][END_MEETING]second[/END_MEETING]"
        )
        assert result.final_message == "first"

    def test_unclosed_marker_is_not_an_end(self):
        result = get_display_content_if_end_meeting("[END_MEETING]I have to")
        assert result.meeting_ended is False
        assert result.display_content == "[END_MEETING]I have to"

    def test_empty_content(self):
        result = get_display_content_if_end_meeting("")
        assert result.meeting_ended is False
        assert result.display_content == ""

    def test_before_and_after_text(self):
        result = get_display_content_if_end_meeting("Before[END_MEETING]Stop here.[/END_MEETING]After")
        assert result.meeting_ended is True
        assert result.final_message == "Stop here."
        assert result.display_content == "Stop here."
