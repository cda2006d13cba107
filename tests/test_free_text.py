"""Summary: Tests for heuristic free-text invite parsing.

Importance: Ensures body parsing only reports invites with a labeled time.
Alternatives: Rely on manual review of parsed bodies.
"""

from __future__ import annotations

from datetime import date, datetime

import pytest

from invitescout.free_text import parse_free_text

NOW = datetime(2024, 1, 15, 9, 0)


def test_body_without_time_label_is_not_an_invite() -> None:
    """Summary: Return nothing when no when/time/date label is present.

    Importance: The parser signals "no invite" instead of guessing.
    Alternatives: Treat every candidate message as an invite.
    """

    assert parse_free_text("Let's catch up soon!", "Hello", now=NOW) is None
    assert parse_free_text("", "Hello", now=NOW) is None
    assert parse_free_text("Lunchtime: noon-ish", "Hello", now=NOW) is None


def test_where_and_relative_when() -> None:
    """Summary: Capture the location and resolve a relative day.

    Importance: Confirms labeled fields map onto the invite model.
    Alternatives: Require absolute dates in message bodies.
    """

    body = "Hi team,\nWhere: Conference Room B\nWhen: tomorrow\nThanks"
    invite = parse_free_text(body, "Design review", now=NOW)
    assert invite is not None
    assert invite.location == "Conference Room B"
    assert invite.title == "Design review"
    assert invite.start_time.date() == date(2024, 1, 16)
    assert invite.description == "Parsed from email body"


def test_absolute_time_range_sets_end() -> None:
    """Summary: Resolve an absolute start and a same-day end from a range.

    Importance: Captured when-text is parsed rather than replaced by the clock.
    Alternatives: Ignore end times written in the body.
    """

    body = "Time: January 20, 2024 3:00 PM - 4:00 PM\nLocation: Zoom"
    invite = parse_free_text(body, "", now=NOW)
    assert invite is not None
    assert invite.title == "Meeting Invitation"
    assert invite.start_time == datetime(2024, 1, 20, 15, 0)
    assert invite.end_time == datetime(2024, 1, 20, 16, 0)
    assert invite.location == "Zoom"


def test_unresolved_time_falls_back_to_reference_time() -> None:
    """Summary: Document the fallback used when the when-text cannot be parsed.

    Importance: Open question whether such invites should be kept; the default keeps
    them at the reference time and flags the description.
    Alternatives: Drop invites with unparseable times by default.
    """

    invite = parse_free_text("When: TBD\nWhere: Office", "Offsite", now=NOW)
    assert invite is not None
    assert invite.start_time == NOW
    assert "time not recognised: TBD" in invite.description


def test_unresolved_time_can_be_skipped() -> None:
    """Summary: Drop invites with unparseable times in skip mode.

    Importance: Lets deployments avoid events at fabricated times.
    Alternatives: Always keep body invites.
    """

    assert parse_free_text("When: TBD", "Offsite", unresolved_time="skip", now=NOW) is None
    with pytest.raises(ValueError):
        parse_free_text("When: TBD", "Offsite", unresolved_time="guess", now=NOW)


def test_empty_when_line_does_not_capture_next_line() -> None:
    assert parse_free_text("When:\nWhere: Room 5", "Sync", now=NOW) is None
    invite = parse_free_text("When: January 30, 2024 2:00 PM\r\nWhere:\r\nNotes", "Sync", now=NOW)
    assert invite is not None
    assert invite.start_time == datetime(2024, 1, 30, 14, 0)
    assert invite.location == ""
