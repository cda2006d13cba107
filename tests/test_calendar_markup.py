"""Summary: Tests for iCalendar markup parsing.

Importance: Ensures .ics attachments become valid invites or nothing at all.
Alternatives: Use only end-to-end provider tests.
"""

from __future__ import annotations

from datetime import datetime, timezone

import pytest

from invitescout.calendar_markup import parse_calendar_markup, parse_compact_timestamp


def _markup(*lines: str) -> str:
    return "\r\n".join(lines)


def test_parse_minimal_markup() -> None:
    """Summary: Parse summary, start, and location fields.

    Importance: Confirms the common attachment shape maps onto the invite model.
    Alternatives: Compare against a full iCalendar library result.
    """

    invite = parse_calendar_markup(
        _markup("SUMMARY:Team Sync", "DTSTART:20240115T140000", "LOCATION:Room 4"),
        "Fallback",
    )
    assert invite is not None
    assert invite.title == "Team Sync"
    assert invite.start_time == datetime(2024, 1, 15, 14, 0)
    assert invite.location == "Room 4"
    assert invite.end_time is None
    assert invite.source == "email"


def test_missing_start_returns_none() -> None:
    """Summary: Reject markup without DTSTART.

    Importance: Invalid candidates must never reach the calendar sink.
    Alternatives: Default the start to the current time.
    """

    assert parse_calendar_markup(_markup("SUMMARY:Team Sync", "LOCATION:Room 4"), "x") is None


def test_title_falls_back_to_subject_then_placeholder() -> None:
    """Summary: Use the message subject, then a generic title, when SUMMARY is absent.

    Importance: Keeps invites with only timing information usable.
    Alternatives: Reject markup without a SUMMARY line.
    """

    markup = _markup("DTSTART:20240115T140000")
    assert parse_calendar_markup(markup, "Quarterly Review").title == "Quarterly Review"
    assert parse_calendar_markup(markup, "").title == "Calendar Invite"


def test_event_block_ignores_timezone_components() -> None:
    """Summary: Read properties only from the first VEVENT.

    Importance: VTIMEZONE DTSTART lines must not shadow the event start.
    Alternatives: Take the last DTSTART in the document.
    """

    markup = _markup(
        "BEGIN:VCALENDAR",
        "BEGIN:VTIMEZONE",
        "TZID:Europe/Berlin",
        "BEGIN:STANDARD",
        "DTSTART:19701025T030000",
        "END:STANDARD",
        "END:VTIMEZONE",
        "BEGIN:VEVENT",
        "SUMMARY:Planning",
        "DTSTART;TZID=Europe/Berlin:20240301T093000",
        "DTEND;TZID=Europe/Berlin:20240301T103000",
        "DESCRIPTION:Agenda covers the",
        "  roadmap",
        "X-UNKNOWN:ignored",
        "END:VEVENT",
        "END:VCALENDAR",
    )
    invite = parse_calendar_markup(markup, "")
    assert invite is not None
    assert invite.title == "Planning"
    assert invite.start_time == datetime(2024, 3, 1, 9, 30)
    assert invite.end_time == datetime(2024, 3, 1, 10, 30)
    assert invite.description == "Agenda covers the roadmap"


def test_compact_timestamp_variants() -> None:
    """Summary: Parse date-only, UTC-marked, and invalid timestamps.

    Importance: Hour and minute default to midnight; bad values resolve to nothing.
    Alternatives: Raise on malformed timestamps.
    """

    assert parse_compact_timestamp("20240115") == datetime(2024, 1, 15, 0, 0)
    assert parse_compact_timestamp("20240115T140000Z") == datetime(2024, 1, 15, 14, 0)
    assert parse_compact_timestamp("20241345T000000") is None
    assert parse_compact_timestamp("") is None
    assert parse_compact_timestamp("tomorrow") is None


def test_utc_marker_can_be_honored() -> None:
    """Summary: Return aware UTC datetimes when the Z marker is honored.

    Importance: Lets deployments opt out of local-time interpretation.
    Alternatives: Always treat timestamps as local time.
    """

    parsed = parse_compact_timestamp("20240115T140000Z", utc_marker="honor")
    assert parsed == datetime(2024, 1, 15, 14, 0, tzinfo=timezone.utc)
    assert parse_compact_timestamp("20240115T140000", utc_marker="honor").tzinfo is None
    with pytest.raises(ValueError):
        parse_compact_timestamp("20240115", utc_marker="shift")


def test_nested_alarm_does_not_override_event_fields() -> None:
    """Summary: Skip properties that belong to a VALARM inside the event.

    Importance: Mail clients attach reminders whose DESCRIPTION would shadow the agenda.
    Alternatives: Parse every component into a tree.
    """

    invite = parse_calendar_markup(
        _markup(
            "BEGIN:VCALENDAR",
            "BEGIN:VEVENT",
            "SUMMARY:Quarterly Review",
            "DTSTART:20240402T100000",
            "DESCRIPTION:Quarterly agenda",
            "BEGIN:VALARM",
            "ACTION:DISPLAY",
            "DESCRIPTION:REMINDER",
            "END:VALARM",
            "LOCATION:Board Room",
            "END:VEVENT",
            "END:VCALENDAR",
        ),
        "Fallback",
    )
    assert invite is not None
    assert invite.description == "Quarterly agenda"
    assert invite.location == "Board Room"
