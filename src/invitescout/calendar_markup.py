"""Summary: iCalendar markup parsing for invite attachments.

Importance: Turns .ics attachment text into a normalized InviteEvent.
Alternatives: Use a dedicated iCalendar parsing library.
"""

from __future__ import annotations

import re
from datetime import datetime, timezone

from invitescout.models import InviteEvent

DEFAULT_MARKUP_TITLE = "Calendar Invite"
UTC_MARKER_MODES = ("ignore", "honor")

_FIELD_NAMES = {
    "SUMMARY": "title",
    "DTSTART": "start",
    "DTEND": "end",
    "LOCATION": "location",
    "DESCRIPTION": "description",
}
_DIGITS = re.compile(r"^\d{8,}$")


def parse_calendar_markup(
    markup: str, fallback_title: str = "", utc_marker: str = "ignore"
) -> InviteEvent | None:
    """Summary: Parse calendar markup into an invite event.

    Importance: Structured attachments are the most reliable invite source.
    Alternatives: Parse every VEVENT and return a list of invites.
    """

    fields: dict[str, str] = {}
    for line in _event_lines(markup):
        name, separator, value = line.partition(":")
        if not separator:
            continue
        field_name = _FIELD_NAMES.get(name.split(";", 1)[0])
        if field_name:
            fields[field_name] = value.strip()

    title = fields.get("title") or fallback_title or DEFAULT_MARKUP_TITLE
    start_time = parse_compact_timestamp(fields.get("start", ""), utc_marker)
    if start_time is None:
        return None
    return InviteEvent(
        title=title,
        start_time=start_time,
        end_time=parse_compact_timestamp(fields.get("end", ""), utc_marker),
        location=fields.get("location", ""),
        description=fields.get("description") or None,
        source="email",
    )


def parse_compact_timestamp(value: str, utc_marker: str = "ignore") -> datetime | None:
    """Summary: Parse a compact iCalendar timestamp such as 20240115T140000Z.

    Importance: Normalizes event times without timezone-offset parsing.
    Alternatives: Resolve TZID parameters against a timezone database.
    """

    if utc_marker not in UTC_MARKER_MODES:
        raise ValueError(f"Unknown UTC marker mode: {utc_marker}")
    raw = value.strip()
    digits = raw.replace("T", "").replace("Z", "")
    if not _DIGITS.match(digits):
        return None
    try:
        parsed = datetime(
            int(digits[0:4]),
            int(digits[4:6]),
            int(digits[6:8]),
            int(digits[8:10] or "00"),
            int(digits[10:12] or "00"),
        )
    except ValueError:
        return None
    if utc_marker == "honor" and raw.endswith("Z"):
        return parsed.replace(tzinfo=timezone.utc)
    return parsed


def _event_lines(markup: str) -> list[str]:
    """Summary: Unfold markup lines and scope them to the first VEVENT.

    Importance: Keeps VTIMEZONE and nested VALARM properties from overriding the event.
    Alternatives: Read every line in the document regardless of component.
    """

    lines = _unfold(markup)
    if "BEGIN:VEVENT" not in lines:
        return lines
    event: list[str] = []
    depth = 0
    for line in lines:
        if line.startswith("BEGIN:"):
            if depth or line == "BEGIN:VEVENT":
                depth += 1
            continue
        if line.startswith("END:") and depth:
            depth -= 1
            if not depth:
                break
            continue
        if depth == 1:
            event.append(line)
    return event


def _unfold(markup: str) -> list[str]:
    unfolded: list[str] = []
    for line in markup.splitlines():
        if line[:1] in (" ", "\t") and unfolded and line.strip():
            unfolded[-1] += line[1:]
        else:
            unfolded.append(line.strip())
    return unfolded
