"""Summary: Heuristic invite detection in free-text email bodies.

Importance: Catches invites that arrive without a calendar attachment.
Alternatives: Use an LLM or full NLP pipeline to extract event details.
"""

from __future__ import annotations

import logging
import re
from datetime import datetime

import dateparser

from invitescout.models import InviteEvent

logger = logging.getLogger(__name__)

DEFAULT_BODY_TITLE = "Meeting Invitation"
BODY_DESCRIPTION = "Parsed from email body"
UNRESOLVED_TIME_MODES = ("now", "skip")

WHEN_PATTERN = re.compile(r"\b(?:when|time|date):[ \t]*([^\r\n]+)", re.IGNORECASE)
WHERE_PATTERN = re.compile(r"\b(?:where|location):[ \t]*([^\r\n]+)", re.IGNORECASE)
_RANGE_SEPARATOR = re.compile(r"\s+(?:-|–|to|until)\s+", re.IGNORECASE)


def parse_free_text(
    body: str,
    subject: str = "",
    unresolved_time: str = "now",
    now: datetime | None = None,
) -> InviteEvent | None:
    """Summary: Parse a message body for labeled when/where fields.

    Importance: Signals "no invite" when no time label is present instead of guessing.
    Alternatives: Treat every message matching the search filter as an invite.
    """

    if unresolved_time not in UNRESOLVED_TIME_MODES:
        raise ValueError(f"Unknown unresolved time mode: {unresolved_time}")
    if not body:
        return None
    when_match = WHEN_PATTERN.search(body)
    if not when_match:
        return None
    where_match = WHERE_PATTERN.search(body)
    when_text = when_match.group(1).strip()
    location = where_match.group(1).strip() if where_match else ""
    reference = now or datetime.now()

    start_time, end_time = resolve_when_text(when_text, reference)
    description = BODY_DESCRIPTION
    if start_time is None:
        if unresolved_time == "skip":
            logger.info("Skipping body invite with unrecognised time %r.", when_text)
            return None
        logger.warning("Could not resolve time %r; using current time.", when_text)
        start_time = reference
        description = f"{BODY_DESCRIPTION} (time not recognised: {when_text})"
    return InviteEvent(
        title=subject or DEFAULT_BODY_TITLE,
        start_time=start_time,
        end_time=end_time,
        location=location,
        description=description,
        source="email",
    )


def resolve_when_text(text: str, now: datetime) -> tuple[datetime | None, datetime | None]:
    """Summary: Resolve captured when-text into start and optional end times.

    Importance: Replaces a fabricated timestamp with the time the sender wrote.
    Alternatives: Hand-roll a grammar for common date phrasings.
    """

    parts = _RANGE_SEPARATOR.split(text, maxsplit=1)
    start_time = _parse_moment(parts[0], now)
    if start_time is None:
        if len(parts) == 1:
            return None, None
        start_time = _parse_moment(text, now)
        return start_time, None
    end_time = _parse_moment(parts[1], start_time) if len(parts) == 2 else None
    if end_time is not None:
        if (end_time.tzinfo is None) != (start_time.tzinfo is None) or end_time <= start_time:
            end_time = None
    return start_time, end_time


def _parse_moment(text: str, base: datetime) -> datetime | None:
    cleaned = text.strip().rstrip(".,;")
    if not cleaned:
        return None
    return dateparser.parse(
        cleaned,
        settings={"RELATIVE_BASE": base.replace(tzinfo=None), "PREFER_DATES_FROM": "future"},
    )
