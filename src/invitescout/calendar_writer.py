"""Summary: Calendar sinks that receive extracted invites.

Importance: Separates invite discovery from the calendar write call.
Alternatives: Write events directly from the provider adapters.
"""

from __future__ import annotations

import json
import logging
from abc import ABC, abstractmethod
from datetime import datetime, timedelta
from typing import Any
import urllib.error
import urllib.parse
import urllib.request

from invitescout.models import InviteEvent
from invitescout.providers import ProviderApiError

logger = logging.getLogger(__name__)


class CalendarSink(ABC):
    """Summary: Abstract destination for normalized invites.

    Importance: Lets the scan service report per-invite success independently of scanning.
    Alternatives: Couple the service to a single calendar API.
    """

    @abstractmethod
    def add_event(self, invite: InviteEvent, credential: str) -> dict[str, Any]:
        """Summary: Create a calendar event for the invite.

        Importance: Raises on failure so callers can record the reason.
        Alternatives: Return a boolean success flag.
        """


class GoogleCalendarSink(CalendarSink):
    """Summary: Writes invites to Google Calendar via the REST API.

    Importance: Completes the scan pipeline for Google users.
    Alternatives: Use the Google API client library.
    """

    def __init__(self, base_url: str, calendar_id: str = "primary", timeout: float = 10) -> None:
        self._base_url = base_url.rstrip("/")
        self._calendar_id = calendar_id
        self._timeout = timeout

    def add_event(self, invite: InviteEvent, credential: str) -> dict[str, Any]:
        """Summary: Insert the invite into the configured calendar.

        Importance: Returns the created event resource for logging and reporting.
        Alternatives: Batch inserts across invites.
        """

        calendar_id = urllib.parse.quote(self._calendar_id, safe="")
        url = f"{self._base_url}/calendars/{calendar_id}/events"
        created = _post_json(url, credential, build_event_payload(invite), self._timeout)
        logger.info("Added to calendar: %s.", invite.title)
        return created


def build_event_payload(invite: InviteEvent) -> dict[str, Any]:
    """Summary: Convert an invite into a Google Calendar event resource.

    Importance: Applies the one-hour default end and a description fallback.
    Alternatives: Let the calendar API infer the end time.
    """

    return {
        "summary": invite.title,
        "description": invite.description or f"Added by InviteScout from {invite.source}",
        "location": invite.location or "",
        "start": _event_time(invite.start_time),
        "end": _event_time(invite.resolved_end_time()),
    }


def _event_time(value: datetime) -> dict[str, str]:
    """Summary: Format an event boundary for the Calendar API.

    Importance: Naive datetimes are local time and gain the host's UTC offset.
    Alternatives: Always convert to UTC before sending.
    """

    moment = value if value.tzinfo is not None else value.astimezone()
    entry = {"dateTime": moment.isoformat()}
    zone = getattr(moment.tzinfo, "key", None)
    if zone is None and moment.utcoffset() == timedelta(0):
        zone = "UTC"
    if zone:
        entry["timeZone"] = zone
    return entry


def _post_json(url: str, access_token: str, payload: dict[str, Any], timeout: float) -> dict[str, Any]:
    """Summary: Send a JSON POST request and parse the JSON response.

    Importance: Avoids new dependencies for the calendar insert call.
    Alternatives: Use requests or a provider SDK.
    """

    request = urllib.request.Request(
        url,
        data=json.dumps(payload).encode("utf-8"),
        headers={
            "Authorization": f"Bearer {access_token}",
            "Content-Type": "application/json",
        },
        method="POST",
    )
    try:
        with urllib.request.urlopen(request, timeout=timeout) as response:
            raw = response.read().decode("utf-8")
    except urllib.error.HTTPError as exc:
        error_body = exc.read().decode("utf-8", errors="ignore")
        raise ProviderApiError(f"Calendar insert failed: {error_body or exc.reason}") from exc
    return json.loads(raw) if raw else {}
