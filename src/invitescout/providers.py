"""Summary: Mail provider adapters that scan mailboxes for invites.

Importance: Encapsulates Gmail and Outlook search, fetch, and decode behind one interface.
Alternatives: Rely solely on provider SDKs with vendor lock-in.
"""

from __future__ import annotations

import base64
import html
import json
import logging
import re
from abc import ABC, abstractmethod
from typing import Any, Callable, Iterable
import urllib.error
import urllib.parse
import urllib.request

from invitescout.calendar_markup import parse_calendar_markup
from invitescout.dedup import DedupTracker
from invitescout.free_text import parse_free_text
from invitescout.models import InviteEvent, MessageKey

logger = logging.getLogger(__name__)

GMAIL = "gmail"
OUTLOOK = "outlook"
PROVIDER_ORDER = (GMAIL, OUTLOOK)
DEFAULT_MAX_RESULTS = 10
DEFAULT_SUBJECT_KEYWORDS = ("meeting", "invite", "calendar")
MARKUP_EXTENSION = ".ics"

Transport = Callable[[str, str, "dict[str, str] | None"], "dict[str, Any]"]


class ProviderApiError(RuntimeError):
    """Summary: Raised when a provider API call fails or returns malformed data."""


def api_get(
    url: str,
    access_token: str,
    headers: dict[str, str] | None = None,
    timeout: float = 10,
) -> dict[str, Any]:
    """Summary: Fetch JSON data from a provider REST API.

    Importance: Encapsulates bearer-authenticated GET calls without new dependencies.
    Alternatives: Use a third-party HTTP client or SDK.
    """

    request_headers = {"Authorization": f"Bearer {access_token}", "Accept": "application/json"}
    request_headers.update(headers or {})
    request = urllib.request.Request(url, headers=request_headers, method="GET")
    try:
        with urllib.request.urlopen(request, timeout=timeout) as response:
            raw = response.read().decode("utf-8")
    except urllib.error.HTTPError as exc:
        error_body = exc.read().decode("utf-8", errors="ignore")
        raise ProviderApiError(f"API request failed ({exc.code}): {error_body or exc.reason}") from exc
    try:
        payload = json.loads(raw)
    except json.JSONDecodeError as exc:
        raise ProviderApiError(f"API returned invalid JSON from {url}") from exc
    if not isinstance(payload, dict):
        raise ProviderApiError(f"API returned unexpected payload from {url}")
    return payload


class InviteProvider(ABC):
    """Summary: Scans one mail provider for calendar invites.

    Importance: Shared search, dedup, and failure handling for every provider.
    Alternatives: Branch on provider name inside a single scanner.
    """

    name = ""

    def __init__(
        self,
        tracker: DedupTracker,
        base_url: str,
        transport: Transport | None = None,
        max_results: int = DEFAULT_MAX_RESULTS,
        subject_keywords: Iterable[str] = DEFAULT_SUBJECT_KEYWORDS,
        utc_marker: str = "ignore",
        unresolved_time: str = "now",
    ) -> None:
        """Summary: Initialize the provider.

        Importance: Injects the dedup tracker, HTTP transport, and parser options.
        Alternatives: Read configuration globals inside each request.
        """

        self._tracker = tracker
        self._base_url = base_url.rstrip("/")
        self._transport = transport or api_get
        self._max_results = max_results
        self._subject_keywords = tuple(subject_keywords)
        self._utc_marker = utc_marker
        self._unresolved_time = unresolved_time

    def scan(self, credential: str, mark_seen: bool = True) -> list[InviteEvent]:
        """Summary: Search the mailbox and extract new invites.

        Importance: A failed search yields no invites; a failed message is skipped.
        Alternatives: Abort the whole scan on the first error.
        """

        try:
            summaries = self._search(credential)
        except Exception:
            logger.exception("%s search failed.", self.name)
            return []

        invites: list[InviteEvent] = []
        for summary in summaries:
            message_id = summary.get("id") if isinstance(summary, dict) else None
            if not message_id:
                continue
            key = MessageKey(self.name, str(message_id))
            if self._tracker.has(key):
                logger.debug("Skipping seen message %s.", key.encode())
                continue
            try:
                invite = self._extract_invite(credential, summary)
            except Exception:
                logger.exception("Failed to read %s message %s.", self.name, message_id)
                continue
            if invite is None:
                continue
            invites.append(invite)
            if mark_seen:
                self._tracker.mark_seen(key)
        logger.info("Found %s new invites in %s.", len(invites), self.name)
        return invites

    @abstractmethod
    def _search(self, credential: str) -> list[dict[str, Any]]:
        """Summary: Return candidate message summaries from the provider."""

    @abstractmethod
    def _extract_invite(self, credential: str, summary: dict[str, Any]) -> InviteEvent | None:
        """Summary: Fetch message detail and parse it into an invite."""

    def _get(self, url: str, credential: str, headers: dict[str, str] | None = None) -> dict[str, Any]:
        return self._transport(url, credential, headers)

    def _parse_markup(self, markup: str, subject: str) -> InviteEvent | None:
        return parse_calendar_markup(markup, subject, utc_marker=self._utc_marker)

    def _parse_body(self, body: str, subject: str) -> InviteEvent | None:
        return parse_free_text(body, subject, unresolved_time=self._unresolved_time)


class GmailInviteProvider(InviteProvider):
    """Summary: Scans Gmail via the Gmail REST API.

    Importance: Provides OAuth-based read-only invite discovery for Google mailboxes.
    Alternatives: Use IMAP or the Google API client library.
    """

    name = GMAIL

    def _search(self, credential: str) -> list[dict[str, Any]]:
        query = build_gmail_query(self._subject_keywords)
        params = urllib.parse.urlencode({"q": query, "maxResults": self._max_results})
        payload = self._get(f"{self._base_url}/users/me/messages?{params}", credential)
        return list(payload.get("messages") or [])

    def _extract_invite(self, credential: str, summary: dict[str, Any]) -> InviteEvent | None:
        """Summary: Parse a Gmail message into an invite.

        Importance: Prefers .ics attachments and falls back to the plain-text body.
        Alternatives: Only inspect attachments and ignore bodies.
        """

        message_id = urllib.parse.quote(str(summary["id"]), safe="")
        message = self._get(
            f"{self._base_url}/users/me/messages/{message_id}?format=full", credential
        )
        payload = message.get("payload") or {}
        subject = _parse_gmail_headers(payload.get("headers", [])).get("Subject", "")
        part = _find_gmail_markup_part(payload)
        if part is not None:
            markup = self._fetch_gmail_attachment(credential, message_id, part)
            return self._parse_markup(markup, subject)
        return self._parse_body(_extract_gmail_body(payload), subject)

    def _fetch_gmail_attachment(self, credential: str, message_id: str, part: dict[str, Any]) -> str:
        """Summary: Download and decode a Gmail attachment part.

        Importance: Gmail stores larger attachment bodies behind a separate endpoint.
        Alternatives: Request messages in raw format and parse MIME locally.
        """

        body = part.get("body") or {}
        if body.get("data"):
            return decode_base64url(body["data"])
        attachment_id = urllib.parse.quote(str(body["attachmentId"]), safe="")
        attachment = self._get(
            f"{self._base_url}/users/me/messages/{message_id}/attachments/{attachment_id}",
            credential,
        )
        return decode_base64url(attachment["data"])


class OutlookInviteProvider(InviteProvider):
    """Summary: Scans Outlook via Microsoft Graph.

    Importance: Provides OAuth-based read-only invite discovery for Microsoft mailboxes.
    Alternatives: Use IMAP or the Microsoft Graph SDK.
    """

    name = OUTLOOK

    def _search(self, credential: str) -> list[dict[str, Any]]:
        params = {
            "$filter": build_outlook_filter(self._subject_keywords),
            "$top": str(self._max_results),
            "$select": "id,subject,body,bodyPreview,receivedDateTime,hasAttachments",
        }
        query = "&".join(
            f"{key}={urllib.parse.quote(value, safe=',()')}" for key, value in params.items()
        )
        payload = self._get(
            f"{self._base_url}/me/messages?{query}",
            credential,
            {"Prefer": 'outlook.body-content-type="text"'},
        )
        return list(payload.get("value") or [])

    def _extract_invite(self, credential: str, summary: dict[str, Any]) -> InviteEvent | None:
        """Summary: Parse a Graph message into an invite.

        Importance: Only fetches attachments when Graph reports that some exist.
        Alternatives: Always expand attachments in the list query.
        """

        subject = summary.get("subject") or ""
        if summary.get("hasAttachments"):
            message_id = urllib.parse.quote(str(summary["id"]), safe="")
            payload = self._get(f"{self._base_url}/me/messages/{message_id}/attachments", credential)
            for attachment in payload.get("value") or []:
                if is_markup_filename(attachment.get("name")) and attachment.get("contentBytes"):
                    markup = decode_base64(attachment["contentBytes"])
                    return self._parse_markup(markup, subject)
        return self._parse_body(_outlook_body_text(summary), subject)


def build_gmail_query(keywords: Iterable[str]) -> str:
    """Summary: Build the Gmail search query for invite candidates.

    Importance: Keeps the candidate filter identical across scans.
    Alternatives: Scan the most recent messages without a filter.
    """

    terms = ["has:attachment filename:ics"]
    terms.extend(f"subject:{keyword}" for keyword in keywords)
    terms.extend(['"when:"', '"where:"'])
    return " OR ".join(terms)


def build_outlook_filter(keywords: Iterable[str]) -> str:
    """Summary: Build the Graph $filter expression for invite candidates.

    Importance: Graph cannot filter on body text, so subjects and attachments narrow the set.
    Alternatives: Use the Graph $search parameter instead.
    """

    clauses = ["hasAttachments eq true"]
    for keyword in keywords:
        escaped = keyword.replace("'", "''")
        clauses.append(f"contains(subject,'{escaped}')")
    return " or ".join(clauses)


def is_markup_filename(filename: str | None) -> bool:
    return bool(filename) and filename.lower().endswith(MARKUP_EXTENSION)


def decode_base64(data: str) -> str:
    """Summary: Decode standard base64 content from Graph attachments.

    Importance: Graph returns attachment bytes as standard base64.
    Alternatives: Request the raw $value stream instead.
    """

    return base64.b64decode(data, validate=False).decode("utf-8", errors="replace")


def decode_base64url(data: str) -> str:
    """Summary: Decode base64url-encoded Gmail content.

    Importance: Gmail payloads use URL-safe base64 encoding.
    Alternatives: Use a third-party Gmail client library.
    """

    padded = data + "=" * (-len(data) % 4)
    return base64.urlsafe_b64decode(padded.encode("utf-8")).decode("utf-8", errors="replace")


def _parse_gmail_headers(headers: list[dict[str, Any]]) -> dict[str, str]:
    """Summary: Normalize Gmail header list into a dictionary.

    Importance: Simplifies access to header values for parsing.
    Alternatives: Scan header lists inline for each field.
    """

    normalized: dict[str, str] = {}
    for header in headers:
        name = header.get("name")
        value = header.get("value")
        if name and value:
            normalized[name] = value
    return normalized


def _walk_gmail_parts(payload: dict[str, Any]) -> list[dict[str, Any]]:
    """Summary: Walk Gmail payload parts recursively.

    Importance: Supports nested multipart payloads from Gmail.
    Alternatives: Only inspect the top-level payload.
    """

    parts: list[dict[str, Any]] = [payload]
    for part in payload.get("parts", []) or []:
        parts.extend(_walk_gmail_parts(part))
    return parts


def _find_gmail_markup_part(payload: dict[str, Any]) -> dict[str, Any] | None:
    for part in _walk_gmail_parts(payload):
        if is_markup_filename(part.get("filename")):
            return part
    return None


def _extract_gmail_body(payload: dict[str, Any]) -> str:
    """Summary: Extract a plain text body from a Gmail payload.

    Importance: The free-text parser needs readable text, not markup.
    Alternatives: Fall back to the Gmail snippet only.
    """

    text_parts: list[str] = []
    html_parts: list[str] = []
    for part in _walk_gmail_parts(payload):
        if part.get("filename"):
            continue
        data = (part.get("body") or {}).get("data")
        if not data:
            continue
        mime_type = part.get("mimeType", "")
        if mime_type == "text/plain":
            text_parts.append(decode_base64url(data))
        elif mime_type == "text/html":
            html_parts.append(strip_html(decode_base64url(data)))
    chosen = text_parts or html_parts
    return "\n".join(item.strip() for item in chosen if item.strip())


def _outlook_body_text(message: dict[str, Any]) -> str:
    body_info = message.get("body") or {}
    content = body_info.get("content") or ""
    if content and body_info.get("contentType", "").lower() == "text":
        return content
    if content:
        return strip_html(content)
    return message.get("bodyPreview") or ""


_BLOCK_TAGS = re.compile(r"<\s*(br|/p|/div|/tr|/li)[^>]*>", re.IGNORECASE)
_HIDDEN_BLOCKS = re.compile(r"<(script|style)[^>]*>.*?</\1>", re.IGNORECASE | re.DOTALL)
_TAGS = re.compile(r"<[^>]+>")


def strip_html(markup: str) -> str:
    """Summary: Reduce an HTML body to line-oriented plain text.

    Importance: Labeled when/where lines survive for the free-text parser.
    Alternatives: Use an HTML parsing library such as BeautifulSoup.
    """

    text = _HIDDEN_BLOCKS.sub("", markup)
    text = _BLOCK_TAGS.sub("\n", text)
    text = _TAGS.sub("", text)
    return html.unescape(text).replace("\xa0", " ")
