"""Summary: API integration tests.

Importance: Validates FastAPI endpoints against the scan pipeline.
Alternatives: Use manual curl testing only.
"""

from __future__ import annotations

import base64
from typing import Any

from fastapi.testclient import TestClient

from invitescout.api import create_app
from invitescout.app import build_context
from invitescout.calendar_writer import CalendarSink
from invitescout.config import AppConfig
from invitescout.models import InviteEvent


def _build_config(api_key: str = "", enabled_providers: list[str] | None = None) -> AppConfig:
    """Summary: Build an AppConfig for API tests.

    Importance: Ensures tests use in-memory dedup state and fake endpoints.
    Alternatives: Load AppConfig from environment variables.
    """

    return AppConfig(
        gmail_api_base_url="https://gmail.test/gmail/v1",
        graph_api_base_url="https://graph.test/v1.0",
        calendar_api_base_url="https://calendar.test/v3",
        calendar_id="primary",
        enabled_providers=enabled_providers or ["gmail", "outlook"],
        max_results=10,
        subject_keywords=["meeting", "invite", "calendar"],
        markup_utc_marker="ignore",
        free_text_unresolved="now",
        seen_store="memory",
        db_path="unused.db",
        concurrent_scan=False,
        provider_timeout=5,
        request_timeout=5,
        api_host="127.0.0.1",
        api_port=8000,
        api_key=api_key,
        log_level="INFO",
    )


class ListSink(CalendarSink):
    def __init__(self) -> None:
        self.added: list[str] = []

    def add_event(self, invite: InviteEvent, credential: str) -> dict[str, Any]:
        self.added.append(f"{invite.title}:{credential}")
        return {}


def _gmail_transport(url: str, token: str, headers: dict[str, str] | None = None) -> dict[str, Any]:
    if "format=full" in url:
        body = base64.urlsafe_b64encode(b"When: February 2, 2024 11:00 AM\nWhere: Room 7").decode("ascii")
        return {
            "payload": {
                "mimeType": "text/plain",
                "headers": [{"name": "Subject", "value": "Planning meeting"}],
                "body": {"data": body},
            }
        }
    return {"messages": [{"id": "m1"}]}


def _client(config: AppConfig, sink: ListSink) -> TestClient:
    context = build_context(config, transport=_gmail_transport, sink=sink)
    return TestClient(create_app(config, context=context))


def test_health_lists_providers() -> None:
    client = _client(_build_config(enabled_providers=["outlook", "gmail"]), ListSink())
    response = client.get("/health")
    assert response.status_code == 200
    assert response.json() == {"status": "ok", "providers": ["gmail", "outlook"], "seen_messages": 0}


def test_scan_without_tokens_reports_error() -> None:
    """Summary: A scan with no credentials returns a single error descriptor.

    Importance: Confirms the HTTP layer passes structured failures through.
    Alternatives: Respond with a 400 status code.
    """

    response = _client(_build_config(), ListSink()).post("/scan", json={})
    assert response.status_code == 200
    assert response.json() == {"error": "No provider credentials supplied"}


def test_scan_adds_invites_and_dedups() -> None:
    """Summary: Verify a scan adds invites once and then reports nothing new.

    Importance: Confirms the HTTP layer wires into scanning, writing, and dedup.
    Alternatives: Validate only the CLI workflow.
    """

    sink = ListSink()
    client = _client(_build_config(), sink)
    response = client.post("/scan", json={"gmail_token": "g-token"})
    assert response.status_code == 200
    body = response.json()
    assert body["message"] == "Processed 1 invites"
    assert body["invites"][0]["success"] is True
    assert body["invites"][0]["invite"]["location"] == "Room 7"
    assert sink.added == ["Planning meeting:g-token"]

    again = client.post("/scan", json={"gmail_token": "g-token"}).json()
    assert again == {"message": "No new calendar invites found", "invites": []}

    assert client.post("/dedup/reset").json() == {"status": "cleared"}
    preview = client.post("/scan", json={"gmail_token": "g-token", "dry_run": True}).json()
    assert preview["invites"][0]["status"] == "previewed"
    assert preview["invites"][0]["success"] is False
    assert sink.added == ["Planning meeting:g-token"]

    rescan = client.post("/scan", json={"gmail_token": "g-token"}).json()
    assert rescan["invites"][0]["status"] == "added"
    assert sink.added == ["Planning meeting:g-token", "Planning meeting:g-token"]


def test_api_key_required_when_configured() -> None:
    client = _client(_build_config(api_key="secret"), ListSink())
    assert client.post("/scan", json={"gmail_token": "g"}).status_code == 401
    response = client.post("/scan", json={"gmail_token": "g"}, headers={"X-API-Key": "secret"})
    assert response.status_code == 200
