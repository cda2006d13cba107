"""Summary: FastAPI application for InviteScout.

Importance: Exposes scan endpoints for integrations and UI clients.
Alternatives: Use a CLI-only workflow or a different web framework.
"""

from __future__ import annotations

from typing import Any

from fastapi import Depends, FastAPI, Header, HTTPException
from pydantic import BaseModel

from invitescout.app import AppContext, build_context, configure_logging
from invitescout.config import AppConfig
from invitescout.models import ProviderCredentials


class ScanRequest(BaseModel):
    """Summary: Request payload for a scan.

    Importance: Carries per-provider bearer tokens supplied by the auth layer.
    Alternatives: Look tokens up from a server-side session.
    """

    gmail_token: str | None = None
    outlook_token: str | None = None
    calendar_token: str | None = None
    dry_run: bool = False


def create_app(config: AppConfig, context: AppContext | None = None) -> FastAPI:
    """Summary: Create a FastAPI app wired to InviteScout services.

    Importance: Ensures the API layer shares the same configuration and dedup state.
    Alternatives: Instantiate services globally outside the factory.
    """

    configure_logging(config.log_level)
    app = FastAPI(title="InviteScout API", version="0.1.0")
    context = context or build_context(config)
    app.state.context = context

    def require_api_key(x_api_key: str | None = Header(default=None)) -> None:
        """Summary: Enforce API key authentication when configured.

        Importance: Adds a minimal security layer for local and private deployments.
        Alternatives: Use OAuth or session-based authentication.
        """

        if not config.api_key:
            return
        if x_api_key != config.api_key:
            raise HTTPException(status_code=401, detail="Invalid API key")

    @app.get("/health")
    def health() -> dict[str, Any]:
        """Summary: Health check endpoint.

        Importance: Supports uptime checks in local and cloud deployments.
        Alternatives: Use a metrics endpoint only.
        """

        return {
            "status": "ok",
            "providers": context.scanner.provider_names,
            "seen_messages": len(context.tracker),
        }

    @app.post("/scan", dependencies=[Depends(require_api_key)])
    def scan(payload: ScanRequest) -> dict[str, Any]:
        """Summary: Scan mailboxes and add new invites to the calendar.

        Importance: Always returns a report; scan failures are reported, not raised.
        Alternatives: Run scans in a background job queue.
        """

        credentials = ProviderCredentials(gmail=payload.gmail_token, outlook=payload.outlook_token)
        if payload.dry_run:
            report = context.service.preview(credentials)
        else:
            calendar_token = payload.calendar_token or payload.gmail_token
            report = context.service.scan_and_add(credentials, calendar_token)
        return report.to_dict()

    @app.post("/dedup/reset", dependencies=[Depends(require_api_key)])
    def reset_dedup() -> dict[str, str]:
        """Summary: Clear the dedup state.

        Importance: Lets operators reprocess messages without restarting.
        Alternatives: Restart the process to clear in-memory state.
        """

        context.service.reset()
        return {"status": "cleared"}

    return app
