"""Summary: Application factory wiring core services.

Importance: Centralizes dependency creation for the CLI and API layers.
Alternatives: Instantiate services manually in each entrypoint.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from functools import partial

from invitescout.calendar_writer import CalendarSink, GoogleCalendarSink
from invitescout.config import AppConfig
from invitescout.dedup import DedupTracker, InMemorySeenStore, SeenStore
from invitescout.providers import (
    GMAIL,
    OUTLOOK,
    GmailInviteProvider,
    InviteProvider,
    OutlookInviteProvider,
    Transport,
    api_get,
)
from invitescout.scanner import InviteScanner
from invitescout.services import InviteSyncService
from invitescout.storage.sqlite_store import SqliteSeenStore, default_store_path

LOG_FORMAT = "%(levelname)s %(name)s: %(message)s"

PROVIDER_CLASSES: dict[str, type[InviteProvider]] = {
    GMAIL: GmailInviteProvider,
    OUTLOOK: OutlookInviteProvider,
}


@dataclass(frozen=True)
class AppContext:
    """Summary: Shared application context for scan entry points.

    Importance: One tracker instance is shared by every scan in the process.
    Alternatives: Rebuild dependencies for every request.
    """

    config: AppConfig
    tracker: DedupTracker
    scanner: InviteScanner
    service: InviteSyncService


def configure_logging(level: str = "INFO") -> None:
    """Summary: Configure root logging when no handler exists yet.

    Importance: Keeps CLI and API log output consistent.
    Alternatives: Ship a logging config file.
    """

    if not logging.getLogger().handlers:
        logging.basicConfig(level=level, format=LOG_FORMAT)


def build_seen_store(config: AppConfig) -> SeenStore:
    """Summary: Build the dedup backing store selected by configuration.

    Importance: Switches between in-memory and durable dedup without code changes.
    Alternatives: Always persist dedup state.
    """

    if config.seen_store == "sqlite":
        store = SqliteSeenStore(config.db_path or default_store_path())
        store.initialize()
        return store
    return InMemorySeenStore()


def build_providers(
    config: AppConfig, tracker: DedupTracker, transport: Transport | None = None
) -> list[InviteProvider]:
    """Summary: Build the provider adapters enabled in configuration.

    Importance: Providers are selected by name rather than by branching at scan time.
    Alternatives: Always build both providers.
    """

    transport = transport or partial(api_get, timeout=config.request_timeout)
    base_urls = {GMAIL: config.gmail_api_base_url, OUTLOOK: config.graph_api_base_url}
    providers: list[InviteProvider] = []
    for name in config.enabled_providers:
        provider_class = PROVIDER_CLASSES[name]
        providers.append(
            provider_class(
                tracker=tracker,
                base_url=base_urls[name],
                transport=transport,
                max_results=config.max_results,
                subject_keywords=config.subject_keywords,
                utc_marker=config.markup_utc_marker,
                unresolved_time=config.free_text_unresolved,
            )
        )
    return providers


def build_context(
    config: AppConfig,
    transport: Transport | None = None,
    sink: CalendarSink | None = None,
) -> AppContext:
    """Summary: Build the shared context from configuration.

    Importance: Provides a single construction path for the application.
    Alternatives: Construct dependencies separately per request.
    """

    tracker = DedupTracker(build_seen_store(config))
    scanner = InviteScanner(
        build_providers(config, tracker, transport),
        concurrent=config.concurrent_scan,
        provider_timeout=config.provider_timeout,
    )
    sink = sink or GoogleCalendarSink(
        config.calendar_api_base_url, config.calendar_id, timeout=config.request_timeout
    )
    service = InviteSyncService(scanner=scanner, sink=sink, tracker=tracker)
    return AppContext(config=config, tracker=tracker, scanner=scanner, service=service)
