"""Summary: Scan-and-write service for InviteScout.

Importance: Serializes scans and turns every run into a single structured report.
Alternatives: Call the scanner and calendar sink directly from each entry point.
"""

from __future__ import annotations

import logging
import threading
from dataclasses import dataclass, field
from typing import Callable

from invitescout.calendar_writer import CalendarSink
from invitescout.dedup import DedupTracker
from invitescout.models import (
    ADDED,
    FAILED,
    PREVIEWED,
    InviteEvent,
    InviteOutcome,
    ProviderCredentials,
    ScanReport,
)
from invitescout.scanner import InviteScanner

logger = logging.getLogger(__name__)

NO_CREDENTIALS = "No provider credentials supplied"
NO_INVITES = "No new calendar invites found"
NO_CALENDAR_ACCESS = "No Google Calendar access"


@dataclass
class InviteSyncService:
    """Summary: Runs a scan and submits each invite to the calendar sink.

    Importance: Scanning and calendar writes have independent failure domains.
    Alternatives: Roll back dedup state when a calendar write fails.
    """

    scanner: InviteScanner
    sink: CalendarSink
    tracker: DedupTracker
    _lock: threading.Lock = field(default_factory=threading.Lock, init=False, repr=False)

    def scan_and_add(
        self, credentials: ProviderCredentials, calendar_credential: str | None
    ) -> ScanReport:
        """Summary: Scan all providers and add the new invites to the calendar.

        Importance: Never raises; unexpected failures become a top-level error.
        Alternatives: Let exceptions reach the HTTP or CLI layer.
        """

        return self._run(
            credentials, lambda invites: self._submit(invites, calendar_credential), mark_seen=True
        )

    def preview(self, credentials: ProviderCredentials) -> ScanReport:
        """Summary: Scan all providers without writing to the calendar.

        Importance: Leaves dedup state untouched so a later real scan still adds the invites.
        Alternatives: Mark previewed messages seen like a real scan.
        """

        return self._run(
            credentials,
            lambda invites: tuple(InviteOutcome(invite=invite, status=PREVIEWED) for invite in invites),
            mark_seen=False,
        )

    def reset(self) -> None:
        with self._lock:
            self.tracker.reset()

    def _run(
        self,
        credentials: ProviderCredentials,
        handle: Callable[[list[InviteEvent]], tuple[InviteOutcome, ...]],
        mark_seen: bool,
    ) -> ScanReport:
        with self._lock:
            if not credentials.any():
                logger.warning("Scan requested without provider credentials.")
                return ScanReport.failure(NO_CREDENTIALS)
            try:
                invites = self.scanner.scan_all(credentials, mark_seen=mark_seen)
                if not invites:
                    logger.info(NO_INVITES)
                    return ScanReport(message=NO_INVITES)
                logger.info("Found %s calendar invites.", len(invites))
                return ScanReport(
                    message=f"Processed {len(invites)} invites", outcomes=handle(invites)
                )
            except Exception as exc:
                logger.exception("Invite scan failed.")
                return ScanReport.failure(str(exc) or exc.__class__.__name__)

    def _submit(
        self, invites: list[InviteEvent], calendar_credential: str | None
    ) -> tuple[InviteOutcome, ...]:
        """Summary: Submit invites to the sink one at a time.

        Importance: One failed write does not prevent the others.
        Alternatives: Stop at the first failed write.
        """

        outcomes: list[InviteOutcome] = []
        for invite in invites:
            if not calendar_credential:
                outcomes.append(InviteOutcome(invite=invite, status=FAILED, error=NO_CALENDAR_ACCESS))
                continue
            try:
                self.sink.add_event(invite, calendar_credential)
            except Exception as exc:
                logger.error("Error adding invite %r: %s", invite.title, exc)
                outcomes.append(InviteOutcome(invite=invite, status=FAILED, error=str(exc)))
                continue
            outcomes.append(InviteOutcome(invite=invite, status=ADDED))
        return tuple(outcomes)
