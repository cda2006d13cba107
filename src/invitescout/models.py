"""Summary: Domain model dataclasses for InviteScout.

Importance: Defines the invite, message key, and report shapes shared across the pipeline.
Alternatives: Use Pydantic models or plain dictionaries between stages.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime, timedelta
from typing import Any

DEFAULT_EVENT_DURATION = timedelta(hours=1)


@dataclass(frozen=True)
class InviteEvent:
    """Summary: Represents a normalized calendar invite extracted from an email.

    Importance: Core unit handed to the calendar sink after scanning.
    Alternatives: Pass raw provider payloads to the calendar writer.
    """

    title: str
    start_time: datetime
    end_time: datetime | None = None
    location: str = ""
    description: str | None = None
    source: str = "email"

    def resolved_end_time(self) -> datetime:
        """Summary: Return the end time, defaulting to one hour after the start.

        Importance: Gives consumers a concrete end for invites that omit one.
        Alternatives: Require every parser to compute an end time.
        """

        return self.end_time or self.start_time + DEFAULT_EVENT_DURATION

    def to_dict(self) -> dict[str, Any]:
        """Summary: Serialize the invite into JSON-friendly values.

        Importance: Shared by the API and CLI outputs.
        Alternatives: Let each caller format datetimes itself.
        """

        return {
            "title": self.title,
            "start_time": self.start_time.isoformat(),
            "end_time": self.end_time.isoformat() if self.end_time else None,
            "location": self.location,
            "description": self.description,
            "source": self.source,
        }


@dataclass(frozen=True)
class MessageKey:
    """Summary: Identifies a message within one provider.

    Importance: Element type of the dedup tracker.
    Alternatives: Track bare provider IDs and risk cross-provider collisions.
    """

    provider: str
    message_id: str

    def encode(self) -> str:
        """Summary: Encode the key as a single string.

        Importance: Lets backing stores keep keys in flat sets or columns.
        Alternatives: Store provider and ID in separate columns.
        """

        return f"{self.provider}-{self.message_id}"


@dataclass(frozen=True)
class ProviderCredentials:
    """Summary: Per-provider bearer credentials for one scan call.

    Importance: Absent values mean the provider is simply not configured.
    Alternatives: Look tokens up from a store inside each provider.
    """

    gmail: str | None = None
    outlook: str | None = None

    def for_provider(self, name: str) -> str | None:
        """Summary: Return the credential for a provider name.

        Importance: Keeps the orchestrator free of per-provider branching.
        Alternatives: Use a plain dictionary keyed by provider name.
        """

        return {"gmail": self.gmail, "outlook": self.outlook}.get(name) or None

    def any(self) -> bool:
        return bool(self.gmail or self.outlook)


ADDED = "added"
FAILED = "failed"
PREVIEWED = "previewed"


@dataclass(frozen=True)
class InviteOutcome:
    """Summary: Result of submitting one invite to the calendar sink.

    Importance: Reports per-invite status without affecting dedup state.
    Alternatives: Raise on the first failed calendar write.
    """

    invite: InviteEvent
    status: str
    error: str | None = None

    @property
    def success(self) -> bool:
        return self.status == ADDED

    def to_dict(self) -> dict[str, Any]:
        payload: dict[str, Any] = {
            "invite": self.invite.to_dict(),
            "status": self.status,
            "success": self.success,
        }
        if self.error:
            payload["error"] = self.error
        return payload


@dataclass(frozen=True)
class ScanReport:
    """Summary: Top-level result of a scan, either outcomes or a single error.

    Importance: Callers never see a partial or ambiguous state.
    Alternatives: Propagate exceptions to the host process.
    """

    message: str | None = None
    outcomes: tuple[InviteOutcome, ...] = field(default_factory=tuple)
    error: str | None = None

    @staticmethod
    def failure(error: str) -> "ScanReport":
        return ScanReport(error=error)

    def to_dict(self) -> dict[str, Any]:
        """Summary: Serialize the report for API and CLI output.

        Importance: Keeps the error/outcome shape identical across entry points.
        Alternatives: Serialize with a Pydantic response model.
        """

        if self.error is not None:
            return {"error": self.error}
        return {
            "message": self.message,
            "invites": [outcome.to_dict() for outcome in self.outcomes],
        }
