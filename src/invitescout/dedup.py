"""Summary: Dedup tracking for messages already turned into invites.

Importance: Prevents the same email from producing duplicate calendar events.
Alternatives: Query the calendar for an existing event before every write.
"""

from __future__ import annotations

import logging
from abc import ABC, abstractmethod

from invitescout.models import MessageKey

logger = logging.getLogger(__name__)


class SeenStore(ABC):
    """Summary: Backing store for encoded message keys.

    Importance: Lets the tracker stay in memory or persist across restarts.
    Alternatives: Hardcode a module-level set.
    """

    @abstractmethod
    def contains(self, key: str) -> bool:
        """Summary: Report whether a key has been recorded."""

    @abstractmethod
    def add(self, key: str) -> None:
        """Summary: Record a key."""

    @abstractmethod
    def clear(self) -> None:
        """Summary: Forget every recorded key."""

    @abstractmethod
    def count(self) -> int:
        """Summary: Return the number of recorded keys."""


class InMemorySeenStore(SeenStore):
    """Summary: Set-backed store that lives for the process lifetime.

    Importance: Default store; state is lost on restart.
    Alternatives: Use the SQLite store for durable dedup.
    """

    def __init__(self) -> None:
        self._keys: set[str] = set()

    def contains(self, key: str) -> bool:
        return key in self._keys

    def add(self, key: str) -> None:
        self._keys.add(key)

    def clear(self) -> None:
        self._keys.clear()

    def count(self) -> int:
        return len(self._keys)


class DedupTracker:
    """Summary: Tracks which provider messages already yielded an invite.

    Importance: Gates fetch and parse work so repeat scans are idempotent.
    Alternatives: Mark messages as read in the provider mailbox.
    """

    def __init__(self, store: SeenStore | None = None) -> None:
        """Summary: Initialize the tracker with an optional backing store.

        Importance: In-memory by default, pluggable for persistent stores.
        Alternatives: Always require the caller to choose a store.
        """

        self._store = store if store is not None else InMemorySeenStore()

    def has(self, key: MessageKey) -> bool:
        """Summary: Check whether a message was already processed.

        Importance: Runs before any detail fetch to avoid redundant work.
        Alternatives: Check after parsing and drop duplicates at the end.
        """

        return self._store.contains(key.encode())

    def mark_seen(self, key: MessageKey) -> None:
        """Summary: Record a message as processed.

        Importance: Keys are never evicted within the tracker's lifetime.
        Alternatives: Expire keys after a time-to-live.
        """

        self._store.add(key.encode())

    def reset(self) -> None:
        """Summary: Clear all seen state.

        Importance: Gives tests and operators an explicit lifecycle hook.
        Alternatives: Recreate the tracker instance.
        """

        self._store.clear()
        logger.info("Cleared dedup state.")

    def __len__(self) -> int:
        return self._store.count()

    def __bool__(self) -> bool:
        return True
