"""Summary: SQLite storage for dedup state.

Importance: Keeps seen message keys across process restarts.
Alternatives: Use an external key-value store such as Redis.
"""

from __future__ import annotations

import sqlite3
from contextlib import contextmanager
from datetime import datetime
from pathlib import Path
from typing import Iterator

from invitescout.dedup import SeenStore


class SqliteSeenStore(SeenStore):
    """Summary: SQLite-backed store for encoded message keys.

    Importance: Durable alternative to the in-memory dedup store.
    Alternatives: Persist the in-memory set to a JSON file on shutdown.
    """

    def __init__(self, db_path: str) -> None:
        """Summary: Initialize the store with a database path.

        Importance: Allows configurable database location per environment.
        Alternatives: Hardcode a default path in the class.
        """

        self._db_path = Path(db_path)

    def initialize(self) -> None:
        """Summary: Create the seen-messages table if it does not exist.

        Importance: Ensures the database is ready before the first scan.
        Alternatives: Run migrations using a dedicated migration tool.
        """

        with self._connection() as connection:
            connection.execute(
                """
                CREATE TABLE IF NOT EXISTS seen_messages (
                    message_key TEXT PRIMARY KEY,
                    seen_at TEXT NOT NULL
                )
                """
            )
            connection.commit()

    def contains(self, key: str) -> bool:
        with self._connection() as connection:
            row = connection.execute(
                "SELECT 1 FROM seen_messages WHERE message_key = ?", (key,)
            ).fetchone()
        return row is not None

    def add(self, key: str) -> None:
        """Summary: Record a key, ignoring keys already present.

        Importance: Keeps repeated marks idempotent.
        Alternatives: Update the timestamp on every mark.
        """

        with self._connection() as connection:
            connection.execute(
                "INSERT OR IGNORE INTO seen_messages (message_key, seen_at) VALUES (?, ?)",
                (key, datetime.utcnow().isoformat()),
            )
            connection.commit()

    def clear(self) -> None:
        with self._connection() as connection:
            connection.execute("DELETE FROM seen_messages")
            connection.commit()

    def count(self) -> int:
        with self._connection() as connection:
            row = connection.execute("SELECT COUNT(*) FROM seen_messages").fetchone()
        return int(row[0]) if row else 0

    @contextmanager
    def _connection(self) -> Iterator[sqlite3.Connection]:
        """Summary: Context manager for SQLite connections.

        Importance: Ensures connections are closed cleanly after use.
        Alternatives: Keep a single long-lived connection.
        """

        connection = sqlite3.connect(self._db_path)
        try:
            yield connection
        finally:
            connection.close()


def default_store_path() -> str:
    """Summary: Provide the default database path.

    Importance: Centralizes the default storage location.
    Alternatives: Compute the path based on OS user directories.
    """

    return "invitescout.db"
