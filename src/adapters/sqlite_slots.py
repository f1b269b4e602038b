"""SQLite slot storage adapter.

Implements the core SlotStoragePort using a simple SQLite database.
"""

from __future__ import annotations

import json
import sqlite3
from datetime import datetime, timezone
from typing import Any, Optional


class SQLiteSlotStorage:
    """Thin SQLite wrapper that satisfies the SlotStoragePort contract."""

    def __init__(self, db_path: str) -> None:
        self._db_path = db_path

    def _connect(self) -> sqlite3.Connection:
        conn = sqlite3.connect(self._db_path)
        conn.row_factory = sqlite3.Row
        return conn

    def init_db(self) -> None:
        """Create the slots table if it does not exist."""

        with self._connect() as conn:
            # slots holds one JSON document per key.
            # Fields:
            # - key: slot name (PRIMARY KEY)
            # - value: JSON-encoded value
            # - updated_at: timestamp of the last write
            conn.execute(
                """
                CREATE TABLE IF NOT EXISTS slots (
                    key TEXT PRIMARY KEY,
                    value TEXT NOT NULL,
                    updated_at TIMESTAMP NOT NULL
                )
                """
            )

    def read(self, key: str) -> Optional[Any]:
        """Return the decoded value stored under key, if any."""

        with self._connect() as conn:
            row = conn.execute(
                "SELECT value FROM slots WHERE key = ?",
                (key,),
            ).fetchone()
        return json.loads(row["value"]) if row else None

    def write(self, key: str, value: Any) -> None:
        """Upsert the JSON encoding of value under key."""

        now = datetime.now(timezone.utc)
        with self._connect() as conn:
            conn.execute(
                """
                INSERT INTO slots (key, value, updated_at)
                VALUES (?, ?, ?)
                ON CONFLICT(key) DO UPDATE SET
                    value = excluded.value,
                    updated_at = excluded.updated_at
                """,
                (key, json.dumps(value), now.isoformat()),
            )

    def delete(self, key: str) -> None:
        with self._connect() as conn:
            conn.execute("DELETE FROM slots WHERE key = ?", (key,))
