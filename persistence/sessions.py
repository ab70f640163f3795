# persistence/sessions.py
"""
SQLite-backed session store.

Session data is stored as JSON text; expiry as an ISO-8601 UTC timestamp,
so string comparison in SQL orders correctly.
"""

from __future__ import annotations

import json
import logging
import sqlite3
from datetime import datetime, timezone
from typing import Any, Optional

from auth.exceptions import StoreUnavailableError
from auth.models import SessionRecord, utcnow
from persistence.db import Database

_logger = logging.getLogger(__name__)


def _to_db_time(value: datetime) -> str:
    # Fixed width (always with microseconds) keeps string order == time order
    return value.astimezone(timezone.utc).strftime("%Y-%m-%dT%H:%M:%S.%f+00:00")


class SQLiteSessionStore:
    """SessionStore on the sessions table."""

    def __init__(self, db: Database):
        self.db = db

    def load(self, token: str) -> Optional[SessionRecord]:
        try:
            with self.db.connection() as conn:
                row = conn.execute(
                    "SELECT token, data, expires_at FROM sessions WHERE token = ? AND expires_at > ?",
                    (token, _to_db_time(utcnow())),
                ).fetchone()
        except sqlite3.Error as e:
            _logger.error(f"Failed to load session: {e}")
            raise StoreUnavailableError("Failed to load session") from e

        if row is None:
            return None

        return SessionRecord(
            token=row["token"],
            data=json.loads(row["data"]),
            expires_at=datetime.fromisoformat(row["expires_at"]),
        )

    def save(self, token: str, data: dict[str, Any], expires_at: datetime) -> None:
        try:
            with self.db.connection() as conn:
                conn.execute(
                    """
                    INSERT INTO sessions (token, data, expires_at)
                    VALUES (?, ?, ?)
                    ON CONFLICT(token) DO UPDATE SET
                        data = excluded.data,
                        expires_at = excluded.expires_at
                    """,
                    (token, json.dumps(data), _to_db_time(expires_at)),
                )
        except sqlite3.Error as e:
            _logger.error(f"Failed to save session: {e}")
            raise StoreUnavailableError("Failed to save session") from e

    def destroy(self, token: str) -> None:
        try:
            with self.db.connection() as conn:
                conn.execute("DELETE FROM sessions WHERE token = ?", (token,))
        except sqlite3.Error as e:
            _logger.error(f"Failed to destroy session: {e}")
            raise StoreUnavailableError("Failed to destroy session") from e

    def delete_expired(self) -> int:
        """
        Remove expired sessions from database.

        Returns:
            Number of sessions cleaned up
        """
        try:
            with self.db.connection() as conn:
                cursor = conn.execute(
                    "DELETE FROM sessions WHERE expires_at <= ?",
                    (_to_db_time(utcnow()),),
                )
                count = cursor.rowcount
        except sqlite3.Error as e:
            raise StoreUnavailableError("Failed to delete expired sessions") from e

        if count > 0:
            _logger.info(f"Cleaned up {count} expired sessions")
        return count
