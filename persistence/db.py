# persistence/db.py
"""
SQLite database connection and schema management.

One connection per thread; SQLite itself serialises writers, and the
busy timeout bounds how long a call may wait on a locked database.
"""

from __future__ import annotations

import logging
import sqlite3
import threading
from contextlib import contextmanager
from pathlib import Path
from typing import Iterator, Union

_logger = logging.getLogger(__name__)

DEFAULT_DB_PATH = Path("data.db")
DEFAULT_TIMEOUT_SECONDS = 5.0

SCHEMA = (
    """
    CREATE TABLE IF NOT EXISTS users (
        id TEXT PRIMARY KEY,
        email TEXT NOT NULL,
        password_hash TEXT NOT NULL,
        created_at TEXT NOT NULL,
        updated_at TEXT NOT NULL
    )
    """,
    """
    CREATE UNIQUE INDEX IF NOT EXISTS idx_users_email
    ON users(email)
    """,
    """
    CREATE TABLE IF NOT EXISTS sessions (
        token TEXT PRIMARY KEY,
        data TEXT NOT NULL,
        expires_at TEXT NOT NULL
    )
    """,
    """
    CREATE INDEX IF NOT EXISTS idx_sessions_expires
    ON sessions(expires_at)
    """,
)


class Database:
    """
    SQLite database handle.

    Args:
        path: Database file location
        timeout: Seconds to wait on a locked database before failing
    """

    def __init__(
        self,
        path: Union[str, Path] = DEFAULT_DB_PATH,
        timeout: float = DEFAULT_TIMEOUT_SECONDS,
    ):
        self.path = Path(path)
        self.timeout = timeout
        self._local = threading.local()
        self._init_lock = threading.Lock()
        self._initialized = False
        # Every connection ever opened, so close() can reach other threads' ones
        self._connections: list[sqlite3.Connection] = []

    def _get_connection(self) -> sqlite3.Connection:
        """Get thread-local database connection."""
        conn = getattr(self._local, "connection", None)
        if conn is None:
            self.path.parent.mkdir(parents=True, exist_ok=True)

            conn = sqlite3.connect(
                str(self.path),
                timeout=self.timeout,
                check_same_thread=False,
            )
            conn.execute("PRAGMA foreign_keys = ON")
            conn.row_factory = sqlite3.Row
            self._local.connection = conn
            with self._init_lock:
                self._connections.append(conn)

        return conn

    @contextmanager
    def connection(self) -> Iterator[sqlite3.Connection]:
        """
        Get database connection context manager.

        Commits on success, rolls back on error.

        Usage:
            with db.connection() as conn:
                cursor = conn.execute("SELECT ...")
        """
        conn = self._get_connection()
        try:
            yield conn
            conn.commit()
        except Exception:
            conn.rollback()
            raise

    def init(self) -> None:
        """
        Initialize database schema.

        Creates tables if they don't exist.
        Safe to call multiple times (idempotent).
        """
        with self._init_lock:
            if self._initialized:
                return

        with self.connection() as conn:
            for statement in SCHEMA:
                conn.execute(statement)

        with self._init_lock:
            self._initialized = True
        _logger.info(f"Database initialized at {self.path}")

    def close(self) -> None:
        """Close every connection opened by this handle."""
        with self._init_lock:
            connections, self._connections = self._connections, []
        for conn in connections:
            conn.close()
        self._local = threading.local()

    def reset(self) -> None:
        """Reset database (for testing). Drops all tables."""
        with self.connection() as conn:
            conn.execute("DROP TABLE IF EXISTS sessions")
            conn.execute("DROP TABLE IF EXISTS users")
        with self._init_lock:
            self._initialized = False
