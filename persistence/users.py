# persistence/users.py
"""
SQLite-backed user repository.
"""

from __future__ import annotations

import logging
import sqlite3
from datetime import datetime

from auth.exceptions import DuplicateEmailError, StoreUnavailableError, UserNotFoundError
from auth.models import User, utcnow
from persistence.db import Database

_logger = logging.getLogger(__name__)

_USER_COLUMNS = "id, email, password_hash, created_at, updated_at"


def _row_to_user(row: sqlite3.Row) -> User:
    """Convert a database row to a User object."""
    return User(
        id=row["id"],
        email=row["email"],
        password_hash=row["password_hash"],
        created_at=datetime.fromisoformat(row["created_at"]),
        updated_at=datetime.fromisoformat(row["updated_at"]),
    )


class SQLiteUserRepository:
    """UserRepository on the users table."""

    def __init__(self, db: Database):
        self.db = db

    def create(self, user: User) -> None:
        """
        Insert a user row.

        Raises:
            DuplicateEmailError: If the unique email index rejects the row
            StoreUnavailableError: On any other database error
        """
        user.updated_at = utcnow()
        try:
            with self.db.connection() as conn:
                conn.execute(
                    f"""
                    INSERT INTO users ({_USER_COLUMNS})
                    VALUES (?, ?, ?, ?, ?)
                    """,
                    (
                        user.id,
                        user.email,
                        user.password_hash,
                        user.created_at.isoformat(),
                        user.updated_at.isoformat(),
                    ),
                )
        except sqlite3.IntegrityError as e:
            if "users.email" in str(e):
                raise DuplicateEmailError(f"Email already registered: {user.email}") from e
            raise StoreUnavailableError("Failed to create user") from e
        except sqlite3.Error as e:
            _logger.error(f"Failed to create user: {e}")
            raise StoreUnavailableError("Failed to create user") from e

    def get_by_email(self, email: str) -> User:
        return self._fetch_one("email", email)

    def get_by_id(self, user_id: str) -> User:
        return self._fetch_one("id", user_id)

    def count(self) -> int:
        try:
            with self.db.connection() as conn:
                row = conn.execute("SELECT COUNT(*) FROM users").fetchone()
        except sqlite3.Error as e:
            raise StoreUnavailableError("Failed to count users") from e
        return row[0]

    def _fetch_one(self, column: str, value: str) -> User:
        try:
            with self.db.connection() as conn:
                row = conn.execute(
                    f"SELECT {_USER_COLUMNS} FROM users WHERE {column} = ?",
                    (value,),
                ).fetchone()
        except sqlite3.Error as e:
            _logger.error(f"Failed to get user by {column}: {e}")
            raise StoreUnavailableError(f"Failed to get user by {column}") from e

        if row is None:
            raise UserNotFoundError("User not found")
        return _row_to_user(row)
