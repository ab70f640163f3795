# auth/memory.py
"""
In-memory store implementations.

Used by tests and for running the app without a database file. Both
stores guard their state with a lock; records are copied on the way in and
out so callers never share mutable state with the store.
"""

from __future__ import annotations

import copy
import threading
from datetime import datetime
from typing import Any, Optional

from auth.exceptions import DuplicateEmailError, UserNotFoundError
from auth.models import SessionRecord, User, utcnow


class InMemoryUserRepository:
    """Dict-backed UserRepository with a unique email index."""

    def __init__(self):
        self._lock = threading.Lock()
        self._by_id: dict[str, User] = {}
        self._id_by_email: dict[str, str] = {}

    def create(self, user: User) -> None:
        with self._lock:
            if user.email in self._id_by_email:
                raise DuplicateEmailError(f"Email already registered: {user.email}")
            user.updated_at = utcnow()
            self._by_id[user.id] = copy.copy(user)
            self._id_by_email[user.email] = user.id

    def get_by_email(self, email: str) -> User:
        with self._lock:
            user_id = self._id_by_email.get(email)
            if user_id is None:
                raise UserNotFoundError("User not found")
            return copy.copy(self._by_id[user_id])

    def get_by_id(self, user_id: str) -> User:
        with self._lock:
            user = self._by_id.get(user_id)
            if user is None:
                raise UserNotFoundError("User not found")
            return copy.copy(user)

    def __len__(self) -> int:
        with self._lock:
            return len(self._by_id)


class MemorySessionStore:
    """Dict-backed SessionStore."""

    def __init__(self):
        self._lock = threading.Lock()
        self._records: dict[str, SessionRecord] = {}

    def load(self, token: str) -> Optional[SessionRecord]:
        with self._lock:
            record = self._records.get(token)
        if record is None or not record.is_valid:
            return None
        return SessionRecord(
            token=record.token,
            data=copy.deepcopy(record.data),
            expires_at=record.expires_at,
        )

    def save(self, token: str, data: dict[str, Any], expires_at: datetime) -> None:
        record = SessionRecord(token=token, data=copy.deepcopy(data), expires_at=expires_at)
        with self._lock:
            self._records[token] = record

    def destroy(self, token: str) -> None:
        with self._lock:
            self._records.pop(token, None)

    def delete_expired(self) -> int:
        with self._lock:
            expired = [t for t, r in self._records.items() if not r.is_valid]
            for token in expired:
                del self._records[token]
        return len(expired)

    def __len__(self) -> int:
        with self._lock:
            return len(self._records)
