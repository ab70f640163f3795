# auth/interfaces.py
"""
Storage capabilities consumed by the auth core.

UserService and SessionManager only depend on these protocols, so the
SQLite adapters in persistence/ can be swapped for the in-memory ones in
auth/memory.py (or anything else) without touching core logic.
"""

from __future__ import annotations

from datetime import datetime
from typing import Any, Optional, Protocol, runtime_checkable

from auth.models import SessionRecord, User


@runtime_checkable
class UserRepository(Protocol):
    """
    User persistence.

    Implementations must be safe for concurrent use from multiple
    request threads.
    """

    def create(self, user: User) -> None:
        """
        Persist a new user.

        Raises:
            DuplicateEmailError: If the email is already taken
            StoreUnavailableError: On any other storage failure
        """
        ...

    def get_by_email(self, email: str) -> User:
        """Raises UserNotFoundError if absent."""
        ...

    def get_by_id(self, user_id: str) -> User:
        """Raises UserNotFoundError if absent."""
        ...


@runtime_checkable
class SessionStore(Protocol):
    """Session persistence keyed by token."""

    def load(self, token: str) -> Optional[SessionRecord]:
        """Return the record, or None if missing or expired."""
        ...

    def save(self, token: str, data: dict[str, Any], expires_at: datetime) -> None:
        ...

    def destroy(self, token: str) -> None:
        ...

    def delete_expired(self) -> int:
        """Remove expired records; returns how many were removed."""
        ...
