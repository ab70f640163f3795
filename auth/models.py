# auth/models.py
"""
User and session record models for authentication.
"""

from __future__ import annotations

import uuid
from dataclasses import dataclass, field
from datetime import datetime, timedelta, timezone
from typing import Any, Optional

from auth.exceptions import InvalidCredentialsError
from auth.password import BCRYPT_ROUNDS, hash_password, verify_password

# Session data key holding the authenticated user's ID
USER_ID_KEY = "user_id"


def utcnow() -> datetime:
    """Timezone-aware current UTC time."""
    return datetime.now(timezone.utc)


@dataclass
class User:
    """
    User account model.

    Attributes:
        id: Unique user ID (UUID4)
        email: User's email (unique, used for login)
        password_hash: Bcrypt-hashed password
        created_at: Account creation timestamp
        updated_at: Last update timestamp
    """
    id: str
    email: str
    password_hash: str = field(default="", repr=False)
    created_at: datetime = field(default_factory=utcnow)
    updated_at: datetime = field(default_factory=utcnow)

    @classmethod
    def new(cls, email: str) -> User:
        """Create a new user with generated ID and no password yet."""
        now = utcnow()
        return cls(
            id=str(uuid.uuid4()),
            email=email,
            password_hash="",
            created_at=now,
            updated_at=now,
        )

    def set_password(self, password: str, rounds: int = BCRYPT_ROUNDS) -> None:
        """
        Hash the password and store it on the user.

        Raises:
            CredentialError: If hashing fails
        """
        self.password_hash = hash_password(password, rounds=rounds)
        self.updated_at = utcnow()

    def check_password(self, password: str) -> bool:
        """
        Verify a password against the stored hash.

        Raises:
            InvalidCredentialsError: If the password does not match
        """
        if not verify_password(password, self.password_hash):
            raise InvalidCredentialsError()
        return True

    def to_dict(self) -> dict:
        """Convert to dictionary (excludes password_hash for safety)."""
        return {
            "id": self.id,
            "email": self.email,
            "created_at": self.created_at.isoformat(),
            "updated_at": self.updated_at.isoformat(),
        }


@dataclass
class SessionRecord:
    """
    Persisted session.

    Attributes:
        token: Opaque session token (the cookie value)
        data: Session values, JSON-serialisable
        expires_at: Absolute expiry deadline
    """
    token: str
    data: dict[str, Any] = field(default_factory=dict)
    expires_at: datetime = field(default_factory=lambda: utcnow() + timedelta(hours=24))

    @property
    def is_valid(self) -> bool:
        """Check if session is still valid (not expired)."""
        return utcnow() < self.expires_at

    @property
    def user_id(self) -> Optional[str]:
        return self.data.get(USER_ID_KEY) or None
