# auth/exceptions.py
"""
Authentication error taxonomy.

Every error raised by the auth core and its storage adapters derives from
AuthError so route handlers can map them to responses in one place.
"""

from __future__ import annotations

from typing import Optional


class AuthError(Exception):
    """Base authentication error."""
    pass


class ValidationError(AuthError):
    """
    Malformed registration or login input.

    Attributes:
        field_errors: Mapping of field name to a user-facing message
    """

    def __init__(self, field_errors: dict[str, str], message: Optional[str] = None):
        self.field_errors = dict(field_errors)
        super().__init__(message or "Validation failed")

    @property
    def messages(self) -> list[str]:
        """Field messages in field-name order, for display."""
        return [self.field_errors[name] for name in sorted(self.field_errors)]


class DuplicateEmailError(AuthError):
    """A user with this email already exists."""
    pass


class InvalidCredentialsError(AuthError):
    """Invalid email or password."""

    def __init__(self, message: str = "Invalid credentials"):
        super().__init__(message)


class UserNotFoundError(AuthError):
    """No user matches the lookup."""
    pass


class StoreUnavailableError(AuthError):
    """The backing store failed (I/O, locking, schema)."""
    pass


class CredentialError(AuthError):
    """Password could not be hashed."""
    pass
