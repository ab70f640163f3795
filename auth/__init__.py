# auth/__init__.py
"""
Authentication module.

Provides:
- User model with email/password auth
- Password hashing with bcrypt
- User service (registration, login, lookup)
- Server-side sessions with HTTP-only cookies
- Route guards for protected and public pages
"""

from auth.exceptions import (
    AuthError,
    CredentialError,
    DuplicateEmailError,
    InvalidCredentialsError,
    StoreUnavailableError,
    UserNotFoundError,
    ValidationError,
)
from auth.models import SessionRecord, User
from auth.service import CreateUserRequest, LoginRequest, PasswordPolicy, UserService
from auth.session import AuthIdentity, SessionConfig, SessionManager, SessionMiddleware

__all__ = [
    "AuthError",
    "AuthIdentity",
    "CreateUserRequest",
    "CredentialError",
    "DuplicateEmailError",
    "InvalidCredentialsError",
    "LoginRequest",
    "PasswordPolicy",
    "SessionConfig",
    "SessionManager",
    "SessionMiddleware",
    "SessionRecord",
    "StoreUnavailableError",
    "User",
    "UserNotFoundError",
    "UserService",
    "ValidationError",
]
