# auth/password.py
"""
Secure password hashing using bcrypt.

Bcrypt is designed for password hashing with:
- Automatic salt generation
- Configurable work factor (cost)
- Resistance to rainbow tables
"""

from __future__ import annotations

import logging

import bcrypt

from auth.exceptions import CredentialError

_logger = logging.getLogger(__name__)

# Work factor (cost) - higher = slower but more secure
BCRYPT_ROUNDS = 12

# bcrypt only looks at the first 72 bytes of its input
BCRYPT_MAX_PASSWORD_BYTES = 72


def hash_password(password: str, rounds: int = BCRYPT_ROUNDS) -> str:
    """
    Hash a password using bcrypt.

    Args:
        password: Plain text password
        rounds: bcrypt work factor

    Returns:
        Bcrypt hash string (includes salt)

    Raises:
        CredentialError: If the password is empty, too long, or bcrypt fails
    """
    if not password:
        raise CredentialError("Password cannot be empty")

    password_bytes = password.encode("utf-8")
    if len(password_bytes) > BCRYPT_MAX_PASSWORD_BYTES:
        raise CredentialError(
            f"Password exceeds {BCRYPT_MAX_PASSWORD_BYTES} bytes"
        )

    try:
        salt = bcrypt.gensalt(rounds=rounds)
        hashed = bcrypt.hashpw(password_bytes, salt)
    except ValueError as e:
        raise CredentialError("Password hashing failed") from e

    return hashed.decode("utf-8")


def verify_password(password: str, password_hash: str) -> bool:
    """
    Verify a password against its hash.

    bcrypt.checkpw compares in constant time.

    Args:
        password: Plain text password to verify
        password_hash: Stored bcrypt hash

    Returns:
        True if password matches, False otherwise
    """
    if not password or not password_hash:
        return False

    password_bytes = password.encode("utf-8")
    if len(password_bytes) > BCRYPT_MAX_PASSWORD_BYTES:
        return False

    try:
        return bcrypt.checkpw(password_bytes, password_hash.encode("utf-8"))
    except ValueError as e:
        _logger.warning(f"Password verification error: {e}")
        return False
