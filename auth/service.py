# auth/service.py
"""
User service.

Handles:
- Registration input validation and email uniqueness
- Login credential checks
- User lookup for the dashboard
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Optional

from pydantic import EmailStr, TypeAdapter
from pydantic import ValidationError as PydanticValidationError

from auth.exceptions import (
    CredentialError,
    DuplicateEmailError,
    InvalidCredentialsError,
    UserNotFoundError,
    ValidationError,
)
from auth.interfaces import UserRepository
from auth.models import User
from auth.password import BCRYPT_ROUNDS, hash_password, verify_password

_logger = logging.getLogger(__name__)

_EMAIL_ADAPTER = TypeAdapter(EmailStr)


@dataclass(frozen=True)
class CreateUserRequest:
    email: str
    password: str


@dataclass(frozen=True)
class LoginRequest:
    email: str
    password: str


@dataclass(frozen=True)
class PasswordPolicy:
    """
    Registration password rules.

    The default only requires a non-empty password.
    """
    min_length: int = 1

    def check(self, password: str) -> Optional[str]:
        """Return an error message, or None if the password is acceptable."""
        if not password:
            return "Password is required"
        if len(password) < self.min_length:
            return f"Password must be at least {self.min_length} characters"
        return None


def normalize_email(email: str) -> str:
    """
    Validate an email address and return its normalized form.

    Only a bare address is accepted. EmailStr also parses the
    "Name <addr>" form and returns just the address, so anything that
    changed beyond letter case during validation is rejected.

    Raises:
        ValueError: If the address is malformed
    """
    candidate = email.strip()
    try:
        normalized = str(_EMAIL_ADAPTER.validate_python(candidate))
    except PydanticValidationError as e:
        raise ValueError("Invalid email address") from e

    if normalized.casefold() != candidate.casefold():
        raise ValueError("Invalid email address")
    return normalized


class UserService:
    """
    Registration, login and lookup on top of a UserRepository.

    Args:
        repository: User persistence
        policy: Password rules applied at registration
        bcrypt_rounds: Work factor for new password hashes
    """

    def __init__(
        self,
        repository: UserRepository,
        policy: Optional[PasswordPolicy] = None,
        bcrypt_rounds: int = BCRYPT_ROUNDS,
    ):
        self.repository = repository
        self.policy = policy or PasswordPolicy()
        self.bcrypt_rounds = bcrypt_rounds
        self._dummy_hash: Optional[str] = None

    def create_user(self, request: CreateUserRequest) -> User:
        """
        Create a new user account.

        The existence check and the insert are not atomic; a concurrent
        registration for the same email is caught by the repository's
        unique index and reported as DuplicateEmailError as well.

        Returns:
            Created User object

        Raises:
            ValidationError: If the email or password is malformed
            DuplicateEmailError: If email already registered
            StoreUnavailableError: If the repository fails
        """
        email = self._validate_registration(request)

        try:
            self.repository.get_by_email(email)
        except UserNotFoundError:
            pass
        else:
            raise DuplicateEmailError(f"User with email {email} already exists")

        user = User.new(email=email)
        try:
            user.set_password(request.password, rounds=self.bcrypt_rounds)
        except CredentialError as e:
            raise ValidationError({"password": "Password is too long"}) from e

        self.repository.create(user)

        _logger.info(f"Created user: {user.id}")
        return user

    def validate_login(self, request: LoginRequest) -> User:
        """
        Authenticate user with email and password.

        Every failure raises the same InvalidCredentialsError so callers
        cannot tell an unknown email from a wrong password.

        Returns:
            Authenticated User object

        Raises:
            InvalidCredentialsError: If credentials are invalid
            StoreUnavailableError: If the repository fails
        """
        if not request.email or not request.password:
            raise InvalidCredentialsError()

        try:
            email = normalize_email(request.email)
        except ValueError:
            raise InvalidCredentialsError() from None

        try:
            user = self.repository.get_by_email(email)
        except UserNotFoundError:
            # Spend the same bcrypt time as a real check
            verify_password(request.password, self._get_dummy_hash())
            _logger.warning("Login attempt for unknown email")
            raise InvalidCredentialsError() from None

        try:
            user.check_password(request.password)
        except InvalidCredentialsError:
            _logger.warning(f"Invalid password for user: {user.id}")
            raise

        _logger.info(f"User authenticated: {user.id}")
        return user

    def get_user_by_id(self, user_id: str) -> User:
        """
        Get user by ID.

        Raises:
            UserNotFoundError: If no such user
        """
        if not user_id:
            raise UserNotFoundError("User not found")
        return self.repository.get_by_id(user_id)

    def _validate_registration(self, request: CreateUserRequest) -> str:
        errors: dict[str, str] = {}
        email = ""

        if not request.email:
            errors["email"] = "Email is required"
        else:
            try:
                email = normalize_email(request.email)
            except ValueError:
                errors["email"] = "Email address is not valid"

        password_error = self.policy.check(request.password)
        if password_error:
            errors["password"] = password_error

        if errors:
            raise ValidationError(errors)
        return email

    def _get_dummy_hash(self) -> str:
        if self._dummy_hash is None:
            self._dummy_hash = hash_password("dummy-password", rounds=self.bcrypt_rounds)
        return self._dummy_hash
