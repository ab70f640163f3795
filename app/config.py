# app/config.py
"""
Centralized configuration management with startup validation.

All settings come from the process environment. Invalid values fall back
to their defaults and are reported as warnings instead of stopping the
service. The loaded AppConfig is passed explicitly to create_app().
"""
import logging
import os
import re
from dataclasses import dataclass, field
from datetime import timedelta
from typing import Optional

from auth.password import BCRYPT_ROUNDS
from auth.service import PasswordPolicy
from auth.session import DEFAULT_COOKIE_NAME, DEFAULT_SESSION_LIFETIME, SessionConfig

logger = logging.getLogger(__name__)

# =============================================================================
# Constants
# =============================================================================

SERVICE_NAME = "eav-platform"
SERVICE_VERSION = "0.1.0"

DEFAULT_PORT = 8080
DEFAULT_DB_PATH = "./data.db"
DEFAULT_DB_TIMEOUT_SECONDS = 5.0
DEFAULT_PASSWORD_MIN_LENGTH = 1
MIN_BCRYPT_ROUNDS = 4
MAX_BCRYPT_ROUNDS = 31

DEFAULT_LOG_LEVEL = "info"
DEFAULT_LOG_MAX_SIZE_MB = 100
DEFAULT_LOG_MAX_BACKUPS = 2

LOG_LEVELS = {
    "debug": logging.DEBUG,
    "info": logging.INFO,
    "warn": logging.WARNING,
    "warning": logging.WARNING,
    "error": logging.ERROR,
}

# Go-style durations: "24h", "90m", "1h30m", "45s", "500ms"
_DURATION_PART = re.compile(r"(\d+(?:\.\d+)?)(ms|h|m|s)")
_DURATION_FULL = re.compile(r"^(?:\d+(?:\.\d+)?(?:ms|h|m|s))+$")
_DURATION_UNITS = {
    "h": timedelta(hours=1),
    "m": timedelta(minutes=1),
    "s": timedelta(seconds=1),
    "ms": timedelta(milliseconds=1),
}


# =============================================================================
# Configuration Dataclass
# =============================================================================


@dataclass
class AppConfig:
    """Application configuration loaded from environment."""

    # Service info
    service_name: str = SERVICE_NAME
    service_version: str = SERVICE_VERSION
    port: int = DEFAULT_PORT

    # Database
    db_path: str = DEFAULT_DB_PATH
    db_timeout_seconds: float = DEFAULT_DB_TIMEOUT_SECONDS

    # Sessions
    session_lifetime: timedelta = DEFAULT_SESSION_LIFETIME
    session_cookie_name: str = DEFAULT_COOKIE_NAME
    session_cookie_secure: bool = False

    # Passwords
    password_min_length: int = DEFAULT_PASSWORD_MIN_LENGTH
    bcrypt_rounds: int = BCRYPT_ROUNDS

    # Logging
    log_level: str = DEFAULT_LOG_LEVEL
    log_file: Optional[str] = None
    log_max_size_mb: int = DEFAULT_LOG_MAX_SIZE_MB
    log_max_backups: int = DEFAULT_LOG_MAX_BACKUPS

    # Warnings collected during config load
    warnings: list = field(default_factory=list)

    @property
    def session(self) -> SessionConfig:
        return SessionConfig(
            lifetime=self.session_lifetime,
            cookie_name=self.session_cookie_name,
            cookie_secure=self.session_cookie_secure,
        )

    @property
    def password_policy(self) -> PasswordPolicy:
        return PasswordPolicy(min_length=self.password_min_length)

    @property
    def logging_level(self) -> int:
        return LOG_LEVELS.get(self.log_level.lower(), logging.INFO)


# =============================================================================
# Configuration Loading
# =============================================================================


def parse_duration(raw: str) -> timedelta:
    """
    Parse a Go-style duration string.

    Raises:
        ValueError: If the string is not a positive duration
    """
    text = raw.strip()
    if not _DURATION_FULL.match(text):
        raise ValueError(f"invalid duration {raw!r}")

    total = timedelta()
    for amount, unit in _DURATION_PART.findall(text):
        total += float(amount) * _DURATION_UNITS[unit]

    if total <= timedelta():
        raise ValueError(f"duration {raw!r} must be positive")
    return total


def _parse_int_env(
    name: str,
    default: int,
    min_value: Optional[int] = None,
    max_value: Optional[int] = None,
) -> tuple[int, Optional[str]]:
    """
    Parse an integer environment variable with validation.

    Returns (value, warning_message).
    On invalid input, returns default with a warning.
    """
    raw = os.environ.get(name)
    if raw is None or raw == "":
        return default, None

    try:
        value = int(raw)
    except ValueError:
        warning = f"{name}='{raw}' is not a valid integer; using default {default}"
        return default, warning

    if min_value is not None and value < min_value:
        warning = f"{name}={value} is below minimum {min_value}; using default {default}"
        return default, warning

    if max_value is not None and value > max_value:
        warning = f"{name}={value} is above maximum {max_value}; using default {default}"
        return default, warning

    return value, None


def _parse_float_env(name: str, default: float) -> tuple[float, Optional[str]]:
    raw = os.environ.get(name)
    if raw is None or raw == "":
        return default, None

    try:
        value = float(raw)
    except ValueError:
        return default, f"{name}='{raw}' is not a valid number; using default {default}"

    if value <= 0:
        return default, f"{name}={value} must be positive; using default {default}"
    return value, None


def _parse_bool_env(name: str, default: bool = False) -> bool:
    """Parse a boolean environment variable."""
    raw = os.environ.get(name, "").lower()
    if raw == "":
        return default
    return raw in ("true", "1", "yes", "on")


def _parse_duration_env(name: str, default: timedelta) -> tuple[timedelta, Optional[str]]:
    raw = os.environ.get(name)
    if raw is None or raw == "":
        return default, None

    try:
        return parse_duration(raw), None
    except ValueError:
        return default, f"{name}='{raw}' is not a valid duration; using default {default}"


def load_config() -> AppConfig:
    """
    Load and validate application configuration from environment.

    Returns:
        AppConfig instance with validated configuration.
    """
    warnings = []

    def collect(result):
        value, warning = result
        if warning:
            warnings.append(warning)
        return value

    port = collect(_parse_int_env("PORT", DEFAULT_PORT, min_value=1, max_value=65535))
    db_timeout = collect(_parse_float_env("DB_TIMEOUT", DEFAULT_DB_TIMEOUT_SECONDS))
    session_lifetime = collect(
        _parse_duration_env("SESSION_LIFETIME", DEFAULT_SESSION_LIFETIME)
    )
    password_min_length = collect(
        _parse_int_env("PASSWORD_MIN_LENGTH", DEFAULT_PASSWORD_MIN_LENGTH, min_value=1)
    )
    bcrypt_rounds = collect(
        _parse_int_env(
            "BCRYPT_ROUNDS",
            BCRYPT_ROUNDS,
            min_value=MIN_BCRYPT_ROUNDS,
            max_value=MAX_BCRYPT_ROUNDS,
        )
    )
    log_max_size = collect(_parse_int_env("LOG_MAX_SIZE", DEFAULT_LOG_MAX_SIZE_MB, min_value=1))
    log_max_backups = collect(
        _parse_int_env("LOG_MAX_BACKUPS", DEFAULT_LOG_MAX_BACKUPS, min_value=0)
    )

    log_level = os.environ.get("LOG_LEVEL", "") or DEFAULT_LOG_LEVEL
    if log_level.lower() not in LOG_LEVELS:
        warnings.append(f"LOG_LEVEL='{log_level}' is not recognised; using default info")
        log_level = DEFAULT_LOG_LEVEL

    # Log warnings
    for warning in warnings:
        logger.warning(f"[CONFIG] {warning}")

    return AppConfig(
        port=port,
        db_path=os.environ.get("DB_PATH", "") or DEFAULT_DB_PATH,
        db_timeout_seconds=db_timeout,
        session_lifetime=session_lifetime,
        session_cookie_name=os.environ.get("SESSION_NAME", "") or DEFAULT_COOKIE_NAME,
        session_cookie_secure=_parse_bool_env("SESSION_SECURE", False),
        password_min_length=password_min_length,
        bcrypt_rounds=bcrypt_rounds,
        log_level=log_level.lower(),
        log_file=os.environ.get("LOG_FILE") or None,
        log_max_size_mb=log_max_size,
        log_max_backups=log_max_backups,
        warnings=warnings,
    )


def log_config_snapshot(config: AppConfig) -> str:
    """
    Generate and log a safe configuration snapshot.

    Returns the snapshot string for testing purposes.
    """
    snapshot = (
        f"[STARTUP] service={config.service_name} "
        f"version={config.service_version} "
        f"port={config.port} "
        f"db_path={config.db_path} "
        f"session_lifetime_seconds={int(config.session_lifetime.total_seconds())} "
        f"session_cookie_name={config.session_cookie_name} "
        f"session_cookie_secure={config.session_cookie_secure} "
        f"password_min_length={config.password_min_length} "
        f"log_level={config.log_level}"
    )
    logger.info(snapshot)
    return snapshot
