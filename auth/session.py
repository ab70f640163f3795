# auth/session.py
"""
Server-side sessions keyed by an opaque cookie token.

Provides:
- SessionManager: load/commit session state and the create/destroy/read
  operations handlers use
- SessionMiddleware: ASGI middleware that attaches the session to every
  request and saves it (and sets the cookie) on the way out

The per-request SessionState lives in the ASGI scope; handlers reach it
through the SessionManager methods, never through the scope directly.
"""

from __future__ import annotations

import enum
import logging
import secrets
from dataclasses import dataclass, field
from datetime import datetime, timedelta
from typing import Any, Optional

from starlette.concurrency import run_in_threadpool
from starlette.datastructures import MutableHeaders
from starlette.requests import HTTPConnection
from starlette.responses import PlainTextResponse, Response
from starlette.types import ASGIApp, Message, Receive, Scope, Send

from auth.interfaces import SessionStore
from auth.models import USER_ID_KEY, utcnow

_logger = logging.getLogger(__name__)

SESSION_SCOPE_KEY = "auth.session"
MANAGER_SCOPE_KEY = "auth.session_manager"

DEFAULT_SESSION_LIFETIME = timedelta(hours=24)
DEFAULT_COOKIE_NAME = "session_id"


@dataclass(frozen=True)
class SessionConfig:
    """Session and cookie settings."""
    lifetime: timedelta = DEFAULT_SESSION_LIFETIME
    cookie_name: str = DEFAULT_COOKIE_NAME
    cookie_secure: bool = False
    cookie_path: str = "/"


@dataclass(frozen=True)
class AuthIdentity:
    """The authenticated user of the current request."""
    user_id: str


class SessionStatus(enum.Enum):
    UNMODIFIED = "unmodified"
    MODIFIED = "modified"
    DESTROYED = "destroyed"


@dataclass
class SessionState:
    """
    Session data for one request.

    token is None until the session is first saved (or after it has been
    renewed or destroyed).
    """
    token: Optional[str]
    expires_at: datetime
    data: dict[str, Any] = field(default_factory=dict)
    status: SessionStatus = SessionStatus.UNMODIFIED

    def get(self, key: str, default: Any = None) -> Any:
        return self.data.get(key, default)

    def put(self, key: str, value: Any) -> None:
        self.data[key] = value
        self.status = SessionStatus.MODIFIED

    def pop(self, key: str, default: Any = None) -> Any:
        if key not in self.data:
            return default
        self.status = SessionStatus.MODIFIED
        return self.data.pop(key)


def generate_token() -> str:
    """Generate a new random session token (256 bits)."""
    return secrets.token_urlsafe(32)


class SessionManager:
    """
    Owns the session lifecycle on top of a SessionStore.

    State machine per session:
        anonymous --create_session(uid)--> authenticated(uid)
        authenticated --destroy_session / expiry--> anonymous
    """

    def __init__(self, store: SessionStore, config: Optional[SessionConfig] = None):
        self.store = store
        self.config = config or SessionConfig()

    # -------------------------------------------------------------------------
    # Load / commit (called by SessionMiddleware)
    # -------------------------------------------------------------------------

    def new_state(self) -> SessionState:
        return SessionState(token=None, expires_at=utcnow() + self.config.lifetime)

    def load(self, token: Optional[str]) -> SessionState:
        """Load the session for a cookie token, or start an anonymous one."""
        if not token:
            return self.new_state()

        record = self.store.load(token)
        if record is None:
            _logger.debug(f"No live session for token {token[:8]}…")
            return self.new_state()

        return SessionState(
            token=record.token,
            data=record.data,
            expires_at=record.expires_at,
        )

    def commit(self, state: SessionState) -> Optional[str]:
        """
        Persist a modified session.

        Returns:
            The session token, or None if nothing was saved
        """
        if state.status is not SessionStatus.MODIFIED:
            return state.token

        if state.token is None:
            state.token = generate_token()
        self.store.save(state.token, state.data, state.expires_at)
        return state.token

    def cookie_header(self, state: SessionState) -> Optional[str]:
        """Build the Set-Cookie value for a committed state, if one is due."""
        response = Response()
        if state.status is SessionStatus.MODIFIED and state.token:
            max_age = int((state.expires_at - utcnow()).total_seconds())
            response.set_cookie(
                key=self.config.cookie_name,
                value=state.token,
                max_age=max(max_age, 0),
                expires=state.expires_at,
                path=self.config.cookie_path,
                secure=self.config.cookie_secure,
                httponly=True,
                samesite="lax",
            )
        elif state.status is SessionStatus.DESTROYED:
            response.delete_cookie(
                key=self.config.cookie_name,
                path=self.config.cookie_path,
                secure=self.config.cookie_secure,
                httponly=True,
                samesite="lax",
            )
        else:
            return None
        return response.headers["set-cookie"]

    # -------------------------------------------------------------------------
    # Request operations
    # -------------------------------------------------------------------------

    def state(self, request: HTTPConnection) -> SessionState:
        """Return the session attached to this request."""
        state = request.scope.get(SESSION_SCOPE_KEY)
        if state is None:
            raise RuntimeError("SessionMiddleware must be installed to use sessions")
        return state

    def get_user_id(self, request: HTTPConnection) -> str:
        """Authenticated user ID, or an empty string for anonymous sessions."""
        user_id = self.state(request).get(USER_ID_KEY)
        return str(user_id) if user_id else ""

    def create_session(self, request: HTTPConnection, user_id: str) -> None:
        """Mark the current session as authenticated for user_id."""
        self.renew_token(request)
        self.state(request).put(USER_ID_KEY, user_id)
        _logger.debug(f"Created session for user: {user_id}")

    def destroy_session(self, request: HTTPConnection) -> None:
        """Delete the session server-side and tell the client to drop the cookie."""
        state = self.state(request)
        if state.token:
            self.store.destroy(state.token)
            _logger.debug(f"Destroyed session {state.token[:8]}…")

        state.token = None
        state.data = {}
        state.expires_at = utcnow() + self.config.lifetime
        state.status = SessionStatus.DESTROYED

    def renew_token(self, request: HTTPConnection) -> None:
        """
        Move the session data to a fresh token.

        The old record is deleted, so a token planted before login is
        worthless afterwards.
        """
        state = self.state(request)
        if state.token:
            self.store.destroy(state.token)
        state.token = None
        state.expires_at = utcnow() + self.config.lifetime
        state.status = SessionStatus.MODIFIED

    def put(self, request: HTTPConnection, key: str, value: Any) -> None:
        self.state(request).put(key, value)

    def get(self, request: HTTPConnection, key: str, default: Any = None) -> Any:
        return self.state(request).get(key, default)

    def pop(self, request: HTTPConnection, key: str, default: Any = None) -> Any:
        return self.state(request).pop(key, default)


def session_manager_from(request: HTTPConnection) -> SessionManager:
    """Return the SessionManager installed by SessionMiddleware."""
    manager = request.scope.get(MANAGER_SCOPE_KEY)
    if manager is None:
        raise RuntimeError("SessionMiddleware must be installed to use sessions")
    return manager


class SessionMiddleware:
    """
    Middleware that loads the session before the app runs and saves it
    when the response starts.

    The save happens on every exit path: normal responses, redirects,
    error pages, and exceptions that escape the app (answered here with a
    plain 500 so the cookie still reaches the client).
    """

    def __init__(self, app: ASGIApp, manager: SessionManager):
        self.app = app
        self.manager = manager

    async def __call__(self, scope: Scope, receive: Receive, send: Send) -> None:
        if scope["type"] != "http":
            await self.app(scope, receive, send)
            return

        connection = HTTPConnection(scope)
        token = connection.cookies.get(self.manager.config.cookie_name)
        state = await run_in_threadpool(self.manager.load, token)

        scope[SESSION_SCOPE_KEY] = state
        scope[MANAGER_SCOPE_KEY] = self.manager

        committed = False

        async def send_wrapper(message: Message) -> None:
            nonlocal committed
            if message["type"] == "http.response.start" and not committed:
                committed = True
                await run_in_threadpool(self.manager.commit, state)
                cookie = self.manager.cookie_header(state)
                if cookie:
                    headers = MutableHeaders(scope=message)
                    headers.append("set-cookie", cookie)
                    headers.append("cache-control", 'no-cache="Set-Cookie"')
            await send(message)

        try:
            await self.app(scope, receive, send_wrapper)
        except Exception:
            if not committed:
                # Nothing was sent yet: answer here so the save and the
                # cookie go out together, then let the error propagate.
                response = PlainTextResponse("Internal Server Error", status_code=500)
                await response(scope, receive, send_wrapper)
            raise
