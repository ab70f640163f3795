# auth/middleware.py
"""
FastAPI authentication guards.

Provides:
- require_auth: dependency for protected routes (redirects anonymous users)
- redirect_if_authenticated: dependency for login/register routes
- AuthRedirect and its exception handler

Attach the guards to a whole router:

    router = APIRouter(dependencies=[Depends(require_auth)])

and take the typed identity in a handler:

    @router.get("/dashboard")
    def dashboard(identity: AuthIdentity = Depends(require_auth)):
        ...

FastAPI caches a dependency per request, so the guard runs once either way.
"""

from __future__ import annotations

from fastapi import FastAPI, Request
from fastapi.responses import RedirectResponse

from auth.session import AuthIdentity, session_manager_from

LOGIN_PATH = "/login"
DASHBOARD_PATH = "/dashboard"


class AuthRedirect(Exception):
    """Short-circuit the request with a 303 redirect."""

    def __init__(self, location: str):
        self.location = location
        super().__init__(location)


async def require_auth(request: Request) -> AuthIdentity:
    """
    FastAPI dependency: Get the authenticated identity (required).

    Redirects to the login page if the session is anonymous.
    """
    manager = session_manager_from(request)
    user_id = manager.get_user_id(request)
    if not user_id:
        raise AuthRedirect(LOGIN_PATH)

    return AuthIdentity(user_id=user_id)


async def redirect_if_authenticated(request: Request) -> None:
    """
    FastAPI dependency: Keep signed-in users off the login/register forms.
    """
    manager = session_manager_from(request)
    if manager.get_user_id(request):
        raise AuthRedirect(DASHBOARD_PATH)


async def auth_redirect_handler(request: Request, exc: AuthRedirect) -> RedirectResponse:
    return RedirectResponse(url=exc.location, status_code=303)


def install_auth_handlers(app: FastAPI) -> None:
    """Register the AuthRedirect exception handler on an app."""
    app.add_exception_handler(AuthRedirect, auth_redirect_handler)
