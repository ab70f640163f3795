"""
Dashboard page for signed-in users.
"""
import logging

from fastapi import APIRouter, Depends, Request
from fastapi.responses import HTMLResponse

from app.dependencies import get_session_manager, get_user_service
from app.pages import dashboard_page, error_page
from auth.exceptions import UserNotFoundError
from auth.middleware import require_auth
from auth.service import UserService
from auth.session import AuthIdentity, SessionManager

_logger = logging.getLogger(__name__)

router = APIRouter(tags=["dashboard"], dependencies=[Depends(require_auth)])


@router.get("/dashboard", response_class=HTMLResponse)
def dashboard(
    request: Request,
    identity: AuthIdentity = Depends(require_auth),
    users: UserService = Depends(get_user_service),
    sessions: SessionManager = Depends(get_session_manager),
):
    """
    Show the signed-in user's profile.

    A session whose user no longer exists is destroyed and answered with
    a generic 401.
    """
    try:
        user = users.get_user_by_id(identity.user_id)
    except UserNotFoundError:
        _logger.warning(f"Session references unknown user: {identity.user_id}")
        sessions.destroy_session(request)
        return HTMLResponse(content=error_page(401, "Unauthorized"), status_code=401)

    return HTMLResponse(content=dashboard_page(user))
