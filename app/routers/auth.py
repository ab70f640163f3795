"""
Login, registration and logout pages.

Form posts; every success ends in a 303 redirect so a browser refresh
never resubmits the form.
"""
import logging

from fastapi import APIRouter, Depends, Form, Request
from fastapi.responses import HTMLResponse, RedirectResponse

from app.dependencies import get_session_manager, get_user_service
from app.pages import login_page, register_page
from auth.exceptions import DuplicateEmailError, InvalidCredentialsError, ValidationError
from auth.middleware import DASHBOARD_PATH, LOGIN_PATH, redirect_if_authenticated, require_auth
from auth.service import CreateUserRequest, LoginRequest, UserService
from auth.session import SessionManager

_logger = logging.getLogger(__name__)

# Anonymous-only pages
public_router = APIRouter(tags=["auth"], dependencies=[Depends(redirect_if_authenticated)])

# Signed-in-only actions
protected_router = APIRouter(tags=["auth"], dependencies=[Depends(require_auth)])

MISSING_FIELDS_MESSAGE = "Email and password required"


@public_router.get("/login", response_class=HTMLResponse)
def show_login():
    """Login form."""
    return HTMLResponse(content=login_page())


@public_router.post("/login", response_class=HTMLResponse)
def login(
    request: Request,
    email: str = Form(""),
    password: str = Form(""),
    users: UserService = Depends(get_user_service),
    sessions: SessionManager = Depends(get_session_manager),
):
    """Check credentials and start an authenticated session."""
    if not email or not password:
        return HTMLResponse(
            content=login_page([MISSING_FIELDS_MESSAGE], email=email),
            status_code=400,
        )

    try:
        user = users.validate_login(LoginRequest(email=email, password=password))
    except InvalidCredentialsError:
        return HTMLResponse(
            content=login_page(["Invalid credentials"], email=email),
            status_code=401,
        )

    sessions.create_session(request, user.id)
    return RedirectResponse(url=DASHBOARD_PATH, status_code=303)


@public_router.get("/register", response_class=HTMLResponse)
def show_register():
    """Registration form."""
    return HTMLResponse(content=register_page())


@public_router.post("/register", response_class=HTMLResponse)
def register(
    request: Request,
    email: str = Form(""),
    password: str = Form(""),
    confirm_password: str = Form(""),
    users: UserService = Depends(get_user_service),
    sessions: SessionManager = Depends(get_session_manager),
):
    """Create an account and sign the new user in."""
    if not email or not password:
        return HTMLResponse(
            content=register_page([MISSING_FIELDS_MESSAGE], email=email),
            status_code=400,
        )

    if password != confirm_password:
        return HTMLResponse(
            content=register_page(["Passwords do not match"], email=email),
            status_code=400,
        )

    try:
        user = users.create_user(CreateUserRequest(email=email, password=password))
    except ValidationError as e:
        return HTMLResponse(
            content=register_page(e.messages, email=email),
            status_code=400,
        )
    except DuplicateEmailError:
        return HTMLResponse(
            content=register_page(["Email already registered"], email=email),
            status_code=409,
        )

    sessions.create_session(request, user.id)
    return RedirectResponse(url=DASHBOARD_PATH, status_code=303)


@protected_router.post("/logout")
def logout(
    request: Request,
    sessions: SessionManager = Depends(get_session_manager),
):
    """End the session and go back to the login page."""
    sessions.destroy_session(request)
    return RedirectResponse(url=LOGIN_PATH, status_code=303)
