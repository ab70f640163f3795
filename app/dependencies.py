# app/dependencies.py
"""
FastAPI dependencies for the services wired up in create_app().
"""
from fastapi import Request

from auth.service import UserService
from auth.session import SessionManager, session_manager_from


def get_user_service(request: Request) -> UserService:
    """FastAPI dependency: the app's UserService."""
    return request.app.state.user_service


def get_session_manager(request: Request) -> SessionManager:
    """FastAPI dependency: the SessionManager installed by SessionMiddleware."""
    return session_manager_from(request)
