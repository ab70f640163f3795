"""EAV Platform - FastAPI application entrypoint."""
import logging
from contextlib import asynccontextmanager
from logging.handlers import RotatingFileHandler
from pathlib import Path
from typing import Optional

from fastapi import FastAPI, Request
from fastapi.responses import HTMLResponse, RedirectResponse
from starlette.middleware.base import BaseHTTPMiddleware

from app.config import AppConfig, load_config, log_config_snapshot
from app.correlation import CorrelationIdMiddleware, get_request_id
from app.pages import error_page
from app.routers import auth
from app.routers import dashboard
from auth.interfaces import SessionStore, UserRepository
from auth.middleware import DASHBOARD_PATH, install_auth_handlers
from auth.service import UserService
from auth.session import SessionManager, SessionMiddleware
from persistence.db import Database
from persistence.sessions import SQLiteSessionStore
from persistence.users import SQLiteUserRepository

logger = logging.getLogger(__name__)

LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"


def configure_logging(config: AppConfig) -> None:
    """
    Configure root logging: console always, rotating file when LOG_FILE is set.
    """
    handlers: list[logging.Handler] = [logging.StreamHandler()]
    if config.log_file:
        Path(config.log_file).parent.mkdir(parents=True, exist_ok=True)
        handlers.append(
            RotatingFileHandler(
                config.log_file,
                maxBytes=config.log_max_size_mb * 1024 * 1024,
                backupCount=config.log_max_backups,
                encoding="utf-8",
            )
        )

    logging.basicConfig(
        level=config.logging_level,
        format=LOG_FORMAT,
        handlers=handlers,
        force=True,
    )


class RecoveryMiddleware(BaseHTTPMiddleware):
    """Turn unhandled exceptions into a generic 500 page instead of a crash."""

    async def dispatch(self, request: Request, call_next):
        try:
            return await call_next(request)
        except Exception:
            logger.exception(
                f"Unhandled error request_id={get_request_id(request)} "
                f"on {request.method} {request.url.path}"
            )
            return HTMLResponse(
                content=error_page(500, "Something went wrong. Please try again."),
                status_code=500,
            )


async def not_found_handler(request: Request, exc: Exception) -> HTMLResponse:
    return HTMLResponse(content=error_page(404, "Page not found"), status_code=404)


def create_app(
    config: Optional[AppConfig] = None,
    user_repository: Optional[UserRepository] = None,
    session_store: Optional[SessionStore] = None,
) -> FastAPI:
    """
    Build the application.

    Stores default to SQLite at config.db_path; pass in-memory stores to
    run without a database file.
    """
    if config is None:
        config = load_config()
    log_config_snapshot(config)

    database: Optional[Database] = None
    if user_repository is None or session_store is None:
        database = Database(config.db_path, timeout=config.db_timeout_seconds)
        database.init()
    if user_repository is None:
        user_repository = SQLiteUserRepository(database)
    if session_store is None:
        session_store = SQLiteSessionStore(database)

    user_service = UserService(
        user_repository,
        policy=config.password_policy,
        bcrypt_rounds=config.bcrypt_rounds,
    )
    session_manager = SessionManager(session_store, config.session)

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        yield
        if database is not None:
            database.close()
            logger.info("Database connections closed")

    app = FastAPI(
        title="EAV Platform",
        description="Session-based authentication and dashboard",
        version=config.service_version,
        lifespan=lifespan,
    )

    app.state.config = config
    app.state.user_service = user_service
    app.state.session_manager = session_manager

    # Middleware stack (added in reverse execution order)
    # 1. CorrelationId: request id + access log around everything
    # 2. Session: load before, save + cookie after, on every exit path
    # 3. Recovery: unhandled errors become a 500 page inside the session scope
    app.add_middleware(RecoveryMiddleware)
    app.add_middleware(SessionMiddleware, manager=session_manager)
    app.add_middleware(CorrelationIdMiddleware)

    install_auth_handlers(app)
    app.add_exception_handler(404, not_found_handler)

    @app.get("/", include_in_schema=False)
    async def index():
        return RedirectResponse(url=DASHBOARD_PATH, status_code=303)

    @app.get("/health")
    async def health():
        """Liveness check."""
        return {"status": "ok"}

    app.include_router(auth.public_router)
    app.include_router(auth.protected_router)
    app.include_router(dashboard.router)

    return app
