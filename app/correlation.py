# app/correlation.py
"""
Request IDs and access logging.

Every request carries an X-Request-Id: the client's value when it is safe
to log, otherwise a fresh UUID4. The ID is kept on request.state, echoed
on the response, and written on the single access-log line emitted per
request. Form bodies are never logged.
"""
from __future__ import annotations

import logging
import re
import time
import uuid
from typing import Optional

from fastapi import Request
from starlette.middleware.base import BaseHTTPMiddleware

access_logger = logging.getLogger("app.access")

REQUEST_ID_HEADER = "X-Request-Id"

# At most 64 alphanumerics, hyphens or underscores
_SAFE_REQUEST_ID = re.compile(r"[A-Za-z0-9_-]{1,64}")


def resolve_request_id(candidate: Optional[str]) -> str:
    """Return the client-supplied ID if it is safe to log, else a new UUID4."""
    if candidate and _SAFE_REQUEST_ID.fullmatch(candidate):
        return candidate
    return str(uuid.uuid4())


def get_request_id(request: Request) -> Optional[str]:
    """Request ID set by CorrelationIdMiddleware, if any."""
    return getattr(request.state, "request_id", None)


class CorrelationIdMiddleware(BaseHTTPMiddleware):
    """Tag each request with an ID and log one line when it completes."""

    async def dispatch(self, request: Request, call_next):
        request_id = resolve_request_id(request.headers.get(REQUEST_ID_HEADER))
        request.state.request_id = request_id

        started = time.perf_counter()
        response = await call_next(request)
        latency_ms = (time.perf_counter() - started) * 1000

        response.headers[REQUEST_ID_HEADER] = request_id

        level = logging.WARNING if response.status_code >= 500 else logging.INFO
        access_logger.log(
            level,
            f"request_id={request_id} method={request.method} path={request.url.path} "
            f"status={response.status_code} latency_ms={latency_ms:.1f}",
        )
        return response
