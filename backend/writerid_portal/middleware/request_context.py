"""
WriterID Portal Backend — Request Context Middleware
=====================================================

What:  Assigns every request a correlation ID and writes one access-log line
       per request.
How:   The ID comes from the client's X-Request-ID header when present
       (the executor forwards it on callbacks), otherwise a short UUID. It is
       stored in a ContextVar so RequestIDLogFilter can stamp it on every log
       record emitted while the request is being handled, and echoed back in
       the X-Request-ID response header.

Access line example:
    2025-07-04T10:12:01 [INFO] writerid_portal.access [a1b2c3d4]: POST /api/v1/tasks 201 812.4ms from 10.0.0.7
"""

import logging
import time
import uuid
from contextvars import ContextVar

from starlette.middleware.base import BaseHTTPMiddleware, RequestResponseEndpoint
from starlette.requests import Request
from starlette.responses import Response

request_id_var: ContextVar[str] = ContextVar("request_id", default="")

access_logger = logging.getLogger("writerid_portal.access")

# Probes run every few seconds; logging them buries real traffic
UNLOGGED_PATHS = {"/health"}


class RequestIDLogFilter(logging.Filter):
    """Adds `request_id` to every record so formatters can reference it."""

    def filter(self, record: logging.LogRecord) -> bool:
        if not hasattr(record, "request_id"):
            record.request_id = request_id_var.get("") or "-"
        return True


class RequestContextMiddleware(BaseHTTPMiddleware):

    async def dispatch(
        self, request: Request, call_next: RequestResponseEndpoint
    ) -> Response:
        rid = request.headers.get("X-Request-ID") or uuid.uuid4().hex[:8]
        # Left set after the call so the outer catch-all error handler still sees it
        request_id_var.set(rid)
        request.state.request_id = rid
        start_time = time.perf_counter()

        response = await call_next(request)
        duration_ms = (time.perf_counter() - start_time) * 1000

        response.headers["X-Request-ID"] = rid

        path = request.url.path
        if path not in UNLOGGED_PATHS:
            status = response.status_code
            if status >= 500:
                level = logging.ERROR
            elif status >= 400:
                level = logging.WARNING
            else:
                level = logging.INFO
            client_ip = request.client.host if request.client else "unknown"
            access_logger.log(
                level,
                "%s %s %d %.1fms from %s",
                request.method,
                path,
                status,
                duration_ms,
                client_ip,
                extra={"request_id": rid},
            )

        return response
