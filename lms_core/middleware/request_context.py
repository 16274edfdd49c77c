"""Request context middleware: one request ID per request.

The ID comes from the caller's X-Request-ID header when present (so a
gateway's ID carries through) or is generated.  It lives in a
ContextVar, not a thread-local, because concurrent requests share the
event loop thread; a root-logger filter copies it onto every LogRecord
so enrollment, quiz and certificate log lines can be correlated.
"""

from __future__ import annotations

import logging
import time
import uuid
from contextvars import ContextVar

from starlette.middleware.base import BaseHTTPMiddleware, RequestResponseEndpoint
from starlette.requests import Request
from starlette.responses import Response

logger = logging.getLogger(__name__)

request_id_var: ContextVar[str] = ContextVar("request_id", default="-")

_MAX_REQUEST_ID_LEN = 128


class _RequestContextFilter(logging.Filter):
    """Adds request_id to every record (filters can add fields; formatters can't)."""

    def filter(self, record: logging.LogRecord) -> bool:
        if not hasattr(record, "request_id"):
            record.request_id = request_id_var.get("-")  # type: ignore[attr-defined]
        return True


def install_request_context_filter() -> None:
    root_logger = logging.getLogger()
    if not any(isinstance(f, _RequestContextFilter) for f in root_logger.filters):
        root_logger.addFilter(_RequestContextFilter())


install_request_context_filter()


class RequestContextMiddleware(BaseHTTPMiddleware):
    """Assigns the request ID, times the request and logs one summary line."""

    async def dispatch(
        self, request: Request, call_next: RequestResponseEndpoint
    ) -> Response:
        incoming = request.headers.get("x-request-id", "")
        req_id = incoming[:_MAX_REQUEST_ID_LEN] or str(uuid.uuid4())
        token = request_id_var.set(req_id)

        start = time.monotonic()
        try:
            response = await call_next(request)
        finally:
            request_id_var.reset(token)
        duration_ms = round((time.monotonic() - start) * 1000, 1)

        logger.info(
            "%s %s -> %d (%.1fms)",
            request.method,
            request.url.path,
            response.status_code,
            duration_ms,
            extra={
                "request_id": req_id,
                "method": request.method,
                "path": request.url.path,
                "status_code": response.status_code,
                "duration_ms": duration_ms,
            },
        )

        response.headers["X-Request-ID"] = req_id
        return response
