"""Maps engine errors onto HTTP responses.

Registered once in main.py; routers let EngineError subclasses
propagate instead of translating them.
"""

from __future__ import annotations

import logging

from fastapi import Request
from fastapi.responses import JSONResponse

from lms_core.exceptions import (
    ConflictError,
    EngineError,
    EnrollmentAccessDeniedError,
    InvalidStateError,
    NotFoundError,
    StorageError,
)

logger = logging.getLogger(__name__)

_STATUS_BY_FAMILY: tuple[tuple[type[EngineError], int], ...] = (
    (NotFoundError, 404),
    (EnrollmentAccessDeniedError, 403),
    (ConflictError, 409),
    (InvalidStateError, 422),
    (StorageError, 503),
)


def status_for(exc: EngineError) -> int:
    for family, code in _STATUS_BY_FAMILY:
        if isinstance(exc, family):
            return code
    return 500


async def engine_error_handler(request: Request, exc: EngineError) -> JSONResponse:
    code = status_for(exc)
    if code >= 500:
        logger.error(
            "%s on %s %s: %s",
            type(exc).__name__,
            request.method,
            request.url.path,
            exc,
        )
        detail = "Service temporarily unavailable" if code == 503 else "Internal error"
    else:
        logger.info("%s -> %d: %s", type(exc).__name__, code, exc)
        detail = str(exc)
    return JSONResponse(status_code=code, content={"detail": detail})
