from __future__ import annotations

import logging
from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager

from fastapi import FastAPI

from lms_core.api.certificates import router as certificates_router
from lms_core.api.courses import router as courses_router
from lms_core.api.enrollments import router as enrollments_router
from lms_core.api.errors import engine_error_handler
from lms_core.api.health import router as health_router
from lms_core.api.metrics_endpoint import router as metrics_router
from lms_core.api.quizzes import router as quizzes_router
from lms_core.core.config import SETTINGS
from lms_core.core.logging import setup_logging
from lms_core.db.engine import lifespan_db
from lms_core.db.redis import lifespan_redis
from lms_core.exceptions import EngineError
from lms_core.middleware.metrics import MetricsMiddleware
from lms_core.middleware.request_context import RequestContextMiddleware

# Configure logging before anything else runs.
setup_logging(SETTINGS.log_level, json_format=SETTINGS.log_json)

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(_app: FastAPI) -> AsyncGenerator[None, None]:
    # Nested so teardown runs in reverse order even if one side fails.
    async with lifespan_db():
        async with lifespan_redis():
            yield


app = FastAPI(
    title="lms-core",
    lifespan=lifespan,
    docs_url="/docs" if SETTINGS.is_dev else None,
    redoc_url="/redoc" if SETTINGS.is_dev else None,
)

app.add_exception_handler(EngineError, engine_error_handler)  # type: ignore[arg-type]

# Last-added runs first: RequestContext (outermost) -> Metrics -> route.
app.add_middleware(MetricsMiddleware)
app.add_middleware(RequestContextMiddleware)

app.include_router(metrics_router)
app.include_router(health_router)
app.include_router(enrollments_router)
app.include_router(courses_router)
app.include_router(quizzes_router)
app.include_router(certificates_router)

logger.info(
    "lms-core started  env=%s log_level=%s port=%d store=%s docs=%s",
    SETTINGS.app_env,
    SETTINGS.log_level,
    SETTINGS.port,
    "postgres" if SETTINGS.database_url else "memory",
    "on" if SETTINGS.is_dev else "off",
)
