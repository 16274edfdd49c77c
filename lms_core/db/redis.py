"""Redis connection management.

Redis backs two things here: the enrollment-view cache and the
background task queue that carries certificate notifications.  Both have
in-memory fallbacks, so REDIS_URL is optional; when it is unset
``redis_pool`` is None and consumers pick the in-memory implementation.
"""

from __future__ import annotations

import logging
from contextlib import asynccontextmanager

import redis.asyncio as aioredis

from lms_core.core.config import SETTINGS

logger = logging.getLogger(__name__)

if SETTINGS.redis_url:
    redis_pool: aioredis.Redis | None = aioredis.from_url(  # type: ignore[type-arg]
        SETTINGS.redis_url,
        decode_responses=True,
        max_connections=20,
    )
else:
    redis_pool = None


@asynccontextmanager
async def lifespan_redis():
    """Verify Redis on startup and close the pool on shutdown.

    An unreachable Redis is logged but does not stop the app: failed
    certificate notifications are logged and dropped, and /health
    reports the degradation.
    """
    if redis_pool is None:
        logger.info("No REDIS_URL configured; cache and task queue run in memory")
        yield
        return

    try:
        await redis_pool.ping()  # type: ignore[misc]
        logger.info("Redis connected: %s", SETTINGS.redis_url)
    except Exception:
        logger.exception("Redis connection failed on startup")
        yield
        return

    yield

    await redis_pool.aclose()
    logger.info("Redis connection pool closed")
