"""Background worker process.

RUN:  python -m lms_core.worker

Consumes tasks enqueued after commit by the API process.  Same image as
the API, different command:
  api:    uvicorn lms_core.main:app --host 0.0.0.0 --port 8000
  worker: python -m lms_core.worker

A handler failure is logged and the task is dropped; delivery is
at-most-once (see services/task_queue.py).
"""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Callable, Coroutine
from typing import Any

from lms_core.core.config import SETTINGS
from lms_core.core.logging import setup_logging
from lms_core.core.metrics import QUEUE_DEPTH
from lms_core.services.task_queue import (
    CERTIFICATE_ISSUED_QUEUE,
    InMemoryTaskQueue,
    TaskQueue,
    task_queue,
)

TaskHandler = Callable[[dict], Coroutine[Any, Any, None]]

logger = logging.getLogger("lms_core.worker")

HANDLERS: dict[str, TaskHandler] = {}


def register_handler(queue: str):
    """Decorator: register a coroutine as the handler for a queue."""

    def decorator(func):
        HANDLERS[queue] = func
        return func

    return decorator


@register_handler(CERTIFICATE_ISSUED_QUEUE)
async def handle_certificate_issued(payload: dict) -> None:
    """Tell the learner their certificate is ready.

    Payload: certificate_id, user_id, course_id, unique_code, issued_at.
    Delivery (email, in-app) belongs to the notification service; this
    handler validates the payload and hands it over via the log stream
    it tails.
    """
    missing = [
        k
        for k in ("certificate_id", "user_id", "course_id", "unique_code")
        if not payload.get(k)
    ]
    if missing:
        raise ValueError(f"certificate_issued payload missing {', '.join(missing)}")

    logger.info(
        "Certificate ready for user=%s",
        payload["user_id"],
        extra={
            "course_id": payload["course_id"],
            "certificate_code": payload["unique_code"],
        },
    )


async def process_one(queue: TaskQueue, queue_name: str, timeout: int = 1) -> bool:
    """Dequeue and handle at most one task.  Returns True if one was handled."""
    task = await queue.dequeue(queue_name, timeout=timeout)
    if task is None:
        return False

    handler = HANDLERS[queue_name]
    try:
        await handler(task.payload)
        logger.info("Task %s on [%s] completed", task.id, queue_name)
    except Exception:
        logger.exception("Task %s on [%s] failed", task.id, queue_name)
    QUEUE_DEPTH.labels(queue_name=queue_name).set(await queue.queue_length(queue_name))
    return True


async def run_worker(queue: TaskQueue = task_queue) -> None:
    """Poll all registered queues forever, round-robin."""
    queues = list(HANDLERS.keys())
    logger.info("Worker started; listening on queues: %s", queues)

    while True:
        handled = False
        for queue_name in queues:
            handled = await process_one(queue, queue_name) or handled
        if not handled and isinstance(queue, InMemoryTaskQueue):
            # In-memory dequeue does not block.
            await asyncio.sleep(1)


if __name__ == "__main__":
    setup_logging(SETTINGS.log_level, json_format=SETTINGS.log_json)
    asyncio.run(run_worker())
