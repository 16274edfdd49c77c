"""Certificate notification collaborator.

Runs after the issuing transaction has committed.  Delivery is
best-effort: a failure is logged and never undoes or fails issuance.
"""

from __future__ import annotations

import logging

from lms_core.core.metrics import QUEUE_DEPTH
from lms_core.models.certificate import Certificate
from lms_core.services.task_queue import CERTIFICATE_ISSUED_QUEUE, TaskQueue, task_queue

logger = logging.getLogger(__name__)


class CertificateNotifier:
    def __init__(self, queue: TaskQueue | None = None) -> None:
        self._queue = queue

    async def certificate_issued(self, certificate: Certificate) -> None:
        queue = self._queue or task_queue
        try:
            task = await queue.enqueue(
                CERTIFICATE_ISSUED_QUEUE,
                {
                    "certificate_id": str(certificate.id),
                    "user_id": certificate.user_id,
                    "course_id": str(certificate.course_id),
                    "unique_code": certificate.unique_code,
                    "issued_at": certificate.issued_at,
                },
            )
            QUEUE_DEPTH.labels(queue_name=CERTIFICATE_ISSUED_QUEUE).set(
                await queue.queue_length(CERTIFICATE_ISSUED_QUEUE)
            )
        except Exception:
            logger.exception(
                "Failed to enqueue certificate notification",
                extra={"certificate_code": certificate.unique_code},
            )
            return
        logger.debug("Enqueued certificate notification task=%s", task.id)


notifier = CertificateNotifier()
