"""Enrollment state machine: ACTIVE -> COMPLETED, never back.

``progress`` is recomputed from lesson completion on every lesson
update.  Reaching 100 while ACTIVE latches COMPLETED and stamps
completed_at; dropping below 100 afterwards only changes the displayed
progress.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, replace
from uuid import UUID

from lms_core.core.metrics import ENROLLMENT_COMPLETIONS
from lms_core.models.enrollment import ACTIVE, COMPLETED, Enrollment
from lms_core.repos.store import EngineStore

logger = logging.getLogger(__name__)


@dataclass(frozen=True, slots=True)
class Transition:
    enrollment: Enrollment
    newly_completed: bool


def compute_progress(completed: int, total: int) -> float:
    if total <= 0:
        return 0.0
    return min(100.0, 100.0 * completed / total)


def apply_progress(enrollment: Enrollment, progress: float, now: int) -> Transition:
    if progress >= 100.0 and enrollment.status == ACTIVE:
        updated = replace(
            enrollment, progress=100.0, status=COMPLETED, completed_at=now
        )
        return Transition(enrollment=updated, newly_completed=True)
    return Transition(
        enrollment=replace(enrollment, progress=progress), newly_completed=False
    )


async def recompute(
    store: EngineStore,
    enrollment: Enrollment,
    now: int,
    lesson_ids: list[UUID] | None = None,
) -> Transition:
    """Recompute and persist progress.  Call inside a store transaction.

    Only completed rows for the course's current lessons count, so a
    lesson removed after it was completed no longer inflates progress.
    """
    if lesson_ids is None:
        lesson_ids = await store.catalog.list_lesson_ids(enrollment.course_id)
    completed = await store.lesson_progress.count_completed(
        enrollment.id, among=lesson_ids
    )
    progress = compute_progress(completed, len(lesson_ids))
    transition = apply_progress(enrollment, progress, now)
    await store.enrollments.save(transition.enrollment)

    if transition.newly_completed:
        ENROLLMENT_COMPLETIONS.inc()
        logger.info(
            "Enrollment completed",
            extra={
                "enrollment_id": str(enrollment.id),
                "course_id": str(enrollment.course_id),
            },
        )
    elif enrollment.is_completed and progress < 100.0:
        logger.info(
            "Completed enrollment %s dropped to %.2f%%; status kept",
            enrollment.id,
            progress,
        )
    return transition
