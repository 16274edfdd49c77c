"""Enrollment lifecycle and instructor views.

Enrolling seeds one zeroed LessonProgress row per current lesson so the
completion denominator and the rows agree from the start.  Unenrolling
removes the enrollment and its lesson rows; quiz attempts and any
certificate already issued are kept.
"""

from __future__ import annotations

import datetime
import logging
from dataclasses import dataclass
from uuid import UUID

from lms_core.core.metrics import ENROLLMENTS_CREATED
from lms_core.exceptions import (
    CourseNotFoundError,
    CourseNotPublishedError,
    EnrollmentNotFoundError,
)
from lms_core.models.certificate import Certificate
from lms_core.models.enrollment import ACTIVE, Enrollment, LessonProgress
from lms_core.repos.store import EngineStore

logger = logging.getLogger(__name__)

_RECENT_WINDOW_SECONDS = 30 * 24 * 60 * 60


@dataclass(frozen=True, slots=True)
class EnrollmentDetail:
    enrollment: Enrollment
    lessons: tuple[LessonProgress, ...]
    certificate: Certificate | None = None


@dataclass(frozen=True, slots=True)
class CourseAnalytics:
    total_enrollments: int
    completed_count: int
    in_progress_count: int
    not_started_count: int
    certificate_count: int
    avg_progress: float
    completion_rate: float
    recent_enrollments: int
    total_lessons: int
    total_quizzes: int


def _now() -> int:
    return int(datetime.datetime.now(datetime.UTC).timestamp())


async def enroll(store: EngineStore, *, user_id: str, course_id: UUID) -> Enrollment:
    async with store.transaction():
        course = await store.catalog.get_course(course_id)
        if course is None:
            raise CourseNotFoundError()
        if not course.is_published:
            raise CourseNotPublishedError()

        enrollment = Enrollment.new(
            user_id=user_id, course_id=course_id, enrolled_at=_now()
        )
        await store.enrollments.add(enrollment)
        lesson_ids = await store.catalog.list_lesson_ids(course_id)
        seeded = await store.lesson_progress.seed(enrollment.id, lesson_ids)

    ENROLLMENTS_CREATED.inc()
    logger.info(
        "Enrolled user=%s with %d lesson rows",
        user_id,
        seeded,
        extra={"enrollment_id": str(enrollment.id), "course_id": str(course_id)},
    )
    return enrollment


async def unenroll(store: EngineStore, *, user_id: str, course_id: UUID) -> None:
    async with store.transaction():
        enrollment = await store.enrollments.get_by_user_and_course(user_id, course_id)
        if enrollment is None:
            raise EnrollmentNotFoundError()
        await store.lesson_progress.delete_for_enrollment(enrollment.id)
        await store.enrollments.delete(enrollment.id)

    logger.info(
        "Unenrolled user=%s",
        user_id,
        extra={"enrollment_id": str(enrollment.id), "course_id": str(course_id)},
    )


async def list_user_enrollments(store: EngineStore, user_id: str) -> list[Enrollment]:
    async with store.transaction():
        return await store.enrollments.list_by_user(user_id)


async def get_enrollment(
    store: EngineStore, *, user_id: str, course_id: UUID
) -> EnrollmentDetail:
    async with store.transaction():
        enrollment = await store.enrollments.get_by_user_and_course(user_id, course_id)
        if enrollment is None:
            raise EnrollmentNotFoundError()
        lessons = await store.lesson_progress.list_for_enrollment(enrollment.id)
        certificate = await store.certificates.get_by_user_and_course(
            user_id, course_id
        )
    return EnrollmentDetail(
        enrollment=enrollment, lessons=tuple(lessons), certificate=certificate
    )


async def is_enrolled(store: EngineStore, *, user_id: str, course_id: UUID) -> bool:
    async with store.transaction():
        found = await store.enrollments.get_by_user_and_course(user_id, course_id)
    return found is not None


async def get_lesson_progress(
    store: EngineStore, *, user_id: str, enrollment_id: UUID, lesson_id: UUID
) -> LessonProgress | None:
    async with store.transaction():
        enrollment = await store.enrollments.get(enrollment_id)
        if enrollment is None or enrollment.user_id != user_id:
            raise EnrollmentNotFoundError()
        return await store.lesson_progress.get(enrollment_id, lesson_id)


async def course_roster(
    store: EngineStore, course_id: UUID
) -> list[EnrollmentDetail]:
    """Every enrollment in a course with lesson rows and certificate."""
    async with store.transaction():
        if await store.catalog.get_course(course_id) is None:
            raise CourseNotFoundError()
        enrollments = await store.enrollments.list_by_course(course_id)
        certificates = {
            c.user_id: c for c in await store.certificates.list_by_course(course_id)
        }
        roster = []
        for enrollment in enrollments:
            lessons = await store.lesson_progress.list_for_enrollment(enrollment.id)
            roster.append(
                EnrollmentDetail(
                    enrollment=enrollment,
                    lessons=tuple(lessons),
                    certificate=certificates.get(enrollment.user_id),
                )
            )
    return roster


async def course_analytics(
    store: EngineStore, course_id: UUID, *, now: int | None = None
) -> CourseAnalytics:
    now = now or _now()
    async with store.transaction():
        if await store.catalog.get_course(course_id) is None:
            raise CourseNotFoundError()
        enrollments = await store.enrollments.list_by_course(course_id)
        certificate_count = len(await store.certificates.list_by_course(course_id))
        total_lessons = len(await store.catalog.list_lesson_ids(course_id))
        total_quizzes = await store.catalog.count_quizzes(course_id)

    total = len(enrollments)
    completed = sum(1 for e in enrollments if e.is_completed)
    active = [e for e in enrollments if e.status == ACTIVE]
    avg_progress = sum(e.progress for e in enrollments) / total if total else 0.0
    completion_rate = completed / total * 100 if total else 0.0
    cutoff = now - _RECENT_WINDOW_SECONDS

    return CourseAnalytics(
        total_enrollments=total,
        completed_count=completed,
        in_progress_count=sum(1 for e in active if e.progress > 0),
        not_started_count=sum(1 for e in active if e.progress == 0),
        certificate_count=certificate_count,
        avg_progress=round(avg_progress, 2),
        completion_rate=round(completion_rate, 2),
        recent_enrollments=sum(1 for e in enrollments if e.enrolled_at >= cutoff),
        total_lessons=total_lessons,
        total_quizzes=total_quizzes,
    )
