"""Learner enrollment and lesson progress endpoints.

GET /v1/enrollments/course/{course_id} is read-through cached under
enrollment:{user_id}:{course_id}.  Writes that change the view
(progress update, unenroll) delete the entry after their transaction
commits.
"""

from __future__ import annotations

import logging
from uuid import UUID

from fastapi import APIRouter, Response, status
from pydantic import BaseModel

from lms_core.api.dependencies import CurrentUser, Store
from lms_core.api.schemas import (
    CertificateOut,
    EnrollmentOut,
    LessonProgressOut,
    certificate_out,
    enrollment_out,
    lesson_progress_out,
)
from lms_core.core.config import SETTINGS
from lms_core.core.metrics import CACHE_OPERATIONS
from lms_core.services import assessment_orchestrator, enrollment_service
from lms_core.services.cache import cache_service, enrollment_key

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/v1/enrollments", tags=["enrollments"])


class EnrollmentDetailOut(BaseModel):
    enrollment: EnrollmentOut
    lessons: list[LessonProgressOut]
    certificate: CertificateOut | None = None


class EnrolledOut(BaseModel):
    enrolled: bool


class ProgressIn(BaseModel):
    watched_seconds: int
    completed: bool = False


class ProgressUpdateOut(BaseModel):
    lesson_progress: LessonProgressOut
    enrollment: EnrollmentOut
    certificate: CertificateOut | None = None


@router.post(
    "/course/{course_id}",
    response_model=EnrollmentOut,
    status_code=status.HTTP_201_CREATED,
)
async def enroll(course_id: UUID, principal: CurrentUser, store: Store) -> EnrollmentOut:
    enrollment = await enrollment_service.enroll(
        store, user_id=principal.user_id, course_id=course_id
    )
    await cache_service.delete(enrollment_key(principal.user_id, course_id))
    return enrollment_out(enrollment)


@router.get("", response_model=list[EnrollmentOut])
async def list_my_enrollments(principal: CurrentUser, store: Store) -> list[EnrollmentOut]:
    enrollments = await enrollment_service.list_user_enrollments(
        store, principal.user_id
    )
    return [enrollment_out(e) for e in enrollments]


@router.get("/course/{course_id}", response_model=EnrollmentDetailOut)
async def get_my_enrollment(
    course_id: UUID, principal: CurrentUser, store: Store
) -> EnrollmentDetailOut:
    key = enrollment_key(principal.user_id, course_id)

    cached = await cache_service.get(key)
    if cached is not None:
        CACHE_OPERATIONS.labels(operation="hit").inc()
        return EnrollmentDetailOut.model_validate_json(cached)
    CACHE_OPERATIONS.labels(operation="miss").inc()

    detail = await enrollment_service.get_enrollment(
        store, user_id=principal.user_id, course_id=course_id
    )
    out = EnrollmentDetailOut(
        enrollment=enrollment_out(detail.enrollment),
        lessons=[lesson_progress_out(p) for p in detail.lessons],
        certificate=certificate_out(detail.certificate) if detail.certificate else None,
    )
    await cache_service.set(key, out.model_dump_json(), SETTINGS.enrollment_cache_ttl)
    return out


@router.get("/course/{course_id}/check", response_model=EnrolledOut)
async def check_enrollment(
    course_id: UUID, principal: CurrentUser, store: Store
) -> EnrolledOut:
    enrolled = await enrollment_service.is_enrolled(
        store, user_id=principal.user_id, course_id=course_id
    )
    return EnrolledOut(enrolled=enrolled)


@router.delete("/course/{course_id}", status_code=status.HTTP_204_NO_CONTENT)
async def unenroll(course_id: UUID, principal: CurrentUser, store: Store) -> Response:
    await enrollment_service.unenroll(
        store, user_id=principal.user_id, course_id=course_id
    )
    await cache_service.delete(enrollment_key(principal.user_id, course_id))
    return Response(status_code=status.HTTP_204_NO_CONTENT)


@router.patch(
    "/{enrollment_id}/lessons/{lesson_id}/progress",
    response_model=ProgressUpdateOut,
)
async def update_lesson_progress(
    enrollment_id: UUID,
    lesson_id: UUID,
    body: ProgressIn,
    principal: CurrentUser,
    store: Store,
) -> ProgressUpdateOut:
    result = await assessment_orchestrator.record_lesson_progress(
        store,
        user_id=principal.user_id,
        enrollment_id=enrollment_id,
        lesson_id=lesson_id,
        watched_seconds=body.watched_seconds,
        completed=body.completed,
    )
    await cache_service.delete(
        enrollment_key(principal.user_id, result.enrollment.course_id)
    )
    return ProgressUpdateOut(
        lesson_progress=lesson_progress_out(result.lesson_progress),
        enrollment=enrollment_out(result.enrollment),
        certificate=certificate_out(result.certificate) if result.certificate else None,
    )


@router.get(
    "/{enrollment_id}/lessons/{lesson_id}/progress",
    response_model=LessonProgressOut | None,
)
async def get_lesson_progress(
    enrollment_id: UUID, lesson_id: UUID, principal: CurrentUser, store: Store
) -> LessonProgressOut | None:
    progress = await enrollment_service.get_lesson_progress(
        store,
        user_id=principal.user_id,
        enrollment_id=enrollment_id,
        lesson_id=lesson_id,
    )
    return lesson_progress_out(progress) if progress else None
