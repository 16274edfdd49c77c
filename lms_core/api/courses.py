"""Instructor views over a course's enrollments."""

from __future__ import annotations

from typing import Annotated
from uuid import UUID

from fastapi import APIRouter, Depends
from pydantic import BaseModel

from lms_core.api.dependencies import Store, require_any_role
from lms_core.api.schemas import (
    CertificateOut,
    EnrollmentOut,
    LessonProgressOut,
    certificate_out,
    enrollment_out,
    lesson_progress_out,
)
from lms_core.models.principal import Principal
from lms_core.services import enrollment_service

router = APIRouter(prefix="/v1/courses", tags=["courses"])

_require_staff = require_any_role({"instructor", "admin"})


class RosterEntryOut(BaseModel):
    enrollment: EnrollmentOut
    lessons: list[LessonProgressOut]
    certificate: CertificateOut | None = None


class CourseAnalyticsOut(BaseModel):
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


@router.get("/{course_id}/enrollments", response_model=list[RosterEntryOut])
async def course_enrollments(
    course_id: UUID,
    principal: Annotated[Principal, Depends(_require_staff)],
    store: Store,
) -> list[RosterEntryOut]:
    roster = await enrollment_service.course_roster(store, course_id)
    return [
        RosterEntryOut(
            enrollment=enrollment_out(entry.enrollment),
            lessons=[lesson_progress_out(p) for p in entry.lessons],
            certificate=certificate_out(entry.certificate) if entry.certificate else None,
        )
        for entry in roster
    ]


@router.get("/{course_id}/analytics", response_model=CourseAnalyticsOut)
async def course_analytics(
    course_id: UUID,
    principal: Annotated[Principal, Depends(_require_staff)],
    store: Store,
) -> CourseAnalyticsOut:
    analytics = await enrollment_service.course_analytics(store, course_id)
    return CourseAnalyticsOut(
        total_enrollments=analytics.total_enrollments,
        completed_count=analytics.completed_count,
        in_progress_count=analytics.in_progress_count,
        not_started_count=analytics.not_started_count,
        certificate_count=analytics.certificate_count,
        avg_progress=analytics.avg_progress,
        completion_rate=analytics.completion_rate,
        recent_enrollments=analytics.recent_enrollments,
        total_lessons=analytics.total_lessons,
        total_quizzes=analytics.total_quizzes,
    )
