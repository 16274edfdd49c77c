from __future__ import annotations

from dataclasses import dataclass
from typing import Literal
from uuid import UUID, uuid4

EnrollmentStatus = Literal["ACTIVE", "COMPLETED"]

ACTIVE: EnrollmentStatus = "ACTIVE"
COMPLETED: EnrollmentStatus = "COMPLETED"


@dataclass(frozen=True, slots=True)
class Enrollment:
    """One learner bound to one course.

    ``progress`` is the cached percentage of lessons completed, rewritten
    on every lesson-progress update.  Once ``status`` is COMPLETED it
    stays COMPLETED even if ``progress`` later drops below 100.
    """

    id: UUID
    user_id: str
    course_id: UUID
    enrolled_at: int
    status: EnrollmentStatus = ACTIVE
    progress: float = 0.0
    completed_at: int | None = None

    @property
    def is_completed(self) -> bool:
        return self.status == COMPLETED

    @staticmethod
    def new(*, user_id: str, course_id: UUID, enrolled_at: int) -> Enrollment:
        return Enrollment(
            id=uuid4(), user_id=user_id, course_id=course_id, enrolled_at=enrolled_at
        )


@dataclass(frozen=True, slots=True)
class LessonProgress:
    id: UUID
    enrollment_id: UUID
    lesson_id: UUID
    watched_seconds: int = 0
    completed: bool = False
    completed_at: int | None = None

    @staticmethod
    def new(*, enrollment_id: UUID, lesson_id: UUID) -> LessonProgress:
        return LessonProgress(
            id=uuid4(), enrollment_id=enrollment_id, lesson_id=lesson_id
        )
