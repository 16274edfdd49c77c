from __future__ import annotations

from dataclasses import dataclass
from uuid import UUID, uuid4


@dataclass(frozen=True, slots=True)
class Course:
    """Catalog view of a course; authored elsewhere, read-only here."""

    id: UUID
    slug: str
    title: str
    is_published: bool = False
    level: str | None = None  # BEGINNER|INTERMEDIATE|ADVANCED
    instructor_id: str | None = None

    @staticmethod
    def new(
        *,
        slug: str,
        title: str,
        is_published: bool = False,
        level: str | None = None,
        instructor_id: str | None = None,
    ) -> Course:
        return Course(
            id=uuid4(),
            slug=slug,
            title=title,
            is_published=is_published,
            level=level,
            instructor_id=instructor_id,
        )


@dataclass(frozen=True, slots=True)
class CourseModule:
    id: UUID
    course_id: UUID
    position: int
    title: str

    @staticmethod
    def new(*, course_id: UUID, position: int, title: str) -> CourseModule:
        return CourseModule(
            id=uuid4(), course_id=course_id, position=position, title=title
        )


@dataclass(frozen=True, slots=True)
class Lesson:
    id: UUID
    module_id: UUID
    position: int
    title: str
    duration_seconds: int = 0

    @staticmethod
    def new(
        *, module_id: UUID, position: int, title: str, duration_seconds: int = 0
    ) -> Lesson:
        return Lesson(
            id=uuid4(),
            module_id=module_id,
            position=position,
            title=title,
            duration_seconds=duration_seconds,
        )
