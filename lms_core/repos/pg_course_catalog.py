"""PostgreSQL implementation of CourseCatalog (read-only)."""

from __future__ import annotations

from uuid import UUID

from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from lms_core.db.tables import (
    CourseModuleRow,
    CourseRow,
    LessonRow,
    QuizQuestionRow,
    QuizRow,
)
from lms_core.models.course import Course
from lms_core.models.quiz import Quiz, QuizOption, QuizQuestion


class PgCourseCatalog:
    """Satisfies the CourseCatalog Protocol using PostgreSQL."""

    def __init__(self, session: AsyncSession) -> None:
        self._session = session

    async def get_course(self, course_id: UUID) -> Course | None:
        stmt = select(CourseRow).where(CourseRow.id == course_id)
        row = (await self._session.execute(stmt)).scalar_one_or_none()
        if row is None:
            return None
        return Course(
            id=row.id,
            slug=row.slug,
            title=row.title,
            is_published=row.is_published,
            level=row.level,
            instructor_id=row.instructor_id,
        )

    async def list_lesson_ids(self, course_id: UUID) -> list[UUID]:
        stmt = (
            select(LessonRow.id)
            .join(CourseModuleRow, LessonRow.module_id == CourseModuleRow.id)
            .where(CourseModuleRow.course_id == course_id)
            .order_by(CourseModuleRow.position, LessonRow.position)
        )
        return list((await self._session.execute(stmt)).scalars().all())

    async def get_quiz(self, quiz_id: UUID) -> Quiz | None:
        stmt = (
            select(QuizRow, CourseModuleRow.course_id)
            .join(CourseModuleRow, QuizRow.module_id == CourseModuleRow.id)
            .where(QuizRow.id == quiz_id)
        )
        found = (await self._session.execute(stmt)).one_or_none()
        if found is None:
            return None
        quiz_row, course_id = found

        q_stmt = (
            select(QuizQuestionRow)
            .where(QuizQuestionRow.quiz_id == quiz_id)
            .order_by(QuizQuestionRow.position)
        )
        question_rows = (await self._session.execute(q_stmt)).scalars().all()

        # Rows are trusted as authored; validation happens at authoring time.
        return Quiz(
            id=quiz_row.id,
            module_id=quiz_row.module_id,
            course_id=course_id,
            title=quiz_row.title,
            passing_score=quiz_row.passing_score,
            questions=tuple(_row_to_question(r) for r in question_rows),
            time_limit=quiz_row.time_limit,
            description=quiz_row.description,
        )

    async def count_quizzes(self, course_id: UUID) -> int:
        stmt = (
            select(func.count())
            .select_from(QuizRow)
            .join(CourseModuleRow, QuizRow.module_id == CourseModuleRow.id)
            .where(CourseModuleRow.course_id == course_id)
        )
        return (await self._session.execute(stmt)).scalar_one()


def _row_to_question(row: QuizQuestionRow) -> QuizQuestion:
    return QuizQuestion(
        id=row.id,
        quiz_id=row.quiz_id,
        type=row.type,  # type: ignore[arg-type]
        text=row.text,
        points=row.points,
        position=row.position,
        options=tuple(
            QuizOption(
                id=str(o["id"]),
                text=o.get("text", ""),
                is_correct=bool(o.get("is_correct", False)),
            )
            for o in row.options
        ),
        explanation=row.explanation,
    )
