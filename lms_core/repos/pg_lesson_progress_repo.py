"""PostgreSQL implementation of LessonProgressRepo."""

from __future__ import annotations

from collections.abc import Iterable
from uuid import UUID

from sqlalchemy import delete, func, select
from sqlalchemy.dialects.postgresql import insert
from sqlalchemy.ext.asyncio import AsyncSession

from lms_core.db.tables import LessonProgressRow
from lms_core.models.enrollment import LessonProgress
from lms_core.repos.lesson_progress_repo import apply_upsert


class PgLessonProgressRepo:
    """Satisfies the LessonProgressRepo Protocol using PostgreSQL."""

    def __init__(self, session: AsyncSession) -> None:
        self._session = session

    async def seed(self, enrollment_id: UUID, lesson_ids: Iterable[UUID]) -> int:
        values = [
            {
                "id": LessonProgress.new(enrollment_id=enrollment_id, lesson_id=lid).id,
                "enrollment_id": enrollment_id,
                "lesson_id": lid,
                "watched_seconds": 0,
                "completed": False,
            }
            for lid in lesson_ids
        ]
        if not values:
            return 0
        stmt = (
            insert(LessonProgressRow)
            .values(values)
            .on_conflict_do_nothing(
                index_elements=[
                    LessonProgressRow.enrollment_id,
                    LessonProgressRow.lesson_id,
                ]
            )
        )
        result = await self._session.execute(stmt)
        return result.rowcount

    async def upsert(
        self,
        enrollment_id: UUID,
        lesson_id: UUID,
        *,
        watched_seconds: int,
        completed: bool,
        now: int,
    ) -> LessonProgress:
        existing = await self._get(enrollment_id, lesson_id, for_update=True)
        updated = apply_upsert(
            existing,
            enrollment_id=enrollment_id,
            lesson_id=lesson_id,
            watched_seconds=watched_seconds,
            completed=completed,
            now=now,
        )
        stmt = insert(LessonProgressRow).values(
            id=updated.id,
            enrollment_id=enrollment_id,
            lesson_id=lesson_id,
            watched_seconds=updated.watched_seconds,
            completed=updated.completed,
            completed_at=updated.completed_at,
        )
        stmt = stmt.on_conflict_do_update(
            index_elements=[LessonProgressRow.enrollment_id, LessonProgressRow.lesson_id],
            set_={
                "watched_seconds": stmt.excluded.watched_seconds,
                "completed": stmt.excluded.completed,
                "completed_at": stmt.excluded.completed_at,
            },
        )
        await self._session.execute(stmt)
        return updated

    async def get(self, enrollment_id: UUID, lesson_id: UUID) -> LessonProgress | None:
        return await self._get(enrollment_id, lesson_id)

    async def count_completed(
        self, enrollment_id: UUID, among: Iterable[UUID] | None = None
    ) -> int:
        stmt = select(func.count()).where(
            LessonProgressRow.enrollment_id == enrollment_id,
            LessonProgressRow.completed.is_(True),
        )
        if among is not None:
            stmt = stmt.where(LessonProgressRow.lesson_id.in_(list(among)))
        return (await self._session.execute(stmt)).scalar_one()

    async def list_for_enrollment(self, enrollment_id: UUID) -> list[LessonProgress]:
        stmt = select(LessonProgressRow).where(
            LessonProgressRow.enrollment_id == enrollment_id
        )
        rows = (await self._session.execute(stmt)).scalars().all()
        return [_row_to_progress(r) for r in rows]

    async def delete_for_enrollment(self, enrollment_id: UUID) -> int:
        result = await self._session.execute(
            delete(LessonProgressRow).where(
                LessonProgressRow.enrollment_id == enrollment_id
            )
        )
        return result.rowcount

    async def _get(
        self, enrollment_id: UUID, lesson_id: UUID, *, for_update: bool = False
    ) -> LessonProgress | None:
        stmt = select(LessonProgressRow).where(
            LessonProgressRow.enrollment_id == enrollment_id,
            LessonProgressRow.lesson_id == lesson_id,
        )
        if for_update:
            stmt = stmt.with_for_update()
        row = (await self._session.execute(stmt)).scalar_one_or_none()
        if row is None:
            return None
        return _row_to_progress(row)


def _row_to_progress(row: LessonProgressRow) -> LessonProgress:
    return LessonProgress(
        id=row.id,
        enrollment_id=row.enrollment_id,
        lesson_id=row.lesson_id,
        watched_seconds=row.watched_seconds,
        completed=row.completed,
        completed_at=row.completed_at,
    )
