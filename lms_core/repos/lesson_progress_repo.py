"""Progress Store: per-lesson watch/completion rows for an enrollment.

Upsert rules shared by every implementation:
  - watched_seconds is last-write-wins (no monotonic check)
  - completed=False clears completed_at
  - completed=True stamps completed_at on the first completing write and
    keeps the original stamp on later ones
"""

from __future__ import annotations

from collections.abc import Iterable
from dataclasses import replace
from typing import Protocol
from uuid import UUID

from lms_core.models.enrollment import LessonProgress


class LessonProgressRepo(Protocol):
    async def seed(self, enrollment_id: UUID, lesson_ids: Iterable[UUID]) -> int: ...
    async def upsert(
        self,
        enrollment_id: UUID,
        lesson_id: UUID,
        *,
        watched_seconds: int,
        completed: bool,
        now: int,
    ) -> LessonProgress: ...
    async def get(self, enrollment_id: UUID, lesson_id: UUID) -> LessonProgress | None: ...
    async def count_completed(
        self, enrollment_id: UUID, among: Iterable[UUID] | None = None
    ) -> int: ...
    async def list_for_enrollment(self, enrollment_id: UUID) -> list[LessonProgress]: ...
    async def delete_for_enrollment(self, enrollment_id: UUID) -> int: ...


def apply_upsert(
    existing: LessonProgress | None,
    *,
    enrollment_id: UUID,
    lesson_id: UUID,
    watched_seconds: int,
    completed: bool,
    now: int,
) -> LessonProgress:
    """Return the row as it must look after an upsert."""
    row = existing or LessonProgress.new(enrollment_id=enrollment_id, lesson_id=lesson_id)
    if not completed:
        completed_at = None
    elif row.completed and row.completed_at is not None:
        completed_at = row.completed_at
    else:
        completed_at = now
    return replace(
        row,
        watched_seconds=watched_seconds,
        completed=completed,
        completed_at=completed_at,
    )


class InMemoryLessonProgressRepo:
    def __init__(self) -> None:
        self._store: dict[tuple[UUID, UUID], LessonProgress] = {}

    async def seed(self, enrollment_id: UUID, lesson_ids: Iterable[UUID]) -> int:
        created = 0
        for lesson_id in lesson_ids:
            key = (enrollment_id, lesson_id)
            if key in self._store:
                continue
            self._store[key] = LessonProgress.new(
                enrollment_id=enrollment_id, lesson_id=lesson_id
            )
            created += 1
        return created

    async def upsert(
        self,
        enrollment_id: UUID,
        lesson_id: UUID,
        *,
        watched_seconds: int,
        completed: bool,
        now: int,
    ) -> LessonProgress:
        key = (enrollment_id, lesson_id)
        updated = apply_upsert(
            self._store.get(key),
            enrollment_id=enrollment_id,
            lesson_id=lesson_id,
            watched_seconds=watched_seconds,
            completed=completed,
            now=now,
        )
        self._store[key] = updated
        return updated

    async def get(self, enrollment_id: UUID, lesson_id: UUID) -> LessonProgress | None:
        return self._store.get((enrollment_id, lesson_id))

    async def count_completed(
        self, enrollment_id: UUID, among: Iterable[UUID] | None = None
    ) -> int:
        allowed = set(among) if among is not None else None
        return sum(
            1
            for (eid, lid), row in self._store.items()
            if eid == enrollment_id
            and row.completed
            and (allowed is None or lid in allowed)
        )

    async def list_for_enrollment(self, enrollment_id: UUID) -> list[LessonProgress]:
        return [row for (eid, _), row in self._store.items() if eid == enrollment_id]

    async def delete_for_enrollment(self, enrollment_id: UUID) -> int:
        keys = [k for k in self._store if k[0] == enrollment_id]
        for k in keys:
            del self._store[k]
        return len(keys)

    def snapshot(self) -> dict[tuple[UUID, UUID], LessonProgress]:
        return dict(self._store)

    def restore(self, state: dict[tuple[UUID, UUID], LessonProgress]) -> None:
        self._store = dict(state)

    def clear(self) -> None:
        self._store.clear()
