from __future__ import annotations

from typing import Protocol
from uuid import UUID

from lms_core.exceptions import AlreadyEnrolledError
from lms_core.models.enrollment import Enrollment


class EnrollmentRepo(Protocol):
    async def get(self, enrollment_id: UUID) -> Enrollment | None: ...
    async def get_for_update(self, enrollment_id: UUID) -> Enrollment | None: ...
    async def get_by_user_and_course(
        self, user_id: str, course_id: UUID
    ) -> Enrollment | None: ...
    async def add(self, enrollment: Enrollment) -> None: ...
    async def save(self, enrollment: Enrollment) -> None: ...
    async def delete(self, enrollment_id: UUID) -> bool: ...
    async def list_by_user(self, user_id: str) -> list[Enrollment]: ...
    async def list_by_course(self, course_id: UUID) -> list[Enrollment]: ...


class InMemoryEnrollmentRepo:
    def __init__(self) -> None:
        self._by_id: dict[UUID, Enrollment] = {}

    async def get(self, enrollment_id: UUID) -> Enrollment | None:
        return self._by_id.get(enrollment_id)

    async def get_for_update(self, enrollment_id: UUID) -> Enrollment | None:
        # Transactions on the in-memory store are already serialized.
        return self._by_id.get(enrollment_id)

    async def get_by_user_and_course(
        self, user_id: str, course_id: UUID
    ) -> Enrollment | None:
        for e in self._by_id.values():
            if e.user_id == user_id and e.course_id == course_id:
                return e
        return None

    async def add(self, enrollment: Enrollment) -> None:
        if await self.get_by_user_and_course(enrollment.user_id, enrollment.course_id):
            raise AlreadyEnrolledError()
        self._by_id[enrollment.id] = enrollment

    async def save(self, enrollment: Enrollment) -> None:
        if enrollment.id not in self._by_id:
            raise KeyError("enrollment not found")
        self._by_id[enrollment.id] = enrollment

    async def delete(self, enrollment_id: UUID) -> bool:
        return self._by_id.pop(enrollment_id, None) is not None

    async def list_by_user(self, user_id: str) -> list[Enrollment]:
        found = [e for e in self._by_id.values() if e.user_id == user_id]
        return sorted(found, key=lambda e: e.enrolled_at, reverse=True)

    async def list_by_course(self, course_id: UUID) -> list[Enrollment]:
        found = [e for e in self._by_id.values() if e.course_id == course_id]
        return sorted(found, key=lambda e: e.enrolled_at, reverse=True)

    def snapshot(self) -> dict[UUID, Enrollment]:
        return dict(self._by_id)

    def restore(self, state: dict[UUID, Enrollment]) -> None:
        self._by_id = dict(state)

    def clear(self) -> None:
        self._by_id.clear()
