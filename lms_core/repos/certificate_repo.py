from __future__ import annotations

from dataclasses import replace
from typing import Protocol
from uuid import UUID

from lms_core.exceptions import DuplicateCertificateError
from lms_core.models.certificate import Certificate


class CertificateRepo(Protocol):
    async def get(self, certificate_id: UUID) -> Certificate | None: ...
    async def get_by_user_and_course(
        self, user_id: str, course_id: UUID
    ) -> Certificate | None: ...
    async def get_by_code(self, unique_code: str) -> Certificate | None: ...
    async def add(self, certificate: Certificate) -> None: ...
    async def set_pdf_url(
        self, certificate_id: UUID, pdf_url: str
    ) -> Certificate | None: ...
    async def list_by_user(self, user_id: str) -> list[Certificate]: ...
    async def list_by_course(self, course_id: UUID) -> list[Certificate]: ...


class InMemoryCertificateRepo:
    def __init__(self) -> None:
        self._by_id: dict[UUID, Certificate] = {}

    async def get(self, certificate_id: UUID) -> Certificate | None:
        return self._by_id.get(certificate_id)

    async def get_by_user_and_course(
        self, user_id: str, course_id: UUID
    ) -> Certificate | None:
        for c in self._by_id.values():
            if c.user_id == user_id and c.course_id == course_id:
                return c
        return None

    async def get_by_code(self, unique_code: str) -> Certificate | None:
        for c in self._by_id.values():
            if c.unique_code == unique_code:
                return c
        return None

    async def add(self, certificate: Certificate) -> None:
        # Same two constraints the certificates table declares.
        for c in self._by_id.values():
            if c.user_id == certificate.user_id and c.course_id == certificate.course_id:
                raise DuplicateCertificateError("user_course")
            if c.unique_code == certificate.unique_code:
                raise DuplicateCertificateError("unique_code")
        self._by_id[certificate.id] = certificate

    async def set_pdf_url(
        self, certificate_id: UUID, pdf_url: str
    ) -> Certificate | None:
        c = self._by_id.get(certificate_id)
        if c is None:
            return None
        updated = replace(c, pdf_url=pdf_url)
        self._by_id[certificate_id] = updated
        return updated

    async def list_by_user(self, user_id: str) -> list[Certificate]:
        found = [c for c in self._by_id.values() if c.user_id == user_id]
        return sorted(found, key=lambda c: c.issued_at, reverse=True)

    async def list_by_course(self, course_id: UUID) -> list[Certificate]:
        return [c for c in self._by_id.values() if c.course_id == course_id]

    def snapshot(self) -> dict[UUID, Certificate]:
        return dict(self._by_id)

    def restore(self, state: dict[UUID, Certificate]) -> None:
        self._by_id = dict(state)

    def clear(self) -> None:
        self._by_id.clear()
