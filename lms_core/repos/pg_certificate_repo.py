"""PostgreSQL implementation of CertificateRepo."""

from __future__ import annotations

from uuid import UUID

from sqlalchemy import select, update
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from lms_core.db.tables import CertificateRow
from lms_core.exceptions import DuplicateCertificateError
from lms_core.models.certificate import Certificate


class PgCertificateRepo:
    """Satisfies the CertificateRepo Protocol using PostgreSQL."""

    def __init__(self, session: AsyncSession) -> None:
        self._session = session

    async def get(self, certificate_id: UUID) -> Certificate | None:
        stmt = select(CertificateRow).where(CertificateRow.id == certificate_id)
        row = (await self._session.execute(stmt)).scalar_one_or_none()
        if row is None:
            return None
        return _row_to_certificate(row)

    async def get_by_user_and_course(
        self, user_id: str, course_id: UUID
    ) -> Certificate | None:
        stmt = select(CertificateRow).where(
            CertificateRow.user_id == user_id, CertificateRow.course_id == course_id
        )
        row = (await self._session.execute(stmt)).scalar_one_or_none()
        if row is None:
            return None
        return _row_to_certificate(row)

    async def get_by_code(self, unique_code: str) -> Certificate | None:
        stmt = select(CertificateRow).where(CertificateRow.unique_code == unique_code)
        row = (await self._session.execute(stmt)).scalar_one_or_none()
        if row is None:
            return None
        return _row_to_certificate(row)

    async def add(self, certificate: Certificate) -> None:
        row = CertificateRow(
            id=certificate.id,
            user_id=certificate.user_id,
            course_id=certificate.course_id,
            unique_code=certificate.unique_code,
            issued_at=certificate.issued_at,
            pdf_url=certificate.pdf_url,
        )
        try:
            # Savepoint: a constraint violation must not poison the outer
            # transaction that also holds the enrollment update.
            async with self._session.begin_nested():
                self._session.add(row)
                await self._session.flush()
        except IntegrityError as exc:
            taken = await self.get_by_user_and_course(
                certificate.user_id, certificate.course_id
            )
            field = "user_course" if taken is not None else "unique_code"
            raise DuplicateCertificateError(field) from exc

    async def set_pdf_url(
        self, certificate_id: UUID, pdf_url: str
    ) -> Certificate | None:
        stmt = (
            update(CertificateRow)
            .where(CertificateRow.id == certificate_id)
            .values(pdf_url=pdf_url)
        )
        result = await self._session.execute(stmt)
        if result.rowcount == 0:
            return None
        return await self.get(certificate_id)

    async def list_by_user(self, user_id: str) -> list[Certificate]:
        stmt = (
            select(CertificateRow)
            .where(CertificateRow.user_id == user_id)
            .order_by(CertificateRow.issued_at.desc())
        )
        rows = (await self._session.execute(stmt)).scalars().all()
        return [_row_to_certificate(r) for r in rows]

    async def list_by_course(self, course_id: UUID) -> list[Certificate]:
        stmt = select(CertificateRow).where(CertificateRow.course_id == course_id)
        rows = (await self._session.execute(stmt)).scalars().all()
        return [_row_to_certificate(r) for r in rows]


def _row_to_certificate(row: CertificateRow) -> Certificate:
    return Certificate(
        id=row.id,
        user_id=row.user_id,
        course_id=row.course_id,
        unique_code=row.unique_code,
        issued_at=row.issued_at,
        pdf_url=row.pdf_url,
    )
