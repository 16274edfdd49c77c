"""Certificate issuance and public verification.

At most one certificate exists per (user, course); the database
constraint is the arbiter.  ``issue_if_absent`` is safe to call any
number of times, concurrently, and always returns the one certificate.
"""

from __future__ import annotations

import datetime
import logging
import uuid
from dataclasses import dataclass
from uuid import UUID

from lms_core.core.metrics import CERTIFICATES
from lms_core.exceptions import (
    CertificateCodeCollisionError,
    CertificateNotFoundError,
    DuplicateCertificateError,
)
from lms_core.models.certificate import CODE_PREFIX, Certificate, VerificationResult
from lms_core.repos.certificate_repo import CertificateRepo
from lms_core.repos.store import EngineStore

logger = logging.getLogger(__name__)

_CODE_ATTEMPTS = 2  # first try + one regeneration


@dataclass(frozen=True, slots=True)
class IssueOutcome:
    certificate: Certificate
    issued: bool  # True only for the call that inserted the row


def generate_code() -> str:
    """4H followed by 12 uppercase hex characters."""
    return CODE_PREFIX + uuid.uuid4().hex.upper()[:12]


async def issue_if_absent(
    repo: CertificateRepo,
    user_id: str,
    course_id: UUID,
    *,
    now: int | None = None,
) -> IssueOutcome:
    existing = await repo.get_by_user_and_course(user_id, course_id)
    if existing is not None:
        CERTIFICATES.labels(outcome="existing").inc()
        return IssueOutcome(certificate=existing, issued=False)

    issued_at = now or int(datetime.datetime.now(datetime.UTC).timestamp())
    for _ in range(_CODE_ATTEMPTS):
        certificate = Certificate.new(
            user_id=user_id,
            course_id=course_id,
            unique_code=generate_code(),
            issued_at=issued_at,
        )
        try:
            await repo.add(certificate)
        except DuplicateCertificateError as exc:
            if exc.field == "user_course":
                winner = await repo.get_by_user_and_course(user_id, course_id)
                if winner is None:
                    raise
                CERTIFICATES.labels(outcome="race_absorbed").inc()
                logger.info(
                    "Concurrent issuance for user=%s course=%s; returning winner",
                    user_id,
                    course_id,
                )
                return IssueOutcome(certificate=winner, issued=False)
            logger.warning("Certificate code collision; regenerating")
            continue

        CERTIFICATES.labels(outcome="issued").inc()
        logger.info(
            "Certificate issued",
            extra={
                "course_id": str(course_id),
                "certificate_code": certificate.unique_code,
            },
        )
        return IssueOutcome(certificate=certificate, issued=True)

    logger.error(
        "Certificate code collided %d times for user=%s course=%s",
        _CODE_ATTEMPTS,
        user_id,
        course_id,
    )
    raise CertificateCodeCollisionError()


async def verify(store: EngineStore, code: str) -> VerificationResult:
    async with store.transaction():
        certificate = await store.certificates.get_by_code(code)
        if certificate is None:
            return VerificationResult.not_found()
        course = await store.catalog.get_course(certificate.course_id)
    return VerificationResult.found(certificate, course)


async def list_user_certificates(store: EngineStore, user_id: str) -> list[Certificate]:
    async with store.transaction():
        return await store.certificates.list_by_user(user_id)


async def get_certificate(
    store: EngineStore, certificate_id: UUID, *, user_id: str, is_admin: bool = False
) -> Certificate:
    """Fetch a certificate owned by ``user_id`` (any owner for admins)."""
    async with store.transaction():
        certificate = await store.certificates.get(certificate_id)
    if certificate is None or (not is_admin and certificate.user_id != user_id):
        raise CertificateNotFoundError()
    return certificate


async def attach_pdf_url(
    store: EngineStore, certificate_id: UUID, pdf_url: str
) -> Certificate:
    async with store.transaction():
        certificate = await store.certificates.set_pdf_url(certificate_id, pdf_url)
    if certificate is None:
        raise CertificateNotFoundError()
    logger.info("Attached PDF to certificate %s", certificate_id)
    return certificate
