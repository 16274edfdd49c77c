from __future__ import annotations

from dataclasses import dataclass
from uuid import UUID, uuid4

from lms_core.models.course import Course

CODE_PREFIX = "4H"


@dataclass(frozen=True, slots=True)
class Certificate:
    """Proof of completion: one per (user, course), globally unique code."""

    id: UUID
    user_id: str
    course_id: UUID
    unique_code: str
    issued_at: int
    pdf_url: str | None = None

    @staticmethod
    def new(
        *, user_id: str, course_id: UUID, unique_code: str, issued_at: int
    ) -> Certificate:
        return Certificate(
            id=uuid4(),
            user_id=user_id,
            course_id=course_id,
            unique_code=unique_code,
            issued_at=issued_at,
        )


@dataclass(frozen=True, slots=True)
class VerificationResult:
    """Outcome of a public code lookup: either a certificate or nothing."""

    valid: bool
    certificate: Certificate | None = None
    course: Course | None = None

    @staticmethod
    def found(
        certificate: Certificate, course: Course | None = None
    ) -> VerificationResult:
        return VerificationResult(valid=True, certificate=certificate, course=course)

    @staticmethod
    def not_found() -> VerificationResult:
        return VerificationResult(valid=False)
