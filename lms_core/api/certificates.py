"""Certificate endpoints.

GET /v1/certificates/verify/{code} is public: anyone holding a code
(an employer, say) can check it.  A code that matches nothing is a
normal 200 with valid=false, not a 404.
"""

from __future__ import annotations

from typing import Annotated
from uuid import UUID

from fastapi import APIRouter, Depends
from pydantic import BaseModel, Field

from lms_core.api.dependencies import CurrentUser, Store, require_role
from lms_core.api.schemas import CertificateOut, certificate_out
from lms_core.models.principal import Principal
from lms_core.services import certificate_issuer
from lms_core.services.cache import cache_service, enrollment_key

router = APIRouter(prefix="/v1/certificates", tags=["certificates"])


class VerifiedCertificateOut(BaseModel):
    unique_code: str
    course_id: str
    course_title: str | None = None
    course_level: str | None = None
    issued_at: int


class VerificationOut(BaseModel):
    valid: bool
    certificate: VerifiedCertificateOut | None = None


class PdfUrlIn(BaseModel):
    pdf_url: str = Field(min_length=1, max_length=2048)


@router.get("", response_model=list[CertificateOut])
async def list_my_certificates(
    principal: CurrentUser, store: Store
) -> list[CertificateOut]:
    certs = await certificate_issuer.list_user_certificates(store, principal.user_id)
    return [certificate_out(c) for c in certs]


@router.get("/verify/{code}", response_model=VerificationOut)
async def verify_certificate(code: str, store: Store) -> VerificationOut:
    result = await certificate_issuer.verify(store, code)
    if not result.valid or result.certificate is None:
        return VerificationOut(valid=False)
    cert = result.certificate
    return VerificationOut(
        valid=True,
        certificate=VerifiedCertificateOut(
            unique_code=cert.unique_code,
            course_id=str(cert.course_id),
            course_title=result.course.title if result.course else None,
            course_level=result.course.level if result.course else None,
            issued_at=cert.issued_at,
        ),
    )


@router.get("/{certificate_id}", response_model=CertificateOut)
async def get_certificate(
    certificate_id: UUID, principal: CurrentUser, store: Store
) -> CertificateOut:
    cert = await certificate_issuer.get_certificate(
        store,
        certificate_id,
        user_id=principal.user_id,
        is_admin=principal.is_platform_admin(),
    )
    return certificate_out(cert)


@router.patch("/{certificate_id}/pdf-url", response_model=CertificateOut)
async def attach_pdf_url(
    certificate_id: UUID,
    body: PdfUrlIn,
    principal: Annotated[Principal, Depends(require_role("admin"))],
    store: Store,
) -> CertificateOut:
    cert = await certificate_issuer.attach_pdf_url(store, certificate_id, body.pdf_url)
    await cache_service.delete(enrollment_key(cert.user_id, cert.course_id))
    return certificate_out(cert)
