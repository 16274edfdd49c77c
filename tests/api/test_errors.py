from __future__ import annotations

import pytest
from fastapi.testclient import TestClient

from lms_core.api.errors import status_for
from lms_core.exceptions import (
    AlreadyEnrolledError,
    CertificateCodeCollisionError,
    CourseNotFoundError,
    CourseNotPublishedError,
    EngineError,
    EnrollmentAccessDeniedError,
    InvalidProgressError,
    StorageError,
)
from lms_core.services import enrollment_service
from tests.conftest import auth


@pytest.mark.parametrize(
    ("exc", "code"),
    [
        (CourseNotFoundError(), 404),
        (EnrollmentAccessDeniedError(), 403),
        (AlreadyEnrolledError(), 409),
        (CourseNotPublishedError(), 422),
        (InvalidProgressError("bad"), 422),
        (StorageError("down"), 503),
        (CertificateCodeCollisionError(), 503),
        (EngineError("unclassified"), 500),
    ],
)
def test_status_for(exc: EngineError, code: int) -> None:
    assert status_for(exc) == code


def test_storage_error_is_503_without_internals(
    client: TestClient, monkeypatch: pytest.MonkeyPatch
) -> None:
    async def broken(*args, **kwargs):
        raise StorageError("connection refused at 10.0.0.5:5432")

    monkeypatch.setattr(enrollment_service, "list_user_enrollments", broken)
    resp = client.get("/v1/enrollments", headers=auth())
    assert resp.status_code == 503
    assert resp.json() == {"detail": "Service temporarily unavailable"}
