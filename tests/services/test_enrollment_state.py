from __future__ import annotations

from uuid import uuid4

import pytest

from lms_core.models.enrollment import ACTIVE, COMPLETED, Enrollment
from lms_core.services.enrollment_state import apply_progress, compute_progress


def _enrollment(**kw) -> Enrollment:
    return Enrollment(id=uuid4(), user_id="u-1", course_id=uuid4(), enrolled_at=1, **kw)


@pytest.mark.parametrize(
    ("completed", "total", "expected"),
    [(3, 4, 75.0), (4, 4, 100.0), (0, 4, 0.0), (0, 0, 0.0), (5, 4, 100.0)],
)
def test_compute_progress(completed: int, total: int, expected: float) -> None:
    assert compute_progress(completed, total) == expected


def test_reaching_100_completes_active_enrollment() -> None:
    t = apply_progress(_enrollment(), 100.0, now=500)
    assert t.newly_completed is True
    assert t.enrollment.status == COMPLETED
    assert t.enrollment.completed_at == 500
    assert t.enrollment.progress == 100.0


def test_below_100_stays_active() -> None:
    t = apply_progress(_enrollment(), 75.0, now=500)
    assert t.newly_completed is False
    assert t.enrollment.status == ACTIVE
    assert t.enrollment.completed_at is None
    assert t.enrollment.progress == 75.0


def test_completed_enrollment_never_reverts() -> None:
    done = _enrollment(status=COMPLETED, progress=100.0, completed_at=400)
    t = apply_progress(done, 50.0, now=500)
    assert t.newly_completed is False
    assert t.enrollment.status == COMPLETED
    assert t.enrollment.completed_at == 400
    assert t.enrollment.progress == 50.0


def test_completed_enrollment_back_at_100_is_not_a_new_transition() -> None:
    done = _enrollment(status=COMPLETED, progress=50.0, completed_at=400)
    t = apply_progress(done, 100.0, now=500)
    assert t.newly_completed is False
    assert t.enrollment.completed_at == 400
