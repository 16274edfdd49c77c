"""Response models shared by the routers, with converters from domain types."""

from __future__ import annotations

from pydantic import BaseModel

from lms_core.models.certificate import Certificate
from lms_core.models.enrollment import Enrollment, LessonProgress
from lms_core.models.quiz import QuizAttempt


class EnrollmentOut(BaseModel):
    id: str
    user_id: str
    course_id: str
    status: str
    progress: float
    enrolled_at: int
    completed_at: int | None = None


class LessonProgressOut(BaseModel):
    lesson_id: str
    watched_seconds: int
    completed: bool
    completed_at: int | None = None


class CertificateOut(BaseModel):
    id: str
    user_id: str
    course_id: str
    unique_code: str
    issued_at: int
    pdf_url: str | None = None


class AttemptAnswerOut(BaseModel):
    question_id: str
    selected: list[str]
    is_correct: bool
    points_awarded: int


class QuizAttemptOut(BaseModel):
    id: str
    quiz_id: str
    attempt_no: int
    score: int
    total_points: int
    percentage: int
    passed: bool
    answers: list[AttemptAnswerOut]
    completed_at: int


def enrollment_out(e: Enrollment) -> EnrollmentOut:
    return EnrollmentOut(
        id=str(e.id),
        user_id=e.user_id,
        course_id=str(e.course_id),
        status=e.status,
        progress=e.progress,
        enrolled_at=e.enrolled_at,
        completed_at=e.completed_at,
    )


def lesson_progress_out(p: LessonProgress) -> LessonProgressOut:
    return LessonProgressOut(
        lesson_id=str(p.lesson_id),
        watched_seconds=p.watched_seconds,
        completed=p.completed,
        completed_at=p.completed_at,
    )


def certificate_out(c: Certificate) -> CertificateOut:
    return CertificateOut(
        id=str(c.id),
        user_id=c.user_id,
        course_id=str(c.course_id),
        unique_code=c.unique_code,
        issued_at=c.issued_at,
        pdf_url=c.pdf_url,
    )


def attempt_out(a: QuizAttempt) -> QuizAttemptOut:
    return QuizAttemptOut(
        id=str(a.id),
        quiz_id=str(a.quiz_id),
        attempt_no=a.attempt_no,
        score=a.score,
        total_points=a.total_points,
        percentage=a.percentage,
        passed=a.passed,
        answers=[
            AttemptAnswerOut(
                question_id=str(ans.question_id),
                selected=sorted(ans.selected),
                is_correct=ans.is_correct,
                points_awarded=ans.points_awarded,
            )
            for ans in a.answers
        ],
        completed_at=a.completed_at,
    )
