"""Entry points that drive the engine for one learner action.

Each operation runs in one store transaction.  Side effects that must
not roll back with it (certificate notification) run after commit.
"""

from __future__ import annotations

import datetime
import logging
from collections.abc import Iterable, Mapping
from dataclasses import dataclass
from uuid import UUID

from lms_core.core.metrics import (
    LESSON_PROGRESS_UPDATES,
    QUIZ_ATTEMPTS,
    QUIZ_SCORE_PERCENTAGE,
)
from lms_core.exceptions import (
    EnrollmentAccessDeniedError,
    InvalidProgressError,
    InvalidQuizDefinitionError,
    LessonNotInCourseError,
    QuizNotFoundError,
)
from lms_core.models.certificate import Certificate
from lms_core.models.enrollment import Enrollment, LessonProgress
from lms_core.models.quiz import Quiz, QuizAttempt
from lms_core.repos.store import EngineStore
from lms_core.services import certificate_issuer, enrollment_state, quiz_scorer
from lms_core.services.notifications import CertificateNotifier, notifier

logger = logging.getLogger(__name__)


@dataclass(frozen=True, slots=True)
class ProgressUpdate:
    lesson_progress: LessonProgress
    enrollment: Enrollment
    certificate: Certificate | None = None  # set only when this call issued it


def _now() -> int:
    return int(datetime.datetime.now(datetime.UTC).timestamp())


async def record_lesson_progress(
    store: EngineStore,
    *,
    user_id: str,
    enrollment_id: UUID,
    lesson_id: UUID,
    watched_seconds: int,
    completed: bool,
    certificate_notifier: CertificateNotifier | None = None,
) -> ProgressUpdate:
    if watched_seconds < 0:
        raise InvalidProgressError("watched_seconds must be >= 0")

    now = _now()
    issued: Certificate | None = None

    async with store.transaction():
        enrollment = await store.enrollments.get_for_update(enrollment_id)
        if enrollment is None or enrollment.user_id != user_id:
            logger.warning(
                "Rejected progress update on enrollment %s for user=%s",
                enrollment_id,
                user_id,
            )
            raise EnrollmentAccessDeniedError()

        lesson_ids = await store.catalog.list_lesson_ids(enrollment.course_id)
        if lesson_id not in lesson_ids:
            raise LessonNotInCourseError()

        progress = await store.lesson_progress.upsert(
            enrollment.id,
            lesson_id,
            watched_seconds=watched_seconds,
            completed=completed,
            now=now,
        )
        transition = await enrollment_state.recompute(
            store, enrollment, now, lesson_ids=lesson_ids
        )

        if transition.newly_completed:
            outcome = await certificate_issuer.issue_if_absent(
                store.certificates, user_id, enrollment.course_id, now=now
            )
            if outcome.issued:
                issued = outcome.certificate

    LESSON_PROGRESS_UPDATES.labels(completed=str(completed).lower()).inc()
    if issued is not None:
        await (certificate_notifier or notifier).certificate_issued(issued)

    return ProgressUpdate(
        lesson_progress=progress,
        enrollment=transition.enrollment,
        certificate=issued,
    )


async def submit_quiz_attempt(
    store: EngineStore,
    *,
    user_id: str,
    quiz_id: UUID,
    answers: Mapping[UUID, Iterable[str]],
) -> QuizAttempt:
    """Score and record one attempt.  Attempts never affect enrollment status."""
    async with store.transaction():
        quiz = await store.catalog.get_quiz(quiz_id)
        if quiz is None:
            raise QuizNotFoundError()
        if not quiz.questions:
            raise InvalidQuizDefinitionError("Quiz has no questions")

        result = quiz_scorer.score(quiz, answers)
        previous = await store.quiz_attempts.count_for_user(user_id, quiz_id)
        attempt = QuizAttempt.new(
            user_id=user_id,
            quiz_id=quiz_id,
            attempt_no=previous + 1,
            score=result.score,
            total_points=result.total_points,
            percentage=result.percentage,
            passed=result.passed,
            answers=result.answers,
            completed_at=_now(),
        )
        await store.quiz_attempts.add(attempt)

    QUIZ_ATTEMPTS.labels(result="passed" if attempt.passed else "failed").inc()
    QUIZ_SCORE_PERCENTAGE.observe(attempt.percentage)
    logger.info(
        "Quiz attempt %d scored %d/%d (%d%%)",
        attempt.attempt_no,
        attempt.score,
        attempt.total_points,
        attempt.percentage,
        extra={"quiz_id": str(quiz_id)},
    )
    return attempt


async def get_quiz(store: EngineStore, quiz_id: UUID) -> Quiz:
    async with store.transaction():
        quiz = await store.catalog.get_quiz(quiz_id)
    if quiz is None:
        raise QuizNotFoundError()
    return quiz


async def list_quiz_attempts(
    store: EngineStore, *, user_id: str, quiz_id: UUID
) -> list[QuizAttempt]:
    async with store.transaction():
        return await store.quiz_attempts.list_for_user(user_id, quiz_id)


async def best_quiz_attempt(
    store: EngineStore, *, user_id: str, quiz_id: UUID
) -> QuizAttempt | None:
    async with store.transaction():
        return await store.quiz_attempts.best_for_user(user_id, quiz_id)
