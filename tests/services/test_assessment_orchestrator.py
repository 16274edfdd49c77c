from __future__ import annotations

import asyncio
from uuid import uuid4

import pytest

from lms_core.exceptions import (
    EnrollmentAccessDeniedError,
    InvalidProgressError,
    InvalidQuizDefinitionError,
    LessonNotInCourseError,
    QuizNotFoundError,
    StorageError,
)
from lms_core.models.course import CourseModule
from lms_core.models.enrollment import ACTIVE, COMPLETED
from lms_core.models.quiz import Quiz
from lms_core.repos.course_catalog import InMemoryCourseCatalog
from lms_core.repos.store import InMemoryEngineStore
from lms_core.services import (
    assessment_orchestrator,
    certificate_issuer,
    enrollment_service,
)
from lms_core.services.notifications import CertificateNotifier
from lms_core.services.task_queue import CERTIFICATE_ISSUED_QUEUE, InMemoryTaskQueue
from tests.conftest import build_course, build_quiz


class _BrokenQueue(InMemoryTaskQueue):
    async def enqueue(self, queue, payload):
        raise ConnectionError("redis down")


def _setup(lessons: int = 4):
    store = InMemoryEngineStore(InMemoryCourseCatalog())
    course, lesson_ids = build_course(store.catalog, lessons=lessons)
    return store, course, lesson_ids


async def _progress(store, enrollment, lesson_id, *, completed=True, notifier=None, seconds=60):
    return await assessment_orchestrator.record_lesson_progress(
        store,
        user_id=enrollment.user_id,
        enrollment_id=enrollment.id,
        lesson_id=lesson_id,
        watched_seconds=seconds,
        completed=completed,
        certificate_notifier=notifier,
    )


def test_completing_every_lesson_issues_certificate_and_notifies() -> None:
    async def scenario():
        store, course, lesson_ids = _setup()
        queue = InMemoryTaskQueue()
        notifier = CertificateNotifier(queue)
        enrollment = await enrollment_service.enroll(
            store, user_id="alice", course_id=course.id
        )

        partial = None
        for lesson_id in lesson_ids[:3]:
            partial = await _progress(store, enrollment, lesson_id, notifier=notifier)
        final = await _progress(store, enrollment, lesson_ids[3], notifier=notifier)
        task = await queue.dequeue(CERTIFICATE_ISSUED_QUEUE)
        return store, course, partial, final, task

    store, course, partial, final, task = asyncio.run(scenario())

    assert partial.enrollment.progress == 75.0
    assert partial.enrollment.status == ACTIVE
    assert partial.certificate is None

    assert final.enrollment.progress == 100.0
    assert final.enrollment.status == COMPLETED
    assert final.enrollment.completed_at is not None
    assert final.certificate is not None
    assert final.certificate.course_id == course.id

    assert task is not None
    assert task.payload["unique_code"] == final.certificate.unique_code
    assert task.payload["user_id"] == "alice"


def test_completed_status_survives_uncompleting_a_lesson() -> None:
    async def scenario():
        store, course, lesson_ids = _setup()
        queue = InMemoryTaskQueue()
        notifier = CertificateNotifier(queue)
        enrollment = await enrollment_service.enroll(
            store, user_id="alice", course_id=course.id
        )
        for lesson_id in lesson_ids:
            done = await _progress(store, enrollment, lesson_id, notifier=notifier)
        undone = await _progress(
            store, enrollment, lesson_ids[0], completed=False, notifier=notifier
        )
        redone = await _progress(store, enrollment, lesson_ids[0], notifier=notifier)
        certs = await store.certificates.list_by_user("alice")
        return done, undone, redone, certs, await queue.queue_length(CERTIFICATE_ISSUED_QUEUE)

    done, undone, redone, certs, queued = asyncio.run(scenario())

    assert undone.enrollment.status == COMPLETED
    assert undone.enrollment.progress == 75.0
    assert undone.enrollment.completed_at == done.enrollment.completed_at
    assert undone.lesson_progress.completed_at is None

    assert redone.enrollment.progress == 100.0
    assert redone.certificate is None
    assert len(certs) == 1
    assert queued == 1


def test_lesson_completed_at_keeps_first_stamp() -> None:
    async def scenario():
        store, course, lesson_ids = _setup()
        enrollment = await enrollment_service.enroll(
            store, user_id="alice", course_id=course.id
        )
        first = await _progress(store, enrollment, lesson_ids[0], seconds=10)
        second = await _progress(store, enrollment, lesson_ids[0], seconds=5)
        return first, second

    first, second = asyncio.run(scenario())
    assert second.lesson_progress.completed_at == first.lesson_progress.completed_at
    assert second.lesson_progress.watched_seconds == 5


def test_other_users_enrollment_is_rejected() -> None:
    async def scenario():
        store, course, lesson_ids = _setup()
        enrollment = await enrollment_service.enroll(
            store, user_id="alice", course_id=course.id
        )
        with pytest.raises(EnrollmentAccessDeniedError):
            await assessment_orchestrator.record_lesson_progress(
                store,
                user_id="mallory",
                enrollment_id=enrollment.id,
                lesson_id=lesson_ids[0],
                watched_seconds=1,
                completed=True,
            )
        with pytest.raises(EnrollmentAccessDeniedError):
            await assessment_orchestrator.record_lesson_progress(
                store,
                user_id="alice",
                enrollment_id=uuid4(),
                lesson_id=lesson_ids[0],
                watched_seconds=1,
                completed=True,
            )
        return await store.lesson_progress.get(enrollment.id, lesson_ids[0])

    row = asyncio.run(scenario())
    assert row.completed is False


def test_lesson_from_another_course_is_rejected() -> None:
    async def scenario():
        store, course, _ = _setup()
        _, foreign_lessons = build_course(store.catalog)
        enrollment = await enrollment_service.enroll(
            store, user_id="alice", course_id=course.id
        )
        await _progress(store, enrollment, foreign_lessons[0])

    with pytest.raises(LessonNotInCourseError):
        asyncio.run(scenario())


def test_negative_watched_seconds_is_rejected() -> None:
    async def scenario():
        store, course, lesson_ids = _setup()
        enrollment = await enrollment_service.enroll(
            store, user_id="alice", course_id=course.id
        )
        await _progress(store, enrollment, lesson_ids[0], seconds=-1)

    with pytest.raises(InvalidProgressError):
        asyncio.run(scenario())


def test_failure_during_issuance_rolls_back_progress(
    monkeypatch: pytest.MonkeyPatch,
) -> None:
    async def failing_issue(*args, **kwargs):
        raise StorageError("storage unavailable")

    monkeypatch.setattr(certificate_issuer, "issue_if_absent", failing_issue)

    async def scenario():
        store, course, lesson_ids = _setup()
        enrollment = await enrollment_service.enroll(
            store, user_id="alice", course_id=course.id
        )
        for lesson_id in lesson_ids[:3]:
            await _progress(store, enrollment, lesson_id)
        with pytest.raises(StorageError):
            await _progress(store, enrollment, lesson_ids[3])
        row = await store.lesson_progress.get(enrollment.id, lesson_ids[3])
        saved = await store.enrollments.get(enrollment.id)
        return row, saved

    row, saved = asyncio.run(scenario())
    assert row.completed is False
    assert saved.status == ACTIVE
    assert saved.progress == 75.0


def test_notification_failure_does_not_undo_issuance() -> None:
    async def scenario():
        store, course, lesson_ids = _setup(lessons=1)
        enrollment = await enrollment_service.enroll(
            store, user_id="alice", course_id=course.id
        )
        update = await _progress(
            store, enrollment, lesson_ids[0], notifier=CertificateNotifier(_BrokenQueue())
        )
        stored = await store.certificates.get_by_user_and_course("alice", course.id)
        return update, stored

    update, stored = asyncio.run(scenario())
    assert update.certificate is not None
    assert stored == update.certificate


def test_quiz_attempts_are_numbered_and_best_is_tracked() -> None:
    async def scenario():
        store, course, _ = _setup()
        quiz = build_quiz(store.catalog, course)
        q1, q2 = quiz.questions
        first = await assessment_orchestrator.submit_quiz_attempt(
            store, user_id="alice", quiz_id=quiz.id, answers={q1.id: ["A"]}
        )
        second = await assessment_orchestrator.submit_quiz_attempt(
            store,
            user_id="alice",
            quiz_id=quiz.id,
            answers={q1.id: ["A"], q2.id: ["C", "A"]},
        )
        third = await assessment_orchestrator.submit_quiz_attempt(
            store, user_id="alice", quiz_id=quiz.id, answers={}
        )
        best = await assessment_orchestrator.best_quiz_attempt(
            store, user_id="alice", quiz_id=quiz.id
        )
        attempts = await assessment_orchestrator.list_quiz_attempts(
            store, user_id="alice", quiz_id=quiz.id
        )
        others = await assessment_orchestrator.list_quiz_attempts(
            store, user_id="bob", quiz_id=quiz.id
        )
        return first, second, third, best, attempts, others

    first, second, third, best, attempts, others = asyncio.run(scenario())
    assert [first.attempt_no, second.attempt_no, third.attempt_no] == [1, 2, 3]
    assert (first.percentage, first.passed) == (33, False)
    assert (second.percentage, second.passed) == (100, True)
    assert third.score == 0
    assert best == second
    assert [a.attempt_no for a in attempts] == [3, 2, 1]
    assert others == []


def test_quiz_attempt_does_not_touch_enrollment() -> None:
    async def scenario():
        store, course, _ = _setup()
        quiz = build_quiz(store.catalog, course)
        enrollment = await enrollment_service.enroll(
            store, user_id="alice", course_id=course.id
        )
        await assessment_orchestrator.submit_quiz_attempt(
            store,
            user_id="alice",
            quiz_id=quiz.id,
            answers={q.id: sorted(q.correct_option_ids) for q in quiz.questions},
        )
        return enrollment, await store.enrollments.get(enrollment.id)

    before, after = asyncio.run(scenario())
    assert after == before


def test_unknown_quiz_is_not_found() -> None:
    async def scenario():
        store = InMemoryEngineStore(InMemoryCourseCatalog())
        await assessment_orchestrator.submit_quiz_attempt(
            store, user_id="alice", quiz_id=uuid4(), answers={}
        )

    with pytest.raises(QuizNotFoundError):
        asyncio.run(scenario())


def test_quiz_without_questions_cannot_be_attempted() -> None:
    # A catalog row saved without questions; Quiz.new would refuse to build it.
    store, course, _ = _setup()
    module = CourseModule.new(course_id=course.id, position=50, title="Empty")
    store.catalog.add_module(module)
    quiz = Quiz(
        id=uuid4(),
        module_id=module.id,
        course_id=course.id,
        title="Empty",
        passing_score=70,
        questions=(),
    )
    store.catalog.add_quiz(quiz)

    async def scenario():
        await assessment_orchestrator.submit_quiz_attempt(
            store, user_id="alice", quiz_id=quiz.id, answers={}
        )

    with pytest.raises(InvalidQuizDefinitionError, match="no questions"):
        asyncio.run(scenario())
    assert asyncio.run(store.quiz_attempts.count_for_user("alice", quiz.id)) == 0
