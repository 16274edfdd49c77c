"""Transaction boundary for one learner action.

An EngineStore bundles the repos an action touches and exposes
``transaction()``: everything written inside the block commits together
or not at all.  PgEngineStore (pg_store.py) maps this onto a database
transaction; InMemoryEngineStore serializes transactions with a lock and
restores a snapshot when the block raises.
"""

from __future__ import annotations

import asyncio
import logging
from collections.abc import AsyncIterator
from contextlib import AbstractAsyncContextManager, asynccontextmanager
from typing import Protocol

from lms_core.repos.certificate_repo import CertificateRepo, InMemoryCertificateRepo
from lms_core.repos.course_catalog import CourseCatalog, InMemoryCourseCatalog
from lms_core.repos.enrollment_repo import EnrollmentRepo, InMemoryEnrollmentRepo
from lms_core.repos.lesson_progress_repo import (
    InMemoryLessonProgressRepo,
    LessonProgressRepo,
)
from lms_core.repos.quiz_attempt_repo import InMemoryQuizAttemptRepo, QuizAttemptRepo

logger = logging.getLogger(__name__)


class EngineStore(Protocol):
    enrollments: EnrollmentRepo
    lesson_progress: LessonProgressRepo
    quiz_attempts: QuizAttemptRepo
    certificates: CertificateRepo
    catalog: CourseCatalog

    def transaction(self) -> AbstractAsyncContextManager[None]: ...


class InMemoryEngineStore:
    def __init__(self, catalog: InMemoryCourseCatalog | None = None) -> None:
        self.enrollments = InMemoryEnrollmentRepo()
        self.lesson_progress = InMemoryLessonProgressRepo()
        self.quiz_attempts = InMemoryQuizAttemptRepo()
        self.certificates = InMemoryCertificateRepo()
        self.catalog = catalog or InMemoryCourseCatalog()
        self._lock = asyncio.Lock()

    @asynccontextmanager
    async def transaction(self) -> AsyncIterator[None]:
        # Not re-entrant: services open exactly one transaction per action.
        async with self._lock:
            saved = (
                self.enrollments.snapshot(),
                self.lesson_progress.snapshot(),
                self.quiz_attempts.snapshot(),
                self.certificates.snapshot(),
            )
            try:
                yield
            except BaseException:
                self.enrollments.restore(saved[0])
                self.lesson_progress.restore(saved[1])
                self.quiz_attempts.restore(saved[2])
                self.certificates.restore(saved[3])
                logger.debug("In-memory transaction rolled back")
                raise

    def clear(self) -> None:
        """Drop all engine state (catalog included).  Used between tests."""
        self.enrollments.clear()
        self.lesson_progress.clear()
        self.quiz_attempts.clear()
        self.certificates.clear()
        self.catalog.clear()
