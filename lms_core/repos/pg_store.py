"""EngineStore backed by one AsyncSession.

``transaction()`` opens the session's transaction; it commits when the
block exits cleanly and rolls back otherwise.  Driver and constraint
errors not already translated by a repo surface as StorageError.
"""

from __future__ import annotations

import logging
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from lms_core.exceptions import StorageError
from lms_core.repos.pg_certificate_repo import PgCertificateRepo
from lms_core.repos.pg_course_catalog import PgCourseCatalog
from lms_core.repos.pg_enrollment_repo import PgEnrollmentRepo
from lms_core.repos.pg_lesson_progress_repo import PgLessonProgressRepo
from lms_core.repos.pg_quiz_attempt_repo import PgQuizAttemptRepo

logger = logging.getLogger(__name__)


class PgEngineStore:
    def __init__(self, session: AsyncSession) -> None:
        self._session = session
        self.enrollments = PgEnrollmentRepo(session)
        self.lesson_progress = PgLessonProgressRepo(session)
        self.quiz_attempts = PgQuizAttemptRepo(session)
        self.certificates = PgCertificateRepo(session)
        self.catalog = PgCourseCatalog(session)

    @asynccontextmanager
    async def transaction(self) -> AsyncIterator[None]:
        try:
            async with self._session.begin():
                yield
        except SQLAlchemyError as exc:
            logger.error("Database transaction failed: %s", type(exc).__name__)
            raise StorageError("storage unavailable") from exc
