"""Engine error taxonomy.

Services raise these; lms_core.api.errors maps each family to one HTTP
status in a single exception handler, so routers never translate errors
themselves.
"""

from __future__ import annotations


class EngineError(Exception):
    """Base class for every error the engine raises on purpose."""


# ── NotFound ────────────────────────────────────────────────────────────────


class NotFoundError(EngineError):
    pass


class EnrollmentNotFoundError(NotFoundError):
    def __init__(self) -> None:
        super().__init__("Enrollment not found")


class CourseNotFoundError(NotFoundError):
    def __init__(self) -> None:
        super().__init__("Course not found")


class QuizNotFoundError(NotFoundError):
    def __init__(self) -> None:
        super().__init__("Quiz not found")


class CertificateNotFoundError(NotFoundError):
    def __init__(self) -> None:
        super().__init__("Certificate not found")


class EnrollmentAccessDeniedError(EngineError):
    """The enrollment is missing or belongs to someone else.

    Both cases surface identically so a caller cannot probe for other
    learners' enrollment ids.
    """

    def __init__(self) -> None:
        super().__init__("Enrollment does not belong to the current user")


# ── Conflict ────────────────────────────────────────────────────────────────


class ConflictError(EngineError):
    pass


class AlreadyEnrolledError(ConflictError):
    def __init__(self) -> None:
        super().__init__("Already enrolled in this course")


class DuplicateCertificateError(ConflictError):
    """Raised by certificate repos on a uniqueness violation.

    ``field`` is "user_course" when another certificate already exists
    for the pair, "unique_code" when only the generated code collided.
    The issuer absorbs both; this never reaches the API.
    """

    def __init__(self, field: str) -> None:
        super().__init__(f"certificate uniqueness violated on {field}")
        self.field = field


# ── InvalidState ────────────────────────────────────────────────────────────


class InvalidStateError(EngineError):
    pass


class CourseNotPublishedError(InvalidStateError):
    def __init__(self) -> None:
        super().__init__("Course is not published")


class LessonNotInCourseError(InvalidStateError):
    def __init__(self) -> None:
        super().__init__("Lesson is not part of this enrollment's course")


class InvalidQuizDefinitionError(InvalidStateError):
    pass


class InvalidProgressError(InvalidStateError):
    pass


# ── Storage ─────────────────────────────────────────────────────────────────


class StorageError(EngineError):
    pass


class CertificateCodeCollisionError(StorageError):
    def __init__(self) -> None:
        super().__init__("Could not generate a unique certificate code")
