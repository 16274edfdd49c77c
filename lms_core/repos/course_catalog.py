"""Course catalog collaborator.

Course, module and lesson authoring live in another service; the engine
only reads the pieces it needs: whether a course exists and is
published, the ordered lesson ids that form the completion denominator,
and quiz definitions.
"""

from __future__ import annotations

from typing import Protocol
from uuid import UUID

from lms_core.models.course import Course, CourseModule, Lesson
from lms_core.models.quiz import Quiz, QuizOption, QuizQuestion


class CourseCatalog(Protocol):
    async def get_course(self, course_id: UUID) -> Course | None: ...
    async def list_lesson_ids(self, course_id: UUID) -> list[UUID]: ...
    async def get_quiz(self, quiz_id: UUID) -> Quiz | None: ...
    async def count_quizzes(self, course_id: UUID) -> int: ...


class InMemoryCourseCatalog:
    def __init__(self) -> None:
        self._courses: dict[UUID, Course] = {}
        self._modules: dict[UUID, CourseModule] = {}
        self._lessons: dict[UUID, Lesson] = {}
        self._quizzes: dict[UUID, Quiz] = {}

    async def get_course(self, course_id: UUID) -> Course | None:
        return self._courses.get(course_id)

    async def list_lesson_ids(self, course_id: UUID) -> list[UUID]:
        modules = sorted(
            (m for m in self._modules.values() if m.course_id == course_id),
            key=lambda m: m.position,
        )
        lesson_ids: list[UUID] = []
        for module in modules:
            lessons = sorted(
                (lsn for lsn in self._lessons.values() if lsn.module_id == module.id),
                key=lambda lsn: lsn.position,
            )
            lesson_ids.extend(lsn.id for lsn in lessons)
        return lesson_ids

    async def get_quiz(self, quiz_id: UUID) -> Quiz | None:
        return self._quizzes.get(quiz_id)

    async def count_quizzes(self, course_id: UUID) -> int:
        return sum(1 for q in self._quizzes.values() if q.course_id == course_id)

    # --- seeding (stands in for the authoring service) ---

    def add_course(self, course: Course) -> None:
        self._courses[course.id] = course

    def add_module(self, module: CourseModule) -> None:
        if module.course_id not in self._courses:
            raise KeyError("course not found")
        self._modules[module.id] = module

    def add_lesson(self, lesson: Lesson) -> None:
        if lesson.module_id not in self._modules:
            raise KeyError("module not found")
        self._lessons[lesson.id] = lesson

    def add_quiz(self, quiz: Quiz) -> None:
        if quiz.module_id not in self._modules:
            raise KeyError("module not found")
        if any(q.module_id == quiz.module_id for q in self._quizzes.values()):
            raise ValueError("module already has a quiz")
        self._quizzes[quiz.id] = quiz

    def clear(self) -> None:
        self._courses.clear()
        self._modules.clear()
        self._lessons.clear()
        self._quizzes.clear()


SAMPLE_COURSE_ID = UUID("00000000-0000-0000-0000-000000000001")
SAMPLE_QUIZ_ID = UUID("00000000-0000-0000-0000-0000000000a1")


def seed_sample_course(catalog: InMemoryCourseCatalog) -> None:
    """Seed a published two-module course with a quiz, for local dev."""
    if SAMPLE_COURSE_ID in catalog._courses:
        return

    course = Course(
        id=SAMPLE_COURSE_ID,
        slug="defi-fundamentals",
        title="DeFi Fundamentals",
        is_published=True,
        level="BEGINNER",
    )
    catalog.add_course(course)

    basics = CourseModule.new(course_id=course.id, position=1, title="Basics")
    protocols = CourseModule.new(course_id=course.id, position=2, title="Protocols")
    catalog.add_module(basics)
    catalog.add_module(protocols)

    for module, titles in (
        (basics, ("What is DeFi", "Wallets")),
        (protocols, ("Lending", "Exchanges")),
    ):
        for position, title in enumerate(titles, start=1):
            catalog.add_lesson(
                Lesson.new(
                    module_id=module.id,
                    position=position,
                    title=title,
                    duration_seconds=600,
                )
            )

    catalog.add_quiz(
        Quiz.new(
            id=SAMPLE_QUIZ_ID,
            module_id=basics.id,
            course_id=course.id,
            title="Basics Quiz",
            passing_score=70,
            time_limit=15,
            questions=[
                QuizQuestion.new(
                    quiz_id=SAMPLE_QUIZ_ID,
                    type="MULTIPLE_CHOICE",
                    text="What does DeFi stand for?",
                    position=1,
                    points=1,
                    options=[
                        QuizOption(id="opt1", text="Decentralized Finance", is_correct=True),
                        QuizOption(id="opt2", text="Deferred Financing"),
                    ],
                ),
                QuizQuestion.new(
                    quiz_id=SAMPLE_QUIZ_ID,
                    type="MULTIPLE_SELECT",
                    text="Which of these are wallets?",
                    position=2,
                    points=2,
                    options=[
                        QuizOption(id="opt1", text="MetaMask", is_correct=True),
                        QuizOption(id="opt2", text="Uniswap"),
                        QuizOption(id="opt3", text="Ledger", is_correct=True),
                    ],
                    explanation="Uniswap is an exchange protocol.",
                ),
            ],
        )
    )
