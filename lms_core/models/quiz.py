from __future__ import annotations

from dataclasses import dataclass
from typing import Literal
from uuid import UUID, uuid4

from lms_core.exceptions import InvalidQuizDefinitionError

QuestionType = Literal["MULTIPLE_CHOICE", "TRUE_FALSE", "MULTIPLE_SELECT"]

QUESTION_TYPES: tuple[QuestionType, ...] = (
    "MULTIPLE_CHOICE",
    "TRUE_FALSE",
    "MULTIPLE_SELECT",
)
_SINGLE_ANSWER_TYPES = ("MULTIPLE_CHOICE", "TRUE_FALSE")


@dataclass(frozen=True, slots=True)
class QuizOption:
    id: str
    text: str
    is_correct: bool = False


@dataclass(frozen=True, slots=True)
class QuizQuestion:
    id: UUID
    quiz_id: UUID
    type: QuestionType
    text: str
    points: int
    position: int
    options: tuple[QuizOption, ...]
    explanation: str | None = None

    @property
    def correct_option_ids(self) -> frozenset[str]:
        return frozenset(o.id for o in self.options if o.is_correct)

    @staticmethod
    def new(
        *,
        quiz_id: UUID,
        type: QuestionType,
        text: str,
        options: list[QuizOption] | tuple[QuizOption, ...],
        position: int,
        points: int = 1,
        explanation: str | None = None,
    ) -> QuizQuestion:
        """Build a question, enforcing the option invariants.

        Raises InvalidQuizDefinitionError when the question could never be
        answered correctly or is ambiguous for its type.
        """
        if type not in QUESTION_TYPES:
            raise InvalidQuizDefinitionError(f"unknown question type {type!r}")
        if points < 1:
            raise InvalidQuizDefinitionError("question points must be >= 1")
        if len(options) < 2:
            raise InvalidQuizDefinitionError("a question needs at least 2 options")
        option_ids = [o.id for o in options]
        if len(set(option_ids)) != len(option_ids):
            raise InvalidQuizDefinitionError("option ids must be unique")

        correct = sum(1 for o in options if o.is_correct)
        if correct == 0:
            raise InvalidQuizDefinitionError("a question needs a correct option")
        if type in _SINGLE_ANSWER_TYPES and correct != 1:
            raise InvalidQuizDefinitionError(
                f"{type} questions need exactly one correct option"
            )

        return QuizQuestion(
            id=uuid4(),
            quiz_id=quiz_id,
            type=type,
            text=text,
            points=points,
            position=position,
            options=tuple(options),
            explanation=explanation,
        )


@dataclass(frozen=True, slots=True)
class Quiz:
    """A module's quiz, questions ordered by position."""

    id: UUID
    module_id: UUID
    course_id: UUID
    title: str
    passing_score: int
    questions: tuple[QuizQuestion, ...]
    time_limit: int | None = None  # minutes
    description: str | None = None

    @property
    def total_points(self) -> int:
        return sum(q.points for q in self.questions)

    @staticmethod
    def new(
        *,
        id: UUID,
        module_id: UUID,
        course_id: UUID,
        title: str,
        questions: list[QuizQuestion] | tuple[QuizQuestion, ...],
        passing_score: int = 70,
        time_limit: int | None = None,
        description: str | None = None,
    ) -> Quiz:
        """Build a quiz.  Questions must already carry ``quiz_id == id``."""
        if not questions:
            raise InvalidQuizDefinitionError("a quiz needs at least one question")
        if not 0 <= passing_score <= 100:
            raise InvalidQuizDefinitionError("passing score must be within 0..100")
        if time_limit is not None and not 1 <= time_limit <= 180:
            raise InvalidQuizDefinitionError("time limit must be within 1..180 minutes")
        if any(q.quiz_id != id for q in questions):
            raise InvalidQuizDefinitionError("question belongs to another quiz")

        return Quiz(
            id=id,
            module_id=module_id,
            course_id=course_id,
            title=title,
            passing_score=passing_score,
            questions=tuple(sorted(questions, key=lambda q: q.position)),
            time_limit=time_limit,
            description=description,
        )


@dataclass(frozen=True, slots=True)
class AttemptAnswer:
    """How one question of an attempt was answered and scored."""

    question_id: UUID
    selected: frozenset[str]
    is_correct: bool
    points_awarded: int


@dataclass(frozen=True, slots=True)
class QuizAttempt:
    """One scored submission.  Never mutated after it is stored."""

    id: UUID
    user_id: str
    quiz_id: UUID
    attempt_no: int
    score: int
    total_points: int
    percentage: int
    passed: bool
    answers: tuple[AttemptAnswer, ...]
    completed_at: int

    @staticmethod
    def new(
        *,
        user_id: str,
        quiz_id: UUID,
        attempt_no: int,
        score: int,
        total_points: int,
        percentage: int,
        passed: bool,
        answers: tuple[AttemptAnswer, ...],
        completed_at: int,
    ) -> QuizAttempt:
        return QuizAttempt(
            id=uuid4(),
            user_id=user_id,
            quiz_id=quiz_id,
            attempt_no=attempt_no,
            score=score,
            total_points=total_points,
            percentage=percentage,
            passed=passed,
            answers=answers,
            completed_at=completed_at,
        )
