"""Quiz scoring.

Pure: same quiz and answers always give the same result.  A question
earns its points only when the submitted option set equals the set of
correct options exactly; there is no partial credit.
"""

from __future__ import annotations

import logging
from collections.abc import Iterable, Mapping
from dataclasses import dataclass
from uuid import UUID

from lms_core.models.quiz import AttemptAnswer, Quiz

logger = logging.getLogger(__name__)


@dataclass(frozen=True, slots=True)
class QuizAttemptResult:
    score: int
    total_points: int
    percentage: int
    passed: bool
    answers: tuple[AttemptAnswer, ...]


def percentage_half_up(score: int, total_points: int) -> int:
    """100 * score / total_points, rounded half-up (12.5 -> 13)."""
    if total_points <= 0:
        return 0
    return (200 * score + total_points) // (2 * total_points)


def score(
    quiz: Quiz, submitted: Mapping[UUID, Iterable[str]]
) -> QuizAttemptResult:
    """Score one submission.

    ``submitted`` maps question id to the selected option ids.  Questions
    missing from it count as incorrect; ids that are not questions of
    this quiz are ignored.
    """
    total_points = quiz.total_points
    earned = 0
    answers: list[AttemptAnswer] = []

    for question in quiz.questions:
        selected = frozenset(submitted.get(question.id, ()))
        is_correct = selected == question.correct_option_ids
        awarded = question.points if is_correct else 0
        earned += awarded
        answers.append(
            AttemptAnswer(
                question_id=question.id,
                selected=selected,
                is_correct=is_correct,
                points_awarded=awarded,
            )
        )

    if total_points <= 0:
        logger.error("Quiz %s has no points to score against", quiz.id)

    percentage = percentage_half_up(earned, total_points)
    return QuizAttemptResult(
        score=earned,
        total_points=total_points,
        percentage=percentage,
        passed=percentage >= quiz.passing_score,
        answers=tuple(answers),
    )
