"""Quiz taking endpoints.

The learner view never includes which options are correct or the
explanations; those only come back inside a scored attempt's per-question
result (is_correct, points_awarded).
"""

from __future__ import annotations

from uuid import UUID

from fastapi import APIRouter, status
from pydantic import BaseModel

from lms_core.api.dependencies import CurrentUser, Store
from lms_core.api.schemas import QuizAttemptOut, attempt_out
from lms_core.services import assessment_orchestrator

router = APIRouter(prefix="/v1/quizzes", tags=["quizzes"])


class OptionOut(BaseModel):
    id: str
    text: str


class QuestionOut(BaseModel):
    id: str
    type: str
    text: str
    points: int
    position: int
    options: list[OptionOut]


class QuizOut(BaseModel):
    id: str
    course_id: str
    module_id: str
    title: str
    description: str | None = None
    passing_score: int
    time_limit: int | None = None
    total_points: int
    questions: list[QuestionOut]


class AnswerIn(BaseModel):
    question_id: UUID
    answer: str | list[str]  # one option id, or several for MULTIPLE_SELECT


class SubmitIn(BaseModel):
    answers: list[AnswerIn]


@router.get("/{quiz_id}", response_model=QuizOut)
async def get_quiz(quiz_id: UUID, principal: CurrentUser, store: Store) -> QuizOut:
    quiz = await assessment_orchestrator.get_quiz(store, quiz_id)
    return QuizOut(
        id=str(quiz.id),
        course_id=str(quiz.course_id),
        module_id=str(quiz.module_id),
        title=quiz.title,
        description=quiz.description,
        passing_score=quiz.passing_score,
        time_limit=quiz.time_limit,
        total_points=quiz.total_points,
        questions=[
            QuestionOut(
                id=str(q.id),
                type=q.type,
                text=q.text,
                points=q.points,
                position=q.position,
                options=[OptionOut(id=o.id, text=o.text) for o in q.options],
            )
            for q in quiz.questions
        ],
    )


@router.post(
    "/{quiz_id}/submit",
    response_model=QuizAttemptOut,
    status_code=status.HTTP_201_CREATED,
)
async def submit_quiz(
    quiz_id: UUID, body: SubmitIn, principal: CurrentUser, store: Store
) -> QuizAttemptOut:
    answers: dict[UUID, list[str]] = {}
    for a in body.answers:
        answers[a.question_id] = [a.answer] if isinstance(a.answer, str) else a.answer
    attempt = await assessment_orchestrator.submit_quiz_attempt(
        store, user_id=principal.user_id, quiz_id=quiz_id, answers=answers
    )
    return attempt_out(attempt)


@router.get("/{quiz_id}/attempts", response_model=list[QuizAttemptOut])
async def list_attempts(
    quiz_id: UUID, principal: CurrentUser, store: Store
) -> list[QuizAttemptOut]:
    attempts = await assessment_orchestrator.list_quiz_attempts(
        store, user_id=principal.user_id, quiz_id=quiz_id
    )
    return [attempt_out(a) for a in attempts]


@router.get("/{quiz_id}/best-attempt", response_model=QuizAttemptOut | None)
async def best_attempt(
    quiz_id: UUID, principal: CurrentUser, store: Store
) -> QuizAttemptOut | None:
    attempt = await assessment_orchestrator.best_quiz_attempt(
        store, user_id=principal.user_id, quiz_id=quiz_id
    )
    return attempt_out(attempt) if attempt else None
