"""PostgreSQL implementation of QuizAttemptRepo."""

from __future__ import annotations

from uuid import UUID

from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from lms_core.db.tables import QuizAttemptRow
from lms_core.models.quiz import AttemptAnswer, QuizAttempt


class PgQuizAttemptRepo:
    """Satisfies the QuizAttemptRepo Protocol using PostgreSQL."""

    def __init__(self, session: AsyncSession) -> None:
        self._session = session

    async def add(self, attempt: QuizAttempt) -> None:
        row = QuizAttemptRow(
            id=attempt.id,
            user_id=attempt.user_id,
            quiz_id=attempt.quiz_id,
            attempt_no=attempt.attempt_no,
            score=attempt.score,
            total_points=attempt.total_points,
            percentage=attempt.percentage,
            passed=attempt.passed,
            answers=[_answer_to_json(a) for a in attempt.answers],
            completed_at=attempt.completed_at,
        )
        self._session.add(row)
        await self._session.flush()

    async def count_for_user(self, user_id: str, quiz_id: UUID) -> int:
        stmt = select(func.count()).where(
            QuizAttemptRow.user_id == user_id, QuizAttemptRow.quiz_id == quiz_id
        )
        return (await self._session.execute(stmt)).scalar_one()

    async def list_for_user(self, user_id: str, quiz_id: UUID) -> list[QuizAttempt]:
        stmt = (
            select(QuizAttemptRow)
            .where(QuizAttemptRow.user_id == user_id, QuizAttemptRow.quiz_id == quiz_id)
            .order_by(
                QuizAttemptRow.completed_at.desc(), QuizAttemptRow.attempt_no.desc()
            )
        )
        rows = (await self._session.execute(stmt)).scalars().all()
        return [_row_to_attempt(r) for r in rows]

    async def best_for_user(self, user_id: str, quiz_id: UUID) -> QuizAttempt | None:
        # Same ordering as quiz_attempt_repo.best_attempt_key.
        stmt = (
            select(QuizAttemptRow)
            .where(QuizAttemptRow.user_id == user_id, QuizAttemptRow.quiz_id == quiz_id)
            .order_by(
                QuizAttemptRow.percentage.desc(),
                QuizAttemptRow.completed_at.desc(),
                QuizAttemptRow.attempt_no.desc(),
            )
            .limit(1)
        )
        row = (await self._session.execute(stmt)).scalar_one_or_none()
        if row is None:
            return None
        return _row_to_attempt(row)


def _answer_to_json(answer: AttemptAnswer) -> dict:
    return {
        "question_id": str(answer.question_id),
        "selected": sorted(answer.selected),
        "is_correct": answer.is_correct,
        "points_awarded": answer.points_awarded,
    }


def _row_to_attempt(row: QuizAttemptRow) -> QuizAttempt:
    return QuizAttempt(
        id=row.id,
        user_id=row.user_id,
        quiz_id=row.quiz_id,
        attempt_no=row.attempt_no,
        score=row.score,
        total_points=row.total_points,
        percentage=row.percentage,
        passed=row.passed,
        answers=tuple(
            AttemptAnswer(
                question_id=UUID(a["question_id"]),
                selected=frozenset(a["selected"]),
                is_correct=a["is_correct"],
                points_awarded=a["points_awarded"],
            )
            for a in row.answers
        ),
        completed_at=row.completed_at,
    )
