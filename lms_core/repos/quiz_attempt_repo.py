from __future__ import annotations

from typing import Protocol
from uuid import UUID

from lms_core.models.quiz import QuizAttempt


class QuizAttemptRepo(Protocol):
    async def add(self, attempt: QuizAttempt) -> None: ...
    async def count_for_user(self, user_id: str, quiz_id: UUID) -> int: ...
    async def list_for_user(self, user_id: str, quiz_id: UUID) -> list[QuizAttempt]: ...
    async def best_for_user(self, user_id: str, quiz_id: UUID) -> QuizAttempt | None: ...


def best_attempt_key(attempt: QuizAttempt) -> tuple[int, int, int]:
    """Ordering for "best": highest percentage, then the most recent."""
    return (attempt.percentage, attempt.completed_at, attempt.attempt_no)


class InMemoryQuizAttemptRepo:
    """Append-only attempt log."""

    def __init__(self) -> None:
        self._attempts: list[QuizAttempt] = []

    async def add(self, attempt: QuizAttempt) -> None:
        self._attempts.append(attempt)

    async def count_for_user(self, user_id: str, quiz_id: UUID) -> int:
        return sum(
            1 for a in self._attempts if a.user_id == user_id and a.quiz_id == quiz_id
        )

    async def list_for_user(self, user_id: str, quiz_id: UUID) -> list[QuizAttempt]:
        found = [
            a for a in self._attempts if a.user_id == user_id and a.quiz_id == quiz_id
        ]
        return sorted(found, key=lambda a: (a.completed_at, a.attempt_no), reverse=True)

    async def best_for_user(self, user_id: str, quiz_id: UUID) -> QuizAttempt | None:
        found = [
            a for a in self._attempts if a.user_id == user_id and a.quiz_id == quiz_id
        ]
        if not found:
            return None
        return max(found, key=best_attempt_key)

    def snapshot(self) -> list[QuizAttempt]:
        return list(self._attempts)

    def restore(self, state: list[QuizAttempt]) -> None:
        self._attempts = list(state)

    def clear(self) -> None:
        self._attempts.clear()
