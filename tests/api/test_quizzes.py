from __future__ import annotations

import asyncio

from fastapi.testclient import TestClient

from lms_core.api.dependencies import memory_store
from lms_core.repos.course_catalog import SAMPLE_QUIZ_ID
from tests.conftest import auth

BASE = "/v1/quizzes"


def _questions() -> list:
    quiz = asyncio.run(memory_store.catalog.get_quiz(SAMPLE_QUIZ_ID))
    return list(quiz.questions)


def _submit(client: TestClient, headers: dict, answers: list[dict]):
    return client.post(
        f"{BASE}/{SAMPLE_QUIZ_ID}/submit", json={"answers": answers}, headers=headers
    )


def test_quiz_view_hides_answers(client: TestClient, token: str) -> None:
    resp = client.get(
        f"{BASE}/{SAMPLE_QUIZ_ID}", headers={"Authorization": f"Bearer {token}"}
    )
    assert resp.status_code == 200
    body = resp.json()
    assert body["total_points"] == 3
    assert body["passing_score"] == 70
    for question in body["questions"]:
        assert "explanation" not in question
        for option in question["options"]:
            assert set(option) == {"id", "text"}


def test_unknown_quiz_is_404(client: TestClient, token: str) -> None:
    resp = client.get(
        f"{BASE}/00000000-0000-0000-0000-00000000ffff",
        headers={"Authorization": f"Bearer {token}"},
    )
    assert resp.status_code == 404


def test_quiz_requires_auth(client: TestClient) -> None:
    assert client.get(f"{BASE}/{SAMPLE_QUIZ_ID}").status_code == 401


def test_submit_scores_attempt(client: TestClient, token: str) -> None:
    headers = {"Authorization": f"Bearer {token}"}
    single, multi = _questions()

    first = _submit(
        client,
        headers,
        [
            {"question_id": str(single.id), "answer": "opt1"},
            {"question_id": str(multi.id), "answer": ["opt1"]},
        ],
    )
    assert first.status_code == 201
    body = first.json()
    assert (body["attempt_no"], body["score"], body["percentage"], body["passed"]) == (
        1,
        1,
        33,
        False,
    )
    by_question = {a["question_id"]: a for a in body["answers"]}
    assert by_question[str(multi.id)]["is_correct"] is False
    assert by_question[str(multi.id)]["selected"] == ["opt1"]

    second = _submit(
        client,
        headers,
        [
            {"question_id": str(single.id), "answer": "opt1"},
            {"question_id": str(multi.id), "answer": ["opt3", "opt1"]},
        ],
    ).json()
    assert (second["attempt_no"], second["percentage"], second["passed"]) == (
        2,
        100,
        True,
    )

    attempts = client.get(f"{BASE}/{SAMPLE_QUIZ_ID}/attempts", headers=headers).json()
    assert len(attempts) == 2
    best = client.get(f"{BASE}/{SAMPLE_QUIZ_ID}/best-attempt", headers=headers).json()
    assert best["id"] == second["id"]


def test_best_attempt_is_null_before_any_submission(
    client: TestClient, token: str
) -> None:
    resp = client.get(
        f"{BASE}/{SAMPLE_QUIZ_ID}/best-attempt",
        headers={"Authorization": f"Bearer {token}"},
    )
    assert resp.status_code == 200
    assert resp.json() is None


def test_attempts_are_per_user(client: TestClient) -> None:
    _submit(client, auth("alice"), [])
    assert client.get(f"{BASE}/{SAMPLE_QUIZ_ID}/attempts", headers=auth("bob")).json() == []
    bob = _submit(client, auth("bob"), []).json()
    assert bob["attempt_no"] == 1
