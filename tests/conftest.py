from __future__ import annotations

import sys
from datetime import UTC, datetime, timedelta
from pathlib import Path
from uuid import UUID, uuid4

import jwt
import pytest
from cryptography.hazmat.primitives import serialization
from cryptography.hazmat.primitives.asymmetric import ec
from fastapi.testclient import TestClient

from lms_core.api.dependencies import memory_store
from lms_core.core.config import SETTINGS
from lms_core.main import app
from lms_core.models.course import Course, CourseModule, Lesson
from lms_core.models.quiz import Quiz, QuizOption, QuizQuestion
from lms_core.repos.course_catalog import InMemoryCourseCatalog, seed_sample_course
from lms_core.services import token_service
from lms_core.services.cache import cache_service
from lms_core.services.task_queue import task_queue

# Ensure repo root is on sys.path so `import lms_core` works under pytest.
ROOT = Path(__file__).resolve().parents[1]
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))


@pytest.fixture(autouse=True)
def reset_memory_store() -> None:
    """Fresh engine state and catalog (sample course only) per test."""
    memory_store.clear()
    seed_sample_course(memory_store.catalog)


@pytest.fixture(autouse=True)
def reset_cache() -> None:
    if hasattr(cache_service, "_store"):
        cache_service._store.clear()  # type: ignore[union-attr]


@pytest.fixture(autouse=True)
def reset_task_queue() -> None:
    if hasattr(task_queue, "_queues"):
        task_queue._queues.clear()  # type: ignore[union-attr]


@pytest.fixture
def client() -> TestClient:
    return TestClient(app)


# ---------------------------------------------------------------------------
# Tokens: the upstream auth service is played by a local ES256 key pair
# ---------------------------------------------------------------------------

ISSUER_KEY = ec.generate_private_key(ec.SECP256R1())
ISSUER_PUBLIC_PEM = (
    ISSUER_KEY.public_key()
    .public_bytes(
        serialization.Encoding.PEM, serialization.PublicFormat.SubjectPublicKeyInfo
    )
    .decode()
)


@pytest.fixture(autouse=True)
def trust_test_issuer(monkeypatch: pytest.MonkeyPatch) -> None:
    """Verify bearer tokens against ISSUER_KEY, as JWT_PUBLIC_KEY would in prod."""
    monkeypatch.setattr(
        token_service, "_public_key", token_service.load_public_key(ISSUER_PUBLIC_PEM)
    )


def mint_token(
    username: str = "test-user",
    roles: list[str] | None = None,
    *,
    ttl_minutes: int = 15,
    key: ec.EllipticCurvePrivateKey | None = None,
    **claims,
) -> str:
    """Create an ES256 JWT shaped like the upstream auth service's."""
    now = datetime.now(UTC)
    payload = {
        "sub": username,
        "iss": SETTINGS.jwt_issuer,
        "aud": SETTINGS.jwt_audience,
        "exp": now + timedelta(minutes=ttl_minutes),
        "iat": now,
        "jti": str(uuid4()),
        "roles": roles if roles is not None else ["learner"],
        **claims,
    }
    return jwt.encode(payload, key or ISSUER_KEY, algorithm="ES256")


def auth(username: str = "test-user", roles: list[str] | None = None) -> dict:
    return {"Authorization": f"Bearer {mint_token(username, roles)}"}


@pytest.fixture
def token() -> str:
    return mint_token()


@pytest.fixture
def admin_token() -> str:
    return mint_token(username="test-admin", roles=["admin"])


# ---------------------------------------------------------------------------
# Catalog helpers
# ---------------------------------------------------------------------------


def build_course(
    catalog: InMemoryCourseCatalog,
    *,
    lessons: int = 4,
    modules: int = 2,
    published: bool = True,
    slug: str | None = None,
) -> tuple[Course, list[UUID]]:
    """Add a course whose lessons are spread over ``modules`` modules.

    Returns the course and its lesson ids in catalog order.
    """
    course = Course.new(
        slug=slug or f"course-{uuid4().hex[:8]}",
        title="Test Course",
        is_published=published,
        level="BEGINNER",
    )
    catalog.add_course(course)

    module_list = [
        CourseModule.new(course_id=course.id, position=i, title=f"Module {i}")
        for i in range(1, modules + 1)
    ]
    for m in module_list:
        catalog.add_module(m)

    lesson_ids: list[UUID] = []
    for i in range(lessons):
        module = module_list[i % modules]
        lesson = Lesson.new(module_id=module.id, position=i, title=f"Lesson {i}")
        catalog.add_lesson(lesson)
        lesson_ids.append(lesson.id)

    # add_lesson order differs from module order; return what the catalog reports
    ordered: list[UUID] = []
    for m in module_list:
        ordered.extend(lid for lid in lesson_ids if catalog._lessons[lid].module_id == m.id)
    return course, ordered


def build_quiz(
    catalog: InMemoryCourseCatalog,
    course: Course,
    *,
    passing_score: int = 70,
) -> Quiz:
    """Two questions: Q1 MULTIPLE_CHOICE (1 pt, answer A); Q2 MULTIPLE_SELECT
    (2 pts, answers A and C).  Attached to a fresh module of ``course``."""
    module = CourseModule.new(course_id=course.id, position=99, title="Quiz module")
    catalog.add_module(module)

    quiz_id = uuid4()
    q1 = QuizQuestion.new(
        quiz_id=quiz_id,
        type="MULTIPLE_CHOICE",
        text="Q1",
        position=1,
        points=1,
        options=[
            QuizOption(id="A", text="a", is_correct=True),
            QuizOption(id="B", text="b"),
        ],
    )
    q2 = QuizQuestion.new(
        quiz_id=quiz_id,
        type="MULTIPLE_SELECT",
        text="Q2",
        position=2,
        points=2,
        options=[
            QuizOption(id="A", text="a", is_correct=True),
            QuizOption(id="B", text="b"),
            QuizOption(id="C", text="c", is_correct=True),
        ],
    )
    quiz = Quiz.new(
        id=quiz_id,
        module_id=module.id,
        course_id=course.id,
        title="Quiz",
        questions=[q1, q2],
        passing_score=passing_score,
    )
    catalog.add_quiz(quiz)
    return quiz
