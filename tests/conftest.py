from __future__ import annotations

import asyncio
import sys
from pathlib import Path

import pytest
from fastapi.testclient import TestClient

# Ensure repo root is on sys.path so `import courseight` works under pytest.
ROOT = Path(__file__).resolve().parents[1]
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))

from courseight.main import app  # noqa: E402
from courseight.models.assessment import Assessment, Question  # noqa: E402
from courseight.models.course import Course  # noqa: E402
from courseight.models.user import User  # noqa: E402
from courseight.repos.store import memory_store  # noqa: E402
from courseight.services import token_service  # noqa: E402


@pytest.fixture(autouse=True)
def reset_store() -> None:
    """Clear every in-memory repo between tests."""
    memory_store.clear()


@pytest.fixture
def store():
    return memory_store


@pytest.fixture
def client() -> TestClient:
    return TestClient(app)


def mint_token(
    username: str = "00000000-0000-0000-0000-000000000001",
    roles: list[str] | None = None,
) -> str:
    """Create a valid ES256 JWT for testing."""
    return token_service.create_access_token(sub=username, roles=roles)


def auth(token: str | None) -> dict[str, str]:
    if token is None:
        return {}
    return {"Authorization": f"Bearer {token}"}


# ---------------------------------------------------------------------------
# Seed helpers (write straight into the in-memory store)
# ---------------------------------------------------------------------------


def make_user(role: str = "student", email: str | None = None) -> User:
    user = User.new(
        email=email or f"{role}-{len(memory_store.users._by_id)}@example.com",
        password_hash="x",
        name=role.title(),
        role=role,
    )
    asyncio.run(memory_store.users.add(user))
    return user


def token_for(user: User) -> str:
    return mint_token(username=str(user.id), roles=[user.role])


def make_course(instructor: User, title: str = "Intro to Python") -> Course:
    course = Course.new(
        title=title,
        description="A course long enough to pass validation.",
        instructor_id=instructor.id,
    )
    asyncio.run(memory_store.courses.add(course))
    return course


def make_assessment(
    course: Course | None,
    answer_key: list[int] | None = None,
    *,
    passing_score: int = 60,
    link: bool = True,
    set_course_id: bool = True,
) -> Assessment:
    """Three 3-option questions by default; answer key [0, 1, 1]."""
    key = answer_key if answer_key is not None else [0, 1, 1]
    assessment = Assessment.new(
        title="Quiz",
        description="",
        questions=tuple(
            Question(
                text=f"Q{i}",
                kind="multiple_choice",
                options=("a", "b", "c"),
                correct_index=k,
            )
            for i, k in enumerate(key)
        ),
        course_id=course.id if course is not None and set_course_id else None,
        passing_score=passing_score,
    )
    asyncio.run(memory_store.assessments.add(assessment))
    if course is not None and link:
        asyncio.run(memory_store.courses.link_assessment(course.id, assessment.id))
    return assessment


def enroll(user: User, course: Course) -> None:
    from courseight.services import course_service

    asyncio.run(course_service.enroll(memory_store, course.id, user.id))
