from __future__ import annotations

import asyncio
from uuid import uuid4

import pytest

from courseight.core.errors import (
    ConflictError,
    ForbiddenError,
    InvalidInputError,
    NotFoundError,
)
from courseight.models.principal import Principal
from courseight.services import course_service
from tests.conftest import enroll, make_assessment, make_course, make_user


def _principal(user) -> Principal:
    return Principal(user_id=str(user.id), roles=frozenset({user.role}))


def test_create_course_trims_and_validates(store) -> None:
    instructor = make_user("instructor")
    course = asyncio.run(
        course_service.create_course(
            store,
            title="  Data Science  ",
            description="Statistics, plots and models.",
            instructor_id=instructor.id,
        )
    )
    assert course.title == "Data Science"
    assert asyncio.run(store.courses.get_by_id(course.id)) == course


@pytest.mark.parametrize(
    "title,description",
    [("ab", "long enough description"), ("x" * 101, "long enough description"), ("Valid", "short")],
)
def test_create_course_rejects_bad_details(store, title: str, description: str) -> None:
    instructor = make_user("instructor")
    with pytest.raises(InvalidInputError):
        asyncio.run(
            course_service.create_course(
                store, title=title, description=description, instructor_id=instructor.id
            )
        )


def test_list_courses_paginates_and_searches(store) -> None:
    instructor = make_user("instructor")
    for i in range(5):
        make_course(instructor, f"Python part {i}")
    make_course(instructor, "Rust basics")

    page = asyncio.run(course_service.list_courses(store, search="python", page=2, limit=2))
    assert page.total == 5
    assert page.pages == 3
    assert len(page.courses) == 2

    empty = asyncio.run(course_service.list_courses(store, search="haskell"))
    assert (empty.total, empty.pages, empty.courses) == (0, 0, [])


@pytest.mark.parametrize("page,limit", [(0, 10), (1, 0), (1, 101)])
def test_list_courses_rejects_bad_paging(store, page: int, limit: int) -> None:
    with pytest.raises(InvalidInputError):
        asyncio.run(course_service.list_courses(store, page=page, limit=limit))


def test_update_course_by_owner_only(store) -> None:
    owner, other = make_user("instructor"), make_user("instructor")
    course = make_course(owner)

    updated = asyncio.run(
        course_service.update_course(
            store, course.id, actor=_principal(owner), title="Renamed course"
        )
    )
    assert updated.title == "Renamed course"
    assert updated.description == course.description

    with pytest.raises(ForbiddenError):
        asyncio.run(
            course_service.update_course(
                store, course.id, actor=_principal(other), title="Hijacked"
            )
        )


def test_admin_may_update_any_course(store) -> None:
    course = make_course(make_user("instructor"))
    admin = make_user("admin")
    updated = asyncio.run(
        course_service.update_course(
            store, course.id, actor=_principal(admin), description="Rewritten by an admin."
        )
    )
    assert updated.description == "Rewritten by an admin."


def test_delete_refused_while_referenced(store) -> None:
    owner = make_user("instructor")
    course = make_course(owner)
    enroll(make_user(), course)

    with pytest.raises(ConflictError):
        asyncio.run(course_service.delete_course(store, course.id, actor=_principal(owner)))
    assert asyncio.run(store.courses.get_by_id(course.id)) is not None


def test_delete_unreferenced_course(store) -> None:
    owner = make_user("instructor")
    course = make_course(owner)
    asyncio.run(course_service.delete_course(store, course.id, actor=_principal(owner)))
    with pytest.raises(NotFoundError):
        asyncio.run(course_service.get_course(store, course.id))


def test_enroll_links_both_sides(store) -> None:
    course = make_course(make_user("instructor"))
    student = make_user()

    enroll(student, course)

    stored = asyncio.run(store.courses.get_by_id(course.id))
    user = asyncio.run(store.users.get_by_id(student.id))
    assert stored.has_student(student.id)
    assert user.is_enrolled(course.id)


def test_enroll_twice_conflicts(store) -> None:
    course = make_course(make_user("instructor"))
    student = make_user()
    enroll(student, course)
    with pytest.raises(ConflictError):
        enroll(student, course)


def test_enroll_unknown_user_or_course(store) -> None:
    course = make_course(make_user("instructor"))
    with pytest.raises(NotFoundError):
        asyncio.run(course_service.enroll(store, course.id, uuid4()))
    with pytest.raises(NotFoundError):
        asyncio.run(course_service.enroll(store, uuid4(), make_user().id))


def test_unenroll_keeps_progress(store) -> None:
    course = make_course(make_user("instructor"))
    student = make_user()
    enroll(student, course)

    asyncio.run(course_service.unenroll(store, course.id, student.id))

    user = asyncio.run(store.users.get_by_id(student.id))
    assert not user.is_enrolled(course.id)
    assert asyncio.run(store.progress.get(student.id, course.id)) is not None
    with pytest.raises(ConflictError):
        asyncio.run(course_service.unenroll(store, course.id, student.id))


def test_link_assessment_sets_course(store) -> None:
    owner = make_user("instructor")
    course = make_course(owner)
    quiz = make_assessment(None)

    linked = asyncio.run(
        course_service.link_assessment(store, course.id, quiz.id, actor=_principal(owner))
    )

    assert quiz.id in linked.assessment_ids
    assert asyncio.run(store.assessments.get_by_id(quiz.id)).course_id == course.id


def test_link_assessment_owned_elsewhere_conflicts(store) -> None:
    owner = make_user("instructor")
    course, other = make_course(owner), make_course(owner, "Other course")
    quiz = make_assessment(other)
    with pytest.raises(ConflictError):
        asyncio.run(
            course_service.link_assessment(store, course.id, quiz.id, actor=_principal(owner))
        )
