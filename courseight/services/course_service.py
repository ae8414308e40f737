from __future__ import annotations

import logging
import math
import time
from dataclasses import dataclass
from uuid import UUID

from courseight.core.errors import (
    ConflictError,
    ForbiddenError,
    InvalidInputError,
    NotFoundError,
)
from courseight.core.metrics import ENROLLMENTS
from courseight.models.course import Course
from courseight.models.principal import Principal
from courseight.repos.store import Store
from courseight.services import progress_service

logger = logging.getLogger(__name__)

TITLE_MIN = 3
TITLE_MAX = 100
DESCRIPTION_MIN = 10
PAGE_LIMIT_MAX = 100


@dataclass(frozen=True, slots=True)
class CoursePage:
    courses: list[Course]
    total: int
    page: int
    pages: int
    limit: int


def _validate_details(title: str, description: str) -> tuple[str, str]:
    title = title.strip()
    description = description.strip()
    if not TITLE_MIN <= len(title) <= TITLE_MAX:
        raise InvalidInputError(
            f"title must be {TITLE_MIN}..{TITLE_MAX} characters"
        )
    if len(description) < DESCRIPTION_MIN:
        raise InvalidInputError(
            f"description must be at least {DESCRIPTION_MIN} characters"
        )
    return title, description


def ensure_can_manage(course: Course, actor: Principal) -> None:
    """Owning instructor or admin."""
    if actor.is_admin() or str(course.instructor_id) == actor.user_id:
        return
    logger.warning(
        "Course change denied: user=%s course=%s", actor.user_id, course.id
    )
    raise ForbiddenError("only the course instructor or an admin may do this")


async def get_course(store: Store, course_id: UUID) -> Course:
    course = await store.courses.get_by_id(course_id)
    if course is None:
        raise NotFoundError("Course not found")
    return course


async def create_course(
    store: Store, *, title: str, description: str, instructor_id: UUID
) -> Course:
    title, description = _validate_details(title, description)
    course = Course.new(title=title, description=description, instructor_id=instructor_id)
    await store.courses.add(course)
    logger.info("Course created  course_id=%s title=%s", course.id, course.title)
    return course


async def list_courses(
    store: Store, *, search: str = "", page: int = 1, limit: int = 10
) -> CoursePage:
    if page < 1:
        raise InvalidInputError("page must be >= 1")
    if not 1 <= limit <= PAGE_LIMIT_MAX:
        raise InvalidInputError(f"limit must be 1..{PAGE_LIMIT_MAX}")
    search = search.strip()
    courses = await store.courses.search(search, offset=(page - 1) * limit, limit=limit)
    total = await store.courses.count(search)
    return CoursePage(
        courses=courses,
        total=total,
        page=page,
        pages=math.ceil(total / limit),
        limit=limit,
    )


async def update_course(
    store: Store,
    course_id: UUID,
    *,
    actor: Principal,
    title: str | None = None,
    description: str | None = None,
) -> Course:
    course = await get_course(store, course_id)
    ensure_can_manage(course, actor)
    title, description = _validate_details(
        course.title if title is None else title,
        course.description if description is None else description,
    )
    updated = await store.courses.update_details(
        course_id, title=title, description=description, updated_at=int(time.time())
    )
    if updated is None:
        raise NotFoundError("Course not found")
    logger.info("Course updated  course_id=%s", course_id)
    return updated


async def delete_course(store: Store, course_id: UUID, *, actor: Principal) -> None:
    """Delete a course that nothing references any more.

    Courses with enrolled students, linked assessments or linked
    discussions are kept; the caller must detach those first.
    """
    course = await get_course(store, course_id)
    ensure_can_manage(course, actor)
    if course.is_referenced:
        logger.warning("Course delete refused, still referenced  course_id=%s", course_id)
        raise ConflictError(
            "course still has students, assessments or discussions"
        )
    await store.courses.delete(course_id)
    logger.info("Course deleted  course_id=%s", course_id)


async def enroll(store: Store, course_id: UUID, user_id: UUID) -> Course:
    await get_course(store, course_id)
    if await store.users.get_by_id(user_id) is None:
        raise NotFoundError(f"user {user_id} not found")
    if not await store.courses.add_student(course_id, user_id):
        raise ConflictError("User already enrolled in this course")
    await store.users.add_enrollment(user_id, course_id)
    await progress_service.record_enrollment(store, user_id, course_id)
    ENROLLMENTS.labels(action="enroll").inc()
    logger.info(
        "Enrolled", extra={"user_id": str(user_id), "course_id": str(course_id)}
    )
    return await get_course(store, course_id)


async def unenroll(store: Store, course_id: UUID, user_id: UUID) -> Course:
    """Drop the enrollment; the progress record and its log are kept."""
    await get_course(store, course_id)
    if not await store.courses.remove_student(course_id, user_id):
        raise ConflictError("User is not enrolled in this course")
    await store.users.remove_enrollment(user_id, course_id)
    ENROLLMENTS.labels(action="unenroll").inc()
    logger.info(
        "Unenrolled", extra={"user_id": str(user_id), "course_id": str(course_id)}
    )
    return await get_course(store, course_id)


async def link_assessment(
    store: Store, course_id: UUID, assessment_id: UUID, *, actor: Principal
) -> Course:
    course = await get_course(store, course_id)
    ensure_can_manage(course, actor)
    assessment = await store.assessments.get_by_id(assessment_id)
    if assessment is None:
        raise NotFoundError("Assessment not found")
    if assessment.course_id is not None and assessment.course_id != course_id:
        raise ConflictError("assessment already belongs to another course")
    owner = await store.courses.find_by_assessment(assessment_id)
    if owner is not None and owner.id != course_id:
        raise ConflictError("assessment already belongs to another course")
    await store.courses.link_assessment(course_id, assessment_id)
    if assessment.course_id is None:
        await store.assessments.set_course(assessment_id, course_id)
    logger.info(
        "Assessment linked",
        extra={"course_id": str(course_id), "assessment_id": str(assessment_id)},
    )
    return await get_course(store, course_id)
