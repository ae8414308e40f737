"""Course catalog, enrollment and assessment linkage endpoints."""

from __future__ import annotations

from typing import Annotated
from uuid import UUID

from fastapi import APIRouter, Depends, Query, status
from pydantic import BaseModel

from courseight.api.dependencies import CurrentPrincipal, StoreDep, require_staff
from courseight.api.errors import to_http_exception
from courseight.core.errors import DomainError
from courseight.models.course import Course
from courseight.models.principal import Principal
from courseight.services import course_service

router = APIRouter(prefix="/v1/courses", tags=["courses"])


class CourseIn(BaseModel):
    title: str
    description: str


class CourseUpdateIn(BaseModel):
    title: str | None = None
    description: str | None = None


class CourseOut(BaseModel):
    id: UUID
    title: str
    description: str
    instructor_id: UUID
    student_ids: list[UUID]
    assessment_ids: list[UUID]
    discussion_ids: list[UUID]
    created_at: int
    updated_at: int

    @classmethod
    def from_course(cls, c: Course) -> CourseOut:
        return cls(
            id=c.id,
            title=c.title,
            description=c.description,
            instructor_id=c.instructor_id,
            student_ids=list(c.student_ids),
            assessment_ids=list(c.assessment_ids),
            discussion_ids=list(c.discussion_ids),
            created_at=c.created_at,
            updated_at=c.updated_at,
        )


class PaginationOut(BaseModel):
    total: int
    page: int
    pages: int
    limit: int


class CoursePageOut(BaseModel):
    courses: list[CourseOut]
    pagination: PaginationOut


class EnrollmentOut(BaseModel):
    user_id: UUID
    course_id: UUID
    progress_percentage: float


@router.get("", response_model=CoursePageOut)
async def list_courses(
    _principal: CurrentPrincipal,
    store: StoreDep,
    search: str = "",
    page: Annotated[int, Query(ge=1)] = 1,
    limit: Annotated[int, Query(ge=1, le=course_service.PAGE_LIMIT_MAX)] = 10,
) -> CoursePageOut:
    try:
        result = await course_service.list_courses(
            store, search=search, page=page, limit=limit
        )
    except DomainError as e:
        raise to_http_exception(e) from e
    return CoursePageOut(
        courses=[CourseOut.from_course(c) for c in result.courses],
        pagination=PaginationOut(
            total=result.total, page=result.page, pages=result.pages, limit=result.limit
        ),
    )


@router.post("", response_model=CourseOut, status_code=status.HTTP_201_CREATED)
async def create_course(
    payload: CourseIn,
    principal: Annotated[Principal, Depends(require_staff)],
    store: StoreDep,
) -> CourseOut:
    try:
        course = await course_service.create_course(
            store,
            title=payload.title,
            description=payload.description,
            instructor_id=UUID(principal.user_id),
        )
    except DomainError as e:
        raise to_http_exception(e) from e
    return CourseOut.from_course(course)


@router.get("/{course_id}", response_model=CourseOut)
async def get_course(
    course_id: UUID, _principal: CurrentPrincipal, store: StoreDep
) -> CourseOut:
    try:
        return CourseOut.from_course(await course_service.get_course(store, course_id))
    except DomainError as e:
        raise to_http_exception(e) from e


@router.put("/{course_id}", response_model=CourseOut)
async def update_course(
    course_id: UUID,
    payload: CourseUpdateIn,
    principal: CurrentPrincipal,
    store: StoreDep,
) -> CourseOut:
    try:
        course = await course_service.update_course(
            store,
            course_id,
            actor=principal,
            title=payload.title,
            description=payload.description,
        )
    except DomainError as e:
        raise to_http_exception(e) from e
    return CourseOut.from_course(course)


@router.delete("/{course_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_course(
    course_id: UUID, principal: CurrentPrincipal, store: StoreDep
) -> None:
    try:
        await course_service.delete_course(store, course_id, actor=principal)
    except DomainError as e:
        raise to_http_exception(e) from e


@router.post(
    "/{course_id}/enroll",
    response_model=EnrollmentOut,
    status_code=status.HTTP_201_CREATED,
)
async def enroll_in_course(
    course_id: UUID, principal: CurrentPrincipal, store: StoreDep
) -> EnrollmentOut:
    user_id = UUID(principal.user_id)
    try:
        await course_service.enroll(store, course_id, user_id)
    except DomainError as e:
        raise to_http_exception(e) from e
    progress = await store.progress.get(user_id, course_id)
    return EnrollmentOut(
        user_id=user_id,
        course_id=course_id,
        progress_percentage=progress.progress_percentage if progress else 0.0,
    )


@router.delete("/{course_id}/enroll", status_code=status.HTTP_204_NO_CONTENT)
async def unenroll_from_course(
    course_id: UUID, principal: CurrentPrincipal, store: StoreDep
) -> None:
    try:
        await course_service.unenroll(store, course_id, UUID(principal.user_id))
    except DomainError as e:
        raise to_http_exception(e) from e


@router.post("/{course_id}/assessments/{assessment_id}", response_model=CourseOut)
async def link_assessment(
    course_id: UUID,
    assessment_id: UUID,
    principal: Annotated[Principal, Depends(require_staff)],
    store: StoreDep,
) -> CourseOut:
    try:
        course = await course_service.link_assessment(
            store, course_id, assessment_id, actor=principal
        )
    except DomainError as e:
        raise to_http_exception(e) from e
    return CourseOut.from_course(course)
