"""Course discussion threads, replies and likes."""

from __future__ import annotations

from uuid import UUID

from fastapi import APIRouter, status
from pydantic import BaseModel

from courseight.api.dependencies import CurrentPrincipal, StoreDep
from courseight.api.errors import to_http_exception
from courseight.core.errors import DomainError
from courseight.models.discussion import Discussion
from courseight.services import discussion_service

router = APIRouter(prefix="/v1/discussions", tags=["discussions"])


class DiscussionIn(BaseModel):
    course_id: UUID
    title: str
    content: str


class DiscussionUpdateIn(BaseModel):
    title: str | None = None
    content: str | None = None


class ReplyIn(BaseModel):
    content: str


class ReplyOut(BaseModel):
    id: UUID
    author_id: UUID
    content: str
    created_at: int


class DiscussionOut(BaseModel):
    id: UUID
    course_id: UUID
    author_id: UUID
    title: str
    content: str
    replies: list[ReplyOut]
    likes: int
    liked_by: list[UUID]
    created_at: int
    updated_at: int

    @classmethod
    def from_discussion(cls, d: Discussion) -> DiscussionOut:
        return cls(
            id=d.id,
            course_id=d.course_id,
            author_id=d.author_id,
            title=d.title,
            content=d.content,
            replies=[
                ReplyOut(
                    id=r.id, author_id=r.author_id, content=r.content, created_at=r.created_at
                )
                for r in d.replies
            ],
            likes=d.like_count,
            liked_by=list(d.liked_by),
            created_at=d.created_at,
            updated_at=d.updated_at,
        )


@router.post("", response_model=DiscussionOut, status_code=status.HTTP_201_CREATED)
async def create_discussion(
    payload: DiscussionIn, principal: CurrentPrincipal, store: StoreDep
) -> DiscussionOut:
    try:
        discussion = await discussion_service.create_discussion(
            store,
            course_id=payload.course_id,
            author_id=UUID(principal.user_id),
            title=payload.title,
            content=payload.content,
        )
    except DomainError as e:
        raise to_http_exception(e) from e
    return DiscussionOut.from_discussion(discussion)


@router.get("/course/{course_id}", response_model=list[DiscussionOut])
async def list_course_discussions(
    course_id: UUID, _principal: CurrentPrincipal, store: StoreDep
) -> list[DiscussionOut]:
    try:
        found = await discussion_service.list_for_course(store, course_id)
    except DomainError as e:
        raise to_http_exception(e) from e
    return [DiscussionOut.from_discussion(d) for d in found]


@router.get("/{discussion_id}", response_model=DiscussionOut)
async def get_discussion(
    discussion_id: UUID, _principal: CurrentPrincipal, store: StoreDep
) -> DiscussionOut:
    try:
        discussion = await discussion_service.get_discussion(store, discussion_id)
    except DomainError as e:
        raise to_http_exception(e) from e
    return DiscussionOut.from_discussion(discussion)


@router.put("/{discussion_id}", response_model=DiscussionOut)
async def update_discussion(
    discussion_id: UUID,
    payload: DiscussionUpdateIn,
    principal: CurrentPrincipal,
    store: StoreDep,
) -> DiscussionOut:
    try:
        discussion = await discussion_service.update_discussion(
            store,
            discussion_id,
            actor=principal,
            title=payload.title,
            content=payload.content,
        )
    except DomainError as e:
        raise to_http_exception(e) from e
    return DiscussionOut.from_discussion(discussion)


@router.delete("/{discussion_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_discussion(
    discussion_id: UUID, principal: CurrentPrincipal, store: StoreDep
) -> None:
    try:
        await discussion_service.delete_discussion(store, discussion_id, actor=principal)
    except DomainError as e:
        raise to_http_exception(e) from e


@router.post(
    "/{discussion_id}/replies",
    response_model=DiscussionOut,
    status_code=status.HTTP_201_CREATED,
)
async def add_reply(
    discussion_id: UUID,
    payload: ReplyIn,
    principal: CurrentPrincipal,
    store: StoreDep,
) -> DiscussionOut:
    try:
        discussion = await discussion_service.add_reply(
            store,
            discussion_id,
            author_id=UUID(principal.user_id),
            content=payload.content,
        )
    except DomainError as e:
        raise to_http_exception(e) from e
    return DiscussionOut.from_discussion(discussion)


@router.delete("/{discussion_id}/replies/{reply_id}", response_model=DiscussionOut)
async def delete_reply(
    discussion_id: UUID,
    reply_id: UUID,
    principal: CurrentPrincipal,
    store: StoreDep,
) -> DiscussionOut:
    try:
        discussion = await discussion_service.delete_reply(
            store, discussion_id, reply_id, actor=principal
        )
    except DomainError as e:
        raise to_http_exception(e) from e
    return DiscussionOut.from_discussion(discussion)


@router.post("/{discussion_id}/like", response_model=DiscussionOut)
async def toggle_like(
    discussion_id: UUID, principal: CurrentPrincipal, store: StoreDep
) -> DiscussionOut:
    try:
        discussion = await discussion_service.toggle_like(
            store, discussion_id, UUID(principal.user_id)
        )
    except DomainError as e:
        raise to_http_exception(e) from e
    return DiscussionOut.from_discussion(discussion)
