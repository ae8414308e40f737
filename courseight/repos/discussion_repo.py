from __future__ import annotations

from dataclasses import replace
from typing import Protocol
from uuid import UUID

from courseight.models.discussion import Discussion, Reply


class DiscussionRepo(Protocol):
    async def get_by_id(self, discussion_id: UUID) -> Discussion | None: ...
    async def add(self, discussion: Discussion) -> None: ...
    async def list_by_course(self, course_id: UUID) -> list[Discussion]: ...
    async def update_content(
        self, discussion_id: UUID, *, title: str, content: str, updated_at: int
    ) -> Discussion | None: ...
    async def delete(self, discussion_id: UUID) -> bool: ...
    async def add_reply(self, discussion_id: UUID, reply: Reply) -> Discussion | None: ...
    async def remove_reply(
        self, discussion_id: UUID, reply_id: UUID
    ) -> Discussion | None: ...
    async def toggle_like(
        self, discussion_id: UUID, user_id: UUID
    ) -> Discussion | None: ...


class InMemoryDiscussionRepo:
    def __init__(self) -> None:
        self._by_id: dict[UUID, Discussion] = {}

    def clear(self) -> None:
        self._by_id.clear()

    def _put(self, discussion: Discussion) -> Discussion:
        self._by_id[discussion.id] = discussion
        return discussion

    async def get_by_id(self, discussion_id: UUID) -> Discussion | None:
        return self._by_id.get(discussion_id)

    async def add(self, discussion: Discussion) -> None:
        if discussion.id in self._by_id:
            raise ValueError("discussion already exists")
        self._put(discussion)

    async def list_by_course(self, course_id: UUID) -> list[Discussion]:
        found = [d for d in self._by_id.values() if d.course_id == course_id]
        found.sort(key=lambda d: d.created_at, reverse=True)
        return found

    async def update_content(
        self, discussion_id: UUID, *, title: str, content: str, updated_at: int
    ) -> Discussion | None:
        d = self._by_id.get(discussion_id)
        if d is None:
            return None
        return self._put(replace(d, title=title, content=content, updated_at=updated_at))

    async def delete(self, discussion_id: UUID) -> bool:
        return self._by_id.pop(discussion_id, None) is not None

    async def add_reply(self, discussion_id: UUID, reply: Reply) -> Discussion | None:
        d = self._by_id.get(discussion_id)
        if d is None:
            return None
        return self._put(replace(d, replies=(*d.replies, reply)))

    async def remove_reply(
        self, discussion_id: UUID, reply_id: UUID
    ) -> Discussion | None:
        d = self._by_id.get(discussion_id)
        if d is None:
            return None
        return self._put(
            replace(d, replies=tuple(r for r in d.replies if r.id != reply_id))
        )

    async def toggle_like(
        self, discussion_id: UUID, user_id: UUID
    ) -> Discussion | None:
        d = self._by_id.get(discussion_id)
        if d is None:
            return None
        if user_id in d.liked_by:
            liked_by = tuple(u for u in d.liked_by if u != user_id)
        else:
            liked_by = (*d.liked_by, user_id)
        return self._put(replace(d, liked_by=liked_by))
