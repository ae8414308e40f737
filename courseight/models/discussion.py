from __future__ import annotations

import time
from dataclasses import dataclass
from uuid import UUID, uuid4


@dataclass(frozen=True, slots=True)
class Reply:
    id: UUID
    author_id: UUID
    content: str
    created_at: int

    @staticmethod
    def new(*, author_id: UUID, content: str) -> Reply:
        return Reply(
            id=uuid4(), author_id=author_id, content=content, created_at=int(time.time())
        )


@dataclass(frozen=True, slots=True)
class Discussion:
    id: UUID
    course_id: UUID
    author_id: UUID
    title: str
    content: str
    replies: tuple[Reply, ...] = ()
    liked_by: tuple[UUID, ...] = ()  # set semantics, one like per user
    created_at: int = 0
    updated_at: int = 0

    @staticmethod
    def new(
        *, course_id: UUID, author_id: UUID, title: str, content: str
    ) -> Discussion:
        now = int(time.time())
        return Discussion(
            id=uuid4(),
            course_id=course_id,
            author_id=author_id,
            title=title,
            content=content,
            created_at=now,
            updated_at=now,
        )

    @property
    def like_count(self) -> int:
        return len(self.liked_by)
