"""PostgreSQL implementation of DiscussionRepo."""

from __future__ import annotations

from uuid import UUID

from sqlalchemy import delete, select, update
from sqlalchemy.ext.asyncio import AsyncSession

from courseight.db.tables import DiscussionRow
from courseight.models.discussion import Discussion, Reply
from courseight.repos.pg_errors import store_errors


class PgDiscussionRepo:
    """Satisfies the DiscussionRepo Protocol using PostgreSQL via SQLAlchemy."""

    def __init__(self, session: AsyncSession) -> None:
        self._session = session

    async def _locked(self, discussion_id: UUID) -> DiscussionRow | None:
        stmt = (
            select(DiscussionRow)
            .where(DiscussionRow.id == discussion_id)
            .with_for_update()
        )
        return (await self._session.execute(stmt)).scalar_one_or_none()

    async def get_by_id(self, discussion_id: UUID) -> Discussion | None:
        with store_errors("get discussion"):
            stmt = select(DiscussionRow).where(DiscussionRow.id == discussion_id)
            row = (await self._session.execute(stmt)).scalar_one_or_none()
        return None if row is None else _row_to_discussion(row)

    async def add(self, discussion: Discussion) -> None:
        with store_errors("add discussion"):
            self._session.add(
                DiscussionRow(
                    id=discussion.id,
                    course_id=discussion.course_id,
                    author_id=discussion.author_id,
                    title=discussion.title,
                    content=discussion.content,
                    replies=[_reply_to_json(r) for r in discussion.replies],
                    liked_by=list(discussion.liked_by),
                    created_at=discussion.created_at,
                    updated_at=discussion.updated_at,
                )
            )
            await self._session.flush()

    async def list_by_course(self, course_id: UUID) -> list[Discussion]:
        with store_errors("list discussions"):
            stmt = (
                select(DiscussionRow)
                .where(DiscussionRow.course_id == course_id)
                .order_by(DiscussionRow.created_at.desc())
            )
            rows = (await self._session.execute(stmt)).scalars().all()
        return [_row_to_discussion(r) for r in rows]

    async def update_content(
        self, discussion_id: UUID, *, title: str, content: str, updated_at: int
    ) -> Discussion | None:
        with store_errors("update discussion"):
            stmt = (
                update(DiscussionRow)
                .where(DiscussionRow.id == discussion_id)
                .values(title=title, content=content, updated_at=updated_at)
            )
            result = await self._session.execute(stmt)
        if result.rowcount == 0:
            return None
        return await self.get_by_id(discussion_id)

    async def delete(self, discussion_id: UUID) -> bool:
        with store_errors("delete discussion"):
            result = await self._session.execute(
                delete(DiscussionRow).where(DiscussionRow.id == discussion_id)
            )
        return result.rowcount > 0

    async def add_reply(self, discussion_id: UUID, reply: Reply) -> Discussion | None:
        with store_errors("add reply"):
            row = await self._locked(discussion_id)
            if row is None:
                return None
            row.replies = [*(row.replies or []), _reply_to_json(reply)]
            await self._session.flush()
        return _row_to_discussion(row)

    async def remove_reply(
        self, discussion_id: UUID, reply_id: UUID
    ) -> Discussion | None:
        with store_errors("remove reply"):
            row = await self._locked(discussion_id)
            if row is None:
                return None
            row.replies = [r for r in row.replies or [] if r["id"] != str(reply_id)]
            await self._session.flush()
        return _row_to_discussion(row)

    async def toggle_like(
        self, discussion_id: UUID, user_id: UUID
    ) -> Discussion | None:
        with store_errors("toggle like"):
            row = await self._locked(discussion_id)
            if row is None:
                return None
            liked_by = list(row.liked_by or [])
            if user_id in liked_by:
                liked_by.remove(user_id)
            else:
                liked_by.append(user_id)
            row.liked_by = liked_by
            await self._session.flush()
        return _row_to_discussion(row)


def _reply_to_json(reply: Reply) -> dict:
    return {
        "id": str(reply.id),
        "author_id": str(reply.author_id),
        "content": reply.content,
        "created_at": reply.created_at,
    }


def _row_to_discussion(row: DiscussionRow) -> Discussion:
    return Discussion(
        id=row.id,
        course_id=row.course_id,
        author_id=row.author_id,
        title=row.title,
        content=row.content,
        replies=tuple(
            Reply(
                id=UUID(r["id"]),
                author_id=UUID(r["author_id"]),
                content=r["content"],
                created_at=r["created_at"],
            )
            for r in row.replies or ()
        ),
        liked_by=tuple(row.liked_by or ()),
        created_at=row.created_at,
        updated_at=row.updated_at,
    )
