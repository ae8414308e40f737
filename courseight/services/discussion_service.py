from __future__ import annotations

import logging
import time
from uuid import UUID

from courseight.core.errors import ForbiddenError, InvalidInputError, NotFoundError
from courseight.models.discussion import Discussion, Reply
from courseight.models.principal import Principal
from courseight.repos.store import Store
from courseight.services.course_service import get_course

logger = logging.getLogger(__name__)


def _required(value: str, field: str) -> str:
    value = value.strip()
    if not value:
        raise InvalidInputError(f"{field} is required")
    return value


def _ensure_author_or_staff(author_id: UUID, actor: Principal) -> None:
    if actor.is_staff() or str(author_id) == actor.user_id:
        return
    logger.warning("Discussion change denied: user=%s", actor.user_id)
    raise ForbiddenError("only the author, an instructor or an admin may do this")


async def get_discussion(store: Store, discussion_id: UUID) -> Discussion:
    discussion = await store.discussions.get_by_id(discussion_id)
    if discussion is None:
        raise NotFoundError("Discussion not found")
    return discussion


async def list_for_course(store: Store, course_id: UUID) -> list[Discussion]:
    await get_course(store, course_id)
    return await store.discussions.list_by_course(course_id)


async def create_discussion(
    store: Store, *, course_id: UUID, author_id: UUID, title: str, content: str
) -> Discussion:
    await get_course(store, course_id)
    discussion = Discussion.new(
        course_id=course_id,
        author_id=author_id,
        title=_required(title, "title"),
        content=_required(content, "content"),
    )
    await store.discussions.add(discussion)
    await store.courses.link_discussion(course_id, discussion.id)
    logger.info(
        "Discussion created  discussion_id=%s", discussion.id,
        extra={"course_id": str(course_id)},
    )
    return discussion


async def update_discussion(
    store: Store,
    discussion_id: UUID,
    *,
    actor: Principal,
    title: str | None = None,
    content: str | None = None,
) -> Discussion:
    discussion = await get_discussion(store, discussion_id)
    _ensure_author_or_staff(discussion.author_id, actor)
    updated = await store.discussions.update_content(
        discussion_id,
        title=discussion.title if title is None else _required(title, "title"),
        content=discussion.content if content is None else _required(content, "content"),
        updated_at=int(time.time()),
    )
    if updated is None:
        raise NotFoundError("Discussion not found")
    return updated


async def delete_discussion(
    store: Store, discussion_id: UUID, *, actor: Principal
) -> None:
    discussion = await get_discussion(store, discussion_id)
    _ensure_author_or_staff(discussion.author_id, actor)
    await store.courses.unlink_discussion(discussion.course_id, discussion_id)
    await store.discussions.delete(discussion_id)
    logger.info("Discussion deleted  discussion_id=%s", discussion_id)


async def add_reply(
    store: Store, discussion_id: UUID, *, author_id: UUID, content: str
) -> Discussion:
    reply = Reply.new(author_id=author_id, content=_required(content, "content"))
    updated = await store.discussions.add_reply(discussion_id, reply)
    if updated is None:
        raise NotFoundError("Discussion not found")
    return updated


async def delete_reply(
    store: Store, discussion_id: UUID, reply_id: UUID, *, actor: Principal
) -> Discussion:
    discussion = await get_discussion(store, discussion_id)
    reply = next((r for r in discussion.replies if r.id == reply_id), None)
    if reply is None:
        raise NotFoundError("Reply not found")
    _ensure_author_or_staff(reply.author_id, actor)
    updated = await store.discussions.remove_reply(discussion_id, reply_id)
    if updated is None:
        raise NotFoundError("Discussion not found")
    return updated


async def toggle_like(store: Store, discussion_id: UUID, user_id: UUID) -> Discussion:
    updated = await store.discussions.toggle_like(discussion_id, user_id)
    if updated is None:
        raise NotFoundError("Discussion not found")
    return updated
