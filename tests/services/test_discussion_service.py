from __future__ import annotations

import asyncio
from uuid import uuid4

import pytest

from courseight.core.errors import ForbiddenError, InvalidInputError, NotFoundError
from courseight.models.principal import Principal
from courseight.services import discussion_service
from tests.conftest import make_course, make_user


def _principal(user) -> Principal:
    return Principal(user_id=str(user.id), roles=frozenset({user.role}))


def _post(store, course, author):
    return asyncio.run(
        discussion_service.create_discussion(
            store, course_id=course.id, author_id=author.id, title="Help", content="Stuck on week 2"
        )
    )


def test_create_links_to_course(store) -> None:
    course = make_course(make_user("instructor"))
    post = _post(store, course, make_user())

    assert post.id in asyncio.run(store.courses.get_by_id(course.id)).discussion_ids
    assert asyncio.run(discussion_service.list_for_course(store, course.id)) == [post]


def test_create_requires_course_and_content(store) -> None:
    author = make_user()
    with pytest.raises(NotFoundError):
        asyncio.run(
            discussion_service.create_discussion(
                store, course_id=uuid4(), author_id=author.id, title="t", content="c"
            )
        )
    course = make_course(make_user("instructor"))
    with pytest.raises(InvalidInputError):
        asyncio.run(
            discussion_service.create_discussion(
                store, course_id=course.id, author_id=author.id, title="t", content="  "
            )
        )


def test_only_author_or_staff_may_edit(store) -> None:
    course = make_course(make_user("instructor"))
    author, other = make_user(), make_user()
    post = _post(store, course, author)

    with pytest.raises(ForbiddenError):
        asyncio.run(
            discussion_service.update_discussion(store, post.id, actor=_principal(other), title="x")
        )
    edited = asyncio.run(
        discussion_service.update_discussion(store, post.id, actor=_principal(author), content="Solved")
    )
    assert (edited.title, edited.content) == ("Help", "Solved")


def test_delete_unlinks(store) -> None:
    course = make_course(make_user("instructor"))
    post = _post(store, course, make_user())

    asyncio.run(discussion_service.delete_discussion(store, post.id, actor=_principal(make_user("admin"))))

    assert post.id not in asyncio.run(store.courses.get_by_id(course.id)).discussion_ids
    with pytest.raises(NotFoundError):
        asyncio.run(discussion_service.get_discussion(store, post.id))


def test_replies(store) -> None:
    course = make_course(make_user("instructor"))
    replier = make_user()
    post = _post(store, course, make_user())

    with_reply = asyncio.run(
        discussion_service.add_reply(store, post.id, author_id=replier.id, content="Try this")
    )
    reply = with_reply.replies[0]
    with pytest.raises(ForbiddenError):
        asyncio.run(
            discussion_service.delete_reply(store, post.id, reply.id, actor=_principal(make_user()))
        )
    after = asyncio.run(
        discussion_service.delete_reply(store, post.id, reply.id, actor=_principal(replier))
    )
    assert after.replies == ()
    with pytest.raises(NotFoundError):
        asyncio.run(
            discussion_service.delete_reply(store, post.id, reply.id, actor=_principal(replier))
        )


def test_toggle_like_is_one_per_user(store) -> None:
    course = make_course(make_user("instructor"))
    post = _post(store, course, make_user())
    fan = make_user()

    liked = asyncio.run(discussion_service.toggle_like(store, post.id, fan.id))
    assert liked.like_count == 1
    unliked = asyncio.run(discussion_service.toggle_like(store, post.id, fan.id))
    assert unliked.like_count == 0
    with pytest.raises(NotFoundError):
        asyncio.run(discussion_service.toggle_like(store, uuid4(), fan.id))
