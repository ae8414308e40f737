from __future__ import annotations

from fastapi.testclient import TestClient

from tests.conftest import auth, make_course, make_user, token_for


def _create(client: TestClient, course, author) -> dict:
    resp = client.post(
        "/v1/discussions",
        json={"course_id": str(course.id), "title": "Week 2", "content": "Any hints?"},
        headers=auth(token_for(author)),
    )
    assert resp.status_code == 201
    return resp.json()


def test_thread_lifecycle(client: TestClient) -> None:
    course = make_course(make_user("instructor"))
    author, helper = make_user(), make_user()
    post = _create(client, course, author)

    listed = client.get(
        f"/v1/discussions/course/{course.id}", headers=auth(token_for(helper))
    ).json()
    assert [d["id"] for d in listed] == [post["id"]]

    reply = client.post(
        f"/v1/discussions/{post['id']}/replies",
        json={"content": "Read chapter 4"},
        headers=auth(token_for(helper)),
    )
    assert reply.status_code == 201
    reply_id = reply.json()["replies"][0]["id"]

    liked = client.post(f"/v1/discussions/{post['id']}/like", headers=auth(token_for(helper)))
    assert liked.json()["likes"] == 1
    assert liked.json()["liked_by"] == [str(helper.id)]

    removed = client.delete(
        f"/v1/discussions/{post['id']}/replies/{reply_id}", headers=auth(token_for(helper))
    )
    assert removed.status_code == 200
    assert removed.json()["replies"] == []

    assert (
        client.delete(f"/v1/discussions/{post['id']}", headers=auth(token_for(author))).status_code
        == 204
    )
    assert (
        client.get(f"/v1/discussions/{post['id']}", headers=auth(token_for(author))).status_code
        == 404
    )


def test_only_author_or_staff_may_edit(client: TestClient) -> None:
    course = make_course(make_user("instructor"))
    post = _create(client, course, make_user())

    resp = client.put(
        f"/v1/discussions/{post['id']}",
        json={"title": "Spam"},
        headers=auth(token_for(make_user())),
    )
    assert resp.status_code == 403

    resp = client.put(
        f"/v1/discussions/{post['id']}",
        json={"title": "Moderated"},
        headers=auth(token_for(make_user("admin"))),
    )
    assert resp.status_code == 200
    assert resp.json()["title"] == "Moderated"


def test_discussion_for_unknown_course(client: TestClient) -> None:
    resp = client.post(
        "/v1/discussions",
        json={
            "course_id": "00000000-0000-0000-0000-00000000cafe",
            "title": "t",
            "content": "c",
        },
        headers=auth(token_for(make_user())),
    )
    assert resp.status_code == 404
