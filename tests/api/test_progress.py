from __future__ import annotations

from fastapi.testclient import TestClient

from tests.conftest import (
    auth,
    enroll,
    make_assessment,
    make_course,
    make_user,
    token_for,
)


def _url(user, course) -> str:
    return f"/v1/progress/users/{user.id}/courses/{course.id}"


def test_student_sets_own_progress(client: TestClient) -> None:
    course = make_course(make_user("instructor"))
    student = make_user()
    headers = auth(token_for(student))

    resp = client.put(_url(student, course), json={"percentage": 120}, headers=headers)
    assert resp.status_code == 200
    assert resp.json()["progress_percentage"] == 100.0

    got = client.get(_url(student, course), headers=headers)
    assert got.status_code == 200
    assert got.json()["progress_percentage"] == 100.0


def test_missing_progress_is_404(client: TestClient) -> None:
    course = make_course(make_user("instructor"))
    student = make_user()
    resp = client.get(_url(student, course), headers=auth(token_for(student)))
    assert resp.status_code == 404


def test_invalid_percentage(client: TestClient) -> None:
    course = make_course(make_user("instructor"))
    student = make_user()
    resp = client.put(
        _url(student, course), json={"percentage": "lots"}, headers=auth(token_for(student))
    )
    assert resp.status_code == 422


def test_increment_without_percentage(client: TestClient) -> None:
    course = make_course(make_user("instructor"))
    for _ in range(4):
        make_assessment(course)
    student = make_user()

    resp = client.put(_url(student, course), json={}, headers=auth(token_for(student)))
    assert resp.json()["progress_percentage"] == 25.0


def test_idempotency_key_applies_once(client: TestClient) -> None:
    course = make_course(make_user("instructor"))
    make_assessment(course)
    make_assessment(course)
    student = make_user()
    headers = auth(token_for(student))

    for _ in range(2):
        resp = client.put(
            _url(student, course), json={"idempotency_key": "lesson-3"}, headers=headers
        )
    assert resp.json()["progress_percentage"] == 50.0


def test_same_key_from_two_students_stays_separate(client: TestClient) -> None:
    instructor = make_user("instructor")
    course, other = make_course(instructor), make_course(instructor, "Other course")
    alice, bob = make_user(), make_user()

    client.put(
        _url(alice, course),
        json={"percentage": 77, "idempotency_key": "k"},
        headers=auth(token_for(alice)),
    )
    resp = client.put(
        _url(bob, other),
        json={"percentage": 10, "idempotency_key": "k"},
        headers=auth(token_for(bob)),
    )

    assert resp.status_code == 200
    assert resp.json()["user_id"] == str(bob.id)
    assert resp.json()["progress_percentage"] == 10.0


def test_reserved_looking_key_does_not_block_submission(client: TestClient) -> None:
    course = make_course(make_user("instructor"))
    quiz = make_assessment(course, [0, 1, 1])
    for _ in range(19):
        make_assessment(course)
    mallory, victim = make_user(), make_user()
    enroll(victim, course)

    client.put(
        _url(mallory, course),
        json={"percentage": 40, "idempotency_key": f"submission:{quiz.id}:{victim.id}"},
        headers=auth(token_for(mallory)),
    )
    headers = auth(token_for(victim))
    submitted = client.post(
        f"/v1/assessments/{quiz.id}/submit", json={"answers": [0, 1, 1]}, headers=headers
    )

    assert submitted.status_code == 200
    assert submitted.json()["progress_percentage"] == 5.0
    got = client.get(_url(victim, course), headers=headers)
    assert got.json()["progress_percentage"] == 5.0
    assert got.json()["user_id"] == str(victim.id)


def test_key_reuse_with_different_payload_is_409(client: TestClient) -> None:
    course = make_course(make_user("instructor"))
    student = make_user()
    headers = auth(token_for(student))

    first = client.put(
        _url(student, course), json={"percentage": 20, "idempotency_key": "k"}, headers=headers
    )
    second = client.put(
        _url(student, course), json={"percentage": 80, "idempotency_key": "k"}, headers=headers
    )
    repeat = client.put(
        _url(student, course), json={"percentage": 20, "idempotency_key": "k"}, headers=headers
    )

    assert first.status_code == 200
    assert second.status_code == 409
    assert second.json()["detail"]["code"] == "idempotency_key_reuse"
    assert repeat.status_code == 200
    assert repeat.json()["progress_percentage"] == 20.0


def test_student_cannot_touch_other_students(client: TestClient) -> None:
    course = make_course(make_user("instructor"))
    owner, other = make_user(), make_user()
    headers = auth(token_for(other))
    assert client.get(_url(owner, course), headers=headers).status_code == 403
    assert client.put(_url(owner, course), json={"percentage": 5}, headers=headers).status_code == 403


def test_instructor_reads_any_progress(client: TestClient) -> None:
    instructor = make_user("instructor")
    course = make_course(instructor)
    student = make_user()
    enroll(student, course)
    resp = client.get(_url(student, course), headers=auth(token_for(instructor)))
    assert resp.status_code == 200


def test_user_averages(client: TestClient) -> None:
    course = make_course(make_user("instructor"))
    quiz = make_assessment(course, [0, 0])
    student = make_user()
    headers = auth(token_for(student))
    enroll(student, course)
    client.put(_url(student, course), json={"percentage": 40}, headers=headers)
    client.post(f"/v1/assessments/{quiz.id}/submit", json={"answers": [0, 1]}, headers=headers)

    completion = client.get(f"/v1/progress/users/{student.id}/average-completion", headers=headers)
    assert completion.json()["average_completion"] == 40.0
    quiz_avg = client.get(f"/v1/progress/users/{student.id}/average-quiz-score", headers=headers)
    assert quiz_avg.json()["average_quiz_score"] == 50.0


def test_ranking_statistics_and_active(client: TestClient) -> None:
    course = make_course(make_user("instructor"))
    users = [make_user() for _ in range(3)]
    for user, value in zip(users, (0, 50, 100)):
        client.put(_url(user, course), json={"percentage": value}, headers=auth(token_for(user)))
    headers = auth(token_for(users[0]))

    ranking = client.get(f"/v1/progress/courses/{course.id}/ranking", headers=headers).json()
    assert [(e["rank"], e["user_id"]) for e in ranking] == [
        (1, str(users[2].id)),
        (2, str(users[1].id)),
        (3, str(users[0].id)),
    ]

    stats = client.get(f"/v1/progress/statistics/{course.id}", headers=headers).json()
    assert stats["total_users"] == 3
    assert stats["average_progress"] == 50.0
    assert (stats["min_progress"], stats["max_progress"]) == (0.0, 100.0)

    all_stats = client.get("/v1/progress/statistics", headers=headers).json()
    assert [s["course_id"] for s in all_stats] == [str(course.id)]

    active = client.get(
        f"/v1/progress/active-participants/{course.id}", headers=headers
    ).json()
    assert active == {"course_id": str(course.id), "active_participants": 2}

    by_course = client.get("/v1/progress/active-participants", headers=headers).json()
    assert by_course["active_participants"] == {str(course.id): 2}
