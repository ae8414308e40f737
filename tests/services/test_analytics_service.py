from __future__ import annotations

import asyncio
from uuid import uuid4

from courseight.services import analytics_service, progress_service
from courseight.services.submission_service import submit_assessment
from tests.conftest import enroll, make_assessment, make_course, make_user


def _set(store, user, course, value) -> None:
    asyncio.run(progress_service.update_progress(store, user.id, course.id, value))


def _submit(store, quiz, user, answers) -> None:
    asyncio.run(
        submit_assessment(store, assessment_id=quiz.id, user_id=user.id, answers=answers)
    )


# ---- ranking ----


def test_ranking_orders_by_progress_then_user_id(store) -> None:
    course = make_course(make_user("instructor"))
    a, b, c = make_user(), make_user(), make_user()
    _set(store, a, course, 40)
    _set(store, b, course, 80)
    _set(store, c, course, 40)

    ranking = asyncio.run(analytics_service.get_course_ranking(store, course.id))

    assert [e.user_id for e in ranking] == [b.id] + sorted([a.id, c.id], key=str)
    assert [e.progress_percentage for e in ranking] == [80.0, 40.0, 40.0]


def test_ranking_includes_enrolled_students_without_activity(store) -> None:
    course = make_course(make_user("instructor"))
    quiz = make_assessment(course, [0, 1])
    active, idle = make_user(), make_user()
    enroll(active, course)
    enroll(idle, course)
    _submit(store, quiz, active, [0, 0])

    ranking = asyncio.run(analytics_service.get_course_ranking(store, course.id))

    by_user = {e.user_id: e for e in ranking}
    assert set(by_user) == {active.id, idle.id}
    assert by_user[active.id].average_quiz_score == 50.0
    assert by_user[idle.id].average_quiz_score == 0.0
    assert by_user[idle.id].progress_percentage == 0.0


def test_ranking_quiz_average_ignores_other_courses(store) -> None:
    instructor = make_user("instructor")
    course, other = make_course(instructor), make_course(instructor, "Other course")
    here, elsewhere = make_assessment(course, [0]), make_assessment(other, [0])
    student = make_user()
    _submit(store, here, student, [0])
    _submit(store, elsewhere, student, [1])

    ranking = asyncio.run(analytics_service.get_course_ranking(store, course.id))
    assert ranking[0].average_quiz_score == 100.0


def test_ranking_is_deterministic(store) -> None:
    course = make_course(make_user("instructor"))
    for value in (10, 10, 10, 55):
        _set(store, make_user(), course, value)

    first = asyncio.run(analytics_service.get_course_ranking(store, course.id))
    second = asyncio.run(analytics_service.get_course_ranking(store, course.id))
    assert first == second


def test_ranking_empty_for_unknown_or_empty_course(store) -> None:
    course = make_course(make_user("instructor"))
    assert asyncio.run(analytics_service.get_course_ranking(store, course.id)) == []
    assert asyncio.run(analytics_service.get_course_ranking(store, uuid4())) == []


# ---- averages ----


def test_average_completion_zero_without_enrollments(store) -> None:
    student = make_user()
    assert asyncio.run(analytics_service.get_user_average_score(store, student.id)) == 0.0
    assert asyncio.run(analytics_service.get_user_average_score(store, uuid4())) == 0.0


def test_average_completion_is_mean_of_enrollments(store) -> None:
    instructor = make_user("instructor")
    c1, c2 = make_course(instructor), make_course(instructor, "Second course")
    student = make_user()
    enroll(student, c1)
    enroll(student, c2)
    _set(store, student, c1, 30)
    _set(store, student, c2, 90)

    assert asyncio.run(analytics_service.get_user_average_score(store, student.id)) == 60.0


def test_average_quiz_score_and_leaderboard(store) -> None:
    course = make_course(make_user("instructor"))
    q1, q2 = make_assessment(course, [0, 0]), make_assessment(course, [1, 1])
    top, low = make_user(), make_user()
    _submit(store, q1, top, [0, 0])
    _submit(store, q2, top, [1, 0])
    _submit(store, q1, low, [1, 1])

    assert asyncio.run(analytics_service.get_user_average_quiz_score(store, top.id)) == 75.0
    assert asyncio.run(analytics_service.get_user_average_quiz_score(store, uuid4())) == 0.0

    board = asyncio.run(analytics_service.get_quiz_leaderboard(store))
    assert [(e.user_id, e.average_quiz_score) for e in board] == [
        (top.id, 75.0),
        (low.id, 0.0),
    ]


def test_assessment_average(store) -> None:
    course = make_course(make_user("instructor"))
    quiz = make_assessment(course, [0, 0])
    _submit(store, quiz, make_user(), [0, 0])
    _submit(store, quiz, make_user(), [0, 1])

    assert asyncio.run(analytics_service.get_assessment_average(store, quiz.id)) == 75.0
    assert asyncio.run(analytics_service.get_assessment_average(store, uuid4())) == 0.0


# ---- statistics / active participants ----


def test_statistics_and_active_participants_for_one_course(store) -> None:
    course = make_course(make_user("instructor"))
    for value in (0, 50, 100):
        _set(store, make_user(), course, value)

    stats = asyncio.run(analytics_service.get_progress_statistics(store, course.id))
    assert stats.course_title == course.title
    assert stats.total_users == 3
    assert stats.average_progress == 50.0
    assert stats.min_progress == 0.0
    assert stats.max_progress == 100.0

    assert asyncio.run(analytics_service.get_active_participants(store, course.id)) == 2


def test_statistics_zeroed_for_course_without_records(store) -> None:
    course = make_course(make_user("instructor"))
    stats = asyncio.run(analytics_service.get_progress_statistics(store, course.id))
    assert (stats.total_users, stats.average_progress) == (0, 0.0)
    assert stats.course_title == course.title

    missing = asyncio.run(analytics_service.get_progress_statistics(store, uuid4()))
    assert missing.course_title is None
    assert asyncio.run(analytics_service.get_active_participants(store, course.id)) == 0


def test_statistics_across_courses(store) -> None:
    instructor = make_user("instructor")
    c1, c2 = make_course(instructor), make_course(instructor, "Second course")
    _set(store, make_user(), c1, 20)
    _set(store, make_user(), c2, 0)

    stats = asyncio.run(analytics_service.get_progress_statistics(store))
    assert [s.course_id for s in stats] == sorted([c1.id, c2.id], key=str)

    counts = asyncio.run(analytics_service.get_active_participants(store))
    assert counts == {c1.id: 1, c2.id: 0}
