"""Prometheus metrics tests.

The default registry is process-global and counters only go up, so
every assertion compares a before/after delta.
"""

from __future__ import annotations

from fastapi.testclient import TestClient
from prometheus_client import REGISTRY

from tests.conftest import auth, enroll, make_assessment, make_course, make_user, token_for


def _sample(name: str, labels: dict | None = None) -> float:
    value = REGISTRY.get_sample_value(name, labels=labels or {})
    return value if value is not None else 0.0


def test_request_counter_and_histogram(client: TestClient) -> None:
    count = {"method": "GET", "endpoint": "/health", "status_code": "200"}
    duration = {"method": "GET", "endpoint": "/health"}
    before = (_sample("http_requests_total", count), _sample("http_request_duration_seconds_count", duration))

    client.get("/health")

    assert _sample("http_requests_total", count) - before[0] >= 1
    assert _sample("http_request_duration_seconds_count", duration) - before[1] >= 1


def test_endpoint_label_uses_route_template(client: TestClient) -> None:
    student = make_user()
    course = make_course(make_user("instructor"))
    labels = {
        "method": "GET",
        "endpoint": "/v1/courses/{course_id}",
        "status_code": "200",
    }
    before = _sample("http_requests_total", labels)

    client.get(f"/v1/courses/{course.id}", headers=auth(token_for(student)))

    assert _sample("http_requests_total", labels) - before == 1
    raw = dict(labels, endpoint=f"/v1/courses/{course.id}")
    assert _sample("http_requests_total", raw) == 0.0


def test_metrics_endpoint_exposes_domain_metrics(client: TestClient) -> None:
    client.get("/health")
    resp = client.get("/metrics")
    assert resp.status_code == 200
    for name in (
        "http_requests_total",
        "assessment_submissions_total",
        "progress_events_total",
        "course_enrollments_total",
    ):
        assert name in resp.text


def test_metrics_endpoint_not_self_instrumented(client: TestClient) -> None:
    labels = {"method": "GET", "endpoint": "/metrics", "status_code": "200"}
    before = _sample("http_requests_total", labels)
    client.get("/metrics")
    client.get("/metrics")
    assert _sample("http_requests_total", labels) == before


def test_submission_and_progress_counters(client: TestClient) -> None:
    course = make_course(make_user("instructor"))
    quiz = make_assessment(course, [0])
    student = make_user()
    before_enroll = _sample("course_enrollments_total", {"action": "enroll"})
    enroll(student, course)
    before_passed = _sample("assessment_submissions_total", {"outcome": "passed"})
    before_dup = _sample("assessment_submissions_total", {"outcome": "duplicate"})
    before_events = _sample("progress_events_total", {"type": "assessment_passed"})

    url = f"/v1/assessments/{quiz.id}/submit"
    headers = auth(token_for(student))
    client.post(url, json={"answers": [0]}, headers=headers)
    client.post(url, json={"answers": [0]}, headers=headers)

    assert _sample("course_enrollments_total", {"action": "enroll"}) - before_enroll == 1
    assert _sample("assessment_submissions_total", {"outcome": "passed"}) - before_passed == 1
    assert _sample("assessment_submissions_total", {"outcome": "duplicate"}) - before_dup == 1
    assert _sample("progress_events_total", {"type": "assessment_passed"}) - before_events == 1
