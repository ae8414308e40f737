"""Prometheus metric inventory.

HTTP metrics are populated by MetricsMiddleware; the domain counters
are incremented by the services that own the behaviour.  Keeping every
definition here gives one place to see what the service measures.
"""

from __future__ import annotations

from prometheus_client import Counter, Gauge, Histogram

# ---------------------------------------------------------------------------
# HTTP metrics
# ---------------------------------------------------------------------------

REQUEST_COUNT = Counter(
    "http_requests_total",
    "Total HTTP requests by method, endpoint, and status code",
    ["method", "endpoint", "status_code"],
)

REQUEST_DURATION = Histogram(
    "http_request_duration_seconds",
    "HTTP request duration in seconds",
    ["method", "endpoint"],
    buckets=[0.005, 0.01, 0.025, 0.05, 0.1, 0.25, 0.5, 1.0, 2.5, 5.0],
)

ACTIVE_REQUESTS = Gauge(
    "http_active_requests",
    "Number of HTTP requests currently being processed",
)

# ---------------------------------------------------------------------------
# Domain metrics
# ---------------------------------------------------------------------------

SUBMISSIONS = Counter(
    "assessment_submissions_total",
    "Assessment submissions by outcome",
    ["outcome"],  # passed|failed|duplicate|invalid|not_found
)

SUBMISSION_SCORE = Histogram(
    "assessment_submission_percentage",
    "Graded submission percentage",
    buckets=[10, 20, 30, 40, 50, 60, 70, 80, 90, 100],
)

PROGRESS_EVENTS = Counter(
    "progress_events_total",
    "Progress events appended to the log, by type",
    ["type"],  # enrolled|progress_set|assessment_passed|assessment_failed
)

ENROLLMENTS = Counter(
    "course_enrollments_total",
    "Enrollment changes",
    ["action"],  # enroll|unenroll
)
