"""Learner progress: append-only event log + projector.

Every change to a learner's progress in a course is recorded as a
ProgressEvent.  The Progress row is never edited directly; after each
append the (user, course) log is folded again by ``project`` and the
result is upserted.  Because the fold is pure, re-running it after a
retry or a crash between append and upsert always converges.

Fold rules:
  enrolled           no value change (creates the record at 0)
  progress_set       value := clamp(percentage)
  assessment_passed  value := clamp(value + increment)
  assessment_failed  no value change (touches last_updated)

The folded value is rounded to PRECISION decimals so that n passed
assessments worth 100 / n each land exactly on 100.

Idempotency keys are scoped to one (user, course) log.  Keys sent by
clients are stored under the "client:" prefix so they never collide
with the "submission:" and "enrolled:" keys the service derives.
"""

from __future__ import annotations

import json
import logging
import math
import time
from collections.abc import Iterable
from uuid import UUID

from courseight.core.errors import (
    IdempotencyKeyReuseError,
    InvalidInputError,
    NotFoundError,
)
from courseight.core.metrics import PROGRESS_EVENTS
from courseight.models.course import Course
from courseight.models.progress import (
    ASSESSMENT_FAILED,
    ASSESSMENT_PASSED,
    ENROLLED,
    PROGRESS_SET,
    Progress,
    ProgressEvent,
)
from courseight.repos.errors import DuplicateKeyError
from courseight.repos.store import Store

logger = logging.getLogger(__name__)

MIN_PROGRESS = 0.0
MAX_PROGRESS = 100.0
PRECISION = 6
CLIENT_KEY_PREFIX = "client:"
MAX_KEY_LENGTH = 255


def clamp(value: float) -> float:
    return max(MIN_PROGRESS, min(MAX_PROGRESS, value))


def coerce_percentage(raw: object) -> float:
    """Accept any finite real number; reject bools, strings and NaN/inf."""
    if isinstance(raw, bool) or not isinstance(raw, (int, float)):
        raise InvalidInputError("percentage must be a number")
    value = float(raw)
    if not math.isfinite(value):
        raise InvalidInputError("percentage must be finite")
    return value


def increment_for(course: Course) -> float | None:
    """Per-assessment share of the course, or None with no assessments."""
    count = len(course.assessment_ids)
    if count == 0:
        return None
    return 100.0 / count


def submission_key(assessment_id: UUID, user_id: UUID) -> str:
    return f"submission:{assessment_id}:{user_id}"


def client_key(raw: str | None) -> str | None:
    if raw is None:
        return None
    if not raw.strip():
        raise InvalidInputError("idempotency_key must not be blank")
    key = CLIENT_KEY_PREFIX + raw
    if len(key) > MAX_KEY_LENGTH:
        raise InvalidInputError("idempotency_key is too long")
    return key


def _payload(event: ProgressEvent) -> dict:
    if not event.payload_json:
        return {}
    try:
        data = json.loads(event.payload_json)
    except ValueError:
        logger.warning("Ignoring malformed payload on event=%s", event.id)
        return {}
    return data if isinstance(data, dict) else {}


def project(user_id: UUID, course_id: UUID, events: Iterable[ProgressEvent]) -> Progress:
    """Fold a (user, course) event log into its Progress record."""
    value = 0.0
    last_updated = 0
    for event in sorted(events, key=lambda e: e.seq):
        payload = _payload(event)
        if event.type == PROGRESS_SET:
            value = clamp(float(payload.get("percentage", value)))
        elif event.type == ASSESSMENT_PASSED:
            value = clamp(value + float(payload.get("increment", 0.0)))
        last_updated = event.occurred_at
    return Progress(
        user_id=user_id,
        course_id=course_id,
        progress_percentage=round(value, PRECISION),
        last_updated=last_updated,
    )


async def reproject(store: Store, user_id: UUID, course_id: UUID) -> Progress:
    """Refold the log for one pair and write the projection.

    The percentage is mirrored into the user's enrollment pair for the
    course when one exists.
    """
    events = await store.progress.list_events(user_id, course_id)
    progress = project(user_id, course_id, events)
    await store.progress.upsert(progress)
    await store.users.set_enrollment_progress(
        user_id, course_id, progress.progress_percentage
    )
    return progress


def _fingerprint(event: ProgressEvent) -> tuple:
    # The increment follows the assessment count at write time; only the
    # caller-supplied fields are compared.
    payload = {k: v for k, v in _payload(event).items() if k != "increment"}
    return (
        event.type,
        event.entity_type,
        event.entity_id,
        json.dumps(payload, sort_keys=True),
    )


async def append(store: Store, event: ProgressEvent) -> tuple[ProgressEvent, Progress]:
    """Append an event (idempotently when it carries a key) and reproject.

    A key already used in the same (user, course) log returns the stored
    event and appends nothing.  Reusing it for a different request raises
    IdempotencyKeyReuseError.
    """
    key = event.idempotency_key
    stored: ProgressEvent | None = None
    if key is not None:
        stored = await store.progress.get_event_by_key(
            event.user_id, event.course_id, key
        )
    if stored is None:
        try:
            stored = await store.progress.append_event(event)
        except DuplicateKeyError:
            # Lost a race with a concurrent writer holding the same key.
            stored = await store.progress.get_event_by_key(
                event.user_id, event.course_id, key or ""
            )
            if stored is None:
                raise
        else:
            PROGRESS_EVENTS.labels(type=stored.type).inc()
            logger.info(
                "Progress event appended  type=%s seq=%d",
                stored.type,
                stored.seq,
                extra={"user_id": str(event.user_id), "course_id": str(event.course_id)},
            )
            return stored, await reproject(store, event.user_id, event.course_id)

    if _fingerprint(stored) != _fingerprint(event):
        logger.warning(
            "Idempotency key reused with a different request  key=%s",
            key,
            extra={"user_id": str(event.user_id), "course_id": str(event.course_id)},
        )
        raise IdempotencyKeyReuseError(
            "Idempotency key reuse with a different request payload"
        )
    logger.info("Progress event replayed  key=%s", key)
    return stored, await reproject(store, event.user_id, event.course_id)


async def _require_course(store: Store, course_id: UUID) -> Course:
    course = await store.courses.get_by_id(course_id)
    if course is None:
        raise NotFoundError(f"course {course_id} not found")
    return course


async def get_progress(store: Store, user_id: UUID, course_id: UUID) -> Progress:
    progress = await store.progress.get(user_id, course_id)
    if progress is None:
        raise NotFoundError("progress not found")
    return progress


async def record_enrollment(store: Store, user_id: UUID, course_id: UUID) -> Progress:
    event = ProgressEvent.new(
        user_id=user_id,
        course_id=course_id,
        occurred_at=int(time.time()),
        type=ENROLLED,
        entity_type="course",
        entity_id=course_id,
        idempotency_key=f"enrolled:{course_id}:{user_id}",
    )
    _, progress = await append(store, event)
    return progress


async def update_progress(
    store: Store,
    user_id: UUID,
    course_id: UUID,
    percentage: object = None,
    *,
    idempotency_key: str | None = None,
) -> Progress:
    """Set progress explicitly, or step it by one assessment's share.

    With ``percentage`` the value is clamped to [0, 100] and stored.
    Without it, progress grows by 100 / len(course.assessment_ids); a
    course with no assessments leaves everything untouched.
    """
    course = await _require_course(store, course_id)
    if await store.users.get_by_id(user_id) is None:
        raise NotFoundError(f"user {user_id} not found")

    now = int(time.time())
    if percentage is not None:
        value = coerce_percentage(percentage)
        event = ProgressEvent.new(
            user_id=user_id,
            course_id=course_id,
            occurred_at=now,
            type=PROGRESS_SET,
            payload_json=json.dumps({"percentage": value}),
            idempotency_key=client_key(idempotency_key),
        )
    else:
        increment = increment_for(course)
        if increment is None:
            return await _zero_assessment_noop(store, user_id, course)
        # A completion step not tied to a specific assessment.
        event = ProgressEvent.new(
            user_id=user_id,
            course_id=course_id,
            occurred_at=now,
            type=ASSESSMENT_PASSED,
            payload_json=json.dumps({"increment": increment}),
            idempotency_key=client_key(idempotency_key),
        )
    _, progress = await append(store, event)
    return progress


async def apply_graded_submission(
    store: Store,
    *,
    user_id: UUID,
    course: Course,
    assessment_id: UUID,
    percentage: int,
    passed: bool,
) -> Progress:
    """Record a graded submission in the progress log.

    Passed submissions add one assessment's share of the course; failed
    ones are logged without changing the value.
    """
    if passed:
        increment = increment_for(course)
        if increment is None:
            return await _zero_assessment_noop(store, user_id, course)
        event_type = ASSESSMENT_PASSED
        payload = {"increment": increment, "percentage": percentage}
    else:
        event_type = ASSESSMENT_FAILED
        payload = {"percentage": percentage}
    event = ProgressEvent.new(
        user_id=user_id,
        course_id=course.id,
        occurred_at=int(time.time()),
        type=event_type,
        entity_type="assessment",
        entity_id=assessment_id,
        payload_json=json.dumps(payload),
        idempotency_key=submission_key(assessment_id, user_id),
    )
    _, progress = await append(store, event)
    return progress


async def _zero_assessment_noop(store: Store, user_id: UUID, course: Course) -> Progress:
    logger.warning(
        "Course has no assessments; progress increment skipped",
        extra={"user_id": str(user_id), "course_id": str(course.id)},
    )
    existing = await store.progress.get(user_id, course.id)
    if existing is not None:
        return existing
    return Progress(user_id=user_id, course_id=course.id)
