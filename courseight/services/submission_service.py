"""Assessment submission: grade, record the result, advance progress.

The result row and the progress event are written through the same
Store, so with PostgreSQL they commit in one transaction.  A second
submission for the same (assessment, user) is rejected by the store's
uniqueness rule at write time, never by a read-then-write check.
"""

from __future__ import annotations

import logging
import time
from dataclasses import dataclass
from uuid import UUID

from courseight.core.errors import (
    DuplicateSubmissionError,
    InvalidInputError,
    NotFoundError,
)
from courseight.core.metrics import SUBMISSION_SCORE, SUBMISSIONS
from courseight.models.assessment import Assessment, AssessmentResult
from courseight.models.course import Course
from courseight.models.progress import Progress
from courseight.repos.errors import DuplicateKeyError
from courseight.repos.store import Store
from courseight.services import grading, progress_service

logger = logging.getLogger(__name__)


@dataclass(frozen=True, slots=True)
class SubmissionOutcome:
    result: AssessmentResult
    passed: bool
    passing_score: int
    correct: tuple[bool, ...]
    course: Course | None
    progress: Progress | None


async def resolve_course(store: Store, assessment: Assessment) -> Course | None:
    """Find the course an assessment belongs to.

    Legacy assessments without a course_id are resolved through the
    course that links them, and the link is written back.
    """
    if assessment.course_id is not None:
        course = await store.courses.get_by_id(assessment.course_id)
        if course is not None:
            return course
    course = await store.courses.find_by_assessment(assessment.id)
    if course is not None and assessment.course_id is None:
        await store.assessments.set_course(assessment.id, course.id)
        logger.info(
            "Backfilled course link",
            extra={"assessment_id": str(assessment.id), "course_id": str(course.id)},
        )
    return course


async def submit_assessment(
    store: Store,
    *,
    assessment_id: UUID,
    user_id: UUID,
    answers: object,
) -> SubmissionOutcome:
    log_extra = {"assessment_id": str(assessment_id), "user_id": str(user_id)}

    assessment = await store.assessments.get_by_id(assessment_id)
    if assessment is None:
        SUBMISSIONS.labels(outcome="not_found").inc()
        raise NotFoundError(f"assessment {assessment_id} not found")
    if await store.users.get_by_id(user_id) is None:
        SUBMISSIONS.labels(outcome="not_found").inc()
        raise NotFoundError(f"user {user_id} not found")

    try:
        submitted = grading.validate_answers(answers, len(assessment.questions))
    except InvalidInputError as e:
        SUBMISSIONS.labels(outcome="invalid").inc()
        logger.warning("Submission rejected: %s", e.message, extra=log_extra)
        raise

    graded = grading.grade(assessment, submitted)
    result = AssessmentResult(
        assessment_id=assessment.id,
        user_id=user_id,
        score=graded.score,
        max_score=graded.max_score,
        percentage=graded.percentage,
        answers=submitted,
        submitted_at=int(time.time()),
    )
    try:
        await store.assessments.add_result(result)
    except DuplicateKeyError as e:
        SUBMISSIONS.labels(outcome="duplicate").inc()
        logger.warning("Duplicate submission rejected", extra=log_extra)
        raise DuplicateSubmissionError(
            "You have already submitted this assessment"
        ) from e

    course = await resolve_course(store, assessment)
    progress = None
    if course is None:
        logger.warning("No course found for assessment; progress unchanged", extra=log_extra)
    else:
        progress = await progress_service.apply_graded_submission(
            store,
            user_id=user_id,
            course=course,
            assessment_id=assessment.id,
            percentage=graded.percentage,
            passed=graded.passed,
        )

    SUBMISSIONS.labels(outcome="passed" if graded.passed else "failed").inc()
    SUBMISSION_SCORE.observe(graded.percentage)
    logger.info(
        "Assessment graded  score=%d/%d percentage=%d passed=%s",
        graded.score,
        graded.max_score,
        graded.percentage,
        graded.passed,
        extra=log_extra,
    )
    return SubmissionOutcome(
        result=result,
        passed=graded.passed,
        passing_score=assessment.passing_score,
        correct=graded.correct,
        course=course,
        progress=progress,
    )
