"""Assessment authoring: create, list, edit and delete quizzes."""

from __future__ import annotations

import logging
import time
from dataclasses import dataclass, replace
from uuid import UUID

from courseight.core.errors import (
    ConflictError,
    ForbiddenError,
    InvalidInputError,
    NotFoundError,
)
from courseight.models.assessment import (
    DEFAULT_PASSING_SCORE,
    TRUE_FALSE_OPTIONS,
    Assessment,
    Question,
)
from courseight.models.principal import Principal
from courseight.repos.store import Store
from courseight.services.course_service import ensure_can_manage, get_course

logger = logging.getLogger(__name__)

QUESTION_KINDS = ("multiple_choice", "true_false")


@dataclass(frozen=True, slots=True)
class QuestionDraft:
    text: str
    kind: str
    options: tuple[str, ...]
    correct_index: int


def build_question(draft: QuestionDraft, position: int) -> Question:
    text = draft.text.strip()
    if not text:
        raise InvalidInputError(f"question {position}: text is required")
    kind = draft.kind.strip().lower()
    if kind not in QUESTION_KINDS:
        raise InvalidInputError(
            f"question {position}: kind must be one of {'|'.join(QUESTION_KINDS)}"
        )
    options = tuple(o.strip() for o in draft.options)
    if kind == "true_false":
        options = options or TRUE_FALSE_OPTIONS
        if options != TRUE_FALSE_OPTIONS:
            raise InvalidInputError(
                f"question {position}: true/false options must be {list(TRUE_FALSE_OPTIONS)}"
            )
    elif len(options) < 2 or any(not o for o in options):
        raise InvalidInputError(
            f"question {position}: at least two non-empty options are required"
        )
    if not 0 <= draft.correct_index < len(options):
        raise InvalidInputError(f"question {position}: correct_index out of range")
    return Question(
        text=text, kind=kind, options=options, correct_index=draft.correct_index
    )


def _build_questions(drafts: list[QuestionDraft]) -> tuple[Question, ...]:
    return tuple(build_question(d, i) for i, d in enumerate(drafts))


def _validate_passing_score(value: int) -> int:
    if isinstance(value, bool) or not 0 <= value <= 100:
        raise InvalidInputError("passing_score must be 0..100")
    return value


def _validate_title(title: str) -> str:
    title = title.strip()
    if not title:
        raise InvalidInputError("title is required")
    return title


async def ensure_can_manage_assessment(
    store: Store, assessment: Assessment, actor: Principal
) -> None:
    """Admin, the author, or the instructor of the owning course."""
    if actor.is_admin():
        return
    if assessment.created_by is not None and str(assessment.created_by) == actor.user_id:
        return
    course = None
    if assessment.course_id is not None:
        course = await store.courses.get_by_id(assessment.course_id)
    if course is None:
        course = await store.courses.find_by_assessment(assessment.id)
    if course is not None and str(course.instructor_id) == actor.user_id:
        return
    logger.warning(
        "Assessment change denied: user=%s assessment=%s", actor.user_id, assessment.id
    )
    raise ForbiddenError("only the author, course instructor or an admin may do this")


async def get_assessment(store: Store, assessment_id: UUID) -> Assessment:
    assessment = await store.assessments.get_by_id(assessment_id)
    if assessment is None:
        raise NotFoundError("Assessment not found")
    return assessment


async def list_assessments(
    store: Store, course_id: UUID | None = None
) -> list[Assessment]:
    if course_id is None:
        return await store.assessments.list_all()
    return await store.assessments.list_by_course(course_id)


async def create_assessment(
    store: Store,
    *,
    actor: Principal,
    title: str,
    description: str = "",
    questions: list[QuestionDraft],
    course_id: UUID | None = None,
    passing_score: int = DEFAULT_PASSING_SCORE,
) -> Assessment:
    if course_id is not None:
        ensure_can_manage(await get_course(store, course_id), actor)
    assessment = Assessment.new(
        title=_validate_title(title),
        description=description.strip(),
        questions=_build_questions(questions),
        course_id=course_id,
        passing_score=_validate_passing_score(passing_score),
        created_by=UUID(actor.user_id),
    )
    await store.assessments.add(assessment)
    if course_id is not None:
        await store.courses.link_assessment(course_id, assessment.id)
    logger.info(
        "Assessment created  questions=%d",
        len(assessment.questions),
        extra={"assessment_id": str(assessment.id), "course_id": str(course_id)},
    )
    return assessment


async def update_assessment(
    store: Store,
    assessment_id: UUID,
    *,
    actor: Principal,
    title: str | None = None,
    description: str | None = None,
    questions: list[QuestionDraft] | None = None,
    passing_score: int | None = None,
) -> Assessment:
    """Edit an assessment.

    The answer key is frozen once anyone has submitted: graded results
    must keep matching the questions they were graded against.
    """
    assessment = await get_assessment(store, assessment_id)
    await ensure_can_manage_assessment(store, assessment, actor)

    changes: dict = {"updated_at": int(time.time())}
    if title is not None:
        changes["title"] = _validate_title(title)
    if description is not None:
        changes["description"] = description.strip()
    if passing_score is not None:
        changes["passing_score"] = _validate_passing_score(passing_score)
    if questions is not None:
        if await store.assessments.count_results(assessment_id) > 0:
            raise ConflictError("questions cannot change after submissions exist")
        changes["questions"] = _build_questions(questions)

    updated = await store.assessments.update(replace(assessment, **changes))
    if updated is None:
        raise NotFoundError("Assessment not found")
    logger.info("Assessment updated", extra={"assessment_id": str(assessment_id)})
    return updated


async def delete_assessment(
    store: Store, assessment_id: UUID, *, actor: Principal
) -> None:
    assessment = await get_assessment(store, assessment_id)
    await ensure_can_manage_assessment(store, assessment, actor)
    if await store.assessments.count_results(assessment_id) > 0:
        raise ConflictError("assessment has submissions and cannot be deleted")

    course_ids = set()
    if assessment.course_id is not None:
        course_ids.add(assessment.course_id)
    linked = await store.courses.find_by_assessment(assessment_id)
    if linked is not None:
        course_ids.add(linked.id)
    for cid in course_ids:
        await store.courses.unlink_assessment(cid, assessment_id)

    await store.assessments.delete(assessment_id)
    logger.info("Assessment deleted", extra={"assessment_id": str(assessment_id)})
