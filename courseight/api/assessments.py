"""Assessment authoring, submission and score endpoints.

POST /v1/assessments/{id}/submit grades the caller's answers, records
the result and advances course progress in the same unit of work.
Correct answers are only included for instructors and admins.
"""

from __future__ import annotations

from typing import Annotated, Any
from uuid import UUID

from fastapi import APIRouter, Depends, status
from pydantic import BaseModel

from courseight.api.dependencies import CurrentPrincipal, StoreDep, require_staff
from courseight.api.errors import to_http_exception
from courseight.core.errors import DomainError
from courseight.models.assessment import DEFAULT_PASSING_SCORE, Assessment
from courseight.models.principal import Principal
from courseight.services import analytics_service, assessment_service, submission_service
from courseight.services.assessment_service import QuestionDraft

router = APIRouter(prefix="/v1/assessments", tags=["assessments"])


class QuestionIn(BaseModel):
    text: str
    kind: str = "multiple_choice"
    options: list[str] = []
    correct_index: int

    def to_draft(self) -> QuestionDraft:
        return QuestionDraft(
            text=self.text,
            kind=self.kind,
            options=tuple(self.options),
            correct_index=self.correct_index,
        )


class AssessmentIn(BaseModel):
    title: str
    description: str = ""
    course_id: UUID | None = None
    passing_score: int = DEFAULT_PASSING_SCORE
    questions: list[QuestionIn]


class AssessmentUpdateIn(BaseModel):
    title: str | None = None
    description: str | None = None
    passing_score: int | None = None
    questions: list[QuestionIn] | None = None


class QuestionOut(BaseModel):
    text: str
    kind: str
    options: list[str]
    correct_index: int | None = None


class AssessmentOut(BaseModel):
    id: UUID
    title: str
    description: str
    course_id: UUID | None
    passing_score: int
    questions: list[QuestionOut]
    created_by: UUID | None
    created_at: int
    updated_at: int

    @classmethod
    def render(cls, a: Assessment, *, show_answers: bool) -> AssessmentOut:
        return cls(
            id=a.id,
            title=a.title,
            description=a.description,
            course_id=a.course_id,
            passing_score=a.passing_score,
            questions=[
                QuestionOut(
                    text=q.text,
                    kind=q.kind,
                    options=list(q.options),
                    correct_index=q.correct_index if show_answers else None,
                )
                for q in a.questions
            ],
            created_by=a.created_by,
            created_at=a.created_at,
            updated_at=a.updated_at,
        )


class SubmitIn(BaseModel):
    # Shape is checked by the grader so every malformed submission gets
    # the same error.
    answers: Any


class QuestionResultOut(BaseModel):
    index: int
    correct: bool


class SubmissionOut(BaseModel):
    assessment_id: UUID
    user_id: UUID
    score: int
    max_score: int
    percentage: int
    passed: bool
    passing_score: int
    course_id: UUID | None
    course_title: str | None
    progress_percentage: float | None
    question_results: list[QuestionResultOut]
    submitted_at: int


class AssessmentAverageOut(BaseModel):
    assessment_id: UUID
    average_score: float


class LeaderboardEntryOut(BaseModel):
    user_id: UUID
    average_quiz_score: float


@router.post("", response_model=AssessmentOut, status_code=status.HTTP_201_CREATED)
async def create_assessment(
    payload: AssessmentIn,
    principal: Annotated[Principal, Depends(require_staff)],
    store: StoreDep,
) -> AssessmentOut:
    try:
        assessment = await assessment_service.create_assessment(
            store,
            actor=principal,
            title=payload.title,
            description=payload.description,
            questions=[q.to_draft() for q in payload.questions],
            course_id=payload.course_id,
            passing_score=payload.passing_score,
        )
    except DomainError as e:
        raise to_http_exception(e) from e
    return AssessmentOut.render(assessment, show_answers=True)


@router.get("", response_model=list[AssessmentOut])
async def list_assessments(
    principal: CurrentPrincipal,
    store: StoreDep,
    course_id: UUID | None = None,
) -> list[AssessmentOut]:
    assessments = await assessment_service.list_assessments(store, course_id)
    staff = principal.is_staff()
    return [AssessmentOut.render(a, show_answers=staff) for a in assessments]


@router.get("/leaderboard", response_model=list[LeaderboardEntryOut])
async def quiz_leaderboard(
    _principal: CurrentPrincipal, store: StoreDep
) -> list[LeaderboardEntryOut]:
    entries = await analytics_service.get_quiz_leaderboard(store)
    return [
        LeaderboardEntryOut(user_id=e.user_id, average_quiz_score=e.average_quiz_score)
        for e in entries
    ]


@router.get("/{assessment_id}", response_model=AssessmentOut)
async def get_assessment(
    assessment_id: UUID, principal: CurrentPrincipal, store: StoreDep
) -> AssessmentOut:
    try:
        assessment = await assessment_service.get_assessment(store, assessment_id)
    except DomainError as e:
        raise to_http_exception(e) from e
    return AssessmentOut.render(assessment, show_answers=principal.is_staff())


@router.put("/{assessment_id}", response_model=AssessmentOut)
async def update_assessment(
    assessment_id: UUID,
    payload: AssessmentUpdateIn,
    principal: Annotated[Principal, Depends(require_staff)],
    store: StoreDep,
) -> AssessmentOut:
    try:
        assessment = await assessment_service.update_assessment(
            store,
            assessment_id,
            actor=principal,
            title=payload.title,
            description=payload.description,
            passing_score=payload.passing_score,
            questions=(
                None
                if payload.questions is None
                else [q.to_draft() for q in payload.questions]
            ),
        )
    except DomainError as e:
        raise to_http_exception(e) from e
    return AssessmentOut.render(assessment, show_answers=True)


@router.delete("/{assessment_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_assessment(
    assessment_id: UUID,
    principal: Annotated[Principal, Depends(require_staff)],
    store: StoreDep,
) -> None:
    try:
        await assessment_service.delete_assessment(store, assessment_id, actor=principal)
    except DomainError as e:
        raise to_http_exception(e) from e


@router.post("/{assessment_id}/submit", response_model=SubmissionOut)
async def submit_assessment(
    assessment_id: UUID,
    payload: SubmitIn,
    principal: CurrentPrincipal,
    store: StoreDep,
) -> SubmissionOut:
    try:
        outcome = await submission_service.submit_assessment(
            store,
            assessment_id=assessment_id,
            user_id=UUID(principal.user_id),
            answers=payload.answers,
        )
    except DomainError as e:
        raise to_http_exception(e) from e
    r = outcome.result
    return SubmissionOut(
        assessment_id=r.assessment_id,
        user_id=r.user_id,
        score=r.score,
        max_score=r.max_score,
        percentage=r.percentage,
        passed=outcome.passed,
        passing_score=outcome.passing_score,
        course_id=outcome.course.id if outcome.course else None,
        course_title=outcome.course.title if outcome.course else None,
        progress_percentage=(
            outcome.progress.progress_percentage if outcome.progress else None
        ),
        question_results=[
            QuestionResultOut(index=i, correct=ok) for i, ok in enumerate(outcome.correct)
        ],
        submitted_at=r.submitted_at,
    )


@router.get("/{assessment_id}/average", response_model=AssessmentAverageOut)
async def assessment_average(
    assessment_id: UUID, _principal: CurrentPrincipal, store: StoreDep
) -> AssessmentAverageOut:
    try:
        await assessment_service.get_assessment(store, assessment_id)
    except DomainError as e:
        raise to_http_exception(e) from e
    return AssessmentAverageOut(
        assessment_id=assessment_id,
        average_score=await analytics_service.get_assessment_average(
            store, assessment_id
        ),
    )
