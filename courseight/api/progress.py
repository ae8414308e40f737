"""Progress reads/writes and the aggregate views over progress.

Students may read and write only their own progress; instructors and
admins may read anyone's.  Aggregates (ranking, statistics, active
participants) are open to every authenticated user.
"""

from __future__ import annotations

from typing import Any
from uuid import UUID

from fastapi import APIRouter
from pydantic import BaseModel

from courseight.api.dependencies import CurrentPrincipal, StoreDep, ensure_self_or_staff
from courseight.api.errors import to_http_exception
from courseight.core.errors import DomainError
from courseight.models.progress import Progress
from courseight.services import analytics_service, progress_service
from courseight.services.analytics_service import ProgressStatistics

router = APIRouter(prefix="/v1/progress", tags=["progress"])


class ProgressUpdateIn(BaseModel):
    # Omitted / null means "step by one assessment's share".
    percentage: Any = None
    idempotency_key: str | None = None


class ProgressOut(BaseModel):
    user_id: UUID
    course_id: UUID
    progress_percentage: float
    last_updated: int

    @classmethod
    def from_progress(cls, p: Progress) -> ProgressOut:
        return cls(
            user_id=p.user_id,
            course_id=p.course_id,
            progress_percentage=p.progress_percentage,
            last_updated=p.last_updated,
        )


class AverageCompletionOut(BaseModel):
    user_id: UUID
    average_completion: float


class AverageQuizScoreOut(BaseModel):
    user_id: UUID
    average_quiz_score: float


class RankingEntryOut(BaseModel):
    rank: int
    user_id: UUID
    progress_percentage: float
    average_quiz_score: float


class StatisticsOut(BaseModel):
    course_id: UUID
    course_title: str | None
    total_users: int
    average_progress: float
    min_progress: float
    max_progress: float

    @classmethod
    def from_stats(cls, s: ProgressStatistics) -> StatisticsOut:
        return cls(
            course_id=s.course_id,
            course_title=s.course_title,
            total_users=s.total_users,
            average_progress=s.average_progress,
            min_progress=s.min_progress,
            max_progress=s.max_progress,
        )


class ActiveParticipantsOut(BaseModel):
    course_id: UUID
    active_participants: int


class ActiveParticipantsByCourseOut(BaseModel):
    active_participants: dict[UUID, int]


# --- per-learner ------------------------------------------------------------


@router.get("/users/{user_id}/courses/{course_id}", response_model=ProgressOut)
async def get_progress(
    user_id: UUID, course_id: UUID, principal: CurrentPrincipal, store: StoreDep
) -> ProgressOut:
    ensure_self_or_staff(principal, user_id)
    try:
        progress = await progress_service.get_progress(store, user_id, course_id)
    except DomainError as e:
        raise to_http_exception(e) from e
    return ProgressOut.from_progress(progress)


@router.put("/users/{user_id}/courses/{course_id}", response_model=ProgressOut)
async def update_progress(
    user_id: UUID,
    course_id: UUID,
    payload: ProgressUpdateIn,
    principal: CurrentPrincipal,
    store: StoreDep,
) -> ProgressOut:
    ensure_self_or_staff(principal, user_id)
    try:
        progress = await progress_service.update_progress(
            store,
            user_id,
            course_id,
            payload.percentage,
            idempotency_key=payload.idempotency_key,
        )
    except DomainError as e:
        raise to_http_exception(e) from e
    return ProgressOut.from_progress(progress)


@router.get(
    "/users/{user_id}/average-completion", response_model=AverageCompletionOut
)
async def average_completion(
    user_id: UUID, principal: CurrentPrincipal, store: StoreDep
) -> AverageCompletionOut:
    ensure_self_or_staff(principal, user_id)
    return AverageCompletionOut(
        user_id=user_id,
        average_completion=await analytics_service.get_user_average_score(
            store, user_id
        ),
    )


@router.get(
    "/users/{user_id}/average-quiz-score", response_model=AverageQuizScoreOut
)
async def average_quiz_score(
    user_id: UUID, principal: CurrentPrincipal, store: StoreDep
) -> AverageQuizScoreOut:
    ensure_self_or_staff(principal, user_id)
    return AverageQuizScoreOut(
        user_id=user_id,
        average_quiz_score=await analytics_service.get_user_average_quiz_score(
            store, user_id
        ),
    )


# --- aggregates -------------------------------------------------------------


@router.get("/courses/{course_id}/ranking", response_model=list[RankingEntryOut])
async def course_ranking(
    course_id: UUID, _principal: CurrentPrincipal, store: StoreDep
) -> list[RankingEntryOut]:
    entries = await analytics_service.get_course_ranking(store, course_id)
    return [
        RankingEntryOut(
            rank=i,
            user_id=e.user_id,
            progress_percentage=e.progress_percentage,
            average_quiz_score=e.average_quiz_score,
        )
        for i, e in enumerate(entries, start=1)
    ]


@router.get("/statistics", response_model=list[StatisticsOut])
async def progress_statistics(
    _principal: CurrentPrincipal, store: StoreDep
) -> list[StatisticsOut]:
    stats = await analytics_service.get_progress_statistics(store)
    return [StatisticsOut.from_stats(s) for s in stats]


@router.get("/statistics/{course_id}", response_model=StatisticsOut)
async def course_progress_statistics(
    course_id: UUID, _principal: CurrentPrincipal, store: StoreDep
) -> StatisticsOut:
    stats = await analytics_service.get_progress_statistics(store, course_id)
    return StatisticsOut.from_stats(stats)


@router.get("/active-participants", response_model=ActiveParticipantsByCourseOut)
async def active_participants(
    _principal: CurrentPrincipal, store: StoreDep
) -> ActiveParticipantsByCourseOut:
    counts = await analytics_service.get_active_participants(store)
    return ActiveParticipantsByCourseOut(active_participants=counts)


@router.get(
    "/active-participants/{course_id}", response_model=ActiveParticipantsOut
)
async def course_active_participants(
    course_id: UUID, _principal: CurrentPrincipal, store: StoreDep
) -> ActiveParticipantsOut:
    count = await analytics_service.get_active_participants(store, course_id)
    return ActiveParticipantsOut(course_id=course_id, active_participants=count)
