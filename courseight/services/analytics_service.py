"""Read-only rankings, averages and progress statistics.

Nothing here raises for "no data": empty inputs produce empty lists or
zeros.  Every view is computed from the store on each call.
"""

from __future__ import annotations

from dataclasses import dataclass
from uuid import UUID

from courseight.repos.store import Store


@dataclass(frozen=True, slots=True)
class RankingEntry:
    user_id: UUID
    progress_percentage: float
    average_quiz_score: float


@dataclass(frozen=True, slots=True)
class LeaderboardEntry:
    user_id: UUID
    average_quiz_score: float


@dataclass(frozen=True, slots=True)
class ProgressStatistics:
    course_id: UUID
    course_title: str | None
    total_users: int
    average_progress: float
    min_progress: float
    max_progress: float


def _mean(values: list[float]) -> float:
    return sum(values) / len(values) if values else 0.0


async def course_assessment_ids(store: Store, course_id: UUID) -> set[UUID]:
    """Assessments linked from the course plus those pointing at it."""
    ids: set[UUID] = set()
    course = await store.courses.get_by_id(course_id)
    if course is not None:
        ids.update(course.assessment_ids)
    ids.update(a.id for a in await store.assessments.list_by_course(course_id))
    return ids


async def get_course_ranking(store: Store, course_id: UUID) -> list[RankingEntry]:
    """Rank a course's participants by progress.

    Participants are the enrolled students plus anyone with a progress
    record.  Ordered by progress descending, then user id ascending.
    """
    course = await store.courses.get_by_id(course_id)
    if course is None:
        return []

    progress_by_user = {
        p.user_id: p.progress_percentage
        for p in await store.progress.list_by_course(course_id)
    }
    participants = set(course.student_ids) | set(progress_by_user)
    if not participants:
        return []

    quiz_by_user = await store.assessments.average_percentage_by_user(
        await course_assessment_ids(store, course_id)
    )
    entries = [
        RankingEntry(
            user_id=uid,
            progress_percentage=progress_by_user.get(uid, 0.0),
            average_quiz_score=quiz_by_user.get(uid, 0.0),
        )
        for uid in participants
    ]
    entries.sort(key=lambda e: (-e.progress_percentage, str(e.user_id)))
    return entries


async def get_user_average_score(store: Store, user_id: UUID) -> float:
    """Average completion: mean progress over the user's enrollments."""
    user = await store.users.get_by_id(user_id)
    if user is None:
        return 0.0
    return _mean([e.progress for e in user.enrollments])


async def get_user_average_quiz_score(store: Store, user_id: UUID) -> float:
    by_user = await store.assessments.average_percentage_by_user()
    return by_user.get(user_id, 0.0)


async def get_quiz_leaderboard(store: Store) -> list[LeaderboardEntry]:
    by_user = await store.assessments.average_percentage_by_user()
    entries = [
        LeaderboardEntry(user_id=uid, average_quiz_score=avg)
        for uid, avg in by_user.items()
    ]
    entries.sort(key=lambda e: (-e.average_quiz_score, str(e.user_id)))
    return entries


async def get_assessment_average(store: Store, assessment_id: UUID) -> float:
    avg = await store.assessments.average_percentage(assessment_id)
    return 0.0 if avg is None else avg


async def _course_title(store: Store, course_id: UUID) -> str | None:
    course = await store.courses.get_by_id(course_id)
    return None if course is None else course.title


async def get_progress_statistics(
    store: Store, course_id: UUID | None = None
) -> ProgressStatistics | list[ProgressStatistics]:
    """Per-course totals, mean, min and max over progress records.

    With a course id, one object (zeroed when the course has no
    records).  Without, one entry per course with records, ordered by
    course id.
    """
    if course_id is not None:
        rows = await store.progress.statistics(course_id)
        title = await _course_title(store, course_id)
        if not rows:
            return ProgressStatistics(
                course_id=course_id,
                course_title=title,
                total_users=0,
                average_progress=0.0,
                min_progress=0.0,
                max_progress=0.0,
            )
        s = rows[0]
        return ProgressStatistics(
            course_id=course_id,
            course_title=title,
            total_users=s.total_users,
            average_progress=s.average_progress,
            min_progress=s.min_progress,
            max_progress=s.max_progress,
        )

    out = []
    for s in sorted(await store.progress.statistics(), key=lambda s: str(s.course_id)):
        out.append(
            ProgressStatistics(
                course_id=s.course_id,
                course_title=await _course_title(store, s.course_id),
                total_users=s.total_users,
                average_progress=s.average_progress,
                min_progress=s.min_progress,
                max_progress=s.max_progress,
            )
        )
    return out


async def get_active_participants(
    store: Store, course_id: UUID | None = None
) -> int | dict[UUID, int]:
    """Count progress records above zero, for one course or per course."""
    counts = await store.progress.active_counts(course_id)
    if course_id is not None:
        return counts.get(course_id, 0)
    return dict(sorted(counts.items(), key=lambda kv: str(kv[0])))
