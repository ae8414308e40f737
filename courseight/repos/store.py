"""Bundle of the five repositories a request works against.

Services take a Store instead of individual repos so one call can touch
users, courses, assessments and progress together.  With PostgreSQL
every repo in the bundle shares one AsyncSession, so the whole request
commits or rolls back as a unit.
"""

from __future__ import annotations

from collections.abc import AsyncIterator
from contextlib import asynccontextmanager
from dataclasses import dataclass

from sqlalchemy.ext.asyncio import AsyncSession

from courseight.repos.assessment_repo import AssessmentRepo, InMemoryAssessmentRepo
from courseight.repos.course_repo import CourseRepo, InMemoryCourseRepo
from courseight.repos.discussion_repo import DiscussionRepo, InMemoryDiscussionRepo
from courseight.repos.progress_repo import InMemoryProgressRepo, ProgressRepo
from courseight.repos.user_repo import InMemoryUserRepo, UserRepo


@dataclass(frozen=True, slots=True)
class Store:
    users: UserRepo
    courses: CourseRepo
    assessments: AssessmentRepo
    progress: ProgressRepo
    discussions: DiscussionRepo


class InMemoryStore(Store):
    __slots__ = ()

    def clear(self) -> None:
        self.users.clear()
        self.courses.clear()
        self.assessments.clear()
        self.progress.clear()
        self.discussions.clear()


def new_memory_store() -> InMemoryStore:
    return InMemoryStore(
        users=InMemoryUserRepo(),
        courses=InMemoryCourseRepo(),
        assessments=InMemoryAssessmentRepo(),
        progress=InMemoryProgressRepo(),
        discussions=InMemoryDiscussionRepo(),
    )


# Process-wide store used when DATABASE_URL is unset (dev and tests).
memory_store = new_memory_store()


def pg_store(session: AsyncSession) -> Store:
    from courseight.repos.pg_assessment_repo import PgAssessmentRepo
    from courseight.repos.pg_course_repo import PgCourseRepo
    from courseight.repos.pg_discussion_repo import PgDiscussionRepo
    from courseight.repos.pg_progress_repo import PgProgressRepo
    from courseight.repos.pg_user_repo import PgUserRepo

    return Store(
        users=PgUserRepo(session),
        courses=PgCourseRepo(session),
        assessments=PgAssessmentRepo(session),
        progress=PgProgressRepo(session),
        discussions=PgDiscussionRepo(session),
    )


@asynccontextmanager
async def open_store() -> AsyncIterator[Store]:
    """Yield the store for one unit of work.

    PostgreSQL when configured (one transaction per unit), otherwise the
    shared in-memory store.
    """
    from courseight.db.engine import async_session_factory, session_scope

    if async_session_factory is None:
        yield memory_store
        return
    async with session_scope() as session:
        yield pg_store(session)
