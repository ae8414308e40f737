"""PostgreSQL implementation of CourseRepo."""

from __future__ import annotations

from uuid import UUID

from sqlalchemy import delete, func, or_, select, update
from sqlalchemy.ext.asyncio import AsyncSession

from courseight.db.tables import CourseRow
from courseight.models.course import Course
from courseight.repos.pg_errors import store_errors


def _search_filter(query: str):
    if not query:
        return None
    pattern = f"%{query}%"
    return or_(CourseRow.title.ilike(pattern), CourseRow.description.ilike(pattern))


class PgCourseRepo:
    """Satisfies the CourseRepo Protocol using PostgreSQL via SQLAlchemy."""

    def __init__(self, session: AsyncSession) -> None:
        self._session = session

    async def get_by_id(self, course_id: UUID) -> Course | None:
        with store_errors("get course"):
            stmt = select(CourseRow).where(CourseRow.id == course_id)
            row = (await self._session.execute(stmt)).scalar_one_or_none()
        return None if row is None else _row_to_course(row)

    async def add(self, course: Course) -> None:
        with store_errors("add course"):
            self._session.add(
                CourseRow(
                    id=course.id,
                    title=course.title,
                    description=course.description,
                    instructor_id=course.instructor_id,
                    student_ids=list(course.student_ids),
                    assessment_ids=list(course.assessment_ids),
                    discussion_ids=list(course.discussion_ids),
                    created_at=course.created_at,
                    updated_at=course.updated_at,
                )
            )
            await self._session.flush()

    async def search(self, query: str, *, offset: int, limit: int) -> list[Course]:
        stmt = select(CourseRow)
        where = _search_filter(query)
        if where is not None:
            stmt = stmt.where(where)
        stmt = stmt.order_by(CourseRow.created_at.desc()).offset(offset).limit(limit)
        with store_errors("search courses"):
            rows = (await self._session.execute(stmt)).scalars().all()
        return [_row_to_course(r) for r in rows]

    async def count(self, query: str) -> int:
        stmt = select(func.count()).select_from(CourseRow)
        where = _search_filter(query)
        if where is not None:
            stmt = stmt.where(where)
        with store_errors("count courses"):
            return (await self._session.execute(stmt)).scalar_one()

    async def update_details(
        self, course_id: UUID, *, title: str, description: str, updated_at: int
    ) -> Course | None:
        with store_errors("update course"):
            stmt = (
                update(CourseRow)
                .where(CourseRow.id == course_id)
                .values(title=title, description=description, updated_at=updated_at)
            )
            result = await self._session.execute(stmt)
        if result.rowcount == 0:
            return None
        return await self.get_by_id(course_id)

    async def delete(self, course_id: UUID) -> bool:
        with store_errors("delete course"):
            result = await self._session.execute(
                delete(CourseRow).where(CourseRow.id == course_id)
            )
        return result.rowcount > 0

    async def _mutate_refs(
        self, course_id: UUID, column: str, ref: UUID, *, add: bool
    ) -> bool:
        # Row lock keeps concurrent enrollments from losing each other's
        # array writes.
        with store_errors(f"update course.{column}"):
            stmt = select(CourseRow).where(CourseRow.id == course_id).with_for_update()
            row = (await self._session.execute(stmt)).scalar_one_or_none()
            if row is None:
                return False
            refs: list[UUID] = list(getattr(row, column) or [])
            if add == (ref in refs):
                return False
            refs = [*refs, ref] if add else [r for r in refs if r != ref]
            setattr(row, column, refs)
            await self._session.flush()
        return True

    async def add_student(self, course_id: UUID, user_id: UUID) -> bool:
        return await self._mutate_refs(course_id, "student_ids", user_id, add=True)

    async def remove_student(self, course_id: UUID, user_id: UUID) -> bool:
        return await self._mutate_refs(course_id, "student_ids", user_id, add=False)

    async def link_assessment(self, course_id: UUID, assessment_id: UUID) -> bool:
        return await self._mutate_refs(
            course_id, "assessment_ids", assessment_id, add=True
        )

    async def unlink_assessment(self, course_id: UUID, assessment_id: UUID) -> bool:
        return await self._mutate_refs(
            course_id, "assessment_ids", assessment_id, add=False
        )

    async def link_discussion(self, course_id: UUID, discussion_id: UUID) -> bool:
        return await self._mutate_refs(
            course_id, "discussion_ids", discussion_id, add=True
        )

    async def unlink_discussion(self, course_id: UUID, discussion_id: UUID) -> bool:
        return await self._mutate_refs(
            course_id, "discussion_ids", discussion_id, add=False
        )

    async def find_by_assessment(self, assessment_id: UUID) -> Course | None:
        with store_errors("find course by assessment"):
            stmt = (
                select(CourseRow)
                .where(CourseRow.assessment_ids.any(assessment_id))
                .limit(1)
            )
            row = (await self._session.execute(stmt)).scalar_one_or_none()
        return None if row is None else _row_to_course(row)


def _row_to_course(row: CourseRow) -> Course:
    return Course(
        id=row.id,
        title=row.title,
        description=row.description,
        instructor_id=row.instructor_id,
        student_ids=tuple(row.student_ids or ()),
        assessment_ids=tuple(row.assessment_ids or ()),
        discussion_ids=tuple(row.discussion_ids or ()),
        created_at=row.created_at,
        updated_at=row.updated_at,
    )
