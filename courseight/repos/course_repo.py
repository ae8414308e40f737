from __future__ import annotations

from dataclasses import replace
from typing import Protocol
from uuid import UUID

from courseight.models.course import Course


class CourseRepo(Protocol):
    async def get_by_id(self, course_id: UUID) -> Course | None: ...
    async def add(self, course: Course) -> None: ...
    async def search(self, query: str, *, offset: int, limit: int) -> list[Course]: ...
    async def count(self, query: str) -> int: ...
    async def update_details(
        self, course_id: UUID, *, title: str, description: str, updated_at: int
    ) -> Course | None: ...
    async def delete(self, course_id: UUID) -> bool: ...
    async def add_student(self, course_id: UUID, user_id: UUID) -> bool: ...
    async def remove_student(self, course_id: UUID, user_id: UUID) -> bool: ...
    async def link_assessment(self, course_id: UUID, assessment_id: UUID) -> bool: ...
    async def unlink_assessment(self, course_id: UUID, assessment_id: UUID) -> bool: ...
    async def link_discussion(self, course_id: UUID, discussion_id: UUID) -> bool: ...
    async def unlink_discussion(self, course_id: UUID, discussion_id: UUID) -> bool: ...
    async def find_by_assessment(self, assessment_id: UUID) -> Course | None: ...


def _matches(course: Course, query: str) -> bool:
    if not query:
        return True
    q = query.lower()
    return q in course.title.lower() or q in course.description.lower()


class InMemoryCourseRepo:
    def __init__(self) -> None:
        self._by_id: dict[UUID, Course] = {}

    def clear(self) -> None:
        self._by_id.clear()

    async def get_by_id(self, course_id: UUID) -> Course | None:
        return self._by_id.get(course_id)

    async def add(self, course: Course) -> None:
        if course.id in self._by_id:
            raise ValueError("course already exists")
        self._by_id[course.id] = course

    async def search(self, query: str, *, offset: int, limit: int) -> list[Course]:
        # Newest first; ties keep insertion order (sorted() is stable).
        found = [c for c in self._by_id.values() if _matches(c, query)]
        found.sort(key=lambda c: c.created_at, reverse=True)
        return found[offset : offset + limit]

    async def count(self, query: str) -> int:
        return sum(1 for c in self._by_id.values() if _matches(c, query))

    async def update_details(
        self, course_id: UUID, *, title: str, description: str, updated_at: int
    ) -> Course | None:
        c = self._by_id.get(course_id)
        if c is None:
            return None
        updated = replace(c, title=title, description=description, updated_at=updated_at)
        self._by_id[course_id] = updated
        return updated

    async def delete(self, course_id: UUID) -> bool:
        return self._by_id.pop(course_id, None) is not None

    def _add_ref(self, course_id: UUID, field: str, ref: UUID) -> bool:
        c = self._by_id.get(course_id)
        if c is None:
            return False
        refs: tuple[UUID, ...] = getattr(c, field)
        if ref in refs:
            return False
        self._by_id[course_id] = replace(c, **{field: (*refs, ref)})
        return True

    def _remove_ref(self, course_id: UUID, field: str, ref: UUID) -> bool:
        c = self._by_id.get(course_id)
        if c is None:
            return False
        refs: tuple[UUID, ...] = getattr(c, field)
        if ref not in refs:
            return False
        self._by_id[course_id] = replace(
            c, **{field: tuple(r for r in refs if r != ref)}
        )
        return True

    async def add_student(self, course_id: UUID, user_id: UUID) -> bool:
        return self._add_ref(course_id, "student_ids", user_id)

    async def remove_student(self, course_id: UUID, user_id: UUID) -> bool:
        return self._remove_ref(course_id, "student_ids", user_id)

    async def link_assessment(self, course_id: UUID, assessment_id: UUID) -> bool:
        return self._add_ref(course_id, "assessment_ids", assessment_id)

    async def unlink_assessment(self, course_id: UUID, assessment_id: UUID) -> bool:
        return self._remove_ref(course_id, "assessment_ids", assessment_id)

    async def link_discussion(self, course_id: UUID, discussion_id: UUID) -> bool:
        return self._add_ref(course_id, "discussion_ids", discussion_id)

    async def unlink_discussion(self, course_id: UUID, discussion_id: UUID) -> bool:
        return self._remove_ref(course_id, "discussion_ids", discussion_id)

    async def find_by_assessment(self, assessment_id: UUID) -> Course | None:
        for c in self._by_id.values():
            if assessment_id in c.assessment_ids:
                return c
        return None
