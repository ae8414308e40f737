from __future__ import annotations

import time
from dataclasses import dataclass
from uuid import UUID, uuid4


@dataclass(frozen=True, slots=True)
class Course:
    id: UUID
    title: str
    description: str
    instructor_id: UUID
    # Weak references: the linked entities are addressable on their own
    # and do not die with the course.
    student_ids: tuple[UUID, ...] = ()
    assessment_ids: tuple[UUID, ...] = ()
    discussion_ids: tuple[UUID, ...] = ()
    created_at: int = 0
    updated_at: int = 0

    @staticmethod
    def new(*, title: str, description: str, instructor_id: UUID) -> Course:
        now = int(time.time())
        return Course(
            id=uuid4(),
            title=title,
            description=description,
            instructor_id=instructor_id,
            created_at=now,
            updated_at=now,
        )

    def has_student(self, user_id: UUID) -> bool:
        return user_id in self.student_ids

    @property
    def is_referenced(self) -> bool:
        return bool(self.student_ids or self.assessment_ids or self.discussion_ids)
