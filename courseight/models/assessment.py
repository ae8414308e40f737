from __future__ import annotations

import time
from dataclasses import dataclass
from uuid import UUID, uuid4

DEFAULT_PASSING_SCORE = 60
TRUE_FALSE_OPTIONS = ("True", "False")


@dataclass(frozen=True, slots=True)
class Question:
    text: str
    kind: str  # multiple_choice|true_false
    options: tuple[str, ...]
    correct_index: int


@dataclass(frozen=True, slots=True)
class Assessment:
    id: UUID
    title: str
    description: str
    questions: tuple[Question, ...]
    course_id: UUID | None = None
    passing_score: int = DEFAULT_PASSING_SCORE  # percentage
    created_by: UUID | None = None
    created_at: int = 0
    updated_at: int = 0

    @staticmethod
    def new(
        *,
        title: str,
        description: str,
        questions: tuple[Question, ...],
        course_id: UUID | None = None,
        passing_score: int = DEFAULT_PASSING_SCORE,
        created_by: UUID | None = None,
    ) -> Assessment:
        now = int(time.time())
        return Assessment(
            id=uuid4(),
            title=title,
            description=description,
            questions=questions,
            course_id=course_id,
            passing_score=passing_score,
            created_by=created_by,
            created_at=now,
            updated_at=now,
        )

    @property
    def answer_key(self) -> list[int]:
        return [q.correct_index for q in self.questions]


@dataclass(frozen=True, slots=True)
class AssessmentResult:
    """One graded submission.  At most one per (assessment_id, user_id)."""

    assessment_id: UUID
    user_id: UUID
    score: int
    max_score: int
    percentage: int
    answers: tuple[int | None, ...]
    submitted_at: int
