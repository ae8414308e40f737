"""Binary auto-grading of assessment submissions.

Every question is worth one point.  A submission is an ordered list of
option indexes aligned with the question order; ``None`` marks a skipped
question.  Pure functions, no I/O.
"""

from __future__ import annotations

from dataclasses import dataclass

from courseight.core.errors import InvalidInputError
from courseight.models.assessment import Assessment


@dataclass(frozen=True, slots=True)
class GradeResult:
    score: int
    max_score: int
    percentage: int
    passed: bool
    correct: tuple[bool, ...] = ()  # per question, in question order


def validate_answers(raw: object, question_count: int) -> tuple[int | None, ...]:
    """Check the shape of a submitted answer list and freeze it.

    Raises InvalidInputError for anything that is not a list of
    non-negative ints / None no longer than the question list.  Indexes
    past a question's options are accepted here and graded as wrong.
    """
    if not isinstance(raw, (list, tuple)):
        raise InvalidInputError("answers must be a list")
    if len(raw) > question_count:
        raise InvalidInputError(
            f"got {len(raw)} answers for {question_count} questions"
        )
    answers: list[int | None] = []
    for i, value in enumerate(raw):
        if value is None:
            answers.append(None)
            continue
        # bool is an int subclass; True must not grade as option 1.
        if isinstance(value, bool) or not isinstance(value, int):
            raise InvalidInputError(f"answer {i} must be an option index or null")
        if value < 0:
            raise InvalidInputError(f"answer {i} must not be negative")
        answers.append(value)
    return tuple(answers)


def percentage_of(score: int, max_score: int) -> int:
    if max_score <= 0:
        return 0
    return round(score / max_score * 100)


def grade(assessment: Assessment, answers: tuple[int | None, ...]) -> GradeResult:
    key = assessment.answer_key
    correct = tuple(i < len(answers) and answers[i] == k for i, k in enumerate(key))
    score = sum(correct)
    max_score = len(key)
    percentage = percentage_of(score, max_score)
    return GradeResult(
        score=score,
        max_score=max_score,
        percentage=percentage,
        passed=percentage >= assessment.passing_score,
        correct=correct,
    )
