from __future__ import annotations

from dataclasses import dataclass
from uuid import UUID, uuid4

ENROLLED = "enrolled"
PROGRESS_SET = "progress_set"
ASSESSMENT_PASSED = "assessment_passed"
ASSESSMENT_FAILED = "assessment_failed"

EVENT_TYPES = (ENROLLED, PROGRESS_SET, ASSESSMENT_PASSED, ASSESSMENT_FAILED)


@dataclass(frozen=True, slots=True)
class ProgressEvent:
    """Append-only event log, the source of truth for learner progress."""

    id: UUID
    user_id: UUID
    course_id: UUID
    occurred_at: int
    type: str  # enrolled|progress_set|assessment_passed|assessment_failed
    entity_type: str | None = None
    entity_id: UUID | None = None
    payload_json: str | None = None
    idempotency_key: str | None = None
    seq: int = 0  # assigned by the store on append

    @staticmethod
    def new(
        *,
        user_id: UUID,
        course_id: UUID,
        occurred_at: int,
        type: str,
        entity_type: str | None = None,
        entity_id: UUID | None = None,
        payload_json: str | None = None,
        idempotency_key: str | None = None,
    ) -> ProgressEvent:
        return ProgressEvent(
            id=uuid4(),
            user_id=user_id,
            course_id=course_id,
            occurred_at=occurred_at,
            type=type,
            entity_type=entity_type,
            entity_id=entity_id,
            payload_json=payload_json,
            idempotency_key=idempotency_key,
        )


@dataclass(frozen=True, slots=True)
class Progress:
    """Projection / read model folded from progress_events.

    One record per (user_id, course_id).
    """

    user_id: UUID
    course_id: UUID
    progress_percentage: float = 0.0
    last_updated: int = 0
