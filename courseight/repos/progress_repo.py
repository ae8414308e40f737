from __future__ import annotations

from collections import defaultdict
from dataclasses import dataclass, replace
from typing import Protocol
from uuid import UUID

from courseight.models.progress import Progress, ProgressEvent
from courseight.repos.errors import DuplicateKeyError


@dataclass(frozen=True, slots=True)
class CourseProgressStats:
    """Grouped view of the Progress records of one course."""

    course_id: UUID
    total_users: int
    average_progress: float
    min_progress: float
    max_progress: float


class ProgressRepo(Protocol):
    # --- event log ---
    async def append_event(self, event: ProgressEvent) -> ProgressEvent: ...
    async def get_event_by_key(
        self, user_id: UUID, course_id: UUID, idempotency_key: str
    ) -> ProgressEvent | None: ...
    async def list_events(
        self, user_id: UUID, course_id: UUID
    ) -> list[ProgressEvent]: ...

    # --- projection ---
    async def get(self, user_id: UUID, course_id: UUID) -> Progress | None: ...
    async def upsert(self, progress: Progress) -> None: ...
    async def list_by_course(self, course_id: UUID) -> list[Progress]: ...
    async def list_by_user(self, user_id: UUID) -> list[Progress]: ...

    # --- aggregations ---
    async def statistics(
        self, course_id: UUID | None = None
    ) -> list[CourseProgressStats]: ...
    async def active_counts(self, course_id: UUID | None = None) -> dict[UUID, int]: ...


class InMemoryProgressRepo:
    def __init__(self) -> None:
        self._events: list[ProgressEvent] = []
        self._by_key: dict[tuple[UUID, UUID, str], ProgressEvent] = {}
        self._projection: dict[tuple[UUID, UUID], Progress] = {}

    def clear(self) -> None:
        self._events.clear()
        self._by_key.clear()
        self._projection.clear()

    async def append_event(self, event: ProgressEvent) -> ProgressEvent:
        key = None
        if event.idempotency_key is not None:
            key = (event.user_id, event.course_id, event.idempotency_key)
            if key in self._by_key:
                raise DuplicateKeyError(
                    f"idempotency key already used: {event.idempotency_key}"
                )
        stored = replace(event, seq=len(self._events) + 1)
        self._events.append(stored)
        if key is not None:
            self._by_key[key] = stored
        return stored

    async def get_event_by_key(
        self, user_id: UUID, course_id: UUID, idempotency_key: str
    ) -> ProgressEvent | None:
        return self._by_key.get((user_id, course_id, idempotency_key))

    async def list_events(self, user_id: UUID, course_id: UUID) -> list[ProgressEvent]:
        return [
            e
            for e in self._events
            if e.user_id == user_id and e.course_id == course_id
        ]

    async def get(self, user_id: UUID, course_id: UUID) -> Progress | None:
        return self._projection.get((user_id, course_id))

    async def upsert(self, progress: Progress) -> None:
        self._projection[(progress.user_id, progress.course_id)] = progress

    async def list_by_course(self, course_id: UUID) -> list[Progress]:
        return [p for p in self._projection.values() if p.course_id == course_id]

    async def list_by_user(self, user_id: UUID) -> list[Progress]:
        return [p for p in self._projection.values() if p.user_id == user_id]

    def _grouped(self, course_id: UUID | None) -> dict[UUID, list[float]]:
        groups: dict[UUID, list[float]] = defaultdict(list)
        for p in self._projection.values():
            if course_id is not None and p.course_id != course_id:
                continue
            groups[p.course_id].append(p.progress_percentage)
        return groups

    async def statistics(
        self, course_id: UUID | None = None
    ) -> list[CourseProgressStats]:
        return [
            CourseProgressStats(
                course_id=cid,
                total_users=len(values),
                average_progress=sum(values) / len(values),
                min_progress=min(values),
                max_progress=max(values),
            )
            for cid, values in self._grouped(course_id).items()
        ]

    async def active_counts(self, course_id: UUID | None = None) -> dict[UUID, int]:
        return {
            cid: sum(1 for v in values if v > 0)
            for cid, values in self._grouped(course_id).items()
        }
