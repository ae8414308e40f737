from __future__ import annotations

from collections import defaultdict
from collections.abc import Collection
from dataclasses import replace
from typing import Protocol
from uuid import UUID

from courseight.models.assessment import Assessment, AssessmentResult
from courseight.repos.errors import DuplicateKeyError


class AssessmentRepo(Protocol):
    async def get_by_id(self, assessment_id: UUID) -> Assessment | None: ...
    async def add(self, assessment: Assessment) -> None: ...
    async def list_all(self) -> list[Assessment]: ...
    async def list_by_course(self, course_id: UUID) -> list[Assessment]: ...
    async def update(self, assessment: Assessment) -> Assessment | None: ...
    async def set_course(
        self, assessment_id: UUID, course_id: UUID
    ) -> Assessment | None: ...
    async def delete(self, assessment_id: UUID) -> bool: ...

    # --- results (unique per assessment_id + user_id) ---
    async def add_result(self, result: AssessmentResult) -> None: ...
    async def get_result(
        self, assessment_id: UUID, user_id: UUID
    ) -> AssessmentResult | None: ...
    async def list_results(self, assessment_id: UUID) -> list[AssessmentResult]: ...
    async def count_results(self, assessment_id: UUID) -> int: ...

    # --- aggregations ---
    async def average_percentage(self, assessment_id: UUID) -> float | None: ...
    async def average_percentage_by_user(
        self, assessment_ids: Collection[UUID] | None = None
    ) -> dict[UUID, float]: ...


class InMemoryAssessmentRepo:
    def __init__(self) -> None:
        self._by_id: dict[UUID, Assessment] = {}
        self._results: dict[tuple[UUID, UUID], AssessmentResult] = {}

    def clear(self) -> None:
        self._by_id.clear()
        self._results.clear()

    async def get_by_id(self, assessment_id: UUID) -> Assessment | None:
        return self._by_id.get(assessment_id)

    async def add(self, assessment: Assessment) -> None:
        if assessment.id in self._by_id:
            raise ValueError("assessment already exists")
        self._by_id[assessment.id] = assessment

    async def list_all(self) -> list[Assessment]:
        return list(self._by_id.values())

    async def list_by_course(self, course_id: UUID) -> list[Assessment]:
        return [a for a in self._by_id.values() if a.course_id == course_id]

    async def update(self, assessment: Assessment) -> Assessment | None:
        if assessment.id not in self._by_id:
            return None
        self._by_id[assessment.id] = assessment
        return assessment

    async def set_course(
        self, assessment_id: UUID, course_id: UUID
    ) -> Assessment | None:
        a = self._by_id.get(assessment_id)
        if a is None:
            return None
        updated = replace(a, course_id=course_id)
        self._by_id[assessment_id] = updated
        return updated

    async def delete(self, assessment_id: UUID) -> bool:
        return self._by_id.pop(assessment_id, None) is not None

    async def add_result(self, result: AssessmentResult) -> None:
        # Check and insert happen without an await in between, so the
        # pair stays unique even with concurrent submissions.
        key = (result.assessment_id, result.user_id)
        if key in self._results:
            raise DuplicateKeyError("result already recorded for this user")
        self._results[key] = result

    async def get_result(
        self, assessment_id: UUID, user_id: UUID
    ) -> AssessmentResult | None:
        return self._results.get((assessment_id, user_id))

    async def list_results(self, assessment_id: UUID) -> list[AssessmentResult]:
        return [r for r in self._results.values() if r.assessment_id == assessment_id]

    async def count_results(self, assessment_id: UUID) -> int:
        return len(await self.list_results(assessment_id))

    async def average_percentage(self, assessment_id: UUID) -> float | None:
        results = await self.list_results(assessment_id)
        if not results:
            return None
        return sum(r.percentage for r in results) / len(results)

    async def average_percentage_by_user(
        self, assessment_ids: Collection[UUID] | None = None
    ) -> dict[UUID, float]:
        per_user: dict[UUID, list[int]] = defaultdict(list)
        for r in self._results.values():
            if assessment_ids is not None and r.assessment_id not in assessment_ids:
                continue
            per_user[r.user_id].append(r.percentage)
        return {uid: sum(vals) / len(vals) for uid, vals in per_user.items()}
