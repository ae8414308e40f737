"""PostgreSQL implementation of AssessmentRepo."""

from __future__ import annotations

from collections.abc import Collection
from uuid import UUID

from sqlalchemy import delete, func, select, update
from sqlalchemy.ext.asyncio import AsyncSession

from courseight.db.tables import AssessmentResultRow, AssessmentRow
from courseight.models.assessment import Assessment, AssessmentResult, Question
from courseight.repos.pg_errors import store_errors


class PgAssessmentRepo:
    """Satisfies the AssessmentRepo Protocol using PostgreSQL via SQLAlchemy."""

    def __init__(self, session: AsyncSession) -> None:
        self._session = session

    async def get_by_id(self, assessment_id: UUID) -> Assessment | None:
        with store_errors("get assessment"):
            stmt = select(AssessmentRow).where(AssessmentRow.id == assessment_id)
            row = (await self._session.execute(stmt)).scalar_one_or_none()
        return None if row is None else _row_to_assessment(row)

    async def add(self, assessment: Assessment) -> None:
        with store_errors("add assessment"):
            self._session.add(
                AssessmentRow(
                    id=assessment.id,
                    course_id=assessment.course_id,
                    title=assessment.title,
                    description=assessment.description,
                    passing_score=assessment.passing_score,
                    questions=_questions_to_json(assessment.questions),
                    created_by=assessment.created_by,
                    created_at=assessment.created_at,
                    updated_at=assessment.updated_at,
                )
            )
            await self._session.flush()

    async def list_all(self) -> list[Assessment]:
        with store_errors("list assessments"):
            stmt = select(AssessmentRow).order_by(AssessmentRow.created_at)
            rows = (await self._session.execute(stmt)).scalars().all()
        return [_row_to_assessment(r) for r in rows]

    async def list_by_course(self, course_id: UUID) -> list[Assessment]:
        with store_errors("list course assessments"):
            stmt = (
                select(AssessmentRow)
                .where(AssessmentRow.course_id == course_id)
                .order_by(AssessmentRow.created_at)
            )
            rows = (await self._session.execute(stmt)).scalars().all()
        return [_row_to_assessment(r) for r in rows]

    async def update(self, assessment: Assessment) -> Assessment | None:
        with store_errors("update assessment"):
            stmt = (
                update(AssessmentRow)
                .where(AssessmentRow.id == assessment.id)
                .values(
                    course_id=assessment.course_id,
                    title=assessment.title,
                    description=assessment.description,
                    passing_score=assessment.passing_score,
                    questions=_questions_to_json(assessment.questions),
                    updated_at=assessment.updated_at,
                )
            )
            result = await self._session.execute(stmt)
        return assessment if result.rowcount else None

    async def set_course(
        self, assessment_id: UUID, course_id: UUID
    ) -> Assessment | None:
        with store_errors("set assessment course"):
            stmt = (
                update(AssessmentRow)
                .where(AssessmentRow.id == assessment_id)
                .values(course_id=course_id)
            )
            result = await self._session.execute(stmt)
        if result.rowcount == 0:
            return None
        return await self.get_by_id(assessment_id)

    async def delete(self, assessment_id: UUID) -> bool:
        with store_errors("delete assessment"):
            result = await self._session.execute(
                delete(AssessmentRow).where(AssessmentRow.id == assessment_id)
            )
        return result.rowcount > 0

    # --- results ---

    async def add_result(self, result: AssessmentResult) -> None:
        # The (assessment_id, user_id) primary key rejects a second row;
        # store_errors turns the IntegrityError into DuplicateKeyError.
        with store_errors("add assessment result"):
            self._session.add(
                AssessmentResultRow(
                    assessment_id=result.assessment_id,
                    user_id=result.user_id,
                    score=result.score,
                    max_score=result.max_score,
                    percentage=result.percentage,
                    answers=list(result.answers),
                    submitted_at=result.submitted_at,
                )
            )
            await self._session.flush()

    async def get_result(
        self, assessment_id: UUID, user_id: UUID
    ) -> AssessmentResult | None:
        with store_errors("get assessment result"):
            stmt = select(AssessmentResultRow).where(
                AssessmentResultRow.assessment_id == assessment_id,
                AssessmentResultRow.user_id == user_id,
            )
            row = (await self._session.execute(stmt)).scalar_one_or_none()
        return None if row is None else _row_to_result(row)

    async def list_results(self, assessment_id: UUID) -> list[AssessmentResult]:
        with store_errors("list assessment results"):
            stmt = (
                select(AssessmentResultRow)
                .where(AssessmentResultRow.assessment_id == assessment_id)
                .order_by(AssessmentResultRow.submitted_at)
            )
            rows = (await self._session.execute(stmt)).scalars().all()
        return [_row_to_result(r) for r in rows]

    async def count_results(self, assessment_id: UUID) -> int:
        with store_errors("count assessment results"):
            stmt = (
                select(func.count())
                .select_from(AssessmentResultRow)
                .where(AssessmentResultRow.assessment_id == assessment_id)
            )
            return (await self._session.execute(stmt)).scalar_one()

    # --- aggregations ---

    async def average_percentage(self, assessment_id: UUID) -> float | None:
        with store_errors("average assessment percentage"):
            stmt = select(func.avg(AssessmentResultRow.percentage)).where(
                AssessmentResultRow.assessment_id == assessment_id
            )
            avg = (await self._session.execute(stmt)).scalar_one()
        return None if avg is None else float(avg)

    async def average_percentage_by_user(
        self, assessment_ids: Collection[UUID] | None = None
    ) -> dict[UUID, float]:
        stmt = select(
            AssessmentResultRow.user_id, func.avg(AssessmentResultRow.percentage)
        ).group_by(AssessmentResultRow.user_id)
        if assessment_ids is not None:
            if not assessment_ids:
                return {}
            stmt = stmt.where(AssessmentResultRow.assessment_id.in_(list(assessment_ids)))
        with store_errors("average percentage by user"):
            rows = (await self._session.execute(stmt)).all()
        return {user_id: float(avg) for user_id, avg in rows}


def _questions_to_json(questions: tuple[Question, ...]) -> list[dict]:
    return [
        {
            "text": q.text,
            "kind": q.kind,
            "options": list(q.options),
            "correct_index": q.correct_index,
        }
        for q in questions
    ]


def _row_to_assessment(row: AssessmentRow) -> Assessment:
    return Assessment(
        id=row.id,
        title=row.title,
        description=row.description,
        questions=tuple(
            Question(
                text=q["text"],
                kind=q["kind"],
                options=tuple(q["options"]),
                correct_index=q["correct_index"],
            )
            for q in row.questions or ()
        ),
        course_id=row.course_id,
        passing_score=row.passing_score,
        created_by=row.created_by,
        created_at=row.created_at,
        updated_at=row.updated_at,
    )


def _row_to_result(row: AssessmentResultRow) -> AssessmentResult:
    return AssessmentResult(
        assessment_id=row.assessment_id,
        user_id=row.user_id,
        score=row.score,
        max_score=row.max_score,
        percentage=row.percentage,
        answers=tuple(row.answers or ()),
        submitted_at=row.submitted_at,
    )
