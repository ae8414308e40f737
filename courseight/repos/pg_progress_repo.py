"""PostgreSQL implementation of ProgressRepo.

progress_events is append-only; course_progress is the projection the
service layer rewrites after every append.  Aggregations run as grouped
SQL over course_progress.
"""

from __future__ import annotations

from uuid import UUID

from sqlalchemy import func, insert, select
from sqlalchemy.dialects.postgresql import insert as pg_insert
from sqlalchemy.ext.asyncio import AsyncSession

from courseight.db.tables import CourseProgressRow, ProgressEventRow
from courseight.models.progress import Progress, ProgressEvent
from courseight.repos.pg_errors import store_errors
from courseight.repos.progress_repo import CourseProgressStats


class PgProgressRepo:
    """Satisfies the ProgressRepo Protocol using PostgreSQL via SQLAlchemy."""

    def __init__(self, session: AsyncSession) -> None:
        self._session = session

    # --- event log ---

    async def append_event(self, event: ProgressEvent) -> ProgressEvent:
        stmt = (
            insert(ProgressEventRow)
            .values(
                id=event.id,
                user_id=event.user_id,
                course_id=event.course_id,
                occurred_at=event.occurred_at,
                type=event.type,
                entity_type=event.entity_type,
                entity_id=event.entity_id,
                payload_json=event.payload_json,
                idempotency_key=event.idempotency_key,
            )
            .returning(ProgressEventRow.seq)
        )
        # A savepoint keeps a duplicate idempotency key from poisoning the
        # surrounding transaction.
        with store_errors("append progress event"):
            async with self._session.begin_nested():
                seq = (await self._session.execute(stmt)).scalar_one()
        return ProgressEvent(
            id=event.id,
            user_id=event.user_id,
            course_id=event.course_id,
            occurred_at=event.occurred_at,
            type=event.type,
            entity_type=event.entity_type,
            entity_id=event.entity_id,
            payload_json=event.payload_json,
            idempotency_key=event.idempotency_key,
            seq=seq,
        )

    async def get_event_by_key(
        self, user_id: UUID, course_id: UUID, idempotency_key: str
    ) -> ProgressEvent | None:
        with store_errors("get progress event"):
            stmt = select(ProgressEventRow).where(
                ProgressEventRow.user_id == user_id,
                ProgressEventRow.course_id == course_id,
                ProgressEventRow.idempotency_key == idempotency_key,
            )
            row = (await self._session.execute(stmt)).scalar_one_or_none()
        return None if row is None else _row_to_event(row)

    async def list_events(self, user_id: UUID, course_id: UUID) -> list[ProgressEvent]:
        with store_errors("list progress events"):
            stmt = (
                select(ProgressEventRow)
                .where(
                    ProgressEventRow.user_id == user_id,
                    ProgressEventRow.course_id == course_id,
                )
                .order_by(ProgressEventRow.seq)
            )
            rows = (await self._session.execute(stmt)).scalars().all()
        return [_row_to_event(r) for r in rows]

    # --- projection ---

    async def get(self, user_id: UUID, course_id: UUID) -> Progress | None:
        with store_errors("get progress"):
            stmt = select(CourseProgressRow).where(
                CourseProgressRow.user_id == user_id,
                CourseProgressRow.course_id == course_id,
            )
            row = (await self._session.execute(stmt)).scalar_one_or_none()
        return None if row is None else _row_to_progress(row)

    async def upsert(self, progress: Progress) -> None:
        stmt = pg_insert(CourseProgressRow).values(
            user_id=progress.user_id,
            course_id=progress.course_id,
            progress_percentage=progress.progress_percentage,
            last_updated=progress.last_updated,
        )
        stmt = stmt.on_conflict_do_update(
            index_elements=["user_id", "course_id"],
            set_={
                "progress_percentage": stmt.excluded.progress_percentage,
                "last_updated": stmt.excluded.last_updated,
            },
        )
        with store_errors("upsert progress"):
            await self._session.execute(stmt)

    async def list_by_course(self, course_id: UUID) -> list[Progress]:
        with store_errors("list course progress"):
            stmt = select(CourseProgressRow).where(
                CourseProgressRow.course_id == course_id
            )
            rows = (await self._session.execute(stmt)).scalars().all()
        return [_row_to_progress(r) for r in rows]

    async def list_by_user(self, user_id: UUID) -> list[Progress]:
        with store_errors("list user progress"):
            stmt = select(CourseProgressRow).where(CourseProgressRow.user_id == user_id)
            rows = (await self._session.execute(stmt)).scalars().all()
        return [_row_to_progress(r) for r in rows]

    # --- aggregations ---

    async def statistics(
        self, course_id: UUID | None = None
    ) -> list[CourseProgressStats]:
        pct = CourseProgressRow.progress_percentage
        stmt = select(
            CourseProgressRow.course_id,
            func.count(),
            func.avg(pct),
            func.min(pct),
            func.max(pct),
        ).group_by(CourseProgressRow.course_id)
        if course_id is not None:
            stmt = stmt.where(CourseProgressRow.course_id == course_id)
        with store_errors("progress statistics"):
            rows = (await self._session.execute(stmt)).all()
        return [
            CourseProgressStats(
                course_id=cid,
                total_users=total,
                average_progress=float(avg),
                min_progress=float(lo),
                max_progress=float(hi),
            )
            for cid, total, avg, lo, hi in rows
        ]

    async def active_counts(self, course_id: UUID | None = None) -> dict[UUID, int]:
        stmt = select(
            CourseProgressRow.course_id,
            func.count().filter(CourseProgressRow.progress_percentage > 0),
        ).group_by(CourseProgressRow.course_id)
        if course_id is not None:
            stmt = stmt.where(CourseProgressRow.course_id == course_id)
        with store_errors("active participant counts"):
            rows = (await self._session.execute(stmt)).all()
        return {cid: count for cid, count in rows}


def _row_to_event(row: ProgressEventRow) -> ProgressEvent:
    return ProgressEvent(
        id=row.id,
        user_id=row.user_id,
        course_id=row.course_id,
        occurred_at=row.occurred_at,
        type=row.type,
        entity_type=row.entity_type,
        entity_id=row.entity_id,
        payload_json=row.payload_json,
        idempotency_key=row.idempotency_key,
        seq=row.seq,
    )


def _row_to_progress(row: CourseProgressRow) -> Progress:
    return Progress(
        user_id=row.user_id,
        course_id=row.course_id,
        progress_percentage=row.progress_percentage,
        last_updated=row.last_updated,
    )
