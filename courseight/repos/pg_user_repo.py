"""PostgreSQL implementation of UserRepo."""

from __future__ import annotations

import time
from uuid import UUID

from sqlalchemy import delete, select, update
from sqlalchemy.dialects.postgresql import insert as pg_insert
from sqlalchemy.ext.asyncio import AsyncSession

from courseight.db.tables import EnrollmentRow, UserRow
from courseight.models.user import Enrollment, User
from courseight.repos.pg_errors import store_errors


class PgUserRepo:
    """Satisfies the UserRepo Protocol using PostgreSQL via SQLAlchemy."""

    def __init__(self, session: AsyncSession) -> None:
        self._session = session

    async def _load(self, row: UserRow) -> User:
        stmt = (
            select(EnrollmentRow)
            .where(EnrollmentRow.user_id == row.id)
            .order_by(EnrollmentRow.enrolled_at, EnrollmentRow.course_id)
        )
        enrollments = (await self._session.execute(stmt)).scalars().all()
        return _row_to_user(row, enrollments)

    async def get_by_id(self, user_id: UUID) -> User | None:
        with store_errors("get user"):
            stmt = select(UserRow).where(UserRow.id == user_id)
            row = (await self._session.execute(stmt)).scalar_one_or_none()
            if row is None:
                return None
            return await self._load(row)

    async def get_by_email(self, email: str) -> User | None:
        with store_errors("get user by email"):
            stmt = select(UserRow).where(UserRow.email == email.strip().lower())
            row = (await self._session.execute(stmt)).scalar_one_or_none()
            if row is None:
                return None
            return await self._load(row)

    async def add(self, user: User) -> None:
        with store_errors("add user"):
            self._session.add(
                UserRow(
                    id=user.id,
                    email=user.email,
                    password_hash=user.password_hash,
                    name=user.name,
                    role=user.role,
                    created_at=user.created_at,
                )
            )
            await self._session.flush()

    async def update_password_hash(self, user_id: UUID, password_hash: str) -> None:
        with store_errors("update password hash"):
            stmt = (
                update(UserRow)
                .where(UserRow.id == user_id)
                .values(password_hash=password_hash)
            )
            await self._session.execute(stmt)

    async def add_enrollment(self, user_id: UUID, course_id: UUID) -> User | None:
        with store_errors("add enrollment"):
            stmt = (
                pg_insert(EnrollmentRow)
                .values(
                    user_id=user_id,
                    course_id=course_id,
                    progress=0.0,
                    enrolled_at=int(time.time()),
                )
                .on_conflict_do_nothing(index_elements=["user_id", "course_id"])
            )
            await self._session.execute(stmt)
        return await self.get_by_id(user_id)

    async def remove_enrollment(self, user_id: UUID, course_id: UUID) -> User | None:
        with store_errors("remove enrollment"):
            stmt = delete(EnrollmentRow).where(
                EnrollmentRow.user_id == user_id,
                EnrollmentRow.course_id == course_id,
            )
            await self._session.execute(stmt)
        return await self.get_by_id(user_id)

    async def set_enrollment_progress(
        self, user_id: UUID, course_id: UUID, progress: float
    ) -> None:
        with store_errors("set enrollment progress"):
            stmt = (
                update(EnrollmentRow)
                .where(
                    EnrollmentRow.user_id == user_id,
                    EnrollmentRow.course_id == course_id,
                )
                .values(progress=progress)
            )
            await self._session.execute(stmt)


def _row_to_user(row: UserRow, enrollments) -> User:
    return User(
        id=row.id,
        email=row.email,
        password_hash=row.password_hash,
        name=row.name or "",
        role=row.role,
        enrollments=tuple(
            Enrollment(course_id=e.course_id, progress=e.progress) for e in enrollments
        ),
        created_at=row.created_at,
    )
