from __future__ import annotations

from dataclasses import replace
from typing import Protocol
from uuid import UUID

from courseight.models.user import Enrollment, User
from courseight.repos.errors import DuplicateKeyError


class UserRepo(Protocol):
    async def get_by_id(self, user_id: UUID) -> User | None: ...
    async def get_by_email(self, email: str) -> User | None: ...
    async def add(self, user: User) -> None: ...
    async def update_password_hash(self, user_id: UUID, password_hash: str) -> None: ...
    async def add_enrollment(self, user_id: UUID, course_id: UUID) -> User | None: ...
    async def remove_enrollment(self, user_id: UUID, course_id: UUID) -> User | None: ...
    async def set_enrollment_progress(
        self, user_id: UUID, course_id: UUID, progress: float
    ) -> None: ...


class InMemoryUserRepo:
    def __init__(self) -> None:
        self._by_email: dict[str, User] = {}
        self._by_id: dict[UUID, User] = {}

    def clear(self) -> None:
        self._by_email.clear()
        self._by_id.clear()

    def _store(self, user: User) -> User:
        self._by_id[user.id] = user
        self._by_email[user.email] = user
        return user

    async def get_by_id(self, user_id: UUID) -> User | None:
        return self._by_id.get(user_id)

    async def get_by_email(self, email: str) -> User | None:
        return self._by_email.get(email.strip().lower())

    async def add(self, user: User) -> None:
        if user.email in self._by_email:
            raise DuplicateKeyError("email already exists")
        self._store(user)

    async def update_password_hash(self, user_id: UUID, password_hash: str) -> None:
        u = self._by_id.get(user_id)
        if u is None:
            raise KeyError("user not found")
        self._store(replace(u, password_hash=password_hash))

    async def add_enrollment(self, user_id: UUID, course_id: UUID) -> User | None:
        u = self._by_id.get(user_id)
        if u is None:
            return None
        if u.is_enrolled(course_id):
            return u
        return self._store(
            replace(u, enrollments=(*u.enrollments, Enrollment(course_id=course_id)))
        )

    async def remove_enrollment(self, user_id: UUID, course_id: UUID) -> User | None:
        u = self._by_id.get(user_id)
        if u is None:
            return None
        kept = tuple(e for e in u.enrollments if e.course_id != course_id)
        return self._store(replace(u, enrollments=kept))

    async def set_enrollment_progress(
        self, user_id: UUID, course_id: UUID, progress: float
    ) -> None:
        u = self._by_id.get(user_id)
        if u is None or not u.is_enrolled(course_id):
            return
        updated = tuple(
            replace(e, progress=progress) if e.course_id == course_id else e
            for e in u.enrollments
        )
        self._store(replace(u, enrollments=updated))
