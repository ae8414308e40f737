from __future__ import annotations

import time
from dataclasses import dataclass
from uuid import UUID, uuid4

from courseight.core.errors import InvalidInputError

ROLES = ("student", "instructor", "admin")


def normalize_role(raw: str) -> str:
    """Case-normalize a role name; reject anything outside ROLES."""
    role = raw.strip().lower()
    if role not in ROLES:
        raise InvalidInputError(
            f"role must be one of {'|'.join(ROLES)} (got {raw!r})"
        )
    return role


@dataclass(frozen=True, slots=True)
class Enrollment:
    """A (course, progress) pair carried on the user record."""

    course_id: UUID
    progress: float = 0.0


@dataclass(frozen=True, slots=True)
class User:
    id: UUID
    email: str
    password_hash: str
    name: str = ""
    role: str = "student"  # student|instructor|admin
    enrollments: tuple[Enrollment, ...] = ()
    created_at: int = 0

    @staticmethod
    def new(
        *,
        email: str,
        password_hash: str,
        name: str = "",
        role: str = "student",
    ) -> User:
        return User(
            id=uuid4(),
            email=email.strip().lower(),
            password_hash=password_hash,
            name=name.strip(),
            role=normalize_role(role),
            created_at=int(time.time()),
        )

    def is_enrolled(self, course_id: UUID) -> bool:
        return any(e.course_id == course_id for e in self.enrollments)
