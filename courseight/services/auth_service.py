from __future__ import annotations

import logging
import re

from argon2 import PasswordHasher
from argon2.exceptions import InvalidHash, VerificationError, VerifyMismatchError

from courseight.core.errors import ConflictError, InvalidInputError
from courseight.models.user import User, normalize_role
from courseight.repos.errors import DuplicateKeyError
from courseight.repos.user_repo import UserRepo

logger = logging.getLogger(__name__)

# Argon2 hash strings encode parameters + salt
_ph = PasswordHasher()

_EMAIL_RE = re.compile(r"^[^@\s]+@[^@\s]+\.[^@\s]+$")
PASSWORD_MIN = 8


def hash_password(plain_password: str) -> str:
    if not plain_password:
        raise ValueError("password must be non-empty")
    return _ph.hash(plain_password)


# verify_password() must catch Argon2 exceptions and return False
def verify_password(plain_password: str, password_hash: str) -> bool:
    if not plain_password or not password_hash:
        return False
    try:
        return _ph.verify(password_hash, plain_password)
    except (VerifyMismatchError, VerificationError, InvalidHash):
        return False


async def register_user(
    repo: UserRepo,
    *,
    email: str,
    password: str,
    name: str,
    role: str = "student",
) -> User:
    email = email.strip().lower()
    name = name.strip()
    if not _EMAIL_RE.match(email):
        raise InvalidInputError("Invalid email address")
    if not name:
        raise InvalidInputError("Name is required")
    if len(password) < PASSWORD_MIN:
        raise InvalidInputError(
            f"Password must be at least {PASSWORD_MIN} characters"
        )
    role = normalize_role(role)

    if await repo.get_by_email(email) is not None:
        logger.warning("Rejected duplicate email=%s", email)
        raise ConflictError("A user with this email already exists")

    user = User.new(
        email=email, password_hash=hash_password(password), name=name, role=role
    )
    try:
        await repo.add(user)
    except DuplicateKeyError as e:
        # Another request registered the same email in between.
        raise ConflictError("A user with this email already exists") from e

    logger.info("User registered  user_id=%s role=%s", user.id, user.role)
    return user


async def authenticate_user(repo: UserRepo, email: str, password: str) -> User | None:
    user = await repo.get_by_email(email)
    if user is None:
        return None
    if not verify_password(password, user.password_hash):
        return None

    try:
        if _ph.check_needs_rehash(user.password_hash):
            await repo.update_password_hash(user.id, _ph.hash(password))
            logger.info("Rehashed password for user=%s", user.id)
    except InvalidHash:
        return None

    return user
