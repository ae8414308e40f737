"""JSON auth endpoints for SPA clients.

/v1/auth/register and /v1/auth/login both return
{ access_token, token_type, user } so the client can keep the token in
memory and go straight to its dashboard.
"""

from __future__ import annotations

import logging
from uuid import UUID

from fastapi import APIRouter, HTTPException, status
from pydantic import BaseModel

from courseight.api.dependencies import CurrentPrincipal, StoreDep
from courseight.api.errors import to_http_exception
from courseight.core.errors import DomainError
from courseight.models.user import User
from courseight.services import auth_service, token_service

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/v1/auth", tags=["auth"])


# --- Request / Response schemas -------------------------------------------


class LoginIn(BaseModel):
    email: str
    password: str


class RegisterIn(BaseModel):
    name: str
    email: str
    password: str
    role: str = "student"


class EnrollmentOut(BaseModel):
    course_id: UUID
    progress: float


class UserOut(BaseModel):
    id: UUID
    email: str
    name: str
    role: str
    enrollments: list[EnrollmentOut]

    @classmethod
    def from_user(cls, user: User) -> UserOut:
        return cls(
            id=user.id,
            email=user.email,
            name=user.name,
            role=user.role,
            enrollments=[
                EnrollmentOut(course_id=e.course_id, progress=e.progress)
                for e in user.enrollments
            ],
        )


class AuthResponse(BaseModel):
    access_token: str
    token_type: str = "bearer"
    user: UserOut


def _issue(user: User) -> AuthResponse:
    access_token = token_service.create_access_token(
        sub=str(user.id), roles=[user.role]
    )
    return AuthResponse(access_token=access_token, user=UserOut.from_user(user))


# --- POST /v1/auth/register -------------------------------------------------


@router.post(
    "/register",
    response_model=AuthResponse,
    status_code=status.HTTP_201_CREATED,
)
async def register(payload: RegisterIn, store: StoreDep) -> AuthResponse:
    try:
        user = await auth_service.register_user(
            store.users,
            email=payload.email,
            password=payload.password,
            name=payload.name,
            role=payload.role,
        )
    except DomainError as e:
        logger.warning("Registration rejected: %s", e.message)
        raise to_http_exception(e) from e
    return _issue(user)


# --- POST /v1/auth/login ----------------------------------------------------


@router.post("/login", response_model=AuthResponse)
async def login(payload: LoginIn, store: StoreDep) -> AuthResponse:
    email = payload.email.lower().strip()
    user = await auth_service.authenticate_user(store.users, email, payload.password)
    if user is None:
        logger.warning("Login failed  email=%s", email)
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail={"message": "Invalid email or password"},
        )
    logger.info("Login succeeded  user_id=%s", user.id)
    return _issue(user)


# --- GET /v1/auth/me --------------------------------------------------------


@router.get("/me", response_model=UserOut)
async def me(principal: CurrentPrincipal, store: StoreDep) -> UserOut:
    user = await store.users.get_by_id(UUID(principal.user_id))
    if user is None:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND, detail="user not found"
        )
    return UserOut.from_user(user)
