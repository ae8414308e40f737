"""Domain error taxonomy shared by the store, services and API layers.

Services raise these; routers translate them to HTTP responses via
courseight.api.errors.to_http_exception.  Each error carries a stable
machine-readable ``code`` alongside the human message.
"""

from __future__ import annotations


class DomainError(Exception):
    """Base class for every error the service layer raises on purpose."""

    code = "domain_error"

    def __init__(self, message: str) -> None:
        self.message = message
        super().__init__(message)


class NotFoundError(DomainError):
    """A referenced entity does not exist."""

    code = "not_found"


class InvalidInputError(DomainError):
    """The payload has the wrong shape or an out-of-range value."""

    code = "invalid_input"


class ForbiddenError(DomainError):
    """The caller is authenticated but may not touch this entity."""

    code = "forbidden"


class ConflictError(DomainError):
    """The write would violate a uniqueness or reference rule."""

    code = "conflict"


class DuplicateSubmissionError(ConflictError):
    """A user tried to submit the same assessment twice."""

    code = "duplicate_submission"


class IdempotencyKeyReuseError(ConflictError):
    """An idempotency key came back with a different request behind it."""

    code = "idempotency_key_reuse"


class UnavailableError(DomainError):
    """The record store failed for a reason other than a constraint."""

    code = "unavailable"
