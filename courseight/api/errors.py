from __future__ import annotations

from fastapi import HTTPException, status

from courseight.core.errors import (
    ConflictError,
    DomainError,
    ForbiddenError,
    InvalidInputError,
    NotFoundError,
    UnavailableError,
)

# Checked in order; subclasses (DuplicateSubmissionError) fall under
# their parent's status.
_STATUS_BY_ERROR: tuple[tuple[type[DomainError], int], ...] = (
    (NotFoundError, status.HTTP_404_NOT_FOUND),
    (InvalidInputError, status.HTTP_422_UNPROCESSABLE_CONTENT),
    (ConflictError, status.HTTP_409_CONFLICT),
    (ForbiddenError, status.HTTP_403_FORBIDDEN),
    (UnavailableError, status.HTTP_503_SERVICE_UNAVAILABLE),
)


def to_http_exception(error: DomainError) -> HTTPException:
    """Convert a domain error to an HTTP exception.

    The body is ``{"detail": {"code": ..., "message": ...}}``.
    """
    status_code = status.HTTP_500_INTERNAL_SERVER_ERROR
    for error_type, code in _STATUS_BY_ERROR:
        if isinstance(error, error_type):
            status_code = code
            break
    return HTTPException(
        status_code=status_code,
        detail={"code": error.code, "message": error.message},
    )
