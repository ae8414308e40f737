from __future__ import annotations

import pytest

from courseight.api.errors import to_http_exception
from courseight.core.errors import (
    ConflictError,
    DomainError,
    DuplicateSubmissionError,
    ForbiddenError,
    InvalidInputError,
    NotFoundError,
    UnavailableError,
)


@pytest.mark.parametrize(
    "error,status_code,code",
    [
        (NotFoundError("missing"), 404, "not_found"),
        (InvalidInputError("bad"), 422, "invalid_input"),
        (ConflictError("taken"), 409, "conflict"),
        (DuplicateSubmissionError("again"), 409, "duplicate_submission"),
        (ForbiddenError("nope"), 403, "forbidden"),
        (UnavailableError("db down"), 503, "unavailable"),
        (DomainError("other"), 500, "domain_error"),
    ],
)
def test_domain_errors_map_to_status(error: DomainError, status_code: int, code: str) -> None:
    exc = to_http_exception(error)
    assert exc.status_code == status_code
    assert exc.detail == {"code": code, "message": error.message}
