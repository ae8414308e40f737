from __future__ import annotations

from courseight.core.errors import ConflictError


class DuplicateKeyError(ConflictError):
    """A write collided with a uniqueness constraint enforced by the store."""

    code = "duplicate_key"
