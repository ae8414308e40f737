"""Translate SQLAlchemy failures into the store error taxonomy."""

from __future__ import annotations

import logging
from collections.abc import Iterator
from contextlib import contextmanager

from sqlalchemy.exc import IntegrityError, SQLAlchemyError

from courseight.core.errors import UnavailableError
from courseight.repos.errors import DuplicateKeyError

logger = logging.getLogger(__name__)


@contextmanager
def store_errors(operation: str) -> Iterator[None]:
    """Wrap one repository operation.

    IntegrityError (unique / foreign key) -> DuplicateKeyError
    any other SQLAlchemyError            -> UnavailableError
    """
    try:
        yield
    except IntegrityError as e:
        logger.warning("Constraint violation during %s: %s", operation, e.orig)
        raise DuplicateKeyError(f"{operation}: constraint violation") from e
    except SQLAlchemyError as e:
        logger.error("Store failure during %s: %s", operation, e)
        raise UnavailableError(f"{operation}: record store unavailable") from e
