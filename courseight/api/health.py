"""Liveness and readiness probes.

/health answers "is the process alive" and reports dependency status
without failing; /ready returns 503 while the record store is
unreachable so the load balancer stops routing here until it recovers.
"""

from __future__ import annotations

import logging

from fastapi import APIRouter, Response, status
from sqlalchemy.exc import SQLAlchemyError

from courseight.db import engine as db

logger = logging.getLogger(__name__)

router = APIRouter(tags=["health"])


async def _database_status() -> str:
    if db.engine is None:
        return "not_configured"
    try:
        await db.ping()
    except (SQLAlchemyError, OSError) as e:
        logger.warning("Database ping failed: %s", e)
        return "degraded"
    return "ok"


@router.get("/health")
async def health() -> dict:
    """Always 200; ``status`` carries the actual health."""
    database = await _database_status()
    return {
        "status": "degraded" if database == "degraded" else "ok",
        "checks": {"database": database},
    }


@router.get("/ready")
async def ready() -> Response:
    if await _database_status() == "degraded":
        return Response(status_code=status.HTTP_503_SERVICE_UNAVAILABLE)
    return Response(status_code=status.HTTP_200_OK)
