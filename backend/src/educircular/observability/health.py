"""Health check utilities for EduCircular.

Provides health checks for the database and the blob store.
"""

import time
from enum import Enum
from typing import Dict, Optional
from dataclasses import dataclass

from sqlalchemy import text
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from ..domain.circulars.ports import BlobStorePort
from ..errors import StorageError
from .logging_config import get_logger

logger = get_logger(__name__)


class HealthStatus(str, Enum):
    HEALTHY = "healthy"
    UNHEALTHY = "unhealthy"
    DEGRADED = "degraded"


@dataclass
class ComponentHealth:
    """Health status for a single component."""
    status: HealthStatus
    message: Optional[str] = None
    latency_ms: Optional[float] = None


def check_database_health(db: Session) -> ComponentHealth:
    """Check database connectivity with a trivial query."""
    try:
        start = time.time()
        db.execute(text("SELECT 1"))
        latency_ms = (time.time() - start) * 1000

        return ComponentHealth(
            status=HealthStatus.HEALTHY,
            message="Database connection OK",
            latency_ms=round(latency_ms, 2)
        )
    except SQLAlchemyError as e:
        logger.error(f"Database health check failed: {e}", exc_info=True)
        return ComponentHealth(
            status=HealthStatus.UNHEALTHY,
            message="Database unavailable"
        )


def check_blob_store_health(store: Optional[BlobStorePort]) -> ComponentHealth:
    """Check the blob store, initializing it if startup could not.

    A store that never came up is DEGRADED rather than UNHEALTHY: listings
    still work, only uploads and downloads fail.
    """
    if store is None:
        return ComponentHealth(status=HealthStatus.DEGRADED, message="Blob store not configured")

    try:
        start = time.time()
        store.initialize()
        latency_ms = (time.time() - start) * 1000
    except StorageError as e:
        logger.warning(f"Blob store health check failed: {e.message}")
        return ComponentHealth(status=HealthStatus.DEGRADED, message=e.message)

    return ComponentHealth(
        status=HealthStatus.HEALTHY,
        message="Blob store OK",
        latency_ms=round(latency_ms, 2)
    )


def get_overall_health(components: Dict[str, ComponentHealth]) -> HealthStatus:
    """Determine overall health from component statuses."""
    if all(c.status == HealthStatus.HEALTHY for c in components.values()):
        return HealthStatus.HEALTHY

    if any(c.status == HealthStatus.UNHEALTHY for c in components.values()):
        return HealthStatus.UNHEALTHY

    return HealthStatus.DEGRADED
