"""Observability API endpoints.

Provides the liveness/health check and the Prometheus metrics endpoint.
"""

from typing import Annotated, Optional

from fastapi import APIRouter, Depends, Response
from fastapi.responses import JSONResponse
from prometheus_client import generate_latest, CONTENT_TYPE_LATEST
from sqlalchemy.orm import Session

from ..database import get_db
from ..dependencies import get_optional_blob_store
from ..domain.circulars.ports import BlobStorePort
from .health import (
    check_blob_store_health,
    check_database_health,
    get_overall_health,
    HealthStatus,
)

router = APIRouter(tags=["Observability"])


@router.get(
    "/metrics",
    summary="Prometheus metrics endpoint",
    include_in_schema=False,
)
def metrics():
    """Expose Prometheus metrics in the text exposition format."""
    return Response(
        content=generate_latest(),
        media_type=CONTENT_TYPE_LATEST
    )


@router.get(
    "/health",
    summary="Health check endpoint",
    description="Returns health status of the database and the blob store",
)
def health_check(
    db: Annotated[Session, Depends(get_db)],
    store: Annotated[Optional[BlobStorePort], Depends(get_optional_blob_store)],
):
    """Check health of all system components.

    Returns 200 while the API can serve requests (healthy or degraded) and
    503 when the database is unreachable.
    """
    components = {
        "database": check_database_health(db),
        "blob_store": check_blob_store_health(store),
    }

    overall_status = get_overall_health(components)

    response_data = {
        "success": overall_status != HealthStatus.UNHEALTHY,
        "status": overall_status.value,
        "message": "EduCircular API is running",
        "components": {
            name: {
                "status": comp.status.value,
                "message": comp.message,
                "latency_ms": comp.latency_ms,
            }
            for name, comp in components.items()
        }
    }

    status_code = 200 if overall_status != HealthStatus.UNHEALTHY else 503

    return JSONResponse(
        content=response_data,
        status_code=status_code
    )
