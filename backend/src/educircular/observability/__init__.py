"""Observability module for EduCircular.

Provides structured logging, request correlation, metrics, and health checks.
"""

from .logging_config import configure_logging, get_logger
from .metrics import (
    submissions_total,
    reviews_total,
    direct_uploads_total,
    blob_operations_total,
    upload_size_bytes,
)
from .request_id import request_id_var, get_request_id, set_request_id, generate_request_id
from .health import HealthStatus, ComponentHealth
from .middleware import RequestIDMiddleware

__all__ = [
    # Logging
    "configure_logging",
    "get_logger",
    # Metrics
    "submissions_total",
    "reviews_total",
    "direct_uploads_total",
    "blob_operations_total",
    "upload_size_bytes",
    # Request ID
    "request_id_var",
    "get_request_id",
    "set_request_id",
    "generate_request_id",
    # Health
    "HealthStatus",
    "ComponentHealth",
    # Middleware
    "RequestIDMiddleware",
]
