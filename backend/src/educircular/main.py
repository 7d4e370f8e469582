"""EduCircular Backend - Main FastAPI Application

Document submission and moderation API for institution circulars.

This module creates and configures the main FastAPI application, including:
- API routers (auth, circulars, pending submissions, observability)
- Middleware (request ID correlation, CORS)
- Exception handlers mapping the error taxonomy to JSON responses
- Blob store lifecycle
"""

import logging
from contextlib import asynccontextmanager
from typing import Any

from fastapi import FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from sqlalchemy.exc import SQLAlchemyError
from starlette.exceptions import HTTPException as StarletteHTTPException

from . import __version__
from .config import get_settings
from .domain.circulars import StateTransitionError
from .errors import CircularsError, InvalidState, StorageError
from .infrastructure.storage import build_blob_store, load_storage_config

# Observability
from .observability.logging_config import configure_logging
from .observability.middleware import RequestIDMiddleware
from .observability.router import router as observability_router

# Routers
from .auth.router import router as auth_router
from .circulars.router import router as circulars_router
from .pending.router import router as pending_router

settings = get_settings()

configure_logging(level=settings.LOG_LEVEL, json_format=settings.LOG_JSON)

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan handler.

    Startup builds the blob store and tries to initialize it. A store that
    cannot be reached yet is kept anyway; it retries initialization on the
    first operation that needs it.
    """
    logger.info("EduCircular API starting up...")
    logger.info(f"Environment: {settings.ENVIRONMENT}")

    store = build_blob_store(load_storage_config(settings))
    try:
        store.initialize()
    except StorageError as e:
        logger.error(f"Blob store unavailable at startup, will retry on demand: {e.message}")
    app.state.blob_store = store

    yield

    logger.info("EduCircular API shutting down...")


def _error_response(status_code: int, error: str, message: str, **extra: Any) -> JSONResponse:
    return JSONResponse(
        status_code=status_code,
        content={"success": False, "error": error, "message": message, **extra},
    )


async def circulars_error_handler(request: Request, exc: CircularsError) -> JSONResponse:
    """Map application errors to their HTTP status and error code."""
    log = logger.error if exc.status_code >= 500 else logger.info
    log(f"{exc.error} on {request.method} {request.url.path}: {exc.message}")
    return _error_response(exc.status_code, exc.error, exc.message)


async def state_transition_handler(request: Request, exc: StateTransitionError) -> JSONResponse:
    logger.info(f"Invalid state transition on {request.method} {request.url.path}: {exc}")
    return _error_response(InvalidState.status_code, InvalidState.error, str(exc))


async def validation_exception_handler(
    request: Request,
    exc: RequestValidationError
) -> JSONResponse:
    """Handle request validation errors as 400 with field-level details."""
    logger.warning(f"Validation error on {request.method} {request.url.path}: {exc.errors()}")
    return _error_response(
        status.HTTP_400_BAD_REQUEST,
        "validation_error",
        "Request validation failed",
        details=[
            {"loc": list(err.get("loc", ())), "msg": err.get("msg"), "type": err.get("type")}
            for err in exc.errors()
        ],
    )


async def http_exception_handler(request: Request, exc: StarletteHTTPException) -> JSONResponse:
    return _error_response(exc.status_code, "http_error", str(exc.detail))


async def database_exception_handler(
    request: Request,
    exc: SQLAlchemyError
) -> JSONResponse:
    """Handle database errors.

    Logs the full error but returns a generic message to prevent
    information leakage.
    """
    logger.error(f"Database error on {request.method} {request.url.path}", exc_info=exc)
    return _error_response(
        status.HTTP_500_INTERNAL_SERVER_ERROR,
        "database_error",
        "A database error occurred. Please try again later.",
    )


async def generic_exception_handler(
    request: Request,
    exc: Exception
) -> JSONResponse:
    """Handle uncaught exceptions.

    Full details are logged but not exposed to the client.
    """
    logger.error(f"Unhandled exception on {request.method} {request.url.path}", exc_info=exc)
    return _error_response(
        status.HTTP_500_INTERNAL_SERVER_ERROR,
        "internal_error",
        "An unexpected error occurred. Please try again later.",
    )


def create_app() -> FastAPI:
    """Build the configured FastAPI application."""
    is_production = settings.ENVIRONMENT == "production"

    application = FastAPI(
        title="EduCircular API",
        description="Submission, moderation and publication of institution circulars",
        version=__version__,
        docs_url=None if is_production else "/docs",
        redoc_url=None if is_production else "/redoc",
        openapi_url=None if is_production else "/openapi.json",
        lifespan=lifespan,
    )

    # =========================================================================
    # MIDDLEWARE
    # =========================================================================

    application.add_middleware(RequestIDMiddleware)
    application.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
        expose_headers=["X-Request-ID", "Content-Disposition"],
    )

    # =========================================================================
    # EXCEPTION HANDLERS
    # =========================================================================

    application.add_exception_handler(CircularsError, circulars_error_handler)
    application.add_exception_handler(StateTransitionError, state_transition_handler)
    application.add_exception_handler(RequestValidationError, validation_exception_handler)
    application.add_exception_handler(StarletteHTTPException, http_exception_handler)
    application.add_exception_handler(SQLAlchemyError, database_exception_handler)
    application.add_exception_handler(Exception, generic_exception_handler)

    # =========================================================================
    # ROUTERS
    # =========================================================================

    application.include_router(observability_router, prefix="/api")
    application.include_router(auth_router, prefix="/api")
    application.include_router(circulars_router, prefix="/api")
    application.include_router(pending_router, prefix="/api")

    @application.get("/", include_in_schema=False)
    async def root() -> dict[str, Any]:
        return {
            "name": "EduCircular API",
            "version": __version__,
            "status": "running",
        }

    return application


app = create_app()


if __name__ == "__main__":
    import uvicorn

    uvicorn.run(
        "educircular.main:app",
        host="0.0.0.0",
        port=8000,
        reload=settings.ENVIRONMENT == "development",
        log_level=settings.LOG_LEVEL.lower(),
    )
