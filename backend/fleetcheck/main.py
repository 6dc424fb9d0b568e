"""
Main FastAPI application.
"""
import logging
import uuid
from contextlib import asynccontextmanager
from typing import AsyncGenerator

from fastapi import FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from fleetcheck.api.v1.api import api_router
from fleetcheck.core.config import settings
from fleetcheck.core.logging_config import setup_logging
from fleetcheck.core.observability import observability
from fleetcheck.middleware import RequestLoggingMiddleware, route_template
from fleetcheck.models import async_engine
from fleetcheck.observability import metrics

setup_logging()

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """
    Startup and shutdown hooks.

    Starts error tracking and metrics on startup. On shutdown, flushes them
    and disposes of the database connection pool.
    """
    logger.info(f"{settings.APP_NAME} {settings.APP_VERSION} starting ({settings.ENV})")

    observability.init(
        service_name=settings.OTEL_SERVICE_NAME,
        environment=settings.ENV,
        release=settings.APP_VERSION,
    )
    metrics.initialize()

    yield

    metrics.reset()
    # Flushes pending data to Sentry/OTEL
    observability.shutdown()

    await async_engine.dispose()
    logger.info("Application shutting down - database connections closed")


# OpenAPI tags metadata
tags_metadata = [
    {
        "name": "health",
        "description": "Liveness and database connectivity",
    },
    {
        "name": "drivers",
        "description": "Driver test history, safety summary, compliance and schedules",
    },
    {
        "name": "profiles",
        "description": "Driver profile, certifications, critical failures and audit log",
    },
    {
        "name": "tests",
        "description": "Test attempt workflow and downloadable reports",
    },
]


def create_application() -> FastAPI:
    """
    Build the FastAPI app: middleware, v1 routes and exception handlers.
    """
    app = FastAPI(
        title=settings.APP_NAME,
        version=settings.APP_VERSION,
        lifespan=lifespan,
        description=(
            "**FleetCheck API** - driver compliance and test history service.\n\n"
            "This API provides:\n"
            "* A unified, deduplicated test history per driver, merged from the "
            "current attempts table and the legacy trip, history and result tables\n"
            "* Test metrics, safety summaries and compliance checks\n"
            "* Driver profiles and certifications, with an audit log of every change\n"
            "* The test attempt workflow and plain-text test reports\n\n"
            "## Authentication\n\n"
            "Identity is handled by the external identity provider; "
            "endpoints take the driver ID explicitly."
        ),
        docs_url=f"{settings.API_V1_PREFIX}/docs",
        redoc_url=f"{settings.API_V1_PREFIX}/redoc",
        openapi_url=f"{settings.API_V1_PREFIX}/openapi.json",
        openapi_tags=tags_metadata,
    )

    # Configure CORS
    # Methods: REST verbs used by the driver portal
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.CORS_ORIGINS,
        allow_credentials=True,
        allow_methods=["GET", "POST", "PUT", "PATCH", "OPTIONS"],
        allow_headers=["Authorization", "Content-Type", "X-Request-ID"],
    )

    app.add_middleware(RequestLoggingMiddleware, slow_request_threshold=1.0)

    # Include API router
    app.include_router(api_router, prefix=settings.API_V1_PREFIX)

    @app.exception_handler(StarletteHTTPException)
    async def http_exception_handler(request: Request, exc: StarletteHTTPException):
        """
        Handle HTTP exceptions.

        Server-side ones are logged; every error status is reported to Sentry
        (4xx at warning level).
        """
        if exc.status_code >= 500:
            logger.error(
                f"HTTP {exc.status_code} on {request.method} {request.url.path}: "
                f"{exc.detail}",
                extra={
                    "method": request.method,
                    "path": str(request.url.path),
                    "status_code": exc.status_code,
                },
            )

        if exc.status_code >= 400:
            observability.capture_error(
                exc,
                context={
                    "path": str(request.url.path),
                    "method": request.method,
                    "status_code": exc.status_code,
                },
                level="error" if exc.status_code >= 500 else "warning",
                tags={"error_type": "HTTPException"},
            )

        return JSONResponse(
            status_code=exc.status_code,
            content={"detail": exc.detail},
            headers=getattr(exc, "headers", None),
        )

    @app.exception_handler(RequestValidationError)
    async def validation_exception_handler(
        request: Request, exc: RequestValidationError
    ):
        """
        Handle request validation errors.
        """
        # exc.errors() may carry non-JSON values in "ctx"
        errors = [
            {
                "loc": list(error.get("loc", [])),
                "msg": str(error.get("msg", "")),
                "type": str(error.get("type", "")),
            }
            for error in exc.errors()
        ]

        logger.info(
            f"Validation error on {request.method} {request.url.path}: {errors}",
            extra={"method": request.method, "path": str(request.url.path)},
        )
        observability.capture_error(
            exc,
            context={
                "path": str(request.url.path),
                "method": request.method,
                "validation_errors": errors,
            },
            level="warning",
            tags={"error_type": "ValidationError"},
        )
        metrics.record_error(error_type="ValidationError", path=route_template(request))

        return JSONResponse(
            status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
            content={"detail": errors},
        )

    @app.exception_handler(Exception)
    async def generic_exception_handler(request: Request, exc: Exception):
        """
        Answer 500 with an opaque error_id.

        The same error_id is logged with the traceback, so a driver can quote
        it without the response exposing internals.
        """
        error_id = str(uuid.uuid4())

        logger.exception(
            f"Unhandled exception [error_id={error_id}]: {exc}",
            extra={
                "error_id": error_id,
                "method": request.method,
                "path": str(request.url.path),
            },
        )
        observability.capture_error(
            exc,
            context={
                "path": str(request.url.path),
                "method": request.method,
                "error_id": error_id,
            },
            tags={"error_type": exc.__class__.__name__},
        )
        metrics.record_error(error_type=exc.__class__.__name__, path=route_template(request))

        return JSONResponse(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            content={
                "detail": "Internal server error",
                "error_id": error_id,
            },
        )

    return app


app = create_application()


@app.get("/")
async def root():
    """
    Root endpoint.
    """
    return {
        "message": f"Welcome to {settings.APP_NAME}",
        "version": settings.APP_VERSION,
        "docs": f"{settings.API_V1_PREFIX}/docs",
    }
