"""
FastAPI application entry point.

This module creates and configures the FastAPI application.
Using an application factory pattern (create_app function) because:
- Easier to test with different configurations
- Explicit about initialization order

For local development:
    uvicorn suivi_natation.main:app --reload

Without Snowflake credentials every request is served from the local
mirror under LOCAL_DATA_DIR.
"""

import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from .api.routes import (
    assignments,
    catalog,
    health,
    notifications,
    records,
    sessions,
    strength,
    system,
    timesheet,
    users,
)
from .config.settings import get_settings
from .core.errors import (
    ApiError,
    BackendUnavailableError,
    InvalidRunTransitionError,
    NotFoundError,
    PartialAssignmentError,
)
from .facade import TrainingApi

# Configure logging
logging.basicConfig(
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    level=logging.INFO,
)

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """
    Application lifespan manager.

    Builds the TrainingApi once on startup and closes its connections on
    shutdown.
    """
    settings = get_settings()

    missing_fields = settings.validate_required_fields()
    if missing_fields:
        logger.error(
            "Missing required configuration",
            extra={"missing_fields": missing_fields}
        )

    app.state.training_api = TrainingApi.from_settings(settings)
    logger.info(
        "Suivi Natation API starting",
        extra={
            "version": settings.api_version,
            "mode": app.state.training_api.get_capabilities().mode,
        }
    )

    yield

    logger.info("Suivi Natation API shutting down")
    app.state.training_api.close()
    app.state.training_api = None


def register_exception_handlers(app: FastAPI) -> None:
    """Map data layer errors to HTTP statuses."""

    @app.exception_handler(NotFoundError)
    async def not_found_handler(request: Request, exc: NotFoundError):
        return JSONResponse(status_code=404, content={"detail": str(exc)})

    @app.exception_handler(ValueError)
    async def invalid_input_handler(request: Request, exc: ValueError):
        return JSONResponse(status_code=422, content={"detail": str(exc)})

    @app.exception_handler(InvalidRunTransitionError)
    async def run_transition_handler(request: Request, exc: InvalidRunTransitionError):
        return JSONResponse(status_code=409, content={"detail": str(exc)})

    @app.exception_handler(PartialAssignmentError)
    async def partial_assignment_handler(request: Request, exc: PartialAssignmentError):
        return JSONResponse(
            status_code=207 if exc.succeeded else 502,
            content={
                "detail": str(exc),
                "assignment_ids": {str(group): assignment for group, assignment in exc.succeeded.items()},
                "failed": {str(group): str(error) for group, error in exc.failed.items()},
            }
        )

    @app.exception_handler(BackendUnavailableError)
    async def unavailable_handler(request: Request, exc: BackendUnavailableError):
        return JSONResponse(status_code=503, content={"detail": str(exc)})

    @app.exception_handler(ApiError)
    async def api_error_handler(request: Request, exc: ApiError):
        status_code = exc.status if exc.status and 400 <= exc.status < 600 else 502
        return JSONResponse(
            status_code=status_code,
            content={"detail": exc.message, "code": exc.code},
        )

    @app.exception_handler(Exception)
    async def global_exception_handler(request: Request, exc: Exception):
        """
        Catch-all exception handler.

        Logs the full error server-side but returns a generic message.
        """
        logger.error(
            "Unhandled exception",
            extra={
                "path": request.url.path,
                "method": request.method,
                "error": str(exc),
            },
            exc_info=exc,
        )

        return JSONResponse(
            status_code=500,
            content={
                "detail": "Internal server error. Please contact support if this persists."
            }
        )


def create_app() -> FastAPI:
    """
    Application factory.

    Creates and configures the FastAPI application.
    """
    settings = get_settings()

    app = FastAPI(
        title=settings.api_title,
        version=settings.api_version,
        description="""
        Swim and strength training tracker for a swimming club.

        ## Storage

        Data lives in Snowflake when it is configured and reachable, and in
        a local JSON mirror otherwise. `GET /api/v1/capabilities` tells
        which one answers.

        ## Authentication

        All endpoints except /health require an API key provided in the
        `X-API-Key` header.
        """,
        docs_url="/docs",
        redoc_url="/redoc",
        lifespan=lifespan,
    )

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins_list,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    app.include_router(health.router, prefix="/health", tags=["Health"])
    app.include_router(system.router, prefix="/api/v1", tags=["System"])
    app.include_router(sessions.router, prefix="/api/v1/sessions", tags=["Sessions"])
    app.include_router(strength.router, prefix="/api/v1/strength", tags=["Strength"])
    app.include_router(catalog.router, prefix="/api/v1/swim-catalog", tags=["Swim catalog"])
    app.include_router(assignments.router, prefix="/api/v1/assignments", tags=["Assignments"])
    app.include_router(notifications.router, prefix="/api/v1/notifications", tags=["Notifications"])
    app.include_router(records.router, prefix="/api/v1/records", tags=["Records"])
    app.include_router(users.router, prefix="/api/v1/users", tags=["Users"])
    app.include_router(timesheet.router, prefix="/api/v1/timesheet", tags=["Timesheet"])

    @app.get("/", include_in_schema=False)
    async def root():
        """Root endpoint."""
        return {
            "message": "Suivi Natation API",
            "version": settings.api_version,
            "docs": "/docs",
            "health": "/health",
        }

    register_exception_handlers(app)

    logger.info(
        "FastAPI application created",
        extra={
            "title": settings.api_title,
            "version": settings.api_version,
        }
    )

    return app


# This is what uvicorn imports
app = create_app()


if __name__ == "__main__":
    import uvicorn

    settings = get_settings()

    uvicorn.run(
        "suivi_natation.main:app",
        host="0.0.0.0",
        port=8000,
        reload=True,
        log_level=settings.log_level.lower(),
    )
