"""
AdLens - FastAPI Application Entry Point
"""
import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from adlens.core.config import settings
from adlens.core.exceptions import (
    AdLensError,
    BudgetExceeded,
    InvalidAdvertiserUrl,
    NotFoundError,
    ProviderError,
    ScheduleConflict,
)
from adlens.core.logging_conf import configure_logging
from adlens.schemas.common import ErrorResponse
from adlens.api.v1 import api_router

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan events"""
    # Startup
    configure_logging()
    logger.info(f"Starting {settings.APP_NAME} v{settings.APP_VERSION}")
    logger.info(f"Environment: {settings.ENVIRONMENT}, debug: {settings.DEBUG}")

    # Initialize scheduler if enabled
    if settings.SCHEDULER_ENABLED:
        from adlens.tasks.scheduler import start_scheduler
        start_scheduler()

    yield

    # Shutdown
    if settings.SCHEDULER_ENABLED:
        from adlens.tasks.scheduler import stop_scheduler
        stop_scheduler()

    logger.info(f"Shutting down {settings.APP_NAME}")


def error_status(exc: AdLensError) -> int:
    """HTTP status for a domain error"""
    if isinstance(exc, ProviderError):
        return 502
    if isinstance(exc, BudgetExceeded):
        return 429
    if isinstance(exc, ScheduleConflict):
        if exc.code in (ScheduleConflict.LIMIT_REACHED, ScheduleConflict.MANUAL_PLAN):
            return 403
        if exc.code == ScheduleConflict.ALREADY_ADDED:
            return 409
        return 400
    if isinstance(exc, NotFoundError):
        return 404
    if isinstance(exc, InvalidAdvertiserUrl):
        return 400
    return 400


async def adlens_error_handler(request: Request, exc: AdLensError):
    status_code = error_status(exc)
    if status_code >= 500:
        logger.error(f"{request.method} {request.url.path} failed: {exc.message}")
    body = ErrorResponse(error=exc.message, code=exc.code, detail=exc.detail or None)
    return JSONResponse(status_code=status_code, content=body.model_dump())


def create_app() -> FastAPI:
    """Create FastAPI application"""

    app = FastAPI(
        title=settings.APP_NAME,
        version=settings.APP_VERSION,
        description="LinkedIn ad intelligence: scrape lifecycle and follow scheduling",
        docs_url="/docs" if settings.DEBUG else None,
        redoc_url="/redoc" if settings.DEBUG else None,
        lifespan=lifespan,
    )

    # CORS middleware
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.CORS_ORIGINS,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    app.add_exception_handler(AdLensError, adlens_error_handler)

    # Include API routers
    app.include_router(api_router)

    return app


# Create app instance
app = create_app()
