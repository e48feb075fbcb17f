"""Application configuration and router setup."""

from contextlib import asynccontextmanager

import fastapi
import structlog
from fastapi import Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware import cors
from fastapi.responses import JSONResponse

from components.core import init_db
from components.core.config import get_settings
from components.core.errors import MissingField, ServiceError
from components.core.logging_config import setup_logging
from components.notification.mailer import create_mailer
from restapi.endpoints import auth, health_check, profile, student, transaction

logger = structlog.get_logger(__name__)


@asynccontextmanager
async def lifespan(app: fastapi.FastAPI):
    """Build process-wide resources once and release them at shutdown."""
    app.state.mailer = create_mailer(get_settings())
    try:
        yield
    finally:
        await app.state.mailer.close()
        await app.state.db_manager.dispose()


async def service_error_handler(request: Request, exc: ServiceError) -> JSONResponse:
    logger.info(
        "request_rejected",
        path=request.url.path,
        error=exc.code,
    )
    return JSONResponse(status_code=exc.status_code, content=exc.to_dict())


async def validation_error_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    """Report a body that could not be parsed at all as missing fields."""
    fields = [str(error["loc"][-1]) for error in exc.errors() if error.get("loc")]
    logger.info("request_invalid", path=request.url.path, fields=fields)
    error = MissingField("Request body is missing or malformed", fields=fields)
    return JSONResponse(status_code=error.status_code, content=error.to_dict())


async def unhandled_error_handler(request: Request, exc: Exception) -> JSONResponse:
    logger.exception("request_failed", path=request.url.path)
    return JSONResponse(status_code=500, content={"error": "server_error"})


def create_app() -> fastapi.FastAPI:
    """Create and configure the FastAPI application."""
    settings = get_settings()
    setup_logging(settings)

    app = fastapi.FastAPI(
        title="Tuition Payment",
        description="Tuition payment with email one-time code confirmation",
        version="1.0.0",
        lifespan=lifespan,
    )

    # Initialize database
    init_db.init_db(app)

    # Add CORS middleware
    app.add_middleware(
        cors.CORSMiddleware,
        allow_origins=settings.CORS_ORIGINS,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    app.add_exception_handler(ServiceError, service_error_handler)
    app.add_exception_handler(RequestValidationError, validation_error_handler)
    app.add_exception_handler(Exception, unhandled_error_handler)

    # Include routers
    app.include_router(health_check.router)
    app.include_router(auth.router)
    app.include_router(profile.router)
    app.include_router(student.router)
    app.include_router(transaction.router)

    return app
