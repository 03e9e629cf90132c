"""
FastAPI Application Entry Point

This module creates and configures the FastAPI application instance.
"""

from contextlib import asynccontextmanager
from typing import AsyncGenerator, Optional
import logging
import time

from fastapi import FastAPI
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.middleware.trustedhost import TrustedHostMiddleware
from starlette.exceptions import HTTPException as StarletteHTTPException

from config import Settings, get_settings
from middleware.error_handler import ErrorHandlerMiddleware
from middleware.logging import LoggingMiddleware
from userdesk.database.engine import init_db, close_db, create_tables
from userdesk.exceptions.handlers import (
    generic_http_exception_handler,
    method_not_allowed_exception_handler,
    not_found_exception_handler,
    unhandled_exception_handler,
    validation_exception_handler,
)
from userdesk.health.routes import router as health_router
from userdesk.user_management.forms import FormValidator, UserForm
from userdesk.user_management.routes import user_router
from userdesk.user_management.security import PasswordEncoder

logger = logging.getLogger(__name__)

OPENAPI_TAGS = [
    {"name": "Users", "description": "List, fetch, create, update and delete user accounts."},
    {"name": "health", "description": "Health and readiness probes consumed by monitoring systems."},
]


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """
    Lifespan context manager for FastAPI application.
    Handles startup and shutdown events.
    """
    settings: Settings = app.state.settings

    logger.info(f"🚀 Starting {settings.APP_NAME}")
    start_time = time.time()

    await init_db(settings)
    logger.info("✅ Database initialized")

    await create_tables()
    logger.info("✅ Database tables created/verified")

    startup_time = time.time() - start_time
    logger.info(f"🎉 Application started in {startup_time:.2f} seconds")

    yield

    logger.info(f"🛑 Shutting down {settings.APP_NAME}")
    await close_db()
    logger.info("✅ Application shutdown complete")


def create_app(settings: Optional[Settings] = None) -> FastAPI:
    """
    FastAPI application factory.

    Args:
        settings: Settings to build the app with; defaults to ``get_settings()``

    Returns:
        FastAPI: Configured FastAPI application instance
    """
    settings = settings or get_settings()

    docs_enabled = settings.API_DOCS_ENABLED
    if docs_enabled is None:
        docs_enabled = settings.DEBUG

    app = FastAPI(
        title=settings.APP_NAME,
        description=settings.APP_DESCRIPTION,
        version=settings.APP_VERSION,
        docs_url=settings.API_DOCS_URL if docs_enabled else None,
        redoc_url=settings.API_REDOC_URL if docs_enabled else None,
        openapi_url=settings.API_OPENAPI_URL if docs_enabled else None,
        openapi_tags=OPENAPI_TAGS,
        lifespan=lifespan,
    )

    # Shared, read-only collaborators for every request
    app.state.settings = settings
    app.state.password_encoder = PasswordEncoder(settings.PASSWORD_HASH_SCHEMES)
    app.state.user_form_validator = FormValidator(UserForm)

    # Add middleware (order matters!)
    _add_middleware(app, settings)

    _include_routers(app)

    _add_exception_handlers(app)

    return app


def _add_middleware(app: FastAPI, settings: Settings) -> None:
    """Add middleware to the FastAPI application."""

    if settings.ALLOWED_HOSTS:
        app.add_middleware(
            TrustedHostMiddleware,
            allowed_hosts=settings.ALLOWED_HOSTS
        )

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.CORS_ORIGINS,
        allow_credentials=True,
        allow_methods=["GET", "POST", "PUT", "DELETE", "OPTIONS"],
        allow_headers=["*"],
        expose_headers=["Location", "X-Request-ID"],
    )

    # Custom middleware; the error handler is outermost so the request id exists for logging
    app.add_middleware(LoggingMiddleware)
    app.add_middleware(ErrorHandlerMiddleware)


def _include_routers(app: FastAPI) -> None:
    """Include all API routers."""
    app.include_router(user_router)

    # Health check (no prefix, available at /health)
    app.include_router(health_router, tags=["health"])


def _add_exception_handlers(app: FastAPI) -> None:
    """Add global JSON exception handlers."""
    app.add_exception_handler(RequestValidationError, validation_exception_handler)
    app.add_exception_handler(404, not_found_exception_handler)
    app.add_exception_handler(405, method_not_allowed_exception_handler)
    app.add_exception_handler(StarletteHTTPException, generic_http_exception_handler)
    app.add_exception_handler(Exception, unhandled_exception_handler)


# Create the application instance
app = create_app()


# For development server
if __name__ == "__main__":
    import uvicorn
    settings = get_settings()

    uvicorn.run(
        "main:app",
        host=settings.HOST,
        port=settings.PORT,
        reload=settings.DEBUG,
        log_level="info" if settings.DEBUG else "warning"
    )
