"""
Dependency Injection for FastAPI

Common dependencies used across the application: database sessions,
configuration, and the user service wired from the collaborators that
``create_app`` builds once at startup.
"""

from typing import AsyncGenerator
from fastapi import Depends, Request
from sqlalchemy.ext.asyncio import AsyncSession

from config import get_settings, Settings
from userdesk.database.engine import get_async_session
from userdesk.database.repository import UserRepository
from userdesk.user_management.service import UserService


async def get_db() -> AsyncGenerator[AsyncSession, None]:
    """
    Database dependency that provides an async database session.
    Automatically handles session lifecycle.
    """
    async for session in get_async_session():
        yield session


def get_config(request: Request) -> Settings:
    """Configuration dependency; prefers the settings the app was built with."""
    return getattr(request.app.state, "settings", None) or get_settings()


def get_user_repository(db: AsyncSession = Depends(get_db)) -> UserRepository:
    """Per-request user store bound to the request's session."""
    return UserRepository(db)


def get_user_service(
    request: Request,
    repository: UserRepository = Depends(get_user_repository),
    settings: Settings = Depends(get_config),
) -> UserService:
    """
    User service for one request.

    The password encoder and form validator are shared, read-only
    collaborators created in ``create_app``.
    """
    return UserService(
        repository=repository,
        encoder=request.app.state.password_encoder,
        validator=request.app.state.user_form_validator,
        form_error_status=settings.FORM_ERROR_STATUS_CODE,
    )
