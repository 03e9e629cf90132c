"""
Async database module: engine lifecycle, models and the user repository.
"""

from .engine import (
    Base,
    close_db,
    create_tables,
    get_async_session,
    health_check,
    init_db,
)
from .models import User
from .repository import UserRepository, UserStoreError

__all__ = [
    "Base",
    "close_db",
    "create_tables",
    "get_async_session",
    "health_check",
    "init_db",
    "User",
    "UserRepository",
    "UserStoreError",
]
