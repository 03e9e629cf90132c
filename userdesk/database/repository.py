"""
Repository Pattern for Database Operations

Async persistence for users. Routes and services never touch the session
directly; every mutation goes through ``UserRepository`` and is committed
(or rolled back) there.
"""

import logging
from typing import List, Optional

from sqlalchemy import select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from .models import User

logger = logging.getLogger(__name__)

# Signed 64-bit INTEGER range shared by SQLite and PostgreSQL BIGINT
MAX_USER_ID = 2 ** 63 - 1

CONFLICT_MESSAGE = "User data conflicts with an existing account"


class UserStoreError(Exception):
    """Store-level failure carrying the HTTP status it should surface as."""

    def __init__(self, message: str, status_code: int = 500):
        super().__init__(message)
        self.status_code = status_code


class UserRepository:
    """Repository for User model operations."""

    def __init__(self, session: AsyncSession):
        self.session = session

    async def find_all(self) -> List[User]:
        """Get every stored user ordered by id."""
        result = await self.session.execute(select(User).order_by(User.id))
        return list(result.scalars().all())

    async def find_by_id(self, user_id: int) -> Optional[User]:
        """
        Get a user by ID.

        Args:
            user_id: Record ID

        Returns:
            Optional[User]: Model instance or None
        """
        if not 0 < user_id <= MAX_USER_ID:
            return None
        result = await self.session.execute(
            select(User).where(User.id == user_id)
        )
        return result.scalar_one_or_none()

    async def find_by_username(self, username: str) -> Optional[User]:
        """Get user by username."""
        result = await self.session.execute(
            select(User).where(User.username == username)
        )
        return result.scalar_one_or_none()

    async def find_by_email(self, email: str) -> Optional[User]:
        """Get user by email."""
        result = await self.session.execute(
            select(User).where(User.email == email)
        )
        return result.scalar_one_or_none()

    async def save(self, user: User) -> User:
        """
        Insert or update a user.

        New instances get their identifier assigned on commit.

        Args:
            user: Transient or persistent model instance

        Returns:
            User: The refreshed instance
        """
        self.session.add(user)
        try:
            await self.session.commit()
        except IntegrityError as exc:
            await self.session.rollback()
            raise UserStoreError(CONFLICT_MESSAGE, status_code=409) from exc
        except Exception:
            await self.session.rollback()
            raise
        await self.session.refresh(user)

        logger.debug(f"Saved User with id {user.id}")
        return user

    async def delete(self, user: User) -> None:
        """
        Delete a persistent user.

        Args:
            user: Model instance previously loaded through this repository
        """
        user_id = user.id
        await self.session.delete(user)
        try:
            await self.session.commit()
        except IntegrityError as exc:
            await self.session.rollback()
            raise UserStoreError(CONFLICT_MESSAGE, status_code=409) from exc
        except Exception:
            await self.session.rollback()
            raise

        logger.debug(f"Deleted User with id {user_id}")
