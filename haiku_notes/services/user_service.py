"""
Haiku Notes Backend: User Service
==================================

What:  Store operations for the `users` table.
Who:   Called by the user routes.
"""

import logging

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from haiku_notes.exceptions import NotFoundError
from haiku_notes.identifiers import UserId
from haiku_notes.models.user import User
from haiku_notes.services.base import STORE_FAILURES, StoreService

logger = logging.getLogger(__name__)


class UserService(StoreService):
    """Creates and reads users. Stateless; every call receives its session."""

    resource = "user"

    async def create_user(self, db: AsyncSession, user_id: UserId) -> User:
        """
        Insert a user with a server-generated id.

        Raises:
            ValidationError: empty id
            ConflictError: id already taken
            DatabaseConnectionError / DatabaseError: statement failed
        """
        self._require(user=user_id)

        user = User(id=user_id)
        try:
            db.add(user)
            await db.flush()
        except STORE_FAILURES as e:
            raise self._store_error("create_user", e) from e

        logger.info("User created: %s...", user_id[:8])
        return user

    async def get_user(self, db: AsyncSession, user_id: UserId) -> User:
        """
        Raises:
            NotFoundError: no user with this id
        """
        self._require(user=user_id)

        try:
            result = await db.execute(select(User).where(User.id == user_id))
            user = result.scalar_one_or_none()
        except STORE_FAILURES as e:
            raise self._store_error("get_user", e) from e

        if user is None:
            raise NotFoundError(resource="user")
        return user
