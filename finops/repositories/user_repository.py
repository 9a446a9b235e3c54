"""
User Repository

Data access layer for user records.
"""

import logging
from typing import Optional
from uuid import UUID

from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from finops.models.user import User, UserRole
from finops.repositories.tables import UserRecord

logger = logging.getLogger(__name__)


class UserRepository:
    """User queries bound to one session (and so to its transaction)."""

    def __init__(self, session: AsyncSession):
        self.session = session

    async def get(self, user_id: UUID) -> Optional[User]:
        """Get a user by ID."""
        record = await self.session.get(UserRecord, user_id)
        return User.model_validate(record) if record else None

    async def get_by_email(self, email: str) -> Optional[User]:
        """Get a user by exact email."""
        result = await self.session.execute(
            select(UserRecord).where(UserRecord.email == email).limit(1)
        )
        record = result.scalar_one_or_none()
        return User.model_validate(record) if record else None

    async def add(self, email: str, password_hash: str, role: UserRole = UserRole.USER) -> User:
        """Insert a new user and return it with generated fields."""
        record = UserRecord(email=email, password_hash=password_hash, role=role.value)
        self.session.add(record)
        await self.session.flush()
        logger.debug(f"Inserted user {record.id}")
        return User.model_validate(record)

    async def count(self) -> int:
        result = await self.session.execute(select(func.count()).select_from(UserRecord))
        return result.scalar_one()
