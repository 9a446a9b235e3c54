"""User domain models used across the service."""

from datetime import datetime
from enum import Enum
from typing import Optional
from uuid import UUID

from pydantic import BaseModel, ConfigDict


class UserRole(str, Enum):
    """Supported user roles for access control."""

    ADMIN = "admin"
    USER = "user"


class User(BaseModel):
    """Stored user record, including the password hash."""

    model_config = ConfigDict(from_attributes=True)

    id: UUID
    email: str
    password_hash: str
    role: UserRole = UserRole.USER
    created_at: Optional[datetime] = None

    def summary(self) -> "UserSummary":
        return UserSummary(id=self.id, email=self.email, role=self.role)


class UserSummary(BaseModel):
    """Public view of a user; never carries the hash."""

    id: UUID
    email: str
    role: UserRole
