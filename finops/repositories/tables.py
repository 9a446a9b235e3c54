"""SQLAlchemy table definitions for users and operations."""
import uuid
from datetime import datetime, timezone
from decimal import Decimal

from sqlalchemy import (
    CheckConstraint,
    DateTime,
    ForeignKey,
    Index,
    Numeric,
    String,
    Text,
    Uuid,
)
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


class Base(DeclarativeBase):
    """Base class for all database models."""

    pass


class UserRecord(Base):
    """Registered users. Email is unique and compared case-sensitively."""

    __tablename__ = "users"

    id: Mapped[uuid.UUID] = mapped_column(Uuid(as_uuid=True), primary_key=True, default=uuid.uuid4)
    email: Mapped[str] = mapped_column(Text, unique=True, nullable=False)
    password_hash: Mapped[str] = mapped_column("password", Text, nullable=False)
    role: Mapped[str] = mapped_column(String(20), nullable=False, default="user")
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, default=utc_now
    )

    __table_args__ = (
        CheckConstraint("role IN ('admin', 'user')", name="valid_role"),
    )

    def __repr__(self) -> str:
        return f"<UserRecord(id={self.id}, email={self.email}, role={self.role})>"


class OperationRecord(Base):
    """
    BUY/SELL operations table.

    Append-only: rows are inserted once through the operation service and
    never updated.
    """

    __tablename__ = "operations"

    id: Mapped[uuid.UUID] = mapped_column(Uuid(as_uuid=True), primary_key=True, default=uuid.uuid4)
    type: Mapped[str] = mapped_column(String(4), nullable=False)
    amount: Mapped[Decimal] = mapped_column(Numeric(15, 2), nullable=False)
    currency: Mapped[str] = mapped_column(String(10), nullable=False)
    user_id: Mapped[uuid.UUID] = mapped_column(
        Uuid(as_uuid=True), ForeignKey("users.id"), nullable=False, index=True
    )
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, default=utc_now
    )

    __table_args__ = (
        CheckConstraint("amount > 0", name="positive_amount"),
        CheckConstraint("type IN ('BUY', 'SELL')", name="valid_type"),
        CheckConstraint("length(currency) BETWEEN 3 AND 10", name="valid_currency"),
        Index("idx_operations_user_created", "user_id", "created_at"),
    )

    def __repr__(self) -> str:
        return (
            f"<OperationRecord(id={self.id}, type={self.type}, "
            f"amount={self.amount}, currency={self.currency})>"
        )
