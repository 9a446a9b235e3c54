"""Request and response schemas for the HTTP API (camelCase on the wire)."""
from datetime import datetime
from decimal import Decimal
from typing import Any, Dict, List, Optional
from uuid import UUID

from email_validator import EmailNotValidError, validate_email
from pydantic import BaseModel, ConfigDict, Field, field_validator
from pydantic.alias_generators import to_camel

from finops.models.operation import Operation, OperationType
from finops.models.user import UserRole, UserSummary


class CamelModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class UserResponse(CamelModel):
    id: UUID
    email: str
    role: UserRole

    @classmethod
    def from_summary(cls, user: UserSummary) -> "UserResponse":
        return cls(id=user.id, email=user.email, role=user.role)


class LoginRequest(CamelModel):
    email: str
    password: str = Field(..., min_length=1)

    @field_validator("email")
    @classmethod
    def check_email(cls, v: str) -> str:
        # Validate the format only; the stored email is matched exactly as typed
        try:
            validate_email(v, check_deliverability=False)
        except EmailNotValidError as e:
            raise ValueError(str(e))
        return v


class LoginResponse(CamelModel):
    token: str
    user: UserResponse


class SetupAdminRequest(CamelModel):
    email: Optional[str] = None
    password: Optional[str] = None


class SetupAdminResponse(CamelModel):
    message: str
    user: UserResponse


class SetupStatusResponse(CamelModel):
    needs_setup: bool
    user_count: int
    environment: str


class OperationCreateRequest(CamelModel):
    """Body of POST /api/operations."""
    type: OperationType
    amount: str
    currency: str = Field(..., min_length=3, max_length=10)

    @field_validator("amount", mode="before")
    @classmethod
    def coerce_number(cls, v: Any) -> Any:
        if isinstance(v, (int, float, Decimal)) and not isinstance(v, bool):
            return str(v)
        return v

    @field_validator("amount")
    @classmethod
    def check_positive(cls, v: str) -> str:
        try:
            value = Decimal(v.strip())
        except ArithmeticError:
            raise ValueError("Amount must be a positive number")
        if not value.is_finite() or value <= 0:
            raise ValueError("Amount must be a positive number")
        return v


class OperationResponse(CamelModel):
    id: UUID
    type: OperationType
    amount: Decimal
    currency: str
    user_id: UUID
    created_at: Optional[datetime] = None

    @classmethod
    def from_operation(cls, operation: Operation) -> "OperationResponse":
        return cls(
            id=operation.id,
            type=operation.type,
            amount=operation.amount,
            currency=operation.currency,
            user_id=operation.user_id,
            created_at=operation.created_at,
        )


class OperationListResponse(CamelModel):
    operations: List[OperationResponse]
    total: int
    page: int
    limit: int


class OperationStatsResponse(CamelModel):
    total: int
    buys: int
    sells: int


class HealthResponse(CamelModel):
    status: str
    timestamp: str
    message: str


class MetricsResponse(CamelModel):
    metrics: Dict[str, Any]
    timestamp: str
