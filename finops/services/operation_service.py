"""
Operation service - business rules for BUY/SELL operations.

Creation runs a short-circuiting pipeline inside one database transaction:

1. structural validation of amount, currency and type
2. the owning user must exist
3. per-user operation count and single-amount limits
4. normalization (amount to 2 decimals, currency uppercased)
5. insert

Listing and statistics are plain reads scoped to one user.
"""

import logging
from datetime import datetime, timezone
from decimal import Decimal, InvalidOperation, ROUND_HALF_UP
from typing import Optional, Tuple, Union
from uuid import UUID

from finops.config.settings import LimitsConfig
from finops.connection_pool.database_pool import DatabasePool
from finops.models.operation import (
    Operation,
    OperationPage,
    OperationStats,
    OperationType,
    STORED_DECIMAL_PLACES,
    SUPPORTED_CURRENCIES,
    max_decimal_places,
)
from finops.repositories.operation_repository import OperationFilter, OperationRepository
from finops.repositories.user_repository import UserRepository
from finops.services.exceptions import BusinessRuleError, TransactionError, ValidationError
from finops.utils.monitoring import MetricsCollector

logger = logging.getLogger(__name__)

MAX_PAGE_SIZE = 100
ALL_TYPES = "all-types"
ALL_CURRENCIES = "all-currencies"

_STORED_QUANTUM = Decimal(1).scaleb(-STORED_DECIMAL_PLACES)


def parse_amount(amount: Union[str, Decimal, int, float]) -> Decimal:
    """Parse an amount into a positive finite Decimal."""
    try:
        value = Decimal(str(amount).strip())
    except (InvalidOperation, ValueError):
        raise ValidationError("Amount must be a positive number greater than 0")

    if not value.is_finite() or value <= 0:
        raise ValidationError("Amount must be a positive number greater than 0")

    return value


def decimal_places(value: Decimal) -> int:
    """Significant decimal places, ignoring trailing zeros ("10.50" has 1).

    Works on the digit tuple so long inputs are never rounded by the
    decimal context before counting.
    """
    _, digits, exponent = value.as_tuple()
    places = -exponent
    for digit in reversed(digits):
        if places <= 0 or digit != 0:
            break
        places -= 1
    return max(0, places)


def normalize_amount(value: Decimal) -> Decimal:
    """Fix an amount to the stored precision, rounding half up."""
    normalized = value.quantize(_STORED_QUANTUM, rounding=ROUND_HALF_UP)
    if normalized <= 0:
        raise ValidationError(
            f"Amount {value} rounds to zero at {STORED_DECIMAL_PLACES} decimal places"
        )
    return normalized


class OperationService:
    """Rule engine for creating operations, and the query side for reading them."""

    def __init__(self, database: DatabasePool, limits: LimitsConfig, metrics: MetricsCollector):
        self.database = database
        self.limits = limits
        self.metrics = metrics

    async def create_operation(
        self,
        operation_type: Union[OperationType, str],
        amount: Union[str, Decimal],
        currency: str,
        user_id: UUID
    ) -> Operation:
        """
        Validate, limit-check, normalize and persist one operation atomically.

        Args:
            operation_type: BUY or SELL
            amount: decimal amount, as text or Decimal
            currency: currency code from the allow-list (any case)
            user_id: owning user

        Returns:
            The stored operation with its generated id and timestamp

        Raises:
            ValidationError: malformed or out-of-range input
            BusinessRuleError: unknown user or limit exceeded
            TransactionError: anything unexpected while persisting
        """
        try:
            async with self.database.transaction() as session:
                value, op_type = self._validate(operation_type, amount, currency)

                if await UserRepository(session).get(user_id) is None:
                    raise BusinessRuleError("User not found")

                operations = OperationRepository(session)
                await self._check_limits(operations, user_id, value)

                operation = await operations.add(
                    op_type, normalize_amount(value), currency.upper(), user_id
                )
        except (ValidationError, BusinessRuleError) as e:
            self.metrics.increment_counter(
                "operation_rejections", 1, {"reason": type(e).__name__}
            )
            logger.info(f"Operation rejected for user {user_id}: {e.message}")
            raise
        except TransactionError:
            raise
        except Exception as e:
            self.metrics.increment_counter("operation_transaction_failures", 1)
            logger.error(f"Transaction failed, rolled back: {e}", exc_info=True)
            raise TransactionError(f"Failed to create operation: {e}") from e

        self.metrics.increment_counter("operations_created", 1, {"type": operation.type.value})
        logger.info(
            f"Operation created: {operation.id} - {operation.type.value} "
            f"{operation.amount} {operation.currency}"
        )
        return operation

    def _validate(
        self,
        operation_type: Union[OperationType, str],
        amount: Union[str, Decimal],
        currency: str
    ) -> Tuple[Decimal, OperationType]:
        value = parse_amount(amount)

        if decimal_places(value) > max_decimal_places(currency):
            raise ValidationError(f"Invalid amount precision for currency {currency}")

        if currency.upper() not in SUPPORTED_CURRENCIES:
            raise ValidationError(f"Invalid currency code: {currency}")

        raw_type = operation_type.value if isinstance(operation_type, OperationType) else operation_type
        if raw_type not in (OperationType.BUY.value, OperationType.SELL.value):
            raise ValidationError("Operation type must be BUY or SELL")

        return value, OperationType(raw_type)

    async def _check_limits(
        self,
        operations: OperationRepository,
        user_id: UUID,
        value: Decimal
    ) -> None:
        since = None
        if self.limits.calendar_day_window:
            since = datetime.now(timezone.utc).replace(hour=0, minute=0, second=0, microsecond=0)

        existing = await operations.count_for_user(user_id, since=since)
        if existing >= self.limits.max_operations:
            raise BusinessRuleError(
                f"Daily operation limit exceeded ({self.limits.max_operations} operations per day)"
            )

        if value > self.limits.max_single_amount:
            raise BusinessRuleError(
                f"Single operation amount exceeds daily limit ({self.limits.max_single_amount})"
            )

    async def list_operations(
        self,
        user_id: UUID,
        operation_type: Optional[str] = None,
        currency: Optional[str] = None,
        search: Optional[str] = None,
        page: int = 1,
        limit: int = 10
    ) -> OperationPage:
        """
        Newest-first page of a user's operations plus the full filtered count.

        ``search`` matches currency, type or amount text, case-insensitively.
        ``all-types`` and ``all-currencies`` disable their filters.
        """
        if page < 1 or limit < 1 or limit > MAX_PAGE_SIZE:
            raise ValidationError("Invalid pagination parameters")

        filters = OperationFilter(
            user_id=user_id,
            operation_type=None if operation_type == ALL_TYPES else operation_type,
            currency=None if currency == ALL_CURRENCIES else currency,
            search=search,
        )
        offset = (page - 1) * limit

        async with self.database.session() as session:
            repository = OperationRepository(session)
            items = await repository.find(filters, offset=offset, limit=limit)
            total = await repository.count(filters)

        return OperationPage(items=items, total=total)

    async def get_stats(self, user_id: Optional[UUID] = None) -> OperationStats:
        """Total, BUY and SELL counts, optionally for one user."""
        async with self.database.session() as session:
            repository = OperationRepository(session)
            total = await repository.count(OperationFilter(user_id=user_id))
            buys = await repository.count(
                OperationFilter(user_id=user_id, operation_type=OperationType.BUY.value)
            )
            sells = await repository.count(
                OperationFilter(user_id=user_id, operation_type=OperationType.SELL.value)
            )

        return OperationStats(total=total, buys=buys, sells=sells)
