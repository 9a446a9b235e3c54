"""
Operation Repository

Data access layer for operation records: inserts, filtered and paginated
retrieval, and count aggregation.
"""

import logging
from dataclasses import dataclass
from datetime import datetime
from decimal import Decimal
from typing import List, Optional
from uuid import UUID

from sqlalchemy import String, and_, cast, func, or_, select
from sqlalchemy.ext.asyncio import AsyncSession

from finops.models.operation import Operation, OperationType
from finops.repositories.tables import OperationRecord

logger = logging.getLogger(__name__)


@dataclass
class OperationFilter:
    """Conjunctive filter over operations. ``None`` fields are not applied."""
    user_id: Optional[UUID] = None
    operation_type: Optional[str] = None
    currency: Optional[str] = None
    search: Optional[str] = None

    def conditions(self) -> list:
        conditions = []

        if self.user_id is not None:
            conditions.append(OperationRecord.user_id == self.user_id)

        if self.operation_type:
            conditions.append(OperationRecord.type == self.operation_type)

        if self.currency:
            conditions.append(OperationRecord.currency == self.currency)

        if self.search:
            conditions.append(or_(
                OperationRecord.currency.icontains(self.search, autoescape=True),
                OperationRecord.type.icontains(self.search, autoescape=True),
                cast(OperationRecord.amount, String).icontains(self.search, autoescape=True),
            ))

        return conditions


class OperationRepository:
    """Operation queries bound to one session (and so to its transaction)."""

    def __init__(self, session: AsyncSession):
        self.session = session

    async def add(
        self,
        operation_type: OperationType,
        amount: Decimal,
        currency: str,
        user_id: UUID
    ) -> Operation:
        """Insert a normalized operation and return it with id and timestamp."""
        record = OperationRecord(
            type=operation_type.value,
            amount=amount,
            currency=currency,
            user_id=user_id,
        )
        self.session.add(record)
        await self.session.flush()
        return Operation.model_validate(record)

    async def count_for_user(self, user_id: UUID, since: Optional[datetime] = None) -> int:
        """Count a user's operations, optionally only those created at or after ``since``."""
        query = select(func.count()).select_from(OperationRecord).where(
            OperationRecord.user_id == user_id
        )
        if since is not None:
            query = query.where(OperationRecord.created_at >= since)

        result = await self.session.execute(query)
        return result.scalar_one()

    async def find(self, filters: OperationFilter, offset: int, limit: int) -> List[Operation]:
        """Newest-first page of operations matching ``filters``."""
        query = (
            select(OperationRecord)
            .where(and_(True, *filters.conditions()))
            # id breaks ties between equal timestamps so pages never overlap
            .order_by(OperationRecord.created_at.desc(), OperationRecord.id.desc())
            .offset(offset)
            .limit(limit)
        )
        result = await self.session.execute(query)
        return [Operation.model_validate(record) for record in result.scalars()]

    async def count(self, filters: OperationFilter) -> int:
        """Number of operations matching ``filters``, ignoring pagination."""
        query = (
            select(func.count())
            .select_from(OperationRecord)
            .where(and_(True, *filters.conditions()))
        )
        result = await self.session.execute(query)
        return result.scalar_one()
