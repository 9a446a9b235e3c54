"""
Operation endpoints: create, list and aggregate BUY/SELL operations.

Every route requires a bearer token and only ever sees the caller's own
operations.
"""

from typing import Optional

from fastapi import APIRouter, Depends, Query, status

from finops.api.dependencies import get_current_user, get_operation_service
from finops.api.schemas import (
    OperationCreateRequest,
    OperationListResponse,
    OperationResponse,
    OperationStatsResponse,
)
from finops.models.user import UserSummary
from finops.services.operation_service import OperationService

router = APIRouter(prefix="/api/operations", tags=["operations"])


@router.post("", response_model=OperationResponse, status_code=status.HTTP_201_CREATED)
async def create_operation(
    request: OperationCreateRequest,
    user: UserSummary = Depends(get_current_user),
    operation_service: OperationService = Depends(get_operation_service)
) -> OperationResponse:
    """
    Create a new operation for the authenticated user.

    - **400**: invalid amount, precision, currency or type
    - **422**: unknown user or limit exceeded
    - **500**: persistence failed, nothing was written
    """
    operation = await operation_service.create_operation(
        request.type, request.amount, request.currency, user.id
    )
    return OperationResponse.from_operation(operation)


@router.get("", response_model=OperationListResponse)
async def list_operations(
    type: Optional[str] = None,
    currency: Optional[str] = None,
    search: Optional[str] = None,
    page: int = Query(1),
    limit: int = Query(10),
    user: UserSummary = Depends(get_current_user),
    operation_service: OperationService = Depends(get_operation_service)
) -> OperationListResponse:
    """
    List operations with optional filtering, newest first.

    - **type**: exact type (BUY/SELL), or `all-types`
    - **currency**: exact currency code, or `all-currencies`
    - **search**: case-insensitive match on currency, type or amount
    - **page**: 1-based page number
    - **limit**: page size, 1 to 100
    """
    result = await operation_service.list_operations(
        user.id,
        operation_type=type,
        currency=currency,
        search=search,
        page=page,
        limit=limit,
    )

    return OperationListResponse(
        operations=[OperationResponse.from_operation(op) for op in result.items],
        total=result.total,
        page=page,
        limit=limit,
    )


@router.get("/stats", response_model=OperationStatsResponse)
async def get_operation_stats(
    user: UserSummary = Depends(get_current_user),
    operation_service: OperationService = Depends(get_operation_service)
) -> OperationStatsResponse:
    """Total, BUY and SELL counts for the authenticated user."""
    stats = await operation_service.get_stats(user.id)
    return OperationStatsResponse(total=stats.total, buys=stats.buys, sells=stats.sells)
