"""
Operation Models

Pydantic models for BUY/SELL operations and their aggregate views.
"""

from datetime import datetime
from decimal import Decimal
from enum import Enum
from typing import List, Optional
from uuid import UUID

from pydantic import BaseModel, ConfigDict


class OperationType(str, Enum):
    BUY = "BUY"
    SELL = "SELL"


FIAT_CURRENCIES = ("USD", "EUR", "GBP", "JPY", "CAD", "AUD", "CHF", "CNY")
CRYPTO_CURRENCIES = ("BTC", "ETH", "ADA", "SOL")
SUPPORTED_CURRENCIES = FIAT_CURRENCIES + CRYPTO_CURRENCIES

FIAT_DECIMAL_PLACES = 2
CRYPTO_DECIMAL_PLACES = 8
STORED_DECIMAL_PLACES = 2


def max_decimal_places(currency: str) -> int:
    """Allowed decimal places for a currency's precision class."""
    if currency.upper() in CRYPTO_CURRENCIES:
        return CRYPTO_DECIMAL_PLACES
    return FIAT_DECIMAL_PLACES


class Operation(BaseModel):
    """Stored operation record."""

    model_config = ConfigDict(from_attributes=True)

    id: UUID
    type: OperationType
    amount: Decimal
    currency: str
    user_id: UUID
    created_at: Optional[datetime] = None


class OperationPage(BaseModel):
    """One page of filtered operations plus the full filtered count."""
    items: List[Operation]
    total: int


class OperationStats(BaseModel):
    total: int
    buys: int
    sells: int
