"""
Data models for the operations service.
"""
from .user import User, UserRole, UserSummary
from .operation import (
    Operation, OperationPage, OperationStats, OperationType,
    FIAT_CURRENCIES, CRYPTO_CURRENCIES, SUPPORTED_CURRENCIES, max_decimal_places
)

__all__ = [
    "User",
    "UserRole",
    "UserSummary",
    "Operation",
    "OperationPage",
    "OperationStats",
    "OperationType",
    "FIAT_CURRENCIES",
    "CRYPTO_CURRENCIES",
    "SUPPORTED_CURRENCIES",
    "max_decimal_places",
]
