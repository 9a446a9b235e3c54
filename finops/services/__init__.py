"""
Business services: authentication, operation rules and queries, setup.
"""
from .exceptions import (
    FinOpsError, ValidationError, BusinessRuleError, TransactionError,
    AuthenticationError, InvalidCredentials, InvalidToken, UserNotFound,
    PermissionDenied
)
from .auth_service import AuthService, AuthResult, JWTManager, PasswordHasher
from .operation_service import OperationService
from .setup_service import SetupService, SetupStatus

__all__ = [
    "FinOpsError",
    "ValidationError",
    "BusinessRuleError",
    "TransactionError",
    "AuthenticationError",
    "InvalidCredentials",
    "InvalidToken",
    "UserNotFound",
    "PermissionDenied",
    "AuthService",
    "AuthResult",
    "JWTManager",
    "PasswordHasher",
    "OperationService",
    "SetupService",
    "SetupStatus",
]
