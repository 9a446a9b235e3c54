"""
Custom exceptions for the operations service.
"""


class FinOpsError(Exception):
    """Base exception for domain errors."""

    def __init__(self, message: str):
        self.message = message
        super().__init__(message)


class ValidationError(FinOpsError):
    """Raised when input is malformed or out of range."""
    pass


class BusinessRuleError(FinOpsError):
    """Raised when a domain rule is violated (unknown user, limits)."""
    pass


class TransactionError(FinOpsError):
    """Raised when persisting an operation fails; the transaction is rolled back."""
    pass


class AuthenticationError(FinOpsError):
    """Base class for failures that map to 401."""
    pass


class InvalidCredentials(AuthenticationError):
    """Raised for an unknown email or a wrong password (same message for both)."""

    def __init__(self, message: str = "Invalid email or password"):
        super().__init__(message)


class InvalidToken(AuthenticationError):
    """Raised when a bearer token is missing, malformed, expired or badly signed."""

    def __init__(self, message: str = "Invalid token"):
        super().__init__(message)


class UserNotFound(AuthenticationError):
    """Raised when a valid token names a user that no longer exists."""

    def __init__(self, message: str = "User not found"):
        super().__init__(message)


class PermissionDenied(FinOpsError):
    """Raised when an authenticated user lacks the required role."""

    def __init__(self, required_role: str):
        self.required_role = required_role
        super().__init__(f"Insufficient permissions. Required role: {required_role}")
