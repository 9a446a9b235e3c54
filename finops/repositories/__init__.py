from .operation_repository import OperationFilter, OperationRepository
from .user_repository import UserRepository

__all__ = ["OperationFilter", "OperationRepository", "UserRepository"]
