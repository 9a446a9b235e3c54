"""
Service wiring and FastAPI dependency providers.

All services are built once per application by ``build_container`` and
stored on ``app.state``; handlers reach them through the providers below.
"""

from dataclasses import dataclass
from typing import Callable, Optional

from fastapi import Depends, Request
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer

from finops.config.settings import Settings
from finops.connection_pool.database_pool import DatabasePool
from finops.models.user import UserRole, UserSummary
from finops.services.auth_service import AuthService, JWTManager, PasswordHasher
from finops.services.exceptions import InvalidToken, PermissionDenied
from finops.services.operation_service import OperationService
from finops.services.setup_service import SetupService
from finops.utils.monitoring import MetricsCollector

# auto_error=False so a missing header reaches our own 401 handling
bearer_scheme = HTTPBearer(auto_error=False)


@dataclass
class ServiceContainer:
    settings: Settings
    database: DatabasePool
    metrics: MetricsCollector
    auth_service: AuthService
    operation_service: OperationService
    setup_service: SetupService


def build_container(settings: Settings, database: Optional[DatabasePool] = None) -> ServiceContainer:
    """Construct every service for one application instance."""
    database = database or DatabasePool(settings.database)
    metrics = MetricsCollector()
    hasher = PasswordHasher(rounds=settings.auth.bcrypt_rounds)

    operation_service = OperationService(database, settings.limits, metrics)
    return ServiceContainer(
        settings=settings,
        database=database,
        metrics=metrics,
        auth_service=AuthService(database, hasher, JWTManager(settings.api), metrics),
        operation_service=operation_service,
        setup_service=SetupService(database, hasher, operation_service, settings.environment),
    )


def get_container(request: Request) -> ServiceContainer:
    return request.app.state.container


def get_auth_service(container: ServiceContainer = Depends(get_container)) -> AuthService:
    return container.auth_service


def get_operation_service(container: ServiceContainer = Depends(get_container)) -> OperationService:
    return container.operation_service


def get_setup_service(container: ServiceContainer = Depends(get_container)) -> SetupService:
    return container.setup_service


def get_metrics(container: ServiceContainer = Depends(get_container)) -> MetricsCollector:
    return container.metrics


async def get_current_user(
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(bearer_scheme),
    auth_service: AuthService = Depends(get_auth_service)
) -> UserSummary:
    """Get current authenticated user from the bearer token."""
    if credentials is None:
        raise InvalidToken("No token provided")

    return await auth_service.authorize(credentials.credentials)


def require_role(required_role: UserRole) -> Callable:
    """Dependency to require a specific user role."""
    def role_checker(current_user: UserSummary = Depends(get_current_user)) -> UserSummary:
        if current_user.role != required_role:
            raise PermissionDenied(required_role.value)
        return current_user

    return role_checker
