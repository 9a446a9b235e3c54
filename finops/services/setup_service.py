"""
First-run setup: status, admin creation and database initialization.
"""
import asyncio
import logging
from typing import Optional

from pydantic import BaseModel
from sqlalchemy.exc import IntegrityError

from finops.config.settings import Environment
from finops.connection_pool.database_pool import DatabasePool
from finops.models.user import UserRole, UserSummary
from finops.repositories.user_repository import UserRepository
from finops.services.auth_service import PasswordHasher
from finops.services.exceptions import ValidationError
from finops.services.operation_service import OperationService

logger = logging.getLogger(__name__)

SAMPLE_OPERATIONS = (
    ("BUY", "1000.00", "USD"),
    ("SELL", "500.00", "EUR"),
    ("BUY", "0.5", "BTC"),
)


class SetupStatus(BaseModel):
    needs_setup: bool
    user_count: int
    environment: str


class SetupService:
    """Creates the first users of a fresh installation."""

    def __init__(
        self,
        database: DatabasePool,
        hasher: PasswordHasher,
        operation_service: OperationService,
        environment: Environment
    ):
        self.database = database
        self.hasher = hasher
        self.operation_service = operation_service
        self.environment = environment

    async def get_status(self) -> SetupStatus:
        async with self.database.session() as session:
            user_count = await UserRepository(session).count()

        return SetupStatus(
            needs_setup=user_count == 0,
            user_count=user_count,
            environment=self.environment.value,
        )

    async def create_admin(self, email: Optional[str], password: Optional[str]) -> UserSummary:
        """
        Create an admin user.

        Raises:
            ValidationError: if a field is missing or the email is taken
        """
        if not email or not password:
            raise ValidationError("Email and password are required")

        password_hash = await asyncio.to_thread(self.hasher.hash_password, password)

        try:
            async with self.database.transaction() as session:
                users = UserRepository(session)
                if await users.get_by_email(email) is not None:
                    raise ValidationError("User with this email already exists")
                user = await users.add(email, password_hash, role=UserRole.ADMIN)
        except IntegrityError:
            # a concurrent request inserted the same email first
            raise ValidationError("User with this email already exists")

        logger.info(f"Admin user created via setup: {user.id}")
        return user.summary()

    async def initialize_database(
        self,
        admin_email: str,
        admin_password: str,
        with_samples: bool = True
    ) -> Optional[UserSummary]:
        """
        Seed an admin and, optionally, sample operations.

        Idempotent: returns None and changes nothing when the admin email
        already exists.
        """
        async with self.database.session() as session:
            existing = await UserRepository(session).get_by_email(admin_email)

        if existing is not None:
            logger.info("Admin user already exists, skipping initialization")
            return None

        admin = await self.create_admin(admin_email, admin_password)

        if with_samples:
            for operation_type, amount, currency in SAMPLE_OPERATIONS:
                await self.operation_service.create_operation(
                    operation_type, amount, currency, admin.id
                )
            logger.info(f"Created {len(SAMPLE_OPERATIONS)} sample operations")

        return admin
