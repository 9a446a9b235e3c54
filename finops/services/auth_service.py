"""
JWT authentication service.

Verifies credentials against stored bcrypt hashes, issues signed bearer
tokens and resolves them back to users. Tokens are stateless: there is no
refresh and no revocation, expiry is the only invalidation path.
"""
import asyncio
import logging
import secrets
from datetime import datetime, timedelta, timezone
from typing import Optional
from uuid import UUID

import bcrypt
import jwt
from pydantic import BaseModel

from finops.config.settings import APIConfig
from finops.connection_pool.database_pool import DatabasePool
from finops.models.user import UserRole, UserSummary
from finops.repositories.user_repository import UserRepository
from finops.services.exceptions import InvalidCredentials, InvalidToken, UserNotFound
from finops.utils.monitoring import MetricsCollector

logger = logging.getLogger(__name__)

# bcrypt only looks at the first 72 bytes of a password
BCRYPT_MAX_PASSWORD_BYTES = 72


class AuthResult(BaseModel):
    token: str
    user: UserSummary


class TokenData(BaseModel):
    """Token payload data."""
    user_id: UUID
    role: UserRole
    exp: datetime


class PasswordHasher:
    """Secure password hashing using bcrypt."""

    def __init__(self, rounds: int = 12):
        self.rounds = rounds

    def hash_password(self, password: str) -> str:
        """Hash password with bcrypt."""
        salt = bcrypt.gensalt(rounds=self.rounds)
        hashed = bcrypt.hashpw(self._encode(password), salt)
        return hashed.decode('utf-8')

    def verify_password(self, password: str, hashed: str) -> bool:
        """Verify password against hash (constant-time comparison)."""
        try:
            return bcrypt.checkpw(self._encode(password), hashed.encode('utf-8'))
        except ValueError:
            logger.warning("Stored password hash is malformed")
            return False

    @staticmethod
    def _encode(password: str) -> bytes:
        return password.encode('utf-8')[:BCRYPT_MAX_PASSWORD_BYTES]


class JWTManager:
    """JWT token management."""

    def __init__(self, config: APIConfig):
        self.secret = config.jwt_secret
        self.algorithm = config.jwt_algorithm
        self.access_token_expire = timedelta(hours=config.jwt_expiry_hours)

    def create_access_token(self, user: UserSummary, now: Optional[datetime] = None) -> str:
        """Create JWT access token carrying subject and role."""
        now = now or datetime.now(timezone.utc)
        payload = {
            "sub": str(user.id),
            "role": user.role.value,
            "iat": now,
            "exp": now + self.access_token_expire,
        }
        return jwt.encode(payload, self.secret, algorithm=self.algorithm)

    def verify_token(self, token: str) -> TokenData:
        """Verify signature and expiry, then decode the payload."""
        try:
            payload = jwt.decode(
                token,
                self.secret,
                algorithms=[self.algorithm],
                options={"require": ["sub", "exp"]}
            )
        except jwt.ExpiredSignatureError:
            raise InvalidToken("Token has expired")
        except jwt.InvalidTokenError:
            raise InvalidToken()

        try:
            return TokenData(
                user_id=UUID(payload["sub"]),
                role=UserRole(payload.get("role", UserRole.USER.value)),
                exp=datetime.fromtimestamp(payload["exp"], tz=timezone.utc)
            )
        except (ValueError, TypeError):
            raise InvalidToken("Invalid token payload")


class AuthService:
    """Authentication gate: credentials in, bearer token out, and back."""

    def __init__(
        self,
        database: DatabasePool,
        hasher: PasswordHasher,
        jwt_manager: JWTManager,
        metrics: MetricsCollector
    ):
        self.database = database
        self.hasher = hasher
        self.jwt_manager = jwt_manager
        self.metrics = metrics
        self._dummy_hash: Optional[str] = None

    async def authenticate(self, email: str, password: str) -> AuthResult:
        """
        Check credentials and issue a token.

        Unknown emails and wrong passwords fail with the same error. An
        unknown email still costs one bcrypt comparison.

        Raises:
            InvalidCredentials: if the email is unknown or the password is wrong
        """
        async with self.database.session() as session:
            user = await UserRepository(session).get_by_email(email)

        if user is None:
            await asyncio.to_thread(self.hasher.verify_password, password, self._get_dummy_hash())
            self.metrics.increment_counter("login_failures", 1)
            logger.info("Login failed: unknown email")
            raise InvalidCredentials()

        valid = await asyncio.to_thread(self.hasher.verify_password, password, user.password_hash)
        if not valid:
            self.metrics.increment_counter("login_failures", 1)
            logger.info(f"Login failed: wrong password for user {user.id}")
            raise InvalidCredentials()

        summary = user.summary()
        token = self.jwt_manager.create_access_token(summary)

        self.metrics.increment_counter("successful_logins", 1)
        logger.info(f"User logged in: {user.id}")

        return AuthResult(token=token, user=summary)

    async def authorize(self, token: str) -> UserSummary:
        """
        Resolve a bearer token to the user it names.

        Raises:
            InvalidToken: on any verification failure
            UserNotFound: if the subject no longer exists
        """
        token_data = self.jwt_manager.verify_token(token)

        async with self.database.session() as session:
            user = await UserRepository(session).get(token_data.user_id)

        if user is None:
            raise UserNotFound()

        return user.summary()

    def _get_dummy_hash(self) -> str:
        if self._dummy_hash is None:
            self._dummy_hash = self.hasher.hash_password(secrets.token_urlsafe(16))
        return self._dummy_hash
