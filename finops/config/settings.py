"""Configuration management with environment-specific settings"""

import os
import json
import logging
from typing import Dict, Any, Optional
from dataclasses import dataclass, field
from decimal import Decimal
from pathlib import Path
from enum import Enum

import yaml

logger = logging.getLogger("finops.config")

DEVELOPMENT_JWT_SECRET = "dev-secret-change-in-production"


class ConfigurationError(Exception):
    """Raised when required configuration is missing or invalid."""
    pass


class Environment(Enum):
    """Environment types"""
    DEVELOPMENT = "development"
    TESTING = "testing"
    STAGING = "staging"
    PRODUCTION = "production"


@dataclass
class DatabaseConfig:
    """Database configuration"""
    url: str = ""
    pool_size: int = 20
    max_overflow: int = 10
    pool_timeout: float = 5.0
    pool_recycle: int = 1800
    echo: bool = False
    create_schema: bool = True


@dataclass
class APIConfig:
    """API server configuration"""
    host: str = "0.0.0.0"
    port: int = 5000
    cors_origins: list = field(default_factory=lambda: ["*"])
    jwt_secret: str = ""
    jwt_algorithm: str = "HS256"
    jwt_expiry_hours: int = 24


@dataclass
class AuthConfig:
    """Password hashing configuration"""
    bcrypt_rounds: int = 12


@dataclass
class LimitsConfig:
    """Per-user operation limits"""
    max_operations: int = 10
    max_single_amount: Decimal = Decimal("10000")
    # False counts every operation the user ever created
    calendar_day_window: bool = False


@dataclass
class LoggingConfig:
    """Logging configuration"""
    level: str = "INFO"
    format: str = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"
    file_path: Optional[str] = None
    max_file_size: int = 10 * 1024 * 1024  # 10MB
    backup_count: int = 5


@dataclass
class Settings:
    """Main application settings"""
    environment: Environment = Environment.DEVELOPMENT
    debug: bool = False

    database: DatabaseConfig = field(default_factory=DatabaseConfig)
    api: APIConfig = field(default_factory=APIConfig)
    auth: AuthConfig = field(default_factory=AuthConfig)
    limits: LimitsConfig = field(default_factory=LimitsConfig)
    logging: LoggingConfig = field(default_factory=LoggingConfig)

    @property
    def is_development(self) -> bool:
        return self.environment == Environment.DEVELOPMENT

    @property
    def is_production(self) -> bool:
        return self.environment == Environment.PRODUCTION

    def validate(self) -> 'Settings':
        """Check required values; fill the development JWT secret when allowed."""
        if not self.database.url:
            raise ConfigurationError(
                "DATABASE_URL must be set. Did you forget to provision a database?"
            )

        if not self.api.jwt_secret:
            if self.is_production:
                raise ConfigurationError("JWT_SECRET must be set in production")
            logger.warning("JWT_SECRET not set, using the development signing secret")
            self.api.jwt_secret = DEVELOPMENT_JWT_SECRET

        if self.api.jwt_expiry_hours <= 0:
            raise ConfigurationError(
                f"jwt_expiry_hours must be positive: {self.api.jwt_expiry_hours}"
            )
        if not 4 <= self.auth.bcrypt_rounds <= 31:
            raise ConfigurationError(f"Invalid bcrypt rounds: {self.auth.bcrypt_rounds}")
        if self.limits.max_operations <= 0:
            raise ConfigurationError(
                f"max_operations must be positive: {self.limits.max_operations}"
            )

        return self

    @classmethod
    def from_env(cls) -> 'Settings':
        """Create settings from environment variables"""
        env_name = os.getenv("ENVIRONMENT", os.getenv("NODE_ENV", "development"))
        try:
            environment = Environment(env_name.lower())
        except ValueError:
            raise ConfigurationError(f"Unknown environment: {env_name}")

        settings = cls(environment=environment)

        if os.getenv("DEBUG"):
            settings.debug = os.getenv("DEBUG").lower() == "true"

        # Database settings
        settings.database.url = os.getenv("DATABASE_URL", "")
        if os.getenv("DB_POOL_SIZE"):
            settings.database.pool_size = int(os.getenv("DB_POOL_SIZE"))
        if os.getenv("DB_MAX_OVERFLOW"):
            settings.database.max_overflow = int(os.getenv("DB_MAX_OVERFLOW"))
        if os.getenv("DB_ECHO"):
            settings.database.echo = os.getenv("DB_ECHO").lower() == "true"

        # API settings
        if os.getenv("API_HOST"):
            settings.api.host = os.getenv("API_HOST")
        if os.getenv("API_PORT") or os.getenv("PORT"):
            settings.api.port = int(os.getenv("API_PORT") or os.getenv("PORT"))
        if os.getenv("CORS_ORIGINS"):
            settings.api.cors_origins = [
                origin.strip() for origin in os.getenv("CORS_ORIGINS").split(",")
            ]
        settings.api.jwt_secret = os.getenv("JWT_SECRET", "")
        if os.getenv("JWT_EXPIRY_HOURS"):
            settings.api.jwt_expiry_hours = int(os.getenv("JWT_EXPIRY_HOURS"))

        if os.getenv("BCRYPT_ROUNDS"):
            settings.auth.bcrypt_rounds = int(os.getenv("BCRYPT_ROUNDS"))

        # Limits
        if os.getenv("MAX_OPERATIONS"):
            settings.limits.max_operations = int(os.getenv("MAX_OPERATIONS"))
        if os.getenv("MAX_SINGLE_AMOUNT"):
            settings.limits.max_single_amount = Decimal(os.getenv("MAX_SINGLE_AMOUNT"))
        if os.getenv("LIMIT_CALENDAR_DAY"):
            settings.limits.calendar_day_window = os.getenv("LIMIT_CALENDAR_DAY").lower() == "true"

        # Logging
        if os.getenv("LOG_LEVEL"):
            settings.logging.level = os.getenv("LOG_LEVEL")
        if os.getenv("LOG_FILE"):
            settings.logging.file_path = os.getenv("LOG_FILE")

        return settings

    @classmethod
    def from_file(cls, config_path: str) -> 'Settings':
        """Load settings from configuration file"""
        config_file = Path(config_path)

        if not config_file.exists():
            raise FileNotFoundError(f"Configuration file not found: {config_path}")

        with open(config_file, 'r') as f:
            if config_file.suffix.lower() in ('.yaml', '.yml'):
                config_data = yaml.safe_load(f) or {}
            elif config_file.suffix.lower() == '.json':
                config_data = json.load(f)
            else:
                raise ValueError(f"Unsupported configuration file format: {config_file.suffix}")

        return cls._from_dict(config_data)

    @classmethod
    def _from_dict(cls, data: Dict[str, Any]) -> 'Settings':
        """Create Settings from dictionary"""
        settings = cls()

        if 'environment' in data:
            settings.environment = Environment(data['environment'])

        if 'debug' in data:
            settings.debug = data['debug']

        for section in ('database', 'api', 'auth', 'limits', 'logging'):
            target = getattr(settings, section)
            for key, value in (data.get(section) or {}).items():
                if hasattr(target, key):
                    setattr(target, key, value)
                else:
                    logger.warning(f"Ignoring unknown setting {section}.{key}")

        if not isinstance(settings.limits.max_single_amount, Decimal):
            settings.limits.max_single_amount = Decimal(str(settings.limits.max_single_amount))

        return settings

    def to_dict(self) -> Dict[str, Any]:
        """Convert settings to dictionary (secrets omitted)"""
        return {
            'environment': self.environment.value,
            'debug': self.debug,
            'database': {
                'pool_size': self.database.pool_size,
                'max_overflow': self.database.max_overflow,
                'pool_timeout': self.database.pool_timeout,
                'echo': self.database.echo,
                'create_schema': self.database.create_schema
            },
            'api': {
                'host': self.api.host,
                'port': self.api.port,
                'cors_origins': self.api.cors_origins,
                'jwt_algorithm': self.api.jwt_algorithm,
                'jwt_expiry_hours': self.api.jwt_expiry_hours
            },
            'auth': {
                'bcrypt_rounds': self.auth.bcrypt_rounds
            },
            'limits': {
                'max_operations': self.limits.max_operations,
                'max_single_amount': str(self.limits.max_single_amount),
                'calendar_day_window': self.limits.calendar_day_window
            },
            'logging': {
                'level': self.logging.level,
                'file_path': self.logging.file_path
            }
        }


def load_settings() -> Settings:
    """Assemble and validate settings once at startup.

    A ``CONFIG_FILE`` (YAML or JSON) takes precedence; otherwise settings come
    from environment variables. ``DATABASE_URL`` and ``JWT_SECRET`` from the
    environment always override file values.
    """
    config_file = os.getenv("CONFIG_FILE", "config/settings.yaml")

    if os.path.exists(config_file):
        settings = Settings.from_file(config_file)
        if os.getenv("DATABASE_URL"):
            settings.database.url = os.getenv("DATABASE_URL")
        if os.getenv("JWT_SECRET"):
            settings.api.jwt_secret = os.getenv("JWT_SECRET")
    else:
        settings = Settings.from_env()

    return settings.validate()
