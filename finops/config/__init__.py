from .settings import (
    APIConfig,
    AuthConfig,
    ConfigurationError,
    DatabaseConfig,
    Environment,
    LimitsConfig,
    LoggingConfig,
    Settings,
    load_settings,
)

__all__ = [
    "APIConfig",
    "AuthConfig",
    "ConfigurationError",
    "DatabaseConfig",
    "Environment",
    "LimitsConfig",
    "LoggingConfig",
    "Settings",
    "load_settings",
]
