"""
Centralized Configuration Module using Pydantic Settings

This module provides type-safe, environment-based configuration for the
read-through caching layer. All configuration is centralized here to ensure
consistency across modules.

Architectural Decision: Pydantic Settings for type safety and validation
- Environment variable loading with .env support
- Type validation at startup (fail fast on misconfiguration)
- IDE autocomplete for all settings
- Easy testing with override mechanisms
"""

from typing import Literal

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class CacheSettings(BaseSettings):
    """
    Cache service configuration.

    STAGE-0.1: Cache service configuration

    CACHE_DEFAULT_TTL of 0 means "no expiry": eviction is left to the store.
    """

    CACHE_NAME: str = Field(default="caching", description="Logical cache service name")
    CACHE_NAMESPACE: str | None = Field(default=None, description="Key namespace (defaults to name)")
    CACHE_STORE: Literal["memory", "redis"] = Field(default="memory", description="Backend store")
    CACHE_DEFAULT_TTL: int = Field(default=0, ge=0, description="Default TTL in seconds (0 = none)")
    CACHE_MEMORY_MAX_SIZE: int = Field(default=10000, gt=0, description="In-memory store max entries")
    CACHE_SINGLE_FLIGHT: bool = Field(
        default=False, description="Serialize concurrent read-throughs for the same key"
    )
    CACHE_THROW_ON_ERRORS: bool = Field(
        default=False, description="Raise from the basic cache API instead of returning fallbacks"
    )

    model_config = SettingsConfigDict(env_prefix="", case_sensitive=True)


class StatisticsSettings(BaseSettings):
    """
    Statistics configuration.

    STAGE-0.2: Statistics toggles

    These are the startup values only; both flags can be flipped at runtime
    through the RuntimeConfigurationManager.
    """

    CACHE_METRICS_ENABLED: bool = Field(default=False, description="Collect hit/miss statistics")
    CACHE_KEY_METRICS_ENABLED: bool = Field(default=False, description="Collect per-key statistics")
    CACHE_PROMETHEUS_ENABLED: bool = Field(default=True, description="Export Prometheus metrics")

    model_config = SettingsConfigDict(env_prefix="", case_sensitive=True)


class RedisSettings(BaseSettings):
    """
    Redis configuration for the distributed store.

    STAGE-0.3: Redis connection configuration
    """

    REDIS_HOST: str = Field(default="localhost", description="Redis server host")
    REDIS_PORT: int = Field(default=6379, description="Redis server port")
    REDIS_DB: int = Field(default=0, description="Redis database number")
    REDIS_PASSWORD: str | None = Field(default=None, description="Redis password (if required)")
    REDIS_MAX_CONNECTIONS: int = Field(default=50, description="Maximum total connections")
    REDIS_SOCKET_TIMEOUT: int = Field(default=5, description="Socket timeout in seconds")
    REDIS_SOCKET_CONNECT_TIMEOUT: int = Field(default=5, description="Connection timeout in seconds")
    REDIS_HEALTH_CHECK_INTERVAL: int = Field(default=30, description="Health check interval in seconds")

    model_config = SettingsConfigDict(env_prefix="", case_sensitive=True)


class LoggingSettings(BaseSettings):
    """
    Logging configuration for structured logging.

    STAGE-L: Logging configuration

    Architectural Decision: structlog for production-grade logging
    """

    LOG_LEVEL: str = Field(default="INFO", description="Logging level")
    LOG_FORMAT: Literal["json", "console"] = Field(default="json", description="Log output format")

    @field_validator("LOG_LEVEL")
    @classmethod
    def validate_log_level(cls, v):
        """Validate log level."""
        valid_levels = ["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"]
        if v.upper() not in valid_levels:
            raise ValueError(f"LOG_LEVEL must be one of {valid_levels}")
        return v.upper()

    model_config = SettingsConfigDict(env_prefix="", case_sensitive=True)


class ApplicationSettings(BaseSettings):
    """
    General application settings (admin API).

    STAGE-0: Application initialization
    """

    ENVIRONMENT: Literal["development", "staging", "production", "test"] = Field(
        default="development",
        description="Application environment"
    )
    APP_NAME: str = Field(default="Read-Through Cache", description="Application name")
    APP_VERSION: str = Field(default="1.0.0", description="Application version")
    API_HOST: str = Field(default="0.0.0.0", description="API host")
    API_PORT: int = Field(default=8000, description="API port")

    model_config = SettingsConfigDict(env_prefix="", case_sensitive=True)


class Settings(BaseSettings):
    """
    Main settings class that aggregates all configuration sections.

    STAGE-0: Centralized configuration initialization

    Usage:
        from readthrough.core.config.settings import get_settings

        settings = get_settings()
        store = settings.cache.CACHE_STORE
        redis_host = settings.redis.REDIS_HOST

    Variables are flat in the environment; the grouped views below are built
    from them on access.
    """

    # Cache settings
    CACHE_NAME: str = Field(default="caching", description="Logical cache service name")
    CACHE_NAMESPACE: str | None = Field(default=None, description="Key namespace (defaults to name)")
    CACHE_STORE: Literal["memory", "redis"] = Field(default="memory", description="Backend store")
    CACHE_DEFAULT_TTL: int = Field(default=0, ge=0, description="Default TTL in seconds (0 = none)")
    CACHE_MEMORY_MAX_SIZE: int = Field(default=10000, gt=0, description="In-memory store max entries")
    CACHE_SINGLE_FLIGHT: bool = Field(default=False, description="Per-key single-flight")
    CACHE_THROW_ON_ERRORS: bool = Field(default=False, description="Raise from the basic cache API")

    # Statistics settings
    CACHE_METRICS_ENABLED: bool = Field(default=False, description="Collect hit/miss statistics")
    CACHE_KEY_METRICS_ENABLED: bool = Field(default=False, description="Collect per-key statistics")
    CACHE_PROMETHEUS_ENABLED: bool = Field(default=True, description="Export Prometheus metrics")

    # Redis settings
    REDIS_HOST: str = Field(default="localhost", description="Redis server host")
    REDIS_PORT: int = Field(default=6379, description="Redis server port")
    REDIS_DB: int = Field(default=0, description="Redis database number")
    REDIS_PASSWORD: str | None = Field(default=None, description="Redis password (if required)")
    REDIS_MAX_CONNECTIONS: int = Field(default=50, description="Maximum total connections")
    REDIS_SOCKET_TIMEOUT: int = Field(default=5, description="Socket timeout in seconds")
    REDIS_SOCKET_CONNECT_TIMEOUT: int = Field(default=5, description="Connection timeout in seconds")
    REDIS_HEALTH_CHECK_INTERVAL: int = Field(default=30, description="Health check interval in seconds")

    # Logging settings
    LOG_LEVEL: str = Field(default="INFO", description="Logging level")
    LOG_FORMAT: Literal["json", "console"] = Field(default="json", description="Log output format")

    # Application settings
    ENVIRONMENT: Literal["development", "staging", "production", "test"] = Field(
        default="development",
        description="Application environment"
    )
    APP_NAME: str = Field(default="Read-Through Cache", description="Application name")
    APP_VERSION: str = Field(default="1.0.0", description="Application version")
    API_HOST: str = Field(default="0.0.0.0", description="API host")
    API_PORT: int = Field(default=8000, description="API port")

    @field_validator("LOG_LEVEL")
    @classmethod
    def validate_log_level(cls, v):
        """Validate log level."""
        valid_levels = ["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"]
        if v.upper() not in valid_levels:
            raise ValueError(f"LOG_LEVEL must be one of {valid_levels}")
        return v.upper()

    # Nested configuration views
    @property
    def cache(self) -> CacheSettings:
        """Get cache settings."""
        return CacheSettings(
            CACHE_NAME=self.CACHE_NAME,
            CACHE_NAMESPACE=self.CACHE_NAMESPACE,
            CACHE_STORE=self.CACHE_STORE,
            CACHE_DEFAULT_TTL=self.CACHE_DEFAULT_TTL,
            CACHE_MEMORY_MAX_SIZE=self.CACHE_MEMORY_MAX_SIZE,
            CACHE_SINGLE_FLIGHT=self.CACHE_SINGLE_FLIGHT,
            CACHE_THROW_ON_ERRORS=self.CACHE_THROW_ON_ERRORS,
        )

    @property
    def statistics(self) -> StatisticsSettings:
        """Get statistics settings."""
        return StatisticsSettings(
            CACHE_METRICS_ENABLED=self.CACHE_METRICS_ENABLED,
            CACHE_KEY_METRICS_ENABLED=self.CACHE_KEY_METRICS_ENABLED,
            CACHE_PROMETHEUS_ENABLED=self.CACHE_PROMETHEUS_ENABLED,
        )

    @property
    def redis(self) -> RedisSettings:
        """Get Redis settings."""
        return RedisSettings(
            REDIS_HOST=self.REDIS_HOST,
            REDIS_PORT=self.REDIS_PORT,
            REDIS_DB=self.REDIS_DB,
            REDIS_PASSWORD=self.REDIS_PASSWORD,
            REDIS_MAX_CONNECTIONS=self.REDIS_MAX_CONNECTIONS,
            REDIS_SOCKET_TIMEOUT=self.REDIS_SOCKET_TIMEOUT,
            REDIS_SOCKET_CONNECT_TIMEOUT=self.REDIS_SOCKET_CONNECT_TIMEOUT,
            REDIS_HEALTH_CHECK_INTERVAL=self.REDIS_HEALTH_CHECK_INTERVAL,
        )

    @property
    def logging(self) -> LoggingSettings:
        """Get logging settings."""
        return LoggingSettings(LOG_LEVEL=self.LOG_LEVEL, LOG_FORMAT=self.LOG_FORMAT)

    @property
    def app(self) -> ApplicationSettings:
        """Get application settings."""
        return ApplicationSettings(
            ENVIRONMENT=self.ENVIRONMENT,
            APP_NAME=self.APP_NAME,
            APP_VERSION=self.APP_VERSION,
            API_HOST=self.API_HOST,
            API_PORT=self.API_PORT,
        )

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=True,
        extra="ignore"  # Ignore extra environment variables
    )


# Global settings instance (singleton pattern)
_settings: Settings | None = None


def get_settings() -> Settings:
    """
    Get the global settings instance (singleton).

    STAGE-0.3: Settings initialization

    Returns:
        Settings: Global settings instance
    """
    global _settings

    if _settings is None:
        _settings = Settings()

    return _settings


def reload_settings() -> Settings:
    """
    Reload settings (useful for testing).

    Returns:
        Settings: New settings instance
    """
    global _settings
    _settings = Settings()
    return _settings
