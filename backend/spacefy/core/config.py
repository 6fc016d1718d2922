"""Application configuration with validation."""

from enum import Enum
from pydantic_settings import BaseSettings
from pydantic import Field, field_validator
from typing import List


class Environment(str, Enum):
    """Application environment."""
    DEVELOPMENT = "development"
    PRODUCTION = "production"


class ConfigurationError(Exception):
    """Raised when application configuration is invalid for the environment."""
    pass


class Settings(BaseSettings):
    """
    Application settings with validation.

    Uses Pydantic for configuration validation, preventing
    common security issues like wildcard CORS.
    """

    # Environment
    environment: Environment = Field(
        default=Environment.DEVELOPMENT,
        description="Application environment (development/production)"
    )

    # Every resource router is mounted under this prefix. The segment that
    # follows it names the route entity used for cache tags.
    api_prefix: str = Field(
        default="/api/v1",
        description="Mount prefix for all resource routers"
    )

    # CORS Configuration
    cors_allowed_origins: str = Field(
        default="http://localhost:3000,http://localhost:5173",
        description="Allowed CORS origins (comma-separated)"
    )

    # Database Configuration
    database_url: str = Field(
        default="sqlite:///./spacefy.db",
        description="Database connection URL"
    )
    # Connection pool tuning (PostgreSQL only; ignored for SQLite).
    db_pool_size: int = Field(
        default=5,
        description="Number of persistent database connections"
    )
    db_max_overflow: int = Field(
        default=10,
        description="Extra connections allowed during traffic bursts"
    )
    db_pool_timeout: int = Field(
        default=30,
        description="Seconds to wait for a connection from the pool before raising"
    )
    db_pool_recycle: int = Field(
        default=1800,
        description="Seconds before a connection is recycled (prevents stale connections)"
    )

    # Authentication
    # JWT_SECRET_KEY: signing key for session tokens. Default is insecure — override in production.
    jwt_secret_key: str = Field(
        default="dev-insecure-key-change-me",
        description="JWT signing secret (override in production)"
    )
    jwt_algorithm: str = Field(default="HS256")
    jwt_expires_hours: int = Field(
        default=24,
        description="Lifetime of issued session tokens in hours"
    )

    # Response cache (Redis)
    # Empty REDIS_URL disables the response cache entirely; reads always hit the database.
    redis_url: str = Field(
        default="",
        description="Redis connection URL, e.g. redis://localhost:6379/0 (empty = cache disabled)"
    )
    redis_socket_timeout: float = Field(
        default=2.0,
        description="Seconds before a Redis command times out"
    )
    cache_ttl_list: int = Field(
        default=60,
        description="TTL in seconds for cached list responses (0 = no expiry)"
    )
    cache_ttl_by_id: int = Field(
        default=300,
        description="TTL in seconds for cached single-resource responses (0 = no expiry)"
    )
    cache_scan_count: int = Field(
        default=100,
        description="SCAN batch size used by pattern-based invalidation"
    )

    # Roles
    # The elevated owner and the platform administrator bypass every
    # permission override lookup.
    elevated_owner_role: str = Field(default="OWNER")
    platform_admin_role: str = Field(default="DEVELOPER")
    default_role: str = Field(
        default="CUSTOMER",
        description="Role given to self-registered users and to users of a deleted role"
    )

    # Logging Configuration
    log_level: str = Field(
        default="INFO",
        description="Logging level (DEBUG, INFO, WARNING, ERROR, CRITICAL)"
    )
    log_format: str = Field(
        default="json",
        description="Log output format: 'json' for structured, 'text' for human-readable"
    )

    def get_cors_origins(self) -> List[str]:
        """
        Get CORS origins as a list.

        Parses comma-separated string and validates no wildcards.
        """
        origins = [origin.strip() for origin in self.cors_allowed_origins.split(',') if origin.strip()]

        # SECURITY: Prevent wildcard CORS
        if "*" in origins:
            raise ValueError(
                "Wildcard CORS (*) not allowed. "
                "Specify explicit origins in CORS_ALLOWED_ORIGINS"
            )

        return origins

    def get_bypass_roles(self) -> frozenset[str]:
        """Role names that are allowed every permission without any lookup."""
        return frozenset({self.elevated_owner_role.upper(), self.platform_admin_role.upper()})

    @property
    def cache_enabled(self) -> bool:
        return bool(self.redis_url)

    @field_validator('log_level')
    @classmethod
    def validate_log_level(cls, v: str) -> str:
        """Validate log level is one of the standard Python logging levels."""
        valid_levels = ['DEBUG', 'INFO', 'WARNING', 'ERROR', 'CRITICAL']
        v_upper = v.upper()
        if v_upper not in valid_levels:
            raise ValueError(f"Invalid log level. Must be one of: {valid_levels}")
        return v_upper

    @field_validator('api_prefix')
    @classmethod
    def validate_api_prefix(cls, v: str) -> str:
        """Normalize to a leading slash and no trailing slash."""
        v = "/" + v.strip().strip("/")
        return "" if v == "/" else v

    @field_validator('cache_scan_count')
    @classmethod
    def validate_scan_count(cls, v: int) -> int:
        if v < 1:
            raise ValueError("CACHE_SCAN_COUNT must be at least 1")
        return v

    def validate_production_config(self) -> None:
        """Validate configuration for production environment.

        In production, fails startup if security-critical settings use insecure defaults.
        In development, logs warnings but allows startup.

        Raises:
            ConfigurationError: If production config is insecure.
        """
        errors: list[str] = []

        # Check JWT secret
        if self.jwt_secret_key == "dev-insecure-key-change-me":
            errors.append(
                "JWT_SECRET_KEY is using the default insecure value. "
                "Generate a secure key: openssl rand -hex 32"
            )

        # Check for localhost CORS origins
        origins = self.get_cors_origins()
        localhost_origins = [o for o in origins if "localhost" in o or "127.0.0.1" in o]
        if localhost_origins:
            errors.append(
                f"CORS allows localhost origins: {localhost_origins}. "
                "Remove localhost origins for production."
            )

        if self.elevated_owner_role.upper() == self.default_role.upper():
            errors.append(
                "DEFAULT_ROLE equals ELEVATED_OWNER_ROLE: every self-registered "
                "user would bypass permission checks."
            )

        if errors:
            if self.environment == Environment.PRODUCTION:
                raise ConfigurationError(
                    "Production configuration is insecure:\n  - " + "\n  - ".join(errors)
                )
            # In development, just return — main.py will log warnings
            return

    class Config:
        """Pydantic configuration."""
        env_file = ".env"
        env_file_encoding = "utf-8"
        # Allow reading from environment variables with different case
        case_sensitive = False


# Global settings instance
settings = Settings()
