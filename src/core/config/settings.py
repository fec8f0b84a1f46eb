# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Application configuration settings using Pydantic Settings.

This module provides centralized configuration management for the title
memory service. Settings are loaded from environment variables with
sensible defaults.

The Settings class is the main entry point and aggregates all subsettings.
A singleton instance is provided via get_settings() for dependency injection.

Example:
    >>> from src.core.config.settings import get_settings
    >>> settings = get_settings()
    >>> print(settings.environment)
    'development'
"""

from functools import lru_cache
from typing import Literal, Self

from pydantic import Field, SecretStr, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class DatabaseSettings(BaseSettings):
    """PostgreSQL configuration for the title memory store.

    Attributes:
        user: PostgreSQL username.
        password: PostgreSQL password.
        host: Database host address.
        port: Database port number.
        database: Database name.
        url: Full connection URL (computed from components).
        pool_size: Connection pool size.
        max_overflow: Maximum overflow connections.
    """

    model_config = SettingsConfigDict(
        env_prefix="DB_",
        extra="ignore",
    )

    user: str = "titlememory"
    password: SecretStr = SecretStr("titlememory_password")
    host: str = "localhost"
    port: int = 5432
    database: str = "title_memories"
    pool_size: int = 10
    max_overflow: int = 20

    @property
    def url(self) -> str:
        """Build the async database URL from components."""
        pwd = self.password.get_secret_value()
        return f"postgresql+asyncpg://{self.user}:{pwd}@{self.host}:{self.port}/{self.database}"


class IdentityServiceSettings(BaseSettings):
    """Users service configuration, used for bearer token verification.

    Attributes:
        base_url: Base URL of the users service.
        timeout: Request timeout in seconds.
    """

    model_config = SettingsConfigDict(
        env_prefix="USERS_SERVICE_",
        extra="ignore",
        populate_by_name=True,
    )

    base_url: str = Field(default="http://localhost:3000", validation_alias="USERS_SERVICE_URL")
    timeout: float = 10.0


class PermissionsServiceSettings(BaseSettings):
    """Permissions service configuration.

    Attributes:
        base_url: Base URL of the permissions service.
        timeout: Request timeout in seconds.
    """

    model_config = SettingsConfigDict(
        env_prefix="PERMISSIONS_SERVICE_",
        extra="ignore",
        populate_by_name=True,
    )

    base_url: str = Field(default="http://localhost:3000", validation_alias="PERMISSIONS_SERVICE_URL")
    timeout: float = 10.0


class CompetencyCatalogSettings(BaseSettings):
    """Skills and learning outcomes catalog configuration.

    The catalog owns skill and learning outcome records. Title memories only
    hold their durable identifiers.

    Attributes:
        base_url: Base URL of the skills service.
        timeout: Request timeout in seconds.
    """

    model_config = SettingsConfigDict(
        env_prefix="SKILLS_SERVICE_",
        extra="ignore",
        populate_by_name=True,
    )

    base_url: str = Field(default="http://localhost:3001", validation_alias="SKILLS_SERVICE_URL")
    timeout: float = 30.0


class SubjectServiceSettings(BaseSettings):
    """Subjects service configuration.

    Attributes:
        base_url: Base URL of the subjects service.
        timeout: Request timeout in seconds.
        cascade_mode: How status cascades are delivered. "await" sends the
            notification before the update returns and reports the outcome;
            "background" schedules it and returns immediately.
    """

    model_config = SettingsConfigDict(
        env_prefix="SUBJECTS_SERVICE_",
        extra="ignore",
        populate_by_name=True,
    )

    base_url: str = Field(default="http://localhost:3002", validation_alias="SUBJECTS_SERVICE_URL")
    timeout: float = 10.0
    cascade_mode: Literal["await", "background"] = "await"


class PaginationSettings(BaseSettings):
    """Pagination defaults and bounds.

    Attributes:
        default_limit: Page size used when the caller gives none.
        max_limit: Largest page size a caller may request.
    """

    model_config = SettingsConfigDict(
        env_prefix="PAGINATION_",
        extra="ignore",
    )

    default_limit: int = 10
    max_limit: int = 100


class CORSSettings(BaseSettings):
    """CORS configuration for API.

    Attributes:
        origins: Comma-separated list of allowed origins.
        allow_credentials: Whether to allow credentials.
        allow_methods: Allowed HTTP methods.
        allow_headers: Allowed HTTP headers.
    """

    model_config = SettingsConfigDict(
        env_prefix="CORS_",
        extra="ignore",
    )

    origins: str = "http://localhost:3000,http://localhost:5173"
    allow_credentials: bool = True
    allow_methods: list[str] = ["*"]
    allow_headers: list[str] = ["*"]

    @property
    def origins_list(self) -> list[str]:
        """Parse origins string into a list."""
        return [origin.strip() for origin in self.origins.split(",") if origin.strip()]


class APISettings(BaseSettings):
    """API server configuration.

    Attributes:
        host: Host to bind to.
        port: Port to listen on.
        title: Title shown in the OpenAPI document.
    """

    model_config = SettingsConfigDict(
        env_prefix="API_",
        extra="ignore",
    )

    host: str = "0.0.0.0"
    port: int = 3003
    title: str = "Title Memory Service"


class Settings(BaseSettings):
    """Main application settings aggregating all subsettings.

    Use get_settings() to obtain a cached singleton instance.

    Attributes:
        environment: Current environment (development, staging, production).
        debug: Enable debug mode.
        log_level: Logging level.
        database: Title memory database settings.
        users_service: Identity (token verification) service settings.
        permissions_service: Permissions service settings.
        skills_service: Competency catalog settings.
        subjects_service: Subject status service settings.
        pagination: Pagination defaults and bounds.
        cors: CORS settings.
        api: API server settings.
    """

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
        case_sensitive=False,
    )

    # Environment
    environment: Literal["development", "staging", "production"] = "development"
    debug: bool = True
    log_level: Literal["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"] = "DEBUG"

    # Subsettings - loaded with their own env prefixes
    database: DatabaseSettings = Field(default_factory=DatabaseSettings)
    users_service: IdentityServiceSettings = Field(default_factory=IdentityServiceSettings)
    permissions_service: PermissionsServiceSettings = Field(default_factory=PermissionsServiceSettings)
    skills_service: CompetencyCatalogSettings = Field(default_factory=CompetencyCatalogSettings)
    subjects_service: SubjectServiceSettings = Field(default_factory=SubjectServiceSettings)
    pagination: PaginationSettings = Field(default_factory=PaginationSettings)
    cors: CORSSettings = Field(default_factory=CORSSettings)
    api: APISettings = Field(default_factory=APISettings)

    @model_validator(mode="after")
    def validate_production_settings(self) -> Self:
        """Validate that production settings are properly configured.

        Raises:
            ValueError: If running in production with insecure defaults.
        """
        if self.environment == "production":
            if self.database.password.get_secret_value() == "titlememory_password":
                raise ValueError(
                    "Database password must be changed from default in production. "
                    "Set DB_PASSWORD environment variable."
                )
            if self.debug:
                raise ValueError("Debug mode must be disabled in production. Set DEBUG=false.")
        return self

    @property
    def is_development(self) -> bool:
        """Check if running in development environment."""
        return self.environment == "development"

    @property
    def is_production(self) -> bool:
        """Check if running in production environment."""
        return self.environment == "production"


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    """Get cached settings instance.

    Uses lru_cache to ensure settings are only loaded once.
    Call clear_settings_cache() if you need to reload settings.

    Returns:
        Cached Settings instance.
    """
    return Settings()


def clear_settings_cache() -> None:
    """Clear the settings cache.

    Call this if you need to reload settings from environment.
    Useful for testing or dynamic configuration updates.
    """
    get_settings.cache_clear()
