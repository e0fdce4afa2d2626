# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Application configuration settings using Pydantic Settings.

This module provides centralized configuration management for StudySync.
Settings are loaded from environment variables with sensible defaults.

The Settings class is the main entry point and aggregates all subsettings.
A singleton instance is provided via get_settings() for dependency injection.

Example:
    >>> from src.core.config.settings import get_settings
    >>> settings = get_settings()
    >>> print(settings.api.base_url)
    'http://localhost:5000'
"""

from functools import lru_cache
from typing import Literal, Self

from pydantic import Field, SecretStr, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class APISettings(BaseSettings):
    """StudySync REST backend configuration.

    Attributes:
        base_url: Base URL of the backend API.
        auth_token: Bearer token sent with every request, if set.
        timeout: Request timeout in seconds.
        max_retries: Retry attempts for transient (network, 5xx) failures.
        retry_delay: Initial backoff delay in seconds, doubled per attempt.
    """

    model_config = SettingsConfigDict(
        env_prefix="STUDYSYNC_API_",
        extra="ignore",
    )

    base_url: str = "http://localhost:5000"
    auth_token: SecretStr | None = None
    timeout: float = 30.0
    max_retries: int = Field(default=3, ge=0)
    retry_delay: float = Field(default=1.0, ge=0.0)

    @property
    def auth_headers(self) -> dict[str, str]:
        """Build authorization headers for API requests."""
        if self.auth_token is None:
            return {}
        return {"Authorization": f"Bearer {self.auth_token.get_secret_value()}"}


class PaginationSettings(BaseSettings):
    """Infinite-scroll pagination configuration.

    Attributes:
        initial_limit: Page size of the first (replace) fetch of a listing.
        load_more_limit: Page size of every subsequent (append) fetch.
        clear_before_fetch: Resource keys whose collection is emptied as soon
            as a replace fetch starts instead of when its response arrives.
    """

    model_config = SettingsConfigDict(
        env_prefix="PAGINATION_",
        extra="ignore",
    )

    initial_limit: int = Field(default=16, gt=0)
    load_more_limit: int = Field(default=12, gt=0)
    clear_before_fetch: list[str] = Field(default_factory=lambda: ["documents"])


class Settings(BaseSettings):
    """Main application settings aggregating all subsettings.

    Use get_settings() to obtain a cached singleton instance.

    Attributes:
        environment: Current environment (development, staging, production).
        debug: Enable debug mode.
        log_level: Logging level.
        api: Backend API settings.
        pagination: Pagination settings.
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
    api: APISettings = Field(default_factory=APISettings)
    pagination: PaginationSettings = Field(default_factory=PaginationSettings)

    @model_validator(mode="after")
    def validate_production_settings(self) -> Self:
        """Validate that production settings are properly configured.

        Raises:
            ValueError: If running in production against a plain-HTTP backend.
        """
        if self.environment == "production" and self.api.base_url.startswith("http://"):
            raise ValueError(
                "Backend API must be served over HTTPS in production. "
                "Set STUDYSYNC_API_BASE_URL environment variable."
            )
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
