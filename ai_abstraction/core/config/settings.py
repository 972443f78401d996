"""
Centralized Configuration Module using Pydantic Settings

This module provides type-safe, environment-based configuration for the
abstraction layer. All tunables (cache sizing, fallback defaults, vendor
endpoints, logging) are loaded here so that every component reads the same
values.

Architectural Decision: Pydantic Settings for type safety and validation
- Environment variable loading with .env support
- Type validation at startup (fail fast on misconfiguration)
- Nested groups for readability: settings.cache.CACHE_TTL_MS
- Easy testing with reload_settings()
"""

from typing import Literal

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from ai_abstraction.core.config.constants import (
    ANTHROPIC_API_VERSION,
    ANTHROPIC_DEFAULT_BASE_URL,
    CACHE_DEFAULT_TTL_MS,
    CACHE_EVICTION_BATCH,
    CACHE_MAX_ENTRIES,
    CACHE_SWEEP_INTERVAL_SECONDS,
    FALLBACK_ENABLED,
    FALLBACK_MAX_RETRIES,
    FALLBACK_ORDER,
    FALLBACK_RETRY_DELAY_MS,
    OPENAI_DEFAULT_BASE_URL,
    PROVIDER_DEFAULT_TIMEOUT,
)


class CacheSettings(BaseSettings):
    """
    Response cache configuration.

    STAGE-2: Cache sizing and expiry
    """

    CACHE_ENABLED: bool = Field(default=True, description="Enable response caching")
    CACHE_TTL_MS: int = Field(default=CACHE_DEFAULT_TTL_MS, gt=0, description="Entry TTL (ms)")
    CACHE_MAX_ENTRIES: int = Field(default=CACHE_MAX_ENTRIES, gt=0, description="Capacity ceiling")
    CACHE_EVICTION_BATCH: int = Field(
        default=CACHE_EVICTION_BATCH, gt=0, description="Entries evicted when over capacity"
    )
    CACHE_SWEEP_INTERVAL_SECONDS: float = Field(
        default=CACHE_SWEEP_INTERVAL_SECONDS, gt=0, description="Periodic TTL sweep interval"
    )

    model_config = SettingsConfigDict(env_prefix="", case_sensitive=True, extra="ignore")


class FallbackSettings(BaseSettings):
    """
    Library defaults for the provider fallback chain.

    STAGE-3: Fallback chain defaults

    Callers may still override any of these per request.
    """

    FALLBACK_ENABLED: bool = Field(default=FALLBACK_ENABLED, description="Enable fallback")
    FALLBACK_MAX_RETRIES: int = Field(default=FALLBACK_MAX_RETRIES, ge=0)
    FALLBACK_RETRY_DELAY_MS: int = Field(default=FALLBACK_RETRY_DELAY_MS, ge=0)
    FALLBACK_ORDER: list[str] = Field(
        default=[provider.value for provider in FALLBACK_ORDER],
        description="Vendor priority order tried after the primary provider",
    )

    model_config = SettingsConfigDict(env_prefix="", case_sensitive=True, extra="ignore")


class ProviderTransportSettings(BaseSettings):
    """
    Vendor endpoint configuration.

    STAGE-A: Adapter transport configuration
    """

    OPENAI_BASE_URL: str = Field(default=OPENAI_DEFAULT_BASE_URL, description="OpenAI base URL")
    ANTHROPIC_BASE_URL: str = Field(
        default=ANTHROPIC_DEFAULT_BASE_URL, description="Anthropic base URL"
    )
    ANTHROPIC_VERSION: str = Field(default=ANTHROPIC_API_VERSION, description="anthropic-version")
    PROVIDER_TIMEOUT: float = Field(
        default=PROVIDER_DEFAULT_TIMEOUT, gt=0, description="Per-request network timeout (s)"
    )

    model_config = SettingsConfigDict(env_prefix="", case_sensitive=True, extra="ignore")


class LoggingSettings(BaseSettings):
    """
    Logging configuration for structured logging.

    STAGE-L: Logging configuration
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

    model_config = SettingsConfigDict(env_prefix="", case_sensitive=True, extra="ignore")


class ApplicationSettings(BaseSettings):
    """General application settings."""

    ENVIRONMENT: Literal["development", "staging", "production", "test"] = Field(
        default="development", description="Application environment"
    )
    APP_NAME: str = Field(default="AI Provider Abstraction Layer", description="Application name")
    APP_VERSION: str = Field(default="1.0.0", description="Application version")

    model_config = SettingsConfigDict(env_prefix="", case_sensitive=True, extra="ignore")


class Settings(BaseSettings):
    """
    Main settings class that aggregates all configuration sections.

    Usage:
        from ai_abstraction.core.config import get_settings

        settings = get_settings()
        ttl = settings.cache.CACHE_TTL_MS
        order = settings.fallback.FALLBACK_ORDER
    """

    cache: CacheSettings = Field(default_factory=CacheSettings)
    fallback: FallbackSettings = Field(default_factory=FallbackSettings)
    providers: ProviderTransportSettings = Field(default_factory=ProviderTransportSettings)
    logging: LoggingSettings = Field(default_factory=LoggingSettings)
    app: ApplicationSettings = Field(default_factory=ApplicationSettings)

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=True,
        extra="ignore",
    )


# Global settings instance (singleton pattern)
_settings: Settings | None = None


def get_settings() -> Settings:
    """
    Get the global settings instance (singleton).

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
