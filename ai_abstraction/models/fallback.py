"""
Fallback Configuration Model

Per-request fallback policy, merged over library defaults.
"""

from collections.abc import Mapping
from typing import Any

from pydantic import BaseModel, Field, field_validator

from ai_abstraction.core.config.constants import (
    FALLBACK_ENABLED,
    FALLBACK_MAX_RETRIES,
    FALLBACK_ORDER,
    FALLBACK_RETRY_DELAY_MS,
)


class FallbackConfig(BaseModel):
    """
    Fallback chain policy.

    Attributes:
        enabled: When False the chain is just the primary provider
        max_retries: Chain length is capped at max_retries + 1
        retry_delay_ms: Base delay; attempt i waits retry_delay_ms * (i + 1)
        fallback_order: Provider types tried after the primary, in order
        skip_providers: Provider types never tried as fallbacks
    """

    model_config = {"frozen": True}

    enabled: bool = FALLBACK_ENABLED
    max_retries: int = Field(default=FALLBACK_MAX_RETRIES, ge=0)
    retry_delay_ms: int = Field(default=FALLBACK_RETRY_DELAY_MS, ge=0)
    fallback_order: tuple[str, ...] = tuple(provider.value for provider in FALLBACK_ORDER)
    skip_providers: tuple[str, ...] = ()

    @field_validator("fallback_order", "skip_providers", mode="before")
    @classmethod
    def normalize_provider_names(cls, v):
        """Accept enum members or strings; store lower-case provider type values."""
        if isinstance(v, str):
            v = [v]
        return tuple(str(getattr(item, "value", item)).lower() for item in v)

    def merged(self, overrides: "FallbackConfig | Mapping[str, Any] | None") -> "FallbackConfig":
        """
        Merge a partial override over this config.

        Only fields explicitly present in the override replace the base
        values; everything else keeps the base (library default) value.
        """
        if overrides is None:
            return self
        if isinstance(overrides, FallbackConfig):
            updates = overrides.model_dump(exclude_unset=True)
        else:
            updates = {key: value for key, value in overrides.items() if value is not None}
        return FallbackConfig.model_validate({**self.model_dump(), **updates})

    @classmethod
    def from_settings(cls, settings) -> "FallbackConfig":
        """Build the library default from application settings."""
        fallback = settings.fallback
        return cls(
            enabled=fallback.FALLBACK_ENABLED,
            max_retries=fallback.FALLBACK_MAX_RETRIES,
            retry_delay_ms=fallback.FALLBACK_RETRY_DELAY_MS,
            fallback_order=fallback.FALLBACK_ORDER,
        )
