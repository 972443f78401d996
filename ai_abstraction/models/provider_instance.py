"""
Provider Instance Models

A provider instance is a caller's configured credential + settings binding to
one vendor type. Instances are owned by an external store; this layer only
reads them.
"""

from datetime import datetime, timezone

from pydantic import BaseModel, Field, field_validator


class ProviderSettings(BaseModel):
    """Per-instance generation defaults."""

    default_model: str = Field(..., min_length=1)
    max_tokens: int = Field(default=4000, gt=0)
    temperature: float = Field(default=0.7, ge=0.0, le=2.0)


class ProviderInstance(BaseModel):
    """A caller's configured provider binding."""

    id: str
    user_id: str
    provider: str
    name: str | None = None
    is_active: bool = True
    settings: ProviderSettings
    encrypted_api_key: str = Field(..., repr=False)

    @field_validator("provider", mode="before")
    @classmethod
    def normalize_provider(cls, v):
        return str(getattr(v, "value", v)).lower()


class UsageRecord(BaseModel):
    """One successful upstream call, handed to the usage sink."""

    user_id: str
    project_id: str | None = None
    provider: str
    model: str
    prompt_tokens: int = Field(default=0, ge=0)
    completion_tokens: int = Field(default=0, ge=0)
    duration_ms: float = Field(default=0.0, ge=0.0)
    cost: float = Field(default=0.0, ge=0.0)
    created_at: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))

    @property
    def total_tokens(self) -> int:
        return self.prompt_tokens + self.completion_tokens
