"""
HTTP Request/Response Schemas

Pydantic models for the HTTP surface plus SSE event formatting.
"""

from datetime import datetime
from typing import Any

import orjson
from pydantic import BaseModel, Field

from ai_abstraction.models.messages import ChatCompletionRequest


class FallbackOverride(BaseModel):
    """Partial fallback policy; omitted fields keep the library default."""

    enabled: bool | None = None
    max_retries: int | None = Field(default=None, ge=0)
    retry_delay_ms: int | None = Field(default=None, ge=0)
    fallback_order: list[str] | None = None
    skip_providers: list[str] | None = None

    def to_overrides(self) -> dict[str, Any]:
        return self.model_dump(exclude_none=True)


class ChatRequestBody(ChatCompletionRequest):
    """Body of POST /chat and POST /chat/stream."""

    provider_id: str = Field(..., min_length=1)
    project_id: str | None = None
    fallback_config: FallbackOverride | None = None

    def chat_request(self) -> ChatCompletionRequest:
        return ChatCompletionRequest(
            messages=self.messages,
            model=self.model,
            max_tokens=self.max_tokens,
            temperature=self.temperature,
        )

    def fallback_overrides(self) -> dict[str, Any] | None:
        return self.fallback_config.to_overrides() if self.fallback_config else None


class CacheStatsResponse(BaseModel):
    size: int
    hit_rate: float
    entry_count: int
    average_age_seconds: float
    hits: int
    misses: int
    max_entries: int


class ProviderHealth(BaseModel):
    available: bool
    response_time_ms: float
    last_checked: datetime


class ProviderHealthResponse(BaseModel):
    """Availability of every registered adapter plus cache statistics."""

    health: dict[str, ProviderHealth]
    cache: CacheStatsResponse
    timestamp: datetime


class SSEEvent(BaseModel):
    """
    An SSE event to send to the client.
    """

    model_config = {"frozen": True}

    event: str | None = None
    data: Any
    id: str | None = None

    def format(self) -> str:
        """Format as SSE protocol string."""
        lines = []
        if self.id:
            lines.append(f"id: {self.id}")
        if self.event:
            lines.append(f"event: {self.event}")

        if isinstance(self.data, str):
            lines.append(f"data: {self.data}")
        else:
            lines.append(f"data: {orjson.dumps(self.data, default=str).decode()}")

        return "\n".join(lines) + "\n\n"


__all__ = [
    "CacheStatsResponse",
    "ChatRequestBody",
    "FallbackOverride",
    "ProviderHealth",
    "ProviderHealthResponse",
    "SSEEvent",
]
