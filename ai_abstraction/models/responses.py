"""
Response Models

Vendor-agnostic representation of chat completion results, both unary
(NormalizedResponse) and streaming (StreamChunk at the adapter seam,
StreamingResponse at the facade seam).
"""

from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum

from pydantic import BaseModel, Field


class FinishReason(str, Enum):
    """Normalized generation termination cause."""

    STOP = "stop"
    LENGTH = "length"
    CONTENT_FILTER = "content_filter"
    ERROR = "error"


class TokenUsage(BaseModel):
    """Token counts reported by the vendor."""

    prompt_tokens: int = Field(default=0, ge=0)
    completion_tokens: int = Field(default=0, ge=0)
    total_tokens: int = Field(default=0, ge=0)

    @classmethod
    def from_counts(cls, prompt_tokens: int, completion_tokens: int) -> "TokenUsage":
        return cls(
            prompt_tokens=prompt_tokens,
            completion_tokens=completion_tokens,
            total_tokens=prompt_tokens + completion_tokens,
        )


class ResponseMetadata(BaseModel):
    """
    Chain-level facts about how a response was produced.

    Adapters always emit cached=False / fallback_used=False; the orchestrator
    and the cache overwrite these afterwards.
    """

    request_id: str
    response_time_ms: float = Field(default=0.0, ge=0.0)
    cached: bool = False
    fallback_used: bool = False
    original_provider: str | None = None


class NormalizedResponse(BaseModel):
    """A complete, vendor-agnostic chat completion result."""

    id: str
    content: str
    model: str
    provider: str
    usage: TokenUsage = Field(default_factory=TokenUsage)
    finish_reason: FinishReason = FinishReason.STOP
    metadata: ResponseMetadata

    def with_metadata(self, **changes) -> "NormalizedResponse":
        """Return a copy whose metadata has the given fields replaced."""
        return self.model_copy(update={"metadata": self.metadata.model_copy(update=changes)})


@dataclass
class StreamChunk:
    """
    One partial-content chunk produced by an adapter stream.

    Attributes:
        id: Vendor response id (if known)
        content: Cumulative content so far
        delta: Content added by this chunk
        done: True on the terminal chunk only
        usage: Token usage (terminal chunk only)
        finish_reason: Normalized finish reason (terminal chunk only)
        model: Model that produced the chunk (if reported)
        timestamp: When the chunk was received
    """

    id: str | None
    content: str
    delta: str
    done: bool = False
    usage: TokenUsage | None = None
    finish_reason: FinishReason | None = None
    model: str | None = None
    timestamp: str = field(
        default_factory=lambda: datetime.now(timezone.utc).isoformat().replace("+00:00", "Z")
    )


class StreamingResponse(BaseModel):
    """One element of the facade's streaming response sequence."""

    id: str
    content: str
    delta: str
    done: bool = False
    usage: TokenUsage | None = None
    provider: str
    fallback_used: bool = False
    original_provider: str | None = None
