"""
Data models shared by the cache, the adapters, the orchestrator and the facade.
"""

from ai_abstraction.models.fallback import FallbackConfig
from ai_abstraction.models.messages import (
    ChatCompletionRequest,
    ChatMessage,
    MessageRole,
    NormalizedRequest,
)
from ai_abstraction.models.provider_instance import ProviderInstance, ProviderSettings, UsageRecord
from ai_abstraction.models.responses import (
    FinishReason,
    NormalizedResponse,
    ResponseMetadata,
    StreamChunk,
    StreamingResponse,
    TokenUsage,
)

__all__ = [
    "ChatCompletionRequest",
    "ChatMessage",
    "FallbackConfig",
    "FinishReason",
    "MessageRole",
    "NormalizedRequest",
    "NormalizedResponse",
    "ProviderInstance",
    "ProviderSettings",
    "ResponseMetadata",
    "StreamChunk",
    "StreamingResponse",
    "TokenUsage",
    "UsageRecord",
]
