"""
AI Provider Abstraction Layer

Normalizes chat completions across upstream LLM vendors, caches unary
responses, and falls back across an ordered chain of providers.

Usage:
    from ai_abstraction import ChatCompletionRequest, ChatMessage, create_abstraction_layer

    layer = create_abstraction_layer(provider_store=store, decryptor=decryptor)
    response = await layer.chat_completion(
        "prov-1",
        ChatCompletionRequest(messages=[ChatMessage(role="user", content="Hello")]),
        user_id="user-1",
    )
"""

from ai_abstraction.core.exceptions import (
    AIAbstractionError,
    AllProvidersFailedError,
    ProviderInactiveError,
    ProviderNotFoundError,
    StreamInterruptedError,
)
from ai_abstraction.models import (
    ChatCompletionRequest,
    ChatMessage,
    FallbackConfig,
    FinishReason,
    NormalizedRequest,
    NormalizedResponse,
    StreamingResponse,
    TokenUsage,
)
from ai_abstraction.services.abstraction_layer import (
    AIProviderAbstractionLayer,
    create_abstraction_layer,
    get_abstraction_layer,
)

__version__ = "1.0.0"

__all__ = [
    "AIAbstractionError",
    "AIProviderAbstractionLayer",
    "AllProvidersFailedError",
    "ChatCompletionRequest",
    "ChatMessage",
    "FallbackConfig",
    "FinishReason",
    "NormalizedRequest",
    "NormalizedResponse",
    "ProviderInactiveError",
    "ProviderNotFoundError",
    "StreamInterruptedError",
    "StreamingResponse",
    "TokenUsage",
    "create_abstraction_layer",
    "get_abstraction_layer",
    "__version__",
]
