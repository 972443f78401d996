"""
System Constants and Enumerations

This module defines system-wide constants and enumerations used across
the AI provider abstraction layer.

Architectural Decision: Centralized constants for maintainability
- Single source of truth for magic numbers (cache sizing, backoff defaults)
- Type-safe enums for provider identity and chain states
- Easy to update and track changes
"""

from enum import Enum

# ============================================================================
# Stage Identifiers (for structured logging)
# ============================================================================


class Stage(str, Enum):
    """
    Processing stages of a chat completion call.

    Format: {SEQUENCE}_{DESCRIPTIVE_NAME}

    Every log line emitted on the request path carries one of these values in
    its ``stage`` field so a single call can be followed through the logs.
    """

    # Main call lifecycle
    INITIALIZATION = "0.0_INITIALIZATION"
    PROVIDER_RESOLUTION = "1.0_PROVIDER_RESOLUTION"
    CACHE_LOOKUP = "2.0_CACHE_LOOKUP"
    BUILD_CHAIN = "3.0_BUILD_CHAIN"
    TRY_PROVIDER = "4.0_TRY_PROVIDER"
    NEXT_PROVIDER = "4.1_NEXT_PROVIDER"
    STREAMING = "5.0_STREAMING"
    USAGE_RECORDING = "6.0_USAGE_RECORDING"
    CACHE_STORE = "6.1_CACHE_STORE"

    # Cross-cutting concerns
    CACHE_SWEEP = "C_CACHE_SWEEP"
    CACHE_EVICTION = "C_CACHE_EVICTION"
    ADAPTER = "A_ADAPTER"
    API = "API_REQUEST"


# ============================================================================
# LLM Providers
# ============================================================================


class ProviderType(str, Enum):
    """
    Supported upstream provider vendors.

    The value is the identifier stored on provider instances and used as the
    adapter registry key.
    """

    OPENAI = "openai"
    ANTHROPIC = "anthropic"
    STRAICO = "straico"
    COHERE = "cohere"


# ============================================================================
# Response Cache Defaults
# ============================================================================

# Time-to-live for cached responses (milliseconds)
CACHE_DEFAULT_TTL_MS = 300_000

# Maximum number of cached entries before bulk eviction kicks in
CACHE_MAX_ENTRIES = 1000

# Number of least-recently-accessed entries removed per eviction
CACHE_EVICTION_BATCH = 100

# Interval between proactive TTL sweeps (seconds)
CACHE_SWEEP_INTERVAL_SECONDS = 60.0

# Prefix for derived cache keys
CACHE_KEY_PREFIX = "chat"


# ============================================================================
# Fallback Defaults
# ============================================================================

FALLBACK_ENABLED = True
FALLBACK_MAX_RETRIES = 3
FALLBACK_RETRY_DELAY_MS = 1000
FALLBACK_ORDER: tuple[ProviderType, ...] = (
    ProviderType.OPENAI,
    ProviderType.ANTHROPIC,
    ProviderType.STRAICO,
    ProviderType.COHERE,
)


# ============================================================================
# Provider Transport Defaults
# ============================================================================

OPENAI_DEFAULT_BASE_URL = "https://api.openai.com/v1"
ANTHROPIC_DEFAULT_BASE_URL = "https://api.anthropic.com/v1"
ANTHROPIC_API_VERSION = "2023-06-01"
PROVIDER_DEFAULT_TIMEOUT = 60.0

# HTTP status codes adapters classify explicitly
HTTP_UNAUTHORIZED = 401
HTTP_FORBIDDEN = 403
HTTP_TOO_MANY_REQUESTS = 429


# ============================================================================
# HTTP Surface
# ============================================================================

HEADER_USER_ID = "X-User-Id"
HEADER_REQUEST_ID = "X-Request-ID"

SSE_EVENT_CHUNK = "chunk"
SSE_EVENT_ERROR = "error"
SSE_DONE_SENTINEL = "[DONE]"
