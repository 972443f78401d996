"""
Base Provider Adapter

This module defines the abstract base class every vendor adapter implements,
and the registry that maps a provider type to its adapter.

Architectural Decision: Adapter + registry instead of a type switch
- One adapter per vendor translates between the vendor-neutral request and
  response models and the vendor's wire format
- Adapters are stateless with respect to credentials: the API key is passed
  on every call, so one adapter serves every provider instance of its type
- Adding a vendor is a registration, not an edit to the orchestrator
"""

import time
import uuid
from abc import ABC, abstractmethod
from collections.abc import AsyncIterator
from typing import Any

import httpx

from ai_abstraction.core.config.constants import (
    HTTP_FORBIDDEN,
    HTTP_TOO_MANY_REQUESTS,
    HTTP_UNAUTHORIZED,
    PROVIDER_DEFAULT_TIMEOUT,
    ProviderType,
    Stage,
)
from ai_abstraction.core.exceptions import (
    AdapterNotRegisteredError,
    ProviderAPIError,
    ProviderAuthenticationError,
    ProviderRateLimitError,
)
from ai_abstraction.core.logging.logger import get_logger, log_stage
from ai_abstraction.models.messages import NormalizedRequest
from ai_abstraction.models.responses import NormalizedResponse, StreamChunk
from ai_abstraction.providers.catalog import ProviderConfig, get_provider_config

logger = get_logger(__name__)


def new_request_id() -> str:
    """Generate a per-call correlation id."""
    return f"req_{uuid.uuid4().hex}"


def elapsed_ms(started: float) -> float:
    """Milliseconds elapsed since a time.perf_counter() reading."""
    return round((time.perf_counter() - started) * 1000, 2)


class BaseProviderAdapter(ABC):
    """
    Abstract base class for vendor adapters.

    STAGE-A: Provider adapter

    Subclasses must implement:
    - normalize_request(): NormalizedRequest -> vendor request body
    - make_request(): unary vendor call
    - make_stream_request(): streaming vendor call
    - normalize_response(): vendor response -> NormalizedResponse

    Transport errors are translated into the exception hierarchy:
    - HTTP 401/403 -> ProviderAuthenticationError
    - HTTP 429 -> ProviderRateLimitError
    - other non-2xx -> ProviderAPIError (status_code + vendor text)
    - network failure -> ProviderNotAvailableError
    """

    provider_type: ProviderType

    def __init__(
        self,
        base_url: str | None = None,
        timeout: float = PROVIDER_DEFAULT_TIMEOUT,
        http_client: httpx.AsyncClient | None = None,
    ):
        """
        Initialize the adapter.

        Args:
            base_url: Vendor API base URL (catalog default when omitted)
            timeout: Per-request network timeout in seconds
            http_client: Shared client; when omitted a client is created per
                call and closed when the call ends
        """
        self.catalog: ProviderConfig = get_provider_config(self.provider_type)
        self.base_url = (base_url or self.catalog.base_url).rstrip("/")
        self.timeout = timeout
        self._http_client = http_client

    @property
    def name(self) -> str:
        return self.provider_type.value

    @property
    def display_name(self) -> str:
        return self.catalog.display_name

    async def is_available(self) -> bool:
        """
        Report whether the vendor can currently be used.

        Never raises: a failing probe is reported as unavailable.
        """
        try:
            return await self._probe()
        except Exception as e:
            log_stage(
                logger,
                Stage.ADAPTER,
                "Availability probe failed",
                level="warning",
                provider=self.name,
                error=str(e),
            )
            return False

    async def _probe(self) -> bool:
        return True

    @abstractmethod
    def normalize_request(self, request: NormalizedRequest) -> dict[str, Any]:
        """Translate a normalized request into the vendor's request body."""
        pass

    @abstractmethod
    async def make_request(self, vendor_request: dict[str, Any], api_key: str) -> dict[str, Any]:
        """
        Perform a unary vendor call.

        Returns:
            The vendor's decoded JSON response
        """
        pass

    @abstractmethod
    def make_stream_request(
        self, vendor_request: dict[str, Any], api_key: str
    ) -> AsyncIterator[StreamChunk]:
        """
        Perform a streaming vendor call.

        Yields chunks with cumulative content; the terminal chunk has
        done=True and carries usage. The transport is released when the
        stream completes and when the consumer closes the iterator early.
        """
        pass

    @abstractmethod
    def normalize_response(
        self, vendor_response: dict[str, Any], request_id: str, response_time_ms: float
    ) -> NormalizedResponse:
        """Translate a vendor response; cached and fallback_used are always False here."""
        pass

    def api_error(self, status_code: int, body: str) -> ProviderAPIError:
        """Build the exception for a non-2xx vendor response."""
        message = f"{self.display_name} API error: {status_code} {body}".rstrip()
        details = {"provider": self.name}

        if status_code in (HTTP_UNAUTHORIZED, HTTP_FORBIDDEN):
            error_class = ProviderAuthenticationError
        elif status_code == HTTP_TOO_MANY_REQUESTS:
            error_class = ProviderRateLimitError
        else:
            error_class = ProviderAPIError

        return error_class(message, status_code=status_code, body=body, details=details)


class AdapterRegistry:
    """
    Maps provider types to adapters.

    STAGE-A.R: Adapter registry

    Usage:
        registry = AdapterRegistry()
        registry.register(OpenAIAdapter())

        adapter = registry.get("openai")
    """

    def __init__(self):
        self._adapters: dict[str, BaseProviderAdapter] = {}

    def register(self, adapter: BaseProviderAdapter, provider_type: str | None = None) -> None:
        """
        Register an adapter, replacing any existing one for the same type.

        Args:
            adapter: Adapter instance
            provider_type: Registry key (defaults to the adapter's provider_type)
        """
        key = str(provider_type or adapter.provider_type.value).lower()
        self._adapters[key] = adapter
        log_stage(logger, Stage.ADAPTER, "Registered adapter", level="debug", provider=key)

    def get(self, provider_type: str) -> BaseProviderAdapter | None:
        """Get the adapter for a provider type, or None."""
        return self._adapters.get(str(getattr(provider_type, "value", provider_type)).lower())

    def require(self, provider_type: str) -> BaseProviderAdapter:
        """
        Get the adapter for a provider type.

        Raises:
            AdapterNotRegisteredError: If no adapter is registered
        """
        adapter = self.get(provider_type)
        if adapter is None:
            raise AdapterNotRegisteredError(
                f"No adapter found for provider: {provider_type}",
                details={"provider": str(getattr(provider_type, "value", provider_type))},
            )
        return adapter

    def has(self, provider_type: str) -> bool:
        return self.get(provider_type) is not None

    def registered_types(self) -> list[str]:
        return list(self._adapters.keys())

    def __contains__(self, provider_type: str) -> bool:
        return self.has(provider_type)
