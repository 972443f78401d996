"""
AI Provider Abstraction Layer
=============================

The facade the chat feature talks to. One call resolves the caller's
provider instance, consults the response cache, and hands the request to the
fallback orchestrator.

CALL LIFECYCLE (unary):
-----------------------
1. PROVIDER_RESOLUTION: look up the primary instance; missing, inactive or
   unsupported instances fail immediately (configuration errors are never
   retried)
2. CACHE_LOOKUP: a hit returns the stored response flagged cached=True
3. BUILD_CHAIN / TRY_PROVIDER / NEXT_PROVIDER: see resilience.fallback
4. USAGE_RECORDING / CACHE_STORE: performed by the orchestrator on success

Streaming follows the same steps without the cache.

DEPENDENCY INJECTION:
---------------------
The provider store, credential decryptor, adapter registry, cache, usage
recorder and sleep function are constructor parameters. Hosts that prefer a
process-wide instance use init_abstraction_layer() / get_abstraction_layer().
"""

import asyncio
import time
from collections.abc import AsyncIterator, Mapping
from contextlib import aclosing
from datetime import datetime, timezone
from typing import Any

from ai_abstraction.cache.response_cache import ResponseCache, generate_cache_key
from ai_abstraction.core.config.constants import Stage
from ai_abstraction.core.config.settings import Settings, get_settings
from ai_abstraction.core.exceptions import (
    ConfigurationError,
    ProviderInactiveError,
    ProviderNotFoundError,
)
from ai_abstraction.core.interfaces import CredentialDecryptor, ProviderStore, UsageRecorder
from ai_abstraction.core.logging.logger import (
    clear_request_id,
    get_logger,
    log_stage,
    set_request_id,
)
from ai_abstraction.models.fallback import FallbackConfig
from ai_abstraction.models.messages import ChatCompletionRequest, NormalizedRequest
from ai_abstraction.models.provider_instance import ProviderInstance
from ai_abstraction.models.responses import NormalizedResponse, StreamingResponse
from ai_abstraction.providers.base_adapter import AdapterRegistry, elapsed_ms, new_request_id
from ai_abstraction.providers.registration import build_default_registry
from ai_abstraction.resilience.fallback import FallbackOrchestrator, SleepFunc

logger = get_logger(__name__)

FallbackOverrides = FallbackConfig | Mapping[str, Any] | None


class AIProviderAbstractionLayer:
    """
    Vendor-agnostic chat completion facade.

    Usage:
        layer = AIProviderAbstractionLayer(provider_store=store, decryptor=decryptor)
        await layer.start()

        response = await layer.chat_completion("prov-1", request, user_id="user-1")

        async for element in layer.chat_completion_stream("prov-1", request, user_id="user-1"):
            print(element.delta, end="")

        await layer.shutdown()
    """

    def __init__(
        self,
        provider_store: ProviderStore,
        decryptor: CredentialDecryptor,
        registry: AdapterRegistry | None = None,
        cache: ResponseCache | None = None,
        usage_recorder: UsageRecorder | None = None,
        settings: Settings | None = None,
        default_fallback_config: FallbackConfig | None = None,
        sleep: SleepFunc = asyncio.sleep,
    ):
        """
        Initialize the facade.

        Args:
            provider_store: Source of provider instances
            decryptor: Turns stored key blobs into API keys
            registry: Adapters by provider type (all catalogued vendors when omitted)
            cache: Response cache (built from settings when omitted)
            usage_recorder: Optional sink for successful-call usage
            settings: Configuration (global settings when omitted)
            default_fallback_config: Library default policy (from settings when omitted)
            sleep: Backoff sleep, replaceable in tests
        """
        self.settings = settings or get_settings()
        self.provider_store = provider_store
        self.registry = registry or build_default_registry(self.settings)
        self.cache = cache if cache is not None else ResponseCache.from_settings(self.settings)
        self.cache_enabled = self.settings.cache.CACHE_ENABLED
        self.default_fallback_config = (
            default_fallback_config or FallbackConfig.from_settings(self.settings)
        )

        self.orchestrator = FallbackOrchestrator(
            registry=self.registry,
            provider_store=provider_store,
            decryptor=decryptor,
            usage_recorder=usage_recorder,
            cache=self.cache if self.cache_enabled else None,
            sleep=sleep,
        )

        log_stage(
            logger,
            Stage.INITIALIZATION,
            "Abstraction layer initialized",
            adapters=self.registry.registered_types(),
            cache_enabled=self.cache_enabled,
            fallback_order=list(self.default_fallback_config.fallback_order),
        )

    # ------------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------------

    async def start(self) -> None:
        """Start background work (the cache TTL sweeper)."""
        if self.cache_enabled:
            self.cache.start_sweeper()

    async def shutdown(self) -> None:
        """Stop background work."""
        await self.cache.stop_sweeper()
        log_stage(logger, Stage.INITIALIZATION, "Abstraction layer shut down")

    # ------------------------------------------------------------------------
    # Chat completion
    # ------------------------------------------------------------------------

    async def chat_completion(
        self,
        provider_id: str,
        request: ChatCompletionRequest,
        user_id: str,
        project_id: str | None = None,
        fallback_config: FallbackOverrides = None,
    ) -> NormalizedResponse:
        """
        Run a unary chat completion.

        Args:
            provider_id: The caller's primary provider instance
            request: Messages and optional target parameters
            user_id: Caller identity
            project_id: Optional project the call is attributed to
            fallback_config: Partial override of the default fallback policy

        Returns:
            NormalizedResponse (metadata.cached=True on a cache hit)

        Raises:
            ProviderNotFoundError: Primary instance does not exist
            ProviderInactiveError: Primary instance is deactivated
            AdapterNotRegisteredError: No adapter for the primary's type
            AllProvidersFailedError: Every candidate of the chain failed
        """
        request_id = new_request_id()
        set_request_id(request_id)
        try:
            primary = await self._resolve_primary(provider_id, request_id)
            normalized = NormalizedRequest.from_request(request, user_id, project_id, stream=False)

            cache_key = None
            if self.cache_enabled:
                cache_key = generate_cache_key(normalized, provider_id)
                cached = self.cache.get(cache_key)
                if cached is not None:
                    log_stage(
                        logger,
                        Stage.CACHE_LOOKUP,
                        "Cache hit",
                        provider_id=provider_id,
                        cache_key=cache_key,
                    )
                    return cached

            config = self.default_fallback_config.merged(fallback_config)
            return await self.orchestrator.run_unary(
                primary, normalized, config, request_id, cache_key=cache_key
            )
        finally:
            clear_request_id()

    async def chat_completion_stream(
        self,
        provider_id: str,
        request: ChatCompletionRequest,
        user_id: str,
        project_id: str | None = None,
        fallback_config: FallbackOverrides = None,
    ) -> AsyncIterator[StreamingResponse]:
        """
        Run a streaming chat completion.

        Yields elements in vendor order; exactly one element (the last) has
        done=True and carries usage. Streaming responses are never cached.
        Closing the iterator early closes the vendor stream.

        Raises:
            Same configuration errors as chat_completion, on first iteration
            AllProvidersFailedError: Every candidate failed before any output
            StreamInterruptedError: The serving candidate failed mid-stream
        """
        request_id = new_request_id()
        set_request_id(request_id)
        try:
            primary = await self._resolve_primary(provider_id, request_id)
            normalized = NormalizedRequest.from_request(request, user_id, project_id, stream=True)
            config = self.default_fallback_config.merged(fallback_config)

            async with aclosing(
                self.orchestrator.run_stream(primary, normalized, config, request_id)
            ) as stream:
                async for element in stream:
                    yield element
        finally:
            clear_request_id()

    # ------------------------------------------------------------------------
    # Cache management
    # ------------------------------------------------------------------------

    def get_cache_stats(self) -> dict[str, Any]:
        return self.cache.stats()

    def clear_cache(self) -> None:
        self.cache.clear()
        log_stage(logger, Stage.CACHE_LOOKUP, "Response cache cleared")

    # ------------------------------------------------------------------------
    # Health
    # ------------------------------------------------------------------------

    async def get_provider_health(self) -> dict[str, dict[str, Any]]:
        """
        Check availability of every registered adapter.

        Returns:
            Mapping of provider type to ``available``, ``response_time_ms``
            and ``last_checked``. Adapters are checked one after another.
        """
        health: dict[str, dict[str, Any]] = {}
        for provider_type in self.registry.registered_types():
            adapter = self.registry.get(provider_type)
            started = time.perf_counter()
            available = await adapter.is_available() if adapter is not None else False
            health[provider_type] = {
                "available": available,
                "response_time_ms": elapsed_ms(started),
                "last_checked": datetime.now(timezone.utc),
            }

        log_stage(
            logger,
            Stage.ADAPTER,
            "Provider health checked",
            available=sorted(p for p, h in health.items() if h["available"]),
            unavailable=sorted(p for p, h in health.items() if not h["available"]),
        )
        return health

    # ------------------------------------------------------------------------
    # Internals
    # ------------------------------------------------------------------------

    async def _resolve_primary(self, provider_id: str, request_id: str) -> ProviderInstance:
        """
        Load and validate the primary provider instance.

        STAGE-1.0: Provider resolution
        """
        instance = await self.provider_store.get_provider(provider_id)
        if instance is None:
            raise ProviderNotFoundError(
                f"Provider {provider_id} not found",
                request_id=request_id,
                details={"provider_id": provider_id},
            )

        if not instance.is_active:
            raise ProviderInactiveError(
                f"Provider {provider_id} is not active",
                request_id=request_id,
                details={"provider_id": provider_id, "provider": instance.provider},
            )

        try:
            self.registry.require(instance.provider)
        except ConfigurationError as e:
            raise e.with_context(provider_id=provider_id) from None

        log_stage(
            logger,
            Stage.PROVIDER_RESOLUTION,
            "Primary provider resolved",
            provider_id=provider_id,
            provider=instance.provider,
        )
        return instance


# ============================================================================
# FACTORY AND GLOBAL INSTANCE
# ============================================================================


def create_abstraction_layer(
    provider_store: ProviderStore,
    decryptor: CredentialDecryptor,
    **kwargs,
) -> AIProviderAbstractionLayer:
    """
    Build a facade with default wiring for anything not supplied.

    Keyword arguments are passed through to AIProviderAbstractionLayer.
    """
    return AIProviderAbstractionLayer(provider_store=provider_store, decryptor=decryptor, **kwargs)


_abstraction_layer: AIProviderAbstractionLayer | None = None


async def init_abstraction_layer(
    provider_store: ProviderStore,
    decryptor: CredentialDecryptor,
    **kwargs,
) -> AIProviderAbstractionLayer:
    """
    Create, start and register the process-wide facade.

    Returns:
        AIProviderAbstractionLayer: Started facade
    """
    global _abstraction_layer

    layer = create_abstraction_layer(provider_store, decryptor, **kwargs)
    await layer.start()
    _abstraction_layer = layer
    return layer


def get_abstraction_layer() -> AIProviderAbstractionLayer:
    """
    Get the process-wide facade.

    Raises:
        ConfigurationError: If init_abstraction_layer() has not been called
    """
    if _abstraction_layer is None:
        raise ConfigurationError("Abstraction layer not initialized")
    return _abstraction_layer


async def close_abstraction_layer() -> None:
    """Shut down and forget the process-wide facade."""
    global _abstraction_layer

    if _abstraction_layer is not None:
        await _abstraction_layer.shutdown()
        _abstraction_layer = None
