"""
Fallback Orchestrator
=====================

Walks an ordered chain of provider types for one chat completion call until a
candidate succeeds or the chain is exhausted.

THE CHAIN WALK:
---------------

┌─────────────────────────────────────────────────────────────────┐
│ BUILD_CHAIN                                                     │
│ - [primary] + fallback_order minus primary and skip_providers   │
│ - Truncated to max_retries + 1; just [primary] when disabled    │
└─────────────────────────────────────────────────────────────────┘
                            ↓
┌─────────────────────────────────────────────────────────────────┐
│ TRY_PROVIDER (candidate i)                                      │
│ - No adapter registered -> skipped (no delay, no error)         │
│ - Availability probe, instance resolution, key decryption       │
│ - Vendor call with the candidate's defaults applied             │
└─────────────────────────────────────────────────────────────────┘
           ↓ success                          ↓ failure
┌───────────────────────────┐   ┌─────────────────────────────────┐
│ SUCCESS                   │   │ NEXT_PROVIDER                   │
│ - Stamp fallback metadata │   │ - Log provider + error          │
│ - Record usage            │   │ - Sleep retry_delay_ms * (i+1)  │
│ - Cache (unary only)      │   │   when candidates remain        │
└───────────────────────────┘   │ - TRY_PROVIDER or EXHAUSTED     │
                                └─────────────────────────────────┘

EXHAUSTED raises AllProvidersFailedError carrying the last failure. A stream
that fails after delivering its first chunk raises StreamInterruptedError
instead (INTERRUPTED): partial output cannot be rewound onto another vendor.

Candidate attempts are strictly sequential. The only resilience mechanism is
the chain itself: no same-provider retry, no circuit breaker.
"""

import asyncio
import inspect
import time
from collections.abc import AsyncIterator, Awaitable, Callable
from contextlib import aclosing
from dataclasses import dataclass, field
from enum import Enum
from typing import Any

from ai_abstraction.cache.response_cache import ResponseCache
from ai_abstraction.core.config.constants import Stage
from ai_abstraction.core.exceptions import (
    AllProvidersFailedError,
    CredentialDecryptionError,
    FallbackStateError,
    ProviderNotAvailableError,
    ProviderNotFoundError,
    StreamInterruptedError,
)
from ai_abstraction.core.interfaces import CredentialDecryptor, ProviderStore, UsageRecorder
from ai_abstraction.core.logging.logger import get_logger, log_stage
from ai_abstraction.models.fallback import FallbackConfig
from ai_abstraction.models.messages import NormalizedRequest
from ai_abstraction.models.provider_instance import ProviderInstance, UsageRecord
from ai_abstraction.models.responses import NormalizedResponse, StreamingResponse, TokenUsage
from ai_abstraction.providers.base_adapter import AdapterRegistry, BaseProviderAdapter, elapsed_ms
from ai_abstraction.providers.catalog import validate_api_key_format

logger = get_logger(__name__)

SleepFunc = Callable[[float], Awaitable[Any]]


# ============================================================================
# STATE MACHINE
# ============================================================================


class FallbackState(str, Enum):
    BUILD_CHAIN = "build_chain"
    TRY_PROVIDER = "try_provider"
    NEXT_PROVIDER = "next_provider"
    SUCCESS = "success"
    EXHAUSTED = "exhausted"
    INTERRUPTED = "interrupted"


TRANSITIONS: dict[FallbackState, frozenset[FallbackState]] = {
    FallbackState.BUILD_CHAIN: frozenset({FallbackState.TRY_PROVIDER, FallbackState.EXHAUSTED}),
    FallbackState.TRY_PROVIDER: frozenset(
        {FallbackState.SUCCESS, FallbackState.NEXT_PROVIDER, FallbackState.INTERRUPTED}
    ),
    FallbackState.NEXT_PROVIDER: frozenset({FallbackState.TRY_PROVIDER, FallbackState.EXHAUSTED}),
    FallbackState.SUCCESS: frozenset(),
    FallbackState.EXHAUSTED: frozenset(),
    FallbackState.INTERRUPTED: frozenset(),
}


def build_fallback_chain(primary: str, config: FallbackConfig) -> list[str]:
    """
    Build the ordered list of provider types to try.

    Example:
        primary="openai", fallback_order=[openai, anthropic, straico, cohere],
        skip_providers=[straico], max_retries=2 -> ["openai", "anthropic"]

    The primary is always first and never duplicated; skip_providers never
    removes the primary.
    """
    primary = str(getattr(primary, "value", primary)).lower()
    if not config.enabled:
        return [primary]

    chain = [primary]
    for provider_type in config.fallback_order:
        if provider_type == primary or provider_type in config.skip_providers:
            continue
        if provider_type not in chain:
            chain.append(provider_type)

    return chain[: config.max_retries + 1]


@dataclass
class ChainRun:
    """
    Mutable bookkeeping for one walk of the chain.

    Attributes:
        request_id: Correlation id of the call
        primary: Primary provider type
        chain: Ordered provider types
        state: Current state
        attempted: Provider types that were attempted and failed
        errors: One summary per failure, in order
        last_error: Most recent failure
    """

    request_id: str
    primary: str
    chain: list[str] = field(default_factory=list)
    state: FallbackState = FallbackState.BUILD_CHAIN
    attempted: list[str] = field(default_factory=list)
    errors: list[dict[str, str]] = field(default_factory=list)
    last_error: Exception | None = None
    retry_delay_ms: int = 0
    started: float = field(default_factory=time.perf_counter)

    def transition(self, new_state: FallbackState) -> None:
        if new_state not in TRANSITIONS[self.state]:
            raise FallbackStateError(
                f"Illegal fallback transition {self.state.value} -> {new_state.value}",
                request_id=self.request_id,
            )
        self.state = new_state

    def backoff_seconds(self, index: int) -> float:
        """Linear backoff before the candidate after index."""
        return self.retry_delay_ms * (index + 1) / 1000

    def record_failure(self, provider_type: str, error: Exception) -> None:
        self.attempted.append(provider_type)
        self.errors.append(
            {"provider": provider_type, "error_type": type(error).__name__, "message": str(error)}
        )
        self.last_error = error

    def exhausted_error(self) -> AllProvidersFailedError:
        last = str(self.last_error) if self.last_error else "no provider could be attempted"
        return AllProvidersFailedError(
            f"All providers failed. Last error: {last}",
            request_id=self.request_id,
            details={"attempted_providers": list(self.attempted), "errors": list(self.errors)},
        )


@dataclass
class Candidate:
    """A chain candidate that is ready to be invoked."""

    index: int
    provider_type: str
    adapter: BaseProviderAdapter
    instance: ProviderInstance
    api_key: str
    request: NormalizedRequest
    vendor_request: dict[str, Any]

    @property
    def is_fallback(self) -> bool:
        return self.index > 0


# ============================================================================
# ORCHESTRATOR
# ============================================================================


class FallbackOrchestrator:
    """
    Executes the fallback chain for unary and streaming calls.

    All collaborators are injected; ``sleep`` can be replaced in tests so
    backoff delays are observed without waiting.
    """

    def __init__(
        self,
        registry: AdapterRegistry,
        provider_store: ProviderStore,
        decryptor: CredentialDecryptor,
        usage_recorder: UsageRecorder | None = None,
        cache: ResponseCache | None = None,
        sleep: SleepFunc = asyncio.sleep,
    ):
        self.registry = registry
        self.provider_store = provider_store
        self.decryptor = decryptor
        self.usage_recorder = usage_recorder
        self.cache = cache
        self._sleep = sleep

    # -------------------------------------------------------------------------
    # Unary
    # -------------------------------------------------------------------------

    async def run_unary(
        self,
        primary: ProviderInstance,
        request: NormalizedRequest,
        config: FallbackConfig,
        request_id: str,
        cache_key: str | None = None,
    ) -> NormalizedResponse:
        """
        Walk the chain for a unary call.

        Returns:
            The first successful response, stamped with fallback metadata

        Raises:
            AllProvidersFailedError: When every candidate failed
        """
        run = self._start_run(primary, config, request_id)

        for index, provider_type in enumerate(run.chain):
            run.transition(FallbackState.TRY_PROVIDER)
            try:
                candidate = await self._prepare_candidate(
                    index, provider_type, primary, request, run
                )
                if candidate is None:
                    run.transition(FallbackState.NEXT_PROVIDER)
                    continue

                vendor_response = await candidate.adapter.make_request(
                    candidate.vendor_request, candidate.api_key
                )
                response = candidate.adapter.normalize_response(
                    vendor_response, request_id, elapsed_ms(run.started)
                )
            except Exception as e:
                await self._on_failure(run, index, provider_type, e)
                continue

            response = response.with_metadata(
                fallback_used=candidate.is_fallback, original_provider=run.primary
            )
            run.transition(FallbackState.SUCCESS)
            log_stage(
                logger,
                Stage.TRY_PROVIDER,
                "Provider succeeded",
                provider=provider_type,
                model=response.model,
                fallback_used=candidate.is_fallback,
                response_time_ms=response.metadata.response_time_ms,
            )

            await self._record_usage(
                candidate, response.model, response.usage, response.metadata.response_time_ms
            )
            if self.cache is not None and cache_key is not None:
                self.cache.put(cache_key, response)
                log_stage(
                    logger, Stage.CACHE_STORE, "Response cached", level="debug", cache_key=cache_key
                )

            return response

        raise self._exhaust(run)

    # -------------------------------------------------------------------------
    # Streaming
    # -------------------------------------------------------------------------

    async def run_stream(
        self,
        primary: ProviderInstance,
        request: NormalizedRequest,
        config: FallbackConfig,
        request_id: str,
    ) -> AsyncIterator[StreamingResponse]:
        """
        Walk the chain for a streaming call.

        Yields the successful candidate's elements in order. The terminal
        element has done=True and is the only one carrying usage; one is
        synthesized when the vendor stream ends without it.

        Raises:
            AllProvidersFailedError: When every candidate failed before
                delivering output
            StreamInterruptedError: When a candidate failed after its first
                chunk was delivered
        """
        run = self._start_run(primary, config, request_id)

        for index, provider_type in enumerate(run.chain):
            run.transition(FallbackState.TRY_PROVIDER)
            try:
                candidate = await self._prepare_candidate(
                    index, provider_type, primary, request, run
                )
            except Exception as e:
                await self._on_failure(run, index, provider_type, e)
                continue

            if candidate is None:
                run.transition(FallbackState.NEXT_PROVIDER)
                continue

            delivered = False
            terminal: StreamingResponse | None = None
            response_id = request_id
            content = ""
            model = candidate.request.model

            try:
                async with aclosing(
                    candidate.adapter.make_stream_request(
                        candidate.vendor_request, candidate.api_key
                    )
                ) as stream:
                    async for chunk in stream:
                        response_id = chunk.id or response_id
                        content = chunk.content
                        model = chunk.model or model

                        element = StreamingResponse(
                            id=response_id,
                            content=chunk.content,
                            delta=chunk.delta,
                            done=chunk.done,
                            usage=(chunk.usage or TokenUsage()) if chunk.done else None,
                            provider=provider_type,
                            fallback_used=candidate.is_fallback,
                            original_provider=run.primary,
                        )
                        if chunk.done:
                            terminal = element
                            break

                        delivered = True
                        yield element
            except Exception as e:
                if delivered:
                    run.transition(FallbackState.INTERRUPTED)
                    log_stage(
                        logger,
                        Stage.STREAMING,
                        "Stream interrupted after partial output",
                        level="error",
                        provider=provider_type,
                        error_type=type(e).__name__,
                        error=str(e),
                    )
                    raise StreamInterruptedError(
                        f"Stream from {provider_type} interrupted: {e}",
                        request_id=request_id,
                        details={"provider": provider_type, "original_error": type(e).__name__},
                    ) from e

                await self._on_failure(run, index, provider_type, e)
                continue

            if terminal is None:
                terminal = StreamingResponse(
                    id=response_id,
                    content=content,
                    delta="",
                    done=True,
                    usage=TokenUsage(),
                    provider=provider_type,
                    fallback_used=candidate.is_fallback,
                    original_provider=run.primary,
                )

            # Usage is recorded before the terminal element is yielded
            run.transition(FallbackState.SUCCESS)
            duration_ms = elapsed_ms(run.started)
            log_stage(
                logger,
                Stage.STREAMING,
                "Stream completed",
                provider=provider_type,
                model=model,
                fallback_used=candidate.is_fallback,
                content_length=len(terminal.content),
                duration_ms=duration_ms,
            )
            await self._record_usage(candidate, model, terminal.usage, duration_ms)
            yield terminal
            return

        raise self._exhaust(run)

    # -------------------------------------------------------------------------
    # Chain steps
    # -------------------------------------------------------------------------

    def _start_run(
        self, primary: ProviderInstance, config: FallbackConfig, request_id: str
    ) -> ChainRun:
        run = ChainRun(
            request_id=request_id,
            primary=primary.provider,
            retry_delay_ms=config.retry_delay_ms,
        )
        run.chain = build_fallback_chain(primary.provider, config)
        log_stage(
            logger,
            Stage.BUILD_CHAIN,
            "Fallback chain built",
            chain=run.chain,
            fallback_enabled=config.enabled,
        )
        return run

    async def _prepare_candidate(
        self,
        index: int,
        provider_type: str,
        primary: ProviderInstance,
        request: NormalizedRequest,
        run: ChainRun,
    ) -> Candidate | None:
        """
        Resolve everything a candidate needs before the vendor call.

        Returns:
            The candidate, or None when no adapter is registered for its type

        Raises:
            ProviderNotAvailableError: Availability probe returned False
            ProviderNotFoundError: No active instance of this type for the caller
            CredentialDecryptionError: The stored key could not be decrypted
        """
        adapter = self.registry.get(provider_type)
        if adapter is None:
            log_stage(
                logger,
                Stage.TRY_PROVIDER,
                "No adapter registered, skipping",
                level="warning",
                provider=provider_type,
            )
            return None

        log_stage(
            logger, Stage.TRY_PROVIDER, "Trying provider", provider=provider_type, attempt=index + 1
        )

        if not await adapter.is_available():
            raise ProviderNotAvailableError(
                f"Provider {provider_type} is not available",
                request_id=run.request_id,
                details={"provider": provider_type},
            )

        if index == 0:
            instance = primary
        else:
            instance = await self._find_fallback_instance(request.user_id, provider_type)
            if instance is None:
                raise ProviderNotFoundError(
                    f"No active {provider_type} provider configured for fallback",
                    request_id=run.request_id,
                    details={"provider": provider_type},
                )

        api_key = await self._decrypt(instance, run.request_id)
        if not validate_api_key_format(provider_type, api_key):
            log_stage(
                logger,
                Stage.TRY_PROVIDER,
                "API key does not match the vendor's key format",
                level="warning",
                provider=provider_type,
                provider_id=instance.id,
            )

        defaults = instance.settings
        target = request if index == 0 else request.with_overrides(model=defaults.default_model)
        target = target.with_defaults(
            model=defaults.default_model,
            max_tokens=defaults.max_tokens,
            temperature=defaults.temperature,
        )

        return Candidate(
            index=index,
            provider_type=provider_type,
            adapter=adapter,
            instance=instance,
            api_key=api_key,
            request=target,
            vendor_request=adapter.normalize_request(target),
        )

    async def _find_fallback_instance(
        self, user_id: str, provider_type: str
    ) -> ProviderInstance | None:
        instances = await self.provider_store.list_providers(user_id)
        return next(
            (i for i in instances if i.provider == provider_type and i.is_active),
            None,
        )

    async def _decrypt(self, instance: ProviderInstance, request_id: str) -> str:
        try:
            api_key = self.decryptor.decrypt(instance.encrypted_api_key)
            if inspect.isawaitable(api_key):
                api_key = await api_key
        except CredentialDecryptionError:
            raise
        except Exception as e:
            raise CredentialDecryptionError.from_exception(
                e,
                message=f"Failed to decrypt API key for provider {instance.id}",
                request_id=request_id,
                provider=instance.provider,
                provider_id=instance.id,
            ) from e
        return api_key

    async def _on_failure(
        self, run: ChainRun, index: int, provider_type: str, error: Exception
    ) -> None:
        run.record_failure(provider_type, error)
        run.transition(FallbackState.NEXT_PROVIDER)
        log_stage(
            logger,
            Stage.NEXT_PROVIDER,
            "Provider failed",
            level="warning",
            provider=provider_type,
            attempt=index + 1,
            error_type=type(error).__name__,
            error=str(error),
        )

        if index < len(run.chain) - 1:
            await self._sleep(run.backoff_seconds(index))

    def _exhaust(self, run: ChainRun) -> AllProvidersFailedError:
        run.transition(FallbackState.EXHAUSTED)
        error = run.exhausted_error()
        log_stage(
            logger,
            Stage.NEXT_PROVIDER,
            "All providers failed",
            level="error",
            attempted_providers=run.attempted,
            error=str(run.last_error) if run.last_error else None,
        )
        return error

    async def _record_usage(
        self, candidate: Candidate, model: str | None, usage: TokenUsage | None, duration_ms: float
    ) -> None:
        if self.usage_recorder is None:
            return

        usage = usage or TokenUsage()
        record = UsageRecord(
            user_id=candidate.request.user_id,
            project_id=candidate.request.project_id,
            provider=candidate.provider_type,
            model=model or candidate.request.model or "",
            prompt_tokens=usage.prompt_tokens,
            completion_tokens=usage.completion_tokens,
            duration_ms=duration_ms,
        )
        try:
            await self.usage_recorder.record(record)
        except Exception as e:
            # A completed call is not failed over because its usage could not be stored
            log_stage(
                logger,
                Stage.USAGE_RECORDING,
                "Usage recording failed",
                level="error",
                provider=candidate.provider_type,
                error_type=type(e).__name__,
                error=str(e),
            )
