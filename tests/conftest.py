"""
Pytest Configuration and Shared Test Fixtures

This module provides reusable fixtures for all tests.
All fixtures defined here are automatically available to all test files.
"""

import pytest

from ai_abstraction.cache.response_cache import ResponseCache
from ai_abstraction.core.config.constants import ProviderType
from ai_abstraction.core.config.settings import Settings
from ai_abstraction.infrastructure.provider_store import InMemoryProviderStore
from ai_abstraction.infrastructure.usage import InMemoryUsageRecorder
from ai_abstraction.models.fallback import FallbackConfig
from ai_abstraction.models.messages import ChatCompletionRequest, ChatMessage, NormalizedRequest
from ai_abstraction.providers.base_adapter import AdapterRegistry
from ai_abstraction.resilience.fallback import FallbackOrchestrator
from ai_abstraction.services.abstraction_layer import AIProviderAbstractionLayer
from tests.test_fixtures.adapter_factory import (
    FakeClock,
    FakeDecryptor,
    RecordingSleep,
    ScriptedAdapter,
    make_instance,
)

# ============================================================================
# Configuration Fixtures
# ============================================================================


@pytest.fixture
def settings():
    """Settings built from defaults (no .env, no environment overrides)."""
    return Settings(_env_file=None)


@pytest.fixture
def fallback_config():
    """Library default fallback policy."""
    return FallbackConfig()


# ============================================================================
# Collaborator Fixtures
# ============================================================================


@pytest.fixture
def clock():
    return FakeClock(start_ms=1_000_000.0)


@pytest.fixture
def sleep():
    return RecordingSleep()


@pytest.fixture
def decryptor():
    return FakeDecryptor()


@pytest.fixture
def usage_recorder():
    return InMemoryUsageRecorder()


@pytest.fixture
def cache(clock):
    return ResponseCache(clock=clock)


@pytest.fixture
def openai_instance():
    return make_instance("prov-openai", ProviderType.OPENAI, default_model="gpt-4")


@pytest.fixture
def anthropic_instance():
    return make_instance(
        "prov-anthropic",
        ProviderType.ANTHROPIC,
        default_model="claude-3-haiku-20240307",
        max_tokens=1024,
        temperature=0.3,
    )


@pytest.fixture
def provider_store(openai_instance, anthropic_instance):
    """
    Store for user-1 with an active OpenAI and Anthropic instance, a
    deactivated OpenAI instance, and an instance owned by another user.
    """
    return InMemoryProviderStore(
        [
            openai_instance,
            anthropic_instance,
            make_instance("prov-inactive", ProviderType.OPENAI, is_active=False),
            make_instance("prov-other-user", ProviderType.COHERE, user_id="user-2"),
        ]
    )


@pytest.fixture
def adapters():
    """One healthy scripted adapter per provider type."""
    return {provider: ScriptedAdapter(provider) for provider in ProviderType}


@pytest.fixture
def registry(adapters):
    registry = AdapterRegistry()
    for adapter in adapters.values():
        registry.register(adapter)
    return registry


@pytest.fixture
def orchestrator(registry, provider_store, decryptor, usage_recorder, cache, sleep):
    return FallbackOrchestrator(
        registry=registry,
        provider_store=provider_store,
        decryptor=decryptor,
        usage_recorder=usage_recorder,
        cache=cache,
        sleep=sleep,
    )


@pytest.fixture
def layer(provider_store, decryptor, registry, cache, usage_recorder, settings, sleep):
    return AIProviderAbstractionLayer(
        provider_store=provider_store,
        decryptor=decryptor,
        registry=registry,
        cache=cache,
        usage_recorder=usage_recorder,
        settings=settings,
        sleep=sleep,
    )


# ============================================================================
# Request Fixtures
# ============================================================================


@pytest.fixture
def chat_request():
    return ChatCompletionRequest(
        messages=[
            ChatMessage(role="system", content="You are terse."),
            ChatMessage(role="user", content="Say hello"),
        ],
        temperature=0.2,
    )


@pytest.fixture
def normalized_request(chat_request):
    return NormalizedRequest.from_request(chat_request, user_id="user-1", project_id="proj-1")
