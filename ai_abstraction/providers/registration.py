"""
Default adapter wiring.
"""

import httpx

from ai_abstraction.core.config.settings import Settings, get_settings
from ai_abstraction.providers.anthropic_adapter import AnthropicAdapter
from ai_abstraction.providers.base_adapter import AdapterRegistry
from ai_abstraction.providers.openai_adapter import OpenAIAdapter
from ai_abstraction.providers.unsupported import CohereAdapter, StraicoAdapter


def build_default_registry(
    settings: Settings | None = None, http_client: httpx.AsyncClient | None = None
) -> AdapterRegistry:
    """
    Build a registry with an adapter for every catalogued vendor.

    Args:
        settings: Transport settings source (global settings when omitted)
        http_client: Optional shared client for the wired adapters
    """
    settings = settings or get_settings()
    transport = settings.providers

    registry = AdapterRegistry()
    registry.register(
        OpenAIAdapter(
            base_url=transport.OPENAI_BASE_URL,
            timeout=transport.PROVIDER_TIMEOUT,
            http_client=http_client,
        )
    )
    registry.register(
        AnthropicAdapter(
            base_url=transport.ANTHROPIC_BASE_URL,
            timeout=transport.PROVIDER_TIMEOUT,
            http_client=http_client,
            api_version=transport.ANTHROPIC_VERSION,
        )
    )
    registry.register(StraicoAdapter())
    registry.register(CohereAdapter())
    return registry
