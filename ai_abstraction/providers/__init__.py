"""
Provider Adapters Module

One adapter per upstream vendor, plus the registry the orchestrator resolves
adapters from and the static vendor catalog.
"""

from ai_abstraction.providers.anthropic_adapter import AnthropicAdapter
from ai_abstraction.providers.base_adapter import AdapterRegistry, BaseProviderAdapter
from ai_abstraction.providers.catalog import (
    AI_PROVIDERS,
    ModelConfig,
    ProviderConfig,
    calculate_cost,
    get_available_providers,
    get_model_config,
    get_provider_config,
    validate_api_key_format,
)
from ai_abstraction.providers.openai_adapter import OpenAIAdapter
from ai_abstraction.providers.registration import build_default_registry
from ai_abstraction.providers.unsupported import CohereAdapter, StraicoAdapter

__all__ = [
    "AI_PROVIDERS",
    "AdapterRegistry",
    "AnthropicAdapter",
    "BaseProviderAdapter",
    "CohereAdapter",
    "ModelConfig",
    "OpenAIAdapter",
    "ProviderConfig",
    "StraicoAdapter",
    "build_default_registry",
    "calculate_cost",
    "get_available_providers",
    "get_model_config",
    "get_provider_config",
    "validate_api_key_format",
]
