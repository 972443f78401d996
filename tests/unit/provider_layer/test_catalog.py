"""
Unit Tests for the Provider Catalog
"""

import pytest

from ai_abstraction.core.config.constants import ProviderType
from ai_abstraction.providers.catalog import (
    calculate_cost,
    get_available_providers,
    get_model_config,
    get_provider_config,
    validate_api_key_format,
)


@pytest.mark.unit
class TestCatalogLookups:
    def test_available_providers(self):
        assert get_available_providers() == ["openai", "anthropic", "straico", "cohere"]

    def test_provider_config_by_enum_or_string(self):
        assert get_provider_config(ProviderType.ANTHROPIC) is get_provider_config("anthropic")
        assert get_provider_config("ANTHROPIC").display_name == "Anthropic"

    def test_unknown_provider(self):
        assert get_provider_config("mistral") is None
        assert get_model_config("mistral", "large") is None

    def test_default_model_is_first_listed(self):
        assert get_provider_config("openai").default_model == "gpt-4"
        assert get_provider_config("straico").default_model == "auto"

    def test_model_config(self):
        model = get_model_config("anthropic", "claude-3-haiku-20240307")

        assert model.name == "Claude 3 Haiku"
        assert model.cost_per_1k_input == 0.00025


@pytest.mark.unit
class TestApiKeyFormat:
    """Test validate_api_key_format()."""

    @pytest.mark.parametrize(
        "provider,api_key,expected",
        [
            ("openai", "sk-abcdefghijklmnopqrstuvwx", True),
            ("openai", "sk-short", False),
            ("openai", "pk-abcdefghijklmnopqrstuvwx", False),
            ("anthropic", "sk-ant-REDACTED", True),
            ("anthropic", "sk-abcdefghijklmnopqrstuvwx", False),
            ("straico", "abcdefghijk", True),
            ("straico", "abcdefghij", False),
            ("cohere", "co_abcdefghijklmnopqrstuv", True),
            ("cohere", "abcdefghijklmnopqrstuvwxyz", False),
            ("mistral", "anything-goes-here-123456", False),
        ],
    )
    def test_format(self, provider, api_key, expected):
        assert validate_api_key_format(provider, api_key) is expected


@pytest.mark.unit
class TestCalculateCost:
    def test_known_model(self):
        cost = calculate_cost("openai", "gpt-4", 1000, 500)

        assert cost == pytest.approx(0.03 + 0.03)

    def test_unknown_model_is_free(self):
        assert calculate_cost("openai", "gpt-9", 1000, 1000) == 0.0

    def test_zero_tokens(self):
        assert calculate_cost("anthropic", "claude-3-opus-20240229", 0, 0) == 0.0
