"""
Provider Catalog

Static description of every supported vendor: display data, base URL, the
models offered with their per-1k-token pricing, and default generation
settings. Used to price usage records, to sanity-check decrypted API keys and
to pick a model when neither the request nor the instance names one.
"""

from dataclasses import dataclass, field

from ai_abstraction.core.config.constants import ProviderType


@dataclass(frozen=True)
class ModelConfig:
    """A model offered by a vendor."""

    id: str
    name: str
    description: str
    max_tokens: int
    cost_per_1k_input: float
    cost_per_1k_output: float


@dataclass(frozen=True)
class ProviderConfig:
    """Catalog entry for one vendor."""

    name: str
    display_name: str
    description: str
    api_key_label: str
    api_key_placeholder: str
    base_url: str
    models: tuple[ModelConfig, ...] = field(default_factory=tuple)
    default_max_tokens: int = 4000
    default_temperature: float = 0.7

    @property
    def default_model(self) -> str:
        return self.models[0].id


AI_PROVIDERS: dict[str, ProviderConfig] = {
    ProviderType.OPENAI.value: ProviderConfig(
        name="openai",
        display_name="OpenAI",
        description="GPT models from OpenAI including GPT-4 and GPT-3.5",
        api_key_label="OpenAI API Key",
        api_key_placeholder="sk-...",
        base_url="https://api.openai.com/v1",
        models=(
            ModelConfig(
                id="gpt-4",
                name="GPT-4",
                description="Most capable model, best for complex tasks",
                max_tokens=8192,
                cost_per_1k_input=0.03,
                cost_per_1k_output=0.06,
            ),
            ModelConfig(
                id="gpt-4-turbo",
                name="GPT-4 Turbo",
                description="Faster and more cost-effective than GPT-4",
                max_tokens=128000,
                cost_per_1k_input=0.01,
                cost_per_1k_output=0.03,
            ),
            ModelConfig(
                id="gpt-3.5-turbo",
                name="GPT-3.5 Turbo",
                description="Fast and cost-effective for most tasks",
                max_tokens=16385,
                cost_per_1k_input=0.0015,
                cost_per_1k_output=0.002,
            ),
        ),
    ),
    ProviderType.ANTHROPIC.value: ProviderConfig(
        name="anthropic",
        display_name="Anthropic",
        description="Claude models from Anthropic, known for safety and helpfulness",
        api_key_label="Anthropic API Key",
        api_key_placeholder="sk-ant-...",
        base_url="https://api.anthropic.com/v1",
        models=(
            ModelConfig(
                id="claude-3-opus-20240229",
                name="Claude 3 Opus",
                description="Most powerful model for complex tasks",
                max_tokens=200000,
                cost_per_1k_input=0.015,
                cost_per_1k_output=0.075,
            ),
            ModelConfig(
                id="claude-3-sonnet-20240229",
                name="Claude 3 Sonnet",
                description="Balanced performance and speed",
                max_tokens=200000,
                cost_per_1k_input=0.003,
                cost_per_1k_output=0.015,
            ),
            ModelConfig(
                id="claude-3-haiku-20240307",
                name="Claude 3 Haiku",
                description="Fastest model for simple tasks",
                max_tokens=200000,
                cost_per_1k_input=0.00025,
                cost_per_1k_output=0.00125,
            ),
        ),
    ),
    ProviderType.STRAICO.value: ProviderConfig(
        name="straico",
        display_name="Straico",
        description="Multi-model AI platform with access to various providers",
        api_key_label="Straico API Key",
        api_key_placeholder="your-straico-api-key",
        base_url="https://api.straico.com/v0",
        models=(
            ModelConfig(
                id="auto",
                name="Smart Model Selection",
                description="Let Straico choose the best model for your request",
                max_tokens=200000,
                cost_per_1k_input=0.01,
                cost_per_1k_output=0.03,
            ),
            ModelConfig(
                id="gpt-4",
                name="GPT-4 (via Straico)",
                description="GPT-4 through Straico platform",
                max_tokens=8192,
                cost_per_1k_input=0.035,
                cost_per_1k_output=0.07,
            ),
            ModelConfig(
                id="gpt-3.5-turbo",
                name="GPT-3.5 Turbo (via Straico)",
                description="GPT-3.5 Turbo through Straico platform",
                max_tokens=16385,
                cost_per_1k_input=0.002,
                cost_per_1k_output=0.003,
            ),
            ModelConfig(
                id="claude-3-opus",
                name="Claude 3 Opus (via Straico)",
                description="Claude 3 Opus through Straico platform",
                max_tokens=200000,
                cost_per_1k_input=0.02,
                cost_per_1k_output=0.08,
            ),
            ModelConfig(
                id="claude-3-sonnet",
                name="Claude 3 Sonnet (via Straico)",
                description="Claude 3 Sonnet through Straico platform",
                max_tokens=200000,
                cost_per_1k_input=0.004,
                cost_per_1k_output=0.018,
            ),
        ),
    ),
    ProviderType.COHERE.value: ProviderConfig(
        name="cohere",
        display_name="Cohere",
        description="Command models from Cohere for text generation and analysis",
        api_key_label="Cohere API Key",
        api_key_placeholder="co_...",
        base_url="https://api.cohere.ai/v1",
        models=(
            ModelConfig(
                id="command",
                name="Command",
                description="General purpose text generation model",
                max_tokens=4096,
                cost_per_1k_input=0.0015,
                cost_per_1k_output=0.002,
            ),
            ModelConfig(
                id="command-light",
                name="Command Light",
                description="Faster, lighter version of Command",
                max_tokens=4096,
                cost_per_1k_input=0.0003,
                cost_per_1k_output=0.0006,
            ),
        ),
    ),
}


def _key(provider: str | ProviderType) -> str:
    return str(getattr(provider, "value", provider)).lower()


def get_available_providers() -> list[str]:
    """Get every catalogued provider type."""
    return list(AI_PROVIDERS.keys())


def get_provider_config(provider: str | ProviderType) -> ProviderConfig | None:
    """Get the catalog entry for a provider type, or None if unknown."""
    return AI_PROVIDERS.get(_key(provider))


def get_model_config(provider: str | ProviderType, model_id: str) -> ModelConfig | None:
    """Get a model's catalog entry, or None if the provider or model is unknown."""
    config = get_provider_config(provider)
    if config is None:
        return None
    return next((model for model in config.models if model.id == model_id), None)


def validate_api_key_format(provider: str | ProviderType, api_key: str) -> bool:
    """
    Check that an API key has the shape the vendor issues.

    This is a format check only; it does not prove the key is valid.
    """
    provider_type = _key(provider)
    if provider_type == "openai":
        return api_key.startswith("sk-") and len(api_key) > 20
    if provider_type == "anthropic":
        return api_key.startswith("sk-ant-") and len(api_key) > 20
    if provider_type == "straico":
        return len(api_key) > 10
    if provider_type == "cohere":
        return api_key.startswith("co_") and len(api_key) > 20
    return False


def calculate_cost(
    provider: str | ProviderType, model_id: str, input_tokens: int, output_tokens: int
) -> float:
    """
    Estimate the cost of a call in USD.

    Returns:
        0.0 when the model is not in the catalog
    """
    model = get_model_config(provider, model_id)
    if model is None:
        return 0.0

    input_cost = (input_tokens / 1000) * model.cost_per_1k_input
    output_cost = (output_tokens / 1000) * model.cost_per_1k_output
    return input_cost + output_cost
