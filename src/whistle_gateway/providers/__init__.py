"""Language-model adapters.

Public surface
--------------
- :class:`BaseProvider`      : abstract base with retry and timeout
- :class:`OpenAIProvider`    : OpenAI / compatible adapter (openai SDK)
- :class:`AnthropicProvider` : Claude adapter (anthropic SDK)
- :func:`create_provider`    : factory keyed by provider name
"""

from __future__ import annotations

from whistle_gateway.providers.anthropic import AnthropicProvider
from whistle_gateway.providers.base import BaseProvider
from whistle_gateway.providers.openai import OpenAIProvider
from whistle_gateway.types.config import AssistantConfig

DEFAULT_MODELS = {
    "openai": "gpt-4o-mini",
    "anthropic": "claude-haiku-4-5",
}


def create_provider(config: AssistantConfig) -> BaseProvider:
    """Instantiate the adapter named by ``config.provider``."""
    name = config.provider.lower()
    if name not in DEFAULT_MODELS:
        raise ValueError(
            f"Unknown provider '{config.provider}'. "
            f"Choose one of: {', '.join(sorted(DEFAULT_MODELS))}"
        )
    model = config.model or DEFAULT_MODELS[name]
    if name == "anthropic":
        return AnthropicProvider(
            api_key=config.api_key, model=model, timeout=config.completion_timeout,
        )
    return OpenAIProvider(
        api_key=config.api_key,
        model=model,
        base_url=config.base_url,
        timeout=config.completion_timeout,
    )


__all__ = [
    "AnthropicProvider",
    "BaseProvider",
    "DEFAULT_MODELS",
    "OpenAIProvider",
    "create_provider",
]
