"""
LLM provider factory.

Creates the appropriate LLM provider based on configuration.
"""

from __future__ import annotations

from enum import Enum
from typing import Any

from repo_glossary.llm.base import LLMProvider


class LLMProviderType(str, Enum):
    """Available LLM provider types."""

    ANTHROPIC = "anthropic"
    OPENROUTER = "openrouter"


def create_llm_provider(
    provider_type: LLMProviderType | str,
    *,
    api_key: str | None = None,
    model: str = "default",
    **kwargs: Any,
) -> LLMProvider:
    """
    Create an LLM provider instance.

    Args:
        provider_type: Type of provider to create (anthropic or openrouter).
        api_key: API key for the provider.
        model: Model name or alias.
        **kwargs: Additional provider-specific options.

    Returns:
        LLMProvider instance.

    Raises:
        ValueError: If provider_type is invalid or the API key is missing.

    Examples:
        # Anthropic Messages API
        provider = create_llm_provider(
            "anthropic",
            api_key="sk-ant-...",
            model="claude-3-5-sonnet-latest"
        )

        # OpenRouter (pay-per-token)
        provider = create_llm_provider(
            "openrouter",
            api_key="sk-or-...",
            model="anthropic/claude-3.5-sonnet"
        )
    """
    # Normalize provider type
    if isinstance(provider_type, str):
        provider_type = provider_type.lower().replace("_", "-")
        try:
            provider_type = LLMProviderType(provider_type)
        except ValueError:
            valid = [p.value for p in LLMProviderType]
            raise ValueError(
                f"Invalid provider type: {provider_type}. Valid options: {valid}"
            ) from None

    if not api_key:
        raise ValueError(f"{provider_type.value} provider requires an API key")

    if provider_type == LLMProviderType.ANTHROPIC:
        from repo_glossary.llm.anthropic import AnthropicProvider

        return AnthropicProvider(api_key=api_key, model=model, **kwargs)

    elif provider_type == LLMProviderType.OPENROUTER:
        from repo_glossary.llm.openrouter import OpenRouterProvider

        return OpenRouterProvider(api_key=api_key, model=model, **kwargs)

    else:
        raise ValueError(f"Unknown provider type: {provider_type}")
