"""
LLM provider abstraction layer.

Supports multiple inference backends:
- Anthropic (default): Messages API over httpx
- OpenRouter: OpenAI-compatible pay-per-token API
"""

from repo_glossary.llm.base import LLMProvider, LLMResponse
from repo_glossary.llm.factory import LLMProviderType, create_llm_provider

__all__ = [
    "LLMProvider",
    "LLMResponse",
    "LLMProviderType",
    "create_llm_provider",
]
