"""Tests for the Anthropic provider and the provider factory."""

import asyncio
import json

import httpx
import pytest

from repo_glossary.errors import InferenceError
from repo_glossary.llm import LLMProviderType, create_llm_provider
from repo_glossary.llm.anthropic import API_VERSION, AnthropicProvider


def make_provider(handler, **kwargs) -> AnthropicProvider:
    return AnthropicProvider("sk-test", transport=httpx.MockTransport(handler), **kwargs)


class TestAnthropicProvider:
    def test_request_shape(self):
        captured = {}

        def handler(request: httpx.Request) -> httpx.Response:
            captured["url"] = str(request.url)
            captured["headers"] = request.headers
            captured["body"] = json.loads(request.content)
            return httpx.Response(
                200,
                json={
                    "model": "claude-3-5-sonnet-latest",
                    "content": [{"type": "text", "text": ' [{"term": "X"}] '}],
                    "usage": {"input_tokens": 12, "output_tokens": 5},
                    "stop_reason": "end_turn",
                },
            )

        provider = make_provider(handler)
        response = asyncio.run(provider.chat("system rules", "user text", max_tokens=4000))

        assert captured["url"] == "https://api.anthropic.com/v1/messages"
        assert captured["headers"]["x-api-key"] == "sk-test"
        assert captured["headers"]["anthropic-version"] == API_VERSION
        assert captured["body"] == {
            "model": "claude-3-5-sonnet-latest",
            "max_tokens": 4000,
            "system": "system rules",
            "messages": [{"role": "user", "content": "user text"}],
        }
        assert response.content == '[{"term": "X"}]'
        assert response.input_tokens == 12
        assert response.output_tokens == 5

    def test_temperature_sent_when_given(self):
        bodies = []

        def handler(request):
            bodies.append(json.loads(request.content))
            return httpx.Response(200, json={"content": [{"type": "text", "text": "[]"}]})

        asyncio.run(make_provider(handler).chat("s", "u", temperature=0.2))
        assert bodies[0]["temperature"] == 0.2

    def test_non_success_status_raises(self):
        provider = make_provider(lambda request: httpx.Response(529, json={"error": "overloaded"}))

        with pytest.raises(InferenceError) as exc_info:
            asyncio.run(provider.chat("s", "u"))
        assert exc_info.value.status_code == 529

    def test_no_retry_by_default(self):
        calls = []

        def handler(request):
            calls.append(request)
            return httpx.Response(500)

        with pytest.raises(InferenceError):
            asyncio.run(make_provider(handler).chat("s", "u"))
        assert len(calls) == 1

    def test_missing_text_block_gives_empty_content(self):
        provider = make_provider(lambda request: httpx.Response(200, json={"content": []}))
        assert asyncio.run(provider.chat("s", "u")).content == ""

    def test_model_alias(self):
        provider = make_provider(lambda request: httpx.Response(200), model="haiku")
        assert provider.model == "claude-3-5-haiku-latest"
        assert provider.name == "anthropic"


class TestCreateLLMProvider:
    def test_anthropic(self):
        provider = create_llm_provider("anthropic", api_key="sk", model="claude-x")
        assert isinstance(provider, AnthropicProvider)
        assert provider.model == "claude-x"

    def test_openrouter(self):
        provider = create_llm_provider(LLMProviderType.OPENROUTER, api_key="sk-or", model="fast")
        assert provider.name == "openrouter"
        assert provider.model == "anthropic/claude-3-haiku"

    def test_invalid_type(self):
        with pytest.raises(ValueError, match="Invalid provider type"):
            create_llm_provider("nope", api_key="sk")

    def test_missing_key(self):
        with pytest.raises(ValueError, match="requires an API key"):
            create_llm_provider("anthropic", api_key="")
