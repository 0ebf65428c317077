"""
Anthropic Messages API provider.

Talks to the Messages endpoint directly over httpx.
"""

from __future__ import annotations

import asyncio
import time
from typing import Any

import httpx

from repo_glossary.errors import InferenceError
from repo_glossary.llm.base import LLMProvider, LLMResponse

API_VERSION = "2023-06-01"


class AnthropicProvider(LLMProvider):
    """
    Anthropic Claude provider.

    System messages are lifted into the top-level ``system`` field; the
    remaining messages are sent as-is.
    """

    MODELS = {
        "default": "claude-3-5-sonnet-latest",
        "fast": "claude-3-5-haiku-latest",
        "sonnet": "claude-3-5-sonnet-latest",
        "haiku": "claude-3-5-haiku-latest",
    }

    def __init__(
        self,
        api_key: str,
        model: str = "default",
        base_url: str = "https://api.anthropic.com",
        timeout: float = 120.0,
        max_retries: int = 1,
        transport: httpx.AsyncBaseTransport | None = None,
    ):
        """
        Initialize Anthropic provider.

        Args:
            api_key: Anthropic API key.
            model: Model key (from MODELS) or full model name.
            base_url: API base URL.
            timeout: Request timeout in seconds.
            max_retries: Attempts per request; 1 disables retrying.
            transport: Custom httpx transport (used by tests).
        """
        self._model_name = self.MODELS.get(model, model)
        self._max_retries = max(1, max_retries)

        self._client = httpx.AsyncClient(
            base_url=base_url.rstrip("/"),
            headers={
                "Content-Type": "application/json",
                "x-api-key": api_key,
                "anthropic-version": API_VERSION,
            },
            timeout=timeout,
            transport=transport,
        )

    @property
    def name(self) -> str:
        """Provider name."""
        return "anthropic"

    @property
    def model(self) -> str:
        """Current model name."""
        return self._model_name

    async def close(self) -> None:
        await self._client.aclose()

    def build_payload(
        self,
        messages: list[dict[str, str]],
        *,
        temperature: float | None,
        max_tokens: int,
    ) -> dict[str, Any]:
        """Request body for the Messages API."""
        system = "\n\n".join(m["content"] for m in messages if m["role"] == "system")
        payload: dict[str, Any] = {
            "model": self._model_name,
            "max_tokens": max_tokens,
        }
        if system:
            payload["system"] = system
        payload["messages"] = [
            {"role": m["role"], "content": m["content"]}
            for m in messages
            if m["role"] != "system"
        ]
        if temperature is not None:
            payload["temperature"] = temperature
        return payload

    async def complete(
        self,
        messages: list[dict[str, str]],
        *,
        temperature: float | None = None,
        max_tokens: int = 4096,
        **kwargs: Any,
    ) -> LLMResponse:
        """
        Generate a completion via the Messages API.

        Args:
            messages: List of message dicts.
            temperature: Sampling temperature, omitted when None.
            max_tokens: Maximum output tokens.
            **kwargs: Extra fields merged into the request body.

        Returns:
            LLMResponse with the first text block and usage stats.

        Raises:
            InferenceError: On a non-2xx response after the last attempt.
        """
        payload = self.build_payload(messages, temperature=temperature, max_tokens=max_tokens)
        payload.update(kwargs)

        start_time = time.perf_counter()
        last_error: Exception | None = None

        for attempt in range(self._max_retries):
            try:
                response = await self._client.post("/v1/messages", json=payload)
                if not response.is_success:
                    raise InferenceError(
                        f"Anthropic API error: {response.status_code} {response.reason_phrase}",
                        status_code=response.status_code,
                        provider=self.name,
                    )

                data = response.json()
                latency_ms = (time.perf_counter() - start_time) * 1000
                content = _first_text_block(data)
                usage = data.get("usage") or {}

                return LLMResponse(
                    content=content.strip(),
                    input_tokens=usage.get("input_tokens", 0),
                    output_tokens=usage.get("output_tokens", 0),
                    model=data.get("model", self._model_name),
                    latency_ms=latency_ms,
                    metadata={
                        "provider": self.name,
                        "stop_reason": data.get("stop_reason"),
                        "attempt": attempt + 1,
                    },
                )

            except (InferenceError, httpx.HTTPError) as e:
                last_error = e
                if attempt < self._max_retries - 1:
                    # Exponential backoff
                    await asyncio.sleep(2**attempt)

        raise last_error or InferenceError("Anthropic request failed", provider=self.name)


def _first_text_block(data: dict[str, Any]) -> str:
    for block in data.get("content") or []:
        if isinstance(block, dict) and block.get("type", "text") == "text":
            return block.get("text") or ""
    return ""
