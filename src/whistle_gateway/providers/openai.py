"""OpenAI provider adapter.

Works with OpenAI models and any OpenAI-compatible endpoint (Groq,
OpenRouter, a local Ollama) by passing a custom ``base_url``.
"""

from __future__ import annotations

import logging
from typing import Any

from whistle_gateway.providers.base import BaseProvider
from whistle_gateway.types.providers import CompletionParams

logger = logging.getLogger(__name__)


class OpenAIProvider(BaseProvider):
    """Chat-completions adapter built on ``openai.AsyncOpenAI``.

    Parameters
    ----------
    api_key:
        OpenAI API key. When *None* the SDK falls back to ``OPENAI_API_KEY``.
    model:
        Model ID (default ``"gpt-4o-mini"``).
    base_url:
        Optional OpenAI-compatible endpoint.
    timeout:
        Seconds allowed per completion attempt.
    """

    def __init__(
        self,
        api_key: str | None = None,
        model: str = "gpt-4o-mini",
        base_url: str | None = None,
        timeout: float = 30.0,
    ) -> None:
        super().__init__(model, timeout=timeout)
        # Defer import so the package imports even without the openai SDK.
        try:
            from openai import AsyncOpenAI
        except ImportError as exc:
            raise ImportError(
                "The 'openai' package is required for OpenAIProvider. "
                "Install it with: pip install openai"
            ) from exc

        kwargs: dict[str, Any] = {}
        if api_key is not None:
            kwargs["api_key"] = api_key
        if base_url is not None:
            kwargs["base_url"] = base_url
        self._client = AsyncOpenAI(**kwargs)

    async def _complete(self, system: str, message: str, params: CompletionParams) -> str:
        # Reasoning models (o1/o3/o4, gpt-5) take max_completion_tokens and
        # reject a custom temperature.
        model_lower = self._model.lower()
        reasoning = any(model_lower.startswith(p) for p in ("gpt-5", "o1", "o3", "o4"))

        kwargs: dict[str, Any] = {}
        if reasoning:
            kwargs["max_completion_tokens"] = params.max_tokens
        else:
            kwargs["max_tokens"] = params.max_tokens
            kwargs["temperature"] = params.temperature

        completion = await self._client.chat.completions.create(
            model=self._model,
            messages=[
                {"role": "system", "content": system},
                {"role": "user", "content": message},
            ],
            **kwargs,
        )
        if not completion.choices:
            return ""
        return completion.choices[0].message.content or ""
