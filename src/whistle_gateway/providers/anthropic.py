"""Anthropic/Claude provider adapter."""

from __future__ import annotations

import logging

from whistle_gateway.providers.base import BaseProvider
from whistle_gateway.types.providers import CompletionParams

logger = logging.getLogger(__name__)


class AnthropicProvider(BaseProvider):
    """Messages-API adapter built on ``anthropic.AsyncAnthropic``.

    Parameters
    ----------
    api_key:
        Anthropic API key. When *None* the SDK falls back to
        ``ANTHROPIC_API_KEY``.
    model:
        Model ID (default ``"claude-haiku-4-5"``).
    """

    def __init__(
        self,
        api_key: str | None = None,
        model: str = "claude-haiku-4-5",
        timeout: float = 30.0,
    ) -> None:
        super().__init__(model, timeout=timeout)
        try:
            from anthropic import AsyncAnthropic
        except ImportError as exc:
            raise ImportError(
                "The 'anthropic' package is required for AnthropicProvider. "
                "Install it with: pip install anthropic"
            ) from exc

        self._client = AsyncAnthropic(api_key=api_key) if api_key else AsyncAnthropic()

    async def _complete(self, system: str, message: str, params: CompletionParams) -> str:
        response = await self._client.messages.create(
            model=self._model,
            system=system,
            messages=[{"role": "user", "content": message}],
            max_tokens=params.max_tokens,
            temperature=params.temperature,
        )
        parts = [
            block.text for block in response.content
            if getattr(block, "type", None) == "text"
        ]
        return "".join(parts)
