"""Base provider with shared retry logic and timeout handling."""

from __future__ import annotations

import asyncio
import logging
from abc import ABC, abstractmethod
from typing import Any

from whistle_gateway.types.providers import CompletionParams

logger = logging.getLogger(__name__)

# Errors that are worth retrying: rate limits and server overload.
_RETRYABLE_STATUS_CODES: frozenset[int] = frozenset({429, 500, 502, 503, 529})
_MAX_RETRIES: int = 2
_BACKOFF_BASE: float = 1.0  # seconds; doubled each retry


def _is_retryable(exc: BaseException) -> bool:
    """Return True when *exc* represents a transient error worth retrying."""
    if type(exc).__name__ in {"RateLimitError", "OverloadedError", "APIConnectionError"}:
        return True
    status_code: int | None = getattr(exc, "status_code", None)
    return status_code is not None and status_code in _RETRYABLE_STATUS_CODES


class BaseProvider(ABC):
    """Abstract base class for completion adapters.

    Sub-classes implement :meth:`_complete`; :meth:`complete` adds the
    per-call timeout and transient-error retries around it.

    Parameters
    ----------
    model:
        The model identifier string (e.g. ``"gpt-4o-mini"``).
    timeout:
        Upper bound in seconds for a single completion attempt.
    """

    def __init__(self, model: str, timeout: float = 30.0) -> None:
        self._model = model
        self._timeout = timeout

    @property
    def model_id(self) -> str:
        return self._model

    async def complete(self, system: str, message: str, params: CompletionParams) -> str:
        """Return the model's reply to *message* under *system*.

        Raises
        ------
        Exception
            Whatever the SDK raised once retries are exhausted, or
            :class:`TimeoutError` when an attempt exceeds the timeout.
        """
        return await self._retry_with_backoff(
            lambda: asyncio.wait_for(
                self._complete(system, message, params), timeout=self._timeout,
            )
        )

    @abstractmethod
    async def _complete(self, system: str, message: str, params: CompletionParams) -> str:
        ...

    async def _retry_with_backoff(self, coro_fn: Any) -> Any:
        """Await ``coro_fn()`` with exponential back-off on transient errors."""
        delay = _BACKOFF_BASE
        for attempt in range(1, _MAX_RETRIES + 2):
            try:
                return await coro_fn()
            except Exception as exc:
                if not _is_retryable(exc) or attempt > _MAX_RETRIES:
                    raise
                logger.warning(
                    "Transient error on attempt %d/%d (%s). Retrying in %.1fs.",
                    attempt, _MAX_RETRIES + 1, type(exc).__name__, delay,
                )
                await asyncio.sleep(delay)
                delay *= 2.0
        raise RuntimeError("Unexpected state in _retry_with_backoff")  # pragma: no cover
