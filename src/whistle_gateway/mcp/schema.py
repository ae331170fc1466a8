"""In-memory cache of tool input schemas."""

from __future__ import annotations

import logging
import time
from collections.abc import Callable, Iterable

from whistle_gateway.types.providers import ToolSource
from whistle_gateway.types.tools import ToolDefinition

logger = logging.getLogger(__name__)


class ToolSchemaStore:
    """Tool name -> :class:`ToolDefinition`, replaced wholesale on refresh.

    Staleness is purely time-based: a non-forced refresh is skipped while the
    cache is younger than ``sync_interval`` seconds.
    """

    def __init__(
        self,
        sync_interval: float = 300.0,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self._sync_interval = sync_interval
        self._clock = clock
        self._tools: dict[str, ToolDefinition] = {}
        self._last_refreshed: float | None = None

    @property
    def sync_interval(self) -> float:
        return self._sync_interval

    @property
    def last_refreshed(self) -> float | None:
        return self._last_refreshed

    @property
    def age(self) -> float | None:
        if self._last_refreshed is None:
            return None
        return self._clock() - self._last_refreshed

    @property
    def tools(self) -> list[ToolDefinition]:
        return list(self._tools.values())

    @property
    def names(self) -> list[str]:
        return list(self._tools)

    def __len__(self) -> int:
        return len(self._tools)

    def __contains__(self, name: object) -> bool:
        return name in self._tools

    def is_stale(self) -> bool:
        age = self.age
        return age is None or age >= self._sync_interval

    def lookup(self, name: str) -> ToolDefinition | None:
        return self._tools.get(name)

    def replace(self, tools: Iterable[ToolDefinition]) -> None:
        self._tools = {tool.name: tool for tool in tools}
        self._last_refreshed = self._clock()

    async def refresh(self, source: ToolSource, force: bool = False) -> bool:
        """Re-fetch the catalogue from *source*. Returns True if the cache changed hands.

        Fetch failures are logged and the previous cache is kept.
        """
        if not force and not self.is_stale():
            return False
        if not source.connected:
            logger.debug("Skipping schema refresh: not connected")
            return False

        try:
            tools = await source.list_tools()
        except Exception as exc:
            logger.warning(
                "Schema refresh failed, keeping %d cached tools: %s",
                len(self._tools), exc or type(exc).__name__,
            )
            return False

        self.replace(tools)
        logger.debug("Schema cache refreshed with %d tools", len(self._tools))
        return True
