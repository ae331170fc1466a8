"""Background synchronisation of the tool catalogue to the assistant."""

from __future__ import annotations

import asyncio
import contextlib
import logging
from collections.abc import Awaitable, Callable, Iterable
from typing import Any

from whistle_gateway.types.tools import ToolDefinition

logger = logging.getLogger(__name__)

ToolLister = Callable[[], Awaitable[list[ToolDefinition]]]
ToolPublisher = Callable[[list[ToolDefinition]], Any]


def catalogue_key(tools: Iterable[ToolDefinition]) -> dict[str, dict[str, Any]]:
    """Order-independent structural key: tool name -> input schema."""
    return {tool.name: tool.input_schema for tool in tools}


def tools_changed(
    old: Iterable[ToolDefinition] | None,
    new: Iterable[ToolDefinition],
) -> bool:
    if old is None:
        return True
    return catalogue_key(old) != catalogue_key(new)


class ToolRegistrySynchronizer:
    """Periodically lists tools and publishes the catalogue when it changes.

    ``start()`` runs one cycle before returning, then repeats it every
    ``interval`` seconds in a background task. The task exists from the
    moment ``start()`` is called, so ``stop()`` can cancel it at any time,
    including during the first cycle, and concurrent ``start()`` calls share
    one task.
    """

    def __init__(
        self,
        lister: ToolLister,
        publish: ToolPublisher,
        interval: float = 30.0,
    ) -> None:
        self._lister = lister
        self._publish = publish
        self._interval = interval
        self._published: list[ToolDefinition] | None = None
        self._task: asyncio.Task[None] | None = None
        self._first_cycle: asyncio.Event | None = None

    @property
    def running(self) -> bool:
        return self._task is not None and not self._task.done()

    @property
    def cached_tools(self) -> list[ToolDefinition]:
        return list(self._published or [])

    async def start(self) -> None:
        if not self.running:
            logger.info("Starting tool registry synchronization")
            first_cycle = asyncio.Event()
            self._first_cycle = first_cycle
            self._task = asyncio.create_task(self._run(first_cycle))
            # Also released when the task is cancelled before finishing a cycle.
            self._task.add_done_callback(lambda _: first_cycle.set())
        if self._first_cycle is not None:
            await self._first_cycle.wait()

    async def stop(self) -> None:
        task, self._task = self._task, None
        if task is None:
            return
        task.cancel()
        with contextlib.suppress(asyncio.CancelledError):
            await task
        logger.info("Stopped tool registry synchronization")

    async def _run(self, first_cycle: asyncio.Event) -> None:
        await self.sync_once()
        first_cycle.set()
        while True:
            await asyncio.sleep(self._interval)
            await self.sync_once()

    async def sync_once(self) -> bool:
        """One list/compare/publish cycle. Returns True if it published."""
        try:
            tools = await self._lister()
        except Exception as exc:
            logger.warning("Failed to sync tools from MCP server: %s", exc)
            return False

        if not tools_changed(self._published, tools):
            logger.debug("No changes in tool registry")
            return False

        try:
            result = self._publish(list(tools))
            if asyncio.iscoroutine(result):
                await result
        except Exception as exc:
            logger.error("Error publishing tool registry: %s", exc)
            return False

        self._published = list(tools)
        logger.info(
            "Tool registry updated: %d tools (%s)",
            len(tools), ", ".join(t.name for t in tools),
        )
        return True

    async def force_sync(self) -> list[ToolDefinition]:
        await self.sync_once()
        return self.cached_tools
