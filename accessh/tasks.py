"""Tracked asyncio tasks.

Reveal timers belong to a session and SSH sessions belong to the server.
Both are started through a TaskRegistry so their owner can cancel them, or
give them a bounded amount of time to finish, when it goes away.
"""

from __future__ import annotations

import asyncio
import logging
from typing import Any, Coroutine, TypeVar

logger = logging.getLogger(__name__)

T = TypeVar("T")


class TaskRegistry:
    """The set of live tasks started on behalf of one owner."""

    def __init__(self, owner: str = "accessh") -> None:
        self.owner = owner
        self._live: set[asyncio.Task[Any]] = set()

    def spawn(self, coro: Coroutine[Any, Any, T], name: str | None = None) -> asyncio.Task[T]:
        task = asyncio.create_task(coro, name=name)
        self._live.add(task)
        task.add_done_callback(self._forget)
        logger.debug("%s: started %s, %d live", self.owner, task.get_name(), len(self._live))
        return task

    def _forget(self, task: asyncio.Task[Any]) -> None:
        self._live.discard(task)
        if not task.cancelled() and task.exception() is not None:
            exc = task.exception()
            logger.error("%s: %s crashed: %s", self.owner, task.get_name(), exc, exc_info=exc)

    def task_count(self) -> int:
        return len(self._live)

    def cancel_all(self) -> None:
        for task in [t for t in self._live if not t.done()]:
            task.cancel()

    async def wait(self, timeout: float) -> set[asyncio.Task[Any]]:
        """Give live tasks up to `timeout` seconds; return the ones still running."""
        if not self._live:
            return set()
        _, still_running = await asyncio.wait(list(self._live), timeout=timeout)
        return still_running

    async def shutdown(self, timeout: float = 5.0) -> None:
        """Cancel everything and wait for the cancellations to land."""
        started_with = len(self._live)
        if not started_with:
            return
        self.cancel_all()
        stuck = await self.wait(timeout)
        if stuck:
            logger.warning(
                "%s shutdown timeout: %d of %d tasks ignored cancellation for %.1fs",
                self.owner,
                len(stuck),
                started_with,
                timeout,
            )
