"""Timed reveal controller.

Schedules the one-shot "reset the prompt" event after a lookup. Every
scheduled timer delivers exactly one `TIMER_FIRED` event carrying its id;
deciding whether that firing is stale is the reducer's job, not this one's.
"""

from __future__ import annotations

import asyncio
import logging
from typing import Callable

from accessh.session.state import Event, timer_fired
from accessh.tasks import TaskRegistry

logger = logging.getLogger(__name__)


class RevealTimer:
    """Posts `TIMER_FIRED(id)` back into a session after a delay."""

    def __init__(self, post: Callable[[Event], None], delay_s: float) -> None:
        self._post = post
        self.delay_s = delay_s
        self._tasks = TaskRegistry(owner="reveal")
        self._closed = False

    def schedule(self, timer_id: int) -> None:
        if self._closed:
            return
        self._tasks.spawn(self._fire_after(timer_id), name=f"reveal-{timer_id}")

    async def _fire_after(self, timer_id: int) -> None:
        await asyncio.sleep(self.delay_s)
        if self._closed:
            return
        self._post(timer_fired(timer_id))

    def pending(self) -> int:
        return self._tasks.task_count()

    def close(self) -> None:
        """Abandon every pending timer; nothing is delivered after this."""
        self._closed = True
        self._tasks.cancel_all()
