"""Session host: drives one SessionController against one terminal stream."""

from __future__ import annotations

import asyncio
import contextlib
import logging
from typing import Optional, Protocol, Sequence

from accessh.constants import REVEAL_DELAY_MS
from accessh.locations import LocationTable
from accessh.session.controller import SessionController, new_session_state
from accessh.session.state import Event, EventType

logger = logging.getLogger(__name__)

ENTER_ALT_SCREEN = "\x1b[?1049h\x1b[?25l"
LEAVE_ALT_SCREEN = "\x1b[?25h\x1b[?1049l"
CLEAR_SCREEN = "\x1b[H\x1b[2J"


class StreamClosed(Exception):
    """The peer closed the stream or the transport failed."""


class SessionStream(Protocol):
    """Bidirectional terminal stream handed to a session host."""

    def terminal_size(self) -> tuple[int, int]: ...

    async def read_events(self) -> Sequence[Event]:
        """Block for the next input; raise StreamClosed at end of stream."""
        ...

    async def write(self, text: str) -> None: ...

    async def close(self) -> None: ...

    def abort(self) -> None: ...


class SessionHost:
    """Runs a session until it terminates or its stream goes away."""

    def __init__(
        self,
        stream: SessionStream,
        table: LocationTable,
        *,
        load_error: Optional[BaseException] = None,
        quit_on_escape: bool = False,
        reveal_delay_ms: int = REVEAL_DELAY_MS,
        name: str = "session",
    ) -> None:
        self.stream = stream
        self.name = name
        self._events: asyncio.Queue[Optional[Event]] = asyncio.Queue()
        width, height = stream.terminal_size()
        state = new_session_state(width, height, load_error=load_error, quit_on_escape=quit_on_escape)
        self.controller = SessionController(state, table, self.post, reveal_delay_ms=reveal_delay_ms)

    def post(self, event: Event) -> None:
        self._events.put_nowait(event)

    def request_stop(self) -> None:
        """Ask the session to end; it closes its stream on the next loop turn."""
        self.post(Event(EventType.SHUTDOWN))

    async def _pump_input(self) -> None:
        try:
            while True:
                for event in await self.stream.read_events():
                    self.post(event)
        except (StreamClosed, OSError) as e:
            logger.debug("%s input ended: %s", self.name, e)
        finally:
            self._events.put_nowait(None)

    async def _write_frame(self) -> None:
        frame = self.controller.frame().replace("\n", "\r\n")
        await self.stream.write(CLEAR_SCREEN + frame)

    async def run(self) -> None:
        logger.debug("%s started", self.name)
        reader: Optional[asyncio.Task[None]] = None
        try:
            await self.stream.write(ENTER_ALT_SCREEN)
            await self._write_frame()
            reader = asyncio.create_task(self._pump_input(), name=f"{self.name}-input")
            while True:
                event = await self._events.get()
                if event is None:
                    break
                if self.controller.dispatch(event):
                    break
                await self._write_frame()
        except (StreamClosed, OSError) as e:
            logger.warning("%s stream error: %s", self.name, e)
        finally:
            self.controller.close()
            if reader is not None:
                reader.cancel()
            await self._close_stream()
            logger.debug("%s ended", self.name)
            if reader is not None:
                with contextlib.suppress(asyncio.CancelledError):
                    await reader

    async def _close_stream(self) -> None:
        try:
            await self.stream.write(LEAVE_ALT_SCREEN)
        except (StreamClosed, OSError) as e:
            logger.debug("%s could not restore the screen: %s", self.name, e)
        try:
            await self.stream.close()
        except (StreamClosed, OSError) as e:
            logger.debug("%s close failed: %s", self.name, e)
