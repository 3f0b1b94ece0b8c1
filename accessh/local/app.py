"""Single-session mode: the session state machine inside a Textual app."""

from __future__ import annotations

import logging
from typing import Optional

from rich.text import Text
from textual import events
from textual.app import App, ComposeResult
from textual.binding import Binding
from textual.css.query import NoMatches
from textual.widgets import Static

from accessh.constants import REVEAL_DELAY_MS
from accessh.locations import LocationTable
from accessh.session.controller import SessionController, new_session_state
from accessh.session.state import Event, EventType, key_char, window_resize

logger = logging.getLogger(__name__)

DEFAULT_WIDTH = 80
DEFAULT_HEIGHT = 24


class AccesshApp(App[int]):
    """Full-screen lookup prompt on the local terminal.

    Escape at the top level quits here, unlike over SSH.
    """

    CSS = """
    Screen {
        overflow: hidden;
    }
    #frame {
        width: 100%;
        height: 100%;
    }
    """

    BINDINGS = [
        Binding("ctrl+c", "send('key_interrupt')", "Quit", priority=True, show=False),
        Binding("escape", "send('key_escape')", "Back", priority=True, show=False),
        Binding("enter", "send('key_submit')", "Submit", priority=True, show=False),
        Binding("backspace", "send('key_backspace')", show=False, priority=True),
        Binding("up", "send('key_up')", show=False, priority=True),
        Binding("down", "send('key_down')", show=False, priority=True),
        Binding("pageup", "send('key_page_up')", show=False, priority=True),
        Binding("pagedown", "send('key_page_down')", show=False, priority=True),
        Binding("home", "send('key_home')", show=False, priority=True),
        Binding("end", "send('key_end')", show=False, priority=True),
    ]

    def __init__(
        self,
        table: LocationTable,
        *,
        load_error: Optional[BaseException] = None,
        reveal_delay_ms: int = REVEAL_DELAY_MS,
    ) -> None:
        super().__init__()
        state = new_session_state(DEFAULT_WIDTH, DEFAULT_HEIGHT, load_error=load_error, quit_on_escape=True)
        self.controller = SessionController(state, table, self.apply_event, reveal_delay_ms=reveal_delay_ms)

    def compose(self) -> ComposeResult:
        yield Static(id="frame", markup=False)

    def on_mount(self) -> None:
        logger.debug("Local session started (%dx%d)", self.size.width, self.size.height)
        self.apply_event(window_resize(self.size.width, self.size.height))

    def on_resize(self, event: events.Resize) -> None:
        self.apply_event(window_resize(event.size.width, event.size.height))

    def on_key(self, event: events.Key) -> None:
        if event.is_printable and event.character:
            event.stop()
            self.apply_event(key_char(event.character))

    def action_send(self, event_type: str) -> None:
        self.apply_event(Event(EventType(event_type)))

    def apply_event(self, event: Event) -> None:
        """Apply an event, then redraw or exit."""
        if self.controller.dispatch(event):
            self.exit(0)
            return
        self._refresh_frame()

    def _refresh_frame(self) -> None:
        try:
            frame = self.query_one("#frame", Static)
        except NoMatches:
            return
        frame.update(Text(self.controller.frame()))

    def on_unmount(self) -> None:
        self.controller.close()
