"""Session state model and reducer.

One `SessionState` belongs to exactly one session. It only changes through
`reduce_state`, which applies a single `Event` and returns the side effects
the caller has to carry out (schedule a reveal reset, close the stream).
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from enum import Enum
from typing import Optional, TypedDict, cast

from accessh.constants import DEFAULT_PLACEHOLDER, HELP_COMMAND, MIN_TERMINAL_HEIGHT, MIN_TERMINAL_WIDTH
from accessh.locations import LocationTable, format_access_instruction, format_not_found
from accessh.session.layout import max_scroll, viewport_height

logger = logging.getLogger(__name__)


class Mode(str, Enum):
    IDLE = "idle"
    REVEALING = "revealing"
    HELP = "help"
    TERMINATED = "terminated"


class EventType(str, Enum):
    """Input events a session reacts to."""

    KEY_CHAR = "key_char"
    KEY_BACKSPACE = "key_backspace"
    KEY_SUBMIT = "key_submit"
    KEY_ESCAPE = "key_escape"
    KEY_INTERRUPT = "key_interrupt"
    KEY_UP = "key_up"
    KEY_DOWN = "key_down"
    KEY_PAGE_UP = "key_page_up"
    KEY_PAGE_DOWN = "key_page_down"
    KEY_HOME = "key_home"
    KEY_END = "key_end"
    TIMER_FIRED = "timer_fired"
    WINDOW_RESIZE = "window_resize"
    SHUTDOWN = "shutdown"  # Server is going away


class EventPayload(TypedDict, total=False):
    char: str
    timer_id: int
    width: int
    height: int


@dataclass(frozen=True)
class Event:
    type: EventType
    payload: EventPayload = field(default_factory=lambda: cast(EventPayload, {}))


def key_char(char: str) -> Event:
    return Event(EventType.KEY_CHAR, {"char": char})


def timer_fired(timer_id: int) -> Event:
    return Event(EventType.TIMER_FIRED, {"timer_id": timer_id})


def window_resize(width: int, height: int) -> Event:
    return Event(EventType.WINDOW_RESIZE, {"width": width, "height": height})


class EffectType(str, Enum):
    SCHEDULE_RESET = "schedule_reset"
    CLOSE = "close"


@dataclass(frozen=True)
class Effect:
    type: EffectType
    timer_id: Optional[int] = None


@dataclass
class SessionState:
    """Interaction state for one session."""

    input_buffer: str = ""
    placeholder: str = DEFAULT_PLACEHOLDER
    last_destination: str = ""
    mode: Mode = Mode.IDLE
    scroll_offset: int = 0
    terminal_width: int = MIN_TERMINAL_WIDTH
    terminal_height: int = MIN_TERMINAL_HEIGHT
    load_error: Optional[str] = None
    latest_timer_id: int = 0
    pending_timer_id: Optional[int] = None
    # Escape at top level quits in single-session mode only
    quit_on_escape: bool = False

    @property
    def help_visible(self) -> bool:
        return self.mode is Mode.HELP

    @property
    def terminated(self) -> bool:
        return self.mode is Mode.TERMINATED


def _top_level_mode(state: SessionState) -> Mode:
    return Mode.REVEALING if state.pending_timer_id is not None else Mode.IDLE


def _clamp_scroll(state: SessionState, table: LocationTable, offset: int) -> None:
    limit = max_scroll(table, state.terminal_width, state.terminal_height)
    state.scroll_offset = min(max(offset, 0), limit)


def _submit(state: SessionState, table: LocationTable) -> list[Effect]:
    destination = state.input_buffer
    state.input_buffer = ""

    if destination == HELP_COMMAND:
        state.mode = Mode.HELP
        state.scroll_offset = 0
        return []

    state.last_destination = destination
    location = table.lookup(destination)
    if location is not None:
        state.placeholder = format_access_instruction(location)
    else:
        state.placeholder = format_not_found(destination)

    state.latest_timer_id += 1
    state.pending_timer_id = state.latest_timer_id
    state.mode = Mode.REVEALING
    return [Effect(EffectType.SCHEDULE_RESET, timer_id=state.latest_timer_id)]


def _timer_fired(state: SessionState, timer_id: Optional[int]) -> None:
    if timer_id is None or timer_id != state.pending_timer_id:
        logger.debug("Ignoring stale reveal timer %s (latest=%s)", timer_id, state.latest_timer_id)
        return
    state.pending_timer_id = None
    state.placeholder = DEFAULT_PLACEHOLDER
    if state.mode is Mode.REVEALING:
        state.mode = Mode.IDLE


def _scroll(state: SessionState, table: LocationTable, event_type: EventType) -> None:
    page = viewport_height(state.terminal_height)
    if event_type is EventType.KEY_UP:
        _clamp_scroll(state, table, state.scroll_offset - 1)
    elif event_type is EventType.KEY_DOWN:
        _clamp_scroll(state, table, state.scroll_offset + 1)
    elif event_type is EventType.KEY_PAGE_UP:
        _clamp_scroll(state, table, state.scroll_offset - page)
    elif event_type is EventType.KEY_PAGE_DOWN:
        _clamp_scroll(state, table, state.scroll_offset + page)
    elif event_type is EventType.KEY_HOME:
        _clamp_scroll(state, table, 0)
    elif event_type is EventType.KEY_END:
        _clamp_scroll(state, table, max_scroll(table, state.terminal_width, state.terminal_height))


_SCROLL_EVENTS = {
    EventType.KEY_UP,
    EventType.KEY_DOWN,
    EventType.KEY_PAGE_UP,
    EventType.KEY_PAGE_DOWN,
    EventType.KEY_HOME,
    EventType.KEY_END,
}


def reduce_state(state: SessionState, event: Event, table: LocationTable) -> list[Effect]:
    """Apply event to state and return the effects to execute."""
    t = event.type
    p = event.payload

    if state.mode is Mode.TERMINATED:
        return []

    if t is EventType.KEY_INTERRUPT or t is EventType.SHUTDOWN:
        state.mode = Mode.TERMINATED
        state.pending_timer_id = None
        return [Effect(EffectType.CLOSE)]

    if t is EventType.WINDOW_RESIZE:
        state.terminal_width = max(p.get("width", 0), MIN_TERMINAL_WIDTH)
        state.terminal_height = max(p.get("height", 0), MIN_TERMINAL_HEIGHT)
        _clamp_scroll(state, table, state.scroll_offset)
        return []

    if t is EventType.TIMER_FIRED:
        _timer_fired(state, p.get("timer_id"))
        return []

    if t is EventType.KEY_ESCAPE:
        if state.mode is Mode.HELP:
            state.input_buffer = ""
            state.mode = _top_level_mode(state)
            return []
        if state.quit_on_escape:
            state.mode = Mode.TERMINATED
            state.pending_timer_id = None
            return [Effect(EffectType.CLOSE)]
        return []

    # A session whose config failed to load can only quit.
    if state.load_error is not None:
        return []

    if t is EventType.KEY_SUBMIT and state.input_buffer == HELP_COMMAND:
        return _submit(state, table)

    if state.mode is Mode.HELP:
        if t in _SCROLL_EVENTS:
            _scroll(state, table, t)
        return []

    if t is EventType.KEY_CHAR:
        state.input_buffer += p.get("char", "")
        return []

    if t is EventType.KEY_BACKSPACE:
        state.input_buffer = state.input_buffer[:-1]
        return []

    if t is EventType.KEY_SUBMIT:
        return _submit(state, table)

    # Scrolling keys outside the help view
    return []
