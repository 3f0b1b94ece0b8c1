"""Session frame rendering.

`render` is a pure function of the session state and the location table: it
never mutates either, and the same inputs always produce the same frame.
"""

from __future__ import annotations

from accessh.constants import HELP_FOOTER, HELP_HEADER, PROMPT_PREFIX, QUIT_HINT
from accessh.locations import LocationTable
from accessh.session.layout import content_width, help_lines, pad_lines, viewport_height, wrap_lines
from accessh.session.state import Mode, SessionState


def input_line(state: SessionState) -> str:
    """Prompt line; the placeholder shows while the buffer is empty."""
    return PROMPT_PREFIX + (state.input_buffer or state.placeholder)


def help_viewport(state: SessionState, table: LocationTable) -> list[str]:
    """The slice of the help listing currently scrolled into view."""
    lines = help_lines(table, content_width(state.terminal_width))
    height = viewport_height(state.terminal_height)
    return lines[state.scroll_offset : state.scroll_offset + height]


def _render_error(state: SessionState, width: int) -> str:
    text = f"Error: {state.load_error}\n\n{input_line(state)}\n\n{QUIT_HINT}\n"
    return pad_lines(wrap_lines(text, width))


def _render_help(state: SessionState, table: LocationTable, width: int) -> str:
    lines = [HELP_HEADER, ""]
    lines.extend(help_viewport(state, table))
    lines.extend(["", HELP_FOOTER])
    wrapped: list[str] = []
    for line in lines:
        wrapped.extend(wrap_lines(line, width))
    return pad_lines(wrapped, top=1, bottom=1)


def _render_normal(state: SessionState, table: LocationTable, width: int) -> str:
    text = f"\n{table.title}\n\n{table.description}:\n\n{input_line(state)}\n\n{QUIT_HINT}"
    return pad_lines(wrap_lines(text, width))


def render(state: SessionState, table: LocationTable) -> str:
    width = content_width(state.terminal_width)
    if state.load_error is not None:
        return _render_error(state, width)
    if state.mode is Mode.HELP:
        return _render_help(state, table, width)
    return _render_normal(state, table, width)
