"""Terminal layout primitives: wrapping, insets and viewport sizing."""

from __future__ import annotations

from rich.cells import cell_len, chop_cells

from accessh.constants import (
    HORIZONTAL_INSET,
    MIN_TERMINAL_HEIGHT,
    MIN_TERMINAL_WIDTH,
    VIEWPORT_RESERVE_ROWS,
    WRAP_MARGIN,
)
from accessh.locations import LocationTable, format_location_cards


def content_width(terminal_width: int) -> int:
    """Columns available for text once the horizontal inset is taken off."""
    return max(terminal_width, MIN_TERMINAL_WIDTH) - WRAP_MARGIN


def viewport_height(terminal_height: int) -> int:
    """Rows available to the help listing between its header and footer."""
    return max(1, max(terminal_height, MIN_TERMINAL_HEIGHT) - VIEWPORT_RESERVE_ROWS)


def wrap_lines(text: str, width: int) -> list[str]:
    """Word-wrap text to width terminal cells, keeping blank lines and breaking overlong words."""
    lines: list[str] = []
    for raw in text.split("\n"):
        current = ""
        for word in raw.split(" "):
            pieces = chop_cells(word, width) if cell_len(word) > width else [word]
            for piece in pieces:
                if not current:
                    current = piece
                elif cell_len(current) + 1 + cell_len(piece) <= width:
                    current = f"{current} {piece}"
                else:
                    lines.append(current)
                    current = piece
        lines.append(current)
    return lines


def pad_lines(lines: list[str], *, top: int = 0, bottom: int = 0) -> str:
    inset = " " * HORIZONTAL_INSET
    body = [f"{inset}{line}{inset}" if line else "" for line in lines]
    return "\n".join([""] * top + body + [""] * bottom)


def help_lines(table: LocationTable, width: int) -> list[str]:
    """Full help listing, one card per location separated by a blank line."""
    lines: list[str] = []
    for card in format_location_cards(table):
        lines.extend(wrap_lines(card, width))
        lines.append("")
    return lines


def max_scroll(table: LocationTable, terminal_width: int, terminal_height: int) -> int:
    total = len(help_lines(table, content_width(terminal_width)))
    return max(0, total - viewport_height(terminal_height))
