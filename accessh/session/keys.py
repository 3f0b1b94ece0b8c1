"""Decode raw terminal input into session events."""

from __future__ import annotations

from accessh.session.state import Event, EventType, key_char

ESC = "\x1b"

_CONTROL_KEYS = {
    "\r": EventType.KEY_SUBMIT,
    "\n": EventType.KEY_SUBMIT,
    "\x03": EventType.KEY_INTERRUPT,
    "\x7f": EventType.KEY_BACKSPACE,
    "\x08": EventType.KEY_BACKSPACE,
}

# Final sequences after ESC, for both CSI ("[") and SS3 ("O") forms.
_ESCAPE_SEQUENCES = {
    "[A": EventType.KEY_UP,
    "OA": EventType.KEY_UP,
    "[B": EventType.KEY_DOWN,
    "OB": EventType.KEY_DOWN,
    "[5~": EventType.KEY_PAGE_UP,
    "[6~": EventType.KEY_PAGE_DOWN,
    "[H": EventType.KEY_HOME,
    "OH": EventType.KEY_HOME,
    "[1~": EventType.KEY_HOME,
    "[7~": EventType.KEY_HOME,
    "[F": EventType.KEY_END,
    "OF": EventType.KEY_END,
    "[4~": EventType.KEY_END,
    "[8~": EventType.KEY_END,
}


def _sequence_end(data: str, start: int) -> int:
    """Index just past the escape sequence that begins at data[start] (an ESC)."""
    i = start + 1
    if i >= len(data):
        return i
    if data[i] == "O":
        return min(i + 2, len(data))
    if data[i] != "[":
        return i
    i += 1
    # CSI: parameter/intermediate bytes, then one final byte in 0x40-0x7e.
    while i < len(data) and not ("\x40" <= data[i] <= "\x7e"):
        i += 1
    return min(i + 1, len(data))


def decode_keys(data: str) -> list[Event]:
    """Turn one chunk of terminal input into events.

    A lone ESC (not followed by "[" or "O") is the Escape key. Unknown escape
    sequences and other control characters are dropped.
    """
    events: list[Event] = []
    i = 0
    while i < len(data):
        ch = data[i]
        if ch == ESC:
            end = _sequence_end(data, i)
            seq = data[i + 1 : end]
            if not seq:
                events.append(Event(EventType.KEY_ESCAPE))
            elif seq in _ESCAPE_SEQUENCES:
                events.append(Event(_ESCAPE_SEQUENCES[seq]))
            i = max(end, i + 1)
            continue
        if ch in _CONTROL_KEYS:
            # Treat CRLF as one submit.
            if ch == "\n" and i > 0 and data[i - 1] == "\r":
                i += 1
                continue
            events.append(Event(_CONTROL_KEYS[ch]))
        elif ch.isprintable():
            events.append(key_char(ch))
        i += 1
    return events
