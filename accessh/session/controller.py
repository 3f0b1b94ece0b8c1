"""Session controller: reducer plus effect execution."""

from __future__ import annotations

import logging
from typing import Callable, Optional

from accessh.constants import MIN_TERMINAL_HEIGHT, MIN_TERMINAL_WIDTH, REVEAL_DELAY_MS
from accessh.locations import LocationTable
from accessh.session.render import render
from accessh.session.reveal import RevealTimer
from accessh.session.state import Effect, EffectType, Event, SessionState, reduce_state

logger = logging.getLogger(__name__)


def new_session_state(
    width: int,
    height: int,
    *,
    load_error: Optional[BaseException] = None,
    quit_on_escape: bool = False,
) -> SessionState:
    return SessionState(
        terminal_width=max(width, MIN_TERMINAL_WIDTH),
        terminal_height=max(height, MIN_TERMINAL_HEIGHT),
        load_error=str(load_error) if load_error is not None else None,
        quit_on_escape=quit_on_escape,
    )


class SessionController:
    """Owns one SessionState and carries out the effects its reducer asks for.

    `post` is how delayed events (reveal resets) get back into the session;
    the host passes its event queue, the local app dispatches directly.
    """

    def __init__(
        self,
        state: SessionState,
        table: LocationTable,
        post: Callable[[Event], None],
        *,
        reveal_delay_ms: int = REVEAL_DELAY_MS,
    ) -> None:
        self.state = state
        self.table = table
        self.reveal = RevealTimer(post, reveal_delay_ms / 1000.0)

    @property
    def terminated(self) -> bool:
        return self.state.terminated

    def dispatch(self, event: Event) -> bool:
        """Apply event; return True once the session has terminated."""
        for effect in reduce_state(self.state, event, self.table):
            self._execute(effect)
        return self.state.terminated

    def _execute(self, effect: Effect) -> None:
        if effect.type is EffectType.SCHEDULE_RESET and effect.timer_id is not None:
            self.reveal.schedule(effect.timer_id)
        elif effect.type is EffectType.CLOSE:
            self.close()

    def frame(self) -> str:
        return render(self.state, self.table)

    def close(self) -> None:
        self.reveal.close()
