"""Keystroke interpretation: turns decoded input into state transitions.

The interpreter is the single writer of the typed cursor, the typo set and
the timing buffer.  Each call to :meth:`InputInterpreter.feed` performs one
transition on the :class:`~ghosttype.state.SessionStore` and returns the
render-delta events describing it.

A wrong character never blocks progress: it is recorded as a typo and the
cursor still advances.  The only way to fix a past typo is to erase back to
it and type it again.
"""

from __future__ import annotations

import logging
import time
from typing import Callable

from ghosttype.events import RenderEvent
from ghosttype.keys import classify
from ghosttype.layout import LINE_BREAK
from ghosttype.state import SessionStore

logger = logging.getLogger(__name__)


def word_start(sample: str, typed: int) -> int:
    """Position a word-erase from *typed* stops at.

    Always erases at least one character, then keeps going until the
    character before the cursor is a space or the start is reached.
    """
    if typed <= 0:
        return 0
    pos = typed - 1
    while pos > 0 and sample[pos - 1] != " ":
        pos -= 1
    return pos


class InputInterpreter:
    """Keystroke state machine for one typing session."""

    def __init__(
        self,
        store: SessionStore,
        *,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self._store = store
        self._clock = clock
        self._checkpoint: float | None = None
        self._started_at: float | None = None
        self._interrupted = False
        self._on_start: Callable[[float], None] | None = None

    def on_start(self, callback: Callable[[float], None]) -> None:
        """Set callback fired once, when the first keystroke is processed."""
        self._on_start = callback

    @property
    def started_at(self) -> float | None:
        return self._started_at

    @property
    def interrupted(self) -> bool:
        return self._interrupted

    # -- input --------------------------------------------------------------

    def feed(self, data: str) -> list[RenderEvent]:
        """Apply one complete input unit and return the resulting events."""
        kind = classify(data)
        if kind == "ignored" or self._interrupted:
            return []

        if kind == "interrupt":
            self._interrupted = True
            logger.info("interrupt received at position %d", self._store.typed)
            return [RenderEvent.interrupt(self._store.typed)]
        if kind == "escape":
            return []

        if self._started_at is None:
            self._started_at = self._clock()
            if self._on_start is not None:
                self._on_start(self._started_at)

        if kind == "backspace":
            return self._store.retreat_to(lambda sample, typed: typed - 1)
        if kind == "word-erase":
            return self._store.retreat_to(word_start)
        if kind == "full-erase":
            return self._store.retreat_to(lambda sample, typed: 0)

        typed = self._store.typed
        sample = self._store.sample
        if typed >= len(sample):
            return []
        expected = sample[typed]

        if kind == "line-terminator":
            if expected == LINE_BREAK:
                return self._match(typed)
            return self._mistype()

        if data == expected:
            return self._match(typed)
        return self._mistype()

    # -- transitions --------------------------------------------------------

    def _match(self, position: int) -> list[RenderEvent]:
        now = self._clock()
        if self._checkpoint is None or position == 0:
            self._checkpoint = now
        checkpoint = self._checkpoint

        result = self._store.match(lambda: round((now - checkpoint) * 1000))
        if result is None:
            return []
        event, recorded = result
        if recorded:
            self._checkpoint = now
        return [event]

    def _mistype(self) -> list[RenderEvent]:
        event = self._store.mistype()
        return [event] if event is not None else []
