"""Shared session state and the lock that guards it.

``SessionStore`` is the only way to read or change a session's cursors,
typo set, timing buffer and terminal geometry.  Every public method takes
the store's lock for the duration of the update and nothing else, so
callers never paint to the terminal while holding it.

Field ownership:

* typed cursor, typo set, timing buffer -- written by the input interpreter
* ghost cursor -- written by the replay scheduler
* geometry -- written by the resize coordinator
"""

from __future__ import annotations

import threading
from dataclasses import dataclass
from typing import Callable, Sequence

from ghosttype.events import RenderEvent
from ghosttype.layout import DEFAULT_GEOMETRY, TerminalGeometry


@dataclass(frozen=True)
class SessionSnapshot:
    """Consistent point-in-time copy of a session's state."""

    typed: int
    ghost: int
    typos: frozenset[int]
    timings: tuple[int, ...]
    length: int

    @property
    def complete(self) -> bool:
        return self.typed >= self.length


@dataclass(frozen=True)
class GeometryChange:
    """Result of swapping the terminal geometry under the state lock."""

    old: TerminalGeometry
    new: TerminalGeometry
    typed: int
    ghost: int


class SessionState:
    """Mutable session model.  Only ever touched by :class:`SessionStore`."""

    def __init__(self, sample: str, geometry: TerminalGeometry) -> None:
        self.sample = sample
        self.typed = 0
        self.ghost = 0
        self.typos: set[int] = set()
        self.timings: list[int] = [0] * len(sample)
        self.geometry = geometry


class SessionStore:
    """Coordinator owning a :class:`SessionState` and its mutual-exclusion lock."""

    def __init__(
        self,
        sample: str,
        recorded: Sequence[int] = (),
        geometry: TerminalGeometry = DEFAULT_GEOMETRY,
    ) -> None:
        self._sample = sample
        self._recorded: tuple[int, ...] = tuple(recorded)
        self._state = SessionState(sample, geometry)
        self._lock = threading.Lock()

    # -- immutable inputs ---------------------------------------------------

    @property
    def sample(self) -> str:
        return self._sample

    @property
    def recorded(self) -> tuple[int, ...]:
        """Per-character timings of the previous best run (empty if none)."""
        return self._recorded

    # -- reads --------------------------------------------------------------

    def snapshot(self) -> SessionSnapshot:
        with self._lock:
            s = self._state
            return SessionSnapshot(
                typed=s.typed,
                ghost=s.ghost,
                typos=frozenset(s.typos),
                timings=tuple(s.timings),
                length=len(self._sample),
            )

    @property
    def typed(self) -> int:
        with self._lock:
            return self._state.typed

    @property
    def ghost(self) -> int:
        with self._lock:
            return self._state.ghost

    @property
    def geometry(self) -> TerminalGeometry:
        with self._lock:
            return self._state.geometry

    @property
    def complete(self) -> bool:
        with self._lock:
            return self._state.typed >= len(self._sample)

    # -- typed cursor (input interpreter) -----------------------------------

    def match(self, elapsed_ms: Callable[[], int]) -> tuple[RenderEvent, bool] | None:
        """Resolve the current position as correctly typed.

        Clears a typo at this position, then records ``elapsed_ms()`` into
        the timing buffer if no typos remain.  Returns the advance event and
        whether a timing was recorded, or ``None`` if the sample is done.
        """
        with self._lock:
            s = self._state
            pos = s.typed
            if pos >= len(self._sample):
                return None
            s.typos.discard(pos)
            recorded = not s.typos
            if recorded:
                s.timings[pos] = elapsed_ms()
            s.typed = pos + 1
            return RenderEvent.advance(s.typed, self._sample[pos], False), recorded

    def mistype(self) -> RenderEvent | None:
        """Mark the current position as a typo and advance past it."""
        with self._lock:
            s = self._state
            pos = s.typed
            if pos >= len(self._sample):
                return None
            s.typos.add(pos)
            s.typed = pos + 1
            return RenderEvent.advance(s.typed, self._sample[pos], True)

    def retreat_to(self, target: Callable[[str, int], int]) -> list[RenderEvent]:
        """Move the typed cursor back to ``target(sample, typed)``.

        Typo entries at or beyond the new cursor are dropped.  One retreat
        event is returned per erased position, nearest first.
        """
        with self._lock:
            s = self._state
            stop = max(0, min(s.typed, target(self._sample, s.typed)))
            events = [
                RenderEvent.retreat(i, self._sample[i])
                for i in range(s.typed - 1, stop - 1, -1)
            ]
            s.typed = stop
            s.typos = {p for p in s.typos if p < stop}
            return events

    # -- ghost cursor (replay scheduler) ------------------------------------

    def advance_ghost(self) -> RenderEvent | None:
        with self._lock:
            s = self._state
            if s.ghost >= len(self._sample):
                return None
            s.ghost += 1
            return RenderEvent.ghost_advance(s.ghost, self._sample[s.ghost - 1])

    # -- geometry (resize coordinator) --------------------------------------

    def swap_geometry(
        self, query: Callable[[TerminalGeometry], TerminalGeometry]
    ) -> GeometryChange:
        """Replace the geometry with ``query(previous)`` under the lock."""
        with self._lock:
            s = self._state
            old = s.geometry
            s.geometry = query(old)
            return GeometryChange(old=old, new=s.geometry, typed=s.typed, ghost=s.ghost)
