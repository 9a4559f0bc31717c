"""Ghost replay: re-plays a previous best run one character at a time."""

from __future__ import annotations

import asyncio
import logging
import time
from typing import Awaitable, Callable, Sequence

from ghosttype.events import RenderEvent
from ghosttype.state import SessionStore

logger = logging.getLogger(__name__)


class ReplayScheduler:
    """Advances the ghost cursor on the schedule of recorded timings.

    Entry ``i`` of *timings* is the number of milliseconds between ghost
    position ``i`` and ``i + 1``.  Ticks are scheduled against absolute
    deadlines measured from the first keystroke, so ghost position ``n`` is
    reached ``sum(timings[:n])`` ms in regardless of sleep jitter or the
    user's own pace.
    """

    def __init__(
        self,
        store: SessionStore,
        publish: Callable[[RenderEvent], None],
        *,
        timings: Sequence[int] | None = None,
        clock: Callable[[], float] = time.monotonic,
        sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
    ) -> None:
        self._store = store
        self._publish = publish
        self._timings: tuple[int, ...] = tuple(
            store.recorded if timings is None else timings
        )
        self._clock = clock
        self._sleep = sleep
        self._task: asyncio.Task[None] | None = None

    @property
    def enabled(self) -> bool:
        """Whether there is a previous run to replay."""
        return len(self._timings) > 0

    @property
    def started(self) -> bool:
        return self._task is not None

    @property
    def running(self) -> bool:
        return self._task is not None and not self._task.done()

    def start(self, origin: float | None = None) -> bool:
        """Start replaying from *origin* (defaults to now).

        Does nothing if there is nothing to replay or the replay was
        already started.  Returns whether a replay task was created.
        """
        if not self.enabled or self._task is not None:
            return False
        if origin is None:
            origin = self._clock()
        self._task = asyncio.get_running_loop().create_task(self._run(origin))
        return True

    def cancel(self) -> None:
        if self._task is not None and not self._task.done():
            logger.debug("cancelling ghost replay at position %d", self._store.ghost)
            self._task.cancel()

    async def wait(self) -> None:
        """Wait for the replay to finish or to be cancelled."""
        if self._task is None:
            return
        try:
            await self._task
        except asyncio.CancelledError:
            if not self._task.cancelled():
                raise

    async def _run(self, origin: float) -> None:
        length = len(self._store.sample)
        deadline = origin
        for duration in self._timings:
            deadline += duration / 1000
            await self._sleep(max(0.0, deadline - self._clock()))
            event = self._store.advance_ghost()
            if event is None:
                break
            self._publish(event)
            if event.index >= length:
                break
        logger.debug("ghost replay finished at position %d", self._store.ghost)
