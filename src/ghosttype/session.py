"""Typing session engine.

Wires the session actors together on one asyncio event loop:

* keyboard input (terminal reader) -> :class:`InputInterpreter`
* timed ghost ticks -> :class:`ReplayScheduler`
* SIGWINCH -> :class:`ResizeCoordinator`

All three mutate the shared :class:`SessionStore` and publish render-delta
events into a single ordered queue.  One renderer task drains the queue,
so escape sequences from different actors are never interleaved.
"""

from __future__ import annotations

import asyncio
import logging
import time
from typing import Callable, Sequence

from ghosttype.errors import InputError, SampleError
from ghosttype.events import RenderEvent
from ghosttype.interpreter import InputInterpreter
from ghosttype.keys import is_size_report
from ghosttype.layout import DEFAULT_GEOMETRY, TerminalGeometry
from ghosttype.renderer import Renderer, Styles
from ghosttype.replay import ReplayScheduler
from ghosttype.resize import ResizeCoordinator
from ghosttype.results import SessionResult, count_words, is_personal_best
from ghosttype.state import SessionStore
from ghosttype.terminal import Terminal, parse_size_report

logger = logging.getLogger(__name__)


class TypingSession:
    """One run through a sample, optionally raced against a ghost."""

    def __init__(
        self,
        terminal: Terminal,
        sample: str,
        *,
        recorded: Sequence[int] = (),
        prior_best_ns: int | None = None,
        geometry: TerminalGeometry = DEFAULT_GEOMETRY,
        styles: Styles | None = None,
        ghost: bool = True,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        if not sample:
            raise SampleError("sample text is empty")

        self._terminal = terminal
        self._clock = clock
        self._prior_best_ns = prior_best_ns

        self.store = SessionStore(sample, recorded, geometry)
        self.interpreter = InputInterpreter(self.store, clock=clock)
        self.replay = ReplayScheduler(
            self.store,
            self.publish,
            timings=self.store.recorded if ghost else (),
            clock=clock,
        )
        self.resize = ResizeCoordinator(self.store, terminal, self.publish)
        self.renderer = Renderer(terminal, sample, geometry.width, styles)

        self.interpreter.on_start(self._on_first_keystroke)

        self._queue: asyncio.Queue[RenderEvent] = asyncio.Queue()
        self._done: asyncio.Future[None] | None = None
        self._finished_at: float | None = None

    # -- event plumbing -----------------------------------------------------

    def publish(self, event: RenderEvent) -> None:
        """Queue *event* for the renderer.  Must be called on the loop thread."""
        self._queue.put_nowait(event)

    async def _render_loop(self) -> None:
        while True:
            event = await self._queue.get()
            try:
                self.renderer.handle(event)
            finally:
                self._queue.task_done()

    # -- actor callbacks ----------------------------------------------------

    def handle_input(self, data: str) -> None:
        """Terminal input handler: one complete character or sequence."""
        if self._done is not None and self._done.done():
            return

        if is_size_report(data):
            geometry = parse_size_report(data)
            if geometry is not None:
                self.resize.notify(geometry)
            return

        for event in self.interpreter.feed(data):
            self.publish(event)

        if self.interpreter.interrupted:
            self._finish()
        elif self.store.complete:
            self._finish()

    def _on_first_keystroke(self, origin: float) -> None:
        if self.replay.start(origin):
            logger.info("ghost replay started (%d ticks)", len(self.store.recorded))

    def _on_error(self, error: Exception) -> None:
        if self._done is not None and not self._done.done():
            self._done.set_exception(error)

    def _finish(self) -> None:
        if self._finished_at is None:
            self._finished_at = self._clock()
        self.replay.cancel()
        if self._done is not None and not self._done.done():
            self._done.set_result(None)

    # -- lifecycle ----------------------------------------------------------

    async def run(self) -> SessionResult:
        """Run the session until the sample is finished or interrupted.

        The terminal is stopped (and its mode restored) on every exit path.
        Raises :class:`~ghosttype.errors.InputError` if reading input fails.
        """
        loop = asyncio.get_running_loop()
        self._done = loop.create_future()
        render_task = loop.create_task(self._render_loop())

        self.publish(RenderEvent.initial())
        try:
            self._terminal.start(self.handle_input, self.resize.notify, self._on_error)
            await self._done
        except InputError:
            logger.exception("input stream failed")
            raise
        finally:
            self.replay.cancel()
            await self.replay.wait()
            await self._queue.join()
            render_task.cancel()
            try:
                await render_task
            except asyncio.CancelledError:
                pass
            self._terminal.stop()

        return self.result()

    def result(self) -> SessionResult:
        snapshot = self.store.snapshot()
        started = self.interpreter.started_at
        finished = self._finished_at if self._finished_at is not None else self._clock()
        elapsed_ns = 0 if started is None else int(round((finished - started) * 1e9))
        interrupted = self.interpreter.interrupted
        personal_best = (
            not interrupted
            and snapshot.complete
            and is_personal_best(elapsed_ns, len(snapshot.typos), self._prior_best_ns)
        )
        return SessionResult(
            elapsed_ns=elapsed_ns,
            word_count=count_words(self.store.sample),
            typos=snapshot.typos,
            timings=snapshot.timings,
            personal_best=personal_best,
            interrupted=interrupted,
        )
