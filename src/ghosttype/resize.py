"""Terminal resize handling."""

from __future__ import annotations

import logging
from typing import Callable

from ghosttype.events import RenderEvent
from ghosttype.layout import TerminalGeometry
from ghosttype.state import SessionStore
from ghosttype.terminal import Terminal

logger = logging.getLogger(__name__)


class ResizeCoordinator:
    """Reacts to window-size notifications with a resize-repaint.

    Each notification re-queries the geometry under the state lock (falling
    back to the last known size if the query fails) and publishes one
    ``resize-repaint`` event carrying the old and new widths.  Notifications
    are handled strictly one after another: one that arrives while another
    is being handled, e.g. a signal delivered mid-handler, is queued and
    processed once the current one is done.
    """

    def __init__(
        self,
        store: SessionStore,
        terminal: Terminal,
        publish: Callable[[RenderEvent], None],
    ) -> None:
        self._store = store
        self._terminal = terminal
        self._publish = publish
        self._pending: list[TerminalGeometry | None] = []
        self._active = False
        self._handled = 0

    @property
    def handled(self) -> int:
        """Number of notifications processed so far."""
        return self._handled

    def notify(self, geometry: TerminalGeometry | None = None) -> None:
        """Entry point for the SIGWINCH handler.

        *geometry* is passed when the new size is already known, e.g. from a
        late reply to the size query; otherwise the terminal is asked.
        """
        self._pending.append(geometry)
        if self._active:
            return
        self._active = True
        try:
            while self._pending:
                self._process(self._pending.pop(0))
        finally:
            self._active = False

    def _process(self, geometry: TerminalGeometry | None) -> None:
        if geometry is None:
            change = self._store.swap_geometry(self._terminal.size)
        else:
            change = self._store.swap_geometry(lambda previous: geometry)
        self._handled += 1
        logger.debug(
            "resize %dx%d -> %dx%d",
            change.old.width,
            change.old.height,
            change.new.width,
            change.new.height,
        )
        self._publish(
            RenderEvent.resize_repaint(
                change.old.width, change.new.width, change.typed, change.ghost
            )
        )
