"""Incremental terminal painter for a typing session.

The renderer consumes :class:`~ghosttype.events.RenderEvent` objects in
order and repaints only what each one changed.  It keeps its own mirrored
screen coordinates for the typed cursor and the ghost; they are advanced
cell by cell as events arrive and are never read back from the session
state.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, fields
from typing import Callable, Mapping

from ghosttype.events import RenderEvent
from ghosttype.layout import (
    LINE_BREAK,
    ScreenCoordinate,
    has_line_breaks,
    locate,
    reflow,
    step_back,
    step_forward,
)
from ghosttype.terminal import (
    CLEAR_SCREEN,
    CURSOR_BLINKING_BAR,
    CURSOR_HOME,
    MOVE_TO_FMT,
    RESET_STYLE,
    RESTORE_CURSOR,
    SAVE_CURSOR,
    Terminal,
)

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Styles:
    """SGR parameters for each paint style."""

    untyped: str = "90"
    correct: str = "97"
    typo: str = "91"
    typo_blank: str = "41"
    ghost: str = "95"

    @classmethod
    def from_mapping(cls, overrides: Mapping[str, str] | None) -> Styles:
        """Build styles from defaults plus *overrides*; unknown names are ignored."""
        if not overrides:
            return cls()
        names = {f.name for f in fields(cls)}
        return cls(**{k: str(v) for k, v in overrides.items() if k in names})


def paint(text: str, sgr: str) -> str:
    return f"\x1b[{sgr}m{text}{RESET_STYLE}"


def screen_text(sample: str, width: int) -> str:
    """The sample as painted from the home position under *width* columns.

    Line breaks become absolute moves to the row :func:`step_forward` puts
    them on, so a line exactly *width* cells long followed by a break keeps
    the empty row the layout gives it.
    """
    parts: list[str] = []
    coord = ScreenCoordinate()
    for char in sample:
        nxt = step_forward(coord, width, char)
        if char == LINE_BREAK:
            parts.append(MOVE_TO_FMT.format(nxt.row + 1, nxt.col + 1))
        else:
            parts.append(char)
        coord = nxt
    return "".join(parts)


class Renderer:
    """Paints render-delta events onto a :class:`~ghosttype.terminal.Terminal`."""

    def __init__(
        self,
        terminal: Terminal,
        sample: str,
        width: int,
        styles: Styles | None = None,
    ) -> None:
        self._terminal = terminal
        self._sample = sample
        self._width = width
        self._styles = styles or Styles()
        self._line_breaks = has_line_breaks(sample)
        self._typed = ScreenCoordinate()
        self._ghost = ScreenCoordinate()
        self._handlers: dict[str, Callable[[RenderEvent], None]] = {
            "initial": self._initial,
            "advance": self._advance,
            "retreat": self._retreat,
            "ghost-advance": self._ghost_advance,
            "resize-repaint": self._resize_repaint,
            "interrupt": self._interrupt,
        }

    @property
    def typed_coordinate(self) -> ScreenCoordinate:
        return self._typed

    @property
    def ghost_coordinate(self) -> ScreenCoordinate:
        return self._ghost

    @property
    def width(self) -> int:
        return self._width

    def handle(self, event: RenderEvent) -> None:
        self._handlers[event.kind](event)

    # -- event handlers -----------------------------------------------------

    def _initial(self, event: RenderEvent) -> None:
        self._typed = ScreenCoordinate()
        self._ghost = ScreenCoordinate()
        self._paint_sample()
        self._terminal.set_cursor_shape(CURSOR_BLINKING_BAR)

    def _advance(self, event: RenderEvent) -> None:
        char = event.char
        if event.typo:
            if char in (" ", LINE_BREAK):
                self._terminal.write(paint(" ", self._styles.typo_blank))
            else:
                self._terminal.write(paint(char, self._styles.typo))
        elif char != LINE_BREAK:
            self._terminal.write(paint(char, self._styles.correct))

        coord = step_forward(self._typed, self._width, char)
        if coord.row != self._typed.row:
            self._terminal.move_to(coord.row, coord.col)
        self._typed = coord

    def _retreat(self, event: RenderEvent) -> None:
        char = event.char
        if char == LINE_BREAK:
            coord = locate(self._sample, event.index, self._width)
        else:
            coord = step_back(self._typed, self._width)

        self._terminal.move_to(coord.row, coord.col)
        glyph = " " if char == LINE_BREAK else char
        self._terminal.write(paint(glyph, self._styles.untyped))
        self._terminal.move_to(coord.row, coord.col)
        self._typed = coord

    def _ghost_advance(self, event: RenderEvent) -> None:
        char = event.char
        glyph = " " if char == LINE_BREAK else char
        row, col = self._ghost.row + 1, self._ghost.col + 1
        self._terminal.write(
            f"{SAVE_CURSOR}\x1b[{row};{col}H"
            f"{paint(glyph, self._styles.ghost)}{RESTORE_CURSOR}"
        )
        self._ghost = step_forward(self._ghost, self._width, char)

    def _resize_repaint(self, event: RenderEvent) -> None:
        old_width, new_width = self._width, event.width
        if self._line_breaks:
            self._typed = locate(self._sample, event.index, new_width)
            self._ghost = locate(self._sample, event.ghost, new_width)
        else:
            self._typed = reflow(self._typed, old_width, new_width)
            self._ghost = reflow(self._ghost, old_width, new_width)
        self._width = new_width
        logger.debug(
            "reflowed %d -> %d columns: typed=%s ghost=%s",
            old_width,
            new_width,
            self._typed,
            self._ghost,
        )

        self._paint_sample()
        self._terminal.move_to(self._typed.row, self._typed.col)

    def _interrupt(self, event: RenderEvent) -> None:
        self._terminal.write(RESET_STYLE + CLEAR_SCREEN)

    # -- helpers ------------------------------------------------------------

    def _paint_sample(self) -> None:
        self._terminal.clear_screen()
        text = screen_text(self._sample, self._width)
        self._terminal.write(paint(text, self._styles.untyped))
        self._terminal.write(CURSOR_HOME)
