"""Render-delta events passed from the session actors to the renderer."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Literal

EventKind = Literal[
    "initial",
    "advance",
    "retreat",
    "ghost-advance",
    "resize-repaint",
    "interrupt",
]


@dataclass(frozen=True)
class RenderEvent:
    """What changed in the session state.

    ``index`` is the new cursor value after the transition (typed cursor for
    ``advance``/``retreat``/``resize-repaint``, ghost cursor for
    ``ghost-advance``).  A ``resize-repaint`` also carries the ghost cursor
    and the terminal width before and after the change.  ``char``
    and ``typo`` are snapshots taken under the state lock so the renderer
    never has to read shared state while painting.
    """

    kind: EventKind
    index: int = 0
    char: str = ""
    typo: bool = False
    ghost: int = 0
    width: int = 0
    old_width: int = 0

    @classmethod
    def initial(cls) -> RenderEvent:
        return cls("initial")

    @classmethod
    def advance(cls, index: int, char: str, typo: bool) -> RenderEvent:
        return cls("advance", index=index, char=char, typo=typo)

    @classmethod
    def retreat(cls, index: int, char: str) -> RenderEvent:
        return cls("retreat", index=index, char=char)

    @classmethod
    def ghost_advance(cls, index: int, char: str) -> RenderEvent:
        return cls("ghost-advance", index=index, char=char)

    @classmethod
    def resize_repaint(
        cls, old_width: int, width: int, typed: int, ghost: int
    ) -> RenderEvent:
        return cls(
            "resize-repaint",
            index=typed,
            ghost=ghost,
            width=width,
            old_width=old_width,
        )

    @classmethod
    def interrupt(cls, index: int) -> RenderEvent:
        return cls("interrupt", index=index)
